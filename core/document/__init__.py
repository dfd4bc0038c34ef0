from .pdf_reader import SourceDocument, looks_like_pdf

__all__ = ["SourceDocument", "looks_like_pdf"]
