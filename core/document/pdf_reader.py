"""
PDF source document access for the overlay editor.

Wraps a PyMuPDF document opened from an in-memory blob, classifies open
failures into the editor's import errors, and renders pages to PIL
images at a fixed canvas width.
"""

import logging
from typing import Optional, Tuple

import fitz  # PyMuPDF
from PIL import Image

from core.errors import DecodeError, EncryptedOrProtected, NotADocument
from core.geometry import canvas_height, scale_factor
from core.page.text_layer import PageTextLayer

logger = logging.getLogger(__name__)

# The PDF header may be preceded by junk bytes; readers accept it anywhere
# in the first kilobyte.
_PDF_SIGNATURE = b"%PDF-"
_SIGNATURE_WINDOW = 1024


def looks_like_pdf(blob: bytes) -> bool:
    """Check whether *blob* carries a PDF signature near its start."""
    return bool(blob) and _PDF_SIGNATURE in blob[:_SIGNATURE_WINDOW]


class SourceDocument:
    """
    The decoded source document of an editing session.

    Kept open for the lifetime of the session so that the mask engine can
    re-render any page from its original content and the locator can read
    text runs on demand.
    """

    def __init__(self, doc: fitz.Document):
        self.doc: Optional[fitz.Document] = doc
        self.total_pages: int = doc.page_count

    @classmethod
    def from_bytes(cls, blob: bytes) -> "SourceDocument":
        """
        Open a PDF from raw bytes.

        Raises:
            NotADocument:         The blob is empty or has no PDF signature.
            DecodeError:          PyMuPDF cannot parse it, or it has no pages.
            EncryptedOrProtected: The document needs a password.
        """
        if not looks_like_pdf(blob):
            raise NotADocument("Input is not a PDF document")

        try:
            doc = fitz.open(stream=blob, filetype="pdf")
        except Exception as e:
            raise DecodeError(f"Failed to decode PDF: {e}") from e

        if doc.needs_pass:
            doc.close()
            raise EncryptedOrProtected("PDF is password-protected")

        if doc.page_count == 0:
            doc.close()
            raise DecodeError("PDF contains no pages")

        logger.debug("Opened PDF: %d pages", doc.page_count)
        return cls(doc)

    def get_page(self, page_index: int) -> fitz.Page:
        """
        Load a page.

        Raises:
            IndexError:   If *page_index* is out of range or the document is closed.
        """
        if not self.doc or page_index < 0 or page_index >= self.total_pages:
            raise IndexError(
                f"Page index {page_index} out of range "
                f"(document has {self.total_pages} pages)"
            )
        return self.doc.load_page(page_index)

    def get_page_size(self, page_index: int) -> Tuple[float, float]:
        """(width, height) of a page in points."""
        rect = self.get_page(page_index).rect
        return rect.width, rect.height

    def render_at_width(self, page_index: int, canvas_width: int) -> Image.Image:
        """
        Render a page to an RGB image exactly ``canvas_width`` pixels wide.

        The height follows the page's aspect ratio, rounded.  PyMuPDF may
        round the pixmap one pixel differently, so the raster is pasted onto
        a white canvas of the exact target size.
        """
        page = self.get_page(page_index)
        rect = page.rect
        scale = scale_factor(canvas_width, rect.width)
        target = (canvas_width, canvas_height(rect.width, rect.height, canvas_width))

        mat = fitz.Matrix(scale, scale)
        pix = page.get_pixmap(matrix=mat, alpha=False)
        img = Image.frombytes("RGB", [pix.width, pix.height], pix.samples)

        if img.size != target:
            canvas = Image.new("RGB", target, "white")
            canvas.paste(img, (0, 0))
            img = canvas
        return img

    def text_layer(self, page_index: int) -> PageTextLayer:
        """Return the text runs of *page_index*."""
        return PageTextLayer(self.get_page(page_index))

    def close(self) -> None:
        """Close the underlying PyMuPDF document."""
        if self.doc:
            self.doc.close()
            self.doc = None
        self.total_pages = 0

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __repr__(self) -> str:
        return f"SourceDocument(pages={self.total_pages})"
