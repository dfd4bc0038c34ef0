"""
Core backend for the PDF overlay editor.
Source document access, coordinate transforms, text runs, and masking.
No editor state lives here.
"""

from .document import SourceDocument
from .mask import MaskResult, RegionMaskEngine
from .page import PageTextLayer, TextRegion, TextRun

__all__ = [
    "SourceDocument",
    "MaskResult",
    "RegionMaskEngine",
    "PageTextLayer",
    "TextRegion",
    "TextRun",
]
