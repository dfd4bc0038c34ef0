"""
Page text extraction for PDF documents.
Text runs and mask regions only.
"""

from .models import TextRegion, TextRun
from .text_layer import PageTextLayer

__all__ = [
    "PageTextLayer",
    "TextRegion",
    "TextRun",
]
