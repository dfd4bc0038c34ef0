"""
Span-level text extraction for PDF pages.

Walks PyMuPDF's ``dict`` output and flattens it into TextRun objects
anchored in document-native (bottom-left origin) coordinates.
"""

import logging
from typing import List

import fitz

from .models import TextRun

logger = logging.getLogger(__name__)


class PageTextLayer:
    """
    Extracts and holds the text runs of a single PDF page.

    One run corresponds to one PyMuPDF span: a stretch of text sharing
    font and size.  Runs are kept in content-stream order.
    """

    def __init__(self, page: fitz.Page):
        self.page = page
        self.page_height: float = page.rect.height
        self.runs: List[TextRun] = []

        self._extract_runs()

    def _extract_runs(self):
        flags = fitz.TEXT_PRESERVE_WHITESPACE | fitz.TEXT_PRESERVE_LIGATURES

        text_dict = self.page.get_text("dict", flags=flags)

        for block_data in text_dict.get("blocks", []):
            # Skip image blocks
            if block_data.get("type") != 0:
                continue

            for line_data in block_data.get("lines", []):
                for span_data in line_data.get("spans", []):
                    run = self._span_to_run(span_data)
                    if run is not None:
                        self.runs.append(run)

        logger.debug(
            "Page %d: extracted %d text runs", self.page.number, len(self.runs)
        )

    def _span_to_run(self, span_data: dict):
        text = span_data.get("text", "")
        if not text:
            return None

        x0, y0, x1, y1 = span_data.get("bbox", (0, 0, 0, 0))
        width = x1 - x0
        height = y1 - y0

        # PyMuPDF reports top-left origin; runs are stored bottom-left
        return TextRun(
            text=text,
            x=x0,
            y=self.page_height - y1,
            width=width if width > 0 else None,
            height=height if height > 0 else None,
            font_name=span_data.get("font", ""),
            font_size=span_data.get("size", 12.0),
        )

    def __len__(self) -> int:
        return len(self.runs)
