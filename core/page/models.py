"""
Text run and text region data models for PDF pages.

A TextRun is what the locator searches; a TextRegion is what the mask
engine paints over.  Neither holds any reference to the open document.
"""

from dataclasses import dataclass
from typing import Optional

from core.geometry import Rect, flip_y, region_to_canvas_rect

# Fallbacks for runs the extractor reports without a usable size
DEFAULT_RUN_WIDTH = 100.0
DEFAULT_RUN_HEIGHT = 16.0


@dataclass
class TextRun:
    """
    A decoded span of glyphs with position, size, and font metadata.

    ``x`` / ``y`` are the bottom-left corner of the run in document-native
    coordinates (origin bottom-left, PDF points).
    """

    text: str
    x: float
    y: float
    width: Optional[float] = None
    height: Optional[float] = None
    font_name: str = ""
    font_size: float = 12.0

    @property
    def box_width(self) -> float:
        return self.width or DEFAULT_RUN_WIDTH

    @property
    def box_height(self) -> float:
        return self.height or DEFAULT_RUN_HEIGHT

    @property
    def is_bold(self) -> bool:
        """Bold is inferred from the font name, e.g. ``Helvetica-Bold``."""
        return "Bold" in (self.font_name or "")

    @property
    def is_italic(self) -> bool:
        return "Italic" in (self.font_name or "")

    @property
    def has_content(self) -> bool:
        return bool(self.text and self.text.strip())

    def to_region(self, page_height: float) -> "TextRegion":
        """Native bounding box of this run, flipped to a top-left origin."""
        return TextRegion(
            x=self.x,
            y=flip_y(self.y, self.box_height, page_height),
            width=self.box_width,
            height=self.box_height,
        )

    def __repr__(self) -> str:
        preview = self.text[:30].replace("\n", " ")
        return (
            f"TextRun('{preview}', x={self.x:.1f}, y={self.y:.1f}, "
            f"h={self.box_height:.1f}, font={self.font_name!r})"
        )


@dataclass
class TextRegion:
    """
    Rectangle in document-native units used only for masking.

    The y axis has already been flipped (top-left origin), so converting to
    mask-paint coordinates only needs the page's scale factor.
    """

    x: float
    y: float
    width: float
    height: float

    def to_canvas_rect(self, scale: float, padding: float = 0.0) -> Rect:
        return region_to_canvas_rect(
            self.x, self.y, self.width, self.height, scale, padding
        )
