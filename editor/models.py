"""
Data models for editor pages and their elements.

An element is either a TextElement or an ImageElement.  Every consumer
dispatches on the concrete class and raises ``TypeError`` on anything
else, so a new variant cannot slip through a code path unnoticed.
Coordinates are canvas pixels, origin top-left.
"""

from dataclasses import dataclass, field, fields
from typing import Dict, List, Optional, Union
from uuid import uuid4

from core.page.models import TextRegion

PLACEHOLDER_TEXT = "Enter your text here..."


def new_element_id() -> str:
    return uuid4().hex


@dataclass
class TextElement:
    """An overlay text box, either added manually or created by detection."""

    content: str
    x: float
    y: float
    font_size: int = 16
    font_family: str = "Arial"
    bold: bool = False
    italic: bool = False
    align: str = "left"  # "left" | "center" | "right"
    highlight: bool = False

    # Set only for elements created by detection; drives masking
    text_region: Optional[TextRegion] = None

    id: str = field(default_factory=new_element_id)

    @property
    def is_background(self) -> bool:
        return False

    @property
    def is_detected(self) -> bool:
        return self.text_region is not None

    def __repr__(self) -> str:
        preview = self.content[:30].replace("\n", " ")
        tag = " [detected]" if self.is_detected else ""
        return f"TextElement('{preview}', x={self.x:.0f}, y={self.y:.0f}{tag})"


@dataclass
class ImageElement:
    """
    A raster placed on the page.

    ``src`` is an inline ``data:`` URI, or ``None`` for a placeholder that
    has not been filled yet.  The page background is an ImageElement with
    ``is_background`` set.
    """

    x: float
    y: float
    width: float
    height: float
    src: Optional[str] = None
    is_background: bool = False

    id: str = field(default_factory=new_element_id)

    def __repr__(self) -> str:
        kind = "background" if self.is_background else "image"
        filled = "filled" if self.src else "empty"
        return (
            f"ImageElement({kind}, {self.width:.0f}x{self.height:.0f} "
            f"at ({self.x:.0f},{self.y:.0f}), {filled})"
        )


Element = Union[TextElement, ImageElement]

# Fields a caller may patch, per variant
PATCHABLE_FIELDS: Dict[type, frozenset] = {
    cls: frozenset(f.name for f in fields(cls) if f.name not in ("id", "is_background"))
    for cls in (TextElement, ImageElement)
}

# Background rasters may only have their pixels swapped by a remask
BACKGROUND_LOCKED_FIELDS = frozenset({"x", "y", "width", "height", "src"})


@dataclass
class Page:
    """Ordered elements of one page; later elements draw on top."""

    elements: List[Element] = field(default_factory=list)

    @property
    def background(self) -> Optional[ImageElement]:
        for el in self.elements:
            if isinstance(el, ImageElement) and el.is_background:
                return el
        return None

    @property
    def text_elements(self) -> List[TextElement]:
        return [el for el in self.elements if isinstance(el, TextElement)]

    def find(self, element_id: str) -> Optional[Element]:
        for el in self.elements:
            if el.id == element_id:
                return el
        return None

    def __len__(self) -> int:
        return len(self.elements)


@dataclass
class EditSession:
    """The text element currently open for editing and its pending content."""

    element_id: str
    content: str
