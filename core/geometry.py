"""
Coordinate conversion between document-native and canvas pixel space.

Document-native coordinates are PDF points with the origin at the
bottom-left of the page.  Canvas pixel space has the origin at the
top-left and is scaled so the page width matches the fixed canvas
width.  Both the text locator and the mask engine go through these
helpers so they always agree on where a run sits on the canvas.
"""

import math
from typing import Tuple

Rect = Tuple[float, float, float, float]  # x, y, width, height


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up, unlike ``round()``."""
    return int(math.floor(value + 0.5))


def scale_factor(canvas_width: float, native_width: float) -> float:
    """Canvas pixels per native point."""
    if native_width <= 0:
        raise ValueError(f"Native page width must be positive, got {native_width}")
    return canvas_width / native_width


def canvas_height(native_width: float, native_height: float, canvas_width: float) -> int:
    """Canvas height for a page rendered at *canvas_width*, rounded to whole pixels."""
    return round_half_up(native_height * scale_factor(canvas_width, native_width))


def flip_y(y: float, height: float, page_height: float) -> float:
    """
    Convert a bottom-left-origin y of a box with *height* into the
    top-left-origin y of the same box (still in native units).
    """
    return page_height - y - height


def native_to_canvas(
    x: float, y: float, height: float, page_height: float, scale: float
) -> Tuple[float, float]:
    """
    Map the bottom-left anchored box at ``(x, y)`` with *height* to its
    canvas top-left corner.

    Example: ``scale=0.5``, ``page_height=800``, run at ``(100, 50)`` of
    height 20 maps to ``(50, 365)``.
    """
    return x * scale, flip_y(y, height, page_height) * scale


def region_to_canvas_rect(
    x: float, y: float, width: float, height: float, scale: float, padding: float = 0.0
) -> Rect:
    """
    Scale a top-left anchored native rectangle into canvas pixels and grow
    it by *padding* canvas pixels on every side.
    """
    return (
        x * scale - padding,
        y * scale - padding,
        width * scale + 2 * padding,
        height * scale + 2 * padding,
    )


def rect_center(rect: Rect) -> Tuple[float, float]:
    x, y, w, h = rect
    return x + w / 2, y + h / 2
