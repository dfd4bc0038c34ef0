"""
Page compositor: draws a page's elements into a single raster.

This is the visual surface the export composer snapshots.  Elements are
painted in list order (background first, overlays on top):

* the background raster, stretched to its element box;
* image elements, fitted "contain" and centred inside their box;
* text elements, with font family, weight, slant, alignment, and an
  optional highlight fill behind the text.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Tuple

from PIL import Image, ImageDraw, ImageFont

from core.imaging import data_uri_to_image

from .config import EditorConfig
from .models import Element, ImageElement, Page, TextElement
from .store import PageStore

logger = logging.getLogger(__name__)

PLACEHOLDER_FILL = "#f3f4f6"
TEXT_COLOR = "black"

# family -> (regular, bold, italic, bold italic) candidate font files.
# Pillow searches the platform font directories for bare file names.
_FONT_FILES: Dict[str, Tuple[List[str], List[str], List[str], List[str]]] = {
    "arial": (
        ["arial.ttf", "Arial.ttf", "LiberationSans-Regular.ttf", "DejaVuSans.ttf"],
        ["arialbd.ttf", "Arial Bold.ttf", "LiberationSans-Bold.ttf", "DejaVuSans-Bold.ttf"],
        ["ariali.ttf", "Arial Italic.ttf", "LiberationSans-Italic.ttf", "DejaVuSans-Oblique.ttf"],
        ["arialbi.ttf", "Arial Bold Italic.ttf", "LiberationSans-BoldItalic.ttf", "DejaVuSans-BoldOblique.ttf"],
    ),
    "times new roman": (
        ["times.ttf", "Times New Roman.ttf", "LiberationSerif-Regular.ttf", "DejaVuSerif.ttf"],
        ["timesbd.ttf", "Times New Roman Bold.ttf", "LiberationSerif-Bold.ttf", "DejaVuSerif-Bold.ttf"],
        ["timesi.ttf", "Times New Roman Italic.ttf", "LiberationSerif-Italic.ttf", "DejaVuSerif-Italic.ttf"],
        ["timesbi.ttf", "Times New Roman Bold Italic.ttf", "LiberationSerif-BoldItalic.ttf", "DejaVuSerif-BoldItalic.ttf"],
    ),
    "courier new": (
        ["cour.ttf", "Courier New.ttf", "LiberationMono-Regular.ttf", "DejaVuSansMono.ttf"],
        ["courbd.ttf", "Courier New Bold.ttf", "LiberationMono-Bold.ttf", "DejaVuSansMono-Bold.ttf"],
        ["couri.ttf", "Courier New Italic.ttf", "LiberationMono-Italic.ttf", "DejaVuSansMono-Oblique.ttf"],
        ["courbi.ttf", "Courier New Bold Italic.ttf", "LiberationMono-BoldItalic.ttf", "DejaVuSansMono-BoldOblique.ttf"],
    ),
}


class FontCache:
    """Resolves (family, size, bold, italic) to a Pillow font, memoised."""

    def __init__(self):
        self._cache: Dict[Tuple[str, int, bool, bool], ImageFont.ImageFont] = {}

    def get(self, family: str, size: int, bold: bool, italic: bool):
        key = (family.lower(), size, bold, italic)
        if key in self._cache:
            return self._cache[key]

        variants = _FONT_FILES.get(key[0], _FONT_FILES["arial"])
        candidates = variants[(2 if italic else 0) + (1 if bold else 0)]
        # Fall back to the regular face before giving up on the family
        candidates = candidates + variants[0]

        font = None
        for name in candidates:
            try:
                font = ImageFont.truetype(name, size)
                break
            except OSError:
                continue

        if font is None:
            logger.debug("No TrueType font for %s; using Pillow default", family)
            font = ImageFont.load_default(size=size)

        self._cache[key] = font
        return font


class PageCompositor:
    """
    Composes the pages of a store into rasters.

    Also acts as the export surface: :meth:`settled` is the completion
    signal the export composer waits on after switching the active page,
    and :meth:`snapshot` captures the composed page.
    """

    def __init__(self, store: PageStore, config: Optional[EditorConfig] = None):
        self.store = store
        self.config = config or store.config
        self.fonts = FontCache()

    # ------------------------------------------------------------------
    # Export surface
    # ------------------------------------------------------------------

    async def settled(self, timeout: float) -> bool:
        """
        Wait until the surface reflects the store's active page.

        Composition reads the store directly, so the surface is current as
        soon as control returns to the loop.
        """
        await asyncio.sleep(0)
        return True

    async def snapshot(self, page_index: int) -> Image.Image:
        """Compose *page_index* at the configured snapshot scale."""
        return self.render(self.store.page(page_index), scale=self.config.snapshot_scale)

    # ------------------------------------------------------------------
    # Composition
    # ------------------------------------------------------------------

    def render(self, page: Page, scale: float = 1.0) -> Image.Image:
        """Draw every element of *page* onto a white canvas."""
        width, height = self.store.canvas_size
        canvas = Image.new(
            "RGB", (max(1, round(width * scale)), max(1, round(height * scale))), "white"
        )

        for element in page.elements:
            try:
                self._draw_element(canvas, element, scale)
            except Exception as e:
                logger.warning("Skipping element %r while compositing: %s", element, e)

        return canvas

    def _draw_element(self, canvas: Image.Image, element: Element, scale: float) -> None:
        if isinstance(element, ImageElement):
            self._draw_image(canvas, element, scale)
        elif isinstance(element, TextElement):
            self._draw_text(canvas, element, scale)
        else:
            raise TypeError(f"Unknown element type: {type(element).__name__}")

    def _draw_image(self, canvas: Image.Image, element: ImageElement, scale: float) -> None:
        box_w = max(1, round(element.width * scale))
        box_h = max(1, round(element.height * scale))
        left = round(element.x * scale)
        top = round(element.y * scale)

        if not element.src:
            if not element.is_background:
                ImageDraw.Draw(canvas).rectangle(
                    (left, top, left + box_w - 1, top + box_h - 1), fill=PLACEHOLDER_FILL
                )
            return

        img = data_uri_to_image(element.src).convert("RGBA")

        if element.is_background:
            fitted = img.resize((box_w, box_h), Image.LANCZOS) if img.size != (box_w, box_h) else img
            offset = (left, top)
        else:
            ratio = min(box_w / img.width, box_h / img.height)
            fitted = img.resize(
                (max(1, round(img.width * ratio)), max(1, round(img.height * ratio))),
                Image.LANCZOS,
            )
            offset = (
                left + (box_w - fitted.width) // 2,
                top + (box_h - fitted.height) // 2,
            )

        canvas.paste(fitted, offset, fitted)

    def _draw_text(self, canvas: Image.Image, element: TextElement, scale: float) -> None:
        if not element.content:
            return

        size = max(1, round((element.font_size or self.config.default_font_size) * scale))
        font = self.fonts.get(
            element.font_family or self.config.default_font_family,
            size,
            element.bold,
            element.italic,
        )
        align = element.align if element.align in ("left", "center", "right") else "left"
        origin = (element.x * scale, element.y * scale)

        draw = ImageDraw.Draw(canvas)
        if element.highlight:
            bbox = draw.multiline_textbbox(origin, element.content, font=font, align=align)
            draw.rectangle(bbox, fill=self.config.highlight_color)

        draw.multiline_text(origin, element.content, font=font, fill=TEXT_COLOR, align=align)

    def __repr__(self) -> str:
        w, h = self.store.canvas_size
        return f"PageCompositor(canvas={w}x{h}, scale={self.config.snapshot_scale})"
