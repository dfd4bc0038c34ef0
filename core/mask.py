"""
Region mask engine: re-rasterize a page and occlude original text.

Every call renders the page afresh from the source document and paints
opaque rectangles over the requested regions.  Nothing is cached or
layered on a previous result, so repeated calls with overlapping or
growing region sets never accumulate artefacts and the same input always
yields the same pixels.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from PIL import Image, ImageDraw

from core.geometry import scale_factor
from core.imaging import image_to_data_uri
from core.page.models import TextRegion

logger = logging.getLogger(__name__)

MASK_FILL = "white"
DEFAULT_PADDING = 2.0


@dataclass
class MaskResult:
    """A freshly masked background raster and its pixel dimensions."""

    image: Image.Image
    width: int
    height: int

    def to_data_uri(self) -> str:
        return image_to_data_uri(self.image)


def paint_regions(
    image: Image.Image,
    regions: Iterable[TextRegion],
    scale: float,
    padding: float = DEFAULT_PADDING,
    fill=MASK_FILL,
) -> Image.Image:
    """Fill each region's padded canvas rectangle on *image* in place."""
    draw = ImageDraw.Draw(image)
    for region in regions:
        x, y, w, h = region.to_canvas_rect(scale, padding)
        if w <= 0 or h <= 0:
            continue
        # PIL rectangles are inclusive of the far edge
        draw.rectangle((x, y, x + w - 1, y + h - 1), fill=fill)
    return image


class RegionMaskEngine:
    """
    Produces masked background rasters for the pages of a store.

    The engine only reads ``store.source`` (the decoded source document)
    and ``store.canvas_size``; it never mutates the store.  Applying the
    result to the page's background element is the scheduler's job.
    """

    def __init__(self, store, padding: float = DEFAULT_PADDING):
        self.store = store
        self.padding = padding

    async def mask(
        self, page_index: int, regions: Iterable[TextRegion]
    ) -> Optional[MaskResult]:
        """
        Re-render *page_index* at the stored canvas width and paint over
        *regions*.

        Returns:
            :class:`MaskResult`, or ``None`` if there is no source document
            or rendering fails.  Failures are logged, never raised.
        """
        regions = list(regions)
        source = self.store.source
        if source is None:
            logger.debug("No source document; skipping mask of page %d", page_index)
            return None

        # Yield once so a burst of edits can settle before the render
        await asyncio.sleep(0)

        canvas_width = self.store.canvas_size[0]
        try:
            native_w, _ = source.get_page_size(page_index)
            scale = scale_factor(canvas_width, native_w)
            img = source.render_at_width(page_index, canvas_width)
            paint_regions(img, regions, scale, self.padding)
        except Exception as e:
            logger.error("Error updating background of page %d: %s", page_index, e)
            return None

        logger.debug(
            "Masked page %d: %d regions, %dx%d",
            page_index,
            len(regions),
            img.width,
            img.height,
        )
        return MaskResult(image=img, width=img.width, height=img.height)
