"""
Click-to-text localisation.

Finds the decoded text run nearest to a click on the canvas and turns it
into an editable overlay text element whose original glyphs are masked
out of the page background.
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import Iterable, Optional

from core.errors import LocateError
from core.geometry import native_to_canvas, rect_center, round_half_up, scale_factor
from core.page.models import TextRun

from .config import EditorConfig
from .models import Page, TextElement
from .scheduler import RemaskScheduler
from .store import PageStore

logger = logging.getLogger(__name__)

# C0/C1 controls, soft hyphen, zero-width and bidi formatting characters, BOM
_RE_INVISIBLE = re.compile(
    "[\u0000-\u001f\u007f-\u009f\u00ad\u200b-\u200f\u202a-\u202e\u2060-\u2064\ufeff]"
)


def sanitize_text(text: str) -> str:
    """Strip control and invisible characters, then surrounding whitespace."""
    return _RE_INVISIBLE.sub("", text or "").strip()


def detected_font_size(run_height: float, fallback: int = 16) -> int:
    """``max(12, round(height * 0.8))``, or *fallback* if that comes out falsy."""
    try:
        size = max(12, round_half_up(run_height * 0.8))
    except (TypeError, ValueError):
        return fallback
    return size or fallback


@dataclass
class RunMatch:
    """The run closest to a click, with its canvas top-left and distance."""

    run: TextRun
    distance: float
    canvas_x: float
    canvas_y: float


def find_nearest_run(
    click_x: float,
    click_y: float,
    runs: Iterable[TextRun],
    page_height: float,
    scale: float,
    threshold: float = 50.0,
) -> Optional[RunMatch]:
    """
    Nearest-neighbour search over *runs* by bounding-box centre.

    Runs with blank content are ignored.  Returns ``None`` when nothing
    lies strictly closer than *threshold* canvas pixels.
    """
    best: Optional[RunMatch] = None

    for run in runs:
        if not run.has_content:
            continue

        cx, cy = native_to_canvas(run.x, run.y, run.box_height, page_height, scale)
        center_x, center_y = rect_center(
            (cx, cy, run.box_width * scale, run.box_height * scale)
        )
        distance = math.hypot(click_x - center_x, click_y - center_y)

        if best is None or distance < best.distance:
            best = RunMatch(run=run, distance=distance, canvas_x=cx, canvas_y=cy)

    if best is None or best.distance >= threshold:
        return None
    return best


def find_duplicate(
    page: Page, canvas_x: float, canvas_y: float, tolerance: float = 10.0
) -> Optional[TextElement]:
    """Existing text element whose top-left lies within *tolerance* on both axes."""
    for el in page.text_elements:
        if abs(el.x - canvas_x) < tolerance and abs(el.y - canvas_y) < tolerance:
            return el
    return None


class TextLocator:
    """
    Turns canvas clicks into overlay text elements.

    Needs the store (for the source document, the page, and the registry)
    and the scheduler (to remask the page right after a new detection).
    """

    def __init__(
        self,
        store: PageStore,
        scheduler: RemaskScheduler,
        config: Optional[EditorConfig] = None,
    ):
        self.store = store
        self.scheduler = scheduler
        self.config = config or store.config

    def build_element(self, match: RunMatch, page_height: float) -> TextElement:
        """Create (but do not store) the overlay element for a matched run."""
        cfg = self.config
        run = match.run
        return TextElement(
            content=sanitize_text(run.text),
            x=match.canvas_x,
            y=match.canvas_y,
            font_size=detected_font_size(run.box_height, cfg.default_font_size),
            font_family=cfg.default_font_family,
            bold=run.is_bold,
            italic=run.is_italic,
            align=cfg.default_align,
            highlight=False,
            text_region=run.to_region(page_height),
        )

    async def detect(
        self, page_index: int, click_x: float, click_y: float
    ) -> Optional[TextElement]:
        """
        Resolve a click on *page_index* to a text element.

        Returns the existing element if the run was already detected, a new
        element otherwise, or ``None`` if no run is close enough, the page
        was added after import, or no source document is loaded.  The
        returned element is opened for editing.

        Raises:
            LocateError: If the page's text cannot be extracted.
        """
        source = self.store.source
        if source is None:
            logger.debug("No source document; click ignored")
            return None
        if page_index >= source.total_pages:
            logger.debug("Page %d has no source text; click ignored", page_index)
            return None

        try:
            native_w, native_h = source.get_page_size(page_index)
            runs = source.text_layer(page_index).runs
        except Exception as e:
            logger.error("Error detecting text on page %d: %s", page_index, e)
            raise LocateError(f"Failed to detect text on page {page_index + 1}") from e

        scale = scale_factor(self.store.canvas_size[0], native_w)
        match = find_nearest_run(
            click_x,
            click_y,
            runs,
            native_h,
            scale,
            threshold=self.config.locate_threshold,
        )
        if match is None:
            logger.debug("No text near (%.0f, %.0f) on page %d", click_x, click_y, page_index)
            return None

        existing = find_duplicate(
            self.store.page(page_index),
            match.canvas_x,
            match.canvas_y,
            self.config.dedup_tolerance,
        )
        if existing is not None:
            logger.debug("Click resolved to existing element %s", existing.id)
            self.store.begin_edit(existing.id)
            return existing

        element = self.build_element(match, native_h)
        self.store.add_element(page_index, element)
        self.store.begin_edit(element.id)
        logger.info(
            "Detected '%s' on page %d (distance %.1fpx)",
            element.content[:40],
            page_index + 1,
            match.distance,
        )

        await self.scheduler.remask_now(page_index, self.store.regions_for(page_index))
        return element
