"""Unit tests for click-to-text localisation."""

import pytest
from conftest import run

from core.document import SourceDocument
from core.errors import LocateError
from core.geometry import native_to_canvas
from core.mask import RegionMaskEngine
from core.page.models import TextRun
from editor.importer import DocumentImporter
from editor.locator import (
    TextLocator,
    detected_font_size,
    find_duplicate,
    find_nearest_run,
    sanitize_text,
)
from editor.models import Page, TextElement
from editor.scheduler import RemaskScheduler

PAGE_H = 842.0


def run_centered_at(cx, cy, text="word", w=20.0, h=10.0, font="Helvetica"):
    """Build a run whose canvas bbox (scale 1) is centred on (cx, cy)."""
    top = cy - h / 2
    return TextRun(
        text=text, x=cx - w / 2, y=PAGE_H - top - h, width=w, height=h, font_name=font
    )


class TestFindNearestRun:
    @pytest.fixture
    def runs(self):
        return [run_centered_at(50, 50, "first"), run_centered_at(200, 200, "second")]

    def test_selects_closest_run(self, runs):
        match = find_nearest_run(55, 52, runs, PAGE_H, 1.0)
        assert match is not None
        assert match.run.text == "first"
        assert match.distance == pytest.approx(5.385, abs=1e-3)
        assert (match.canvas_x, match.canvas_y) == (40, 45)

    def test_far_click_selects_nothing(self, runs):
        assert find_nearest_run(500, 500, runs, PAGE_H, 1.0) is None

    def test_threshold_is_strict(self):
        runs = [run_centered_at(100, 100)]
        assert find_nearest_run(150, 100, runs, PAGE_H, 1.0) is None
        assert find_nearest_run(149, 100, runs, PAGE_H, 1.0) is not None

    def test_blank_runs_are_ignored(self):
        runs = [run_centered_at(50, 50, "   "), run_centered_at(80, 50, "text")]
        match = find_nearest_run(50, 50, runs, PAGE_H, 1.0)
        assert match.run.text == "text"

    def test_missing_size_uses_defaults(self):
        # width 100, height 16 -> centre 50, 8 below the top-left
        r = TextRun(text="x", x=0, y=PAGE_H - 16)
        match = find_nearest_run(50, 8, [r], PAGE_H, 1.0)
        assert match.distance == pytest.approx(0)

    def test_scale_applies_to_center(self):
        r = run_centered_at(100, 100)
        # Native box (90, 787, 20x10) on an 842pt page at scale 0.5
        match = find_nearest_run(50, 50, [r], PAGE_H, 0.5)
        assert (match.canvas_x, match.canvas_y) == (45, 22.5)
        assert match.distance == pytest.approx(25)


class TestHelpers:
    def test_sanitize_strips_controls_and_invisibles(self):
        assert sanitize_text("  Hel\u0000lo\u200b\u0085 \t") == "Hello"

    def test_sanitize_keeps_regular_unicode(self):
        assert sanitize_text("Café – naïve") == "Café – naïve"

    def test_font_size_from_height(self):
        assert detected_font_size(20) == 16
        assert detected_font_size(30) == 24
        assert detected_font_size(5) == 12

    def test_font_size_fallback(self):
        assert detected_font_size(None) == 16

    def test_bold_italic_from_font_name(self):
        r = TextRun(text="x", x=0, y=0, font_name="Helvetica-BoldItalic")
        assert r.is_bold and r.is_italic
        assert not TextRun(text="x", x=0, y=0, font_name="Helvetica").is_bold

    def test_duplicate_within_tolerance(self):
        page = Page()
        existing = TextElement(content="a", x=50, y=50)
        page.elements.append(existing)
        assert find_duplicate(page, 55, 53) is existing
        assert find_duplicate(page, 61, 50) is None


class TestTextLocator:
    @pytest.fixture
    def wired(self, store, config, text_pdf):
        run(DocumentImporter(store).import_bytes(text_pdf))
        engine = RegionMaskEngine(store, padding=config.mask_padding)
        scheduler = RemaskScheduler(store, engine, delay=config.debounce_seconds)
        store.set_remask_hook(scheduler.schedule)
        return store, TextLocator(store, scheduler, config)

    @staticmethod
    def click_for(store, text):
        """Canvas centre of the first run containing *text*."""
        layer = store.source.text_layer(0)
        r = next(r for r in layer.runs if text in r.text)
        cx, cy = native_to_canvas(r.x, r.y, r.box_height, layer.page_height, 1.0)
        return cx + r.box_width / 2, cy + r.box_height / 2

    def test_detect_creates_element_and_region(self, wired):
        store, locator = wired
        bg_before = store.background_of(0).src
        x, y = self.click_for(store, "Hello")

        element = run(locator.detect(0, x, y))

        assert isinstance(element, TextElement)
        assert element.content == "Hello World"
        assert element.font_family == "Arial"
        assert element.text_region is not None
        assert store.regions_for(0) == [element.text_region]
        assert store.editing.element_id == element.id
        # Immediate remask replaced the background raster
        assert store.background_of(0).src != bg_before

    def test_repeated_click_reuses_element(self, wired):
        store, locator = wired
        x, y = self.click_for(store, "Hello")

        first = run(locator.detect(0, x, y))
        second = run(locator.detect(0, x + 3, y + 1))

        assert first is second
        assert len(store.page(0).text_elements) == 1

    def test_click_far_from_text_is_noop(self, wired):
        store, locator = wired
        assert run(locator.detect(0, 500, 800)) is None
        assert store.page(0).text_elements == []

    def test_page_added_after_import_is_noop(self, wired):
        store, locator = wired
        idx = store.add_page()
        assert run(locator.detect(idx, 100, 100)) is None
        assert store.page(idx).text_elements == []

    def test_no_source_is_noop(self, store, config):
        engine = RegionMaskEngine(store)
        locator = TextLocator(store, RemaskScheduler(store, engine), config)
        assert run(locator.detect(0, 10, 10)) is None

    def test_extraction_failure_raises(self, wired, monkeypatch):
        store, locator = wired

        def boom(self, page_index):
            raise RuntimeError("broken content stream")

        monkeypatch.setattr(SourceDocument, "text_layer", boom)
        with pytest.raises(LocateError):
            run(locator.detect(0, 100, 100))
