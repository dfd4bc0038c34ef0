"""Unit tests for the native <-> canvas coordinate transform."""

import pytest

from core.geometry import (
    canvas_height,
    flip_y,
    native_to_canvas,
    rect_center,
    region_to_canvas_rect,
    round_half_up,
    scale_factor,
)
from core.page.models import TextRegion, TextRun


class TestNativeToCanvas:
    def test_vertical_flip_and_scale(self):
        assert native_to_canvas(100, 50, 20, page_height=800, scale=0.5) == (50, 365)

    def test_identity_scale_flips_only(self):
        assert native_to_canvas(10, 0, 10, page_height=100, scale=1.0) == (10, 90)

    def test_flip_y(self):
        assert flip_y(50, 20, 800) == 730


class TestScale:
    def test_scale_factor(self):
        assert scale_factor(595, 1190) == 0.5

    def test_scale_factor_rejects_zero_width(self):
        with pytest.raises(ValueError):
            scale_factor(595, 0)

    def test_canvas_height_letter(self):
        # 792 * 595 / 612 = 770.0
        assert canvas_height(612, 792, 595) == 770

    def test_canvas_height_a4_unscaled(self):
        assert canvas_height(595, 842, 595) == 842

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4
        assert round_half_up(2.49) == 2


class TestRegions:
    def test_padding_is_in_canvas_pixels(self):
        rect = region_to_canvas_rect(10, 10, 50, 20, scale=2.0, padding=2)
        assert rect == (18, 18, 104, 44)

    def test_text_region_uses_same_transform(self):
        region = TextRegion(x=10, y=10, width=50, height=20)
        assert region.to_canvas_rect(2.0, 2) == (18, 18, 104, 44)

    def test_run_region_is_flipped(self):
        run = TextRun(text="abc", x=100, y=50, width=40, height=20)
        region = run.to_region(page_height=800)
        assert (region.x, region.y, region.width, region.height) == (100, 730, 40, 20)
        # Scaling the flipped region lands where the run's canvas box starts
        assert region.to_canvas_rect(0.5)[:2] == native_to_canvas(100, 50, 20, 800, 0.5)

    def test_rect_center(self):
        assert rect_center((40, 45, 20, 10)) == (50, 50)
