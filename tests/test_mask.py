"""Unit tests for the region mask engine."""

import numpy as np
from PIL import Image
from conftest import region_pixels, run

from core.mask import RegionMaskEngine, paint_regions
from core.page.models import TextRegion

WHITE = (255, 255, 255)


def as_array(result):
    return np.asarray(result.image.convert("RGB"))


class TestRegionMaskEngine:
    def test_same_input_same_pixels(self, loaded_store):
        engine = RegionMaskEngine(loaded_store)
        regions = [TextRegion(10, 10, 50, 20)]

        first = run(engine.mask(0, regions))
        second = run(engine.mask(0, regions))

        assert (first.width, first.height) == (595, 842)
        assert np.array_equal(as_array(first), as_array(second))

    def test_region_is_painted_white(self, loaded_store):
        engine = RegionMaskEngine(loaded_store)
        # Inside the black box drawn at (100, 100)-(300, 200)
        result = run(engine.mask(0, [TextRegion(150, 120, 50, 40)]))
        arr = as_array(result)

        # Padded by 2 canvas px on each side
        assert (region_pixels(arr, (148, 118, 202, 162)) == 255).all()
        assert tuple(arr[110, 120]) == (0, 0, 0)
        assert tuple(arr[165, 150]) == (0, 0, 0)

    def test_no_accumulation_between_calls(self, loaded_store):
        engine = RegionMaskEngine(loaded_store)
        run(engine.mask(0, [TextRegion(150, 120, 50, 40)]))

        result = run(engine.mask(0, [TextRegion(250, 120, 20, 20)]))
        arr = as_array(result)

        # The earlier region is back to the original black pixels
        assert tuple(arr[140, 175]) == (0, 0, 0)
        assert tuple(arr[130, 260]) == WHITE

    def test_empty_regions_is_plain_render(self, loaded_store):
        result = run(RegionMaskEngine(loaded_store).mask(0, []))
        arr = as_array(result)
        assert tuple(arr[150, 200]) == (0, 0, 0)
        assert tuple(arr[50, 50]) == WHITE

    def test_no_source_returns_none(self, store):
        assert run(RegionMaskEngine(store).mask(0, [TextRegion(0, 0, 5, 5)])) is None

    def test_render_failure_returns_none(self, loaded_store):
        assert run(RegionMaskEngine(loaded_store).mask(7, [])) is None

    def test_does_not_touch_store(self, loaded_store):
        bg = loaded_store.background_of(0)
        before = bg.src
        run(RegionMaskEngine(loaded_store).mask(0, [TextRegion(150, 120, 50, 40)]))
        assert bg.src == before


def test_paint_regions_scales_before_padding():
    img = Image.new("RGB", (100, 100), "black")
    paint_regions(img, [TextRegion(10, 10, 10, 10)], scale=2.0, padding=2)
    arr = np.asarray(img)

    assert (arr[18:42, 18:42] == 255).all()
    assert tuple(arr[17, 30]) == (0, 0, 0)
    assert tuple(arr[42, 30]) == (0, 0, 0)
