"""Unit tests for page composition."""

import numpy as np
from conftest import run, solid_png

from core.imaging import blob_to_data_uri
from editor import ImageElement, Page, TextElement
from editor.compositor import FontCache, PageCompositor

WHITE = (255, 255, 255)
RED = (255, 0, 0)
PLACEHOLDER_GREY = (243, 244, 246)
HIGHLIGHT = (255, 255, 153)


def render(store, *elements):
    page = Page(elements=list(elements))
    return np.asarray(PageCompositor(store).render(page))


class TestImages:
    def test_placeholder_is_grey(self, store):
        arr = render(store, ImageElement(x=100, y=100, width=200, height=150))
        assert tuple(arr[150, 150]) == PLACEHOLDER_GREY
        assert tuple(arr[50, 50]) == WHITE

    def test_image_is_contained_and_centred(self, store):
        src, size = blob_to_data_uri(solid_png(RED, (40, 30)))
        assert size == (40, 30)
        arr = render(store, ImageElement(x=0, y=0, width=200, height=50, src=src))

        # 40x30 scaled to fit 200x50 -> 67x50, centred horizontally
        assert np.allclose(arr[25, 100], RED, atol=2)
        assert tuple(arr[25, 10]) == WHITE
        assert tuple(arr[25, 190]) == WHITE

    def test_background_fills_its_box(self, loaded_store):
        arr = np.asarray(PageCompositor(loaded_store).render(loaded_store.page(0)))
        assert arr.shape == (842, 595, 3)
        assert tuple(arr[150, 200]) == (0, 0, 0)


class TestText:
    def test_text_is_drawn(self, store):
        arr = render(store, TextElement(content="Hello", x=50, y=50, font_size=24))
        assert (arr[40:100, 40:200] < 128).any()

    def test_highlight_fill_behind_text(self, store):
        arr = render(
            store, TextElement(content="Hello", x=50, y=50, font_size=24, highlight=True)
        )
        assert (arr == HIGHLIGHT).all(axis=-1).any()

    def test_empty_content_draws_nothing(self, store):
        arr = render(store, TextElement(content="", x=50, y=50, highlight=True))
        assert (arr == 255).all()

    def test_scale_enlarges_canvas(self, store):
        img = PageCompositor(store).render(Page(), scale=2.0)
        assert img.size == (1190, 1684)


class TestRobustness:
    def test_unknown_element_is_skipped(self, store):
        arr = render(store, object(), ImageElement(x=100, y=100, width=20, height=20))
        assert tuple(arr[110, 110]) == PLACEHOLDER_GREY

    def test_undecodable_image_is_skipped(self, store):
        arr = render(
            store,
            ImageElement(x=0, y=0, width=20, height=20, src="data:image/png;base64,AAAA"),
        )
        assert (arr == 255).all()

    def test_snapshot_uses_configured_scale(self, store, config):
        config.snapshot_scale = 0.5
        img = run(PageCompositor(store, config).snapshot(0))
        assert img.size == (298, 421)

    def test_font_cache_memoises(self):
        fonts = FontCache()
        first = fonts.get("Arial", 16, True, False)
        assert fonts.get("arial", 16, True, False) is first
        assert fonts.get("Unknown Family", 12, False, False) is not None
