"""Shared fixtures: in-memory PDFs built with PyMuPDF."""

import asyncio
import io
from typing import Iterable, Optional, Sequence, Tuple

import fitz
import numpy as np
import pytest
from PIL import Image

from core.imaging import data_uri_to_image
from editor import EditorConfig, PageStore
from editor.importer import DocumentImporter

A4 = (595, 842)

# (baseline x, baseline y, text, fontsize) in PDF points, top-left origin
TextSpec = Tuple[float, float, str, float]
# (x0, y0, x1, y1) black filled rectangles
RectSpec = Tuple[float, float, float, float]


def build_pdf(
    pages: int = 1,
    size: Tuple[float, float] = A4,
    texts: Sequence[TextSpec] = (),
    rects: Sequence[RectSpec] = (),
    fontname: str = "helv",
    password: Optional[str] = None,
) -> bytes:
    """Create a PDF in memory; every page gets the same texts and rects."""
    doc = fitz.open()
    for _ in range(pages):
        page = doc.new_page(width=size[0], height=size[1])
        for rect in rects:
            page.draw_rect(fitz.Rect(*rect), color=(0, 0, 0), fill=(0, 0, 0))
        for x, y, text, fontsize in texts:
            page.insert_text((x, y), text, fontsize=fontsize, fontname=fontname)

    if password:
        data = doc.tobytes(
            encryption=fitz.PDF_ENCRYPT_AES_256,
            user_pw=password,
            owner_pw=password + "-owner",
        )
    else:
        data = doc.tobytes()
    doc.close()
    return data


def solid_png(color, size=(40, 30)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


def pixels(uri: str) -> np.ndarray:
    """Decode a data URI into an RGB pixel array."""
    return np.asarray(data_uri_to_image(uri).convert("RGB"))


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def config():
    return EditorConfig(disable_tqdm=True, debounce_seconds=0.05)


@pytest.fixture
def store(config):
    return PageStore(config)


@pytest.fixture
def boxed_pdf():
    """One A4 page with a solid black box at (100, 100)-(300, 200)."""
    return build_pdf(rects=[(100, 100, 300, 200)])


@pytest.fixture
def text_pdf():
    """One A4 page with two lines of Helvetica text."""
    return build_pdf(
        texts=[
            (72, 100, "Hello World", 12),
            (72, 400, "Second line of text", 12),
        ]
    )


@pytest.fixture
def loaded_store(store, boxed_pdf):
    """A store holding an imported one-page document."""
    run(DocumentImporter(store).import_bytes(boxed_pdf))
    return store


def region_pixels(arr: np.ndarray, box: Iterable[int]) -> np.ndarray:
    x0, y0, x1, y1 = box
    return arr[y0:y1, x0:x1]
