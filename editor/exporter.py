"""
Export composer: snapshot every page in order and assemble a PDF.

Pages are processed strictly one at a time: the page is made active,
the surface is given a bounded wait to signal it has caught up, the
composed page is captured, and the capture is appended to the output
document as a page of canvas size.  Only one page raster is alive at any
moment.

A snapshot failure skips that page; anything that goes wrong before the
first page is processed aborts the export without touching the editing
state.  The active page and edit session are restored either way.
"""

import asyncio
import logging
from pathlib import Path
from typing import Callable, Optional, Union

import fitz
from tqdm import tqdm

from core.errors import ExportError
from core.imaging import image_to_png_bytes

from .compositor import PageCompositor
from .config import EditorConfig
from .store import PageStore

logger = logging.getLogger(__name__)


class ExportComposer:
    """
    Builds the output PDF from a store's pages.

    *surface* is anything exposing ``async settled(timeout) -> bool`` and
    ``async snapshot(page_index) -> PIL.Image``; by default a
    :class:`PageCompositor` over the same store.
    """

    def __init__(
        self,
        store: PageStore,
        surface=None,
        config: Optional[EditorConfig] = None,
    ):
        self.store = store
        self.config = config or store.config
        self.surface = surface or PageCompositor(store, self.config)

    async def export(self, progress: Optional[Callable[[float], None]] = None) -> bytes:
        """
        Compose all pages into a multi-page PDF.

        Returns:
            The PDF as bytes.

        Raises:
            ExportError: If the output document cannot be created, no page
            could be rendered, or the document cannot be serialised.
        """
        store = self.store
        cfg = self.config

        try:
            out = fitz.open()
        except Exception as e:
            logger.error("PDF generation error: %s", e)
            raise ExportError(f"Could not create output document: {e}") from e

        original_page = store.active_page
        session = store.end_edit()
        width, height = store.canvas_size
        total = store.page_count
        exported = 0

        try:
            with tqdm(
                range(total),
                desc="Exporting pages",
                unit="page",
                disable=cfg.disable_tqdm,
            ) as pbar:
                for idx in pbar:
                    store.set_active_page(idx)

                    if not await self._wait_settled(cfg.settle_timeout):
                        logger.debug(
                            "Surface not settled for page %d; capturing anyway", idx + 1
                        )

                    try:
                        img = await self.surface.snapshot(idx)
                        png = image_to_png_bytes(img)
                        # new_page appends, so every page after the first starts on a break
                        page = out.new_page(width=width, height=height)
                        page.insert_image(page.rect, stream=png)
                    except Exception as e:
                        logger.error("Error rendering page %d: %s", idx + 1, e)
                        if out.page_count > exported:
                            out.delete_page(-1)
                        continue

                    exported += 1
                    del img, png

                    if progress:
                        progress((idx + 1) / total * 100)

            if exported == 0:
                raise ExportError("No page could be rendered")

            data = out.tobytes(garbage=3, deflate=True)
        except ExportError:
            raise
        except Exception as e:
            logger.error("PDF generation error: %s", e)
            raise ExportError(f"Export failed: {e}") from e
        finally:
            out.close()
            store.set_active_page(original_page)
            store.restore_edit(session)

        logger.info(
            "Exported %d / %d pages (%dx%d, %.1f KB)",
            exported,
            total,
            width,
            height,
            len(data) / 1024,
        )
        return data

    async def export_to(self, path: Union[str, Path]) -> Path:
        """Export and write the PDF to *path*."""
        data = await self.export()
        out = Path(path)
        try:
            out.parent.mkdir(parents=True, exist_ok=True)
            out.write_bytes(data)
        except OSError as e:
            raise ExportError(f"Could not write '{out}': {e}") from e
        logger.info("Saved %s", out)
        return out

    async def _wait_settled(self, timeout: float) -> bool:
        try:
            return await asyncio.wait_for(self.surface.settled(timeout), timeout)
        except asyncio.TimeoutError:
            return False
