"""
Document importer: PDF blob → ordered editable pages.

Each source page becomes a Page holding a single background raster
rendered at the fixed canvas width.  Import is all-or-nothing: any
failure discards the whole batch and leaves the store blank.
"""

import asyncio
import logging
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union

from tqdm import tqdm

from core.document import SourceDocument
from core.errors import DecodeError, ImportFailure, ReadFailure
from core.imaging import image_to_data_uri

from .config import EditorConfig
from .models import ImageElement, Page
from .store import PageStore

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


class DocumentImporter:
    """
    Decodes a source PDF and replaces the store's pages with its rasters.

    Usage::

        importer = DocumentImporter(store)
        pages = await importer.import_bytes(blob, progress=print)
    """

    def __init__(self, store: PageStore, config: Optional[EditorConfig] = None):
        self.store = store
        self.config = config or store.config

    async def import_file(
        self, path: Union[str, Path], progress: Optional[ProgressCallback] = None
    ) -> List[Page]:
        """
        Read *path* and import it.

        Raises:
            ReadFailure: If the file cannot be read.
            ImportFailure: Any of the failures of :meth:`import_bytes`.
        """
        try:
            blob = Path(path).read_bytes()
        except OSError as e:
            logger.error("Error reading %s: %s", path, e)
            self.store.reset()
            raise ReadFailure(f"Failed to read '{path}': {e}") from e
        return await self.import_bytes(blob, progress=progress)

    async def import_bytes(
        self, blob: bytes, progress: Optional[ProgressCallback] = None
    ) -> List[Page]:
        """
        Import a PDF held in memory.

        On success the store holds one page per source page, the active page
        is 0, and the canvas size is that of the first page.  Progress (0-100)
        is reported after each page.

        Raises:
            NotADocument, DecodeError, EncryptedOrProtected: On failure, after
            resetting the store to a blank session.
        """
        if progress:
            progress(0.0)

        try:
            source = SourceDocument.from_bytes(blob)
        except ImportFailure as e:
            logger.error("PDF import failed: %s", e)
            self.store.reset()
            raise

        try:
            pages, first_size = await self._rasterize(source, progress)
        except ImportFailure as e:
            logger.error("PDF processing error: %s", e)
            source.close()
            self.store.reset()
            raise

        self.store.load(pages, source, first_size)
        logger.info(
            "Imported %d pages (canvas %dx%d)",
            len(pages),
            first_size[0],
            first_size[1],
        )
        return pages

    async def _rasterize(
        self, source: SourceDocument, progress: Optional[ProgressCallback]
    ) -> Tuple[List[Page], Tuple[int, int]]:
        cfg = self.config
        total = source.total_pages
        pages: List[Page] = []
        first_size: Optional[Tuple[int, int]] = None

        with tqdm(
            range(total),
            desc="Importing pages",
            unit="page",
            disable=cfg.disable_tqdm,
        ) as pbar:
            for idx in pbar:
                try:
                    img = source.render_at_width(idx, cfg.canvas_width)
                    src = image_to_data_uri(img)
                except Exception as e:
                    raise DecodeError(f"Failed to render page {idx + 1}: {e}") from e

                width, height = img.size
                if first_size is None:
                    first_size = (width, height)

                background = ImageElement(
                    x=0,
                    y=0,
                    width=width,
                    height=height,
                    src=src,
                    is_background=True,
                )
                pages.append(Page(elements=[background]))
                logger.debug("Page %d rasterized at %dx%d", idx + 1, width, height)

                if progress:
                    progress((idx + 1) / total * 100)

                # Let the event loop breathe between pages
                await asyncio.sleep(0)

        return pages, first_size
