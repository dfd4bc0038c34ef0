"""
Editing session: wires the store, mask engine, scheduler, locator,
importer, compositor, and export composer together.

Usage::

    from editor import EditorSession

    session = EditorSession()
    await session.import_file("input.pdf")
    element = await session.detect_text(120, 340)
    if element:
        session.edit_text("Replacement")
        session.complete_edit()
    await session.flush()
    await session.export_to("output.pdf")
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import List, Optional, Union

from core.errors import SessionBusy
from core.imaging import blob_to_data_uri
from core.mask import RegionMaskEngine

from .compositor import PageCompositor
from .config import EditorConfig
from .exporter import ExportComposer
from .importer import DocumentImporter, ProgressCallback
from .locator import TextLocator
from .models import PLACEHOLDER_TEXT, ImageElement, Page, TextElement
from .scheduler import RemaskScheduler
from .store import PageStore

logger = logging.getLogger(__name__)


class EditorSession:
    """
    One document being edited.

    At most one import and at most one export may be in flight at a time;
    a second request raises :class:`SessionBusy`.  Clicks that arrive while
    an import is running are ignored.
    """

    def __init__(self, config: Optional[EditorConfig] = None, surface=None):
        self.config = config or EditorConfig()

        self.store = PageStore(self.config)
        self.engine = RegionMaskEngine(self.store, padding=self.config.mask_padding)
        self.scheduler = RemaskScheduler(
            self.store, self.engine, delay=self.config.debounce_seconds
        )
        self.store.set_remask_hook(self.scheduler.schedule)

        self.importer = DocumentImporter(self.store, self.config)
        self.locator = TextLocator(self.store, self.scheduler, self.config)
        self.compositor = PageCompositor(self.store, self.config)
        self.exporter = ExportComposer(
            self.store, surface or self.compositor, self.config
        )

        self._importing = False
        self._exporting = False

    # ------------------------------------------------------------------
    # Mutual exclusion
    # ------------------------------------------------------------------

    @contextmanager
    def _exclusive(self, attr: str, what: str):
        if getattr(self, attr):
            raise SessionBusy(f"An {what} is already in progress")
        setattr(self, attr, True)
        try:
            yield
        finally:
            setattr(self, attr, False)

    @property
    def is_busy(self) -> bool:
        return self._importing or self._exporting

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    async def import_pdf(
        self, blob: bytes, progress: Optional[ProgressCallback] = None
    ) -> List[Page]:
        with self._exclusive("_importing", "import"):
            await self._drop_pending_remasks()
            return await self.importer.import_bytes(blob, progress=progress)

    async def import_file(
        self, path: Union[str, Path], progress: Optional[ProgressCallback] = None
    ) -> List[Page]:
        with self._exclusive("_importing", "import"):
            await self._drop_pending_remasks()
            return await self.importer.import_file(path, progress=progress)

    async def _drop_pending_remasks(self) -> None:
        # Remasks of the outgoing document must not land on the new pages
        self.scheduler.cancel_all()
        await self.scheduler.flush()

    # ------------------------------------------------------------------
    # Text detection and editing
    # ------------------------------------------------------------------

    async def detect_text(
        self, click_x: float, click_y: float, page_index: Optional[int] = None
    ) -> Optional[TextElement]:
        """Resolve a canvas click on the active (or given) page to a text element."""
        if self._importing:
            logger.debug("Click ignored while importing")
            return None
        self.store.end_edit()
        idx = self.store.active_page if page_index is None else page_index
        return await self.locator.detect(idx, click_x, click_y)

    def edit_text(self, content: str) -> Optional[TextElement]:
        """Update the content of the element being edited (no remask)."""
        session = self.store.editing
        if session is None:
            return None
        session.content = content
        return self.store.update_element(session.element_id, {"content": content})

    def complete_edit(self) -> Optional[TextElement]:
        """
        Commit the edit session.

        Re-applies the final content together with the element's text
        region, which schedules the debounced remask for detected text.
        """
        session = self.store.end_edit()
        if session is None:
            return None
        element = self.store.find_element(session.element_id)
        if not isinstance(element, TextElement):
            return None
        patch = {"content": session.content}
        if element.text_region is not None:
            patch["text_region"] = element.text_region
        return self.store.update_element(element.id, patch)

    def cancel_edit(self) -> None:
        self.store.end_edit()

    # ------------------------------------------------------------------
    # Pages and elements
    # ------------------------------------------------------------------

    def add_page(self) -> int:
        return self.store.add_page()

    def set_active_page(self, index: int) -> int:
        return self.store.set_active_page(index)

    def add_text_element(self, page_index: Optional[int] = None, **options) -> TextElement:
        """Add a manual text box at (100, 100) and open it for editing."""
        cfg = self.config
        idx = self.store.active_page if page_index is None else page_index
        element = TextElement(
            content=options.pop("content", PLACEHOLDER_TEXT),
            x=options.pop("x", 100),
            y=options.pop("y", 100),
            font_size=options.pop("font_size", cfg.default_font_size),
            font_family=options.pop("font_family", cfg.default_font_family),
            bold=options.pop("bold", False),
            italic=options.pop("italic", False),
            align=options.pop("align", cfg.default_align),
            highlight=options.pop("highlight", False),
        )
        if options:
            raise TypeError(f"Unknown text options: {sorted(options)}")
        self.store.add_element(idx, element)
        self.store.begin_edit(element.id)
        return element

    def add_image_element(self, page_index: Optional[int] = None) -> ImageElement:
        """Add an empty 200x150 image placeholder at (100, 100)."""
        idx = self.store.active_page if page_index is None else page_index
        element = ImageElement(x=100, y=100, width=200, height=150)
        self.store.add_element(idx, element)
        return element

    def set_image_source(self, element_id: str, blob: bytes) -> Optional[ImageElement]:
        """
        Fill an image element from an image blob.

        Raises:
            InvalidImage: If the blob is not a decodable image.
        """
        src, _ = blob_to_data_uri(blob)
        element = self.store.update_element(element_id, {"src": src})
        return element if isinstance(element, ImageElement) else None

    def update_element(self, element_id: str, patch: dict):
        return self.store.update_element(element_id, patch)

    def delete_element(self, element_id: str) -> bool:
        return self.store.delete_element(element_id)

    # ------------------------------------------------------------------
    # Export and lifecycle
    # ------------------------------------------------------------------

    async def export(self) -> bytes:
        with self._exclusive("_exporting", "export"):
            return await self.exporter.export()

    async def export_to(self, path: Union[str, Path]) -> Path:
        with self._exclusive("_exporting", "export"):
            return await self.exporter.export_to(path)

    async def flush(self) -> None:
        """Wait for every scheduled background update to land."""
        await self.scheduler.flush()

    async def close(self) -> None:
        self.scheduler.cancel_all()
        await self.scheduler.flush()
        self.store.reset()

    def __repr__(self) -> str:
        return f"EditorSession({self.store!r})"
