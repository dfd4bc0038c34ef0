"""
Element/page store: the single source of truth of an editing session.

Holds the ordered pages, the active page index, the canvas size, the
decoded source document, the per-page text region registry, and the
current edit session.  All mutators are synchronous and leave the store
fully consistent before returning, so readers that run while a coroutine
is suspended never observe a half-applied change.
"""

import logging
from typing import Callable, Dict, List, Optional, Tuple

from core.document import SourceDocument
from core.page.models import TextRegion

from .config import EditorConfig
from .models import (
    BACKGROUND_LOCKED_FIELDS,
    PATCHABLE_FIELDS,
    EditSession,
    Element,
    ImageElement,
    Page,
    TextElement,
)

logger = logging.getLogger(__name__)

RemaskHook = Callable[[int, List[TextRegion]], None]


class PageStore:
    """
    In-memory ordered pages of ordered elements.

    A remask hook (normally :meth:`RemaskScheduler.schedule`) is called
    whenever the text regions of a page change through an edit or a
    deletion.  The store itself never renders anything.
    """

    def __init__(self, config: Optional[EditorConfig] = None):
        self.config = config or EditorConfig()
        self.pages: List[Page] = [Page()]
        self.active_page: int = 0
        self.canvas_size: Tuple[int, int] = self.config.default_canvas_size
        self.source: Optional[SourceDocument] = None
        self.editing: Optional[EditSession] = None

        # page index -> {element id -> region}, insertion ordered
        self._regions: Dict[int, Dict[str, TextRegion]] = {}
        self._remask_hook: Optional[RemaskHook] = None

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    def set_remask_hook(self, hook: Optional[RemaskHook]) -> None:
        self._remask_hook = hook

    def _request_remask(self, page_index: int) -> None:
        if self._remask_hook is None:
            return
        self._remask_hook(page_index, self.regions_for(page_index))

    # ------------------------------------------------------------------
    # Whole-session state
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Return to a blank session: one empty page at the default size."""
        self._close_source()
        self.pages = [Page()]
        self.active_page = 0
        self.canvas_size = self.config.default_canvas_size
        self.editing = None
        self._regions = {}
        logger.debug("Store reset to blank session")

    def load(
        self,
        pages: List[Page],
        source: Optional[SourceDocument],
        canvas_size: Tuple[int, int],
    ) -> None:
        """Replace the entire store with freshly imported pages."""
        if not pages:
            raise ValueError("Cannot load an empty page list")
        if source is not self.source:
            self._close_source()
        self.pages = list(pages)
        self.source = source
        self.canvas_size = canvas_size
        self.active_page = 0
        self.editing = None
        self._regions = {}
        logger.debug(
            "Store loaded: %d pages, canvas %dx%d",
            len(self.pages),
            canvas_size[0],
            canvas_size[1],
        )

    def _close_source(self) -> None:
        if self.source is not None:
            self.source.close()
            self.source = None

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def current(self) -> Page:
        return self.pages[self.active_page]

    def page(self, page_index: int) -> Page:
        if page_index < 0 or page_index >= len(self.pages):
            raise IndexError(
                f"Page index {page_index} out of range ({len(self.pages)} pages)"
            )
        return self.pages[page_index]

    def add_page(self) -> int:
        """Append an empty page, make it active, and return its index."""
        self.pages.append(Page())
        self.active_page = len(self.pages) - 1
        return self.active_page

    def set_active_page(self, index: int) -> int:
        """Make *index* the active page, clamped to the valid range."""
        self.active_page = max(0, min(index, len(self.pages) - 1))
        return self.active_page

    # ------------------------------------------------------------------
    # Elements
    # ------------------------------------------------------------------

    def find_element(self, element_id: str) -> Optional[Element]:
        found = self._locate(element_id)
        return found[1] if found else None

    def page_of(self, element_id: str) -> Optional[int]:
        found = self._locate(element_id)
        return found[0] if found else None

    def _locate(self, element_id: str) -> Optional[Tuple[int, Element]]:
        for idx, page in enumerate(self.pages):
            el = page.find(element_id)
            if el is not None:
                return idx, el
        return None

    def background_of(self, page_index: int) -> Optional[ImageElement]:
        return self.page(page_index).background

    def add_element(self, page_index: int, element: Element) -> Element:
        """
        Append *element* to a page.

        Detected text elements register their text region at the same time.

        Raises:
            IndexError: If *page_index* does not exist.
            ValueError: If the page already has a background element.
            TypeError:  If *element* is not a known element variant.
        """
        page = self.page(page_index)

        if isinstance(element, ImageElement):
            if element.is_background and page.background is not None:
                raise ValueError(f"Page {page_index} already has a background")
        elif isinstance(element, TextElement):
            if element.text_region is not None:
                self._regions.setdefault(page_index, {})[element.id] = (
                    element.text_region
                )
        else:
            raise TypeError(f"Unknown element type: {type(element).__name__}")

        page.elements.append(element)
        return element

    def update_element(self, element_id: str, patch: dict) -> Optional[Element]:
        """
        Merge *patch* into the matching element, keeping its identity.

        A patch carrying ``text_region`` keeps the region registry in step
        with the element (``None`` drops the entry).  When it also carries
        non-empty ``content``, a remask of the owning page is scheduled.

        Returns:
            The updated element, or ``None`` if no element has that id.

        Raises:
            ValueError: If *patch* names a field the element does not have.
        """
        found = self._locate(element_id)
        if found is None:
            logger.debug("update_element: no element %s", element_id)
            return None
        page_index, element = found

        allowed = PATCHABLE_FIELDS.get(type(element))
        if allowed is None:
            raise TypeError(f"Unknown element type: {type(element).__name__}")
        unknown = set(patch) - allowed
        if unknown:
            raise ValueError(
                f"Cannot patch {sorted(unknown)} on {type(element).__name__}"
            )

        if isinstance(element, ImageElement) and element.is_background:
            if BACKGROUND_LOCKED_FIELDS & set(patch):
                logger.debug("Ignoring geometry/src patch on background element")
                return element

        for name, value in patch.items():
            setattr(element, name, value)

        if isinstance(element, TextElement) and "text_region" in patch:
            region = patch["text_region"]
            if region is None:
                self._regions.get(page_index, {}).pop(element.id, None)
            else:
                self._regions.setdefault(page_index, {})[element.id] = region
                if patch.get("content"):
                    self._request_remask(page_index)

        return element

    def replace_background(
        self, page_index: int, src: str, width: int, height: int
    ) -> bool:
        """
        Swap the raster of a page's background element.

        This is the only path that may change a background's pixels; it is
        used by the remask scheduler.  Returns ``False`` if the page has no
        background (e.g. a page added after import).
        """
        if page_index < 0 or page_index >= len(self.pages):
            logger.debug("replace_background: page %d no longer exists", page_index)
            return False
        bg = self.pages[page_index].background
        if bg is None:
            logger.debug("replace_background: page %d has no background", page_index)
            return False
        bg.src = src
        bg.width = width
        bg.height = height
        return True

    def delete_element(self, element_id: str) -> bool:
        """
        Remove an element.

        Deleting a background element is silently rejected.  Removing a
        detected text element drops its region and schedules a remask so
        the original text shows through again.

        Returns:
            ``True`` if an element was removed.
        """
        found = self._locate(element_id)
        if found is None:
            return False
        page_index, element = found

        if isinstance(element, ImageElement) and element.is_background:
            logger.debug("Rejected deletion of background element on page %d", page_index)
            return False

        self.pages[page_index].elements.remove(element)

        if self.editing is not None and self.editing.element_id == element_id:
            self.editing = None

        page_regions = self._regions.get(page_index, {})
        if element_id in page_regions:
            del page_regions[element_id]
            self._request_remask(page_index)

        return True

    # ------------------------------------------------------------------
    # Text region registry
    # ------------------------------------------------------------------

    def regions_for(self, page_index: int) -> List[TextRegion]:
        """Current mask regions of a page, in registration order."""
        return list(self._regions.get(page_index, {}).values())

    def region_of(self, element_id: str) -> Optional[TextRegion]:
        for page_regions in self._regions.values():
            if element_id in page_regions:
                return page_regions[element_id]
        return None

    # ------------------------------------------------------------------
    # Edit session
    # ------------------------------------------------------------------

    def begin_edit(self, element_id: str) -> EditSession:
        """Open *element_id* (a text element) for editing."""
        element = self.find_element(element_id)
        if not isinstance(element, TextElement):
            raise ValueError(f"Element {element_id} is not an editable text element")
        self.editing = EditSession(element_id=element_id, content=element.content)
        return self.editing

    def end_edit(self) -> Optional[EditSession]:
        """Close the edit session and return it."""
        session, self.editing = self.editing, None
        return session

    def restore_edit(self, session: Optional[EditSession]) -> None:
        """Reopen a previously suspended session if its element still exists."""
        if session is not None and self.find_element(session.element_id) is None:
            session = None
        self.editing = session

    def __repr__(self) -> str:
        return (
            f"PageStore(pages={len(self.pages)}, active={self.active_page}, "
            f"canvas={self.canvas_size[0]}x{self.canvas_size[1]})"
        )
