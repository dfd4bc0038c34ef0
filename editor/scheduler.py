"""
Debounced remask scheduler.

Coalesces rapid edits into one masked-background regeneration per
quiescence window.  Each page is its own edit stream: a new request for
a page cancels that page's pending task and restarts the window, so if
N edits land inside the window exactly one remask runs, with the region
set of the last edit.

A task stops being "pending" the moment its window elapses.  From then
on it is in flight and cannot be superseded; a per-page lock makes the
next remask of the same page wait for it instead of overlapping.
"""

import asyncio
import logging
from typing import Dict, Iterable, List, Set

from core.mask import RegionMaskEngine
from core.page.models import TextRegion

from .store import PageStore

logger = logging.getLogger(__name__)


class RemaskScheduler:
    """Owns the cancellable remask tasks of a session."""

    def __init__(
        self, store: PageStore, engine: RegionMaskEngine, delay: float = 0.5
    ):
        self.store = store
        self.engine = engine
        self.delay = delay

        self._pending: Dict[int, asyncio.Task] = {}
        self._tasks: Set[asyncio.Task] = set()
        self._locks: Dict[int, asyncio.Lock] = {}

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def schedule(self, page_index: int, regions: Iterable[TextRegion]) -> None:
        """
        Request a remask of *page_index* after the quiescence window.

        Supersedes any pending request for the same page.  Must be called
        from within a running event loop; outside one the request is
        dropped with a warning.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop; remask of page %d dropped", page_index)
            return

        self._cancel_pending(page_index)

        task = loop.create_task(self._debounced(page_index, list(regions)))
        self._pending[page_index] = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.debug("Remask of page %d scheduled in %.2fs", page_index, self.delay)

    async def remask_now(self, page_index: int, regions: Iterable[TextRegion]) -> bool:
        """
        Remask *page_index* immediately, superseding any pending request.

        Returns:
            ``True`` if the background was replaced.
        """
        self._cancel_pending(page_index)
        return await self._apply(page_index, list(regions))

    def _cancel_pending(self, page_index: int) -> None:
        task = self._pending.pop(page_index, None)
        if task is not None and not task.done():
            task.cancel()
            logger.debug("Superseded pending remask of page %d", page_index)

    async def _debounced(self, page_index: int, regions: List[TextRegion]) -> None:
        await asyncio.sleep(self.delay)

        # Window elapsed: from here on this task is in flight, not pending
        if self._pending.get(page_index) is asyncio.current_task():
            del self._pending[page_index]

        await self._apply(page_index, regions)

    async def _apply(self, page_index: int, regions: List[TextRegion]) -> bool:
        lock = self._locks.setdefault(page_index, asyncio.Lock())
        async with lock:
            result = await self.engine.mask(page_index, regions)
            if result is None:
                logger.warning(
                    "Background of page %d not updated; edit again to retry",
                    page_index,
                )
                return False

            try:
                src = result.to_data_uri()
            except Exception as e:
                logger.error("Could not encode background of page %d: %s", page_index, e)
                return False

            replaced = self.store.replace_background(
                page_index, src, result.width, result.height
            )
            if replaced:
                logger.debug(
                    "Background of page %d replaced (%d regions masked)",
                    page_index,
                    len(regions),
                )
            return replaced

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def pending_pages(self) -> List[int]:
        return sorted(self._pending)

    def cancel_all(self) -> None:
        """Cancel every pending (not yet in flight) remask."""
        for page_index in list(self._pending):
            self._cancel_pending(page_index)

    async def flush(self) -> None:
        """Wait until every pending and in-flight remask has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def __repr__(self) -> str:
        return (
            f"RemaskScheduler(delay={self.delay:.2f}s, "
            f"pending={self.pending_pages}, tasks={len(self._tasks)})"
        )
