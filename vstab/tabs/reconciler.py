"""Merge the user's saved tab order with the windows that are open now."""

import asyncio
import logging
from typing import List, Sequence, Set

from vstab.tabs.order_store import TabOrderStore
from vstab.windows.models import WindowRecord

logger = logging.getLogger(__name__)

class OrderReconciler:
    """Owns the in-memory tab order and keeps the saved copy in step with it.

    The order is loaded once, at startup or on first use. ``reconcile``
    runs every discovery cycle; when it sees windows that are not in the
    order yet it appends them and saves the new order in the background.
    ``reorder`` is the explicit user path and replaces the order outright.
    """

    def __init__(self, store: TabOrderStore) -> None:
        self.store = store
        self._order: List[str] = []
        self._loaded = False
        self._pending: Set[asyncio.Task] = set()
        # Saves land on disk in the order they were requested
        self._save_lock = asyncio.Lock()

    async def load(self) -> List[str]:
        self._order = await self.store.load()
        self._loaded = True
        logger.info(f"Loaded tab order with {len(self._order)} entries")
        return self.order

    async def ensure_loaded(self) -> None:
        """Load the saved order unless it is already in memory."""
        if not self._loaded:
            await self.load()

    @property
    def order(self) -> List[str]:
        return list(self._order)

    def reconcile(self, current_windows: Sequence[WindowRecord]) -> List[WindowRecord]:
        """Order ``current_windows`` by the saved order, new windows last.

        Must be called from a running event loop when new windows may
        appear, since the save is scheduled on it.
        """
        by_id = {}
        for window in current_windows:
            by_id.setdefault(window.id, window)

        known = set(self._order)
        emitted = set()
        ordered: List[WindowRecord] = []
        for window_id in self._order:
            if window_id in by_id and window_id not in emitted:
                ordered.append(by_id[window_id])
                emitted.add(window_id)

        new_ones: List[WindowRecord] = []
        for window in current_windows:
            if window.id not in known and window.id not in emitted:
                new_ones.append(window)
                emitted.add(window.id)

        result = ordered + new_ones

        if new_ones:
            self._order = [window.id for window in result]
            logger.debug(f"New windows {[w.id for w in new_ones]}, saving order {self._order}")
            self._persist_in_background(self.order)

        return result

    def _persist_in_background(self, order: List[str]) -> None:
        task = asyncio.get_running_loop().create_task(self._save_quietly(order))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _save_quietly(self, order: List[str]) -> None:
        try:
            async with self._save_lock:
                await self.store.save(order)
        except Exception as e:
            logger.error(f"Error auto-saving tab order: {e}")

    async def reorder(self, new_order: Sequence[str]) -> None:
        """Replace the order verbatim and save it.

        Raises:
            PersistenceError: If the save fails
        """
        self._order = list(new_order)
        self._loaded = True
        logger.debug(f"Reordering tabs to {self._order}")
        async with self._save_lock:
            await self.store.save(self._order)

    async def flush(self) -> None:
        """Wait for background saves scheduled so far."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
