"""Unit tests for tab order reconciliation."""

import asyncio
import unittest
from unittest.mock import AsyncMock, MagicMock

from vstab.tabs.order_store import TabOrderStore
from vstab.tabs.reconciler import OrderReconciler
from vstab.utils.exceptions import PersistenceError
from vstab.windows.models import WindowMetadata, WindowRecord


def window(window_id):
    return WindowRecord(
        id=window_id,
        title=f"main.ts — {window_id}",
        path=window_id,
        is_active=False,
        metadata=WindowMetadata(space=1, display=1, pid=1, is_visible=True, is_minimized=False),
    )


def ids(windows):
    return [w.id for w in windows]


class TestOrderReconciler(unittest.IsolatedAsyncioTestCase):
    """Test cases for OrderReconciler."""

    async def asyncSetUp(self):
        self.store = MagicMock(spec=TabOrderStore)
        self.store.load = AsyncMock(return_value=[])
        self.store.save = AsyncMock()
        self.reconciler = OrderReconciler(self.store)

    async def load(self, order):
        self.store.load.return_value = order
        await self.reconciler.load()

    async def test_closed_window_dropped_and_new_window_appended(self):
        await self.load(["a", "b"])

        result = self.reconciler.reconcile([window("a"), window("c")])
        await self.reconciler.flush()

        self.assertEqual(ids(result), ["a", "c"])
        self.store.save.assert_awaited_once_with(["a", "c"])

    async def test_empty_order_uses_discovery_order_as_baseline(self):
        result = self.reconciler.reconcile([window("x"), window("y")])
        await self.reconciler.flush()

        self.assertEqual(ids(result), ["x", "y"])
        self.store.save.assert_awaited_once_with(["x", "y"])
        self.assertEqual(self.reconciler.order, ["x", "y"])

    async def test_reconcile_is_idempotent(self):
        await self.load(["b"])
        current = [window("a"), window("b")]

        first = self.reconciler.reconcile(current)
        await self.reconciler.flush()
        second = self.reconciler.reconcile(current)
        await self.reconciler.flush()

        self.assertEqual(ids(first), ids(second))
        self.assertEqual(ids(second), ["b", "a"])
        self.assertEqual(self.store.save.await_count, 1)

    async def test_preserves_saved_relative_order(self):
        await self.load(["d", "b", "a"])

        result = self.reconciler.reconcile([window("a"), window("b"), window("d")])
        await self.reconciler.flush()

        self.assertEqual(ids(result), ["d", "b", "a"])
        self.store.save.assert_not_awaited()

    async def test_new_windows_follow_in_discovery_order(self):
        await self.load(["b"])

        result = self.reconciler.reconcile([window("z"), window("b"), window("y")])

        self.assertEqual(ids(result), ["b", "z", "y"])

    async def test_pruning_without_new_windows_does_not_persist(self):
        await self.load(["a", "b"])

        result = self.reconciler.reconcile([window("b")])
        await self.reconciler.flush()

        self.assertEqual(ids(result), ["b"])
        self.store.save.assert_not_awaited()

    async def test_no_windows(self):
        await self.load(["a"])
        self.assertEqual(self.reconciler.reconcile([]), [])

    async def test_never_persists_duplicates(self):
        await self.load(["a", "a", "b"])

        result = self.reconciler.reconcile([window("a"), window("c"), window("c")])
        await self.reconciler.flush()

        self.assertEqual(ids(result), ["a", "c"])
        self.store.save.assert_awaited_once_with(["a", "c"])

    async def test_background_save_failure_is_logged_not_raised(self):
        self.store.save.side_effect = PersistenceError("disk full")

        with self.assertLogs('vstab.tabs.reconciler', level='ERROR'):
            result = self.reconciler.reconcile([window("a")])
            await self.reconciler.flush()

        self.assertEqual(ids(result), ["a"])

    async def test_reconcile_does_not_wait_for_save(self):
        release = asyncio.Event()

        async def slow_save(order):
            await release.wait()

        self.store.save.side_effect = slow_save

        result = self.reconciler.reconcile([window("a")])
        self.assertEqual(ids(result), ["a"])
        self.assertEqual(len(self.reconciler._pending), 1)

        release.set()
        await self.reconciler.flush()
        self.assertEqual(len(self.reconciler._pending), 0)

    async def test_reorder_replaces_order_verbatim(self):
        await self.load(["a", "b", "c"])

        await self.reconciler.reorder(["c", "a"])

        self.assertEqual(self.reconciler.order, ["c", "a"])
        self.store.save.assert_awaited_once_with(["c", "a"])

    async def test_reorder_then_reconcile_appends_missing(self):
        await self.load(["a", "b", "c"])
        await self.reconciler.reorder(["c", "a"])

        result = self.reconciler.reconcile([window("a"), window("b"), window("c")])

        self.assertEqual(ids(result), ["c", "a", "b"])

    async def test_ensure_loaded_reads_store_once(self):
        self.store.load.return_value = ["b", "a"]

        await self.reconciler.ensure_loaded()
        await self.reconciler.ensure_loaded()

        self.assertEqual(self.reconciler.order, ["b", "a"])
        self.store.load.assert_awaited_once()

    async def test_reorder_counts_as_loaded(self):
        await self.reconciler.reorder(["c"])
        await self.reconciler.ensure_loaded()

        self.assertEqual(self.reconciler.order, ["c"])
        self.store.load.assert_not_awaited()

    async def test_reorder_failure_propagates(self):
        self.store.save.side_effect = PersistenceError("read-only")

        with self.assertRaises(PersistenceError):
            await self.reconciler.reorder(["a"])


if __name__ == '__main__':
    unittest.main()
