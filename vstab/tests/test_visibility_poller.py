"""Unit tests for the visibility poller."""

import asyncio
import unittest
from unittest.mock import AsyncMock, MagicMock

from vstab.utils.exceptions import QueryFailure
from vstab.visibility.poller import PollerState, VisibilityPoller


class TestVisibilityPoller(unittest.IsolatedAsyncioTestCase):
    """Test cases for VisibilityPoller."""

    def setUp(self):
        self.query = AsyncMock(return_value="Visual Studio Code")
        self.on_change = MagicMock()
        self.poller = VisibilityPoller(
            self.query,
            interval=0.01,
            retry_delay=0.001,
            on_change=self.on_change
        )

    async def asyncTearDown(self):
        await self.poller.stop()

    async def test_starts_idle_and_visible(self):
        self.assertEqual(self.poller.state, PollerState.IDLE)
        self.assertTrue(self.poller.visible)

    async def test_frontmost_app_decides_visibility(self):
        self.query.return_value = "Chrome"
        self.assertFalse(await self.poller.tick())

        self.query.return_value = "Visual Studio Code"
        self.assertTrue(await self.poller.tick())

        self.query.return_value = ""
        self.assertFalse(await self.poller.tick())

    def test_match_is_case_insensitive(self):
        self.assertTrue(self.poller.should_show("CODE - INSIDERS"))
        self.assertTrue(self.poller.should_show("Electron"))
        self.assertTrue(self.poller.should_show("vstab"))
        self.assertFalse(self.poller.should_show("Finder"))

    async def test_exhausted_retries_keep_state(self):
        self.query.return_value = "Chrome"
        await self.poller.tick()
        self.assertFalse(self.poller.visible)

        self.query.reset_mock()
        self.query.side_effect = QueryFailure("yabai error")

        with self.assertLogs('vstab.visibility.poller', level='ERROR') as logs:
            result = await self.poller.tick()

        self.assertFalse(result)
        self.assertFalse(self.poller.visible)
        self.assertEqual(self.query.await_count, 3)
        self.assertEqual(len([r for r in logs.records if r.levelname == 'ERROR']), 1)

    async def test_exhausted_retries_keep_visible_state(self):
        self.query.side_effect = RuntimeError("boom")

        with self.assertLogs('vstab.visibility.poller', level='ERROR'):
            await self.poller.tick()

        self.assertTrue(self.poller.visible)
        self.on_change.assert_not_called()

    async def test_retry_recovers(self):
        self.query.side_effect = [QueryFailure("yabai error"), "Google Chrome"]

        result = await self.poller.tick()

        self.assertFalse(result)
        self.assertEqual(self.query.await_count, 2)

    async def test_on_change_only_on_flip(self):
        await self.poller.tick()
        self.on_change.assert_not_called()

        self.query.return_value = "Finder"
        await self.poller.tick()
        await self.poller.tick()

        self.on_change.assert_called_once_with(False)

    async def test_start_polls_immediately_and_repeatedly(self):
        self.poller.start()
        self.assertEqual(self.poller.state, PollerState.POLLING)

        await asyncio.sleep(0.08)

        self.assertGreaterEqual(self.query.await_count, 2)

    async def test_no_ticks_after_teardown(self):
        self.poller.start()
        await asyncio.sleep(0.03)
        await self.poller.stop()

        count = self.query.await_count
        await asyncio.sleep(0.05)

        self.assertEqual(self.query.await_count, count)
        self.assertEqual(self.poller.state, PollerState.IDLE)
        self.assertEqual(self.poller._scheduler.pending_count, 0)

    async def test_teardown_cancels_retry_wait(self):
        self.poller.retry_delay = 10
        self.query.side_effect = QueryFailure("yabai error")

        self.poller.start()
        await asyncio.sleep(0.01)
        await self.poller.stop()

        self.assertEqual(self.query.await_count, 1)
        self.assertTrue(self.poller.visible)

    async def test_in_flight_result_discarded_after_teardown(self):
        release = asyncio.Event()

        async def slow_query():
            await release.wait()
            return "Finder"

        self.query.side_effect = slow_query

        self.poller.start()
        await asyncio.sleep(0)
        stopping = asyncio.create_task(self.poller.stop())
        await asyncio.sleep(0)
        release.set()
        await stopping

        self.assertTrue(self.poller.visible)
        self.assertIsNone(self.poller.last_app)
        self.on_change.assert_not_called()

    async def test_start_after_teardown_is_ignored(self):
        await self.poller.stop()
        self.poller.start()

        self.assertEqual(self.poller.state, PollerState.IDLE)
        self.query.assert_not_awaited()


if __name__ == '__main__':
    unittest.main()
