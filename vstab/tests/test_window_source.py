"""Unit tests for window discovery."""

import unittest
from unittest.mock import AsyncMock, MagicMock

from vstab.utils.exceptions import CommandFailure, ManagerUnavailable, QueryFailure
from vstab.windows.compositor.base_compositor import BaseCompositor
from vstab.windows.source import WindowSource

YABAI_WINDOWS = [
    {
        "id": 1001,
        "pid": 12345,
        "app": "Visual Studio Code",
        "title": "main.ts — vstab",
        "frame": {"x": 0, "y": 45, "w": 1920, "h": 1035},
        "space": 1,
        "display": 1,
        "has-focus": True,
        "is-visible": True,
        "is-minimized": False
    },
    {
        "id": 1002,
        "pid": 12346,
        "app": "Code - Insiders",
        "title": "App.tsx — my-project",
        "frame": {"x": 0, "y": 45, "w": 1920, "h": 1035},
        "space": 2,
        "display": 1,
        "has-focus": False,
        "is-visible": False,
        "is-minimized": False
    },
    {
        "id": 2001,
        "pid": 555,
        "app": "Google Chrome",
        "title": "Inbox",
        "frame": {"x": 0, "y": 0, "w": 800, "h": 600},
        "space": 1,
        "display": 1,
        "has-focus": False,
        "is-visible": True,
        "is-minimized": False
    },
]


def make_compositor(windows=None, available=True):
    compositor = MagicMock(spec=BaseCompositor)
    compositor.is_available.return_value = available
    compositor.query_windows = AsyncMock(return_value=windows if windows is not None else YABAI_WINDOWS)
    compositor.query_displays = AsyncMock(return_value=[
        {"index": 1, "frame": {"x": 0, "y": 0, "w": 1920, "h": 1080}, "has-focus": True}
    ])
    compositor.focus_window = AsyncMock()
    compositor.minimize_window = AsyncMock()
    return compositor


class TestWindowSource(unittest.IsolatedAsyncioTestCase):
    """Test cases for WindowSource."""

    def setUp(self):
        self.compositor = make_compositor()
        self.source = WindowSource(self.compositor, ["Visual Studio Code", "Code"])

    async def test_discover_filters_target_apps(self):
        windows = await self.source.discover()

        self.assertEqual([w.id for w in windows], [1001, 1002])
        self.assertTrue(windows[0].has_focus)
        self.assertEqual(windows[1].space, 2)

    async def test_discover_raises_when_manager_missing(self):
        self.compositor.is_available.return_value = False

        with self.assertRaises(ManagerUnavailable) as ctx:
            await self.source.discover()

        self.assertIn("yabai is required but not available", str(ctx.exception))
        self.compositor.query_windows.assert_not_awaited()

    async def test_discover_returns_empty_on_query_failure(self):
        self.compositor.query_windows.side_effect = QueryFailure("yabai error")

        with self.assertLogs('vstab.windows.source', level='ERROR'):
            windows = await self.source.discover()

        self.assertEqual(windows, [])

    async def test_discover_drops_malformed_descriptors(self):
        self.compositor.query_windows.return_value = [
            YABAI_WINDOWS[0],
            {"app": "Visual Studio Code", "title": "no handle"},
            {"id": "not-a-number", "pid": 1, "app": "Code"},
            "garbage",
        ]

        with self.assertLogs('vstab.windows.models', level='WARNING'):
            windows = await self.source.discover()

        self.assertEqual([w.id for w in windows], [1001])

    async def test_missing_optional_fields_default(self):
        self.compositor.query_windows.return_value = [{"id": 7, "pid": 8, "app": "Code"}]

        windows = await self.source.discover()

        self.assertEqual(windows[0].title, "")
        self.assertFalse(windows[0].has_focus)
        self.assertEqual(windows[0].display, 1)
        self.assertEqual(windows[0].frame.w, 0)

    async def test_frontmost_app(self):
        self.assertEqual(await self.source.frontmost_app(), "Visual Studio Code")

    async def test_frontmost_app_without_focus(self):
        self.compositor.query_windows.return_value = [{"id": 1001, "pid": 1, "app": "Visual Studio Code", "has-focus": False}]
        self.assertEqual(await self.source.frontmost_app(), "")

    async def test_frontmost_app_propagates_failure(self):
        self.compositor.query_windows.side_effect = QueryFailure("yabai error")
        with self.assertRaises(QueryFailure):
            await self.source.frontmost_app()

    async def test_displays(self):
        displays = await self.source.displays()
        self.assertEqual(displays[0].index, 1)
        self.assertEqual(displays[0].frame.h, 1080)

    async def test_focus_passes_handle(self):
        await self.source.focus(1001)
        self.compositor.focus_window.assert_awaited_once_with(1001)

    async def test_focus_failure_propagates(self):
        self.compositor.focus_window.side_effect = CommandFailure("no such window")
        with self.assertRaises(CommandFailure):
            await self.source.focus(1001)

    def test_is_target_app_is_case_sensitive_substring(self):
        self.assertTrue(self.source.is_target_app("Visual Studio Code"))
        self.assertTrue(self.source.is_target_app("Code - Insiders"))
        self.assertFalse(self.source.is_target_app("Xcode"))
        self.assertFalse(self.source.is_target_app("Google Chrome"))


if __name__ == '__main__':
    unittest.main()
