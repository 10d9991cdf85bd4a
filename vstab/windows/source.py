"""Window discovery.

This module provides the WindowSource class, the only component that talks
to the window manager. It checks that the manager is installed, queries it,
validates what comes back and keeps the windows that belong to the target
editor.

Core features:
- Manager availability probe
- Window and display queries
- Target-application filtering
- Window control passthrough (focus, minimize, move, resize, grid)
"""

import logging
from typing import List, Sequence

from vstab.utils.exceptions import ManagerUnavailable, QueryFailure
from vstab.windows.compositor.base_compositor import BaseCompositor
from vstab.windows.models import DisplayDescriptor, RawWindowDescriptor, parse_records

# Set up logging
logger = logging.getLogger(__name__)

class WindowSource:
    """Window manager adapter scoped to the target editor's windows."""

    def __init__(self, compositor: BaseCompositor, app_patterns: Sequence[str], executable: str = "yabai") -> None:
        """Initialize window source.

        Args:
            compositor: Backend that speaks the manager's protocol
            app_patterns: Owner-application names of the target editor; a
                window matches when its app name contains any of them
            executable: Manager executable name, used in error messages
        """
        self.compositor = compositor
        self.app_patterns = list(app_patterns)
        self.executable = executable

    def ensure_available(self) -> None:
        if not self.compositor.is_available():
            raise ManagerUnavailable(self.executable)

    def is_target_app(self, app_name: str) -> bool:
        return any(pattern in app_name for pattern in self.app_patterns)

    async def discover(self) -> List[RawWindowDescriptor]:
        """Get the target editor's windows in the manager's order.

        Returns:
            Validated descriptors; empty if the query itself failed

        Raises:
            ManagerUnavailable: If the manager executable cannot be located
        """
        self.ensure_available()

        try:
            raw_windows = await self.compositor.query_windows()
        except QueryFailure as e:
            logger.error(f"Window query failed: {e}")
            return []

        windows = [w for w in parse_records(raw_windows, RawWindowDescriptor) if self.is_target_app(w.app)]
        logger.debug(f"Discovered {len(windows)} target windows out of {len(raw_windows)}")
        return windows

    async def frontmost_app(self) -> str:
        """Name of the application owning the focused window, or "" if none.

        Unlike discovery, failures propagate so pollers can retry.
        """
        self.ensure_available()
        raw_windows = await self.compositor.query_windows()
        for window in parse_records(raw_windows, RawWindowDescriptor):
            if window.has_focus:
                return window.app
        return ""

    async def displays(self) -> List[DisplayDescriptor]:
        self.ensure_available()
        return parse_records(await self.compositor.query_displays(), DisplayDescriptor)

    async def focus(self, handle: int) -> None:
        self.ensure_available()
        await self.compositor.focus_window(handle)

    async def minimize(self, handle: int) -> None:
        self.ensure_available()
        await self.compositor.minimize_window(handle)

    async def move(self, handle: int, x: int, y: int) -> None:
        await self.compositor.move_window(handle, x, y)

    async def resize(self, handle: int, width: int, height: int) -> None:
        await self.compositor.resize_window(handle, width, height)

    async def grid(self, handle: int, grid: str) -> None:
        await self.compositor.grid_window(handle, grid)
