"""Tab synchronization service.

Composes window discovery, identity, tab ordering, visibility and geometry
into the operations the tab bar needs, and runs the two polling loops:
discovery (about once a second) and visibility (a few times a second). The
loops have separate schedulers and never wait on each other.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Set

from vstab.tabs.order_store import DEFAULT_ORDER_FILE, TabOrderStore
from vstab.tabs.reconciler import OrderReconciler
from vstab.utils.config import get_config, target_app_patterns
from vstab.utils.events import EventBroadcaster, TabEvent, TabEventType
from vstab.utils.exceptions import ManagerUnavailable, QueryFailure
from vstab.utils.scheduler import Scheduler
from vstab.visibility.poller import DEFAULT_FRAGMENTS, VisibilityPoller
from vstab.windows.compositor.yabai import YabaiCompositor
from vstab.windows.geometry import GeometryPlanner, Placement
from vstab.windows.identity import IdentityResolver
from vstab.windows.models import DisplayDescriptor, WindowRecord
from vstab.windows.source import WindowSource

logger = logging.getLogger(__name__)

class TabSyncService:
    """The core's consumer-facing contract."""

    def __init__(self, source: WindowSource, resolver: IdentityResolver, reconciler: OrderReconciler,
                 planner: GeometryPlanner, events: Optional[EventBroadcaster] = None,
                 discovery_interval: float = 1.0, visibility: Optional[Dict[str, Any]] = None,
                 tab_bar_height: int = 45, auto_hide: bool = True) -> None:
        self.source = source
        self.resolver = resolver
        self.reconciler = reconciler
        self.planner = planner
        self.events = events or EventBroadcaster()
        self.discovery_interval = discovery_interval
        self.tab_bar_height = tab_bar_height
        self.auto_hide = auto_hide
        self.visibility = dict(visibility or {})
        self.poller = self._new_poller()

        self.running = False
        self._windows: List[WindowRecord] = []
        self._scheduler = Scheduler("discovery")
        self._tasks: Set[asyncio.Task] = set()
        self._manager_missing = False

    def _new_poller(self) -> VisibilityPoller:
        return VisibilityPoller(
            self.source.frontmost_app,
            fragments=self.visibility.get("fragments", DEFAULT_FRAGMENTS),
            interval=self.visibility.get("interval", 0.25),
            max_retries=self.visibility.get("max_retries", 2),
            retry_delay=self.visibility.get("retry_delay", 0.1),
            on_change=self._on_visibility_change,
        )

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'TabSyncService':
        """Build the service and all of its components from configuration."""
        executable = get_config(config, "yabai.executable", "yabai")
        source = WindowSource(YabaiCompositor(executable), target_app_patterns(config), executable)
        resolver = IdentityResolver()
        reconciler = OrderReconciler(TabOrderStore(get_config(config, "tabs.order_file", DEFAULT_ORDER_FILE)))
        planner = GeometryPlanner(
            source,
            resolver,
            top_margin=get_config(config, "tabs.top_margin", 10),
            bottom_margin=get_config(config, "tabs.bottom_margin", 0),
            resize_vertical=get_config(config, "tabs.auto_resize_vertical", True),
            resize_horizontal=get_config(config, "tabs.auto_resize_horizontal", True),
        )
        return cls(
            source,
            resolver,
            reconciler,
            planner,
            discovery_interval=get_config(config, "discovery.interval", 1.0),
            visibility=get_config(config, "visibility", {}),
            tab_bar_height=get_config(config, "tabs.tab_bar_height", 45),
            auto_hide=get_config(config, "tabs.auto_hide", True),
        )

    # Lifecycle

    async def start(self) -> None:
        """Load the saved order and start both polling loops."""
        if self.running:
            return
        if self._scheduler.closed:
            self._scheduler = Scheduler("discovery")
        if self.poller.torn_down:
            # A stopped poller stays stopped; restart with a new one
            self.poller = self._new_poller()
        await self.reconciler.ensure_loaded()
        self.running = True
        self._spawn(self._run_cycle())
        self.poller.start()
        logger.info("Tab sync started")

    def _spawn(self, coro) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run_cycle(self) -> None:
        scheduler = self._scheduler
        try:
            await self._refresh(scheduler)
            if self._manager_missing:
                logger.info("Window manager available again")
            self._manager_missing = False
        except ManagerUnavailable as e:
            if not self._manager_missing:
                logger.error(f"Window discovery stopped: {e}")
            self._manager_missing = True
        except Exception as e:
            logger.error(f"Error discovering windows: {e}", exc_info=True)

        if self.running and not scheduler.closed:
            scheduler.call_later(self.discovery_interval, self._spawn_cycle)

    def _spawn_cycle(self) -> None:
        if self.running:
            self._spawn(self._run_cycle())

    async def refresh(self) -> List[WindowRecord]:
        """Run one discovery cycle and notify subscribers.

        Raises:
            ManagerUnavailable: If the window manager is not installed
        """
        return await self._refresh(None)

    async def _refresh(self, scheduler: Optional[Scheduler]) -> List[WindowRecord]:
        await self.reconciler.ensure_loaded()
        descriptors = await self.source.discover()
        if scheduler is not None and scheduler.closed:
            # Torn down while discovering
            return list(self._windows)
        records = self.resolver.resolve(descriptors)
        self._windows = self.reconciler.reconcile(records)
        await self.events.broadcast(TabEvent(
            timestamp=datetime.now().isoformat(),
            event_type=TabEventType.WINDOWS_UPDATED,
            data={"windows": [w.model_dump() for w in self._windows]},
        ))
        return list(self._windows)

    def _on_visibility_change(self, visible: bool) -> None:
        logger.info(f"Tab bar {'shown' if visible else 'hidden'} (frontmost: {self.poller.last_app!r})")
        self._spawn(self.events.broadcast(TabEvent(
            timestamp=datetime.now().isoformat(),
            event_type=TabEventType.VISIBILITY_CHANGED,
            data={"visible": visible, "frontmost_app": self.poller.last_app},
        )))

    async def stop(self) -> None:
        """Tear down both loops and wait for outstanding work."""
        self.running = False
        self._scheduler.close()
        await self.poller.stop()
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        await self.reconciler.flush()
        await self.events.cleanup()
        logger.info("Tab sync stopped")

    # Consumer-facing operations

    async def list_windows(self) -> List[WindowRecord]:
        return list(self._windows)

    async def focus(self, window_id: str) -> None:
        """Focus a tab's window and minimize the other editor windows.

        A window that cannot be minimized is logged and skipped.

        Raises:
            WindowNotFoundError: If the id is not in the current identity map
            CommandFailure: If yabai rejects the command
        """
        handle = self.resolver.translate(window_id)
        logger.debug(f"Focusing window {window_id} (yabai id {handle})")
        await self.source.focus(handle)

        # Only the focused editor window stays on screen
        for other_id in self.resolver.known_ids():
            if other_id == window_id:
                continue
            try:
                await self.source.minimize(self.resolver.translate(other_id))
            except Exception as e:
                logger.error(f"Error hiding window {other_id}: {e}")

    async def hide(self, window_id: str) -> None:
        handle = self.resolver.translate(window_id)
        logger.debug(f"Minimizing window {window_id} (yabai id {handle})")
        await self.source.minimize(handle)

    async def reorder(self, window_ids: Sequence[str]) -> None:
        await self.reconciler.reorder(window_ids)

    async def get_order(self) -> List[str]:
        await self.reconciler.ensure_loaded()
        return self.reconciler.order

    async def should_show(self) -> bool:
        if not self.auto_hide:
            return True
        return self.poller.visible

    async def frontmost_app(self) -> str:
        try:
            return await self.source.frontmost_app()
        except (ManagerUnavailable, QueryFailure) as e:
            logger.error(f"Error getting frontmost app: {e}")
            return ""

    async def resize(self, height: Optional[int] = None) -> List[Placement]:
        return await self.planner.resize(self.tab_bar_height if height is None else height)

    async def displays(self) -> List[DisplayDescriptor]:
        return await self.source.displays()
