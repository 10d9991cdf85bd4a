"""Make room for the tab bar by moving editor windows below it."""

import logging
from dataclasses import dataclass
from typing import List, Sequence

from vstab.utils.exceptions import CommandFailure, ManagerUnavailable, QueryFailure, WindowNotFoundError
from vstab.windows.identity import IdentityResolver
from vstab.windows.models import DisplayDescriptor, WindowRecord
from vstab.windows.source import WindowSource

logger = logging.getLogger(__name__)

@dataclass
class Placement:
    """Target geometry for one window."""
    window_id: str
    handle: int
    x: int
    y: int
    width: int
    height: int
    grid: str

class GeometryPlanner:
    """Computes and applies resize-for-tab-bar adjustments."""

    def __init__(self, source: WindowSource, resolver: IdentityResolver, top_margin: int = 10,
                 bottom_margin: int = 0, resize_vertical: bool = True, resize_horizontal: bool = True) -> None:
        self.source = source
        self.resolver = resolver
        self.top_margin = top_margin
        self.bottom_margin = bottom_margin
        self.resize_vertical = resize_vertical
        self.resize_horizontal = resize_horizontal

    def _display_for(self, record: WindowRecord, displays: Sequence[DisplayDescriptor]) -> DisplayDescriptor:
        for display in displays:
            if display.index == record.metadata.display:
                return display
        return displays[0]

    @staticmethod
    def fallback_grid(display_height: float, offset: int) -> str:
        """Coarse grid placement: one full-width column, skipping the top row."""
        if offset <= 0:
            return "1:1:0:0:1:1"
        rows = max(2, round(display_height / offset))
        return f"{rows}:1:0:1:1:{rows - 1}"

    def plan(self, records: Sequence[WindowRecord], displays: Sequence[DisplayDescriptor],
             reserved_height: int) -> List[Placement]:
        """Compute placements for every managed window; no commands are issued."""
        if not displays:
            return []

        offset = reserved_height + self.top_margin
        placements: List[Placement] = []
        seen = set()

        for record in records:
            if record.id in seen or record.frame is None or record.metadata.is_minimized:
                continue
            seen.add(record.id)
            try:
                handle = self.resolver.translate(record.id)
            except WindowNotFoundError:
                logger.debug(f"Skipping {record.id}: no longer in the identity map")
                continue

            display = self._display_for(record, displays)
            band_bottom = display.frame.y + offset

            if record.frame.y >= band_bottom:
                # Already below the tab bar: keep its top edge
                y = record.frame.y
                height = display.frame.y + display.frame.h - record.frame.y - self.bottom_margin
            else:
                y = band_bottom
                height = display.frame.h - offset - self.bottom_margin

            if self.resize_horizontal:
                x, width = display.frame.x, display.frame.w
            else:
                x, width = record.frame.x, record.frame.w

            if height <= 0 or width <= 0:
                logger.warning(f"Skipping {record.id}: display {display.index} too small for a {reserved_height}pt tab bar")
                continue

            placements.append(Placement(
                window_id=record.id,
                handle=handle,
                x=int(round(x)),
                y=int(round(y)),
                width=int(round(width)),
                height=int(round(height)),
                grid=self.fallback_grid(display.frame.h, offset),
            ))

        return placements

    async def _apply(self, placement: Placement) -> bool:
        try:
            await self.source.move(placement.handle, placement.x, placement.y)
            await self.source.resize(placement.handle, placement.width, placement.height)
            return True
        except CommandFailure as e:
            logger.warning(f"Absolute placement failed for {placement.window_id}, trying grid {placement.grid}: {e}")

        try:
            await self.source.grid(placement.handle, placement.grid)
            return True
        except CommandFailure as e:
            logger.error(f"Failed to resize window {placement.window_id}: {e}")
            return False

    async def resize(self, reserved_height: int) -> List[Placement]:
        """Resize every known editor window to sit below the tab bar.

        Best effort: failures are logged and never raised.

        Returns:
            The placements that were applied
        """
        if not self.resize_vertical:
            logger.debug("Vertical auto-resize disabled, skipping")
            return []

        try:
            displays = await self.source.displays()
        except (ManagerUnavailable, QueryFailure) as e:
            logger.error(f"Cannot resize windows: {e}")
            return []

        if not displays:
            logger.warning("No displays reported, skipping resize")
            return []

        applied = []
        for placement in self.plan(self.resolver.records, displays, reserved_height):
            if await self._apply(placement):
                applied.append(placement)

        logger.info(f"Resized {len(applied)} windows for a {reserved_height}pt tab bar")
        return applied
