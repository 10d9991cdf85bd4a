from dataclasses import dataclass, field
from typing import Dict, Any, Callable, List, Coroutine
from enum import Enum
import asyncio
import logging

logger = logging.getLogger(__name__)

class TabEventType(Enum):
    WINDOWS_UPDATED = "windows_updated"
    VISIBILITY_CHANGED = "visibility_changed"

@dataclass
class TabEvent:
    timestamp: str
    event_type: TabEventType
    data: Dict[str, Any] = field(default_factory=dict)

class EventBroadcaster:
    def __init__(self):
        self._subscribers: Dict[TabEventType, List[Callable[..., Coroutine]]] = {}
        self._lock = asyncio.Lock()
        self._tasks: List[asyncio.Task] = []

    async def subscribe(self, event_type: TabEventType, callback: Callable[..., Coroutine]):
        async with self._lock:
            if event_type not in self._subscribers:
                self._subscribers[event_type] = []
            self._subscribers[event_type].append(callback)

    async def unsubscribe(self, event_type: TabEventType, callback: Callable[..., Coroutine]):
        async with self._lock:
            callbacks = self._subscribers.get(event_type, [])
            if callback in callbacks:
                callbacks.remove(callback)

    async def broadcast(self, event: TabEvent):
        async with self._lock:
            subscribers = self._subscribers.get(event.event_type, []).copy()

        for callback in subscribers:
            task = asyncio.create_task(self._safe_callback(callback, event))
            self._tasks.append(task)
            task.add_done_callback(self._tasks.remove)

    async def _safe_callback(self, callback: Callable[..., Coroutine], event: TabEvent):
        try:
            await callback(event)
        except Exception as e:
            logger.error(f"Error in event callback: {str(e)}", exc_info=True)

    async def cleanup(self):
        """Wait for all pending tasks to complete."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
