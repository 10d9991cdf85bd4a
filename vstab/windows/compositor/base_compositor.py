# vstab/windows/compositor/base_compositor.py
import abc
from typing import Dict, List, Any

class BaseCompositor(abc.ABC):
    """Abstract base class for window manager backends."""

    @abc.abstractmethod
    def is_available(self) -> bool:
        """Check whether the manager executable can be located.

        Must not spawn the manager or issue a query.
        """
        raise NotImplementedError

    @abc.abstractmethod
    async def query_windows(self) -> List[Dict[str, Any]]:
        """Get a list of all windows known to the manager.

        Returns:
            A list of raw, unvalidated window dictionaries.

        Raises:
            QueryFailure: If the manager call fails.
        """
        raise NotImplementedError

    @abc.abstractmethod
    async def query_displays(self) -> List[Dict[str, Any]]:
        """Get a list of displays and their frames.

        Raises:
            QueryFailure: If the manager call fails.
        """
        raise NotImplementedError

    @abc.abstractmethod
    async def focus_window(self, handle: int) -> None:
        """Focus the window with the given native handle."""
        raise NotImplementedError

    @abc.abstractmethod
    async def minimize_window(self, handle: int) -> None:
        """Minimize the window with the given native handle."""
        raise NotImplementedError

    @abc.abstractmethod
    async def move_window(self, handle: int, x: int, y: int) -> None:
        """Move a window to an absolute position."""
        raise NotImplementedError

    @abc.abstractmethod
    async def resize_window(self, handle: int, width: int, height: int) -> None:
        """Resize a window to an absolute size."""
        raise NotImplementedError

    @abc.abstractmethod
    async def grid_window(self, handle: int, grid: str) -> None:
        """Place a window on a ``rows:cols:x:y:w:h`` grid."""
        raise NotImplementedError
