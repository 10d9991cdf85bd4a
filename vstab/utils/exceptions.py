"""Custom exceptions for the system."""

class ConfigError(Exception):
    """Raised when there is a configuration error."""
    pass


class ManagerUnavailable(Exception):
    """Raised when the window manager executable cannot be located.

    This is checked before any query is issued, so callers can tell
    "manager not installed" apart from "manager returned nothing".
    """
    def __init__(self, executable: str):
        super().__init__(f"{executable} is required but not available")
        self.executable = executable


class QueryFailure(Exception):
    """Exception raised when a window manager call fails.

    The manager is installed but the call itself errored: non-zero exit
    status, unreadable output, or the process could not be spawned.
    """
    def __init__(self, message: str, command: list = None, returncode: int = None, stderr: str = None):
        super().__init__(message)
        self.command = command or []
        self.returncode = returncode
        self.stderr = stderr


class CommandFailure(QueryFailure):
    """Exception raised when a window control command (focus, move, resize...) fails."""
    pass


class WindowNotFoundError(Exception):
    """Raised when an operation references a window id absent from the current identity map."""
    def __init__(self, window_id: str):
        super().__init__(f"Window ID {window_id} not found in current window map")
        self.window_id = window_id


class PersistenceError(Exception):
    """Raised when the tab order cannot be written."""
    pass
