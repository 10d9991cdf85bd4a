# vstab/windows/compositor/yabai.py
import json
import asyncio
import logging
import shutil
from typing import Dict, List, Any

from vstab.utils.exceptions import CommandFailure, QueryFailure
from vstab.windows.compositor.base_compositor import BaseCompositor

logger = logging.getLogger(__name__)

class YabaiCompositor(BaseCompositor):
    """Compositor implementation for the yabai tiling window manager."""

    def __init__(self, executable: str = "yabai") -> None:
        """Initialize yabai interface."""
        self.executable = executable

    def is_available(self) -> bool:
        return shutil.which(self.executable) is not None

    async def _run(self, *args: str, failure=QueryFailure) -> str:
        """Run ``yabai -m <args>`` and return its stdout.

        Raises ``failure`` on a non-zero exit status or when the process
        cannot be spawned.
        """
        command = [self.executable, "-m", *args]
        try:
            proc = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE
            )
            stdout, stderr = await proc.communicate()
        except OSError as e:
            raise failure(f"Failed to run {' '.join(command)}: {e}", command=command) from e

        if proc.returncode != 0:
            error_output = stderr.decode(errors="replace").strip()
            raise failure(
                f"{' '.join(command)} exited with status {proc.returncode}: {error_output}",
                command=command,
                returncode=proc.returncode,
                stderr=error_output
            )
        return stdout.decode(errors="replace")

    async def _query(self, domain: str) -> List[Dict[str, Any]]:
        output = await self._run("query", f"--{domain}")
        try:
            result = json.loads(output)
        except json.JSONDecodeError as e:
            raise QueryFailure(f"yabai returned invalid JSON for --{domain}: {e}") from e

        if not isinstance(result, list):
            raise QueryFailure(f"yabai returned {type(result).__name__} for --{domain}, expected a list")
        return result

    async def query_windows(self) -> List[Dict[str, Any]]:
        return await self._query("windows")

    async def query_displays(self) -> List[Dict[str, Any]]:
        return await self._query("displays")

    async def _window_command(self, handle: int, *args: str) -> None:
        logger.debug(f"yabai window {handle} {' '.join(args)}")
        await self._run("window", str(handle), *args, failure=CommandFailure)

    async def focus_window(self, handle: int) -> None:
        # yabai expects the focus target after the flag
        logger.debug(f"yabai window --focus {handle}")
        await self._run("window", "--focus", str(handle), failure=CommandFailure)

    async def minimize_window(self, handle: int) -> None:
        await self._window_command(handle, "--minimize")

    async def move_window(self, handle: int, x: int, y: int) -> None:
        await self._window_command(handle, "--move", f"abs:{x}:{y}")

    async def resize_window(self, handle: int, width: int, height: int) -> None:
        await self._window_command(handle, "--resize", f"abs:{width}:{height}")

    async def grid_window(self, handle: int, grid: str) -> None:
        await self._window_command(handle, "--grid", grid)
