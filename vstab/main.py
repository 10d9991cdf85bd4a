"""Main entry point for vstab."""
import asyncio
import signal
from typing import Dict, Any, List
from InquirerPy import inquirer
from uvicorn import Config, Server

from vstab.api.server import create_app
from vstab.service import TabSyncService
from vstab.utils.config import load_config_and_logging, get_config
from vstab.utils.exceptions import ManagerUnavailable
from vstab.utils.logging import get_logger, configure_logging

logger = get_logger(__name__)

class TabSyncCLI:
    """Command line interface for the tab sync service."""

    def __init__(self, config: Dict[str, Any], service: TabSyncService):
        """Initialize the CLI interface."""
        self.config = config
        self.service = service
        self.sync_active = False
        self.server_active = False
        self.server_task = None
        self.is_shutting_down = False

    @classmethod
    def create(cls, config: Dict[str, Any]) -> 'TabSyncCLI':
        """Create a CLI instance with a freshly built service."""
        return cls(config, TabSyncService.from_config(config))

    async def _start_sync(self):
        """Start window discovery and visibility polling."""
        if not self.sync_active:
            logger.info("Starting tab sync")
            await self.service.start()
            self.sync_active = True

    async def _stop_sync(self):
        """Stop both polling loops."""
        if self.sync_active:
            logger.info("Stopping tab sync")
            await self.service.stop()
            self.sync_active = False

    async def _start_server(self):
        """Start the API server."""
        if not self.server_active:
            host = get_config(self.config, "server.host", "127.0.0.1")
            port = get_config(self.config, "server.port", 8765)
            logger.info(f"Starting server on {host}:{port}")
            config = Config(
                create_app(self.service),
                host=host,
                port=port,
                log_level="info"
            )
            server = Server(config)
            self.server_task = asyncio.create_task(server.serve())
            self.server_active = True
            logger.info("Server started successfully")

    async def _stop_server(self):
        """Stop the API server."""
        if self.server_active and self.server_task:
            logger.info("Stopping server")
            self.server_task.cancel()
            try:
                await self.server_task
            except asyncio.CancelledError:
                pass
            self.server_task = None
            self.server_active = False
            logger.info("Server stopped successfully")

    async def _show_tabs(self):
        """Print the current tabs in order."""
        try:
            windows = await self.service.refresh()
        except ManagerUnavailable as e:
            print(f"{e}. Install yabai and make sure it is on your PATH.")
            return

        if not windows:
            print("No editor windows found.")
        for position, window in enumerate(windows, start=1):
            marker = "*" if window.is_active else " "
            print(f"{marker} {position}. {window.path} [{window.id}]")

    async def _resize_windows(self):
        placements = await self.service.resize()
        print(f"Resized {len(placements)} windows.")

    def get_choices(self) -> List[str]:
        """Dynamically generate choices based on current state."""
        choices = []
        if self.sync_active:
            choices.append("Stop Sync")
        else:
            choices.append("Start Sync")

        if self.server_active:
            choices.append("Stop Server")
        else:
            choices.append("Start Server")

        choices.extend([
            "Show Tabs",
            "Resize Windows",
            "Exit"
        ])
        return choices

    async def handle_choice(self, choice: str):
        """Handle user's choice."""
        try:
            if choice == "Start Sync":
                await self._start_sync()
            elif choice == "Stop Sync":
                await self._stop_sync()
            elif choice == "Start Server":
                await self._start_server()
            elif choice == "Stop Server":
                await self._stop_server()
            elif choice == "Show Tabs":
                await self._show_tabs()
            elif choice == "Resize Windows":
                await self._resize_windows()
        except Exception as e:
            logger.error(f"Error handling choice: {e}")
            raise

    async def run(self):
        """Run the interactive CLI."""
        try:
            while True:
                choice = await inquirer.select(
                    message="Select action:",
                    choices=self.get_choices(),
                    default=None
                ).execute_async()

                if choice == "Exit":
                    await self.cleanup()
                    break

                await self.handle_choice(choice)
        except (KeyboardInterrupt, asyncio.CancelledError):
            logger.info("Received interrupt signal")
            await self.cleanup()
        except Exception as e:
            logger.error(f"Error in CLI run: {e}", exc_info=True)
            await self.cleanup()

    async def cleanup(self):
        """Cleanup resources."""
        if self.is_shutting_down:
            return  # Prevent multiple shutdown attempts

        self.is_shutting_down = True

        logger.info("Starting cleanup process")
        try:
            if self.server_active:
                await self._stop_server()
            if self.sync_active:
                await self._stop_sync()
            logger.info("Cleanup completed successfully")
        except Exception as e:
            logger.error(f"Error during cleanup: {e}")

async def async_main():
    """Async main entry point."""
    config = load_config_and_logging()
    configure_logging(
        development=config.get("development", True),
        log_file=config.get("log_file", "vstab.log")
    )

    cli = TabSyncCLI.create(config)

    loop = asyncio.get_running_loop()
    for s in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(
            s, lambda: asyncio.create_task(cli.cleanup())
        )

    await cli.run()

def main():
    """Main entry point."""
    try:
        asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Shutting down")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        raise

if __name__ == "__main__":
    main()
