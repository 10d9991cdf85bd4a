"""Tab order persistence.

The order is a pretty-printed JSON array of stable window ids, rewritten in
full on every save. Reads fail soft (a missing or corrupt file is an empty
order); writes fail loud.
"""

import json
import logging
from pathlib import Path
from typing import List, Sequence

import aiofiles
import aiofiles.os

from vstab.utils.exceptions import PersistenceError

logger = logging.getLogger(__name__)

DEFAULT_ORDER_FILE = "~/.config/vstab/tab_order.json"

class TabOrderStore:
    """Loads and saves the persisted tab order."""

    def __init__(self, path: str = DEFAULT_ORDER_FILE) -> None:
        self.path = Path(path).expanduser()

    async def load(self) -> List[str]:
        """Load the saved order; any problem yields an empty list."""
        logger.debug(f"Loading tab order from {self.path}")
        try:
            async with aiofiles.open(self.path, 'r', encoding='utf-8') as f:
                data = await f.read()
            parsed = json.loads(data)
        except FileNotFoundError:
            logger.debug("No saved tab order yet")
            return []
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(f"Tab order file unreadable, starting empty: {e}")
            return []

        if not isinstance(parsed, list) or not all(isinstance(item, str) for item in parsed):
            logger.warning(f"Tab order file contains invalid data, starting empty: {parsed!r}")
            return []

        logger.debug(f"Tab order loaded: {parsed}")
        return parsed

    async def save(self, order: Sequence[str]) -> None:
        """Overwrite the saved order.

        Raises:
            PersistenceError: If the directory or file cannot be written
        """
        order = list(order)
        try:
            await aiofiles.os.makedirs(self.path.parent, exist_ok=True)
            async with aiofiles.open(self.path, 'w', encoding='utf-8') as f:
                await f.write(json.dumps(order, indent=2))
        except OSError as e:
            logger.error(f"Error saving tab order to {self.path}: {e}")
            raise PersistenceError(f"Could not save tab order to {self.path}: {e}") from e

        logger.info(f"Tab order saved ({len(order)} windows)")
