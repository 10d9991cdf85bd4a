"""Stable window identity.

yabai assigns each window a native id that changes whenever the editor
recreates the window, so tabs are keyed on a digest of the workspace label
and owning pid instead. Two windows with the same label in the same process
hash to the same id; the first one discovered owns it.
"""

import hashlib
import logging
from typing import Dict, List, Sequence

from vstab.utils.exceptions import WindowNotFoundError
from vstab.windows.models import RawWindowDescriptor, WindowMetadata, WindowRecord

logger = logging.getLogger(__name__)

# VS Code titles look like "main.ts — my-project"
TITLE_SEPARATOR = " — "
STABLE_ID_LENGTH = 8

def workspace_label(title: str) -> str:
    """Trailing title segment after the separator, or the whole title."""
    if TITLE_SEPARATOR in title:
        label = title.split(TITLE_SEPARATOR)[-1]
        if label:
            return label
    return title

def compute_stable_id(title: str, pid: int) -> str:
    key = f"{workspace_label(title)}-{pid}"
    return hashlib.md5(key.encode("utf-8")).hexdigest()[:STABLE_ID_LENGTH]

class IdentityResolver:
    """Maps stable ids to the native handles of the latest discovery cycle."""

    def __init__(self) -> None:
        self._handles: Dict[str, int] = {}
        self._records: List[WindowRecord] = []

    def resolve(self, descriptors: Sequence[RawWindowDescriptor]) -> List[WindowRecord]:
        """Build window records and swap in a fresh identity map."""
        handles: Dict[str, int] = {}
        records: List[WindowRecord] = []

        for descriptor in descriptors:
            stable_id = compute_stable_id(descriptor.title, descriptor.pid)
            handles.setdefault(stable_id, descriptor.id)
            records.append(WindowRecord(
                id=stable_id,
                title=descriptor.title,
                path=workspace_label(descriptor.title),
                is_active=descriptor.has_focus,
                frame=descriptor.frame,
                metadata=WindowMetadata(
                    space=descriptor.space,
                    display=descriptor.display,
                    pid=descriptor.pid,
                    is_visible=descriptor.is_visible,
                    is_minimized=descriptor.is_minimized,
                ),
            ))

        # Readers only ever see a complete map
        self._handles = handles
        self._records = records
        logger.debug(f"Resolved {len(records)} windows: {list(handles)}")
        return list(records)

    def translate(self, stable_id: str) -> int:
        handles = self._handles
        if stable_id not in handles:
            raise WindowNotFoundError(stable_id)
        return handles[stable_id]

    def known_ids(self) -> List[str]:
        return list(self._handles)

    @property
    def records(self) -> List[WindowRecord]:
        """Records of the latest discovery cycle."""
        return list(self._records)
