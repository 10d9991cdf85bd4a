"""Window and display models.

Everything yabai prints is validated here before the rest of the system sees
it. Optional fields fall back to defaults; a record without a native handle
or pid, or with fields of the wrong type, is rejected.
"""

import logging
from typing import Any, Iterable, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

class Frame(BaseModel):
    """Window or display rectangle in screen points."""
    x: float = 0
    y: float = 0
    w: float = 0
    h: float = 0

class RawWindowDescriptor(BaseModel):
    """A window as reported by ``yabai -m query --windows``."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int = Field(..., description="Native window handle assigned by the manager")
    pid: int = Field(..., description="Owning process id")
    app: str = Field("", description="Owner application name")
    title: str = ""
    frame: Frame = Field(default_factory=Frame)
    has_focus: bool = Field(False, alias="has-focus")
    is_visible: bool = Field(False, alias="is-visible")
    is_minimized: bool = Field(False, alias="is-minimized")
    space: int = 1
    display: int = 1

class DisplayDescriptor(BaseModel):
    """A display as reported by ``yabai -m query --displays``."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    index: int
    frame: Frame = Field(default_factory=Frame)
    has_focus: bool = Field(False, alias="has-focus")

class WindowMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    space: int
    display: int
    pid: int
    is_visible: bool
    is_minimized: bool

class WindowRecord(BaseModel):
    """One tab: a target-editor window under its stable id."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Stable window id")
    title: str
    path: str = Field(..., description="Workspace label extracted from the title")
    is_active: bool
    frame: Optional[Frame] = None
    metadata: WindowMetadata

def parse_records(raw_items: Iterable[Any], model: Type[ModelT]) -> List[ModelT]:
    """Validate raw manager output, dropping (and logging) malformed entries."""
    parsed: List[ModelT] = []
    for item in raw_items:
        try:
            parsed.append(model.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Rejected malformed {model.__name__}: {e.error_count()} error(s) in {item!r}")
    return parsed
