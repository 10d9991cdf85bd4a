"""API request and response models."""

from typing import List, Optional
from pydantic import BaseModel, Field

class ReorderRequest(BaseModel):
    """New tab order, stored verbatim."""
    window_ids: List[str] = Field(..., description="Stable window ids in the desired tab order")

class TabOrderResponse(BaseModel):
    window_ids: List[str] = Field(default_factory=list)

class ResizeRequest(BaseModel):
    height: Optional[int] = Field(None, ge=0, description="Height reserved for the tab bar, in points; the configured height when omitted")

class ResizeResponse(BaseModel):
    resized: List[str] = Field(default_factory=list, description="Ids of the windows that were placed")

class VisibilityResponse(BaseModel):
    should_show: bool

class FrontmostAppResponse(BaseModel):
    app: str = Field("", description="Frontmost application name, empty when unknown")

class StatusResponse(BaseModel):
    status: str = "ok"
