"""FastAPI server implementation."""

import logging
from typing import List

from fastapi import FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from vstab.api.models import (
    FrontmostAppResponse, ReorderRequest, ResizeRequest, ResizeResponse,
    StatusResponse, TabOrderResponse, VisibilityResponse
)
from vstab.service import TabSyncService
from vstab.utils.events import TabEvent, TabEventType
from vstab.utils.exceptions import ManagerUnavailable, PersistenceError, QueryFailure, WindowNotFoundError
from vstab.windows.models import DisplayDescriptor, WindowRecord

# Set up logging
logger = logging.getLogger(__name__)

def create_app(service: TabSyncService) -> FastAPI:
    """Create the API around an already constructed service."""
    app = FastAPI(
        title="vstab API",
        description="Tab order and visibility for editor windows managed by yabai",
        version="1.0.0"
    )
    app.state.service = service

    # The tab bar UI runs from a local origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(WindowNotFoundError)
    async def window_not_found(request: Request, exc: WindowNotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(ManagerUnavailable)
    async def manager_unavailable(request: Request, exc: ManagerUnavailable):
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    @app.exception_handler(QueryFailure)
    async def query_failure(request: Request, exc: QueryFailure):
        logger.error(f"Window manager call failed: {exc}")
        return JSONResponse(status_code=502, content={"detail": str(exc)})

    @app.exception_handler(PersistenceError)
    async def persistence_error(request: Request, exc: PersistenceError):
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    @app.get("/windows", response_model=List[WindowRecord])
    async def list_windows():
        return await service.list_windows()

    @app.post("/windows/resize", response_model=ResizeResponse)
    async def resize_windows(request: ResizeRequest):
        logger.debug(f"Resize windows request: {request.height}")
        placements = await service.resize(request.height)
        return ResizeResponse(resized=[p.window_id for p in placements])

    @app.post("/windows/{window_id}/focus", response_model=StatusResponse)
    async def focus_window(window_id: str):
        logger.debug(f"Focus window request: {window_id}")
        await service.focus(window_id)
        return StatusResponse()

    @app.post("/windows/{window_id}/hide", response_model=StatusResponse)
    async def hide_window(window_id: str):
        logger.debug(f"Hide window request: {window_id}")
        await service.hide(window_id)
        return StatusResponse()

    @app.get("/tabs/order", response_model=TabOrderResponse)
    async def get_order():
        return TabOrderResponse(window_ids=await service.get_order())

    @app.put("/tabs/order", response_model=TabOrderResponse)
    async def reorder(request: ReorderRequest):
        logger.debug(f"Reorder tabs request: {request.window_ids}")
        await service.reorder(request.window_ids)
        return TabOrderResponse(window_ids=await service.get_order())

    @app.get("/visibility", response_model=VisibilityResponse)
    async def should_show():
        return VisibilityResponse(should_show=await service.should_show())

    @app.get("/system/frontmost-app", response_model=FrontmostAppResponse)
    async def frontmost_app():
        return FrontmostAppResponse(app=await service.frontmost_app())

    @app.get("/system/displays", response_model=List[DisplayDescriptor])
    async def displays():
        return await service.displays()

    @app.websocket("/windows/updates")
    async def window_updates(websocket: WebSocket):
        await websocket.accept()

        async def forward(event: TabEvent):
            await websocket.send_json({
                "type": event.event_type.value,
                "timestamp": event.timestamp,
                **event.data
            })

        await service.events.subscribe(TabEventType.WINDOWS_UPDATED, forward)
        await service.events.subscribe(TabEventType.VISIBILITY_CHANGED, forward)
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            logger.debug("Window update subscriber disconnected")
        finally:
            await service.events.unsubscribe(TabEventType.WINDOWS_UPDATED, forward)
            await service.events.unsubscribe(TabEventType.VISIBILITY_CHANGED, forward)

    return app
