import asyncio
import json
import logging
from typing import Optional
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from fastapi.responses import StreamingResponse
from projectgen.api.deps import get_service
from projectgen.core.broadcast import Subscription
from projectgen.tasks.jobs import GenerationService

log = logging.getLogger(__name__)

router = APIRouter()

KEEPALIVE_SECONDS = 15.0


@router.get("/projects/{project_id}/events")
async def stream_events(project_id: str, service: GenerationService = Depends(get_service)):
    """Server-Sent Events for one project, from the moment of connection onward."""
    subscription = service.hub.subscribe(project_id)

    async def event_source():
        try:
            while True:
                try:
                    event = await subscription.get(timeout=KEEPALIVE_SECONDS)
                except asyncio.TimeoutError:
                    yield ": keepalive\n\n"
                    continue
                if event is None:
                    return
                yield event.to_sse()
        finally:
            service.hub.unsubscribe(subscription)

    return StreamingResponse(event_source(), media_type="text/event-stream")


async def _forward(websocket: WebSocket, subscription: Subscription) -> None:
    async for event in subscription:
        await websocket.send_json(event.to_dict())


@router.websocket("/ws")
async def events_socket(websocket: WebSocket):
    service: GenerationService = websocket.app.state.service
    await websocket.accept()
    log.info("WebSocket client connected")

    subscription: Optional[Subscription] = None
    forwarder: Optional[asyncio.Task] = None

    def leave() -> None:
        nonlocal subscription, forwarder
        if subscription is not None:
            service.hub.unsubscribe(subscription)
            subscription = None
        if forwarder is not None:
            forwarder.cancel()
            forwarder = None

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except ValueError:
                log.warning("Ignoring malformed WebSocket message")
                continue
            if not isinstance(message, dict):
                continue
            if message.get("type") == "join_project" and message.get("projectId"):
                leave()
                subscription = service.hub.subscribe(str(message["projectId"]))
                await websocket.send_json({"type": "joined", "subjectId": subscription.project_id})
                forwarder = asyncio.create_task(_forward(websocket, subscription))
            elif message.get("type") == "leave_project":
                leave()
    except WebSocketDisconnect:
        log.info("WebSocket client disconnected")
    finally:
        leave()
