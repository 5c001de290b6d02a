"""
Worker routes: a WebSocket transport for the simulation worker protocol.

Each connection gets its own isolated SimulationWorker session. Text frames
carry JSON request envelopes; every message the worker posts is sent back as
a JSON frame. The socket is closed after TERMINATE_COMPLETE.
"""

import asyncio
import json
import logging
import uuid
from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from schemas.simulation import SimulationParameters, SIMULATION_PRESETS
from schemas.worker_protocol import MessageFactory
from services.simulation_worker import SimulationWorker
from utils.data_transform import ResponseBuilder

router = APIRouter(tags=["Worker"])
logger = logging.getLogger(__name__)


class SessionRegistry:
    """Tracks the worker sessions of open connections."""

    def __init__(self):
        self._sessions: Dict[str, SimulationWorker] = {}

    def add(self, session_id: str, worker: SimulationWorker) -> None:
        self._sessions[session_id] = worker
        logger.info(f"Worker session {session_id} opened ({len(self._sessions)} active)")

    def remove(self, session_id: str) -> None:
        if self._sessions.pop(session_id, None) is not None:
            logger.info(f"Worker session {session_id} closed ({len(self._sessions)} active)")

    def get(self, session_id: str) -> Optional[SimulationWorker]:
        return self._sessions.get(session_id)

    def stats(self) -> Dict[str, Any]:
        return {
            "active_sessions": len(self._sessions),
            "sessions": {
                session_id: {
                    "is_running": worker.is_running,
                    "performance": worker.performance_history.summary(),
                }
                for session_id, worker in self._sessions.items()
            }
        }

    def __len__(self) -> int:
        return len(self._sessions)


sessions = SessionRegistry()


@router.get("/api/worker/presets")
async def list_presets():
    """Named parameter presets in wire format."""
    presets = {
        name: SimulationParameters.from_preset(name).to_wire()
        for name in SIMULATION_PRESETS
    }
    return ResponseBuilder.success(data=presets, message="Presets retrieved successfully")


@router.get("/api/worker/sessions")
async def list_sessions():
    """Active worker sessions with their performance summaries."""
    return ResponseBuilder.success(data=sessions.stats(), message="Sessions retrieved successfully")


@router.get("/api/worker/sessions/{session_id}/performance")
async def session_performance(session_id: str):
    """Buffered performance records of one session."""
    worker = sessions.get(session_id)
    if worker is None:
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
    return ResponseBuilder.success(
        data={
            "records": worker.performance_history.snapshot(),
            "summary": worker.performance_history.summary(),
        },
        message="Performance history retrieved successfully"
    )


async def _receive_messages(websocket: WebSocket, inbox: asyncio.Queue, outbox: asyncio.Queue) -> None:
    """Forward decoded text frames to the worker inbox until disconnect."""
    try:
        while True:
            raw_data = await websocket.receive_text()
            try:
                message = json.loads(raw_data)
            except json.JSONDecodeError:
                outbox.put_nowait(MessageFactory.create_error("unknown", "Invalid JSON format"))
                continue
            inbox.put_nowait(message)
    except WebSocketDisconnect:
        inbox.put_nowait(None)


async def _send_messages(websocket: WebSocket, outbox: asyncio.Queue) -> None:
    """Send worker messages until the session ends."""
    while True:
        message = await outbox.get()
        if message is None:
            break
        try:
            await websocket.send_json(message)
        except (WebSocketDisconnect, RuntimeError) as e:
            logger.warning(f"Could not deliver {message.get('type')}: {e}")
            break


async def _serve(worker: SimulationWorker, inbox: asyncio.Queue, outbox: asyncio.Queue) -> None:
    try:
        await worker.serve(inbox)
    finally:
        outbox.put_nowait(None)


@router.websocket("/ws/worker")
async def worker_websocket_endpoint(websocket: WebSocket):
    """
    WebSocket endpoint hosting one worker session per connection.
    """
    await websocket.accept()

    session_id = str(uuid.uuid4())
    inbox: asyncio.Queue = asyncio.Queue()
    outbox: asyncio.Queue = asyncio.Queue()
    worker = SimulationWorker(post=outbox.put_nowait)
    sessions.add(session_id, worker)

    serve_task = asyncio.create_task(_serve(worker, inbox, outbox))
    send_task = asyncio.create_task(_send_messages(websocket, outbox))
    receive_task = asyncio.create_task(_receive_messages(websocket, inbox, outbox))

    try:
        await serve_task
        await send_task
    finally:
        receive_task.cancel()
        sessions.remove(session_id)
        if websocket.client_state == WebSocketState.CONNECTED:
            await websocket.close()
