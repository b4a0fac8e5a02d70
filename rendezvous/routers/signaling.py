"""Websocket transport for the signaling relay."""
from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from fastapi.websockets import WebSocketState

from ..services.coordinator import SessionCoordinator
from ..services.registry import SignalingConnection

logger = logging.getLogger(__name__)

router = APIRouter()


def _connection_for(websocket: WebSocket) -> SignalingConnection:
    def is_open() -> bool:
        return (
            websocket.client_state == WebSocketState.CONNECTED
            and websocket.application_state == WebSocketState.CONNECTED
        )

    return SignalingConnection(send=websocket.send_json, is_open=is_open)


@router.websocket("/")
@router.websocket("/ws")
async def signaling_endpoint(websocket: WebSocket) -> None:
    """Relay join/signal/leave frames between the two occupants of a room."""

    coordinator: SessionCoordinator = websocket.app.state.coordinator
    await websocket.accept()
    participant = await coordinator.connect(_connection_for(websocket))

    try:
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                break
            data = frame.get("text")
            if data is None:
                data = frame.get("bytes")
            if data is None:
                continue
            await coordinator.handle_frame(participant.identity, data)
    except WebSocketDisconnect:
        pass
    except Exception:  # noqa: BLE001 - transport failures are handled as a disconnect
        logger.exception("Signaling connection %s failed", participant.identity)
    finally:
        await coordinator.disconnect(participant.identity)
