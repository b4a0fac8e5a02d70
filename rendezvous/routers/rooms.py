"""Read-only room occupancy endpoints."""
from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from ..schemas.signaling import RoomListResponse, RoomOccupancy
from ..services.coordinator import SessionCoordinator
from ..services.registry import ROOM_CAPACITY

router = APIRouter()


def _coordinator(request: Request) -> SessionCoordinator:
    return request.app.state.coordinator


@router.get("/rooms", response_model=RoomListResponse)
async def list_rooms(request: Request) -> RoomListResponse:
    """Return occupant counts for every live room."""

    return RoomListResponse(rooms=_coordinator(request).registry.rooms())


@router.get("/rooms/{room}", response_model=RoomOccupancy)
async def get_room(room: str, request: Request) -> RoomOccupancy:
    """Return the occupancy of a single room."""

    occupants = len(_coordinator(request).registry.occupants_of(room))
    if not occupants:
        raise HTTPException(status_code=404, detail="Room not found")
    return RoomOccupancy(room=room, occupants=occupants, full=occupants >= ROOM_CAPACITY)
