"""Wire contracts for the signaling websocket."""
from __future__ import annotations

import enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class Role(str, enum.Enum):
    UNASSIGNED = "unassigned"
    INITIATOR = "initiator"
    RESPONDER = "responder"


class InboundMessage(BaseModel):
    """Base for client frames; unknown extra keys are tolerated."""

    model_config = ConfigDict(extra="ignore")


class JoinMessage(InboundMessage):
    type: Literal["join"]
    room: str = Field(..., min_length=1, description="Room name to join")


class SignalMessage(InboundMessage):
    type: Literal["signal"]
    room: str = Field(..., min_length=1)
    payload: Any = Field(..., description="Opaque negotiation payload, relayed verbatim")


class LeaveMessage(InboundMessage):
    type: Literal["leave"]
    room: str = Field(..., min_length=1)


INBOUND_MESSAGES: dict[str, type[InboundMessage]] = {
    "join": JoinMessage,
    "signal": SignalMessage,
    "leave": LeaveMessage,
}


class OutboundMessage(BaseModel):
    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class JoinedMessage(OutboundMessage):
    type: Literal["joined"] = "joined"
    room: str
    role: Literal[Role.INITIATOR, Role.RESPONDER]


class RoomFullMessage(OutboundMessage):
    type: Literal["room_full"] = "room_full"
    room: str


class PeerJoinedMessage(OutboundMessage):
    type: Literal["peer_joined"] = "peer_joined"
    room: str


class StartNegotiationMessage(OutboundMessage):
    type: Literal["start_negotiation"] = "start_negotiation"
    room: str


class RelayedSignalMessage(OutboundMessage):
    type: Literal["signal"] = "signal"
    payload: Any = None


class PeerLeftMessage(OutboundMessage):
    type: Literal["peer_left"] = "peer_left"
    room: str


class RoomOccupancy(BaseModel):
    room: str
    occupants: int = Field(..., ge=0, le=2)
    full: bool


class RoomListResponse(BaseModel):
    rooms: dict[str, int] = Field(default_factory=dict, description="Room name to occupant count")
