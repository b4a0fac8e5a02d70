"""Session coordinator: the join/signal/leave state machine for each connection."""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Optional
from uuid import uuid4

from pydantic import ValidationError

from ..schemas.signaling import (
    INBOUND_MESSAGES,
    InboundMessage,
    JoinedMessage,
    JoinMessage,
    LeaveMessage,
    PeerJoinedMessage,
    PeerLeftMessage,
    RelayedSignalMessage,
    RoomFullMessage,
    SignalMessage,
    StartNegotiationMessage,
)
from .registry import ROOM_CAPACITY, Participant, RoomFullError, RoomRegistry, SignalingConnection
from .router import MessageRouter

logger = logging.getLogger(__name__)


class MalformedMessageError(ValueError):
    """Raised when an inbound frame cannot be decoded into a known message."""


def decode_frame(data: str | bytes) -> dict[str, Any]:
    """Decode one UTF-8 JSON frame into a message object."""

    if isinstance(data, bytes):
        try:
            data = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedMessageError("Frame is not valid UTF-8") from exc
    try:
        message = json.loads(data)
    except json.JSONDecodeError as exc:
        raise MalformedMessageError(f"Invalid JSON: {exc.msg}") from exc
    except RecursionError as exc:
        raise MalformedMessageError("JSON nesting is too deep") from exc
    if not isinstance(message, dict):
        raise MalformedMessageError("Frame must be a JSON object")
    return message


def parse_message(message: dict[str, Any]) -> Optional[InboundMessage]:
    """Validate a decoded message; returns None for types this relay does not handle."""

    message_type = message.get("type")
    if not isinstance(message_type, str):
        raise MalformedMessageError("Message is missing a string 'type'")
    model = INBOUND_MESSAGES.get(message_type)
    if model is None:
        return None
    try:
        return model.model_validate(message)
    except ValidationError as exc:
        raise MalformedMessageError(f"Invalid {message_type!r} message: {exc.error_count()} error(s)") from exc


class SessionCoordinator:
    """Apply inbound events to the registry and fan out the resulting notifications.

    Every event runs to completion under one lock, so membership changes and the
    notifications they trigger are never interleaved with another event.
    """

    def __init__(self, registry: RoomRegistry | None = None, send_timeout: Optional[float] = None) -> None:
        self.registry = registry if registry is not None else RoomRegistry()
        self.router = MessageRouter(self.registry, send_timeout=send_timeout)
        self._participants: Dict[str, Participant] = {}
        self._lock = asyncio.Lock()

    def participant(self, identity: str) -> Optional[Participant]:
        return self._participants.get(identity)

    @property
    def participant_count(self) -> int:
        return len(self._participants)

    async def connect(self, connection: SignalingConnection) -> Participant:
        """Register a new connection and return its participant record."""

        async with self._lock:
            identity = uuid4().hex
            participant = Participant(identity=identity, connection=connection)
            self._participants[identity] = participant
        logger.debug("Participant %s connected", identity)
        return participant

    async def handle_frame(self, identity: str, data: str | bytes) -> None:
        """Handle one raw frame from the transport."""

        try:
            message = decode_frame(data)
        except MalformedMessageError as exc:
            logger.warning("Ignoring malformed frame from %s: %s", identity, exc)
            return
        await self.handle_message(identity, message)

    async def handle_message(self, identity: str, message: dict[str, Any]) -> None:
        """Validate and dispatch one decoded message."""

        try:
            parsed = parse_message(message)
        except MalformedMessageError as exc:
            logger.warning("Ignoring malformed message from %s: %s", identity, exc)
            return
        if parsed is None:
            logger.debug("Ignoring unrecognized message type %r from %s", message.get("type"), identity)
            return

        async with self._lock:
            participant = self._participants.get(identity)
            if participant is None:
                logger.debug("Message from unknown participant %s", identity)
                return
            if isinstance(parsed, JoinMessage):
                await self._join(participant, parsed.room)
            elif isinstance(parsed, SignalMessage):
                await self._signal(participant, parsed.room, parsed.payload)
            elif isinstance(parsed, LeaveMessage):
                await self._leave(participant, parsed.room)

    async def disconnect(self, identity: str) -> None:
        """Run the disconnect transition and forget the participant."""

        async with self._lock:
            participant = self._participants.pop(identity, None)
            if participant is None:
                return
            room = participant.room
            if room is not None:
                self.registry.remove_occupant(room, participant)
                logger.info("Participant %s disconnected from room %s", identity, room)
                await self.router.notify_others(room, participant, PeerLeftMessage(room=room).to_wire())
            else:
                logger.debug("Participant %s disconnected", identity)

    async def _join(self, participant: Participant, room: str) -> None:
        if participant.in_room:
            logger.debug(
                "Participant %s already in room %s, ignoring join for %s", participant.identity, participant.room, room
            )
            return

        try:
            role = self.registry.add_occupant(room, participant)
        except RoomFullError:
            logger.info("Room %s is full, rejecting %s", room, participant.identity)
            await self.router.send_to(participant, RoomFullMessage(room=room).to_wire())
            return

        logger.info("Participant %s joined room %s as %s", participant.identity, room, role.value)
        await self.router.send_to(participant, JoinedMessage(room=room, role=role).to_wire())
        await self.router.notify_others(room, participant, PeerJoinedMessage(room=room).to_wire())

        occupants = self.registry.occupants_of(room)
        if len(occupants) == ROOM_CAPACITY:
            initiator = occupants[0]
            await self.router.send_to(initiator, StartNegotiationMessage(room=room).to_wire())

    async def _signal(self, participant: Participant, room: str, payload: Any) -> None:
        if participant.room != room:
            logger.debug("Stale signal from %s for room %s", participant.identity, room)
            return
        try:
            message = RelayedSignalMessage(payload=payload).to_wire()
        except (ValueError, RecursionError):
            logger.warning(
                "Dropping unserializable signal from %s in room %s", participant.identity, room, exc_info=True
            )
            return
        await self.router.deliver(room, participant, message)

    async def _leave(self, participant: Participant, room: str) -> None:
        if participant.room != room:
            logger.debug("Stale leave from %s for room %s", participant.identity, room)
            return
        self.registry.remove_occupant(room, participant)
        logger.info("Participant %s left room %s", participant.identity, room)
        await self.router.notify_others(room, participant, PeerLeftMessage(room=room).to_wire())
