"""In-memory room registry for two-party rendezvous."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, Optional

from ..schemas.signaling import Role

ROOM_CAPACITY = 2

SendCallable = Callable[[dict], Awaitable[None]]


def _always_open() -> bool:
    return True


@dataclass(slots=True)
class SignalingConnection:
    """Connection wrapper for signaling participants."""

    send: SendCallable
    is_open: Callable[[], bool] = _always_open


@dataclass(slots=True, eq=False)
class Participant:
    """Per-connection session record; identity is the only key the transport holds."""

    identity: str
    connection: SignalingConnection
    room: Optional[str] = None
    role: Role = Role.UNASSIGNED

    @property
    def in_room(self) -> bool:
        return self.room is not None

    def reset(self) -> None:
        self.room = None
        self.role = Role.UNASSIGNED


@dataclass(slots=True)
class Room:
    name: str
    occupants: list[Participant] = field(default_factory=list)

    @property
    def is_full(self) -> bool:
        return len(self.occupants) >= ROOM_CAPACITY


class RoomFullError(Exception):
    """Raised when a participant tries to join a room that already has two occupants."""

    def __init__(self, room: str) -> None:
        super().__init__(f"Room {room!r} is full")
        self.room = room


class RoomRegistry:
    """Map room names to their occupants; the only place membership changes.

    The registry is not locked itself. Callers serialize access per event
    (see ``SessionCoordinator``) so that a join, its role assignment and the
    resulting notifications are observed together.
    """

    def __init__(self) -> None:
        self._rooms: Dict[str, Room] = {}

    def __len__(self) -> int:
        return len(self._rooms)

    def __contains__(self, name: object) -> bool:
        return name in self._rooms

    def ensure_room(self, name: str) -> Room:
        """Return the room for ``name``, creating an empty one if needed."""

        room = self._rooms.get(name)
        if room is None:
            room = self._rooms[name] = Room(name=name)
        return room

    def add_occupant(self, name: str, participant: Participant) -> Role:
        """Append ``participant`` and assign its role by arrival order."""

        room = self.ensure_room(name)
        if room.is_full:
            raise RoomFullError(name)

        room.occupants.append(participant)
        participant.room = name
        participant.role = Role.INITIATOR if len(room.occupants) == 1 else Role.RESPONDER
        return participant.role

    def remove_occupant(self, name: str, participant: Participant) -> None:
        """Remove ``participant`` from ``name``; a no-op if either is unknown."""

        room = self._rooms.get(name)
        if room is not None:
            room.occupants = [occupant for occupant in room.occupants if occupant is not participant]
            if not room.occupants:
                self._rooms.pop(name, None)
        if participant.room == name:
            participant.reset()

    def other_occupant(self, name: str, participant: Participant) -> Optional[Participant]:
        for occupant in self.occupants_of(name):
            if occupant is not participant:
                return occupant
        return None

    def occupants_of(self, name: str) -> tuple[Participant, ...]:
        """Snapshot of the room's occupants in join order."""

        room = self._rooms.get(name)
        if room is None:
            return ()
        return tuple(room.occupants)

    def rooms(self) -> dict[str, int]:
        """Occupant count per live room."""

        return {name: len(room.occupants) for name, room in self._rooms.items()}
