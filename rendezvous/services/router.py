"""Best-effort delivery between room occupants."""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

from .registry import Participant, RoomRegistry

logger = logging.getLogger(__name__)


class MessageRouter:
    """Deliver messages to room peers, dropping anything that cannot be sent.

    Sends run while the coordinator holds its event lock, which keeps every
    recipient's notifications in event order. ``send_timeout`` bounds how long a
    peer that stopped reading can hold that lock.
    """

    def __init__(self, registry: RoomRegistry, send_timeout: Optional[float] = None) -> None:
        self._registry = registry
        self._send_timeout = send_timeout

    async def send_to(self, participant: Participant, message: dict) -> bool:
        """Send ``message`` to one participant; returns False if it was dropped."""

        if not participant.connection.is_open():
            logger.debug("Dropping %s for closed participant %s", message.get("type"), participant.identity)
            return False
        try:
            await asyncio.wait_for(participant.connection.send(message), timeout=self._send_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Timed out after %ss delivering %s to participant %s",
                self._send_timeout,
                message.get("type"),
                participant.identity,
            )
            return False
        except Exception:  # noqa: BLE001 - a dead peer must not affect the sender
            logger.warning(
                "Failed delivering %s to participant %s", message.get("type"), participant.identity, exc_info=True
            )
            return False
        return True

    async def deliver(self, room: str, sender: Participant, message: dict) -> bool:
        """Send ``message`` to the other occupant of ``room``, if there is one."""

        other = self._registry.other_occupant(room, sender)
        if other is None:
            logger.debug("No peer in room %s for %s from %s", room, message.get("type"), sender.identity)
            return False
        return await self.send_to(other, message)

    async def notify_others(self, room: str, sender: Participant, message: dict) -> int:
        """Send ``message`` to every occupant except ``sender``; returns the delivered count."""

        recipients = [occupant for occupant in self._registry.occupants_of(room) if occupant is not sender]
        delivered = 0
        for occupant in recipients:
            if await self.send_to(occupant, message):
                delivered += 1
        return delivered
