"""
Game Host Bridge

The operations the quiz needs from the game server, and a NATS
implementation that delegates them to the server process.

NATS Subjects (prefix defaults to "game"):
    Publish:
        <prefix>.chat.broadcast - Message to every connected player
        <prefix>.player.drop_item - Drop an item at a player's position
        <prefix>.command.execute - Run a command as admin in a player's context
    Request:
        <prefix>.player.give_item - Put an item in a player's inventory
        <prefix>.players.list - Currently connected players
"""

import asyncio
import json
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from nats.aio.client import Client as NATS
from nats.errors import Error as NATSError

# Permission level commands run at (server operator)
ADMIN_PERMISSION_LEVEL = 4


@dataclass(frozen=True)
class Participant:
    """A connected player."""

    name: str
    uuid: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional["Participant"]:
        """Build from a {"player"|"name", "uuid"} payload; None without a name."""
        name = data.get("player") or data.get("name")
        if not isinstance(name, str) or not name:
            return None
        uuid = data.get("uuid")
        return cls(name=name, uuid=uuid if isinstance(uuid, str) else "")


class GameHost(ABC):
    """
    Capabilities supplied by the game server.

    Implementations must not raise for transport problems; the quiz
    treats every call as fire-and-forget.
    """

    @abstractmethod
    async def broadcast(self, message: str) -> None:
        """Send a message to every connected player."""
        ...

    @abstractmethod
    async def give_item(self, participant: Participant, item: str, quantity: int) -> bool:
        """
        Put an item in a player's inventory.

        Returns:
            False if the inventory had no room, True otherwise
        """
        ...

    @abstractmethod
    async def drop_item(self, participant: Participant, item: str, quantity: int) -> None:
        """Drop an item in the world at the player's position."""
        ...

    @abstractmethod
    async def execute_command(self, participant: Participant, command: str) -> None:
        """Run a command with admin permission, silently, as the player."""
        ...

    @abstractmethod
    async def list_participants(self) -> List[Participant]:
        """Return currently connected players."""
        ...

    def now(self) -> float:
        """Current time in seconds."""
        return time.time()


class NatsGameHost(GameHost):
    """
    GameHost that talks to the game server over NATS.

    Args:
        nats_client: Connected NATS client
        prefix: Subject prefix the server listens on
        timeout: Seconds to wait on request/reply calls
    """

    DEFAULT_PREFIX = "game"
    DEFAULT_TIMEOUT = 2.0

    def __init__(
        self,
        nats_client: NATS,
        prefix: str = DEFAULT_PREFIX,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.nats = nats_client
        self.prefix = prefix
        self.timeout = timeout
        self.logger = logging.getLogger(f"{__name__}.NatsGameHost")

    def subject(self, name: str) -> str:
        """Full subject for a host operation."""
        return f"{self.prefix}.{name}"

    async def broadcast(self, message: str) -> None:
        await self._publish("chat.broadcast", {"message": message})

    async def give_item(self, participant: Participant, item: str, quantity: int) -> bool:
        data = await self._request("player.give_item", {
            "player": participant.name,
            "uuid": participant.uuid,
            "item": item,
            "quantity": quantity,
        })
        if data is None:
            # Unknown outcome; dropping as well could duplicate the reward
            return True
        return not data.get("inventory_full", False)

    async def drop_item(self, participant: Participant, item: str, quantity: int) -> None:
        await self._publish("player.drop_item", {
            "player": participant.name,
            "uuid": participant.uuid,
            "item": item,
            "quantity": quantity,
        })

    async def execute_command(self, participant: Participant, command: str) -> None:
        await self._publish("command.execute", {
            "command": command.lstrip("/"),
            "player": participant.name,
            "uuid": participant.uuid,
            "permission_level": ADMIN_PERMISSION_LEVEL,
            "silent": True,
        })

    async def list_participants(self) -> List[Participant]:
        data = await self._request("players.list", {})
        if data is None:
            return []

        players = data.get("players", [])
        if not isinstance(players, list):
            return []

        participants = []
        for entry in players:
            if isinstance(entry, str):
                participants.append(Participant(name=entry))
            elif isinstance(entry, dict):
                participant = Participant.from_dict(entry)
                if participant:
                    participants.append(participant)
        return participants

    async def _publish(self, name: str, payload: Dict[str, Any]) -> None:
        subject = self.subject(name)
        try:
            await self.nats.publish(subject, json.dumps(payload).encode())
        except (NATSError, OSError) as e:
            self.logger.error(f"Error publishing to {subject}: {e}")

    async def _request(self, name: str, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        subject = self.subject(name)
        try:
            response = await self.nats.request(
                subject,
                json.dumps(payload).encode(),
                timeout=self.timeout,
            )
        except (NATSError, OSError, asyncio.TimeoutError) as e:
            self.logger.error(f"Request to {subject} failed: {e}")
            return None

        try:
            data = json.loads(response.data.decode())
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            self.logger.error(f"Invalid reply from {subject}: {e}")
            return None

        return data if isinstance(data, dict) else None
