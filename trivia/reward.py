"""
Trivia Rewards

Reward definitions, per-difficulty reward pools and the selector
that grants a random reward to the winner.
"""

import logging
import random
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .content import LoadResult
from .host import GameHost, Participant
from .question import Difficulty

logger = logging.getLogger(__name__)

# Placeholder tokens in reward commands
NAME_PLACEHOLDERS = ("%player%", "{player}", "@p")
UUID_PLACEHOLDER = "%uuid%"


def parse_quantity(value: Any) -> int:
    """
    Read an item quantity, accepting 2, 2.0 and "2" alike.

    Anything that is not a positive whole number becomes 1.
    """
    if isinstance(value, bool):
        return 1
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    elif isinstance(value, str) and value.strip().isdecimal():
        value = int(value.strip())
    if not isinstance(value, int) or value <= 0:
        return 1
    return value


def apply_placeholders(command: str, participant: Participant) -> str:
    """
    Substitute player tokens in a reward command.

    %player%, {player} and the legacy @p become the player name;
    %uuid% becomes the player's unique id.
    """
    if not command:
        return ""
    for token in NAME_PLACEHOLDERS:
        command = command.replace(token, participant.name)
    return command.replace(UUID_PLACEHOLDER, participant.uuid)


@dataclass(frozen=True)
class Reward:
    """
    A prize granted to a quiz winner.

    Attributes:
        item_name: Item identifier, empty for command-only rewards
        display_name: Name shown in the win announcement
        quantity: Number of items (at least 1)
        command: Command template run on the winner's behalf
    """

    item_name: str = ""
    display_name: str = ""
    quantity: int = 1
    command: str = ""

    @property
    def has_item(self) -> bool:
        return bool(self.item_name.strip())

    @property
    def has_command(self) -> bool:
        return bool(self.command.strip())

    @property
    def is_valid(self) -> bool:
        """A reward must grant an item, run a command, or both."""
        return self.has_item or self.has_command

    @property
    def label(self) -> str:
        """Name for announcements."""
        return self.display_name or self.item_name

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Reward":
        """
        Parse a rewards file entry. Missing fields take defaults.

        Raises:
            ValueError: If the entry is not an object
        """
        if not isinstance(data, Mapping):
            raise ValueError("entry is not an object")

        def text(key: str) -> str:
            value = data.get(key)
            return value.strip() if isinstance(value, str) else ""

        return cls(
            item_name=text("item_name"),
            display_name=text("display_name"),
            quantity=parse_quantity(data.get("quantity", 1)),
            command=text("command"),
        )


class RewardPool:
    """
    Rewards grouped by difficulty.

    Built once from configuration and replaced as a whole on reload.
    """

    def __init__(self, rewards: Optional[Mapping[Difficulty, List[Reward]]] = None):
        self._rewards: Dict[Difficulty, Tuple[Reward, ...]] = {
            difficulty: tuple(items)
            for difficulty, items in (rewards or {}).items()
            if items
        }

    def get(self, difficulty: Difficulty) -> Tuple[Reward, ...]:
        """Rewards for a tier, empty if none are configured."""
        return self._rewards.get(difficulty, ())

    def counts(self) -> Dict[str, int]:
        return {d.value: len(items) for d, items in self._rewards.items()}

    def __len__(self) -> int:
        return sum(len(items) for items in self._rewards.values())

    @classmethod
    def from_config(cls, data: Any, source: str = "rewards") -> Tuple["RewardPool", LoadResult[Reward]]:
        """
        Build a pool from a parsed rewards file.

        Expected shape:
            {"easy": [{"item_name": "...", "display_name": "...",
                       "quantity": 1, "command": "..."}], ...}

        Returns:
            (pool, load result listing accepted and skipped entries)
        """
        result: LoadResult[Reward] = LoadResult()
        grouped: Dict[Difficulty, List[Reward]] = {}

        if not isinstance(data, dict):
            result.skip("document is not an object keyed by difficulty", source)
            return cls(), result

        for label, entries in data.items():
            difficulty = Difficulty.parse(label)
            if difficulty is None:
                result.skip(f"unknown difficulty '{label}'", f"{source}.{label}")
                continue
            if not isinstance(entries, list):
                result.skip("difficulty group is not a list", f"{source}.{label}")
                continue

            for index, raw in enumerate(entries):
                record_id = f"{source}.{label}[{index}]"
                try:
                    reward = Reward.from_dict(raw)
                except ValueError as e:
                    result.skip(str(e), record_id)
                    continue

                if not reward.is_valid:
                    result.skip("reward has neither an item nor a command", record_id)
                    continue

                grouped.setdefault(difficulty, []).append(reward)
                result.items.append(reward)

        return cls(grouped), result


class RewardSelector:
    """
    Picks and grants rewards.

    Args:
        host: Game host used to grant items and run commands
        pool: Initial reward pool
        rng: Random source; seed it for deterministic selection
    """

    def __init__(
        self,
        host: GameHost,
        pool: Optional[RewardPool] = None,
        rng: Optional[random.Random] = None,
    ):
        self.host = host
        self.pool = pool or RewardPool()
        self.rng = rng or random.Random()

    def replace_pool(self, pool: RewardPool) -> None:
        """Swap in a freshly loaded pool."""
        self.pool = pool
        logger.info(f"Reward pool replaced: {pool.counts()}")

    def choose(self, difficulty: Difficulty) -> Optional[Reward]:
        """Pick a reward for a tier without granting it."""
        rewards = self.pool.get(difficulty)
        if not rewards:
            return None
        return self.rng.choice(rewards)

    async def give_reward(self, participant: Participant, difficulty: Difficulty) -> Optional[Reward]:
        """
        Pick a reward for the tier and grant it to the player.

        The command (if any) runs first, then the item goes to the
        inventory, falling back to a world drop when it is full.

        Returns:
            The granted reward, or None if the tier has no rewards
        """
        reward = self.choose(difficulty)
        if reward is None:
            logger.warning(f"No rewards configured for difficulty '{difficulty.value}'")
            return None

        if reward.has_command:
            await self.host.execute_command(participant, apply_placeholders(reward.command, participant))

        if reward.has_item:
            accepted = await self.host.give_item(participant, reward.item_name, reward.quantity)
            if not accepted:
                logger.info(f"Inventory full for {participant.name}, dropping {reward.item_name}")
                await self.host.drop_item(participant, reward.item_name, reward.quantity)

        return reward
