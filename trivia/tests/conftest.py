"""
Test fixtures for trivia plugin tests.
"""

import json
import random

import pytest
from unittest.mock import AsyncMock, MagicMock

from trivia.engine import QuizEngine
from trivia.generators.species import SpeciesData
from trivia.host import GameHost, Participant
from trivia.messages import Messages
from trivia.question import Difficulty, Question
from trivia.reward import Reward, RewardPool, RewardSelector


class FakeHost(GameHost):
    """GameHost that records every call and has a settable clock."""

    def __init__(self, participants=None, inventory_full=False):
        self.clock = 1000.0
        self.participants = list(participants or [])
        self.inventory_full = inventory_full
        self.broadcasts = []
        self.given = []
        self.dropped = []
        self.commands = []

    def now(self) -> float:
        return self.clock

    async def broadcast(self, message):
        self.broadcasts.append(message)

    async def give_item(self, participant, item, quantity):
        if self.inventory_full:
            return False
        self.given.append((participant.name, item, quantity))
        return True

    async def drop_item(self, participant, item, quantity):
        self.dropped.append((participant.name, item, quantity))

    async def execute_command(self, participant, command):
        self.commands.append((participant.name, command))

    async def list_participants(self):
        return list(self.participants)


@pytest.fixture
def player():
    return Participant(name="Ash", uuid="uuid-ash")


@pytest.fixture
def other_player():
    return Participant(name="Misty", uuid="uuid-misty")


@pytest.fixture
def host(player):
    return FakeHost(participants=[player])


@pytest.fixture
def rng():
    """Seeded random source for deterministic tests."""
    return random.Random(42)


@pytest.fixture
def easy_question():
    return Question(
        prompt="What is the primary type of Example?",
        answers=("fire",),
        difficulty=Difficulty.EASY,
    )


@pytest.fixture
def sample_questions(easy_question):
    """List of sample questions covering every tier."""
    return [
        easy_question,
        Question(
            prompt="Name an ability that Ninjask can have.",
            answers=("speedboost",),
            difficulty=Difficulty.MEDIUM,
        ),
        Question(
            prompt="Name the form of Yamask found in Galar.",
            answers=("Galarian Yamask",),
            difficulty=Difficulty.HARD,
        ),
    ]


@pytest.fixture
def reward_pool():
    return RewardPool({
        Difficulty.EASY: [Reward(item_name="cobblemon:poke_ball", display_name="Poke Ball", quantity=5)],
        Difficulty.MEDIUM: [Reward(display_name="Coins", command="eco give {player} 100")],
    })


@pytest.fixture
def selector(host, reward_pool, rng):
    return RewardSelector(host, reward_pool, rng=rng)


@pytest.fixture
def engine(host, selector, rng):
    return QuizEngine(host, selector, messages=Messages(), rng=rng)


@pytest.fixture
def species_data():
    """Small species dataset with forms, accents and a hidden ability."""
    species = {
        "bulbasaur": {
            "name": "Bulbasaur",
            "nationalPokedexNumber": 1,
            "primaryType": "grass",
            "secondaryType": "poison",
            "abilities": ["overgrow", "h:chlorophyll"],
            "eggGroups": ["monster", "grass"],
        },
        "ivysaur": {
            "name": "Ivysaur",
            "nationalPokedexNumber": 2,
            "primaryType": "grass",
            "secondaryType": "poison",
            "abilities": ["overgrow", "h:chlorophyll"],
            "preEvolution": "bulbasaur",
        },
        "flabebe": {
            "name": "Flabébé",
            "nationalPokedexNumber": 669,
            "primaryType": "fairy",
            "abilities": ["flowerveil", "h:symbiosis"],
        },
        "tornadus-therian": {
            "name": "Tornadus",
            "nationalPokedexNumber": 641,
            "primaryType": "flying",
            "abilities": ["regenerator"],
        },
        "ninjask": {
            "name": "Ninjask",
            "nationalPokedexNumber": 291,
            "primaryType": "bug",
            "secondaryType": "flying",
            "abilities": ["speedboost", "h:infiltrator"],
            "eggGroups": ["bug"],
            "pokedex": {"entries": [{"text": "Ninjask moves so fast it is hard to see."}]},
        },
        "missingno": {"name": "MissingNo", "implemented": False},
        "glitch": {"nationalPokedexNumber": "abc"},
    }
    lang = {
        "cobblemon.species.bulbasaur.name": "Bulbasaur",
        "cobblemon.species.bulbasaur.desc": "A strange seed was planted on Bulbasaur's back at birth.",
        "cobblemon.species.ivysaur.name": "Ivysaur",
        "cobblemon.species.ivysaur.desc": "Pokémon research: ecology under research.",
        "cobblemon.species.flabebe.name": "Flabébé",
        "cobblemon.species.flabebe.desc": "FLABÉBÉ cares for its flower. Flabebe never lets go.",
        "cobblemon.species.tornadus.name": "Tornadus",
        "cobblemon.species.nidoranm.name": "Nidoran♂",
        "cobblemon.species.nidoranm.desc": "Nidoran♂ raises its ears. Nidoran is wary.",
        "cobblemon.ability.overgrow": "Overgrow",
        "cobblemon.ability.overgrow.desc": "Powers up Grass-type moves in a pinch.",
        "cobblemon.ability.chlorophyll": "Chlorophyll",
        "cobblemon.ability.speedboost": "Speed Boost",
        "cobblemon.ability.flowerveil": "Flower Veil",
    }
    return SpeciesData.from_dicts(species, lang)


@pytest.fixture
def mock_nats():
    """Mock NATS client."""
    nats = AsyncMock()
    nats.subscribe = AsyncMock(return_value=MagicMock(unsubscribe=AsyncMock()))
    nats.publish = AsyncMock()

    mock_response = MagicMock()
    mock_response.data = json.dumps({"success": True, "players": ["Ash"]}).encode()
    nats.request.return_value = mock_response

    return nats


@pytest.fixture
def content_dir(tmp_path):
    """Config directory with question, reward and message files."""
    (tmp_path / "questions.json").write_text(json.dumps({
        "easy": [{"question": "What is the primary type of Example?", "answers": ["fire"]}],
    }), encoding="utf-8")
    (tmp_path / "rewards.json").write_text(json.dumps({
        "easy": [{"item_name": "cobblemon:poke_ball", "display_name": "Poke Ball"}],
    }), encoding="utf-8")
    (tmp_path / "messages.json").write_text(json.dumps({
        "trivia.ask_question": "Q: {question}",
    }), encoding="utf-8")
    return tmp_path


@pytest.fixture
def plugin_config(content_dir):
    """Plugin configuration for tests."""
    return {
        "quiz_interval": 5,
        "quiz_timeout": 5,
        "check_interval": 60,
        "start_immediately": False,
        "config_dir": str(content_dir),
        "install_defaults": False,
        "emit_events": True,
        "seed": 7,
    }
