"""
Trivia Plugin Configuration

Typed view of the plugin's config dict.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

DEFAULT_GENERATOR_CAP = 600
GENERATOR_NAMES = ("dex_entry", "scramble", "auto")


@dataclass
class GeneratorConfig:
    """Settings for one question generator."""

    enabled: bool = True
    cap: int = DEFAULT_GENERATOR_CAP


@dataclass
class TriviaConfig:
    """
    Configuration for the trivia plugin.

    Attributes:
        quiz_interval: Idle seconds between quizzes
        quiz_timeout: Seconds of online time a question stays open
        check_interval: Seconds between scheduler ticks
        start_immediately: Ask as soon as players are online after startup
        require_participants: Pause timers while nobody is online
        config_dir: Directory holding the content files
        questions_file: Static question file (relative to config_dir)
        rewards_file: Rewards file (relative to config_dir)
        messages_file: Message template overrides (relative to config_dir)
        install_defaults: Create missing content files from built-in defaults
        species_dir: Directory of species JSON files, None to skip generators
        lang_file: Localisation table with species names and descriptions
        generators: Per-generator settings
        answer_separator: Separator for listing accepted answers
        emit_events: Publish trivia.quiz.* events
        host_subject_prefix: NATS subject prefix of the game server
        command_prefix: NATS subject prefix of the chat bot routing !trivia commands
        host_timeout: Seconds to wait on game server requests
        seed: Seed for the shared random source
    """

    quiz_interval: float = 300.0
    quiz_timeout: float = 60.0
    check_interval: float = 1.0
    start_immediately: bool = True
    require_participants: bool = True
    config_dir: str = "config/trivia"
    questions_file: str = "questions.json"
    rewards_file: str = "rewards.json"
    messages_file: str = "messages.json"
    install_defaults: bool = True
    species_dir: Optional[str] = None
    lang_file: Optional[str] = None
    generators: Dict[str, GeneratorConfig] = field(
        default_factory=lambda: {name: GeneratorConfig() for name in GENERATOR_NAMES}
    )
    answer_separator: str = ", "
    emit_events: bool = True
    host_subject_prefix: str = "game"
    command_prefix: str = "bot"
    host_timeout: float = 2.0
    seed: Optional[int] = None

    def path(self, name: str) -> Path:
        """Resolve a content file against config_dir."""
        return Path(self.config_dir) / name

    def generator(self, name: str) -> GeneratorConfig:
        return self.generators.get(name, GeneratorConfig())

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "TriviaConfig":
        """
        Build a config from a plugin config dict.

        Unknown keys are ignored; missing keys take defaults.

        Raises:
            ValueError: If an option has the wrong type or range
        """
        data = dict(data or {})
        config = cls()

        for name in ("quiz_interval", "quiz_timeout", "check_interval", "host_timeout"):
            if name in data:
                value = data[name]
                if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                    raise ValueError(f"{name} must be a positive number, got {value!r}")
                setattr(config, name, float(value))

        for name in ("start_immediately", "require_participants", "install_defaults", "emit_events"):
            if name in data:
                if not isinstance(data[name], bool):
                    raise ValueError(f"{name} must be true or false, got {data[name]!r}")
                setattr(config, name, data[name])

        for name in ("config_dir", "questions_file", "rewards_file", "messages_file",
                     "answer_separator", "host_subject_prefix", "command_prefix"):
            if name in data:
                if not isinstance(data[name], str):
                    raise ValueError(f"{name} must be a string, got {data[name]!r}")
                setattr(config, name, data[name])

        for name in ("species_dir", "lang_file"):
            if data.get(name) is not None:
                if not isinstance(data[name], str):
                    raise ValueError(f"{name} must be a string, got {data[name]!r}")
                setattr(config, name, data[name])

        if data.get("seed") is not None:
            if isinstance(data["seed"], bool) or not isinstance(data["seed"], int):
                raise ValueError(f"seed must be an integer, got {data['seed']!r}")
            config.seed = data["seed"]

        generators = data.get("generators", {})
        if not isinstance(generators, dict):
            raise ValueError("generators must be a mapping")
        for name, options in generators.items():
            if not isinstance(options, dict):
                raise ValueError(f"generators.{name} must be a mapping")
            current = config.generator(name)
            enabled = options.get("enabled", current.enabled)
            cap = options.get("cap", current.cap)
            if not isinstance(enabled, bool):
                raise ValueError(f"generators.{name}.enabled must be true or false")
            if isinstance(cap, bool) or not isinstance(cap, int) or cap < 0:
                raise ValueError(f"generators.{name}.cap must be a non-negative integer")
            config.generators[name] = GeneratorConfig(enabled=enabled, cap=cap)

        return config
