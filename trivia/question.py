"""
Trivia Question Models

Data models for quiz questions and difficulty tiers.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence, Tuple


class Difficulty(Enum):
    """Question difficulty tier. Selects the reward pool."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @property
    def display(self) -> str:
        """Human readable tier name."""
        return DIFFICULTY_DISPLAY[self]

    @classmethod
    def parse(cls, label: object) -> Optional["Difficulty"]:
        """
        Look up a tier by its config label.

        Args:
            label: Label such as "easy" or " Hard "

        Returns:
            Matching Difficulty, or None for unknown labels
        """
        if not isinstance(label, str):
            return None
        try:
            return cls(label.strip().lower())
        except ValueError:
            return None


DIFFICULTY_DISPLAY = {
    Difficulty.EASY: "Easy",
    Difficulty.MEDIUM: "Medium",
    Difficulty.HARD: "Hard",
}


def _clean_answers(answers: Sequence[str]) -> Tuple[str, ...]:
    seen = []
    for answer in answers:
        if not isinstance(answer, str):
            continue
        cleaned = answer.lower().strip()
        if cleaned and cleaned not in seen:
            seen.append(cleaned)
    return tuple(seen)


@dataclass(frozen=True)
class Question:
    """
    Represents a trivia question.

    Answers are lower-cased, trimmed and deduplicated at construction.
    Matching applies the stronger normalization in trivia.normalize.

    Attributes:
        prompt: Question text shown to every player
        answers: Accepted answers
        difficulty: Tier used to pick the reward pool
    """

    prompt: str
    answers: Tuple[str, ...]
    difficulty: Difficulty
    source: str = field(default="config", compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.prompt, str) or not self.prompt.strip():
            raise ValueError("Question prompt must be a non-empty string")
        if not isinstance(self.difficulty, Difficulty):
            raise ValueError(f"Unknown difficulty: {self.difficulty!r}")

        answers = _clean_answers(self.answers)
        if not answers:
            raise ValueError(f"Question has no answers: {self.prompt!r}")

        object.__setattr__(self, "prompt", self.prompt.strip())
        object.__setattr__(self, "answers", answers)

    def format_answers(self, separator: str = ", ") -> str:
        """Join accepted answers for display."""
        return separator.join(self.answers)
