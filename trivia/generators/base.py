"""
Base Question Generator Interface

Abstract base class for batch question generators.
"""

import logging
import random
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from ..question import Difficulty, Question
from .species import SpeciesData

logger = logging.getLogger(__name__)


def cap_and_shuffle(questions: List[Question], cap: int, rng: random.Random) -> List[Question]:
    """
    Shuffle a batch in place and keep at most `cap` of it.

    A cap of 0 keeps everything.
    """
    rng.shuffle(questions)
    if cap > 0:
        return questions[:cap]
    return questions


def cap_per_tier(questions: List[Question], cap: int, rng: random.Random) -> List[Question]:
    """Group by difficulty, shuffle and cap each tier, then merge easy to hard."""
    tiers: Dict[Difficulty, List[Question]] = {d: [] for d in Difficulty}
    for question in questions:
        tiers[question.difficulty].append(question)

    out = []
    for difficulty in Difficulty:
        out.extend(cap_and_shuffle(tiers[difficulty], cap, rng))
    return out


class QuestionGenerator(ABC):
    """
    Base class for question generators.

    Generators derive questions from species data. They never raise
    for bad records; those are skipped.
    """

    #: Name used in config and log messages
    name: str = "generator"

    def __init__(self, cap: int = 0, rng: Optional[random.Random] = None):
        """
        Args:
            cap: Maximum questions per difficulty tier (0 for no limit)
            rng: Random source for shuffling
        """
        self.cap = cap
        self.rng = rng or random.Random()

    @abstractmethod
    def generate(self, data: SpeciesData) -> List[Question]:
        """
        Build a batch of questions.

        Args:
            data: Loaded species records and localisation table

        Returns:
            Shuffled, capped questions
        """
        ...

    def summarize(self, questions: List[Question]) -> None:
        counts = {d.value: 0 for d in Difficulty}
        for question in questions:
            counts[question.difficulty.value] += 1
        logger.info(f"Generated {len(questions)} {self.name} questions: {counts}")
