"""
Name Scramble Question Generator

Shuffles the letters of a species name and asks players to
unscramble it. Longer names are harder.
"""

import random
import re
from typing import Dict, Iterable, List, Optional

from ..normalize import answers_match, strip_accents
from ..question import Difficulty, Question
from .base import QuestionGenerator, cap_per_tier
from .species import SpeciesData

MIN_NAME_LENGTH = 4
MAX_SHUFFLE_ATTEMPTS = 15

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def scramble_key(name: str) -> str:
    """Lower-case letters and digits of a name, accents removed."""
    if not name:
        return ""
    return _NON_ALNUM.sub("", strip_accents(name).lower())


def difficulty_for_length(length: int) -> Difficulty:
    if length <= 6:
        return Difficulty.EASY
    if length <= 9:
        return Difficulty.MEDIUM
    return Difficulty.HARD


def scramble_different(
    text: str, rng: random.Random, answers: Iterable[str] = ()
) -> Optional[str]:
    """
    Shuffle the characters of text into a different string.

    Args:
        text: Letters to shuffle
        rng: Random source
        answers: Accepted answers the result must not match, so that
            "mrmime" never comes out as the winning "mimemr"

    Returns:
        A permutation that differs from text and matches no answer, or
        None if the text is too short or no such permutation turned up
    """
    answers = list(answers)
    if not text or len(text) < MIN_NAME_LENGTH:
        return None

    letters = list(text)
    for _ in range(MAX_SHUFFLE_ATTEMPTS):
        rng.shuffle(letters)
        scrambled = "".join(letters)
        if scrambled == text:
            continue
        if any(answers_match(scrambled, answer) for answer in answers):
            continue
        return scrambled
    return None


class ScrambleGenerator(QuestionGenerator):
    """Unscramble-the-name questions."""

    name = "scramble"
    PROMPT = "Unscramble this Pokemon name: {scrambled}"

    def generate(self, data: SpeciesData) -> List[Question]:
        names: Dict[str, str] = dict(data.lang.names)
        for species_id, record in data.records.items():
            if species_id not in names and record.name:
                names[species_id] = record.name

        # One entry per distinct spelling so forms do not repeat
        unique: Dict[str, tuple] = {}
        for species_id in sorted(names):
            display = names[species_id]
            key = scramble_key(display)
            if len(key) < MIN_NAME_LENGTH or key in unique:
                continue
            unique[key] = (species_id, display)

        entries = list(unique.items())
        self.rng.shuffle(entries)

        questions = []
        for key, (species_id, display) in entries:
            answers = (display.lower(), species_id.lower())
            scrambled = scramble_different(key, self.rng, answers)
            if scrambled is None:
                continue

            questions.append(Question(
                prompt=self.PROMPT.format(scrambled=scrambled),
                answers=answers,
                difficulty=difficulty_for_length(len(key)),
                source=self.name,
            ))

        questions = cap_per_tier(questions, self.cap, self.rng)
        self.summarize(questions)
        return questions
