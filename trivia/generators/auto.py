"""
Attribute Question Generator

Builds lookup questions from species records:

    easy   - primary / secondary type
    medium - dex number, egg group, pre-evolution
    hard   - ability, species from dex number (reverse lookup)
"""

import re
from typing import Dict, List, Tuple

from ..normalize import HIDDEN_FLAG_PREFIX
from ..question import Difficulty, Question
from .base import QuestionGenerator, cap_per_tier
from .species import SpeciesData, SpeciesRecord, base_species_id

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_SEPARATORS = re.compile(r"[_\-]+")


def split_phrase(identifier: str) -> str:
    """
    Turn an identifier into words: "speed_boost" / "speedBoost" -> "speed boost".

    Plain lower-case run-together ids are returned as they are.
    """
    text = _CAMEL_BOUNDARY.sub(" ", identifier)
    text = _SEPARATORS.sub(" ", text)
    return " ".join(text.lower().split())


def strip_hidden_flag(ability: str) -> str:
    if ability.startswith(HIDDEN_FLAG_PREFIX):
        return ability[len(HIDDEN_FLAG_PREFIX):].strip()
    return ability


class AutoQuestionGenerator(QuestionGenerator):
    """Direct and reverse attribute lookups over species records."""

    name = "auto"

    def generate(self, data: SpeciesData) -> List[Question]:
        # prompt -> (difficulty, answers); repeated prompts merge their answers
        collected: Dict[str, Tuple[Difficulty, List[str]]] = {}

        def add(prompt: str, answers: List[str], difficulty: Difficulty) -> None:
            answers = [a for a in answers if a]
            if not answers:
                return
            if prompt in collected:
                existing = collected[prompt][1]
                existing.extend(a for a in answers if a not in existing)
            else:
                collected[prompt] = (difficulty, list(answers))

        by_dex_number: Dict[int, List[str]] = {}

        for species_id in sorted(data.records):
            record = data.records[species_id]
            display = data.display_name(species_id)
            base_name = data.base_name(species_id)

            if record.primary_type:
                add(f"What is the primary type of {base_name}?", [record.primary_type], Difficulty.EASY)
            if record.secondary_type:
                add(f"What is the secondary type of {base_name}?", [record.secondary_type], Difficulty.EASY)

            if record.dex_number is not None:
                add(
                    f"What is the National Pokedex number of {display}?",
                    [str(record.dex_number)],
                    Difficulty.MEDIUM,
                )
                names = by_dex_number.setdefault(record.dex_number, [])
                for answer in (base_name.lower(), record.base_id):
                    if answer not in names:
                        names.append(answer)

            if record.egg_groups:
                add(
                    f"Name an egg group that {display} belongs to.",
                    [split_phrase(group) for group in record.egg_groups],
                    Difficulty.MEDIUM,
                )

            if record.pre_evolution:
                pre_id = record.pre_evolution.split()[0]
                add(
                    f"Which Pokemon evolves into {display}?",
                    [data.display_name(pre_id).lower(), pre_id, base_species_id(pre_id)],
                    Difficulty.MEDIUM,
                )

            abilities = self._ability_answers(record, data)
            if abilities:
                add(f"Name an ability that {display} can have.", abilities, Difficulty.HARD)

        for dex_number in sorted(by_dex_number):
            add(
                f"Which Pokemon has National Pokedex number {dex_number}?",
                by_dex_number[dex_number],
                Difficulty.HARD,
            )

        questions = [
            Question(prompt=prompt, answers=tuple(answers), difficulty=difficulty, source=self.name)
            for prompt, (difficulty, answers) in collected.items()
        ]
        questions = cap_per_tier(questions, self.cap, self.rng)
        self.summarize(questions)
        return questions

    @staticmethod
    def _ability_answers(record: SpeciesRecord, data: SpeciesData) -> List[str]:
        answers: List[str] = []
        for raw in record.abilities:
            ability_id = strip_hidden_flag(raw)
            if not ability_id:
                continue
            lang = data.lang.abilities
            display = lang.get(ability_id) or lang.get(ability_id.replace("_", "")) or ""
            for answer in (ability_id, split_phrase(ability_id), display.lower()):
                if answer and answer not in answers:
                    answers.append(answer)
        return answers
