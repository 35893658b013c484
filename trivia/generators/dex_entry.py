"""
Dex Entry Question Generator

Shows a species description with the species' own name blanked out
and asks which species it describes.
"""

import re
import unicodedata
from typing import Dict, List

from ..normalize import strip_accents
from ..question import Difficulty, Question
from .base import QuestionGenerator, cap_and_shuffle
from .species import SpeciesData, base_species_id

MASK_CHAR = "_"
MIN_MASK_LENGTH = 3

_PLACEHOLDER_PHRASE = "ecology under research"
_NON_TEXT = re.compile(r"[^a-z0-9 ]")


def is_placeholder_description(text: str) -> bool:
    """True for the stock "ecology under research" text of unfinished entries."""
    if not text:
        return True
    text = unicodedata.normalize("NFKC", text).lower().strip()
    text = " ".join(text.split())
    text = _NON_TEXT.sub("", text)
    return _PLACEHOLDER_PHRASE in text


def strip_gender_symbols(text: str) -> str:
    return text.replace("♂", "").replace("♀", "")


def mask_name_variants(description: str, base_name: str, base_id: str, full_id: str) -> str:
    """
    Blank out every spelling of the subject inside its description.

    Variants are the name, its accent-free and gender-symbol-free forms,
    and both ids. Longer variants are masked first so "Nidoran♂" is not
    left as "______♂". The mask is always len(base_id) underscores (at
    least three) whichever variant matched.
    """
    if not description:
        return ""

    mask = MASK_CHAR * max(MIN_MASK_LENGTH, len(base_id))

    variants = [
        base_name,
        strip_accents(base_name),
        strip_gender_symbols(base_name),
        strip_gender_symbols(strip_accents(base_name)),
        full_id,
        base_id,
    ]
    unique = []
    for variant in variants:
        variant = variant.strip() if variant else ""
        if variant and variant not in unique:
            unique.append(variant)
    unique.sort(key=len, reverse=True)

    masked = description
    for variant in unique:
        masked = re.sub(re.escape(variant), mask, masked, flags=re.IGNORECASE)
    return masked


def _comparison_key(text: str) -> str:
    return strip_accents(text).lower().strip()


class DexEntryGenerator(QuestionGenerator):
    """Masked-description "who is this?" questions."""

    name = "dex_entry"
    PROMPT = "Whose Dex Entry is this: {description}"

    def generate(self, data: SpeciesData) -> List[Question]:
        descriptions: Dict[str, str] = dict(data.lang.descriptions)
        for species_id, record in data.records.items():
            if record.pokedex and not descriptions.get(species_id):
                descriptions[species_id] = record.pokedex

        questions = []
        for species_id in sorted(descriptions):
            description = descriptions[species_id]
            if not description or not description.strip() or is_placeholder_description(description):
                continue

            full_id = species_id.lower()
            base_id = base_species_id(full_id)
            base_name = data.lang.names.get(base_id) or data.base_name(full_id)

            masked = mask_name_variants(description, base_name, base_id, full_id)

            answers = [base_id]
            if _comparison_key(base_name) != _comparison_key(base_id):
                answers.append(base_name.lower())

            questions.append(Question(
                prompt=self.PROMPT.format(description=masked),
                answers=tuple(answers),
                difficulty=Difficulty.HARD,
                source=self.name,
            ))

        questions = cap_and_shuffle(questions, self.cap, self.rng)
        self.summarize(questions)
        return questions
