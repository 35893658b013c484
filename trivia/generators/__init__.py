"""Trivia question generators package."""

from .auto import AutoQuestionGenerator
from .base import QuestionGenerator
from .dex_entry import DexEntryGenerator
from .scramble import ScrambleGenerator
from .species import LangTable, SpeciesData, SpeciesRecord, load_species_data

GENERATORS = {
    DexEntryGenerator.name: DexEntryGenerator,
    ScrambleGenerator.name: ScrambleGenerator,
    AutoQuestionGenerator.name: AutoQuestionGenerator,
}

__all__ = [
    "AutoQuestionGenerator",
    "DexEntryGenerator",
    "GENERATORS",
    "LangTable",
    "QuestionGenerator",
    "ScrambleGenerator",
    "SpeciesData",
    "SpeciesRecord",
    "load_species_data",
]
