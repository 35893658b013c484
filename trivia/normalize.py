"""
Answer Normalization

Turns free-text chat guesses and stored answers into comparison keys.
The same functions are applied to both sides of every comparison.
"""

import re
import unicodedata
from typing import Tuple

# Prefix marking a hidden ability in species data ("h:chlorophyll")
HIDDEN_FLAG_PREFIX = "h:"

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def strip_accents(text: str) -> str:
    """Decompose accented characters and drop the combining marks."""
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.category(ch).startswith("M"))


def _tokens(text: str) -> list:
    if not text:
        return []

    text = unicodedata.normalize("NFKC", text).lower().strip()

    if text.startswith(HIDDEN_FLAG_PREFIX):
        text = text[len(HIDDEN_FLAG_PREFIX):].strip()

    text = strip_accents(text)
    text = _NON_ALNUM.sub(" ", text).strip()
    return text.split() if text else []


def normalize_answer(text: str) -> str:
    """
    Build the canonical key for an answer.

    Word order, case, accents, spacing and punctuation do not affect
    the key: "Galarian Yamask" and "yamask, galarian" both become
    "galarianyamask". Empty or symbol-only input gives "".

    Args:
        text: Guess or stored answer

    Returns:
        Sorted tokens joined without separator
    """
    return "".join(sorted(_tokens(text)))


def compact_answer(text: str) -> str:
    """Tokens in their original order, joined without separator."""
    return "".join(_tokens(text))


def answer_keys(text: str) -> Tuple[str, str]:
    """Return the (order-insensitive, spacing-insensitive) key pair."""
    tokens = _tokens(text)
    return "".join(sorted(tokens)), "".join(tokens)


def answers_match(guess: str, answer: str) -> bool:
    """
    Check whether a guess matches a stored answer.

    Matches when the sorted-token keys are equal ("mr mime" vs
    "mime mr") or the in-order keys are equal ("speed boost" vs
    "speedboost"). Empty keys never match.
    """
    guess_sorted, guess_compact = answer_keys(guess)
    if not guess_sorted:
        return False

    answer_sorted, answer_compact = answer_keys(answer)
    return guess_sorted == answer_sorted or guess_compact == answer_compact
