"""
Trivia Broadcast Messages

Templates for the messages sent to every player. Placeholders are
written as {name} and substituted literally; unknown placeholders are
left as they are.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from .content import read_json_file

logger = logging.getLogger(__name__)

ASK_QUESTION = "trivia.ask_question"
CORRECT_ANSWER = "trivia.correct_answer"
NO_ANSWER = "trivia.no_answer"
CANCELLED = "trivia.cancelled"

DEFAULT_MESSAGES = {
    ASK_QUESTION: "❓ Trivia: {question}",
    CORRECT_ANSWER: (
        "✅ {player} answered correctly in {time}s and won {reward}! "
        "Accepted answers: {answer}"
    ),
    NO_ANSWER: "⏰ Time's up! The answer was: {answer}",
    CANCELLED: "⏹️ Trivia cancelled. The answer was: {answer}",
}

# Shown when the winner's tier has no reward configured
MISSING_REWARD_LABEL = "REWARD_ERROR"


class Messages:
    """
    Message templates keyed by message id.

    Args:
        overrides: Templates replacing the defaults
    """

    def __init__(self, overrides: Optional[Mapping[str, str]] = None):
        self.templates: Dict[str, str] = dict(DEFAULT_MESSAGES)
        if overrides:
            self.templates.update(overrides)

    def render(self, key: str, placeholders: Optional[Mapping[str, Any]] = None) -> str:
        """
        Fill in a template.

        Args:
            key: Message id such as "trivia.ask_question"
            placeholders: Values keyed by placeholder name (without braces)

        Returns:
            The rendered message, or the key itself if no template exists
        """
        text = self.templates.get(key)
        if text is None:
            logger.warning(f"No message template for '{key}'")
            return key

        for name, value in (placeholders or {}).items():
            text = text.replace("{" + name + "}", str(value))
        return text

    @classmethod
    def load(cls, path: Union[str, Path]) -> "Messages":
        """Load overrides from a JSON file; non-string entries are ignored."""
        data = read_json_file(path)
        if not isinstance(data, dict):
            return cls()

        overrides = {}
        for key, value in data.items():
            if isinstance(value, str):
                overrides[key] = value
            else:
                logger.warning(f"Ignoring non-text message template '{key}' in {path}")
        return cls(overrides)
