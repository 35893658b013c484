"""
Trivia Plugin Package

Periodic chat trivia for a game server, with rewards for the first
correct answer.

Commands:
    !trivia start - Ask a question now
    !trivia stop - Cancel the current question
    !trivia reload - Reload rewards and messages
    !trivia status - Show quiz state
"""

from .config import GeneratorConfig, TriviaConfig
from .content import LoadResult, SkipRecord
from .engine import QuizEngine, QuizResult, QuizState
from .host import GameHost, NatsGameHost, Participant
from .messages import Messages
from .normalize import answers_match, normalize_answer
from .question import Difficulty, Question
from .reward import Reward, RewardPool, RewardSelector
from .scheduler import QuizScheduler

__all__ = [
    # Question module
    "Difficulty",
    "Question",
    "answers_match",
    "normalize_answer",
    # Engine
    "QuizEngine",
    "QuizResult",
    "QuizState",
    "QuizScheduler",
    # Rewards
    "Reward",
    "RewardPool",
    "RewardSelector",
    # Host
    "GameHost",
    "NatsGameHost",
    "Participant",
    # Content and config
    "GeneratorConfig",
    "LoadResult",
    "Messages",
    "SkipRecord",
    "TriviaConfig",
]
