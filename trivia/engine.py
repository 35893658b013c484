"""
Trivia Quiz Engine

Holds the question pool and the single active question, and moves
between the Idle and Active states:

    Idle --start_quiz--> Active
    Active --submit_answer (correct)--> Idle
    Active --timeout_quiz / cancel_quiz--> Idle

Calls made in the wrong state are ignored rather than treated as errors.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Iterable, List, Optional

from .host import GameHost, Participant
from .messages import (
    ASK_QUESTION,
    CANCELLED,
    CORRECT_ANSWER,
    MISSING_REWARD_LABEL,
    NO_ANSWER,
    Messages,
)
from .normalize import answers_match
from .question import Question
from .reward import Reward, RewardSelector

logger = logging.getLogger(__name__)


class QuizState(Enum):
    """Engine state."""

    IDLE = "idle"
    ACTIVE = "active"


@dataclass(frozen=True)
class QuizResult:
    """
    How a question ended.

    Attributes:
        question: The question that was asked
        elapsed: Seconds between asking and the outcome
        winner: Player who answered, None on timeout/cancel
        reward: Reward granted to the winner, if any
    """

    question: Question
    elapsed: float
    winner: Optional[Participant] = None
    reward: Optional[Reward] = None


# Type aliases for callbacks
QuestionCallback = Optional[Callable[[Question], Awaitable[None]]]
ResultCallback = Optional[Callable[[QuizResult], Awaitable[None]]]


class QuizEngine:
    """
    Runs one quiz question at a time.

    The engine broadcasts through the host and reports outcomes via
    optional callbacks (the plugin uses them to emit NATS events).

    Args:
        host: Game host used for broadcasts and the clock
        rewards: Reward selector for winners
        messages: Broadcast templates
        rng: Random source for question selection
        answer_separator: Separator when listing accepted answers
    """

    def __init__(
        self,
        host: GameHost,
        rewards: RewardSelector,
        messages: Optional[Messages] = None,
        rng: Optional[random.Random] = None,
        answer_separator: str = ", ",
        on_start: QuestionCallback = None,
        on_win: ResultCallback = None,
        on_timeout: ResultCallback = None,
        on_cancel: ResultCallback = None,
    ):
        self.host = host
        self.rewards = rewards
        self.messages = messages or Messages()
        self.rng = rng or random.Random()
        self.answer_separator = answer_separator

        # Callbacks
        self.on_start = on_start
        self.on_win = on_win
        self.on_timeout = on_timeout
        self.on_cancel = on_cancel

        # State
        self.pool: List[Question] = []
        self.active: Optional[Question] = None
        self.asked_at: Optional[float] = None
        self._lock = asyncio.Lock()

    @property
    def state(self) -> QuizState:
        """Current engine state."""
        return QuizState.ACTIVE if self.active is not None else QuizState.IDLE

    def quiz_in_progress(self) -> bool:
        """Whether a question is open for answers."""
        return self.active is not None

    def elapsed(self) -> Optional[float]:
        """Seconds since the active question was asked, None when idle."""
        if self.active is None or self.asked_at is None:
            return None
        return max(0.0, self.host.now() - self.asked_at)

    def add_questions(self, batch: Optional[Iterable[Question]]) -> int:
        """
        Append questions to the pool. Duplicates are kept.

        Returns:
            Number of questions added
        """
        if not batch:
            return 0
        added = list(batch)
        if not added:
            return 0
        self.pool.extend(added)
        logger.info(f"Added {len(added)} questions. Total pool now {len(self.pool)}.")
        return len(added)

    def is_correct_answer(self, guess: str) -> bool:
        """
        Check a guess against the active question.

        Returns:
            False when no quiz is active
        """
        question = self.active
        if question is None:
            return False
        return any(answers_match(guess, answer) for answer in question.answers)

    async def start_quiz(self) -> Optional[Question]:
        """
        Ask a random question from the pool.

        Returns:
            The question asked, or None if a quiz is already running
            or the pool is empty
        """
        async with self._lock:
            if self.active is not None:
                logger.debug("start_quiz ignored: a quiz is already in progress")
                return None
            if not self.pool:
                logger.warning("Cannot start a quiz: the question pool is empty")
                return None

            question = self.rng.choice(self.pool)
            self.active = question
            self.asked_at = self.host.now()
            logger.info(f"Quiz started ({question.difficulty.value}): {question.prompt}")

            await self._broadcast(ASK_QUESTION, {"question": question.prompt})
            await self._notify(self.on_start, question)
            return question

    async def submit_answer(self, participant: Participant, guess: str) -> bool:
        """
        Process a chat message as an answer.

        A wrong guess changes nothing and sends nothing. The first
        correct guess wins, is rewarded, and closes the question.

        Returns:
            True if this guess won the quiz
        """
        async with self._lock:
            if not self.is_correct_answer(guess):
                return False

            question = self.active
            elapsed = self.elapsed() or 0.0
            self._clear()

            reward = None
            try:
                reward = await self.rewards.give_reward(participant, question.difficulty)
            except Exception as e:
                logger.exception(f"Error granting reward to {participant.name}: {e}")

            logger.info(
                f"{participant.name} answered correctly in {elapsed:.1f}s "
                f"(reward: {reward.label if reward else 'none'})"
            )

            await self._broadcast(CORRECT_ANSWER, {
                "player": participant.name,
                "reward": reward.label if reward and reward.label else MISSING_REWARD_LABEL,
                "time": int(elapsed),
                "answer": question.format_answers(self.answer_separator),
            })

            result = QuizResult(question=question, elapsed=elapsed, winner=participant, reward=reward)
            await self._notify(self.on_win, result)
            return True

    async def timeout_quiz(self) -> Optional[QuizResult]:
        """
        Close the active question without a winner.

        Returns:
            The result, or None if no quiz was active
        """
        return await self._close(NO_ANSWER, self.on_timeout)

    async def cancel_quiz(self, cancelled_by: Optional[str] = None) -> Optional[QuizResult]:
        """
        Abort the active question with a distinct announcement.

        Args:
            cancelled_by: Name of whoever stopped it

        Returns:
            The result, or None if no quiz was active
        """
        return await self._close(CANCELLED, self.on_cancel, {"player": cancelled_by or "an admin"})

    async def _close(self, message_key: str, callback: ResultCallback, extra: Optional[dict] = None) -> Optional[QuizResult]:
        async with self._lock:
            if self.active is None:
                logger.debug(f"{message_key} ignored: no quiz in progress")
                return None

            question = self.active
            elapsed = self.elapsed() or 0.0
            self._clear()
            logger.info(f"Quiz closed without a winner after {elapsed:.1f}s: {question.prompt}")

            placeholders = {"answer": question.format_answers(self.answer_separator)}
            placeholders.update(extra or {})
            await self._broadcast(message_key, placeholders)

            result = QuizResult(question=question, elapsed=elapsed)
            await self._notify(callback, result)
            return result

    def _clear(self) -> None:
        self.active = None
        self.asked_at = None

    async def _broadcast(self, key: str, placeholders: dict) -> None:
        try:
            await self.host.broadcast(self.messages.render(key, placeholders))
        except Exception as e:
            logger.error(f"Error broadcasting {key}: {e}")

    async def _notify(self, callback, payload) -> None:
        if callback is None:
            return
        try:
            await callback(payload)
        except Exception as e:
            logger.error(f"Error in quiz callback: {e}")
