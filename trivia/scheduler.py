"""
Quiz Scheduler

Asks a question every quiz_interval seconds of idle time and times
out questions left unanswered for quiz_timeout seconds. Nothing
advances while no players are connected.
"""

import asyncio
import logging
from typing import Optional

from .engine import QuizEngine
from .host import GameHost


class QuizScheduler:
    """
    Drives the quiz engine from a polling loop.

    Args:
        engine: Quiz engine to drive
        host: Game host used for the player list and clock
        quiz_interval: Idle seconds between quizzes
        quiz_timeout: Seconds of online time a question stays open
        check_interval: Seconds between ticks
        start_immediately: Ask the first question on the first tick with players
        require_participants: Pause while nobody is connected
    """

    def __init__(
        self,
        engine: QuizEngine,
        host: GameHost,
        quiz_interval: float = 300.0,
        quiz_timeout: float = 60.0,
        check_interval: float = 1.0,
        start_immediately: bool = True,
        require_participants: bool = True,
    ):
        self.engine = engine
        self.host = host
        self.quiz_interval = quiz_interval
        self.quiz_timeout = quiz_timeout
        self.check_interval = check_interval
        self.require_participants = require_participants
        self.running = False
        self.idle_for = quiz_interval if start_immediately else 0.0
        self.active_for = 0.0
        self._last_tick: Optional[float] = None
        self._task: Optional[asyncio.Task] = None
        self.logger = logging.getLogger(f"{__name__}.scheduler")

    async def start(self) -> None:
        """Start the tick loop in a background task."""
        if self.running:
            self.logger.warning("Scheduler already running")
            return

        self.running = True
        self._last_tick = None
        self._task = asyncio.create_task(self._tick_loop())
        self.logger.info(
            f"Scheduler started (interval: {self.quiz_interval}s, "
            f"timeout: {self.quiz_timeout}s)"
        )

    async def stop(self) -> None:
        """Stop the tick loop and wait for it to finish."""
        if not self.running:
            return

        self.running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        self.logger.info("Scheduler stopped")

    async def tick(self, now: Optional[float] = None) -> None:
        """
        Advance the timers once.

        Args:
            now: Current time in seconds (defaults to the host clock)
        """
        now = self.host.now() if now is None else now
        delta = 0.0 if self._last_tick is None else max(0.0, now - self._last_tick)
        self._last_tick = now

        if self.require_participants and not await self.host.list_participants():
            return

        if not self.engine.quiz_in_progress():
            self.active_for = 0.0
            self.idle_for += delta
            if self.idle_for >= self.quiz_interval:
                self.idle_for = 0.0
                await self.engine.start_quiz()
            return

        # Online time only; offline stretches were skipped above
        self.active_for += delta
        if self.active_for >= self.quiz_timeout:
            self.idle_for = 0.0
            self.active_for = 0.0
            await self.engine.timeout_quiz()

    async def _tick_loop(self) -> None:
        self.logger.debug("Tick loop started")

        while self.running:
            try:
                await self.tick()
                await asyncio.sleep(self.check_interval)
            except asyncio.CancelledError:
                self.logger.debug("Tick loop cancelled")
                raise
            except Exception as e:
                self.logger.exception(f"Error in tick loop: {e}")
                await asyncio.sleep(self.check_interval)

        self.logger.debug("Tick loop ended")
