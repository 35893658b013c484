"""
Trivia Plugin

Periodic chat trivia for a game server. A question is broadcast to
every player; the first correct answer in chat wins a reward.

Commands:
    !trivia start - Ask a question now
    !trivia stop - Cancel the current question
    !trivia reload - Reload rewards and messages
    !trivia status - Show quiz state

NATS Subjects:
    Subscribe:
        <command_prefix>.command.trivia.start - Handle !trivia start
        <command_prefix>.command.trivia.stop - Handle !trivia stop
        <command_prefix>.command.trivia.reload - Handle !trivia reload
        <command_prefix>.command.trivia.status - Handle !trivia status
        <prefix>.chat.message - Player chat, checked as answers
    Publish:
        trivia.quiz.started - Event when a question is asked
        trivia.quiz.won - Event when someone answers correctly
        trivia.quiz.timeout - Event when time runs out
        trivia.quiz.cancelled - Event when a question is cancelled
"""

import asyncio
import json
import logging
import random
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from nats.aio.client import Client as NATS

from .config import TriviaConfig
from .content import ensure_default_files, load_question_file, read_json_file
from .engine import QuizEngine, QuizResult
from .generators import GENERATORS, load_species_data
from .host import NatsGameHost, Participant
from .messages import Messages
from .question import Question
from .reward import RewardPool, RewardSelector
from .scheduler import QuizScheduler

logger = logging.getLogger(__name__)


class TriviaPlugin:
    """
    Trivia quiz plugin.

    Owns the quiz engine and wires it to the game server: content
    loading at startup, the quiz timer, chat answers and admin commands.

    Commands:
        !trivia start - Ask a question now
        !trivia stop - Cancel the current question
        !trivia reload - Reload rewards and messages
        !trivia status - Show quiz state
    """

    # Plugin metadata
    NAMESPACE = "trivia"
    VERSION = "2.0.0"
    DESCRIPTION = "Chat trivia with rewards"

    # NATS subjects - Commands (under <command_prefix>.command.trivia)
    COMMAND_START = "start"
    COMMAND_STOP = "stop"
    COMMAND_RELOAD = "reload"
    COMMAND_STATUS = "status"

    # NATS subjects - Events
    EVENT_QUIZ_STARTED = "trivia.quiz.started"
    EVENT_QUIZ_WON = "trivia.quiz.won"
    EVENT_QUIZ_TIMEOUT = "trivia.quiz.timeout"
    EVENT_QUIZ_CANCELLED = "trivia.quiz.cancelled"

    def __init__(self, nats_client: NATS, config: Optional[Dict[str, Any]] = None):
        """
        Initialize trivia plugin.

        Args:
            nats_client: Connected NATS client
            config: Plugin configuration dict

        Raises:
            ValueError: If the configuration is malformed
        """
        self.nats = nats_client
        self.settings = TriviaConfig.from_dict(config)
        self.logger = logging.getLogger(f"{__name__}.{self.NAMESPACE}")
        self._initialized = False
        self._subscriptions: List[Any] = []

        self.rng = random.Random(self.settings.seed)
        self.host = NatsGameHost(
            nats_client,
            prefix=self.settings.host_subject_prefix,
            timeout=self.settings.host_timeout,
        )
        self.messages = Messages()
        self.rewards = RewardSelector(self.host, rng=self.rng)
        self.engine = QuizEngine(
            self.host,
            self.rewards,
            messages=self.messages,
            rng=self.rng,
            answer_separator=self.settings.answer_separator,
            on_start=self._on_start,
            on_win=self._on_win,
            on_timeout=self._on_timeout,
            on_cancel=self._on_cancel,
        )
        self.scheduler = QuizScheduler(
            self.engine,
            self.host,
            quiz_interval=self.settings.quiz_interval,
            quiz_timeout=self.settings.quiz_timeout,
            check_interval=self.settings.check_interval,
            start_immediately=self.settings.start_immediately,
            require_participants=self.settings.require_participants,
        )

    @property
    def subject_chat(self) -> str:
        return self.host.subject("chat.message")

    def command_subject(self, command: str) -> str:
        """Subject a bot command is routed to, e.g. bot.command.trivia.start."""
        return f"{self.settings.command_prefix}.command.{self.NAMESPACE}.{command}"

    async def initialize(self) -> None:
        """
        Load content, subscribe to NATS subjects and start the quiz timer.
        """
        self.logger.info(f"Initializing {self.NAMESPACE} plugin v{self.VERSION}")

        if self.settings.install_defaults:
            ensure_default_files(self.settings.config_dir)

        self.reload()
        self.engine.add_questions(self.load_static_questions())
        self.engine.add_questions(await self.generate_questions())

        handlers = {
            self.command_subject(self.COMMAND_START): self._handle_start,
            self.command_subject(self.COMMAND_STOP): self._handle_stop,
            self.command_subject(self.COMMAND_RELOAD): self._handle_reload,
            self.command_subject(self.COMMAND_STATUS): self._handle_status,
            self.subject_chat: self._handle_chat,
        }
        for subject, handler in handlers.items():
            sub = await self.nats.subscribe(subject, cb=handler)
            self._subscriptions.append(sub)

        await self.scheduler.start()

        self._initialized = True
        self.logger.info(
            f"Plugin initialized with {len(self.engine.pool)} questions. "
            f"Subscribed to: {', '.join(handlers)}"
        )

    async def shutdown(self) -> None:
        """
        Shutdown plugin and cleanup.
        """
        self.logger.info(f"Shutting down {self.NAMESPACE} plugin")

        await self.scheduler.stop()

        for sub in self._subscriptions:
            try:
                await sub.unsubscribe()
            except Exception as e:
                self.logger.warning(f"Error unsubscribing: {e}")
        self._subscriptions.clear()

        self._initialized = False
        self.logger.info("Plugin shutdown complete")

    # =========================================================================
    # Content
    # =========================================================================

    def reload(self) -> None:
        """Reload rewards (replacing the pool) and message templates."""
        data = read_json_file(self.settings.path(self.settings.rewards_file))
        pool, result = RewardPool.from_config(data if data is not None else {})
        result.log_skipped(self.settings.rewards_file)
        self.rewards.replace_pool(pool)

        messages = Messages.load(self.settings.path(self.settings.messages_file))
        self.messages.templates = messages.templates

    def load_static_questions(self) -> List[Question]:
        """Questions from the configured question file."""
        return load_question_file(self.settings.path(self.settings.questions_file)).items

    async def generate_questions(self) -> List[Question]:
        """
        Run every enabled generator over the species data.

        Species files are read in a worker thread. A generator that
        fails contributes nothing.
        """
        enabled = [
            name for name in GENERATORS
            if self.settings.generator(name).enabled
        ]
        if not self.settings.species_dir and not self.settings.lang_file:
            self.logger.info("No species data configured; skipping question generators")
            return []
        if not enabled:
            return []

        data = await asyncio.to_thread(
            load_species_data, self.settings.species_dir, self.settings.lang_file
        )

        questions: List[Question] = []
        for name in enabled:
            generator = GENERATORS[name](cap=self.settings.generator(name).cap, rng=self.rng)
            try:
                questions.extend(generator.generate(data))
            except Exception as e:
                self.logger.exception(f"Question generator {name} failed: {e}")
        return questions

    # =========================================================================
    # NATS Handlers
    # =========================================================================

    async def _handle_chat(self, msg) -> None:
        """
        Check a chat message against the active question.

        Expected message format:
            {
                "player": "string",
                "uuid": "string",
                "message": "string"
            }
        """
        if not self.engine.quiz_in_progress():
            return

        try:
            data = json.loads(msg.data.decode())
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            self.logger.error(f"Invalid chat message format: {e}")
            return
        if not isinstance(data, dict):
            return

        participant = Participant.from_dict(data)
        text = data.get("message")
        if participant is None or not isinstance(text, str):
            return

        await self.engine.submit_answer(participant, text)

    async def _handle_start(self, msg) -> None:
        """Handle !trivia start command."""
        data = await self._parse_command(msg)
        if data is None:
            return

        if self.engine.quiz_in_progress():
            await self._respond(msg, {
                "success": False,
                "error": "A quiz is already in progress! Use !trivia stop to end it.",
            })
            return

        question = await self.engine.start_quiz()
        if question is None:
            await self._respond(msg, {
                "success": False,
                "error": "No questions available.",
            })
            return

        self.scheduler.idle_for = 0.0
        self.scheduler.active_for = 0.0
        await self._respond(msg, {
            "success": True,
            "result": {
                "question": question.prompt,
                "difficulty": question.difficulty.value,
                "timeout": self.settings.quiz_timeout,
            },
        })

    async def _handle_stop(self, msg) -> None:
        """Handle !trivia stop command."""
        data = await self._parse_command(msg)
        if data is None:
            return

        user = data.get("user", "unknown")
        result = await self.engine.cancel_quiz(cancelled_by=user)
        if result is None:
            await self._respond(msg, {
                "success": False,
                "error": "No active quiz to stop.",
            })
            return

        self.scheduler.idle_for = 0.0
        await self._respond(msg, {
            "success": True,
            "result": {"message": f"⏹️ Quiz stopped by {user}."},
        })

    async def _handle_reload(self, msg) -> None:
        """Handle !trivia reload command."""
        if await self._parse_command(msg) is None:
            return

        self.reload()
        await self._respond(msg, {
            "success": True,
            "result": {"rewards": self.rewards.pool.counts()},
        })

    async def _handle_status(self, msg) -> None:
        """Handle !trivia status command."""
        if await self._parse_command(msg) is None:
            return

        active = self.engine.active
        elapsed = self.engine.elapsed()
        await self._respond(msg, {
            "success": True,
            "result": {
                "state": self.engine.state.value,
                "questions": len(self.engine.pool),
                "question": active.prompt if active else None,
                "elapsed": round(elapsed, 1) if elapsed is not None else None,
                "rewards": self.rewards.pool.counts(),
            },
        })

    # =========================================================================
    # Engine Callbacks
    # =========================================================================

    async def _on_start(self, question: Question) -> None:
        await self._emit_event(self.EVENT_QUIZ_STARTED, {
            "question": question.prompt,
            "difficulty": question.difficulty.value,
            "source": question.source,
        })

    async def _on_win(self, result: QuizResult) -> None:
        await self._emit_event(self.EVENT_QUIZ_WON, {
            "question": result.question.prompt,
            "difficulty": result.question.difficulty.value,
            "player": result.winner.name if result.winner else None,
            "uuid": result.winner.uuid if result.winner else None,
            "reward": result.reward.label if result.reward else None,
            "time_taken": result.elapsed,
        })

    async def _on_timeout(self, result: QuizResult) -> None:
        await self._emit_event(self.EVENT_QUIZ_TIMEOUT, {
            "question": result.question.prompt,
            "answers": list(result.question.answers),
        })

    async def _on_cancel(self, result: QuizResult) -> None:
        await self._emit_event(self.EVENT_QUIZ_CANCELLED, {
            "question": result.question.prompt,
            "answers": list(result.question.answers),
        })

    # =========================================================================
    # Helper Methods
    # =========================================================================

    async def _parse_command(self, msg) -> Optional[Dict[str, Any]]:
        """Decode a command payload, replying with an error if it is invalid."""
        try:
            data = json.loads(msg.data.decode())
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            self.logger.error(f"Invalid message format: {e}")
            await self._respond(msg, {"success": False, "error": "Invalid message"})
            return None
        if not isinstance(data, dict):
            await self._respond(msg, {"success": False, "error": "Invalid message"})
            return None
        return data

    async def _respond(self, msg, data: Dict[str, Any]) -> None:
        """Send JSON response to NATS message."""
        if not msg.reply:
            return
        try:
            await msg.respond(json.dumps(data).encode())
        except Exception as e:
            self.logger.error(f"Error sending response: {e}")

    async def _emit_event(self, event_type: str, data: Dict[str, Any]) -> None:
        """Emit a NATS event."""
        if not self.settings.emit_events:
            return

        event_data = {
            "event": event_type,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            **data,
        }
        try:
            await self.nats.publish(event_type, json.dumps(event_data).encode())
        except Exception as e:
            self.logger.debug(f"Could not publish event {event_type}: {e}")
