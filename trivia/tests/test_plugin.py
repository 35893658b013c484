"""
Tests for trivia plugin integration.
"""

import json
import threading

import pytest
from unittest.mock import AsyncMock, MagicMock

from trivia.engine import QuizState
from trivia.generators import load_species_data
from trivia.plugin import TriviaPlugin


def make_msg(payload, reply="reply.subject"):
    """Create mock NATS message."""
    msg = MagicMock()
    msg.data = payload if isinstance(payload, bytes) else json.dumps(payload).encode()
    msg.reply = reply
    msg.respond = AsyncMock()
    return msg


def response_of(msg):
    return json.loads(msg.respond.call_args[0][0])


def published(mock_nats, subject):
    """Payloads published to a subject, decoded."""
    return [
        json.loads(call.args[1].decode())
        for call in mock_nats.publish.call_args_list
        if call.args[0] == subject
    ]


class TestTriviaPluginInit:
    """Test plugin initialization."""

    def test_init_defaults(self, mock_nats):
        """Test default initialization."""
        plugin = TriviaPlugin(mock_nats)

        assert plugin.NAMESPACE == "trivia"
        assert plugin.VERSION == "2.0.0"
        assert plugin.settings.quiz_interval == 300.0
        assert plugin.subject_chat == "game.chat.message"

    def test_init_with_config(self, mock_nats, plugin_config):
        """Test initialization with custom config."""
        plugin = TriviaPlugin(mock_nats, plugin_config)

        assert plugin.scheduler.quiz_interval == 5
        assert plugin.scheduler.quiz_timeout == 5
        assert plugin.engine.rng is plugin.rewards.rng

    def test_invalid_config(self, mock_nats):
        with pytest.raises(ValueError):
            TriviaPlugin(mock_nats, {"quiz_timeout": "soon"})


class TestTriviaPluginLifecycle:
    """Test plugin lifecycle methods."""

    @pytest.mark.asyncio
    async def test_initialize_subscribes(self, mock_nats, plugin_config):
        """Test initialize sets up subscriptions."""
        plugin = TriviaPlugin(mock_nats, plugin_config)

        await plugin.initialize()

        subjects = [call.args[0] for call in mock_nats.subscribe.call_args_list]
        assert plugin._initialized is True
        assert subjects == [
            "bot.command.trivia.start",
            "bot.command.trivia.stop",
            "bot.command.trivia.reload",
            "bot.command.trivia.status",
            "game.chat.message",
        ]
        assert plugin.scheduler.running

        await plugin.shutdown()

    @pytest.mark.asyncio
    async def test_command_prefix(self, mock_nats, plugin_config):
        """Test commands are routed under the configured bot prefix."""
        plugin_config["command_prefix"] = "rosey"
        plugin = TriviaPlugin(mock_nats, plugin_config)

        await plugin.initialize()

        subjects = [call.args[0] for call in mock_nats.subscribe.call_args_list]
        assert "rosey.command.trivia.start" in subjects
        assert "rosey.command.trivia.status" in subjects
        assert plugin.command_subject("stop") == "rosey.command.trivia.stop"

        await plugin.shutdown()

    @pytest.mark.asyncio
    async def test_initialize_loads_content(self, mock_nats, plugin_config):
        plugin = TriviaPlugin(mock_nats, plugin_config)

        await plugin.initialize()

        assert [q.prompt for q in plugin.engine.pool] == ["What is the primary type of Example?"]
        assert plugin.rewards.pool.counts() == {"easy": 1}
        assert plugin.messages.render("trivia.ask_question", {"question": "Q?"}) == "Q: Q?"

        await plugin.shutdown()

    @pytest.mark.asyncio
    async def test_initialize_installs_defaults(self, mock_nats, tmp_path):
        plugin = TriviaPlugin(mock_nats, {"config_dir": str(tmp_path / "trivia"), "start_immediately": False})

        await plugin.initialize()

        assert (tmp_path / "trivia" / "questions.json").exists()
        assert len(plugin.engine.pool) > 0
        assert len(plugin.rewards.pool) > 0

        await plugin.shutdown()

    @pytest.mark.asyncio
    async def test_shutdown_cleanup(self, mock_nats, plugin_config):
        """Test shutdown cleans up resources."""
        plugin = TriviaPlugin(mock_nats, plugin_config)
        await plugin.initialize()
        subscription = plugin._subscriptions[0]

        await plugin.shutdown()

        assert plugin._initialized is False
        assert len(plugin._subscriptions) == 0
        assert not plugin.scheduler.running
        subscription.unsubscribe.assert_awaited()


class TestHandleStart:
    """Test !trivia start command handler."""

    @pytest.mark.asyncio
    async def test_start_success(self, mock_nats, plugin_config):
        """Test a question is broadcast and announced as an event."""
        plugin = TriviaPlugin(mock_nats, plugin_config)
        await plugin.initialize()
        msg = make_msg({"user": "admin"})

        await plugin._handle_start(msg)

        response = response_of(msg)
        assert response["success"] is True
        assert response["result"]["question"] == "What is the primary type of Example?"
        assert response["result"]["difficulty"] == "easy"
        assert plugin.engine.state is QuizState.ACTIVE

        broadcasts = published(mock_nats, "game.chat.broadcast")
        assert broadcasts == [{"message": "Q: What is the primary type of Example?"}]
        events = published(mock_nats, "trivia.quiz.started")
        assert events[0]["event"] == "trivia.quiz.started"
        assert "timestamp" in events[0]

        await plugin.shutdown()

    @pytest.mark.asyncio
    async def test_start_resets_timers(self, mock_nats, plugin_config):
        """Test a forced question gets the full timeout."""
        plugin = TriviaPlugin(mock_nats, plugin_config)
        plugin.engine.add_questions(plugin.load_static_questions())
        plugin.scheduler.idle_for = 3.0
        plugin.scheduler.active_for = 4.0

        await plugin._handle_start(make_msg({"user": "admin"}))

        assert plugin.scheduler.idle_for == 0.0
        assert plugin.scheduler.active_for == 0.0

    @pytest.mark.asyncio
    async def test_start_already_active(self, mock_nats, plugin_config):
        plugin = TriviaPlugin(mock_nats, plugin_config)
        await plugin.initialize()
        await plugin._handle_start(make_msg({"user": "admin"}))
        msg = make_msg({"user": "admin"})

        await plugin._handle_start(msg)

        response = response_of(msg)
        assert response["success"] is False
        assert "already in progress" in response["error"]

        await plugin.shutdown()

    @pytest.mark.asyncio
    async def test_start_no_questions(self, mock_nats, tmp_path):
        plugin = TriviaPlugin(mock_nats, {"config_dir": str(tmp_path), "install_defaults": False})
        await plugin.initialize()
        msg = make_msg({"user": "admin"})

        await plugin._handle_start(msg)

        assert response_of(msg) == {"success": False, "error": "No questions available."}

        await plugin.shutdown()

    @pytest.mark.asyncio
    async def test_invalid_message(self, mock_nats, plugin_config):
        plugin = TriviaPlugin(mock_nats, plugin_config)
        msg = make_msg(b"not json")

        await plugin._handle_start(msg)

        assert response_of(msg) == {"success": False, "error": "Invalid message"}
        assert plugin.engine.state is QuizState.IDLE

    @pytest.mark.asyncio
    async def test_no_reply_subject(self, mock_nats, plugin_config):
        plugin = TriviaPlugin(mock_nats, plugin_config)
        plugin.engine.add_questions(plugin.load_static_questions())
        msg = make_msg({"user": "admin"}, reply=None)

        await plugin._handle_start(msg)

        msg.respond.assert_not_called()
        assert plugin.engine.state is QuizState.ACTIVE


class TestHandleStop:
    """Test !trivia stop command handler."""

    @pytest.mark.asyncio
    async def test_stop_success(self, mock_nats, plugin_config):
        plugin = TriviaPlugin(mock_nats, plugin_config)
        await plugin.initialize()
        await plugin._handle_start(make_msg({"user": "admin"}))
        msg = make_msg({"user": "Oak"})

        await plugin._handle_stop(msg)

        assert response_of(msg) == {
            "success": True,
            "result": {"message": "⏹️ Quiz stopped by Oak."},
        }
        assert plugin.engine.state is QuizState.IDLE
        events = published(mock_nats, "trivia.quiz.cancelled")
        assert events[0]["answers"] == ["fire"]

        await plugin.shutdown()

    @pytest.mark.asyncio
    async def test_stop_no_active_quiz(self, mock_nats, plugin_config):
        plugin = TriviaPlugin(mock_nats, plugin_config)
        await plugin.initialize()
        msg = make_msg({"user": "Oak"})

        await plugin._handle_stop(msg)

        assert response_of(msg) == {"success": False, "error": "No active quiz to stop."}

        await plugin.shutdown()


class TestHandleChat:
    """Test chat answers."""

    @pytest.mark.asyncio
    async def test_correct_answer(self, mock_nats, plugin_config):
        """Test a correct chat answer wins and grants the reward."""
        plugin = TriviaPlugin(mock_nats, plugin_config)
        await plugin.initialize()
        await plugin._handle_start(make_msg({"user": "admin"}))

        await plugin._handle_chat(make_msg({"player": "Ash", "uuid": "u1", "message": " FIRE "}))

        assert plugin.engine.state is QuizState.IDLE

        give_calls = [
            call for call in mock_nats.request.call_args_list
            if call.args[0] == "game.player.give_item"
        ]
        assert len(give_calls) == 1
        assert json.loads(give_calls[0].args[1].decode())["item"] == "cobblemon:poke_ball"

        won = published(mock_nats, "trivia.quiz.won")
        assert won[0]["player"] == "Ash"
        assert won[0]["reward"] == "Poke Ball"

        broadcasts = published(mock_nats, "game.chat.broadcast")
        assert broadcasts[-1]["message"].startswith("✅ Ash answered correctly")

        await plugin.shutdown()

    @pytest.mark.asyncio
    async def test_wrong_answer(self, mock_nats, plugin_config):
        plugin = TriviaPlugin(mock_nats, plugin_config)
        await plugin.initialize()
        await plugin._handle_start(make_msg({"user": "admin"}))

        await plugin._handle_chat(make_msg({"player": "Ash", "message": "water"}))

        assert plugin.engine.state is QuizState.ACTIVE
        assert published(mock_nats, "trivia.quiz.won") == []

        await plugin.shutdown()

    @pytest.mark.asyncio
    async def test_chat_when_idle(self, mock_nats, plugin_config):
        plugin = TriviaPlugin(mock_nats, plugin_config)
        plugin.engine.submit_answer = AsyncMock()

        await plugin._handle_chat(make_msg({"player": "Ash", "message": "fire"}))

        plugin.engine.submit_answer.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        b"{broken",
        {"message": "fire"},
        {"player": "Ash"},
        ["Ash", "fire"],
    ])
    async def test_malformed_chat(self, mock_nats, plugin_config, payload):
        plugin = TriviaPlugin(mock_nats, plugin_config)
        plugin.engine.add_questions(plugin.load_static_questions())
        await plugin.engine.start_quiz()

        await plugin._handle_chat(make_msg(payload))

        assert plugin.engine.state is QuizState.ACTIVE


class TestHandleReloadAndStatus:
    """Test !trivia reload and !trivia status."""

    @pytest.mark.asyncio
    async def test_reload_replaces_rewards(self, mock_nats, plugin_config, content_dir):
        plugin = TriviaPlugin(mock_nats, plugin_config)
        await plugin.initialize()
        (content_dir / "rewards.json").write_text(json.dumps({
            "hard": [{"item_name": "cobblemon:master_ball"}, {"command": "say hi"}],
        }), encoding="utf-8")
        (content_dir / "messages.json").write_text(json.dumps({
            "trivia.ask_question": "New: {question}",
        }), encoding="utf-8")
        msg = make_msg({"user": "admin"})

        await plugin._handle_reload(msg)

        assert response_of(msg) == {"success": True, "result": {"rewards": {"hard": 2}}}
        assert plugin.engine.messages.render("trivia.ask_question", {"question": "Q"}) == "New: Q"

        await plugin.shutdown()

    @pytest.mark.asyncio
    async def test_reload_keeps_questions(self, mock_nats, plugin_config):
        plugin = TriviaPlugin(mock_nats, plugin_config)
        await plugin.initialize()
        before = list(plugin.engine.pool)

        await plugin._handle_reload(make_msg({}))

        assert plugin.engine.pool == before

        await plugin.shutdown()

    @pytest.mark.asyncio
    async def test_status(self, mock_nats, plugin_config):
        plugin = TriviaPlugin(mock_nats, plugin_config)
        await plugin.initialize()
        msg = make_msg({})

        await plugin._handle_status(msg)

        result = response_of(msg)["result"]
        assert result["state"] == "idle"
        assert result["questions"] == 1
        assert result["question"] is None
        assert result["rewards"] == {"easy": 1}

        await plugin.shutdown()


class TestEvents:
    """Test event emission."""

    @pytest.mark.asyncio
    async def test_events_disabled(self, mock_nats, plugin_config):
        plugin_config["emit_events"] = False
        plugin = TriviaPlugin(mock_nats, plugin_config)
        await plugin.initialize()

        await plugin._handle_start(make_msg({"user": "admin"}))

        assert published(mock_nats, "trivia.quiz.started") == []
        assert len(published(mock_nats, "game.chat.broadcast")) == 1

        await plugin.shutdown()

    @pytest.mark.asyncio
    async def test_timeout_event(self, mock_nats, plugin_config):
        plugin = TriviaPlugin(mock_nats, plugin_config)
        plugin.engine.add_questions(plugin.load_static_questions())
        await plugin.engine.start_quiz()

        await plugin.engine.timeout_quiz()

        events = published(mock_nats, "trivia.quiz.timeout")
        assert events[0]["question"] == "What is the primary type of Example?"
        assert events[0]["answers"] == ["fire"]

    @pytest.mark.asyncio
    async def test_publish_failure_is_contained(self, mock_nats, plugin_config):
        plugin = TriviaPlugin(mock_nats, plugin_config)
        mock_nats.publish.side_effect = OSError("gone")

        await plugin._emit_event("trivia.quiz.started", {"question": "Q"})


class TestGenerateQuestions:
    """Test question generation from species data."""

    @pytest.fixture
    def species_config(self, plugin_config, tmp_path):
        species_dir = tmp_path / "species"
        species_dir.mkdir()
        (species_dir / "ninjask.json").write_text(json.dumps({
            "name": "Ninjask",
            "nationalPokedexNumber": 291,
            "primaryType": "bug",
            "abilities": ["speedboost"],
            "pokedex": "Ninjask moves so fast it is hard to see.",
        }), encoding="utf-8")
        lang_file = tmp_path / "en_us.json"
        lang_file.write_text(json.dumps({
            "cobblemon.species.ninjask.name": "Ninjask",
            "cobblemon.ability.speedboost": "Speed Boost",
        }), encoding="utf-8")

        plugin_config.update({"species_dir": str(species_dir), "lang_file": str(lang_file)})
        return plugin_config

    @pytest.mark.asyncio
    async def test_all_generators(self, mock_nats, species_config):
        plugin = TriviaPlugin(mock_nats, species_config)

        sources = {q.source for q in await plugin.generate_questions()}

        assert sources == {"auto", "dex_entry", "scramble"}

    @pytest.mark.asyncio
    async def test_disabled_generator(self, mock_nats, species_config):
        species_config["generators"] = {"scramble": {"enabled": False}, "dex_entry": {"enabled": False}}
        plugin = TriviaPlugin(mock_nats, species_config)

        sources = {q.source for q in await plugin.generate_questions()}

        assert sources == {"auto"}

    @pytest.mark.asyncio
    async def test_failing_generator(self, mock_nats, species_config, monkeypatch):
        plugin = TriviaPlugin(mock_nats, species_config)
        monkeypatch.setattr(
            "trivia.generators.auto.AutoQuestionGenerator.generate",
            MagicMock(side_effect=RuntimeError("bad data")),
        )

        sources = {q.source for q in await plugin.generate_questions()}

        assert sources == {"dex_entry", "scramble"}

    @pytest.mark.asyncio
    async def test_no_species_data(self, mock_nats, plugin_config):
        plugin = TriviaPlugin(mock_nats, plugin_config)
        assert await plugin.generate_questions() == []

    @pytest.mark.asyncio
    async def test_species_read_in_worker_thread(self, mock_nats, species_config, monkeypatch):
        """Test species files are not read on the event loop thread."""
        plugin = TriviaPlugin(mock_nats, species_config)
        threads = []

        def recording_load(*args):
            threads.append(threading.get_ident())
            return load_species_data(*args)

        monkeypatch.setattr("trivia.plugin.load_species_data", recording_load)

        questions = await plugin.generate_questions()

        assert questions
        assert len(threads) == 1
        assert threads[0] != threading.get_ident()

    @pytest.mark.asyncio
    async def test_speed_boost_answer(self, mock_nats, species_config):
        """Test a generated ability question accepts the spaced spelling."""
        plugin = TriviaPlugin(mock_nats, species_config)
        ability = next(
            q for q in await plugin.generate_questions()
            if q.prompt == "Name an ability that Ninjask can have."
        )
        plugin.engine.add_questions([ability])
        await plugin.engine.start_quiz()

        assert plugin.engine.is_correct_answer("speed boost")
        assert plugin.engine.is_correct_answer("SpeedBoost")
