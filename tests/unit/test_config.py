"""Unit tests for settings, model resolution, logging and the CLI."""

import logging
import sys

import pytest
from unittest.mock import AsyncMock, patch

from assistant_stream import cli
from assistant_stream.config.models import resolve_chat_model
from assistant_stream.config.settings import load_settings
from assistant_stream.models.usage import UsageSummary
from assistant_stream.observability.logging import StreamLogger
from tests.helpers.streaming_mocks import FakeSubscription, text_delta


class TestSettings:
    """Test environment-driven configuration."""

    def test_defaults(self, monkeypatch):
        for name in ("OPENAI_PROMPT_ID", "RESUMABLE_STREAMS", "REDIS_URL", "STREAM_TTL_SECONDS",
                     "MODEL_CATALOG_URL", "ASSISTANT_SYSTEM_PROMPT"):
            monkeypatch.delenv(name, raising=False)

        with patch("assistant_stream.config.settings.load_dotenv"):
            settings = load_settings()

        assert settings.resumable_streams == "memory"
        assert settings.stream_ttl_seconds == 86400
        assert settings.model_catalog_url is None

    def test_environment_overrides(self, mock_env_vars, monkeypatch):
        monkeypatch.setenv("RESUMABLE_STREAMS", "REDIS")
        monkeypatch.setenv("REDIS_URL", "redis://localhost:6379/0")
        monkeypatch.setenv("STREAM_TTL_SECONDS", "600")
        monkeypatch.setenv("ASSISTANT_SYSTEM_PROMPT", "Be terse.")

        with patch("assistant_stream.config.settings.load_dotenv"):
            settings = load_settings()

        assert settings.openai_api_key == "test-openai-key"
        assert settings.resumable_streams == "redis"
        assert settings.redis_url == "redis://localhost:6379/0"
        assert settings.stream_ttl_seconds == 600
        assert settings.system_prompt == "Be terse."

    def test_invalid_values_fall_back(self, monkeypatch):
        monkeypatch.setenv("RESUMABLE_STREAMS", "kafka")
        monkeypatch.setenv("OPENAI_TIMEOUT", "soon")

        with patch("assistant_stream.config.settings.load_dotenv"):
            settings = load_settings()

        assert settings.resumable_streams == "memory"
        assert settings.openai_timeout == 60.0

    def test_resolve_chat_model(self):
        assert resolve_chat_model("chat-model-reasoning") == "gpt-4o"
        with pytest.raises(ValueError):
            resolve_chat_model("gpt-9")


class TestStreamLogger:
    """Test structured log formatting."""

    def test_fields_prefix_message(self, caplog):
        logger = StreamLogger("orchestrator")

        with caplog.at_level(logging.INFO, logger="assistant_stream.orchestrator"):
            logger.info("Starting", request_id="r1", chat_id="c1", model=None)

        assert caplog.records[-1].getMessage() == "[component=orchestrator request_id=r1 chat_id=c1] Starting"

    def test_track_turn_logs_failure(self, caplog):
        logger = StreamLogger("chat")

        with caplog.at_level(logging.DEBUG, logger="assistant_stream.chat"):
            with pytest.raises(RuntimeError):
                with logger.track_turn("provider-generate", request_id="r1"):
                    raise RuntimeError("boom")

        message = caplog.records[-1].getMessage()
        assert "Failed provider-generate" in message
        assert "error_type=RuntimeError" in message

    def test_log_usage(self, caplog):
        logger = StreamLogger("orchestrator")
        usage = UsageSummary(input_tokens=1, output_tokens=2, total_tokens=3, model_id="gpt-4o",
                             total_cost_usd=0.00002)

        with caplog.at_level(logging.INFO, logger="assistant_stream.orchestrator"):
            logger.log_usage(usage, request_id="r1")

        message = caplog.records[-1].getMessage()
        assert "total_tokens=3" in message
        assert "cost_usd=0.000020" in message


class TestCLI:
    """Test the command line entry point."""

    def test_catalog(self, monkeypatch, capsys):
        monkeypatch.delenv("MODEL_CATALOG_URL", raising=False)
        monkeypatch.setattr(sys, "argv", ["assistant-stream", "catalog"])

        with patch("assistant_stream.config.settings.load_dotenv"):
            assert cli.main() == 0

        output = capsys.readouterr().out
        assert "Model catalog (default" in output
        assert "gpt-4o-mini" in output

    def test_stream_prints_events(self, monkeypatch, capsys):
        monkeypatch.delenv("MODEL_CATALOG_URL", raising=False)
        monkeypatch.setenv("OPENAI_API_KEY", "test-openai-key")
        monkeypatch.setattr(sys, "argv", ["assistant-stream", "stream", "Say hello"])
        open_stream = AsyncMock(return_value=FakeSubscription([text_delta("Hi")]))

        with patch("assistant_stream.config.settings.load_dotenv"), \
             patch.object(cli.OpenAIResponsesProvider, "open_stream", open_stream):
            assert cli.main() == 0

        lines = capsys.readouterr().out.strip().splitlines()
        assert lines[0] == '{"type": "start"}'
        assert lines[-1] == '{"type": "finish"}'
        assert open_stream.call_args.args[0]["model"] == "gpt-4o-mini"

    def test_stream_raw_prints_frames(self, monkeypatch, capsys):
        monkeypatch.delenv("MODEL_CATALOG_URL", raising=False)
        monkeypatch.setattr(sys, "argv", ["assistant-stream", "stream", "Say hello", "--raw"])
        open_stream = AsyncMock(return_value=FakeSubscription([text_delta("Hi")]))

        with patch("assistant_stream.config.settings.load_dotenv"), \
             patch.object(cli.OpenAIResponsesProvider, "open_stream", open_stream):
            cli.main()

        output = capsys.readouterr().out
        assert output.startswith('data: {"type":"start"}\n\n')
        assert output.endswith("data: [DONE]\n\n")
