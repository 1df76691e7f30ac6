"""Tests for the stage ModelCall implementations and factory."""
import sys
import types
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from analogenie.llm_client import AnthropicModelCall, OpenRouterModelCall, get_model, get_model_call
from analogenie.models.errors import ConfigurationError


class TestGetModel:
    def test_returns_default_for_anthropic(self):
        with patch("analogenie.llm_client.settings") as mock_settings:
            mock_settings.llm_provider = "anthropic"
            mock_settings.openrouter_model = "openai/gpt-4.1"
            mock_settings.default_model = "claude-3-7-sonnet-20250219"

            assert get_model() == "claude-3-7-sonnet-20250219"

    def test_returns_openrouter_override(self):
        with patch("analogenie.llm_client.settings") as mock_settings:
            mock_settings.llm_provider = "openrouter"
            mock_settings.openrouter_model = "openai/gpt-4.1"
            mock_settings.default_model = "claude-3-7-sonnet-20250219"

            assert get_model() == "openai/gpt-4.1"


class TestGetModelCall:
    def test_builds_anthropic_client(self):
        with patch("analogenie.llm_client.settings") as mock_settings:
            mock_settings.llm_provider = "anthropic"
            mock_settings.anthropic_api_key = "sk-ant-test"
            mock_settings.default_model = "claude-3-7-sonnet-20250219"
            mock_settings.llm_max_tokens = 4000

            anthropic_module = types.ModuleType("anthropic")
            mock_anthropic = MagicMock()
            anthropic_module.AsyncAnthropic = mock_anthropic

            with patch.dict(sys.modules, {"anthropic": anthropic_module}):
                call = get_model_call()

        mock_anthropic.assert_called_once_with(api_key="sk-ant-test")
        assert isinstance(call, AnthropicModelCall)
        assert call.model == "claude-3-7-sonnet-20250219"
        assert call.max_tokens == 4000

    def test_builds_openrouter_client(self):
        with patch("analogenie.llm_client.settings") as mock_settings:
            mock_settings.llm_provider = "openrouter"
            mock_settings.openrouter_api_key = "sk-or-test"
            mock_settings.openrouter_base_url = "https://openrouter.ai/api/v1"
            mock_settings.openrouter_model = ""
            mock_settings.default_model = "anthropic/claude-3.7-sonnet"
            mock_settings.llm_max_tokens = 2000

            openai_module = types.ModuleType("openai")
            mock_openai = MagicMock()
            openai_module.AsyncOpenAI = mock_openai

            with patch.dict(sys.modules, {"openai": openai_module}):
                call = get_model_call()

        mock_openai.assert_called_once_with(
            api_key="sk-or-test",
            base_url="https://openrouter.ai/api/v1",
        )
        assert isinstance(call, OpenRouterModelCall)
        assert call.model == "anthropic/claude-3.7-sonnet"

    def test_missing_key_raises_configuration_error(self):
        with patch("analogenie.llm_client.settings") as mock_settings:
            mock_settings.llm_provider = "anthropic"
            mock_settings.anthropic_api_key = ""

            with pytest.raises(ConfigurationError, match="ANTHROPIC_API_KEY"):
                get_model_call()

    def test_unknown_provider_raises_configuration_error(self):
        with patch("analogenie.llm_client.settings") as mock_settings:
            mock_settings.llm_provider = "mystery"

            with pytest.raises(ConfigurationError):
                get_model_call()


class TestAnthropicModelCall:
    @pytest.mark.asyncio
    async def test_call_sends_system_and_user_prompt(self):
        response = SimpleNamespace(
            content=[
                SimpleNamespace(type="text", text="# Top Domains\n"),
                SimpleNamespace(type="text", text="## 1. Domain: Ecology"),
            ],
            usage=SimpleNamespace(input_tokens=12, output_tokens=30),
        )
        client = MagicMock()
        client.messages.create = AsyncMock(return_value=response)
        call = AnthropicModelCall(client, model="claude-3-7-sonnet-20250219", max_tokens=4000)

        with patch("analogenie.llm_client.log_service.log_llm_call") as log_llm_call:
            text = await call.call("system text", "user text")

        assert text == "# Top Domains\n## 1. Domain: Ecology"
        client.messages.create.assert_awaited_once_with(
            model="claude-3-7-sonnet-20250219",
            system="system text",
            messages=[{"role": "user", "content": "user text"}],
            max_tokens=4000,
        )
        assert log_llm_call.call_args.kwargs["input_tokens"] == 12
        assert log_llm_call.call_args.kwargs["output_tokens"] == 30
        assert log_llm_call.call_args.kwargs["status"] == "success"

    @pytest.mark.asyncio
    async def test_logging_failure_does_not_break_the_call(self):
        response = SimpleNamespace(
            content=[SimpleNamespace(type="text", text="## 1. Domain: Ecology")],
            usage=SimpleNamespace(input_tokens=1, output_tokens=2),
        )
        client = MagicMock()
        client.messages.create = AsyncMock(return_value=response)
        call = AnthropicModelCall(client, model="m")

        with patch(
            "analogenie.llm_client.log_service.log_llm_call",
            side_effect=RuntimeError("log sink unavailable"),
        ) as log_llm_call:
            text = await call.call("s", "u")

        assert text == "## 1. Domain: Ecology"
        log_llm_call.assert_called_once()

    @pytest.mark.asyncio
    async def test_call_logs_and_reraises_failures(self):
        client = MagicMock()
        error = RuntimeError("upstream down")
        client.messages.create = AsyncMock(side_effect=error)
        call = AnthropicModelCall(client, model="m")

        with patch("analogenie.llm_client.log_service.log_llm_call") as log_llm_call:
            with pytest.raises(RuntimeError) as raised:
                await call.call("s", "u")

        assert raised.value is error
        assert log_llm_call.call_args.kwargs["error"] == "upstream down"


class TestOpenRouterModelCall:
    @pytest.mark.asyncio
    async def test_call_maps_messages_and_returns_first_choice(self):
        response = SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content="Done."))],
            usage=SimpleNamespace(prompt_tokens=11, completion_tokens=7),
        )
        client = MagicMock()
        client.chat.completions.create = AsyncMock(return_value=response)
        call = OpenRouterModelCall(client, model="openai/gpt-4.1", max_tokens=100)

        with patch("analogenie.llm_client.log_service.log_llm_call") as log_llm_call:
            text = await call.call("sys", "usr")

        assert text == "Done."
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["messages"] == [
            {"role": "system", "content": "sys"},
            {"role": "user", "content": "usr"},
        ]
        assert kwargs["max_tokens"] == 100
        assert log_llm_call.call_args.kwargs["input_tokens"] == 11
        assert log_llm_call.call_args.kwargs["output_tokens"] == 7

    @pytest.mark.asyncio
    async def test_call_returns_empty_text_without_choices(self):
        client = MagicMock()
        client.chat.completions.create = AsyncMock(return_value=SimpleNamespace(choices=[], usage=None))
        call = OpenRouterModelCall(client, model="m")

        assert await call.call("s", "u") == ""
