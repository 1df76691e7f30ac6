"""Text-completion clients for the stage prompts (Anthropic or OpenRouter)."""
from __future__ import annotations

import time
from typing import Any, Protocol

from analogenie.config import settings
from analogenie.models.errors import ConfigurationError
from analogenie.services import logger as log_service


class ModelCall(Protocol):
    async def call(self, system_prompt: str, user_prompt: str) -> str: ...


def _log_call(model: str, caller: str, started: float, usage: Any = None, error: str | None = None) -> None:
    try:
        log_service.log_llm_call(
            model=model,
            caller=caller,
            input_tokens=int(getattr(usage, "input_tokens", 0) or getattr(usage, "prompt_tokens", 0) or 0),
            output_tokens=int(getattr(usage, "output_tokens", 0) or getattr(usage, "completion_tokens", 0) or 0),
            duration_ms=int((time.monotonic() - started) * 1000),
            status="error" if error else "success",
            error=error,
        )
    except Exception:
        # Never break a stage because logging failed.
        pass


class AnthropicModelCall:
    name = "anthropic"

    def __init__(self, client: Any, model: str, max_tokens: int = 4000):
        self._client = client
        self.model = model
        self.max_tokens = max_tokens

    async def call(self, system_prompt: str, user_prompt: str) -> str:
        started = time.monotonic()
        try:
            response = await self._client.messages.create(
                model=self.model,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
                max_tokens=self.max_tokens,
            )
        except Exception as exc:
            _log_call(self.model, self.name, started, error=str(exc))
            raise

        _log_call(self.model, self.name, started, usage=getattr(response, "usage", None))
        return "".join(
            block.text for block in response.content if getattr(block, "type", "text") == "text"
        )


class OpenRouterModelCall:
    name = "openrouter"

    def __init__(self, client: Any, model: str, max_tokens: int = 4000):
        self._client = client
        self.model = model
        self.max_tokens = max_tokens

    async def call(self, system_prompt: str, user_prompt: str) -> str:
        started = time.monotonic()
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                max_tokens=self.max_tokens,
            )
        except Exception as exc:
            _log_call(self.model, self.name, started, error=str(exc))
            raise

        _log_call(self.model, self.name, started, usage=getattr(response, "usage", None))
        choices = getattr(response, "choices", None) or []
        if not choices:
            return ""
        return getattr(choices[0].message, "content", None) or ""


def get_model() -> str:
    """Get the active model id."""
    if settings.llm_provider.lower().strip() == "openrouter" and settings.openrouter_model:
        return settings.openrouter_model
    return settings.default_model


def get_model_call() -> ModelCall:
    """Build the ModelCall for the configured provider."""
    provider = settings.llm_provider.lower().strip()

    if provider == "anthropic":
        if not settings.anthropic_api_key:
            raise ConfigurationError("ANTHROPIC_API_KEY is not configured")
        import anthropic

        return AnthropicModelCall(
            anthropic.AsyncAnthropic(api_key=settings.anthropic_api_key),
            model=get_model(),
            max_tokens=settings.llm_max_tokens,
        )

    if provider == "openrouter":
        if not settings.openrouter_api_key:
            raise ConfigurationError("OPENROUTER_API_KEY is not configured")
        from openai import AsyncOpenAI

        base_url = settings.openrouter_base_url.strip() or "https://openrouter.ai/api/v1"
        return OpenRouterModelCall(
            AsyncOpenAI(api_key=settings.openrouter_api_key, base_url=base_url),
            model=get_model(),
            max_tokens=settings.llm_max_tokens,
        )

    raise ConfigurationError(f"Unsupported LLM_PROVIDER: {settings.llm_provider}")


_model_call: ModelCall | None = None


def model_call() -> ModelCall:
    """Get or create the process-wide ModelCall."""
    global _model_call
    if _model_call is None:
        _model_call = get_model_call()
    return _model_call
