"""Forward finalized research questions to an external research provider."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence

import httpx

from analogenie.config import settings
from analogenie.models.errors import ConfigurationError, InputValidationError
from analogenie.services import logger as log_service
from analogenie.services.retry import RetryHook, RetryPolicy, run_with_retry


class ResearchProvider(str, Enum):
    PERPLEXITY = "perplexity"
    ELICIT = "elicit"


@dataclass(frozen=True)
class ProviderConfig:
    url: str
    api_key: str


def get_provider_config(provider: ResearchProvider) -> ProviderConfig:
    if provider is ResearchProvider.PERPLEXITY:
        return ProviderConfig(url=settings.perplexity_url, api_key=settings.perplexity_api_key)
    return ProviderConfig(url=settings.elicit_url, api_key=settings.elicit_api_key)


def parse_provider(provider: str | ResearchProvider) -> ResearchProvider:
    try:
        return ResearchProvider(provider)
    except ValueError:
        supported = ", ".join(p.value for p in ResearchProvider)
        raise InputValidationError(
            f"Valid API provider is required ({supported}), got {provider!r}"
        ) from None


def clean_questions(questions: Sequence[str] | None) -> list[str]:
    if isinstance(questions, str):
        questions = [questions]
    cleaned = [q.strip() for q in (questions or []) if isinstance(q, str) and q.strip()]
    if not cleaned:
        raise InputValidationError("At least one research question is required")
    return cleaned


async def _post_queries(
    client: httpx.AsyncClient,
    config: ProviderConfig,
    questions: list[str],
    session_id: str,
) -> Any:
    response = await client.post(
        config.url,
        json={"queries": questions, "sessionId": session_id},
        headers={
            "Content-Type": "application/json",
            "Authorization": f"Bearer {config.api_key}",
        },
    )
    response.raise_for_status()
    return response.json()


async def dispatch(
    questions: Sequence[str],
    provider: str | ResearchProvider,
    session_id: str,
    *,
    client: httpx.AsyncClient | None = None,
    retry_policy: RetryPolicy | None = None,
    on_retry: RetryHook | None = None,
) -> Any:
    """Send questions to `provider` and return its JSON payload unmodified."""
    cleaned = clean_questions(questions)
    selected = parse_provider(provider)
    config = get_provider_config(selected)
    if not config.api_key:
        raise ConfigurationError(f"{selected.value.upper()}_API_KEY is not configured")

    log_service.log_event(
        event_type="research_dispatch_started",
        message=f"Sending {len(cleaned)} research questions to {selected.value}",
        session_id=session_id,
        provider=selected.value,
    )

    async def send(active: httpx.AsyncClient) -> Any:
        return await run_with_retry(
            lambda: _post_queries(active, config, cleaned, session_id),
            retry_policy,
            on_retry=on_retry,
            label=f"{selected.value} research request",
        )

    try:
        if client is not None:
            payload = await send(client)
        else:
            async with httpx.AsyncClient(timeout=settings.research_timeout_seconds) as owned:
                payload = await send(owned)
    except Exception as exc:
        log_service.log_event(
            event_type="research_dispatch_failed",
            message=f"Error sending to {selected.value} API",
            session_id=session_id,
            provider=selected.value,
            error=str(exc),
        )
        raise

    log_service.log_event(
        event_type="research_dispatch_completed",
        message=f"Research results received from {selected.value}",
        session_id=session_id,
        provider=selected.value,
    )
    return payload
