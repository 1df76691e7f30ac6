"""Map raw failures from any remote call onto the closed ErrorKind taxonomy."""
from __future__ import annotations

from typing import Any

from analogenie.models.errors import ClassifiedError, ErrorKind, InputValidationError

NON_RETRYABLE_KINDS = frozenset({ErrorKind.INPUT_VALIDATION, ErrorKind.AUTHENTICATION})


def _status_code(exc: BaseException) -> int | None:
    status = getattr(exc, "status_code", None)
    if isinstance(status, int):
        return status
    response = _safe_attr(exc, "response")
    status = getattr(response, "status_code", None) if response is not None else None
    return status if isinstance(status, int) else None


def _safe_attr(exc: BaseException, name: str) -> Any:
    # httpx raises RuntimeError from `.request` / `.response` when they were never set.
    try:
        return getattr(exc, name, None)
    except RuntimeError:
        return None


def _response_message(exc: BaseException) -> str | None:
    response = _safe_attr(exc, "response")
    if response is None:
        return None
    try:
        payload = response.json()
    except Exception:
        return None
    if isinstance(payload, dict):
        message = payload.get("message")
        if isinstance(message, str) and message:
            return message
        error = payload.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
        if isinstance(error, str) and error:
            return error
    return None


def classify(exc: BaseException) -> ClassifiedError:
    """Classify a failure. Total: every input maps to exactly one kind."""
    raw_message = str(exc)

    if isinstance(exc, InputValidationError):
        return ClassifiedError(
            kind=ErrorKind.INPUT_VALIDATION,
            message="Input validation error",
            details=raw_message,
        )

    status = _status_code(exc)
    if status is not None:
        if status == 400:
            return ClassifiedError(
                kind=ErrorKind.INPUT_VALIDATION,
                message="Invalid input",
                details=_response_message(exc) or "Please check your input and try again",
                status_code=status,
            )
        if status in (401, 403):
            return ClassifiedError(
                kind=ErrorKind.AUTHENTICATION,
                message="Authentication error",
                details="Please check your API keys",
                status_code=status,
            )
        if status == 429:
            return ClassifiedError(
                kind=ErrorKind.RATE_LIMIT,
                message="Rate limit exceeded",
                details="Please try again later",
                status_code=status,
            )
        if status >= 500:
            return ClassifiedError(
                kind=ErrorKind.SERVER_ERROR,
                message="Server error",
                details="The server encountered an error. Please try again later",
                status_code=status,
            )
        return ClassifiedError(
            kind=ErrorKind.UNKNOWN,
            message="An unexpected error occurred",
            details=raw_message,
            status_code=status,
        )

    if _safe_attr(exc, "request") is not None:
        return ClassifiedError(
            kind=ErrorKind.API_CONNECTION,
            message="Connection error",
            details="Could not connect to the server. Please check your internet connection",
        )

    if "word" in raw_message:
        return ClassifiedError(
            kind=ErrorKind.INPUT_VALIDATION,
            message="Input validation error",
            details=raw_message,
        )

    return ClassifiedError(
        kind=ErrorKind.UNKNOWN,
        message="An unexpected error occurred",
        details=raw_message,
    )


def is_retryable(error: ClassifiedError) -> bool:
    """Default retry predicate: terminal for validation, auth and non-429 4xx."""
    if error.kind in NON_RETRYABLE_KINDS:
        return False
    if error.status_code is not None and 400 <= error.status_code < 500 and error.status_code != 429:
        return False
    return True
