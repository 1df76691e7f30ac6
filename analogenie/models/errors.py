"""Error taxonomy shared by the classifier, retry executor and callers."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    INPUT_VALIDATION = "input_validation"
    API_CONNECTION = "api_connection"
    RATE_LIMIT = "rate_limit"
    AUTHENTICATION = "authentication"
    SERVER_ERROR = "server_error"
    UNKNOWN = "unknown"


class AnalogenieError(Exception):
    """Base class for errors raised by the workflow itself."""


class InputValidationError(AnalogenieError):
    """A request failed a local precondition and was never sent anywhere."""


class ConfigurationError(AnalogenieError):
    """A required credential or endpoint is not configured."""


@dataclass(frozen=True)
class ClassifiedError:
    kind: ErrorKind
    message: str
    details: str = ""
    status_code: int | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["kind"] = self.kind.value
        data["timestamp"] = self.timestamp.isoformat()
        return data
