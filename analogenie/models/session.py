from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from uuid import uuid4


class StageState(IntEnum):
    NOT_STARTED = 0
    AWAITING_DOMAIN = 1
    AWAITING_FINDING = 2
    COMPLETE = 3


@dataclass
class Session:
    """Accumulated context for one workflow run.

    Owned by a single caller and passed explicitly; nothing is stored at
    module level.
    """

    id: str = field(default_factory=lambda: str(uuid4()))
    stage: StageState = StageState.NOT_STARTED
    concept: str | None = None
    domain: str | None = None
    finding: str | None = None


@dataclass(frozen=True)
class StageRequest:
    stage: int
    concept: str
    domain: str | None = None
    finding: str | None = None


def new_session() -> Session:
    return Session()
