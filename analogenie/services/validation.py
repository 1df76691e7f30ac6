from __future__ import annotations

from analogenie.config import settings
from analogenie.models.errors import InputValidationError
from analogenie.models.session import Session, StageRequest


def count_words(text: str) -> int:
    return len(text.split())


def validate_concept(concept: str | None, *, max_words: int | None = None) -> None:
    limit = settings.max_concept_words if max_words is None else max_words
    if not concept or not concept.strip():
        raise InputValidationError("Concept cannot be empty")

    word_count = count_words(concept)
    if word_count > limit:
        raise InputValidationError(
            f"Concept must be {limit} words or less (current: {word_count} words)"
        )


def validate_stage_request(request: StageRequest) -> None:
    """Check the inputs every stage up to `request.stage` needs."""
    if request.stage not in (1, 2, 3):
        raise InputValidationError(f"Invalid stage specified: {request.stage!r}")

    validate_concept(request.concept)

    if request.stage >= 2 and not (request.domain and request.domain.strip()):
        raise InputValidationError("Domain is required for stage 2 and above")
    if request.stage >= 3 and not (request.finding and request.finding.strip()):
        raise InputValidationError("Finding is required for stage 3")


def validate_transition(session: Session, request: StageRequest) -> None:
    if int(session.stage) < request.stage - 1:
        raise InputValidationError(
            f"Stage {request.stage} is not reachable from stage {int(session.stage)}"
        )
