from __future__ import annotations

from analogenie.llm_client import ModelCall, model_call as default_model_call
from analogenie.models.errors import AnalogenieError
from analogenie.models.results import StageResult
from analogenie.models.session import Session, StageRequest, StageState
from analogenie.services import logger as log_service
from analogenie.services import response_extractor
from analogenie.services.error_classifier import classify
from analogenie.services.prompt_builder import build_prompts
from analogenie.services.retry import RetryHook, RetryPolicy, run_with_retry
from analogenie.services.validation import validate_stage_request, validate_transition


class StageOrchestrator:
    """Drives one session through domain discovery, blending and question generation.

    `advance` validates, builds prompts, calls the model through the retry
    executor and extracts the result. The session is only updated once a
    result is in hand. Concurrent advances on the same session are not
    guarded; callers issue them one at a time.
    """

    def __init__(
        self,
        model_call: ModelCall | None = None,
        *,
        retry_policy: RetryPolicy | None = None,
        on_retry: RetryHook | None = None,
    ):
        self._model_call = model_call
        self.retry_policy = retry_policy
        self.on_retry = on_retry

    @property
    def model_call(self) -> ModelCall:
        if self._model_call is None:
            self._model_call = default_model_call()
        return self._model_call

    async def advance(self, session: Session, request: StageRequest) -> StageResult:
        try:
            validate_stage_request(request)
            validate_transition(session, request)
            prompts = build_prompts(
                request.stage,
                concept=request.concept,
                domain=request.domain,
                finding=request.finding,
            )
        except AnalogenieError as exc:
            log_service.log_stage_step(
                session.id,
                request.stage,
                "rejected",
                {"error": classify(exc).to_dict()},
            )
            raise

        log_service.log_stage_step(session.id, request.stage, "started")
        active_call = self.model_call

        async def call_model() -> str:
            return await active_call.call(prompts.system_prompt, prompts.user_prompt)

        try:
            raw_text = await run_with_retry(
                call_model,
                self.retry_policy,
                on_retry=self.on_retry,
                label=f"stage {request.stage} model call",
            )
        except Exception as exc:
            log_service.log_stage_step(
                session.id,
                request.stage,
                "failed",
                {"error": classify(exc).to_dict()},
            )
            raise

        result = response_extractor.extract(request.stage, raw_text)
        self._record(session, request)
        log_service.log_stage_step(
            session.id,
            request.stage,
            "completed",
            {"result_type": result.type, "options": len(result.options)},
        )
        return result

    @staticmethod
    def _record(session: Session, request: StageRequest) -> None:
        session.stage = StageState(request.stage)
        session.concept = request.concept
        session.domain = request.domain if request.stage >= 2 else None
        session.finding = request.finding if request.stage >= 3 else None

    async def submit_concept(self, session: Session, concept: str) -> StageResult:
        return await self.advance(session, StageRequest(stage=1, concept=concept))

    async def select_domain(self, session: Session, domain: str) -> StageResult:
        return await self.advance(
            session,
            StageRequest(stage=2, concept=session.concept or "", domain=domain),
        )

    async def select_finding(self, session: Session, finding: str) -> StageResult:
        return await self.advance(
            session,
            StageRequest(
                stage=3,
                concept=session.concept or "",
                domain=session.domain,
                finding=finding,
            ),
        )

    @staticmethod
    def reset(session: Session) -> Session:
        """Return a fresh session replacing `session`; the old value is left untouched."""
        fresh = Session()
        log_service.log_event("session_reset", "Session reset", previous_session_id=session.id, session_id=fresh.id)
        return fresh
