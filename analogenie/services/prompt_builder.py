"""Stage prompt rendering.

System templates come from configuration (SYSTEM_PROMPT_<n> or the bundled
catalog). Placeholders are substituted case-sensitively and the template is
otherwise passed through untouched.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from analogenie.models.errors import InputValidationError
from analogenie.services import prompt_store

CONCEPT_PLACEHOLDER_STAGE_1 = "[CONCEPT]"
CONCEPT_PLACEHOLDER = "{{CONCEPT}}"
DOMAIN_PLACEHOLDER = "{{DOMAIN}}"
FINDINGS_PLACEHOLDER = "{{FINDINGS}}"


@dataclass(frozen=True)
class PromptPair:
    system_prompt: str
    user_prompt: str


def build_prompts(
    stage: int,
    *,
    concept: str,
    domain: str | None = None,
    finding: str | None = None,
    templates: Mapping[int, str] | None = None,
) -> PromptPair:
    """Render the system and user prompt for `stage`.

    `templates` overrides the configured system templates (keyed by stage).
    """
    if stage not in (1, 2, 3):
        raise InputValidationError("Invalid stage specified")

    template = templates[stage] if templates is not None else prompt_store.system_template(stage)

    if stage == 1:
        system_prompt = template.replace(CONCEPT_PLACEHOLDER_STAGE_1, concept, 1)
        return PromptPair(system_prompt, prompt_store.user_prompt(1, concept=concept))

    if not domain:
        raise InputValidationError(f"Domain is required for stage {stage}")

    if stage == 2:
        system_prompt = template.replace(CONCEPT_PLACEHOLDER, concept).replace(DOMAIN_PLACEHOLDER, domain)
        return PromptPair(system_prompt, prompt_store.user_prompt(2, concept=concept, domain=domain))

    if not finding:
        raise InputValidationError("Finding is required for stage 3")

    system_prompt = (
        template.replace(CONCEPT_PLACEHOLDER, concept)
        .replace(DOMAIN_PLACEHOLDER, domain)
        .replace(FINDINGS_PLACEHOLDER, finding)
    )
    return PromptPair(system_prompt, prompt_store.user_prompt(3))
