"""Turn free-form model output into typed stage results.

Each stage owns a small ordered set of rules. A rule first bounds the region
of text it may look at, then matches numbered entries inside that region
only. A missing region yields an empty option list of the right shape;
extraction never raises for any text input.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable

from analogenie.models.results import (
    DomainOption,
    DomainSelection,
    FrameworkOption,
    FrameworkSelection,
    ResearchQuestion,
    ResearchQuestions,
    StageResult,
)


@dataclass(frozen=True, slots=True)
class ExtractionRule:
    name: str
    region: re.Pattern[str]
    entry: re.Pattern[str]

    def find_region(self, text: str) -> str | None:
        match = self.region.search(text)
        if match is None:
            return None
        # Rules with a capture group bound the region to the group.
        return match.group(1) if self.region.groups else match.group(0)

    def entries(self, text: str) -> list[re.Match[str]]:
        region = self.find_region(text)
        if region is None:
            return []
        return list(self.entry.finditer(region))


# Ordinal marker "3. " on the same line as its text, not preceded by another digit.
_ORDINAL = r"(?<!\d)(\d+)\.[ \t]"
_NEXT_ORDINAL_OR_END = r"(?=(?<!\d)\d+\.[ \t]|\Z)"

DOMAINS_RULE = ExtractionRule(
    name="top_domains",
    region=re.compile(
        r"#+[ \t]*Top Domains\b.*?(?=Which domain should we explore further\?|\Z)",
        re.DOTALL,
    ),
    entry=re.compile(r"^#*[ \t]*(\d+)\.[ \t]*Domain:[ \t]*(\w[\w \t]*)", re.MULTILINE),
)

FRAMEWORKS_RULE = ExtractionRule(
    name="brightest_bulbs",
    region=re.compile(
        r"6: Brightest Bulbs(.*?)(?=Which path should we explore further\?|\Z)",
        re.DOTALL,
    ),
    entry=re.compile(
        r"(?<!\d)(\d+)\.\s*\*\*([^\n]*?):\*\*\s*(.*?)(?=(?<!\d)\d+\.\s*\*\*|\Z)",
        re.DOTALL,
    ),
)

QUESTIONS_RULE = ExtractionRule(
    name="research_questions",
    region=re.compile(r"<research_questions>(.*?)</research_questions>", re.DOTALL),
    entry=re.compile(_ORDINAL + r"(.*?)" + _NEXT_ORDINAL_OR_END, re.DOTALL),
)

TOP_QUESTIONS_RULE = ExtractionRule(
    name="top_questions",
    region=re.compile(r"Top Two Most Promising Research Questions:(.*)\Z", re.DOTALL),
    entry=QUESTIONS_RULE.entry,
)


def extract_domains(text: str) -> DomainSelection:
    options = [
        DomainOption(id=match.group(1), name=match.group(2).strip())
        for match in DOMAINS_RULE.entries(text)
    ]
    return DomainSelection(content=text, raw_response=text, options=options)


def extract_frameworks(text: str) -> FrameworkSelection:
    options = [
        FrameworkOption(
            id=match.group(1),
            title=match.group(2).strip(),
            description=match.group(3).strip(),
        )
        for match in FRAMEWORKS_RULE.entries(text)
    ]
    return FrameworkSelection(content=text, raw_response=text, options=options)


def extract_research_questions(text: str) -> ResearchQuestions:
    options = [
        ResearchQuestion(id=match.group(1), text=match.group(2).strip())
        for match in QUESTIONS_RULE.entries(text)
    ]
    top_questions = [match.group(2).strip() for match in TOP_QUESTIONS_RULE.entries(text)]
    return ResearchQuestions(
        content=text,
        raw_response=text,
        options=options,
        top_questions=top_questions,
    )


EXTRACTORS: dict[int, Callable[[str], StageResult]] = {
    1: extract_domains,
    2: extract_frameworks,
    3: extract_research_questions,
}


def extract(stage: int, raw_text: str | None) -> StageResult:
    """Parse `raw_text` into the result shape for `stage`.

    Raises ValueError only for a stage outside 1-3; text never causes an error.
    """
    extractor = EXTRACTORS.get(stage)
    if extractor is None:
        raise ValueError(f"No extractor for stage {stage!r}")
    return extractor(raw_text or "")
