from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


# --- Options ---


class DomainOption(BaseModel):
    id: str
    name: str


class FrameworkOption(BaseModel):
    id: str
    title: str
    description: str


class ResearchQuestion(BaseModel):
    id: str
    text: str


# --- Stage results ---


class DomainSelection(BaseModel):
    type: Literal["domain_selection"] = "domain_selection"
    content: str
    raw_response: str
    options: list[DomainOption] = Field(default_factory=list)


class FrameworkSelection(BaseModel):
    type: Literal["framework_selection"] = "framework_selection"
    content: str
    raw_response: str
    options: list[FrameworkOption] = Field(default_factory=list)


class ResearchQuestions(BaseModel):
    type: Literal["research_questions"] = "research_questions"
    content: str
    raw_response: str
    options: list[ResearchQuestion] = Field(default_factory=list)
    top_questions: list[str] = Field(default_factory=list)


StageResult = Annotated[
    Union[DomainSelection, FrameworkSelection, ResearchQuestions],
    Field(discriminator="type"),
]
