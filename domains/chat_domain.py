# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description: Copilot question / answer contracts (data only). No business logic.

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import ConfigDict, Field, StrictStr, field_validator

from domains.domain_base import DomainModel, FrozenDomainModel


class QuestionType(str, Enum):
    weather = "weather"
    alerts = "alerts"
    city = "city"
    safety = "safety"
    flood = "flood"
    air = "air"
    general = "general"


class ChatAnswer(FrozenDomainModel):
    question_type: QuestionType
    answer: str
    fallback: bool = Field(..., description="True when produced by the local template, not the model")
    sources: List[str] = Field(default_factory=list)
    model_error: Optional[str] = Field(default=None, description="仅非生产环境回显")


# =========================
# HTTP request
# =========================

class ChatRequest(DomainModel):
    message: StrictStr

    @field_validator("message")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("message must not be empty")
        return v


# =========================
# HTTP response shapes (camelCase on the wire)
# =========================

class ContextSummary(DomainModel):
    model_config = ConfigDict(populate_by_name=True)

    composite_score: int = Field(..., alias="compositeScore")
    composite_label: str = Field(..., alias="compositeLabel")
    generated_at: str = Field(..., alias="generatedAt")


class ChatResponse(DomainModel):
    model_config = ConfigDict(populate_by_name=True)

    answer: str
    question_type: QuestionType = Field(..., alias="questionType")
    sources: List[str] = Field(default_factory=list)
    fallback: bool
    context_summary: ContextSummary = Field(..., alias="contextSummary")
    model_error: Optional[str] = Field(default=None, alias="modelError")
