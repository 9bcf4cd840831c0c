# -*- coding: utf-8 -*-
# @File: app/routers/chat_router.py
# @Author: yaccii
# @Description: Copilot chat HTTP API

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends

from app.deps import get_copilot_service, get_dashboard_service
from domains.chat_domain import ChatRequest, ChatResponse, ContextSummary
from services.copilot.copilot_service import CopilotService
from services.risk.dashboard_service import DashboardService

router = APIRouter(prefix="/api", tags=["chat"])

CHAT_PATH = "/api/chat"
CHAT_BAD_REQUEST_MESSAGE = "Request body must be a JSON object with a non-empty string 'message'"


@router.post("/chat")
async def chat(
    payload: ChatRequest,
    dashboard: DashboardService = Depends(get_dashboard_service),
    copilot: CopilotService = Depends(get_copilot_service),
) -> Dict[str, Any]:
    # body validation failures are answered with 400 before this runs (see app.main)
    snapshot = await dashboard.get_snapshot()
    answer = await copilot.ask(payload.message, snapshot)

    resp = ChatResponse(
        answer=answer.answer,
        question_type=answer.question_type,
        sources=answer.sources,
        fallback=answer.fallback,
        context_summary=ContextSummary(
            composite_score=snapshot.composite_score,
            composite_label=snapshot.composite_label.value,
            generated_at=snapshot.generated_at,
        ),
        model_error=answer.model_error,
    )
    body = resp.to_dict(by_alias=True)
    if resp.model_error is None:
        body.pop("modelError", None)
    return body
