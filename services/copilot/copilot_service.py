# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description: Civic Risk Copilot: model answer first, deterministic template on any failure.

from __future__ import annotations

from typing import Optional

from domains.chat_domain import ChatAnswer, QuestionType
from domains.risk_domain import RiskSnapshot
from infrastructures.llm.clients.gemini_client import GeminiClient
from infrastructures.llm.errors import LlmError
from infrastructures.vlogger import vlogger
from services.copilot.question_router import build_fallback_answer, classify_question

DEFAULT_CONTEXT_MAX_CHARS = 12000


def build_prompt(question: str, question_type: QuestionType, snapshot: RiskSnapshot, *, max_chars: int) -> str:
    context = snapshot.model_dump_json(exclude_none=True)[:max_chars]
    return (
        f"You are Civic Risk Copilot for {snapshot.city}.\n"
        f"User question: {question}\n"
        f"Question type: {question_type.value}\n"
        f"Data context (JSON): {context}\n\n"
        "Respond in clear, practical language for residents. "
        "Include safety-first suggestions when relevant."
    )


class CopilotService:
    """Answers one question against one snapshot.

    ``ask`` never raises: a missing key is the normal no-model path, and any
    model failure falls back to the template for the question type.
    """

    def __init__(
        self,
        llm_client: Optional[GeminiClient],
        *,
        context_max_chars: int = DEFAULT_CONTEXT_MAX_CHARS,
        temperature: float = 0.3,
        max_output_tokens: int = 400,
        expose_errors: bool = False,
    ) -> None:
        self.llm_client = llm_client
        self.context_max_chars = int(context_max_chars)
        self.temperature = float(temperature)
        self.max_output_tokens = int(max_output_tokens)
        self.expose_errors = bool(expose_errors)

    @property
    def model_configured(self) -> bool:
        return self.llm_client is not None and self.llm_client.configured

    async def _ask_model(self, question: str, qtype: QuestionType, snapshot: RiskSnapshot) -> str:
        prompt = build_prompt(question, qtype, snapshot, max_chars=self.context_max_chars)
        resp = await self.llm_client.generate_text(
            prompt,
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
        )
        vlogger.info("copilot model answer type=%s latency_ms=%s", qtype.value, resp.latency_ms)
        return resp.text

    async def ask(self, question: str, snapshot: RiskSnapshot) -> ChatAnswer:
        qtype = classify_question(question)
        model_error: Optional[str] = None

        if self.model_configured:
            try:
                text = await self._ask_model(question, qtype, snapshot)
                return ChatAnswer(question_type=qtype, answer=text, fallback=False, sources=snapshot.sources)
            except LlmError as e:
                model_error = str(e)
            except Exception as e:
                model_error = f"{type(e).__name__}: {e}"
            vlogger.warning("copilot model failed, using fallback type=%s err=%s", qtype.value, model_error)
        else:
            model_error = "GEMINI_API_KEY not configured"

        return ChatAnswer(
            question_type=qtype,
            answer=build_fallback_answer(qtype, snapshot),
            fallback=True,
            sources=snapshot.sources,
            model_error=model_error if self.expose_errors else None,
        )
