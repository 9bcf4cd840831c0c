# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description: LLM HTTP clients (infrastructure only).

from infrastructures.llm.clients.gemini_client import GeminiClient, GeminiResponse

__all__ = [
    "GeminiClient",
    "GeminiResponse",
]
