# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description: Google Gemini native HTTP client (generateContent).

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from infrastructures.llm.errors import (
    LlmAuthError,
    LlmBadRequestError,
    LlmConfigError,
    LlmEmptyResponseError,
    LlmProviderError,
    LlmRateLimitError,
    LlmTimeoutError,
)

PROVIDER_TAG = "gemini"


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class GeminiResponse:
    text: str
    raw: Dict[str, Any]
    latency_ms: int


def extract_text(raw: Dict[str, Any]) -> str:
    """Join the text parts of the first candidate; "" when there are none."""

    candidates = raw.get("candidates") or []
    if not candidates:
        return ""
    content = (candidates[0] or {}).get("content") or {}
    parts = content.get("parts") or []
    texts = [str(p.get("text")) for p in parts if isinstance(p, dict) and p.get("text")]
    return "\n".join(texts).strip()


class GeminiClient:
    """Minimal client for ``/v1beta/models/{model}:generateContent``.

    Notes:
      - No vendor SDK; httpx directly, one pooled AsyncClient per instance.
      - An empty api_key means "not configured"; callers check ``configured``
        before calling, ``generate_text`` raises LlmConfigError otherwise.
    """

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        base_url: str = "https://generativelanguage.googleapis.com",
        timeout_seconds: int = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = (api_key or "").strip()
        self.model = model
        self.base_url = (base_url or "").rstrip("/")
        self.timeout_seconds = max(1, int(timeout_seconds))
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(transport=self._transport)
        return self._client

    async def aclose(self) -> None:
        """Close the underlying connection pool."""

        if self._client is not None:
            try:
                await self._client.aclose()
            finally:
                self._client = None

    def _url(self) -> str:
        return f"{self.base_url}/v1beta/models/{self.model}:generateContent"

    async def generate_text(
        self,
        prompt: str,
        *,
        temperature: float = 0.3,
        max_output_tokens: int = 400,
    ) -> GeminiResponse:
        if not self.configured:
            raise LlmConfigError("GEMINI_API_KEY not configured", provider=PROVIDER_TAG)

        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {"temperature": temperature, "maxOutputTokens": max_output_tokens},
        }
        t0 = _now_ms()
        try:
            resp = await self._get_client().post(
                self._url(),
                params={"key": self.api_key},
                headers={"Content-Type": "application/json"},
                json=payload,
                timeout=httpx.Timeout(float(self.timeout_seconds)),
            )
        except httpx.TimeoutException as e:
            raise LlmTimeoutError(provider=PROVIDER_TAG) from e
        except httpx.HTTPError as e:
            raise LlmProviderError(str(e) or type(e).__name__, provider=PROVIDER_TAG, retryable=True) from e

        latency = _now_ms() - t0
        if resp.status_code in (401, 403):
            raise LlmAuthError(provider=PROVIDER_TAG, status_code=resp.status_code)
        if resp.status_code == 429:
            raise LlmRateLimitError(provider=PROVIDER_TAG)
        if 400 <= resp.status_code < 500:
            raise LlmBadRequestError(
                "bad request",
                provider=PROVIDER_TAG,
                status_code=resp.status_code,
                details={"text": resp.text[:2000]},
            )
        if resp.status_code >= 500:
            raise LlmProviderError(
                f"upstream error: {resp.status_code}",
                provider=PROVIDER_TAG,
                retryable=True,
                status_code=resp.status_code,
                details={"text": resp.text[:2000]},
            )

        try:
            raw = resp.json()
        except ValueError as e:
            raise LlmProviderError("invalid json from upstream", provider=PROVIDER_TAG) from e
        if not isinstance(raw, dict):
            raise LlmProviderError("unexpected response shape", provider=PROVIDER_TAG)

        text = extract_text(raw)
        if not text:
            raise LlmEmptyResponseError(provider=PROVIDER_TAG, details={"finish": raw.get("promptFeedback")})
        return GeminiResponse(text=text, raw=raw, latency_ms=latency)
