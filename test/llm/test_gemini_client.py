# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description: Gemini generateContent 客户端：请求形状 + 错误映射

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from infrastructures.llm.clients.gemini_client import GeminiClient, extract_text
from infrastructures.llm.errors import (
    LlmAuthError,
    LlmBadRequestError,
    LlmConfigError,
    LlmEmptyResponseError,
    LlmError,
    LlmProviderError,
    LlmRateLimitError,
    LlmTimeoutError,
)


def _gen(handler, *, api_key: str = "k-123"):
    async def go():
        client = GeminiClient(
            api_key=api_key,
            model="gemini-1.5-flash",
            base_url="https://gemini.test/",
            transport=httpx.MockTransport(handler),
        )
        try:
            return await client.generate_text("hello", temperature=0.3, max_output_tokens=400)
        finally:
            await client.aclose()

    return asyncio.run(go())


def test_request_shape_and_text() -> None:
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": "Hi "}, {"text": "there"}]}}]})

    resp = _gen(handler)

    assert resp.text == "Hi \nthere"
    assert captured["url"] == "https://gemini.test/v1beta/models/gemini-1.5-flash:generateContent?key=k-123"
    assert captured["body"]["contents"][0]["parts"][0]["text"] == "hello"
    assert captured["body"]["generationConfig"] == {"temperature": 0.3, "maxOutputTokens": 400}


@pytest.mark.parametrize(
    "status,err",
    [(401, LlmAuthError), (403, LlmAuthError), (429, LlmRateLimitError), (400, LlmBadRequestError),
     (500, LlmProviderError), (503, LlmProviderError)],
)
def test_status_mapping(status, err) -> None:
    with pytest.raises(err):
        _gen(lambda request: httpx.Response(status, text="nope"))


def test_timeout_and_empty_and_invalid_json() -> None:
    def slow(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(LlmTimeoutError):
        _gen(slow)
    with pytest.raises(LlmEmptyResponseError):
        _gen(lambda request: httpx.Response(200, json={"candidates": []}))
    with pytest.raises(LlmProviderError):
        _gen(lambda request: httpx.Response(200, text="<html>"))


def test_missing_key_is_config_error() -> None:
    with pytest.raises(LlmConfigError) as ei:
        _gen(lambda request: httpx.Response(200), api_key="  ")
    assert isinstance(ei.value, LlmError)


def test_extract_text() -> None:
    assert extract_text({}) == ""
    assert extract_text({"candidates": [{"content": {"parts": [{"inlineData": {}}]}}]}) == ""
