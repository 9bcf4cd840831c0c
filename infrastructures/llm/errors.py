# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description: LLM infrastructure error types (no business logic).

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class LlmError(Exception):
    """Base error for the language-model integration.

    Never surfaced to HTTP callers directly: the copilot catches it and
    answers from the local template instead.
    """

    code: str
    message: str
    retryable: bool = False
    provider: Optional[str] = None
    status_code: Optional[int] = None
    details: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.code} ({self.status_code}): {self.message}"
        return f"{self.code}: {self.message}"


class LlmConfigError(LlmError):
    def __init__(self, message: str, *, provider: Optional[str] = None):
        super().__init__(code="llm.config_error", message=message, provider=provider)


class LlmProviderError(LlmError):
    def __init__(
        self,
        message: str,
        *,
        provider: Optional[str] = None,
        code: str = "llm.provider_error",
        retryable: bool = False,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            retryable=retryable,
            provider=provider,
            status_code=status_code,
            details=details,
        )


class LlmTimeoutError(LlmProviderError):
    def __init__(self, message: str = "LLM request timed out", *, provider: Optional[str] = None):
        super().__init__(message, provider=provider, code="llm.timeout", retryable=True)


class LlmAuthError(LlmProviderError):
    def __init__(self, message: str = "LLM authentication failed", *, provider: Optional[str] = None, status_code: int = 401):
        super().__init__(message, provider=provider, code="llm.auth_failed", status_code=status_code)


class LlmRateLimitError(LlmProviderError):
    def __init__(self, message: str = "LLM rate limited", *, provider: Optional[str] = None):
        super().__init__(message, provider=provider, code="llm.rate_limited", retryable=True, status_code=429)


class LlmBadRequestError(LlmProviderError):
    def __init__(self, message: str = "LLM bad request", *, provider: Optional[str] = None, status_code: int = 400, details=None):
        super().__init__(message, provider=provider, code="llm.bad_request", status_code=status_code, details=details)


class LlmEmptyResponseError(LlmProviderError):
    def __init__(self, message: str = "LLM returned no text", *, provider: Optional[str] = None, details=None):
        super().__init__(message, provider=provider, code="llm.empty_response", details=details)
