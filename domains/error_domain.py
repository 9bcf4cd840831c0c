# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description: HTTP-facing error types and the JSON error body.

from typing import Optional, Any

from pydantic import BaseModel
from starlette import status

from domains.domain_base import utc_now_iso


class ErrorResponse(BaseModel):
    error: str
    code: str
    detail: Optional[Any] = None
    route: str
    time: str


class AppError(Exception):
    def __init__(
            self,
            code: str,
            message: str,
            http_status: int = status.HTTP_400_BAD_REQUEST,
            details: Any | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        self.details = details
        super().__init__(message)

    def to_response(self, *, route: str, include_detail: bool = True) -> ErrorResponse:
        return ErrorResponse(
            error=self.message,
            code=self.code,
            detail=self.details if include_detail else None,
            route=route,
            time=utc_now_iso(),
        )


class BadRequestError(AppError):
    def __init__(self, message: str = "Bad request", details: Any | None = None):
        super().__init__(
            code="BAD_REQUEST",
            message=message,
            http_status=status.HTTP_400_BAD_REQUEST,
            details=details,
        )


class NotFoundError(AppError):
    def __init__(self, message: str = "Resource not found", details: Any | None = None):
        super().__init__(
            code="NOT_FOUND",
            message=message,
            http_status=status.HTTP_404_NOT_FOUND,
            details=details,
        )


def internal_error_response(*, route: str, detail: Optional[str]) -> ErrorResponse:
    return ErrorResponse(
        error="Internal server error",
        code="INTERNAL_ERROR",
        detail=detail,
        route=route,
        time=utc_now_iso(),
    )


_HTTP_STATUS_CODES = {
    status.HTTP_400_BAD_REQUEST: "BAD_REQUEST",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
}


def http_error_response(status_code: int, message: Any, *, route: str) -> ErrorResponse:
    """Error body for framework-raised HTTP errors (unknown route, wrong method)."""

    return ErrorResponse(
        error=str(message or "HTTP error"),
        code=_HTTP_STATUS_CODES.get(status_code, f"HTTP_{status_code}"),
        route=route,
        time=utc_now_iso(),
    )
