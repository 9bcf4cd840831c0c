# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description: Upstream data-source error types (no business logic).

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class SourceError(Exception):
    """Base error for one upstream feed.

    The fan-out collector turns any of these into an unavailable DomainResult;
    they never reach HTTP callers.
    """

    code: str
    message: str
    source: Optional[str] = None
    status_code: Optional[int] = None

    def __str__(self) -> str:
        where = f"[{self.source}] " if self.source else ""
        return f"{where}{self.code}: {self.message}"


class SourceTimeoutError(SourceError):
    def __init__(self, message: str = "upstream request timed out", *, source: Optional[str] = None):
        super().__init__(code="source.timeout", message=message, source=source)


class SourceHttpError(SourceError):
    def __init__(self, status_code: int, *, source: Optional[str] = None, message: str = ""):
        super().__init__(
            code="source.http_status",
            message=message or f"upstream returned HTTP {status_code}",
            source=source,
            status_code=status_code,
        )


class SourceTransportError(SourceError):
    def __init__(self, message: str, *, source: Optional[str] = None):
        super().__init__(code="source.transport", message=message, source=source)


class SourceParseError(SourceError):
    def __init__(self, message: str, *, source: Optional[str] = None):
        super().__init__(code="source.parse", message=message, source=source)
