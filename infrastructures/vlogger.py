# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description: Logging setup + per-request context middleware.

from __future__ import annotations

import logging
import time
import uuid
from contextvars import ContextVar
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

_request_id_var: ContextVar[str] = ContextVar("request_id", default="-")
_factory_installed = False


def get_request_id() -> str:
    return _request_id_var.get()


def init_logging(level: str) -> None:
    global _factory_installed

    valid = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
    lvl = (level or "").upper().strip()
    if lvl not in valid:
        lvl = "INFO"

    # create_app() may run more than once per process (tests); wrap the factory only once
    if not _factory_installed:
        old_factory = logging.getLogRecordFactory()

        def record_factory(*args, **kwargs):
            record = old_factory(*args, **kwargs)
            record.request_id = get_request_id()
            return record

        logging.setLogRecordFactory(record_factory)
        _factory_installed = True

    logging.basicConfig(
        level=getattr(logging, lvl),
        format="%(asctime)s %(levelname)s %(name)s [rid=%(request_id)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )

    # uvicorn 日志统一走 root formatter
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi", "starlette", "httpx"):
        lg = logging.getLogger(name)
        lg.handlers.clear()
        lg.propagate = True
    # httpx logs every request line at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    vlogger.info("logging initialized level=%s", lvl)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Attach request_id and emit a single access log line per request.

    With ``error_response`` set, an unhandled exception is logged once here and
    turned into that response, so it never reaches the server error middleware.
    """

    def __init__(
        self,
        app,
        *,
        header_name: str,
        generate: bool = True,
        log_requests: bool = True,
        error_response: Optional[Callable[[Request, Exception], Response]] = None,
    ) -> None:
        super().__init__(app)
        self.header_name = header_name
        self.generate = generate
        self.log_requests = log_requests
        self.error_response = error_response

    async def dispatch(self, request: Request, call_next) -> Response:
        rid = "-"

        incoming = request.headers.get(self.header_name)
        if incoming and incoming.strip():
            rid = incoming.strip()
        elif self.generate:
            rid = uuid.uuid4().hex

        token = _request_id_var.set(rid)
        start = time.perf_counter()
        response: Response | None = None
        try:
            response = await call_next(request)
            return response
        except Exception as e:
            if self.error_response is None:
                raise
            vlogger.exception("unhandled error %s %s", request.method, request.url.path)
            response = self.error_response(request, e)
            return response
        finally:
            elapsed_ms = int((time.perf_counter() - start) * 1000)

            # call_next 抛异常时 response 为空
            if response is not None and rid != "-":
                response.headers[self.header_name] = rid

            if self.log_requests:
                status = getattr(response, "status_code", "EXC")
                vlogger.info(
                    "http %s %s -> %s %sms",
                    request.method,
                    request.url.path,
                    status,
                    elapsed_ms,
                )
            _request_id_var.reset(token)


vlogger = get_logger("civic_risk")
