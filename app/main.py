# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description: FastAPI 应用入口

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse, RedirectResponse

from app.routers import chat_router, risk_router
from app.routers.chat_router import CHAT_BAD_REQUEST_MESSAGE, CHAT_PATH
from domains.error_domain import AppError, BadRequestError, http_error_response, internal_error_response
from infrastructures.cache.memory_cache import MemoryCache
from infrastructures.llm.clients.gemini_client import GeminiClient
from infrastructures.sources.civic_sources import CivicSources
from infrastructures.vconfig import VConfig, get_config
from infrastructures.vlogger import RequestContextMiddleware, init_logging, vlogger
from services.copilot.copilot_service import CopilotService
from services.risk.dashboard_service import DashboardService
from services.risk.source_collector import SourceCollector


def _cors_origins(raw: str) -> list:
    cors = (raw or "").strip()
    if cors == "*":
        return ["*"]
    return [o.strip() for o in cors.split(",") if o.strip()]


def create_app(
    config: Optional[VConfig] = None,
    cache: Optional[MemoryCache] = None,
    sources=None,
    llm_client: Optional[GeminiClient] = None,
) -> FastAPI:
    """Build the app with explicit collaborators.

    ``sources`` is anything with ``registry()`` (DomainId -> async fetch),
    optional ``attributions`` and ``aclose()``; defaults to live CivicSources.
    """

    cfg = config or get_config()
    init_logging(cfg.log_level)

    if cache is None:
        cache = MemoryCache(
            default_ttl_seconds=cfg.cache_ttl_seconds,
            coalesce=cfg.cache_coalesce_misses,
        )
    if sources is None:
        sources = CivicSources(config=cfg)
    if llm_client is None:
        llm_client = GeminiClient(
            api_key=cfg.gemini_api_key,
            model=cfg.gemini_model,
            base_url=cfg.gemini_base_url,
            timeout_seconds=cfg.gemini_timeout_seconds,
        )

    collector = SourceCollector(sources.registry(), timeout_seconds=cfg.source_timeout_seconds)
    dashboard = DashboardService(
        collector=collector,
        cache=cache,
        city=cfg.city_name,
        sources=getattr(sources, "attributions", ()),
        ttl_seconds=cfg.cache_ttl_seconds,
    )
    copilot = CopilotService(
        llm_client,
        context_max_chars=cfg.llm_context_max_chars,
        temperature=cfg.llm_temperature,
        max_output_tokens=cfg.llm_max_output_tokens,
        expose_errors=not cfg.is_production,
    )

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        vlogger.info(
            "civic risk copilot starting city=%s env=%s gemini=%s bright_data=%s",
            cfg.city_name,
            cfg.app_env,
            cfg.gemini_configured,
            cfg.bright_data_configured,
        )
        try:
            yield
        finally:
            # close upstream connection pools
            close = getattr(sources, "aclose", None)
            if close is not None:
                await close()
            await llm_client.aclose()
            vlogger.info("application shutdown")

    app = FastAPI(
        title="Civic Risk Copilot",
        version="0.1.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )

    app.state.config = cfg
    app.state.cache = cache
    app.state.sources = sources
    app.state.dashboard = dashboard
    app.state.copilot = copilot
    app.state.started_at = time.monotonic()

    # ---------- Global error handlers ----------
    @app.exception_handler(AppError)
    async def _app_error_handler(req: Request, exc: AppError):
        body = exc.to_response(route=req.url.path, include_detail=not cfg.is_production)
        return JSONResponse(status_code=exc.http_status, content=body.model_dump())

    @app.exception_handler(StarletteHTTPException)
    async def _http_error_handler(req: Request, exc: StarletteHTTPException):
        body = http_error_response(exc.status_code, exc.detail, route=req.url.path)
        return JSONResponse(status_code=exc.status_code, content=body.model_dump(), headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(req: Request, exc: RequestValidationError):
        if req.url.path != CHAT_PATH:
            return await request_validation_exception_handler(req, exc)
        details = [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in exc.errors()]
        err = BadRequestError(CHAT_BAD_REQUEST_MESSAGE, details=details)
        return await _app_error_handler(req, err)

    def _unhandled_error_response(req: Request, exc: Exception) -> JSONResponse:
        detail = None if cfg.is_production else f"{type(exc).__name__}: {exc}"
        body = internal_error_response(route=req.url.path, detail=detail)
        return JSONResponse(status_code=500, content=body.model_dump())

    # ---------- Middleware ----------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(cfg.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        RequestContextMiddleware,
        header_name=cfg.request_id_header,
        generate=cfg.generate_request_id,
        log_requests=cfg.log_requests,
        error_response=_unhandled_error_response,
    )

    app.include_router(risk_router.router)
    app.include_router(chat_router.router)

    @app.get("/", include_in_schema=False)
    async def index():
        return RedirectResponse(url="/api/docs", status_code=302)

    return app


app = create_app()
