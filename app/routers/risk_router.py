# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description: Health, per-domain feeds and the aggregated dashboard.

from __future__ import annotations

import time
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request

from app.deps import get_app_config, get_cache, get_dashboard_service
from domains.domain_base import utc_now_iso
from domains.source_domain import DomainId
from infrastructures.cache.memory_cache import MemoryCache
from infrastructures.vconfig import VConfig
from services.risk.dashboard_service import DashboardService

router = APIRouter(prefix="/api", tags=["risk"])

SERVICE_NAME = "civic-risk-copilot"


@router.get("/health", tags=["system"])
async def health_check(
    request: Request,
    config: VConfig = Depends(get_app_config),
    cache: MemoryCache = Depends(get_cache),
) -> Dict[str, Any]:
    started = getattr(request.app.state, "started_at", time.monotonic())
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "time": utc_now_iso(),
        "uptime_seconds": round(time.monotonic() - started, 3),
        "cache": cache.stats(),
        "env": {
            "app_env": config.app_env,
            "gemini_configured": config.gemini_configured,
            "bright_data_configured": config.bright_data_configured,
        },
    }


async def _domain_body(service: DashboardService, domain: DomainId) -> Dict[str, Any]:
    """Payload of the domain, or the DomainResult marker when the source failed."""

    result = await service.get_domain(domain)
    if result.available:
        return result.payload.to_dict()
    return result.to_dict()


@router.get("/weather")
async def get_weather(service: DashboardService = Depends(get_dashboard_service)) -> Dict[str, Any]:
    return await _domain_body(service, DomainId.weather)


@router.get("/alerts")
async def get_alerts(service: DashboardService = Depends(get_dashboard_service)) -> Dict[str, Any]:
    return await _domain_body(service, DomainId.alerts)


@router.get("/air-quality")
async def get_air_quality(service: DashboardService = Depends(get_dashboard_service)) -> Dict[str, Any]:
    return await _domain_body(service, DomainId.air_quality)


@router.get("/flood")
async def get_flood(service: DashboardService = Depends(get_dashboard_service)) -> Dict[str, Any]:
    return await _domain_body(service, DomainId.flood)


@router.get("/seismic")
async def get_seismic(service: DashboardService = Depends(get_dashboard_service)) -> Dict[str, Any]:
    return await _domain_body(service, DomainId.seismic)


@router.get("/incidents")
async def get_incidents(service: DashboardService = Depends(get_dashboard_service)) -> Dict[str, Any]:
    return await _domain_body(service, DomainId.incidents)


@router.get("/news")
async def get_news(service: DashboardService = Depends(get_dashboard_service)) -> Dict[str, Any]:
    return await _domain_body(service, DomainId.news)


@router.get("/city-services")
async def get_city_services(service: DashboardService = Depends(get_dashboard_service)) -> Dict[str, Any]:
    return await _domain_body(service, DomainId.city_services)


@router.get("/dashboard")
async def get_dashboard(service: DashboardService = Depends(get_dashboard_service)) -> Dict[str, Any]:
    snapshot = await service.get_snapshot()
    return snapshot.to_dict()
