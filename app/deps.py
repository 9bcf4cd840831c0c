# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description: Request-scoped access to the collaborators wired in create_app().

from __future__ import annotations

from fastapi import Request

from infrastructures.cache.memory_cache import MemoryCache
from infrastructures.vconfig import VConfig
from services.copilot.copilot_service import CopilotService
from services.risk.dashboard_service import DashboardService


def get_app_config(request: Request) -> VConfig:
    return request.app.state.config


def get_cache(request: Request) -> MemoryCache:
    return request.app.state.cache


def get_dashboard_service(request: Request) -> DashboardService:
    return request.app.state.dashboard


def get_copilot_service(request: Request) -> CopilotService:
    return request.app.state.copilot
