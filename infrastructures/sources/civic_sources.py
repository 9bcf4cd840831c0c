# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description: Source adapter registry for one city (DomainId -> async fetch).

from __future__ import annotations

from typing import Awaitable, Callable, Dict, List, Optional

from domains.source_domain import (
    AirQualityPayload,
    AlertsPayload,
    CityServicesPayload,
    DomainId,
    FloodPayload,
    IncidentsPayload,
    NewsPayload,
    SeismicPayload,
    WeatherPayload,
)
from infrastructures.sources.air_quality_source import fetch_air_quality
from infrastructures.sources.flood_source import fetch_flood
from infrastructures.sources.http_client import SourceHttpClient
from infrastructures.sources.incidents_source import fetch_incidents
from infrastructures.sources.scrape_source import PageFetcher, fetch_city_announcements, fetch_local_news
from infrastructures.sources.seismic_source import fetch_seismic
from infrastructures.sources.weather_source import fetch_alerts, fetch_weather
from infrastructures.vconfig import VConfig

SourceFetch = Callable[[], Awaitable[object]]

# share of the collector branch timeout one page fetch may spend
SCRAPE_BUDGET_SHARE = 0.9

SOURCE_ATTRIBUTIONS: List[str] = [
    "Open-Meteo Weather API",
    "NWS/NOAA Alerts API",
    "Open-Meteo Air Quality API",
    "USGS Water Services API",
    "USGS Earthquake Hazards Program",
    "Montgomery PD Open Data (Socrata)",
    "Montgomery City Website",
    "Montgomery Advertiser",
    "WSFA 12 News",
]


class CivicSources:
    """Live upstream adapters for the configured city.

    Each ``fetch_*`` is an async no-arg call returning the normalized payload
    or raising; retries and timeouts beyond the per-request one are not done here.
    """

    attributions: List[str] = SOURCE_ATTRIBUTIONS

    def __init__(self, *, config: VConfig, http: Optional[SourceHttpClient] = None) -> None:
        self._cfg = config
        self._http = http or SourceHttpClient(
            timeout_seconds=config.source_timeout_seconds,
            user_agent=config.http_user_agent,
        )
        self._pages = PageFetcher(
            self._http,
            bright_data_key=config.bright_data_api_key,
            bright_data_endpoint=config.bright_data_endpoint,
            timeout_seconds=config.scrape_timeout_seconds,
            budget_seconds=config.source_timeout_seconds * SCRAPE_BUDGET_SHARE,
        )

    @property
    def _where(self) -> dict:
        c = self._cfg
        return {"city": c.city_name, "lat": c.city_latitude, "lon": c.city_longitude, "tz": c.city_timezone}

    async def fetch_weather(self) -> WeatherPayload:
        return await fetch_weather(self._http, **self._where)

    async def fetch_alerts(self) -> AlertsPayload:
        return await fetch_alerts(self._http, **self._where)

    async def fetch_air_quality(self) -> AirQualityPayload:
        return await fetch_air_quality(self._http, **self._where)

    async def fetch_flood(self) -> FloodPayload:
        return await fetch_flood(self._http)

    async def fetch_seismic(self) -> SeismicPayload:
        return await fetch_seismic(self._http, lat=self._cfg.city_latitude, lon=self._cfg.city_longitude)

    async def fetch_incidents(self) -> IncidentsPayload:
        return await fetch_incidents(self._http)

    async def fetch_news(self) -> NewsPayload:
        return await fetch_local_news(self._pages)

    async def fetch_city_services(self) -> CityServicesPayload:
        return await fetch_city_announcements(self._pages)

    def registry(self) -> Dict[DomainId, SourceFetch]:
        return {
            DomainId.weather: self.fetch_weather,
            DomainId.alerts: self.fetch_alerts,
            DomainId.air_quality: self.fetch_air_quality,
            DomainId.flood: self.fetch_flood,
            DomainId.seismic: self.fetch_seismic,
            DomainId.incidents: self.fetch_incidents,
            DomainId.news: self.fetch_news,
            DomainId.city_services: self.fetch_city_services,
        }

    async def aclose(self) -> None:
        await self._http.aclose()
