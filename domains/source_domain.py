# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description: Normalized per-source payload contracts (data only). No fetching logic.

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field

from domains.domain_base import DomainModel, utc_now_iso


# =========================
# Domain enums
# =========================

class DomainId(str, Enum):
    weather = "weather"
    alerts = "alerts"
    air_quality = "air_quality"
    flood = "flood"
    seismic = "seismic"
    incidents = "incidents"
    news = "news"
    city_services = "city_services"


class RiskLevel(str, Enum):
    low = "low"
    moderate = "moderate"
    high = "high"
    severe = "severe"
    unknown = "unknown"


RISK_RANK: Dict[RiskLevel, int] = {
    RiskLevel.unknown: 0,
    RiskLevel.low: 1,
    RiskLevel.moderate: 2,
    RiskLevel.high: 3,
    RiskLevel.severe: 4,
}


def max_risk(a: RiskLevel, b: RiskLevel) -> RiskLevel:
    return a if RISK_RANK[a] >= RISK_RANK[b] else b


# =========================
# Weather
# =========================

class WeatherLocation(DomainModel):
    name: str
    latitude: float
    longitude: float
    timezone: Optional[str] = None


class CurrentWeather(DomainModel):
    time: Optional[str] = None
    temperature_2m: Optional[float] = None
    apparent_temperature: Optional[float] = None
    relative_humidity_2m: Optional[float] = None
    wind_speed_10m: Optional[float] = None
    weather_code: Optional[int] = None


class DailyForecast(DomainModel):
    time: List[str] = Field(default_factory=list)
    weather_code: List[Optional[int]] = Field(default_factory=list)
    temperature_2m_max: List[Optional[float]] = Field(default_factory=list)
    temperature_2m_min: List[Optional[float]] = Field(default_factory=list)
    precipitation_probability_max: List[Optional[float]] = Field(default_factory=list)
    wind_speed_10m_max: List[Optional[float]] = Field(default_factory=list)


class WeatherPayload(DomainModel):
    source: str = "Open-Meteo Weather API"
    location: WeatherLocation
    current: CurrentWeather = Field(default_factory=CurrentWeather)
    current_units: Dict[str, str] = Field(default_factory=dict)
    daily: DailyForecast = Field(default_factory=DailyForecast)
    daily_units: Dict[str, str] = Field(default_factory=dict)
    updated_at: str = Field(default_factory=utc_now_iso)


# =========================
# Alerts
# =========================

class Alert(DomainModel):
    source: str = Field(..., description="nws / forecast")
    type: str
    severity: RiskLevel = RiskLevel.unknown
    level: str = Field("", description="原始级别（watch/warning 或 NWS event）")
    date: Optional[str] = None
    detail: str = ""


class AlertsPayload(DomainModel):
    source: str = "NWS/NOAA Alerts API + Open-Meteo forecast-derived alerts"
    location: str
    alerts: List[Alert] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list, description="部分上游失败（非致命）")
    updated_at: str = Field(default_factory=utc_now_iso)


# =========================
# Air quality
# =========================

class AirQualityCurrent(DomainModel):
    time: Optional[str] = None
    us_aqi: Optional[float] = None
    pm2_5: Optional[float] = None
    pm10: Optional[float] = None
    ozone: Optional[float] = None
    uv_index: Optional[float] = None


class AqiClassification(DomainModel):
    level: str
    color: str
    label: str


class AirQualityPayload(DomainModel):
    source: str = "Open-Meteo Air Quality API"
    location: str
    current: AirQualityCurrent = Field(default_factory=AirQualityCurrent)
    current_units: Dict[str, str] = Field(default_factory=dict)
    daily: Dict[str, List[Any]] = Field(default_factory=dict)
    classification: AqiClassification
    updated_at: str = Field(default_factory=utc_now_iso)


# =========================
# Flood
# =========================

class FloodGauge(DomainModel):
    site_code: str
    site_name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    stage_feet: Optional[float] = None
    stage_unit: str = "ft"
    discharge_cfs: Optional[float] = None
    discharge_unit: str = "ft3/s"
    observed_at: Optional[str] = None
    risk_level: RiskLevel = RiskLevel.unknown


class FloodPayload(DomainModel):
    source: str = "USGS Water Services"
    query: str = ""
    gauges: List[FloodGauge] = Field(default_factory=list)
    highest_risk: RiskLevel = RiskLevel.unknown
    updated_at: str = Field(default_factory=utc_now_iso)


# =========================
# Seismic
# =========================

class SeismicEvent(DomainModel):
    id: str
    magnitude: Optional[float] = None
    place: Optional[str] = None
    time: Optional[str] = None
    severity: RiskLevel = RiskLevel.low
    felt_reports: int = 0
    tsunami: bool = False
    detail_url: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    depth_km: Optional[float] = None


class SeismicPayload(DomainModel):
    source: str = "USGS Earthquake Hazards Program"
    window_days: int = 7
    search_radius_km: int = 300
    total: int = 0
    max_magnitude: float = 0.0
    severity: RiskLevel = RiskLevel.low
    events: List[SeismicEvent] = Field(default_factory=list)
    updated_at: str = Field(default_factory=utc_now_iso)


# =========================
# Incidents
# =========================

class Incident(DomainModel):
    id: str
    type: str = "Incident"
    severity: RiskLevel = RiskLevel.low
    location: str
    time: Optional[str] = None
    details: Optional[str] = None


class IncidentDataset(DomainModel):
    id: str
    name: Optional[str] = None
    description: Optional[str] = None


class IncidentsPayload(DomainModel):
    source: str = "Montgomery PD open data (Socrata)"
    dataset: Optional[IncidentDataset] = None
    incidents: List[Incident] = Field(default_factory=list)
    total: int = 0
    summary: Dict[str, int] = Field(default_factory=dict, description="severity -> count")
    note: Optional[str] = None
    updated_at: str = Field(default_factory=utc_now_iso)

    def count(self, severity: RiskLevel) -> int:
        return int(self.summary.get(severity.value, 0) or 0)


# =========================
# News / city services
# =========================

class ScrapeError(DomainModel):
    source: str
    error: str


class NewsStory(DomainModel):
    id: str
    source: str
    title: str
    link: str
    mode: str = "direct"


class NewsPayload(DomainModel):
    source: str = "BrightData/local news scrape"
    stories: List[NewsStory] = Field(default_factory=list)
    total: int = 0
    errors: List[ScrapeError] = Field(default_factory=list)
    updated_at: str = Field(default_factory=utc_now_iso)


class CityAnnouncement(DomainModel):
    id: str
    title: str
    link: str
    category: str = "city-announcement"


class CityServicesPayload(DomainModel):
    source: str
    mode: str = "direct"
    announcements: List[CityAnnouncement] = Field(default_factory=list)
    error: Optional[str] = None
    updated_at: str = Field(default_factory=utc_now_iso)


PAYLOAD_TYPES: Dict[DomainId, type] = {
    DomainId.weather: WeatherPayload,
    DomainId.alerts: AlertsPayload,
    DomainId.air_quality: AirQualityPayload,
    DomainId.flood: FloodPayload,
    DomainId.seismic: SeismicPayload,
    DomainId.incidents: IncidentsPayload,
    DomainId.news: NewsPayload,
    DomainId.city_services: CityServicesPayload,
}
