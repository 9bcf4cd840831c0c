# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description: Open-Meteo air quality adapter (US AQI).

from __future__ import annotations

from typing import Any, Optional

from domains.source_domain import AirQualityCurrent, AirQualityPayload, AqiClassification
from infrastructures.sources.errors import SourceParseError
from infrastructures.sources.http_client import SourceHttpClient

AIR_QUALITY_URL = "https://air-quality-api.open-meteo.com/v1/air-quality"


def classify_aqi(aqi: Optional[float]) -> AqiClassification:
    if aqi is None:
        return AqiClassification(level="unknown", color="gray", label="Unknown")
    if aqi <= 50:
        return AqiClassification(level="good", color="green", label="Good")
    if aqi <= 100:
        return AqiClassification(level="moderate", color="yellow", label="Moderate")
    if aqi <= 150:
        return AqiClassification(level="unhealthy-sensitive", color="orange", label="Unhealthy for Sensitive Groups")
    if aqi <= 200:
        return AqiClassification(level="unhealthy", color="red", label="Unhealthy")
    return AqiClassification(level="very-unhealthy", color="purple", label="Very Unhealthy")


def parse_air_quality(data: Any, *, city: str) -> AirQualityPayload:
    if not isinstance(data, dict):
        raise SourceParseError("air quality response is not an object", source="air_quality")

    current = AirQualityCurrent.model_validate(data.get("current") or {})
    return AirQualityPayload(
        location=city,
        current=current,
        current_units=dict(data.get("current_units") or {}),
        daily=dict(data.get("daily") or {}),
        classification=classify_aqi(current.us_aqi),
    )


async def fetch_air_quality(http: SourceHttpClient, *, city: str, lat: float, lon: float, tz: str) -> AirQualityPayload:
    params = {
        "latitude": lat,
        "longitude": lon,
        "timezone": tz,
        "current": "us_aqi,pm2_5,pm10,ozone,uv_index",
        "daily": "us_aqi_max,us_aqi_min",
        "forecast_days": 7,
    }
    data = await http.get_json(AIR_QUALITY_URL, source="air_quality", params=params)
    return parse_air_quality(data, city=city)
