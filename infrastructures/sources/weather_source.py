# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description: Open-Meteo forecast + NWS/NOAA active alerts adapters.

from __future__ import annotations

import asyncio
from typing import Any, Dict, List

from domains.source_domain import (
    Alert,
    AlertsPayload,
    CurrentWeather,
    DailyForecast,
    RiskLevel,
    WeatherLocation,
    WeatherPayload,
)
from infrastructures.sources.errors import SourceParseError
from infrastructures.sources.http_client import SourceHttpClient

FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
NWS_ALERTS_URL = "https://api.weather.gov/alerts/active"

CURRENT_FIELDS = "temperature_2m,apparent_temperature,relative_humidity_2m,wind_speed_10m,weather_code"
DAILY_FIELDS = "weather_code,temperature_2m_max,temperature_2m_min,precipitation_probability_max,wind_speed_10m_max"

HEAVY_RAIN_PROBABILITY = 70
STRONG_WIND_KMH = 40
HEAT_TEMP_C = 35

# NWS CAP severity -> local taxonomy
NWS_SEVERITY = {
    "extreme": RiskLevel.severe,
    "severe": RiskLevel.high,
    "moderate": RiskLevel.moderate,
    "minor": RiskLevel.low,
}

FORECAST_LEVEL_SEVERITY = {
    "watch": RiskLevel.moderate,
    "warning": RiskLevel.high,
}


def _forecast_params(lat: float, lon: float, tz: str, *, with_current: bool) -> Dict[str, Any]:
    params: Dict[str, Any] = {
        "latitude": lat,
        "longitude": lon,
        "timezone": tz,
        "daily": DAILY_FIELDS,
        "forecast_days": 7,
    }
    if with_current:
        params["current"] = CURRENT_FIELDS
    return params


def parse_weather(data: Any, *, city: str, lat: float, lon: float) -> WeatherPayload:
    if not isinstance(data, dict):
        raise SourceParseError("forecast response is not an object", source="weather")
    return WeatherPayload(
        location=WeatherLocation(name=city, latitude=lat, longitude=lon, timezone=data.get("timezone")),
        current=CurrentWeather.model_validate(data.get("current") or {}),
        current_units=dict(data.get("current_units") or {}),
        daily=DailyForecast.model_validate(data.get("daily") or {}),
        daily_units=dict(data.get("daily_units") or {}),
    )


def _at(values: List[Any], i: int) -> float:
    try:
        v = values[i]
    except IndexError:
        return 0.0
    return float(v) if v is not None else 0.0


def derive_forecast_alerts(daily: DailyForecast, daily_units: Dict[str, str]) -> List[Alert]:
    """Threshold alerts from the 7-day forecast (rain probability, wind, heat)."""

    alerts: List[Alert] = []
    wind_unit = daily_units.get("wind_speed_10m_max", "km/h")
    temp_unit = daily_units.get("temperature_2m_max", "°C")

    for i, day in enumerate(daily.time):
        precip = _at(daily.precipitation_probability_max, i)
        wind = _at(daily.wind_speed_10m_max, i)
        t_max = _at(daily.temperature_2m_max, i)

        if precip >= HEAVY_RAIN_PROBABILITY:
            alerts.append(Alert(
                source="forecast",
                type="Heavy Rain Risk",
                level="watch",
                severity=FORECAST_LEVEL_SEVERITY["watch"],
                date=day,
                detail=f"Precipitation probability may reach {precip:g}%.",
            ))
        if wind >= STRONG_WIND_KMH:
            alerts.append(Alert(
                source="forecast",
                type="Strong Wind Risk",
                level="warning",
                severity=FORECAST_LEVEL_SEVERITY["warning"],
                date=day,
                detail=f"Wind speeds could reach {wind:g} {wind_unit}.",
            ))
        if t_max >= HEAT_TEMP_C:
            alerts.append(Alert(
                source="forecast",
                type="Heat Risk",
                level="watch",
                severity=FORECAST_LEVEL_SEVERITY["watch"],
                date=day,
                detail=f"High temperature could reach {t_max:g} {temp_unit}.",
            ))
    return alerts


def parse_nws_alerts(data: Any) -> List[Alert]:
    if not isinstance(data, dict):
        raise SourceParseError("NWS response is not an object", source="alerts")

    out: List[Alert] = []
    for feature in data.get("features") or []:
        props = (feature or {}).get("properties") or {}
        event = str(props.get("event") or "Weather Alert")
        severity = NWS_SEVERITY.get(str(props.get("severity") or "").lower(), RiskLevel.unknown)
        out.append(Alert(
            source="nws",
            type=event,
            level=event,
            severity=severity,
            date=props.get("onset") or props.get("effective"),
            detail=str(props.get("headline") or props.get("description") or "")[:500],
        ))
    return out


async def fetch_weather(http: SourceHttpClient, *, city: str, lat: float, lon: float, tz: str) -> WeatherPayload:
    data = await http.get_json(FORECAST_URL, source="weather", params=_forecast_params(lat, lon, tz, with_current=True))
    return parse_weather(data, city=city, lat=lat, lon=lon)


async def fetch_alerts(http: SourceHttpClient, *, city: str, lat: float, lon: float, tz: str) -> AlertsPayload:
    """NWS active alerts + forecast-derived alerts; one side failing is recorded, both failing raises."""

    async def _nws() -> List[Alert]:
        data = await http.get_json(
            NWS_ALERTS_URL,
            source="alerts",
            params={"point": f"{lat:.4f},{lon:.4f}"},
            headers={"Accept": "application/geo+json"},
        )
        return parse_nws_alerts(data)

    async def _forecast() -> List[Alert]:
        data = await http.get_json(FORECAST_URL, source="alerts", params=_forecast_params(lat, lon, tz, with_current=False))
        weather = parse_weather(data, city=city, lat=lat, lon=lon)
        return derive_forecast_alerts(weather.daily, weather.daily_units)

    nws, forecast = await asyncio.gather(_nws(), _forecast(), return_exceptions=True)

    errors: List[str] = []
    alerts: List[Alert] = []
    for name, res in (("nws", nws), ("forecast", forecast)):
        if isinstance(res, BaseException):
            errors.append(f"{name}: {res}")
        else:
            alerts.extend(res)

    if len(errors) == 2:
        # both halves down: report the NWS failure as the cause
        raise nws if isinstance(nws, BaseException) else forecast

    return AlertsPayload(location=city, alerts=alerts, errors=errors)
