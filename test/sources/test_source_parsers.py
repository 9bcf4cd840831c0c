# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description: 上游响应解析（纯函数，不走网络）

from __future__ import annotations

import pytest

from domains.source_domain import DailyForecast, RiskLevel
from infrastructures.sources.air_quality_source import classify_aqi, parse_air_quality
from infrastructures.sources.errors import SourceParseError
from infrastructures.sources.flood_source import classify_gauge_risk, parse_flood
from infrastructures.sources.incidents_source import infer_severity, normalize_incident, rank_datasets, summarize
from infrastructures.sources.scrape_source import extract_headlines
from infrastructures.sources.seismic_source import magnitude_severity, parse_seismic
from infrastructures.sources.weather_source import derive_forecast_alerts, parse_nws_alerts, parse_weather


def _usgs_series(site: str, name: str, code: str, value: str, unit: str = "ft") -> dict:
    return {
        "sourceInfo": {
            "siteName": name,
            "siteCode": [{"value": site}],
            "geoLocation": {"geogLocation": {"latitude": 32.4, "longitude": -86.3}},
        },
        "variable": {"variableCode": [{"value": code}], "unit": {"unitCode": unit}},
        "values": [{"value": [{"value": "1.0", "dateTime": "2026-01-01T10:00"},
                              {"value": value, "dateTime": "2026-01-01T11:00"}]}],
    }


def test_parse_weather() -> None:
    data = {
        "timezone": "America/Chicago",
        "current": {"temperature_2m": 31.2, "apparent_temperature": 34.0, "wind_speed_10m": 9.0, "weather_code": 3},
        "current_units": {"temperature_2m": "°C"},
        "daily": {"time": ["2026-01-01"], "temperature_2m_max": [33.0]},
    }
    p = parse_weather(data, city="Montgomery, AL", lat=32.3, lon=-86.3)
    assert p.current.temperature_2m == 31.2
    assert p.daily.temperature_2m_max == [33.0]
    assert p.location.timezone == "America/Chicago"

    with pytest.raises(SourceParseError):
        parse_weather(["nope"], city="x", lat=0, lon=0)


def test_derive_forecast_alerts_thresholds() -> None:
    daily = DailyForecast(
        time=["d1", "d2", "d3"],
        precipitation_probability_max=[70, 69, None],
        wind_speed_10m_max=[10, 40, 5],
        temperature_2m_max=[20, 25, 35],
    )
    alerts = derive_forecast_alerts(daily, {"wind_speed_10m_max": "km/h"})

    assert [(a.type, a.date, a.severity) for a in alerts] == [
        ("Heavy Rain Risk", "d1", RiskLevel.moderate),
        ("Strong Wind Risk", "d2", RiskLevel.high),
        ("Heat Risk", "d3", RiskLevel.moderate),
    ]
    assert alerts[1].detail == "Wind speeds could reach 40 km/h."


def test_parse_nws_alerts_maps_severity() -> None:
    data = {"features": [
        {"properties": {"event": "Tornado Warning", "severity": "Extreme", "onset": "2026-01-01T10:00"}},
        {"properties": {"event": "Flood Watch", "severity": "Moderate"}},
        {"properties": {"severity": "Whatever"}},
    ]}
    alerts = parse_nws_alerts(data)
    assert [a.severity for a in alerts] == [RiskLevel.severe, RiskLevel.moderate, RiskLevel.unknown]
    assert alerts[2].type == "Weather Alert"


@pytest.mark.parametrize(
    "aqi,level",
    [(None, "unknown"), (50, "good"), (100, "moderate"), (150, "unhealthy-sensitive"),
     (200, "unhealthy"), (201, "very-unhealthy")],
)
def test_classify_aqi(aqi, level) -> None:
    assert classify_aqi(aqi).level == level


def test_parse_air_quality() -> None:
    p = parse_air_quality({"current": {"us_aqi": 72, "pm2_5": 11.5}}, city="Montgomery, AL")
    assert p.current.us_aqi == 72
    assert p.classification.label == "Moderate"


@pytest.mark.parametrize(
    "stage,level",
    [(None, RiskLevel.unknown), (5, RiskLevel.low), (18, RiskLevel.moderate),
     (24, RiskLevel.high), (30, RiskLevel.severe)],
)
def test_classify_gauge_risk(stage, level) -> None:
    assert classify_gauge_risk(stage) == level


def test_parse_flood_merges_stage_and_discharge_per_site() -> None:
    data = {"value": {"timeSeries": [
        _usgs_series("02419890", "ALABAMA RIVER AT MONTGOMERY", "00065", "25.4"),
        _usgs_series("02419890", "ALABAMA RIVER AT MONTGOMERY", "00060", "31000", unit="ft3/s"),
        _usgs_series("02421000", "CATOMA CREEK", "00065", "3.1"),
    ]}}
    p = parse_flood(data)

    assert len(p.gauges) == 2
    river = p.gauges[0]
    assert river.stage_feet == 25.4
    assert river.discharge_cfs == 31000
    assert river.risk_level == RiskLevel.high
    assert river.observed_at == "2026-01-01T11:00"
    assert p.highest_risk == RiskLevel.high


def test_parse_flood_without_series() -> None:
    p = parse_flood({"value": {}})
    assert p.gauges == []
    assert p.highest_risk == RiskLevel.unknown


def test_parse_seismic() -> None:
    data = {"features": [
        {"id": "us1", "properties": {"mag": 4.4, "place": "10 km N of X", "time": 0, "felt": 3},
         "geometry": {"coordinates": [-86.1, 32.2, 10.0]}},
        {"properties": {"mag": None}},
    ]}
    p = parse_seismic(data)

    assert p.total == 2
    assert p.max_magnitude == 4.4
    assert p.severity == RiskLevel.moderate
    assert p.events[0].time == "1970-01-01T00:00:00+00:00"
    assert p.events[0].depth_km == 10.0
    assert p.events[1].id == "eq-2"
    assert magnitude_severity(None) == RiskLevel.low


def test_incident_normalization() -> None:
    row = {"case_number": "C-1", "offense_description": "ARMED ROBBERY", "block_address": "100 DEXTER AVE"}
    inc = normalize_incident(row, 0)
    assert (inc.id, inc.type, inc.severity, inc.location) == ("C-1", "ARMED ROBBERY", RiskLevel.high, "100 DEXTER AVE")

    blank = normalize_incident({"location": {"human_address": None}}, 4)
    assert (blank.id, blank.type, blank.location) == ("inc-5", "Incident", "Montgomery area")

    assert infer_severity("Vandalism") == RiskLevel.moderate
    assert infer_severity(None) == RiskLevel.low
    assert summarize([inc, blank]) == {"high": 1, "low": 1}


def test_rank_datasets_prefers_police_incidents() -> None:
    results = [
        {"resource": {"id": "aaa", "name": "Parks"}},
        {"resource": {"id": "bbb", "name": "Police Incident Reports"}},
        {"resource": {"name": "no id"}},
    ]
    assert rank_datasets(results)["resource"]["id"] == "bbb"
    assert rank_datasets([]) is None


def test_extract_headlines() -> None:
    html = """
    <html><body>
      <h1>Flood warning issued for the Alabama River</h1>
      <h2>short</h2>
      <h2>Flood warning issued for the Alabama River</h2>
      <a href="/news/road-closure">Road closure planned on Madison Avenue this weekend</a>
      <a href="https://other.test/x">Local bakery wins regional pastry award again</a>
    </body></html>
    """
    items = extract_headlines(html, "https://news.test", limit=8)
    assert [i.title for i in items] == [
        "Flood warning issued for the Alabama River",
        "Road closure planned on Madison Avenue this weekend",
        "Local bakery wins regional pastry award again",
    ]
    assert items[1].url == "https://news.test/news/road-closure"

    filtered = extract_headlines(html, "https://news.test", keywords=("road",))
    assert [i.title for i in filtered] == ["Road closure planned on Madison Avenue this weekend"]

    assert extract_headlines(None, "https://news.test") == []
