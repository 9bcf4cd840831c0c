# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description: USGS FDSN earthquake adapter (trailing 7-day window).

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional

from domains.source_domain import RiskLevel, SeismicEvent, SeismicPayload
from infrastructures.sources.errors import SourceParseError
from infrastructures.sources.http_client import SourceHttpClient

USGS_EVENTS_URL = "https://earthquake.usgs.gov/fdsnws/event/1/query"
WINDOW_DAYS = 7
SEARCH_RADIUS_KM = 300


def magnitude_severity(magnitude: Optional[float]) -> RiskLevel:
    m = magnitude or 0.0
    if m >= 6:
        return RiskLevel.severe
    if m >= 5:
        return RiskLevel.high
    if m >= 4:
        return RiskLevel.moderate
    return RiskLevel.low


def _iso_from_ms(ms: Any) -> Optional[str]:
    if ms is None:
        return None
    try:
        return datetime.fromtimestamp(float(ms) / 1000.0, tz=timezone.utc).isoformat()
    except (TypeError, ValueError, OverflowError, OSError):
        return None


def _coord(coords: List[Any], i: int) -> Optional[float]:
    try:
        return float(coords[i])
    except (IndexError, TypeError, ValueError):
        return None


def parse_seismic(data: Any) -> SeismicPayload:
    if not isinstance(data, dict):
        raise SourceParseError("USGS event response is not an object", source="seismic")

    events: List[SeismicEvent] = []
    for idx, feature in enumerate(data.get("features") or []):
        p = feature.get("properties") or {}
        coords = (feature.get("geometry") or {}).get("coordinates") or []
        mag = p.get("mag")
        events.append(SeismicEvent(
            id=str(feature.get("id") or f"eq-{idx + 1}"),
            magnitude=mag,
            place=p.get("place"),
            time=_iso_from_ms(p.get("time")),
            severity=magnitude_severity(mag),
            felt_reports=int(p.get("felt") or 0),
            tsunami=bool(p.get("tsunami")),
            detail_url=p.get("url"),
            longitude=_coord(coords, 0),
            latitude=_coord(coords, 1),
            depth_km=_coord(coords, 2),
        ))

    max_mag = max((e.magnitude or 0.0 for e in events), default=0.0)
    return SeismicPayload(
        window_days=WINDOW_DAYS,
        search_radius_km=SEARCH_RADIUS_KM,
        total=len(events),
        max_magnitude=max_mag,
        severity=magnitude_severity(max_mag),
        events=events,
    )


async def fetch_seismic(http: SourceHttpClient, *, lat: float, lon: float) -> SeismicPayload:
    end = datetime.now(timezone.utc).replace(microsecond=0)
    start = end - timedelta(days=WINDOW_DAYS)
    params = {
        "format": "geojson",
        "starttime": start.strftime("%Y-%m-%dT%H:%M:%S"),
        "endtime": end.strftime("%Y-%m-%dT%H:%M:%S"),
        "latitude": lat,
        "longitude": lon,
        "maxradiuskm": SEARCH_RADIUS_KM,
        "minmagnitude": 1,
        "orderby": "time",
        "limit": 30,
    }
    data = await http.get_json(USGS_EVENTS_URL, source="seismic", params=params)
    return parse_seismic(data)
