# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description: USGS instantaneous-values adapter (river gauge stage / discharge).

from __future__ import annotations

import math
from typing import Any, Dict, List, Optional

from domains.source_domain import FloodGauge, FloodPayload, RiskLevel, max_risk
from infrastructures.sources.errors import SourceParseError
from infrastructures.sources.http_client import SourceHttpClient

USGS_IV_URL = "https://waterservices.usgs.gov/nwis/iv/"
MONTGOMERY_BBOX = "-86.65,32.10,-85.90,32.70"

PARAM_STAGE = "00065"
PARAM_DISCHARGE = "00060"


def _numeric(value: Any) -> Optional[float]:
    try:
        n = float(value)
    except (TypeError, ValueError):
        return None
    return n if math.isfinite(n) else None


def classify_gauge_risk(stage_feet: Optional[float]) -> RiskLevel:
    if stage_feet is None:
        return RiskLevel.unknown
    if stage_feet >= 30:
        return RiskLevel.severe
    if stage_feet >= 24:
        return RiskLevel.high
    if stage_feet >= 18:
        return RiskLevel.moderate
    return RiskLevel.low


def _first(items: Any) -> Dict[str, Any]:
    if isinstance(items, list) and items:
        return items[0] or {}
    return {}


def parse_flood(data: Any, *, bbox: str = MONTGOMERY_BBOX) -> FloodPayload:
    if not isinstance(data, dict):
        raise SourceParseError("USGS response is not an object", source="flood")

    series = (data.get("value") or {}).get("timeSeries") or []
    sites: Dict[str, Dict[str, Any]] = {}

    for item in series:
        info = item.get("sourceInfo") or {}
        variable = item.get("variable") or {}
        values = _first(item.get("values")).get("value") or []
        latest = values[-1] if values else {}
        site_code = _first(info.get("siteCode")).get("value")
        if not site_code:
            continue

        geo = (info.get("geoLocation") or {}).get("geogLocation") or {}
        site = sites.setdefault(site_code, {
            "site_code": site_code,
            "site_name": info.get("siteName"),
            "latitude": _numeric(geo.get("latitude")),
            "longitude": _numeric(geo.get("longitude")),
            "observed_at": latest.get("dateTime"),
        })

        code = _first(variable.get("variableCode")).get("value")
        unit = (variable.get("unit") or {}).get("unitCode")
        if code == PARAM_STAGE:
            site["stage_feet"] = _numeric(latest.get("value"))
            site["stage_unit"] = unit or "ft"
        elif code == PARAM_DISCHARGE:
            site["discharge_cfs"] = _numeric(latest.get("value"))
            site["discharge_unit"] = unit or "ft3/s"

        if latest.get("dateTime"):
            site["observed_at"] = latest["dateTime"]

    gauges: List[FloodGauge] = []
    highest = RiskLevel.unknown
    for site in sites.values():
        gauge = FloodGauge(**site, risk_level=classify_gauge_risk(site.get("stage_feet")))
        highest = max_risk(highest, gauge.risk_level)
        gauges.append(gauge)

    return FloodPayload(query=f"bBox={bbox}", gauges=gauges, highest_risk=highest)


async def fetch_flood(http: SourceHttpClient, *, bbox: str = MONTGOMERY_BBOX) -> FloodPayload:
    params = {
        "format": "json",
        "bBox": bbox,
        "parameterCd": f"{PARAM_STAGE},{PARAM_DISCHARGE}",
        "siteType": "ST",
        "siteStatus": "active",
    }
    data = await http.get_json(USGS_IV_URL, source="flood", params=params)
    return parse_flood(data, bbox=bbox)
