# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description: Question classification + deterministic template answers from a RiskSnapshot.

from __future__ import annotations

import re
from typing import Any, Callable, Dict, List, Optional, Pattern, Tuple

from domains.chat_domain import QuestionType
from domains.risk_domain import RiskSnapshot
from domains.source_domain import (
    AirQualityPayload,
    AlertsPayload,
    CityServicesPayload,
    DomainId,
    FloodPayload,
    IncidentsPayload,
    WeatherPayload,
)
from infrastructures.vlogger import vlogger

# first match wins; order matters ("storm warning" -> weather)
QUESTION_PATTERNS: Tuple[Tuple[QuestionType, Pattern[str]], ...] = (
    (QuestionType.weather, re.compile(r"\b(weather|rain|storm|temperature|forecast|heat|wind|hot|cold)", re.I)),
    (QuestionType.alerts, re.compile(r"\b(alert|warning|emergency|danger|extreme)", re.I)),
    (QuestionType.city, re.compile(r"\b(city|service|garbage|trash|announcement|public works|government)", re.I)),
    (QuestionType.safety, re.compile(r"\b(crime|safety|incident|police|road|outage|shooting)", re.I)),
    (QuestionType.flood, re.compile(r"\b(flood|river|gauge|water level)", re.I)),
    (QuestionType.air, re.compile(r"\b(air|aqi|smog|pollution|ozone|pm2)", re.I)),
)

TOP_N = 3
NA = "N/A"

GENERAL_HELP = (
    "I can help with weather, alerts, flood gauges, air quality, "
    "city services and public safety updates. Ask me a specific risk-related question."
)


def classify_question(text: Optional[str]) -> QuestionType:
    q = str(text or "")
    for qtype, pattern in QUESTION_PATTERNS:
        if pattern.search(q):
            return qtype
    return QuestionType.general


# =========================
# formatting helpers
# =========================

def _num(value: Any) -> str:
    if value is None:
        return NA
    try:
        return f"{float(value):g}"
    except (TypeError, ValueError):
        return str(value)


def _unit(units: Dict[str, str], key: str) -> str:
    return str((units or {}).get(key) or "")


def _join(items: List[str], sep: str = "; ") -> str:
    return sep.join(i for i in items if i)


# =========================
# templates (one per question type)
# =========================

def _weather_answer(s: RiskSnapshot) -> str:
    p: Optional[WeatherPayload] = s.payload(DomainId.weather)
    if p is None:
        return f"Current weather for {s.city} is unavailable right now (temperature {NA}, wind {NA})."
    c, u = p.current, p.current_units
    wind = f"{_num(c.wind_speed_10m)} {_unit(u, 'wind_speed_10m')}".strip()
    return (
        f"Current weather in {s.city}: {_num(c.temperature_2m)}{_unit(u, 'temperature_2m')}, "
        f"feels like {_num(c.apparent_temperature)}{_unit(u, 'apparent_temperature')}, "
        f"wind {wind}."
    )


def _alerts_answer(s: RiskSnapshot) -> str:
    p: Optional[AlertsPayload] = s.payload(DomainId.alerts)
    alerts = p.alerts if p is not None else []
    if not alerts:
        return "No major weather risk alerts are detected right now."
    parts = [f"{a.type} ({a.severity.value}) on {a.date or 'unknown date'}" for a in alerts[:TOP_N]]
    return f"Active alerts: {_join(parts)}."


def _city_answer(s: RiskSnapshot) -> str:
    p: Optional[CityServicesPayload] = s.payload(DomainId.city_services)
    items = p.announcements if p is not None else []
    if not items:
        return "I could not load city announcements right now, but I can try again shortly."
    return f"Latest city updates include: {_join([a.title for a in items[:TOP_N]], ' | ')}."


def _safety_answer(s: RiskSnapshot) -> str:
    p: Optional[IncidentsPayload] = s.payload(DomainId.incidents)
    incidents = p.incidents if p is not None else []
    if not incidents:
        return "No recent public safety incidents are available right now. Check local news for updates."
    parts = [f"{i.type} ({i.severity.value}) at {i.location or 'unknown location'}" for i in incidents[:TOP_N]]
    return f"Recent public safety notes: {_join(parts)}."


def _flood_answer(s: RiskSnapshot) -> str:
    p: Optional[FloodPayload] = s.payload(DomainId.flood)
    if p is None:
        return "Highest river-gauge flood risk: unknown. Gauge data is unavailable right now."

    head = f"Highest river-gauge flood risk: {p.highest_risk.value}."
    staged = [g for g in p.gauges if g.stage_feet is not None]
    if not staged:
        return f"{head} No current stage readings were reported."
    top = max(staged, key=lambda g: g.stage_feet)
    name = top.site_name or top.site_code
    return f"{head} Highest stage: {name} at {_num(top.stage_feet)} {top.stage_unit} ({top.risk_level.value})."


def _air_answer(s: RiskSnapshot) -> str:
    p: Optional[AirQualityPayload] = s.payload(DomainId.air_quality)
    if p is None:
        return f"Current US AQI: {NA} (unknown). Air quality data is unavailable right now."
    return f"Current US AQI: {_num(p.current.us_aqi)} ({p.classification.label or 'unknown'})."


def _general_answer(s: RiskSnapshot) -> str:
    return f"Overall civic risk for {s.city} is {s.composite_label.value} ({s.composite_score}/100). {GENERAL_HELP}"


TEMPLATES: Dict[QuestionType, Callable[[RiskSnapshot], str]] = {
    QuestionType.weather: _weather_answer,
    QuestionType.alerts: _alerts_answer,
    QuestionType.city: _city_answer,
    QuestionType.safety: _safety_answer,
    QuestionType.flood: _flood_answer,
    QuestionType.air: _air_answer,
    QuestionType.general: _general_answer,
}


def build_fallback_answer(question_type: QuestionType, snapshot: RiskSnapshot) -> str:
    """Deterministic answer for ``question_type``. Never raises."""

    template = TEMPLATES.get(question_type, _general_answer)
    try:
        return template(snapshot)
    except Exception as e:  # malformed snapshot -> generic answer
        vlogger.warning("fallback template failed type=%s err=%s", question_type.value, e)
        return GENERAL_HELP
