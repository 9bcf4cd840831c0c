# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description: Pure risk scoring: DomainResult map -> RiskFactor list -> RiskSnapshot.

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from domains.domain_base import utc_now_iso
from domains.risk_domain import DomainResult, FactorId, RiskFactor, RiskSnapshot
from domains.source_domain import (
    AirQualityPayload,
    AlertsPayload,
    DomainId,
    FloodPayload,
    IncidentsPayload,
    RiskLevel,
    SeismicPayload,
    WeatherPayload,
)

# Every factor maps one domain's payload to a 0-100 sub-score (a float, never
# rounded). Weights are not
# re-normalized (they sum to 1.00 as configured).
#
#   composite = round_half_up(sum(score_i * weight_i))
#   label     = severe >= 75 > high >= 50 > moderate >= 25 > low
#
# A missing or unavailable domain takes its default score and is flagged
# available=False.

ALERT_SEVERITY_POINTS: Dict[RiskLevel, int] = {
    RiskLevel.severe: 35,
    RiskLevel.high: 25,
    RiskLevel.moderate: 12,
}
ALERT_OTHER_POINTS = 5

# (min score, label), checked top-down
LABEL_STEPS: Tuple[Tuple[int, RiskLevel], ...] = (
    (75, RiskLevel.severe),
    (50, RiskLevel.high),
    (25, RiskLevel.moderate),
)

AQI_STEPS: Tuple[Tuple[float, int], ...] = ((50, 10), (100, 35), (150, 60), (200, 80))
AQI_ABOVE = 95

HEAT_STEPS: Tuple[Tuple[float, int], ...] = ((42, 95), (38, 78), (34, 58), (30, 38))
HEAT_BELOW = 12

SEISMIC_STEPS: Tuple[Tuple[float, int], ...] = ((6, 90), (5, 70), (4, 45), (3, 25))
SEISMIC_BELOW = 8

HIGH_INCIDENT_POINTS = 16
MODERATE_INCIDENT_POINTS = 7

UNKNOWN_LABEL_SCORE = 20


@dataclass(frozen=True)
class FactorSpec:
    factor: FactorId
    domain: DomainId
    weight: float
    default_score: int


# ordered by weight (descending); this is also the factor order in a snapshot
FACTOR_SPECS: Tuple[FactorSpec, ...] = (
    FactorSpec(FactorId.alerts, DomainId.alerts, 0.24, 0),
    FactorSpec(FactorId.flood, DomainId.flood, 0.22, UNKNOWN_LABEL_SCORE),
    FactorSpec(FactorId.heatwave, DomainId.weather, 0.20, HEAT_BELOW),
    FactorSpec(FactorId.air_quality, DomainId.air_quality, 0.16, UNKNOWN_LABEL_SCORE),
    FactorSpec(FactorId.seismic, DomainId.seismic, 0.10, SEISMIC_BELOW),
    FactorSpec(FactorId.community_safety, DomainId.incidents, 0.08, 0),
)

WEIGHTS: Dict[FactorId, float] = {s.factor: s.weight for s in FACTOR_SPECS}


# =========================
# step functions
# =========================

def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def clamp_score(x: float) -> float:
    return max(0.0, min(100.0, float(x)))


def label_for_score(score: float) -> RiskLevel:
    for threshold, label in LABEL_STEPS:
        if score >= threshold:
            return label
    return RiskLevel.low


def score_for_label(label: Optional[str]) -> int:
    """Score for a domain that only reports a qualitative label."""

    t = str(getattr(label, "value", label) or "").lower()
    if "severe" in t:
        return 90
    if "high" in t or "unhealthy" in t:
        return 70
    if "moderate" in t or "sensitive" in t:
        return 45
    if "low" in t or "good" in t:
        return 15
    return UNKNOWN_LABEL_SCORE


def _ascending_steps(value: float, steps: Sequence[Tuple[float, int]], above: int) -> int:
    for upper, score in steps:
        if value <= upper:
            return score
    return above


def _descending_steps(value: float, steps: Sequence[Tuple[float, int]], below: int) -> int:
    for lower, score in steps:
        if value >= lower:
            return score
    return below


def _finite(values) -> List[float]:
    out = []
    for v in values:
        if v is None:
            continue
        f = float(v)
        if math.isfinite(f):
            out.append(f)
    return out


# =========================
# per-domain scores: (score, summary)
# =========================

def score_alerts(p: AlertsPayload) -> Tuple[int, str]:
    total = sum(ALERT_SEVERITY_POINTS.get(a.severity, ALERT_OTHER_POINTS) for a in p.alerts)
    score = min(100, total)
    if not p.alerts:
        return score, "No active alerts"
    worst = max(p.alerts, key=lambda a: ALERT_SEVERITY_POINTS.get(a.severity, ALERT_OTHER_POINTS))
    return score, f"{len(p.alerts)} active alert(s); most severe: {worst.type} ({worst.severity.value})"


def score_air_quality(p: AirQualityPayload) -> Tuple[int, str]:
    aqi = p.current.us_aqi
    if aqi is None or not math.isfinite(float(aqi)):
        return UNKNOWN_LABEL_SCORE, "US AQI not reported"
    return _ascending_steps(float(aqi), AQI_STEPS, AQI_ABOVE), f"US AQI {aqi:g} ({p.classification.label})"


def score_flood(p: FloodPayload) -> Tuple[float, str]:
    label_score = score_for_label(p.highest_risk.value)
    stages = _finite(g.stage_feet for g in p.gauges)
    max_stage = max(stages, default=0.0)
    stage_score = min(100, max_stage * 2)
    score = clamp_score(max(label_score, stage_score))
    if not stages:
        return score, f"Highest gauge risk {p.highest_risk.value}; no stage readings"
    return score, f"Highest gauge risk {p.highest_risk.value}; max stage {max_stage:g} ft across {len(p.gauges)} gauge(s)"


def score_heatwave(p: WeatherPayload) -> Tuple[int, str]:
    temps = _finite([p.current.temperature_2m, p.current.apparent_temperature, *p.daily.temperature_2m_max])
    if not temps:
        return HEAT_BELOW, "No temperature readings"
    peak = max(temps)
    return _descending_steps(peak, HEAT_STEPS, HEAT_BELOW), f"Peak temperature {peak:g} °C (current, feels-like or forecast max)"


def score_seismic(p: SeismicPayload) -> Tuple[int, str]:
    mags = _finite([p.max_magnitude, *(e.magnitude for e in p.events)])
    peak = max(mags, default=0.0)
    score = _descending_steps(peak, SEISMIC_STEPS, SEISMIC_BELOW)
    if not p.events:
        return score, f"No earthquakes in the last {p.window_days} days"
    return score, f"{p.total} earthquake(s) in {p.window_days} days; max magnitude {peak:g}"


def score_community_safety(p: IncidentsPayload) -> Tuple[int, str]:
    high = p.count(RiskLevel.high)
    moderate = p.count(RiskLevel.moderate)
    score = min(100, high * HIGH_INCIDENT_POINTS + moderate * MODERATE_INCIDENT_POINTS)
    return score, f"{high} high / {moderate} moderate severity incident(s) of {p.total} recent"


SCORERS: Dict[FactorId, Callable[..., Tuple[float, str]]] = {
    FactorId.alerts: score_alerts,
    FactorId.flood: score_flood,
    FactorId.heatwave: score_heatwave,
    FactorId.air_quality: score_air_quality,
    FactorId.seismic: score_seismic,
    FactorId.community_safety: score_community_safety,
}


# =========================
# aggregation
# =========================

def build_factor(fs: FactorSpec, result: Optional[DomainResult]) -> RiskFactor:
    available = result is not None and result.available and result.payload is not None
    score, summary = fs.default_score, f"{fs.domain.value} data unavailable; using default score"

    if available:
        try:
            raw, summary = SCORERS[fs.factor](result.payload)
            score = clamp_score(raw)
        except Exception:  # bad payload -> default score
            available = False
            score, summary = fs.default_score, f"{fs.domain.value} data unreadable; using default score"

    return RiskFactor(
        domain=fs.factor,
        source_domain=fs.domain,
        score=score,
        label=label_for_score(score),
        weight=fs.weight,
        summary=summary,
        available=available,
    )


def composite_score(factors: Sequence[RiskFactor]) -> int:
    # sub-scores stay unrounded; the weighted sum is rounded once
    return max(0, min(100, round_half_up(sum(f.score * f.weight for f in factors))))


def score_results(
    results: Mapping[DomainId, DomainResult],
    *,
    city: str,
    sources: Sequence[str] = (),
    generated_at: Optional[str] = None,
) -> RiskSnapshot:
    """Build a snapshot from collected results. Pure: no I/O, inputs untouched.

    ``generated_at`` defaults to now; pass it explicitly for reproducible output.
    Domains absent from ``results`` are filled with an unavailable marker.
    """

    stamp = generated_at or utc_now_iso()
    full: Dict[DomainId, DomainResult] = {}
    for domain in DomainId:
        r = results.get(domain)
        if r is None:
            r = DomainResult(domain=domain, available=False, error="not collected", fetched_at=stamp)
        full[domain] = r

    factors = [build_factor(fs, full.get(fs.domain)) for fs in FACTOR_SPECS]
    score = composite_score(factors)

    return RiskSnapshot(
        city=city,
        composite_score=score,
        composite_label=label_for_score(score),
        factors=factors,
        results=full,
        generated_at=stamp,
        sources=list(sources),
    )
