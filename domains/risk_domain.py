# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description: Aggregation contracts: DomainResult / RiskFactor / RiskSnapshot (data only).

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import Field, computed_field, model_validator

from domains.domain_base import FrozenDomainModel, utc_now_iso
from domains.source_domain import (
    PAYLOAD_TYPES,
    AirQualityPayload,
    AlertsPayload,
    CityServicesPayload,
    DomainId,
    FloodPayload,
    IncidentsPayload,
    NewsPayload,
    RiskLevel,
    SeismicPayload,
    WeatherPayload,
)

DomainPayload = Union[
    WeatherPayload,
    AlertsPayload,
    AirQualityPayload,
    FloodPayload,
    SeismicPayload,
    IncidentsPayload,
    NewsPayload,
    CityServicesPayload,
]


class FactorId(str, Enum):
    alerts = "alerts"
    flood = "flood"
    heatwave = "heatwave"
    air_quality = "air_quality"
    seismic = "seismic"
    community_safety = "community_safety"


class DomainResult(FrozenDomainModel):
    """Outcome of one source fetch: either a typed payload or a failure marker."""

    domain: DomainId
    available: bool
    payload: Optional[DomainPayload] = None
    error: Optional[str] = None
    fetched_at: str = Field(default_factory=utc_now_iso)

    @model_validator(mode="after")
    def _validate_shape(self) -> "DomainResult":
        if not self.available:
            if self.payload is not None:
                raise ValueError("unavailable result must not carry a payload")
            if not self.error:
                raise ValueError("unavailable result requires an error description")
            return self

        expected = PAYLOAD_TYPES[self.domain]
        if not isinstance(self.payload, expected):
            raise ValueError(f"payload for {self.domain.value} must be {expected.__name__}")
        return self

    @classmethod
    def ok(cls, domain: DomainId, payload: DomainPayload) -> "DomainResult":
        return cls(domain=domain, available=True, payload=payload)

    @classmethod
    def failed(cls, domain: DomainId, error: str) -> "DomainResult":
        return cls(domain=domain, available=False, error=error or "unknown error")


class RiskFactor(FrozenDomainModel):
    domain: FactorId
    source_domain: DomainId
    score: float = Field(..., ge=0, le=100)
    label: RiskLevel
    weight: float = Field(..., gt=0, le=1)
    summary: str
    available: bool = True

    @computed_field  # type: ignore[misc]
    @property
    def contribution(self) -> float:
        return round(self.score * self.weight, 4)


class RiskSnapshot(FrozenDomainModel):
    city: str
    composite_score: int = Field(..., ge=0, le=100)
    composite_label: RiskLevel
    factors: List[RiskFactor] = Field(default_factory=list)
    results: Dict[DomainId, DomainResult] = Field(default_factory=dict)
    generated_at: str = Field(default_factory=utc_now_iso)
    sources: List[str] = Field(default_factory=list)

    def result(self, domain: DomainId) -> Optional[DomainResult]:
        return self.results.get(domain)

    def payload(self, domain: DomainId):
        """Payload of one domain, or None when it is missing or unavailable."""

        r = self.results.get(domain)
        if r is None or not r.available:
            return None
        return r.payload

    def factor(self, factor_id: FactorId) -> Optional[RiskFactor]:
        for f in self.factors:
            if f.domain == factor_id:
                return f
        return None

    @property
    def unavailable_domains(self) -> List[DomainId]:
        return [d for d, r in self.results.items() if not r.available]
