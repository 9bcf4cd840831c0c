# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description: Cached dashboard snapshot + per-domain reads (collector -> scorer -> cache).

from __future__ import annotations

from typing import List, Optional, Sequence

from domains.error_domain import NotFoundError
from domains.risk_domain import DomainResult, RiskSnapshot
from domains.source_domain import DomainId
from infrastructures.cache.memory_cache import MemoryCache
from infrastructures.vlogger import vlogger
from services.risk.risk_scorer import score_results
from services.risk.source_collector import SourceCollector

DASHBOARD_CACHE_KEY = "dashboard"


def domain_cache_key(domain: DomainId) -> str:
    # same as the endpoint path, e.g. "air-quality"
    return domain.value.replace("_", "-")


class DashboardService:
    """Owns the cached snapshot lifecycle.

    The cache is the only writer of snapshots; every refresh builds a new
    RiskSnapshot and replaces the entry.
    """

    def __init__(
        self,
        *,
        collector: SourceCollector,
        cache: MemoryCache,
        city: str,
        sources: Sequence[str] = (),
        ttl_seconds: Optional[float] = None,
    ) -> None:
        self.collector = collector
        self.cache = cache
        self.city = city
        self.sources: List[str] = list(sources)
        self.ttl_seconds = ttl_seconds

    async def build_snapshot(self) -> RiskSnapshot:
        results = await self.collector.collect()
        snapshot = score_results(results, city=self.city, sources=self.sources)
        vlogger.info(
            "snapshot built score=%s label=%s unavailable=%s",
            snapshot.composite_score,
            snapshot.composite_label.value,
            [d.value for d in snapshot.unavailable_domains],
        )
        return snapshot

    async def get_snapshot(self) -> RiskSnapshot:
        return await self.cache.wrap(DASHBOARD_CACHE_KEY, self.build_snapshot, self.ttl_seconds)

    async def get_domain(self, domain: DomainId) -> DomainResult:
        if not self.collector.has(domain):
            raise NotFoundError(f"no source registered for {domain.value}")

        async def _produce() -> DomainResult:
            return await self.collector.collect_one(domain)

        return await self.cache.wrap(domain_cache_key(domain), _produce, self.ttl_seconds)
