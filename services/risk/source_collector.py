# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description: Concurrent fan-out over all source adapters ("wait for all, fail none").

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Dict, Mapping, Optional

from domains.risk_domain import DomainResult
from domains.source_domain import DomainId
from infrastructures.vlogger import vlogger

SourceFetch = Callable[[], Awaitable[object]]

DEFAULT_SOURCE_TIMEOUT_SECONDS = 15.0


def describe_error(exc: BaseException) -> str:
    msg = str(exc).strip()
    name = type(exc).__name__
    return f"{name}: {msg}" if msg else name


class SourceCollector:
    """Run every registered fetch concurrently and settle each one to a DomainResult.

    - Each branch has its own timeout; a timeout is recorded like any other failure.
    - A failing branch never cancels or short-circuits the others.
    - The returned mapping always has every registered domain as a key.
    - No retries at this layer.
    """

    def __init__(
        self,
        registry: Mapping[DomainId, SourceFetch],
        *,
        timeout_seconds: float = DEFAULT_SOURCE_TIMEOUT_SECONDS,
    ) -> None:
        self._registry: Dict[DomainId, SourceFetch] = dict(registry)
        self._timeout = float(timeout_seconds)

    def has(self, domain: DomainId) -> bool:
        return domain in self._registry

    async def _settle(self, domain: DomainId, fetch: SourceFetch) -> DomainResult:
        try:
            payload = await asyncio.wait_for(fetch(), timeout=self._timeout)
        except asyncio.TimeoutError:
            vlogger.warning("source timeout domain=%s after=%ss", domain.value, self._timeout)
            return DomainResult.failed(domain, f"timeout after {self._timeout:g}s")
        except Exception as e:
            vlogger.warning("source failed domain=%s err=%s", domain.value, describe_error(e))
            return DomainResult.failed(domain, describe_error(e))

        try:
            return DomainResult.ok(domain, payload)
        except ValueError as e:
            # adapter returned something that is not its domain's payload
            vlogger.warning("source payload rejected domain=%s err=%s", domain.value, e)
            return DomainResult.failed(domain, f"invalid payload: {type(payload).__name__}")

    async def collect(self) -> Dict[DomainId, DomainResult]:
        domains = list(self._registry.keys())
        settled = await asyncio.gather(*(self._settle(d, self._registry[d]) for d in domains))
        results = dict(zip(domains, settled))

        failed = [d.value for d, r in results.items() if not r.available]
        vlogger.info("sources collected total=%d failed=%d %s", len(results), len(failed), failed or "")
        return results

    async def collect_one(self, domain: DomainId) -> Optional[DomainResult]:
        fetch = self._registry.get(domain)
        if fetch is None:
            return None
        return await self._settle(domain, fetch)
