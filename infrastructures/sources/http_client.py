# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description: Shared async HTTP client for upstream feeds (httpx, pooled).

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from infrastructures.sources.errors import (
    SourceHttpError,
    SourceParseError,
    SourceTimeoutError,
    SourceTransportError,
)


class SourceHttpClient:
    """One pooled httpx.AsyncClient for every source adapter.

    Every request carries its own timeout; the collector adds an outer
    per-branch timeout on top of it.
    """

    def __init__(
        self,
        *,
        timeout_seconds: float = 15.0,
        user_agent: str = "",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.timeout_seconds = float(timeout_seconds)
        self.user_agent = user_agent
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {"User-Agent": self.user_agent} if self.user_agent else None
            self._client = httpx.AsyncClient(transport=self._transport, headers=headers, follow_redirects=True)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            try:
                await self._client.aclose()
            finally:
                self._client = None

    async def request(
        self,
        method: str,
        url: str,
        *,
        source: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        json: Any = None,
        timeout: Optional[float] = None,
    ) -> httpx.Response:
        try:
            resp = await self._get_client().request(
                method,
                url,
                params=params,
                headers=headers,
                json=json,
                timeout=httpx.Timeout(float(timeout or self.timeout_seconds)),
            )
        except httpx.TimeoutException as e:
            raise SourceTimeoutError(source=source) from e
        except httpx.HTTPError as e:
            raise SourceTransportError(str(e) or type(e).__name__, source=source) from e

        if resp.status_code >= 400:
            raise SourceHttpError(resp.status_code, source=source)
        return resp

    async def get_json(self, url: str, *, source: str, **kwargs) -> Any:
        resp = await self.request("GET", url, source=source, **kwargs)
        try:
            return resp.json()
        except ValueError as e:
            raise SourceParseError("invalid json from upstream", source=source) from e

    async def get_text(self, url: str, *, source: str, **kwargs) -> str:
        resp = await self.request("GET", url, source=source, **kwargs)
        return resp.text
