# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description: 适配器 HTTP 行为（httpx.MockTransport，无真实网络）

from __future__ import annotations

import asyncio

import httpx
import pytest

from domains.source_domain import DomainId, RiskLevel
from infrastructures.sources.civic_sources import SOURCE_ATTRIBUTIONS, CivicSources
from infrastructures.sources.errors import SourceHttpError, SourceParseError, SourceTimeoutError, SourceTransportError
from infrastructures.sources.http_client import SourceHttpClient
from infrastructures.sources.incidents_source import fetch_incidents
from infrastructures.sources.scrape_source import PageFetcher, fetch_city_announcements, fetch_local_news
from infrastructures.sources.weather_source import fetch_alerts
from infrastructures.vconfig import VConfig
from services.risk.source_collector import SourceCollector

PAGE = "<html><body><h2>Road closure on Madison Avenue for repairs</h2></body></html>"
FORECAST = {"daily": {"time": ["2026-01-01"], "precipitation_probability_max": [90],
                      "wind_speed_10m_max": [5], "temperature_2m_max": [20]}}


def _client(handler) -> SourceHttpClient:
    return SourceHttpClient(timeout_seconds=1, transport=httpx.MockTransport(handler))


def _run(coro_fn, handler):
    async def go():
        http = _client(handler)
        try:
            return await coro_fn(http)
        finally:
            await http.aclose()

    return asyncio.run(go())


def test_http_errors_are_mapped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/500":
            return httpx.Response(500)
        if request.url.path == "/slow":
            raise httpx.ReadTimeout("slow", request=request)
        if request.url.path == "/down":
            raise httpx.ConnectError("refused", request=request)
        return httpx.Response(200, text="not json")

    with pytest.raises(SourceHttpError) as ei:
        _run(lambda h: h.get_json("https://x.test/500", source="t"), handler)
    assert ei.value.status_code == 500

    with pytest.raises(SourceTimeoutError):
        _run(lambda h: h.get_json("https://x.test/slow", source="t"), handler)
    with pytest.raises(SourceTransportError):
        _run(lambda h: h.get_json("https://x.test/down", source="t"), handler)
    with pytest.raises(SourceParseError):
        _run(lambda h: h.get_json("https://x.test/ok", source="t"), handler)


def test_alerts_survive_nws_outage() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "api.weather.gov":
            return httpx.Response(503)
        return httpx.Response(200, json=FORECAST)

    payload = _run(lambda h: fetch_alerts(h, city="Montgomery, AL", lat=32.3, lon=-86.3, tz="America/Chicago"), handler)

    assert [a.type for a in payload.alerts] == ["Heavy Rain Risk"]
    assert len(payload.errors) == 1
    assert payload.errors[0].startswith("nws:")


def test_alerts_raise_when_both_halves_fail() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502)

    with pytest.raises(SourceHttpError):
        _run(lambda h: fetch_alerts(h, city="x", lat=0, lon=0, tz="UTC"), handler)


def test_alerts_merge_nws_and_forecast() -> None:
    nws = {"features": [{"properties": {"event": "Flood Warning", "severity": "Severe"}}]}

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "api.weather.gov":
            return httpx.Response(200, json=nws)
        return httpx.Response(200, json=FORECAST)

    payload = _run(lambda h: fetch_alerts(h, city="x", lat=0, lon=0, tz="UTC"), handler)
    assert [(a.source, a.severity) for a in payload.alerts] == [("nws", RiskLevel.high), ("forecast", RiskLevel.moderate)]
    assert payload.errors == []


def test_incidents_without_dataset_is_empty_not_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"results": []})

    payload = _run(fetch_incidents, handler)
    assert payload.incidents == []
    assert payload.note


def test_incidents_fetch_rows() -> None:
    catalog = {"results": [{"resource": {"id": "abcd-1234", "name": "Police Incidents"}}]}
    rows = [{"incident_number": "1", "offense": "Burglary", "address": "1 Main St"}, "junk"]

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("abcd-1234.json"):
            return httpx.Response(200, json=rows)
        return httpx.Response(200, json=catalog)

    payload = _run(fetch_incidents, handler)
    assert payload.total == 1
    assert payload.summary == {"moderate": 1}
    assert payload.dataset.id == "abcd-1234"


def test_page_fetcher_falls_back_to_direct() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.host))
        if request.url.host == "api.brightdata.com":
            return httpx.Response(401)
        return httpx.Response(200, text=PAGE)

    async def go(http):
        fetcher = PageFetcher(http, bright_data_key="secret")
        return await fetch_city_announcements(fetcher, url="https://city.test")

    payload = _run(go, handler)

    assert payload.mode == "direct"
    assert [a.title for a in payload.announcements] == ["Road closure on Madison Avenue for repairs"]
    assert payload.error and "401" in payload.error
    assert seen == [("GET", "api.brightdata.com"), ("POST", "api.brightdata.com"), ("GET", "city.test")]


def test_page_fetcher_uses_bright_data_json_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"body": PAGE})

    async def go(http):
        return await PageFetcher(http, bright_data_key="secret").fetch("https://city.test")

    page = _run(go, handler)
    assert page.ok and page.mode == "brightdata"
    assert page.html == PAGE


def test_hung_bright_data_get_leaves_time_for_post() -> None:
    seen = []

    async def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.method)
        if request.method == "GET":
            await asyncio.sleep(5)
        return httpx.Response(200, json={"body": PAGE})

    async def go(http):
        fetcher = PageFetcher(http, bright_data_key="secret", timeout_seconds=5.0, budget_seconds=0.3)
        return await fetcher.fetch("https://city.test")

    page = _run(go, handler)
    assert page.ok and page.mode == "brightdata"
    assert seen == ["GET", "POST"]


def test_hung_news_target_keeps_other_stories_under_collector() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        if "montgomeryadvertiser" in request.url.host:
            await asyncio.sleep(5)
        return httpx.Response(200, text=PAGE)

    async def go(http):
        fetcher = PageFetcher(http, timeout_seconds=5.0, budget_seconds=0.2)
        collector = SourceCollector({DomainId.news: lambda: fetch_local_news(fetcher)}, timeout_seconds=0.5)
        return await collector.collect_one(DomainId.news)

    result = _run(go, handler)

    assert result.available
    assert [s.source for s in result.payload.stories] == ["WSFA 12 News"]
    assert [e.source for e in result.payload.errors] == ["Montgomery Advertiser"]
    assert "source.timeout" in result.payload.errors[0].error


def test_news_partial_and_total_failure() -> None:
    def partial(request: httpx.Request) -> httpx.Response:
        if "wsfa" in request.url.host:
            return httpx.Response(500)
        return httpx.Response(200, text=PAGE)

    payload = _run(lambda h: fetch_local_news(PageFetcher(h)), partial)
    assert payload.total == 1
    assert payload.stories[0].source == "Montgomery Advertiser"
    assert [e.source for e in payload.errors] == ["WSFA 12 News"]

    def down(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    with pytest.raises(SourceTransportError):
        _run(lambda h: fetch_local_news(PageFetcher(h)), down)


def test_city_services_raises_when_page_unreachable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(SourceTransportError):
        _run(lambda h: fetch_city_announcements(PageFetcher(h)), handler)


def test_civic_sources_registry_covers_every_domain() -> None:
    sources = CivicSources(config=VConfig(_env_file=None))
    assert set(sources.registry()) == set(DomainId)
    assert sources.attributions == SOURCE_ATTRIBUTIONS
    asyncio.run(sources.aclose())
