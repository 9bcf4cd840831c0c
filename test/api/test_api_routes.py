# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description: HTTP 层端到端（fake sources，无网络）

from __future__ import annotations

from fastapi.testclient import TestClient

from app.main import create_app
from civic_fakes import FakeClock, FakeLlmClient, FakeSources, calm_payloads, stormy_payloads
from domains.source_domain import DomainId
from infrastructures.cache.memory_cache import MemoryCache
from infrastructures.sources.errors import SourceTimeoutError
from infrastructures.vconfig import VConfig


def _config(**env) -> VConfig:
    base = {"APP_ENV": "test", "GEMINI_API_KEY": "", "BRIGHT_DATA_API_KEY": "", "LOG_REQUESTS": "false"}
    base.update(env)
    return VConfig(_env_file=None, **base)


def _client(sources: FakeSources, *, llm=None, clock=None, raise_server_exceptions: bool = True, **env):
    cfg = _config(**env)
    cache = MemoryCache(default_ttl_seconds=cfg.cache_ttl_seconds, clock=clock or FakeClock())
    app = create_app(config=cfg, cache=cache, sources=sources, llm_client=llm or FakeLlmClient(configured=False))
    return app, TestClient(app, raise_server_exceptions=raise_server_exceptions)


def test_health() -> None:
    _, client = _client(FakeSources(calm_payloads()))
    resp = client.get("/api/health")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["service"] == "civic-risk-copilot"
    assert body["env"]["gemini_configured"] is False
    assert body["env"]["bright_data_configured"] is False
    assert body["cache"]["ttl_seconds"] == 300.0
    assert body["uptime_seconds"] >= 0


def test_request_id_is_echoed() -> None:
    _, client = _client(FakeSources(calm_payloads()))
    resp = client.get("/api/health", headers={"X-Request-ID": "abc-123"})
    assert resp.headers["X-Request-ID"] == "abc-123"


def test_root_redirects_to_docs() -> None:
    _, client = _client(FakeSources(calm_payloads()))
    resp = client.get("/", follow_redirects=False)
    assert resp.status_code == 302
    assert resp.headers["location"] == "/api/docs"


def test_dashboard_snapshot() -> None:
    _, client = _client(FakeSources(stormy_payloads()))
    resp = client.get("/api/dashboard")

    assert resp.status_code == 200
    body = resp.json()
    assert body["composite_score"] == 70
    assert body["composite_label"] == "high"
    assert [f["domain"] for f in body["factors"]] == [
        "alerts", "flood", "heatwave", "air_quality", "seismic", "community_safety",
    ]
    assert set(body["results"]) == {d.value for d in DomainId}
    assert body["sources"] == FakeSources.attributions


def test_dashboard_is_cached_until_ttl() -> None:
    clock = FakeClock()
    sources = FakeSources(calm_payloads())
    _, client = _client(sources, clock=clock)

    client.get("/api/dashboard")
    client.get("/api/dashboard")
    assert sources.calls[DomainId.weather] == 1

    clock.advance(300)
    client.get("/api/dashboard")
    assert sources.calls[DomainId.weather] == 2


def test_dashboard_degrades_instead_of_failing() -> None:
    errors = {
        DomainId.air_quality: SourceTimeoutError(source="air_quality"),
        DomainId.seismic: RuntimeError("boom"),
    }
    _, client = _client(FakeSources(stormy_payloads(), errors=errors))
    resp = client.get("/api/dashboard")

    assert resp.status_code == 200
    body = resp.json()
    assert body["results"]["air_quality"]["available"] is False
    assert body["results"]["seismic"]["available"] is False
    assert body["results"]["seismic"]["error"] == "RuntimeError: boom"
    assert body["composite_score"] == 57


def test_domain_endpoint_returns_payload() -> None:
    _, client = _client(FakeSources(stormy_payloads()))
    resp = client.get("/api/air-quality")

    assert resp.status_code == 200
    body = resp.json()
    assert body["current"]["us_aqi"] == 180
    assert body["classification"]["label"] == "Unhealthy"


def test_domain_endpoint_returns_marker_when_source_down() -> None:
    errors = {DomainId.flood: SourceTimeoutError(source="flood")}
    _, client = _client(FakeSources(calm_payloads(), errors=errors))
    resp = client.get("/api/flood")

    assert resp.status_code == 200
    body = resp.json()
    assert body["available"] is False
    assert body["domain"] == "flood"
    assert "timed out" in body["error"]


def test_every_domain_endpoint_exists() -> None:
    sources = FakeSources(calm_payloads())
    _, client = _client(sources)
    for path in ("weather", "alerts", "air-quality", "flood", "seismic", "incidents", "news", "city-services"):
        assert client.get(f"/api/{path}").status_code == 200
    # one fetch per domain, no dashboard fan-out
    assert all(n == 1 for n in sources.calls.values())


def test_chat_flood_question_without_model() -> None:
    _, client = _client(FakeSources(stormy_payloads()))
    resp = client.post("/api/chat", json={"message": "will it flood today"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["fallback"] is True
    assert body["questionType"] == "flood"
    assert "high" in body["answer"]
    assert body["contextSummary"] == {
        "compositeScore": 70,
        "compositeLabel": "high",
        "generatedAt": body["contextSummary"]["generatedAt"],
    }
    assert body["sources"] == FakeSources.attributions
    assert body["modelError"] == "GEMINI_API_KEY not configured"


def test_chat_model_error_hidden_in_production() -> None:
    _, client = _client(FakeSources(calm_payloads()), APP_ENV="production")
    body = client.post("/api/chat", json={"message": "weather?"}).json()
    assert body["fallback"] is True
    assert "modelError" not in body


def test_chat_uses_model_when_available() -> None:
    llm = FakeLlmClient(text="All clear today.")
    _, client = _client(FakeSources(calm_payloads()), llm=llm)
    body = client.post("/api/chat", json={"message": "Is it safe outside?"}).json()

    assert body["fallback"] is False
    assert body["answer"] == "All clear today."
    assert "modelError" not in body


def test_chat_rejects_non_string_message_without_upstream_calls() -> None:
    sources = FakeSources(calm_payloads())
    _, client = _client(sources)

    for payload in ({"message": 123}, {"message": "   "}, {}, ["message"]):
        resp = client.post("/api/chat", json=payload)
        assert resp.status_code == 400
        body = resp.json()
        assert body["code"] == "BAD_REQUEST"
        assert body["error"]
        assert body["route"] == "/api/chat"

    resp = client.post("/api/chat", content=b"{not json", headers={"Content-Type": "application/json"})
    assert resp.status_code == 400
    assert resp.json()["detail"]
    assert sources.total_calls == 0


def test_unexpected_error_is_500_with_detail_outside_production() -> None:
    # default client: anything reaching the server error middleware is re-raised here
    app, client = _client(FakeSources(calm_payloads()))

    async def broken():
        raise RuntimeError("kaboom")

    app.state.dashboard.get_snapshot = broken
    resp = client.get("/api/dashboard")

    assert resp.status_code == 500
    body = resp.json()
    assert body["error"] == "Internal server error"
    assert body["code"] == "INTERNAL_ERROR"
    assert body["detail"] == "RuntimeError: kaboom"
    assert body["route"] == "/api/dashboard"
    assert resp.headers["X-Request-ID"]


def test_unexpected_error_hides_detail_in_production() -> None:
    app, client = _client(FakeSources(calm_payloads()), raise_server_exceptions=False, APP_ENV="production")

    async def broken():
        raise RuntimeError("kaboom")

    app.state.dashboard.get_snapshot = broken
    body = client.get("/api/dashboard").json()
    assert body["detail"] is None


def test_framework_errors_use_error_body() -> None:
    _, client = _client(FakeSources(calm_payloads()))

    resp = client.get("/api/nope")
    assert resp.status_code == 404
    body = resp.json()
    assert (body["code"], body["route"]) == ("NOT_FOUND", "/api/nope")
    assert body["error"] and body["time"]

    resp = client.post("/api/dashboard")
    assert resp.status_code == 405
    assert resp.json()["code"] == "METHOD_NOT_ALLOWED"
    assert "GET" in resp.headers["allow"]


def test_lifespan_closes_sources() -> None:
    sources = FakeSources(calm_payloads())
    app, _ = _client(sources)
    with TestClient(app) as client:
        client.get("/api/health")
    assert sources.closed is True
