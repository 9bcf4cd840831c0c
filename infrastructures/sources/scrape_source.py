# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description: Headline scraping for local news + city announcements (Bright Data or direct).

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from domains.source_domain import CityAnnouncement, CityServicesPayload, NewsPayload, NewsStory, ScrapeError
from infrastructures.sources.errors import SourceError, SourceTimeoutError, SourceTransportError
from infrastructures.sources.http_client import SourceHttpClient
from infrastructures.vlogger import vlogger

CITY_URL = "https://www.montgomeryal.gov"
NEWS_TARGETS = (
    ("Montgomery Advertiser", "https://www.montgomeryadvertiser.com"),
    ("WSFA 12 News", "https://www.wsfa.com/news/"),
)
NEWS_KEYWORDS = ("weather", "storm", "flood", "crime", "police", "outage", "road", "warning", "closure")
MAX_STORIES = 12
STORIES_PER_TARGET = 8
MAX_ANNOUNCEMENTS = 10

MIN_TITLE_LEN = 15
MIN_LINK_TEXT_LEN = 20

_WS = re.compile(r"\s+")


@dataclass
class PageFetch:
    ok: bool
    html: Optional[str]
    mode: str
    error: Optional[str] = None


@dataclass
class Headline:
    title: str
    url: str


def _clean(text: str) -> str:
    return _WS.sub(" ", text or "").strip()


def _slug(name: str) -> str:
    return _WS.sub("-", name.strip().lower())


def extract_headlines(
    html: Optional[str],
    source_url: str,
    *,
    limit: int = 8,
    keywords: Sequence[str] = (),
) -> List[Headline]:
    """h1-h3 texts first, then long anchor texts; de-duplicated, optionally keyword-filtered."""

    soup = BeautifulSoup(html or "", "html.parser")
    candidates: List[Headline] = []
    for tag in soup.find_all(["h1", "h2", "h3"]):
        candidates.append(Headline(title=_clean(tag.get_text(" ")), url=source_url))
    for a in soup.find_all("a", href=True):
        text = _clean(a.get_text(" "))
        if len(text) >= MIN_LINK_TEXT_LEN:
            candidates.append(Headline(title=text, url=str(a["href"])))

    seen = set()
    items: List[Headline] = []
    for c in candidates:
        if len(items) >= limit:
            break
        if len(c.title) < MIN_TITLE_LEN:
            continue
        lower = c.title.lower()
        if lower in seen:
            continue
        if keywords and not any(k in lower for k in keywords):
            continue
        seen.add(lower)
        url = c.url if c.url.startswith("http") else urljoin(source_url, c.url)
        items.append(Headline(title=c.title, url=url or source_url))
    return items


def _body_from_bright_data(resp_text: str, content_type: str, payload: Any) -> Optional[str]:
    if "json" not in content_type:
        return resp_text or None
    if isinstance(payload, str):
        return payload or None
    if isinstance(payload, dict):
        return payload.get("body") or payload.get("result") or None
    return None


class ScrapeBudget:
    """Per-attempt timeouts for one page fetch.

    Each attempt gets the per-request cap or an even share of what is left of
    the total budget, whichever is smaller.
    """

    def __init__(self, cap_seconds: float, total_seconds: Optional[float], attempts: int) -> None:
        self._cap = float(cap_seconds)
        self._left = attempts
        self._deadline = None
        if total_seconds is not None:
            self._deadline = asyncio.get_running_loop().time() + float(total_seconds)

    def next_timeout(self) -> float:
        timeout = self._cap
        if self._deadline is not None:
            remaining = self._deadline - asyncio.get_running_loop().time()
            timeout = min(self._cap, remaining / max(self._left, 1))
        self._left -= 1
        return timeout


async def _attempt(coro, *, timeout: float, source: str):
    if timeout <= 0:
        coro.close()
        raise SourceTimeoutError("scrape budget exhausted", source=source)
    try:
        return await asyncio.wait_for(coro, timeout=timeout)
    except asyncio.TimeoutError as e:
        raise SourceTimeoutError(f"no response within {timeout:.2f}s", source=source) from e


class PageFetcher:
    """Fetch raw HTML through the Bright Data request API when configured, else directly."""

    def __init__(
        self,
        http: SourceHttpClient,
        *,
        bright_data_key: str = "",
        bright_data_endpoint: str = "https://api.brightdata.com/request",
        timeout_seconds: float = 10.0,
        budget_seconds: Optional[float] = None,
    ) -> None:
        self._http = http
        self._key = bright_data_key
        self._endpoint = bright_data_endpoint
        self._timeout = timeout_seconds
        # whole GET -> POST -> direct chain per page; None means cap only
        self._budget = budget_seconds

    @property
    def bright_data_configured(self) -> bool:
        return bool(self._key)

    async def _via_bright_data(self, url: str, budget: ScrapeBudget) -> PageFetch:
        headers = {"Authorization": f"Bearer {self._key}", "Accept": "text/html,application/json"}
        errors: List[str] = []
        # GET first, POST {url, format} as the second attempt
        for method, kwargs in (
            ("GET", {"params": {"url": url}}),
            ("POST", {"json": {"url": url, "format": "raw"}}),
        ):
            timeout = budget.next_timeout()
            try:
                resp = await _attempt(
                    self._http.request(
                        method, self._endpoint, source="brightdata", headers=headers, timeout=timeout, **kwargs
                    ),
                    timeout=timeout,
                    source="brightdata",
                )
            except SourceError as e:
                errors.append(str(e))
                continue
            ctype = resp.headers.get("content-type", "")
            payload = None
            if "json" in ctype:
                try:
                    payload = resp.json()
                except ValueError:
                    payload = None
            html = _body_from_bright_data(resp.text, ctype, payload)
            if html:
                return PageFetch(ok=True, html=html, mode="brightdata")
            errors.append(f"Bright Data {method} returned an empty payload")
        return PageFetch(ok=False, html=None, mode="fallback", error=errors[-1] if errors else None)

    async def _direct(self, url: str, budget: ScrapeBudget) -> PageFetch:
        timeout = budget.next_timeout()
        try:
            html = await _attempt(
                self._http.get_text(url, source="scrape", timeout=timeout), timeout=timeout, source="scrape"
            )
        except SourceError as e:
            return PageFetch(ok=False, html=None, mode="direct", error=str(e))
        return PageFetch(ok=True, html=html, mode="direct")

    async def fetch(self, url: str) -> PageFetch:
        attempts = 3 if self.bright_data_configured else 1
        budget = ScrapeBudget(self._timeout, self._budget, attempts)
        if self.bright_data_configured:
            primary = await self._via_bright_data(url, budget)
            if primary.ok:
                return primary
            vlogger.info("bright data fetch failed url=%s err=%s; trying direct", url, primary.error)
            direct = await self._direct(url, budget)
            # keep the Bright Data cause visible even when the direct fetch worked
            direct.error = primary.error or direct.error
            return direct
        return await self._direct(url, budget)


async def fetch_local_news(fetcher: PageFetcher) -> NewsPayload:
    stories: List[NewsStory] = []
    errors: List[ScrapeError] = []

    pages = await asyncio.gather(*(fetcher.fetch(url) for _, url in NEWS_TARGETS), return_exceptions=True)
    for (name, url), page in zip(NEWS_TARGETS, pages):
        if isinstance(page, BaseException):
            errors.append(ScrapeError(source=name, error=f"{type(page).__name__}: {page}"))
            continue
        if not page.html:
            errors.append(ScrapeError(source=name, error=page.error or "No HTML returned"))
            continue
        for i, h in enumerate(extract_headlines(page.html, url, limit=STORIES_PER_TARGET, keywords=NEWS_KEYWORDS)):
            stories.append(NewsStory(id=f"{_slug(name)}-{i + 1}", source=name, title=h.title, link=h.url, mode=page.mode))

    if len(errors) == len(NEWS_TARGETS):
        raise SourceTransportError("; ".join(f"{e.source}: {e.error}" for e in errors), source="news")

    stories = stories[:MAX_STORIES]
    return NewsPayload(stories=stories, total=len(stories), errors=errors)


async def fetch_city_announcements(fetcher: PageFetcher, *, url: str = CITY_URL) -> CityServicesPayload:
    page = await fetcher.fetch(url)
    if not page.html:
        raise SourceTransportError(page.error or "No HTML returned", source="city_services")

    announcements = [
        CityAnnouncement(id=f"city-{i + 1}", title=h.title, link=h.url)
        for i, h in enumerate(extract_headlines(page.html, url, limit=MAX_ANNOUNCEMENTS))
    ]
    return CityServicesPayload(source=url, mode=page.mode, announcements=announcements, error=page.error)
