"""
news_service.py
~~~~~~~~~~~~~~~
Aggregate weather/hazard-related headlines from Philippine news RSS feeds.

Features
--------
- **Keyword filter** on title + summary (English and Filipino terms).
- **Five items per source**, newest first as the feed lists them.
- **Per-feed isolation**: a dead feed logs a warning and contributes ``[]``;
  the aggregate never fails because one outlet is down.

Caching is done by the caller (``WeatherService.get_news``).
"""

from __future__ import annotations

import asyncio
import logging
from typing import Final

import httpx
from bs4 import BeautifulSoup

from .api_logging import logged_request_async
from .constants import UPSTREAM_TIMEOUT_S, USER_AGENT
from .models import NewsItem

LOG = logging.getLogger("news_service")

NEWS_FEEDS: Final[dict[str, str]] = {
    "GMA News": "https://data.gmanetwork.com/gno/rss/news/nation/feed.xml",
    "Manila Bulletin": "https://mb.com.ph/feed/",
    "Philippine Star": "https://www.philstar.com/rss/nation",
    "ABS-CBN": "https://news.abs-cbn.com/rss/news",
}

KEYWORDS: Final[tuple[str, ...]] = (
    "typhoon", "bagyo", "storm", "cyclone", "weather", "rain", "flood", "baha",
    "earthquake", "lindol", "tsunami", "volcanic", "eruption", "landslide",
    "disaster", "pagasa", "phivolcs", "climate", "evacuate", "evacuees",
    "emergency", "rescue", "temperature", "heat", "drought", "thunderstorm",
    "tropical depression", "low pressure area", "lpa",
)

ITEMS_PER_SOURCE: Final = 5


def _text(node) -> str:
    return node.get_text(strip=True) if node is not None else ""


def _strip_html(markup: str) -> str:
    """Feed summaries often embed HTML; keep the readable text only."""
    if "<" not in markup:
        return markup.strip()
    return BeautifulSoup(markup, "html.parser").get_text(" ", strip=True)


def is_weather_related(title: str, content: str) -> bool:
    haystack = f"{title}\n{content}".lower()
    return any(keyword in haystack for keyword in KEYWORDS)


def parse_feed(xml: str | bytes, source: str, limit: int = ITEMS_PER_SOURCE) -> list[NewsItem]:
    """
    Parse an RSS 2.0 or Atom document into filtered news items.

    Args:
        xml:    Raw feed body.
        source: Outlet name stamped on every item.
        limit:  Maximum items kept after filtering.
    """
    soup = BeautifulSoup(xml, "xml")
    entries = soup.find_all("item") or soup.find_all("entry")

    items: list[NewsItem] = []
    for entry in entries:
        title = _text(entry.find("title"))
        summary = entry.find("description") or entry.find("summary") or entry.find("encoded")
        content = _strip_html(_text(summary))
        if not is_weather_related(title, content):
            continue

        link_node = entry.find("link")
        link = ""
        if link_node is not None:
            link = link_node.get("href") or _text(link_node)
        date_node = entry.find("pubDate") or entry.find("published") or entry.find("updated")

        items.append(
            {
                "title": title,
                "link": link,
                "date": _text(date_node) or None,
                "content": content,
                "source": source,
            }
        )
        if len(items) >= limit:
            break
    return items


async def _fetch_feed(
    client: httpx.AsyncClient, source: str, url: str
) -> tuple[str, list[NewsItem]]:
    try:
        resp = await logged_request_async(client, "get", url)
        resp.raise_for_status()
        return source, parse_feed(resp.content, source)
    except Exception as exc:  # noqa: BLE001 – one bad feed must not sink the rest
        LOG.warning("[news] %s failed: %s", source, exc)
        return source, []


async def fetch_news(
    feeds: dict[str, str] = NEWS_FEEDS,
    timeout: float = UPSTREAM_TIMEOUT_S,
) -> dict[str, list[NewsItem]]:
    """
    Fetch every feed concurrently.

    Returns:
        ``{source: [NewsItem, …]}`` with one key per configured feed.
    """
    async with httpx.AsyncClient(
        timeout=timeout,
        headers={"User-Agent": USER_AGENT},
        follow_redirects=True,
    ) as client:
        results = await asyncio.gather(
            *(_fetch_feed(client, source, url) for source, url in feeds.items())
        )
    news = dict(results)
    LOG.info(
        "[news] %d items from %d feeds",
        sum(len(v) for v in news.values()),
        len(news),
    )
    return news


__all__ = ["KEYWORDS", "NEWS_FEEDS", "fetch_news", "is_weather_related", "parse_feed"]
