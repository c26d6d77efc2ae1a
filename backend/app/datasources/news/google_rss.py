from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from urllib.parse import quote

from backend.app.datasources.base.adapter import DataSourceConfig
from backend.app.datasources.base.http_client import HttpClient, build_client
from backend.app.datasources.base.utils import decode_response
from backend.app.datasources.news.models import NewsItem


_logger = logging.getLogger("datasource.news")

_GOOGLE_RSS = "http://news.google.com/rss/search?q={q}&hl={hl}&gl={gl}&ceid={ceid}"
_EDITIONS = (
    ("zh-CN", "CN", "CN:zh-Hans"),
    ("en-US", "US", "US:en"),
)
# r.jina.ai proxies the same feed when news.google.com is unreachable.
_MIRROR_PREFIX = "https://r.jina.ai/"


def feed_urls(query: str) -> list[str]:
    q = quote(query)
    direct = [
        _GOOGLE_RSS.format(q=q, hl=hl, gl=gl, ceid=ceid).replace("http://", "https://", 1)
        for hl, gl, ceid in _EDITIONS
    ]
    mirrored = [_MIRROR_PREFIX + _GOOGLE_RSS.format(q=q, hl=hl, gl=gl, ceid=ceid) for hl, gl, ceid in _EDITIONS]
    return direct + mirrored


def _child_text(node: ET.Element, tag: str) -> str:
    child = node.find(tag)
    if child is None or child.text is None:
        return ""
    return child.text.strip()


def parse_rss_items(xml_text: str, limit: int) -> list[NewsItem]:
    """Parse RSS `<item>` nodes; tolerates leading junk before the XML prolog."""
    start = xml_text.find("<")
    root = ET.fromstring(xml_text[start:] if start > 0 else xml_text)
    items: list[NewsItem] = []
    for node in root.iter("item"):
        title = _child_text(node, "title")
        link = _child_text(node, "link")
        if not title and not link:
            continue
        items.append(
            NewsItem(
                title=title,
                link=link,
                pub_date=_child_text(node, "pubDate"),
                source=_child_text(node, "source") or "Google News",
            )
        )
        if len(items) >= limit:
            break
    return items


class GoogleNewsRssAdapter:
    source_id = "google_news_rss"

    def __init__(self, config: DataSourceConfig, client: HttpClient | None = None) -> None:
        self.config = config
        self.client = client or build_client(config)

    def fetch_news(self, query: str, limit: int = 5) -> list[NewsItem]:
        """Try each feed URL in order and return the first non-empty result, else []."""
        for url in feed_urls(query):
            try:
                body = self.client.get_bytes(url, headers={"Accept-Language": "zh-CN,zh;q=0.9,en;q=0.8"})
                items = parse_rss_items(decode_response(body), max(1, limit))
            except Exception as ex:  # noqa: BLE001
                _logger.debug("rss_feed_failed url=%s error=%s", url, ex)
                continue
            if items:
                return items
        _logger.info("rss_feeds_empty query=%s", query)
        return []
