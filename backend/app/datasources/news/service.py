from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Protocol

from backend.app.datasources.base.adapter import DataSourceConfig
from backend.app.datasources.news.google_rss import GoogleNewsRssAdapter
from backend.app.datasources.news.models import NewsItem, uniq_news


_logger = logging.getLogger("datasource.news")

# topic -> query suffix; "base" searches the bare symbol/name.
NEWS_TOPICS: dict[str, str] = {
    "base": "",
    "policy": "政策",
    "industry": "行业",
    "finance": "财报",
}


class NewsAdapter(Protocol):
    source_id: str

    def fetch_news(self, query: str, limit: int = 5) -> list[NewsItem]:
        ...


class NewsService:
    def __init__(self, adapter: NewsAdapter, max_workers: int = 4) -> None:
        self.adapter = adapter
        self.max_workers = max_workers

    def fetch_news(self, query: str, limit: int = 5) -> list[NewsItem]:
        try:
            return uniq_news(self.adapter.fetch_news(query, limit=limit))
        except Exception as ex:  # noqa: BLE001
            _logger.warning("news_fetch_failed query=%s error=%s", query, ex)
            return []

    def fetch_topic_news(self, symbol: str, name: str | None = None, limit: int = 5) -> dict[str, list[NewsItem]]:
        """Fetch the four topic queries concurrently and tag every item with its topic."""
        base = (name or symbol).strip()
        queries = {topic: f"{base} {suffix}".strip() for topic, suffix in NEWS_TOPICS.items()}
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = {topic: pool.submit(self.fetch_news, q, limit) for topic, q in queries.items()}
            return {
                topic: [item.with_topic(topic) for item in future.result()]
                for topic, future in futures.items()
            }

    @classmethod
    def build_default(
        cls,
        *,
        timeout_seconds: float = 10.0,
        retry_count: int = 0,
        retry_backoff_seconds: float = 0.3,
        proxy_url: str = "",
    ) -> "NewsService":
        cfg = DataSourceConfig(
            source_id="google_news_rss",
            timeout_seconds=timeout_seconds,
            retry_count=retry_count,
            retry_backoff_seconds=retry_backoff_seconds,
            proxy_url=proxy_url,
        )
        return cls(GoogleNewsRssAdapter(cfg))


def flatten_topic_news(by_topic: dict[str, list[NewsItem]], cap: int = 10) -> list[NewsItem]:
    """Merge topics in NEWS_TOPICS order, de-duplicate, and cap the result."""
    merged: list[NewsItem] = []
    for topic in NEWS_TOPICS:
        merged.extend(by_topic.get(topic, []))
    return uniq_news(merged)[:cap]
