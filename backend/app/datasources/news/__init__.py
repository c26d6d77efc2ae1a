from __future__ import annotations

from backend.app.datasources.news.google_rss import GoogleNewsRssAdapter
from backend.app.datasources.news.models import NewsItem, uniq_news
from backend.app.datasources.news.service import NEWS_TOPICS, NewsService, flatten_topic_news

__all__ = [
    "NewsItem",
    "NewsService",
    "GoogleNewsRssAdapter",
    "NEWS_TOPICS",
    "flatten_topic_news",
    "uniq_news",
]
