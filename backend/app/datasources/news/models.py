from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any


@dataclass(slots=True)
class NewsItem:
    title: str
    link: str
    pub_date: str = ""
    source: str = "Google News"
    topic: str | None = None

    @property
    def dedupe_key(self) -> str:
        return self.link or self.title

    def with_topic(self, topic: str) -> "NewsItem":
        return replace(self, topic=topic)

    def to_dict(self) -> dict[str, Any]:
        row: dict[str, Any] = {
            "title": self.title,
            "link": self.link,
            "pubDate": self.pub_date,
            "source": self.source,
        }
        if self.topic:
            row["topic"] = self.topic
        return row


def uniq_news(items: list[NewsItem]) -> list[NewsItem]:
    """Keep the first item per link (or title when the link is empty)."""
    seen: set[str] = set()
    out: list[NewsItem] = []
    for item in items:
        key = item.dedupe_key
        if not key or key in seen:
            continue
        seen.add(key)
        out.append(item)
    return out
