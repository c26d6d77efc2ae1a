from __future__ import annotations

import threading
import unittest

from backend.app.datasources.base.adapter import DataSourceConfig
from backend.app.datasources.news.google_rss import GoogleNewsRssAdapter, feed_urls, parse_rss_items
from backend.app.datasources.news.models import NewsItem, uniq_news
from backend.app.datasources.news.service import NewsService, flatten_topic_news


_RSS = """<?xml version="1.0"?>
<rss version="2.0"><channel>
<title>Google News</title>
<item><title>贵州茅台发布三季报</title><link>https://example.com/a</link>
<pubDate>Mon, 21 Oct 2024 08:00:00 GMT</pubDate><source url="https://example.com">财经网</source></item>
<item><title>白酒板块走强</title><link>https://example.com/b</link><pubDate>Mon, 21 Oct 2024 09:00:00 GMT</pubDate></item>
<item><title></title><link></link></item>
<item><title>第三条</title><link>https://example.com/c</link></item>
</channel></rss>"""


class _StubClient:
    def __init__(self, payloads: dict[str, bytes]) -> None:
        self.payloads = payloads
        self.urls: list[str] = []

    def get_bytes(self, url: str, headers: dict[str, str] | None = None) -> bytes:
        _ = headers
        self.urls.append(url)
        for key, value in self.payloads.items():
            if key in url:
                return value
        raise RuntimeError(f"stub payload not found for url={url}")


class _TopicAdapter:
    source_id = "fake_rss"

    def __init__(self) -> None:
        self.queries: list[str] = []
        self._lock = threading.Lock()

    def fetch_news(self, query: str, limit: int = 5) -> list[NewsItem]:
        with self._lock:
            self.queries.append(query)
        shared = NewsItem(title="大盘综述", link="https://example.com/shared")
        own = NewsItem(title=f"{query} 新闻", link=f"https://example.com/{query}")
        return [own, shared, own][:limit]


class _BrokenAdapter:
    source_id = "broken"

    def fetch_news(self, query: str, limit: int = 5) -> list[NewsItem]:
        raise RuntimeError("feed down")


class GoogleRssTestCase(unittest.TestCase):
    def test_feed_urls_include_mirrors(self) -> None:
        urls = feed_urls("贵州茅台 政策")
        self.assertEqual(len(urls), 4)
        self.assertTrue(urls[0].startswith("https://news.google.com/rss/search?q="))
        self.assertTrue(urls[2].startswith("https://r.jina.ai/http://news.google.com/"))
        self.assertIn("ceid=US:en", urls[1])

    def test_parse_rss_items(self) -> None:
        items = parse_rss_items(_RSS, limit=5)
        self.assertEqual([i.title for i in items], ["贵州茅台发布三季报", "白酒板块走强", "第三条"])
        self.assertEqual(items[0].source, "财经网")
        self.assertEqual(items[1].source, "Google News")
        self.assertEqual(items[0].pub_date, "Mon, 21 Oct 2024 08:00:00 GMT")

    def test_parse_rss_items_respects_limit_and_leading_junk(self) -> None:
        items = parse_rss_items("Title: mirror\n\n" + _RSS, limit=1)
        self.assertEqual(len(items), 1)

    def test_adapter_falls_back_to_mirror(self) -> None:
        client = _StubClient({"r.jina.ai": _RSS.encode("utf-8")})
        adapter = GoogleNewsRssAdapter(DataSourceConfig(source_id="google_news_rss"), client=client)
        items = adapter.fetch_news("600519", limit=2)
        self.assertEqual(len(items), 2)
        self.assertEqual(len(client.urls), 3)

    def test_adapter_returns_empty_when_all_feeds_fail(self) -> None:
        client = _StubClient({})
        adapter = GoogleNewsRssAdapter(DataSourceConfig(source_id="google_news_rss"), client=client)
        self.assertEqual(adapter.fetch_news("600519"), [])
        self.assertEqual(len(client.urls), 4)


class NewsServiceTestCase(unittest.TestCase):
    def test_uniq_news_by_link_then_title(self) -> None:
        items = [
            NewsItem(title="A", link="https://x/1"),
            NewsItem(title="A again", link="https://x/1"),
            NewsItem(title="B", link=""),
            NewsItem(title="B", link=""),
            NewsItem(title="", link=""),
        ]
        self.assertEqual([i.title for i in uniq_news(items)], ["A", "B"])

    def test_topic_news_queries_and_tags(self) -> None:
        adapter = _TopicAdapter()
        by_topic = NewsService(adapter).fetch_topic_news("600519", limit=5)
        self.assertEqual(list(by_topic), ["base", "policy", "industry", "finance"])
        self.assertEqual(
            sorted(adapter.queries),
            sorted(["600519", "600519 政策", "600519 行业", "600519 财报"]),
        )
        self.assertEqual(len(by_topic["policy"]), 2)
        self.assertTrue(all(item.topic == "policy" for item in by_topic["policy"]))

    def test_flatten_topic_news_keeps_base_first_and_dedupes(self) -> None:
        by_topic = NewsService(_TopicAdapter()).fetch_topic_news("600519")
        flat = flatten_topic_news(by_topic)
        self.assertEqual(flat[0].title, "600519 新闻")
        self.assertEqual(flat[0].topic, "base")
        self.assertEqual(len([i for i in flat if i.link == "https://example.com/shared"]), 1)
        self.assertEqual(len(flat), 5)

    def test_flatten_topic_news_caps_at_ten(self) -> None:
        by_topic = {"base": [NewsItem(title=f"t{i}", link=f"https://x/{i}") for i in range(15)]}
        self.assertEqual(len(flatten_topic_news(by_topic)), 10)

    def test_failed_feed_degrades_to_empty(self) -> None:
        svc = NewsService(_BrokenAdapter())
        self.assertEqual(svc.fetch_news("600519"), [])
        self.assertEqual(svc.fetch_topic_news("600519")["finance"], [])

    def test_news_item_to_dict(self) -> None:
        row = NewsItem(title="t", link="l", pub_date="d").with_topic("policy").to_dict()
        self.assertEqual(row, {"title": "t", "link": "l", "pubDate": "d", "source": "Google News", "topic": "policy"})


if __name__ == "__main__":
    unittest.main()
