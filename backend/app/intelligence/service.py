from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

from backend.app.datasources.news.models import NewsItem
from backend.app.datasources.news.service import NewsService
from backend.app.datasources.quote.service import QuoteService
from backend.app.llm.gateway import ChatGateway


_logger = logging.getLogger("intelligence")

Clock = Callable[[], datetime]

# A 股指数走 CN 链（腾讯优先），其余走全球链（Yahoo）
MARKET_INDICES: dict[str, str] = {
    "sh000001": "上证指数",
    "sz399001": "深证成指",
    "^HSI": "恒生指数",
    "3033.HK": "恒生科技ETF",
    "GC=F": "COMEX黄金",
    "^DJI": "道琼斯指数",
    "BTC-USD": "比特币",
}
MARKET_NEWS_QUERY = "A股 市场"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class IntelligenceCache:
    """市场情报缓存。

    时间由注入的 clock 提供，测试中可以用假时钟推进。
    """

    clock: Clock = utc_now
    updated_at: datetime | None = None
    market: list[dict[str, Any]] = field(default_factory=list)
    news: list[NewsItem] = field(default_factory=list)
    analysis: str = ""

    def store(self, market: list[dict[str, Any]], news: list[NewsItem], analysis: str) -> None:
        self.market = market
        self.news = news
        self.analysis = analysis
        self.updated_at = self.clock()

    def is_stale(self, max_age_seconds: float) -> bool:
        if self.updated_at is None:
            return True
        return (self.clock() - self.updated_at).total_seconds() > max_age_seconds

    def to_dict(self) -> dict[str, Any]:
        return {
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
            "market": list(self.market),
            "news": [n.to_dict() for n in self.news],
            "analysis": self.analysis,
        }


def build_market_summary(market: list[dict[str, Any]], news: list[NewsItem]) -> str:
    parts: list[str] = []
    for row in market:
        change = row.get("changePct")
        change_text = f"{change:.2f}%" if isinstance(change, (int, float)) else "未知"
        parts.append(f"{row['name']} {row.get('price', '未知')}（{change_text}）")
    head = "；".join(parts) if parts else "指数行情暂不可用"
    titles = "；".join(n.title for n in news[:3]) if news else "暂无"
    return f"市场概览：{head}。热点新闻：{titles}。"


class IntelligenceService:
    def __init__(
        self,
        *,
        quote_service: QuoteService,
        news_service: NewsService,
        gateway: ChatGateway,
        cache: IntelligenceCache | None = None,
        max_age_seconds: float = 3600.0,
        news_limit: int = 8,
    ) -> None:
        self.quote_service = quote_service
        self.news_service = news_service
        self.gateway = gateway
        self.cache = cache or IntelligenceCache()
        self.max_age_seconds = max_age_seconds
        self.news_limit = news_limit
        self._refresh_lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def refresh(self) -> bool:
        """Rebuild the cache; returns False when another refresh is already running."""
        if not self._refresh_lock.acquire(blocking=False):
            _logger.info("intelligence_refresh_skipped reason=in_progress")
            return False
        try:
            market = self._market_snapshot()
            news = self.news_service.fetch_news(MARKET_NEWS_QUERY, limit=self.news_limit)
            analysis = self._summarize(market, news)
            self.cache.store(market, news, analysis)
            _logger.info("intelligence_refreshed indices=%s news=%s", len(market), len(news))
            return True
        except Exception as ex:  # noqa: BLE001
            # 保留上一次缓存
            _logger.warning("intelligence_refresh_failed error=%s", ex)
            return False
        finally:
            self._refresh_lock.release()

    def latest(self) -> dict[str, Any]:
        if self.cache.is_stale(self.max_age_seconds):
            self.refresh()
        return self.cache.to_dict()

    def _market_snapshot(self) -> list[dict[str, Any]]:
        symbols = list(MARKET_INDICES)
        with ThreadPoolExecutor(max_workers=len(symbols), thread_name_prefix="intelligence-quote") as pool:
            quotes = list(pool.map(self.quote_service.get_quote, symbols))
        rows: list[dict[str, Any]] = []
        for symbol, quote in zip(symbols, quotes):
            if quote is None:
                continue
            rows.append(
                {
                    "symbol": symbol,
                    "name": MARKET_INDICES[symbol],
                    "price": quote.price,
                    "changePct": quote.change_pct,
                    "source": quote.source_id,
                }
            )
        return rows

    def _summarize(self, market: list[dict[str, Any]], news: list[NewsItem]) -> str:
        template = build_market_summary(market, news)
        if not self.gateway.enabled:
            return template
        prompt = (
            "请基于以下A股及全球市场数据与新闻，写一段不超过200字的中文市场简报，"
            "包括整体情绪、主要驱动与需要关注的风险：\n" + template
        )
        try:
            text = self.gateway.chat(
                [
                    {"role": "system", "content": "你是资深中文市场分析师。"},
                    {"role": "user", "content": prompt},
                ],
                temperature=0.3,
            )
        except Exception as ex:  # noqa: BLE001
            _logger.warning("intelligence_llm_failed provider=%s error=%s", self.gateway.provider_name, ex)
            return template
        return text or template

    def start_background(self, interval_seconds: float) -> bool:
        if interval_seconds <= 0 or (self._thread is not None and self._thread.is_alive()):
            return False
        self._stop.clear()

        def _loop() -> None:
            while not self._stop.is_set():
                self.refresh()
                self._stop.wait(interval_seconds)

        self._thread = threading.Thread(target=_loop, name="intelligence-refresh", daemon=True)
        self._thread.start()
        _logger.info("intelligence_background_started interval=%s", interval_seconds)
        return True

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None
