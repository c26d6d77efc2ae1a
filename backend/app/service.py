from __future__ import annotations

import logging
from typing import Any

from backend.app.config import Settings
from backend.app.datasources import (
    build_default_financial_service,
    build_default_history_service,
    build_default_news_service,
    build_default_quote_service,
)
from backend.app.datasources.news.service import flatten_topic_news
from backend.app.intelligence.service import IntelligenceService
from backend.app.llm.extractor import HtmlJsonExtractor
from backend.app.llm.gateway import ChatGateway
from backend.app.portfolio.analysis import AnalysisComposer
from backend.app.portfolio.backtest import BacktestService
from backend.app.watchlist.models import WatchlistEntry
from backend.app.watchlist.service import WatchlistService


_logger = logging.getLogger("portfolio.service")


class PortfolioInsightService:
    """应用服务层。

    负责聚合 API 所需能力：行情/历史/财务/新闻回退链、个股分析、回测、
    自选与市场情报。路由层只做参数校验与错误码映射。
    """

    def __init__(self, settings: Settings | None = None, gateway: ChatGateway | None = None) -> None:
        """初始化各子系统依赖。"""
        self.settings = settings or Settings.from_env()
        self.gateway = gateway or ChatGateway(self.settings)
        extractor = HtmlJsonExtractor(self.gateway)

        self.quotes = build_default_quote_service(self.settings, extractor=extractor)
        self.history = build_default_history_service(self.settings, extractor=extractor)
        self.financials = build_default_financial_service(self.settings, extractor=extractor)
        self.news = build_default_news_service(self.settings)

        self.composer = AnalysisComposer(
            quote_service=self.quotes,
            history_service=self.history,
            financial_service=self.financials,
            news_service=self.news,
            gateway=self.gateway,
            news_limit=self.settings.news_limit,
            use_llm=self.settings.analysis_use_llm,
        )
        self.backtester = BacktestService(self.history)
        self.watchlist = WatchlistService(self.quotes, self.gateway)
        self.intelligence = IntelligenceService(
            quote_service=self.quotes,
            news_service=self.news,
            gateway=self.gateway,
            max_age_seconds=self.settings.intelligence_max_age_seconds,
        )
        _logger.info(
            "service_ready env=%s llm=%s",
            self.settings.env,
            self.gateway.provider_name or "template",
        )

    def health(self) -> dict[str, Any]:
        return {
            "status": "ok",
            "llm": self.gateway.provider_name,
            "quoteChains": self.quotes.debug_snapshot(),
        }

    def quote(self, symbol: str) -> dict[str, Any] | None:
        quote = self.quotes.get_quote(symbol)
        return quote.to_dict() if quote else None

    def history_series(self, symbol: str, start: str | None = None, end: str | None = None) -> dict[str, Any] | None:
        series = self.history.get_history(symbol, start=start, end=end)
        return series.to_dict() if series else None

    def financial_summary(self, symbol: str) -> dict[str, Any]:
        return self.financials.get_financials(symbol).to_dict()

    def topic_news(self, symbol: str, limit: int | None = None) -> dict[str, Any]:
        by_topic = self.news.fetch_topic_news(symbol, limit=limit or self.settings.news_limit)
        return {
            "newsByTopic": {k: [n.to_dict() for n in v] for k, v in by_topic.items()},
            "news": [n.to_dict() for n in flatten_topic_news(by_topic)],
        }

    def analyze(self, code: str) -> dict[str, Any]:
        return self.composer.analyze(code).to_dict()

    def backtest(
        self,
        symbols: list[str],
        start: str | None = None,
        end: str | None = None,
        initial: float | None = None,
    ) -> dict[str, Any]:
        capital = self.settings.backtest_initial_capital if initial is None else initial
        return self.backtester.run(symbols, start=start, end=end, initial=capital).to_dict()

    def watchlist_value(self, entries: list[dict[str, Any]]) -> dict[str, Any]:
        return self.watchlist.value([WatchlistEntry.from_dict(e) for e in entries])

    def watchlist_analyze(self, codes: list[str]) -> dict[str, Any]:
        return self.watchlist.analyze(codes)

    def intelligence_latest(self) -> dict[str, Any]:
        return self.intelligence.latest()

    def intelligence_refresh(self) -> dict[str, Any]:
        refreshed = self.intelligence.refresh()
        return {"refreshed": refreshed, **self.intelligence.cache.to_dict()}

    def start_background_jobs(self) -> None:
        if self.settings.intelligence_refresh_seconds > 0:
            self.intelligence.start_background(self.settings.intelligence_refresh_seconds)

    def close(self) -> None:
        self.intelligence.stop()
