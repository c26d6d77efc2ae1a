from __future__ import annotations

from backend.app.config import Settings
from backend.app.datasources.financial.service import FinancialService
from backend.app.datasources.history.service import HistoryService
from backend.app.datasources.news.service import NewsService
from backend.app.datasources.quote.service import QuoteService
from backend.app.llm.extractor import HtmlJsonExtractor
from backend.app.llm.gateway import ChatGateway


def _runtime_kwargs(cfg: Settings) -> dict:
    return {
        "timeout_seconds": float(cfg.datasource_request_timeout_seconds),
        "retry_count": int(cfg.datasource_retry_count),
        "retry_backoff_seconds": float(cfg.datasource_retry_backoff_seconds),
        "proxy_url": str(cfg.datasource_proxy_url or ""),
    }


def _extractor(cfg: Settings, extractor: HtmlJsonExtractor | None) -> HtmlJsonExtractor:
    return extractor or HtmlJsonExtractor(ChatGateway(cfg))


def build_default_quote_service(
    settings: Settings | None = None,
    extractor: HtmlJsonExtractor | None = None,
) -> QuoteService:
    """Build quote service with datasource-aware runtime settings.

    The LLM page-reading provider stays in the chain even without a key; it
    fails fast and the chain returns None.
    """

    cfg = settings or Settings.from_env()
    return QuoteService.build_default(extractor=_extractor(cfg, extractor), **_runtime_kwargs(cfg))


def build_default_history_service(
    settings: Settings | None = None,
    extractor: HtmlJsonExtractor | None = None,
) -> HistoryService:
    cfg = settings or Settings.from_env()
    return HistoryService.build_default(extractor=_extractor(cfg, extractor), **_runtime_kwargs(cfg))


def build_default_financial_service(
    settings: Settings | None = None,
    extractor: HtmlJsonExtractor | None = None,
) -> FinancialService:
    """Build financial service with multi-source fallback."""

    cfg = settings or Settings.from_env()
    return FinancialService.build_default(extractor=_extractor(cfg, extractor), **_runtime_kwargs(cfg))


def build_default_news_service(settings: Settings | None = None) -> NewsService:
    cfg = settings or Settings.from_env()
    kwargs = _runtime_kwargs(cfg)
    # RSS feeds are slower than quote endpoints.
    kwargs["timeout_seconds"] = max(10.0, kwargs["timeout_seconds"])
    return NewsService.build_default(**kwargs)
