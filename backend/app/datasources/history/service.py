from __future__ import annotations

import logging
from typing import Protocol

from backend.app.datasources.base.adapter import DataSourceConfig
from backend.app.datasources.base.utils import is_cn_symbol
from backend.app.datasources.history.llm_html import LLMHtmlHistoryAdapter
from backend.app.datasources.history.models import HistorySeries
from backend.app.datasources.history.tencent import TencentHistoryAdapter
from backend.app.datasources.history.yahoo import YahooHistoryAdapter
from backend.app.llm.extractor import HtmlJsonExtractor


_logger = logging.getLogger("datasource.history")


class HistoryAdapter(Protocol):
    source_id: str

    def fetch_history(
        self,
        symbol: str,
        start: str | None = None,
        end: str | None = None,
        interval: str = "1d",
    ) -> HistorySeries:
        ...


class HistoryService:
    """Daily history with fallback: Yahoo chart, Tencent kline (CN only), LLM page read."""

    def __init__(self, adapters: list[HistoryAdapter], cn_only: set[str] | None = None) -> None:
        self.adapters = adapters
        self.cn_only = cn_only or set()

    def get_history(
        self,
        symbol: str,
        start: str | None = None,
        end: str | None = None,
        interval: str = "1d",
    ) -> HistorySeries | None:
        cn = is_cn_symbol(symbol)
        errors: list[str] = []
        for adapter in self.adapters:
            source_id = getattr(adapter, "source_id", "unknown")
            if source_id in self.cn_only and not cn:
                continue
            try:
                return adapter.fetch_history(symbol, start=start, end=end, interval=interval)
            except Exception as ex:  # noqa: BLE001
                _logger.debug("history_provider_failed symbol=%s source=%s error=%s", symbol, source_id, ex)
                errors.append(f"{source_id}: {ex}")
        _logger.warning("history_chain_exhausted symbol=%s errors=%s", symbol, "; ".join(errors))
        return None

    @classmethod
    def build_default(
        cls,
        *,
        extractor: HtmlJsonExtractor,
        timeout_seconds: float = 8.0,
        retry_count: int = 0,
        retry_backoff_seconds: float = 0.3,
        proxy_url: str = "",
    ) -> "HistoryService":
        def cfg(source_id: str) -> DataSourceConfig:
            return DataSourceConfig(
                source_id=source_id,
                timeout_seconds=timeout_seconds,
                retry_count=retry_count,
                retry_backoff_seconds=retry_backoff_seconds,
                proxy_url=proxy_url,
            )

        adapters: list[HistoryAdapter] = [
            YahooHistoryAdapter(cfg("yahoo_chart")),
            TencentHistoryAdapter(cfg("tencent_kline")),
            LLMHtmlHistoryAdapter(cfg("llm_html_history"), extractor=extractor),
        ]
        return cls(adapters, cn_only={TencentHistoryAdapter.source_id})
