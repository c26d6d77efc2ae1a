from __future__ import annotations

import logging
from typing import Protocol

from backend.app.datasources.base.adapter import DataSourceConfig
from backend.app.datasources.financial.common import Financials
from backend.app.datasources.financial.eastmoney import EastmoneyFinancialAdapter
from backend.app.datasources.financial.llm_html import LLMHtmlFinancialAdapter
from backend.app.datasources.financial.yahoo import YahooFinancialAdapter
from backend.app.llm.extractor import HtmlJsonExtractor


_logger = logging.getLogger("datasource.financial")


class FinancialAdapter(Protocol):
    source_id: str

    def fetch_financials(self, symbol: str) -> Financials:
        ...


class FinancialService:
    def __init__(self, adapters: list[FinancialAdapter]) -> None:
        self.adapters = adapters

    def get_financials(self, symbol: str) -> Financials:
        """Walk the chain; an exhausted chain yields an all-None Financials."""
        errors: list[str] = []
        for adapter in self.adapters:
            source_id = getattr(adapter, "source_id", "unknown")
            try:
                return adapter.fetch_financials(symbol)
            except Exception as ex:  # noqa: BLE001
                _logger.debug("financial_provider_failed symbol=%s source=%s error=%s", symbol, source_id, ex)
                errors.append(f"{source_id}: {ex}")
        _logger.warning("financial_chain_exhausted symbol=%s errors=%s", symbol, "; ".join(errors))
        return Financials()

    @classmethod
    def build_default(
        cls,
        *,
        extractor: HtmlJsonExtractor,
        timeout_seconds: float = 8.0,
        retry_count: int = 0,
        retry_backoff_seconds: float = 0.3,
        proxy_url: str = "",
    ) -> "FinancialService":
        def cfg(source_id: str) -> DataSourceConfig:
            return DataSourceConfig(
                source_id=source_id,
                timeout_seconds=timeout_seconds,
                retry_count=retry_count,
                retry_backoff_seconds=retry_backoff_seconds,
                proxy_url=proxy_url,
            )

        adapters: list[FinancialAdapter] = [
            EastmoneyFinancialAdapter(cfg("eastmoney_financial")),
            YahooFinancialAdapter(cfg("yahoo_financial")),
            LLMHtmlFinancialAdapter(cfg("llm_html_financial"), extractor=extractor),
        ]
        return cls(adapters)
