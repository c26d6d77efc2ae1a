from __future__ import annotations

import logging
import math
from typing import Any, Protocol

from backend.app.datasources.base.adapter import DataSourceConfig
from backend.app.datasources.base.utils import is_cn_symbol
from backend.app.datasources.quote.llm_html import LLMHtmlQuoteAdapter
from backend.app.datasources.quote.models import Quote
from backend.app.datasources.quote.sina import SinaQuoteAdapter
from backend.app.datasources.quote.tencent import TencentQuoteAdapter
from backend.app.datasources.quote.yahoo import YahooQuoteAdapter
from backend.app.llm.extractor import HtmlJsonExtractor


_logger = logging.getLogger("datasource.quote")


class QuoteAdapter(Protocol):
    source_id: str

    def fetch_quote(self, symbol: str) -> Quote:
        ...


class QuoteService:
    """Quote service with market-aware fallback chains.

    Mainland symbols walk `cn_adapters`, everything else walks
    `global_adapters`. The first finite price wins; provider errors are logged
    and skipped, and exhausting the chain yields None.
    """

    def __init__(self, cn_adapters: list[QuoteAdapter], global_adapters: list[QuoteAdapter]) -> None:
        self.cn_adapters = cn_adapters
        self.global_adapters = global_adapters

    def chain_for(self, symbol: str) -> list[QuoteAdapter]:
        return self.cn_adapters if is_cn_symbol(symbol) else self.global_adapters

    def get_quote(self, symbol: str) -> Quote | None:
        errors: list[str] = []
        for adapter in self.chain_for(symbol):
            source_id = getattr(adapter, "source_id", "unknown")
            try:
                quote = adapter.fetch_quote(symbol)
            except Exception as ex:  # noqa: BLE001
                _logger.debug("quote_provider_failed symbol=%s source=%s error=%s", symbol, source_id, ex)
                errors.append(f"{source_id}: {ex}")
                continue
            if quote is not None and isinstance(quote.price, (int, float)) and math.isfinite(quote.price):
                return quote
            _logger.debug("quote_provider_empty symbol=%s source=%s", symbol, source_id)
            errors.append(f"{source_id}: no finite price")
        _logger.warning("quote_chain_exhausted symbol=%s errors=%s", symbol, "; ".join(errors))
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
    ) -> "QuoteService":
        def cfg(source_id: str) -> DataSourceConfig:
            return DataSourceConfig(
                source_id=source_id,
                timeout_seconds=timeout_seconds,
                retry_count=retry_count,
                retry_backoff_seconds=retry_backoff_seconds,
                proxy_url=proxy_url,
            )

        tencent = TencentQuoteAdapter(cfg("tencent"))
        sina = SinaQuoteAdapter(cfg("sina"))
        yahoo = YahooQuoteAdapter(cfg("yahoo"))
        llm_html = LLMHtmlQuoteAdapter(cfg("llm_html"), extractor=extractor)
        return cls(
            cn_adapters=[tencent, sina, yahoo, llm_html],
            global_adapters=[yahoo, llm_html],
        )

    def debug_snapshot(self) -> dict[str, list[dict[str, Any]]]:
        """Provide a lightweight, serializable snapshot for ops diagnostics."""

        def rows(adapters: list[QuoteAdapter]) -> list[dict[str, Any]]:
            return [
                {"source_id": str(getattr(adapter, "source_id", "")), "adapter": adapter.__class__.__name__}
                for adapter in adapters
            ]

        return {"cn": rows(self.cn_adapters), "global": rows(self.global_adapters)}
