from __future__ import annotations

from urllib.parse import quote

from backend.app.datasources.base.adapter import DataSourceConfig
from backend.app.datasources.base.http_client import HttpClient, build_client
from backend.app.datasources.base.utils import decode_response, to_yahoo_symbol
from backend.app.datasources.history.models import HistorySeries, build_series
from backend.app.llm.extractor import HtmlJsonExtractor


class LLMHtmlHistoryAdapter:
    source_id = "llm_html_history"

    def __init__(
        self,
        config: DataSourceConfig,
        extractor: HtmlJsonExtractor,
        client: HttpClient | None = None,
    ) -> None:
        self.config = config
        self.extractor = extractor
        self.client = client or build_client(config)

    def fetch_history(
        self,
        symbol: str,
        start: str | None = None,
        end: str | None = None,
        interval: str = "1d",
    ) -> HistorySeries:
        _ = interval
        if not self.extractor.enabled:
            raise RuntimeError("llm_html_history disabled: no llm provider")
        sym = to_yahoo_symbol(symbol)
        html = decode_response(self.client.get_bytes(f"https://finance.yahoo.com/quote/{quote(sym)}/history"))
        extracted = self.extractor.extract(
            html,
            symbol=sym,
            task="提取该证券按日期升序排列的每日收盘价",
            schema_hint='{"series": [{"date": "YYYY-MM-DD", "close": number}]}',
        )
        rows = [
            (str(item.get("date", "")), item.get("close"))
            for item in (extracted or {}).get("series") or []
            if isinstance(item, dict)
        ]
        rows = [r for r in rows if (not start or r[0] >= start) and (not end or r[0] <= end)]
        rows.sort(key=lambda r: r[0])
        return build_series(symbol, rows, self.source_id)
