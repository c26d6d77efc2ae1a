from __future__ import annotations

import json
from urllib.parse import quote

from backend.app.datasources.base.adapter import DataSourceConfig
from backend.app.datasources.base.http_client import HttpClient, build_client
from backend.app.datasources.base.utils import decode_response, to_yahoo_symbol
from backend.app.datasources.quote.common import build_quote
from backend.app.datasources.quote.models import Quote


class YahooQuoteAdapter:
    source_id = "yahoo"

    def __init__(self, config: DataSourceConfig, client: HttpClient | None = None) -> None:
        self.config = config
        self.client = client or build_client(config)

    def fetch_quote(self, symbol: str) -> Quote:
        sym = to_yahoo_symbol(symbol)
        url = f"https://query1.finance.yahoo.com/v7/finance/quote?symbols={quote(sym)}"
        payload = self.client.get_bytes(url, headers={"Accept-Language": "zh-CN,zh;q=0.9,en;q=0.8"})
        data = json.loads(decode_response(payload))
        results = ((data or {}).get("quoteResponse") or {}).get("result") or []
        if not results:
            raise RuntimeError("yahoo parse failed: empty result")
        item = results[0]
        price = item.get("regularMarketPrice")
        if price is None:
            price = item.get("postMarketPrice")
        if price is None:
            price = item.get("preMarketPrice")
        return build_quote(
            symbol=str(item.get("symbol") or sym),
            name=str(item.get("shortName") or item.get("longName") or sym),
            price=price,
            change_pct=item.get("regularMarketChangePercent"),
            currency=str(item.get("currency") or "USD"),
            market_state=str(item.get("marketState") or "CLOSED"),
            source_id=self.source_id,
        )
