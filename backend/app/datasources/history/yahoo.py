from __future__ import annotations

import json
from datetime import datetime, timezone
from urllib.parse import quote

from backend.app.datasources.base.adapter import DataSourceConfig
from backend.app.datasources.base.http_client import HttpClient, build_client
from backend.app.datasources.base.utils import decode_response, to_yahoo_symbol
from backend.app.datasources.history.models import HistorySeries, build_series


def _to_epoch(day: str) -> int:
    parsed = datetime.fromisoformat(day)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp())


class YahooHistoryAdapter:
    source_id = "yahoo_chart"

    def __init__(self, config: DataSourceConfig, client: HttpClient | None = None) -> None:
        self.config = config
        self.client = client or build_client(config)

    def fetch_history(
        self,
        symbol: str,
        start: str | None = None,
        end: str | None = None,
        interval: str = "1d",
    ) -> HistorySeries:
        sym = to_yahoo_symbol(symbol)
        url = f"https://query1.finance.yahoo.com/v8/finance/chart/{quote(sym)}?interval={quote(interval)}"
        if start and end:
            url += f"&period1={_to_epoch(start)}&period2={_to_epoch(end)}"
        else:
            url += "&range=1y"
        data = json.loads(decode_response(self.client.get_bytes(url)))
        results = ((data or {}).get("chart") or {}).get("result") or []
        if not results:
            raise RuntimeError("yahoo_chart parse failed: empty result")
        result = results[0]
        timestamps = result.get("timestamp") or []
        quotes = ((result.get("indicators") or {}).get("quote") or [{}])[0] or {}
        closes = quotes.get("close") or []
        rows = [
            (datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%d"), closes[i] if i < len(closes) else None)
            for i, ts in enumerate(timestamps)
        ]
        return build_series(symbol, rows, self.source_id)
