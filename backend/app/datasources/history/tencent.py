from __future__ import annotations

import json
from urllib.parse import quote

from backend.app.datasources.base.adapter import DataSourceConfig
from backend.app.datasources.base.http_client import HttpClient, build_client
from backend.app.datasources.base.utils import decode_response, is_cn_api_code, to_cn_prefix
from backend.app.datasources.history.models import HistorySeries, build_series


class TencentHistoryAdapter:
    """Forward-adjusted (qfq) daily klines; only covers mainland symbols."""

    source_id = "tencent_kline"

    def __init__(self, config: DataSourceConfig, client: HttpClient | None = None, count: int = 120) -> None:
        self.config = config
        self.count = count
        self.client = client or build_client(config)

    def fetch_history(
        self,
        symbol: str,
        start: str | None = None,
        end: str | None = None,
        interval: str = "1d",
    ) -> HistorySeries:
        _ = interval
        code = to_cn_prefix(symbol)
        if not is_cn_api_code(code):
            raise RuntimeError(f"tencent_kline unsupported symbol: {symbol}")
        param = ",".join([code, "day", start or "", end or "", str(self.count), "qfq"])
        url = f"https://web.ifzq.gtimg.cn/appstock/app/fqkline/get?param={quote(param)}"
        payload = self.client.get_bytes(url, headers={"Referer": "https://qt.gtimg.cn"})
        data = json.loads(decode_response(payload))
        node = ((data or {}).get("data") or {}).get(code) or {}
        raw = node.get("qfqday") or node.get("day") or []
        if not isinstance(raw, list):
            raise RuntimeError("tencent_kline parse failed: unexpected payload")
        rows = [(row[0], row[2]) for row in raw if isinstance(row, list) and len(row) > 2]
        return build_series(symbol, rows, self.source_id)
