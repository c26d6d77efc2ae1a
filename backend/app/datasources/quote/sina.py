from __future__ import annotations

from backend.app.datasources.base.adapter import DataSourceConfig
from backend.app.datasources.base.http_client import HttpClient, build_client
from backend.app.datasources.base.utils import decode_response, safe_get, to_finite_float
from backend.app.datasources.quote.common import (
    build_quote,
    extract_quoted_payload,
    pct_from_prev_close,
    require_cn_code,
)
from backend.app.datasources.quote.models import Quote


class SinaQuoteAdapter:
    source_id = "sina"

    def __init__(self, config: DataSourceConfig, client: HttpClient | None = None) -> None:
        self.config = config
        self.client = client or build_client(config)

    def fetch_quote(self, symbol: str) -> Quote:
        code = require_cn_code(symbol, self.source_id)
        url = f"http://hq.sinajs.cn/list={code}"
        # Sina rejects requests without a finance.sina.com.cn referer.
        payload = self.client.get_bytes(url, headers={"Referer": "http://finance.sina.com.cn"})
        fields = extract_quoted_payload(decode_response(payload, "gbk"), self.source_id).split(",")
        if len(fields) < 4:
            raise RuntimeError("sina parse failed: field too short")
        price = to_finite_float(safe_get(fields, 3))
        return build_quote(
            symbol=code,
            name=safe_get(fields, 0),
            price=price,
            change_pct=pct_from_prev_close(price, to_finite_float(safe_get(fields, 2))) if price is not None else None,
            currency="CNY",
            market_state="REGULAR",
            source_id=self.source_id,
        )
