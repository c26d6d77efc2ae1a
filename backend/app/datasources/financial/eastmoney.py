from __future__ import annotations

import json
from urllib.parse import quote

from backend.app.datasources.base.adapter import DataSourceConfig
from backend.app.datasources.base.http_client import HttpClient, build_client
from backend.app.datasources.base.utils import decode_response, extract_cn_code
from backend.app.datasources.financial.common import Financials, build_financials


class EastmoneyFinancialAdapter:
    source_id = "eastmoney_financial"

    def __init__(self, config: DataSourceConfig, client: HttpClient | None = None) -> None:
        self.config = config
        self.client = client or build_client(config)

    def fetch_financials(self, symbol: str) -> Financials:
        code = extract_cn_code(symbol)
        if not code:
            raise RuntimeError(f"eastmoney_financial unsupported symbol: {symbol}")
        filter_expr = f'(SECURITY_CODE="{code}")'
        url = (
            "https://datacenter-web.eastmoney.com/api/data/v1/get"
            "?reportName=RPT_LICO_FN_CPD"
            "&columns=SECURITY_CODE,REPORTDATE,TOTAL_OPERATE_INCOME,PARENT_NETPROFIT"
            f"&filter={quote(filter_expr)}"
            "&pageSize=1&pageNumber=1&sortColumns=REPORTDATE&sortTypes=-1"
        )
        payload = self.client.get_bytes(url, headers={"Referer": "https://data.eastmoney.com"})
        parsed = json.loads(decode_response(payload))
        rows = (((parsed or {}).get("result") or {}).get("data")) or []
        if not rows:
            raise RuntimeError("eastmoney financial empty data")
        item = rows[0]
        return build_financials(
            revenue=item.get("TOTAL_OPERATE_INCOME"),
            net_income=item.get("PARENT_NETPROFIT"),
            currency="CNY",
            source_id=self.source_id,
        )
