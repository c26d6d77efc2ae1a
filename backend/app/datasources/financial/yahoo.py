from __future__ import annotations

import json
from urllib.parse import quote

from backend.app.datasources.base.adapter import DataSourceConfig
from backend.app.datasources.base.http_client import HttpClient, build_client
from backend.app.datasources.base.utils import decode_response, to_yahoo_symbol
from backend.app.datasources.financial.common import Financials, build_financials, raw_value


class YahooFinancialAdapter:
    source_id = "yahoo_financial"

    def __init__(self, config: DataSourceConfig, client: HttpClient | None = None) -> None:
        self.config = config
        self.client = client or build_client(config)

    def fetch_financials(self, symbol: str) -> Financials:
        sym = to_yahoo_symbol(symbol)
        url = (
            f"https://query1.finance.yahoo.com/v10/finance/quoteSummary/{quote(sym)}"
            "?modules=financialData,incomeStatementHistory"
        )
        parsed = json.loads(decode_response(self.client.get_bytes(url)))
        results = ((parsed or {}).get("quoteSummary") or {}).get("result") or []
        if not results:
            raise RuntimeError("yahoo_financial parse failed: empty result")
        result = results[0] or {}
        fd = result.get("financialData") or {}
        statements = (result.get("incomeStatementHistory") or {}).get("incomeStatementHistory") or []
        latest = statements[0] if statements else {}
        revenue = raw_value(latest.get("totalRevenue"))
        if revenue is None:
            revenue = raw_value(fd.get("totalRevenue"))
        net_income = raw_value(latest.get("netIncome"))
        if net_income is None:
            net_income = raw_value(fd.get("netIncome"))
        financials = build_financials(
            revenue=revenue,
            net_income=net_income,
            currency=fd.get("financialCurrency"),
            source_id=self.source_id,
        )
        if financials.is_empty:
            raise RuntimeError("yahoo_financial parse failed: no revenue or net income")
        return financials
