from __future__ import annotations

from urllib.parse import quote

from backend.app.datasources.base.adapter import DataSourceConfig
from backend.app.datasources.base.http_client import HttpClient, build_client
from backend.app.datasources.base.utils import decode_response, to_yahoo_symbol
from backend.app.datasources.financial.common import Financials, build_financials
from backend.app.llm.extractor import HtmlJsonExtractor


class LLMHtmlFinancialAdapter:
    source_id = "llm_html_financial"

    def __init__(
        self,
        config: DataSourceConfig,
        extractor: HtmlJsonExtractor,
        client: HttpClient | None = None,
    ) -> None:
        self.config = config
        self.extractor = extractor
        self.client = client or build_client(config)

    def fetch_financials(self, symbol: str) -> Financials:
        if not self.extractor.enabled:
            raise RuntimeError("llm_html_financial disabled: no llm provider")
        sym = to_yahoo_symbol(symbol)
        html = decode_response(self.client.get_bytes(f"https://finance.yahoo.com/quote/{quote(sym)}/financials"))
        extracted = self.extractor.extract(
            html,
            symbol=sym,
            task="提取该公司最近一个财年的总营收、净利润与币种",
            schema_hint='{"revenue": number, "netIncome": number, "currency": "string"}',
        ) or {}
        financials = build_financials(
            revenue=extracted.get("revenue"),
            net_income=extracted.get("netIncome"),
            currency=extracted.get("currency"),
            source_id=self.source_id,
        )
        if financials.is_empty:
            raise RuntimeError("llm_html_financial parse failed: no figures")
        return financials
