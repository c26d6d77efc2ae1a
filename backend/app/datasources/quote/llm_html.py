from __future__ import annotations

from urllib.parse import quote

from backend.app.datasources.base.adapter import DataSourceConfig
from backend.app.datasources.base.http_client import HttpClient, build_client
from backend.app.datasources.base.utils import decode_response, to_yahoo_symbol
from backend.app.datasources.quote.common import build_quote
from backend.app.datasources.quote.models import Quote
from backend.app.llm.extractor import HtmlJsonExtractor


class LLMHtmlQuoteAdapter:
    """Last-resort provider: scrape the Yahoo quote page and let the LLM read the price."""

    source_id = "llm_html"

    def __init__(
        self,
        config: DataSourceConfig,
        extractor: HtmlJsonExtractor,
        client: HttpClient | None = None,
    ) -> None:
        self.config = config
        self.extractor = extractor
        self.client = client or build_client(config)

    def fetch_quote(self, symbol: str) -> Quote:
        if not self.extractor.enabled:
            raise RuntimeError("llm_html adapter disabled: no llm provider")
        sym = to_yahoo_symbol(symbol)
        url = f"https://finance.yahoo.com/quote/{quote(sym)}"
        html = decode_response(self.client.get_bytes(url))
        extracted = self.extractor.extract(
            html,
            symbol=sym,
            task="提取该证券的当前价格与币种",
            schema_hint='{"price": number, "currency": "string"}',
        )
        if not extracted or isinstance(extracted.get("price"), bool) or not isinstance(
            extracted.get("price"), (int, float)
        ):
            raise RuntimeError("llm_html parse failed: price missing")
        return build_quote(
            symbol=sym,
            name=sym,
            price=extracted["price"],
            change_pct=None,
            currency=str(extracted.get("currency") or "USD"),
            market_state="UNKNOWN",
            source_id=self.source_id,
        )
