from __future__ import annotations

from backend.app.datasources.quote.llm_html import LLMHtmlQuoteAdapter
from backend.app.datasources.quote.models import Quote
from backend.app.datasources.quote.service import QuoteService
from backend.app.datasources.quote.sina import SinaQuoteAdapter
from backend.app.datasources.quote.tencent import TencentQuoteAdapter
from backend.app.datasources.quote.yahoo import YahooQuoteAdapter

__all__ = [
    "Quote",
    "QuoteService",
    "TencentQuoteAdapter",
    "SinaQuoteAdapter",
    "YahooQuoteAdapter",
    "LLMHtmlQuoteAdapter",
]
