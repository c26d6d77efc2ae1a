from __future__ import annotations

from backend.app.datasources.financial.common import Financials
from backend.app.datasources.financial.eastmoney import EastmoneyFinancialAdapter
from backend.app.datasources.financial.llm_html import LLMHtmlFinancialAdapter
from backend.app.datasources.financial.service import FinancialService
from backend.app.datasources.financial.yahoo import YahooFinancialAdapter

__all__ = [
    "Financials",
    "FinancialService",
    "EastmoneyFinancialAdapter",
    "YahooFinancialAdapter",
    "LLMHtmlFinancialAdapter",
]
