from __future__ import annotations

from backend.app.datasources.history.llm_html import LLMHtmlHistoryAdapter
from backend.app.datasources.history.models import HistoryPoint, HistorySeries
from backend.app.datasources.history.service import HistoryService
from backend.app.datasources.history.tencent import TencentHistoryAdapter
from backend.app.datasources.history.yahoo import YahooHistoryAdapter

__all__ = [
    "HistoryPoint",
    "HistorySeries",
    "HistoryService",
    "YahooHistoryAdapter",
    "TencentHistoryAdapter",
    "LLMHtmlHistoryAdapter",
]
