from __future__ import annotations

from backend.app.datasources.factory import (
    build_default_financial_service,
    build_default_history_service,
    build_default_news_service,
    build_default_quote_service,
)

__all__ = [
    "build_default_quote_service",
    "build_default_history_service",
    "build_default_financial_service",
    "build_default_news_service",
]
