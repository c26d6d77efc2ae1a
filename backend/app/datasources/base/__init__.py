from __future__ import annotations

from backend.app.datasources.base.adapter import DataSourceConfig
from backend.app.datasources.base.http_client import HttpClient, build_client
from backend.app.datasources.base.utils import (
    decode_response,
    is_cn_symbol,
    to_cn_prefix,
    to_finite_float,
    to_yahoo_symbol,
)

__all__ = [
    "DataSourceConfig",
    "HttpClient",
    "build_client",
    "decode_response",
    "is_cn_symbol",
    "to_cn_prefix",
    "to_finite_float",
    "to_yahoo_symbol",
]
