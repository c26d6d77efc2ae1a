from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class DataSourceConfig:
    """Shared runtime config for datasource adapters.

    Quote adapters run with `retry_count=0`: the fallback chain moves on to the
    next provider instead of hammering the same one.
    """

    source_id: str
    timeout_seconds: float = 8.0
    retry_count: int = 0
    retry_backoff_seconds: float = 0.3
    proxy_url: str = ""
