from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any
from urllib.request import OpenerDirector, ProxyHandler, Request, build_opener

BROWSER_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0 Safari/537.36"
)

_logger = logging.getLogger("datasource.http")


@dataclass(slots=True)
class HttpClient:
    """Blocking urllib client shared by quote/history/financial/news adapters and the LLM gateway.

    Quote pages (Yahoo, Sina) reject non-browser agents, so a desktop UA is the
    default. Tests never build one: adapters accept any object exposing
    `get_bytes` / `post_json_bytes`.
    """

    timeout_seconds: float = 8.0
    retry_count: int = 0
    retry_backoff_seconds: float = 0.3
    proxy_url: str = ""
    user_agent: str = BROWSER_UA
    _opener: OpenerDirector | None = field(default=None, init=False, repr=False)

    def get_bytes(self, url: str, headers: dict[str, str] | None = None) -> bytes:
        return self._send(Request(url, headers=self._headers(headers), method="GET"))

    def post_json_bytes(
        self,
        url: str,
        payload: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> bytes:
        body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        req_headers = self._headers({"Content-Type": "application/json", **(headers or {})})
        return self._send(Request(url, data=body, headers=req_headers, method="POST"))

    def _headers(self, extra: dict[str, str] | None) -> dict[str, str]:
        return {"User-Agent": self.user_agent, **(extra or {})}

    def _send(self, request: Request) -> bytes:
        attempts = max(1, int(self.retry_count) + 1)
        last_error: Exception | None = None
        for attempt in range(1, attempts + 1):
            try:
                with self.opener.open(request, timeout=self.timeout_seconds) as response:  # noqa: S310
                    return response.read()
            except Exception as ex:  # noqa: BLE001
                last_error = ex
                _logger.debug(
                    "http_attempt_failed method=%s url=%s attempt=%s/%s error=%s",
                    request.get_method(),
                    request.full_url,
                    attempt,
                    attempts,
                    ex,
                )
                if attempt < attempts:
                    time.sleep(self.retry_backoff_seconds * attempt)
        raise RuntimeError(
            f"http request failed: method={request.get_method()}, url={request.full_url}; error={last_error}"
        ) from last_error

    @property
    def opener(self) -> OpenerDirector:
        if self._opener is None:
            # Empty ProxyHandler mapping: host proxy env vars are not honoured.
            proxies = {"http": self.proxy_url, "https": self.proxy_url} if self.proxy_url.strip() else {}
            self._opener = build_opener(ProxyHandler(proxies))
        return self._opener


def build_client(config: Any) -> HttpClient:
    """Create the default client for an adapter from its `DataSourceConfig`."""
    return HttpClient(
        timeout_seconds=config.timeout_seconds,
        retry_count=config.retry_count,
        retry_backoff_seconds=config.retry_backoff_seconds,
        proxy_url=config.proxy_url,
    )
