from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from backend.app.config import Settings

if TYPE_CHECKING:
    from backend.app.datasources.base.http_client import HttpClient


_logger = logging.getLogger("llm.chat")


class LLMNotConfiguredError(RuntimeError):
    """Raised when no chat-completion provider has a credential."""


def _join_url(base: str, path: str) -> str:
    return base.rstrip("/") + "/" + path.lstrip("/")


@dataclass(slots=True)
class ProviderConfig:
    """Single OpenAI-compatible chat provider."""

    name: str
    api_base: str
    model: str
    api_key: str
    timeout_seconds: float = 20.0
    extra_headers: dict[str, str] = field(default_factory=dict)


def build_providers(settings: Settings) -> list[ProviderConfig]:
    """Providers with a credential, in preference order (DeepSeek, then Zhipu)."""
    rows: list[ProviderConfig] = []
    if settings.deepseek_api_key:
        rows.append(
            ProviderConfig(
                name="deepseek",
                api_base=settings.deepseek_base_url,
                model=settings.deepseek_model,
                api_key=settings.deepseek_api_key,
                timeout_seconds=settings.llm_request_timeout_seconds,
            )
        )
    if settings.zhipu_api_key:
        rows.append(
            ProviderConfig(
                name="zhipu",
                api_base=settings.zhipu_base_url,
                model=settings.zhipu_model,
                api_key=settings.zhipu_api_key,
                timeout_seconds=settings.llm_request_timeout_seconds,
            )
        )
    return rows


def pick_provider(settings: Settings) -> str | None:
    providers = build_providers(settings)
    return providers[0].name if providers else None


class ChatGateway:
    """Chat-completion client bound to the preferred configured provider.

    Only the first provider is called: the preference picks one vendor, it is
    not a failover list. Callers decide how to degrade on errors.
    """

    def __init__(self, settings: Settings, client: HttpClient | None = None) -> None:
        self.settings = settings
        providers = build_providers(settings)
        self.provider: ProviderConfig | None = providers[0] if providers else None
        if client is None:
            # datasources imports the llm package; resolve the shared client lazily.
            from backend.app.datasources.base.http_client import HttpClient

            client = HttpClient(
                timeout_seconds=self.provider.timeout_seconds if self.provider else settings.llm_request_timeout_seconds,
                retry_count=0,
            )
        self.client = client

    @property
    def enabled(self) -> bool:
        return self.provider is not None

    @property
    def provider_name(self) -> str | None:
        return self.provider.name if self.provider else None

    @property
    def model(self) -> str | None:
        return self.provider.model if self.provider else None

    def chat(
        self,
        messages: list[dict[str, str]],
        *,
        temperature: float = 0.0,
        response_format: dict[str, Any] | None = None,
    ) -> str | None:
        """Return `choices[0].message.content`, or None when the reply is empty."""
        if self.provider is None:
            raise LLMNotConfiguredError("no llm provider configured: set DEEPSEEK_API_KEY or ZHIPU_API_KEY")
        provider = self.provider
        body: dict[str, Any] = {
            "model": provider.model,
            "messages": messages,
            "temperature": temperature,
        }
        if response_format:
            body["response_format"] = response_format
        headers = {
            "Accept": "application/json",
            "Authorization": f"Bearer {provider.api_key}",
        }
        headers.update(provider.extra_headers)
        endpoint = _join_url(provider.api_base, "chat/completions")
        raw = self.client.post_json_bytes(endpoint, body, headers=headers)
        text = self._parse_openai_response(raw.decode("utf-8", errors="ignore"))
        _logger.info("llm_chat_ok provider=%s model=%s chars=%s", provider.name, provider.model, len(text or ""))
        return text

    @staticmethod
    def _parse_openai_response(payload: str) -> str | None:
        data = json.loads(payload)
        choices = data.get("choices") or []
        if not choices:
            return None
        message = choices[0].get("message") or {}
        text = message.get("content")
        if not isinstance(text, str) or not text.strip():
            return None
        return text.strip()
