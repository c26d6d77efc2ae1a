from __future__ import annotations

import json
import os
import unittest
from unittest import mock

from backend.app.config import Settings
from backend.app.llm.extractor import HtmlJsonExtractor, parse_json_reply
from backend.app.llm.gateway import ChatGateway, LLMNotConfiguredError, build_providers, pick_provider


class _StubPostClient:
    def __init__(self, reply: dict) -> None:
        self.reply = reply
        self.calls: list[dict] = []

    def post_json_bytes(self, url: str, payload: dict, headers: dict[str, str] | None = None) -> bytes:
        self.calls.append({"url": url, "payload": payload, "headers": headers or {}})
        return json.dumps(self.reply).encode("utf-8")


def _reply(content: str | None) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


class ProviderPreferenceTestCase(unittest.TestCase):
    def test_deepseek_preferred_over_zhipu(self) -> None:
        settings = Settings(deepseek_api_key="ds", zhipu_api_key="zp")
        self.assertEqual([p.name for p in build_providers(settings)], ["deepseek", "zhipu"])
        self.assertEqual(pick_provider(settings), "deepseek")

    def test_zhipu_when_only_zhipu_configured(self) -> None:
        self.assertEqual(pick_provider(Settings(zhipu_api_key="zp")), "zhipu")

    def test_no_provider_without_keys(self) -> None:
        self.assertIsNone(pick_provider(Settings()))
        self.assertFalse(ChatGateway(Settings()).enabled)


class ChatGatewayTestCase(unittest.TestCase):
    def test_chat_posts_openai_compatible_body(self) -> None:
        client = _StubPostClient(_reply("  你好  "))
        gateway = ChatGateway(Settings(deepseek_api_key="ds-key"), client=client)
        text = gateway.chat([{"role": "user", "content": "hi"}], response_format={"type": "json_object"})
        self.assertEqual(text, "你好")
        call = client.calls[0]
        self.assertEqual(call["url"], "https://api.deepseek.com/chat/completions")
        self.assertEqual(call["headers"]["Authorization"], "Bearer ds-key")
        self.assertEqual(call["payload"]["model"], "deepseek-chat")
        self.assertEqual(call["payload"]["response_format"], {"type": "json_object"})
        self.assertEqual(gateway.model, "deepseek-chat")

    def test_chat_uses_zhipu_base_url(self) -> None:
        client = _StubPostClient(_reply("ok"))
        gateway = ChatGateway(Settings(zhipu_api_key="zp"), client=client)
        gateway.chat([{"role": "user", "content": "hi"}])
        self.assertEqual(client.calls[0]["url"], "https://open.bigmodel.cn/api/paas/v4/chat/completions")
        self.assertNotIn("response_format", client.calls[0]["payload"])

    def test_empty_reply_is_none(self) -> None:
        gateway = ChatGateway(Settings(deepseek_api_key="ds"), client=_StubPostClient(_reply("")))
        self.assertIsNone(gateway.chat([{"role": "user", "content": "hi"}]))

    def test_chat_without_provider_raises(self) -> None:
        gateway = ChatGateway(Settings(), client=_StubPostClient(_reply("x")))
        with self.assertRaises(LLMNotConfiguredError):
            gateway.chat([{"role": "user", "content": "hi"}])


class ExtractorTestCase(unittest.TestCase):
    def test_parse_json_reply_variants(self) -> None:
        self.assertEqual(parse_json_reply('{"a": 1}'), {"a": 1})
        self.assertEqual(parse_json_reply('```json\n{"a": 2}\n```'), {"a": 2})
        self.assertEqual(parse_json_reply('结果如下：{"a": 3}。'), {"a": 3})
        self.assertIsNone(parse_json_reply("not json"))
        self.assertIsNone(parse_json_reply(None))

    def test_extractor_returns_dict(self) -> None:
        client = _StubPostClient(_reply('```json\n{"price": 12.5, "currency": "USD"}\n```'))
        extractor = HtmlJsonExtractor(ChatGateway(Settings(deepseek_api_key="ds"), client=client))
        result = extractor.extract("<html>12.5</html>", symbol="AAPL", task="提取价格", schema_hint='{"price": number}')
        self.assertEqual(result, {"price": 12.5, "currency": "USD"})
        self.assertIn("<html>12.5</html>", client.calls[0]["payload"]["messages"][1]["content"])

    def test_extractor_returns_none_for_non_object(self) -> None:
        client = _StubPostClient(_reply("[1, 2]"))
        extractor = HtmlJsonExtractor(ChatGateway(Settings(deepseek_api_key="ds"), client=client))
        self.assertIsNone(extractor.extract("<html/>", symbol="AAPL", task="t", schema_hint="{}"))


class SettingsFromEnvTestCase(unittest.TestCase):
    def test_from_env_reads_keys_and_flags(self) -> None:
        env = {
            "DEEPSEEK_API_KEY": " ds ",
            "ANALYSIS_USE_LLM": "false",
            "NEWS_LIMIT": "50",
            "DATASOURCE_RETRY_COUNT": "-3",
            "CORS_ORIGINS": "http://a.test, http://b.test",
            "APP_PORT": "9001",
        }
        with mock.patch.dict(os.environ, env, clear=False):
            settings = Settings.from_env()
        self.assertEqual(settings.deepseek_api_key, "ds")
        self.assertTrue(settings.llm_enabled)
        self.assertFalse(settings.analysis_use_llm)
        self.assertEqual(settings.news_limit, 20)
        self.assertEqual(settings.datasource_retry_count, 0)
        self.assertEqual(settings.cors_origins, ("http://a.test", "http://b.test"))
        self.assertEqual(settings.api_port, 9001)

    def test_defaults(self) -> None:
        settings = Settings()
        self.assertEqual((settings.api_host, settings.api_port), ("127.0.0.1", 8000))
        self.assertFalse(settings.llm_enabled)
        self.assertEqual(settings.backtest_initial_capital, 100000.0)
        self.assertEqual(settings.intelligence_refresh_seconds, 0.0)


if __name__ == "__main__":
    unittest.main()
