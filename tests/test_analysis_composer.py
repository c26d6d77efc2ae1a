from __future__ import annotations

import unittest

from backend.app.datasources.financial.common import Financials
from backend.app.datasources.history.models import HistoryPoint, HistorySeries
from backend.app.datasources.news.models import NewsItem
from backend.app.datasources.quote.models import Quote
from backend.app.portfolio.analysis import (
    ANALYSIS_FAILED_TEXT,
    TEMPLATE_MODEL,
    AnalysisComposer,
    build_prompt,
)


class _FakeQuotes:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail

    def get_quote(self, symbol: str):
        if self.fail:
            raise RuntimeError("quote chain crashed")
        return Quote(
            symbol=symbol,
            name="贵州茅台",
            price=1700.0,
            change_pct=1.25,
            currency="CNY",
            market_state="REGULAR",
            source_id="tencent",
        )


class _FakeHistory:
    def get_history(self, symbol: str, start=None, end=None, interval: str = "1d"):
        points = [HistoryPoint(date=f"2024-01-{i + 1:02d}", close=float(i + 1)) for i in range(25)]
        return HistorySeries(symbol=symbol, series=points, source_id="yahoo_chart")


class _FakeFinancials:
    def get_financials(self, symbol: str) -> Financials:
        return Financials(revenue=1.5e11, net_income=7.4e10, currency="CNY", source_id="eastmoney_financial")


class _FakeNews:
    def fetch_topic_news(self, symbol: str, name=None, limit: int = 5):
        return {
            "base": [NewsItem(title="茅台发布公告", link="https://x/1", topic="base")],
            "policy": [NewsItem(title="消费政策加码", link="https://x/2", topic="policy")],
            "industry": [NewsItem(title="茅台发布公告", link="https://x/1", topic="industry")],
            "finance": [],
        }


class _FakeGateway:
    def __init__(self, enabled: bool = True, reply: str | None = "结构化分析", error: Exception | None = None) -> None:
        self.enabled = enabled
        self.reply = reply
        self.error = error
        self.model = "deepseek-chat" if enabled else None
        self.provider_name = "deepseek" if enabled else None
        self.messages: list[list[dict]] = []

    def chat(self, messages, *, temperature: float = 0.0, response_format=None):
        self.messages.append(messages)
        if self.error is not None:
            raise self.error
        return self.reply


def _composer(gateway: _FakeGateway, quotes: _FakeQuotes | None = None, use_llm: bool = True) -> AnalysisComposer:
    return AnalysisComposer(
        quote_service=quotes or _FakeQuotes(),
        history_service=_FakeHistory(),
        financial_service=_FakeFinancials(),
        news_service=_FakeNews(),
        gateway=gateway,
        use_llm=use_llm,
    )


class AnalysisComposerTestCase(unittest.TestCase):
    def test_llm_summary_uses_provider_model(self) -> None:
        gateway = _FakeGateway()
        result = _composer(gateway).analyze("600519")
        self.assertEqual(result.analysis, "结构化分析")
        self.assertEqual(result.model, "deepseek-chat")
        prompt = gateway.messages[0][1]["content"]
        self.assertIn("600519", prompt)
        self.assertIn("消费政策加码", prompt)
        self.assertIn("20日均线", prompt)

    def test_template_when_llm_not_configured(self) -> None:
        gateway = _FakeGateway(enabled=False)
        result = _composer(gateway).analyze("600519")
        self.assertEqual(result.model, TEMPLATE_MODEL)
        self.assertIn("价格1700.0", result.analysis)
        self.assertIn("茅台发布公告", result.analysis)
        self.assertEqual(gateway.messages, [])

    def test_template_when_llm_disabled_by_setting(self) -> None:
        gateway = _FakeGateway()
        result = _composer(gateway, use_llm=False).analyze("600519")
        self.assertEqual(result.model, TEMPLATE_MODEL)
        self.assertEqual(gateway.messages, [])

    def test_llm_error_returns_apology_and_keeps_model(self) -> None:
        gateway = _FakeGateway(error=RuntimeError("429 rate limited"))
        result = _composer(gateway).analyze("600519")
        self.assertEqual(result.analysis, ANALYSIS_FAILED_TEXT)
        self.assertEqual(result.model, "deepseek-chat")

    def test_trend_and_news_fields(self) -> None:
        result = _composer(_FakeGateway()).analyze("600519")
        self.assertAlmostEqual(result.trend.ret20, 25.0 / 6.0 - 1)
        self.assertEqual([n.title for n in result.news], ["茅台发布公告", "消费政策加码"])
        self.assertEqual(result.news[0].topic, "base")
        self.assertEqual(list(result.news_by_topic), ["base", "policy", "industry", "finance"])

    def test_failed_field_degrades_without_raising(self) -> None:
        result = _composer(_FakeGateway(enabled=False), quotes=_FakeQuotes(fail=True)).analyze("600519")
        self.assertIsNone(result.quote)
        self.assertIsNotNone(result.trend)
        payload = result.to_dict()
        self.assertIsNone(payload["quote"])
        self.assertEqual(payload["financials"]["netIncome"], 7.4e10)
        self.assertIn("newsByTopic", payload)

    def test_blank_code_rejected(self) -> None:
        with self.assertRaises(ValueError):
            _composer(_FakeGateway()).analyze("  ")

    def test_prompt_without_data(self) -> None:
        prompt = build_prompt("AAPL", None, None, None, {})
        self.assertIn("行情：未知", prompt)
        self.assertIn("不足以判断", prompt)
        self.assertIn("政策新闻：无", prompt)


if __name__ == "__main__":
    unittest.main()
