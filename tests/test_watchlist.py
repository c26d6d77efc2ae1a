from __future__ import annotations

import json
import unittest

from backend.app.datasources.quote.models import Quote
from backend.app.llm.gateway import LLMNotConfiguredError
from backend.app.watchlist.models import WatchlistEntry, value_entries
from backend.app.watchlist.service import DEFAULT_ANALYSIS, WatchlistService


def _quote(symbol: str, price: float, change_pct: float | None = 0.5) -> Quote:
    return Quote(
        symbol=symbol,
        name=f"name-{symbol}",
        price=price,
        change_pct=change_pct,
        currency="CNY",
        market_state="REGULAR",
        source_id="tencent",
    )


class _FakeQuotes:
    def __init__(self, prices: dict[str, float]) -> None:
        self.prices = prices

    def get_quote(self, symbol: str):
        price = self.prices.get(symbol)
        return _quote(symbol, price) if price is not None else None


class _FakeGateway:
    def __init__(self, enabled: bool = True, reply: str | None = None, error: Exception | None = None) -> None:
        self.enabled = enabled
        self.reply = reply
        self.error = error
        self.provider_name = "deepseek" if enabled else None
        self.calls: list[dict] = []

    def chat(self, messages, *, temperature: float = 0.0, response_format=None):
        self.calls.append({"messages": messages, "response_format": response_format})
        if self.error is not None:
            raise self.error
        return self.reply


class WatchlistValueTestCase(unittest.TestCase):
    def test_value_entries_returns_and_weighted_aggregate(self) -> None:
        entries = [
            WatchlistEntry(code="600519", entry_price=10.0, weight=0.6),
            WatchlistEntry(code="000001", entry_price=20.0, weight=0.3),
            WatchlistEntry(code="AAPL", entry_price=None, weight=0.5),
        ]
        quotes = {"600519": _quote("600519", 12.0), "000001": _quote("000001", 18.0), "AAPL": None}
        result = value_entries(entries, quotes)
        rows = {r["code"]: r for r in result["items"]}
        self.assertAlmostEqual(rows["600519"]["return"], 0.2)
        self.assertAlmostEqual(rows["000001"]["return"], -0.1)
        self.assertIsNone(rows["AAPL"]["return"])
        self.assertIsNone(rows["AAPL"]["price"])
        self.assertAlmostEqual(result["portfolioReturn"], (0.2 * 0.6 - 0.1 * 0.3) / 0.9)
        # weights are reported, never normalized
        self.assertAlmostEqual(result["weightSum"], 1.4)

    def test_no_returns_means_no_aggregate(self) -> None:
        result = value_entries([WatchlistEntry(code="X", entry_price=0.0, weight=1.0)], {"X": _quote("X", 5.0)})
        self.assertIsNone(result["portfolioReturn"])

    def test_entry_from_dict(self) -> None:
        entry = WatchlistEntry.from_dict({"code": " 600519 ", "entryPrice": "1650.5", "weight": 0.25})
        self.assertEqual(entry.code, "600519")
        self.assertEqual(entry.entry_price, 1650.5)
        with self.assertRaises(ValueError):
            WatchlistEntry.from_dict({"code": ""})

    def test_service_value_fetches_quotes(self) -> None:
        svc = WatchlistService(_FakeQuotes({"600519": 11.0}), _FakeGateway())
        result = svc.value([WatchlistEntry(code="600519", entry_price=10.0, weight=1.0)])
        self.assertAlmostEqual(result["portfolioReturn"], 0.1)


class WatchlistAnalyzeTestCase(unittest.TestCase):
    def test_code_count_validation(self) -> None:
        svc = WatchlistService(_FakeQuotes({}), _FakeGateway())
        with self.assertRaises(ValueError):
            svc.analyze([])
        with self.assertRaises(ValueError):
            svc.analyze(["1", "2", "3", "4", "5", "6"])

    def test_requires_llm(self) -> None:
        svc = WatchlistService(_FakeQuotes({"600519": 10.0}), _FakeGateway(enabled=False))
        with self.assertRaises(LLMNotConfiguredError):
            svc.analyze(["600519"])

    def test_merges_analysis_by_code(self) -> None:
        reply = json.dumps(
            {
                "analysis_list": [
                    {"code": "SH600519", "trend": "看多", "suggestion": "持有", "reason": "业绩稳健"},
                ]
            },
            ensure_ascii=False,
        )
        gateway = _FakeGateway(reply=reply)
        svc = WatchlistService(_FakeQuotes({"600519": 1700.0, "000001": 10.0}), gateway)
        result = svc.analyze(["600519", "000001", "999999"])
        rows = {r["code"]: r for r in result["items"]}
        self.assertEqual(rows["600519"]["analysis"]["trend"], "看多")
        self.assertEqual(rows["600519"]["price"], 1700.0)
        self.assertEqual(rows["000001"]["analysis"], DEFAULT_ANALYSIS)
        self.assertEqual(rows["999999"], {"code": "999999", "error": "Data not found"})
        self.assertEqual(gateway.calls[0]["response_format"], {"type": "json_object"})

    def test_unparsable_reply_uses_default(self) -> None:
        svc = WatchlistService(_FakeQuotes({"600519": 1700.0}), _FakeGateway(reply="抱歉，我无法回答"))
        result = svc.analyze(["600519"])
        self.assertEqual(result["items"][0]["analysis"], DEFAULT_ANALYSIS)

    def test_llm_error_uses_default(self) -> None:
        svc = WatchlistService(_FakeQuotes({"600519": 1700.0}), _FakeGateway(error=RuntimeError("timeout")))
        result = svc.analyze(["600519"])
        self.assertEqual(result["items"][0]["analysis"]["suggestion"], "观察")

    def test_all_quotes_failed_skips_llm(self) -> None:
        gateway = _FakeGateway(reply="{}")
        result = WatchlistService(_FakeQuotes({}), gateway).analyze(["600519"])
        self.assertEqual(result["items"], [{"code": "600519", "error": "Data not found"}])
        self.assertEqual(gateway.calls, [])


if __name__ == "__main__":
    unittest.main()
