from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from backend.app.datasources.quote.models import Quote
from backend.app.datasources.quote.service import QuoteService
from backend.app.llm.extractor import parse_json_reply
from backend.app.llm.gateway import ChatGateway, LLMNotConfiguredError
from backend.app.watchlist.models import WatchlistEntry, value_entries


_logger = logging.getLogger("watchlist")

MAX_ANALYZE_CODES = 5
DEFAULT_ANALYSIS = {"trend": "未知", "suggestion": "观察", "reason": "AI分析暂时不可用"}


def _match_analysis(code: str, rows: list[dict[str, Any]]) -> dict[str, Any] | None:
    needle = code.lower()
    for row in rows:
        candidate = str(row.get("code", "")).strip().lower()
        if not candidate:
            continue
        # The model may echo the code with or without the market prefix.
        if candidate == needle or needle in candidate or candidate in needle:
            return row
    return None


class WatchlistService:
    def __init__(self, quote_service: QuoteService, gateway: ChatGateway, max_workers: int = 5) -> None:
        self.quote_service = quote_service
        self.gateway = gateway
        self.max_workers = max_workers

    def _quotes(self, codes: list[str]) -> dict[str, Quote | None]:
        if not codes:
            return {}
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(codes))) as pool:
            return dict(zip(codes, pool.map(self.quote_service.get_quote, codes)))

    def value(self, entries: list[WatchlistEntry]) -> dict[str, Any]:
        codes = list(dict.fromkeys(e.code for e in entries))
        return value_entries(entries, self._quotes(codes))

    def analyze(self, codes: list[str]) -> dict[str, Any]:
        """Quote up to five codes and ask the model for a trend/suggestion per code."""
        cleaned = [str(c).strip() for c in codes if str(c).strip()]
        if not cleaned:
            raise ValueError("No codes provided")
        if len(cleaned) > MAX_ANALYZE_CODES:
            raise ValueError(f"Max {MAX_ANALYZE_CODES} codes allowed")
        if not self.gateway.enabled:
            raise LLMNotConfiguredError("AI service not configured")

        quotes = self._quotes(cleaned)
        valid: list[dict[str, Any]] = []
        failed: list[dict[str, Any]] = []
        for code in cleaned:
            quote = quotes.get(code)
            if quote is None:
                failed.append({"code": code, "error": "Data not found"})
                continue
            valid.append(
                {
                    "code": code,
                    "name": quote.name,
                    "price": quote.price,
                    "changePct": quote.change_pct,
                    "currency": quote.currency,
                }
            )
        if not valid:
            return {"items": failed}

        rows = self._ask_model(valid)
        items = [{**item, "analysis": _match_analysis(item["code"], rows) or dict(DEFAULT_ANALYSIS)} for item in valid]
        return {"items": items + failed}

    def _ask_model(self, items: list[dict[str, Any]]) -> list[dict[str, Any]]:
        listing = "\n".join(
            f"- [{x['code']}] {x['name']}: 现价{x['price']}, 涨跌{x['changePct'] if x['changePct'] is not None else '未知'}%"
            for x in items
        )
        prompt = (
            f"我是投资助手。用户关注了以下 {len(items)} 只证券/基金，请进行全方位跟踪分析：\n"
            f"{listing}\n"
            "请输出JSON格式分析结果，格式如下：\n"
            '{"analysis_list": [{"code": "对应代码", "trend": "短期趋势判研(看多/看空/震荡)", '
            '"suggestion": "操作建议(加仓/减仓/持有/观望)", "reason": "简要理由(50字以内)"}]}\n'
            "注意：必须返回纯JSON字符串，不要Markdown标记。"
        )
        try:
            reply = self.gateway.chat(
                [
                    {"role": "system", "content": "You are a financial analyst. Output JSON only."},
                    {"role": "user", "content": prompt},
                ],
                temperature=0.3,
                response_format={"type": "json_object"},
            )
        except Exception as ex:  # noqa: BLE001
            _logger.warning("watchlist_llm_failed provider=%s error=%s", self.gateway.provider_name, ex)
            return []
        parsed = parse_json_reply(reply)
        rows = parsed.get("analysis_list") if isinstance(parsed, dict) else None
        if not isinstance(rows, list):
            _logger.info("watchlist_llm_unparsable chars=%s", len(reply or ""))
            return []
        return [r for r in rows if isinstance(r, dict)]
