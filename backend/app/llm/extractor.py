from __future__ import annotations

import json
import logging
import re
from typing import Any

from backend.app.llm.gateway import ChatGateway


_logger = logging.getLogger("llm.extract")
_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)

HTML_SNIPPET_CHARS = 15000


def parse_json_reply(text: str | None) -> Any:
    """Parse a model reply as JSON, tolerating markdown code fences."""
    if not text:
        return None
    cleaned = _FENCE.sub("", text.strip()).strip()
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        # Some models wrap the object in prose; fall back to the outermost braces.
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if start < 0 or end <= start:
            return None
        try:
            return json.loads(cleaned[start : end + 1])
        except json.JSONDecodeError:
            return None


class HtmlJsonExtractor:
    """Ask the chat model to pull structured fields out of a raw HTML page."""

    def __init__(self, gateway: ChatGateway) -> None:
        self.gateway = gateway

    @property
    def enabled(self) -> bool:
        return self.gateway.enabled

    def extract(self, html: str, *, symbol: str, task: str, schema_hint: str) -> dict[str, Any] | None:
        content = "\n".join(
            [
                f"你是一个信息抽取器。根据给定的网页片段，{task}。",
                "只返回 JSON，不要文字说明。",
                f"JSON 结构: {schema_hint}",
                f"代码: {symbol}",
                "网页片段如下：",
                html[:HTML_SNIPPET_CHARS],
            ]
        )
        reply = self.gateway.chat(
            [
                {"role": "system", "content": "从文本中抽取指定字段，严格输出 JSON。"},
                {"role": "user", "content": content},
            ],
            temperature=0.0,
        )
        parsed = parse_json_reply(reply)
        if not isinstance(parsed, dict):
            _logger.debug("llm_extract_unparsable symbol=%s task=%s", symbol, task)
            return None
        return parsed
