from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

from backend.app.datasources.financial.common import Financials
from backend.app.datasources.financial.service import FinancialService
from backend.app.datasources.history.service import HistoryService
from backend.app.datasources.news.models import NewsItem
from backend.app.datasources.news.service import NEWS_TOPICS, NewsService, flatten_topic_news
from backend.app.datasources.quote.models import Quote
from backend.app.datasources.quote.service import QuoteService
from backend.app.llm.gateway import ChatGateway
from backend.app.portfolio.trend import Trend, compute_trend


_logger = logging.getLogger("portfolio.analysis")

T = TypeVar("T")

ANALYSIS_FAILED_TEXT = "分析失败（模型不可用或限额），请稍后重试。"
TEMPLATE_MODEL = "template"
SYSTEM_PROMPT = "你是资深中文投研分析师，结论务实、风险可控。"
TOPIC_LABELS = {"base": "个股", "policy": "政策", "industry": "行业", "finance": "财报"}


@dataclass(slots=True)
class AnalysisResult:
    code: str
    quote: Quote | None
    news: list[NewsItem]
    trend: Trend | None
    financials: Financials | None
    news_by_topic: dict[str, list[NewsItem]] = field(default_factory=dict)
    analysis: str = ""
    model: str = TEMPLATE_MODEL

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "quote": self.quote.to_dict() if self.quote else None,
            "news": [n.to_dict() for n in self.news],
            "trend": self.trend.to_dict() if self.trend else None,
            "financials": self.financials.to_dict() if self.financials else None,
            "newsByTopic": {k: [n.to_dict() for n in v] for k, v in self.news_by_topic.items()},
            "analysis": self.analysis,
            "model": self.model,
        }


def _fmt(value: Any, digits: int | None = None) -> str:
    if value is None:
        return "未知"
    if digits is not None and isinstance(value, (int, float)):
        return f"{value:.{digits}f}"
    return str(value)


def build_prompt(
    code: str,
    quote: Quote | None,
    trend: Trend | None,
    financials: Financials | None,
    news_by_topic: dict[str, list[NewsItem]],
) -> str:
    fin = financials or Financials()
    lines = [
        f"你是中文投研助手。基于以下信息对代码 {code} 给出结构化分析：",
        "- 行情：" + (
            f"价格 {quote.price} {quote.currency}，涨跌幅 {_fmt(quote.change_pct, 2)}%" if quote else "未知"
        ),
        "- 走势：" + (
            f"最新收盘 {trend.last:.2f}，20日均线 {trend.ma20:.2f}，近20日收益率 {trend.ret20 * 100:.2f}%"
            if trend
            else "不足以判断"
        ),
        f"- 财务（简）：营收 {_fmt(fin.revenue)}；净利 {_fmt(fin.net_income)}；币种 {_fmt(fin.currency)}",
    ]
    for topic in NEWS_TOPICS:
        titles = [n.title for n in news_by_topic.get(topic, [])[:3]]
        lines.append(f"- {TOPIC_LABELS.get(topic, topic)}新闻：{'；'.join(titles) if titles else '无'}")
    lines.append(
        "请从：1) 当前走势与关键位；2) 财务质量与盈利趋势；3) 市场情绪与行业/政策背景；"
        "4) 风险与催化；5) 操作建议（仓位、止损/止盈、跟踪指标）给出简洁、可执行结论。"
    )
    return "\n".join(lines)


def build_template_summary(
    quote: Quote | None,
    trend: Trend | None,
    financials: Financials | None,
    news: list[NewsItem],
) -> str:
    """Deterministic summary used when no LLM provider is configured."""
    fin = financials or Financials()
    price = quote.price if quote else None
    change = quote.change_pct if quote else None
    parts = [f"行情：价格{_fmt(price)}，涨跌幅{_fmt(change, 2)}%。"]
    if trend:
        parts.append(f"近20日收益率 {trend.ret20 * 100:.2f}%，20日均线 {trend.ma20:.2f}；")
    parts.append(f"营收 {_fmt(fin.revenue)}；净利 {_fmt(fin.net_income)}；")
    if news:
        parts.append(f"相关新闻：{'；'.join(n.title for n in news[:2])}；")
    else:
        parts.append("新闻：暂无；")
    parts.append(
        "建议：关注关键支撑/压力位与成交量变化；结合财务与政策面谨慎加减仓，设置止损与止盈，"
        "并跟踪盈利与现金流改善。"
    )
    return "".join(parts)


class AnalysisComposer:
    """Merge quote, trend, fundamentals and topic news into one analysis payload."""

    def __init__(
        self,
        *,
        quote_service: QuoteService,
        history_service: HistoryService,
        financial_service: FinancialService,
        news_service: NewsService,
        gateway: ChatGateway,
        news_limit: int = 5,
        use_llm: bool = True,
    ) -> None:
        self.quote_service = quote_service
        self.history_service = history_service
        self.financial_service = financial_service
        self.news_service = news_service
        self.gateway = gateway
        self.news_limit = news_limit
        self.use_llm = use_llm

    @staticmethod
    def _settle(future: Future, field_name: str, code: str, default: T) -> T:
        try:
            return future.result()
        except Exception as ex:  # noqa: BLE001
            _logger.warning("analysis_field_failed code=%s field=%s error=%s", code, field_name, ex)
            return default

    def analyze(self, code: str) -> AnalysisResult:
        code = code.strip()
        if not code:
            raise ValueError("code is required")
        calls: dict[str, Callable[[], Any]] = {
            "quote": lambda: self.quote_service.get_quote(code),
            "history": lambda: self.history_service.get_history(code, interval="1d"),
            "financials": lambda: self.financial_service.get_financials(code),
            "news": lambda: self.news_service.fetch_topic_news(code, limit=self.news_limit),
        }
        with ThreadPoolExecutor(max_workers=len(calls)) as pool:
            futures = {name: pool.submit(fn) for name, fn in calls.items()}
            quote = self._settle(futures["quote"], "quote", code, None)
            history = self._settle(futures["history"], "history", code, None)
            financials = self._settle(futures["financials"], "financials", code, None)
            news_by_topic = self._settle(futures["news"], "news", code, {})

        trend = compute_trend(history.closes) if history else None
        news = flatten_topic_news(news_by_topic)
        analysis, model = self._summarize(code, quote, trend, financials, news_by_topic, news)
        return AnalysisResult(
            code=code,
            quote=quote,
            news=news,
            trend=trend,
            financials=financials,
            news_by_topic=news_by_topic,
            analysis=analysis,
            model=model,
        )

    def _summarize(
        self,
        code: str,
        quote: Quote | None,
        trend: Trend | None,
        financials: Financials | None,
        news_by_topic: dict[str, list[NewsItem]],
        news: list[NewsItem],
    ) -> tuple[str, str]:
        if not (self.use_llm and self.gateway.enabled):
            return build_template_summary(quote, trend, financials, news), TEMPLATE_MODEL
        model = self.gateway.model or ""
        prompt = build_prompt(code, quote, trend, financials, news_by_topic)
        try:
            text = self.gateway.chat(
                [
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=0.3,
            )
        except Exception as ex:  # noqa: BLE001
            _logger.warning("analysis_llm_failed code=%s provider=%s error=%s", code, self.gateway.provider_name, ex)
            return ANALYSIS_FAILED_TEXT, model
        return (text or ANALYSIS_FAILED_TEXT), model
