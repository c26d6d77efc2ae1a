from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from statistics import pstdev
from typing import Any

from backend.app.datasources.history.models import HistorySeries
from backend.app.datasources.history.service import HistoryService


_logger = logging.getLogger("portfolio.backtest")

TRADING_DAYS_PER_YEAR = 252


@dataclass(slots=True)
class NavPoint:
    date: str
    nav: float


@dataclass(slots=True)
class BacktestMetrics:
    total_return: float
    volatility: float
    max_drawdown: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalReturn": self.total_return,
            "volatility": self.volatility,
            "maxDrawdown": self.max_drawdown,
        }


@dataclass(slots=True)
class BacktestResult:
    series: list[NavPoint] = field(default_factory=list)
    metrics: BacktestMetrics | None = None
    symbols: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "series": [{"date": p.date, "nav": p.nav} for p in self.series],
            "metrics": self.metrics.to_dict() if self.metrics else None,
            "symbols": list(self.symbols),
        }


def compute_metrics(series: list[NavPoint]) -> BacktestMetrics | None:
    if not series:
        return None
    navs = [p.nav for p in series]
    returns = [navs[i] / navs[i - 1] - 1 for i in range(1, len(navs))]
    volatility = pstdev(returns) * math.sqrt(TRADING_DAYS_PER_YEAR) if len(returns) > 1 else 0.0
    peak = -math.inf
    max_drawdown = 0.0
    for nav in navs:
        peak = max(peak, nav)
        if peak > 0:
            max_drawdown = min(max_drawdown, nav / peak - 1)
    return BacktestMetrics(
        total_return=navs[-1] / navs[0] - 1,
        volatility=volatility,
        max_drawdown=max_drawdown,
    )


def backtest_equal_weight(histories: list[HistorySeries | None], initial: float = 100000.0) -> BacktestResult:
    """Equal-weight NAV over the dates every series has in common.

    Raw NAV is the weighted sum of closes; the series is then rescaled so the
    first point equals `initial`.
    """
    valid = [h for h in histories if h is not None and h.series]
    if not valid:
        return BacktestResult()
    price_maps = [{p.date: p.close for p in h.series} for h in valid]
    common = set(price_maps[0])
    for prices in price_maps[1:]:
        common &= set(prices)
    dates = sorted(common)
    if not dates:
        return BacktestResult(symbols=[h.symbol for h in valid])

    weight = 1.0 / len(valid)
    raw = [NavPoint(date=d, nav=sum(prices[d] * weight for prices in price_maps)) for d in dates]
    base = raw[0].nav
    if not base:
        _logger.warning("backtest_zero_base dates=%s", len(dates))
        return BacktestResult(symbols=[h.symbol for h in valid])
    series = [NavPoint(date=p.date, nav=p.nav / base * initial) for p in raw]
    return BacktestResult(series=series, metrics=compute_metrics(series), symbols=[h.symbol for h in valid])


class BacktestService:
    def __init__(self, history_service: HistoryService, max_workers: int = 4) -> None:
        self.history_service = history_service
        self.max_workers = max_workers

    def run(
        self,
        symbols: list[str],
        *,
        start: str | None = None,
        end: str | None = None,
        initial: float = 100000.0,
    ) -> BacktestResult:
        cleaned = list(dict.fromkeys(s.strip() for s in symbols if s and s.strip()))
        if not cleaned:
            raise ValueError("symbols must not be empty")
        if initial <= 0:
            raise ValueError("initial capital must be positive")
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(cleaned))) as pool:
            histories = list(pool.map(lambda s: self.history_service.get_history(s, start=start, end=end), cleaned))
        result = backtest_equal_weight(histories, initial=initial)
        _logger.info("backtest_done symbols=%s points=%s", ",".join(cleaned), len(result.series))
        return result
