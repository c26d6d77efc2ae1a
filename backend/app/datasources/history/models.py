from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from backend.app.datasources.base.utils import to_finite_float


@dataclass(slots=True)
class HistoryPoint:
    date: str
    close: float


@dataclass(slots=True)
class HistorySeries:
    """Daily close series; `symbol` is the caller's symbol, not the provider's."""

    symbol: str
    series: list[HistoryPoint] = field(default_factory=list)
    source_id: str = ""

    @property
    def closes(self) -> list[float]:
        return [p.close for p in self.series]

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "series": [{"date": p.date, "close": p.close} for p in self.series],
            "source": self.source_id,
        }


def build_series(symbol: str, rows: list[tuple[Any, Any]], source_id: str) -> HistorySeries:
    """Keep rows with a date and a finite close; raise when nothing survives."""
    points = [
        HistoryPoint(date=str(date), close=close)
        for date, close in ((d, to_finite_float(c)) for d, c in rows)
        if date and close is not None
    ]
    if not points:
        raise RuntimeError(f"{source_id} parse failed: empty series")
    return HistorySeries(symbol=symbol, series=points, source_id=source_id)
