from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from backend.app.datasources.base.utils import to_finite_float


@dataclass(slots=True)
class Financials:
    """Headline fundamentals; every field is None when upstream has no data."""

    revenue: float | None = None
    net_income: float | None = None
    currency: str | None = None
    source_id: str = ""

    @property
    def is_empty(self) -> bool:
        return self.revenue is None and self.net_income is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "revenue": self.revenue,
            "netIncome": self.net_income,
            "currency": self.currency,
            "source": self.source_id,
        }


def raw_value(node: Any) -> Any:
    """Yahoo wraps numbers as `{"raw": 1.0, "fmt": "1.00"}`."""
    if isinstance(node, dict):
        return node.get("raw")
    return node


def build_financials(*, revenue: Any, net_income: Any, currency: Any, source_id: str) -> Financials:
    return Financials(
        revenue=to_finite_float(revenue),
        net_income=to_finite_float(net_income),
        currency=str(currency) if currency else None,
        source_id=source_id,
    )
