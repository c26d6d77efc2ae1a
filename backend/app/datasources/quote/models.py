from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class Quote:
    """Canonical quote shape shared by every quote provider."""

    symbol: str
    name: str
    price: float
    change_pct: float | None
    currency: str
    market_state: str
    source_id: str = ""
    ts: datetime = field(default_factory=now_utc)

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "name": self.name,
            "price": self.price,
            "changePct": self.change_pct,
            "currency": self.currency,
            "marketState": self.market_state,
            "source": self.source_id,
            "ts": self.ts.isoformat(),
        }
