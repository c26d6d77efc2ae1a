from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from backend.app.datasources.quote.models import Quote


@dataclass(slots=True)
class WatchlistEntry:
    """One holding tracked by the client; persisted in browser storage, not here."""

    code: str
    entry_price: float | None = None
    entry_date: str = ""
    currency: str = ""
    weight: float = 0.0

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "WatchlistEntry":
        code = str(payload.get("code", "")).strip()
        if not code:
            raise ValueError("watchlist entry code is required")
        entry_price = payload.get("entryPrice", payload.get("entry_price"))
        return cls(
            code=code,
            entry_price=float(entry_price) if entry_price not in (None, "") else None,
            entry_date=str(payload.get("entryDate", payload.get("entry_date", "")) or ""),
            currency=str(payload.get("currency", "") or ""),
            weight=float(payload.get("weight", 0.0) or 0.0),
        )


def value_entries(entries: list[WatchlistEntry], quotes: dict[str, Quote | None]) -> dict[str, Any]:
    """Per-entry return since entry plus a weight-weighted aggregate.

    Weights are informational: the aggregate divides by the weights of entries
    that actually have a return, and the raw weight sum is only reported.
    """
    rows: list[dict[str, Any]] = []
    weighted = 0.0
    weight_used = 0.0
    for entry in entries:
        quote = quotes.get(entry.code)
        price = quote.price if quote else None
        ret = None
        if price is not None and entry.entry_price and entry.entry_price > 0 and price > 0:
            ret = price / entry.entry_price - 1
            if entry.weight > 0:
                weighted += ret * entry.weight
                weight_used += entry.weight
        rows.append(
            {
                "code": entry.code,
                "name": quote.name if quote else None,
                "entryPrice": entry.entry_price,
                "entryDate": entry.entry_date,
                "currency": (quote.currency if quote else None) or entry.currency or None,
                "weight": entry.weight,
                "price": price,
                "changePct": quote.change_pct if quote else None,
                "return": ret,
            }
        )
    return {
        "items": rows,
        "weightSum": sum(e.weight for e in entries),
        "portfolioReturn": (weighted / weight_used) if weight_used > 0 else None,
    }
