from __future__ import annotations

import re

from backend.app.datasources.base.utils import is_cn_api_code, to_cn_prefix, to_finite_float
from backend.app.datasources.quote.models import Quote

_QUOTED = re.compile(r'="([^"]*)"')


def require_cn_code(symbol: str, source_id: str) -> str:
    code = to_cn_prefix(symbol)
    if not is_cn_api_code(code):
        raise RuntimeError(f"{source_id} unsupported symbol: {symbol}")
    return code


def extract_quoted_payload(text: str, source_id: str) -> str:
    """Return the body of `var x="..."` style responses used by Tencent/Sina."""
    matched = _QUOTED.search(text)
    if not matched or not matched.group(1).strip():
        raise RuntimeError(f"{source_id} parse failed: empty payload")
    return matched.group(1)


def pct_from_prev_close(price: float, prev_close: float | None) -> float | None:
    if not prev_close:
        return None
    return round((price - prev_close) / prev_close * 100, 4)


def build_quote(
    *,
    symbol: str,
    name: str,
    price: object,
    change_pct: object,
    currency: str,
    market_state: str,
    source_id: str,
) -> Quote:
    """Build a Quote, raising when the price is not a finite number."""
    value = to_finite_float(price)
    if value is None:
        raise RuntimeError(f"{source_id} parse failed: non-finite price {price!r}")
    return Quote(
        symbol=symbol,
        name=name or symbol,
        price=value,
        change_pct=to_finite_float(change_pct),
        currency=currency,
        market_state=market_state,
        source_id=source_id,
    )
