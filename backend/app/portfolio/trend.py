from __future__ import annotations

import math
from dataclasses import dataclass
from statistics import mean
from typing import Any

TREND_WINDOW = 20
TREND_LOOKBACK = 60


@dataclass(slots=True)
class Trend:
    last: float
    ma20: float
    ret20: float

    def to_dict(self) -> dict[str, Any]:
        return {"last": self.last, "ma20": self.ma20, "ret20": self.ret20}


def compute_trend(closes: list[float], window: int = TREND_WINDOW) -> Trend | None:
    """20-point trend window over the last 60 finite closes.

    `ret20` compares the last close with the close `window - 1` sessions
    earlier (the first close inside the window), e.g. closes[24]/closes[5]
    for a 25-point series.
    """
    finite = [float(c) for c in closes[-TREND_LOOKBACK:] if c is not None and math.isfinite(float(c))]
    if len(finite) < window:
        return None
    last = finite[-1]
    base = finite[-window]
    return Trend(
        last=last,
        ma20=mean(finite[-window:]),
        ret20=(last / base - 1) if base else 0.0,
    )
