from __future__ import annotations

import math
import re
from typing import Any

_CN_DIGITS = re.compile(r"^\d{6}$")
_CN_PREFIXED = re.compile(r"^(S[HZ])(\d{6})$")
_CN_SUFFIXED = re.compile(r"^(\d{6})\.(SS|SZ)$")
_CN_API_CODE = re.compile(r"^s[hz]\d{6}$")
_SIX_DIGITS = re.compile(r"(\d{6})")


def _clean(symbol: str) -> str:
    return str(symbol or "").strip().upper()


def _is_shanghai(digits: str) -> bool:
    # Heuristic: 6xxxxx stocks, 9xxxxx B shares, 5xxxxx funds/ETFs trade in Shanghai.
    return digits.startswith(("6", "9", "5"))


def is_cn_symbol(symbol: str) -> bool:
    """True for mainland codes: `600519`, `SH600519`, `600519.SS`."""

    value = _clean(symbol)
    if _CN_DIGITS.match(value) or _CN_PREFIXED.match(value):
        return True
    return value.endswith((".SS", ".SZ"))


def to_yahoo_symbol(symbol: str) -> str:
    """Map CN codes to Yahoo suffix form; foreign symbols pass through upper-cased."""

    value = _clean(symbol)
    matched = _CN_PREFIXED.match(value)
    if matched:
        value = matched.group(2)
    if _CN_DIGITS.match(value):
        return f"{value}.SS" if _is_shanghai(value) else f"{value}.SZ"
    return value


def to_cn_prefix(symbol: str) -> str:
    """Map CN codes to the lower-case `sh600519` form used by Tencent/Sina."""

    value = _clean(symbol)
    if _CN_DIGITS.match(value):
        return f"sh{value}" if _is_shanghai(value) else f"sz{value}"
    matched = _CN_PREFIXED.match(value)
    if matched:
        return f"{matched.group(1).lower()}{matched.group(2)}"
    matched = _CN_SUFFIXED.match(value)
    if matched:
        return ("sh" if matched.group(2) == "SS" else "sz") + matched.group(1)
    return value.lower()


def is_cn_api_code(code: str) -> bool:
    return bool(_CN_API_CODE.match(code or ""))


def extract_cn_code(symbol: str) -> str | None:
    matched = _SIX_DIGITS.search(_clean(symbol))
    return matched.group(1) if matched else None


def to_finite_float(value: Any) -> float | None:
    """Return a finite float or None; upstream payloads often carry "" or "-"."""

    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def safe_get(values: list[str], index: int, default: str = "") -> str:
    return values[index] if 0 <= index < len(values) else default


def decode_response(content: bytes, encoding: str | None = None) -> str:
    """Tencent and Sina answer in GBK, Yahoo and Google in UTF-8 (sometimes with a BOM).

    gb18030 is a superset of GBK, so it is the only legacy codec tried.
    """
    if encoding:
        return content.decode(encoding, errors="replace")
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        pass
    try:
        return content.decode("gb18030")
    except UnicodeDecodeError:
        return content.decode("utf-8", errors="replace")
