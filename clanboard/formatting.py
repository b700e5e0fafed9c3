from __future__ import annotations

import math
from collections.abc import Iterable
from typing import Any

PLACEHOLDER = "—"


def _number(value: Any) -> float | int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = value
    else:
        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
    if isinstance(number, float) and math.isnan(number):
        return None
    return number


def _infinity(value: float) -> str:
    return "-∞" if value < 0 else "∞"


def round_to(value: float, digits: int = 2) -> float:
    return round(float(value), digits)


def format_number(value: Any) -> str | None:
    number = _number(value)
    if number is None:
        return None
    if isinstance(number, int):
        return f"{number:,}"
    if math.isinf(number):
        return _infinity(number)
    text = f"{number:,.3f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" and number == 0 else text


def format_percent(value: Any) -> str | None:
    number = _number(value)
    if number is None:
        return None
    if math.isinf(number):
        return f"{_infinity(number)}%"
    return f"{number:,.1f}%"


def format_ratio(value: Any) -> str | None:
    number = _number(value)
    if number is None:
        return None
    if math.isinf(number):
        return _infinity(number)
    return f"{number:.2f}"


def display_number(value: Any) -> str:
    return format_number(value) or PLACEHOLDER

def display_percent(value: Any) -> str:
    return format_percent(value) or PLACEHOLDER

def display_ratio(value: Any) -> str:
    return format_ratio(value) or PLACEHOLDER


def safe_divide(numerator: float, denominator: float) -> float | None:
    if denominator is None or denominator <= 0:
        return None
    return numerator / denominator


def win_rate_percent(wins: float, losses: float) -> float:
    total = wins + losses
    if total <= 0:
        return 0
    return (wins / total) * 100


def leaderboard_win_rate_percent(entry: Any) -> float:
    return win_rate_percent(entry.wins, entry.losses)


def compute_domain(
    values: Iterable[Any],
    pad_ratio: float = 0.08,
    clamp_min: float | None = None,
    clamp_max: float | None = None,
) -> tuple[float, float] | None:
    """
    Axis domain for a chart: the data range padded on both sides.

    Order matters: raw padding, then the zero floor for all-non-negative data,
    then the explicit clamps, so a caller clamp always has the last word.
    """
    clean = []
    for value in values:
        number = _number(value)
        if number is not None and math.isfinite(number):
            clean.append(float(number))
    if not clean:
        return None

    lo = min(clean)
    hi = max(clean)
    spread = hi - lo
    if spread == 0:
        # All values equal: pad by the magnitude instead of a zero-width range.
        spread = abs(lo) or 1.0
    low = lo - spread * pad_ratio
    high = hi + spread * pad_ratio

    if lo >= 0:
        low = max(0.0, low)
    if clamp_min is not None:
        low = max(clamp_min, low)
    if clamp_max is not None:
        high = min(clamp_max, high)
    return (low, high)
