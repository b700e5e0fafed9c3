from __future__ import annotations

import datetime as dt
from dataclasses import dataclass

from . import config, utils


class RangeError(ValueError):
    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


@dataclass(frozen=True)
class DateRange:
    start: dt.datetime
    end: dt.datetime

    def to_query(self) -> dict[str, str]:
        return {"start": utils.iso_z(self.start), "end": utils.iso_z(self.end)}

    def contains(self, value: dt.datetime) -> bool:
        return self.start <= value <= self.end


def _parse_bound(field: str, raw: str | None) -> dt.datetime | None:
    if raw is None:
        return None
    parsed = utils.parse_iso_datetime(raw)
    if parsed is None:
        raise RangeError(field, f"Invalid {field} date.")
    return parsed


def _days_before(value: dt.datetime, days: int) -> dt.datetime:
    # Calendar-day arithmetic in UTC keeps wall-clock time across month/year edges.
    return value.astimezone(dt.timezone.utc) - dt.timedelta(days=days)


def normalize_range(
    start: str | None = None,
    end: str | None = None,
    *,
    now: dt.datetime | None = None,
    default_days: int | None = None,
) -> DateRange:
    """
    Resolve optional ``start``/``end`` ISO strings into a concrete range.

    ``end`` falls back to ``now``; ``start`` falls back to ``end`` minus the
    default window only when it is missing. A given ``start`` never looks at
    ``end`` while parsing. Raises RangeError naming the offending field.
    """
    days = config.SESSIONS_DEFAULT_DAYS if default_days is None else int(default_days)
    current = now if now is not None else utils.utc_now()
    if current.tzinfo is None:
        current = current.replace(tzinfo=dt.timezone.utc)

    start_dt = _parse_bound("start", start)
    end_dt = _parse_bound("end", end)

    resolved_end = end_dt if end_dt is not None else current.astimezone(dt.timezone.utc)
    resolved_start = start_dt if start_dt is not None else _days_before(resolved_end, days)

    if resolved_start > resolved_end:
        raise RangeError("start", "Query start must be before end.")
    return DateRange(start=resolved_start, end=resolved_end)


def range_from_query(query: dict[str, str]) -> DateRange:
    """Build a range from request query args; empty values count as absent."""
    start = (query.get("start") or "").strip() or None
    end = (query.get("end") or "").strip() or None
    return normalize_range(start, end)
