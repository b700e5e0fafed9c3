import datetime as dt
import re
import time

# Offset-bearing ("Z", +HH:MM, +HHMM or +HH) or local ISO-8601 date-time.
_ISO_DATETIME_RE = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?(?P<offset>Z|[+-]\d{2}(?::?\d{2})?)?$"
)


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)

def utc_now_z() -> str:
    return utc_now().replace(microsecond=0, tzinfo=None).isoformat() + "Z"

def now_ms() -> int:
    return int(time.time() * 1000)

def iso_z(value: dt.datetime) -> str:
    """Render an aware datetime as UTC with millisecond precision and a Z suffix."""
    value = value.astimezone(dt.timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"

def parse_iso_datetime(value: str | None) -> dt.datetime | None:
    """
    Parse an ISO-8601 date-time string into an aware UTC datetime.
    Local (offset-less) values are read as UTC. Returns None for anything
    that is not a full date-time (plain dates included).
    """
    if value is None:
        return None
    s = str(value).strip()
    m = _ISO_DATETIME_RE.match(s)
    if not m:
        return None
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        parsed = dt.datetime.fromisoformat(s)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.timezone.utc)
    return parsed.astimezone(dt.timezone.utc)
