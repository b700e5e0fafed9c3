import datetime as dt
import os
import platform
import subprocess

import aiohttp

from . import config, logging_setup, metrics

_started_at = dt.datetime.now(dt.timezone.utc)
_git_sha_cache: str | None = None

def uptime_seconds() -> int:
    return int((dt.datetime.now(dt.timezone.utc) - _started_at).total_seconds())

def fmt_uptime() -> str:
    s = uptime_seconds()
    d, s = divmod(s, 86400)
    h, s = divmod(s, 3600)
    m, s = divmod(s, 60)
    if d:
        return f"{d}d {h:02d}h {m:02d}m {s:02d}s"
    return f"{h:02d}h {m:02d}m {s:02d}s"

def _git_sha() -> str:
    global _git_sha_cache
    if _git_sha_cache is not None:
        return _git_sha_cache
    env_sha = os.getenv("GIT_COMMIT", "").strip()
    if env_sha:
        _git_sha_cache = env_sha[:12]
        return _git_sha_cache
    try:
        out = subprocess.check_output(
            ["git", "rev-parse", "--short", "HEAD"],
            stderr=subprocess.DEVNULL,
            timeout=1.0,
        )
        _git_sha_cache = out.decode("utf-8", errors="ignore").strip() or "n/a"
    except Exception:
        _git_sha_cache = "n/a"
    return _git_sha_cache

def health_snapshot(failure_limit: int = 5) -> dict[str, object]:
    upstream = metrics.upstream_latency_summary()
    failures = logging_setup.recent_failures(limit=failure_limit)
    return {
        "status": "ok",
        "uptime": fmt_uptime(),
        "uptime_seconds": uptime_seconds(),
        "started_utc": _started_at.strftime("%Y-%m-%dT%H:%M:%SZ"),
        "upstream": {
            "base_url": config.OPENFRONT_API_BASE,
            "timeout_seconds": config.OPENFRONT_API_TIMEOUT_SECONDS,
            "latency": upstream,
        },
        "requests": metrics.request_latency_summary(),
        "recent_failures": failures,
        "build": {
            "sha": _git_sha(),
            "python": platform.python_version(),
            "aiohttp": getattr(aiohttp, "__version__", "n/a"),
        },
    }
