import os
from dotenv import load_dotenv

load_dotenv()

def _int_env(key: str, default: int) -> int:
    raw = os.getenv(key, str(default))
    try:
        return int((raw or "").strip())
    except Exception:
        return int(default)

def _bool_env(key: str, default: str) -> bool:
    return os.getenv(key, default).strip().lower() in {"1", "true", "yes", "on"}

# OpenFront public API (upstream, read-only)
OPENFRONT_API_BASE = (os.getenv("OPENFRONT_API_BASE", "https://api.openfront.io/public").strip()
                      or "https://api.openfront.io/public").rstrip("/")
OPENFRONT_API_TIMEOUT_SECONDS = max(5, min(60, _int_env("OPENFRONT_API_TIMEOUT_SECONDS", 15)))

# Boundary HTTP server
SERVER_BIND = os.getenv("SERVER_BIND", "127.0.0.1").strip() or "127.0.0.1"
SERVER_PORT = max(1, min(65535, _int_env("SERVER_PORT", 8080)))
ACCESS_LOG_ENABLED = _bool_env("ACCESS_LOG_ENABLED", "0")

# Cache directive attached to every successful API payload
CACHE_MAX_AGE_SECONDS = max(0, _int_env("CACHE_MAX_AGE_SECONDS", 60))
CACHE_STALE_SECONDS = max(0, _int_env("CACHE_STALE_SECONDS", 300))

# Default look-back window for clan sessions when no start is given
SESSIONS_DEFAULT_DAYS = max(1, min(365, _int_env("SESSIONS_DEFAULT_DAYS", 30)))

# Recently viewed (client side). Version lives in the file name.
RECENTLY_VIEWED_PATH = os.getenv("RECENTLY_VIEWED_PATH", "recently-viewed.v1.json").strip() or "recently-viewed.v1.json"
RECENTLY_VIEWED_LIMIT = max(1, _int_env("RECENTLY_VIEWED_LIMIT", 12))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"
LOG_PATH = os.getenv("LOG_PATH", "clanboard.log").strip()
LOG_MAX_BYTES = max(1, _int_env("LOG_MAX_BYTES", 1_000_000))
LOG_BACKUP_COUNT = max(1, _int_env("LOG_BACKUP_COUNT", 5))
# Failed upstream operations kept in memory for /healthz
LOG_FAILURE_BUFFER = max(5, _int_env("LOG_FAILURE_BUFFER", 20))
