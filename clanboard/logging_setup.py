import logging
import datetime as dt
from collections import deque
from logging.handlers import RotatingFileHandler

from . import config

_FAILURES: deque[dict[str, str]] = deque(maxlen=config.LOG_FAILURE_BUFFER)


def failure_extra(operation: str, target: str | None = None) -> dict[str, str]:
    """`extra=` for a failed operation log line; tags the /healthz entry."""
    return {"operation": operation, "target": target or "-"}


class _FailureBufferHandler(logging.Handler):
    """Keeps the last few ERROR records, tagged with the failed operation."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            _FAILURES.append(
                {
                    "ts": dt.datetime.fromtimestamp(record.created, dt.timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
                    "operation": str(getattr(record, "operation", record.name)),
                    "target": str(getattr(record, "target", "-")),
                    "message": record.getMessage(),
                }
            )
        except Exception:
            self.handleError(record)


def recent_failures(limit: int = 5) -> list[dict[str, str]]:
    lim = max(1, min(int(limit), 50))
    return list(_FAILURES)[-lim:]


def clear_failures() -> None:
    _FAILURES.clear()


def error_buffer_handler() -> logging.Handler:
    return _FailureBufferHandler(level=logging.ERROR)


def setup_logging() -> None:
    root = logging.getLogger()
    level = logging.getLevelName(config.LOG_LEVEL)
    if not isinstance(level, int):
        level = logging.INFO
    root.setLevel(level)
    if getattr(root, "_clanboard_logging_initialized", False):
        return

    fmt = logging.Formatter(
        fmt="%(asctime)sZ %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config.LOG_PATH:
        try:
            handlers.append(
                RotatingFileHandler(
                    config.LOG_PATH,
                    maxBytes=config.LOG_MAX_BYTES,
                    backupCount=config.LOG_BACKUP_COUNT,
                    encoding="utf-8",
                )
            )
        except OSError as exc:
            logging.getLogger(__name__).warning("File logging disabled (%s): %s", config.LOG_PATH, exc)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(fmt)
        root.addHandler(handler)
    root.addHandler(error_buffer_handler())

    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)
    root._clanboard_logging_initialized = True  # type: ignore[attr-defined]
