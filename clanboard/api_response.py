from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from aiohttp import web
from pydantic import BaseModel, ValidationError

from . import config, logging_setup, metrics, schemas
from .openfront import UpstreamError
from .query_range import DateRange, RangeError, range_from_query

log = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def cache_control_header() -> str:
    return f"s-maxage={config.CACHE_MAX_AGE_SECONDS}, stale-while-revalidate={config.CACHE_STALE_SECONDS}"


class InputError(Exception):
    """Bad caller input; reported as 400 before anything goes upstream."""

    status = 400

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field


def error_json(message: str, status: int) -> web.Response:
    return web.json_response({"error": message}, status=status)


def cached_json(payload: Any) -> web.Response:
    return web.json_response(payload, headers={"Cache-Control": cache_control_header()})


def parse_or_raise(model: type[M], data: Any) -> M:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        field, message = schemas.first_error(exc)
        raise InputError(message or "Invalid request.", field=field) from None


def range_or_raise(query: Any) -> DateRange:
    try:
        return range_from_query(dict(query))
    except RangeError as exc:
        raise InputError(exc.message, field=exc.field) from None


def log_failure(label: str, exc: BaseException, *, target: str | None = None) -> None:
    metrics.record_upstream_failure()
    extra = logging_setup.failure_extra(label, target)
    if isinstance(exc, schemas.SchemaValidationError):
        log.error(
            "%s target=%s invalid %s payload at %s: %s",
            label, target or "-", exc.shape, exc.field, exc.message,
            extra=extra,
        )
    elif isinstance(exc, UpstreamError):
        log.error("%s target=%s upstream status=%s url=%s", label, target or "-", exc.status, exc.url, extra=extra)
    else:
        log.error("%s target=%s %s: %s", label, target or "-", type(exc).__name__, exc, exc_info=exc, extra=extra)


async def with_api_error(
    label: str,
    handler: Callable[[], Awaitable[Any]],
    *,
    target: str | None = None,
) -> web.Response:
    """
    Run a handler and map its outcome onto the public contract.

    Success is cached JSON. InputError keeps its message (400). Anything
    else is logged here and reported only as ``label`` (502).
    """
    try:
        data = await handler()
    except InputError as exc:
        return error_json(exc.message, exc.status)
    except web.HTTPException:
        raise
    except Exception as exc:
        log_failure(label, exc, target=target)
        return error_json(label, 502)
    return cached_json(data)


Handler = Callable[[web.Request], Awaitable[Any]]


def _route_target(request: web.Request, params: type[schemas.RouteParams] | None) -> str | None:
    if params is None:
        return None
    try:
        return params.model_validate(request.match_info).target
    except ValidationError:
        return None


def create_get_handler(label: str, handler: Handler, *, params: type[schemas.RouteParams] | None = None):
    async def _get(request: web.Request) -> web.Response:
        target = _route_target(request, params)
        return await with_api_error(label, lambda: handler(request), target=target)

    return _get
