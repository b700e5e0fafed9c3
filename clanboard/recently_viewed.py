from __future__ import annotations

import json
import logging
import math
import os
import tempfile
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Any, Literal, Protocol

from . import config, utils

log = logging.getLogger(__name__)

RecentlyViewedKind = Literal["clan", "player"]
_KINDS = ("clan", "player")
DEFAULT_LIMIT = 12


@dataclass(frozen=True)
class RecentlyViewedItem:
    kind: RecentlyViewedKind
    id: str
    label: str
    viewedAt: int

    @property
    def key(self) -> tuple[str, str]:
        return (self.kind, self.id)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class RecentlyViewedStorage(Protocol):
    def load(self) -> Any: ...

    def save(self, items: list[dict[str, Any]]) -> None: ...


class MemoryStorage:
    def __init__(self, initial: Any = None):
        self.value = initial
        self.saves = 0

    def load(self) -> Any:
        return self.value

    def save(self, items: list[dict[str, Any]]) -> None:
        self.value = [dict(item) for item in items]
        self.saves += 1


class JsonFileStorage:
    """One JSON file holding the list. Missing file reads as empty."""

    def __init__(self, path: str | os.PathLike[str]):
        self.path = Path(path)

    def load(self) -> Any:
        if not self.path.exists():
            return []
        raw = self.path.read_text(encoding="utf-8")
        if not raw.strip():
            return []
        return json.loads(raw)

    def save(self, items: list[dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=self.path.name + ".", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(items, fh, ensure_ascii=False)
            os.replace(tmp, self.path)
        except Exception:
            try:
                os.unlink(tmp)
            except OSError:
                pass
            raise


def normalize_id(kind: str, raw_id: Any) -> str:
    trimmed = str(raw_id if raw_id is not None else "").strip()
    if not trimmed:
        return ""
    return trimmed.upper() if kind == "clan" else trimmed


def _finite_ms(value: Any) -> int | float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        if not math.isfinite(value):
            return None
    except OverflowError:
        return None
    return value


def sanitize_items(value: Any) -> list[RecentlyViewedItem]:
    if not isinstance(value, list):
        return []
    rows: list[RecentlyViewedItem] = []
    for entry in value:
        if not isinstance(entry, dict):
            continue
        kind = entry.get("kind")
        if kind not in _KINDS:
            continue
        item_id = normalize_id(kind, entry.get("id"))
        if not item_id:
            continue
        label = str(entry.get("label") or "").strip() or item_id
        viewed_at = _finite_ms(entry.get("viewedAt"))
        rows.append(
            RecentlyViewedItem(
                kind=kind,
                id=item_id,
                label=label,
                viewedAt=viewed_at if viewed_at is not None else utils.now_ms(),
            )
        )
    # Stored order is not trusted; newest first.
    rows.sort(key=lambda item: item.viewedAt, reverse=True)
    return rows


class RecentlyViewedStore:
    """
    Most-recently-used list of viewed clans and players.

    Storage failures never reach callers: a failed load reads as an empty
    list and a failed save leaves the returned list in memory only.
    """

    def __init__(self, storage: RecentlyViewedStorage, limit: int = DEFAULT_LIMIT):
        self.storage = storage
        self.limit = max(1, int(limit))

    def _load(self) -> list[RecentlyViewedItem]:
        try:
            return sanitize_items(self.storage.load())
        except Exception as exc:
            log.debug("Recently viewed load failed: %s: %s", type(exc).__name__, exc)
            return []

    def _save(self, items: list[RecentlyViewedItem]) -> None:
        try:
            self.storage.save([item.to_dict() for item in items])
        except Exception as exc:
            log.debug("Recently viewed save failed: %s: %s", type(exc).__name__, exc)

    def read(self) -> list[RecentlyViewedItem]:
        return self._load()[: self.limit]

    def add(self, kind: RecentlyViewedKind, item_id: str, label: str | None = None) -> list[RecentlyViewedItem]:
        if kind not in _KINDS:
            raise ValueError(f"Unknown recently viewed kind: {kind}")
        normalized = normalize_id(kind, item_id)
        if not normalized:
            return self.read()

        fresh = RecentlyViewedItem(
            kind=kind,
            id=normalized,
            label=str(label or "").strip() or normalized,
            viewedAt=utils.now_ms(),
        )
        kept = [item for item in self._load() if item.key != fresh.key]
        items = [fresh, *kept][: self.limit]
        self._save(items)
        return items

    def relabel(
        self, kind: RecentlyViewedKind, item_id: str, label: str | None
    ) -> tuple[list[RecentlyViewedItem], bool]:
        normalized = normalize_id(kind, item_id)
        new_label = str(label or "").strip()
        if not normalized or not new_label:
            return self.read(), False

        changed = False
        items: list[RecentlyViewedItem] = []
        for item in self._load():
            if item.key == (kind, normalized) and item.label != new_label:
                item = replace(item, label=new_label)
                changed = True
            items.append(item)

        if changed:
            self._save(items)
        return items[: self.limit], changed


def default_store() -> RecentlyViewedStore:
    return RecentlyViewedStore(
        JsonFileStorage(config.RECENTLY_VIEWED_PATH),
        limit=config.RECENTLY_VIEWED_LIMIT,
    )
