"""JSON cache for the template index."""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Protocol

from gitignore_downloader.errors import CacheReadError, CacheWriteError
from gitignore_downloader.models import CacheEntry, TemplateIndex

logger = logging.getLogger(__name__)

DEFAULT_TTL_MINUTES = 60 * 24


class CacheStore(Protocol):
    def load(self) -> CacheEntry | None: ...

    def save(self, index: TemplateIndex) -> bool: ...


def is_stale(entry: CacheEntry, ttl_minutes: float, now: datetime | None = None) -> bool:
    """True when more than ``ttl_minutes`` have passed since the entry was fetched.

    An entry stamped in the future (clock skew, corrupt file) is always stale.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    if entry.fetched_at > now:
        return True
    return now - entry.fetched_at > timedelta(minutes=ttl_minutes)


def _parse_timestamp(value: object) -> datetime:
    # bool is an int subclass and never a valid timestamp
    if isinstance(value, bool):
        raise CacheReadError(f"Invalid fetched_at: {value!r}")
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as exc:
            raise CacheReadError(f"Invalid fetched_at: {value!r}") from exc
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as exc:
            raise CacheReadError(f"Invalid fetched_at: {value!r}") from exc
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    raise CacheReadError(f"Invalid fetched_at: {value!r}")


def _deserialize(data: str) -> CacheEntry:
    try:
        raw = json.loads(data)
    except json.JSONDecodeError as exc:
        raise CacheReadError("Cache file is not valid JSON", details=str(exc)) from exc
    if not isinstance(raw, dict):
        raise CacheReadError("Cache file does not hold an object")

    types = raw.get("types")
    if not isinstance(types, list) or not all(isinstance(t, str) for t in types):
        raise CacheReadError("Cache file has no valid 'types' list")
    return CacheEntry(names=types, fetched_at=_parse_timestamp(raw.get("fetched_at")))


def _serialize(index: TemplateIndex) -> str:
    return json.dumps(
        {
            "fetched_at": int(index.fetched_at.timestamp()),
            "types": list(index.names),
        }
    )


class JsonCacheStore:
    """Template index cache stored as JSON at a fixed path."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def read(self) -> CacheEntry:
        """Load the entry, raising CacheReadError on any problem."""
        try:
            data = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise CacheReadError(f"Cannot read {self.path}", details=str(exc)) from exc
        return _deserialize(data)

    def write(self, index: TemplateIndex) -> None:
        """Persist the index, raising CacheWriteError on any problem."""
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(_serialize(index), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as exc:
            raise CacheWriteError(f"Cannot write {self.path}", details=str(exc)) from exc

    def load(self) -> CacheEntry | None:
        try:
            return self.read()
        except CacheReadError as exc:
            logger.debug("Ignoring cache: %s", exc)
            return None

    def save(self, index: TemplateIndex) -> bool:
        try:
            self.write(index)
        except CacheWriteError as exc:
            logger.warning("Could not save template cache: %s", exc)
            return False
        logger.debug("Cached %d template names at %s", len(index), self.path)
        return True
