"""Shared data models for gitignore-downloader."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

GITIGNORE_SUFFIX = ".gitignore"


def strip_suffix(name: str) -> str:
    """Drop a trailing ``.gitignore`` (any case) from a template name."""
    if name.lower().endswith(GITIGNORE_SUFFIX):
        return name[: -len(GITIGNORE_SUFFIX)]
    return name


def normalize(token: str) -> str:
    """Lookup key for a template name: trimmed, suffix-free, casefolded."""
    return strip_suffix(token.strip()).casefold()


# ── Index and cache ─────────────────────────────────────────────────────────


@dataclass
class TemplateIndex:
    """All template names known upstream at the last successful refresh."""

    names: list[str]
    fetched_at: datetime

    def __post_init__(self) -> None:
        self._lookup: dict[str, str] = {}
        for name in self.names:
            self._lookup.setdefault(normalize(name), name)

    def find(self, token: str) -> str | None:
        """Return the canonical name matching ``token``, ignoring case and suffix."""
        return self._lookup.get(normalize(token))

    def __len__(self) -> int:
        return len(self.names)


@dataclass
class CacheEntry:
    """On-disk form of a TemplateIndex."""

    names: list[str]
    fetched_at: datetime

    @property
    def index(self) -> TemplateIndex:
        return TemplateIndex(names=list(self.names), fetched_at=self.fetched_at)


# ── Resolution and composition ──────────────────────────────────────────────


@dataclass
class ResolvedTemplate:
    """A requested token and the canonical name it matched, if any."""

    token: str
    name: str | None = None

    @property
    def ok(self) -> bool:
        return self.name is not None


@dataclass
class TemplateBlock:
    """Raw content of one template or snippet, keyed by its source name."""

    source: str
    body: str


class WriteMode(Enum):
    APPEND = "append"
    OVERWRITE = "overwrite"
    DRY_RUN = "dry-run"


@dataclass
class OutputDocument:
    """Merged text plus which sources contributed to it."""

    text: str
    added: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()
