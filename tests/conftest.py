"""Shared fixtures for gitignore-downloader tests."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import pytest

from gitignore_downloader.errors import FetchError
from gitignore_downloader.models import CacheEntry, TemplateIndex

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

RUST_BODY = """\
# Generated by Cargo
# will have compiled files and executables
debug/
target/

# These are backup files generated by rustfmt
**/*.rs.bk
"""

NODE_BODY = """\
# Logs
logs
*.log
npm-debug.log*

# Dependency directories
node_modules/
"""


class MemoryCacheStore:
    """In-memory stand-in for JsonCacheStore."""

    def __init__(self, entry: CacheEntry | None = None, *, fail_save: bool = False) -> None:
        self.entry = entry
        self.fail_save = fail_save
        self.loads = 0
        self.saves = 0

    def load(self) -> CacheEntry | None:
        self.loads += 1
        return self.entry

    def save(self, index: TemplateIndex) -> bool:
        self.saves += 1
        if self.fail_save:
            return False
        self.entry = CacheEntry(names=list(index.names), fetched_at=index.fetched_at)
        return True


class FakeSource:
    """Template source backed by dicts; records every call."""

    def __init__(
        self,
        bodies: dict[str, str] | None = None,
        *,
        index: list[str] | None = None,
        index_error: bool = False,
    ) -> None:
        self.bodies = bodies if bodies is not None else {"Rust": RUST_BODY, "Node": NODE_BODY}
        self.index = index if index is not None else sorted(self.bodies)
        self.index_error = index_error
        self.index_calls = 0
        self.fetched: list[str] = []

    def fetch_index(self) -> list[str]:
        self.index_calls += 1
        if self.index_error:
            raise FetchError("Failed to fetch template index (status 503)")
        return list(self.index)

    def fetch_template(self, name: str) -> str:
        self.fetched.append(name)
        if name not in self.bodies:
            raise FetchError(f"Failed to fetch template '{name}' (status 404)")
        return self.bodies[name]


class ScriptedPicker:
    """Picker that returns a fixed selection without a terminal."""

    def __init__(self, selection: list[str] | None) -> None:
        self.selection = selection
        self.offered: list[str] | None = None

    def select(self, candidates):
        self.offered = list(candidates)
        return self.selection


@pytest.fixture
def source() -> FakeSource:
    return FakeSource()


@pytest.fixture
def fresh_store() -> MemoryCacheStore:
    return MemoryCacheStore(CacheEntry(names=["Node", "Rust"], fetched_at=NOW))


@pytest.fixture
def index() -> TemplateIndex:
    return TemplateIndex(
        names=["Android", "C++", "Go", "Node", "Python", "Rust", "VisualStudio"],
        fetched_at=NOW,
    )


@pytest.fixture(autouse=True)
def _reset_logging():
    """Drop handlers the CLI attaches so they never outlive a test's streams."""
    yield
    logger = logging.getLogger("gitignore_downloader")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
