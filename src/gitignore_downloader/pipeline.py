"""Pipeline orchestrator: index → selection → resolution → fetch → compose → write."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from gitignore_downloader import snippets
from gitignore_downloader.cache import DEFAULT_TTL_MINUTES, CacheStore, is_stale
from gitignore_downloader.composer import compose
from gitignore_downloader.errors import FetchError, SelectionCancelled
from gitignore_downloader.models import (
    OutputDocument,
    ResolvedTemplate,
    TemplateBlock,
    TemplateIndex,
    WriteMode,
)
from gitignore_downloader.picker import Picker
from gitignore_downloader.remote import TemplateSource
from gitignore_downloader.resolver import resolve
from gitignore_downloader.writer import read_existing, write

logger = logging.getLogger(__name__)


@dataclass
class Request:
    """Everything one invocation asks for."""

    tokens: list[str] = field(default_factory=list)
    snippets: list[str] = field(default_factory=list)
    output: Path = Path(".gitignore")
    mode: WriteMode = WriteMode.APPEND
    ttl_minutes: int = DEFAULT_TTL_MINUTES
    use_cache: bool = True


def load_index(
    store: CacheStore,
    source: TemplateSource,
    *,
    ttl_minutes: float = DEFAULT_TTL_MINUTES,
    use_cache: bool = True,
    now: datetime | None = None,
) -> TemplateIndex:
    """Return the template index, refreshing it when stale, absent, or bypassed.

    A failed refresh falls back to whatever was loaded from the cache, stale or
    not, as long as it lists at least one template.
    """
    if now is None:
        now = datetime.now(timezone.utc)

    cached = store.load() if use_cache else None
    if cached is not None and not is_stale(cached, ttl_minutes, now):
        logger.debug("Using cached index (%d templates)", len(cached.names))
        return cached.index

    try:
        names = source.fetch_index()
    except FetchError as exc:
        if cached is not None and cached.names:
            logger.warning("%s; using cached index from %s", exc.message, cached.fetched_at.isoformat())
            return cached.index
        raise

    index = TemplateIndex(names=names, fetched_at=now)
    store.save(index)
    return index


def collect_blocks(
    resolved: list[ResolvedTemplate],
    snippet_keys: list[str],
    source: TemplateSource,
) -> list[TemplateBlock]:
    """Fetch template bodies in order, then append the requested snippets."""
    blocks: list[TemplateBlock] = []
    for item in resolved:
        if item.name is None:
            raise ValueError(f"Unresolved template: {item.token}")
        blocks.append(TemplateBlock(source=item.name, body=source.fetch_template(item.name)))
    for key in snippet_keys:
        block = snippets.get(key)
        if block is None:
            raise ValueError(f"Unknown snippet: {key}")
        blocks.append(block)
    return blocks


def generate(
    request: Request,
    *,
    store: CacheStore,
    source: TemplateSource,
    picker: Picker,
) -> OutputDocument:
    """Build the document for ``request`` without touching the destination.

    Raises:
        SelectionCancelled: the picker returned nothing.
        UnknownTemplateError: a requested name is not in the index.
        FetchError: the index (with no usable cache) or a body could not be fetched.
    """
    tokens = list(request.tokens)
    resolved: list[ResolvedTemplate] = []

    if tokens or not request.snippets:
        index = load_index(
            store,
            source,
            ttl_minutes=request.ttl_minutes,
            use_cache=request.use_cache,
        )
        if not tokens:
            selection = picker.select(index.names)
            if not selection:
                raise SelectionCancelled()
            tokens = selection
        resolved = resolve(tokens, index)

    blocks = collect_blocks(resolved, request.snippets, source)

    existing = read_existing(request.output) if request.mode is WriteMode.APPEND else None
    return compose(existing, blocks, request.mode)


def run(
    request: Request,
    *,
    store: CacheStore,
    source: TemplateSource,
    picker: Picker,
) -> OutputDocument:
    """Generate the document and print or write it."""
    doc = generate(request, store=store, source=source, picker=picker)
    if request.mode is WriteMode.APPEND and not doc.added:
        logger.info("Nothing new to add to %s", request.output)
        return doc
    write(doc, request.output, request.mode)
    return doc
