"""Map user-supplied template names onto the canonical names in the index."""

from __future__ import annotations

import logging
from typing import Iterable

from gitignore_downloader.errors import UnknownTemplateError
from gitignore_downloader.models import ResolvedTemplate, TemplateIndex

logger = logging.getLogger(__name__)


def match(tokens: Iterable[str], index: TemplateIndex) -> list[ResolvedTemplate]:
    """Match each token exactly (case- and suffix-insensitive) against the index.

    Unmatched tokens come back with ``name=None``; nothing is raised here.
    """
    return [ResolvedTemplate(token=token, name=index.find(token)) for token in tokens]


def resolve(tokens: Iterable[str], index: TemplateIndex) -> list[ResolvedTemplate]:
    """Resolve tokens in order, failing on the first pass if any is unknown.

    Raises:
        UnknownTemplateError: listing every unknown token, in input order.
    """
    matches = match(tokens, index)
    unknown = [m.token for m in matches if not m.ok]
    if unknown:
        raise UnknownTemplateError(unknown)

    resolved: list[ResolvedTemplate] = []
    seen: set[str] = set()
    for m in matches:
        if m.name in seen:
            logger.debug("Dropping repeated template %s (from '%s')", m.name, m.token)
            continue
        seen.add(m.name)
        resolved.append(m)
    return resolved
