"""Merge template and snippet blocks into a single de-duplicated document."""

from __future__ import annotations

import logging
from typing import Iterable

from gitignore_downloader.models import OutputDocument, TemplateBlock, WriteMode

logger = logging.getLogger(__name__)


def header(source: str) -> str:
    return f"### {source} ###"


def _strip_blank_ends(lines: list[str]) -> list[str]:
    start, end = 0, len(lines)
    while start < end and not lines[start].strip():
        start += 1
    while end > start and not lines[end - 1].strip():
        end -= 1
    return lines[start:end]


def _collapse_blank_runs(lines: list[str]) -> list[str]:
    out: list[str] = []
    for line in lines:
        if not line.strip() and out and not out[-1].strip():
            continue
        out.append(line)
    return out


def compose(
    existing: str | None,
    blocks: Iterable[TemplateBlock],
    mode: WriteMode,
) -> OutputDocument:
    """Build the output document for ``blocks``.

    In APPEND mode the document starts from ``existing``; otherwise it starts
    empty. A non-blank line that is already present verbatim anywhere in the
    document so far is dropped, and a block with nothing left is skipped
    without a header. Matching is line-exact: ``*.log`` and ``**/*.log`` are
    different lines.

    Leading and trailing blank lines of a block are dropped. Interior blank
    lines are kept as written unless de-duplication removed lines from that
    block, in which case each run of them becomes a single blank line.
    """
    base = (existing or "") if mode is WriteMode.APPEND else ""
    sections: list[list[str]] = []
    # existing content is kept as-is apart from trailing blank lines
    base_lines = base.splitlines()
    while base_lines and not base_lines[-1].strip():
        base_lines.pop()
    if base_lines:
        sections.append(base_lines)
    present = {line for line in base_lines if line.strip()}

    added: list[str] = []
    skipped: list[str] = []
    for block in blocks:
        kept: list[str] = []
        dropped = False
        for line in block.body.splitlines():
            if line.strip():
                if line in present:
                    dropped = True
                    continue
                present.add(line)
            kept.append(line)
        if dropped:
            kept = _collapse_blank_runs(kept)
        kept = _strip_blank_ends(kept)
        if not kept:
            logger.info("Skipping %s (already present)", block.source)
            skipped.append(block.source)
            continue
        sections.append([header(block.source), *kept])
        added.append(block.source)

    text = "\n\n".join("\n".join(section) for section in sections)
    if text:
        text += "\n"
    return OutputDocument(text=text, added=added, skipped=skipped)
