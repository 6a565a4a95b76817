"""Persist or print a composed document."""

from __future__ import annotations

import contextlib
import logging
import os
import shutil
import sys
from pathlib import Path
from typing import TextIO

from gitignore_downloader.errors import WriteError
from gitignore_downloader.models import OutputDocument, WriteMode

logger = logging.getLogger(__name__)


def read_existing(path: Path) -> str | None:
    """Current content of the destination, or None when it does not exist."""
    try:
        return Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as exc:
        raise WriteError(path, f"cannot read existing file: {exc}") from exc


def write(
    doc: OutputDocument,
    target: Path,
    mode: WriteMode,
    stream: TextIO | None = None,
) -> None:
    """Print ``doc`` (dry run) or replace ``target`` with it.

    APPEND and OVERWRITE both replace the file: in APPEND mode the composer has
    already merged the previous content into ``doc``. The new content goes to a
    sibling temp file first and is renamed over the target. A symlinked
    target is followed, so the link stays in place and its destination is
    replaced.
    """
    if mode is WriteMode.DRY_RUN:
        out = stream if stream is not None else sys.stdout
        out.write(doc.text)
        out.flush()
        return

    target = Path(target)
    dest = target.resolve() if target.is_symlink() else target
    tmp_path = dest.with_name(dest.name + ".tmp")
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        tmp_path.write_text(doc.text, encoding="utf-8")
        if dest.is_file():
            shutil.copymode(dest, tmp_path)
        os.replace(tmp_path, dest)
    except OSError as exc:
        with contextlib.suppress(OSError):
            tmp_path.unlink(missing_ok=True)
        raise WriteError(target, exc.strerror or str(exc)) from exc
    logger.info("Wrote %d bytes to %s (%s)", len(doc.text), target, mode.value)
