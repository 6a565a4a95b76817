"""Built-in snippets that need no network access."""

from __future__ import annotations

from gitignore_downloader.models import TemplateBlock

SNIPPETS: dict[str, str] = {
    "macos": "# Desktop Service Store Mac\n.DS_Store\n",
    "locks": "# Lock Files\npackage-lock.json\nyarn.lock\n",
}


def keys() -> list[str]:
    return list(SNIPPETS)


def get(key: str) -> TemplateBlock | None:
    body = SNIPPETS.get(key.lower())
    if body is None:
        return None
    return TemplateBlock(source=key.lower(), body=body)
