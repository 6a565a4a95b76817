"""Exception hierarchy for gitignore-downloader.

Every fatal condition derives from :class:`GitignoreDownloaderError` so the CLI
can report it uniformly. Cache problems have their own classes but never leave
the cache module; cancelling the picker is not an error at all.
"""

from __future__ import annotations

from pathlib import Path


class GitignoreDownloaderError(Exception):
    """Base exception for all gitignore-downloader errors."""

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}\n  Details: {self.details}"
        return self.message


class ConfigError(GitignoreDownloaderError):
    """Raised when the config file is unreadable or holds invalid values."""


class UnknownTemplateError(GitignoreDownloaderError):
    """Raised when one or more requested templates are not in the index."""

    def __init__(self, tokens: list[str]):
        self.tokens = list(tokens)
        quoted = ", ".join(f"'{t}'" for t in self.tokens)
        noun = "template" if len(self.tokens) == 1 else "templates"
        super().__init__(
            f"Unknown {noun}: {quoted}",
            details="Run with --list to see available templates.",
        )


class FetchError(GitignoreDownloaderError):
    """Raised when the template index or a template body cannot be retrieved."""


class CacheReadError(GitignoreDownloaderError):
    """Cache file missing, unreadable or malformed."""


class CacheWriteError(GitignoreDownloaderError):
    """Cache file could not be written."""


class WriteError(GitignoreDownloaderError):
    """Raised when the destination file cannot be written."""

    def __init__(self, path: Path | str, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Could not write {self.path}", details=reason)


class SelectionCancelled(Exception):
    """The user left the interactive picker without choosing anything."""
