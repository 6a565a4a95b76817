"""Fetch the template index and template bodies from github/gitignore."""

from __future__ import annotations

import logging
from typing import Protocol

import httpx

from gitignore_downloader import __version__
from gitignore_downloader.config import RemoteConfig
from gitignore_downloader.errors import FetchError
from gitignore_downloader.models import GITIGNORE_SUFFIX, strip_suffix

logger = logging.getLogger(__name__)

USER_AGENT = f"gitignore-downloader/{__version__}"


class TemplateSource(Protocol):
    def fetch_index(self) -> list[str]: ...

    def fetch_template(self, name: str) -> str: ...


def open_client(config: RemoteConfig) -> httpx.Client:
    """Build the HTTP client used for one invocation.

    Authentication is added per request by GitHubTemplateSource, so opening a
    client never looks up a token.
    """
    headers = {
        "User-Agent": USER_AGENT,
        "Accept": "application/vnd.github+json",
    }
    return httpx.Client(headers=headers, timeout=config.timeout, follow_redirects=True)


def _names_from_listing(entries: object) -> list[str]:
    """Template names from a GitHub contents API directory listing."""
    if not isinstance(entries, list):
        raise FetchError("Unexpected template index format", details="expected a JSON array")
    names: set[str] = set()
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        name = entry.get("name")
        if not isinstance(name, str) or not name.endswith(GITIGNORE_SUFFIX):
            continue
        # Directories such as Global/ are not templates themselves
        if entry.get("type", "file") != "file":
            continue
        clean = strip_suffix(name)
        if clean:
            names.add(clean)
    return sorted(names)


class GitHubTemplateSource:
    """Template index and bodies served by GitHub."""

    def __init__(self, client: httpx.Client, config: RemoteConfig | None = None) -> None:
        self._client = client
        self._config = config or RemoteConfig()
        self._auth: dict[str, str] | None = None

    def _auth_headers(self) -> dict[str, str]:
        # looked up on the first request; may run `gh auth token`
        if self._auth is None:
            token = self._config.resolve_token()
            self._auth = {"Authorization": f"Bearer {token}"} if token else {}
        return self._auth

    def _get(self, url: str, what: str) -> httpx.Response:
        try:
            response = self._client.get(url, headers=self._auth_headers())
        except httpx.HTTPError as exc:
            raise FetchError(f"Failed to fetch {what}", details=str(exc)) from exc
        if response.status_code != 200:
            if response.status_code == 403 and response.headers.get("X-RateLimit-Remaining") == "0":
                raise FetchError(
                    f"Failed to fetch {what} (GitHub rate limit exceeded)",
                    details="Set GITHUB_TOKEN to raise the limit.",
                )
            raise FetchError(f"Failed to fetch {what} (status {response.status_code})")
        return response

    def fetch_index(self) -> list[str]:
        response = self._get(self._config.index_url, "template index")
        try:
            entries = response.json()
        except ValueError as exc:
            raise FetchError("Template index is not valid JSON", details=str(exc)) from exc
        names = _names_from_listing(entries)
        logger.info("Fetched %d template names from %s", len(names), self._config.index_url)
        return names

    def fetch_template(self, name: str) -> str:
        url = f"{self._config.raw_base_url.rstrip('/')}/{name}{GITIGNORE_SUFFIX}"
        response = self._get(url, f"template '{name}'")
        try:
            body = response.content.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise FetchError(f"Template '{name}' is not valid UTF-8", details=str(exc)) from exc
        logger.debug("Fetched %s (%d bytes)", url, len(response.content))
        return body
