"""Configuration loading and defaults."""

from __future__ import annotations

import os
import subprocess
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from platformdirs import user_cache_dir, user_config_dir

from gitignore_downloader.errors import ConfigError

APP_NAME = "gitignore-downloader"
CACHE_FILE = "types.json"
LOG_FILE = "gitignore-downloader.log"


@dataclass
class CacheConfig:
    ttl_minutes: int = 60 * 24
    enabled: bool = True
    directory: str = ""

    def resolve_dir(self) -> Path:
        """Cache directory from config, GITIGNORE_DOWNLOADER_CACHE_DIR, or the OS default."""
        if self.directory:
            return Path(self.directory).expanduser()
        if env_dir := os.environ.get("GITIGNORE_DOWNLOADER_CACHE_DIR"):
            return Path(env_dir).expanduser()
        return Path(user_cache_dir(APP_NAME))

    @property
    def file(self) -> Path:
        return self.resolve_dir() / CACHE_FILE


@dataclass
class RemoteConfig:
    index_url: str = "https://api.github.com/repos/github/gitignore/contents"
    raw_base_url: str = "https://raw.githubusercontent.com/github/gitignore/main/"
    timeout: float = 15.0
    token: str = ""

    def resolve_token(self) -> str:
        """Get token from config, env var, or gh CLI."""
        if self.token:
            return self.token
        env_token = os.environ.get("GITHUB_TOKEN", "")
        if env_token:
            return env_token
        try:
            result = subprocess.run(
                ["gh", "auth", "token"],
                capture_output=True,
                text=True,
                timeout=5,
            )
            if result.returncode == 0:
                return result.stdout.strip()
        except (FileNotFoundError, subprocess.TimeoutExpired):
            pass
        return ""


@dataclass
class OutputConfig:
    path: str = ".gitignore"


@dataclass
class Config:
    cache: CacheConfig = field(default_factory=CacheConfig)
    remote: RemoteConfig = field(default_factory=RemoteConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    @classmethod
    def default_path(cls) -> Path:
        return Path(user_config_dir(APP_NAME)) / "config.toml"

    @classmethod
    def load(cls, path: Path | None = None) -> Config:
        """Load config from TOML, falling back to defaults when the file is absent."""
        if path is None:
            path = cls.default_path()
        if not path.exists():
            return cls()

        try:
            with open(path, "rb") as f:
                raw = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as exc:
            raise ConfigError(f"Could not read config file {path}", details=str(exc)) from exc

        config = cls()

        if "cache" in raw:
            c = raw["cache"]
            config.cache = CacheConfig(
                ttl_minutes=_typed(c, "ttl_minutes", int, config.cache.ttl_minutes),
                enabled=_typed(c, "enabled", bool, config.cache.enabled),
                directory=_typed(c, "directory", str, config.cache.directory),
            )
            if config.cache.ttl_minutes < 0:
                raise ConfigError("cache.ttl_minutes must not be negative")

        if "remote" in raw:
            r = raw["remote"]
            config.remote = RemoteConfig(
                index_url=_typed(r, "index_url", str, config.remote.index_url),
                raw_base_url=_typed(r, "raw_base_url", str, config.remote.raw_base_url),
                timeout=float(_typed(r, "timeout", (int, float), config.remote.timeout)),
                token=_typed(r, "token", str, config.remote.token),
            )

        if "output" in raw:
            o = raw["output"]
            config.output = OutputConfig(
                path=_typed(o, "path", str, config.output.path),
            )

        return config


def _typed(section: dict, key: str, kind: type | tuple[type, ...], default):
    value = section.get(key, default)
    # bool is an int subclass; only accept it where a bool is asked for
    if isinstance(value, bool) and kind is not bool:
        raise ConfigError(f"Invalid value for '{key}': expected a number or string, got a boolean")
    if not isinstance(value, kind):
        raise ConfigError(f"Invalid value for '{key}': {value!r}")
    return value


DEFAULT_CONFIG_TEMPLATE = """\
[cache]
ttl_minutes = 1440
enabled = true
# directory = "~/.cache/gitignore-downloader"

[remote]
index_url = "https://api.github.com/repos/github/gitignore/contents"
raw_base_url = "https://raw.githubusercontent.com/github/gitignore/main/"
timeout = 15.0
# token from GITHUB_TOKEN env or `gh auth token`
token = ""

[output]
path = ".gitignore"
"""
