"""Crewboard configuration management"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import toml  # type: ignore[import-untyped]

CREWBOARD_DIR = Path.home() / ".crewboard"
CONFIG_PATH = CREWBOARD_DIR / "config.toml"

URL_ENV_VAR = "CREWBOARD_URL"
API_KEY_ENV_VAR = "CREWBOARD_API_KEY"

DEFAULT_SERVER_URL = "http://localhost:54321"
DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_FEED_LIMIT = 50
DEFAULT_CODE_TTL_DAYS = 30


class CrewboardConfig:
    """Manage remote store configuration.

    Values come from ``~/.crewboard/config.toml``; the server URL and API key
    can be overridden with ``CREWBOARD_URL`` / ``CREWBOARD_API_KEY``.
    """

    def __init__(self, config_file: Path | None = None) -> None:
        self.config_file = config_file or CONFIG_PATH
        self.config_dir = self.config_file.parent

    def _load(self) -> dict[str, Any]:
        if not self.config_file.exists():
            return {}
        try:
            return toml.load(self.config_file)
        except (toml.TomlDecodeError, OSError):
            return {}

    def _section(self, name: str) -> dict[str, Any]:
        section = self._load().get(name)
        return section if isinstance(section, dict) else {}

    def get_server_url(self) -> str:
        """Get server URL from env or config"""
        env_value = os.environ.get(URL_ENV_VAR, "").strip()
        if env_value:
            return env_value.rstrip("/")
        server_url = self._section("remote").get("url")
        if isinstance(server_url, str) and server_url.strip():
            return server_url.strip().rstrip("/")
        return DEFAULT_SERVER_URL

    def get_api_key(self) -> str | None:
        """Get the public API key sent as the ``apikey`` header"""
        env_value = os.environ.get(API_KEY_ENV_VAR, "").strip()
        if env_value:
            return env_value
        api_key = self._section("remote").get("api_key")
        if isinstance(api_key, str) and api_key.strip():
            return api_key.strip()
        return None

    def get_timeout(self) -> float:
        timeout = self._section("remote").get("timeout")
        if isinstance(timeout, (int, float)) and timeout > 0:
            return float(timeout)
        return DEFAULT_TIMEOUT_SECONDS

    def get_feed_limit(self) -> int:
        limit = self._section("feed").get("limit")
        if isinstance(limit, int) and limit > 0:
            return limit
        return DEFAULT_FEED_LIMIT

    def get_code_ttl_days(self) -> int:
        ttl = self._section("join").get("code_ttl_days")
        if isinstance(ttl, int) and ttl > 0:
            return ttl
        return DEFAULT_CODE_TTL_DAYS

    def set_value(self, section: str, key: str, value: Any) -> None:
        """Persist a single ``[section] key = value`` entry"""
        self.config_dir.mkdir(parents=True, exist_ok=True)

        config = self._load()
        target = config.get(section)
        if not isinstance(target, dict):
            target = {}
            config[section] = target
        target[key] = value

        with open(self.config_file, "w", encoding="utf-8") as f:
            toml.dump(config, f)

    def set_server_url(self, url: str) -> None:
        """Set server URL in config"""
        self.set_value("remote", "url", url.rstrip("/"))

    def set_api_key(self, api_key: str) -> None:
        self.set_value("remote", "api_key", api_key)

    def as_dict(self) -> dict[str, Any]:
        api_key = self.get_api_key()
        return {
            "config_file": str(self.config_file),
            "server_url": self.get_server_url(),
            "api_key": "set" if api_key else "unset",
            "timeout": self.get_timeout(),
            "feed_limit": self.get_feed_limit(),
            "code_ttl_days": self.get_code_ttl_days(),
        }
