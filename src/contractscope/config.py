"""Global configuration — XDG paths, env vars, defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from contractscope.market.cache import TTLCache
from contractscope.market.sources import (
    DEFAULT_BASE_URL,
    DEFAULT_TIMEOUT,
    LiveSource,
    ResilientSource,
)
from contractscope.market.stream import DEFAULT_STREAM_URL, PriceStream
from contractscope.scoring.policy import ScoringPolicy, default_policy, load_policy

_TRUTHY = {"1", "true", "yes", "on"}


def _default_data_dir() -> Path:
    xdg = os.environ.get("XDG_DATA_HOME")
    if xdg:
        return Path(xdg) / "contractscope"
    return Path.home() / ".local" / "share" / "contractscope"


def _default_config_dir() -> Path:
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "contractscope"
    return Path.home() / ".config" / "contractscope"


@dataclass
class ContractScopeConfig:
    """Application-wide configuration."""

    data_dir: Path = field(default_factory=_default_data_dir)
    config_dir: Path = field(default_factory=_default_config_dir)
    policy_path: Path | None = None
    market_url: str = DEFAULT_BASE_URL
    stream_url: str = DEFAULT_STREAM_URL
    cache_ttl: float = 30.0
    http_timeout: float = DEFAULT_TIMEOUT
    offline: bool = False
    web_host: str = "127.0.0.1"  # Hardcoded, never 0.0.0.0
    web_port: int = 8471
    verbose: bool = False

    @property
    def db_path(self) -> Path:
        return self.data_dir / "contractscope.db"

    @classmethod
    def load(cls) -> ContractScopeConfig:
        """Load config from environment variables with XDG defaults."""
        config = cls()

        env_url = os.environ.get("CONTRACTSCOPE_MARKET_URL")
        if env_url:
            config.market_url = env_url

        env_stream = os.environ.get("CONTRACTSCOPE_STREAM_URL")
        if env_stream:
            config.stream_url = env_stream

        env_ttl = os.environ.get("CONTRACTSCOPE_CACHE_TTL")
        if env_ttl:
            config.cache_ttl = float(env_ttl)

        env_timeout = os.environ.get("CONTRACTSCOPE_HTTP_TIMEOUT")
        if env_timeout:
            config.http_timeout = float(env_timeout)

        env_offline = os.environ.get("CONTRACTSCOPE_OFFLINE", "")
        config.offline = env_offline.strip().lower() in _TRUTHY

        env_port = os.environ.get("CONTRACTSCOPE_WEB_PORT")
        if env_port:
            config.web_port = int(env_port)

        # Pick up the user's scoring policy if present
        user_policy = config.config_dir / "scoring.yaml"
        if user_policy.is_file():
            config.policy_path = user_policy

        return config

    def build_source(self) -> ResilientSource:
        """Market data source honoring the cache, timeout, and offline settings."""
        live = None
        if not self.offline:
            live = LiveSource(base_url=self.market_url, timeout=self.http_timeout)
        return ResilientSource(live=live, cache=TTLCache(ttl=self.cache_ttl))

    def build_stream(self) -> PriceStream:
        return PriceStream(base_url=self.stream_url)

    def load_scoring_policy(self, override: str | Path | None = None) -> ScoringPolicy:
        """``override`` if given, else the user's scoring.yaml, else the default preset."""
        path = override or self.policy_path
        if path:
            return load_policy(path)
        return default_policy()
