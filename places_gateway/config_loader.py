"""
Configuration loader for the places gateway.

Looks for a config file in this order:
1. Explicit path (``--config`` on the command line)
2. Environment variable CONFIG_PATH
3. ./config.yaml (local development)
4. ./config.json
5. Falls back to default config

The file is parsed with yaml.safe_load, so plain JSON files work too.
Values are read once at startup; nothing is reloaded.
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from .utils import split_listen_addr

DEFAULT_TARGET_ADDR = "https://places.aviasales.ru"

# Flat keys of the older config.json layout, now nested under "gateway".
LEGACY_KEYS = {"Addr", "CacheSize", "LogLevel", "RequestTimeout", "TargetAddr"}


class Config:
    def __init__(self, config_path: str | None = None):
        # Determine config path in order of priority
        if config_path:
            self.config_path = Path(config_path)
        elif os.getenv("CONFIG_PATH"):
            self.config_path = Path(os.getenv("CONFIG_PATH"))
        elif Path("./config.yaml").exists():
            self.config_path = Path("./config.yaml")
        elif Path("./config.json").exists():
            self.config_path = Path("./config.json")
        else:
            # No config found, will use defaults
            self.config_path = None

        self._config = self._load_config()

    def _load_config(self) -> dict[str, Any]:
        """
        Load configuration from the YAML or JSON file.

        Returns default config if file not found or unreadable. A file that
        parses but has the wrong shape is rejected with ValueError.
        """
        if self.config_path and self.config_path.exists():
            try:
                with open(self.config_path, encoding="utf-8") as f:
                    config_data = yaml.safe_load(f)
            except (OSError, yaml.YAMLError) as e:
                print(f"✗ Error loading config from {self.config_path}: {e}")
            else:
                return self._validate({} if config_data is None else config_data)
        else:
            print("⚠ Config file not found, using defaults")
            if self.config_path:
                print(f"  Tried: {self.config_path}")

        return {
            "gateway": {
                "addr": ":80",
                "target_addr": DEFAULT_TARGET_ADDR,
                "log_level": "info",
                "request_timeout_ms": 3000,
                "single_flight": True,
                "cache": {"enabled": True, "size": 1000},
            }
        }

    def _validate(self, config_data: Any) -> dict[str, Any]:
        """
        Check the shape of a loaded config document.

        Raises:
            ValueError: if the document or its gateway section is not a mapping
        """
        if not isinstance(config_data, dict):
            raise ValueError(
                f"config {self.config_path} must be a mapping, got {type(config_data).__name__}"
            )
        gateway = config_data.get("gateway")
        if gateway is None:
            print(f"⚠ No 'gateway' section in {self.config_path}, using defaults")
            legacy = sorted(key for key in config_data if key in LEGACY_KEYS)
            if legacy:
                print(f"  Ignored top-level keys: {', '.join(legacy)}")
        elif not isinstance(gateway, dict):
            raise ValueError(f"'gateway' in {self.config_path} must be a mapping")
        print(f"✓ Loaded config from: {self.config_path}")
        return config_data

    @property
    def _gateway(self) -> dict[str, Any]:
        return self._config.get("gateway", {}) or {}

    @property
    def addr(self) -> str:
        return str(self._gateway.get("addr", ":80"))

    @property
    def listen_host(self) -> str:
        return split_listen_addr(self.addr)[0]

    @property
    def listen_port(self) -> int:
        return split_listen_addr(self.addr)[1]

    @property
    def target_addr(self) -> str:
        # Environment variable override for container deployments
        env_url = os.getenv("PLACES_TARGET_ADDR")
        if env_url:
            return env_url
        return self._gateway.get("target_addr", DEFAULT_TARGET_ADDR)

    @property
    def log_level(self) -> str:
        level = str(self._gateway.get("log_level", "info")).lower()
        # Unknown level names fall back to info.
        if not isinstance(logging.getLevelName(level.upper()), int):
            return "info"
        return level

    @property
    def debug(self) -> bool:
        """Debug mode logs per-request processing time."""
        return self.log_level == "debug"

    @property
    def request_timeout(self) -> float:
        """Per-request deadline in seconds (configured in milliseconds)."""
        return self._gateway.get("request_timeout_ms", 3000) / 1000

    @property
    def upstream_timeout(self) -> float | None:
        """
        Upstream call timeout in seconds, or None when not configured.

        It bounds how long a fetch keeps running in the background after its
        client already got a 504. When unset the orchestrator uses a multiple
        of the request timeout.
        """
        timeout_ms = self._gateway.get("upstream_timeout_ms")
        if timeout_ms is None:
            return None
        return timeout_ms / 1000

    @property
    def _cache_section(self) -> dict[str, Any]:
        return self._gateway.get("cache", {}) or {}

    @property
    def cache_enabled(self) -> bool:
        return bool(self._cache_section.get("enabled", True))

    @property
    def cache_size(self) -> int:
        return int(self._cache_section.get("size", 1000))

    @property
    def single_flight(self) -> bool:
        """Collapse concurrent cache misses for the same URL into one fetch."""
        return bool(self._gateway.get("single_flight", True))


# Global config singleton used across the gateway
config = Config()
