"""Configuration loading.

Settings live in ``config.yaml`` at the project root. Any key missing from
the file falls back to the built-in defaults below, so a partial file is
enough. ``VIDEOGEN_API_KEY`` overrides ``api.api_key``.
"""

from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any

import yaml

_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"

DEFAULTS: dict[str, Any] = {
    "api": {
        "endpoint": "https://oi-server.onrender.com/chat/completions",
        "customer_id": "cus_T3KyPvWsMIRaBz",
        "api_key": "xxx",
        "timeout_seconds": 900,
    },
    "storage": {
        "dir": ".videogen",
    },
    "server": {
        "host": "127.0.0.1",
        "port": 8000,
    },
    "media": {
        "max_files": 3,
        "max_file_size_mb": 100,
        "preview_at_seconds": 1.0,
    },
    "progress": {
        "success_reset_seconds": 3.0,
        "failure_reset_seconds": 5.0,
        "cancel_reset_seconds": 2.0,
    },
    "fallback": {
        "reply_placeholder_url": (
            "https://storage.googleapis.com/workspace-0f70711f-8b4e-4d94-86f1-2a93ccde5887/"
            "image/3ed71dcb-7d5b-4e2f-9a9d-98b4d37a33a6.png"
        ),
        "empty_placeholder_url": (
            "https://storage.googleapis.com/workspace-0f70711f-8b4e-4d94-86f1-2a93ccde5887/"
            "image/dec50fff-508e-4781-807b-29224554cf9d.png"
        ),
    },
}


def _merge(base: dict, override: dict) -> dict:
    """Recursively merge ``override`` into a copy of ``base``."""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(config_path: str | Path | None = None) -> dict:
    """Load config.yaml merged over the defaults.

    Args:
        config_path: Override path to config file. Defaults to project root config.yaml.

    Returns:
        The merged config dictionary.

    Raises:
        FileNotFoundError: If an explicit config path does not exist.
        ValueError: If the file is not a YAML mapping.
    """
    if config_path:
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
    else:
        path = _CONFIG_PATH

    loaded: Any = {}
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
    if not isinstance(loaded, dict):
        raise ValueError(f"Config file must contain a mapping: {path}")

    config = _merge(DEFAULTS, loaded)
    env_key = os.getenv("VIDEOGEN_API_KEY")
    if env_key:
        config["api"]["api_key"] = env_key
    return config


def get_api_headers(config: dict) -> dict[str, str]:
    """Return the fixed headers sent to the inference endpoint."""
    api = config["api"]
    return {
        "customerId": api["customer_id"],
        "Content-Type": "application/json",
        "Authorization": f"Bearer {api['api_key']}",
    }


def get_storage_dir(config: dict) -> Path:
    return Path(config["storage"]["dir"]).expanduser()


def get_fallback_urls(config: dict) -> tuple[str, str]:
    """Return (reply placeholder, empty-reply placeholder)."""
    fallback = config["fallback"]
    return fallback["reply_placeholder_url"], fallback["empty_placeholder_url"]
