"""Utility helpers (config loading, environment overrides, logging setup)."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

DEFAULT_CONFIG_PATH = Path("src/config/config.yaml")
SAMPLE_CONFIG_PATH = Path("src/config/config.sample.yaml")
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# env var -> (section, key, caster)
_ENV_OVERRIDES = {
    "RELAY_HOST": ("frontend", "host", str),
    "RELAY_PORT": ("frontend", "port", int),
    "RELAY_LOG_LEVEL": ("general", "log_level", str),
    "BINANCE_BASE_URL": ("exchange", "base_url", str),
    "BINANCE_TIMEOUT_SECONDS": ("exchange", "timeout_seconds", float),
}


def load_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load YAML configuration from `path`, `RELAY_CONFIG`, config.yaml, or the sample."""
    env_path = os.environ.get("RELAY_CONFIG")
    config_path = Path(path) if path else Path(env_path) if env_path else DEFAULT_CONFIG_PATH
    if not config_path.exists():
        if path or env_path:
            raise FileNotFoundError(f"Config file not found: {config_path}")
        logging.warning("config.yaml not found, falling back to sample configuration.")
        config_path = SAMPLE_CONFIG_PATH
    with config_path.open("r", encoding="utf-8") as fh:
        config = yaml.safe_load(fh) or {}
    if not isinstance(config, dict):
        raise ValueError(f"Config root must be a mapping: {config_path}")
    return config


def resolve_environment_variables(config: Dict[str, Any]) -> Dict[str, Any]:
    """Merge environment overrides (host, port, base URL, log level) into the config."""
    for env_name, (section, key, caster) in _ENV_OVERRIDES.items():
        raw = os.environ.get(env_name)
        if raw is None or not raw.strip():
            continue
        try:
            value = caster(raw.strip())
        except ValueError:
            logging.warning("Ignoring %s=%r; expected %s.", env_name, raw, caster.__name__)
            continue
        config.setdefault(section, {})
        if config[section] is None:
            config[section] = {}
        config[section][key] = value
    return config


def setup_structured_logging(config: Dict[str, Any]) -> None:
    """Configure root logging from `general.log_level`."""
    level_name = str((config.get("general", {}) or {}).get("log_level", "INFO") or "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
