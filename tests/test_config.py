"""Tests for YAML config loading and environment overrides."""

import pytest

from src.core.utils import load_config, resolve_environment_variables
from src.frontend.server import build_binance_client, build_rate_limiter


def test_load_config_from_explicit_path(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("frontend:\n  port: 8080\nrate_limit:\n  max_requests: 5\n", encoding="utf-8")
    config = load_config(path)
    assert config["frontend"]["port"] == 8080
    assert config["rate_limit"]["max_requests"] == 5


def test_load_config_missing_explicit_path_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")


def test_load_config_honours_relay_config_env(tmp_path, monkeypatch):
    path = tmp_path / "relay.yaml"
    path.write_text("general:\n  service: from-env\n", encoding="utf-8")
    monkeypatch.setenv("RELAY_CONFIG", str(path))
    assert load_config()["general"]["service"] == "from-env"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("RELAY_PORT", "9000")
    monkeypatch.setenv("BINANCE_BASE_URL", "https://api1.binance.com")
    monkeypatch.setenv("BINANCE_TIMEOUT_SECONDS", "not-a-number")
    config = resolve_environment_variables({"frontend": None, "exchange": {"timeout_seconds": 3.0}})
    assert config["frontend"]["port"] == 9000
    assert config["exchange"]["base_url"] == "https://api1.binance.com"
    assert config["exchange"]["timeout_seconds"] == 3.0


def test_builders_follow_config():
    client = build_binance_client({"use_sandbox": True, "timeout_seconds": 4})
    assert client.base_url == "https://testnet.binance.vision"
    assert client.timeout_seconds == 4.0
    limiter = build_rate_limiter({"max_requests": 10, "window_seconds": 30})
    assert limiter.max_requests == 10
    assert limiter.window_seconds == 30.0
    assert build_rate_limiter({"enabled": False}) is None
