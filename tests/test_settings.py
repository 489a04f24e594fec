"""Tests for the settings system."""

import logging

import pytest

from fheclient.remote import RelayerOptions
from fheclient.settings import (
    delete_setting,
    get_setting,
    get_setting_float,
    get_setting_source,
    list_settings,
    log_settings_sources,
    set_setting,
)

# ── Resolution order ─────────────────────────────────────────────────────────


def test_default_value():
    """Setting returns default when no override or env value."""
    assert get_setting("relayer.base_url") == "https://relayer.zama.ai"
    assert get_setting_source("relayer.base_url") == "default"


def test_env_overrides_default(monkeypatch):
    """Env var overrides default."""
    monkeypatch.setenv("FHE_RELAYER_BASE_URL", "https://relayer.example.com")

    assert get_setting("relayer.base_url") == "https://relayer.example.com"
    assert get_setting_source("relayer.base_url") == "env"


def test_override_beats_env(monkeypatch):
    """In-process override wins over the env var."""
    monkeypatch.setenv("FHE_DEFAULT_READ_FUNCTION", "getBalance")
    set_setting("client.default_read_function", "getTotal")

    assert get_setting("client.default_read_function") == "getTotal"
    assert get_setting_source("client.default_read_function") == "override"


def test_empty_override_falls_through():
    set_setting("client.default_read_function", "")
    assert get_setting("client.default_read_function") == "getCount"


def test_delete_setting():
    set_setting("client.default_mode", "local")

    assert delete_setting("client.default_mode") is True
    assert delete_setting("client.default_mode") is False
    assert get_setting("client.default_mode") == "remote"


def test_unknown_key():
    with pytest.raises(KeyError, match="Unknown setting"):
        get_setting("relayer.nope")
    with pytest.raises(KeyError):
        set_setting("relayer.nope", "x")


# ── Typed accessors ──────────────────────────────────────────────────────────


def test_numeric_accessors(monkeypatch):
    monkeypatch.setenv("FHE_RELAYER_TIMEOUT_SECONDS", "12.5")
    assert get_setting_float("relayer.timeout_seconds") == 12.5

    monkeypatch.setenv("FHE_RELAYER_TIMEOUT_SECONDS", "soon")
    with pytest.raises(ValueError):
        get_setting_float("relayer.timeout_seconds")


# ── Listing ──────────────────────────────────────────────────────────────────


def test_list_masks_secrets():
    set_setting("relayer.api_key", "abcd1234efgh5678")

    entries = {entry["key"]: entry for entry in list_settings("relayer")}

    assert set(entries) == {"relayer.base_url", "relayer.api_key", "relayer.timeout_seconds"}
    assert entries["relayer.api_key"]["value"] == "abcd****5678"
    assert entries["relayer.api_key"]["is_secret"] is True
    assert entries["relayer.api_key"]["source"] == "override"


def test_short_secret_fully_masked():
    set_setting("relayer.api_key", "short")
    entry = next(e for e in list_settings() if e["key"] == "relayer.api_key")
    assert entry["value"] == "****"


# ── Relayer options ──────────────────────────────────────────────────────────


def test_relayer_options_fall_back_to_settings(monkeypatch):
    monkeypatch.setenv("FHE_RELAYER_BASE_URL", "https://relayer.example.com/")
    monkeypatch.setenv("FHE_RELAYER_API_KEY", "env-key")
    monkeypatch.setenv("FHE_RELAYER_TIMEOUT_SECONDS", "5")

    options = RelayerOptions()

    assert options.resolved_base_url() == "https://relayer.example.com"
    assert options.resolved_api_key() == "env-key"
    assert options.resolved_timeout() == 5.0


def test_relayer_options_explicit_values_win(monkeypatch):
    monkeypatch.setenv("FHE_RELAYER_API_KEY", "env-key")

    options = RelayerOptions(base_url="https://mine.test", api_key="mine", timeout=1.5)

    assert options.resolved_base_url() == "https://mine.test"
    assert options.resolved_api_key() == "mine"
    assert options.resolved_timeout() == 1.5


def test_relayer_options_no_api_key():
    assert RelayerOptions().resolved_api_key() is None


def test_log_settings_sources_masks_secrets(caplog):
    set_setting("relayer.api_key", "abcd1234efgh5678")

    with caplog.at_level(logging.INFO, logger="fheclient.settings"):
        log_settings_sources()

    assert "relayer.api_key: source=override, value=abcd****5678" in caplog.text
    assert "abcd1234efgh5678" not in caplog.text
    assert "client.default_read_function: source=default, value=getCount" in caplog.text
