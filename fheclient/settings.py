"""Settings for the fheclient SDK with env-var fallback.

Resolution order: in-process override > env var > default.
All settings are defined in SETTING_DEFS.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SettingDef:
    """Definition of a single setting."""

    key: str
    env_var: str
    default: str
    is_secret: bool
    description: str
    group: str  # e.g. "relayer", "client"


# ── Registry ─────────────────────────────────────────────────────────────────

SETTING_DEFS: dict[str, SettingDef] = {}


def _reg(key: str, env_var: str, default: str, is_secret: bool, description: str, group: str):
    SETTING_DEFS[key] = SettingDef(key, env_var, default, is_secret, description, group)


# Relayer
_reg(
    "relayer.base_url",
    "FHE_RELAYER_BASE_URL",
    "https://relayer.zama.ai",
    False,
    "Base URL of the FHE relayer used in remote mode",
    "relayer",
)
_reg(
    "relayer.api_key",
    "FHE_RELAYER_API_KEY",
    "",
    True,
    "API key sent as x-relayer-key (empty to send none)",
    "relayer",
)
_reg(
    "relayer.timeout_seconds",
    "FHE_RELAYER_TIMEOUT_SECONDS",
    "30",
    False,
    "Timeout in seconds for relayer HTTP calls",
    "relayer",
)

# Client
_reg(
    "client.default_read_function",
    "FHE_DEFAULT_READ_FUNCTION",
    "getCount",
    False,
    "Contract function used by read() when no function name is given",
    "client",
)
_reg(
    "client.default_mode",
    "FHE_CLIENT_MODE",
    "remote",
    False,
    "Execution mode when a config does not pick one: remote or local",
    "client",
)


# ── Overrides ────────────────────────────────────────────────────────────────

_overrides: dict[str, str] = {}


def _defn(key: str) -> SettingDef:
    defn = SETTING_DEFS.get(key)
    if defn is None:
        raise KeyError(f"Unknown setting: {key}")
    return defn


# ── Accessors ────────────────────────────────────────────────────────────────


def get_setting(key: str) -> str:
    """Return the effective value for *key*.

    Resolution: override (non-empty) > env var (non-empty) > default.
    Raises KeyError for unknown keys.
    """
    defn = _defn(key)

    override = _overrides.get(key)
    if override is not None and override != "":
        return override

    env_val = os.environ.get(defn.env_var, "")
    if env_val:
        return env_val

    return defn.default


def get_setting_float(key: str, fallback: float | None = None) -> float:
    """get_setting() coerced to float."""
    raw = get_setting(key)
    try:
        return float(raw)
    except (ValueError, TypeError):
        if fallback is not None:
            return fallback
        raise


def get_setting_source(key: str) -> str:
    """Return where the effective value comes from: 'override', 'env', or 'default'."""
    defn = _defn(key)

    override = _overrides.get(key)
    if override is not None and override != "":
        return "override"

    env_val = os.environ.get(defn.env_var, "")
    if env_val:
        return "env"

    return "default"


# ── Mutation ─────────────────────────────────────────────────────────────────


def set_setting(key: str, value: str) -> None:
    """Override a setting for this process."""
    defn = _defn(key)
    _overrides[key] = value
    logger.info(f"Setting {key} overridden{' (secret)' if defn.is_secret else ''}")


def delete_setting(key: str) -> bool:
    """Drop an override. Returns True if one existed."""
    _defn(key)
    return _overrides.pop(key, None) is not None


def clear_settings() -> None:
    """Drop all overrides (used by tests)."""
    _overrides.clear()


def _mask_secret(value: str) -> str:
    """Mask a secret value for display."""
    if not value or len(value) <= 8:
        return "****"
    return value[:4] + "****" + value[-4:]


def list_settings(group: str | None = None) -> list[dict]:
    """List all settings with metadata, values (masked if secret), and sources."""
    result = []
    for defn in SETTING_DEFS.values():
        if group and defn.group != group:
            continue

        source = get_setting_source(defn.key)
        raw_value = get_setting(defn.key)

        if defn.is_secret and raw_value:
            display_value = _mask_secret(raw_value)
        else:
            display_value = raw_value

        result.append(
            {
                "key": defn.key,
                "value": display_value,
                "source": source,
                "is_secret": defn.is_secret,
                "description": defn.description,
                "group": defn.group,
                "env_var": defn.env_var,
                "default": defn.default,
            }
        )
    return result


def log_settings_sources(level: int = logging.INFO) -> None:
    """Log the source of each setting (secrets masked)."""
    for entry in list_settings():
        logger.log(level, f"Setting {entry['key']}: source={entry['source']}, value={entry['value'] or '(empty)'}")
