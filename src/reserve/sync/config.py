"""Cloud sync configuration.

Stored per device under the ``app_cloud_config_v3`` key.  Every device that
should share data must carry the same API key and bin id.
"""

from __future__ import annotations

import os

from reserve.core.models import CloudConfig
from reserve.storage.store import CLOUD_CONFIG_KEY, Store

DEFAULT_BASE_URL = "https://api.jsonbin.io/v3"
DEFAULT_TIMEOUT = 30.0
TIMEOUT_ENV = "RESERVE_SYNC_TIMEOUT"
BASE_URL_ENV = "RESERVE_SYNC_BASE_URL"


def default_cloud_config() -> CloudConfig:
    """Return the disabled, empty configuration."""
    return {"enabled": False, "apiKey": "", "binId": ""}


def load_cloud_config(store: Store) -> CloudConfig:
    """Load the stored configuration, filling absent fields with defaults."""
    config = default_cloud_config()
    stored = store.load(CLOUD_CONFIG_KEY)
    if isinstance(stored, dict):
        config.update({k: stored[k] for k in config if k in stored})
    return config


def save_cloud_config(store: Store, config: CloudConfig) -> None:
    store.save(CLOUD_CONFIG_KEY, dict(config))


def is_configured(config: CloudConfig | None) -> bool:
    """True when sync is enabled and both credentials are non-empty."""
    if not config:
        return False
    return bool(
        config.get("enabled")
        and str(config.get("apiKey") or "").strip()
        and str(config.get("binId") or "").strip()
    )


def mask_key(api_key: str) -> str:
    """Show only the last four characters of a secret."""
    if not api_key:
        return ""
    if len(api_key) <= 4:
        return "*" * len(api_key)
    return "*" * (len(api_key) - 4) + api_key[-4:]


def transport_timeout() -> float:
    """Socket timeout for remote calls; ``RESERVE_SYNC_TIMEOUT`` overrides."""
    raw = os.environ.get(TIMEOUT_ENV)
    if raw:
        try:
            value = float(raw)
        except ValueError:
            return DEFAULT_TIMEOUT
        if value > 0:
            return value
    return DEFAULT_TIMEOUT


def base_url() -> str:
    return os.environ.get(BASE_URL_ENV) or DEFAULT_BASE_URL
