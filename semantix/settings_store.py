"""
Persisted extension settings.

Settings live in sqlite, one JSON document per module name, mirroring the
host's extension_settings object: `moduleSettings` (user preferences) and
`embeddingProviders` (provider name -> connection details).
"""
import copy
import json
import logging
import sqlite3
from contextlib import contextmanager
from typing import Any, Dict

from semantix import config

logger = logging.getLogger(__name__)

DB_PATH = config.SETTINGS_DB_PATH

CHUNK_SIZE_BOUNDS = (100, 2000)
OVERLAP_SIZE_BOUNDS = (0, 500)
SEARCH_LIMIT_BOUNDS = (1, 50)

DEFAULT_SETTINGS: Dict[str, Any] = {
    "moduleSettings": {
        "showNotifications": True,
        "defaultProvider": "bananabread",
        "defaultChunkSize": 450,
        "defaultOverlapSize": 50,
        "searchLimit": 5,
        "rerank": True,
    },
    "embeddingProviders": {
        "bananabread": {
            "baseUrl": "http://localhost:8008",
            "embeddingEndpoint": "/embedding",
            "modelName": "mixedbread-ai/mxbai-embed-large-v1",
            "headers": {},
            "defaultParams": {
                "normalize": True,
                "truncate": True,
            },
        },
    },
}


class SettingsValidationError(ValueError):
    """Raised when a module setting value is out of range or of the wrong type."""


@contextmanager
def get_conn():
    conn = sqlite3.connect(DB_PATH)
    try:
        yield conn
    finally:
        conn.close()


def init_settings_db():
    """Create the settings table if it does not exist."""
    with get_conn() as conn:
        conn.execute("""
        CREATE TABLE IF NOT EXISTS extension_settings (
            module_name TEXT PRIMARY KEY,
            data TEXT NOT NULL,
            last_updated TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
        """)
        conn.commit()


def _merge_defaults(defaults: Dict[str, Any], stored: Dict[str, Any]) -> Dict[str, Any]:
    """Deep-merge `stored` over `defaults`; stored values win."""
    merged = copy.deepcopy(defaults)
    for key, value in stored.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge_defaults(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_settings(module_name: str = None) -> Dict[str, Any]:
    """Load settings for a module with defaults filled in for missing keys."""
    module_name = module_name or config.MODULE_NAME
    init_settings_db()
    with get_conn() as conn:
        cur = conn.execute(
            "SELECT data FROM extension_settings WHERE module_name = ?", (module_name,)
        )
        row = cur.fetchone()

    stored: Dict[str, Any] = {}
    if row:
        try:
            stored = json.loads(row[0])
        except json.JSONDecodeError as e:
            logger.error(f"[SETTINGS] Stored settings for {module_name} are corrupt, using defaults: {e}")
    return _merge_defaults(DEFAULT_SETTINGS, stored)


def save_settings(settings: Dict[str, Any], module_name: str = None) -> None:
    module_name = module_name or config.MODULE_NAME
    init_settings_db()
    with get_conn() as conn:
        conn.execute("""
            INSERT INTO extension_settings (module_name, data, last_updated)
            VALUES (?, ?, CURRENT_TIMESTAMP)
            ON CONFLICT(module_name) DO UPDATE SET
                data = excluded.data,
                last_updated = excluded.last_updated;
        """, (module_name, json.dumps(settings)))
        conn.commit()
    logger.debug(f"[SETTINGS] Saved settings for {module_name}")


def _validate_int(key: str, value: Any, bounds) -> int:
    low, high = bounds
    if isinstance(value, bool):
        raise SettingsValidationError(f"{key} must be an integer, got {value!r}")
    try:
        value = int(value)
    except (TypeError, ValueError):
        raise SettingsValidationError(f"{key} must be an integer, got {value!r}") from None
    if not low <= value <= high:
        raise SettingsValidationError(f"{key} must be between {low} and {high}, got {value}")
    return value


def validate_module_setting(key: str, value: Any, settings: Dict[str, Any]) -> Any:
    """Return the normalized value for a module setting or raise SettingsValidationError."""
    if key == "defaultChunkSize":
        return _validate_int(key, value, CHUNK_SIZE_BOUNDS)
    if key == "defaultOverlapSize":
        return _validate_int(key, value, OVERLAP_SIZE_BOUNDS)
    if key == "searchLimit":
        return _validate_int(key, value, SEARCH_LIMIT_BOUNDS)
    if key in ("showNotifications", "rerank"):
        if not isinstance(value, bool):
            raise SettingsValidationError(f"{key} must be a boolean, got {value!r}")
        return value
    if key == "defaultProvider":
        if value not in settings.get("embeddingProviders", {}):
            raise SettingsValidationError(f"Unknown embedding provider: {value!r}")
        return value
    raise SettingsValidationError(f"Unknown module setting: {key!r}")


def update_module_settings(updates: Dict[str, Any], module_name: str = None) -> Dict[str, Any]:
    """Validate and persist module settings. Returns the updated settings.

    If any value is invalid nothing is saved.
    """
    settings = load_settings(module_name)
    validated = {}
    for key, value in updates.items():
        validated[key] = validate_module_setting(key, value, settings)
    settings["moduleSettings"].update(validated)
    save_settings(settings, module_name)
    logger.info(f"[SETTINGS] Updated module settings: {validated}")
    return settings


def active_provider(settings: Dict[str, Any]) -> Dict[str, Any]:
    """Return the config of the default embedding provider ({} if unknown)."""
    name = settings.get("moduleSettings", {}).get("defaultProvider")
    return settings.get("embeddingProviders", {}).get(name) or {}


def backend_url(settings: Dict[str, Any]) -> str:
    """Base URL of the vectorization backend for the active provider."""
    return (active_provider(settings).get("baseUrl") or config.DEFAULT_BACKEND_URL).rstrip("/")
