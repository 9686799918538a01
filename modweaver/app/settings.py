# modweaver/app/settings.py
from __future__ import annotations
import json5, os
from pydantic import JsonValue
from pathlib import Path
from typing import Any, cast
from functools import lru_cache

from modweaver.app.paths import PACKAGE_DIR, USER_DIR

import logging
logger = logging.getLogger(__name__)

__all__ = [
    "SETTINGS_DEFAULT_PATH", "SETTINGS", "SETTINGS_ENV_VAR", "loadUserSettings",
    "loadSettings", "deepMerge", "settings", "settingsBool",
]


SETTINGS_ENV_VAR = "MODWEAVER_SETTINGS"
SETTINGS_DEFAULT_PATH = PACKAGE_DIR / "settings_default.json5"
SETTINGS: JsonValue = (
    json5.loads(SETTINGS_DEFAULT_PATH.read_text(encoding="utf-8"))
    if SETTINGS_DEFAULT_PATH.exists()
    else {
        "__source": "BUILTIN_DEFAULTS",
        "host": {
            "installRoot": None,
            "versionDirPattern": r"^(?:app-)?(?P<version>\d+\.\d+\.\d+)$",
            "versionRequirement": None,
            "coreModulePrefix": "discord_desktop_core",
            "coreModuleDir": "discord_desktop_core",
            "archiveName": "core.asar",
            "backupSuffix": ".backup",
            "targetScript": "app/mainScreen.js",
        },
        "inject": {
            "anchorPattern": "mainWindow.on('swipe', (_, direction) => {",
            "windowHandle": "mainWindow",
            "configNamespace": "__modConfig",
        },
        "paths": {"modFolder": None, "workRoot": None},
        "logging": {"file": str(USER_DIR / "modweaver.log"), "maxBytes": 10 * 1024 * 1024, "backupCount": 5},
        "http": {"host": "127.0.0.1", "port": 7867},
        "debug": {
            "devModeEnabled": False,
            "suppressRecurringMessages": {"enabled": False, "windowSeconds": 60, "maxPerWindow": 5, "summaryLevel": "INFO"},
        },
    }
)



def _userSettingsPath() -> Path:
    override = os.environ.get(SETTINGS_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return USER_DIR / "settings.json5"



def loadUserSettings() -> JsonValue:
    filePath = _userSettingsPath()
    if filePath.exists():
        try:
            return json5.loads(filePath.read_text(encoding="utf-8"))
        except Exception as err:
            logger.error("Failed to parse '%s': %s", filePath, err)
    return {}



@lru_cache(maxsize=1)
def loadSettings():
    return deepMerge(SETTINGS, loadUserSettings())



def deepMerge(first: JsonValue, second: JsonValue) -> JsonValue:
    """
    Returns a new JsonValue where keys from `second` override/extend `first`.
    Only merges recursively when BOTH sides are JSON objects (dicts).
    For all other JSON types (lists, strings, numbers, booleans, null),
    the right-hand value `second` replaces `first`.
    """
    if isinstance(first, dict) and isinstance(second, dict):
        out: dict[str, JsonValue] = {}
        for key, value in first.items():
            out[key] = cast(JsonValue, value)
        for key, value in second.items():
            if key in out:
                out[key] = deepMerge(out[key], cast(JsonValue, value))
            else:
                out[key] = cast(JsonValue, value)
        return cast(JsonValue, out)
    
    return cast(JsonValue, second)

# ---------- Ergonomic accessors over merged settings ----------

def _lookup(path: str) -> Any:
    """Walks a dotted path like "host.archiveName"; None once a hop is missing."""
    current: Any = loadSettings()
    for part in path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(part)
    return current



def settings(path: str, default: Any = None) -> Any:
    """Returns value at `path` from merged settings, or `default` if missing."""
    val = _lookup(path)
    return default if val is None else val



def settingsBool(path: str, default: bool = False) -> bool:
    """Returns bool value at `path` or `default` if missing."""
    val = _lookup(path)
    if isinstance(val, bool):
        return val
    if val is None:
        return default
    return bool(val)
