# modweaver/mods/store.py
from __future__ import annotations
import logging
import os
import shutil
import sys
from pathlib import Path
from threading import RLock
from typing import Any

import json5
from pydantic import ValidationError

from modweaver.app.settings import settings
from modweaver.core.errors import ManifestError, NotFoundError
from modweaver.mods.manifest import MOD_ID_RE, IncludeListMod, ModManifest

logger = logging.getLogger(__name__)

__all__ = ["MOD_MANIFEST_NAME", "INCLUDE_LIST_NAME", "defaultModFolder", "ModStore"]

MOD_MANIFEST_NAME = "mod.json"
INCLUDE_LIST_NAME = "include.json"

# ------------------------------------------------------------------ #
# Layout under the mod folder
# ------------------------------------------------------------------ #
# include.json               # [{id, version, dependencies, enabled}, ...] in install order
# installed/<modId>/mod.json # the mod's manifest
#



def defaultModFolder(platform: str | None = None, environ: dict[str, str] | None = None) -> Path:
    """Per-platform folder holding installed mods and the include list."""
    platform = platform or sys.platform
    env = os.environ if environ is None else environ
    if platform == "win32":
        localAppData = env.get("LOCALAPPDATA")
        if not localAppData:
            raise NotFoundError("Could not find local app data (LOCALAPPDATA is not set)")
        return Path(localAppData) / "DiscordMods"
    home = env.get("HOME")
    if not home:
        raise NotFoundError("Could not find home directory (HOME is not set)")
    if platform.startswith("linux"):
        return Path(home) / ".config" / "discordmods"
    if platform == "darwin":
        return Path(home) / "Library" / "Application Support" / "discordmods"
    raise NotFoundError(f"Unsupported platform '{platform}'")



def _readJson5(path: Path) -> Any:
    return json5.loads(path.read_text(encoding="utf-8"))



def _writeJson(path: Path, obj: Any) -> None:
    # Strict JSON so other tools can read include.json / mod.json too
    text = json5.dumps(obj, ensure_ascii=False, indent=2, quote_keys=True, trailing_commas=False)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")



class ModStore:
    """
    Minimal manifest storage: installed mod manifests plus the include list
    that records which of them are enabled.
    
    The engine only needs `enabledManifests()`; the rest is bookkeeping for
    whatever shell installs and toggles mods.
    """
    def __init__(self, modFolder: Path | str | None = None) -> None:
        configured = modFolder or settings("paths.modFolder")
        self.modFolder = Path(configured) if configured else defaultModFolder()
        self.installFolder = self.modFolder / "installed"
        self._lock = RLock()
        self.installFolder.mkdir(parents=True, exist_ok=True)
    
    # ----- Include list -----

    @property
    def includeListPath(self) -> Path:
        return self.modFolder / INCLUDE_LIST_NAME

    def getIncludeList(self) -> list[IncludeListMod]:
        path = self.includeListPath
        if not path.exists():
            _writeJson(path, [])
            return []
        raw = _readJson5(path)
        if not isinstance(raw, list):
            raise ManifestError(f"Include list at '{path}' must be a JSON array")
        out: list[IncludeListMod] = []
        for entry in raw:
            try:
                out.append(IncludeListMod.model_validate(entry))
            except ValidationError as err:
                logger.warning("Skipping invalid include list entry %r: %s", entry, err)
        return out
    
    def updateIncludeList(self, *mods: IncludeListMod) -> list[IncludeListMod]:
        """Upserts entries by id; new mods are appended so install order is kept."""
        with self._lock:
            includeList = self.getIncludeList()
            for mod in mods:
                index = next((idx for idx, existing in enumerate(includeList) if existing.id == mod.id), -1)
                if index == -1:
                    includeList.append(mod)
                else:
                    includeList[index] = mod
            self._saveIncludeList(includeList)
            return includeList
    
    def setEnabled(self, modId: str, enabled: bool) -> IncludeListMod:
        with self._lock:
            includeList = self.getIncludeList()
            for idx, entry in enumerate(includeList):
                if entry.id == modId:
                    updated = entry.model_copy(update={"enabled": enabled})
                    includeList[idx] = updated
                    self._saveIncludeList(includeList)
                    logger.info("Mod '%s' %s", modId, "enabled" if enabled else "disabled")
                    return updated
        raise NotFoundError(f"Mod '{modId}' is not in the include list")
    
    def _saveIncludeList(self, includeList: list[IncludeListMod]) -> None:
        _writeJson(self.includeListPath, [entry.model_dump(exclude_none=True) for entry in includeList])
    
    # ----- Installed manifests -----

    def modFolderFor(self, modId: str) -> Path:
        folder = self.installFolder / modId
        if not MOD_ID_RE.fullmatch(modId) or folder.resolve().parent != self.installFolder.resolve():
            raise ManifestError(f"Mod id {modId!r} does not name a folder inside {self.installFolder}")
        return folder
    
    def isDuplicate(self, modId: str) -> bool:
        return self.modFolderFor(modId).exists()
    
    def listMods(self) -> list[str]:
        return sorted(path.name for path in self.installFolder.iterdir() if path.is_dir())
    
    def getManifest(self, modId: str) -> ModManifest:
        path = self.modFolderFor(modId) / MOD_MANIFEST_NAME
        if not path.exists():
            raise NotFoundError(f"Could not find {MOD_MANIFEST_NAME} for '{modId}'", path=path)
        return self._loadManifest(path)
    
    def saveManifest(self, manifest: ModManifest) -> Path:
        path = self.modFolderFor(manifest.id) / MOD_MANIFEST_NAME
        _writeJson(path, manifest.model_dump(exclude_none=True))
        return path
    
    def removeMod(self, modId: str) -> None:
        with self._lock:
            folder = self.modFolderFor(modId)
            if folder.exists():
                shutil.rmtree(folder)
            includeList = [entry for entry in self.getIncludeList() if entry.id != modId]
            self._saveIncludeList(includeList)
        logger.info("Removed mod '%s'", modId)
    
    def readExternalMod(self, external: Path | str) -> ModManifest | None:
        path = Path(external) / MOD_MANIFEST_NAME
        if not path.exists():
            return None
        return self._loadManifest(path)
    
    def installFromPath(self, external: Path | str) -> ModManifest:
        """Copies an unpacked mod's manifest into the store and enables it."""
        manifest = self.readExternalMod(external)
        if manifest is None:
            raise NotFoundError(f"No {MOD_MANIFEST_NAME} found in '{external}'", path=external)
        if self.isDuplicate(manifest.id):
            logger.info("Mod '%s' already installed; updating manifest", manifest.id)
        self.saveManifest(manifest)
        self.updateIncludeList(IncludeListMod.fromManifest(manifest, enabled=True))
        logger.info("Installed mod '%s@%s' from '%s'", manifest.id, manifest.version, external)
        return manifest
    
    def enabledManifests(self) -> list[ModManifest]:
        """Manifests of enabled mods, in include-list order."""
        out: list[ModManifest] = []
        for entry in self.getIncludeList():
            if not entry.enabled:
                continue
            try:
                out.append(self.getManifest(entry.id))
            except (NotFoundError, ManifestError) as err:
                logger.warning("Skipping enabled mod '%s': %s", entry.id, err)
        return out
    
    @staticmethod
    def _loadManifest(path: Path) -> ModManifest:
        try:
            raw = _readJson5(path)
            return ModManifest.model_validate(raw)
        except (ValueError, ValidationError) as err:
            raise ManifestError(f"Invalid mod manifest at '{path}': {err}") from err
