# modweaver/archive/host.py
from __future__ import annotations
import logging
import os
import re
import sys
from dataclasses import dataclass
from pathlib import Path

from modweaver.app.settings import settings
from modweaver.core.errors import NotFoundError
from modweaver.semver.semver import (
    SemVerVersion,
    SemVerResolver,
    parseSemVerRequirement,
    parseSemVerVersion,
)

logger = logging.getLogger(__name__)

__all__ = ["HostInstall", "HostLocator", "defaultInstallRoot"]



def defaultInstallRoot(platform: str | None = None, environ: dict[str, str] | None = None) -> Path:
    """Where the host application keeps its versioned installs on this platform."""
    platform = platform or sys.platform
    env = os.environ if environ is None else environ
    if platform == "win32":
        localAppData = env.get("LOCALAPPDATA")
        if not localAppData:
            raise NotFoundError("Could not find local app data (LOCALAPPDATA is not set)")
        return Path(localAppData) / "Discord"
    home = env.get("HOME")
    if not home:
        raise NotFoundError("Could not find home directory (HOME is not set)")
    if platform.startswith("linux"):
        return Path(home) / ".config" / "discord"
    if platform == "darwin":
        return Path(home) / "Library" / "Application Support" / "discord"
    raise NotFoundError(f"Unsupported platform '{platform}'")



@dataclass(frozen=True, slots=True)
class HostInstall:
    version: SemVerVersion
    versionDir: Path
    resourceDir: Path
    archivePath: Path



class HostLocator:
    """
    Finds the core archive of the newest installed host version.

    Each step raises NotFoundError naming the path it could not find:
    install root -> version dir (with `modules/`) -> core module dir -> archive.
    """
    def __init__(
        self,
        installRoot: Path | str | None = None,
        *,
        versionDirPattern: str | None = None,
        versionRequirement: str | None = None,
        coreModulePrefix: str | None = None,
        coreModuleDir: str | None = None,
        archiveName: str | None = None,
    ) -> None:
        configuredRoot = installRoot or settings("host.installRoot")
        self._installRoot = Path(configuredRoot) if configuredRoot else None
        self.versionDirRe = re.compile(versionDirPattern or settings("host.versionDirPattern", r"^(?:app-)?(?P<version>\d+\.\d+\.\d+)$"))
        self.versionRequirement = parseSemVerRequirement(
            versionRequirement if versionRequirement is not None else settings("host.versionRequirement")
        )
        self.coreModulePrefix = coreModulePrefix or settings("host.coreModulePrefix", "discord_desktop_core")
        self.coreModuleDir = coreModuleDir or settings("host.coreModuleDir", "discord_desktop_core")
        self.archiveName = archiveName or settings("host.archiveName", "core.asar")

    @property
    def installRoot(self) -> Path:
        if self._installRoot is None:
            self._installRoot = defaultInstallRoot()
        return self._installRoot

    def versionCandidates(self) -> list[tuple[SemVerVersion, Path]]:
        """Version directories that look like installs, in directory-name order."""
        root = self.installRoot
        if not root.is_dir():
            raise NotFoundError(f"Could not find host install folder '{root}'", path=root)

        candidates: list[tuple[SemVerVersion, Path]] = []
        for entry in sorted(root.iterdir(), key=lambda path: path.name):
            if not entry.is_dir():
                continue
            mtch = self.versionDirRe.match(entry.name)
            if not mtch:
                continue
            if not (entry / "modules").is_dir():
                logger.debug("Ignoring '%s': no modules folder", entry)
                continue
            raw = mtch.groupdict().get("version") or entry.name
            try:
                version = parseSemVerVersion(raw)
            except ValueError:
                logger.debug("Ignoring '%s': '%s' is not a semantic version", entry, raw)
                continue
            candidates.append((version, entry))
        return candidates

    def latestVersionDir(self) -> tuple[SemVerVersion, Path]:
        candidates = self.versionCandidates()
        result = SemVerResolver.matchCandidates(candidates, self.versionRequirement)
        if result.best is None:
            if candidates and self.versionRequirement is not None:
                raise NotFoundError(
                    f"No host version in '{self.installRoot}' satisfies the configured version requirement",
                    path=self.installRoot,
                )
            raise NotFoundError(f"Could not find a host version folder in '{self.installRoot}'", path=self.installRoot)
        return result.best

    def coreModuleFolder(self, versionDir: Path) -> Path:
        modulesDir = versionDir / "modules"
        matches = sorted(
            entry for entry in modulesDir.iterdir()
            if entry.is_dir() and entry.name.startswith(self.coreModulePrefix)
        )
        if not matches:
            raise NotFoundError(f"Could not find the core module folder in '{modulesDir}'", path=modulesDir)
        return matches[0]

    def locate(self) -> HostInstall:
        version, versionDir = self.latestVersionDir()
        resourceDir = self.coreModuleFolder(versionDir) / self.coreModuleDir
        archivePath = resourceDir / self.archiveName
        if not archivePath.is_file():
            raise NotFoundError(f"Could not find '{archivePath}'", path=archivePath)
        logger.info("Located host %s core archive at '%s'", version, archivePath)
        return HostInstall(version=version, versionDir=versionDir, resourceDir=resourceDir, archivePath=archivePath)
