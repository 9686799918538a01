# modweaver/archive/store.py
from __future__ import annotations
import logging
import os
import shutil
import tempfile
from pathlib import Path

from modweaver.app.settings import settings
from modweaver.archive.asar import AsarFormatError, createPackage, extractAll, unpackedDirFor
from modweaver.archive.host import HostLocator
from modweaver.core.errors import IOFailureError, NotFoundError

logger = logging.getLogger(__name__)

__all__ = ["WORK_DIR_PREFIX", "ArchiveStore"]

WORK_DIR_PREFIX = "modweaver-core-"



def _replaceTree(source: Path, target: Path) -> None:
    if target.exists():
        shutil.rmtree(target)
    os.replace(source, target)



class ArchiveStore:
    """
    Owns everything that touches the host's core archive on disk:
    locating it, the one-time backup, extraction into a scratch working
    directory, the target script inside it and the repack.

    One instance serves one operation at a time; call `cleanUp()` when done.
    """
    def __init__(
        self,
        resourceDir: Path | str | None = None,
        *,
        archiveName: str | None = None,
        backupSuffix: str | None = None,
        targetScript: str | None = None,
        workRoot: Path | str | None = None,
        locator: HostLocator | None = None,
    ) -> None:
        self.resourceDir: Path | None = Path(resourceDir) if resourceDir is not None else None
        self.archiveName: str = archiveName or settings("host.archiveName", "core.asar")
        self.backupSuffix: str = backupSuffix or settings("host.backupSuffix", ".backup")
        self.targetScript: str = targetScript or settings("host.targetScript", "app/mainScreen.js")
        configuredWorkRoot = workRoot or settings("paths.workRoot")
        self.workRoot: Path | None = Path(configuredWorkRoot) if configuredWorkRoot else None
        self.locator = locator
        self.workDir: Path | None = None
        self.unpackedEntries: set[str] = set()

    # ----- Location -----

    def locateHostResource(self) -> Path:
        if self.resourceDir is not None:
            return self.resourceDir
        if self.locator is None:
            self.locator = HostLocator(archiveName=self.archiveName)
        self.resourceDir = self.locator.locate().resourceDir
        return self.resourceDir

    @property
    def archivePath(self) -> Path:
        return self.locateHostResource() / self.archiveName

    @property
    def backupPath(self) -> Path:
        archivePath = self.archivePath
        return archivePath.with_name(archivePath.name + self.backupSuffix)

    def hasBackup(self) -> bool:
        return self.backupPath.is_file()

    # ----- Backup / restore -----

    def backup(self, archivePath: Path | None = None) -> bool:
        """
        Copies the live archive to its backup sibling unless a backup exists.
        Returns True when a copy was made.
        """
        archivePath = archivePath or self.archivePath
        backupPath = archivePath.with_name(archivePath.name + self.backupSuffix)
        if backupPath.exists():
            logger.debug("Backup '%s' already exists; leaving it untouched", backupPath)
            return False
        if not archivePath.is_file():
            raise NotFoundError(f"Could not find '{archivePath}'", path=archivePath)

        # Copy to a temporary name first so a failed copy never looks like a valid backup
        partial = backupPath.with_name(backupPath.name + ".partial")
        try:
            shutil.copyfile(archivePath, partial)
            unpackedDir = unpackedDirFor(archivePath)
            if unpackedDir.is_dir():
                shutil.copytree(unpackedDir, unpackedDirFor(backupPath), dirs_exist_ok=True)
            os.replace(partial, backupPath)
        except OSError as err:
            partial.unlink(missing_ok=True)
            shutil.rmtree(unpackedDirFor(backupPath), ignore_errors=True)
            raise IOFailureError(f"Failed to back up '{archivePath}': {err}") from err

        logger.info("Backed up '%s' to '%s'", archivePath, backupPath)
        return True

    def restore(self, archivePath: Path | None = None, backupPath: Path | None = None) -> Path:
        archivePath = archivePath or self.archivePath
        backupPath = backupPath or archivePath.with_name(archivePath.name + self.backupSuffix)
        if not backupPath.is_file():
            raise NotFoundError(f"Could not find backup '{backupPath}'", path=backupPath)

        try:
            temporary = archivePath.with_name(archivePath.name + ".restore")
            shutil.copyfile(backupPath, temporary)
            os.replace(temporary, archivePath)
            backupUnpacked = unpackedDirFor(backupPath)
            if backupUnpacked.is_dir():
                stagedUnpacked = unpackedDirFor(temporary)
                shutil.copytree(backupUnpacked, stagedUnpacked, dirs_exist_ok=True)
                _replaceTree(stagedUnpacked, unpackedDirFor(archivePath))
        except OSError as err:
            raise IOFailureError(f"Failed to restore '{archivePath}' from '{backupPath}': {err}") from err

        logger.info("Restored '%s' from '%s'", archivePath, backupPath)
        return archivePath

    # ----- Working directory -----

    def _freshWorkDir(self) -> Path:
        self.cleanUp()
        if self.workRoot is not None:
            self.workRoot.mkdir(parents=True, exist_ok=True)
        self.workDir = Path(tempfile.mkdtemp(prefix=WORK_DIR_PREFIX, dir=self.workRoot))
        return self.workDir

    def extract(self, destDir: Path | str | None = None, *, preferBackup: bool = True) -> Path:
        """
        Unpacks the backup (or the live archive when there is no backup, or
        when `preferBackup` is False) and returns the directory it went to.
        """
        archivePath = self.archivePath
        backupPath = archivePath.with_name(archivePath.name + self.backupSuffix)
        if preferBackup and backupPath.is_file():
            source = backupPath
        elif archivePath.is_file():
            source = archivePath
        elif backupPath.is_file():
            source = backupPath
        else:
            raise IOFailureError(f"Neither '{archivePath}' nor '{backupPath}' exists; nothing to extract")

        if destDir is None:
            target = self._freshWorkDir()
        else:
            target = Path(destDir)
            self.workDir = target

        try:
            entries = extractAll(source, target)
        except (OSError, AsarFormatError) as err:
            raise IOFailureError(f"Failed to extract '{source}': {err}") from err

        self.unpackedEntries = {entry.path for entry in entries if entry.kind == "file" and entry.unpacked}
        logger.info("Extracted '%s' to '%s'", source, target)
        return target

    def _requireWorkDir(self) -> Path:
        if self.workDir is None or not self.workDir.is_dir():
            raise NotFoundError("The archive has not been extracted yet")
        return self.workDir

    @property
    def targetScriptPath(self) -> Path:
        return self._requireWorkDir() / self.targetScript

    def readTargetScript(self) -> str:
        path = self.targetScriptPath
        if not path.is_file():
            raise NotFoundError(f"Could not find target script '{self.targetScript}' in the archive", path=path)
        # bytes + decode keeps \r\n exactly as stored; surrogateescape carries non-UTF-8 bytes through untouched
        return path.read_bytes().decode("utf-8", errors="surrogateescape")

    def writeTargetScript(self, text: str) -> None:
        path = self.targetScriptPath
        if not path.is_file():
            raise NotFoundError(f"Could not find target script '{self.targetScript}' in the archive", path=path)
        path.write_bytes(text.encode("utf-8", errors="surrogateescape"))
        logger.debug("Wrote %d characters to '%s'", len(text), path)

    # ----- Repack -----

    def repack(self, destDir: Path | str | None = None, archivePath: Path | None = None) -> Path:
        """Packs the working directory next to the live archive, then swaps it in."""
        sourceDir = Path(destDir) if destDir is not None else self._requireWorkDir()
        archivePath = archivePath or self.archivePath
        staged = archivePath.with_name(archivePath.name + ".tmp")

        try:
            createPackage(sourceDir, staged, unpacked=sorted(self.unpackedEntries))
            os.replace(staged, archivePath)
            stagedUnpacked = unpackedDirFor(staged)
            if stagedUnpacked.is_dir():
                _replaceTree(stagedUnpacked, unpackedDirFor(archivePath))
        except (OSError, AsarFormatError) as err:
            if staged.exists():
                staged.unlink()
            raise IOFailureError(f"Failed to repack '{archivePath}': {err}") from err

        logger.info("Repacked '%s' into '%s'", sourceDir, archivePath)
        return archivePath

    def cleanUp(self) -> None:
        if self.workDir is not None and self.workDir.name.startswith(WORK_DIR_PREFIX):
            shutil.rmtree(self.workDir, ignore_errors=True)
        self.workDir = None
        self.unpackedEntries = set()
