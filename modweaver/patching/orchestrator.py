# modweaver/patching/orchestrator.py
from __future__ import annotations
import logging
from collections.abc import Iterable
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterator

from modweaver.archive.store import ArchiveStore
from modweaver.core.errors import NotFoundError
from modweaver.core.logging import logContext
from modweaver.mods.manifest import ModManifest
from modweaver.mods.resolver import DependencyResolver
from modweaver.patching.compiler import InjectionCompiler
from modweaver.patching.markers import findAllRegions, findRegion, removeRegion

logger = logging.getLogger(__name__)

__all__ = ["PatchState", "PatchResult", "PatchOrchestrator"]



class PatchState(str, Enum):
    IDLE = "idle"
    LOCATED = "located"
    BACKED_UP = "backedUp"
    EXTRACTED = "extracted"
    REWRITTEN = "rewritten"
    REPACKED = "repacked"
    RESTORED = "restored"



@dataclass(frozen=True, slots=True)
class PatchResult:
    archivePath: Path
    order: tuple[str, ...]
    dryRun: bool = False



class PatchOrchestrator:
    """
    Runs one patch, unpatch or single-mod removal end to end.

    patch:   IDLE -> LOCATED -> BACKED_UP -> EXTRACTED -> REWRITTEN -> REPACKED
    unpatch: IDLE -> LOCATED -> RESTORED

    The live archive is only written by the final repack/restore step, so a
    failure anywhere earlier leaves it exactly as it was.
    """
    def __init__(self, store: ArchiveStore, compiler: InjectionCompiler) -> None:
        self.store = store
        self.compiler = compiler
        self.state = PatchState.IDLE

    def _transition(self, state: PatchState) -> None:
        logger.debug("State %s -> %s", self.state.value, state.value)
        self.state = state

    @contextmanager
    def _operation(self, name: str) -> Iterator[None]:
        self.state = PatchState.IDLE
        with logContext(operation=name):
            try:
                yield
            except Exception:
                logger.debug("%s aborted in state %s", name, self.state.value)
                self.state = PatchState.IDLE
                raise
            finally:
                self.store.cleanUp()

    def patch(self, manifests: Iterable[ModManifest], *, dryRun: bool = False) -> PatchResult:
        with self._operation("patch"):
            # Ordering first: a cycle must fail before anything touches the disk
            ordered = DependencyResolver(manifests).resolve()
            order = tuple(manifest.id for manifest in ordered)

            archivePath = self.store.archivePath
            self._transition(PatchState.LOCATED)

            self.store.backup()
            self._transition(PatchState.BACKED_UP)

            self.store.extract(preferBackup=True)
            self._transition(PatchState.EXTRACTED)

            script = self.compiler.compile(self.store.readTargetScript(), ordered)
            self.store.writeTargetScript(script)
            self._transition(PatchState.REWRITTEN)

            if dryRun:
                logger.info("Dry run: compiled %d mod(s) without repacking: %s", len(order), ", ".join(order) or "-")
            else:
                self.store.repack()
                self._transition(PatchState.REPACKED)
                logger.info("Patched '%s' with %d mod(s): %s", archivePath, len(order), ", ".join(order) or "-")

            return PatchResult(archivePath=archivePath, order=order, dryRun=dryRun)

    def unpatch(self, *, dryRun: bool = False) -> Path:
        with self._operation("unpatch"):
            archivePath = self.store.archivePath
            self._transition(PatchState.LOCATED)

            if dryRun:
                if not self.store.hasBackup():
                    raise NotFoundError(f"Could not find backup '{self.store.backupPath}'", path=self.store.backupPath)
                logger.info("Dry run: would restore '%s' from '%s'", archivePath, self.store.backupPath)
                return archivePath

            self.store.restore()
            self._transition(PatchState.RESTORED)
            return archivePath

    def removeMod(self, modId: str, *, dryRun: bool = False) -> PatchResult:
        """Takes one mod's region out of the installed (patched) script."""
        with self._operation("removeMod"), logContext(modId=modId):
            archivePath = self.store.archivePath
            self._transition(PatchState.LOCATED)

            self.store.backup()
            self._transition(PatchState.BACKED_UP)

            self.store.extract(preferBackup=False)
            self._transition(PatchState.EXTRACTED)

            script = self.store.readTargetScript()
            region = findRegion(script, modId)
            if region is None:
                raise NotFoundError(f"Mod '{modId}' has no region in the installed script")
            script = removeRegion(script, region)
            self.store.writeTargetScript(script)
            self._transition(PatchState.REWRITTEN)

            remaining = tuple(region.modId for region in findAllRegions(script))
            if not dryRun:
                self.store.repack()
                self._transition(PatchState.REPACKED)
            logger.info("Removed region of '%s'%s", modId, " (dry run)" if dryRun else "")
            return PatchResult(archivePath=archivePath, order=remaining, dryRun=dryRun)

    def installedModIds(self) -> list[str]:
        """Mod ids with a region in the live archive's target script."""
        with self._operation("inspect"):
            self.store.extract(preferBackup=False)
            return [region.modId for region in findAllRegions(self.store.readTargetScript())]
