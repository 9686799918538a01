# modweaver/patching/compiler.py
from __future__ import annotations
import logging
from collections.abc import Iterable

from modweaver.app.settings import settings
from modweaver.core.errors import AnchorNotFoundError, MissingDependencyError
from modweaver.core.jsonutils import jsLiteral
from modweaver.core.logging import getModLogger, logContext
from modweaver.mods.manifest import ModManifest
from modweaver.patching.markers import (
    MarkerRegion,
    closeMarker,
    findAllRegions,
    findRegion,
    insertText,
    openMarker,
    removeRegion,
)

logger = logging.getLogger(__name__)

__all__ = ["InjectionCompiler"]



def _lineStart(script: str, index: int) -> int:
    return script.rfind("\n", 0, index) + 1



def _newlineOf(script: str) -> str:
    return "\r\n" if "\r\n" in script else "\n"



class InjectionCompiler:
    """
    Turns manifests into marker regions and splices them into the target script.

    Regions of mods without dependencies go right before the line holding the
    anchor; a mod with dependencies goes right after the last region of the
    mods it depends on, so a script compiled in load order keeps that order.
    """
    def __init__(
        self,
        anchorPattern: str | None = None,
        *,
        windowHandle: str | None = None,
        configNamespace: str | None = None,
    ) -> None:
        self.anchorPattern: str = anchorPattern or settings(
            "inject.anchorPattern", "mainWindow.on('swipe', (_, direction) => {"
        )
        self.windowHandle: str = windowHandle or settings("inject.windowHandle", "mainWindow")
        self.configNamespace: str = configNamespace or settings("inject.configNamespace", "__modConfig")

    # ----- Region text -----

    def _configLines(self, manifest: ModManifest) -> list[str]:
        ns = self.configNamespace
        win = self.windowHandle
        idJson = jsLiteral(manifest.id)
        configLiteral = jsLiteral(manifest.configValues())
        windowSide = f"window.{ns} = window.{ns} || {{}}; window.{ns}[{idJson}] = {configLiteral};"
        return [
            f"global.{ns} = global.{ns} || {{}};",
            f"global.{ns}[{idJson}] = {configLiteral};",
            f'{win}.webContents.on("dom-ready", () => {win}.webContents.executeJavaScript({jsLiteral(windowSide)}));',
        ]

    def _hookLines(self, manifest: ModManifest) -> list[str]:
        win = self.windowHandle
        args = win
        if manifest.hasConfig:
            args += f", global.{self.configNamespace}[{jsLiteral(manifest.id)}]"

        lines: list[str] = []
        for eventName, hooks in manifest.events.items():
            eventJson = jsLiteral(eventName)
            for method, entries in (("on", hooks.on), ("once", hooks.once)):
                for code in entries:
                    code = code.strip()
                    if not code:
                        continue
                    lines.append(f"{win}.webContents.{method}({eventJson}, () => ({code})({args}));")
        return lines

    def _windowModificationLines(self, manifest: ModManifest) -> list[str]:
        return [
            f"({code.strip()})({self.windowHandle});"
            for code in manifest.windowModifications
            if code.strip()
        ]

    def compileRegion(self, manifest: ModManifest, *, newline: str = "\n") -> str:
        lines = [openMarker(manifest.id)]
        if manifest.hasConfig:
            lines.extend(self._configLines(manifest))
        lines.extend(self._hookLines(manifest))
        lines.extend(self._windowModificationLines(manifest))
        lines.append(closeMarker(manifest.id))
        return newline.join(lines) + newline

    # ----- Splicing -----

    def findAnchor(self, script: str) -> int:
        """Start of the first line holding the anchor outside of any mod region."""
        regions = findAllRegions(script)
        matches: list[int] = []
        index = script.find(self.anchorPattern)
        while index != -1:
            if not any(region.start <= index < region.end for region in regions):
                matches.append(index)
            index = script.find(self.anchorPattern, index + len(self.anchorPattern))

        if not matches:
            raise AnchorNotFoundError(self.anchorPattern)
        if len(matches) > 1:
            logger.warning("Anchor %r occurs more than once; using the first occurrence", self.anchorPattern)
        return _lineStart(script, matches[0])

    def applyMod(self, script: str, manifest: ModManifest) -> str:
        with logContext(modId=manifest.id):
            modLogger = getModLogger(manifest.id)

            existing = findRegion(script, manifest.id)
            if existing is not None:
                script = removeRegion(script, existing)
                modLogger.debug("Replacing existing region")

            dependencyRegions: list[MarkerRegion] = []
            for dependencyId in manifest.dependencyIds:
                region = findRegion(script, dependencyId)
                if region is None:
                    raise MissingDependencyError(manifest.id, dependencyId)
                dependencyRegions.append(region)

            if dependencyRegions:
                insertAt = max(region.end for region in dependencyRegions)
            else:
                insertAt = self.findAnchor(script)

            newline = _newlineOf(script)
            text = self.compileRegion(manifest, newline=newline)
            if insertAt > 0 and script[insertAt - 1] != "\n":
                # Dependency region ended the file without a line terminator
                text = newline + text

            modLogger.info("Injected at offset %d", insertAt)
            return insertText(script, insertAt, text)

    def compile(self, script: str, orderedManifests: Iterable[ModManifest]) -> str:
        """Applies every manifest in the given (already resolved) order."""
        for manifest in orderedManifests:
            script = self.applyMod(script, manifest)
        return script
