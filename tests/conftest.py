import sys
from dataclasses import dataclass
from pathlib import Path

import pytest

from modweaver.app.settings import SETTINGS_ENV_VAR, loadSettings
from modweaver.archive.asar import createPackage
from modweaver.archive.store import ArchiveStore
from modweaver.mods.manifest import ModManifest
from modweaver.patching.compiler import InjectionCompiler


ANCHOR = "mainWindow.on('swipe', (_, direction) => {"

MAIN_SCREEN_JS = (
    "'use strict';\n"
    "function launchMainAppWindow(isVisible) {\n"
    "  mainWindow = new BrowserWindow(mainWindowOptions);\n"
    "  mainWindow.setMenuBarVisibility(false);\n"
    f"  {ANCHOR}\n"
    "    switch (direction) {\n"
    "      case 'left':\n"
    "        mainWindow.webContents.goBack();\n"
    "        break;\n"
    "    }\n"
    "  });\n"
    "}\n"
)



def pytest_configure(config: pytest.Config) -> None:
    if sys.flags.optimize:
        raise RuntimeError("Assertions are disabled (optimize > 0)")



@pytest.fixture(autouse=True)
def isolatedSettings(tmp_path_factory, monkeypatch):
    """Never read the developer's ~/.modweaver/settings.json5 during tests."""
    missing = tmp_path_factory.mktemp("settings") / "settings.json5"
    monkeypatch.setenv(SETTINGS_ENV_VAR, str(missing))
    loadSettings.cache_clear()
    yield
    loadSettings.cache_clear()



@dataclass
class FakeHost:
    installRoot: Path
    versionDir: Path
    resourceDir: Path
    archivePath: Path
    sourceDir: Path



def writeCoreSources(root: Path, mainScreen: str = MAIN_SCREEN_JS) -> Path:
    (root / "app").mkdir(parents=True, exist_ok=True)
    (root / "app" / "mainScreen.js").write_bytes(mainScreen.encode("utf-8"))
    (root / "app" / "index.js").write_text("module.exports = require('./mainScreen');\n", encoding="utf-8")
    (root / "package.json").write_text('{"name":"discord_desktop_core","main":"index.js"}', encoding="utf-8")
    return root



def buildFakeHost(
    base: Path,
    *,
    versionDir: str = "app-1.0.9001",
    coreModule: str = "discord_desktop_core-1",
    mainScreen: str = MAIN_SCREEN_JS,
) -> FakeHost:
    installRoot = base / "Discord"
    version = installRoot / versionDir
    resourceDir = version / "modules" / coreModule / "discord_desktop_core"
    resourceDir.mkdir(parents=True, exist_ok=True)
    sourceDir = writeCoreSources(base / f"src-{versionDir}", mainScreen)
    archivePath = resourceDir / "core.asar"
    createPackage(sourceDir, archivePath)
    return FakeHost(installRoot, version, resourceDir, archivePath, sourceDir)



@pytest.fixture
def fakeHost(tmp_path) -> FakeHost:
    return buildFakeHost(tmp_path)



@pytest.fixture
def archiveStore(fakeHost, tmp_path) -> ArchiveStore:
    store = ArchiveStore(
        fakeHost.resourceDir,
        archiveName="core.asar",
        backupSuffix=".backup",
        targetScript="app/mainScreen.js",
        workRoot=tmp_path / "work",
    )
    yield store
    store.cleanUp()



@pytest.fixture
def compiler() -> InjectionCompiler:
    return InjectionCompiler(ANCHOR, windowHandle="mainWindow", configNamespace="__modConfig")



def makeManifest(modId: str, *dependencies: str, **extra) -> ModManifest:
    data = {
        "id": modId,
        "dependencies": [{"id": dep} for dep in dependencies],
        "events": {"dom-ready": {"on": [f"(win) => console.log('{modId} ready')"]}},
    }
    data.update(extra)
    return ModManifest.model_validate(data)
