# tests/modweaver/mods/test_mod_store.py
import json
from pathlib import Path

import pytest

from modweaver.core.errors import ManifestError, NotFoundError
from modweaver.mods.manifest import IncludeListMod, ModManifest
from modweaver.mods.store import MOD_MANIFEST_NAME, ModStore, defaultModFolder


def _writeExternalMod(folder: Path, data: dict) -> Path:
    folder.mkdir(parents=True, exist_ok=True)
    (folder / "mod.json").write_text(json.dumps(data), encoding="utf-8")
    return folder


@pytest.fixture
def modStore(tmp_path) -> ModStore:
    return ModStore(tmp_path / "mods")


def test_empty_store_creates_include_list(modStore):
    assert modStore.getIncludeList() == []
    assert json.loads(modStore.includeListPath.read_text(encoding="utf-8")) == []


def test_install_and_list(modStore, tmp_path):
    external = _writeExternalMod(tmp_path / "ext" / "a", {"id": "a", "version": "1.0.0"})

    manifest = modStore.installFromPath(external)

    assert manifest.id == "a"
    assert modStore.listMods() == ["a"]
    assert modStore.isDuplicate("a")
    assert [entry.id for entry in modStore.getIncludeList()] == ["a"]
    assert modStore.getManifest("a").version == "1.0.0"


def test_install_without_manifest(modStore, tmp_path):
    (tmp_path / "empty").mkdir()

    assert modStore.readExternalMod(tmp_path / "empty") is None
    with pytest.raises(NotFoundError):
        modStore.installFromPath(tmp_path / "empty")


def test_include_list_upsert_keeps_order(modStore):
    modStore.updateIncludeList(IncludeListMod(id="a"), IncludeListMod(id="b"))
    modStore.updateIncludeList(IncludeListMod(id="a", version="2.0.0"), IncludeListMod(id="c"))

    entries = modStore.getIncludeList()
    assert [entry.id for entry in entries] == ["a", "b", "c"]
    assert entries[0].version == "2.0.0"


def test_setEnabled(modStore):
    modStore.updateIncludeList(IncludeListMod(id="a"))

    updated = modStore.setEnabled("a", False)

    assert updated.enabled is False
    assert modStore.getIncludeList()[0].enabled is False
    with pytest.raises(NotFoundError):
        modStore.setEnabled("zzz", True)


def test_enabledManifests_in_include_order_skipping_broken(modStore, caplog):
    for modId in ("b", "a", "c"):
        modStore.saveManifest(ModManifest(id=modId))
    modStore.updateIncludeList(
        IncludeListMod(id="b"),
        IncludeListMod(id="a", enabled=False),
        IncludeListMod(id="c"),
        IncludeListMod(id="ghost"),
    )

    assert [manifest.id for manifest in modStore.enabledManifests()] == ["b", "c"]
    assert "ghost" in caplog.text


def test_invalid_manifest_raises_manifest_error(modStore):
    folder = modStore.modFolderFor("bad")
    folder.mkdir(parents=True)
    (folder / "mod.json").write_text('{"id": "has space"}', encoding="utf-8")

    with pytest.raises(ManifestError):
        modStore.getManifest("bad")


def test_json5_manifest_is_accepted(modStore):
    folder = modStore.modFolderFor("j5")
    folder.mkdir(parents=True)
    (folder / "mod.json").write_text("{id: 'j5', // comment\n version: '0.2.0',}", encoding="utf-8")

    assert modStore.getManifest("j5").version == "0.2.0"


def test_getManifest_missing(modStore):
    with pytest.raises(NotFoundError):
        modStore.getManifest("nope")


def test_removeMod_drops_folder_and_entry(modStore, tmp_path):
    modStore.installFromPath(_writeExternalMod(tmp_path / "ext" / "a", {"id": "a"}))

    modStore.removeMod("a")

    assert modStore.listMods() == []
    assert modStore.getIncludeList() == []


def test_written_files_are_strict_json(modStore):
    modStore.saveManifest(ModManifest(id="a", description="ünïcode"))

    raw = (modStore.modFolderFor("a") / "mod.json").read_text(encoding="utf-8")

    assert json.loads(raw)["description"] == "ünïcode"


@pytest.mark.parametrize(
    "platform, environ, expected",
    [
        ("win32", {"LOCALAPPDATA": "C:/L"}, Path("C:/L") / "DiscordMods"),
        ("linux", {"HOME": "/home/me"}, Path("/home/me/.config/discordmods")),
        ("darwin", {"HOME": "/Users/me"}, Path("/Users/me/Library/Application Support/discordmods")),
    ],
)
def test_defaultModFolder(platform, environ, expected):
    assert defaultModFolder(platform, environ) == expected


@pytest.mark.parametrize("modId", ["..", ".", "a/../..", "has space"])
def test_mod_ids_cannot_escape_the_install_folder(modStore, modId):
    keep = modStore.installFolder.parent / "keep.txt"
    keep.write_text("keep", encoding="utf-8")

    with pytest.raises(ManifestError):
        modStore.modFolderFor(modId)
    with pytest.raises(ManifestError):
        modStore.removeMod(modId)

    assert keep.exists()
    assert modStore.installFolder.exists()


def test_dotted_manifest_id_is_not_installed(modStore, tmp_path):
    external = _writeExternalMod(tmp_path / "ext" / "dots", {"id": ".."})

    with pytest.raises(ManifestError):
        modStore.installFromPath(external)

    assert not (modStore.installFolder.parent / MOD_MANIFEST_NAME).exists()
