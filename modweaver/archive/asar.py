# modweaver/archive/asar.py
"""
Reader and writer for Electron's asar single-file archives.

Layout (all integers little-endian uint32):

```
[4][headerPickleSize]                 size pickle
[payloadSize][jsonLength][json][pad]  header pickle, padded to 4 bytes
[file payloads ...]                   base offset = 8 + headerPickleSize
```

The JSON header is a tree: directories are ``{"files": {...}}``, files are
``{"size": int, "offset": "<decimal string>"}`` (plus optional ``executable``,
``unpacked`` and ``integrity``), links are ``{"link": "relative/target"}``.
Payloads of ``unpacked`` files live next to the archive in
``<archive>.unpacked/`` instead of inside it.
"""
from __future__ import annotations

import json
import logging
import os
import shutil
import stat
import struct
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from modweaver.core.hashing import fileIntegrity

logger = logging.getLogger(__name__)

__all__ = [
    "AsarFormatError",
    "AsarEntry",
    "AsarHeader",
    "readHeader",
    "listEntries",
    "readFile",
    "extractAll",
    "createPackage",
    "unpackedDirFor",
]

UINT32 = struct.Struct("<I")
SIZE_PICKLE = struct.Struct("<II")
HEADER_PICKLE_PREFIX = struct.Struct("<II")

# Guards against reading absurd header sizes out of a corrupt file.
MAX_HEADER_SIZE = 256 * 1024 * 1024
COPY_CHUNK = 1024 * 1024



class AsarFormatError(ValueError):
    """Raised when an archive does not follow the asar layout."""



@dataclass(frozen=True, slots=True)
class AsarEntry:
    """One node of the archive, flattened. `path` uses forward slashes."""
    path: str
    kind: str  # "file", "directory" or "link"
    size: int = 0
    offset: int = 0
    executable: bool = False
    unpacked: bool = False
    link: str | None = None



@dataclass(frozen=True, slots=True)
class AsarHeader:
    files: dict[str, Any]
    headerSize: int
    baseOffset: int



def unpackedDirFor(archivePath: Path) -> Path:
    return archivePath.with_name(archivePath.name + ".unpacked")



def _align4(length: int) -> int:
    return (length + 3) & ~3



# ------------------------------------------------------------------ #
# Reading
# ------------------------------------------------------------------ #

def _readExact(handle, size: int, what: str) -> bytes:
    data = handle.read(size)
    if len(data) != size:
        raise AsarFormatError(f"truncated asar archive while reading {what}")
    return data



def readHeader(archivePath: Path | str) -> AsarHeader:
    archivePath = Path(archivePath)
    with archivePath.open("rb") as handle:
        sizePickle = _readExact(handle, SIZE_PICKLE.size, "size pickle")
        payloadLen, headerSize = SIZE_PICKLE.unpack(sizePickle)
        if payloadLen != UINT32.size:
            raise AsarFormatError(f"unexpected size pickle payload length {payloadLen} in '{archivePath}'")
        if headerSize < HEADER_PICKLE_PREFIX.size or headerSize > MAX_HEADER_SIZE:
            raise AsarFormatError(f"implausible asar header size {headerSize} in '{archivePath}'")

        headerPickle = _readExact(handle, headerSize, "header")

    _payloadSize, jsonLength = HEADER_PICKLE_PREFIX.unpack_from(headerPickle, 0)
    start = HEADER_PICKLE_PREFIX.size
    if start + jsonLength > len(headerPickle):
        raise AsarFormatError(f"asar header string overruns header pickle in '{archivePath}'")
    rawJson = headerPickle[start:start + jsonLength]

    try:
        parsed = json.loads(rawJson.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as err:
        raise AsarFormatError(f"asar header is not valid JSON in '{archivePath}': {err}") from err
    if not isinstance(parsed, dict) or not isinstance(parsed.get("files"), dict):
        raise AsarFormatError(f"asar header has no root 'files' object in '{archivePath}'")

    return AsarHeader(
        files=parsed["files"],
        headerSize=headerSize,
        baseOffset=SIZE_PICKLE.size + headerSize,
    )



def _walk(files: dict[str, Any], prefix: str = "") -> Iterator[AsarEntry]:
    for name, node in files.items():
        if not isinstance(node, dict) or not name or name in (".", "..") or "/" in name or "\\" in name:
            raise AsarFormatError(f"invalid asar entry name {prefix + str(name)!r}")
        path = f"{prefix}{name}"
        if "files" in node:
            yield AsarEntry(path=path, kind="directory")
            yield from _walk(node["files"], prefix=f"{path}/")
        elif "link" in node:
            yield AsarEntry(path=path, kind="link", link=str(node["link"]))
        else:
            try:
                size = int(node.get("size", 0))
                offset = int(node.get("offset", 0)) if not node.get("unpacked") else 0
            except (TypeError, ValueError) as err:
                raise AsarFormatError(f"invalid size/offset for asar entry {path!r}") from err
            yield AsarEntry(
                path=path,
                kind="file",
                size=size,
                offset=offset,
                executable=bool(node.get("executable", False)),
                unpacked=bool(node.get("unpacked", False)),
            )



def listEntries(header: AsarHeader) -> list[AsarEntry]:
    """All entries, depth-first in header order."""
    return list(_walk(header.files))



def _copyRange(src, dst, size: int) -> None:
    remaining = size
    while remaining > 0:
        chunk = src.read(min(COPY_CHUNK, remaining))
        if not chunk:
            raise AsarFormatError("asar payload ends before the declared file size")
        dst.write(chunk)
        remaining -= len(chunk)



def readFile(archivePath: Path | str, entryPath: str) -> bytes:
    """Returns the payload of a single file without extracting the archive."""
    archivePath = Path(archivePath)
    header = readHeader(archivePath)
    for entry in listEntries(header):
        if entry.path != entryPath:
            continue
        if entry.kind != "file":
            raise AsarFormatError(f"asar entry {entryPath!r} is a {entry.kind}, not a file")
        if entry.unpacked:
            return (unpackedDirFor(archivePath) / entry.path).read_bytes()
        with archivePath.open("rb") as handle:
            handle.seek(header.baseOffset + entry.offset)
            return _readExact(handle, entry.size, entryPath)
    raise FileNotFoundError(f"'{entryPath}' not found in '{archivePath}'")



def _safeTarget(destDir: Path, entryPath: str) -> Path:
    target = (destDir / entryPath).resolve(strict=False)
    if not target.is_relative_to(destDir):
        raise AsarFormatError(f"asar entry {entryPath!r} escapes the extraction directory")
    return target



def extractAll(archivePath: Path | str, destDir: Path | str) -> list[AsarEntry]:
    """
    Unpacks every entry of `archivePath` into `destDir`.

    Returns the flattened entry list so callers can remember which files were
    unpacked or executable in the original archive.
    """
    archivePath = Path(archivePath)
    destDir = Path(destDir).resolve()
    header = readHeader(archivePath)
    entries = listEntries(header)
    unpackedRoot = unpackedDirFor(archivePath)

    destDir.mkdir(parents=True, exist_ok=True)
    with archivePath.open("rb") as handle:
        for entry in entries:
            target = _safeTarget(destDir, entry.path)
            if entry.kind == "directory":
                target.mkdir(parents=True, exist_ok=True)
                continue

            target.parent.mkdir(parents=True, exist_ok=True)
            if entry.kind == "link":
                linkTarget = _safeTarget(destDir, os.path.normpath(os.path.join(os.path.dirname(entry.path), entry.link or "")))
                try:
                    os.symlink(os.path.relpath(linkTarget, target.parent), target)
                except OSError as err:
                    logger.warning("Skipping asar link %r -> %r: %s", entry.path, entry.link, err)
                continue

            if entry.unpacked:
                source = unpackedRoot / entry.path
                if not source.exists():
                    raise FileNotFoundError(f"unpacked file '{source}' referenced by '{archivePath}' is missing")
                shutil.copyfile(source, target)
            else:
                handle.seek(header.baseOffset + entry.offset)
                with target.open("wb") as out:
                    _copyRange(handle, out, entry.size)

            if entry.executable:
                target.chmod(target.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

    logger.debug("Extracted %d asar entries from '%s' to '%s'", len(entries), archivePath, destDir)
    return entries



# ------------------------------------------------------------------ #
# Writing
# ------------------------------------------------------------------ #

def _isExecutable(path: Path) -> bool:
    if os.name == "nt":
        return False
    return bool(path.stat().st_mode & stat.S_IXUSR)



def _buildTree(
    srcDir: Path,
    current: Path,
    unpacked: set[str],
    payloads: list[Path],
    cursor: list[int],
) -> dict[str, Any]:
    files: dict[str, Any] = {}
    for child in sorted(current.iterdir(), key=lambda path: path.name):
        relPath = child.relative_to(srcDir).as_posix()

        if child.is_symlink():
            resolved = child.resolve(strict=False)
            if resolved.is_relative_to(srcDir.resolve()):
                files[child.name] = {"link": os.path.relpath(resolved, current.resolve()).replace(os.sep, "/")}
                continue
            logger.warning("Packing symlink '%s' as a regular entry; it points outside '%s'", relPath, srcDir)

        if child.is_dir():
            files[child.name] = {"files": _buildTree(srcDir, child, unpacked, payloads, cursor)}
            continue

        size = child.stat().st_size
        node: dict[str, Any] = {"size": size}
        if relPath in unpacked:
            node["unpacked"] = True
        else:
            node["offset"] = str(cursor[0])
            cursor[0] += size
            payloads.append(child)
        if _isExecutable(child):
            node["executable"] = True
        node["integrity"] = fileIntegrity(child)
        files[child.name] = node
    return files



def _encodeHeader(tree: dict[str, Any]) -> bytes:
    rawJson = json.dumps({"files": tree}, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
    padded = rawJson + b"\x00" * (_align4(len(rawJson)) - len(rawJson))
    headerPayload = UINT32.pack(len(rawJson)) + padded
    headerPickle = UINT32.pack(len(headerPayload)) + headerPayload
    return SIZE_PICKLE.pack(UINT32.size, len(headerPickle)) + headerPickle



def createPackage(srcDir: Path | str, destPath: Path | str, *, unpacked: Iterable[str] = ()) -> None:
    """
    Packs `srcDir` into a single asar file at `destPath`, overwriting it.

    Paths listed in `unpacked` (forward-slash, relative to `srcDir`) are flagged
    in the header and copied to `<destPath>.unpacked/` instead of being embedded.
    """
    srcDir = Path(srcDir)
    destPath = Path(destPath)
    if not srcDir.is_dir():
        raise FileNotFoundError(f"Cannot pack '{srcDir}': not a directory")

    unpackedSet = {path.strip("/") for path in unpacked}
    payloads: list[Path] = []
    tree = _buildTree(srcDir, srcDir, unpackedSet, payloads, [0])
    header = _encodeHeader(tree)

    destPath.parent.mkdir(parents=True, exist_ok=True)
    with destPath.open("wb") as out:
        out.write(header)
        for payload in payloads:
            with payload.open("rb") as src:
                shutil.copyfileobj(src, out, COPY_CHUNK)

    if unpackedSet:
        unpackedRoot = unpackedDirFor(destPath)
        for relPath in sorted(unpackedSet):
            source = srcDir / relPath
            if not source.is_file():
                continue
            target = unpackedRoot / relPath
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source, target)

    logger.debug("Packed %d payload(s) from '%s' into '%s'", len(payloads), srcDir, destPath)
