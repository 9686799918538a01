# modweaver/core/hashing.py
from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Any

__all__ = ["ASAR_BLOCK_SIZE", "fileIntegrity"]



# Block size used by the reference asar packer for integrity blocks.
ASAR_BLOCK_SIZE = 4 * 1024 * 1024



def fileIntegrity(path: str | Path, blockSize: int = ASAR_BLOCK_SIZE) -> dict[str, Any]:
    """
    Returns the asar integrity record for a file:
    a SHA-256 of the whole content plus one SHA-256 per `blockSize` chunk.
    """
    path = Path(path)
    whole = hashlib.sha256()
    blocks: list[str] = []

    with path.open("rb") as file:
        for chunk in iter(lambda: file.read(blockSize), b""):
            whole.update(chunk)
            blocks.append(hashlib.sha256(chunk).hexdigest())
    
    if not blocks:
        # An empty file still has one (empty) block
        blocks.append(hashlib.sha256(b"").hexdigest())

    return {
        "algorithm": "SHA256",
        "hash": whole.hexdigest(),
        "blockSize": blockSize,
        "blocks": blocks,
    }
