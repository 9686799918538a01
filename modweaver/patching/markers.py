# modweaver/patching/markers.py
"""
Line-oriented scanner for mod regions in the target script.

A region for mod `foo` is every line from `// MOD: foo` through
`// END MOD: foo`, including the terminator of the closing line. Markers must
sit on their own line (surrounding whitespace is ignored) and ids compare
exactly, so `foo` never matches `// MOD: foobar`.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Iterator

logger = logging.getLogger(__name__)

__all__ = [
    "OPEN_PREFIX",
    "CLOSE_PREFIX",
    "MarkerRegion",
    "openMarker",
    "closeMarker",
    "findRegion",
    "findAllRegions",
    "removeRegion",
    "insertText",
]

OPEN_PREFIX = "// MOD: "
CLOSE_PREFIX = "// END MOD: "



@dataclass(frozen=True, slots=True)
class MarkerRegion:
    modId: str
    start: int
    end: int
    text: str



def openMarker(modId: str) -> str:
    return f"{OPEN_PREFIX}{modId}"



def closeMarker(modId: str) -> str:
    return f"{CLOSE_PREFIX}{modId}"



def _lines(script: str) -> Iterator[tuple[int, int, str]]:
    """Yields (lineStart, lineEndIncludingTerminator, strippedContent)."""
    # Only "\n" ends a line; str.splitlines would also split on U+2028 inside JS strings
    offset = 0
    length = len(script)
    while offset < length:
        newline = script.find("\n", offset)
        lineEnd = length if newline == -1 else newline + 1
        yield offset, lineEnd, script[offset:lineEnd].strip()
        offset = lineEnd



def findRegion(script: str, modId: str) -> MarkerRegion | None:
    opening = openMarker(modId)
    closing = closeMarker(modId)
    start: int | None = None

    for lineStart, lineEnd, content in _lines(script):
        if start is None:
            if content == opening:
                start = lineStart
        elif content == closing:
            return MarkerRegion(modId=modId, start=start, end=lineEnd, text=script[start:lineEnd])

    if start is not None:
        logger.warning("Found '%s' without a matching '%s'; ignoring it", opening, closing)
    return None



def findAllRegions(script: str) -> list[MarkerRegion]:
    """Every well-formed region in script order. Regions do not nest."""
    regions: list[MarkerRegion] = []
    openId: str | None = None
    start = 0

    for lineStart, lineEnd, content in _lines(script):
        if openId is None:
            if content.startswith(OPEN_PREFIX):
                openId = content[len(OPEN_PREFIX):].strip()
                start = lineStart
        elif content == closeMarker(openId):
            regions.append(MarkerRegion(modId=openId, start=start, end=lineEnd, text=script[start:lineEnd]))
            openId = None

    if openId is not None:
        logger.warning("Unterminated region for mod '%s'", openId)
    return regions



def removeRegion(script: str, region: MarkerRegion) -> str:
    if script[region.start:region.end] != region.text:
        raise ValueError(f"Region for mod '{region.modId}' does not match the script anymore")
    return script[:region.start] + script[region.end:]



def insertText(script: str, index: int, text: str) -> str:
    if index < 0 or index > len(script):
        raise IndexError(f"Insert position {index} outside of script (length {len(script)})")
    return script[:index] + text + script[index:]
