# modweaver/app/web.py
from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from modweaver.app.globals import getModStore, getOrchestrator
from modweaver.core.errors import (
    CyclicDependencyError,
    EngineStateError,
    IOFailureError,
    ManifestError,
    MissingDependencyError,
    ModWeaverError,
    NotFoundError,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# Patch, unpatch and removal all rewrite the same archive; never run two at once.
ENGINE_LOCK = threading.RLock()

_STATUS_BY_ERROR: tuple[tuple[type[ModWeaverError], int], ...] = (
    (NotFoundError, 404),
    (CyclicDependencyError, 409),
    (MissingDependencyError, 409),
    (ManifestError, 422),
    (EngineStateError, 503),
    (IOFailureError, 500),
)



class PatchRequest(BaseModel):
    dryRun: bool = False



class EnabledRequest(BaseModel):
    enabled: bool



def statusForError(err: ModWeaverError) -> int:
    for errorType, status in _STATUS_BY_ERROR:
        if isinstance(err, errorType):
            return status
    return 500



def _runEngine(operation: str, fn: Callable[[], dict[str, Any]]) -> JSONResponse:
    with ENGINE_LOCK:
        try:
            return JSONResponse(fn(), status_code=200)
        except ModWeaverError as err:
            status = statusForError(err)
            if status >= 500:
                logger.exception("%s failed: %s", operation, err)
            else:
                logger.warning("%s failed: %s", operation, err)
            return JSONResponse({"error": str(err), "type": type(err).__name__}, status_code=status)



@router.get("/health")
async def health():
    return {"ok": True, "ts": int(time.time() * 1000)}



@router.get("/mods")
def listMods():
    def run() -> dict[str, Any]:
        entries = getModStore().getIncludeList()
        return {
            "mods": [
                {
                    "id": entry.id,
                    "version": entry.version,
                    "enabled": entry.enabled,
                    "dependencies": [dep.id for dep in entry.dependencies],
                }
                for entry in entries
            ]
        }
    return _runEngine("listMods", run)



@router.post("/mods/{modId}/enabled")
def setModEnabled(modId: str, body: EnabledRequest):
    def run() -> dict[str, Any]:
        entry = getModStore().setEnabled(modId, body.enabled)
        return {"id": entry.id, "enabled": entry.enabled}
    return _runEngine("setModEnabled", run)



@router.post("/patch")
def patch(body: PatchRequest | None = None):
    dryRun = body.dryRun if body is not None else False
    def run() -> dict[str, Any]:
        manifests = getModStore().enabledManifests()
        result = getOrchestrator().patch(manifests, dryRun=dryRun)
        return {"success": "Patched!", "order": list(result.order), "dryRun": result.dryRun}
    return _runEngine("patch", run)



@router.post("/unpatch")
def unpatch():
    def run() -> dict[str, Any]:
        getOrchestrator().unpatch()
        return {"success": "Unpatched!"}
    return _runEngine("unpatch", run)



@router.delete("/mods/{modId}/region")
def removeModRegion(modId: str):
    def run() -> dict[str, Any]:
        result = getOrchestrator().removeMod(modId)
        return {"success": f"Removed {modId}", "remaining": list(result.order)}
    return _runEngine("removeMod", run)
