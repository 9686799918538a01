# modweaver/app/globals.py
from __future__ import annotations
from typing import cast, TYPE_CHECKING

from modweaver.app.context import PROCESS_REGISTRY
from modweaver.core.errors import EngineStateError

if TYPE_CHECKING:
    from modweaver.mods.store import ModStore
    from modweaver.patching.orchestrator import PatchOrchestrator

__all__ = ["MOD_STORE_KEY", "ORCHESTRATOR_KEY", "getModStore", "getOrchestrator"]

MOD_STORE_KEY = "mods.store"
ORCHESTRATOR_KEY = "patching.orchestrator"



def getModStore() -> ModStore:
    store = PROCESS_REGISTRY.get(MOD_STORE_KEY)
    if store is None:
        raise EngineStateError(
            "ModStore is None.\n"
            "No mod store was registered, so there is nothing to patch with.\n"
            "Build the app through createApp() or register one under 'mods.store'."
        )
    return cast("ModStore", store)



def getOrchestrator() -> PatchOrchestrator:
    orchestrator = PROCESS_REGISTRY.get(ORCHESTRATOR_KEY)
    if orchestrator is None:
        raise EngineStateError(
            "PatchOrchestrator is None.\n"
            "The core archive stays exactly as the host shipped it until one is registered."
        )
    return cast("PatchOrchestrator", orchestrator)
