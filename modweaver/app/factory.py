# modweaver/app/factory.py
from __future__ import annotations
import logging
from collections.abc import Sequence

from fastapi import APIRouter, FastAPI

from modweaver.app.context import PROCESS_REGISTRY
from modweaver.app.globals import MOD_STORE_KEY, ORCHESTRATOR_KEY
from modweaver.mods.store import ModStore
from modweaver.patching.orchestrator import PatchOrchestrator



def createApp(
    *,
    modStore: ModStore | None = None,
    orchestrator: PatchOrchestrator | None = None,
    extraRouters: Sequence[APIRouter] = (),
    configureLogs: bool = True,
) -> FastAPI:
    if configureLogs:
        from modweaver.core.logger import configureLogging
        configureLogging()

    logger = logging.getLogger(__name__)

    if modStore is None:
        modStore = ModStore()
    if orchestrator is None:
        from modweaver.archive.store import ArchiveStore
        from modweaver.patching.compiler import InjectionCompiler
        orchestrator = PatchOrchestrator(ArchiveStore(), InjectionCompiler())

    PROCESS_REGISTRY.register(MOD_STORE_KEY, modStore, overwrite=True)
    PROCESS_REGISTRY.register(ORCHESTRATOR_KEY, orchestrator, overwrite=True)

    app = FastAPI(title="modweaver")

    from modweaver.app.web import router as webRouter
    app.include_router(webRouter)

    for router in extraRouters:
        app.include_router(router)

    logger.info("modweaver initialized with mod folder '%s' and %d extra router(s)", modStore.modFolder, len(extraRouters))
    return app
