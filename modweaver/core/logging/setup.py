# modweaver/core/logging/setup.py
from __future__ import annotations
import logging
import logging.handlers
from pathlib import Path

from modweaver.app.settings import settings, settingsBool
from .formatters import DevFormatter, JsonFormatter
from .filters import RecurringSuppressFilter

__all__ = [
    "NO_PROPAGATE",
    "configureLogging",
]



# Disable propagation from common libraries
NO_PROPAGATE = [
    "uvicorn", "uvicorn.access", "uvicorn.error",
    "fastapi", "asyncio",
]



def configureLogging(*, logFile: str | None = None) -> None:
    """
    Initiate the global logging configuration.

    Dev:
      - Console pretty logs (DEBUG)
      - JSON file log (DEBUG)
    
    Prod:
      - Console INFO
      - JSON file logs INFO with rotation
      - Optional recurring suppression (toggle)
    """
    devMode = settingsBool("debug.devModeEnabled", False)
    rootLevel = logging.DEBUG if devMode else logging.INFO

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(rootLevel)
    
    for name in NO_PROPAGATE:
        logging.getLogger(name).propagate = False

    consoleHandler = logging.StreamHandler()
    consoleHandler.setLevel(rootLevel)
    consoleHandler.setFormatter(DevFormatter())

    logPath = Path(logFile or str(settings("logging.file", "modweaver.log")))
    logPath.parent.mkdir(parents=True, exist_ok=True)
    fileHandler = logging.handlers.RotatingFileHandler(
        logPath,
        maxBytes=int(settings("logging.maxBytes", 10 * 1024 * 1024)),
        backupCount=int(settings("logging.backupCount", 5)),
        encoding="utf-8"
    )
    fileHandler.setLevel(rootLevel)
    fileHandler.setFormatter(JsonFormatter())

    # Optional recurring suppression (disabled by default)
    if settingsBool("debug.suppressRecurringMessages.enabled", False):
        # Resolve summaryLevel string like "INFO" → logging.INFO, fallback safe
        levelName = str(settings("debug.suppressRecurringMessages.summaryLevel", "INFO")).upper()
        summaryLevel = getattr(logging, levelName, logging.INFO)

        suppressFilter = RecurringSuppressFilter(
            windowSeconds=int(settings("debug.suppressRecurringMessages.windowSeconds", 60)),
            maxPerWindow=int(settings("debug.suppressRecurringMessages.maxPerWindow", 5)),
            summaryLevel=summaryLevel,
        )
        consoleHandler.addFilter(suppressFilter)
        fileHandler.addFilter(suppressFilter)

    root.addHandler(consoleHandler)
    root.addHandler(fileHandler)

    # Per-logger tweaks (reduce noise)
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("fastapi").setLevel(logging.INFO)
