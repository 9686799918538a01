# modweaver/core/logger.py
from __future__ import annotations
from .logging import (
    configureLogging,
    getLogger,
    getModLogger,
    setLogContext,
    clearLogContext,
    getLogContext,
    logContext,
)

__all__ = [
    "configureLogging",
    "getLogger",
    "getModLogger",
    "setLogContext",
    "clearLogContext",
    "getLogContext",
    "logContext",
]
