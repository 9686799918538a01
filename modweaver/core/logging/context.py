# modweaver/core/logging/context.py
from __future__ import annotations
import contextvars
from contextlib import contextmanager
from typing import Iterator

# Per-operation log context. The orchestrator sets "operation", the compiler adds "modId".
_logContextVar: contextvars.ContextVar[dict[str, object] | None] = contextvars.ContextVar("modweaver.logctx", default=None)

def setLogContext(**kvs):
    """Merge values into the current log context; None values are ignored."""
    current = dict(_logContextVar.get() or {}) # use copy
    current.update({key: value for key, value in kvs.items() if value is not None})
    _logContextVar.set(current)

def clearLogContext():
    _logContextVar.set(None)

def getLogContext():
    """Return current context dict or None."""
    return _logContextVar.get()

@contextmanager
def logContext(**kvs) -> Iterator[None]:
    """Scoped setLogContext: the previous context is back once the block exits."""
    current = dict(_logContextVar.get() or {})
    current.update({key: value for key, value in kvs.items() if value is not None})
    token = _logContextVar.set(current)
    try:
        yield
    finally:
        _logContextVar.reset(token)
