# modweaver/app/context.py
from __future__ import annotations

from typing import Any



class _ProcessContext:
    """Name -> service map shared by the HTTP layer and whatever built the engine."""
    def __init__(self) -> None:
        self._services: dict[str, Any] = {}
    
    def register(self, name: str, service: Any, *, overwrite: bool = False) -> None:
        if not overwrite and name in self._services:
            raise ValueError(f"Service '{name}' already registered")
        self._services[name] = service

    def get(self, name: str) -> Any | None:
        return self._services.get(name)
    
    def unregister(self, name: str) -> None:
        self._services.pop(name, None)

# Single instance
PROCESS_REGISTRY = _ProcessContext()
