# modweaver/core/errors.py
from __future__ import annotations

__all__ = [
    "ModWeaverError",
    "NotFoundError",
    "AnchorNotFoundError",
    "CyclicDependencyError",
    "MissingDependencyError",
    "IOFailureError",
    "ManifestError",
    "EngineStateError",
]



class ModWeaverError(RuntimeError):
    """Base class for every typed outcome the engine raises."""



class NotFoundError(ModWeaverError):
    """Raised when an expected file, directory or script region is missing."""

    def __init__(self, message: str, *, path: object | None = None) -> None:
        super().__init__(message)
        self.path = path



class AnchorNotFoundError(NotFoundError):
    """
    Raised when the target script lacks the default mod-loading anchor.
    
    Usually means the host application was updated in a way this engine
    version does not understand.
    """

    def __init__(self, pattern: str) -> None:
        super().__init__(f"Could not find default entry anchor {pattern!r} in target script")
        self.pattern = pattern



class CyclicDependencyError(ModWeaverError):
    """Raised when mod dependencies form a cycle. No partial order is produced."""

    def __init__(self, unresolved: tuple[str, ...]) -> None:
        super().__init__(
            "Dependency cycle detected. Cannot sort mods; unresolved: " + ", ".join(unresolved)
        )
        self.unresolved = unresolved



class MissingDependencyError(ModWeaverError):
    """Raised when a mod's dependency is absent from the working set or the script."""

    def __init__(self, modId: str, dependencyId: str) -> None:
        super().__init__(
            f"Could not find dependency mod '{dependencyId}'. "
            f"It is needed for mod '{modId}', make sure to install it."
        )
        self.modId = modId
        self.dependencyId = dependencyId



class IOFailureError(ModWeaverError):
    """Raised when copying, extracting or repacking an archive fails."""



class ManifestError(ModWeaverError):
    """Raised when a mod manifest file cannot be parsed or validated."""



class EngineStateError(ModWeaverError):
    """Raised when a process-wide service was used before it was registered."""
