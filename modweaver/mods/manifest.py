# modweaver/mods/manifest.py
from __future__ import annotations
import re
from typing import Any, Literal

from pydantic import BaseModel, Field, ConfigDict, JsonValue, field_validator, model_validator

__all__ = [
    "MOD_ID_RE", "DependencyRef", "EventHooks", "ConfigField",
    "ModManifest", "IncludeListMod",
]



# Mod ids double as marker tokens ("// MOD: <id>") and as folder names under the mod folder.
MOD_ID_RE = re.compile(r"^[A-Za-z0-9@][A-Za-z0-9@._+-]*$")



def _validateModId(value: str) -> str:
    if not isinstance(value, str) or not MOD_ID_RE.fullmatch(value):
        raise ValueError(
            f"Invalid mod id {value!r}: start with a letter, digit or '@' and use letters, digits and '@._+-' only"
        )
    return value



class DependencyRef(BaseModel):
    """Reference to another mod this mod must be loaded after."""
    model_config = ConfigDict(extra="ignore")

    id: str
    version: str | None = None
    repository: str | None = None

    @field_validator("id")
    @classmethod
    def checkId(cls, value: str) -> str:
        return _validateModId(value)



class EventHooks(BaseModel):
    """Serialized callables registered for one host window event."""
    model_config = ConfigDict(extra="ignore")

    on: list[str] = Field(default_factory=list)
    once: list[str] = Field(default_factory=list)



class ConfigField(BaseModel):
    """A user-tunable value exposed to a mod's callables."""
    model_config = ConfigDict(extra="ignore")

    name: str
    defaultValue: JsonValue = None
    value: JsonValue = None
    description: str | None = None
    type: Literal["string", "boolean", "number"] | None = None

    @property
    def effectiveValue(self) -> JsonValue:
        return self.defaultValue if self.value is None else self.value



class ModManifest(BaseModel):
    """
    Identity and declared capabilities of one mod.

    `events` maps a host window event name to its hook lists; every entry there
    and in `windowModifications` is opaque code spliced verbatim into the
    target script.
    """
    model_config = ConfigDict(extra="ignore")

    id: str
    version: str = "0.0.1"
    dependencies: list[DependencyRef] = Field(default_factory=list)
    events: dict[str, EventHooks] = Field(default_factory=dict)
    windowModifications: list[str] = Field(default_factory=list)
    config: list[ConfigField] = Field(default_factory=list)
    repository: str | None = None
    author: str | None = None
    description: str | None = None
    homepage: str | None = None

    @field_validator("id")
    @classmethod
    def checkId(cls, value: str) -> str:
        return _validateModId(value)

    @model_validator(mode="before")
    @classmethod
    def liftLegacyEvents(cls, data: Any) -> Any:
        # Older manifests nest hooks as {"events": {"events": {...}, "windowModifications": [...]}}
        if not isinstance(data, dict):
            return data
        events = data.get("events")
        if isinstance(events, dict) and isinstance(events.get("events"), dict):
            data = dict(data)
            data["events"] = events["events"]
            legacyMods = events.get("windowModifications")
            if legacyMods and not data.get("windowModifications"):
                data["windowModifications"] = legacyMods
        if data.get("config") is None and "config" in data:
            data = dict(data)
            data.pop("config")
        return data

    @field_validator("dependencies")
    @classmethod
    def dedupeDependencies(cls, deps: list[DependencyRef]) -> list[DependencyRef]:
        seen: set[str] = set()
        out: list[DependencyRef] = []
        for dep in deps:
            if dep.id in seen:
                continue
            seen.add(dep.id)
            out.append(dep)
        return out

    @property
    def dependencyIds(self) -> list[str]:
        return [dep.id for dep in self.dependencies]

    @property
    def hasConfig(self) -> bool:
        return bool(self.config)

    def configValues(self) -> dict[str, JsonValue]:
        return {field.name: field.effectiveValue for field in self.config}



class IncludeListMod(BaseModel):
    """One entry of the on-disk include list (which mods are installed and enabled)."""
    model_config = ConfigDict(extra="ignore")

    id: str
    version: str = "0.0.1"
    dependencies: list[DependencyRef] = Field(default_factory=list)
    enabled: bool = True
    repository: str | None = None

    @classmethod
    def fromManifest(cls, manifest: ModManifest, *, enabled: bool = True) -> IncludeListMod:
        return cls(
            id=manifest.id,
            version=manifest.version,
            dependencies=list(manifest.dependencies),
            enabled=enabled,
            repository=manifest.repository,
        )
