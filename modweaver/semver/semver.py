# modweaver/semver/semver.py
from __future__ import annotations

import re
from dataclasses import dataclass
from functools import total_ordering
from typing import Literal, Iterable, Generic, TypeVar

__all__ = [
    "SemVerVersion", "SemVerComparator", "SemVerRequirement", "SemVerMatchResult",
    "SemVerResolver", "parseSemVerVersion", "parseSemVerRequirement",
    "versionSatisfiesRequirement",
]



SEMVER_PATTERN_RE = re.compile(
    r"^(?P<major>0|[1-9]\d*)"
    r"\.(?P<minor>0|[1-9]\d*)"
    r"\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<prerelease>(?:0|[1-9]\d*|[0-9A-Za-z-]*[A-Za-z-][0-9A-Za-z-]*)"
    r"(?:\.(?:0|[1-9]\d*|[0-9A-Za-z-]*[A-Za-z-][0-9A-Za-z-]*))*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)
_NUMERIC_RE = re.compile(r"0|[1-9]\d*")

Operator = Literal["<", "<=", ">", ">=", "=="]

T = TypeVar("T")


@total_ordering
@dataclass(frozen=True)
class SemVerVersion:
    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()
    build: tuple[str, ...] = ()
    
    def __str__(self) -> str:
        base = f"{self.major}.{self.minor}.{self.patch}"
        prerelease = f"-{'.'.join(self.prerelease)}" if self.prerelease else ""
        build = f"+{'.'.join(self.build)}" if self.build else ""
        return f"{base}{prerelease}{build}"
    
    def _cmpKey(self) -> tuple:
        # Build is ignored for ordering; a release outranks any of its prereleases.
        # Numeric prerelease identifiers sort before alphanumeric ones.
        prereleaseKey = tuple(
            (0, int(ident)) if ident.isdigit() else (1, ident)
            for ident in self.prerelease
        )
        releaseFlag = 1 if not self.prerelease else 0
        return (self.major, self.minor, self.patch, releaseFlag, prereleaseKey)
    
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SemVerVersion):
            return NotImplemented
        return self._cmpKey() == other._cmpKey()
    
    def __hash__(self) -> int:
        return hash(self._cmpKey())
    
    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SemVerVersion):
            return NotImplemented
        return self._cmpKey() < other._cmpKey()



def parseSemVerVersion(raw: str) -> SemVerVersion:
    """
    Parse a semantic version string into SemVerVersion.
    
    Accepted forms (examples):
        "1"             -> 1.0.0
        "1.2"           -> 1.2.0
        "1.2.3"         -> 1.2.3
        "1.2.3-alpha.1"
        "1.2.3+build.1"
        "v1.2.3"
    
    Rejected:
        ".1", "1.", "1..3", "1.2.3.4", "01.2.3" (leading zeroes), etc.
    """
    if not isinstance(raw, str):
        raise TypeError(f"Version string must be a string type, got {type(raw).__name__}")
    
    raw = raw.strip()
    if not raw:
        raise ValueError("Version string cannot be empty or whitespace only")
    
    # Accept a single 'v' and remove it (v1.2.3 -> 1.2.3)
    if raw.startswith("v") and len(raw) > 1 and "0" <= raw[1] <= "9":
        raw = raw[1:]

    # Split into core (numeric) and suffix (-prerelease +build)
    sepIndex = len(raw)
    for ch in ("-", "+"):
        idx = raw.find(ch)
        if idx != -1 and idx < sepIndex:
            sepIndex = idx
    
    core = raw[:sepIndex]
    suffix = raw[sepIndex:]
    
    coreParts = core.split(".")
    if not 1 <= len(coreParts) <= 3:
        raise ValueError(f"Invalid version core {core!r} in {raw!r}")
    
    numericParts: list[int] = []
    for part in coreParts:
        if not _NUMERIC_RE.fullmatch(part):
            raise ValueError(f"Invalid numeric component {part!r} in version {raw!r}")
        numericParts.append(int(part))
    
    while len(numericParts) < 3:
        numericParts.append(0)
    
    major, minor, patch = numericParts
    
    mtch = SEMVER_PATTERN_RE.match(f"{major}.{minor}.{patch}{suffix}")
    if not mtch:
        raise ValueError(f"Invalid semantic version {raw!r}")

    prereleaseGroup = mtch.group("prerelease")
    buildGroup = mtch.group("build")
    
    return SemVerVersion(
        major=major,
        minor=minor,
        patch=patch,
        prerelease=tuple(prereleaseGroup.split(".")) if prereleaseGroup is not None else (),
        build=tuple(buildGroup.split(".")) if buildGroup is not None else (),
    )



@dataclass(frozen=True)
class SemVerComparator:
    operator: Operator
    version: SemVerVersion

    def matches(self, version: SemVerVersion) -> bool:
        if self.operator == "==":
            return version == self.version
        if self.operator == ">=":
            return version >= self.version
        if self.operator == "<=":
            return version <= self.version
        if self.operator == ">":
            return version > self.version
        if self.operator == "<":
            return version < self.version
        raise ValueError(f"Unknown operator {self.operator!r}")



@dataclass(frozen=True)
class SemVerRequirement:
    # All comparators are AND-ed.
    comparators: tuple[SemVerComparator, ...] = ()



def _caretToComparators(version: SemVerVersion) -> tuple[SemVerComparator, SemVerComparator]:
    """
    ^M.m.p:
      M > 0           -> >= M.m.p  and  < (M+1).0.0
      M == 0, m > 0   -> >= 0.m.p  and  < 0.(m+1).0
      M == 0, m == 0  -> >= 0.0.p  and  < 0.0.(p+1)
    """
    if version.major > 0:
        upper = SemVerVersion(version.major + 1, 0, 0)
    elif version.minor > 0:
        upper = SemVerVersion(0, version.minor + 1, 0)
    else:
        upper = SemVerVersion(0, 0, version.patch + 1)
    return SemVerComparator(">=", version), SemVerComparator("<", upper)



def _tildeToComparators(version: SemVerVersion) -> tuple[SemVerComparator, SemVerComparator]:
    """
    ~M.m.p -> >= M.m.p and < M.(m+1).0; '~M' alone -> >= M.0.0 and < (M+1).0.0
    """
    if version.minor > 0 or version.patch > 0:
        upper = SemVerVersion(version.major, version.minor + 1, 0)
    else:
        upper = SemVerVersion(version.major + 1, 0, 0)
    return SemVerComparator(">=", version), SemVerComparator("<", upper)



def parseSemVerRequirement(rawRequirement: str | None) -> SemVerRequirement | None:
    """
    Parse a requirement string into SemVerRequirement.
    
    Accepted forms:
        None, "", or "*"        -> None (no constraint)
        "1.2.3"                 -> == 1.2.3
        ">=1.2.0 <2.0.0"        -> >=1.2.0 AND <2.0.0
        "^1.2.3", "~1.2.3"      -> npm caret/tilde ranges
        "1.2.3 - 2.0.0"         -> >=1.2.3 AND <=2.0.0
    """
    if rawRequirement is None:
        return None
    if not isinstance(rawRequirement, str):
        raise TypeError(f"Requirement must be a string or None, got {type(rawRequirement).__name__}")
    
    rawRequirement = rawRequirement.strip()
    if not rawRequirement or rawRequirement == "*":
        return None
    
    mtch = re.match(r"^(?P<left>\S+)\s+-\s+(?P<right>\S+)$", rawRequirement)
    if mtch:
        left = parseSemVerVersion(mtch.group("left"))
        right = parseSemVerVersion(mtch.group("right"))
        if right < left:
            raise ValueError(f"Invalid hyphen range {rawRequirement!r}: upper < lower")
        return SemVerRequirement(comparators=(SemVerComparator(">=", left), SemVerComparator("<=", right)))
    
    comparators: list[SemVerComparator] = []
    for token in rawRequirement.split():
        if token[0] in ("^", "~"):
            if len(token) == 1:
                raise ValueError(f"Missing version after {token[0]!r} in requirement {rawRequirement!r}")
            parsed = parseSemVerVersion(token[1:])
            comparators.extend(_caretToComparators(parsed) if token[0] == "^" else _tildeToComparators(parsed))
            continue
        
        for candidate in ("<=", ">=", "==", "<", ">", "="):
            if token.startswith(candidate):
                versionPart = token[len(candidate):]
                if not versionPart:
                    raise ValueError(f"Missing version after operator {candidate!r} in requirement {rawRequirement!r}")
                operator: Operator = "==" if candidate == "=" else candidate  # type: ignore[assignment]
                comparators.append(SemVerComparator(operator, parseSemVerVersion(versionPart)))
                break
        else:
            # Plain version -> ==version
            comparators.append(SemVerComparator("==", parseSemVerVersion(token)))
    
    return SemVerRequirement(comparators=tuple(comparators))



def versionSatisfiesRequirement(
    version: SemVerVersion,
    requirement: SemVerRequirement | None,
) -> bool:
    """requirement None => always True."""
    if requirement is None:
        return True
    return all(comparator.matches(version) for comparator in requirement.comparators)



@dataclass(frozen=True)
class SemVerMatchResult(Generic[T]):
    """
    Result of semver-based selection among candidate versions.
    
    - requirement: the requirement used (may be None).
    - candidates: all candidates seen by the resolver.
    - matches: candidates that satisfy the requirement.
    - best: the single best match by version, or None if no matches.
            If multiple candidates share the same best version, the
            first one in the input order is returned.
    """
    requirement: SemVerRequirement | None
    candidates: tuple[tuple[SemVerVersion, T], ...]
    matches: tuple[tuple[SemVerVersion, T], ...]
    best: tuple[SemVerVersion, T] | None



class SemVerResolver:
    @staticmethod
    def matchCandidates(
        candidates: Iterable[tuple[SemVerVersion, T]],
        requirement: SemVerRequirement | None,
    ) -> SemVerMatchResult[T]:
        """
        Filter candidates by requirement and select the highest version.
        Ties keep the first candidate in input order.
        """
        candidatesList: list[tuple[SemVerVersion, T]] = list(candidates)
        matchList = [
            (version, payload)
            for version, payload in candidatesList
            if versionSatisfiesRequirement(version, requirement)
        ]
        
        best: tuple[SemVerVersion, T] | None = None
        for version, payload in matchList:
            if best is None or version > best[0]:
                best = (version, payload)
        
        return SemVerMatchResult(
            requirement=requirement,
            candidates=tuple(candidatesList),
            matches=tuple(matchList),
            best=best
        )
