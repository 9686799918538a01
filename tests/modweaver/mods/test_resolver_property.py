# tests/modweaver/mods/test_resolver_property.py
from __future__ import annotations

import pytest

hypothesis = pytest.importorskip("hypothesis")
from hypothesis import HealthCheck, given, settings, strategies as st  # type: ignore[no-redef]

from conftest import makeManifest
from modweaver.mods.resolver import resolveLoadOrder


@st.composite
def acyclicManifests(draw):
    count = draw(st.integers(min_value=1, max_value=8))
    ids = [f"m{idx}" for idx in range(count)]
    manifests = []
    for idx, modId in enumerate(ids):
        # Only lower-numbered dependencies, so the graph stays acyclic
        deps = draw(st.lists(st.sampled_from(ids[:idx]), unique=True)) if idx else []
        manifests.append(makeManifest(modId, *deps))
    return draw(st.permutations(manifests))


def _transitiveDeps(byId, modId: str) -> set[str]:
    seen: set[str] = set()
    stack = list(byId[modId].dependencyIds)
    while stack:
        dep = stack.pop()
        if dep not in seen:
            seen.add(dep)
            stack.extend(byId[dep].dependencyIds)
    return seen


@settings(suppress_health_check=[HealthCheck.function_scoped_fixture])
@given(acyclicManifests())
def test_every_mod_follows_its_transitive_dependencies(manifests) -> None:
    ordered = [manifest.id for manifest in resolveLoadOrder(manifests)]
    position = {modId: idx for idx, modId in enumerate(ordered)}
    byId = {manifest.id: manifest for manifest in manifests}

    assert sorted(ordered) == sorted(byId)
    for modId in ordered:
        for dep in _transitiveDeps(byId, modId):
            assert position[dep] < position[modId]


@settings(suppress_health_check=[HealthCheck.function_scoped_fixture])
@given(acyclicManifests())
def test_resolution_is_a_pure_function_of_input_order(manifests) -> None:
    first = [manifest.id for manifest in resolveLoadOrder(manifests)]
    second = [manifest.id for manifest in resolveLoadOrder(list(manifests))]
    assert first == second
