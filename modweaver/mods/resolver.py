# modweaver/mods/resolver.py
from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass, field

from modweaver.core.errors import CyclicDependencyError
from modweaver.mods.manifest import ModManifest

logger = logging.getLogger(__name__)

__all__ = ["DependencyGraph", "DependencyResolver", "resolveLoadOrder"]



# ------------------------------------------------------------------ #
# Data structures
# ------------------------------------------------------------------ #

@dataclass(slots=True)
class DependencyGraph:
    """
    Directed "depends on" graph keyed by mod id.
    
    Vertices keep discovery order (dict insertion order), which is what makes
    the resulting load order reproducible for identical input.
    """
    adjacency: dict[str, list[str]] = field(default_factory=dict)

    def addVertex(self, vertex: str) -> None:
        if vertex not in self.adjacency:
            self.adjacency[vertex] = []

    def addEdge(self, source: str, target: str) -> None:
        self.addVertex(source)
        self.addVertex(target)
        self.adjacency[source].append(target)

    @property
    def vertices(self) -> list[str]:
        return list(self.adjacency)

    def inDegrees(self) -> dict[str, int]:
        degrees = {vertex: 0 for vertex in self.adjacency}
        for neighbours in self.adjacency.values():
            for neighbour in neighbours:
                degrees[neighbour] += 1
        return degrees



# ------------------------------------------------------------------ #
# DependencyResolver
# ------------------------------------------------------------------ #

class DependencyResolver:
    """
    Orders a working set of mods so every mod comes after its dependencies.

    Kahn's algorithm over the mod → dependency graph:
        - dependents are numbered before the mods they depend on,
        - the final list is sorted by descending number, which puts
          dependencies first.
    A cycle leaves vertices unnumbered and is reported as
    CyclicDependencyError; no partial order is ever returned.
    """
    def __init__(self, manifests: Iterable[ModManifest]) -> None:
        self._manifests: list[ModManifest] = list(manifests)
    
    @property
    def manifests(self) -> list[ModManifest]:
        return list(self._manifests)
    
    def buildGraph(self) -> DependencyGraph:
        graph = DependencyGraph()
        for manifest in self._manifests:
            graph.addVertex(manifest.id)
            for dep in manifest.dependencies:
                graph.addEdge(manifest.id, dep.id)
        return graph
    
    def computeOrderIndices(self) -> dict[str, int]:
        graph = self.buildGraph()
        inDegree = graph.inDegrees()
        
        queue: deque[str] = deque(vertex for vertex in graph.vertices if inDegree[vertex] == 0)
        order: dict[str, int] = {}
        index = 0
        while queue:
            vertex = queue.popleft()
            order[vertex] = index
            index += 1
            for neighbour in graph.adjacency[vertex]:
                inDegree[neighbour] -= 1
                if inDegree[neighbour] == 0:
                    queue.append(neighbour)
        
        if len(order) != len(graph.adjacency):
            unresolved = tuple(vertex for vertex in graph.vertices if vertex not in order)
            logger.error("Dependency cycle among mods: %s", ", ".join(unresolved))
            raise CyclicDependencyError(unresolved)
        return order
    
    def resolve(self) -> list[ModManifest]:
        """Returns the manifests in load order (dependencies first)."""
        order = self.computeOrderIndices()
        resolved = sorted(self._manifests, key=lambda manifest: order[manifest.id], reverse=True)
        logger.debug("Sorted mods: %s", [manifest.id for manifest in resolved])
        return resolved
    
    def externalIds(self) -> list[str]:
        """
        Ids that only appear as dependency targets.
        
        They take part in ordering, but this engine never creates a region for them.
        """
        known = {manifest.id for manifest in self._manifests}
        return [vertex for vertex in self.buildGraph().vertices if vertex not in known]



def resolveLoadOrder(manifests: Iterable[ModManifest]) -> list[ModManifest]:
    return DependencyResolver(manifests).resolve()
