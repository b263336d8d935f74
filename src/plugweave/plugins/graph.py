"""Dependency graph over plugin ids."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator

from .errors import DuplicatePluginError
from .models import PluginDefinition

REQUIRED = "required"
OPTIONAL = "optional"


@dataclass(frozen=True)
class Edge:
    source: str
    target: str
    kind: str  # "required" | "optional"


@dataclass(frozen=True)
class DependencyGraph:
    """Plugin ids in discovery order plus typed dependency edges.

    Edges may point at ids that were never discovered; resolution treats
    those targets as missing.
    """

    nodes: tuple[str, ...]
    edges: tuple[Edge, ...]

    def __contains__(self, plugin_id: object) -> bool:
        return plugin_id in self.nodes

    def edges_from(self, plugin_id: str, kind: str | None = None) -> Iterator[Edge]:
        for edge in self.edges:
            if edge.source == plugin_id and (kind is None or edge.kind == kind):
                yield edge

    def required(self, plugin_id: str) -> list[str]:
        return [e.target for e in self.edges_from(plugin_id, REQUIRED)]

    def optional(self, plugin_id: str) -> list[str]:
        return [e.target for e in self.edges_from(plugin_id, OPTIONAL)]


def build_graph(definitions: Iterable[PluginDefinition]) -> DependencyGraph:
    nodes: list[str] = []
    seen: set[str] = set()
    edges: list[Edge] = []
    for definition in definitions:
        manifest = definition.manifest
        if manifest.id in seen:
            raise DuplicatePluginError(manifest.id)
        seen.add(manifest.id)
        nodes.append(manifest.id)
        edges.extend(Edge(manifest.id, dep, REQUIRED) for dep in manifest.required_plugins)
        edges.extend(Edge(manifest.id, dep, OPTIONAL) for dep in manifest.optional_plugins)
    return DependencyGraph(nodes=tuple(nodes), edges=tuple(edges))
