"""Topological ordering of enabled plugins."""

from __future__ import annotations

import logging
from typing import Iterable

from .errors import DependencyCycleError
from .graph import DependencyGraph

logger = logging.getLogger(__name__)


def find_cycle(nodes: list[str], deps: dict[str, list[str]]) -> list[str] | None:
    """Return one cycle as ``[a, b, ..., a]`` or None (DFS with a path stack)."""
    done: set[str] = set()
    for root in nodes:
        if root in done:
            continue
        path: list[str] = []
        on_path: set[str] = set()
        stack: list[tuple[str, int]] = [(root, 0)]
        while stack:
            node, idx = stack.pop()
            if idx == 0:
                path.append(node)
                on_path.add(node)
            children = deps.get(node, [])
            if idx < len(children):
                stack.append((node, idx + 1))
                child = children[idx]
                if child in on_path:
                    return path[path.index(child) :] + [child]
                if child not in done:
                    stack.append((child, 0))
            else:
                path.pop()
                on_path.discard(node)
                done.add(node)
    return None


def _layered_sort(nodes: list[str], deps: dict[str, list[str]]) -> tuple[list[str], list[str]]:
    """Kahn's algorithm taking every ready node per round, in node order.

    Returns (ordered, stuck).
    """
    remaining = {pid: set(deps.get(pid, ())) for pid in nodes}
    order: list[str] = []
    while remaining:
        ready = [pid for pid in nodes if pid in remaining and not remaining[pid]]
        if not ready:
            break
        for pid in ready:
            del remaining[pid]
            order.append(pid)
        for items in remaining.values():
            items.difference_update(ready)
    return order, [pid for pid in nodes if pid in remaining]


def topological_order(graph: DependencyGraph, enabled_ids: Iterable[str]) -> list[str]:
    """Order *enabled_ids* so every dependency precedes its dependents.

    Required edges are hard constraints. Optional edges count only when
    their target is enabled; hints that would close a cycle are dropped.
    """
    enabled = set(enabled_ids)
    nodes = [pid for pid in graph.nodes if pid in enabled]
    required = {pid: [d for d in graph.required(pid) if d in enabled] for pid in nodes}

    cycle = find_cycle(nodes, required)
    if cycle is not None:
        raise DependencyCycleError(cycle)

    with_hints = {
        pid: required[pid] + [d for d in graph.optional(pid) if d in enabled and d != pid]
        for pid in nodes
    }
    order, stuck = _layered_sort(nodes, with_hints)
    if stuck:
        logger.debug(
            "optional dependencies of %s form a cycle; ordering them by required edges only",
            ", ".join(stuck),
        )
        placed = set(order)
        rest = {pid: [d for d in required[pid] if d not in placed] for pid in stuck}
        tail, _ = _layered_sort(stuck, rest)
        order.extend(tail)
    return order
