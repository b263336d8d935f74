"""Enablement resolver: config flags + required edges -> final enabled set."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Mapping, Union

from .graph import REQUIRED, DependencyGraph

ConfigEnabled = Union[Callable[[str], bool], Mapping[str, bool]]


@dataclass(frozen=True)
class EnablementResult:
    enabled: Mapping[str, bool]
    reasons: list[str] = field(default_factory=list)

    @property
    def enabled_ids(self) -> list[str]:
        return [pid for pid, on in self.enabled.items() if on]

    def is_enabled(self, plugin_id: str) -> bool:
        return self.enabled.get(plugin_id, False)


def disabled_reason(plugin_id: str) -> str:
    return f'Plugin "{plugin_id}" is disabled.'


def transitively_disabled_reason(plugin_id: str) -> str:
    return (
        f'Plugin "{plugin_id}" has been disabled since some of its direct or transitive '
        "dependencies are missing or disabled."
    )


def _lookup(config_enabled: ConfigEnabled) -> Callable[[str], bool]:
    if callable(config_enabled):
        return config_enabled
    return lambda pid: bool(config_enabled.get(pid, True))


def resolve_enablement(graph: DependencyGraph, config_enabled: ConfigEnabled) -> EnablementResult:
    """Disable every plugin whose required dependencies are missing or disabled.

    Flags only ever flip from True to False, so the passes terminate after
    at most ``len(graph.nodes)`` rounds and the result does not depend on
    edge order.
    """
    is_config_enabled = _lookup(config_enabled)
    enabled = {pid: bool(is_config_enabled(pid)) for pid in graph.nodes}
    explicitly_disabled = {pid for pid, on in enabled.items() if not on}

    required_edges = [e for e in graph.edges if e.kind == REQUIRED]
    changed = True
    while changed:
        changed = False
        for edge in required_edges:
            if enabled[edge.source] and not enabled.get(edge.target, False):
                enabled[edge.source] = False
                changed = True

    reasons: list[str] = []
    for pid in graph.nodes:
        if pid in explicitly_disabled:
            reasons.append(disabled_reason(pid))
        elif not enabled[pid]:
            reasons.append(transitively_disabled_reason(pid))
    return EnablementResult(enabled=MappingProxyType(enabled), reasons=reasons)
