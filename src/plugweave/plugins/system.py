"""PluginsSystem: drives plugin units through setup, start and stop."""

from __future__ import annotations

import logging
from typing import Any

from .errors import DuplicatePluginError, PluginSetupError, PluginStartError
from .graph import DependencyGraph, build_graph
from .ordering import topological_order
from .unit import PluginUnit

logger = logging.getLogger(__name__)


class PluginsSystem:
    """Owns the units of one run and the contracts they produce."""

    def __init__(self):
        self._units: dict[str, PluginUnit] = {}
        self._graph: DependencyGraph | None = None
        self._order: list[str] | None = None
        self._set_up: list[str] = []
        self.contracts: dict[str, Any] = {}

    def add_plugin(self, unit: PluginUnit) -> None:
        if unit.id in self._units:
            raise DuplicatePluginError(unit.id)
        self._units[unit.id] = unit
        self._graph = None
        self._order = None

    @property
    def units(self) -> dict[str, PluginUnit]:
        return dict(self._units)

    @property
    def graph(self) -> DependencyGraph:
        if self._graph is None:
            self._graph = build_graph(u.definition for u in self._units.values())
        return self._graph

    def execution_order(self) -> list[str]:
        """Topological order of the added units; raises DependencyCycleError."""
        if self._order is None:
            self._order = topological_order(self.graph, self._units)
        return list(self._order)

    def _dependency_contracts(self, unit: PluginUnit, contracts: dict[str, Any]) -> dict[str, Any]:
        deps = list(unit.required_plugins) + list(unit.optional_plugins)
        return {dep: contracts[dep] for dep in deps if dep in contracts}

    def setup_plugins(self, deps: Any) -> dict[str, Any]:
        if not self._units:
            return {}
        order = self.execution_order()
        logger.info("Setting up [%d] plugins: [%s]", len(order), ",".join(order))

        for plugin_id in order:
            unit = self._units[plugin_id]
            if not unit.includes_server_plugin:
                logger.debug('Plugin "%s" has no server part, skipping setup.', plugin_id)
                continue
            logger.debug('Setting up plugin "%s"...', plugin_id)
            plugin_contracts = self._dependency_contracts(unit, self.contracts)
            try:
                contract = unit.setup(deps, plugin_contracts)
            except Exception as e:
                raise PluginSetupError(plugin_id, e) from e
            self.contracts[plugin_id] = contract
            self._set_up.append(plugin_id)
        return dict(self.contracts)

    def start_plugins(self, deps: Any) -> dict[str, Any]:
        if not self._set_up:
            return {}
        logger.info("Starting [%d] plugins: [%s]", len(self._set_up), ",".join(self._set_up))

        started: dict[str, Any] = {}
        for plugin_id in self._set_up:
            unit = self._units[plugin_id]
            logger.debug('Starting plugin "%s"...', plugin_id)
            plugin_contracts = self._dependency_contracts(unit, started)
            try:
                started[plugin_id] = unit.start(deps, plugin_contracts)
            except Exception as e:
                raise PluginStartError(plugin_id, e) from e
        return started

    def stop_plugins(self) -> None:
        """Stop set-up plugins in reverse order; failures are logged, never raised."""
        if not self._set_up:
            return
        logger.info("Stopping all plugins.")

        while self._set_up:
            plugin_id = self._set_up.pop()
            logger.debug('Stopping plugin "%s"...', plugin_id)
            try:
                self._units[plugin_id].stop()
            except Exception:
                logger.exception('Plugin "%s" failed to stop.', plugin_id)
