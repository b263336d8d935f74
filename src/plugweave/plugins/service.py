"""PluginsService: discovery -> enablement -> plugins system, for one run."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from plugweave.core.config import Config

from .discovery import discover
from .errors import DiscoveryError, PluginInitializationError
from .graph import DependencyGraph, build_graph
from .loader import ImportlibLoader, ModuleLoader
from .models import DiscoveryResult, Env, PluginDefinition
from .ordering import topological_order
from .resolver import EnablementResult, resolve_enablement
from .system import PluginsSystem
from .unit import PluginUnit

logger = logging.getLogger(__name__)


@dataclass
class PluginsSetup:
    contracts: dict[str, Any] = field(default_factory=dict)
    enabled_ids: list[str] = field(default_factory=list)
    reasons: list[str] = field(default_factory=list)


@dataclass
class PluginsStart:
    contracts: dict[str, Any] = field(default_factory=dict)


@dataclass
class PluginsPlan:
    definitions: dict[str, PluginDefinition]
    graph: DependencyGraph
    resolution: EnablementResult
    order: list[str]


class PluginsService:
    def __init__(self, config: Config, env: Env | None = None, loader: ModuleLoader | None = None):
        self.config = config
        self.env = env or Env(host_version=config.host_version, dev_mode=config.dev_mode)
        self.loader = loader or ImportlibLoader()
        self.system = PluginsSystem()
        self.resolution: EnablementResult | None = None

    def discover(self) -> DiscoveryResult:
        return discover(
            self.config.plugin_search_paths,
            self.env,
            dev_paths=self.config.plugin_dev_paths,
            loader=self.loader,
        )

    def is_config_enabled(self, definition: PluginDefinition) -> bool:
        enabled = self.config.enabled_plugins
        if definition.id in enabled:
            return bool(enabled[definition.id])
        section = self.config.plugin_section(definition.manifest.config_path)
        return bool(section.get("enabled", True))

    def check_discovery_errors(self, errors: list[DiscoveryError]) -> None:
        fatal = [e for e in errors if e.is_fatal]
        for error in errors:
            if error.is_fatal:
                logger.error("%s", error)
            else:
                logger.debug("ignoring plugin discovery error: %s", error)
        if fatal:
            raise PluginInitializationError(fatal)

    def plan(self, discovered: DiscoveryResult) -> PluginsPlan:
        """Validate discovery output and resolve what would run, in which order.

        Every fatal condition (fatal discovery errors, duplicate ids,
        dependency cycles) is raised here, before any plugin code runs.
        """
        self.check_discovery_errors(discovered.errors)

        definitions = {d.id: d for d in discovered.definitions}
        graph = build_graph(discovered.definitions)
        resolution = resolve_enablement(graph, lambda pid: self.is_config_enabled(definitions[pid]))
        order = topological_order(graph, resolution.enabled_ids)
        return PluginsPlan(definitions=definitions, graph=graph, resolution=resolution, order=order)

    def setup(self, deps: Any, discovered: DiscoveryResult | None = None) -> PluginsSetup:
        logger.debug("Setting up plugins service")
        if discovered is None:
            discovered = self.discover()

        plan = self.plan(discovered)
        self.resolution = plan.resolution
        for reason in plan.resolution.reasons:
            logger.info(reason)

        enabled_ids = plan.resolution.enabled_ids
        if not self.config.plugins_initialize:
            logger.info("Plugin initialization disabled.")
            return PluginsSetup(enabled_ids=enabled_ids, reasons=list(plan.resolution.reasons))

        for plugin_id in enabled_ids:
            definition = plan.definitions[plugin_id]
            self.system.add_plugin(
                PluginUnit(
                    definition,
                    self.loader,
                    env=self.env,
                    config=self.config.plugin_section(definition.manifest.config_path),
                )
            )

        contracts = self.system.setup_plugins(deps)
        return PluginsSetup(
            contracts=contracts, enabled_ids=enabled_ids, reasons=list(plan.resolution.reasons)
        )

    def start(self, deps: Any) -> PluginsStart:
        logger.debug("Plugins service starts plugins")
        return PluginsStart(contracts=self.system.start_plugins(deps))

    def stop(self) -> None:
        logger.debug("Stopping plugins service")
        self.system.stop_plugins()
