"""Plugins: discovery, dependency resolution, lifecycle orchestration."""

from .discovery import discover
from .errors import (
    DependencyCycleError,
    DiscoveryError,
    DuplicatePluginError,
    PluginError,
    PluginInitializationError,
    PluginLoadError,
    PluginSetupError,
    PluginStartError,
    PluginStateError,
)
from .graph import DependencyGraph, Edge, build_graph
from .loader import ImportlibLoader, ModuleLoader, RegistryLoader
from .manifest import parse_manifest
from .models import DiscoveryResult, Env, PluginDefinition, PluginManifest
from .ordering import topological_order
from .resolver import EnablementResult, resolve_enablement
from .service import PluginsPlan, PluginsService, PluginsSetup, PluginsStart
from .system import PluginsSystem
from .unit import PluginInitializerContext, PluginState, PluginUnit

__all__ = [
    "DependencyCycleError",
    "DependencyGraph",
    "DiscoveryError",
    "DiscoveryResult",
    "DuplicatePluginError",
    "Edge",
    "EnablementResult",
    "Env",
    "ImportlibLoader",
    "ModuleLoader",
    "PluginDefinition",
    "PluginError",
    "PluginInitializationError",
    "PluginInitializerContext",
    "PluginLoadError",
    "PluginManifest",
    "PluginSetupError",
    "PluginStartError",
    "PluginState",
    "PluginStateError",
    "PluginUnit",
    "PluginsPlan",
    "PluginsService",
    "PluginsSetup",
    "PluginsStart",
    "PluginsSystem",
    "RegistryLoader",
    "build_graph",
    "discover",
    "parse_manifest",
    "resolve_enablement",
    "topological_order",
]
