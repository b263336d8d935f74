"""Plugin data models: PluginManifest, PluginDefinition, DiscoveryResult, Env."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .errors import DiscoveryError

# Manifest value meaning "compatible with whatever host is running".
ANY_HOST_VERSION = "host"


@dataclass(frozen=True)
class PluginManifest:
    """Parsed from <plugin>/plugin.json."""

    id: str
    version: str
    host_version: str = ANY_HOST_VERSION
    config_path: str | tuple[str, ...] = ""
    required_plugins: tuple[str, ...] = ()
    optional_plugins: tuple[str, ...] = ()
    server: bool = False
    ui: bool = False

    def __post_init__(self) -> None:
        if not self.config_path:
            object.__setattr__(self, "config_path", snake_case(self.id))


@dataclass(frozen=True)
class PluginDefinition:
    """One discovered plugin candidate."""

    path: Path
    manifest: PluginManifest
    config_schema: Any = None

    @property
    def id(self) -> str:
        return self.manifest.id


@dataclass
class DiscoveryResult:
    definitions: list[PluginDefinition] = field(default_factory=list)
    errors: list[DiscoveryError] = field(default_factory=list)


@dataclass(frozen=True)
class Env:
    """Facts about the running host that discovery and plugins may consult."""

    host_version: str = "0.0.0"
    dev_mode: bool = False


def snake_case(value: str) -> str:
    """'myPluginId' -> 'my_plugin_id'; also folds dashes and dots."""
    value = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", value)
    return re.sub(r"[-.\s]+", "_", value).lower()
