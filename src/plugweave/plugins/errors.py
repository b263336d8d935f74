"""Plugin error hierarchy.

Discovery errors are collected rather than raised; everything else is
raised to the caller, who is expected to halt startup on it (except
for failures during ``stop``, which are logged and swallowed by the
plugins system).
"""

from __future__ import annotations

from pathlib import Path

INVALID_SEARCH_PATH = "invalid-search-path"
MISSING_MANIFEST = "missing-manifest"
INVALID_MANIFEST = "invalid-manifest"
INCOMPATIBLE_VERSION = "incompatible-version"
INVALID_PLUGIN_PATH = "invalid-plugin-path"

DISCOVERY_ERROR_KINDS = (
    INVALID_SEARCH_PATH,
    MISSING_MANIFEST,
    INVALID_MANIFEST,
    INCOMPATIBLE_VERSION,
    INVALID_PLUGIN_PATH,
)

# Kinds that must abort plugin initialization.
FATAL_DISCOVERY_KINDS = (INVALID_MANIFEST, INCOMPATIBLE_VERSION)


class PluginError(Exception):
    """Base class for every error raised by the plugin engine."""


class DiscoveryError(PluginError):
    """A problem with one search path or one plugin candidate."""

    def __init__(self, kind: str, path: Path | str, cause: BaseException):
        if kind not in DISCOVERY_ERROR_KINDS:
            raise ValueError(f"unknown discovery error kind: {kind!r}")
        self.kind = kind
        self.path = str(path)
        self.cause = cause
        super().__init__(f"{cause} ({kind}, {self.path})")

    @property
    def is_fatal(self) -> bool:
        return self.kind in FATAL_DISCOVERY_KINDS

    @classmethod
    def invalid_search_path(cls, path: Path | str, cause: BaseException) -> DiscoveryError:
        return cls(INVALID_SEARCH_PATH, path, cause)

    @classmethod
    def missing_manifest(cls, path: Path | str, cause: BaseException) -> DiscoveryError:
        return cls(MISSING_MANIFEST, path, cause)

    @classmethod
    def invalid_manifest(cls, path: Path | str, cause: BaseException) -> DiscoveryError:
        return cls(INVALID_MANIFEST, path, cause)

    @classmethod
    def incompatible_version(cls, path: Path | str, cause: BaseException) -> DiscoveryError:
        return cls(INCOMPATIBLE_VERSION, path, cause)

    @classmethod
    def invalid_plugin_path(cls, path: Path | str, cause: BaseException) -> DiscoveryError:
        return cls(INVALID_PLUGIN_PATH, path, cause)


class PluginInitializationError(PluginError):
    """Aggregates every fatal discovery error into one message."""

    def __init__(self, errors: list[DiscoveryError]):
        self.errors = list(errors)
        lines = "".join(f"\n\t{e}" for e in self.errors)
        super().__init__(f"Failed to initialize plugins:{lines}")


class DuplicatePluginError(PluginError):
    def __init__(self, plugin_id: str):
        self.plugin_id = plugin_id
        super().__init__(f'Plugin with id "{plugin_id}" is already registered!')


class DependencyCycleError(PluginError):
    def __init__(self, cycle: list[str]):
        self.cycle = list(cycle)
        super().__init__(
            "Topological ordering of plugins did not complete due to a dependency cycle: "
            + " -> ".join(self.cycle)
        )


class PluginLoadError(PluginError):
    """The loader could not turn a plugin path into a usable module."""

    def __init__(self, plugin_id: str, message: str):
        self.plugin_id = plugin_id
        super().__init__(message)


class PluginStateError(PluginError):
    """A lifecycle method was called in a state that does not allow it."""

    def __init__(self, plugin_id: str, message: str):
        self.plugin_id = plugin_id
        super().__init__(message)


class PluginSetupError(PluginError):
    def __init__(self, plugin_id: str, cause: BaseException):
        self.plugin_id = plugin_id
        self.cause = cause
        super().__init__(f'Setup of plugin "{plugin_id}" failed: {cause}')


class PluginStartError(PluginError):
    def __init__(self, plugin_id: str, cause: BaseException):
        self.plugin_id = plugin_id
        self.cause = cause
        super().__init__(f'Start of plugin "{plugin_id}" failed: {cause}')
