"""Module loaders: turn a plugin path into an opaque module handle.

The engine only ever talks to the ``ModuleLoader`` interface. A handle is
any object exposing a ``plugin`` initializer (and, optionally, a
``config_schema``); the engine never inspects it beyond that.
"""

from __future__ import annotations

import hashlib
import importlib.util
import logging
import sys
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from .errors import PluginLoadError
from .models import snake_case

logger = logging.getLogger(__name__)

SERVER_DIR_NAME = "server"


class ModuleLoader(ABC):
    """Capability interface; subclasses decide how a path becomes a module."""

    @abstractmethod
    def try_load(self, path: Path) -> Any | None:
        """Return a module handle for *path*, or None if it has no server part.

        Raises PluginLoadError when the module exists but cannot be loaded.
        """

    def read_config_schema(self, path: Path) -> Any | None:
        handle = self.try_load(path)
        if handle is None:
            return None
        schema = getattr(handle, "config_schema", None)
        if schema is None:
            logger.debug('"%s" does not export "config_schema" definition.', path)
            return None
        if not callable(getattr(schema, "validate", None)):
            raise PluginLoadError(
                path.name,
                f"The config schema for plugin [{path}] does not define a 'validate' method, "
                "which is required when validating a config instance",
            )
        return schema


class ImportlibLoader(ModuleLoader):
    """Load ``<plugin>/server/__init__.py`` (or ``<plugin>/server.py``) from disk."""

    def __init__(self, module_prefix: str = "plugweave_plugin"):
        self.module_prefix = module_prefix
        self._modules: dict[Path, Any] = {}
        self._lock = threading.Lock()

    def _entry_file(self, path: Path) -> Path | None:
        package_init = path / SERVER_DIR_NAME / "__init__.py"
        if package_init.is_file():
            return package_init
        module_file = path / f"{SERVER_DIR_NAME}.py"
        if module_file.is_file():
            return module_file
        return None

    def try_load(self, path: Path) -> Any | None:
        path = path.resolve()
        with self._lock:
            if path in self._modules:
                return self._modules[path]
            entry = self._entry_file(path)
            if entry is None:
                return None
            digest = hashlib.sha1(str(path).encode("utf-8")).hexdigest()[:10]
            module_name = f"{self.module_prefix}_{snake_case(path.name)}_{digest}"
            search_locations = [str(entry.parent)] if entry.name == "__init__.py" else None
            spec = importlib.util.spec_from_file_location(
                module_name, entry, submodule_search_locations=search_locations
            )
            if spec is None or spec.loader is None:
                raise PluginLoadError(path.name, f"Failed to load plugin module {entry}")
            module = importlib.util.module_from_spec(spec)
            sys.modules[module_name] = module
            try:
                spec.loader.exec_module(module)
            except Exception as e:
                sys.modules.pop(module_name, None)
                raise PluginLoadError(path.name, f"Failed to load plugin module {entry}: {e}") from e
            self._modules[path] = module
            logger.debug("loaded plugin module %s from %s", module_name, entry)
            return module


class RegistryLoader(ModuleLoader):
    """Serve pre-built module handles keyed by plugin directory name."""

    def __init__(self, modules: dict[str, Any] | None = None):
        self._modules: dict[str, Any] = dict(modules or {})

    def register(self, name: str, module: Any) -> None:
        self._modules[name] = module

    def try_load(self, path: Path) -> Any | None:
        return self._modules.get(Path(path).name)
