"""Plugin discovery: search roots -> plugin definitions + discovery errors."""

from __future__ import annotations

import logging
import os
import stat
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

from .errors import DiscoveryError, PluginLoadError
from .manifest import is_plugin_dir, parse_manifest
from .models import DiscoveryResult, Env, PluginDefinition

if TYPE_CHECKING:
    from .loader import ModuleLoader

logger = logging.getLogger(__name__)


def _subfolders(root: Path) -> tuple[list[Path], list[DiscoveryError]]:
    """Sorted child directories of *root*; unreadable children become errors."""
    folders: list[Path] = []
    errors: list[DiscoveryError] = []
    for child in sorted(root.iterdir()):
        try:
            if stat.S_ISDIR(child.stat().st_mode):
                folders.append(child)
        except OSError as e:
            errors.append(DiscoveryError.invalid_plugin_path(child, e))
    return folders, errors


def _discover_one(
    plugin_path: Path, env: Env, loader: ModuleLoader | None
) -> PluginDefinition | DiscoveryError | None:
    try:
        if not is_plugin_dir(plugin_path):
            return None
    except OSError as e:
        return DiscoveryError.invalid_plugin_path(plugin_path, e)
    try:
        manifest = parse_manifest(plugin_path, env.host_version)
    except DiscoveryError as e:
        return e
    schema = None
    if loader is not None and manifest.server:
        try:
            schema = loader.read_config_schema(plugin_path)
        except PluginLoadError as e:
            return DiscoveryError.invalid_manifest(plugin_path, e)
    return PluginDefinition(path=plugin_path, manifest=manifest, config_schema=schema)


def discover(
    search_paths: Iterable[Path | str],
    env: Env,
    dev_paths: Iterable[Path | str] = (),
    loader: ModuleLoader | None = None,
    max_workers: int | None = None,
) -> DiscoveryResult:
    """Scan every search root for plugin directories.

    Roots are processed in the given order, candidates inside a root in
    sorted order. Per-candidate work runs concurrently but results keep
    that order, so downstream resolution is reproducible.
    """
    roots = [Path(p) for p in search_paths]
    if env.dev_mode:
        roots.extend(Path(p) for p in dev_paths)

    result = DiscoveryResult()
    candidates: list[Path] = []
    for root in roots:
        try:
            folders, entry_errors = _subfolders(root)
        except OSError as e:
            result.errors.append(DiscoveryError.invalid_search_path(root, e))
            continue
        result.errors.extend(entry_errors)
        candidates.extend(folders)

    workers = max_workers or min(32, (os.cpu_count() or 1) + 4)
    with ThreadPoolExecutor(max_workers=workers) as pool:
        outcomes = list(pool.map(lambda p: _discover_one(p, env, loader), candidates))

    for path, outcome in zip(candidates, outcomes):
        if outcome is None:
            logger.debug("skipping %s: no manifest", path)
        elif isinstance(outcome, DiscoveryError):
            result.errors.append(outcome)
        else:
            result.definitions.append(outcome)

    logger.debug(
        "discovered %d plugin(s), %d error(s)", len(result.definitions), len(result.errors)
    )
    return result
