"""Configuration: env, paths, plugin settings."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

PROJECT_DIR_NAME = ".plugweave"

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class Config:
    cwd: Path = field(default_factory=Path.cwd)
    global_dir: Path = field(default_factory=lambda: Path.home() / ".plugweave")
    project_dir: Path | None = None  # explicit override; None = auto-detect from cwd
    verbose: bool = False
    host_version: str = "1.0.0"
    dev_mode: bool = False
    # plugin system
    plugins_initialize: bool = True
    plugin_search_paths: list[Path] = field(default_factory=list)
    plugin_dev_paths: list[Path] = field(default_factory=list)
    enabled_plugins: dict[str, bool] = field(default_factory=dict)
    plugin_config: dict[str, Any] = field(default_factory=dict)

    @property
    def project_dirs(self) -> list[Path]:
        if self.project_dir is not None:
            return [self.project_dir] if self.project_dir.is_dir() else []
        d = self.cwd / PROJECT_DIR_NAME
        return [d] if d.is_dir() else []

    def plugin_section(self, config_path: str | tuple[str, ...]) -> dict[str, Any]:
        """Walk ``plugin_config`` along *config_path* ('a.b' or ('a', 'b'))."""
        keys = config_path.split(".") if isinstance(config_path, str) else list(config_path)
        node: Any = self.plugin_config
        for key in keys:
            if not isinstance(node, dict) or key not in node:
                return {}
            node = node[key]
        return dict(node) if isinstance(node, dict) else {}


def _resolve_paths(values: list, base: Path) -> list[Path]:
    return [(base / str(v)).resolve() for v in values if str(v)]


def _merge_sections(base: dict[str, Any], override: dict[str, Any]) -> None:
    """Merge *override* into *base* in place; nested dicts merge key by key."""
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge_sections(base[key], value)
        else:
            base[key] = value


def _apply_settings(config: Config, path: Path) -> None:
    """Apply a single settings.json file to config."""
    if not path.exists():
        return
    data = json.loads(path.read_text())
    if "hostVersion" in data:
        config.host_version = str(data["hostVersion"])
    if "dev" in data:
        config.dev_mode = bool(data["dev"])

    plugins = data.get("plugins", {})
    if isinstance(plugins, dict):
        if "initialize" in plugins:
            config.plugins_initialize = bool(plugins["initialize"])
        if isinstance(plugins.get("searchPaths"), list):
            config.plugin_search_paths = _resolve_paths(plugins["searchPaths"], path.parent)
        if isinstance(plugins.get("paths"), list):
            config.plugin_dev_paths = _resolve_paths(plugins["paths"], path.parent)
        if isinstance(plugins.get("enabled"), dict):
            config.enabled_plugins.update(plugins["enabled"])

    if isinstance(data.get("pluginConfig"), dict):
        _merge_sections(config.plugin_config, data["pluginConfig"])


def load_config(
    search_paths: list[str] | None = None,
    verbose: bool = False,
    cwd: Path | None = None,
) -> Config:
    """Load config with priority: CLI args > env > .env > settings.json > defaults."""
    load_dotenv()

    config = Config(cwd=cwd) if cwd is not None else Config()
    config.verbose = verbose

    _apply_settings(config, config.global_dir / "settings.json")

    for pdir in config.project_dirs:
        _apply_settings(config, pdir / "settings.json")

    for pdir in config.project_dirs:
        _apply_settings(config, pdir / "settings.local.json")

    if env_paths := os.getenv("PLUGWEAVE_PLUGIN_PATHS"):
        config.plugin_search_paths = [Path(p).resolve() for p in env_paths.split(os.pathsep) if p]
    if env_host := os.getenv("PLUGWEAVE_HOST_VERSION"):
        config.host_version = env_host
    if env_dev := os.getenv("PLUGWEAVE_DEV"):
        config.dev_mode = env_dev.strip().lower() in _TRUE_VALUES

    if search_paths:
        config.plugin_search_paths = [Path(p).resolve() for p in search_paths]

    return config
