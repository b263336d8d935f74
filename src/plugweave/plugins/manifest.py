"""Manifest reader: plugin.json -> PluginManifest, host version compatibility."""

from __future__ import annotations

import json
from pathlib import Path

from .errors import DiscoveryError
from .models import ANY_HOST_VERSION, PluginManifest

MANIFEST_FILE_NAME = "plugin.json"


def manifest_path(plugin_path: Path) -> Path:
    return plugin_path / MANIFEST_FILE_NAME


def is_plugin_dir(plugin_path: Path) -> bool:
    """A directory counts as a plugin candidate iff it ships a manifest file."""
    return manifest_path(plugin_path).exists()


def _parse_version(version: str) -> tuple[int, ...]:
    parts = []
    for part in version.strip().lstrip("v").split("-")[0].split("."):
        num = ""
        for ch in part:
            if ch.isdigit():
                num += ch
            else:
                break
        if not num:
            break
        parts.append(int(num))
    while len(parts) < 3:
        parts.append(0)
    return tuple(parts[:3])


def is_version_compatible(expected: str, actual: str) -> bool:
    """Compare major.minor.patch only; pre-release and build suffixes are ignored."""
    if expected == ANY_HOST_VERSION:
        return True
    return _parse_version(expected) == _parse_version(actual)


def _invalid(path: Path, message: str) -> DiscoveryError:
    return DiscoveryError.invalid_manifest(path, ValueError(message))


def _string_list(path: Path, data: dict, key: str, plugin_id: str) -> tuple[str, ...]:
    value = data.get(key, [])
    if not isinstance(value, list) or not all(isinstance(v, str) and v for v in value):
        raise _invalid(
            path, f'The "{key}" in plugin manifest for "{plugin_id}" must be a list of strings.'
        )
    return tuple(value)


def parse_manifest(plugin_path: Path, host_version: str) -> PluginManifest:
    """Read and validate the manifest of the plugin at *plugin_path*.

    Raises DiscoveryError (missing-manifest, invalid-manifest or
    incompatible-version). The error path is the manifest file itself.
    """
    path = manifest_path(plugin_path)
    try:
        raw = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise DiscoveryError.invalid_manifest(path, e) from e
    except OSError as e:
        raise DiscoveryError.missing_manifest(path, e) from e

    try:
        data = json.loads(raw)
    except (ValueError, RecursionError) as e:
        raise DiscoveryError.invalid_manifest(path, e) from e

    if not isinstance(data, dict):
        raise _invalid(path, "Plugin manifest must contain a JSON encoded object.")

    plugin_id = data.get("id")
    if not plugin_id or not isinstance(plugin_id, str):
        raise _invalid(path, 'Plugin manifest must contain an "id" property.')

    version = data.get("version")
    if not version or not isinstance(version, str):
        raise _invalid(path, f'Plugin manifest for "{plugin_id}" must contain a "version" property.')

    config_path = data.get("configPath", "")
    if isinstance(config_path, list) and all(isinstance(p, str) for p in config_path):
        config_path = tuple(config_path)
    elif not isinstance(config_path, str):
        raise _invalid(
            path,
            f'The "configPath" in plugin manifest for "{plugin_id}" '
            "should either be a string or an array of strings.",
        )

    server = data.get("server", False)
    ui = data.get("ui", False)
    if not isinstance(server, bool) or not isinstance(ui, bool):
        raise _invalid(path, f'"server" and "ui" in plugin manifest for "{plugin_id}" must be booleans.')
    if not server and not ui:
        raise _invalid(
            path,
            f'Both "server" and "ui" are missing or set to "false" in plugin manifest '
            f'for "{plugin_id}", but at least one of these must be set to "true".',
        )

    expected_host = data.get("hostVersion", version)
    if not isinstance(expected_host, str):
        raise _invalid(path, f'The "hostVersion" in plugin manifest for "{plugin_id}" must be a string.')
    if not is_version_compatible(expected_host, host_version):
        raise DiscoveryError.incompatible_version(
            path,
            ValueError(
                f'Plugin "{plugin_id}" is only compatible with host version '
                f'"{expected_host}", but used host version is "{host_version}".'
            ),
        )

    return PluginManifest(
        id=plugin_id,
        version=version,
        host_version=expected_host,
        config_path=config_path,
        required_plugins=_string_list(path, data, "requiredPlugins", plugin_id),
        optional_plugins=_string_list(path, data, "optionalPlugins", plugin_id),
        server=server,
        ui=ui,
    )
