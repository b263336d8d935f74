"""Tests for the manifest reader: parsing, defaults, validation, host version."""

import json

import pytest

from plugweave.plugins.errors import DiscoveryError
from plugweave.plugins.manifest import (
    is_plugin_dir,
    is_version_compatible,
    manifest_path,
    parse_manifest,
)
from plugweave.plugins.models import PluginManifest, snake_case


def _write(plugin_dir, data):
    plugin_dir.mkdir(parents=True, exist_ok=True)
    text = data if isinstance(data, str) else json.dumps(data)
    (plugin_dir / "plugin.json").write_text(text)
    return plugin_dir


class TestParseManifest:
    def test_full_manifest(self, tmp_path):
        d = _write(
            tmp_path / "alpha",
            {
                "id": "alpha",
                "version": "1.2.0",
                "hostVersion": "7.0.0",
                "configPath": ["x", "alpha"],
                "requiredPlugins": ["beta"],
                "optionalPlugins": ["gamma"],
                "server": True,
                "ui": True,
            },
        )
        m = parse_manifest(d, "7.0.0")
        assert m == PluginManifest(
            id="alpha",
            version="1.2.0",
            host_version="7.0.0",
            config_path=("x", "alpha"),
            required_plugins=("beta",),
            optional_plugins=("gamma",),
            server=True,
            ui=True,
        )

    def test_defaults(self, tmp_path):
        d = _write(tmp_path / "p", {"id": "someId", "version": "1.0.0", "hostVersion": "host", "ui": True})
        m = parse_manifest(d, "5.0.0")
        assert m.config_path == "some_id"
        assert m.required_plugins == ()
        assert m.optional_plugins == ()
        assert m.server is False

    def test_host_version_defaults_to_plugin_version(self, tmp_path):
        d = _write(tmp_path / "p", {"id": "p", "version": "2.0.0", "server": True})
        assert parse_manifest(d, "2.0.0").host_version == "2.0.0"
        with pytest.raises(DiscoveryError) as exc:
            parse_manifest(d, "3.0.0")
        assert exc.value.kind == "incompatible-version"

    def test_incompatible_version_message(self, tmp_path):
        d = _write(tmp_path / "p", {"id": "p", "version": "1.0.0", "hostVersion": "6.0.0", "server": True})
        with pytest.raises(DiscoveryError) as exc:
            parse_manifest(d, "7.0.0")
        assert exc.value.path == str(manifest_path(d))
        assert 'only compatible with host version "6.0.0"' in str(exc.value)

    def test_unreadable_manifest(self, tmp_path):
        d = tmp_path / "p"
        (d / "plugin.json").mkdir(parents=True)
        with pytest.raises(DiscoveryError) as exc:
            parse_manifest(d, "1.0.0")
        assert exc.value.kind == "missing-manifest"

    @pytest.mark.parametrize(
        "data, fragment",
        [
            ("not json", ""),
            ("[]", "JSON encoded object"),
            ({"version": "1.0.0", "server": True}, '"id" property'),
            ({"id": "p", "server": True}, '"version" property'),
            ({"id": "p", "version": "1.0.0"}, 'Both "server" and "ui"'),
            ({"id": "p", "version": "1.0.0", "server": True, "configPath": 5}, "configPath"),
            ({"id": "p", "version": "1.0.0", "server": True, "requiredPlugins": "x"}, "requiredPlugins"),
            ({"id": "p", "version": "1.0.0", "server": True, "optionalPlugins": [1]}, "optionalPlugins"),
            ({"id": "p", "version": "1.0.0", "server": "yes"}, "booleans"),
        ],
    )
    def test_invalid_manifests(self, tmp_path, data, fragment):
        d = _write(tmp_path / "p", data)
        with pytest.raises(DiscoveryError) as exc:
            parse_manifest(d, "1.0.0")
        assert exc.value.kind == "invalid-manifest"
        assert exc.value.is_fatal
        assert fragment in str(exc.value)


class TestVersionCompatibility:
    def test_any_host(self):
        assert is_version_compatible("host", "0.0.1") is True

    def test_exact(self):
        assert is_version_compatible("7.3.0", "7.3.0") is True

    def test_suffix_ignored(self):
        assert is_version_compatible("7.3.0", "7.3.0-SNAPSHOT") is True

    def test_short_version_padded(self):
        assert is_version_compatible("7.3", "7.3.0") is True

    def test_mismatch(self):
        assert is_version_compatible("7.3.0", "7.4.0") is False


class TestHelpers:
    def test_is_plugin_dir(self, tmp_path):
        assert is_plugin_dir(tmp_path) is False
        _write(tmp_path, {"id": "x"})
        assert is_plugin_dir(tmp_path) is True

    @pytest.mark.parametrize(
        "value, expected",
        [("myPluginId", "my_plugin_id"), ("some-id", "some_id"), ("a.b", "a_b"), ("plain", "plain")],
    )
    def test_snake_case(self, value, expected):
        assert snake_case(value) == expected
