"""Tests for PluginUnit: state machine, instance creation, initializer context."""

from pathlib import Path
from types import SimpleNamespace

import pytest

from plugweave.plugins.errors import PluginLoadError, PluginStateError
from plugweave.plugins.loader import RegistryLoader
from plugweave.plugins.models import Env, PluginDefinition, PluginManifest
from plugweave.plugins.unit import PluginState, PluginUnit


class _Plugin:
    def __init__(self, context):
        self.context = context
        self.calls = []

    def setup(self, deps, plugins):
        self.calls.append(("setup", deps, plugins))
        return {"setup": self.context.plugin_id}

    def start(self, deps, plugins):
        self.calls.append(("start", deps, plugins))
        return {"start": self.context.plugin_id}

    def stop(self):
        self.calls.append(("stop",))


def _definition(plugin_id="alpha", schema=None):
    return PluginDefinition(
        path=Path("/plugins") / plugin_id,
        manifest=PluginManifest(id=plugin_id, version="1.0.0", server=True),
        config_schema=schema,
    )


def _unit(module=None, **kwargs):
    module = module or SimpleNamespace(plugin=_Plugin)
    return PluginUnit(_definition(), RegistryLoader({"alpha": module}), **kwargs)


class TestLifecycle:
    def test_initial_state(self):
        unit = _unit()
        assert unit.state is PluginState.CREATED
        assert unit.instance is None
        assert unit.id == "alpha"

    def test_full_cycle(self):
        unit = _unit()
        assert unit.setup("core", {"dep": 1}) == {"setup": "alpha"}
        assert unit.state is PluginState.SET_UP
        assert unit.contract == {"setup": "alpha"}
        assert unit.start("core-start", {}) == {"start": "alpha"}
        assert unit.state is PluginState.STARTED
        unit.stop()
        assert unit.state is PluginState.STOPPED
        assert [c[0] for c in unit.instance.calls] == ["setup", "start", "stop"]
        assert unit.instance.calls[0] == ("setup", "core", {"dep": 1})

    def test_setup_twice(self):
        unit = _unit()
        unit.setup(None, {})
        with pytest.raises(PluginStateError):
            unit.setup(None, {})

    def test_start_before_setup(self):
        with pytest.raises(PluginStateError) as exc:
            _unit().start(None, {})
        assert "isn't set up" in str(exc.value)

    def test_start_after_stop(self):
        unit = _unit()
        unit.setup(None, {})
        unit.stop()
        with pytest.raises(PluginStateError):
            unit.start(None, {})

    def test_stop_from_created(self):
        unit = _unit()
        unit.stop()
        assert unit.state is PluginState.STOPPED

    def test_stop_twice(self):
        unit = _unit()
        unit.setup(None, {})
        unit.stop()
        with pytest.raises(PluginStateError):
            unit.stop()

    def test_stop_is_optional_on_instance(self):
        class NoStop:
            def __init__(self, context):
                pass

            def setup(self, deps, plugins):
                return None

            def start(self, deps, plugins):
                return None

        unit = _unit(SimpleNamespace(plugin=NoStop))
        unit.setup(None, {})
        unit.stop()
        assert unit.state is PluginState.STOPPED

    def test_failed_setup_stays_created(self):
        class Boom(_Plugin):
            def setup(self, deps, plugins):
                raise RuntimeError("boom")

        unit = _unit(SimpleNamespace(plugin=Boom))
        with pytest.raises(RuntimeError):
            unit.setup(None, {})
        assert unit.state is PluginState.CREATED


class TestInstanceCreation:
    def test_no_server_part(self):
        unit = PluginUnit(_definition(), RegistryLoader())
        with pytest.raises(PluginLoadError) as exc:
            unit.setup(None, {})
        assert "does not have a server part" in str(exc.value)

    def test_no_plugin_export(self):
        with pytest.raises(PluginLoadError) as exc:
            _unit(SimpleNamespace()).setup(None, {})
        assert 'does not export "plugin" definition' in str(exc.value)

    def test_initializer_returns_nothing(self):
        with pytest.raises(PluginLoadError) as exc:
            _unit(SimpleNamespace(plugin=lambda ctx: None)).setup(None, {})
        assert "expected to return plugin instance" in str(exc.value)

    def test_instance_without_start(self):
        instance = SimpleNamespace(setup=lambda deps, plugins: None)
        with pytest.raises(PluginLoadError) as exc:
            _unit(SimpleNamespace(plugin=lambda ctx: instance)).setup(None, {})
        assert 'does not define "start" function' in str(exc.value)


class TestInitializerContext:
    def test_context_fields(self):
        env = Env(host_version="3.0.0")
        unit = _unit(env=env, config={"level": 2})
        unit.setup(None, {})
        ctx = unit.instance.context
        assert ctx.plugin_id == "alpha"
        assert ctx.env is env
        assert ctx.config == {"level": 2}
        assert ctx.logger.name == "plugweave.plugins.alpha"

    def test_schema_validates_config(self):
        class Schema:
            def validate(self, value):
                return {"level": 1, **value}

        unit = PluginUnit(
            _definition(schema=Schema()),
            RegistryLoader({"alpha": SimpleNamespace(plugin=_Plugin)}),
            config={"extra": True},
        )
        unit.setup(None, {})
        assert unit.instance.context.config == {"level": 1, "extra": True}

    def test_schema_errors_propagate(self):
        class Strict:
            def validate(self, value):
                raise ValueError("bad config")

        unit = PluginUnit(
            _definition(schema=Strict()),
            RegistryLoader({"alpha": SimpleNamespace(plugin=_Plugin)}),
        )
        with pytest.raises(ValueError, match="bad config"):
            unit.setup(None, {})
