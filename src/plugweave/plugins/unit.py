"""PluginUnit: one plugin's lifecycle state machine."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .errors import PluginLoadError, PluginStateError
from .models import Env, PluginDefinition

if TYPE_CHECKING:
    from .loader import ModuleLoader


class PluginState(str, enum.Enum):
    CREATED = "created"
    SET_UP = "set_up"
    STARTED = "started"
    STOPPED = "stopped"


@dataclass
class PluginInitializerContext:
    """Handed to a plugin's ``plugin(context)`` initializer."""

    plugin_id: str
    env: Env
    config: dict[str, Any] = field(default_factory=dict)
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("plugweave.plugins"))


class PluginUnit:
    """Wraps one plugin definition and the instance created from it.

    Created -> SetUp -> Started -> Stopped. Anything else is an
    orchestration bug and raises PluginStateError.
    """

    def __init__(
        self,
        definition: PluginDefinition,
        loader: ModuleLoader,
        env: Env | None = None,
        config: dict[str, Any] | None = None,
    ):
        self.definition = definition
        self.loader = loader
        self.env = env or Env()
        self.config = dict(config or {})
        self.state = PluginState.CREATED
        self.instance: Any = None
        self.contract: Any = None
        self.log = logging.getLogger(f"plugweave.plugins.{self.id}")

    def __repr__(self) -> str:
        return f"PluginUnit({self.id!r}, state={self.state.value})"

    @property
    def id(self) -> str:
        return self.definition.manifest.id

    @property
    def path(self):
        return self.definition.path

    @property
    def manifest(self):
        return self.definition.manifest

    @property
    def required_plugins(self) -> tuple[str, ...]:
        return self.manifest.required_plugins

    @property
    def optional_plugins(self) -> tuple[str, ...]:
        return self.manifest.optional_plugins

    @property
    def includes_server_plugin(self) -> bool:
        return self.manifest.server

    def _initializer_context(self) -> PluginInitializerContext:
        config = self.config
        schema = self.definition.config_schema
        if schema is not None:
            config = schema.validate(config)
        return PluginInitializerContext(
            plugin_id=self.id, env=self.env, config=config, logger=self.log
        )

    def _create_instance(self) -> Any:
        handle = self.loader.try_load(self.path)
        if handle is None:
            raise PluginLoadError(self.id, f'Plugin "{self.id}" does not have a server part ({self.path}).')
        initializer = getattr(handle, "plugin", None)
        if not callable(initializer):
            raise PluginLoadError(
                self.id, f'Plugin "{self.id}" does not export "plugin" definition ({self.path}).'
            )
        instance = initializer(self._initializer_context())
        if instance is None or not hasattr(instance, "setup"):
            raise PluginLoadError(
                self.id, f'Initializer for plugin "{self.id}" is expected to return plugin instance.'
            )
        for method in ("setup", "start"):
            if not callable(getattr(instance, method, None)):
                raise PluginLoadError(
                    self.id, f'Instance of plugin "{self.id}" does not define "{method}" function.'
                )
        return instance

    def setup(self, deps: Any, plugin_contracts: dict[str, Any]) -> Any:
        """Instantiate the plugin and run its setup; returns its contract."""
        if self.state is not PluginState.CREATED:
            raise PluginStateError(
                self.id, f'Plugin "{self.id}" can\'t be set up from state "{self.state.value}".'
            )
        self.instance = self._create_instance()
        self.contract = self.instance.setup(deps, plugin_contracts)
        self.state = PluginState.SET_UP
        return self.contract

    def start(self, deps: Any, plugin_contracts: dict[str, Any]) -> Any:
        if self.state is not PluginState.SET_UP:
            raise PluginStateError(
                self.id, f'Plugin "{self.id}" can\'t be started since it isn\'t set up.'
            )
        contract = self.instance.start(deps, plugin_contracts)
        self.state = PluginState.STARTED
        return contract

    def stop(self) -> None:
        if self.state is PluginState.STOPPED:
            raise PluginStateError(self.id, f'Plugin "{self.id}" is already stopped.')
        instance = self.instance
        self.state = PluginState.STOPPED
        stop = getattr(instance, "stop", None)
        if callable(stop):
            stop()
