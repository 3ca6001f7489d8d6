"""
BundleMutator - owns one generated bundler configuration

The configuration is built once at construction, then only changed through
`set`, `add_loader` and `add_plugin`. Callers only ever receive deep copies.
Build lifecycle is re-emitted as build.start / build.done / build.error.
"""

import logging
from typing import Any, Callable, Dict

from .compiler import NodeCompiler
from .config import ApplicationIntent, BuildIntent, copy_config, generate
from .constants import BUILD_EVENTS
from .devserver import DevServer
from .events import EventEmitter
from .loaders import LoaderRule
from .plugins import BuildLoggerPlugin
from .utils import KeyPath, get_path, set_path

logger = logging.getLogger(__name__)


def _noop(*args: Any) -> None:
    pass


class BundleMutator:
    """Generated configuration plus the build/serve runners that consume it"""

    def __init__(self, key: str, build: BuildIntent, app: ApplicationIntent,
                 compiler_factory: Callable[[Dict[str, Any]], Any] = NodeCompiler,
                 server_factory: Callable[[Any, Dict[str, Any]], Any] = DevServer):
        self.key = key
        self.application_src = app.src
        self.application_dest = app.dest
        self._compiler_factory = compiler_factory
        self._server_factory = server_factory
        self._events = EventEmitter()

        self.__config, self.__server_config = generate(build, app)
        self.port = self.__server_config["port"]
        self.host = self.__server_config["host"]

        log_plugin = BuildLoggerPlugin({})
        for event in BUILD_EVENTS:
            log_plugin.on(event, self._relay(event))
        self.__config["plugins"].append(log_plugin)

        logger.debug(f"Mutator {key} ready with entry {list(self.__config['entry'])}")

    def _relay(self, event: str) -> Callable:
        def forward(*args: Any) -> None:
            self._events.emit(event, *args)
        return forward

    # --- events

    def on(self, event: str, listener: Callable) -> Callable:
        return self._events.on(event, listener)

    def once(self, event: str, listener: Callable) -> Callable:
        return self._events.once(event, listener)

    def off(self, event: str, listener: Callable) -> None:
        self._events.off(event, listener)

    # --- mutation

    def get(self, path: KeyPath, default: Any = None) -> Any:
        """Read a copy of a nested configuration value; absent paths give `default`"""
        return copy_config(get_path(self.__config, path, default))

    def set(self, path: KeyPath, value: Any) -> None:
        """Write a nested configuration value; keys are not validated"""
        set_path(self.__config, path, value)

    def add_loader(self, loader: LoaderRule) -> None:
        """Append a loader rule; order is kept as given"""
        self.__config["module"]["loaders"].append(loader)

    def add_plugin(self, plugin: Any) -> None:
        self.__config["plugins"].append(plugin)

    # --- snapshots

    def get_config(self) -> Dict[str, Any]:
        """Deep, independent copy of the owned configuration"""
        return copy_config(self.__config)

    def get_server_config(self) -> Dict[str, Any]:
        return copy_config(self.__server_config)

    # --- runners

    def get_builder(self):
        return self._compiler_factory(self.get_config())

    def build(self, callback: Callable = _noop):
        """Compile once; `callback(error, stats)` gets the bundler's result unchanged"""
        builder = self.get_builder()
        logger.info(f"Building {self.key}")
        return builder.run(callback)

    def get_server(self):
        return self._server_factory(self.get_builder(), self.get_server_config())

    def serve(self, callback: Callable = _noop, instance: Any = None):
        """Start the dev server; `callback({'port', 'host'})` runs once it is bound"""
        server = instance or self.get_server()

        def listening(*args: Any) -> None:
            callback({"port": self.port, "host": self.host})

        server.listen(self.port, self.host, listening)
        return server
