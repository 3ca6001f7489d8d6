"""
Bundler plugins

Plugins take part in the compiler's event bus through `apply(compiler)` and
describe themselves to the bundler through `to_native()`.
"""

import copy
import logging
from typing import Any, Dict, Optional

from .constants import (
    BUILD_DONE, BUILD_ERROR, BUILD_START,
    COMPILER_COMPILE, COMPILER_DONE, COMPILER_FAILED,
)
from .events import EventEmitter

logger = logging.getLogger(__name__)


class Plugin:
    """Base class for bundler plugins"""

    name = "Plugin"

    def __init__(self, options: Optional[Dict[str, Any]] = None):
        self.options = dict(options or {})

    def apply(self, compiler) -> None:
        """Hook into the compiler event bus; no-op by default"""

    def to_native(self) -> Dict[str, Any]:
        return {"name": self.name, "options": self.options}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.options!r})"


class MinifyPlugin(Plugin):
    """Minification and compression of emitted chunks"""

    name = "UglifyJsPlugin"


class ProvidePlugin(Plugin):
    """Expose modules as free global symbols (e.g. `$` -> jquery)"""

    name = "ProvidePlugin"

    def __init__(self, definitions: Dict[str, str]):
        super().__init__(definitions)

    @property
    def definitions(self) -> Dict[str, str]:
        return self.options


class BuildLoggerPlugin(Plugin):
    """
    Reports compilation lifecycle as build.start / build.done / build.error

    The plugin owns its own emitter so listeners never depend on the
    compiler's native event names.
    """

    name = "BuildLoggerPlugin"

    def __init__(self, options: Optional[Dict[str, Any]] = None):
        super().__init__(options)
        self.events = EventEmitter()

    def on(self, event: str, listener):
        return self.events.on(event, listener)

    def apply(self, compiler) -> None:
        compiler.plugin(COMPILER_COMPILE, self._on_compile)
        compiler.plugin(COMPILER_DONE, self._on_done)
        compiler.plugin(COMPILER_FAILED, self._on_failed)

    def _on_compile(self, *args) -> None:
        logger.info("Build started")
        self.events.emit(BUILD_START)

    def _on_done(self, stats) -> None:
        logger.info("Build finished")
        self.events.emit(BUILD_DONE, stats)

    def _on_failed(self, error) -> None:
        logger.error(f"Build failed: {error}")
        self.events.emit(BUILD_ERROR, error)

    def __deepcopy__(self, memo):
        # Copies share the emitter so the bridge keeps firing; options are copied.
        clone = type(self).__new__(type(self))
        memo[id(self)] = clone
        clone.options = copy.deepcopy(self.options, memo)
        clone.events = self.events
        return clone
