"""
Node-backed bundler compiler

The bundler engine itself is webpack, driven through a small node script.
The generated configuration is serialized to JSON, the script rebuilds a
native webpack configuration from it and reports compilation lifecycle on
stdout as one JSON object per line.
"""

import json
import logging
import subprocess
import tempfile
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Protocol

from .constants import (
    COMPILER_COMPILE, COMPILER_DONE, COMPILER_FAILED,
    DEFAULT_BUILD_TIMEOUT, DEFAULT_NODE_COMMAND,
)
from .errors import BuildError
from .events import EventEmitter
from .utils import safe_rmdir, write_file_atomic

logger = logging.getLogger(__name__)

CompileCallback = Callable[[Optional[BaseException], Any], None]


class Compiler(Protocol):
    """What the mutator and dev server need from a bundler engine"""

    def plugin(self, event: str, handler: Callable) -> None: ...

    def run(self, callback: CompileCallback) -> Any: ...

    def watch(self, watch_options: Dict[str, Any], handler: CompileCallback) -> Any: ...


DRIVER_SCRIPT = """
const fs = require('fs');
const webpack = require('webpack');

const native = JSON.parse(fs.readFileSync(process.argv[2], 'utf-8'));
const watchMode = process.argv[3] === '--watch';

const report = (payload) => process.stdout.write(JSON.stringify(payload) + '\\n');

const pluginFactories = {
  UglifyJsPlugin: (options) => new webpack.optimize.UglifyJsPlugin(options),
  ProvidePlugin: (options) => new webpack.ProvidePlugin(options)
};

native.module.loaders = native.module.loaders.map((loader) => Object.assign({}, loader, {
  test: new RegExp(loader.test),
  exclude: loader.exclude ? new RegExp(loader.exclude) : undefined
}));

native.plugins = native.plugins
  .filter((plugin) => pluginFactories[plugin.name])
  .map((plugin) => pluginFactories[plugin.name](plugin.options));

const compiler = webpack(native);
compiler.plugin('compile', () => report({ event: 'compile' }));

const handler = (err, stats) => {
  if (err) {
    report({ event: 'failed', error: err.message || String(err) });
  } else if (stats.hasErrors()) {
    const json = stats.toJson();
    report({ event: 'failed', error: 'Compilation failed', details: json.errors });
  } else {
    report({ event: 'done', stats: stats.toJson({ modules: false, chunks: false }) });
  }
  if (!watchMode) {
    process.exit(err || stats.hasErrors() ? 1 : 0);
  }
};

if (watchMode) {
  compiler.watch(native.watchOptions || {}, handler);
} else {
  compiler.run(handler);
}
"""


# Generated snake_case keys and their webpack names; every other key passes through
NATIVE_KEYS = {
    "output": {"chunk_filename": "chunkFilename"},
    "resolve": {"modules_directories": "modulesDirectories"},
}


def _render(item: Any) -> Any:
    return item.to_native() if hasattr(item, "to_native") else item


def to_native(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Render a generated configuration in webpack's own key names

    Keys set through the mutator that bundlekit does not generate are handed
    to webpack unchanged, so they should be written in webpack's spelling.
    """
    native: Dict[str, Any] = {}
    for key, value in config.items():
        renames = NATIVE_KEYS.get(key)
        if renames and isinstance(value, dict):
            value = {renames.get(name, name): item for name, item in value.items()}
        native[key] = value

    native["plugins"] = [_render(plugin) for plugin in config.get("plugins", [])]
    module = dict(config.get("module") or {})
    module["loaders"] = [_render(loader) for loader in module.get("loaders", [])]
    native["module"] = module
    return native


class Watching:
    """Handle on a running watch-mode compilation"""

    def __init__(self, process: subprocess.Popen, thread: threading.Thread,
                 on_close: Optional[Callable[[], None]] = None):
        self.process = process
        self.thread = thread
        self.on_close = on_close

    def close(self) -> None:
        if self.process.poll() is None:
            self.process.terminate()
            try:
                self.process.wait(timeout=5)
            except subprocess.TimeoutExpired:
                self.process.kill()
        if self.on_close is not None:
            self.on_close()
        logger.info("Watch compilation stopped")


class NodeCompiler:
    """Compiler that runs webpack in a node subprocess"""

    def __init__(self, config: Dict[str, Any], node_command: str = DEFAULT_NODE_COMMAND,
                 timeout: int = DEFAULT_BUILD_TIMEOUT, work_dir: Optional[Path] = None):
        self.config = config
        self.node_command = node_command
        self.timeout = timeout
        # Scratch directories we create are removed after each run
        self.owns_work_dir = work_dir is None
        self.work_dir = Path(work_dir or tempfile.mkdtemp(prefix="bundlekit-"))
        self.events = EventEmitter()

        for plugin in config.get("plugins", []):
            if hasattr(plugin, "apply"):
                plugin.apply(self)

    def plugin(self, event: str, handler: Callable) -> None:
        self.events.on(event, handler)

    def _prepare(self, watch_options: Optional[Dict[str, Any]] = None) -> List[str]:
        native = to_native(self.config)
        if watch_options is not None:
            native["watchOptions"] = {
                "aggregateTimeout": watch_options.get("aggregate_timeout"),
                "poll": watch_options.get("poll"),
            }

        try:
            content = json.dumps(native, indent=2)
        except (TypeError, ValueError) as e:
            logger.error(f"Configuration cannot be handed to webpack: {e}")
            raise BuildError(f"Configuration is not serializable: {e}") from e

        config_file = self.work_dir / "webpack.config.json"
        driver_file = self.work_dir / "driver.js"
        write_file_atomic(config_file, content)
        write_file_atomic(driver_file, DRIVER_SCRIPT)

        command = [self.node_command, str(driver_file), str(config_file)]
        if watch_options is not None:
            command.append("--watch")
        return command

    def _dispatch(self, line: str, handler: Optional[CompileCallback]) -> Optional[str]:
        """Route one reported lifecycle line onto the event bus, returning its event name"""
        line = line.strip()
        if not line:
            return None
        try:
            payload = json.loads(line)
        except json.JSONDecodeError:
            logger.debug(f"webpack: {line}")
            return None

        event = payload.get("event")
        if event == COMPILER_COMPILE:
            self.events.emit(COMPILER_COMPILE)
        elif event == COMPILER_DONE:
            stats = payload.get("stats")
            self.events.emit(COMPILER_DONE, stats)
            if handler:
                handler(None, stats)
        elif event == COMPILER_FAILED:
            error = BuildError(payload.get("error", "Compilation failed"), payload.get("details"))
            self.events.emit(COMPILER_FAILED, error)
            if handler:
                handler(error, None)
        return event

    def cleanup(self) -> None:
        """Remove the scratch directory unless the caller supplied it"""
        if self.owns_work_dir:
            safe_rmdir(self.work_dir)

    def _run_once(self, callback: CompileCallback) -> None:
        try:
            self._compile(callback)
        finally:
            self.cleanup()

    def _compile(self, callback: CompileCallback) -> None:
        try:
            command = self._prepare()
            logger.debug(f"Executing webpack driver: {' '.join(command)}")
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                encoding="utf-8",
                timeout=self.timeout,
            )
        except BuildError as error:
            self.events.emit(COMPILER_FAILED, error)
            callback(error, None)
            return
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.error(f"webpack driver could not complete: {e}")
            error = BuildError(str(e))
            self.events.emit(COMPILER_FAILED, error)
            callback(error, None)
            return

        reported = False
        for line in result.stdout.splitlines():
            if self._dispatch(line, callback) in (COMPILER_DONE, COMPILER_FAILED):
                reported = True

        if not reported:
            error = BuildError(
                f"webpack driver exited with code {result.returncode}", result.stderr.strip()
            )
            self.events.emit(COMPILER_FAILED, error)
            callback(error, None)

    def run(self, callback: CompileCallback) -> threading.Thread:
        """Compile once on a worker thread, then call `callback(error, stats)`"""
        thread = threading.Thread(target=self._run_once, args=(callback,), daemon=True)
        thread.start()
        return thread

    def watch(self, watch_options: Dict[str, Any], handler: CompileCallback) -> Watching:
        """Start webpack in watch mode; `handler` runs after every rebuild"""
        try:
            command = self._prepare(watch_options)
            logger.debug(f"Starting webpack watcher: {' '.join(command)}")
            process = subprocess.Popen(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
            )
        except Exception:
            self.cleanup()
            raise

        def pump():
            assert process.stdout is not None
            for line in process.stdout:
                self._dispatch(line, handler)

        thread = threading.Thread(target=pump, daemon=True)
        thread.start()
        return Watching(process, thread, on_close=self.cleanup)
