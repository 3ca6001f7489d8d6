"""
Configuration generation

Turns application intent (where sources live, where output goes) and build
intent (one bundle's entry, presets, plugins, dev-server address) into a
complete bundler configuration and a dev-server configuration.
"""

import os
import copy
import logging
import posixpath
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple

from .constants import (
    CHUNK_FILENAME, CUSTOM_RESPONSE_HEADERS, DEFAULT_DEV_HOST, DEFAULT_DEV_PORT,
    ENTRY_SUFFIX, OUTPUT_FILENAME, WATCH_AGGREGATE_TIMEOUT_MS, WATCH_POLL_MS,
)
from .loaders import LoaderRule, build_registry, normalize_loader, resolve_presets
from .plugins import MinifyPlugin, ProvidePlugin

logger = logging.getLogger(__name__)


class BundleDescriptor(Protocol):
    """The bundle a mutator builds: where it lands and what it starts from"""

    def original_destination(self) -> str: ...

    def collected_entry_modules(self) -> Any: ...


@dataclass(frozen=True)
class StaticBundle:
    """BundleDescriptor backed by fixed values"""
    destination: str
    modules: Tuple[str, ...] = ()

    def original_destination(self) -> str:
        return self.destination

    def collected_entry_modules(self) -> List[str]:
        return list(self.modules)


@dataclass(frozen=True)
class ApplicationIntent:
    """Source and destination roots of the application"""
    src: str
    dest: str


@dataclass(frozen=True)
class BuildIntent:
    """Everything one bundle needs to be configured"""
    bundle: BundleDescriptor
    devtool: Optional[str] = None
    debug: Optional[bool] = None
    bail: bool = False
    resolve: Sequence[str] = ()
    alias: Mapping[str, str] = field(default_factory=dict)
    loader_presets: Optional[Sequence[str]] = None
    loaders: Optional[Sequence[LoaderRule]] = None
    plugins: Optional[Sequence[Any]] = None
    optimize: bool = False
    shim: Optional[Mapping[str, str]] = None
    port: int = DEFAULT_DEV_PORT
    host: str = DEFAULT_DEV_HOST

    @classmethod
    def from_mapping(cls, bundle: BundleDescriptor, options: Mapping[str, Any]) -> "BuildIntent":
        """
        Build an intent from a plain mapping such as a parsed JSON file

        Both snake_case keys and webpack-mutator style camelCase
        `loadersPresets` are accepted. Unknown keys are ignored.
        """
        presets = options.get("loader_presets", options.get("loadersPresets"))
        return cls(
            bundle=bundle,
            devtool=options.get("devtool"),
            debug=options.get("debug"),
            bail=bool(options.get("bail", False)),
            resolve=tuple(options.get("resolve") or ()),
            alias=dict(options.get("alias") or {}),
            loader_presets=tuple(presets) if presets is not None else None,
            loaders=_loader_rules(options.get("loaders")),
            plugins=options.get("plugins"),
            optimize=bool(options.get("optimize", False)),
            shim=options.get("shim"),
            port=int(options.get("port") or DEFAULT_DEV_PORT),
            host=options.get("host") or DEFAULT_DEV_HOST,
        )


def _loader_rules(loaders: Optional[Sequence[Any]]) -> Optional[List[LoaderRule]]:
    if loaders is None:
        return None
    return [
        rule if isinstance(rule, LoaderRule) else LoaderRule.from_mapping(rule)
        for rule in loaders
    ]


def entry_key(destination: str) -> str:
    """'dist/app.js' -> 'dist/app'"""
    directory = posixpath.dirname(destination) or "."
    name = posixpath.basename(destination)
    if name.endswith(ENTRY_SUFFIX):
        name = name[:-len(ENTRY_SUFFIX)]
    return f"{directory}/{name}"


def generate_config(build: BuildIntent, app: ApplicationIntent, sep: str = os.sep) -> Dict[str, Any]:
    """
    Assemble the bundler configuration for one bundle

    Raises:
        ConfigurationError: If a loader preset name is unknown
        PatternError: If a custom loader pattern cannot be compiled
    """
    bundle = entry_key(build.bundle.original_destination())

    loaders: List[LoaderRule] = []
    if build.loader_presets is not None:
        loaders = resolve_presets(build.loader_presets, build_registry(app, sep))

    if build.loaders is not None:
        loaders = loaders + [normalize_loader(rule, sep) for rule in build.loaders]

    plugins: List[Any] = []
    if build.optimize:
        plugins.append(MinifyPlugin({"compress": {"warnings": False}}))

    if build.shim:
        plugins.append(ProvidePlugin(dict(build.shim)))

    if build.plugins:
        plugins.extend(build.plugins)

    config = {
        "bail": build.bail or False,
        "devtool": build.devtool,
        "debug": build.debug,
        "output": {
            "path": os.path.abspath(app.dest),
            "filename": OUTPUT_FILENAME,
            "chunk_filename": CHUNK_FILENAME,
            "pathinfo": True,
        },
        "resolve": {
            "modules_directories": list(build.resolve),
            "alias": dict(build.alias),
        },
        "entry": {
            bundle: build.bundle.collected_entry_modules(),
        },
        "plugins": plugins,
        "module": {
            "loaders": loaders,
        },
    }

    logger.debug(f"Generated config for {bundle}: {len(loaders)} loader(s), {len(plugins)} plugin(s)")
    return config


def generate_server_config(build: BuildIntent, app: ApplicationIntent) -> Dict[str, Any]:
    """Dev-server options: history fallback, quiet output, eager watch compilation"""
    return {
        "host": build.host or DEFAULT_DEV_HOST,
        "port": build.port or DEFAULT_DEV_PORT,
        "history_api_fallback": True,
        "content_base": app.dest,
        "quiet": True,
        "no_info": True,
        "lazy": False,
        "watch_options": {
            "aggregate_timeout": WATCH_AGGREGATE_TIMEOUT_MS,
            "poll": WATCH_POLL_MS,
        },
        "headers": dict(CUSTOM_RESPONSE_HEADERS),
        "stats": {
            "colors": True,
        },
    }


def generate(build: BuildIntent, app: ApplicationIntent,
             sep: str = os.sep) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """Generate the bundler and dev-server configurations together"""
    config = generate_config(build, app, sep)
    return config, generate_server_config(build, app)


def copy_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Deep, independent copy of a generated configuration"""
    return copy.deepcopy(config)
