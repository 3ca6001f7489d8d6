"""
bundlekit core - bundler configuration generation and mutation

Builds webpack configurations from application and bundle intent, allows
keyed edits of the result, and runs builds or a development server from it.
"""

import logging

from .config import (
    ApplicationIntent, BuildIntent, BundleDescriptor, StaticBundle,
    entry_key, generate, generate_config, generate_server_config,
)
from .errors import BindError, BuildError, BundlekitError, ConfigurationError, PatternError
from .loaders import PRESET_NAMES, LoaderRule, build_registry, resolve_presets
from .mutator import BundleMutator
from .patterns import normalize_path_expr
from .plugins import BuildLoggerPlugin, MinifyPlugin, Plugin, ProvidePlugin

logger = logging.getLogger(__name__)

__version__ = "0.1.0"
__all__ = [
    "ApplicationIntent",
    "BuildIntent",
    "BundleDescriptor",
    "StaticBundle",
    "BundleMutator",
    "LoaderRule",
    "PRESET_NAMES",
    "Plugin",
    "MinifyPlugin",
    "ProvidePlugin",
    "BuildLoggerPlugin",
    "BundlekitError",
    "ConfigurationError",
    "PatternError",
    "BuildError",
    "BindError",
    "build_registry",
    "resolve_presets",
    "normalize_path_expr",
    "entry_key",
    "generate",
    "generate_config",
    "generate_server_config",
    "get_mutator",
]


def get_mutator(key: str, options: dict, src: str, dest: str, bundle: BundleDescriptor) -> BundleMutator:
    """
    Get a mutator from plain option mappings

    Args:
        key: Unique key of the bundle
        options: Build options (see BuildIntent.from_mapping)
        src: Application source root
        dest: Application destination root
        bundle: Descriptor of the bundle being built

    Returns:
        Configured BundleMutator instance
    """
    build = BuildIntent.from_mapping(bundle, options)
    return BundleMutator(key, build, ApplicationIntent(src=src, dest=dest))
