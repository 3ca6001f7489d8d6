"""
bundlekit - webpack configuration builder with a development server
"""

from .core import (
    ApplicationIntent,
    BuildIntent,
    BundleMutator,
    LoaderRule,
    StaticBundle,
    get_mutator,
)
from .core.utils import setup_logging

__version__ = "0.1.0"
__description__ = "Webpack configuration builder with keyed overrides and a development server"

__all__ = [
    "ApplicationIntent",
    "BuildIntent",
    "BundleMutator",
    "LoaderRule",
    "StaticBundle",
    "get_mutator",
    "setup_logging",
]
