"""
Loader rules and the preset registry

A preset is a named, pre-built loader rule. Presets are anchored to the
application source root and always skip vendored dependency directories.
"""

import os
import re
import copy
import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .constants import VENDOR_EXCLUDE_PATTERN
from .errors import ConfigurationError, PatternError
from .patterns import compile_path_expr, source_pattern

logger = logging.getLogger(__name__)


@dataclass
class LoaderRule:
    """A (test, exclude, loader) triple handed to the bundler"""
    test: re.Pattern
    exclude: Optional[re.Pattern] = None
    loader: str = ""
    query: Optional[Dict[str, Any]] = None

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> "LoaderRule":
        """
        Build a rule from a plain mapping such as a parsed JSON file

        `test` stays as given and is compiled when the rule is normalized;
        a string `exclude` is compiled here.

        Raises:
            PatternError: If `exclude` cannot be compiled
        """
        exclude = options.get("exclude")
        if isinstance(exclude, str):
            try:
                exclude = re.compile(exclude)
            except re.error as e:
                raise PatternError(exclude, str(e)) from e
        return cls(
            test=options["test"],
            exclude=exclude,
            loader=options.get("loader", ""),
            query=copy.deepcopy(options.get("query")),
        )

    def matches(self, path: str) -> bool:
        """True when `path` is selected by `test` and not rejected by `exclude`"""
        if not self.test.search(path):
            return False
        return not (self.exclude is not None and self.exclude.search(path))

    def to_native(self) -> Dict[str, Any]:
        """Render the rule in the bundler's own configuration vocabulary"""
        native: Dict[str, Any] = {"test": self.test.pattern, "loader": self.loader}
        if self.exclude is not None:
            native["exclude"] = self.exclude.pattern
        if self.query is not None:
            native["query"] = self.query
        return native


# name -> (extension fragment, loader, query)
_PRESETS = (
    ("babel", r"\.js?$", "babel", {"presets": ["es2015", "stage-0"]}),
    ("jsx", r"\.jsx?$", "babel", {"presets": ["react", "es2015", "stage-0"]}),
    ("jade", r"\.jade?$", "jade", None),
    ("html", r"\.html?$", "html", None),
    ("json", r"\.json?$", "json", None),
    ("yaml", r"\.yml?$", "json!yaml", None),
)

PRESET_NAMES = tuple(name for name, _, _, _ in _PRESETS)


def build_registry(app, sep: str = os.sep) -> Dict[str, LoaderRule]:
    """
    Build the preset registry for an application

    Args:
        app: ApplicationIntent whose `src` anchors every preset
        sep: Path separator used when normalizing patterns

    Returns:
        Mapping of preset name to loader rule, in registration order
    """
    exclude = re.compile(VENDOR_EXCLUDE_PATTERN)
    registry: Dict[str, LoaderRule] = {}

    for name, fragment, loader, query in _PRESETS:
        registry[name] = LoaderRule(
            test=source_pattern(app.src, fragment, sep),
            exclude=exclude,
            loader=loader,
            query=copy.deepcopy(query),
        )

    return registry


def resolve_presets(names: Sequence[str], registry: Dict[str, LoaderRule]) -> List[LoaderRule]:
    """
    Look up preset names, failing on the first unknown one

    Raises:
        ConfigurationError: If a name is not registered
    """
    loaders = []
    for name in names:
        if name not in registry:
            logger.error(f"Unknown loader preset requested: {name}")
            raise ConfigurationError(name, list(registry))
        loaders.append(registry[name])
    return loaders


def normalize_loader(rule: LoaderRule, sep: str = os.sep) -> LoaderRule:
    """Return a copy of a custom rule with its source-relative test normalized"""
    return replace(rule, test=compile_path_expr(rule.test, sep))
