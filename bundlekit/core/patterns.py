"""
Path pattern normalization

Loader test patterns are written with forward slashes. Before they reach the
bundler every bare slash is escaped and then rewritten to the host path
separator, so the same expression matches on every platform.
"""

import os
import re
import logging
from typing import Union

from .errors import PatternError

logger = logging.getLogger(__name__)

_UNESCAPED_SLASH = re.compile(r"([^\\])/")


def normalize_path_expr(expr: str, sep: str = os.sep) -> str:
    """
    Escape unescaped slashes in a pattern fragment and rewrite them to `sep`

    Args:
        expr: Pattern source using forward slashes
        sep: Target path separator (defaults to the host separator)

    Returns:
        Pattern source suitable for the host platform
    """
    escaped = _UNESCAPED_SLASH.sub(lambda m: m.group(1) + "\\/", expr)
    return escaped.replace("/", sep)


def compile_path_expr(expr: Union[str, re.Pattern], sep: str = os.sep) -> re.Pattern:
    """
    Normalize and compile a pattern fragment

    Raises:
        PatternError: If the normalized source is not a valid expression
    """
    source = expr.pattern if isinstance(expr, re.Pattern) else expr
    normalized = normalize_path_expr(source, sep)
    try:
        return re.compile(normalized)
    except re.error as e:
        logger.error(f"Failed to compile loader pattern {source!r}: {e}")
        raise PatternError(source, str(e)) from e


def source_pattern(src: str, fragment: str, sep: str = os.sep) -> re.Pattern:
    """
    Compile `fragment` behind the application source root `src`

    The result is searched, not matched: `src` may appear anywhere in the
    path, including as the tail of a longer directory name (`mysrc-old`).
    """
    return compile_path_expr(f"{src}.+{fragment}", sep)
