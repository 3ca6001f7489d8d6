"""
Common utility functions for bundlekit
"""

import logging
import shutil
import tempfile
from pathlib import Path
from typing import Any, List, Optional, Sequence, Union

from .constants import LOG_FORMAT

# Setup module logger
logger = logging.getLogger(__name__)

KeyPath = Union[str, Sequence[Union[str, int]]]

_MISSING = object()


def split_key_path(path: KeyPath) -> List[Union[str, int]]:
    """
    Split a dotted key path into segments

    Numeric segments become integers so they can index lists.
    'module.loaders.0.loader' -> ['module', 'loaders', 0, 'loader']
    """
    segments = path.split(".") if isinstance(path, str) else list(path)
    return [int(s) if isinstance(s, str) and s.isdigit() else s for s in segments]


def _child(container: Any, segment: Union[str, int]) -> Any:
    if isinstance(container, dict):
        value = container.get(segment, _MISSING)
        if value is _MISSING and isinstance(segment, int):
            value = container.get(str(segment), _MISSING)
        return value
    if isinstance(container, list) and isinstance(segment, int):
        return container[segment] if -len(container) <= segment < len(container) else _MISSING
    if isinstance(segment, str):
        return getattr(container, segment, _MISSING)
    return _MISSING


def get_path(target: Any, path: KeyPath, default: Any = None) -> Any:
    """
    Read a nested value by key path

    Returns:
        The value, or `default` when any segment is absent
    """
    current = target
    for segment in split_key_path(path):
        current = _child(current, segment)
        if current is _MISSING:
            return default
    return current


def set_path(target: Any, path: KeyPath, value: Any) -> None:
    """
    Write a nested value by key path, creating intermediate containers

    A missing container becomes a list when the next segment is an integer,
    otherwise a dict.
    """
    segments = split_key_path(path)
    if not segments:
        raise ValueError("Key path must not be empty")

    current = target
    for segment, following in zip(segments, segments[1:]):
        child = _child(current, segment)
        if child is _MISSING or child is None:
            child = [] if isinstance(following, int) else {}
            _assign(current, segment, child)
        current = child

    _assign(current, segments[-1], value)


def _assign(container: Any, segment: Union[str, int], value: Any) -> None:
    if isinstance(container, list) and isinstance(segment, int):
        if segment >= len(container):
            container.extend([None] * (segment + 1 - len(container)))
        container[segment] = value
    elif isinstance(container, dict):
        if isinstance(segment, int) and segment not in container:
            segment = str(segment)
        container[segment] = value
    else:
        setattr(container, str(segment), value)


def safe_mkdir(directory: Union[str, Path]) -> Path:
    """
    Create directory safely (no error if exists)

    Args:
        directory: Directory path to create

    Returns:
        Path object of created directory
    """
    path = Path(directory)
    try:
        path.mkdir(parents=True, exist_ok=True)
        return path
    except OSError as e:
        logger.error(f"Failed to create directory {directory}: {e}")
        raise


def safe_rmdir(directory: Union[str, Path], ignore_errors: bool = True) -> bool:
    """
    Remove directory safely

    Args:
        directory: Directory to remove
        ignore_errors: Whether to ignore errors

    Returns:
        True if removed successfully
    """
    try:
        path = Path(directory)
        if path.exists():
            shutil.rmtree(path)
        return True
    except OSError as e:
        logger.warning(f"Failed to remove directory {directory}: {e}")
        if not ignore_errors:
            raise
        return False


def write_file_atomic(file_path: Union[str, Path], content: str, encoding: str = 'utf-8') -> None:
    """
    Write file content atomically (write to temp, then move)

    Args:
        file_path: Target file path
        content: Content to write
        encoding: File encoding

    Raises:
        IOError: If file cannot be written
    """
    path = Path(file_path)
    tmp_path: Optional[str] = None
    try:
        safe_mkdir(path.parent)

        with tempfile.NamedTemporaryFile(
            mode='w',
            encoding=encoding,
            dir=path.parent,
            delete=False
        ) as tmp_file:
            tmp_file.write(content)
            tmp_path = tmp_file.name

        shutil.move(tmp_path, path)

    except OSError as e:
        if tmp_path is not None:
            Path(tmp_path).unlink(missing_ok=True)

        logger.error(f"Failed to write file {file_path}: {e}")
        raise IOError(f"Cannot write file {file_path}: {e}") from e


def setup_logging(level: int = logging.INFO, format_str: Optional[str] = None) -> None:
    """
    Setup logging for bundlekit

    Args:
        level: Logging level
        format_str: Custom format string
    """
    if format_str is None:
        format_str = LOG_FORMAT

    bundlekit_logger = logging.getLogger('bundlekit')

    if not bundlekit_logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(format_str)
        handler.setFormatter(formatter)
        bundlekit_logger.addHandler(handler)
        bundlekit_logger.setLevel(level)
        bundlekit_logger.propagate = False
