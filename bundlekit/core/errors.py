"""
Exception types raised by bundlekit
"""

from typing import Sequence


class BundlekitError(Exception):
    """Base class for all bundlekit errors"""


class ConfigurationError(BundlekitError, ValueError):
    """An unknown loader preset was requested"""

    def __init__(self, name: str, available: Sequence[str]):
        self.name = name
        self.available = list(available)
        super().__init__(
            f'Loader "{name}" does not exist. Available presets: {", ".join(self.available)}'
        )


class PatternError(BundlekitError, ValueError):
    """A loader test pattern could not be compiled"""

    def __init__(self, source: str, reason: str):
        self.source = source
        super().__init__(f"Invalid loader pattern {source!r}: {reason}")


class BuildError(BundlekitError):
    """The bundler reported a failed compilation"""

    def __init__(self, message: str, details=None):
        self.details = details
        super().__init__(message)


class BindError(BundlekitError, OSError):
    """The development server could not bind its address"""

    def __init__(self, host: str, port: int, reason: str):
        self.host = host
        self.port = port
        super().__init__(f"Cannot bind development server to {host}:{port}: {reason}")
