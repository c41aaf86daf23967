"""
Exception hierarchy for the loading and configuration layers.

The graph builder and the cross-reference validator never raise on model
content; these exceptions belong to the code that reads files from disk.
"""

from pathlib import Path
from typing import Optional, Union


class DomainPackError(Exception):
    """Base class for all domainpack errors."""


class ModelLoadError(DomainPackError):
    """A record file was readable but did not have the expected shape."""

    def __init__(self, path: Union[str, Path], reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"{self.path}: {reason}")


class ConfigError(DomainPackError):
    """Invalid configuration file or configuration value."""

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None):
        self.path = str(path) if path is not None else None
        super().__init__(message)
