#!/usr/bin/env python3
"""
Domain Knowledge Pack

Relationship graph and cross-reference validation for a declarative
knowledge base of domain-driven-design artifacts (events, commands,
aggregates, policies, read models, glossary terms, actors, ADRs, flows).
"""

__version__ = "0.1.0"
__description__ = "Relationship graph and cross-reference validator for DDD knowledge bases"

import logging
import sys
from typing import Optional

# Get package logger
logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

# Version info
VERSION_INFO = tuple(map(int, __version__.split('.')))


def get_version() -> str:
    """Get the current version string."""
    return __version__


def setup_logging(level: str = "INFO", log_file: Optional[str] = None):
    """Setup logging configuration."""
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f'Invalid log level: {level}')

    handlers = [logging.StreamHandler(sys.stderr)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=numeric_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True
    )

    logger.debug(f"Logging configured at {level} level")


from .model.types import DomainModel
from .graph.builder import DomainGraph, GraphBuilder, build_graph
from .validation.cross_reference import (
    CrossReferenceValidator,
    ValidationResult,
    ValidatorOptions,
    validate,
)
from .loader.yaml_loader import load_domain_model

__all__ = [
    'DomainModel',
    'DomainGraph',
    'GraphBuilder',
    'build_graph',
    'CrossReferenceValidator',
    'ValidationResult',
    'ValidatorOptions',
    'validate',
    'load_domain_model',
    'get_version',
    'setup_logging',
    '__version__'
]
