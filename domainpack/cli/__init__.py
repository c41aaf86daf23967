#!/usr/bin/env python3
"""
CLI Interface for Domain Knowledge Packs

Provides the ``dkk`` command group: validate, related, list, show, graph
and adr related.
"""

from .config import load_config, validate_config
from .main import cli, main

__all__ = [
    'main',
    'cli',
    'load_config',
    'validate_config'
]
