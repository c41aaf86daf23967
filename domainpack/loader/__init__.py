"""
Filesystem loader producing a DomainModel from a project's ``.dkk/`` tree.
"""

from .adr_parser import parse_adr_file, parse_adr_frontmatter, strip_markdown
from .yaml_loader import load_context, load_domain_model, load_yaml

__all__ = [
    'load_context',
    'load_domain_model',
    'load_yaml',
    'parse_adr_file',
    'parse_adr_frontmatter',
    'strip_markdown',
]
