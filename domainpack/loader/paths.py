"""
On-disk layout of a domain knowledge pack.

    <root>/.dkk/domain/index.yml
    <root>/.dkk/domain/actors.yml
    <root>/.dkk/domain/contexts/<name>/context.yml
    <root>/.dkk/domain/contexts/<name>/{events,commands,policies,aggregates,read-models}/*.yml
    <root>/.dkk/adr/*.md
"""

from pathlib import Path
from typing import Optional, Union

PACK_DIR = ".dkk"

# Sub-directory of a context holding one file per item, keyed by collection
ITEM_DIRS = {
    "events": "events",
    "commands": "commands",
    "policies": "policies",
    "aggregates": "aggregates",
    "read_models": "read-models",
}

CONTEXT_META_FILE = "context.yml"
YAML_SUFFIXES = (".yml", ".yaml")

PathLike = Union[str, Path]


def repo_root(override: Optional[PathLike] = None) -> Path:
    """Project root: the override if given, else the current directory."""
    if override:
        return Path(override).resolve()
    return Path.cwd().resolve()


def domain_dir(root: Optional[PathLike] = None) -> Path:
    return repo_root(root) / PACK_DIR / "domain"


def contexts_dir(root: Optional[PathLike] = None) -> Path:
    return domain_dir(root) / "contexts"


def index_file(root: Optional[PathLike] = None) -> Path:
    return domain_dir(root) / "index.yml"


def actors_file(root: Optional[PathLike] = None) -> Path:
    return domain_dir(root) / "actors.yml"


def adr_dir(root: Optional[PathLike] = None) -> Path:
    return repo_root(root) / PACK_DIR / "adr"
