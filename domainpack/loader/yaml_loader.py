#!/usr/bin/env python3
"""
Domain Model Loader

Walks the ``.dkk/`` tree of a project, parses every YAML record and ADR
Markdown file, and assembles a DomainModel. This is the only place that
touches the filesystem; the graph builder and the validator work on the
returned model.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, TypeVar

import yaml

from ..errors import ModelLoadError
from ..model.types import (
    Actor,
    AdrRecord,
    Aggregate,
    BoundedContext,
    Command,
    DomainEvent,
    DomainIndex,
    DomainModel,
    GlossaryEntry,
    Policy,
    ReadModel,
)
from . import paths
from .adr_parser import parse_adr_file

logger = logging.getLogger(__name__)

T = TypeVar('T')


def load_yaml(path: Path) -> Dict[str, Any]:
    """
    Read a YAML document that must be a mapping.

    An empty file yields an empty dict. ``yaml.YAMLError`` propagates.
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except UnicodeDecodeError as e:
        raise ModelLoadError(path, f"not valid UTF-8 ({e.reason} at byte {e.start})") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ModelLoadError(path, f"expected a mapping at the top level, got {type(data).__name__}")
    return data


def _parse(path: Path, data: Dict[str, Any], factory: Callable[[Dict[str, Any]], T]) -> T:
    """Run a record factory, attaching the file path to shape errors."""
    try:
        return factory(data)
    except (ValueError, TypeError, AttributeError) as e:
        raise ModelLoadError(path, str(e)) from e


def list_yaml_files(directory: Path) -> List[Path]:
    """YAML files directly under ``directory``, dotfiles skipped, sorted by name."""
    if not directory.is_dir():
        return []
    return sorted(
        p for p in directory.iterdir()
        if p.is_file() and p.suffix.lower() in paths.YAML_SUFFIXES and not p.name.startswith('.')
    )


def list_adr_files(directory: Path) -> List[Path]:
    """Markdown files directly under ``directory`` except README.md and dotfiles."""
    if not directory.is_dir():
        return []
    return sorted(
        p for p in directory.iterdir()
        if p.is_file() and p.suffix.lower() == '.md'
        and not p.name.startswith('.') and p.name.lower() != 'readme.md'
    )


def load_context(ctx_dir: Path) -> Optional[BoundedContext]:
    """
    Load one bounded context from its per-item directory.

    Returns None when ``context.yml`` is absent or declares no name.
    """
    meta_path = ctx_dir / paths.CONTEXT_META_FILE
    if not meta_path.is_file():
        logger.debug(f"Skipping {ctx_dir}: no {paths.CONTEXT_META_FILE}")
        return None

    meta = load_yaml(meta_path)
    if not meta.get('name'):
        logger.warning(f"Skipping {ctx_dir}: {paths.CONTEXT_META_FILE} has no name")
        return None

    def load_items(collection: str, factory: Callable[[Dict[str, Any]], T]) -> List[T]:
        items = []
        for item_path in list_yaml_files(ctx_dir / paths.ITEM_DIRS[collection]):
            logger.debug(f"Loading {collection} record {item_path}")
            items.append(_parse(item_path, load_yaml(item_path), factory))
        return items

    glossary = [_parse(meta_path, g, GlossaryEntry.from_dict) for g in meta.get('glossary') or []]

    return BoundedContext(
        name=str(meta['name']),
        description=str(meta.get('description', '')),
        events=load_items('events', DomainEvent.from_dict),
        commands=load_items('commands', Command.from_dict),
        policies=load_items('policies', Policy.from_dict),
        aggregates=load_items('aggregates', Aggregate.from_dict),
        read_models=load_items('read_models', ReadModel.from_dict),
        glossary=glossary
    )


def load_contexts(contexts_root: Path) -> Dict[str, BoundedContext]:
    """Load every context directory under ``contexts_root``, keyed by declared name."""
    contexts: Dict[str, BoundedContext] = {}
    if not contexts_root.is_dir():
        return contexts

    for entry in sorted(contexts_root.iterdir()):
        if entry.name.startswith('.') or not entry.is_dir():
            continue
        ctx = load_context(entry)
        if ctx is not None:
            if ctx.name in contexts:
                logger.warning(f"Context '{ctx.name}' declared twice; keeping {entry}")
            contexts[ctx.name] = ctx

    return contexts


def load_adrs(adr_root: Path) -> Dict[str, AdrRecord]:
    adrs: Dict[str, AdrRecord] = {}
    for adr_path in list_adr_files(adr_root):
        record = parse_adr_file(adr_path)
        if record is not None:
            adrs[record.id] = record
    return adrs


def load_domain_model(root: Optional[paths.PathLike] = None) -> DomainModel:
    """
    Load the complete domain model of a project.

    Args:
        root: Project root holding ``.dkk/`` (default: current directory)

    Returns:
        Fully populated DomainModel

    Raises:
        yaml.YAMLError: A file is not valid YAML
        ModelLoadError: A record does not have the expected shape
        OSError: A file could not be read
    """
    index_path = paths.index_file(root)
    index = (_parse(index_path, load_yaml(index_path), DomainIndex.from_dict)
             if index_path.is_file() else DomainIndex())

    actors_path = paths.actors_file(root)
    actors: List[Actor] = []
    if actors_path.is_file():
        raw_actors = load_yaml(actors_path).get('actors') or []
        actors = [_parse(actors_path, a, Actor.from_dict) for a in raw_actors]

    contexts = load_contexts(paths.contexts_dir(root))
    adrs = load_adrs(paths.adr_dir(root))

    logger.info(f"Loaded domain model: {len(contexts)} contexts, {len(actors)} actors, "
                f"{len(adrs)} ADRs, {len(index.flows)} flows")

    return DomainModel(index=index, actors=actors, contexts=contexts, adrs=adrs)
