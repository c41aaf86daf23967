#!/usr/bin/env python3
"""
dkk command line

Usage: dkk <command> [options]

Commands: validate, related, list, show, graph, adr related
"""

import dataclasses
import functools
import json
import logging
import os
import sys
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click
import yaml

from .. import __version__, setup_logging
from ..errors import DomainPackError
from ..graph.builder import build_graph
from ..loader.yaml_loader import load_domain_model
from ..model.identifiers import actor_id, parse_identifier, scoped_id
from ..model.types import DomainModel
from ..model.visitor import ITEM_KINDS, item_adr_refs, item_description, iter_items, map_items
from ..validation.cross_reference import ValidationIssue, ValidatorOptions, validate as validate_model
from .config import load_config
from .errors import format_cli_error

logger = logging.getLogger(__name__)

DEBUG_ENV = "DKK_DEBUG"


def common_options(fn):
    """Options shared by every command."""
    fn = click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')(fn)
    fn = click.option('--config', 'config_path', type=click.Path(exists=True, dir_okay=False),
                      default=None, help='Configuration file (default: dkk.yaml in the root)')(fn)
    fn = click.option('--root', '-r', type=click.Path(file_okay=False), default=None,
                      help='Project root holding .dkk/ (default: current directory)')(fn)
    return fn


def handle_errors(fn):
    """Print loading / configuration failures as one line and exit 1."""
    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except (DomainPackError, yaml.YAMLError, OSError) as e:
            if os.getenv(DEBUG_ENV):
                logger.exception("Command failed")
            click.echo(f"Error: {format_cli_error(e)}", err=True)
            sys.exit(1)
    return wrapper


def _prepare(root: Optional[str], config_path: Optional[str], verbose: bool) -> Tuple[DomainModel, Dict[str, Any]]:
    """Load configuration, configure logging and load the domain model."""
    config = load_config(config_path, root)
    level = 'DEBUG' if verbose else config['logging']['level']
    setup_logging(level, config['logging'].get('file'))

    effective_root = root or config.get('root')
    return load_domain_model(effective_root), config


def _plain(value: Any) -> Any:
    """Convert dataclasses and enums into YAML/JSON-safe builtins."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _plain(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def _sorted_issues(issues: List[ValidationIssue]) -> List[ValidationIssue]:
    return sorted(issues, key=lambda i: (i.path or "", i.message))


# ── validate ──────────────────────────────────────────────────────────


@click.command()
@click.option('--warn-missing-fields', is_flag=True,
              help='Warn about events/commands with no fields')
@click.option('--json', 'json_output', is_flag=True, help='Output as JSON')
@common_options
@handle_errors
def validate(warn_missing_fields, json_output, root, config_path, verbose):
    """Check cross-references of the domain model."""
    model, config = _prepare(root, config_path, verbose)

    warn_missing_fields = warn_missing_fields or config['validation']['warn_missing_fields']
    result = validate_model(model, ValidatorOptions(warn_missing_fields=warn_missing_fields))

    errors = _sorted_issues(result.errors)
    warnings = _sorted_issues(result.warnings)

    if json_output:
        click.echo(json.dumps({
            "valid": result.valid,
            "errors": [e.to_dict() for e in errors],
            "warnings": [w.to_dict() for w in warnings]
        }, indent=2))
        if not result.valid:
            sys.exit(1)
        return

    for warning in warnings:
        click.echo(f"⚠  {warning}", err=True)
    for error in errors:
        click.echo(f"✗  {error}", err=True)

    if result.valid:
        suffix = f" ({len(warnings)} warning(s))" if warnings else ""
        click.echo(f"✓ Validation passed.{suffix}")
    else:
        click.echo(f"✗ Validation failed: {len(errors)} error(s), {len(warnings)} warning(s).", err=True)
        sys.exit(1)


# ── related ───────────────────────────────────────────────────────────


@click.command()
@click.argument('item_id')
@click.option('--depth', '-d', type=click.IntRange(min=0), default=None,
              help='Maximum traversal depth (default: 1)')
@click.option('--json', 'json_output', is_flag=True, help='Output as JSON')
@common_options
@handle_errors
def related(item_id, depth, json_output, root, config_path, verbose):
    """
    Show items related to ITEM_ID via graph traversal (BFS).

    ITEM_ID: e.g. ordering.PlaceOrder, actor.Customer, adr-0001
    """
    model, config = _prepare(root, config_path, verbose)
    if depth is None:
        depth = config['related']['depth']

    graph = build_graph(model)
    if not graph.has_node(item_id):
        click.echo(f'Error: Node "{item_id}" not found in the domain graph.', err=True)
        sys.exit(1)

    grouped = graph.group_by_kind(graph.get_related(item_id, depth))

    if json_output:
        click.echo(json.dumps({"id": item_id, "depth": depth, "related": grouped}, indent=2))
        return

    total = sum(len(ids) for ids in grouped.values())
    if total == 0:
        click.echo(f'No related items found for "{item_id}" within depth {depth}.')
        return

    click.echo(f'{total} item(s) related to "{item_id}" (depth={depth}):\n')
    for kind, ids in grouped.items():
        click.echo(f"  {kind}:")
        for node_id in ids:
            node = graph.get_node(node_id)
            label = f"{node.name} [{node.context}]" if node.context else node.name
            click.echo(f"    - {node_id}  ({label})")


# ── list ──────────────────────────────────────────────────────────────


@click.command(name='list')
@click.option('--context', '-c', 'context_name', default=None, help='Only items of this context')
@click.option('--kind', '-k', type=click.Choice([k.value for k in ITEM_KINDS] + ['actor']),
              default=None, help='Only items of this kind')
@click.option('--json', 'json_output', is_flag=True, help='Output as JSON')
@common_options
@handle_errors
def list_items(context_name, kind, json_output, root, config_path, verbose):
    """List domain items and actors, sorted by identifier."""
    model, _config = _prepare(root, config_path, verbose)

    rows: List[Dict[str, Any]] = []
    for ctx_name, ctx in model.contexts.items():
        if context_name and ctx_name != context_name:
            continue
        rows.extend(map_items(ctx, lambda item_kind, name, item, ctx_name=ctx_name: {
            "id": scoped_id(ctx_name, name),
            "kind": item_kind.value,
            "context": ctx_name,
            "description": item_description(item)
        }))

    if not context_name:
        rows.extend({
            "id": actor_id(actor.name),
            "kind": "actor",
            "context": None,
            "description": actor.description
        } for actor in model.actors)

    if kind:
        rows = [r for r in rows if r["kind"] == kind]
    rows.sort(key=lambda r: r["id"])

    if json_output:
        click.echo(json.dumps(rows, indent=2))
        return

    if not rows:
        click.echo("No items found.")
        return

    for row in rows:
        click.echo(f"{row['id']:<40} {row['kind']:<11} {row['description']}")


# ── show ──────────────────────────────────────────────────────────────


def _lookup(model: DomainModel, item_id: str) -> Optional[Any]:
    """Resolve an identifier string to the record it names."""
    parsed = parse_identifier(item_id)

    if parsed.kind == "adr":
        return model.adrs.get(parsed.name)
    if parsed.kind == "actor":
        return model.find_actor(parsed.name)
    if parsed.kind == "flow":
        return next((f for f in model.index.flows if f.name == parsed.name), None)
    if parsed.kind == "context":
        return model.contexts.get(parsed.name)

    ctx = model.contexts.get(parsed.context)
    if ctx is None:
        return None
    return next((item for _kind, name, item in iter_items(ctx) if name == parsed.name), None)


@click.command()
@click.argument('item_id')
@click.option('--json', 'json_output', is_flag=True, help='Output as JSON')
@common_options
@handle_errors
def show(item_id, json_output, root, config_path, verbose):
    """Print the record named by ITEM_ID."""
    model, _config = _prepare(root, config_path, verbose)

    try:
        record = _lookup(model, item_id)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if record is None:
        click.echo(f'Error: "{item_id}" not found.', err=True)
        sys.exit(1)

    data = _plain(record)
    if json_output:
        click.echo(json.dumps(data, indent=2))
    else:
        click.echo(yaml.safe_dump(data, sort_keys=False, allow_unicode=True).rstrip())


# ── graph ─────────────────────────────────────────────────────────────


@click.command()
@click.option('--output', '-o', type=click.Path(dir_okay=False), default=None,
              help='Write the graph JSON to this file instead of stdout')
@common_options
@handle_errors
def graph(output, root, config_path, verbose):
    """Export the relationship graph as JSON."""
    model, _config = _prepare(root, config_path, verbose)
    data = build_graph(model).to_dict()

    if output:
        target = Path(output)
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        stats = data["statistics"]
        click.echo(f"Graph with {stats['node_count']} nodes and {stats['edge_count']} edges "
                   f"saved to: {target}")
    else:
        click.echo(json.dumps(data, indent=2, ensure_ascii=False))


# ── adr related ───────────────────────────────────────────────────────


def items_referencing_adr(model: DomainModel, adr_id: str) -> List[str]:
    """Identifiers of actors and items whose adr_refs contain ``adr_id``."""
    refs = [actor_id(a.name) for a in model.actors if adr_id in (a.adr_refs or [])]
    for ctx_name, ctx in model.contexts.items():
        for _kind, name, item in iter_items(ctx):
            if adr_id in item_adr_refs(item):
                refs.append(scoped_id(ctx_name, name))
    return sorted(refs)


def adrs_referencing_item(model: DomainModel, item_id: str) -> List[str]:
    """ADR ids whose domain_refs contain ``item_id``."""
    return sorted(adr_id for adr_id, adr in model.adrs.items() if item_id in (adr.domain_refs or []))


def own_adr_refs(model: DomainModel, item_id: str) -> List[str]:
    """The adr_refs declared on the actor or item named by ``item_id``."""
    try:
        parsed = parse_identifier(item_id)
    except ValueError:
        return []

    if parsed.kind == "actor":
        actor = model.find_actor(parsed.name)
        return list(actor.adr_refs) if actor else []
    if parsed.kind != "item":
        return []

    ctx = model.contexts.get(parsed.context)
    if ctx is None:
        return []
    for _kind, name, item in iter_items(ctx):
        if name == parsed.name:
            return item_adr_refs(item)
    return []


@click.group()
def adr():
    """ADR-related commands."""
    pass


@adr.command(name='related')
@click.argument('item_id')
@click.option('--json', 'json_output', is_flag=True, help='Output as JSON')
@common_options
@handle_errors
def adr_related(item_id, json_output, root, config_path, verbose):
    """Show bidirectional links between ADRs and domain items."""
    model, _config = _prepare(root, config_path, verbose)

    if item_id.startswith("adr-"):
        record = model.adrs.get(item_id)
        if record is None:
            if json_output:
                click.echo(json.dumps({"error": f'ADR "{item_id}" not found'}, indent=2))
            else:
                click.echo(f'Error: ADR "{item_id}" not found.', err=True)
            sys.exit(1)

        domain_refs = list(record.domain_refs or [])
        referenced_by = items_referencing_adr(model, item_id)

        if json_output:
            click.echo(json.dumps({
                "id": item_id,
                "title": record.title,
                "domainRefs": domain_refs,
                "referencedBy": referenced_by
            }, indent=2))
            return

        click.echo(f"# Related items for {item_id} ({record.title})\n")
        if domain_refs:
            click.echo("  ADR -> Domain (domain_refs from ADR front matter):")
            for ref in domain_refs:
                click.echo(f"    - {ref}")
        if referenced_by:
            click.echo("  Domain -> ADR (items with adr_refs pointing here):")
            for ref in referenced_by:
                click.echo(f"    - {ref}")
        if not domain_refs and not referenced_by:
            click.echo("  No related items found.")
        return

    own = own_adr_refs(model, item_id)
    referencing = adrs_referencing_item(model, item_id)
    all_adrs = sorted(set(own) | set(referencing))

    if json_output:
        click.echo(json.dumps({
            "id": item_id,
            "ownAdrRefs": own,
            "referencedByAdrs": referencing,
            "allAdrs": all_adrs
        }, indent=2))
        return

    def title(ref: str) -> str:
        record = model.adrs.get(ref)
        return f" - {record.title}" if record else ""

    click.echo(f"# Related ADRs for {item_id}\n")
    if own:
        click.echo("  Item -> ADR (adr_refs declared on this item):")
        for ref in own:
            click.echo(f"    - {ref}{title(ref)}")
    if referencing:
        click.echo("  ADR -> Item (ADRs with domain_refs pointing here):")
        for ref in referencing:
            click.echo(f"    - {ref}{title(ref)}")
    if not all_adrs:
        click.echo("  No related ADRs found.")


@click.group()
@click.version_option(version=__version__, prog_name='dkk')
def cli():
    """Domain Knowledge Pack - relationship graph and cross-reference checks."""
    pass


# Register commands
cli.add_command(validate)
cli.add_command(related)
cli.add_command(list_items)
cli.add_command(show)
cli.add_command(graph)
cli.add_command(adr)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
