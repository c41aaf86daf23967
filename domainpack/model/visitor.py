"""
Item visitor for bounded contexts.

Walks the six item collections of a context in canonical order
(events, commands, policies, aggregates, read models, glossary) so that
callers never repeat that sequence themselves.
"""

from enum import Enum
from typing import Callable, List, Tuple, TypeVar

from .types import (
    BoundedContext,
    DomainItem,
    GlossaryEntry,
)

R = TypeVar('R')


class ItemKind(str, Enum):
    """The six item kinds that share a context's identifier namespace."""
    EVENT = "event"
    COMMAND = "command"
    POLICY = "policy"
    AGGREGATE = "aggregate"
    READ_MODEL = "read_model"
    GLOSSARY = "glossary"


# Canonical iteration order
ITEM_KINDS: Tuple[ItemKind, ...] = (
    ItemKind.EVENT,
    ItemKind.COMMAND,
    ItemKind.POLICY,
    ItemKind.AGGREGATE,
    ItemKind.READ_MODEL,
    ItemKind.GLOSSARY,
)

ItemCallback = Callable[[ItemKind, str, DomainItem], None]


def item_name(item: DomainItem) -> str:
    """Display identifier: ``term`` for glossary entries, ``name`` otherwise."""
    if isinstance(item, GlossaryEntry):
        return item.term
    return item.name


def item_description(item: DomainItem) -> str:
    """Descriptive text: ``definition`` for glossary entries, ``description`` otherwise."""
    if isinstance(item, GlossaryEntry):
        return item.definition
    return item.description


def item_adr_refs(item: DomainItem) -> List[str]:
    return list(item.adr_refs or [])


def iter_items(ctx: BoundedContext):
    """Yield ``(kind, name, item)`` for every item in canonical order."""
    for event in ctx.events or []:
        yield ItemKind.EVENT, event.name, event
    for command in ctx.commands or []:
        yield ItemKind.COMMAND, command.name, command
    for policy in ctx.policies or []:
        yield ItemKind.POLICY, policy.name, policy
    for aggregate in ctx.aggregates or []:
        yield ItemKind.AGGREGATE, aggregate.name, aggregate
    for read_model in ctx.read_models or []:
        yield ItemKind.READ_MODEL, read_model.name, read_model
    for entry in ctx.glossary or []:
        yield ItemKind.GLOSSARY, entry.term, entry


def for_each_item(ctx: BoundedContext, fn: ItemCallback) -> None:
    """
    Call ``fn(kind, name, item)`` once per item in the context.

    Args:
        ctx: Bounded context to visit
        fn: Callback receiving the item kind, its display identifier and the item
    """
    for kind, name, item in iter_items(ctx):
        fn(kind, name, item)


def map_items(ctx: BoundedContext, fn: Callable[[ItemKind, str, DomainItem], R]) -> List[R]:
    """Map every item of the context to a value, preserving visiting order."""
    results: List[R] = []
    for_each_item(ctx, lambda kind, name, item: results.append(fn(kind, name, item)))
    return results
