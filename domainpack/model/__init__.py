"""
Domain model records, item visitor and identifier grammar.
"""

from .types import (
    Actor,
    ActorType,
    AdrRecord,
    AdrStatus,
    Aggregate,
    BoundedContext,
    Command,
    ContextEntry,
    DomainEvent,
    DomainIndex,
    DomainItem,
    DomainModel,
    Example,
    Field,
    Flow,
    FlowStep,
    FlowStepType,
    GlossaryEntry,
    Policy,
    ReadModel,
)
from .visitor import (
    ITEM_KINDS,
    ItemKind,
    for_each_item,
    item_adr_refs,
    item_description,
    item_name,
    iter_items,
    map_items,
)
from .identifiers import (
    ParsedIdentifier,
    actor_id,
    context_id,
    flow_id,
    is_adr_id,
    parse_identifier,
    scoped_id,
    split_ref,
)

__all__ = [
    'Actor', 'ActorType', 'AdrRecord', 'AdrStatus', 'Aggregate',
    'BoundedContext', 'Command', 'ContextEntry', 'DomainEvent',
    'DomainIndex', 'DomainItem', 'DomainModel', 'Example', 'Field',
    'Flow', 'FlowStep', 'FlowStepType', 'GlossaryEntry', 'Policy',
    'ReadModel',
    'ITEM_KINDS', 'ItemKind', 'for_each_item', 'item_adr_refs',
    'item_description', 'item_name', 'iter_items', 'map_items',
    'ParsedIdentifier', 'actor_id', 'context_id', 'flow_id', 'is_adr_id',
    'parse_identifier', 'scoped_id', 'split_ref',
]
