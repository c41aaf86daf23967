#!/usr/bin/env python3
"""
Domain Model Types

Dataclass records for every artifact in a domain knowledge pack: the six
item kinds that live inside a bounded context, actors, ADRs, flows and the
top-level index. Each record can be built from the YAML shape it has on
disk via ``from_dict``.
"""

import datetime
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class ActorType(str, Enum):
    """Whether an actor is a person, an internal system or an external one."""
    HUMAN = "human"
    SYSTEM = "system"
    EXTERNAL = "external"


class AdrStatus(str, Enum):
    """Lifecycle status of an Architecture Decision Record."""
    PROPOSED = "proposed"
    ACCEPTED = "accepted"
    DEPRECATED = "deprecated"
    SUPERSEDED = "superseded"


class FlowStepType(str, Enum):
    """Kind of domain item a flow step points at."""
    COMMAND = "command"
    EVENT = "event"
    POLICY = "policy"
    READ_MODEL = "read_model"


def _require(data: Dict[str, Any], key: str, record: str) -> Any:
    """Return a mandatory value or raise ValueError naming the record type."""
    value = data.get(key)
    if value is None:
        raise ValueError(f"{record} is missing required field '{key}'")
    return value


def _str_list(value: Any, key: str) -> List[str]:
    """Coerce an optional YAML sequence of scalars into a list of strings."""
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"'{key}' must be a list, got {type(value).__name__}")
    return [str(v) for v in value]


def _optional_str(data: Dict[str, Any], key: str) -> Optional[str]:
    """Read an optional single-reference field; lists and mappings are rejected."""
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, (list, dict)):
        raise ValueError(f"'{key}' must be a single name, got {type(value).__name__}")
    return str(value)


def _relation_list(data: Dict[str, Any], key: str, nested_key: str) -> List[str]:
    """
    Read a relation list that may be written flat or nested.

    ``handles: [A, B]`` and ``handles: {commands: [A, B]}`` both yield
    ``['A', 'B']``.
    """
    value = data.get(key)
    if isinstance(value, dict):
        return _str_list(value.get(nested_key), f"{key}.{nested_key}")
    return _str_list(value, key)


def _iso_date(value: Any) -> str:
    """YAML turns ``2026-01-15`` into a date object; keep it a string."""
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()[:10]
    return str(value)


# ── Shared ────────────────────────────────────────────────────────────


@dataclass
class Field:
    """A typed payload field carried by an event or a command."""
    name: str
    type: str
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Field':
        return cls(
            name=str(_require(data, 'name', 'field')),
            type=str(_require(data, 'type', 'field')),
            description=data.get('description')
        )


@dataclass
class Example:
    """A given/when/then scenario attached to an event or command."""
    description: str
    given: List[str] = field(default_factory=list)
    when: List[str] = field(default_factory=list)
    then: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Example':
        return cls(
            description=str(data.get('description', '')),
            given=_str_list(data.get('given'), 'given'),
            when=_str_list(data.get('when'), 'when'),
            then=_str_list(data.get('then'), 'then')
        )


def _fields(data: Dict[str, Any]) -> Optional[List[Field]]:
    raw = data.get('fields')
    if raw is None:
        return None
    return [Field.from_dict(f) for f in raw]


def _examples(data: Dict[str, Any]) -> List[Example]:
    return [Example.from_dict(e) for e in data.get('examples') or []]


# ── Context items ─────────────────────────────────────────────────────


@dataclass
class GlossaryEntry:
    """A ubiquitous-language term scoped to a bounded context."""
    term: str
    definition: str
    aliases: List[str] = field(default_factory=list)
    adr_refs: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GlossaryEntry':
        return cls(
            term=str(_require(data, 'term', 'glossary entry')),
            definition=str(data.get('definition', '')),
            aliases=_str_list(data.get('aliases'), 'aliases'),
            adr_refs=_str_list(data.get('adr_refs'), 'adr_refs')
        )


@dataclass
class DomainEvent:
    """Something that happened inside a bounded context."""
    name: str
    description: str
    fields: Optional[List[Field]] = None
    raised_by: Optional[str] = None
    examples: List[Example] = field(default_factory=list)
    invariants: List[str] = field(default_factory=list)
    adr_refs: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DomainEvent':
        return cls(
            name=str(_require(data, 'name', 'event')),
            description=str(data.get('description', '')),
            fields=_fields(data),
            raised_by=_optional_str(data, 'raised_by'),
            examples=_examples(data),
            invariants=_str_list(data.get('invariants'), 'invariants'),
            adr_refs=_str_list(data.get('adr_refs'), 'adr_refs')
        )


@dataclass
class Command:
    """An instruction to change state, handled by an aggregate."""
    name: str
    description: str
    fields: Optional[List[Field]] = None
    actor: Optional[str] = None
    handled_by: Optional[str] = None
    preconditions: List[str] = field(default_factory=list)
    rejections: List[str] = field(default_factory=list)
    invariants: List[str] = field(default_factory=list)
    examples: List[Example] = field(default_factory=list)
    adr_refs: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Command':
        return cls(
            name=str(_require(data, 'name', 'command')),
            description=str(data.get('description', '')),
            fields=_fields(data),
            actor=_optional_str(data, 'actor'),
            handled_by=_optional_str(data, 'handled_by'),
            preconditions=_str_list(data.get('preconditions'), 'preconditions'),
            rejections=_str_list(data.get('rejections'), 'rejections'),
            invariants=_str_list(data.get('invariants'), 'invariants'),
            examples=_examples(data),
            adr_refs=_str_list(data.get('adr_refs'), 'adr_refs')
        )


@dataclass
class Policy:
    """Reactive logic: triggered by events, emits commands."""
    name: str
    description: str
    triggers: List[str] = field(default_factory=list)
    emits: List[str] = field(default_factory=list)
    adr_refs: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Policy':
        # On disk policies are written as when.events / then.commands
        if 'when' in data or 'then' in data:
            triggers = _relation_list(data, 'when', 'events')
            emits = _relation_list(data, 'then', 'commands')
        else:
            triggers = _str_list(data.get('triggers'), 'triggers')
            emits = _str_list(data.get('emits'), 'emits')
        return cls(
            name=str(_require(data, 'name', 'policy')),
            description=str(data.get('description', '')),
            triggers=triggers,
            emits=emits,
            adr_refs=_str_list(data.get('adr_refs'), 'adr_refs')
        )


@dataclass
class Aggregate:
    """Consistency boundary that handles commands and emits events."""
    name: str
    description: str
    handles: List[str] = field(default_factory=list)
    emits: List[str] = field(default_factory=list)
    invariants: List[str] = field(default_factory=list)
    adr_refs: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Aggregate':
        return cls(
            name=str(_require(data, 'name', 'aggregate')),
            description=str(data.get('description', '')),
            handles=_relation_list(data, 'handles', 'commands'),
            emits=_relation_list(data, 'emits', 'events'),
            invariants=_str_list(data.get('invariants'), 'invariants'),
            adr_refs=_str_list(data.get('adr_refs'), 'adr_refs')
        )


@dataclass
class ReadModel:
    """Query-side projection built from events and consumed by actors."""
    name: str
    description: str
    subscribes_to: List[str] = field(default_factory=list)
    used_by: List[str] = field(default_factory=list)
    adr_refs: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ReadModel':
        return cls(
            name=str(_require(data, 'name', 'read model')),
            description=str(data.get('description', '')),
            subscribes_to=_str_list(data.get('subscribes_to'), 'subscribes_to'),
            used_by=_str_list(data.get('used_by'), 'used_by'),
            adr_refs=_str_list(data.get('adr_refs'), 'adr_refs')
        )


DomainItem = Union[DomainEvent, Command, Policy, Aggregate, ReadModel, GlossaryEntry]


@dataclass
class BoundedContext:
    """A named partition of the domain owning one item namespace."""
    name: str
    description: str = ""
    events: List[DomainEvent] = field(default_factory=list)
    commands: List[Command] = field(default_factory=list)
    policies: List[Policy] = field(default_factory=list)
    aggregates: List[Aggregate] = field(default_factory=list)
    read_models: List[ReadModel] = field(default_factory=list)
    glossary: List[GlossaryEntry] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BoundedContext':
        """Build a context from a single document holding every collection."""
        return cls(
            name=str(_require(data, 'name', 'context')),
            description=str(data.get('description', '')),
            events=[DomainEvent.from_dict(d) for d in data.get('events') or []],
            commands=[Command.from_dict(d) for d in data.get('commands') or []],
            policies=[Policy.from_dict(d) for d in data.get('policies') or []],
            aggregates=[Aggregate.from_dict(d) for d in data.get('aggregates') or []],
            read_models=[ReadModel.from_dict(d) for d in data.get('read_models') or []],
            glossary=[GlossaryEntry.from_dict(d) for d in data.get('glossary') or []]
        )


# ── Global records ────────────────────────────────────────────────────


@dataclass
class Actor:
    """A person or system interacting with the domain."""
    name: str
    type: ActorType
    description: str = ""
    adr_refs: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Actor':
        return cls(
            name=str(_require(data, 'name', 'actor')),
            type=ActorType(_require(data, 'type', 'actor')),
            description=str(data.get('description', '')),
            adr_refs=_str_list(data.get('adr_refs'), 'adr_refs')
        )


@dataclass
class AdrRecord:
    """Front matter of an Architecture Decision Record."""
    id: str
    title: str
    status: AdrStatus
    date: str
    deciders: List[str] = field(default_factory=list)
    domain_refs: List[str] = field(default_factory=list)
    superseded_by: Optional[str] = None
    body: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AdrRecord':
        return cls(
            id=str(_require(data, 'id', 'ADR')),
            title=str(_require(data, 'title', 'ADR')),
            status=AdrStatus(_require(data, 'status', 'ADR')),
            date=_iso_date(_require(data, 'date', 'ADR')),
            deciders=_str_list(data.get('deciders'), 'deciders'),
            domain_refs=_str_list(data.get('domain_refs'), 'domain_refs'),
            superseded_by=_optional_str(data, 'superseded_by'),
            body=data.get('body')
        )


@dataclass
class FlowStep:
    """One step of a flow: a composite item reference plus its declared kind."""
    ref: str
    type: FlowStepType
    note: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FlowStep':
        return cls(
            ref=str(_require(data, 'ref', 'flow step')),
            type=FlowStepType(_require(data, 'type', 'flow step')),
            note=data.get('note')
        )


@dataclass
class Flow:
    """An ordered, usually cross-context, sequence of item references."""
    name: str
    steps: List[FlowStep] = field(default_factory=list)
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Flow':
        return cls(
            name=str(_require(data, 'name', 'flow')),
            steps=[FlowStep.from_dict(s) for s in data.get('steps') or []],
            description=data.get('description')
        )


@dataclass
class ContextEntry:
    """Registration of a bounded context in the top-level index."""
    name: str
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ContextEntry':
        return cls(
            name=str(_require(data, 'name', 'context entry')),
            description=data.get('description')
        )


@dataclass
class DomainIndex:
    """Top-level index: registered contexts and cross-context flows."""
    contexts: List[ContextEntry] = field(default_factory=list)
    flows: List[Flow] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DomainIndex':
        return cls(
            contexts=[ContextEntry.from_dict(c) for c in data.get('contexts') or []],
            flows=[Flow.from_dict(f) for f in data.get('flows') or []]
        )


@dataclass
class DomainModel:
    """Complete, fully-loaded knowledge base."""
    index: DomainIndex = field(default_factory=DomainIndex)
    actors: List[Actor] = field(default_factory=list)
    contexts: Dict[str, BoundedContext] = field(default_factory=dict)
    adrs: Dict[str, AdrRecord] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> 'DomainModel':
        return cls()

    def find_actor(self, name: str) -> Optional[Actor]:
        return next((a for a in self.actors if a.name == name), None)
