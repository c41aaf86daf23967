"""
Identifier grammar shared by the graph, the validator and the CLI.

    <context>.<Name>   context-scoped item   ordering.OrderPlaced
    actor.<Name>       actor                 actor.Customer
    adr-NNNN           ADR                   adr-0001
    flow.<Name>        flow                  flow.OrderFulfillment
    context.<name>     bounded context       context.ordering
"""

import re
from dataclasses import dataclass
from typing import Optional, Tuple

ADR_ID_PATTERN = re.compile(r'^adr-\d{4}$')

ACTOR_PREFIX = "actor"
FLOW_PREFIX = "flow"
CONTEXT_PREFIX = "context"


def scoped_id(context: str, name: str) -> str:
    return f"{context}.{name}"


def actor_id(name: str) -> str:
    return f"{ACTOR_PREFIX}.{name}"


def flow_id(name: str) -> str:
    return f"{FLOW_PREFIX}.{name}"


def context_id(name: str) -> str:
    return f"{CONTEXT_PREFIX}.{name}"


def is_adr_id(value: str) -> bool:
    return bool(ADR_ID_PATTERN.match(value or ""))


def split_ref(ref: str) -> Tuple[Optional[str], str]:
    """
    Split a composite reference at its first dot.

    ``"ordering.OrderPlaced"`` gives ``("ordering", "OrderPlaced")``; a value
    without a dot (or with a leading dot) gives ``(None, ref)``.
    """
    dot = ref.find(".")
    if dot <= 0:
        return None, ref
    return ref[:dot], ref[dot + 1:]


@dataclass(frozen=True)
class ParsedIdentifier:
    """Result of parsing an identifier string."""
    kind: str  # adr, actor, flow, context, item
    name: str
    context: Optional[str] = None


def parse_identifier(value: str) -> ParsedIdentifier:
    """
    Decide which lookup path an identifier string belongs to.

    Reserved prefixes (``actor.``, ``flow.``, ``context.``) win over the
    generic ``<context>.<Name>`` reading.

    Raises:
        ValueError: If the value matches no form of the grammar
    """
    if is_adr_id(value):
        return ParsedIdentifier(kind="adr", name=value)

    prefix, name = split_ref(value)
    if prefix is None or not name:
        raise ValueError(f"Not a valid identifier: {value!r}")

    if prefix == ACTOR_PREFIX:
        return ParsedIdentifier(kind="actor", name=name)
    if prefix == FLOW_PREFIX:
        return ParsedIdentifier(kind="flow", name=name)
    if prefix == CONTEXT_PREFIX:
        return ParsedIdentifier(kind="context", name=name)
    return ParsedIdentifier(kind="item", name=name, context=prefix)
