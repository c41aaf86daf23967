#!/usr/bin/env python3
"""
Graph Builder Module for Domain Knowledge Packs

Builds an adjacency-backed relationship graph over every artifact of a
loaded DomainModel: context items, actors, ADRs, flows and the contexts
themselves. Edges record the declared relationships (contains, handles,
emits, initiates, triggers, subscribes_to, used_by, adr_ref, domain_ref,
superseded_by, flow_step, flow_next) and are mirrored into an undirected
adjacency index used for breadth-first traversal.

Building never fails: a relationship whose target was never declared still
gets a node, so that validation and inspection work on broken models too.
"""

import logging
from collections import Counter
from dataclasses import dataclass, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Mapping, Optional, Set, Tuple

from ..model.identifiers import actor_id, context_id, flow_id, scoped_id, split_ref
from ..model.types import (
    Aggregate,
    Command,
    DomainEvent,
    DomainItem,
    DomainModel,
    Policy,
    ReadModel,
)
from ..model.visitor import ItemKind, for_each_item, item_adr_refs

logger = logging.getLogger(__name__)


class NodeKind(str, Enum):
    """Kind tag of a graph node."""
    CONTEXT = "context"
    EVENT = "event"
    COMMAND = "command"
    POLICY = "policy"
    AGGREGATE = "aggregate"
    READ_MODEL = "read_model"
    GLOSSARY = "glossary"
    ACTOR = "actor"
    ADR = "adr"
    FLOW = "flow"
    UNRESOLVED = "unresolved"


# Precedence for kind reconciliation; every kind not listed ranks highest.
_KIND_RANK = {
    NodeKind.UNRESOLVED: 0,
    NodeKind.GLOSSARY: 1,
}
_STRUCTURAL_RANK = 2


def _rank(kind: NodeKind) -> int:
    return _KIND_RANK.get(kind, _STRUCTURAL_RANK)


@dataclass(frozen=True)
class GraphNode:
    """A node in the domain graph."""
    id: str
    kind: NodeKind
    name: str
    context: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "name": self.name,
            "context": self.context
        }


@dataclass(frozen=True)
class GraphEdge:
    """One declared relationship, stored with its direction."""
    source: str
    target: str
    label: str

    def to_dict(self) -> Dict[str, Any]:
        return {"from": self.source, "to": self.target, "label": self.label}


class DomainGraph:
    """
    Read-only relationship graph.

    Instances are produced by GraphBuilder; nodes, edges and adjacency are
    frozen once the build pass finishes.
    """

    def __init__(self, nodes: Mapping[str, GraphNode], edges: Iterable[GraphEdge],
                 adjacency: Mapping[str, Iterable[str]]):
        self._nodes: Mapping[str, GraphNode] = MappingProxyType(dict(nodes))
        self._edges: Tuple[GraphEdge, ...] = tuple(edges)
        self._adjacency: Mapping[str, FrozenSet[str]] = MappingProxyType(
            {node_id: frozenset(neighbours) for node_id, neighbours in adjacency.items()}
        )

    @property
    def nodes(self) -> Mapping[str, GraphNode]:
        return self._nodes

    @property
    def edges(self) -> Tuple[GraphEdge, ...]:
        return self._edges

    @property
    def adjacency(self) -> Mapping[str, FrozenSet[str]]:
        return self._adjacency

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    # ── Queries ───────────────────────────────────────────────────────

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def get_node(self, node_id: str) -> Optional[GraphNode]:
        return self._nodes.get(node_id)

    def get_neighbours(self, node_id: str) -> FrozenSet[str]:
        """Direct neighbours in either direction; empty for unknown ids."""
        return self._adjacency.get(node_id, frozenset())

    def get_related(self, start_id: str, depth: int = 1) -> Set[str]:
        """
        Breadth-first reachability from ``start_id`` within ``depth`` hops.

        The start node is marked visited before the first hop, so it never
        appears in the result even when a cycle leads back to it.

        Args:
            start_id: Identifier of the node to start from
            depth: Maximum number of hops (0 or less yields an empty set)

        Returns:
            Identifiers of every node first reached at a level <= depth
        """
        result: Set[str] = set()
        if start_id not in self._adjacency:
            return result

        visited = {start_id}
        frontier = [start_id]

        for _ in range(max(depth, 0)):
            if not frontier:
                break
            next_frontier = []
            for node_id in frontier:
                for neighbour in self._adjacency.get(node_id, ()):
                    if neighbour not in visited:
                        visited.add(neighbour)
                        result.add(neighbour)
                        next_frontier.append(neighbour)
            frontier = next_frontier

        return result

    def nodes_of_kind(self, kind: NodeKind) -> List[GraphNode]:
        """All nodes of the given kind, sorted by id."""
        return sorted((n for n in self._nodes.values() if n.kind == kind), key=lambda n: n.id)

    def unresolved_nodes(self) -> List[GraphNode]:
        """Placeholders created for references no declaration ever reconciled."""
        return self.nodes_of_kind(NodeKind.UNRESOLVED)

    def group_by_kind(self, node_ids: Iterable[str]) -> Dict[str, List[str]]:
        """Group ids by node kind value; kinds and ids are both sorted."""
        grouped: Dict[str, List[str]] = {}
        for node_id in node_ids:
            node = self._nodes.get(node_id)
            kind = node.kind.value if node else "unknown"
            grouped.setdefault(kind, []).append(node_id)
        return {kind: sorted(grouped[kind]) for kind in sorted(grouped)}

    def statistics(self) -> Dict[str, Any]:
        """Node and edge counts, overall and broken down by kind and label."""
        node_kinds = Counter(n.kind.value for n in self._nodes.values())
        edge_labels = Counter(e.label for e in self._edges)
        return {
            "node_count": len(self._nodes),
            "edge_count": len(self._edges),
            "node_kinds": dict(sorted(node_kinds.items())),
            "edge_labels": dict(sorted(edge_labels.items()))
        }

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready export; nodes sorted by id, edges in build order."""
        return {
            "nodes": [self._nodes[node_id].to_dict() for node_id in sorted(self._nodes)],
            "edges": [edge.to_dict() for edge in self._edges],
            "statistics": self.statistics()
        }


class GraphBuilder:
    """
    Builds a DomainGraph from a DomainModel in a single pass.

    The builder owns mutable registries while building; build() hands a
    frozen DomainGraph back and resets them, so one builder can be reused.
    """

    def __init__(self):
        """Initialize empty node, edge and adjacency registries."""
        self.nodes_registry: Dict[str, GraphNode] = {}
        self.edges_registry: List[GraphEdge] = []
        self.adjacency: Dict[str, Set[str]] = {}

        self._item_wiring: Dict[ItemKind, Callable[[str, str, Any], None]] = {
            ItemKind.EVENT: self._wire_event,
            ItemKind.COMMAND: self._wire_command,
            ItemKind.POLICY: self._wire_policy,
            ItemKind.AGGREGATE: self._wire_aggregate,
            ItemKind.READ_MODEL: self._wire_read_model,
            ItemKind.GLOSSARY: self._wire_glossary,
        }

    def build(self, model: DomainModel) -> DomainGraph:
        """
        Build the relationship graph for a complete domain model.

        Order: actors, contexts with their items, ADRs, flows.
        """
        self._reset()

        for actor in model.actors:
            node_id = self._ensure_node(actor_id(actor.name), NodeKind.ACTOR, actor.name)
            self._wire_adr_refs(node_id, actor.adr_refs)

        for ctx_name, ctx in model.contexts.items():
            ctx_node = self._ensure_node(context_id(ctx_name), NodeKind.CONTEXT, ctx_name)

            def visit(kind: ItemKind, name: str, item: DomainItem, ctx_name=ctx_name, ctx_node=ctx_node):
                item_node = self._ensure_node(scoped_id(ctx_name, name), NodeKind(kind.value), name, ctx_name)
                self._add_edge(ctx_node, item_node, "contains")
                self._wire_adr_refs(item_node, item_adr_refs(item))
                self._item_wiring[kind](ctx_name, item_node, item)

            for_each_item(ctx, visit)

        for adr_id, adr in model.adrs.items():
            self._ensure_node(adr_id, NodeKind.ADR, adr.title)
            # Nodes first seen through adr_refs were named by id
            self.nodes_registry[adr_id] = replace(self.nodes_registry[adr_id], name=adr.title)

            for ref in adr.domain_refs or []:
                ref_context, ref_name = split_ref(ref)
                # The kind of a bare reference is unknown until a declaration says otherwise
                self._ensure_node(ref, NodeKind.UNRESOLVED, ref_name, ref_context)
                self._add_edge(adr_id, ref, "domain_ref")

            if adr.superseded_by:
                self._ensure_node(adr.superseded_by, NodeKind.ADR, adr.superseded_by)
                self._add_edge(adr_id, adr.superseded_by, "superseded_by")

        for flow in model.index.flows or []:
            flow_node = self._ensure_node(flow_id(flow.name), NodeKind.FLOW, flow.name)

            previous: Optional[str] = None
            for step in flow.steps:
                step_context, step_name = split_ref(step.ref)
                self._ensure_node(step.ref, NodeKind(step.type.value), step_name, step_context)
                self._add_edge(flow_node, step.ref, "flow_step")
                if previous is not None:
                    self._add_edge(previous, step.ref, "flow_next")
                previous = step.ref

        graph = DomainGraph(self.nodes_registry, self.edges_registry, self.adjacency)
        logger.info(f"Built domain graph: {len(graph.nodes)} nodes, {len(graph.edges)} edges")

        unresolved = graph.unresolved_nodes()
        if unresolved:
            logger.debug(f"Unresolved placeholder nodes: {[n.id for n in unresolved]}")

        self._reset()
        return graph

    # ── Registries ────────────────────────────────────────────────────

    def _reset(self):
        self.nodes_registry = {}
        self.edges_registry = []
        self.adjacency = {}

    def _ensure_node(self, node_id: str, kind: NodeKind, name: str,
                     context: Optional[str] = None) -> str:
        """
        Create a node on first sight; afterwards only upgrade its kind.

        A more informative kind replaces a less informative one
        (unresolved < glossary < structural), never the other way round.
        """
        existing = self.nodes_registry.get(node_id)
        if existing is None:
            self.nodes_registry[node_id] = GraphNode(id=node_id, kind=kind, name=name, context=context)
            self.adjacency[node_id] = set()
        elif _rank(kind) > _rank(existing.kind):
            self.nodes_registry[node_id] = replace(existing, kind=kind)
        return node_id

    def _add_edge(self, source: str, target: str, label: str):
        """Record a directed edge and mirror it into both adjacency sets."""
        self.edges_registry.append(GraphEdge(source=source, target=target, label=label))
        self.adjacency[source].add(target)
        self.adjacency[target].add(source)

    def _wire_adr_refs(self, node_id: str, adr_refs: Optional[List[str]]):
        for ref in adr_refs or []:
            self._ensure_node(ref, NodeKind.ADR, ref)
            self._add_edge(node_id, ref, "adr_ref")

    # ── Per-kind wiring ───────────────────────────────────────────────

    def _wire_event(self, ctx_name: str, node_id: str, event: DomainEvent):
        if event.raised_by:
            agg = self._ensure_node(scoped_id(ctx_name, event.raised_by), NodeKind.AGGREGATE,
                                    event.raised_by, ctx_name)
            self._add_edge(agg, node_id, "emits")

    def _wire_command(self, ctx_name: str, node_id: str, command: Command):
        if command.handled_by:
            agg = self._ensure_node(scoped_id(ctx_name, command.handled_by), NodeKind.AGGREGATE,
                                    command.handled_by, ctx_name)
            self._add_edge(agg, node_id, "handles")
        if command.actor:
            actor = self._ensure_node(actor_id(command.actor), NodeKind.ACTOR, command.actor)
            self._add_edge(actor, node_id, "initiates")

    def _wire_policy(self, ctx_name: str, node_id: str, policy: Policy):
        for trigger in policy.triggers or []:
            event = self._ensure_node(scoped_id(ctx_name, trigger), NodeKind.EVENT, trigger, ctx_name)
            self._add_edge(event, node_id, "triggers")
        for emitted in policy.emits or []:
            command = self._ensure_node(scoped_id(ctx_name, emitted), NodeKind.COMMAND, emitted, ctx_name)
            self._add_edge(node_id, command, "emits")

    def _wire_aggregate(self, ctx_name: str, node_id: str, aggregate: Aggregate):
        for handled in aggregate.handles or []:
            command = self._ensure_node(scoped_id(ctx_name, handled), NodeKind.COMMAND, handled, ctx_name)
            self._add_edge(node_id, command, "handles")
        for emitted in aggregate.emits or []:
            event = self._ensure_node(scoped_id(ctx_name, emitted), NodeKind.EVENT, emitted, ctx_name)
            self._add_edge(node_id, event, "emits")

    def _wire_read_model(self, ctx_name: str, node_id: str, read_model: ReadModel):
        for subscribed in read_model.subscribes_to or []:
            event = self._ensure_node(scoped_id(ctx_name, subscribed), NodeKind.EVENT, subscribed, ctx_name)
            self._add_edge(node_id, event, "subscribes_to")
        for user in read_model.used_by or []:
            actor = self._ensure_node(actor_id(user), NodeKind.ACTOR, user)
            self._add_edge(node_id, actor, "used_by")

    def _wire_glossary(self, ctx_name: str, node_id: str, entry: Any):
        # Glossary entries only carry the generic contains / adr_ref edges
        pass


def build_graph(model: DomainModel) -> DomainGraph:
    """Build the relationship graph for ``model``."""
    return GraphBuilder().build(model)
