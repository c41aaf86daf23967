"""
Tests for the relationship graph builder and BFS traversal.
"""

import pytest

from domainpack.graph.builder import DomainGraph, GraphBuilder, NodeKind, build_graph
from domainpack.model.types import (
    BoundedContext,
    Command,
    DomainEvent,
    DomainIndex,
    DomainModel,
    Flow,
    FlowStep,
    FlowStepType,
    GlossaryEntry,
    ReadModel,
)
from domainpack.model.visitor import ITEM_KINDS

from conftest import make_adr


def edge_set(graph: DomainGraph):
    return {(e.source, e.target, e.label) for e in graph.edges}


def test_empty_model_builds_empty_graph():
    graph = build_graph(DomainModel.empty())
    assert len(graph.nodes) == 0
    assert len(graph.edges) == 0
    assert graph.get_related("anything", 3) == set()


def test_direct_relations_at_depth_one(ordering_model):
    graph = build_graph(ordering_model)
    related = graph.get_related("ordering.PlaceOrder", 1)

    assert "ordering.Order" in related
    assert "actor.Customer" in related
    assert "context.ordering" in related
    assert "ordering.PlaceOrder" not in related


def test_depth_two_reaches_through_the_aggregate(ordering_model):
    graph = build_graph(ordering_model)
    assert "ordering.OrderPlaced" in graph.get_related("ordering.PlaceOrder", 2)


def test_start_node_excluded_even_on_cycles(ordering_model):
    graph = build_graph(ordering_model)
    for depth in range(1, 5):
        assert "ordering.PlaceOrder" not in graph.get_related("ordering.PlaceOrder", depth)


@pytest.mark.parametrize("depth", [0, -1])
def test_non_positive_depth_yields_nothing(ordering_model, depth):
    graph = build_graph(ordering_model)
    assert graph.get_related("ordering.PlaceOrder", depth) == set()


def test_unknown_start_yields_nothing(ordering_model):
    graph = build_graph(ordering_model)
    assert graph.get_related("ordering.Nope", 2) == set()


def test_related_is_monotonic_in_depth(full_model):
    graph = build_graph(full_model)
    for node_id in graph.nodes:
        previous = set()
        for depth in range(0, 5):
            current = graph.get_related(node_id, depth)
            assert previous <= current
            previous = current


def test_adjacency_is_symmetric_and_mirrors_edges(full_model):
    graph = build_graph(full_model)
    for edge in graph.edges:
        assert edge.target in graph.get_neighbours(edge.source)
        assert edge.source in graph.get_neighbours(edge.target)
    for node_id, neighbours in graph.adjacency.items():
        for other in neighbours:
            assert node_id in graph.adjacency[other]


def test_every_edge_endpoint_is_a_node(full_model):
    graph = build_graph(full_model)
    for edge in graph.edges:
        assert graph.has_node(edge.source)
        assert graph.has_node(edge.target)
    assert set(graph.adjacency) == set(graph.nodes)


def test_declared_relationship_labels(full_model):
    edges = edge_set(build_graph(full_model))

    assert ("context.ordering", "ordering.PlaceOrder", "contains") in edges
    assert ("ordering.Order", "ordering.OrderPlaced", "emits") in edges
    assert ("ordering.Order", "ordering.PlaceOrder", "handles") in edges
    assert ("actor.Customer", "ordering.PlaceOrder", "initiates") in edges
    assert ("ordering.OrderCancelled", "ordering.NotifyOnCancel", "triggers") in edges
    assert ("ordering.NotifyOnCancel", "ordering.SendNotification", "emits") in edges
    assert ("shipping.ShipmentStatus", "shipping.ShipmentDispatched", "subscribes_to") in edges
    assert ("shipping.ShipmentStatus", "actor.Customer", "used_by") in edges
    assert ("actor.Customer", "adr-0001", "adr_ref") in edges
    assert ("ordering.Basket", "adr-0001", "adr_ref") in edges
    assert ("adr-0001", "ordering.Order", "domain_ref") in edges
    assert ("adr-0002", "adr-0001", "superseded_by") in edges
    assert ("flow.PlaceAndShip", "shipping.ShipOrder", "flow_step") in edges


def test_flow_next_links_consecutive_steps_only(full_model):
    graph = build_graph(full_model)
    flow_next = [(e.source, e.target) for e in graph.edges if e.label == "flow_next"]
    assert flow_next == [
        ("ordering.PlaceOrder", "ordering.OrderPlaced"),
        ("ordering.OrderPlaced", "shipping.ShipOrder"),
    ]


def test_node_kinds(full_model):
    graph = build_graph(full_model)
    assert graph.get_node("context.ordering").kind == NodeKind.CONTEXT
    assert graph.get_node("ordering.OrderPlaced").kind == NodeKind.EVENT
    assert graph.get_node("ordering.NotifyOnCancel").kind == NodeKind.POLICY
    assert graph.get_node("shipping.ShipmentStatus").kind == NodeKind.READ_MODEL
    assert graph.get_node("ordering.Basket").kind == NodeKind.GLOSSARY
    assert graph.get_node("actor.WarehouseBot").kind == NodeKind.ACTOR
    assert graph.get_node("adr-0002").kind == NodeKind.ADR
    assert graph.get_node("flow.PlaceAndShip").kind == NodeKind.FLOW
    assert graph.get_node("ordering.Order").kind == NodeKind.AGGREGATE
    assert graph.get_node("ordering.Order").context == "ordering"
    assert graph.unresolved_nodes() == []


def test_placeholder_for_undeclared_handler():
    ctx = BoundedContext(
        name="ordering",
        commands=[Command(name="PlaceOrder", description="", handled_by="GhostAggregate")],
    )
    graph = build_graph(DomainModel(contexts={"ordering": ctx}))

    ghost = graph.get_node("ordering.GhostAggregate")
    assert ghost is not None
    assert ghost.kind == NodeKind.AGGREGATE
    assert ("ordering.GhostAggregate", "ordering.PlaceOrder", "handles") in edge_set(graph)


def test_placeholder_for_unknown_flow_step():
    model = DomainModel(index=DomainIndex(flows=[Flow(name="F", steps=[
        FlowStep(ref="ghost.DoesNotExist", type=FlowStepType.EVENT),
    ])]))
    graph = build_graph(model)

    node = graph.get_node("ghost.DoesNotExist")
    assert node.kind == NodeKind.EVENT
    assert node.context == "ghost"
    assert graph.get_related("flow.F", 1) == {"ghost.DoesNotExist"}


def test_dangling_adr_domain_ref_becomes_unresolved_node():
    model = DomainModel(adrs={"adr-0001": make_adr("adr-0001", domain_refs=["ordering.Ghost"])})
    graph = build_graph(model)

    node = graph.get_node("ordering.Ghost")
    assert node.kind == NodeKind.UNRESOLVED
    assert node.context == "ordering"
    assert node.name == "Ghost"
    assert [n.id for n in graph.unresolved_nodes()] == ["ordering.Ghost"]


def test_adr_node_named_by_title_when_referenced_first(full_model):
    graph = build_graph(full_model)
    # actor.Customer references adr-0001 before the ADR pass runs
    assert graph.get_node("adr-0001").name == "Use YAML"
    assert graph.get_node("adr-0002").name == "Old approach"


def test_undeclared_adr_ref_keeps_id_as_name():
    model = DomainModel(contexts={"c": BoundedContext(
        name="c", glossary=[GlossaryEntry(term="T", definition="", adr_refs=["adr-0404"])],
    )})
    node = build_graph(model).get_node("adr-0404")
    assert node.kind == NodeKind.ADR
    assert node.name == "adr-0404"


def test_resolved_domain_ref_keeps_declared_kind(full_model):
    graph = build_graph(full_model)
    assert graph.get_node("ordering.Order").kind == NodeKind.AGGREGATE


def test_glossary_placeholder_upgraded_by_structural_kind():
    builder = GraphBuilder()
    builder._ensure_node("ordering.Order", NodeKind.GLOSSARY, "Order", "ordering")
    builder._ensure_node("ordering.Order", NodeKind.AGGREGATE, "Order", "ordering")
    assert builder.nodes_registry["ordering.Order"].kind == NodeKind.AGGREGATE


def test_structural_kind_never_downgraded_to_glossary():
    builder = GraphBuilder()
    builder._ensure_node("ordering.Order", NodeKind.AGGREGATE, "Order", "ordering")
    builder._ensure_node("ordering.Order", NodeKind.GLOSSARY, "Order", "ordering")
    builder._ensure_node("ordering.Order", NodeKind.UNRESOLVED, "Order", "ordering")
    assert builder.nodes_registry["ordering.Order"].kind == NodeKind.AGGREGATE


def test_first_structural_kind_wins_among_equals():
    builder = GraphBuilder()
    builder._ensure_node("ordering.X", NodeKind.COMMAND, "X", "ordering")
    builder._ensure_node("ordering.X", NodeKind.EVENT, "X", "ordering")
    assert builder.nodes_registry["ordering.X"].kind == NodeKind.COMMAND


def test_flow_step_upgrades_glossary_node():
    ctx = BoundedContext(name="ordering", glossary=[GlossaryEntry(term="Checkout", definition="Paying")])
    model = DomainModel(
        index=DomainIndex(flows=[Flow(name="F", steps=[
            FlowStep(ref="ordering.Checkout", type=FlowStepType.COMMAND),
        ])]),
        contexts={"ordering": ctx},
    )
    graph = build_graph(model)
    assert graph.get_node("ordering.Checkout").kind == NodeKind.COMMAND


def test_glossary_never_overrides_earlier_structural_item():
    ctx = BoundedContext(
        name="ordering",
        events=[DomainEvent(name="Order", description="")],
        glossary=[GlossaryEntry(term="Order", definition="A purchase")],
    )
    graph = build_graph(DomainModel(contexts={"ordering": ctx}))
    assert graph.get_node("ordering.Order").kind == NodeKind.EVENT


def test_read_model_user_creates_actor_node():
    ctx = BoundedContext(name="ordering", read_models=[
        ReadModel(name="Summary", description="", used_by=["Auditor"]),
    ])
    graph = build_graph(DomainModel(contexts={"ordering": ctx}))
    assert graph.get_node("actor.Auditor").kind == NodeKind.ACTOR


def test_rebuild_is_deterministic(full_model):
    first = build_graph(full_model)
    second = build_graph(full_model)
    assert first.to_dict() == second.to_dict()
    for node_id in first.nodes:
        for depth in range(0, 4):
            assert first.get_related(node_id, depth) == second.get_related(node_id, depth)


def test_builder_is_reusable(full_model, ordering_model):
    builder = GraphBuilder()
    builder.build(full_model)
    graph = builder.build(ordering_model)
    assert graph.to_dict() == build_graph(ordering_model).to_dict()
    assert builder.nodes_registry == {}


def test_item_wiring_covers_every_item_kind():
    assert set(GraphBuilder()._item_wiring) == set(ITEM_KINDS)


def test_graph_is_read_only(ordering_model):
    graph = build_graph(ordering_model)
    with pytest.raises(TypeError):
        graph.nodes["x"] = None
    with pytest.raises(AttributeError):
        graph.get_neighbours("ordering.PlaceOrder").add("x")
    with pytest.raises(AttributeError):
        graph.edges.append(None)


def test_group_by_kind(full_model):
    graph = build_graph(full_model)
    grouped = graph.group_by_kind(["ordering.PlaceOrder", "actor.Customer", "ordering.CancelOrder", "zzz"])
    assert grouped == {
        "actor": ["actor.Customer"],
        "command": ["ordering.CancelOrder", "ordering.PlaceOrder"],
        "unknown": ["zzz"],
    }


def test_statistics_and_export(ordering_model):
    graph = build_graph(ordering_model)
    stats = graph.statistics()
    assert stats["node_count"] == len(graph) == 5
    assert stats["node_kinds"] == {"actor": 1, "aggregate": 1, "command": 1, "context": 1, "event": 1}
    assert stats["edge_count"] == len(graph.edges)

    exported = graph.to_dict()
    assert [n["id"] for n in exported["nodes"]] == sorted(graph.nodes)
    assert exported["edges"][0].keys() == {"from", "to", "label"}
    assert "actor.Customer" in graph
