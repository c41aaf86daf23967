"""
Shared fixtures: in-memory domain models and an on-disk .dkk/ tree.
"""

import textwrap
from pathlib import Path
from typing import Dict

import pytest

from domainpack.model.types import (
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
    DomainModel,
    Field,
    Flow,
    FlowStep,
    FlowStepType,
    GlossaryEntry,
    Policy,
    ReadModel,
)


def make_adr(adr_id: str, title: str = "Decision", **kwargs) -> AdrRecord:
    return AdrRecord(id=adr_id, title=title, status=AdrStatus.ACCEPTED, date="2026-01-15", **kwargs)


@pytest.fixture
def ordering_model() -> DomainModel:
    """Order aggregate handling PlaceOrder and emitting OrderPlaced; Customer initiates PlaceOrder."""
    ordering = BoundedContext(
        name="ordering",
        description="Order lifecycle",
        events=[DomainEvent(name="OrderPlaced", description="An order was placed",
                            fields=[Field(name="orderId", type="UUID")], raised_by="Order")],
        commands=[Command(name="PlaceOrder", description="Submit an order",
                          fields=[Field(name="items", type="List")],
                          actor="Customer", handled_by="Order")],
        aggregates=[Aggregate(name="Order", description="Order root",
                              handles=["PlaceOrder"], emits=["OrderPlaced"])],
    )
    return DomainModel(
        index=DomainIndex(contexts=[ContextEntry(name="ordering")]),
        actors=[Actor(name="Customer", type=ActorType.HUMAN, description="Buyer")],
        contexts={"ordering": ordering},
    )


@pytest.fixture
def full_model() -> DomainModel:
    """Two contexts, every item kind, ADRs and a cross-context flow; fully consistent."""
    ordering = BoundedContext(
        name="ordering",
        description="Order lifecycle",
        events=[
            DomainEvent(name="OrderPlaced", description="Placed", raised_by="Order",
                        fields=[Field(name="orderId", type="UUID")]),
            DomainEvent(name="OrderCancelled", description="Cancelled", raised_by="Order",
                        fields=[Field(name="orderId", type="UUID")]),
        ],
        commands=[
            Command(name="PlaceOrder", description="Place", actor="Customer", handled_by="Order",
                    fields=[Field(name="items", type="List")]),
            Command(name="CancelOrder", description="Cancel", handled_by="Order",
                    fields=[Field(name="orderId", type="UUID")]),
            Command(name="SendNotification", description="Notify", handled_by="Order",
                    fields=[Field(name="text", type="string")]),
        ],
        policies=[
            Policy(name="NotifyOnCancel", description="Notify on cancel",
                   triggers=["OrderCancelled"], emits=["SendNotification"]),
        ],
        aggregates=[
            Aggregate(name="Order", description="Order root",
                      handles=["PlaceOrder", "CancelOrder", "SendNotification"],
                      emits=["OrderPlaced", "OrderCancelled"]),
        ],
        glossary=[
            GlossaryEntry(term="Basket", definition="Items before checkout", adr_refs=["adr-0001"]),
        ],
    )
    shipping = BoundedContext(
        name="shipping",
        description="Shipments",
        events=[DomainEvent(name="ShipmentDispatched", description="Dispatched", raised_by="Shipment",
                            fields=[Field(name="shipmentId", type="UUID")])],
        commands=[Command(name="ShipOrder", description="Ship", handled_by="Shipment",
                          fields=[Field(name="orderId", type="UUID")])],
        aggregates=[Aggregate(name="Shipment", description="Shipment root",
                              handles=["ShipOrder"], emits=["ShipmentDispatched"])],
        read_models=[ReadModel(name="ShipmentStatus", description="Status",
                               subscribes_to=["ShipmentDispatched"], used_by=["Customer"])],
    )
    return DomainModel(
        index=DomainIndex(
            contexts=[ContextEntry(name="ordering"), ContextEntry(name="shipping")],
            flows=[Flow(name="PlaceAndShip", steps=[
                FlowStep(ref="ordering.PlaceOrder", type=FlowStepType.COMMAND),
                FlowStep(ref="ordering.OrderPlaced", type=FlowStepType.EVENT),
                FlowStep(ref="shipping.ShipOrder", type=FlowStepType.COMMAND),
            ])],
        ),
        actors=[
            Actor(name="Customer", type=ActorType.HUMAN, description="Buyer", adr_refs=["adr-0001"]),
            Actor(name="WarehouseBot", type=ActorType.SYSTEM, description="Robot"),
        ],
        contexts={"ordering": ordering, "shipping": shipping},
        adrs={
            "adr-0001": make_adr("adr-0001", "Use YAML", domain_refs=["ordering.Order"]),
            "adr-0002": make_adr("adr-0002", "Old approach", superseded_by="adr-0001"),
        },
    )


# ── On-disk fixtures ──────────────────────────────────────────────────


def write_files(root: Path, files: Dict[str, str]) -> Path:
    """Write ``{relative_path: content}`` under ``root`` (content is dedented)."""
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content).lstrip("\n"), encoding="utf-8")
    return root


PACK_FILES = {
    ".dkk/domain/index.yml": """
        contexts:
          - name: ordering
            description: Order management
        flows:
          - name: PlaceFlow
            steps:
              - ref: ordering.PlaceOrder
                type: command
              - ref: ordering.OrderPlaced
                type: event
    """,
    ".dkk/domain/actors.yml": """
        actors:
          - name: Customer
            type: human
            description: A paying customer
    """,
    ".dkk/domain/contexts/ordering/context.yml": """
        name: ordering
        description: Handles the order lifecycle
        glossary:
          - term: Basket
            definition: Items collected before checkout
    """,
    ".dkk/domain/contexts/ordering/events/OrderPlaced.yml": """
        name: OrderPlaced
        description: Raised when an order is placed
        fields:
          - name: orderId
            type: UUID
        raised_by: Order
    """,
    ".dkk/domain/contexts/ordering/commands/PlaceOrder.yml": """
        name: PlaceOrder
        description: Submit a new order
        fields:
          - name: items
            type: List
        actor: Customer
        handled_by: Order
        adr_refs:
          - adr-0001
    """,
    ".dkk/domain/contexts/ordering/policies/AuditOrders.yml": """
        name: AuditOrders
        description: Audit every order
        when:
          events:
            - OrderPlaced
        then:
          commands:
            - PlaceOrder
    """,
    ".dkk/domain/contexts/ordering/aggregates/Order.yml": """
        name: Order
        description: Order aggregate root
        handles:
          commands:
            - PlaceOrder
        emits:
          events:
            - OrderPlaced
    """,
    ".dkk/domain/contexts/ordering/read-models/OrderSummary.yml": """
        name: OrderSummary
        description: Orders per customer
        subscribes_to:
          - OrderPlaced
        used_by:
          - Customer
    """,
    ".dkk/adr/0001-use-yaml.md": """
        ---
        id: adr-0001
        title: Use YAML for domain models
        status: accepted
        date: 2026-01-15
        deciders:
          - Alice
        domain_refs:
          - ordering.Order
        ---

        # ADR-0001 Use YAML

        We store **every** record as [YAML](https://yaml.org).
    """,
    ".dkk/adr/README.md": "# ADRs\n",
}


@pytest.fixture
def pack_root(tmp_path) -> Path:
    """A consistent knowledge base written to disk."""
    return write_files(tmp_path, PACK_FILES)
