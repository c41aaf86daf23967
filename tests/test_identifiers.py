"""
Tests for identifier helpers.
"""

import pytest

from domainpack.model.identifiers import (
    ParsedIdentifier,
    actor_id,
    context_id,
    flow_id,
    is_adr_id,
    parse_identifier,
    scoped_id,
    split_ref,
)


def test_id_builders():
    assert scoped_id("ordering", "OrderPlaced") == "ordering.OrderPlaced"
    assert actor_id("Customer") == "actor.Customer"
    assert flow_id("Checkout") == "flow.Checkout"
    assert context_id("ordering") == "context.ordering"


@pytest.mark.parametrize("value,expected", [
    ("adr-0001", True),
    ("adr-1234", True),
    ("adr-1", False),
    ("adr-00001", False),
    ("ADR-0001", False),
    ("", False),
])
def test_is_adr_id(value, expected):
    assert is_adr_id(value) is expected


def test_split_ref_at_first_dot():
    assert split_ref("ordering.OrderPlaced") == ("ordering", "OrderPlaced")
    assert split_ref("a.b.c") == ("a", "b.c")
    assert split_ref("NoDot") == (None, "NoDot")
    assert split_ref(".leading") == (None, ".leading")


@pytest.mark.parametrize("value,expected", [
    ("adr-0007", ParsedIdentifier(kind="adr", name="adr-0007")),
    ("actor.Customer", ParsedIdentifier(kind="actor", name="Customer")),
    ("flow.Checkout", ParsedIdentifier(kind="flow", name="Checkout")),
    ("context.ordering", ParsedIdentifier(kind="context", name="ordering")),
    ("ordering.PlaceOrder", ParsedIdentifier(kind="item", name="PlaceOrder", context="ordering")),
])
def test_parse_identifier(value, expected):
    assert parse_identifier(value) == expected


@pytest.mark.parametrize("value", ["Customer", "ordering.", ".Order", "adr-12"])
def test_parse_identifier_rejects_malformed(value):
    with pytest.raises(ValueError):
        parse_identifier(value)
