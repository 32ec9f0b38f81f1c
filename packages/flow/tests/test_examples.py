"""Tests for the order processing example."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "examples"))

from order_processing import build_order_flow, process  # noqa: E402

from dataknobs_flow import load_flow  # noqa: E402

EXAMPLE_YAML = Path(__file__).parent.parent / "examples" / "order_flow.yaml"


@pytest.mark.parametrize("order,route", [
    ({"id": 1, "items": ["book"], "total": 25}, ["validate", "charge", "ship"]),
    ({"id": 2, "items": []}, ["validate", "reject"]),
    ({"id": 3, "items": ["tv"], "total": 1500, "approved": True},
     ["validate", "manual_review", "charge", "ship"]),
    ({"id": 4, "items": ["tv"], "total": 1500}, ["validate", "manual_review", "reject"]),
    ({"id": 5, "items": ["tv"], "total": 1500, "customer_orders": 30}, ["validate", "charge", "ship"]),
])
def test_builder_and_yaml_routes_agree(order, route):
    assert process(build_order_flow(), order) == route
    assert process(load_flow(EXAMPLE_YAML), order) == route


def test_yaml_renders_like_builder():
    assert str(load_flow(EXAMPLE_YAML)) == str(build_order_flow())
