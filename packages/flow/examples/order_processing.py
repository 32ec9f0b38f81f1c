"""
Order Processing Example using dataknobs_flow

This example shows the two ways of defining the same flow:
- Fluent builder calls
- A YAML definition loaded with load_flow()

Both flows are driven by an operation that looks at an order dictionary
to answer conditions and prints every step it is notified about.
"""

import logging
from pathlib import Path
from typing import Any, Dict

from dataknobs_flow import Flow, FlowOperation, load_flow

logger = logging.getLogger(__name__)

HIGH_VALUE_LIMIT = 1000


def build_order_flow() -> Flow:
    """Build the order flow with the fluent builder."""
    flow = Flow.create("order_processing")
    flow.from_start().to("validate")
    (flow.from_activity("validate")
        .only_if("invalid")
            .to("reject")
        .else_if("high_value")
            .only_if("trusted_customer")
                .to("charge")
            .otherwise("manual_review")
        .otherwise("charge"))
    (flow.from_activity("manual_review")
        .only_if("approved")
            .to("charge")
        .otherwise("reject"))
    flow.from_activity("charge").to("ship").to_end()
    flow.from_activity("reject").to_end()
    return flow.build()


class OrderOperation(FlowOperation[str]):
    """Answers conditions from an order and logs the route it takes."""

    def __init__(self, order: Dict[str, Any]):
        self.order = order
        self.route = []

    def on_enter_from_start(self, to_id: str) -> None:
        self.route.append(to_id)

    def on_transition(self, from_id: str, to_id: str) -> None:
        self.route.append(to_id)

    def on_reach_end(self, from_id: str) -> None:
        logger.info("Order %s finished after %s", self.order["id"], from_id)

    def test(self, condition_id: str) -> bool:
        if condition_id == "invalid":
            return not self.order.get("items")
        if condition_id == "high_value":
            return self.order.get("total", 0) >= HIGH_VALUE_LIMIT
        if condition_id == "trusted_customer":
            return self.order.get("customer_orders", 0) > 10
        if condition_id == "approved":
            return self.order.get("approved", False)
        return False


def process(flow: Flow, order: Dict[str, Any]) -> list:
    operation = OrderOperation(order)
    flow.get_flow_instance(operation).run()
    return operation.route


def main():
    logging.basicConfig(level=logging.INFO, format="%(name)s %(levelname)s: %(message)s")

    built = build_order_flow()
    loaded = load_flow(Path(__file__).parent / "order_flow.yaml")
    print(built)

    orders = [
        {"id": "A-1", "items": ["book"], "total": 25},
        {"id": "A-2", "items": [], "total": 0},
        {"id": "A-3", "items": ["tv"], "total": 1500, "customer_orders": 2, "approved": True},
        {"id": "A-4", "items": ["tv"], "total": 1500, "customer_orders": 2},
        {"id": "A-5", "items": ["tv"], "total": 1500, "customer_orders": 30},
    ]
    for order in orders:
        route = process(built, order)
        assert route == process(loaded, order)
        print(f"{order['id']}: {' -> '.join(route)}")


if __name__ == "__main__":
    main()
