"""
Order Fulfillment Workflow.

Sample workflow demonstrating the engine:
1. Validate the order
2. Charge the payment, retrying a declined charge a few times
3. Ship the order
4. Send a confirmation
Validation or payment failure routes to a failure notification instead.

Every handler is called as ``handler(order, accumulated)``.
"""

from typing import Any, Dict
import logging

from stepflow.engine.builder import WorkflowBuilder
from stepflow.engine.graph import Graph
from stepflow.engine.outcome import Outcome, Status
from stepflow.storage.memory import workflow_storage


logger = logging.getLogger(__name__)


DEMO_WORKFLOW_ID = "order-fulfillment-demo"
MAX_PAYMENT_ATTEMPTS = 3


# ============================================================
# Handlers
# ============================================================

class ValidateOrder:
    """Reject orders without items or with a non-positive amount."""

    def __call__(self, order: Dict[str, Any], accumulated: Dict[str, Any]) -> Outcome:
        errors = []
        if not order.get("items"):
            errors.append("order has no items")
        if order.get("amount", 0) <= 0:
            errors.append("amount must be positive")

        if errors:
            logger.info(f"Order {order.get('order_id')} rejected: {errors}")
            return Outcome.fail({"errors": errors})
        return Outcome.success({"order_id": order.get("order_id"), "validated": True})


class ChargePayment:
    """
    Charge the order amount.

    ``order["declines"]`` simulates how many attempts the processor
    declines before accepting the charge.
    """

    def __call__(self, order: Dict[str, Any], accumulated: Dict[str, Any]) -> Outcome:
        attempt = accumulated.get("payment_attempts", 0) + 1

        if attempt <= order.get("declines", 0):
            if attempt >= MAX_PAYMENT_ATTEMPTS:
                logger.info(f"Payment declined {attempt} times, giving up")
                return Outcome.fail({
                    "payment_attempts": attempt,
                    "errors": ["payment declined"],
                })
            logger.info(f"Payment declined (attempt {attempt}), retrying")
            return Outcome.to(Status.ON_RETRY, {"payment_attempts": attempt})

        return Outcome.success({
            "payment_attempts": attempt,
            "charged": order["amount"],
        })


class ShipOrder:
    """Create a shipment; digital-only orders skip straight to confirmation."""

    def __call__(self, order: Dict[str, Any], accumulated: Dict[str, Any]) -> Outcome:
        if order.get("digital"):
            return Outcome.to(Status.ON_SKIP, {"shipment": None})
        return Outcome.success({"shipment": f"SHP-{accumulated['order_id']}"})


class SendConfirmation:
    """Final step of a successful order."""

    def __call__(self, order: Dict[str, Any], accumulated: Dict[str, Any]) -> Outcome:
        return Outcome.success({"confirmation_sent": True})


class NotifyFailure:
    """Final step of a failed order."""

    def __call__(self, order: Dict[str, Any], accumulated: Dict[str, Any]) -> Outcome:
        return Outcome.fail({"failure_notified": True})


# ============================================================
# Workflow
# ============================================================

def create_order_fulfillment_workflow() -> Graph:
    """Build the order fulfillment graph."""
    return (
        WorkflowBuilder("order_fulfillment")
        .node(ValidateOrder)
            .on_success(ChargePayment)
            .on_fail(NotifyFailure)
        .node(ChargePayment)
            .on_success(ShipOrder)
            .on_retry(ChargePayment)
            .on_fail(NotifyFailure)
        .node(ShipOrder)
            .on_success(SendConfirmation)
            .on_skip(SendConfirmation)
        .node(SendConfirmation)
        .node(NotifyFailure)
        .build()
    )


async def register_order_fulfillment_workflow() -> str:
    """Register the demo workflow in storage under a fixed ID."""
    graph = create_order_fulfillment_workflow()
    graph.graph_id = DEMO_WORKFLOW_ID

    await workflow_storage.save(
        workflow_id=DEMO_WORKFLOW_ID,
        name=graph.name,
        definition=graph.to_dict(),
        description="Validate, charge (with retry), ship and confirm an order",
    )
    logger.info(f"Registered demo workflow: {DEMO_WORKFLOW_ID}")
    return DEMO_WORKFLOW_ID
