"""
Workflows package - Sample workflow implementations.
"""

from stepflow.workflows.order_fulfillment import (
    create_order_fulfillment_workflow,
    register_order_fulfillment_workflow,
)

__all__ = [
    "create_order_fulfillment_workflow",
    "register_order_fulfillment_workflow",
]
