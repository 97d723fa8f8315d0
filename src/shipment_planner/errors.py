"""
Error types raised by the stock ledger, the engine and the instance loader.

Stock and shipment errors signal a broken invariant and abort a run.
UnfulfillableOrderLineError is collected in the run result instead of raised.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from shipment_planner.warehouse.entities import OrderLine, Product, Warehouse


class ShipmentPlannerError(Exception):
    """Base class for all planner errors."""


class AlreadyShippedError(ShipmentPlannerError):
    """ship() was called for an order line that is already fulfilled."""

    def __init__(self, order_line: OrderLine) -> None:
        self.order_line = order_line
        super().__init__(
            f"order line {order_line.code} already shipped "
            f"from warehouse {order_line.warehouse.code if order_line.warehouse else '?'}"
        )


class InsufficientStockError(ShipmentPlannerError):
    """ship() was called against a warehouse that cannot cover the quantity."""

    def __init__(self, order_line: OrderLine, warehouse: Warehouse, available: int) -> None:
        self.order_line = order_line
        self.warehouse = warehouse
        self.available = available
        super().__init__(
            f"warehouse {warehouse.code} holds {available} x {order_line.product.code}, "
            f"order line {order_line.code} needs {order_line.quantity}"
        )


class UnfulfillableOrderLineError(ShipmentPlannerError):
    """No warehouse holds enough stock for the order line."""

    def __init__(self, order_line: OrderLine) -> None:
        self.order_line = order_line
        super().__init__(
            f"no warehouse has {order_line.quantity} x {order_line.product.code} "
            f"for order line {order_line.code} (customer {order_line.customer.code})"
        )

    @property
    def product(self) -> Product:
        return self.order_line.product


class InstanceError(ShipmentPlannerError):
    """Input instance is malformed (duplicate codes, dangling references, bad values)."""
