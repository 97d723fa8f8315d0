"""
Inventory ledger: stock queries and the atomic ship step.

ship() is the only code path that decrements warehouse stock or marks an
order line fulfilled. The check-then-mutate sequence runs under a lock so
the ledger stays a single writer even when callers are concurrent.
"""

from __future__ import annotations

import threading
from typing import Callable, Iterable

from shipment_planner.errors import AlreadyShippedError, InsufficientStockError
from shipment_planner.warehouse.entities import OrderLine, Product, Warehouse


class InventoryLedger:
    """Per-warehouse, per-product stock bookkeeping.

    Usage:
        ledger = InventoryLedger(input_data.warehouses)
        if ledger.has_stock(wh, line.product, line.quantity):
            ledger.ship(line, wh)
    """

    def __init__(self, warehouses: Iterable[Warehouse]) -> None:
        self.warehouses: tuple[Warehouse, ...] = tuple(warehouses)
        self._lock = threading.Lock()
        self.total_shipped_lines: int = 0

    def has_stock(self, warehouse: Warehouse, product: Product, quantity: int = 1) -> bool:
        return warehouse.has_stock(product, quantity)

    def warehouses_with_stock(self, product: Product, quantity: int = 1) -> list[Warehouse]:
        """Warehouses able to cover the quantity, in enumeration order."""
        return [wh for wh in self.warehouses if wh.has_stock(product, quantity)]

    def total_stock(self, product: Product) -> int:
        return sum(wh.stock_of(product) for wh in self.warehouses)

    def ship(
        self,
        order_line: OrderLine,
        warehouse: Warehouse,
        on_shipped: Callable[[OrderLine, Warehouse], None] | None = None,
    ) -> None:
        """Fulfil ``order_line`` from ``warehouse``.

        Args:
            order_line: Unfulfilled line to ship.
            warehouse: Warehouse to take the stock from.
            on_shipped: Called inside the lock once the stock has moved, so
                shipment tallies commit in the same step.

        Raises:
            AlreadyShippedError: the line is already fulfilled.
            InsufficientStockError: the warehouse cannot cover the quantity.
        """
        with self._lock:
            if order_line.fulfilled:
                raise AlreadyShippedError(order_line)
            available = warehouse.stock_of(order_line.product)
            if available < order_line.quantity:
                raise InsufficientStockError(order_line, warehouse, available)

            warehouse._remove_stock(order_line.product, order_line.quantity)  # pylint: disable=protected-access
            order_line.warehouse = warehouse
            self.total_shipped_lines += 1
            if on_shipped is not None:
                on_shipped(order_line, warehouse)
