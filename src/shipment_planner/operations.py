"""
Operations service: the one object the assignment engine talks to.

Wraps the inventory ledger, the shipment book and the info reporter behind
four calls: has_stock, ship, cost_factors and info_snapshot.

Usage:
    ops = Operations(input_data, CostFactors(base_cost=10, size_cost=2))
    if ops.has_stock(wh, line.product, line.quantity):
        ops.ship(line, wh)
    print(ops.info_snapshot().total_cost)
"""

from __future__ import annotations

from shipment_planner.assignment.cost_model import ShipmentBook
from shipment_planner.assignment.distance_matrix import DistanceMatrix, compute_distance_matrix
from shipment_planner.config import CostFactors
from shipment_planner.reporting import InfoReporter, InfoSnapshot
from shipment_planner.warehouse.entities import Customer, InputData, OrderLine, Product, Warehouse
from shipment_planner.warehouse.inventory import InventoryLedger


class Operations:
    """Stock mutation and cost tallying for one instance."""

    def __init__(self, input_data: InputData, cost_factors: CostFactors | None = None) -> None:
        self.input = input_data
        self._cost_factors = cost_factors or CostFactors()
        self.ledger = InventoryLedger(input_data.warehouses)
        self.shipments = ShipmentBook(self._cost_factors)
        self.distances: DistanceMatrix = compute_distance_matrix(
            input_data.warehouses, input_data.customers, self._cost_factors.distance_metric
        )
        self._reporter = InfoReporter(input_data.order_lines, self.shipments, self._cost_factors)

    @property
    def cost_factors(self) -> CostFactors:
        return self._cost_factors

    def has_stock(self, warehouse: Warehouse, product: Product, quantity: int = 1) -> bool:
        return self.ledger.has_stock(warehouse, product, quantity)

    def distance(self, warehouse: Warehouse, customer: Customer) -> float:
        return self.distances.between(warehouse, customer)

    def ship(self, order_line: OrderLine, warehouse: Warehouse) -> None:
        """Ship one line and fold it into its (warehouse, customer) shipment.

        Raises:
            AlreadyShippedError, InsufficientStockError: from the ledger; the
                shipment book is untouched when either is raised.
        """
        # Resolved before the ledger mutates anything
        distance = self.distance(warehouse, order_line.customer)
        self.ledger.ship(
            order_line,
            warehouse,
            on_shipped=lambda line, wh: self.shipments.record(line, wh, distance),
        )

    def unfinished_order_lines(self) -> list[OrderLine]:
        return self._reporter.unfinished_order_lines()

    def info_snapshot(self) -> InfoSnapshot:
        return self._reporter.snapshot()
