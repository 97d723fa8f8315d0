"""
Shipment cost model and the shipment book.

A shipment is every order line sent from one warehouse to one customer.
It pays the base cost once, however many lines it carries:

    cost = (base_cost + accumulated_size * size_cost) * distance

The book stores accumulated size per (warehouse, customer) pair and prices
each shipment from that size on read, so adding a line replaces the old
cost instead of stacking a second base charge on top.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterator

if TYPE_CHECKING:
    from shipment_planner.config import CostFactors
    from shipment_planner.warehouse.entities import Customer, OrderLine, Warehouse


ShipmentKey = tuple[str, str]  # (warehouse code, customer code)


def shipment_cost(accumulated_size: float, distance: float, cost_factors: CostFactors) -> float:
    """Cost of one shipment carrying ``accumulated_size`` over ``distance``."""
    return (cost_factors.base_cost + accumulated_size * cost_factors.size_cost) * distance


def marginal_cost(
    line_size: float,
    distance: float,
    shipment_open: bool,
    cost_factors: CostFactors,
) -> float:
    """Increase in total cost from adding a line of ``line_size`` to a pair.

    An already open shipment only grows by the size term; a new one also
    pays the base cost.
    """
    cost = line_size * cost_factors.size_cost * distance
    if not shipment_open:
        cost += cost_factors.base_cost * distance
    return cost


@dataclass
class Shipment:
    """Order lines consolidated for one (warehouse, customer) pair.

    Attributes:
        warehouse: Origin.
        customer: Destination.
        distance: Warehouse → customer distance, fixed when the pair opens.
        lines: Order lines carried, in ship order.
        accumulated_size: Σ line.size over ``lines``.
    """

    warehouse: Warehouse
    customer: Customer
    distance: float
    lines: list[OrderLine] = field(default_factory=list)
    accumulated_size: float = 0.0

    @property
    def key(self) -> ShipmentKey:
        return (self.warehouse.code, self.customer.code)

    def add(self, order_line: OrderLine) -> None:
        self.lines.append(order_line)
        self.accumulated_size += order_line.size

    def cost(self, cost_factors: CostFactors) -> float:
        return shipment_cost(self.accumulated_size, self.distance, cost_factors)


class ShipmentBook:
    """(warehouse, customer) → Shipment map, materialised as lines ship."""

    def __init__(self, cost_factors: CostFactors) -> None:
        self.cost_factors = cost_factors
        self._shipments: dict[ShipmentKey, Shipment] = {}

    def __len__(self) -> int:
        return len(self._shipments)

    def __iter__(self) -> Iterator[Shipment]:
        return iter(self._shipments.values())

    def get(self, warehouse: Warehouse, customer: Customer) -> Shipment | None:
        return self._shipments.get((warehouse.code, customer.code))

    def is_open(self, warehouse: Warehouse, customer: Customer) -> bool:
        return (warehouse.code, customer.code) in self._shipments

    def open_warehouse_codes(self, customer: Customer) -> set[str]:
        """Codes of warehouses already shipping to ``customer``."""
        return {wh_code for wh_code, c_code in self._shipments if c_code == customer.code}

    def record(self, order_line: OrderLine, warehouse: Warehouse, distance: float) -> Shipment:
        """Add a shipped line to its shipment, opening the shipment if needed.

        ``distance`` only matters when the pair is new; an open shipment keeps
        the distance it was created with.
        """
        key = (warehouse.code, order_line.customer.code)
        shipment = self._shipments.get(key)
        if shipment is None:
            shipment = Shipment(
                warehouse=warehouse, customer=order_line.customer, distance=distance
            )
            self._shipments[key] = shipment
        shipment.add(order_line)
        return shipment

    def shipments_cost(self) -> float:
        return float(sum(s.cost(self.cost_factors) for s in self._shipments.values()))

    def costs_by_pair(self) -> dict[ShipmentKey, float]:
        return {k: s.cost(self.cost_factors) for k, s in self._shipments.items()}
