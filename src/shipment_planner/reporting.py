"""
Point-in-time cost and fulfilment statistics.

InfoReporter recomputes every figure from the order lines and the shipment
book on each call, so a snapshot is never stale.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from shipment_planner.assignment.cost_model import ShipmentBook
    from shipment_planner.config import CostFactors
    from shipment_planner.warehouse.entities import OrderLine


@dataclass(frozen=True)
class InfoSnapshot:
    """Read-only view of the run state."""

    unfinished_order_line_count: int
    unfinished_order_lines_cost: float
    shipments_cost: float
    total_cost: float
    shipment_count: int = 0


class InfoReporter:
    """Aggregates InfoSnapshot values from live ledger and shipment state."""

    def __init__(
        self,
        order_lines: Sequence[OrderLine],
        shipments: ShipmentBook,
        cost_factors: CostFactors,
    ) -> None:
        self.order_lines = order_lines
        self.shipments = shipments
        self.cost_factors = cost_factors

    def unfinished_order_lines(self) -> list[OrderLine]:
        return [line for line in self.order_lines if not line.fulfilled]

    def snapshot(self) -> InfoSnapshot:
        n_open = len(self.unfinished_order_lines())
        open_cost = n_open * self.cost_factors.unfinished_line_cost
        shipments_cost = self.shipments.shipments_cost()
        return InfoSnapshot(
            unfinished_order_line_count=n_open,
            unfinished_order_lines_cost=open_cost,
            shipments_cost=shipments_cost,
            total_cost=shipments_cost + open_cost,
            shipment_count=len(self.shipments),
        )


def summarize(snapshot: InfoSnapshot) -> dict:
    """Plain dict of a snapshot, for console tables and JSON responses."""
    return asdict(snapshot)
