"""
Warehouse × customer distance matrix.

Computed once per run with scipy's cdist and shared by every selection
policy and by the shipment book, so tie-breaks and shipment prices see the
same numbers.

Usage:
    matrix = compute_distance_matrix(warehouses, customers, "euclidean")
    matrix.between(warehouse, customer)   # float
    matrix.values[w_idx, c_idx]           # raw numpy access
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Sequence

import numpy as np
from scipy.spatial.distance import cdist

from shipment_planner.warehouse.geometry import check_metric, stack_positions

if TYPE_CHECKING:
    from shipment_planner.warehouse.entities import Customer, Warehouse


@dataclass
class DistanceMatrix:
    """Precomputed distances.

    Attributes:
        warehouse_codes: Warehouse code at each row index.
        customer_codes: Customer code at each column index.
        values: float64 array, shape (n_warehouses, n_customers).
        metric: scipy metric name the values were computed with.
    """

    warehouse_codes: list[str]
    customer_codes: list[str]
    values: np.ndarray
    metric: str = "euclidean"
    _w_index: dict[str, int] = field(init=False, repr=False)
    _c_index: dict[str, int] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._w_index = {code: i for i, code in enumerate(self.warehouse_codes)}
        self._c_index = {code: i for i, code in enumerate(self.customer_codes)}

    @property
    def n_warehouses(self) -> int:
        return len(self.warehouse_codes)

    @property
    def n_customers(self) -> int:
        return len(self.customer_codes)

    def warehouse_index(self, warehouse: Warehouse) -> int:
        return self._w_index[warehouse.code]

    def customer_index(self, customer: Customer) -> int:
        return self._c_index[customer.code]

    def between(self, warehouse: Warehouse, customer: Customer) -> float:
        return float(self.values[self._w_index[warehouse.code], self._c_index[customer.code]])


def compute_distance_matrix(
    warehouses: Sequence[Warehouse],
    customers: Sequence[Customer],
    metric: str = "euclidean",
) -> DistanceMatrix:
    """Build the full warehouse × customer distance matrix.

    Args:
        warehouses: Row order; also the tie-break order of the policies.
        customers: Column order.
        metric: "euclidean", "cityblock" or "chebyshev".

    Returns:
        DistanceMatrix indexed [warehouse_index, customer_index].
    """
    check_metric(metric)
    n_w, n_c = len(warehouses), len(customers)
    if n_w == 0 or n_c == 0:
        values = np.zeros((n_w, n_c), dtype=np.float64)
    else:
        values = cdist(
            stack_positions([w.position for w in warehouses]),
            stack_positions([c.position for c in customers]),
            metric=metric,
        )
    return DistanceMatrix(
        warehouse_codes=[w.code for w in warehouses],
        customer_codes=[c.code for c in customers],
        values=np.asarray(values, dtype=np.float64),
        metric=metric,
    )
