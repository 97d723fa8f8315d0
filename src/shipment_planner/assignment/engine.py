"""
Assignment engine: the top-level run procedure.

Orders customers and their order lines, asks the selected solver for a
warehouse per line, and commits each pick through Operations.ship.

Usage:
    ops = Operations(input_data, config.costs)
    engine = AssignmentEngine(ops, strategy="nearest")
    result = engine.run()
    print(f"Total cost: {result.snapshot.total_cost:.2f}")

Processing order (reference behaviour):
  1. group order lines by customer in one pass (first-appearance order)
  2. customers with more lines first; ties keep first appearance
  3. inside a customer, larger products first; ties keep input order
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable

from shipment_planner.assignment.solver import SolverStatus, create_solver
from shipment_planner.config import SolverConfig
from shipment_planner.errors import UnfulfillableOrderLineError

if TYPE_CHECKING:
    from shipment_planner.assignment.solver import (
        CPSATPlanningSolver,
        MarginalCostSolver,
        NearestWarehouseSolver,
    )
    from shipment_planner.operations import Operations
    from shipment_planner.reporting import InfoSnapshot
    from shipment_planner.warehouse.entities import Customer, OrderLine, Warehouse


@dataclass
class AssignmentResult:
    """Outcome of one engine run.

    Attributes:
        shipped: (order line, warehouse) pairs in ship order.
        unfulfilled: One error per line no warehouse could cover.
        solver_status: HEURISTIC for greedy policies, CP-SAT status otherwise.
        solve_time_ms: Wall-clock time of the whole run.
        strategy: Solver name.
        snapshot: InfoSnapshot taken right after the last ship.
        plan_deviations: Lines of this run the CP-SAT plan could not place as planned.
        skipped: Lines already fulfilled before the run started.
    """

    shipped: list[tuple[OrderLine, Warehouse]]
    unfulfilled: list[UnfulfillableOrderLineError]
    solver_status: SolverStatus
    solve_time_ms: float
    strategy: str = "nearest"
    snapshot: InfoSnapshot | None = None
    plan_deviations: int = 0
    skipped: list[OrderLine] = field(default_factory=list)

    @property
    def unfulfilled_lines(self) -> list[OrderLine]:
        return [err.order_line for err in self.unfulfilled]


def group_by_customer(order_lines: Iterable[OrderLine]) -> dict[Customer, list[OrderLine]]:
    """Single pass: customer → its order lines, both in first-appearance order."""
    groups: dict[Customer, list[OrderLine]] = {}
    for line in order_lines:
        groups.setdefault(line.customer, []).append(line)
    return groups


def processing_order(order_lines: Iterable[OrderLine]) -> list[tuple[Customer, list[OrderLine]]]:
    """Customers by descending line count, each with lines by descending product size.

    Both sorts are stable, so equal keys keep their input order and the
    result is reproducible.
    """
    groups = group_by_customer(order_lines)
    customers = sorted(groups, key=lambda c: len(groups[c]), reverse=True)
    return [
        (customer, sorted(groups[customer], key=lambda line: line.product.size, reverse=True))
        for customer in customers
    ]


class AssignmentEngine:
    """Assign every unfulfilled order line to a warehouse, or report it.

    Args:
        operations: Service owning stock, shipments and cost factors.
        strategy: Solver name for create_solver(); ignored when ``solver``
            is given.
        solver: Pre-built solver instance.
        solver_config: CP-SAT tuning; its ``strategy`` is used when neither
            ``strategy`` nor ``solver`` is given.
        verbose: Print a start and a finish line.
    """

    def __init__(
        self,
        operations: Operations,
        strategy: str | None = None,
        solver: NearestWarehouseSolver | MarginalCostSolver | CPSATPlanningSolver | None = None,
        solver_config: SolverConfig | None = None,
        verbose: bool = False,
    ) -> None:
        self.operations = operations
        self.solver_config = solver_config or SolverConfig()
        if solver is None:
            solver = create_solver(
                strategy or self.solver_config.strategy,
                operations.cost_factors,
                self.solver_config,
            )
        self.solver = solver
        self.verbose = verbose

        self.total_runs: int = 0
        self.total_solve_time_ms: float = 0.0

    def run(self) -> AssignmentResult:
        """Process all unfulfilled order lines once.

        Returns:
            AssignmentResult with shipped pairs, unfulfillable lines and the
            final snapshot.

        Raises:
            AlreadyShippedError, InsufficientStockError: a broken invariant;
                the run stops at the failing line.
        """
        t0 = time.perf_counter()
        ops = self.operations
        distances = ops.distances
        warehouses = ops.input.warehouses

        pending = [line for line in ops.input.order_lines if not line.fulfilled]
        skipped = [line for line in ops.input.order_lines if line.fulfilled]
        ordered = processing_order(pending)
        flat = [line for _, lines in ordered for line in lines]

        if self.verbose:
            print(
                f"Starting assignment: {len(flat)} order lines, {len(ordered)} customers, "
                f"{len(warehouses)} warehouses, strategy={self.solver.name}"
            )

        deviations_before = getattr(self.solver, "total_deviations", 0)
        status = self.solver.prepare(flat, ops)

        shipped: list[tuple[OrderLine, Warehouse]] = []
        unfulfilled: list[UnfulfillableOrderLineError] = []

        for customer, lines in ordered:
            for line in lines:
                candidates = [
                    wh for wh in warehouses if ops.has_stock(wh, line.product, line.quantity)
                ]
                if not candidates:
                    unfulfilled.append(UnfulfillableOrderLineError(line))
                    continue

                open_codes = ops.shipments.open_warehouse_codes(customer)
                warehouse = self.solver.choose(line, candidates, distances, open_codes)
                ops.ship(line, warehouse)
                shipped.append((line, warehouse))

        ms = (time.perf_counter() - t0) * 1e3
        self.total_runs += 1
        self.total_solve_time_ms += ms

        snapshot = ops.info_snapshot()
        if self.verbose:
            print(
                f"Assignment finished in {ms:.1f} ms: {len(shipped)} shipped, "
                f"{len(unfulfilled)} unfulfilled, total cost {snapshot.total_cost:.2f}"
            )

        return AssignmentResult(
            shipped=shipped,
            unfulfilled=unfulfilled,
            solver_status=status,
            solve_time_ms=ms,
            strategy=self.solver.name,
            snapshot=snapshot,
            plan_deviations=getattr(self.solver, "total_deviations", 0) - deviations_before,
            skipped=skipped,
        )
