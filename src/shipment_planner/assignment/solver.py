"""
Warehouse selection policies for the assignment engine.

The engine walks order lines in a fixed order and asks a solver which of the
currently stocked warehouses should fulfil each one. Solvers never touch
stock themselves; the engine commits every pick through Operations.ship.

Solver menu
───────────
  NearestWarehouseSolver  closest stocked warehouse, ties → enumeration order  ← DEFAULT
  MarginalCostSolver      cheapest cost increase; an open shipment to the
                          customer does not pay the base cost twice
  CPSATPlanningSolver     OR-Tools CP-SAT plan over all lines at once, warm
                          started with the marginal-cost plan; marginal-cost
                          fallback for lines the plan does not cover

All three share the same public interface (prepare / choose) and are built
by name through create_solver().

Why greedy is not enough
─────────────────────────
Shipment cost is not separable per line: the base cost is paid once per
(warehouse, customer) pair. Nearest-first ignores that, so a customer whose
lines are spread over two close warehouses pays two base costs where one
slightly farther warehouse would have paid one. CP-SAT sees the whole
problem as a fixed-charge assignment and trades these off exactly.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING, Callable, Sequence

import numpy as np
from ortools.sat.python import cp_model

from shipment_planner.assignment.cost_model import marginal_cost
from shipment_planner.config import STRATEGIES, CostFactors, SolverConfig

if TYPE_CHECKING:
    from shipment_planner.assignment.distance_matrix import DistanceMatrix
    from shipment_planner.operations import Operations
    from shipment_planner.warehouse.entities import OrderLine, Product, Warehouse


# ─────────────────────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────────────────────

COST_SCALE: int = 100  # float costs × COST_SCALE → CP-SAT integer coefficients


# ─────────────────────────────────────────────────────────────────────────────
# Public types
# ─────────────────────────────────────────────────────────────────────────────


class SolverStatus(Enum):
    """Valid solver status"""

    OPTIMAL = auto()  # CP-SAT proved the plan optimal
    FEASIBLE = auto()  # CP-SAT plan, not proven optimal (time-limited)
    HEURISTIC = auto()  # greedy policy, no optimality claim
    FALLBACK_GREEDY = auto()  # CP-SAT found nothing; marginal-cost greedy used


ChooseFn = Callable[["OrderLine", "Sequence[Warehouse]", "DistanceMatrix", "set[str]"], "Warehouse"]


@dataclass
class PlanResult:
    """Outcome of a whole-instance planning pass (CP-SAT only)."""

    assignments: dict[str, Warehouse]  # order line code → planned warehouse
    status: SolverStatus
    solve_time_ms: float
    objective: float | None = None  # planned shipment cost, unscaled
    n_variables: int = 0


# ─────────────────────────────────────────────────────────────────────────────
# Private helpers (shared by all solvers)
# ─────────────────────────────────────────────────────────────────────────────


def _first_minimum(candidates: Sequence[Warehouse], key: Callable[[Warehouse], float]) -> Warehouse:
    """Candidate with the smallest key; the earliest one wins ties."""
    best = candidates[0]
    best_val = key(best)
    for wh in candidates[1:]:
        val = key(wh)
        if val < best_val:
            best, best_val = wh, val
    return best


def _stock_snapshot(warehouses: Sequence[Warehouse]) -> dict[str, dict[Product, int]]:
    return {wh.code: wh.current_stocks() for wh in warehouses}


def simulate_plan(
    order_lines: Sequence[OrderLine],
    warehouses: Sequence[Warehouse],
    distances: DistanceMatrix,
    choose: ChooseFn,
    open_pairs: set[tuple[str, str]] | None = None,
) -> dict[str, Warehouse]:
    """Dry-run a greedy policy against a copy of the stock.

    Args:
        order_lines: Lines in processing order.
        warehouses: Warehouses in enumeration order.
        distances: Shared distance matrix.
        choose: A solver's ``choose`` method.
        open_pairs: (warehouse code, customer code) pairs already shipping.

    Returns:
        order line code → warehouse for every line the policy could place.
    """
    stock = _stock_snapshot(warehouses)
    opened: set[tuple[str, str]] = set(open_pairs or ())
    plan: dict[str, Warehouse] = {}
    for line in order_lines:
        candidates = [
            wh for wh in warehouses if stock[wh.code].get(line.product, 0) >= line.quantity
        ]
        if not candidates:
            continue
        open_codes = {w for w, c in opened if c == line.customer.code}
        wh = choose(line, candidates, distances, open_codes)
        stock[wh.code][line.product] -= line.quantity
        opened.add((wh.code, line.customer.code))
        plan[line.code] = wh
    return plan


def plan_cost(
    order_lines: Sequence[OrderLine],
    plan: dict[str, Warehouse],
    distances: DistanceMatrix,
    cost_factors: CostFactors,
) -> float:
    """Total shipment cost of a plan (unplanned lines excluded)."""
    sizes: dict[tuple[str, str], float] = {}
    dist: dict[tuple[str, str], float] = {}
    for line in order_lines:
        wh = plan.get(line.code)
        if wh is None:
            continue
        key = (wh.code, line.customer.code)
        sizes[key] = sizes.get(key, 0.0) + line.size
        dist[key] = distances.between(wh, line.customer)
    return float(
        sum(
            (cost_factors.base_cost + s * cost_factors.size_cost) * dist[k]
            for k, s in sizes.items()
        )
    )


# ─────────────────────────────────────────────────────────────────────────────
# Solver 1: NearestWarehouseSolver
# ─────────────────────────────────────────────────────────────────────────────


class NearestWarehouseSolver:
    """Reference policy: the stocked warehouse closest to the customer.

    Ties go to the warehouse that comes first in enumeration order, which
    makes repeated runs on the same input pick the same warehouse.
    """

    name = "nearest"

    def __init__(
        self,
        cost_factors: CostFactors | None = None,
        solver_config: SolverConfig | None = None,
    ) -> None:
        self.cost_factors = cost_factors or CostFactors()
        self.config = solver_config or SolverConfig(strategy=self.name)
        self.total_choices: int = 0
        self.total_solve_time_ms: float = 0.0

    def prepare(self, order_lines: Sequence[OrderLine], operations: Operations) -> SolverStatus:
        """No look-ahead; every decision is made in choose()."""
        return SolverStatus.HEURISTIC

    def choose(
        self,
        order_line: OrderLine,
        candidates: Sequence[Warehouse],
        distances: DistanceMatrix,
        open_warehouse_codes: set[str],
    ) -> Warehouse:
        self.total_choices += 1
        customer = order_line.customer
        return _first_minimum(candidates, lambda wh: distances.between(wh, customer))


# ─────────────────────────────────────────────────────────────────────────────
# Solver 2: MarginalCostSolver
# ─────────────────────────────────────────────────────────────────────────────


class MarginalCostSolver:
    """Greedy on the true cost increase of each pick.

    marginal(w) = size · size_cost · d(w)            if w already ships to the customer
                = (base + size · size_cost) · d(w)   otherwise

    With base_cost = 0 this degenerates to NearestWarehouseSolver.
    """

    name = "marginal"

    def __init__(
        self,
        cost_factors: CostFactors | None = None,
        solver_config: SolverConfig | None = None,
    ) -> None:
        self.cost_factors = cost_factors or CostFactors()
        self.config = solver_config or SolverConfig(strategy=self.name)
        self.total_choices: int = 0
        self.total_consolidations: int = 0
        self.total_solve_time_ms: float = 0.0

    def prepare(self, order_lines: Sequence[OrderLine], operations: Operations) -> SolverStatus:
        """No look-ahead; every decision is made in choose()."""
        return SolverStatus.HEURISTIC

    def choose(
        self,
        order_line: OrderLine,
        candidates: Sequence[Warehouse],
        distances: DistanceMatrix,
        open_warehouse_codes: set[str],
    ) -> Warehouse:
        self.total_choices += 1
        customer = order_line.customer
        factors = self.cost_factors

        def _cost(wh: Warehouse) -> float:
            return marginal_cost(
                order_line.size,
                distances.between(wh, customer),
                wh.code in open_warehouse_codes,
                factors,
            )

        picked = _first_minimum(candidates, _cost)
        if picked.code in open_warehouse_codes:
            self.total_consolidations += 1
        return picked


# ─────────────────────────────────────────────────────────────────────────────
# Solver 3: CPSATPlanningSolver
# ─────────────────────────────────────────────────────────────────────────────


class CPSATPlanningSolver:
    """Whole-instance fixed-charge assignment with OR-Tools CP-SAT.

    Model
    ─────
      x[l, w] ∈ {0,1}   line l ships from warehouse w (only stocked w)
      y[w, c] ∈ {0,1}   shipment w → c is opened
      Σ_w x[l, w] ≤ 1                        each line at most once
      x[l, w] ⇒ y[w, c(l)]                   a line needs its shipment open
      Σ_l∈p qty_l · x[l, w] ≤ stock[w, p]    stock never goes negative

      min  Σ base·d·y  +  Σ size_l·size_cost·d·x  −  M · Σ x

    M exceeds any attainable shipment cost, so fulfilling more lines always
    wins; among maximal plans the cheapest is chosen.

    Speed-ups
    ─────────
      k-nearest   only the K closest stocked warehouses per line become
                  variables (the hinted warehouse is always kept)
      warm start  the MarginalCostSolver plan is passed as a hint
      1 worker    fixed seed, reproducible search

    The plan is executed by the engine in its usual order. When the plan has
    no entry for a line, or its planned warehouse cannot cover it any more,
    the line falls back to MarginalCostSolver, restricted to warehouses whose
    stock is not still reserved for planned lines when any such warehouse exists.
    If every candidate is reserved the line still ships, since a stocked line is
    never reported unfulfilled. With scarce stock an unplanned line processed
    early can therefore take a planned line's units, and that part of the run
    ends up as the greedy policy would have placed it.
    """

    name = "cpsat"

    def __init__(
        self,
        cost_factors: CostFactors | None = None,
        solver_config: SolverConfig | None = None,
    ) -> None:
        self.cost_factors = cost_factors or CostFactors()
        self.config = solver_config or SolverConfig(strategy=self.name)
        self._fallback = MarginalCostSolver(self.cost_factors, self.config)
        self.plan: PlanResult | None = None
        self._reserved: dict[tuple[str, str], int] = {}
        self.total_solves: int = 0
        self.total_fallbacks: int = 0
        self.total_deviations: int = 0
        self.total_solve_time_ms: float = 0.0

    # ── Public interface ──────────────────────────────────────────────────────

    def prepare(self, order_lines: Sequence[OrderLine], operations: Operations) -> SolverStatus:
        """Solve the plan for ``order_lines`` against the current stock."""
        warehouses = operations.input.warehouses
        open_pairs = {(s.warehouse.code, s.customer.code) for s in operations.shipments}
        hint = None
        if self.config.use_hint:
            hint = simulate_plan(
                order_lines, warehouses, operations.distances, self._fallback.choose, open_pairs
            )
            # simulate_plan drives choose(); keep the real run's counters clean
            self._fallback.total_choices = 0
            self._fallback.total_consolidations = 0

        self.plan = self.solve_plan(order_lines, warehouses, operations.distances, open_pairs, hint)
        by_code = {line.code: line for line in order_lines}
        self._reserved = {}
        for code, wh in self.plan.assignments.items():
            key = (wh.code, by_code[code].product.code)
            self._reserved[key] = self._reserved.get(key, 0) + by_code[code].quantity
        if self.plan.status == SolverStatus.FALLBACK_GREEDY:
            self.total_fallbacks += 1
        return self.plan.status

    def choose(
        self,
        order_line: OrderLine,
        candidates: Sequence[Warehouse],
        distances: DistanceMatrix,
        open_warehouse_codes: set[str],
    ) -> Warehouse:
        planned = self.plan.assignments.get(order_line.code) if self.plan else None
        product = order_line.product
        if planned is not None:
            for wh in candidates:
                if wh is planned:
                    self._reserved[(wh.code, product.code)] -= order_line.quantity
                    return wh
        if self.plan is not None and self.plan.status != SolverStatus.FALLBACK_GREEDY:
            self.total_deviations += 1

        # Stock the plan still holds for later lines is taken only as a last resort
        free = [
            wh
            for wh in candidates
            if wh.stock_of(product) - self._reserved.get((wh.code, product.code), 0)
            >= order_line.quantity
        ]
        return self._fallback.choose(
            order_line, free or candidates, distances, open_warehouse_codes
        )

    def solve_plan(
        self,
        order_lines: Sequence[OrderLine],
        warehouses: Sequence[Warehouse],
        distances: DistanceMatrix,
        open_pairs: set[tuple[str, str]] | None = None,
        hint: dict[str, Warehouse] | None = None,
    ) -> PlanResult:
        """Build and solve the CP-SAT model.

        Args:
            order_lines: Lines still to place.
            warehouses: Warehouses in enumeration order (current stock is read).
            distances: Shared distance matrix.
            open_pairs: (warehouse, customer) code pairs that already ship and
                therefore carry no base cost.
            hint: Optional warm-start plan, line code → warehouse.

        Returns:
            PlanResult; FALLBACK_GREEDY with an empty plan when CP-SAT finds
            no solution in the time limit.
        """
        t0 = time.perf_counter()
        open_pairs = open_pairs or set()
        hint = hint or {}
        factors = self.cost_factors
        stock = _stock_snapshot(warehouses)

        if not order_lines or not warehouses:
            return PlanResult({}, SolverStatus.OPTIMAL, 0.0, 0.0)

        w_index = {wh.code: i for i, wh in enumerate(warehouses)}
        d = distances.values[
            np.ix_(
                [distances.warehouse_index(wh) for wh in warehouses],
                [distances.customer_index(line.customer) for line in order_lines],
            )
        ]  # (n_warehouses, n_lines)

        # ── k-nearest pre-filter over stocked warehouses ──────────────────────
        k = self.config.k_nearest
        active: list[tuple[int, int]] = []  # (line index, warehouse index)
        for l_idx, line in enumerate(order_lines):
            stocked = [
                w_idx
                for w_idx, wh in enumerate(warehouses)
                if stock[wh.code].get(line.product, 0) >= line.quantity
            ]
            if not stocked:
                continue
            if k and len(stocked) > k:
                order = np.argsort(d[stocked, l_idx], kind="stable")[:k]
                keep = {stocked[int(i)] for i in order}
                hinted = hint.get(line.code)
                if hinted is not None and hinted.code in w_index:
                    keep.add(w_index[hinted.code])
                stocked = sorted(keep)
            active.extend((l_idx, w_idx) for w_idx in stocked)

        if not active:
            ms = (time.perf_counter() - t0) * 1e3
            self.total_solve_time_ms += ms
            return PlanResult({}, SolverStatus.OPTIMAL, ms, 0.0)

        # ── Build CP model ────────────────────────────────────────────────────
        model = cp_model.CpModel()
        x = {(l, w): model.NewBoolVar(f"x_{l}_{w}") for l, w in active}
        y: dict[tuple[int, str], cp_model.IntVar] = {}

        by_line: dict[int, list] = {}
        by_stock: dict[tuple[int, Product], list[tuple[int, cp_model.IntVar]]] = {}
        obj_terms = []
        line_worst: dict[int, int] = {}

        for (l_idx, w_idx), var in x.items():
            line = order_lines[l_idx]
            wh = warehouses[w_idx]
            dist = float(d[w_idx, l_idx])
            c_code = line.customer.code

            by_line.setdefault(l_idx, []).append(var)
            by_stock.setdefault((w_idx, line.product), []).append((line.quantity, var))

            size_c = int(round(line.size * factors.size_cost * dist * COST_SCALE))
            base_c = 0
            if (wh.code, c_code) not in open_pairs:
                base_c = int(round(factors.base_cost * dist * COST_SCALE))
                y_key = (w_idx, c_code)
                if y_key not in y:
                    y[y_key] = model.NewBoolVar(f"y_{w_idx}_{c_code}")
                    obj_terms.append(base_c * y[y_key])
                model.AddImplication(var, y[y_key])
            obj_terms.append(size_c * var)
            line_worst[l_idx] = max(line_worst.get(l_idx, 0), size_c + base_c)

        worst_case = sum(line_worst.values()) + 1

        for vs in by_line.values():
            model.AddAtMostOne(vs)

        for (w_idx, product), terms in by_stock.items():
            available = stock[warehouses[w_idx].code].get(product, 0)
            if sum(q for q, _ in terms) > available:
                model.Add(sum(q * v for q, v in terms) <= available)

        # Fulfilment first, then cost
        obj_terms.extend(-worst_case * v for v in x.values())
        model.Minimize(sum(obj_terms))

        # ── Warm-start hint ───────────────────────────────────────────────────
        if hint:
            hinted_pairs: set[tuple[int, str]] = set()
            for l_idx, line in enumerate(order_lines):
                wh = hint.get(line.code)
                if wh is None or wh.code not in w_index:
                    continue
                w_idx = w_index[wh.code]
                if (l_idx, w_idx) in x:
                    model.AddHint(x[(l_idx, w_idx)], 1)
                    hinted_pairs.add((w_idx, line.customer.code))
            for key, var in y.items():
                model.AddHint(var, 1 if key in hinted_pairs else 0)

        solver = cp_model.CpSolver()
        solver.parameters.max_time_in_seconds = self.config.time_limit_s
        solver.parameters.num_workers = 1  # deterministic
        solver.parameters.random_seed = self.config.random_seed

        status_code = solver.Solve(model)
        ms = (time.perf_counter() - t0) * 1e3
        self.total_solves += 1
        self.total_solve_time_ms += ms

        if status_code not in (cp_model.OPTIMAL, cp_model.FEASIBLE):
            return PlanResult({}, SolverStatus.FALLBACK_GREEDY, ms, None, len(x) + len(y))

        assignments = {
            order_lines[l_idx].code: warehouses[w_idx]
            for (l_idx, w_idx), var in x.items()
            if solver.Value(var) == 1
        }
        status = SolverStatus.OPTIMAL if status_code == cp_model.OPTIMAL else SolverStatus.FEASIBLE
        objective = plan_cost(order_lines, assignments, distances, factors)
        return PlanResult(assignments, status, ms, objective, len(x) + len(y))


# ─────────────────────────────────────────────────────────────────────────────
# Factory
# ─────────────────────────────────────────────────────────────────────────────


def create_solver(
    strategy: str = "nearest",
    cost_factors: CostFactors | None = None,
    solver_config: SolverConfig | None = None,
) -> NearestWarehouseSolver | MarginalCostSolver | CPSATPlanningSolver:
    """Instantiate and return the requested solver.

    strategy options
    ─────────────────
    "nearest"  → NearestWarehouseSolver   reference behaviour, default
    "marginal" → MarginalCostSolver       consolidation-aware greedy
    "cpsat"    → CPSATPlanningSolver      exact plan within the time limit
    """
    if strategy == "nearest":
        return NearestWarehouseSolver(cost_factors, solver_config)
    if strategy == "marginal":
        return MarginalCostSolver(cost_factors, solver_config)
    if strategy == "cpsat":
        return CPSATPlanningSolver(cost_factors, solver_config)
    raise ValueError(
        f"Unknown strategy {strategy!r}. Valid options: {', '.join(repr(s) for s in STRATEGIES)}."
    )
