"""
src/shipment_planner/assignment/benchmark.py
──────────────────────────────────────────────────────────────────────────────
Benchmark: assignment strategies head-to-head.

Runs every strategy on the same random instances (a fresh copy per
strategy, since shipping mutates stock) and compares:
  • Total cost            (shipments + unfulfilled penalty)
  • Shipments cost
  • Shipment count        (fewer = more base cost saved)
  • Unfulfilled lines
  • Solve time            (wall-clock, ms)

Usage:
    python -m shipment_planner.assignment.benchmark                 # 20 scenarios
    python -m shipment_planner.assignment.benchmark --scenarios 100
    python -m shipment_planner.assignment.benchmark --warehouses 8 --lines 200
    python -m shipment_planner.assignment.benchmark --solvers nearest marginal
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass

import numpy as np

from shipment_planner.assignment.engine import AssignmentEngine, AssignmentResult
from shipment_planner.config import STRATEGIES, CostFactors, SolverConfig
from shipment_planner.operations import Operations
from shipment_planner.warehouse.instance import generate_instance


@dataclass(frozen=True)
class BenchmarkScenario:
    """Parameters for one random instance; rebuilt per strategy from the seed."""

    seed: int
    n_warehouses: int
    n_customers: int
    n_products: int
    n_order_lines: int

    def build(self):
        return generate_instance(
            np.random.default_rng(self.seed),
            n_warehouses=self.n_warehouses,
            n_customers=self.n_customers,
            n_products=self.n_products,
            n_order_lines=self.n_order_lines,
        )


def run_scenario(
    scenario: BenchmarkScenario,
    strategy: str,
    cost_factors: CostFactors,
    solver_config: SolverConfig,
) -> AssignmentResult:
    """Build a fresh instance and run one strategy on it."""
    ops = Operations(scenario.build(), cost_factors)
    engine = AssignmentEngine(ops, strategy=strategy, solver_config=solver_config)
    return engine.run()


def run_benchmark(
    n_scenarios: int = 20,
    n_warehouses: int = 5,
    n_customers: int = 20,
    n_products: int = 10,
    n_lines: int = 80,
    seed: int = 42,
    solver_names: list[str] | None = None,
    cost_factors: CostFactors | None = None,
    time_limit_s: float = 5.0,
) -> dict[str, dict[str, list]]:
    """Run scenarios, print a comparison table and return the raw results."""

    active = solver_names or list(STRATEGIES)
    cost_factors = cost_factors or CostFactors()
    solver_config = SolverConfig(time_limit_s=time_limit_s, random_seed=seed)

    print("=" * 80)
    print("  Order-Line Assignment Benchmark")
    print("=" * 80)
    print(
        f"  Scenarios: {n_scenarios}  |  Warehouses: {n_warehouses}  |  Customers: {n_customers}"
        f"  |  Lines: {n_lines}  |  Seed: {seed}"
    )
    print(
        f"  Costs:     base={cost_factors.base_cost}  size={cost_factors.size_cost}"
        f"  unfinished={cost_factors.unfinished_line_cost}"
    )
    print(f"  Solvers:   {', '.join(active)}")
    print()

    rng = np.random.default_rng(seed)
    scenarios = [
        BenchmarkScenario(
            seed=int(rng.integers(0, 2**31 - 1)),
            n_warehouses=n_warehouses,
            n_customers=n_customers,
            n_products=n_products,
            n_order_lines=n_lines,
        )
        for _ in range(n_scenarios)
    ]

    results: dict[str, dict[str, list]] = {
        name: {"total": [], "ship": [], "n_ship": [], "open": [], "time_ms": [], "status": []}
        for name in active
    }

    for scenario in scenarios:
        for name in active:
            r = run_scenario(scenario, name, cost_factors, solver_config)
            snap = r.snapshot
            results[name]["total"].append(snap.total_cost)
            results[name]["ship"].append(snap.shipments_cost)
            results[name]["n_ship"].append(snap.shipment_count)
            results[name]["open"].append(snap.unfinished_order_line_count)
            results[name]["time_ms"].append(r.solve_time_ms)
            results[name]["status"].append(r.solver_status.name)

    # ── Print results ─────────────────────────────────────────────────────────
    col_w = 14

    def hdr(label: str) -> str:
        return f"{label:>{col_w}}"

    def val(v: float, fmt: str = ".1f") -> str:
        return f"{v:{col_w}{fmt}}"

    print(f"  {'Metric':<30}" + "".join(hdr(n) for n in active))
    print("  " + "─" * (30 + col_w * len(active)))

    fn_map = {
        "Avg total cost": (lambda d: np.mean(d["total"]), ".1f"),
        "Avg shipments cost": (lambda d: np.mean(d["ship"]), ".1f"),
        "Avg shipment count": (lambda d: np.mean(d["n_ship"]), ".1f"),
        "Avg unfulfilled lines": (lambda d: np.mean(d["open"]), ".2f"),
        "Avg solve time (ms)": (lambda d: np.mean(d["time_ms"]), ".2f"),
        "Max solve time (ms)": (lambda d: np.max(d["time_ms"]), ".2f"),
    }

    for label, (fn, fmt) in fn_map.items():
        row = f"  {label:<30}"
        for name in active:
            row += val(fn(results[name]), fmt)
        print(row)

    # Cost improvement vs the reference policy
    if "nearest" in active and n_scenarios > 0:
        print()
        print(f"  {'Total cost saving vs nearest':<30}", end="")
        base = results["nearest"]["total"]
        for name in active:
            if name == "nearest":
                print(f"{'baseline':>{col_w}}", end="")
            else:
                savings = [
                    (b - c) / b * 100 if b > 0 else 0.0
                    for b, c in zip(base, results[name]["total"])
                ]
                print(val(np.mean(savings), ".1f") + "%", end="")
        print()

    print()
    print("  Solver status distribution:")
    for name in active:
        counts: dict[str, int] = {}
        for s in results[name]["status"]:
            counts[s] = counts.get(s, 0) + 1
        dist_str = "  ".join(f"{s}={c}" for s, c in sorted(counts.items()))
        print(f"    {name:<10}: {dist_str}")

    print("\n" + "=" * 80)
    return results


# ── CLI entry point ───────────────────────────────────────────────────────────

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Benchmark order-line assignment strategies")
    parser.add_argument("--scenarios", type=int, default=20)
    parser.add_argument("--warehouses", type=int, default=5)
    parser.add_argument("--customers", type=int, default=20)
    parser.add_argument("--products", type=int, default=10)
    parser.add_argument("--lines", type=int, default=80)
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--base-cost", type=float, default=CostFactors.base_cost)
    parser.add_argument("--size-cost", type=float, default=CostFactors.size_cost)
    parser.add_argument("--time-limit", type=float, default=5.0, help="CP-SAT seconds per run")
    parser.add_argument(
        "--solvers",
        nargs="+",
        choices=list(STRATEGIES),
        default=None,
        help="Subset of solvers to benchmark (default: all)",
    )
    args = parser.parse_args()
    run_benchmark(
        n_scenarios=args.scenarios,
        n_warehouses=args.warehouses,
        n_customers=args.customers,
        n_products=args.products,
        n_lines=args.lines,
        seed=args.seed,
        solver_names=args.solvers,
        cost_factors=CostFactors(base_cost=args.base_cost, size_cost=args.size_cost),
        time_limit_s=args.time_limit,
    )
