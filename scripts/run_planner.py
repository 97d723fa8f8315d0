"""
run_planner.py
──────────────────────────────────────────────────────────────────────────────
Quick-run script for the shipment planner.

Usage:
    python scripts/run_planner.py --instance config/sample_instance.yaml
    python scripts/run_planner.py --instance my.yaml --strategy marginal
    python scripts/run_planner.py --random --seed 7 --strategy cpsat
    python scripts/run_planner.py --instance my.yaml --plot shipments.png

Assignment strategy options:
    nearest   closest stocked warehouse per line (reference)   default
    marginal  cheapest cost increase, reuses open shipments
    cpsat     OR-Tools CP-SAT plan over all lines               requires ortools
"""

import argparse
from pathlib import Path

import numpy as np

from shipment_planner.config import STRATEGIES, PlannerConfig, load_config
from shipment_planner.assignment.engine import AssignmentEngine
from shipment_planner.operations import Operations
from shipment_planner.warehouse.instance import generate_instance, load_instance


def main():
    """Main"""

    parser = argparse.ArgumentParser(description="Assign order lines to warehouses")
    parser.add_argument(
        "--config",
        type=str,
        default="config/default_planner.yaml",
        help="Path to planner config YAML",
    )
    parser.add_argument("--instance", type=str, default=None, help="Path to instance YAML")
    parser.add_argument(
        "--random", action="store_true", help="Generate a random instance instead of loading one"
    )
    parser.add_argument("--seed", type=int, default=42, help="Seed for --random")
    parser.add_argument(
        "--strategy",
        type=str,
        default=None,
        choices=list(STRATEGIES),
        help="Assignment strategy (overrides config)",
    )
    parser.add_argument("--plot", type=str, default=None, help="Save a shipment map to this file")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()

    # Load config
    config_path = Path(args.config)
    if config_path.exists():
        config = load_config(config_path)
        print(f"Loaded config from {config_path}")
    else:
        print(f"Config {config_path} not found, using defaults")
        config = PlannerConfig()

    if args.strategy is not None:
        config = config.with_strategy(args.strategy)

    # Load or generate the instance
    if args.random or args.instance is None:
        input_data = generate_instance(np.random.default_rng(args.seed))
        print(f"Generated random instance (seed {args.seed})")
    else:
        input_data = load_instance(args.instance)
        print(f"Loaded instance from {args.instance}")

    # Run
    ops = Operations(input_data, config.costs)
    engine = AssignmentEngine(ops, solver_config=config.solver, verbose=args.verbose)
    result = engine.run()
    snap = result.snapshot

    print(f"\n{'=' * 60}")
    print(f"Assignment Summary ({result.strategy}, {result.solver_status.name}):")
    print(f"{'=' * 60}")
    print(f"  Order lines shipped        {len(result.shipped):>12}")
    print(f"  Order lines unfulfilled    {snap.unfinished_order_line_count:>12}")
    print(f"  Shipments                  {snap.shipment_count:>12}")
    print(f"  Shipments cost             {snap.shipments_cost:>12.2f}")
    print(f"  Unfulfilled lines cost     {snap.unfinished_order_lines_cost:>12.2f}")
    print(f"  Total cost                 {snap.total_cost:>12.2f}")
    print(f"  Solve time (ms)            {result.solve_time_ms:>12.1f}")

    # Shipment breakdown
    print(f"\n{'Warehouse':<10} {'Customer':<10} {'Lines':>6} {'Size':>8} {'Dist':>8} {'Cost':>10}")
    print(f"{'-' * 10} {'-' * 10} {'-' * 6} {'-' * 8} {'-' * 8} {'-' * 10}")
    for shipment in sorted(ops.shipments, key=lambda s: s.key):
        print(
            f"{shipment.warehouse.code:<10} {shipment.customer.code:<10} "
            f"{len(shipment.lines):>6} {shipment.accumulated_size:>8.1f} "
            f"{shipment.distance:>8.2f} {shipment.cost(ops.cost_factors):>10.2f}"
        )

    for err in result.unfulfilled:
        print(f"  unfulfilled: {err}")

    if args.plot:
        from shipment_planner.analysis.visualizations import plot_shipments  # pylint: disable=import-outside-toplevel

        fig = plot_shipments(ops, title=result.strategy)
        fig.savefig(args.plot, dpi=150, bbox_inches="tight")
        print(f"\nSaved shipment map to {args.plot}")


if __name__ == "__main__":
    main()
