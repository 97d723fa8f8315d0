"""
Planner configuration dataclasses and YAML loader.

All cost and solver parameters live here as typed, validated dataclasses.
Load from YAML with `load_config()` or construct directly for tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, get_args

import yaml

from shipment_planner.warehouse.geometry import check_metric

Strategy = Literal["nearest", "marginal", "cpsat"]
STRATEGIES: tuple[str, ...] = get_args(Strategy)


@dataclass(frozen=True)
class CostFactors:
    """Shipment pricing.

    shipment cost = (base_cost + accumulated_size * size_cost) * distance

    Unfulfilled order lines are charged a flat ``unfinished_line_cost`` each.
    """

    base_cost: float = 10.0
    size_cost: float = 1.0
    unfinished_line_cost: float = 10_000.0
    distance_metric: str = "euclidean"

    def __post_init__(self) -> None:
        if self.base_cost < 0 or self.size_cost < 0 or self.unfinished_line_cost < 0:
            raise ValueError("cost factors must be non-negative")
        check_metric(self.distance_metric)


@dataclass(frozen=True)
class SolverConfig:
    """Assignment strategy and CP-SAT tuning.

    strategy      : "nearest" (baseline), "marginal" or "cpsat"
    time_limit_s  : CP-SAT wall-clock budget before greedy fallback
    k_nearest     : CP-SAT keeps only the K closest stocked warehouses per
                    order line as decision variables (0 = keep all)
    random_seed   : CP-SAT seed, fixed for reproducible plans
    use_hint      : warm-start CP-SAT with the marginal-cost greedy plan
    """

    strategy: str = "nearest"
    time_limit_s: float = 10.0
    k_nearest: int = 8
    random_seed: int = 42
    use_hint: bool = True

    def __post_init__(self) -> None:
        if self.strategy not in STRATEGIES:
            raise ValueError(
                f"Unknown strategy {self.strategy!r}. Valid options: {', '.join(STRATEGIES)}."
            )
        if self.time_limit_s <= 0:
            raise ValueError("time_limit_s must be positive")
        if self.k_nearest < 0:
            raise ValueError("k_nearest must be >= 0")


@dataclass(frozen=True)
class PlannerConfig:
    """Top-level configuration aggregating all sub-configs."""

    costs: CostFactors = field(default_factory=CostFactors)
    solver: SolverConfig = field(default_factory=SolverConfig)

    def with_strategy(self, strategy: str) -> PlannerConfig:
        """Copy with the solver strategy replaced (CLI override)."""
        s = self.solver
        return PlannerConfig(
            costs=self.costs,
            solver=SolverConfig(
                strategy=strategy,
                time_limit_s=s.time_limit_s,
                k_nearest=s.k_nearest,
                random_seed=s.random_seed,
                use_hint=s.use_hint,
            ),
        )


def load_config(path: str | Path) -> PlannerConfig:
    """Load a PlannerConfig from a YAML file.

    Args:
        path: Path to a YAML config file.

    Returns:
        Fully constructed PlannerConfig; missing sections fall back to defaults.
    """
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    return PlannerConfig(
        costs=CostFactors(**raw.get("costs", {})),
        solver=SolverConfig(**raw.get("solver", {})),
    )
