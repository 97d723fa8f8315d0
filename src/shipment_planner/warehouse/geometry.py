"""Positions and distance metrics.

Distances are computed with scipy.spatial.distance so that single-pair
lookups and the vectorised matrix in assignment.distance_matrix agree on
the metric names.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np
from scipy.spatial import distance as _sp_distance

SUPPORTED_METRICS: tuple[str, ...] = ("euclidean", "cityblock", "chebyshev")


def check_metric(metric: str) -> str:
    """Return metric unchanged or raise ValueError for an unsupported name."""
    if metric not in SUPPORTED_METRICS:
        raise ValueError(
            f"Unknown distance metric {metric!r}. Valid options: {', '.join(SUPPORTED_METRICS)}."
        )
    return metric


@dataclass(frozen=True)
class Position:
    """Immutable point with two or more coordinates."""

    coords: tuple[float, ...]

    def __post_init__(self) -> None:
        if len(self.coords) < 2:
            raise ValueError(f"Position needs at least 2 coordinates, got {len(self.coords)}")
        object.__setattr__(self, "coords", tuple(float(c) for c in self.coords))

    @classmethod
    def of(cls, *coords: float) -> Position:
        """Position.of(x, y) shorthand."""
        return cls(tuple(coords))

    @property
    def x(self) -> float:
        return self.coords[0]

    @property
    def y(self) -> float:
        return self.coords[1]

    def as_array(self) -> np.ndarray:
        return np.asarray(self.coords, dtype=np.float64)

    def distance_to(self, other: Position, metric: str = "euclidean") -> float:
        """Symmetric distance to another position of the same dimension."""
        if len(self.coords) != len(other.coords):
            raise ValueError(
                f"Cannot measure between {len(self.coords)}-D and {len(other.coords)}-D positions"
            )
        check_metric(metric)
        fn = getattr(_sp_distance, metric)
        return float(fn(self.as_array(), other.as_array()))


def stack_positions(positions: Sequence[Position]) -> np.ndarray:
    """Stack positions into an (n, dim) float64 array."""
    if not positions:
        return np.empty((0, 2), dtype=np.float64)
    return np.vstack([p.as_array() for p in positions])
