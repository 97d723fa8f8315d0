"""Warehouse order-line assignment and shipment costing."""

from shipment_planner.config import CostFactors, PlannerConfig, SolverConfig, load_config
from shipment_planner.errors import (
    AlreadyShippedError,
    InstanceError,
    InsufficientStockError,
    ShipmentPlannerError,
    UnfulfillableOrderLineError,
)
from shipment_planner.operations import Operations
from shipment_planner.reporting import InfoSnapshot

__version__ = "0.1.0"

__all__ = [
    "CostFactors",
    "PlannerConfig",
    "SolverConfig",
    "load_config",
    "AlreadyShippedError",
    "InstanceError",
    "InsufficientStockError",
    "ShipmentPlannerError",
    "UnfulfillableOrderLineError",
    "Operations",
    "InfoSnapshot",
]
