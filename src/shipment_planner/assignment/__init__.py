"""
Order-line assignment: cost model, distance matrix, selection policies and
the engine that drives them.

Quick start:
    from shipment_planner.assignment import AssignmentEngine
    engine = AssignmentEngine(operations, strategy="marginal")
    result = engine.run()
"""

from shipment_planner.assignment.cost_model import (
    Shipment,
    ShipmentBook,
    marginal_cost,
    shipment_cost,
)
from shipment_planner.assignment.distance_matrix import DistanceMatrix, compute_distance_matrix
from shipment_planner.assignment.engine import (
    AssignmentEngine,
    AssignmentResult,
    group_by_customer,
    processing_order,
)
from shipment_planner.assignment.solver import (
    CPSATPlanningSolver,
    MarginalCostSolver,
    NearestWarehouseSolver,
    SolverStatus,
    create_solver,
)

__all__ = [
    "Shipment",
    "ShipmentBook",
    "marginal_cost",
    "shipment_cost",
    "DistanceMatrix",
    "compute_distance_matrix",
    "AssignmentEngine",
    "AssignmentResult",
    "group_by_customer",
    "processing_order",
    "CPSATPlanningSolver",
    "MarginalCostSolver",
    "NearestWarehouseSolver",
    "SolverStatus",
    "create_solver",
]
