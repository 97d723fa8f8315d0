"""FastAPI server exposing the planner over HTTP."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from shipment_planner import __version__
from shipment_planner.assignment.engine import AssignmentEngine, AssignmentResult
from shipment_planner.config import CostFactors, SolverConfig, Strategy
from shipment_planner.errors import InstanceError
from shipment_planner.operations import Operations
from shipment_planner.reporting import summarize
from shipment_planner.warehouse.instance import parse_instance

app = FastAPI(title="Shipment Planner API", version=__version__)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class PlanRequest(BaseModel):
    """Instance in the YAML loader layout, plus run options."""

    instance: dict[str, Any]
    strategy: Strategy = "nearest"
    costs: dict[str, Any] = Field(default_factory=dict)
    time_limit_s: float = 10.0


@app.get("/api/health")
async def health() -> dict:
    """Basic readiness endpoint."""

    return {"status": "ok"}


def _result_payload(result: AssignmentResult) -> dict:
    return {
        "strategy": result.strategy,
        "status": result.solver_status.name,
        "solve_time_ms": result.solve_time_ms,
        "summary": summarize(result.snapshot) if result.snapshot else {},
        "assignments": [
            {"order_line": line.code, "warehouse": wh.code} for line, wh in result.shipped
        ],
        "unfulfilled": [err.order_line.code for err in result.unfulfilled],
        "plan_deviations": result.plan_deviations,
    }


@app.post("/api/plan")
def plan(request: PlanRequest) -> dict:
    """Load the instance, run one strategy and return the assignment.

    Declared sync so FastAPI runs the solve in its worker thread pool.
    """
    try:
        input_data = parse_instance(request.instance)
        costs = CostFactors(**request.costs)
        solver_config = SolverConfig(strategy=request.strategy, time_limit_s=request.time_limit_s)
        ops = Operations(input_data, costs)
    except (InstanceError, TypeError, ValueError) as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    result = AssignmentEngine(ops, solver_config=solver_config).run()
    return _result_payload(result)
