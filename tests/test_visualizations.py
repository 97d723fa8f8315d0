"""Smoke tests for the shipment map.

Run with: pytest tests/test_visualizations.py -v
"""

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import pytest  # noqa: E402
from matplotlib.figure import Figure  # noqa: E402

from shipment_planner.analysis.visualizations import plot_shipments  # noqa: E402
from shipment_planner.assignment.engine import AssignmentEngine  # noqa: E402
from shipment_planner.operations import Operations  # noqa: E402
from shipment_planner.warehouse.entities import (  # noqa: E402
    Customer,
    InputData,
    OrderLine,
    Product,
    Warehouse,
)
from shipment_planner.warehouse.geometry import Position  # noqa: E402


@pytest.fixture
def operations() -> Operations:
    p, q = Product("P", 1), Product("Q", 4)
    c1 = Customer("C1", Position.of(1.0, 1.0))
    c2 = Customer("C2", Position.of(8.0, 2.0))
    w = Warehouse("W1", Position.of(0.0, 0.0), {p: 2})
    data = InputData(
        products=(p, q),
        customers=(c1, c2),
        warehouses=(w,),
        order_lines=(OrderLine("L1", c1, p), OrderLine("L2", c2, p), OrderLine("L3", c2, q)),
    )
    return Operations(data)


class TestPlotShipments:
    def test_returns_figure_before_run(self, operations):
        fig = plot_shipments(operations)
        assert isinstance(fig, Figure)
        plt.close(fig)

    def test_draws_one_leg_per_shipment(self, operations):
        AssignmentEngine(operations).run()
        fig = plot_shipments(operations, title="nearest", show_customer_labels=True)
        ax = fig.axes[0]
        # Legend handles are not attached to the axes, so lines are the legs
        assert len(ax.get_lines()) == len(operations.shipments) == 2
        assert "total cost" in ax.get_title()
        plt.close(fig)
