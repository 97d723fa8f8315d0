"""
Shipment network visualization.

Renders a top-down map with:
- Warehouses as squares, labelled with their code
- Customers as dots, red when they still have unfulfilled lines
- One leg per shipment, line width scaled by accumulated size

Usage:
    from shipment_planner.analysis.visualizations import plot_shipments

    fig = plot_shipments(operations, title="marginal")
    fig.savefig("shipments.png", dpi=150, bbox_inches="tight")
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import matplotlib.lines as mlines
import matplotlib.pyplot as plt
import numpy as np

if TYPE_CHECKING:
    from matplotlib.axes import Axes
    from matplotlib.figure import Figure

    from shipment_planner.operations import Operations


# ── Styling constants ────────────────────────────────────────────

WAREHOUSE_COLOR = "#3182bd"
WAREHOUSE_SIZE = 160
CUSTOMER_COLOR = "#31a354"
CUSTOMER_OPEN_COLOR = "#e41a1c"
CUSTOMER_SIZE = 40
LEG_COLOR = "#636363"
LEG_MIN_WIDTH = 0.6
LEG_MAX_WIDTH = 4.0


def plot_shipments(
    operations: Operations,
    title: str = "Shipments",
    figsize: tuple[float, float] = (10.0, 8.0),
    show_customer_labels: bool = False,
) -> Figure:
    """Render warehouses, customers and shipment legs (first two coordinates).

    Args:
        operations: Operations whose shipment book is drawn.
        title: Plot title; the total cost is appended.
        figsize: Figure size in inches.
        show_customer_labels: Label customers with their codes.

    Returns:
        matplotlib Figure object.
    """
    data = operations.input
    snapshot = operations.info_snapshot()

    fig, ax = plt.subplots(1, 1, figsize=figsize)
    ax.set_facecolor("#fdfdfd")
    fig.patch.set_facecolor("white")

    _draw_legs(ax, operations)

    # ── Customers ────────────────────────────────────────────────
    open_customers = {line.customer.code for line in operations.unfinished_order_lines()}
    if data.customers:
        cx = [c.position.x for c in data.customers]
        cy = [c.position.y for c in data.customers]
        colors = [
            CUSTOMER_OPEN_COLOR if c.code in open_customers else CUSTOMER_COLOR
            for c in data.customers
        ]
        ax.scatter(cx, cy, c=colors, s=CUSTOMER_SIZE, marker="o", zorder=3, edgecolors="white")
        if show_customer_labels:
            for c in data.customers:
                ax.annotate(
                    c.code,
                    (c.position.x, c.position.y),
                    textcoords="offset points",
                    xytext=(3, 3),
                    fontsize=6,
                    alpha=0.6,
                )

    # ── Warehouses ───────────────────────────────────────────────
    if data.warehouses:
        wx = [w.position.x for w in data.warehouses]
        wy = [w.position.y for w in data.warehouses]
        ax.scatter(
            wx, wy, c=WAREHOUSE_COLOR, s=WAREHOUSE_SIZE, marker="s", zorder=4, edgecolors="white"
        )
        for w in data.warehouses:
            ax.annotate(
                w.code,
                (w.position.x, w.position.y),
                textcoords="offset points",
                xytext=(0, 9),
                ha="center",
                fontsize=8,
                fontweight="bold",
            )

    _add_legend(ax)

    ax.set_title(f"{title} | total cost {snapshot.total_cost:,.1f}", fontsize=13, pad=10)
    ax.set_xlabel("x")
    ax.set_ylabel("y")
    ax.set_aspect("equal")
    ax.grid(True, alpha=0.1, linestyle="--")
    fig.tight_layout()
    return fig


def _draw_legs(ax: Axes, operations: Operations) -> None:
    """One straight leg per shipment, width ∝ accumulated size."""
    shipments = list(operations.shipments)
    if not shipments:
        return
    sizes = np.array([s.accumulated_size for s in shipments], dtype=np.float64)
    span = max(float(sizes.max() - sizes.min()), 1e-9)
    widths = LEG_MIN_WIDTH + (sizes - sizes.min()) / span * (LEG_MAX_WIDTH - LEG_MIN_WIDTH)
    for shipment, width in zip(shipments, widths):
        w, c = shipment.warehouse.position, shipment.customer.position
        ax.plot(
            [w.x, c.x],
            [w.y, c.y],
            color=LEG_COLOR,
            linewidth=float(width),
            alpha=0.55,
            zorder=1,
            solid_capstyle="round",
        )


def _add_legend(ax: Axes) -> None:
    handles = [
        mlines.Line2D(
            [], [], color=WAREHOUSE_COLOR, marker="s", linestyle="None", label="Warehouse"
        ),
        mlines.Line2D([], [], color=CUSTOMER_COLOR, marker="o", linestyle="None", label="Customer"),
        mlines.Line2D(
            [],
            [],
            color=CUSTOMER_OPEN_COLOR,
            marker="o",
            linestyle="None",
            label="Unfulfilled lines",
        ),
        mlines.Line2D([], [], color=LEG_COLOR, linewidth=2, label="Shipment"),
    ]
    ax.legend(handles=handles, loc="upper right", fontsize=8, framealpha=0.85)
