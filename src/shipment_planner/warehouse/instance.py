"""
Instance loading and random instance generation.

YAML layout (codes are free-form strings):

    products:
      - {code: P1, size: 3}
    customers:
      - {code: C1, position: [10.0, 4.0]}
    warehouses:
      - {code: W1, position: [0.0, 0.0], stock: {P1: 5}}
    order_lines:
      - {code: L1, customer: C1, product: P1, quantity: 1}   # quantity optional

Random instances come from a numpy Generator so benchmark runs are
reproducible from a seed.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import numpy as np
import yaml

from shipment_planner.errors import InstanceError
from shipment_planner.warehouse.entities import Customer, InputData, OrderLine, Product, Warehouse
from shipment_planner.warehouse.geometry import Position


def load_instance(path: str | Path) -> InputData:
    """Load an instance from a YAML file.

    Raises:
        InstanceError: malformed content.
    """
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f)
    if not isinstance(raw, dict):
        raise InstanceError(f"{path}: expected a mapping at the top level")
    return parse_instance(raw)


def parse_instance(raw: dict[str, Any]) -> InputData:
    """Build InputData from an already parsed mapping (YAML or JSON body)."""
    try:
        products = _unique(
            [Product(code=str(p["code"]), size=float(p["size"])) for p in raw.get("products", [])],
            "product",
        )
        customers = _unique(
            [
                Customer(code=str(c["code"]), position=_position(c["position"]))
                for c in raw.get("customers", [])
            ],
            "customer",
        )
        warehouses = _unique(
            [
                Warehouse(
                    code=str(w["code"]),
                    position=_position(w["position"]),
                    initial_stock={
                        _lookup(products, str(code), "product", w["code"]): int(qty)
                        for code, qty in (w.get("stock") or {}).items()
                    },
                )
                for w in raw.get("warehouses", [])
            ],
            "warehouse",
        )
        order_lines = _unique(
            [
                OrderLine(
                    code=str(ol["code"]),
                    customer=_lookup(customers, str(ol["customer"]), "customer", ol["code"]),
                    product=_lookup(products, str(ol["product"]), "product", ol["code"]),
                    quantity=int(ol.get("quantity", 1)),
                )
                for ol in raw.get("order_lines", [])
            ],
            "order line",
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise InstanceError(f"invalid instance: {exc}") from exc

    return InputData(
        products=tuple(products.values()),
        customers=tuple(customers.values()),
        warehouses=tuple(warehouses.values()),
        order_lines=tuple(order_lines.values()),
    )


def dump_instance(input_data: InputData) -> dict[str, Any]:
    """Inverse of parse_instance, using each warehouse's initial stock."""
    return {
        "products": [{"code": p.code, "size": p.size} for p in input_data.products],
        "customers": [
            {"code": c.code, "position": list(c.position.coords)} for c in input_data.customers
        ],
        "warehouses": [
            {
                "code": w.code,
                "position": list(w.position.coords),
                "stock": {p.code: q for p, q in w.initial_stock.items()},
            }
            for w in input_data.warehouses
        ],
        "order_lines": [
            {
                "code": ol.code,
                "customer": ol.customer.code,
                "product": ol.product.code,
                "quantity": ol.quantity,
            }
            for ol in input_data.order_lines
        ],
    }


def generate_instance(
    rng: np.random.Generator,
    n_warehouses: int = 5,
    n_customers: int = 20,
    n_products: int = 10,
    n_order_lines: int = 80,
    area: float = 100.0,
    max_size: int = 10,
    stock_ratio: float = 1.5,
    stock_density: float = 0.6,
) -> InputData:
    """Generate a random instance.

    Args:
        rng: Source of randomness.
        n_warehouses, n_customers, n_products, n_order_lines: Entity counts.
        area: Side of the square that positions are drawn from.
        max_size: Product sizes are integers in [1, max_size].
        stock_ratio: Total stock per product ≈ stock_ratio × its demand.
        stock_density: Probability that a warehouse carries a given product.

    Returns:
        InputData; stock below demand is possible for some products, so
        unfulfilled lines can occur.
    """
    products = [
        Product(code=f"P{j:03d}", size=float(rng.integers(1, max_size + 1)))
        for j in range(n_products)
    ]
    customers = [
        Customer(code=f"C{i:03d}", position=Position.of(*rng.uniform(0.0, area, size=2)))
        for i in range(n_customers)
    ]

    # Skewed popularity: a few customers and products dominate
    cust_w = rng.dirichlet(np.ones(n_customers) * 0.7)
    prod_w = rng.dirichlet(np.ones(n_products) * 0.7)
    order_lines = []
    for k in range(n_order_lines):
        order_lines.append(
            OrderLine(
                code=f"L{k:04d}",
                customer=customers[int(rng.choice(n_customers, p=cust_w))],
                product=products[int(rng.choice(n_products, p=prod_w))],
            )
        )

    demand = {p: 0 for p in products}
    for ol in order_lines:
        demand[ol.product] += ol.quantity

    positions = rng.uniform(0.0, area, size=(n_warehouses, 2))
    stocks: list[dict[Product, int]] = [{} for _ in range(n_warehouses)]
    for p in products:
        carriers = [w for w in range(n_warehouses) if rng.random() < stock_density]
        if not carriers:
            continue
        total = int(round(demand[p] * stock_ratio))
        split = rng.multinomial(total, np.ones(len(carriers)) / len(carriers))
        for w, qty in zip(carriers, split):
            if qty > 0:
                stocks[w][p] = int(qty)

    warehouses = [
        Warehouse(code=f"W{w:02d}", position=Position.of(*positions[w]), initial_stock=stocks[w])
        for w in range(n_warehouses)
    ]

    return InputData(
        products=tuple(products),
        customers=tuple(customers),
        warehouses=tuple(warehouses),
        order_lines=tuple(order_lines),
    )


# ── Helpers ───────────────────────────────────────────────────────


def _position(raw: Any) -> Position:
    coords = tuple(float(v) for v in raw)
    return Position(coords)


def _unique(items: list, kind: str) -> dict:
    out: dict = {}
    for item in items:
        if item.code in out:
            raise InstanceError(f"duplicate {kind} code {item.code!r}")
        out[item.code] = item
    return out


def _lookup(index: dict, code: str, kind: str, owner: Any):
    try:
        return index[code]
    except KeyError:
        raise InstanceError(f"{owner}: unknown {kind} {code!r}") from None
