"""
Domain entities: products, customers, warehouses and order lines.

Products and customers are immutable. A warehouse's stock and an order
line's fulfilment state are the only mutable fields, and both change only
through InventoryLedger.ship().
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from shipment_planner.warehouse.geometry import Position


@dataclass(frozen=True)
class Product:
    """A stock-keeping unit.

    Attributes:
        code: Unique product identifier.
        size: Positive size of one unit; drives the size part of shipment cost.
    """

    code: str
    size: float

    def __post_init__(self) -> None:
        if self.size <= 0:
            raise ValueError(f"Product {self.code} must have a positive size, got {self.size}")


@dataclass(frozen=True)
class Customer:
    """A delivery destination."""

    code: str
    position: Position


@dataclass(eq=False)
class Warehouse:
    """A stock-holding location.

    Identity-hashed: two warehouses with equal codes are still distinct
    objects, so callers key maps by ``code`` when they need value semantics.

    Attributes:
        code: Unique warehouse identifier.
        position: Where the warehouse sits.
        initial_stock: Product → units available when the instance was loaded.
    """

    code: str
    position: Position
    initial_stock: Mapping[Product, int] = field(default_factory=dict)
    _stock: dict[Product, int] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        for product, qty in self.initial_stock.items():
            if qty < 0:
                raise ValueError(
                    f"Warehouse {self.code}: negative stock {qty} for product {product.code}"
                )
        self.initial_stock = dict(self.initial_stock)
        self._stock = dict(self.initial_stock)

    def stock_of(self, product: Product) -> int:
        return self._stock.get(product, 0)

    def has_stock(self, product: Product, quantity: int = 1) -> bool:
        """True iff the warehouse can cover ``quantity`` units of ``product``."""
        return self._stock.get(product, 0) >= max(quantity, 1)

    def current_stocks(self) -> dict[Product, int]:
        """Copy of the live stock map."""
        return dict(self._stock)

    def _remove_stock(self, product: Product, quantity: int) -> None:
        # Caller (the ledger) has already verified availability.
        self._stock[product] = self._stock.get(product, 0) - quantity


@dataclass(eq=False)
class OrderLine:
    """One product quantity requested by one customer.

    Attributes:
        code: Unique order line identifier.
        customer: Who ordered.
        product: What was ordered.
        quantity: Units requested (defaults to one unit per line).
        warehouse: Fulfilling warehouse once shipped, None while unfulfilled.
    """

    code: str
    customer: Customer
    product: Product
    quantity: int = 1
    warehouse: Warehouse | None = field(default=None, init=False)

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError(f"Order line {self.code} must request at least 1 unit")

    @property
    def fulfilled(self) -> bool:
        return self.warehouse is not None

    @property
    def size(self) -> float:
        """Size contribution to a shipment: quantity × product size."""
        return self.quantity * self.product.size


@dataclass(frozen=True)
class InputData:
    """Fully materialised input handed to the engine by a loader."""

    products: tuple[Product, ...]
    customers: tuple[Customer, ...]
    warehouses: tuple[Warehouse, ...]
    order_lines: tuple[OrderLine, ...]

    def product(self, code: str) -> Product:
        return _find(self.products, code, "product")

    def customer(self, code: str) -> Customer:
        return _find(self.customers, code, "customer")

    def warehouse(self, code: str) -> Warehouse:
        return _find(self.warehouses, code, "warehouse")

    def order_line(self, code: str) -> OrderLine:
        return _find(self.order_lines, code, "order line")


def _find(items, code: str, kind: str):
    for item in items:
        if item.code == code:
            return item
    raise KeyError(f"Unknown {kind} {code!r}")
