"""Tests for positions, entities and the inventory ledger.

Run with: pytest tests/test_inventory.py -v
"""

import pytest

from shipment_planner.errors import AlreadyShippedError, InsufficientStockError
from shipment_planner.warehouse.entities import Customer, OrderLine, Product, Warehouse
from shipment_planner.warehouse.geometry import Position
from shipment_planner.warehouse.inventory import InventoryLedger


# ── Fixtures ──────────────────────────────────────────────────────


@pytest.fixture
def products() -> dict[str, Product]:
    return {"P1": Product("P1", 5), "P2": Product("P2", 3)}


@pytest.fixture
def customer() -> Customer:
    return Customer("C1", Position.of(4.0, 0.0))


@pytest.fixture
def warehouses(products) -> list[Warehouse]:
    return [
        Warehouse("W1", Position.of(0.0, 0.0), {products["P1"]: 2, products["P2"]: 0}),
        Warehouse("W2", Position.of(10.0, 0.0), {products["P2"]: 5}),
    ]


# ── Test: Geometry ────────────────────────────────────────────────


class TestPosition:
    """Distance metrics and validation."""

    def test_euclidean_distance(self):
        assert Position.of(0, 0).distance_to(Position.of(3, 4)) == pytest.approx(5.0)

    def test_distance_is_symmetric(self):
        a, b = Position.of(1.5, -2.0), Position.of(-7.0, 3.25)
        assert a.distance_to(b) == pytest.approx(b.distance_to(a))

    def test_other_metrics(self):
        a, b = Position.of(0, 0), Position.of(3, 4)
        assert a.distance_to(b, "cityblock") == pytest.approx(7.0)
        assert a.distance_to(b, "chebyshev") == pytest.approx(4.0)

    def test_three_dimensional(self):
        assert Position.of(0, 0, 0).distance_to(Position.of(1, 2, 2)) == pytest.approx(3.0)

    def test_dimension_mismatch_rejected(self):
        with pytest.raises(ValueError):
            Position.of(0, 0).distance_to(Position.of(0, 0, 0))

    def test_unknown_metric_rejected(self):
        with pytest.raises(ValueError, match="Unknown distance metric"):
            Position.of(0, 0).distance_to(Position.of(1, 1), "manhattan")

    def test_single_coordinate_rejected(self):
        with pytest.raises(ValueError):
            Position((1.0,))

    def test_positions_are_immutable(self):
        p = Position.of(1, 2)
        with pytest.raises(AttributeError):
            p.coords = (3.0, 4.0)


# ── Test: Entities ────────────────────────────────────────────────


class TestEntities:
    """Stock queries and order line properties."""

    def test_has_stock(self, warehouses, products):
        w1 = warehouses[0]
        assert w1.has_stock(products["P1"])
        assert w1.has_stock(products["P1"], 2)
        assert not w1.has_stock(products["P1"], 3)
        assert not w1.has_stock(products["P2"])  # listed with zero units

    def test_current_stocks_is_a_copy(self, warehouses, products):
        snapshot = warehouses[0].current_stocks()
        snapshot[products["P1"]] = 99
        assert warehouses[0].stock_of(products["P1"]) == 2

    def test_negative_initial_stock_rejected(self, products):
        with pytest.raises(ValueError):
            Warehouse("W", Position.of(0, 0), {products["P1"]: -1})

    def test_non_positive_product_size_rejected(self):
        with pytest.raises(ValueError):
            Product("P", 0)

    def test_order_line_size_uses_quantity(self, customer, products):
        line = OrderLine("L1", customer, products["P2"], quantity=4)
        assert line.size == pytest.approx(12.0)
        assert not line.fulfilled

    def test_zero_quantity_rejected(self, customer, products):
        with pytest.raises(ValueError):
            OrderLine("L1", customer, products["P1"], quantity=0)


# ── Test: Ledger ──────────────────────────────────────────────────


class TestInventoryLedger:
    """ship() is the only mutation path and must be all-or-nothing."""

    def test_ship_decrements_and_marks_fulfilled(self, warehouses, customer, products):
        ledger = InventoryLedger(warehouses)
        line = OrderLine("L1", customer, products["P1"])

        ledger.ship(line, warehouses[0])

        assert warehouses[0].stock_of(products["P1"]) == 1
        assert line.fulfilled
        assert line.warehouse is warehouses[0]
        assert ledger.total_shipped_lines == 1

    def test_ship_with_quantity(self, warehouses, customer, products):
        ledger = InventoryLedger(warehouses)
        line = OrderLine("L1", customer, products["P2"], quantity=5)

        ledger.ship(line, warehouses[1])

        assert warehouses[1].stock_of(products["P2"]) == 0
        assert not warehouses[1].has_stock(products["P2"])

    def test_second_ship_raises_already_shipped(self, warehouses, customer, products):
        ledger = InventoryLedger(warehouses)
        line = OrderLine("L1", customer, products["P1"])
        ledger.ship(line, warehouses[0])

        with pytest.raises(AlreadyShippedError):
            ledger.ship(line, warehouses[0])
        # Stock untouched by the failed call
        assert warehouses[0].stock_of(products["P1"]) == 1

    def test_insufficient_stock_leaves_state_unchanged(self, warehouses, customer, products):
        ledger = InventoryLedger(warehouses)
        line = OrderLine("L1", customer, products["P1"], quantity=3)

        with pytest.raises(InsufficientStockError) as excinfo:
            ledger.ship(line, warehouses[0])

        assert excinfo.value.available == 2
        assert warehouses[0].stock_of(products["P1"]) == 2
        assert not line.fulfilled

    def test_ship_from_warehouse_without_product(self, warehouses, customer, products):
        ledger = InventoryLedger(warehouses)
        line = OrderLine("L1", customer, products["P1"])

        with pytest.raises(InsufficientStockError):
            ledger.ship(line, warehouses[1])
        assert warehouses[1].stock_of(products["P1"]) == 0

    def test_on_shipped_callback_runs_once(self, warehouses, customer, products):
        ledger = InventoryLedger(warehouses)
        calls = []
        line = OrderLine("L1", customer, products["P1"])

        ledger.ship(line, warehouses[0], on_shipped=lambda ln, wh: calls.append((ln, wh)))

        assert calls == [(line, warehouses[0])]

    def test_on_shipped_not_called_on_failure(self, warehouses, customer, products):
        ledger = InventoryLedger(warehouses)
        calls = []
        line = OrderLine("L1", customer, products["P1"], quantity=10)

        with pytest.raises(InsufficientStockError):
            ledger.ship(line, warehouses[0], on_shipped=lambda ln, wh: calls.append(ln))
        assert calls == []

    def test_warehouses_with_stock_in_enumeration_order(self, products):
        whs = [
            Warehouse("WA", Position.of(5, 5), {products["P2"]: 1}),
            Warehouse("WB", Position.of(0, 0)),
            Warehouse("WC", Position.of(1, 1), {products["P2"]: 3}),
        ]
        ledger = InventoryLedger(whs)
        assert [w.code for w in ledger.warehouses_with_stock(products["P2"])] == ["WA", "WC"]
        assert [w.code for w in ledger.warehouses_with_stock(products["P2"], 2)] == ["WC"]
        assert ledger.total_stock(products["P2"]) == 4

    def test_stock_never_negative_when_draining(self, warehouses, customer, products):
        ledger = InventoryLedger(warehouses)
        lines = [OrderLine(f"L{i}", customer, products["P1"]) for i in range(4)]

        shipped = 0
        for line in lines:
            if ledger.has_stock(warehouses[0], line.product, line.quantity):
                ledger.ship(line, warehouses[0])
                shipped += 1

        assert shipped == 2
        assert warehouses[0].stock_of(products["P1"]) == 0
        assert sum(line.fulfilled for line in lines) == 2
