"""Tests for the YAML config loader and instance loading/generation.

Run with: pytest tests/test_config_instance.py -v
"""

from pathlib import Path

import numpy as np
import pytest
import yaml

from shipment_planner.config import CostFactors, PlannerConfig, SolverConfig, load_config
from shipment_planner.errors import InstanceError
from shipment_planner.warehouse.instance import (
    dump_instance,
    generate_instance,
    load_instance,
    parse_instance,
)

REPO_ROOT = Path(__file__).resolve().parents[1]
SAMPLE_INSTANCE = REPO_ROOT / "config" / "sample_instance.yaml"
DEFAULT_CONFIG = REPO_ROOT / "config" / "default_planner.yaml"


@pytest.fixture
def raw_instance() -> dict:
    return {
        "products": [{"code": "P1", "size": 2}, {"code": "P2", "size": 1.5}],
        "customers": [{"code": "C1", "position": [1, 2]}],
        "warehouses": [{"code": "W1", "position": [0, 0], "stock": {"P1": 3}}],
        "order_lines": [
            {"code": "L1", "customer": "C1", "product": "P1"},
            {"code": "L2", "customer": "C1", "product": "P2", "quantity": 2},
        ],
    }


# ── Test: Config ──────────────────────────────────────────────────


class TestConfig:
    def test_default_file_loads(self):
        cfg = load_config(DEFAULT_CONFIG)
        assert isinstance(cfg, PlannerConfig)
        assert cfg.solver.strategy in ("nearest", "marginal", "cpsat")
        assert cfg.costs.base_cost >= 0

    def test_partial_file_uses_defaults(self, tmp_path):
        path = tmp_path / "planner.yaml"
        path.write_text(yaml.safe_dump({"costs": {"base_cost": 3.5}}), encoding="utf-8")

        cfg = load_config(path)
        assert cfg.costs.base_cost == 3.5
        assert cfg.costs.size_cost == CostFactors().size_cost
        assert cfg.solver == SolverConfig()

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(path) == PlannerConfig()

    def test_unknown_strategy_rejected(self):
        with pytest.raises(ValueError, match="Unknown strategy"):
            SolverConfig(strategy="fastest")

    def test_unknown_metric_rejected(self):
        with pytest.raises(ValueError, match="Unknown distance metric"):
            CostFactors(distance_metric="haversine")

    def test_bad_time_limit_rejected(self):
        with pytest.raises(ValueError):
            SolverConfig(time_limit_s=0)

    def test_with_strategy_keeps_other_fields(self):
        cfg = PlannerConfig(solver=SolverConfig(time_limit_s=2.0, k_nearest=3))
        swapped = cfg.with_strategy("cpsat")
        assert swapped.solver.strategy == "cpsat"
        assert swapped.solver.time_limit_s == 2.0
        assert swapped.solver.k_nearest == 3
        assert swapped.costs is cfg.costs


# ── Test: Instance loading ────────────────────────────────────────


class TestInstanceLoading:
    def test_sample_instance(self):
        data = load_instance(SAMPLE_INSTANCE)
        assert [w.code for w in data.warehouses] == ["W1", "W2", "W3"]
        assert len(data.customers) == 4
        assert len(data.products) == 5
        assert len(data.order_lines) == 11
        assert data.order_line("L06").quantity == 2
        assert data.order_line("L01").quantity == 1
        assert data.warehouse("W2").stock_of(data.product("P3")) == 4

    def test_parse_resolves_references(self, raw_instance):
        data = parse_instance(raw_instance)
        line = data.order_line("L2")
        assert line.customer is data.customer("C1")
        assert line.product is data.product("P2")
        assert line.size == pytest.approx(3.0)
        assert data.customer("C1").position.coords == (1.0, 2.0)

    def test_duplicate_code_rejected(self, raw_instance):
        raw_instance["products"].append({"code": "P1", "size": 4})
        with pytest.raises(InstanceError, match="duplicate product"):
            parse_instance(raw_instance)

    def test_unknown_product_rejected(self, raw_instance):
        raw_instance["order_lines"][0]["product"] = "P9"
        with pytest.raises(InstanceError, match="unknown product"):
            parse_instance(raw_instance)

    def test_unknown_stock_product_rejected(self, raw_instance):
        raw_instance["warehouses"][0]["stock"] = {"PX": 1}
        with pytest.raises(InstanceError):
            parse_instance(raw_instance)

    def test_missing_field_rejected(self, raw_instance):
        del raw_instance["customers"][0]["position"]
        with pytest.raises(InstanceError):
            parse_instance(raw_instance)

    def test_bad_values_rejected(self, raw_instance):
        raw_instance["products"][0]["size"] = 0
        with pytest.raises(InstanceError):
            parse_instance(raw_instance)

    def test_non_mapping_file_rejected(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n", encoding="utf-8")
        with pytest.raises(InstanceError):
            load_instance(path)

    def test_dump_reloads_to_same_instance(self, raw_instance):
        data = parse_instance(raw_instance)
        again = parse_instance(dump_instance(data))
        assert [ol.code for ol in again.order_lines] == ["L1", "L2"]
        assert again.warehouse("W1").stock_of(again.product("P1")) == 3


# ── Test: Random instances ────────────────────────────────────────


class TestGenerateInstance:
    def test_counts(self):
        data = generate_instance(
            np.random.default_rng(0), n_warehouses=3, n_customers=6, n_products=4, n_order_lines=25
        )
        assert len(data.warehouses) == 3
        assert len(data.customers) == 6
        assert len(data.products) == 4
        assert len(data.order_lines) == 25

    def test_seed_reproducible(self):
        a = dump_instance(generate_instance(np.random.default_rng(42)))
        b = dump_instance(generate_instance(np.random.default_rng(42)))
        assert a == b

    def test_stock_is_non_negative(self):
        data = generate_instance(np.random.default_rng(9))
        for wh in data.warehouses:
            assert all(qty >= 0 for qty in wh.current_stocks().values())
