"""
Shared test fixtures: reference snapshots, request builder, HTTP test client.

Two snapshots:
- scenario_snapshot: one product / one loose 25 kg bag / one factory, a 17.5 t
  20GP load rule and nothing else (no port, inland freight or override rules)
- full_snapshot: complete reference data with exact and wildcard rules
"""

import pytest
from fastapi.testclient import TestClient

from exportquote.main import app
from exportquote.schemas import QuoteRequest, ReferenceSnapshot


def _scenario_tables():
    """Tables for the minimal scenario snapshot."""
    return {
        "products": [
            {"id": "prod_1", "name": "Calcium chloride flakes", "refund_rate": 0.09,
             "purchase_vat_rate": 0.13, "invoice_tax_point": 0.03, "pol_port_id": "port_1"},
        ],
        "packaging_options": [
            {"id": "pack_1", "product_id": "prod_1", "name": "25kg woven bag",
             "unit_weight_kg": 25, "units_per_carton": None, "carton_price_rmb": 2.0,
             "bag_price_rmb": 0.80, "inner_pack_type": "woven_bag"},
        ],
        "factories": [
            {"id": "fac_1", "name": "Weifang Plant", "default_port_id": "port_1"},
        ],
        "factory_product_costs": [
            {"id": "cost_1", "factory_id": "fac_1", "product_id": "prod_1", "cost_rmb_per_ton": 3000},
        ],
        "ports": [
            {"id": "port_1", "name": "Qingdao", "code": "CNTAO", "country": "CN"},
        ],
        "container_load_rules": [
            {"id": "load_1", "product_id": "prod_1", "container_type": "20GP", "max_tons": 17.5},
        ],
    }


def _full_tables():
    """Complete reference data: exact and wildcard rules for every rule type."""
    tables = _scenario_tables()
    tables["products"].append(
        {"id": "prod_2", "name": "Magnesium chloride", "refund_rate": 0.13,
         "purchase_vat_rate": 0.13, "invoice_tax_point": 0.05, "pol_port_id": "port_2"},
    )
    tables["packaging_options"] += [
        {"id": "pack_2", "product_id": "prod_1", "name": "1kg bag, 20 per carton",
         "unit_weight_kg": 1, "units_per_carton": 20, "carton_price_rmb": 3.0,
         "bag_price_rmb": 0.15, "inner_pack_type": "carton"},
        {"id": "pack_3", "product_id": "prod_2", "name": "50kg bag",
         "unit_weight_kg": 50, "units_per_carton": None, "carton_price_rmb": 0,
         "bag_price_rmb": 1.2, "inner_pack_type": "none"},
    ]
    tables["factories"] += [
        {"id": "fac_2", "name": "Shouguang Plant", "default_port_id": "port_1"},
        {"id": "fac_3", "name": "New Plant (no costs yet)", "default_port_id": None},
    ]
    tables["factory_product_costs"] += [
        {"id": "cost_2", "factory_id": "fac_2", "product_id": "prod_1", "cost_rmb_per_ton": 3200},
        {"id": "cost_3", "factory_id": "fac_1", "product_id": "prod_2", "cost_rmb_per_ton": 2000},
        {"id": "cost_4", "factory_id": "fac_2", "product_id": "prod_2", "cost_rmb_per_ton": 0},
    ]
    tables["ports"].append({"id": "port_2", "name": "Tianjin", "code": "CNTSN", "country": "CN"})
    tables["container_load_rules"] += [
        {"id": "load_2", "product_id": "prod_1", "container_type": "40HQ", "max_tons": 26},
        {"id": "load_3", "product_id": "prod_2", "container_type": "20GP", "max_tons": 0},
    ]
    tables["port_charges_rules"] = [
        {"id": "pc_1", "port_id": "port_1", "mode": "FCL", "container_type": "20GP", "base_rmb": 3000},
        {"id": "pc_2", "port_id": None, "mode": "FCL", "container_type": "20GP", "base_rmb": 3300},
        {"id": "pc_3", "port_id": "", "mode": "FCL", "container_type": "40HQ", "base_rmb": 4000},
        {"id": "pc_4", "port_id": "port_1", "mode": "LCL", "container_type": None,
         "base_rmb": 500, "extra_rmb_per_ton": 150},
    ]
    tables["land_freight_rules"] = [
        {"id": "lf_1", "mode": "FCL", "factory_id": "fac_1", "container_type": "20GP",
         "min_rmb_per_ton": 100, "max_rmb_per_ton": 140, "default_rmb_per_ton": 120},
        {"id": "lf_2", "mode": "FCL", "factory_id": None, "container_type": "20GP",
         "min_rmb_per_ton": 80, "max_rmb_per_ton": 120, "default_rmb_per_ton": 100},
        {"id": "lf_3", "mode": "LCL", "factory_id": "", "container_type": "20GP",
         "min_rmb_per_ton": 120, "max_rmb_per_ton": 180, "default_rmb_per_ton": 150},
    ]
    tables["factory_packaging_overrides"] = [
        {"id": "fpo_1", "factory_id": "fac_2", "packaging_option_id": "pack_1",
         "bag_price_rmb_override": 0.50, "carton_price_rmb_override": None},
        {"id": "fpo_2", "factory_id": "fac_1", "packaging_option_id": "pack_2",
         "bag_price_rmb_override": None, "carton_price_rmb_override": 2.5},
    ]
    tables["packaging_recommendations"] = [
        {"id": "rec_1", "product_id": "prod_1", "inner_pack_type": "carton",
         "unit_weight_kg": 1, "recommended_units_per_carton": 20},
        {"id": "rec_2", "product_id": "prod_1", "inner_pack_type": None,
         "unit_weight_kg": 5, "recommended_units_per_carton": 4},
    ]
    return tables


@pytest.fixture
def scenario_snapshot():
    return ReferenceSnapshot(**_scenario_tables())


@pytest.fixture
def full_snapshot():
    return ReferenceSnapshot(**_full_tables())


@pytest.fixture
def scenario_tables():
    """Raw tables, for tests that add or replace rows before building a snapshot."""
    return _scenario_tables()


@pytest.fixture
def make_request():
    """Builder for a QuoteRequest: prod_1 / pack_1 / fac_1, FCL 20GP, fx 7.2, margin 10%."""
    def _make(**overrides):
        fields = {
            "product_id": "prod_1",
            "packaging_option_id": "pack_1",
            "factory_id": "fac_1",
            "mode": "FCL",
            "container_type": "20GP",
            "fx_rate": 7.2,
            "margin_pct": 0.10,
        }
        fields.update(overrides)
        return QuoteRequest(**fields)
    return _make


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)
