"""
Tests for the quantity resolver (quantity.py).

Tests:
1-2.  Tons <-> bags conversion round trip
3-4.  FCL sizing from container max_tons
5-7.  FCL -> LCL auto-switch
8-10. LCL quantities from tons and bags hints
11-15. Fatal cases (missing hint, bag count overflowing to infinity)
"""

import pytest

from exportquote.errors import NonPositiveValueError, QuantityRequiredError
from exportquote.quantity import QuantityResolver, bags_per_ton, bags_to_tons, tons_to_bags
from exportquote.schemas import Mode, ReferenceSnapshot
from exportquote.warning_log import WarningCollector


def _resolve(snapshot, mode="FCL", container_type="20GP", unit_weight_kg=25,
             qty_input_type=None, qty_input_value=None, product_id="prod_1"):
    warnings = WarningCollector()
    quantity = QuantityResolver().resolve(
        snapshot, product_id, mode, container_type, unit_weight_kg,
        qty_input_type, qty_input_value, warnings,
    )
    return quantity, list(warnings)


# ============================================================
# 1-2. Conversions
# ============================================================

def test_tons_bags_round_trip():
    """Odd unit weights give fractional bag counts; converting back still lands on the tonnage."""
    for unit_weight_kg in (3, 33.3):
        bags = tons_to_bags(7.25, unit_weight_kg)
        assert bags_to_tons(bags, unit_weight_kg) == pytest.approx(7.25)


def test_bags_per_ton_rejects_non_positive_weight():
    assert bags_per_ton(25) == 40
    with pytest.raises(NonPositiveValueError):
        bags_per_ton(0)
    with pytest.raises(NonPositiveValueError):
        bags_per_ton(-5)


# ============================================================
# 3-4. FCL sizing
# ============================================================

def test_fcl_uses_container_max_tons(full_snapshot):
    quantity, warnings = _resolve(full_snapshot)
    assert quantity.mode == Mode.FCL
    assert quantity.tons == 17.5
    assert quantity.bags == 700
    assert not quantity.mode_switched
    assert warnings == []


def test_fcl_hint_at_or_above_capacity_stays_fcl(full_snapshot):
    quantity, warnings = _resolve(full_snapshot, qty_input_type="tons", qty_input_value=30)
    assert quantity.mode == Mode.FCL
    assert quantity.tons == 17.5
    quantity, _ = _resolve(full_snapshot, qty_input_type="tons", qty_input_value=17.5)
    assert quantity.mode == Mode.FCL


# ============================================================
# 5-7. Auto-switch
# ============================================================

def test_fcl_with_small_tons_hint_switches_to_lcl(full_snapshot):
    quantity, warnings = _resolve(full_snapshot, qty_input_type="tons", qty_input_value=5)
    assert quantity.mode == Mode.LCL
    assert quantity.requested_mode == Mode.FCL
    assert quantity.mode_switched
    assert quantity.tons == 5
    assert quantity.bags == 200
    assert any("LCL" in w for w in warnings)


def test_fcl_with_small_bags_hint_switches_to_lcl(full_snapshot):
    # 300 bags x 25 kg = 7.5 t < 17.5 t
    quantity, warnings = _resolve(full_snapshot, qty_input_type="bags", qty_input_value=300)
    assert quantity.mode == Mode.LCL
    assert quantity.bags == 300
    assert quantity.tons == pytest.approx(7.5)
    assert len(warnings) == 1


def test_fcl_ignores_non_positive_hint(full_snapshot):
    quantity, warnings = _resolve(full_snapshot, qty_input_type="tons", qty_input_value=0)
    assert quantity.mode == Mode.FCL
    assert warnings == []


# ============================================================
# 8-10. LCL quantities
# ============================================================

def test_lcl_tons_hint(full_snapshot):
    quantity, _ = _resolve(full_snapshot, mode="LCL", qty_input_type="tons", qty_input_value=2.31)
    assert quantity.tons == 2.31
    assert quantity.bags == 93  # 92.4 rounds up


def test_lcl_bags_hint_rounds_up_and_recomputes_tons(full_snapshot):
    quantity, _ = _resolve(full_snapshot, mode="LCL", qty_input_type="bags", qty_input_value=201.4)
    assert quantity.bags == 202
    assert quantity.tons == pytest.approx(5.05)


def test_lcl_larger_than_container_is_not_upgraded(full_snapshot):
    quantity, _ = _resolve(full_snapshot, mode="LCL", qty_input_type="tons", qty_input_value=20)
    assert quantity.mode == Mode.LCL
    assert quantity.tons == 20


# ============================================================
# 11-13. Fatal cases
# ============================================================

def test_lcl_without_hint_is_fatal(full_snapshot):
    with pytest.raises(QuantityRequiredError):
        _resolve(full_snapshot, mode="LCL")


@pytest.mark.parametrize("value", [0, -3])
def test_lcl_with_non_positive_hint_is_fatal(full_snapshot, value):
    with pytest.raises(QuantityRequiredError):
        _resolve(full_snapshot, mode="LCL", qty_input_type="bags", qty_input_value=value)


def test_lcl_hint_without_type_is_fatal(full_snapshot):
    with pytest.raises(QuantityRequiredError):
        _resolve(full_snapshot, mode="LCL", qty_input_value=3)


def test_lcl_tons_hint_too_large_for_bag_count(full_snapshot):
    # 1e307 t x 40 bags/t is not a finite bag count
    with pytest.raises(NonPositiveValueError) as exc:
        _resolve(full_snapshot, mode="LCL", qty_input_type="tons", qty_input_value=1e307)
    assert exc.value.field == "bags"


def test_fcl_container_rule_too_large_for_bag_count(scenario_tables):
    scenario_tables["container_load_rules"][0]["max_tons"] = 1e307
    with pytest.raises(NonPositiveValueError) as exc:
        _resolve(ReferenceSnapshot(**scenario_tables))
    assert exc.value.field == "bags"
