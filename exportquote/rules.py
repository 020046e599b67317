"""
Rule resolver: most-specific-match-with-fallback lookups over reference tables.

One generic resolve() does the work for every rule type:
1. Exact row (e.g. this port / this factory)
2. Wildcard row for the same (mode, container type) (key is None or "")
3. Caller-supplied fallback value

Lookups never raise. A fallback is reported to the WarningCollector by the
specific helpers below, except packaging overrides, whose absence is normal.
"""

import logging
import math
from typing import Any, Callable, Iterable, NamedTuple, Optional

from .config import Settings, settings as default_settings
from .schemas import (
    ContainerType,
    Factory,
    FactoryPackagingOverride,
    InnerPackType,
    Mode,
    PackagingOption,
    ReferenceSnapshot,
)
from .warning_log import WarningCollector

logger = logging.getLogger(__name__)

SOURCE_TABLE = "table"
SOURCE_FALLBACK = "fallback"
SOURCE_OVERRIDE = "override"

RECOMMENDATION_WEIGHT_TOLERANCE_KG = 0.0001


class Resolved(NamedTuple):
    value: Any
    source: str                 # SOURCE_TABLE | SOURCE_FALLBACK | SOURCE_OVERRIDE
    row: Any = None             # matched row, also set when it was rejected as invalid

    @property
    def from_table(self) -> bool:
        return self.source == SOURCE_TABLE


def is_wildcard(key: Optional[str]) -> bool:
    return key is None or key == ""


def is_finite_non_negative(value) -> bool:
    return value is not None and math.isfinite(value) and value >= 0


def non_negative(value, fallback: float = 0.0) -> float:
    """Clamp-by-replacement: anything negative, NaN or infinite becomes fallback."""
    return value if is_finite_non_negative(value) else fallback


def resolve(
    rows: Iterable,
    exact: Callable[[Any], bool],
    wildcard: Optional[Callable[[Any], bool]] = None,
    extract: Optional[Callable[[Any], Any]] = None,
    valid: Optional[Callable[[Any], bool]] = None,
    fallback: Any = None,
) -> Resolved:
    """
    Find the most specific matching row.

    Args:
        rows: rule table
        exact: predicate for the fully-keyed match
        wildcard: predicate for the catch-all row, tried only if no exact match
        extract: maps the matched row to the resolved value (default: the row)
        valid: rejects an unusable extracted value; the fallback is used instead
        fallback: value returned when nothing usable matched

    Returns:
        Resolved(value, source, row)
    """
    rows = tuple(rows)
    row = next((r for r in rows if exact(r)), None)
    if row is None and wildcard is not None:
        row = next((r for r in rows if wildcard(r)), None)
    if row is None:
        return Resolved(fallback, SOURCE_FALLBACK)

    value = extract(row) if extract else row
    if valid is not None and not valid(value):
        return Resolved(fallback, SOURCE_FALLBACK, row)
    return Resolved(value, SOURCE_TABLE, row)


# --- Container load ---

def container_max_tons(snapshot: ReferenceSnapshot, product_id: str,
                       container_type: ContainerType, warnings: WarningCollector,
                       config: Settings = default_settings) -> Resolved:
    """Max payload for (product, container type). Exact match only."""
    ct = ContainerType(container_type).value
    default_tons = config.DEFAULT_MAX_TONS
    resolved = resolve(
        snapshot.container_load_rules,
        exact=lambda r: r.product_id == product_id and r.container_type == ct,
        extract=lambda r: r.max_tons,
        valid=lambda v: math.isfinite(v) and v > 0,
        fallback=default_tons,
    )
    if resolved.from_table:
        return resolved
    if resolved.row is None:
        warnings.add(
            f"No {ct} container load rule for product '{product_id}'; "
            f"using the default of {default_tons:g} tons."
        )
    else:
        warnings.add(
            f"Max container load for product '{product_id}' ({ct}) is missing or invalid; "
            f"using the default of {default_tons:g} tons."
        )
    return resolved


# --- Port charges ---

def _port_rule(snapshot: ReferenceSnapshot, mode: str, container_type: Optional[str],
               port_id: str) -> Resolved:
    return resolve(
        snapshot.port_charges_rules,
        exact=lambda r: (r.mode == mode and r.container_type == container_type
                         and r.port_id == port_id),
        wildcard=lambda r: (r.mode == mode and r.container_type == container_type
                            and is_wildcard(r.port_id)),
    )


def fcl_port_total(snapshot: ReferenceSnapshot, port_id: str,
                   container_type: ContainerType, warnings: WarningCollector,
                   config: Settings = default_settings) -> Resolved:
    """Flat per-container port handling fee for FCL."""
    ct = ContainerType(container_type).value
    rule = _port_rule(snapshot, Mode.FCL.value, ct, port_id)
    if not rule.from_table:
        fallback = config.fcl_port_fallback(ct)
        warnings.add(
            f"No FCL port charges rule for {ct}; using the default of {fallback:.0f} RMB."
        )
        return Resolved(fallback, SOURCE_FALLBACK)
    return Resolved(non_negative(rule.value.base_rmb), SOURCE_TABLE, rule.value)


def lcl_port_total(snapshot: ReferenceSnapshot, port_id: str, tons: float,
                   warnings: WarningCollector) -> Resolved:
    """
    LCL port handling: base fee covers the first ton, every further ton
    (rounded up to a whole ton) adds extra_rmb_per_ton.
    LCL rules carry no container type.
    """
    rule = _port_rule(snapshot, Mode.LCL.value, None, port_id)
    if not rule.from_table:
        warnings.add("No LCL port charges rule; LCL port charges counted as 0 RMB.")
        return Resolved(0.0, SOURCE_FALLBACK)
    base = non_negative(rule.value.base_rmb)
    extra_per_ton = non_negative(rule.value.extra_rmb_per_ton)
    extra_tons = math.ceil(max(0.0, tons - 1))
    return Resolved(base + extra_tons * extra_per_ton, SOURCE_TABLE, rule.value)


# --- Inland freight ---

def land_freight_rate(snapshot: ReferenceSnapshot, mode: Mode, container_type: ContainerType,
                      factory_id: str, override: Optional[float],
                      warnings: WarningCollector) -> Resolved:
    """RMB per ton from factory to port. A valid caller override always wins."""
    if is_finite_non_negative(override):
        return Resolved(override, SOURCE_OVERRIDE)

    mode_value = Mode(mode).value
    ct = ContainerType(container_type).value
    resolved = resolve(
        snapshot.land_freight_rules,
        exact=lambda r: (r.mode == mode_value and r.container_type == ct
                         and r.factory_id == factory_id),
        wildcard=lambda r: (r.mode == mode_value and r.container_type == ct
                            and is_wildcard(r.factory_id)),
        extract=lambda r: non_negative(r.default_rmb_per_ton),
        fallback=0.0,
    )
    if not resolved.from_table:
        warnings.add(
            f"No {mode_value} inland freight rule for {ct}; using 0 RMB/ton."
        )
    return resolved


# --- Packaging ---

def packaging_override(snapshot: ReferenceSnapshot, factory_id: str,
                       packaging_option_id: str) -> Optional[FactoryPackagingOverride]:
    """Factory-specific packaging prices. Exact match only; None means no override."""
    resolved = resolve(
        snapshot.factory_packaging_overrides,
        exact=lambda r: r.factory_id == factory_id and r.packaging_option_id == packaging_option_id,
    )
    return resolved.value


def packaging_recommendation(snapshot: ReferenceSnapshot, product_id: str,
                             unit_weight_kg: float,
                             inner_pack_type: Optional[InnerPackType] = None) -> Optional[int]:
    """
    Recommended units per carton for a product at a given unit weight.
    A recommendation without a pack style matches any style.
    """
    if unit_weight_kg is None or not unit_weight_kg > 0:
        return None
    pack = InnerPackType(inner_pack_type).value if inner_pack_type else None

    def matches(r) -> bool:
        if r.product_id != product_id:
            return False
        if r.inner_pack_type and pack and r.inner_pack_type != pack:
            return False
        return abs(r.unit_weight_kg - unit_weight_kg) < RECOMMENDATION_WEIGHT_TOLERANCE_KG

    resolved = resolve(snapshot.packaging_recommendations, exact=matches)
    if not resolved.from_table:
        return None
    logger.debug("Packaging recommendation %s for product %s", resolved.value.id, product_id)
    return resolved.value.recommended_units_per_carton


# --- Default selections ---

def default_packaging_option(snapshot: ReferenceSnapshot,
                             product_id: str) -> Optional[PackagingOption]:
    """
    Packaging option to preselect for a product:
    1. The product's default_packaging_option_id, if that option belongs to it
    2. The first option flagged default_selected
    3. The product's first option
    None when the product has no packaging options.
    """
    options = [o for o in snapshot.packaging_options if o.product_id == product_id]
    if not options:
        return None
    product = next((p for p in snapshot.products if p.id == product_id), None)
    preferred = product.default_packaging_option_id if product else None
    resolved = resolve(
        options,
        exact=lambda o: bool(preferred) and o.id == preferred,
        wildcard=lambda o: o.default_selected,
        fallback=options[0],
    )
    return resolved.value


def default_factory(snapshot: ReferenceSnapshot, product_id: str) -> Optional[Factory]:
    """First factory with a cost row for the product, else the first factory."""
    if not snapshot.factories:
        return None
    costed = {c.factory_id for c in snapshot.factory_product_costs if c.product_id == product_id}
    resolved = resolve(
        snapshot.factories,
        exact=lambda f: f.id in costed,
        fallback=snapshot.factories[0],
    )
    return resolved.value
