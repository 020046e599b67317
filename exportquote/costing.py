"""
Cost aggregator: per-bag landed cost breakdown.

raw        = cost_rmb_per_ton * (1 + invoice_tax_point) * tons / bags
bag_mat    = resolved bag unit price
carton     = cartons * resolved carton unit price / bags   (0 when shipped loose)
land       = inland freight rate * tons / bags
port       = FCL flat fee or LCL base + extra tons, / bags
domestic   = raw + bag_mat + carton + land + port
rebate     = raw * refund_rate
net        = domestic - rebate

Packaging prices resolve caller override -> factory override -> option default.
"""

import logging
import math
from typing import NamedTuple, Optional

from .config import Settings, settings as default_settings
from .errors import MissingFactoryCostError, ensure_positive
from .quantity import ResolvedQuantity
from .rules import (
    fcl_port_total,
    land_freight_rate,
    lcl_port_total,
    non_negative,
    packaging_override,
)
from .schemas import (
    InnerPackType,
    Mode,
    PackagingOption,
    PriceSource,
    Product,
    QuoteRequest,
    ReferenceSnapshot,
)
from .warning_log import WarningCollector

logger = logging.getLogger(__name__)


class ResolvedPackaging(NamedTuple):
    unit_weight_kg: float
    units_per_carton: Optional[int]     # None: ships loose
    bag_price_rmb: float
    carton_price_rmb: float
    bag_price_source: PriceSource
    carton_price_source: PriceSource
    inner_pack_type: InnerPackType


class AggregatedCost(NamedTuple):
    cartons_int: int
    raw_rmb_per_bag: float
    bag_mat_rmb_per_bag: float
    carton_rmb_per_bag: float
    land_rmb_per_ton_used: float
    land_total_rmb: float
    land_rmb_per_bag: float
    fcl_port_total_rmb: float
    lcl_port_total_rmb: Optional[float]
    port_total_rmb: float
    port_rmb_per_bag: float
    domestic_total_rmb_per_bag: float
    rebate_rmb_per_bag: float
    net_rmb_per_bag: float


def normalize_units_per_carton(value) -> Optional[int]:
    """None, non-finite or <= 0 -> loose (None); otherwise a whole number >= 1."""
    if value is None or not math.isfinite(value) or value <= 0:
        return None
    return max(1, int(math.floor(value + 0.5)))


def _pick_price(custom: Optional[float], factory: Optional[float], default: float):
    if custom is not None:
        return custom, PriceSource.CUSTOM
    if factory is not None:
        return factory, PriceSource.OVERRIDE
    return default, PriceSource.DEFAULT


def resolve_packaging(snapshot: ReferenceSnapshot, option: PackagingOption,
                      request: QuoteRequest) -> ResolvedPackaging:
    """Apply caller overrides, then factory overrides, then option defaults."""
    weight = request.override_unit_weight_kg
    if weight is None:
        weight = option.unit_weight_kg
    unit_weight_kg = non_negative(weight, option.unit_weight_kg)
    ensure_positive(unit_weight_kg, "unit_weight_kg")

    if request.has_units_per_carton_override:
        units_raw = request.override_units_per_carton
    else:
        units_raw = option.units_per_carton

    factory_override = packaging_override(snapshot, request.factory_id, option.id)
    bag_price, bag_source = _pick_price(
        request.override_bag_price_rmb,
        factory_override.bag_price_rmb_override if factory_override else None,
        option.bag_price_rmb,
    )
    carton_price, carton_source = _pick_price(
        request.override_carton_price_rmb,
        factory_override.carton_price_rmb_override if factory_override else None,
        option.carton_price_rmb,
    )

    return ResolvedPackaging(
        unit_weight_kg=unit_weight_kg,
        units_per_carton=normalize_units_per_carton(units_raw),
        bag_price_rmb=non_negative(bag_price),
        carton_price_rmb=non_negative(carton_price),
        bag_price_source=bag_source,
        carton_price_source=carton_source,
        inner_pack_type=request.override_inner_pack_type or option.inner_pack_type,
    )


def factory_cost_per_ton(snapshot: ReferenceSnapshot, factory_id: str, product_id: str) -> float:
    cost = next(
        (c for c in snapshot.factory_product_costs
         if c.factory_id == factory_id and c.product_id == product_id),
        None,
    )
    if cost is None:
        raise MissingFactoryCostError(factory_id, product_id)
    value = cost.cost_rmb_per_ton
    if value is None or not math.isfinite(value) or value <= 0:
        raise MissingFactoryCostError(factory_id, product_id, reason=f"must be greater than 0 (got {value})")
    return value


class CostAggregator:
    """
    Builds the per-bag cost breakdown for a resolved quantity.
    All cost lines except net are non-negative; net may go negative only
    with an implausibly large refund_rate, and that is returned as-is.
    """

    def __init__(self, config: Settings = default_settings):
        self.config = config

    def aggregate(self, snapshot: ReferenceSnapshot, request: QuoteRequest, product: Product,
                  packaging: ResolvedPackaging, quantity: ResolvedQuantity,
                  cost_rmb_per_ton: float, warnings: WarningCollector) -> AggregatedCost:
        tons = quantity.tons
        bags = quantity.bags

        raw = cost_rmb_per_ton * (1 + product.invoice_tax_point) * tons / bags
        bag_mat = packaging.bag_price_rmb

        cartons = self._carton_count(bags, packaging.units_per_carton)
        carton = cartons * packaging.carton_price_rmb / bags if cartons > 0 else 0.0

        land_rate = land_freight_rate(
            snapshot, quantity.mode, request.container_type, request.factory_id,
            request.land_fee_override_rmb_per_ton, warnings,
        ).value
        land_total = land_rate * tons
        land = land_total / bags

        port_id = product.pol_port_id
        fcl_port = fcl_port_total(
            snapshot, port_id, request.container_type, warnings, config=self.config,
        ).value
        lcl_port = None
        if quantity.mode == Mode.LCL:
            lcl_port = lcl_port_total(snapshot, port_id, tons, warnings).value
            if lcl_port > fcl_port:
                warnings.add(
                    f"LCL port charges ({lcl_port:.2f} RMB) exceed the FCL port charges "
                    f"({fcl_port:.2f} RMB) for the same tonnage; FCL is likely cheaper."
                )
        port_total = fcl_port if quantity.mode == Mode.FCL else lcl_port
        port = port_total / bags

        domestic = raw + bag_mat + carton + land + port
        rebate = raw * product.refund_rate
        net = domestic - rebate

        return AggregatedCost(
            cartons_int=cartons,
            raw_rmb_per_bag=raw,
            bag_mat_rmb_per_bag=bag_mat,
            carton_rmb_per_bag=carton,
            land_rmb_per_ton_used=land_rate,
            land_total_rmb=land_total,
            land_rmb_per_bag=land,
            fcl_port_total_rmb=fcl_port,
            lcl_port_total_rmb=lcl_port,
            port_total_rmb=port_total,
            port_rmb_per_bag=port,
            domestic_total_rmb_per_bag=domestic,
            rebate_rmb_per_bag=rebate,
            net_rmb_per_bag=net,
        )

    def _carton_count(self, bags: int, units_per_carton: Optional[int]) -> int:
        """Always rounds up: a part-filled carton is still a carton."""
        if not units_per_carton or units_per_carton <= 0:
            return 0
        return math.ceil(bags / units_per_carton)
