"""
Quote engine: result assembler for the export quotation.

Pipeline (one synchronous call, no I/O, no shared state):
1. Look up product / packaging option / factory and the factory cost
2. Check trade parameters (fx_rate, margin_pct)
3. Resolve packaging (caller override -> factory override -> option default)
4. Resolve quantity, auto-switching FCL -> LCL for a part load
5. Aggregate per-bag cost lines
6. Synthesize the sell price and gross profit
7. Assemble summary + breakdown + warnings into a QuoteResult

Fatal problems raise a QuoteError subclass. Missing rules only add warnings.
"""

import logging
from typing import Optional

from .config import Settings, settings as default_settings
from .costing import CostAggregator, factory_cost_per_ton, resolve_packaging
from .errors import EntityNotFoundError, PackagingMismatchError, QuoteError, ensure_positive
from .pricing_engine import PriceSynthesizer, check_margin
from .quantity import QuantityResolver
from .schemas import (
    QuoteBreakdown,
    QuoteRequest,
    QuoteResult,
    QuoteSummary,
    ReferenceSnapshot,
)
from .warning_log import WarningCollector

logger = logging.getLogger(__name__)


def _find(rows, entity_id: str, entity: str):
    row = next((r for r in rows if r.id == entity_id), None)
    if row is None:
        raise EntityNotFoundError(entity, entity_id)
    return row


class QuoteEngine:

    def __init__(self, config: Settings = default_settings):
        self.config = config
        self.quantity_resolver = QuantityResolver(config)
        self.cost_aggregator = CostAggregator(config)
        self.price_synthesizer = PriceSynthesizer()

    def calculate(self, snapshot: ReferenceSnapshot, request: QuoteRequest) -> QuoteResult:
        warnings = WarningCollector()

        product = _find(snapshot.products, request.product_id, "product")
        option = _find(snapshot.packaging_options, request.packaging_option_id, "packaging_option")
        _find(snapshot.factories, request.factory_id, "factory")
        if option.product_id != product.id:
            raise PackagingMismatchError(option.id, product.id)
        cost_per_ton = factory_cost_per_ton(snapshot, request.factory_id, product.id)

        ensure_positive(request.fx_rate, "fx_rate")
        check_margin(request.margin_pct)

        packaging = resolve_packaging(snapshot, option, request)

        quantity = self.quantity_resolver.resolve(
            snapshot, product.id, request.mode, request.container_type,
            packaging.unit_weight_kg, request.qty_input_type, request.qty_input_value,
            warnings,
        )

        cost = self.cost_aggregator.aggregate(
            snapshot, request, product, packaging, quantity, cost_per_ton, warnings,
        )

        price = self.price_synthesizer.synthesize(
            cost.net_rmb_per_bag, request.fx_rate, request.margin_pct, quantity.bags,
        )

        summary = QuoteSummary(
            mode=quantity.mode,
            container_type=request.container_type,
            mode_switched=quantity.mode_switched,
            max_tons=quantity.max_tons,
            tons=quantity.tons,
            bags=quantity.bags,
            bags_int=quantity.bags,
            cartons_int=cost.cartons_int,
            unit_weight_kg=packaging.unit_weight_kg,
            units_per_carton=packaging.units_per_carton,
            inner_pack_type=packaging.inner_pack_type,
            bag_price_source=packaging.bag_price_source,
            carton_price_source=packaging.carton_price_source,
            fx_rate=request.fx_rate,
            margin_pct=request.margin_pct,
            net_rmb_per_bag=cost.net_rmb_per_bag,
            cost_usd_per_bag=price.cost_usd_per_bag,
            sell_usd_per_bag=price.sell_usd_per_bag,
            sell_rmb_per_bag=price.sell_rmb_per_bag,
            gp_rmb_per_bag=price.gp_rmb_per_bag,
            gp_rmb_total=price.gp_rmb_total,
            fcl_port_total_rmb=cost.fcl_port_total_rmb,
            lcl_port_total_rmb=cost.lcl_port_total_rmb,
        )
        breakdown = QuoteBreakdown(
            raw_rmb_per_bag=cost.raw_rmb_per_bag,
            bag_mat_rmb_per_bag=cost.bag_mat_rmb_per_bag,
            carton_rmb_per_bag=cost.carton_rmb_per_bag,
            land_rmb_per_bag=cost.land_rmb_per_bag,
            land_rmb_per_ton_used=cost.land_rmb_per_ton_used,
            land_total_rmb=cost.land_total_rmb,
            port_rmb_per_bag=cost.port_rmb_per_bag,
            port_total_rmb=cost.port_total_rmb,
            domestic_total_rmb_per_bag=cost.domestic_total_rmb_per_bag,
            rebate_rmb_per_bag=cost.rebate_rmb_per_bag,
            net_rmb_per_bag=cost.net_rmb_per_bag,
        )

        logger.debug("Quote %s/%s: %s %d bags, sell %.4f USD/bag, %d warnings",
                     product.id, option.id, quantity.mode.value, quantity.bags,
                     price.sell_usd_per_bag, len(warnings))
        return QuoteResult(summary=summary, breakdown=breakdown, warnings=warnings.as_tuple())

    def preflight(self, snapshot: ReferenceSnapshot, request: QuoteRequest) -> Optional[str]:
        """
        First reason the request cannot be quoted, or None when it can.
        Lets a caller block its "calculate" action with a specific message.
        """
        try:
            self.calculate(snapshot, request)
        except QuoteError as e:
            return e.message
        return None


_engine = QuoteEngine()


def calculate_quote(snapshot: ReferenceSnapshot, request: QuoteRequest) -> QuoteResult:
    return _engine.calculate(snapshot, request)


def preflight(snapshot: ReferenceSnapshot, request: QuoteRequest) -> Optional[str]:
    return _engine.preflight(snapshot, request)
