"""
Quantity resolver.

Turns the caller's tons-or-bags hint into an internal (tons, bags) pair for the
chosen packaging, and downgrades FCL to LCL when the hint is smaller than a
full container.

FCL: tons = container max_tons, bags = ceil(tons * bags_per_ton)
LCL: the hint is mandatory
     bags hint -> bags = ceil(hint), tons = bags * unit_weight_kg / 1000
     tons hint -> tons = hint, bags = ceil(tons * bags_per_ton)
"""

import logging
import math
from typing import NamedTuple, Optional

from .config import Settings, settings as default_settings
from .errors import QuantityRequiredError, ensure_positive
from .rules import container_max_tons
from .schemas import ContainerType, Mode, QtyInputType, ReferenceSnapshot
from .warning_log import WarningCollector

logger = logging.getLogger(__name__)

KG_PER_TON = 1000.0


def bags_per_ton(unit_weight_kg: float) -> float:
    ensure_positive(unit_weight_kg, "unit_weight_kg")
    return ensure_positive(KG_PER_TON / unit_weight_kg, "bags_per_ton")


def tons_to_bags(tons: float, unit_weight_kg: float) -> float:
    """Exact (fractional) bag count for a tonnage. No rounding."""
    return tons * bags_per_ton(unit_weight_kg)


def bags_to_tons(bags: float, unit_weight_kg: float) -> float:
    return bags * unit_weight_kg / KG_PER_TON


def _usable_hint(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value) and value > 0


class ResolvedQuantity(NamedTuple):
    mode: Mode
    requested_mode: Mode
    max_tons: float
    tons: float
    bags: int

    @property
    def mode_switched(self) -> bool:
        return self.mode != self.requested_mode


class QuantityResolver:

    def __init__(self, config: Settings = default_settings):
        self.config = config

    def resolve(self, snapshot: ReferenceSnapshot, product_id: str, mode: Mode,
                container_type: ContainerType, unit_weight_kg: float,
                qty_input_type: Optional[QtyInputType], qty_input_value: Optional[float],
                warnings: WarningCollector) -> ResolvedQuantity:
        requested_mode = Mode(mode)
        per_ton = bags_per_ton(unit_weight_kg)

        max_tons = container_max_tons(
            snapshot, product_id, container_type, warnings, config=self.config,
        ).value

        input_type = QtyInputType(qty_input_type) if qty_input_type else None
        hint_tons = None
        if _usable_hint(qty_input_value):
            if input_type == QtyInputType.BAGS:
                hint_tons = bags_to_tons(qty_input_value, unit_weight_kg)
            else:
                hint_tons = qty_input_value

        resolved_mode = requested_mode
        if requested_mode == Mode.FCL and hint_tons is not None and hint_tons < max_tons:
            resolved_mode = Mode.LCL
            warnings.add(
                f"Requested quantity ({hint_tons:.2f} tons) is below this product's full "
                f"container load ({max_tons:.2f} tons); switched to LCL."
            )

        if resolved_mode == Mode.FCL:
            tons = max_tons
            bags = math.ceil(ensure_positive(tons * per_ton, "bags"))
        else:
            if input_type is None or not _usable_hint(qty_input_value):
                raise QuantityRequiredError()
            if input_type == QtyInputType.BAGS:
                bags = math.ceil(qty_input_value)
                tons = bags_to_tons(bags, unit_weight_kg)
            else:
                tons = qty_input_value
                bags = math.ceil(ensure_positive(tons * per_ton, "bags"))

        ensure_positive(tons, "tons")
        ensure_positive(bags, "bags")

        logger.debug("Resolved quantity: %s %.4f t / %d bags (max %.4f t)",
                     resolved_mode.value, tons, bags, max_tons)
        return ResolvedQuantity(
            mode=resolved_mode,
            requested_mode=requested_mode,
            max_tons=max_tons,
            tons=tons,
            bags=int(bags),
        )
