"""
Fatal quote errors.

A QuoteError means the request is not well-formed and no meaningful quote
can be produced. Degraded-but-usable situations (missing rules and the like)
never raise; they are reported through the warning list instead.
"""

import math
from typing import Optional


class QuoteError(Exception):
    """Base fatal quote error"""
    def __init__(self, error_code: str, message: str, field: Optional[str] = None):
        self.error_code = error_code
        self.message = message
        self.field = field
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {
            "error_code": self.error_code,
            "message": self.message,
            "field": self.field,
        }


class EntityNotFoundError(QuoteError):
    """Referenced product / packaging option / factory is not in the snapshot"""
    def __init__(self, entity: str, entity_id: str):
        super().__init__(
            "ENTITY_NOT_FOUND",
            f"{entity} '{entity_id}' not found in reference data.",
            field=f"{entity}_id",
        )


class PackagingMismatchError(QuoteError):
    """Packaging option belongs to a different product"""
    def __init__(self, packaging_option_id: str, product_id: str):
        super().__init__(
            "PACKAGING_PRODUCT_MISMATCH",
            f"Packaging option '{packaging_option_id}' does not belong to product '{product_id}'.",
            field="packaging_option_id",
        )


class MissingFactoryCostError(QuoteError):
    """No usable cost for the (factory, product) pair"""
    def __init__(self, factory_id: str, product_id: str, reason: str = "is missing"):
        super().__init__(
            "MISSING_FACTORY_COST",
            f"Factory cost for factory '{factory_id}' and product '{product_id}' {reason}.",
            field="cost_rmb_per_ton",
        )


class NonPositiveValueError(QuoteError):
    """A value that must be strictly positive is not"""
    def __init__(self, field: str, value):
        super().__init__(
            "NON_POSITIVE_VALUE",
            f"{field} must be greater than 0. Received: {value}",
            field=field,
        )


class MarginOutOfRangeError(QuoteError):
    """Margin outside [0, 1)"""
    def __init__(self, value):
        super().__init__(
            "MARGIN_OUT_OF_RANGE",
            f"margin_pct must be in [0, 1). Received: {value}",
            field="margin_pct",
        )


class QuantityRequiredError(QuoteError):
    """LCL quotes need an explicit quantity"""
    def __init__(self):
        super().__init__(
            "QUANTITY_REQUIRED",
            "LCL mode requires qty_input_type and a positive qty_input_value.",
            field="qty_input_value",
        )


def ensure_positive(value, field: str) -> float:
    """Raise NonPositiveValueError unless value is a finite number > 0."""
    if value is None or not math.isfinite(value) or value <= 0:
        raise NonPositiveValueError(field, value)
    return value
