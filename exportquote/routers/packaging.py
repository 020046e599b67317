from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel

from ..rules import default_factory, default_packaging_option, packaging_recommendation
from ..schemas import InnerPackType, ReferenceSnapshot

router = APIRouter(prefix="/packaging", tags=["packaging"])


class RecommendationRequest(BaseModel):
    snapshot: ReferenceSnapshot
    product_id: str
    unit_weight_kg: float
    inner_pack_type: Optional[InnerPackType] = None


class DefaultsRequest(BaseModel):
    snapshot: ReferenceSnapshot
    product_id: str


@router.post("/recommendation")
def recommend_units_per_carton(body: RecommendationRequest):
    """Recommended bags per carton for a custom unit weight, or null."""
    units = packaging_recommendation(
        body.snapshot, body.product_id, body.unit_weight_kg, body.inner_pack_type,
    )
    return {"units_per_carton": units}


@router.post("/defaults")
def default_selection(body: DefaultsRequest):
    """Packaging option and factory to preselect when a product is chosen."""
    option = default_packaging_option(body.snapshot, body.product_id)
    factory = default_factory(body.snapshot, body.product_id)
    return {
        "packaging_option_id": option.id if option else None,
        "factory_id": factory.id if factory else None,
    }
