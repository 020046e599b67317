"""
Quote API: thin HTTP surface over the quotation engine.

POST /api/quotes/calculate  - Full quote for a snapshot + trade parameters
POST /api/quotes/preflight  - First blocking reason, without a result
POST /api/quotes/margin     - Re-price an existing result at a new margin
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from ..config import settings
from ..errors import QuoteError
from ..pricing_engine import PriceSynthesizer
from ..quote_engine import QuoteEngine
from ..schemas import QuoteRequest, QuoteResult, ReferenceSnapshot

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quotes", tags=["quotes"])

# Singleton engine - no state between calls
engine = QuoteEngine()
synthesizer = PriceSynthesizer()


# --- Request/Response schemas ---

class QuoteParams(QuoteRequest):
    """QuoteRequest with fx_rate / margin_pct defaulting to the configured values."""
    fx_rate: Optional[float] = None
    margin_pct: Optional[float] = None


class CalculateRequest(BaseModel):
    snapshot: ReferenceSnapshot
    request: QuoteParams


class MarginRequest(BaseModel):
    result: QuoteResult
    margin_pct: float
    fx_rate: Optional[float] = None


def _to_quote_request(params: QuoteParams) -> QuoteRequest:
    # exclude_unset keeps "units_per_carton not given" apart from "given as null"
    data = params.model_dump(exclude_unset=True)
    if data.get("fx_rate") is None:
        data["fx_rate"] = settings.DEFAULT_FX_RATE
    if data.get("margin_pct") is None:
        data["margin_pct"] = settings.DEFAULT_MARGIN_PCT
    return QuoteRequest(**data)


def _unprocessable(e: QuoteError) -> HTTPException:
    logger.info("Quote rejected: %s (%s)", e.error_code, e.message)
    return HTTPException(status_code=422, detail=e.to_dict())


# --- Endpoints ---

@router.post("/calculate", response_model=QuoteResult)
def calculate(body: CalculateRequest):
    try:
        return engine.calculate(body.snapshot, _to_quote_request(body.request))
    except QuoteError as e:
        raise _unprocessable(e)


@router.post("/preflight")
def preflight(body: CalculateRequest):
    reason = engine.preflight(body.snapshot, _to_quote_request(body.request))
    return {"ok": reason is None, "reason": reason}


@router.post("/margin", response_model=QuoteResult)
def reprice(body: MarginRequest):
    try:
        return synthesizer.recalculate_with_margin(body.result, body.margin_pct, body.fx_rate)
    except QuoteError as e:
        raise _unprocessable(e)
