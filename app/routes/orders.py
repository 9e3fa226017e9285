# app/routes/orders.py
from __future__ import annotations
import json
from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from ..schemas.orders import IntakeOut, ErrorOut, QuoteOut, PricingOut
from ..services.errors import ValidationError
from ..services.intake import IntakeService, failure, get_intake_service


router = APIRouter(prefix="/orders", tags=["orders"])

_ERRORS = {400: {"model": ErrorOut}, 500: {"model": ErrorOut}}


async def _json_body(request: Request):
    # the body is validated by the normalizer, not by a pydantic model,
    # so bad input gets the same {success: false} envelope as everything else
    raw = await request.body()
    try:
        return json.loads(raw or b"null")
    except (ValueError, UnicodeDecodeError):
        raise ValidationError("request body must be valid JSON")


@router.post("", responses={200: {"model": IntakeOut}, **_ERRORS})
async def submit_order(request: Request, service: IntakeService = Depends(get_intake_service)):
    """
    Checkout submission from the storefront. Records the order, emails the
    receipt and returns the order id plus payment instructions.
    """
    try:
        payload = await _json_body(request)
    except ValidationError as e:
        result = failure(e)
    else:
        # Firestore and SMTP calls block; keep them off the event loop
        result = await run_in_threadpool(service.submit, payload)
    return JSONResponse(status_code=result.status_code, content=result.envelope)


@router.post("/quote", response_model=QuoteOut, responses={400: {"model": ErrorOut}})
async def quote_order(request: Request, service: IntakeService = Depends(get_intake_service)):
    """Price preview for the checkout page. Nothing is stored or sent."""
    try:
        payload = await _json_body(request)
        return service.quote(payload)
    except ValidationError as e:
        result = failure(e)
        return JSONResponse(status_code=result.status_code, content=result.envelope)


@router.get("/pricing", response_model=PricingOut)
def pricing(service: IntakeService = Depends(get_intake_service)):
    return service.rates.as_dict()
