# glossapp/routers/pricing.py
"""Pricing matrix read/bulk-edit and the price quote used by the new-record form."""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from glossapp.auth import Caller, get_caller
from glossapp.database import get_db
from glossapp.exceptions import InvalidInputError
from glossapp.schemas.pricing import PricingUpdate, QuoteOut, UpsertReportOut
from glossapp.services import pricing_service

router = APIRouter()


@router.get("/pricing", summary="Full pricing matrix {car_category: {wash_type: price}}")
def get_pricing(db: Session = Depends(get_db), caller: Caller = Depends(get_caller)):
    return {"matrix": pricing_service.get_matrix(db)}


@router.put("/pricing", response_model=UpsertReportOut, summary="Bulk upsert prices (admin)")
def update_pricing(body: PricingUpdate, db: Session = Depends(get_db), caller: Caller = Depends(get_caller)):
    """
    Invalid entries (unknown codes, CUSTOM, negative or non-numeric prices) are
    skipped and listed in the response; the rest are saved.
    """
    if body.matrix is not None:
        entries = body.matrix
    elif body.entries is not None:
        entries = [e.model_dump() for e in body.entries]
    else:
        raise InvalidInputError("matrix or entries is required", field="matrix")

    report = pricing_service.bulk_upsert(db, caller, entries)
    return {
        "applied": len(report.applied),
        "skipped": [s.__dict__ for s in report.skipped],
        "matrix": pricing_service.get_matrix(db),
    }


@router.get("/pricing/quote", response_model=QuoteOut, summary="Preview price, discount and washer cut")
def quote(
    car_category: str,
    wash_type: str,
    discount_percentage: float = 0,
    washer_id: Optional[int] = None,
    washer_username: Optional[str] = None,
    price: Optional[float] = None,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    result = pricing_service.quote(
        db, car_category, wash_type, discount_percentage,
        washer_id=washer_id, washer_username=washer_username, explicit_price=price,
    )
    washer = result.pop("washer")
    return {
        **result,
        "washer_id": washer.id,
        "washer_username": washer.username,
        "salary_percentage": washer.salary_percentage,
    }
