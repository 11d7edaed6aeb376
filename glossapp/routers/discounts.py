# glossapp/routers/discounts.py
"""
Discounts. Walk-in ("physical person") discounts appear with pseudo ids
physical-<pct>; they are derived from records and cannot be edited.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from glossapp.auth import Caller, SecretVerifier, get_caller, get_secret_verifier
from glossapp.database import get_db
from glossapp.schemas.company import DiscountOptionOut, DiscountOut, DiscountRowOut, DiscountUpdate
from glossapp.schemas.record import MasterPinBody
from glossapp.services import party_service

router = APIRouter()


@router.get("/discounts/options", response_model=list[DiscountOptionOut], summary="Selectable discounts")
def discount_options(db: Session = Depends(get_db), caller: Caller = Depends(get_caller)):
    return party_service.discount_options(db)


@router.get("/discounts", response_model=list[DiscountRowOut], summary="All discounts (admin)")
def list_discounts(db: Session = Depends(get_db), caller: Caller = Depends(get_caller)):
    return party_service.list_discounts(db, caller)


@router.put("/discounts/{discount_id}", response_model=DiscountOut, summary="Toggle a discount or replace its percentage")
def update_discount(discount_id: str, body: DiscountUpdate, db: Session = Depends(get_db),
                    caller: Caller = Depends(get_caller)):
    return party_service.update_discount(db, caller, discount_id, active=body.active, percentage=body.percentage)


@router.delete("/discounts/{discount_id}", summary="Delete a company discount (master PIN)")
def delete_discount(
    discount_id: str,
    body: Optional[MasterPinBody] = None,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
    secrets: SecretVerifier = Depends(get_secret_verifier),
):
    party_service.delete_discount(db, caller, secrets, discount_id, body.master_pin if body else None)
    return {"status": "deleted", "id": discount_id}
