# glossapp/routers/companies.py
"""Corporate customers and their discount options. Admin only."""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from glossapp.auth import Caller, SecretVerifier, get_caller, get_secret_verifier
from glossapp.database import get_db
from glossapp.schemas.company import CompanyCreate, CompanyOut, CompanyUpdate, DiscountOut
from glossapp.schemas.record import MasterPinBody
from glossapp.services import party_service

router = APIRouter()


def render_company(company) -> dict:
    """Only the active discounts are shown; deactivated rows stay for history."""
    return CompanyOut(
        id=company.id,
        name=company.name,
        contact=company.contact,
        discounts=[DiscountOut.model_validate(d) for d in party_service.active_discounts(company)],
        created_at=company.created_at,
        updated_at=company.updated_at,
    ).model_dump(mode="json")


@router.get("/companies", summary="List companies with active discounts")
def list_companies(db: Session = Depends(get_db), caller: Caller = Depends(get_caller)):
    return [render_company(c) for c in party_service.list_companies(db, caller)]


@router.post("/companies", status_code=201, summary="Create a company")
def create_company(body: CompanyCreate, db: Session = Depends(get_db), caller: Caller = Depends(get_caller)):
    company = party_service.create_company(db, caller, body.name, body.contact, body.discount_percentages)
    return render_company(company)


@router.put("/companies/{company_id}", summary="Update a company; discount_percentages replaces the set")
def update_company(company_id: int, body: CompanyUpdate, db: Session = Depends(get_db),
                   caller: Caller = Depends(get_caller)):
    company = party_service.update_company(
        db, caller, company_id, name=body.name, contact=body.contact,
        discount_percentages=body.discount_percentages,
    )
    return render_company(company)


@router.delete("/companies/{company_id}", summary="Delete a company (master PIN)")
def delete_company(
    company_id: int,
    body: Optional[MasterPinBody] = None,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
    secrets: SecretVerifier = Depends(get_secret_verifier),
):
    party_service.delete_company(db, caller, secrets, company_id, body.master_pin if body else None)
    return {"status": "deleted", "id": company_id}
