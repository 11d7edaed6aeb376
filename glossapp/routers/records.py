# glossapp/routers/records.py
"""Wash records: create, finish, pay, admin edit/delete, listing and payment summary."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from glossapp.auth import Caller, SecretVerifier, get_caller, get_secret_verifier
from glossapp.database import get_db
from glossapp.schemas.record import (
    FinishOut, MasterPinBody, PaymentSummaryOut, RecordCreate, RecordOut, RecordPay, RecordUpdate,
)
from glossapp.services import record_service
from glossapp.services.legacy_mappings import to_legacy_car_type, to_legacy_wash_type

router = APIRouter()


def render_record(record, legacy: bool = False) -> dict:
    """Record as JSON; legacy=True swaps category/wash codes for the old display names."""
    out = RecordOut.model_validate(record).model_dump(mode="json")
    if legacy:
        out["car_category"] = to_legacy_car_type(out["car_category"])
        out["wash_type"] = to_legacy_wash_type(out["wash_type"])
    return out


@router.get("/records", summary="List wash records, newest first")
def list_records(
    status: Optional[str] = Query(None, description="unfinished | finished_unpaid | paid"),
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: Optional[int] = Query(None, ge=1, le=500),
    legacy: bool = False,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    records = record_service.list_records(db, status, start_date, end_date, limit)
    return [render_record(r, legacy) for r in records]


@router.get("/records/summary", response_model=PaymentSummaryOut, summary="Paid totals per payment method")
def payment_summary(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: Optional[int] = Query(None, ge=1, le=5000),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    records = record_service.list_records(db, None, start_date, end_date, limit)
    return record_service.summarize_payments(records)


@router.get("/records/{record_id}", summary="Get one wash record")
def get_record(record_id: int, legacy: bool = False, db: Session = Depends(get_db),
               caller: Caller = Depends(get_caller)):
    return render_record(record_service.get_record(db, record_id), legacy)


@router.post("/records", status_code=201, summary="Create a wash record")
def create_record(body: RecordCreate, legacy: bool = False, db: Session = Depends(get_db),
                  caller: Caller = Depends(get_caller)):
    """Any authenticated caller. Price, discount and washer cut are resolved server-side."""
    record = record_service.create_record(db, caller, body.model_dump())
    return render_record(record, legacy)


@router.post("/records/{record_id}/finish", response_model=FinishOut, summary="Mark a wash as finished")
def finish_record(record_id: int, db: Session = Depends(get_db), caller: Caller = Depends(get_caller)):
    record, changed = record_service.finish_record(db, caller, record_id)
    return {"record": RecordOut.model_validate(record), "changed": changed}


@router.post("/records/{record_id}/pay", response_model=RecordOut, summary="Record payment (admin)")
def pay_record(record_id: int, body: RecordPay, db: Session = Depends(get_db),
               caller: Caller = Depends(get_caller)):
    return record_service.pay_record(db, caller, record_id, body.payment_method)


@router.put("/records/{record_id}", summary="Edit a wash record (admin + master PIN)")
def update_record(
    record_id: int,
    body: RecordUpdate,
    legacy: bool = False,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
    secrets: SecretVerifier = Depends(get_secret_verifier),
):
    fields = body.model_dump(exclude_unset=True)
    master_pin = fields.pop("master_pin", None)
    record = record_service.update_record(db, caller, secrets, record_id, fields, master_pin)
    return render_record(record, legacy)


@router.delete("/records/{record_id}", summary="Delete a wash record (admin + master PIN)")
def delete_record(
    record_id: int,
    body: Optional[MasterPinBody] = None,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
    secrets: SecretVerifier = Depends(get_secret_verifier),
):
    record_service.delete_record(db, caller, secrets, record_id, body.master_pin if body else None)
    return {"status": "deleted", "id": record_id}
