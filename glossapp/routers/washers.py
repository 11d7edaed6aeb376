# glossapp/routers/washers.py
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from glossapp.auth import Caller, SecretVerifier, get_caller, get_secret_verifier
from glossapp.database import get_db
from glossapp.schemas.record import MasterPinBody
from glossapp.schemas.washer import WasherCreate, WasherOut, WasherUpdate
from glossapp.services import party_service

router = APIRouter()


@router.get("/washers", response_model=list[WasherOut], summary="List washers")
def list_washers(include_inactive: bool = False, db: Session = Depends(get_db),
                 caller: Caller = Depends(get_caller)):
    return party_service.list_washers(db, caller, include_inactive)


@router.post("/washers", response_model=WasherOut, status_code=201, summary="Create a washer (admin)")
def create_washer(body: WasherCreate, db: Session = Depends(get_db), caller: Caller = Depends(get_caller)):
    return party_service.create_washer(
        db, caller, body.username, name=body.name, surname=body.surname, contact=body.contact,
        salary_percentage=body.salary_percentage, active=body.active,
    )


@router.put("/washers/{washer_id}", response_model=WasherOut, summary="Update a washer (admin)")
def update_washer(washer_id: int, body: WasherUpdate, db: Session = Depends(get_db),
                  caller: Caller = Depends(get_caller)):
    return party_service.update_washer(db, caller, washer_id, body.model_dump(exclude_unset=True))


@router.delete("/washers/{washer_id}", summary="Delete a washer without records (admin + master PIN)")
def delete_washer(
    washer_id: int,
    body: Optional[MasterPinBody] = None,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
    secrets: SecretVerifier = Depends(get_secret_verifier),
):
    party_service.delete_washer(db, caller, secrets, washer_id, body.master_pin if body else None)
    return {"status": "deleted", "id": washer_id}
