# glossapp/routers/types.py
"""Car type / wash type configuration. Reads for everyone, writes need admin + master PIN."""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from glossapp.auth import Caller, SecretVerifier, get_caller, get_secret_verifier
from glossapp.database import get_db
from glossapp.schemas.record import MasterPinBody
from glossapp.schemas.type_config import TypeConfigCreate, TypeConfigOut, TypeConfigUpdate
from glossapp.services import taxonomy_service
from glossapp.services.legacy_mappings import car_type_label, wash_type_label

router = APIRouter()


@router.get("/types/{kind}", response_model=list[TypeConfigOut], summary="List car or wash types")
def list_types(kind: str, active_only: bool = False, db: Session = Depends(get_db),
               caller: Caller = Depends(get_caller)):
    return taxonomy_service.list_types(db, kind, active_only)


@router.get("/types/{kind}/labels", summary="Localized labels for the active types")
def type_labels(kind: str, lang: str = "ka", db: Session = Depends(get_db), caller: Caller = Depends(get_caller)):
    label = car_type_label if kind == taxonomy_service.KIND_CAR else wash_type_label
    types = taxonomy_service.list_types(db, kind, active_only=True)
    return {t.code: (t.display_name_en if lang == "en" else t.display_name_ka) or label(t.code, lang) for t in types}


@router.post("/types/{kind}", response_model=TypeConfigOut, status_code=201, summary="Create a type")
def create_type(
    kind: str,
    body: TypeConfigCreate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
    secrets: SecretVerifier = Depends(get_secret_verifier),
):
    return taxonomy_service.create_type(
        db, caller, secrets, kind, body.code, body.display_name_ka, body.display_name_en,
        is_active=body.is_active, sort_order=body.sort_order, master_pin=body.master_pin,
    )


@router.put("/types/{kind}/{type_id}", response_model=TypeConfigOut, summary="Update a type")
def update_type(
    kind: str,
    type_id: int,
    body: TypeConfigUpdate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
    secrets: SecretVerifier = Depends(get_secret_verifier),
):
    fields = body.model_dump(exclude_unset=True)
    master_pin = fields.pop("master_pin", None)
    return taxonomy_service.update_type(db, caller, secrets, kind, type_id, fields, master_pin)


@router.delete("/types/{kind}/{type_id}", summary="Delete an unused type")
def delete_type(
    kind: str,
    type_id: int,
    body: Optional[MasterPinBody] = None,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
    secrets: SecretVerifier = Depends(get_secret_verifier),
):
    taxonomy_service.delete_type(db, caller, secrets, kind, type_id, body.master_pin if body else None)
    return {"status": "deleted", "id": type_id}
