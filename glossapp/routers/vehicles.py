# glossapp/routers/vehicles.py
"""Vehicle registry: plate autocomplete for the record form, admin CRUD."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from glossapp.auth import Caller, SecretVerifier, get_caller, get_secret_verifier
from glossapp.config import settings
from glossapp.database import get_db
from glossapp.schemas.record import MasterPinBody
from glossapp.schemas.vehicle import VehicleCreate, VehicleOut, VehiclePageOut, VehicleUpdate
from glossapp.services import party_service

router = APIRouter()


@router.get("/vehicles/search", response_model=list[VehicleOut], summary="Plate autocomplete")
def search_vehicles(q: Optional[str] = None, limit: Optional[int] = Query(None, ge=1, le=100),
                    db: Session = Depends(get_db), caller: Caller = Depends(get_caller)):
    return party_service.search_vehicles(db, q, limit)


@router.get("/vehicles", response_model=VehiclePageOut, summary="List vehicles (admin)")
def list_vehicles(
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_RECORD_LIMIT, ge=1),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    return party_service.list_vehicles(db, caller, search, page, limit)


@router.post("/vehicles", response_model=VehicleOut, status_code=201, summary="Register a vehicle (admin)")
def create_vehicle(body: VehicleCreate, db: Session = Depends(get_db), caller: Caller = Depends(get_caller)):
    return party_service.create_vehicle(db, caller, body.license_plate, body.car_category)


@router.put("/vehicles/{vehicle_id}", response_model=VehicleOut, summary="Update a vehicle (admin)")
def update_vehicle(vehicle_id: int, body: VehicleUpdate, db: Session = Depends(get_db),
                   caller: Caller = Depends(get_caller)):
    return party_service.update_vehicle(db, caller, vehicle_id, body.license_plate, body.car_category)


@router.delete("/vehicles/{vehicle_id}", summary="Remove a vehicle without records (admin + master PIN)")
def delete_vehicle(
    vehicle_id: int,
    body: Optional[MasterPinBody] = None,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
    secrets: SecretVerifier = Depends(get_secret_verifier),
):
    party_service.delete_vehicle(db, caller, secrets, vehicle_id, body.master_pin if body else None)
    return {"status": "removed", "id": vehicle_id}
