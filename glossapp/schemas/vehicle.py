# glossapp/schemas/vehicle.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class VehicleCreate(BaseModel):
    license_plate: str
    car_category: str        # code or legacy name


class VehicleUpdate(BaseModel):
    license_plate: Optional[str] = None
    car_category: Optional[str] = None


class VehicleOut(BaseModel):
    id: int
    license_plate: str
    car_category: str
    created_at: datetime
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class PaginationOut(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class VehiclePageOut(BaseModel):
    vehicles: list[VehicleOut]
    pagination: PaginationOut
