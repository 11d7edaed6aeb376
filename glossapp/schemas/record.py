# glossapp/schemas/record.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class RecordCreate(BaseModel):
    license_plate: str
    car_category: str                     # code (SEDAN) or legacy name (Sedan)
    wash_type: str                        # code (COMPLETE) or legacy name (Complete Wash)
    washer_id: Optional[int] = None
    washer_username: Optional[str] = None
    company_id: Optional[int] = None      # None = walk-in
    discount_percentage: Optional[float] = 0
    price: Optional[float] = None         # explicit override, required for CUSTOM
    box_number: Optional[int] = 0
    custom_service_name: Optional[str] = None


class RecordUpdate(BaseModel):
    """Partial update. Only fields present in the request body are applied."""
    master_pin: Optional[str] = None
    license_plate: Optional[str] = None
    car_category: Optional[str] = None
    wash_type: Optional[str] = None
    washer_id: Optional[int] = None
    washer_username: Optional[str] = None
    company_id: Optional[int] = None
    discount_percentage: Optional[float] = None
    price: Optional[float] = None
    box_number: Optional[int] = None
    custom_service_name: Optional[str] = None
    is_finished: Optional[bool] = None
    is_paid: Optional[bool] = None
    payment_method: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None


class RecordPay(BaseModel):
    payment_method: str                   # cash | card


class MasterPinBody(BaseModel):
    master_pin: Optional[str] = None


class RecordOut(BaseModel):
    id: int
    vehicle_id: int
    washer_id: int
    company_id: Optional[int]
    discount_id: Optional[int]
    license_plate: str
    company_name: Optional[str]
    washer_username: str
    car_category: str
    wash_type: str
    custom_service_name: Optional[str]
    discount_percentage: int
    box_number: int
    original_price: float
    discounted_price: float
    washer_cut: float
    start_time: datetime
    end_time: Optional[datetime]
    payment_method: Optional[str]
    is_finished: bool
    is_paid: bool
    created_by_id: str
    created_at: datetime
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class FinishOut(BaseModel):
    record: RecordOut
    changed: bool


class PaymentSummaryOut(BaseModel):
    record_count: int
    unfinished_count: int
    cash: float
    card: float
    total: float
    washer_cut: float
