# glossapp/schemas/pricing.py
from pydantic import BaseModel
from typing import Any, Optional


class PricingEntryIn(BaseModel):
    car_category: str
    wash_type: str
    price: Any                 # validated per entry, bad values are skipped


class PricingUpdate(BaseModel):
    """Either the nested matrix {car: {wash: price}} or a flat entry list."""
    matrix: Optional[dict] = None
    entries: Optional[list[PricingEntryIn]] = None


class SkippedEntryOut(BaseModel):
    car_category: Optional[str]
    wash_type: Optional[str]
    price: Any
    reason: str


class UpsertReportOut(BaseModel):
    applied: int
    skipped: list[SkippedEntryOut]
    matrix: dict[str, dict[str, float]]


class QuoteOut(BaseModel):
    car_category: str
    wash_type: str
    discount_percentage: float
    original_price: float
    discounted_price: float
    washer_cut: float
    washer_id: int
    washer_username: str
    salary_percentage: float
