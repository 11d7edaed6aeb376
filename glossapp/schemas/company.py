# glossapp/schemas/company.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class CompanyCreate(BaseModel):
    name: str
    contact: str
    discount_percentages: Optional[list[int]] = None


class CompanyUpdate(BaseModel):
    name: Optional[str] = None
    contact: Optional[str] = None
    discount_percentages: Optional[list[int]] = None   # replaces the active set


class DiscountOut(BaseModel):
    id: int
    company_id: int
    percentage: int
    active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class CompanyOut(BaseModel):
    id: int
    name: str
    contact: str
    discounts: list[DiscountOut]
    created_at: datetime
    updated_at: Optional[datetime]


class DiscountRowOut(BaseModel):
    id: str                        # numeric id or physical-<pct>
    company_id: Optional[int]
    company_name: str
    percentage: int
    active: bool
    created_at: Optional[datetime]


class DiscountOptionOut(BaseModel):
    label: str
    company_id: Optional[int]
    company_name: Optional[str]
    discount_percentage: int
    discount_id: str


class DiscountUpdate(BaseModel):
    active: Optional[bool] = None
    percentage: Optional[int] = None
