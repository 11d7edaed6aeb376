# glossapp/schemas/washer.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class WasherCreate(BaseModel):
    username: str
    name: Optional[str] = None
    surname: Optional[str] = None
    contact: Optional[str] = None
    salary_percentage: float = 0
    active: bool = True


class WasherUpdate(BaseModel):
    username: Optional[str] = None     # immutable, rejected if it differs
    name: Optional[str] = None
    surname: Optional[str] = None
    contact: Optional[str] = None
    salary_percentage: Optional[float] = None
    active: Optional[bool] = None


class WasherOut(BaseModel):
    id: int
    username: str
    name: Optional[str]
    surname: Optional[str]
    contact: Optional[str]
    active: bool
    salary_percentage: float
    created_at: datetime

    class Config:
        from_attributes = True
