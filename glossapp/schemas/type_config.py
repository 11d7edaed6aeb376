# glossapp/schemas/type_config.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class TypeConfigCreate(BaseModel):
    master_pin: Optional[str] = None
    code: str
    display_name_ka: str
    display_name_en: str
    is_active: bool = True
    sort_order: int = 0


class TypeConfigUpdate(BaseModel):
    master_pin: Optional[str] = None
    code: Optional[str] = None
    display_name_ka: Optional[str] = None
    display_name_en: Optional[str] = None
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None


class TypeConfigOut(BaseModel):
    id: int
    code: str
    display_name_ka: str
    display_name_en: str
    is_active: bool
    sort_order: int
    in_use: bool = False
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True
