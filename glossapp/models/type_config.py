# glossapp/models/type_config.py
"""
Admin-configurable taxonomies: car types and wash types.
Codes are the canonical values stored on vehicles, pricing and records.
"""

from sqlalchemy import Column, Integer, String, DateTime, Boolean
from glossapp.database import Base


class _TypeConfigColumns:
    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(50), unique=True, nullable=False, index=True)
    display_name_ka = Column(String(100), nullable=False)
    display_name_en = Column(String(100), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime)
    updated_at = Column(DateTime)

    def __repr__(self):
        return f"<{type(self).__name__} {self.code} active={self.is_active} order={self.sort_order}>"


class CarTypeConfig(_TypeConfigColumns, Base):
    __tablename__ = "car_types"


class WashTypeConfig(_TypeConfigColumns, Base):
    __tablename__ = "wash_types"
