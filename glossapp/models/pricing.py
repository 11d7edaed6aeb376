# glossapp/models/pricing.py
"""
Pricing matrix table.
One row per (car_category, wash_type). Bulk edits upsert the price in place;
overwritten prices are not kept.
"""

from sqlalchemy import Column, Integer, String, DateTime, Numeric, UniqueConstraint
from glossapp.database import Base


class PricingEntry(Base):
    __tablename__ = "pricing"
    __table_args__ = (
        UniqueConstraint("car_category", "wash_type", name="uq_pricing_category_wash"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    car_category = Column(String(50), nullable=False, index=True)
    wash_type = Column(String(50), nullable=False, index=True)
    price = Column(Numeric(10, 2), nullable=False)
    updated_at = Column(DateTime)

    def __repr__(self):
        return f"<PricingEntry {self.car_category}×{self.wash_type}={self.price}>"
