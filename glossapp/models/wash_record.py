# glossapp/models/wash_record.py
"""
Wash records table: one row per wash job.
Holds live foreign keys AND snapshot copies (plate, company name, washer
username, categories, discount) so later edits to vehicles, companies or
washers never rewrite history. Prices are stored, not recomputed on read.
"""

from sqlalchemy import Column, Integer, String, DateTime, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from glossapp.database import Base

PAYMENT_METHODS = ("cash", "card")


class WashRecord(Base):
    __tablename__ = "wash_records"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Live references
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    washer_id = Column(Integer, ForeignKey("washers.id"), nullable=False, index=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="SET NULL"), index=True)
    discount_id = Column(Integer, ForeignKey("discounts.id", ondelete="SET NULL"))

    # Snapshots
    license_plate = Column(String(20), nullable=False, index=True)
    company_name = Column(String(200))
    washer_username = Column(String(100), nullable=False)
    car_category = Column(String(50), nullable=False, index=True)
    wash_type = Column(String(50), nullable=False, index=True)
    custom_service_name = Column(String(200))   # only for wash_type CUSTOM
    discount_percentage = Column(Integer, default=0, nullable=False)
    box_number = Column(Integer, default=0, nullable=False)

    # Money
    original_price = Column(Numeric(10, 2), nullable=False)
    discounted_price = Column(Numeric(10, 2), nullable=False)
    washer_cut = Column(Numeric(10, 2), nullable=False)

    # Lifecycle
    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime)
    payment_method = Column(String(10))   # cash | card

    created_by_id = Column(String(100), nullable=False)
    created_at = Column(DateTime, nullable=False, index=True)
    updated_at = Column(DateTime)

    vehicle = relationship("Vehicle", back_populates="wash_records")
    washer = relationship("Washer")
    company = relationship("Company")

    @property
    def is_finished(self) -> bool:
        return self.end_time is not None

    @property
    def is_paid(self) -> bool:
        return self.payment_method is not None

    def __repr__(self):
        return (f"<WashRecord {self.id} plate={self.license_plate} "
                f"finished={self.is_finished} paid={self.is_paid}>")
