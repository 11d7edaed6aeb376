# glossapp/models/vehicle.py
"""
Vehicles table.
One row per license plate. car_category follows the most recent wash record
that referenced the plate (last write wins, no history kept here).
"""

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from glossapp.database import Base


class Vehicle(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    license_plate = Column(String(20), unique=True, nullable=False, index=True)
    car_category = Column(String(50), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime)

    wash_records = relationship("WashRecord", back_populates="vehicle")

    def __repr__(self):
        return f"<Vehicle {self.license_plate} category={self.car_category}>"
