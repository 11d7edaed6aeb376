# glossapp/models/company.py
"""
Companies and their discount options.
Walk-in (physical person) discounts are not stored here: a record carries
company_id = NULL and its own discount_percentage instead.
"""

from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from glossapp.database import Base


class Company(Base):
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False, index=True)
    contact = Column(String(200), nullable=False)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime)

    discounts = relationship(
        "Discount",
        back_populates="company",
        cascade="all, delete-orphan",
        order_by="Discount.percentage",
    )

    def __repr__(self):
        return f"<Company {self.id} name={self.name}>"


class Discount(Base):
    __tablename__ = "discounts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    percentage = Column(Integer, nullable=False)   # 0–100
    active = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(DateTime, nullable=False)

    company = relationship("Company", back_populates="discounts")

    def __repr__(self):
        return f"<Discount {self.id} company={self.company_id} {self.percentage}% active={self.active}>"
