# glossapp/models/washer.py
"""
Washers table.
username is the stable identity and never changes after creation.
salary_percentage is the commission rate applied when a record is priced.
"""

from sqlalchemy import Column, Integer, String, DateTime, Boolean, Numeric
from glossapp.database import Base


class Washer(Base):
    __tablename__ = "washers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(100), unique=True, nullable=False, index=True)
    name = Column(String(100))
    surname = Column(String(100))
    contact = Column(String(200))
    active = Column(Boolean, default=True, nullable=False)
    salary_percentage = Column(Numeric(5, 2), default=0, nullable=False)   # 0–100
    created_at = Column(DateTime, nullable=False)

    def __repr__(self):
        return f"<Washer {self.username} salary={self.salary_percentage}% active={self.active}>"
