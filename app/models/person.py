# app/models/person.py
"""
People known to the gate: employees, drivers, officers, the CEO.
Looked up by barcode (canonical token) from every scan flow.
Never deleted. Deactivation flips status so ledger history stays valid.
"""

from sqlalchemy import Column, Integer, String, DateTime
from app.database import Base


class Person(Base):
    __tablename__ = "people"

    id = Column(Integer, primary_key=True, autoincrement=True)
    barcode = Column(String(64), unique=True, nullable=False, index=True)
    pin = Column(String(4), nullable=False)
    name = Column(String(200), nullable=False)
    role = Column(String(30), nullable=False, index=True)       # see enums.Role
    department = Column(String(100))
    status = Column(String(20), default="active", nullable=False, index=True)  # active | inactive
    created_at = Column(DateTime)
    updated_at = Column(DateTime)

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    def __repr__(self):
        return f"<Person {self.id} {self.name} role={self.role} status={self.status}>"
