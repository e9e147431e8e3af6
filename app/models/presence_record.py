# app/models/presence_record.py
"""
Visitor and staff-vehicle presence log.
Structurally parallel to the custody ledger (entry → exit) but with no
uniqueness rule: the same name or plate may be on premises twice.
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from app.database import Base


class PresenceRecord(Base):
    __tablename__ = "presence_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    visitor_type = Column(String(20), nullable=False, index=True)   # walk_in | vehicle | staff_vehicle
    person_id = Column(Integer, ForeignKey("people.id"))            # known staff, else NULL
    visitor_name = Column(String(200), nullable=False)
    organization = Column(String(200))
    purpose = Column(Text)
    host_id = Column(Integer, ForeignKey("people.id"))
    vehicle_registration = Column(String(50), index=True)
    officer_in_id = Column(Integer, ForeignKey("people.id"), nullable=False)
    officer_out_id = Column(Integer, ForeignKey("people.id"))
    entered_at = Column(DateTime, nullable=False, index=True)
    exited_at = Column(DateTime)
    status = Column(String(20), default="on_premises", nullable=False, index=True)

    host = relationship("Person", foreign_keys=[host_id])

    def __repr__(self):
        return f"<PresenceRecord {self.id} {self.visitor_name} status={self.status}>"
