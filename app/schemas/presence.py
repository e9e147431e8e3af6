# app/schemas/presence.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class VisitorIn(BaseModel):
    visitor_name: str
    purpose: str
    visitor_type: str = "walk_in"        # walk_in | vehicle
    organization: Optional[str] = None
    host_id: Optional[int] = None
    vehicle_registration: Optional[str] = None


class StaffVehicleIn(BaseModel):
    staff_barcode: str
    vehicle_registration: str


class PresenceOut(BaseModel):
    id: int
    visitor_type: str
    person_id: Optional[int]
    visitor_name: str
    organization: Optional[str]
    purpose: Optional[str]
    host_id: Optional[int]
    vehicle_registration: Optional[str]
    entered_at: datetime
    exited_at: Optional[datetime]
    status: str

    class Config:
        from_attributes = True
