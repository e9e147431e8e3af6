# app/schemas/custody.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional

from app.schemas.person import PersonBrief


class KeyCheckoutIn(BaseModel):
    asset_id: int
    holder_barcode: str
    purpose: str


class VehicleCheckoutIn(BaseModel):
    asset_id: int
    holder_barcode: str
    destination: str
    odometer_start: int


class KeyCheckinIn(BaseModel):
    returning_barcode: str
    reason: Optional[str] = None         # required when someone else returns it
    note: Optional[str] = None           # required with reason "other"


class VehicleCheckinIn(KeyCheckinIn):
    odometer_end: int


class ForceCloseIn(BaseModel):
    note: str
    odometer_end: Optional[int] = None     # vehicles only; omitted means no reading taken


class CustodyTransactionOut(BaseModel):
    id: int
    asset_id: int
    asset_class: str
    purpose: Optional[str]
    destination: Optional[str]
    odometer_start: Optional[int]
    odometer_end: Optional[int]
    distance: Optional[int]
    holder_out: PersonBrief
    officer_out_id: int
    opened_at: datetime
    holder_in: Optional[PersonBrief]
    officer_in_id: Optional[int]
    closed_at: Optional[datetime]
    reconciliation_reason: Optional[str]
    reconciliation_note: Optional[str]
    force_closed: bool
    admin_note: Optional[str]
    status: str

    class Config:
        from_attributes = True


class OverdueAlertOut(BaseModel):
    transaction_id: int
    asset_id: int
    asset_number: Optional[str]
    asset_class: str
    holder_name: Optional[str]
    opened_at: datetime
    elapsed_hours: int
    elapsed: str                         # "4 day(s)" | "5 hour(s)"
