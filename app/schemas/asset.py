# app/schemas/asset.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class AssetCreate(BaseModel):
    number: str                          # key number or vehicle registration
    asset_class: str                     # key | vehicle
    subtype: str                         # vehicle: company | ceo | personal; key: vehicle | warehouse | office | other
    description: Optional[str] = None
    linked_asset_id: Optional[int] = None
    last_odometer: Optional[int] = None


class AssetUpdate(BaseModel):
    number: Optional[str] = None
    subtype: Optional[str] = None
    description: Optional[str] = None
    linked_asset_id: Optional[int] = None
    location: Optional[str] = None


class AssetOut(BaseModel):
    id: int
    number: str
    asset_class: str
    subtype: str
    status: str
    linked_asset_id: Optional[int]
    description: Optional[str]
    last_odometer: Optional[int]
    location: Optional[str]
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AssetStateOut(BaseModel):
    asset: AssetOut
    status: str                          # available | in_custody (from the ledger)
    transaction_id: Optional[int] = None
    holder_name: Optional[str] = None
    opened_at: Optional[datetime] = None


class CeoLocationUpdate(BaseModel):
    ceo_barcode: str
    location: str                        # on_premises | off_premises


class LiveStatusOut(BaseModel):
    keys_available: int
    keys_out: int
    vehicles_available: int
    vehicles_out: int
    ceo_vehicles_off_premises: int
    visitors_on_premises: int
    poll_seconds: int
