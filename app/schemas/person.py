# app/schemas/person.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class PersonCreate(BaseModel):
    barcode: str
    pin: str                 # exactly 4 digits
    name: str
    role: str                # driver | security_control | security_gate | ceo | staff | supervisor | admin
    department: Optional[str] = None
    status: str = "active"


class PersonUpdate(BaseModel):
    barcode: Optional[str] = None
    pin: Optional[str] = None
    name: Optional[str] = None
    role: Optional[str] = None
    department: Optional[str] = None
    status: Optional[str] = None


class PersonOut(BaseModel):
    id: int
    barcode: str
    name: str
    role: str
    department: Optional[str]
    status: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PersonBrief(BaseModel):
    id: int
    name: str
    role: str
    department: Optional[str] = None

    class Config:
        from_attributes = True


class OfficerLogin(BaseModel):
    barcode: str
    pin: str
