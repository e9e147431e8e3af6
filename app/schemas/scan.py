# app/schemas/scan.py
from pydantic import BaseModel
from typing import Optional


class NormalizeIn(BaseModel):
    raw: str


class ScanEventIn(BaseModel):
    raw: str                             # one key name (keystroke), a decode (camera) or typed text (manual)
    source: str                          # keystroke | camera | manual
    timestamp: Optional[float] = None    # seconds on the terminal clock; server clock if omitted


class ScanSourceIn(BaseModel):
    source: str


class ScanResultOut(BaseModel):
    accepted: bool
    token: Optional[str] = None
