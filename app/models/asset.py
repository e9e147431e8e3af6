# app/models/asset.py
"""
Physical assets held in custody: keys and vehicles.
`status` is a cache of the ledger. Only custody_service (inside the same
DB transaction as the ledger row) and asset_state_service write it.
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey
from app.database import Base


class Asset(Base):
    __tablename__ = "assets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    number = Column(String(50), unique=True, nullable=False, index=True)   # key number | registration
    asset_class = Column(String(20), nullable=False, index=True)           # key | vehicle
    subtype = Column(String(30), nullable=False)
    status = Column(String(20), default="available", nullable=False, index=True)
    linked_asset_id = Column(Integer, ForeignKey("assets.id"))             # key → vehicle
    description = Column(Text)
    last_odometer = Column(Integer, default=0)     # km, vehicles only
    location = Column(String(20))                  # on_premises | off_premises (ceo vehicles)
    created_at = Column(DateTime)
    updated_at = Column(DateTime)

    @property
    def is_vehicle(self) -> bool:
        return self.asset_class == "vehicle"

    def __repr__(self):
        return f"<Asset {self.number} class={self.asset_class} status={self.status}>"
