# app/models/custody_transaction.py
"""
Custody ledger — one row per holder-out / holder-in cycle of a key or vehicle.
Rows are appended by checkout and closed by checkin / force close; never deleted.

The partial unique index allows at most one open row per asset. The service
layer already enforces this with a conditional update; the index is what the
database itself refuses.
"""

from sqlalchemy import Boolean, Column, Integer, String, DateTime, Text, ForeignKey, Index, text
from sqlalchemy.orm import relationship
from app.database import Base


class CustodyTransaction(Base):
    __tablename__ = "custody_transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    asset_id = Column(Integer, ForeignKey("assets.id"), nullable=False, index=True)
    asset_class = Column(String(20), nullable=False, index=True)   # key | vehicle

    # Class-specific payload
    purpose = Column(Text)                    # keys
    destination = Column(Text)                # vehicles
    odometer_start = Column(Integer)          # vehicles
    odometer_end = Column(Integer)            # vehicles, set on close

    holder_out_id = Column(Integer, ForeignKey("people.id"), nullable=False)
    officer_out_id = Column(Integer, ForeignKey("people.id"), nullable=False)
    opened_at = Column(DateTime, nullable=False, index=True)

    holder_in_id = Column(Integer, ForeignKey("people.id"))
    officer_in_id = Column(Integer, ForeignKey("people.id"))
    closed_at = Column(DateTime)

    reconciliation_reason = Column(String(40))   # required when holder_in != holder_out
    reconciliation_note = Column(Text)
    force_closed = Column(Boolean, default=False, nullable=False)
    admin_note = Column(Text)

    status = Column(String(10), default="open", nullable=False, index=True)   # open | closed

    asset = relationship("Asset", lazy="joined")
    holder_out = relationship("Person", foreign_keys=[holder_out_id], lazy="joined")
    officer_out = relationship("Person", foreign_keys=[officer_out_id])
    holder_in = relationship("Person", foreign_keys=[holder_in_id], lazy="joined")
    officer_in = relationship("Person", foreign_keys=[officer_in_id])

    __table_args__ = (
        Index(
            "uq_custody_open_per_asset",
            "asset_id",
            unique=True,
            postgresql_where=text("status = 'open'"),
            sqlite_where=text("status = 'open'"),
        ),
    )

    @property
    def distance(self):
        if self.odometer_start is None or self.odometer_end is None:
            return None
        return self.odometer_end - self.odometer_start

    def __repr__(self):
        return f"<CustodyTransaction {self.id} asset={self.asset_id} status={self.status}>"
