# app/services/overdue_service.py
"""
Overdue custody alerts.

A transaction is overdue when it has been open strictly longer than the
threshold for its asset class (settings.OVERDUE_THRESHOLDS by default).
A class with no threshold never alerts. Pure read: nothing is written,
so the dashboard can poll it as often as it likes.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.models.custody_transaction import CustodyTransaction
from app.services.custody_service import list_open_transactions
from app.services.errors import service_operation


@dataclass
class OverdueAlert:
    transaction: CustodyTransaction
    elapsed: timedelta

    @property
    def elapsed_label(self) -> str:
        return format_elapsed(self.elapsed)


def format_elapsed(elapsed: timedelta) -> str:
    """Whole days from 24h up, whole hours below."""
    hours = int(elapsed.total_seconds() // 3600)
    if hours >= 24:
        return f"{hours // 24} day(s)"
    return f"{hours} hour(s)"


def _normalize_thresholds(thresholds: Optional[dict]) -> dict:
    thresholds = settings.OVERDUE_THRESHOLDS if thresholds is None else thresholds
    # Accept AssetClass members or their string values as keys
    return {getattr(k, "value", k): v for k, v in thresholds.items()}


def find_overdue(transactions: Iterable[CustodyTransaction], now: datetime,
                 thresholds: dict = None) -> list:
    limits = _normalize_thresholds(thresholds)
    alerts = []
    for tx in transactions:
        if tx.status != "open":
            continue
        limit = limits.get(tx.asset_class)
        if limit is None:
            continue
        elapsed = now - tx.opened_at
        if elapsed > limit:
            alerts.append(OverdueAlert(transaction=tx, elapsed=elapsed))
    alerts.sort(key=lambda a: a.transaction.opened_at)
    return alerts


@service_operation
def scan(db: Session, now: datetime = None, thresholds: dict = None) -> list:
    """Overdue open transactions, oldest first."""
    return find_overdue(list_open_transactions(db).unwrap(), now or datetime.utcnow(), thresholds)
