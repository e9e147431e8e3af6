# app/routers/alerts.py
"""Overdue custody alerts — polled by the dashboard."""

from datetime import timedelta
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional

from app.config import settings
from app.database import get_db
from app.schemas.custody import OverdueAlertOut
from app.services import overdue_service
from app.services.errors import raise_for_result

router = APIRouter()


@router.get("/alerts/overdue", response_model=list[OverdueAlertOut], summary="Keys and vehicles out too long")
def overdue_alerts(
    vehicle_hours: Optional[int] = None,
    key_hours: Optional[int] = None,
    db: Session = Depends(get_db),
):
    """Oldest first. Thresholds default to OVERDUE_VEHICLE_HOURS / OVERDUE_KEY_HOURS."""
    thresholds = dict(settings.OVERDUE_THRESHOLDS)
    if vehicle_hours is not None:
        thresholds["vehicle"] = timedelta(hours=vehicle_hours)
    if key_hours is not None:
        thresholds["key"] = timedelta(hours=key_hours)

    return [
        OverdueAlertOut(
            transaction_id=a.transaction.id,
            asset_id=a.transaction.asset_id,
            asset_number=a.transaction.asset.number if a.transaction.asset else None,
            asset_class=a.transaction.asset_class,
            holder_name=a.transaction.holder_out.name if a.transaction.holder_out else None,
            opened_at=a.transaction.opened_at,
            elapsed_hours=int(a.elapsed.total_seconds() // 3600),
            elapsed=a.elapsed_label,
        )
        for a in raise_for_result(overdue_service.scan(db, thresholds=thresholds))
    ]
