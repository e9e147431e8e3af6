# app/routers/health.py
"""
System health check endpoint.
Returns status of backend + DB, plus the one-open-transaction-per-asset check.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import func, text
from sqlalchemy.exc import SQLAlchemyError
from app.database import get_db
from app.config import settings
from app.models.custody_transaction import CustodyTransaction
from datetime import datetime

router = APIRouter()


@router.get("/health", summary="System health check")
def health_check(db: Session = Depends(get_db)):
    """
    Returns:
    - Backend status
    - Database connectivity
    - Assets with more than one open custody transaction (must always be empty)
    """
    result = {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat(),
        "backend": "ok",
        "database": "unknown",
        "double_custody_assets": [],
        "overdue_thresholds_hours": {
            "vehicle": settings.OVERDUE_VEHICLE_HOURS,
            "key": settings.OVERDUE_KEY_HOURS,
        },
    }

    try:
        db.execute(text("SELECT 1"))
        result["database"] = "ok"
    except SQLAlchemyError as e:
        result["database"] = f"error: {str(e)}"
        result["status"] = "degraded"
        return result

    doubles = (
        db.query(CustodyTransaction.asset_id)
        .filter(CustodyTransaction.status == "open")
        .group_by(CustodyTransaction.asset_id)
        .having(func.count(CustodyTransaction.id) > 1)
        .all()
    )
    if doubles:
        result["double_custody_assets"] = [row[0] for row in doubles]
        result["status"] = "degraded"

    return result
