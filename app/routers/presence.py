# app/routers/presence.py
"""Visitors and staff personal vehicles on premises."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional

from app.config import settings
from app.database import get_db
from app.routers.deps import get_officer_context
from app.schemas.presence import PresenceOut, StaffVehicleIn, VisitorIn
from app.services import presence_service
from app.services.errors import raise_for_result
from app.services.identity_service import OfficerContext

router = APIRouter()


@router.post("/presence/visitors", response_model=PresenceOut, status_code=201, summary="Register a visitor")
def register_visitor(body: VisitorIn, db: Session = Depends(get_db),
                     ctx: OfficerContext = Depends(get_officer_context)):
    return raise_for_result(presence_service.register_visitor(db, ctx, **body.model_dump()))


@router.post("/presence/staff-vehicles", response_model=PresenceOut, status_code=201,
             summary="Staff personal vehicle in")
def staff_vehicle_entry(body: StaffVehicleIn, db: Session = Depends(get_db),
                        ctx: OfficerContext = Depends(get_officer_context)):
    return raise_for_result(presence_service.register_staff_vehicle_entry(
        db, ctx, body.staff_barcode, body.vehicle_registration))


@router.post("/presence/{record_id}/exit", response_model=PresenceOut, summary="Sign a visitor or staff vehicle out")
def register_exit(record_id: int, db: Session = Depends(get_db),
                  ctx: OfficerContext = Depends(get_officer_context)):
    return raise_for_result(presence_service.register_exit(db, ctx, record_id))


@router.get("/presence", response_model=list[PresenceOut], summary="Presence log")
def list_presence(status: Optional[str] = None, visitor_type: Optional[str] = None,
                  limit: int = settings.DEFAULT_LIST_LIMIT, db: Session = Depends(get_db)):
    """Newest first. `status=on_premises` for who is inside right now."""
    return raise_for_result(presence_service.list_presence(db, status=status, visitor_type=visitor_type, limit=limit))


@router.get("/presence/on-premises", response_model=list[PresenceOut], summary="Who is inside right now")
def on_premises(visitor_type: Optional[str] = None, db: Session = Depends(get_db)):
    return raise_for_result(presence_service.list_on_premises(db, visitor_type=visitor_type))
