# app/services/presence_service.py
"""
Presence on premises: walk-in visitors, visitor vehicles, staff personal
vehicles, and the CEO vehicle location flag.

Entry inserts an on_premises record; exit flips it to departed with a
conditional update so two gate officers can't both sign the same visitor out.
"""

from datetime import datetime

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.models.asset import Asset
from app.models.enums import VehicleLocation, VisitorType
from app.models.person import Person
from app.models.presence_record import PresenceRecord
from app.services.errors import Conflict, NotFound, ValidationError, service_operation
from app.services.identity_service import (
    CEO_ROLES, OFFICER_ROLES, STAFF_ROLES, OfficerContext, require_person, require_role,
)
from app.utils.logger import audit, get_logger

logger = get_logger(__name__)

STAFF_VEHICLE_PURPOSE = "Staff Personal Vehicle"


@service_operation
def register_visitor(db: Session, ctx: OfficerContext, visitor_name: str, purpose: str,
                     visitor_type: str = "walk_in", organization: str = None,
                     host_id: int = None, vehicle_registration: str = None,
                     now: datetime = None) -> PresenceRecord:
    require_role(ctx, OFFICER_ROLES, "register visitors")
    if not (visitor_name or "").strip() or not (purpose or "").strip():
        raise ValidationError("Please enter visitor name and purpose")
    try:
        visitor_type = VisitorType(visitor_type)
    except ValueError:
        raise ValidationError(f"Unknown visitor type '{visitor_type}'")
    if visitor_type == VisitorType.STAFF_VEHICLE:
        raise ValidationError("Staff vehicles are registered by badge scan")
    if visitor_type == VisitorType.VEHICLE and not (vehicle_registration or "").strip():
        raise ValidationError("Vehicle registration is required for vehicle visitors")
    if host_id is not None:
        host = db.get(Person, host_id)
        if host is None or not host.is_active:
            raise NotFound(f"Host {host_id} not found")

    record = PresenceRecord(
        visitor_type=visitor_type.value,
        visitor_name=visitor_name.strip(),
        organization=organization or None,
        purpose=purpose.strip(),
        host_id=host_id,
        vehicle_registration=(vehicle_registration or "").strip().upper() or None,
        officer_in_id=ctx.officer_id,
        entered_at=now or datetime.utcnow(),
        status="on_premises",
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    audit(logger, "PRESENCE", action="entry", record=record.id, type=record.visitor_type,
          officer=ctx.officer_id)
    return record


@service_operation
def register_staff_vehicle_entry(db: Session, ctx: OfficerContext, staff_token: str,
                                 vehicle_registration: str, now: datetime = None) -> PresenceRecord:
    require_role(ctx, OFFICER_ROLES, "register staff vehicles")
    staff = require_person(db, staff_token, STAFF_ROLES, label="Staff member")
    registration = (vehicle_registration or "").strip().upper()
    if not registration:
        raise ValidationError("Vehicle registration is required")

    record = PresenceRecord(
        visitor_type=VisitorType.STAFF_VEHICLE.value,
        person_id=staff.id,
        visitor_name=staff.name,
        organization=staff.department,
        purpose=STAFF_VEHICLE_PURPOSE,
        vehicle_registration=registration,
        officer_in_id=ctx.officer_id,
        entered_at=now or datetime.utcnow(),
        status="on_premises",
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    audit(logger, "PRESENCE", action="staff_vehicle_entry", record=record.id, person=staff.id,
          plate=registration, officer=ctx.officer_id)
    return record


@service_operation
def register_exit(db: Session, ctx: OfficerContext, record_id: int, now: datetime = None) -> PresenceRecord:
    require_role(ctx, OFFICER_ROLES, "sign visitors out")
    record = db.get(PresenceRecord, record_id)
    if record is None:
        raise NotFound(f"Presence record {record_id} not found")

    stmt = (
        update(PresenceRecord)
        .where(PresenceRecord.id == record_id, PresenceRecord.status == "on_premises")
        .values(status="departed", exited_at=now or datetime.utcnow(), officer_out_id=ctx.officer_id)
        .execution_options(synchronize_session=False)
    )
    if db.execute(stmt).rowcount != 1:
        raise Conflict(f"{record.visitor_name} has already departed")
    db.commit()
    db.refresh(record)
    audit(logger, "PRESENCE", action="exit", record=record.id, officer=ctx.officer_id)
    return record


@service_operation
def list_presence(db: Session, status: str = None, visitor_type: str = None, limit: int = 50) -> list:
    q = db.query(PresenceRecord)
    if status:
        q = q.filter(PresenceRecord.status == status)
    if visitor_type:
        q = q.filter(PresenceRecord.visitor_type == visitor_type)
    return q.order_by(PresenceRecord.entered_at.desc()).limit(limit).all()


@service_operation
def list_on_premises(db: Session, visitor_type: str = None) -> list:
    return list_presence(db, status="on_premises", visitor_type=visitor_type, limit=None).unwrap()


@service_operation
def set_ceo_vehicle_location(db: Session, ctx: OfficerContext, asset_id: int, ceo_token: str,
                             location: str) -> Asset:
    """CEO vehicles don't go through trips; the gate only records in/out."""
    require_role(ctx, OFFICER_ROLES, "record CEO vehicle movements")
    try:
        location = VehicleLocation(location)
    except ValueError:
        raise ValidationError(f"Unknown location '{location}'")
    asset = db.get(Asset, asset_id)
    if asset is None or not asset.is_vehicle or asset.subtype != "ceo":
        raise NotFound(f"CEO vehicle {asset_id} not found")
    ceo = require_person(db, ceo_token, CEO_ROLES, label="CEO")

    asset.location = location.value
    asset.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(asset)
    audit(logger, "PRESENCE", action="ceo_vehicle", asset=asset.id, location=location.value,
          person=ceo.id, officer=ctx.officer_id)
    return asset
