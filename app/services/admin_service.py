# app/services/admin_service.py
"""
Administrative edits of people and assets.

People are never deleted, only deactivated, so closed ledger rows keep pointing
at them. Barcodes are stored as canonical tokens so scans always match.
Asset status is not editable here; it belongs to the ledger.
"""

from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.asset import Asset
from app.models.enums import ASSET_SUBTYPES, AssetClass, PersonStatus, Role, VehicleLocation
from app.models.person import Person
from app.services.errors import Conflict, NotFound, ValidationError, service_operation
from app.services.identity_service import ADMIN_ROLES, PIN_PATTERN, OfficerContext, require_role
from app.services.scan_normalizer import normalize_token
from app.utils.logger import audit, get_logger

logger = get_logger(__name__)

PERSON_FIELDS = {"barcode", "pin", "name", "role", "department", "status"}
ASSET_FIELDS = {"number", "subtype", "linked_asset_id", "description", "location"}


def _clean_person_fields(fields: dict) -> dict:
    cleaned = {}
    for key, value in fields.items():
        if key not in PERSON_FIELDS:
            raise ValidationError(f"Field '{key}' cannot be edited")
        if key == "barcode":
            value = normalize_token(value)
            if value is None:
                raise ValidationError("Barcode is required")
        elif key == "pin":
            if not isinstance(value, str) or not PIN_PATTERN.fullmatch(value):
                raise ValidationError("PIN must be exactly 4 digits")
        elif key == "name":
            value = (value or "").strip()
            if not value:
                raise ValidationError("Name is required")
        elif key == "role":
            try:
                value = Role(value).value
            except ValueError:
                raise ValidationError(f"Unknown role '{value}'")
        elif key == "status":
            try:
                value = PersonStatus(value).value
            except ValueError:
                raise ValidationError(f"Unknown status '{value}'")
        cleaned[key] = value
    return cleaned


def _commit_unique(db: Session, what: str):
    try:
        db.commit()
    except IntegrityError:
        raise Conflict(f"{what} already exists")


@service_operation
def create_person(db: Session, ctx: OfficerContext, barcode: str, pin: str, name: str, role: str,
                  department: str = None, status: str = "active") -> Person:
    require_role(ctx, ADMIN_ROLES, "manage employees")
    fields = _clean_person_fields({"barcode": barcode, "pin": pin, "name": name, "role": role,
                                   "status": status})
    now = datetime.utcnow()
    person = Person(department=department, created_at=now, updated_at=now, **fields)
    db.add(person)
    _commit_unique(db, f"Barcode {fields['barcode']}")
    db.refresh(person)
    audit(logger, "ADMIN", action="create_person", person=person.id, role=person.role, by=ctx.officer_id)
    return person


@service_operation
def update_person(db: Session, ctx: OfficerContext, person_id: int, **fields) -> Person:
    require_role(ctx, ADMIN_ROLES, "manage employees")
    person = db.get(Person, person_id)
    if person is None:
        raise NotFound(f"Employee {person_id} not found")
    for key, value in _clean_person_fields(fields).items():
        setattr(person, key, value)
    person.updated_at = datetime.utcnow()
    _commit_unique(db, "Barcode")
    db.refresh(person)
    audit(logger, "ADMIN", action="update_person", person=person.id, fields=",".join(sorted(fields)),
          by=ctx.officer_id)
    return person


@service_operation
def deactivate_person(db: Session, ctx: OfficerContext, person_id: int) -> Person:
    require_role(ctx, ADMIN_ROLES, "manage employees")
    person = db.get(Person, person_id)
    if person is None:
        raise NotFound(f"Employee {person_id} not found")
    person.status = PersonStatus.INACTIVE.value
    person.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(person)
    audit(logger, "ADMIN", action="deactivate_person", person=person.id, by=ctx.officer_id)
    return person


def _check_asset_fields(db: Session, asset_class: str, fields: dict, asset_id: int = None):
    subtype = fields.get("subtype")
    if "subtype" in fields and subtype is None:
        raise ValidationError("Subtype is required")
    if subtype is not None and subtype not in ASSET_SUBTYPES[AssetClass(asset_class)]:
        raise ValidationError(f"Subtype '{subtype}' is not valid for a {asset_class}")
    if "number" in fields and not (isinstance(fields["number"], str) and fields["number"].strip()):
        raise ValidationError("Asset number is required")

    linked_id = fields.get("linked_asset_id")
    if linked_id is not None:
        if asset_class != AssetClass.KEY.value:
            raise ValidationError("Only keys can be linked to a vehicle")
        linked = db.get(Asset, linked_id)
        if linked is None or not linked.is_vehicle or linked.id == asset_id:
            raise ValidationError(f"Linked asset {linked_id} is not a vehicle")

    location = fields.get("location")
    if location is not None:
        if asset_class != AssetClass.VEHICLE.value:
            raise ValidationError("Only vehicles have a location")
        try:
            fields["location"] = VehicleLocation(location).value
        except ValueError:
            raise ValidationError(f"Unknown location '{location}'")


@service_operation
def create_asset(db: Session, ctx: OfficerContext, number: str, asset_class: str, subtype: str,
                 description: str = None, linked_asset_id: int = None,
                 last_odometer: int = None) -> Asset:
    require_role(ctx, ADMIN_ROLES, "manage assets")
    try:
        asset_class = AssetClass(asset_class).value
    except ValueError:
        raise ValidationError(f"Unknown asset class '{asset_class}'")
    fields = {"number": number, "subtype": subtype, "linked_asset_id": linked_asset_id}
    _check_asset_fields(db, asset_class, fields)

    if asset_class == AssetClass.VEHICLE.value:
        if last_odometer is not None and (isinstance(last_odometer, bool) or not isinstance(last_odometer, int)
                                          or last_odometer < 0):
            raise ValidationError("Odometer must be a non-negative whole number")
        last_odometer = last_odometer or 0
        location = VehicleLocation.ON_PREMISES.value if subtype == "ceo" else None
    else:
        last_odometer, location = None, None

    now = datetime.utcnow()
    asset = Asset(
        number=number.strip(),
        asset_class=asset_class,
        subtype=subtype,
        status="available",
        linked_asset_id=linked_asset_id,
        description=description,
        last_odometer=last_odometer,
        location=location,
        created_at=now,
        updated_at=now,
    )
    db.add(asset)
    _commit_unique(db, f"Asset number {number}")
    db.refresh(asset)
    audit(logger, "ADMIN", action="create_asset", asset=asset.id, cls=asset_class, by=ctx.officer_id)
    return asset


@service_operation
def update_asset(db: Session, ctx: OfficerContext, asset_id: int, **fields) -> Asset:
    require_role(ctx, ADMIN_ROLES, "manage assets")
    asset = db.get(Asset, asset_id)
    if asset is None:
        raise NotFound(f"Asset {asset_id} not found")
    unknown = set(fields) - ASSET_FIELDS
    if unknown:
        raise ValidationError(f"Field(s) {', '.join(sorted(unknown))} cannot be edited")
    _check_asset_fields(db, asset.asset_class, fields, asset_id=asset.id)

    for key, value in fields.items():
        setattr(asset, key, value.strip() if key == "number" else value)
    asset.updated_at = datetime.utcnow()
    _commit_unique(db, "Asset number")
    db.refresh(asset)
    audit(logger, "ADMIN", action="update_asset", asset=asset.id, fields=",".join(sorted(fields)),
          by=ctx.officer_id)
    return asset
