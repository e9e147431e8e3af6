# app/services/custody_service.py
"""
Custody ledger for keys and vehicles.

Operations:
  checkout_key / checkout_vehicle   open a transaction, asset → in_custody
  checkin_key  / checkin_vehicle    close it, asset → available
  force_close                       admin close of a stuck trip or key, optional reading

One open transaction per asset, at all times, from any number of terminals.
Reads decide nothing on their own: every write is a conditional UPDATE whose
WHERE clause restates the precondition against the ledger itself ("no open
transaction for this asset", "transaction still open"), never the status cache.
A zero rowcount means another officer got there first → Conflict.
The asset status cache is written in the same DB transaction as the ledger row,
and the partial unique index on custody_transactions is the last backstop.

Every public operation returns a Result (see errors.service_operation); a
rejected operation has rolled back and left nothing behind.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import exists, func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.asset import Asset
from app.models.custody_transaction import CustodyTransaction
from app.models.enums import AssetClass, ReconciliationReason
from app.services.errors import (
    Conflict, InvalidOdometer, NotFound, ReconciliationReasonRequired,
    ValidationError, service_operation,
)
from app.services.identity_service import (
    ADMIN_ROLES, OFFICER_ROLES, OfficerContext, require_person, require_role,
)
from app.utils.logger import audit, get_logger

logger = get_logger(__name__)


# ── Validation helpers ──────────────────────────────────────────────────────

def _require_text(value: Optional[str], field: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field} is required")
    return str(value).strip()


def _require_reading(value, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be a whole number of km")
    if value < 0:
        raise InvalidOdometer(f"{field} cannot be negative")
    return value


def check_reconciliation(holder_out_id: int, returner_id: int,
                         reason: Optional[str], note: Optional[str]):
    """
    Returns (reason, note) to store on the closed transaction.
    Same person back → nothing to reconcile. Different person → a reason from
    ReconciliationReason is mandatory, and 'other' needs a note.
    """
    if returner_id == holder_out_id:
        return None, None
    if not reason:
        raise ReconciliationReasonRequired("Different person returning, select a reason")
    try:
        reason = ReconciliationReason(reason)
    except ValueError:
        raise ValidationError(f"Unknown reconciliation reason '{reason}'")
    note = (note or "").strip() or None
    if reason == ReconciliationReason.OTHER and note is None:
        raise ReconciliationReasonRequired("Reason 'other' needs a description")
    return reason.value, note


def _load_asset(db: Session, asset_id: int, asset_class: AssetClass) -> Asset:
    asset = db.get(Asset, asset_id)
    if asset is None:
        raise NotFound(f"Asset {asset_id} not found")
    if asset.asset_class != asset_class.value:
        raise ValidationError(f"Asset {asset.number} is a {asset.asset_class}, not a {asset_class.value}")
    return asset


def _load_open_transaction(db: Session, transaction_id: int,
                           asset_class: Optional[AssetClass] = None) -> CustodyTransaction:
    tx = db.get(CustodyTransaction, transaction_id)
    if tx is None:
        raise NotFound(f"Transaction {transaction_id} not found")
    if asset_class is not None and tx.asset_class != asset_class.value:
        raise ValidationError(f"Transaction {transaction_id} is not a {asset_class.value} transaction")
    if tx.status != "open":
        raise Conflict(f"Transaction {transaction_id} is already closed")
    return tx


# ── Atomic writes ───────────────────────────────────────────────────────────

def open_transaction_exists():
    """Correlated EXISTS: the ledger holds an open transaction for the outer Asset row."""
    return (
        exists()
        .where(CustodyTransaction.asset_id == Asset.id, CustodyTransaction.status == "open")
        .correlate(Asset)
    )


def _claim_asset(db: Session, asset: Asset, now: datetime, odometer_start: Optional[int] = None):
    """Mark the asset taken, only if the ledger has no open transaction for it (and reading still valid)."""
    conditions = [Asset.id == asset.id, ~open_transaction_exists()]
    values = {"status": "in_custody", "updated_at": now}
    if odometer_start is not None:
        conditions.append(func.coalesce(Asset.last_odometer, 0) <= odometer_start)
        values["last_odometer"] = odometer_start

    stmt = update(Asset).where(*conditions).values(**values).execution_options(synchronize_session=False)
    if db.execute(stmt).rowcount == 1:
        return

    db.rollback()
    current = db.get(Asset, asset.id)
    if (current is not None and odometer_start is not None and _find_open(db, asset.id) is None
            and (current.last_odometer or 0) > odometer_start):
        raise InvalidOdometer(
            f"Starting odometer {odometer_start} is below last recorded {current.last_odometer}")
    raise Conflict(f"Asset {asset.number} was just checked out by another officer")


def _close_transaction(db: Session, tx: CustodyTransaction, values: dict):
    stmt = (
        update(CustodyTransaction)
        .where(CustodyTransaction.id == tx.id, CustodyTransaction.status == "open")
        .values(status="closed", **values)
        .execution_options(synchronize_session=False)
    )
    if db.execute(stmt).rowcount != 1:
        raise Conflict(f"Transaction {tx.id} was closed by another officer")


def _release_asset(db: Session, asset_id: int, now: datetime, last_odometer: Optional[int] = None):
    values = {"status": "available", "updated_at": now}
    if last_odometer is not None:
        values["last_odometer"] = last_odometer
    db.execute(
        update(Asset).where(Asset.id == asset_id).values(**values)
        .execution_options(synchronize_session=False)
    )


def _open(db: Session, ctx: OfficerContext, asset: Asset, holder_token: str, now: Optional[datetime],
          odometer_start: Optional[int] = None, **payload) -> CustodyTransaction:
    holder = require_person(db, holder_token, label="Holder")
    now = now or datetime.utcnow()
    asset_id, asset_class = asset.id, asset.asset_class

    _claim_asset(db, asset, now, odometer_start)

    tx = CustodyTransaction(
        asset_id=asset_id,
        asset_class=asset_class,
        odometer_start=odometer_start,
        holder_out_id=holder.id,
        officer_out_id=ctx.officer_id,
        opened_at=now,
        status="open",
        **payload,
    )
    db.add(tx)
    try:
        db.flush()
    except IntegrityError:
        raise Conflict(f"Asset {asset_id} already has an open transaction")
    db.commit()
    db.refresh(tx)
    audit(logger, "CHECKOUT", tx=tx.id, asset=asset_id, cls=asset_class,
          holder=holder.id, officer=ctx.officer_id, odometer=odometer_start)
    return tx


# ── Checkout ────────────────────────────────────────────────────────────────

@service_operation
def checkout_key(db: Session, ctx: OfficerContext, asset_id: int, holder_token: str,
                 purpose: str, now: datetime = None) -> CustodyTransaction:
    require_role(ctx, OFFICER_ROLES, "issue keys")
    purpose = _require_text(purpose, "Purpose")
    asset = _load_asset(db, asset_id, AssetClass.KEY)
    return _open(db, ctx, asset, holder_token, now, purpose=purpose)


@service_operation
def checkout_vehicle(db: Session, ctx: OfficerContext, asset_id: int, holder_token: str,
                     destination: str, odometer_start: int, now: datetime = None) -> CustodyTransaction:
    require_role(ctx, OFFICER_ROLES, "dispatch vehicles")
    destination = _require_text(destination, "Destination")
    odometer_start = _require_reading(odometer_start, "Starting odometer")
    asset = _load_asset(db, asset_id, AssetClass.VEHICLE)
    if odometer_start < (asset.last_odometer or 0):
        raise InvalidOdometer(
            f"Starting odometer {odometer_start} is below last recorded {asset.last_odometer}")
    return _open(db, ctx, asset, holder_token, now, odometer_start=odometer_start, destination=destination)


# ── Check-in ────────────────────────────────────────────────────────────────

def _checkin(db: Session, ctx: OfficerContext, transaction_id: int, returning_token: str,
             asset_class: AssetClass, reason, note, now, odometer_end: Optional[int] = None):
    require_role(ctx, OFFICER_ROLES, "receive returns")
    tx = _load_open_transaction(db, transaction_id, asset_class)
    returner = require_person(db, returning_token, label="Returning holder")
    reason, note = check_reconciliation(tx.holder_out_id, returner.id, reason, note)

    if asset_class == AssetClass.VEHICLE:
        odometer_end = _require_reading(odometer_end, "Ending odometer")
        if odometer_end < (tx.odometer_start or 0):
            raise InvalidOdometer(
                f"Ending odometer {odometer_end} is below starting odometer {tx.odometer_start}")

    now = now or datetime.utcnow()
    asset_id = tx.asset_id
    _close_transaction(db, tx, {
        "holder_in_id": returner.id,
        "officer_in_id": ctx.officer_id,
        "closed_at": now,
        "odometer_end": odometer_end,
        "reconciliation_reason": reason,
        "reconciliation_note": note,
    })
    _release_asset(db, asset_id, now, last_odometer=odometer_end)
    db.commit()
    db.refresh(tx)
    audit(logger, "CHECKIN", tx=tx.id, asset=asset_id, holder_in=returner.id,
          officer=ctx.officer_id, reason=reason, odometer=odometer_end)
    return tx


@service_operation
def checkin_key(db: Session, ctx: OfficerContext, transaction_id: int, returning_token: str,
                reason: str = None, note: str = None, now: datetime = None) -> CustodyTransaction:
    return _checkin(db, ctx, transaction_id, returning_token, AssetClass.KEY, reason, note, now)


@service_operation
def checkin_vehicle(db: Session, ctx: OfficerContext, transaction_id: int, returning_token: str,
                    odometer_end: int, reason: str = None, note: str = None,
                    now: datetime = None) -> CustodyTransaction:
    return _checkin(db, ctx, transaction_id, returning_token, AssetClass.VEHICLE, reason, note, now,
                    odometer_end=odometer_end)


# ── Force close ─────────────────────────────────────────────────────────────

@service_operation
def force_close(db: Session, ctx: OfficerContext, transaction_id: int, note: str,
                odometer_end: int = None, now: datetime = None) -> CustodyTransaction:
    """
    Close an open transaction without a returning holder.

    Vehicles close on `odometer_end` when the admin supplies one (it may not
    be below the trip's start), otherwise on the asset's last-known reading.
    Keys take no reading.
    """
    require_role(ctx, ADMIN_ROLES, "force close custody")
    note = _require_text(note, "Note")
    tx = _load_open_transaction(db, transaction_id)
    now = now or datetime.utcnow()
    asset_id = tx.asset_id

    if tx.asset_class == AssetClass.VEHICLE.value:
        if odometer_end is not None:
            odometer_end = _require_reading(odometer_end, "Ending odometer")
            if odometer_end < (tx.odometer_start or 0):
                raise InvalidOdometer(
                    f"Ending odometer {odometer_end} is below starting odometer {tx.odometer_start}")
        else:
            asset = db.get(Asset, asset_id)
            readings = [r for r in (tx.odometer_start, asset.last_odometer if asset else None) if r is not None]
            odometer_end = max(readings) if readings else None
    elif odometer_end is not None:
        raise ValidationError("Keys have no odometer reading")

    _close_transaction(db, tx, {
        "officer_in_id": ctx.officer_id,
        "closed_at": now,
        "odometer_end": odometer_end,
        "force_closed": True,
        "admin_note": note,
    })
    _release_asset(db, asset_id, now, last_odometer=odometer_end)
    db.commit()
    db.refresh(tx)
    audit(logger, "FORCE-CLOSE", tx=tx.id, asset=asset_id, admin=ctx.officer_id, odometer=odometer_end)
    return tx


# ── Reads ───────────────────────────────────────────────────────────────────

@service_operation
def get_transaction(db: Session, transaction_id: int) -> CustodyTransaction:
    tx = db.get(CustodyTransaction, transaction_id)
    if tx is None:
        raise NotFound(f"Transaction {transaction_id} not found")
    return tx


def _find_open(db: Session, asset_id: int) -> Optional[CustodyTransaction]:
    return (
        db.query(CustodyTransaction)
        .filter(CustodyTransaction.asset_id == asset_id, CustodyTransaction.status == "open")
        .first()
    )


@service_operation
def open_transaction_for(db: Session, asset_id: int) -> Optional[CustodyTransaction]:
    """The open transaction holding the asset, or None."""
    return _find_open(db, asset_id)


@service_operation
def list_open_transactions(db: Session, asset_class: str = None) -> list:
    q = db.query(CustodyTransaction).filter(CustodyTransaction.status == "open")
    if asset_class:
        q = q.filter(CustodyTransaction.asset_class == asset_class)
    return q.order_by(CustodyTransaction.opened_at.asc()).all()


@service_operation
def list_transactions(db: Session, asset_class: str = None, status: str = None, asset_id: int = None,
                      holder_id: int = None, limit: int = 50) -> list:
    """Ledger history, newest first."""
    q = db.query(CustodyTransaction)
    if asset_class:
        q = q.filter(CustodyTransaction.asset_class == asset_class)
    if status:
        q = q.filter(CustodyTransaction.status == status)
    if asset_id is not None:
        q = q.filter(CustodyTransaction.asset_id == asset_id)
    if holder_id is not None:
        q = q.filter((CustodyTransaction.holder_out_id == holder_id) | (CustodyTransaction.holder_in_id == holder_id))
    return q.order_by(CustodyTransaction.opened_at.desc(), CustodyTransaction.id.desc()).limit(limit).all()
