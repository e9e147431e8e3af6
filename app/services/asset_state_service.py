# app/services/asset_state_service.py
"""
Asset state projection: what is available and what is out, derived from the ledger.

status_of() asks the ledger directly (is there an open transaction?), so it can
never disagree with it. assets.status is only a cache for cheap list filtering;
reconcile_status_cache() is the one place outside a ledger write allowed to
touch it, and it only ever moves it towards what the ledger says.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.models.asset import Asset
from app.models.custody_transaction import CustodyTransaction
from app.models.presence_record import PresenceRecord
from app.services.custody_service import _find_open, open_transaction_exists
from app.services.errors import NotFound, service_operation
from app.services.identity_service import ADMIN_ROLES, OfficerContext, require_role
from app.utils.logger import audit, get_logger

logger = get_logger(__name__)


@dataclass
class AssetState:
    asset: Asset
    status: str                                        # available | in_custody
    transaction: Optional[CustodyTransaction] = None

    @property
    def in_custody(self) -> bool:
        return self.status == "in_custody"


def _state(db: Session, asset: Asset) -> AssetState:
    tx = _find_open(db, asset.id)
    if tx is None:
        return AssetState(asset=asset, status="available")
    return AssetState(asset=asset, status="in_custody", transaction=tx)


@service_operation
def status_of(db: Session, asset: Asset) -> AssetState:
    return _state(db, asset)


@service_operation
def state_for_asset(db: Session, asset_id: int) -> AssetState:
    asset = db.get(Asset, asset_id)
    if asset is None:
        raise NotFound(f"Asset {asset_id} not found")
    return _state(db, asset)


def _open_asset_ids(db: Session, asset_class: str = None) -> set:
    q = db.query(CustodyTransaction.asset_id).filter(CustodyTransaction.status == "open")
    if asset_class:
        q = q.filter(CustodyTransaction.asset_class == asset_class)
    return {row[0] for row in q.all()}


@service_operation
def list_assets(db: Session, asset_class: str = None, subtype: str = None) -> list:
    """All assets with their ledger-derived status (cache not trusted)."""
    q = db.query(Asset)
    if asset_class:
        q = q.filter(Asset.asset_class == asset_class)
    if subtype:
        q = q.filter(Asset.subtype == subtype)
    assets = q.order_by(Asset.asset_class, Asset.number).all()
    open_txs = {
        tx.asset_id: tx
        for tx in db.query(CustodyTransaction).filter(CustodyTransaction.status == "open").all()
    }
    return [
        AssetState(asset=a, status="in_custody" if a.id in open_txs else "available",
                   transaction=open_txs.get(a.id))
        for a in assets
    ]


@service_operation
def available_assets(db: Session, asset_class: str) -> list:
    """Selection list for a checkout screen."""
    taken = _open_asset_ids(db, asset_class)
    assets = (
        db.query(Asset)
        .filter(Asset.asset_class == asset_class)
        .order_by(Asset.number)
        .all()
    )
    return [a for a in assets if a.id not in taken]


def _repair_cache(db: Session) -> int:
    """Two set-based UPDATEs; each WHERE re-reads the ledger at write time."""
    now = datetime.utcnow()
    marked_taken = db.execute(
        update(Asset)
        .where(Asset.status != "in_custody", open_transaction_exists())
        .values(status="in_custody", updated_at=now)
        .execution_options(synchronize_session=False)
    ).rowcount
    marked_free = db.execute(
        update(Asset)
        .where(Asset.status != "available", ~open_transaction_exists())
        .values(status="available", updated_at=now)
        .execution_options(synchronize_session=False)
    ).rowcount
    db.commit()
    if marked_taken or marked_free:
        audit(logger, "STATE-REPAIR", level=logging.WARNING, in_custody=marked_taken, available=marked_free)
    return marked_taken + marked_free


@service_operation
def reconcile_status_cache(db: Session, ctx: OfficerContext = None) -> int:
    """Rewrite assets.status wherever it disagrees with the ledger. Returns rows fixed."""
    if ctx is not None:
        require_role(ctx, ADMIN_ROLES, "repair asset status")
    return _repair_cache(db)


@service_operation
def live_summary(db: Session) -> dict:
    """Counts for the live status dashboard."""
    assets = db.query(Asset.id, Asset.asset_class, Asset.subtype, Asset.location).all()
    taken = _open_asset_ids(db)

    summary = {
        "keys_available": 0, "keys_out": 0,
        "vehicles_available": 0, "vehicles_out": 0,
        "ceo_vehicles_off_premises": 0,
    }
    for asset_id, asset_class, subtype, location in assets:
        prefix = "keys" if asset_class == "key" else "vehicles"
        summary[f"{prefix}_{'out' if asset_id in taken else 'available'}"] += 1
        if asset_class == "vehicle" and subtype == "ceo" and location == "off_premises":
            summary["ceo_vehicles_off_premises"] += 1

    summary["visitors_on_premises"] = (
        db.query(PresenceRecord).filter(PresenceRecord.status == "on_premises").count()
    )
    return summary
