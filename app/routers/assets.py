# app/routers/assets.py
"""Asset registry, ledger-derived state, live status dashboard and CEO vehicle location."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional

from app.config import settings
from app.database import get_db
from app.routers.deps import get_officer_context
from app.schemas.asset import (
    AssetCreate, AssetOut, AssetStateOut, AssetUpdate, CeoLocationUpdate, LiveStatusOut,
)
from app.services import admin_service, asset_state_service, presence_service
from app.services.asset_state_service import AssetState
from app.services.errors import raise_for_result
from app.services.identity_service import OfficerContext

router = APIRouter()


def _state_out(state: AssetState) -> AssetStateOut:
    tx = state.transaction
    return AssetStateOut(
        asset=AssetOut.model_validate(state.asset),
        status=state.status,
        transaction_id=tx.id if tx else None,
        holder_name=tx.holder_out.name if tx and tx.holder_out else None,
        opened_at=tx.opened_at if tx else None,
    )


@router.get("/assets", response_model=list[AssetStateOut], summary="All assets with live status")
def list_assets(asset_class: Optional[str] = None, subtype: Optional[str] = None,
                db: Session = Depends(get_db)):
    return [_state_out(s) for s in raise_for_result(asset_state_service.list_assets(db, asset_class, subtype))]


@router.get("/assets/available", response_model=list[AssetOut], summary="Selection list for checkout")
def available_assets(asset_class: str = "key", db: Session = Depends(get_db)):
    return raise_for_result(asset_state_service.available_assets(db, asset_class))


@router.get("/assets/{asset_id}/state", response_model=AssetStateOut)
def asset_state(asset_id: int, db: Session = Depends(get_db)):
    return _state_out(raise_for_result(asset_state_service.state_for_asset(db, asset_id)))


@router.post("/assets/reconcile", summary="Admin — repair cached asset status from the ledger")
def reconcile(db: Session = Depends(get_db), ctx: OfficerContext = Depends(get_officer_context)):
    repaired = raise_for_result(asset_state_service.reconcile_status_cache(db, ctx))
    return {"status": "ok", "repaired": repaired}


@router.get("/status/live", response_model=LiveStatusOut, summary="Dashboard counters")
def live_status(db: Session = Depends(get_db)):
    """Poll every `poll_seconds`. Values may lag one polling interval."""
    return LiveStatusOut(poll_seconds=settings.STATUS_POLL_SECONDS, **raise_for_result(asset_state_service.live_summary(db)))


@router.post("/assets", response_model=AssetOut, status_code=201, summary="Admin — register a key or vehicle")
def create_asset(body: AssetCreate, db: Session = Depends(get_db),
                 ctx: OfficerContext = Depends(get_officer_context)):
    return raise_for_result(admin_service.create_asset(db, ctx, **body.model_dump()))


@router.put("/assets/{asset_id}", response_model=AssetOut, summary="Admin — edit a key or vehicle")
def update_asset(asset_id: int, body: AssetUpdate, db: Session = Depends(get_db),
                 ctx: OfficerContext = Depends(get_officer_context)):
    return raise_for_result(admin_service.update_asset(db, ctx, asset_id, **body.model_dump(exclude_unset=True)))


@router.put("/assets/{asset_id}/ceo-location", response_model=AssetOut, summary="CEO vehicle in/out")
def set_ceo_location(asset_id: int, body: CeoLocationUpdate, db: Session = Depends(get_db),
                     ctx: OfficerContext = Depends(get_officer_context)):
    return raise_for_result(presence_service.set_ceo_vehicle_location(
        db, ctx, asset_id, body.ceo_barcode, body.location))
