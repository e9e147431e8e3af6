# app/routers/custody.py
"""
Custody ledger endpoints — key checkout/return, vehicle trips, admin force close.
Conflict (409) means another terminal won the race: re-fetch the asset and retry.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import Optional

from app.config import settings
from app.database import get_db
from app.routers.deps import get_officer_context
from app.schemas.custody import (
    CustodyTransactionOut, ForceCloseIn, KeyCheckinIn, KeyCheckoutIn, VehicleCheckinIn, VehicleCheckoutIn,
)
from app.services import custody_service
from app.services.errors import raise_for_result
from app.services.identity_service import OfficerContext

router = APIRouter()


@router.post("/custody/keys/checkout", response_model=CustodyTransactionOut, status_code=201,
             summary="Issue a key")
def checkout_key(body: KeyCheckoutIn, db: Session = Depends(get_db),
                 ctx: OfficerContext = Depends(get_officer_context)):
    return raise_for_result(custody_service.checkout_key(
        db, ctx, body.asset_id, body.holder_barcode, body.purpose))


@router.post("/custody/keys/{transaction_id}/checkin", response_model=CustodyTransactionOut,
             summary="Return a key")
def checkin_key(transaction_id: int, body: KeyCheckinIn, db: Session = Depends(get_db),
                ctx: OfficerContext = Depends(get_officer_context)):
    return raise_for_result(custody_service.checkin_key(
        db, ctx, transaction_id, body.returning_barcode, reason=body.reason, note=body.note))


@router.post("/custody/vehicles/checkout", response_model=CustodyTransactionOut, status_code=201,
             summary="Vehicle out — start a trip")
def checkout_vehicle(body: VehicleCheckoutIn, db: Session = Depends(get_db),
                     ctx: OfficerContext = Depends(get_officer_context)):
    return raise_for_result(custody_service.checkout_vehicle(
        db, ctx, body.asset_id, body.holder_barcode, body.destination, body.odometer_start))


@router.post("/custody/vehicles/{transaction_id}/checkin", response_model=CustodyTransactionOut,
             summary="Vehicle in — end a trip")
def checkin_vehicle(transaction_id: int, body: VehicleCheckinIn, db: Session = Depends(get_db),
                    ctx: OfficerContext = Depends(get_officer_context)):
    return raise_for_result(custody_service.checkin_vehicle(
        db, ctx, transaction_id, body.returning_barcode, body.odometer_end, reason=body.reason, note=body.note))


@router.post("/custody/{transaction_id}/force-close", response_model=CustodyTransactionOut,
             summary="Admin — close a stuck transaction")
def force_close(transaction_id: int, body: ForceCloseIn, db: Session = Depends(get_db),
                ctx: OfficerContext = Depends(get_officer_context)):
    return raise_for_result(custody_service.force_close(
        db, ctx, transaction_id, body.note, odometer_end=body.odometer_end))


@router.get("/custody", response_model=list[CustodyTransactionOut], summary="Ledger history")
def list_transactions(
    asset_class: Optional[str] = None,
    status: Optional[str] = None,
    asset_id: Optional[int] = None,
    holder_id: Optional[int] = None,
    limit: int = settings.DEFAULT_LIST_LIMIT,
    db: Session = Depends(get_db),
):
    """Newest first. Filter by asset_class (key | vehicle), status (open | closed), asset or person."""
    if status and status not in ("open", "closed"):
        raise HTTPException(status_code=422, detail={"code": "validation_error",
                                                     "message": f"Unknown status '{status}'"})
    return raise_for_result(custody_service.list_transactions(db, asset_class=asset_class, status=status,
                                                              asset_id=asset_id, holder_id=holder_id, limit=limit))


@router.get("/custody/{transaction_id}", response_model=CustodyTransactionOut)
def get_transaction(transaction_id: int, db: Session = Depends(get_db)):
    return raise_for_result(custody_service.get_transaction(db, transaction_id))
