# app/routers/deps.py
"""
Shared router dependencies.
The acting officer travels as the X-Officer-Barcode header and is resolved
on every request into an explicit OfficerContext.
"""

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.services.identity_service import OFFICER_ROLES, OfficerContext, find_active_person, is_role_eligible


def get_officer_context(
    x_officer_barcode: str = Header(..., description="Barcode of the signed-in officer"),
    db: Session = Depends(get_db),
) -> OfficerContext:
    officer = find_active_person(db, x_officer_barcode)
    if officer is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                            detail={"code": "not_found", "message": "Unknown or inactive officer"})
    if not is_role_eligible(officer.role, OFFICER_ROLES):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                            detail={"code": "forbidden", "message": "Access denied. Invalid role."})
    return OfficerContext(officer=officer)
