# app/routers/people.py
"""Officer sign-in, identity lookup by barcode, and employee administration."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional

from app.database import get_db
from app.models.enums import Role
from app.models.person import Person
from app.routers.deps import get_officer_context
from app.schemas.person import OfficerLogin, PersonCreate, PersonOut, PersonUpdate
from app.services import admin_service, identity_service
from app.services.errors import ValidationError, Result, raise_for_result
from app.services.identity_service import OfficerContext

router = APIRouter()


@router.post("/auth/officer", response_model=PersonOut, summary="Officer sign-in — barcode + PIN")
def officer_login(body: OfficerLogin, db: Session = Depends(get_db)):
    return raise_for_result(identity_service.authenticate_officer(db, body.barcode, body.pin))


@router.get("/people/resolve/{token}", response_model=PersonOut, summary="Resolve a scanned barcode")
def resolve_person(token: str, roles: Optional[str] = None, db: Session = Depends(get_db)):
    """`roles` is a comma-separated allow-list, e.g. `?roles=ceo` for the CEO vehicle flow."""
    required = None
    if roles:
        try:
            required = {Role(r.strip()) for r in roles.split(",") if r.strip()}
        except ValueError:
            raise_for_result(Result.failure(ValidationError(f"Unknown role in '{roles}'")))
    return raise_for_result(identity_service.resolve(db, token, required))


@router.get("/people", response_model=list[PersonOut], summary="List employees")
def list_people(role: Optional[str] = None, status: Optional[str] = None, db: Session = Depends(get_db)):
    q = db.query(Person)
    if role:
        q = q.filter(Person.role == role)
    if status:
        q = q.filter(Person.status == status)
    return q.order_by(Person.name).all()


@router.post("/people", response_model=PersonOut, status_code=201, summary="Admin — add employee")
def create_person(body: PersonCreate, db: Session = Depends(get_db),
                  ctx: OfficerContext = Depends(get_officer_context)):
    return raise_for_result(admin_service.create_person(db, ctx, **body.model_dump()))


@router.put("/people/{person_id}", response_model=PersonOut, summary="Admin — edit employee")
def update_person(person_id: int, body: PersonUpdate, db: Session = Depends(get_db),
                  ctx: OfficerContext = Depends(get_officer_context)):
    return raise_for_result(admin_service.update_person(db, ctx, person_id, **body.model_dump(exclude_unset=True)))


@router.post("/people/{person_id}/deactivate", response_model=PersonOut, summary="Admin — deactivate employee")
def deactivate_person(person_id: int, db: Session = Depends(get_db),
                      ctx: OfficerContext = Depends(get_officer_context)):
    return raise_for_result(admin_service.deactivate_person(db, ctx, person_id))
