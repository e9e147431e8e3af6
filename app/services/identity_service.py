# app/services/identity_service.py
"""
Identity resolution: canonical token → active Person.

Every flow that gates on role (officer login, CEO vehicle, staff personal
vehicle, admin actions) goes through is_role_eligible() so the allowed role
sets live here and nowhere else.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from app.models.enums import Role
from app.models.person import Person
from app.services.errors import Forbidden, NotFound, ValidationError, service_operation
from app.services.scan_normalizer import normalize_token
from app.utils.logger import get_logger

logger = get_logger(__name__)

OFFICER_ROLES = frozenset({Role.SECURITY_CONTROL, Role.SECURITY_GATE, Role.SUPERVISOR, Role.ADMIN})
ADMIN_ROLES = frozenset({Role.SUPERVISOR, Role.ADMIN})
CEO_ROLES = frozenset({Role.CEO})
STAFF_ROLES = frozenset({Role.STAFF})

PIN_PATTERN = re.compile(r"[0-9]{4}")     # use with fullmatch()


@dataclass(frozen=True)
class OfficerContext:
    """The officer acting on a request. Passed explicitly to every write."""
    officer: Person

    @property
    def officer_id(self) -> int:
        return self.officer.id

    @property
    def role(self) -> str:
        return self.officer.role


def is_role_eligible(role, allowed: Optional[Iterable[Role]]) -> bool:
    """True when `allowed` is None (no restriction) or the role is in it."""
    if allowed is None:
        return True
    try:
        role = Role(role)
    except ValueError:
        return False
    return role in set(allowed)


def find_active_person(db: Session, token: str) -> Optional[Person]:
    """Plain lookup, no role filter. Returns None for unknown or inactive."""
    token = normalize_token(token)
    if token is None:
        return None
    return (
        db.query(Person)
        .filter(Person.barcode == token, Person.status == "active")
        .first()
    )


def require_person(db: Session, token: str, required_roles: Optional[Iterable[Role]] = None,
                   label: str = "Person") -> Person:
    """Resolve or raise NotFound. Role mismatch is reported as not found too."""
    person = find_active_person(db, token)
    if person is None or not is_role_eligible(person.role, required_roles):
        raise NotFound(f"{label} not found or not eligible for this action")
    return person


def require_role(ctx: OfficerContext, allowed: Iterable[Role], action: str):
    if not is_role_eligible(ctx.role, allowed):
        logger.warning(f"[AUTH] officer={ctx.officer_id} role={ctx.role} denied {action}")
        raise Forbidden(f"Role '{ctx.role}' may not {action}")


@service_operation
def resolve(db: Session, token: str, required_roles: Optional[Iterable[Role]] = None) -> Person:
    """Side-effect-free lookup of the unique active Person holding `token`."""
    return require_person(db, token, required_roles)


@service_operation
def authenticate_officer(db: Session, token: str, pin: str) -> Person:
    """Barcode + 4-digit PIN login for gate officers, supervisors and admins."""
    if not isinstance(pin, str) or not PIN_PATTERN.fullmatch(pin):
        raise ValidationError("PIN must be 4 digits")

    person = find_active_person(db, token)
    if person is None or person.pin != pin:
        raise NotFound("Invalid barcode or PIN")
    if not is_role_eligible(person.role, OFFICER_ROLES):
        raise Forbidden("Access denied. Invalid role.")

    logger.info(f"[AUTH] officer={person.id} ({person.role}) signed in")
    return person
