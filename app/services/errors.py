# app/services/errors.py
"""
Error taxonomy for the custody core, plus the Result wrapper returned at
every service boundary.

Services raise CustodyError subclasses internally and hand back a Result;
routers turn a failed Result into an HTTPException via raise_for_result().
"""

from dataclasses import dataclass
from functools import wraps
from typing import Any, Generic, Optional, TypeVar

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError

from app.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class CustodyError(Exception):
    code = "rejected"
    http_status = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CustodyError):
    code = "validation_error"
    http_status = 422


class NotFound(CustodyError):
    code = "not_found"
    http_status = 404


class Forbidden(CustodyError):
    code = "forbidden"
    http_status = 403


class InvalidOdometer(CustodyError):
    code = "invalid_odometer"
    http_status = 422


class ReconciliationReasonRequired(CustodyError):
    code = "reconciliation_reason_required"
    http_status = 422


class Conflict(CustodyError):
    """Lost a race on a conditional write. Re-read current state and retry."""
    code = "conflict"
    http_status = 409


class StorageError(CustodyError):
    code = "storage_error"
    http_status = 503


@dataclass
class Result(Generic[T]):
    value: Optional[T] = None
    error: Optional[CustodyError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any = None) -> "Result":
        return cls(value=value)

    @classmethod
    def failure(cls, error: CustodyError) -> "Result":
        return cls(error=error)

    def unwrap(self):
        """Value of a successful Result; re-raises the error of a failed one."""
        if self.error is not None:
            raise self.error
        return self.value


def service_operation(func):
    """
    Wrap a service function taking `db` as first argument so that it always
    returns a Result. CustodyError becomes a failed Result; SQLAlchemy errors
    are rolled back, logged and reported as StorageError.
    """
    @wraps(func)
    def wrapper(db, *args, **kwargs):
        try:
            return Result.success(func(db, *args, **kwargs))
        except CustodyError as e:
            db.rollback()
            logger.info(f"{func.__name__} rejected: {e.code} — {e.message}")
            return Result.failure(e)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"{func.__name__} storage failure: {e}", exc_info=True)
            return Result.failure(StorageError("Storage unavailable, nothing was written"))
    return wrapper


def raise_for_result(result: Result):
    """Router helper — unwrap a Result or raise the matching HTTPException."""
    if result.ok:
        return result.value
    err = result.error
    raise HTTPException(status_code=err.http_status, detail={"code": err.code, "message": err.message})
