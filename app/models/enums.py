# app/models/enums.py
"""
Enumerated values shared by models, services and schemas.
Stored in the database as their plain string values.
"""

from enum import Enum


class Role(str, Enum):
    DRIVER = "driver"
    SECURITY_CONTROL = "security_control"
    SECURITY_GATE = "security_gate"
    CEO = "ceo"
    STAFF = "staff"
    SUPERVISOR = "supervisor"
    ADMIN = "admin"


class PersonStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class AssetClass(str, Enum):
    KEY = "key"
    VEHICLE = "vehicle"


class AssetStatus(str, Enum):
    AVAILABLE = "available"
    IN_CUSTODY = "in_custody"


class VehicleLocation(str, Enum):
    ON_PREMISES = "on_premises"
    OFF_PREMISES = "off_premises"


class TransactionStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class ReconciliationReason(str, Enum):
    DRIVER_SWAPPED_MID_TRIP = "driver_swapped_mid_trip"
    EMERGENCY_TAKEOVER = "emergency_takeover"
    BREAKDOWN_REPLACEMENT = "breakdown_replacement"
    SHIFT_CHANGE = "shift_change"
    OTHER = "other"


class VisitorType(str, Enum):
    WALK_IN = "walk_in"
    VEHICLE = "vehicle"
    STAFF_VEHICLE = "staff_vehicle"


class PresenceStatus(str, Enum):
    ON_PREMISES = "on_premises"
    DEPARTED = "departed"


# Valid subtypes per asset class
ASSET_SUBTYPES = {
    AssetClass.VEHICLE: {"company", "ceo", "personal"},
    AssetClass.KEY: {"vehicle", "warehouse", "office", "other"},
}
