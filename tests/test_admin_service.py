# tests/test_admin_service.py
"""Tests for employee and asset administration."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from app.models.asset import Asset
from app.services import admin_service, identity_service
from app.services.errors import Conflict, Forbidden, NotFound, ValidationError


class TestPeople:
    def test_create_stores_canonical_barcode(self, db, people, admin_ctx):
        person = admin_service.create_person(
            db, admin_ctx, " 000123 ", "0042", "New Driver", "driver").value
        assert person.barcode == "123"
        assert identity_service.resolve(db, "0123").value.id == person.id

    def test_duplicate_barcode(self, db, people, admin_ctx):
        result = admin_service.create_person(db, admin_ctx, "0041486001051", "1111", "Clone", "driver")
        assert isinstance(result.error, Conflict)

    def test_invalid_fields(self, db, people, admin_ctx):
        assert isinstance(admin_service.create_person(db, admin_ctx, "1", "12", "X", "driver").error,
                          ValidationError)
        assert isinstance(admin_service.create_person(db, admin_ctx, "222", "1234", "X", "pilot").error,
                          ValidationError)
        assert isinstance(admin_service.create_person(db, admin_ctx, "000", "1234", "X", "driver").error,
                          ValidationError)

    def test_pin_with_trailing_newline_rejected(self, db, people, admin_ctx):
        assert isinstance(admin_service.create_person(db, admin_ctx, "444", "1234\n", "X", "driver").error,
                          ValidationError)
        result = admin_service.update_person(db, admin_ctx, people["officer"].id, pin="4321\n")
        assert isinstance(result.error, ValidationError)
        assert identity_service.authenticate_officer(db, "5001", "1234").ok

    def test_officer_cannot_manage_people(self, db, people, officer_ctx):
        result = admin_service.create_person(db, officer_ctx, "333", "1234", "X", "driver")
        assert isinstance(result.error, Forbidden)

    def test_update(self, db, people, admin_ctx):
        bob = people["bob"]
        updated = admin_service.update_person(db, admin_ctx, bob.id, role="security_control",
                                              department="Security").value
        assert updated.role == "security_control"
        assert updated.department == "Security"
        assert isinstance(admin_service.update_person(db, admin_ctx, bob.id, id=5).error, ValidationError)
        assert isinstance(admin_service.update_person(db, admin_ctx, 999, name="Ghost").error, NotFound)

    def test_deactivate_hides_from_resolution(self, db, people, admin_ctx):
        alice = people["alice"]
        assert admin_service.deactivate_person(db, admin_ctx, alice.id).value.status == "inactive"
        assert isinstance(identity_service.resolve(db, "41486001051").error, NotFound)


class TestAssets:
    def test_create_key_linked_to_vehicle(self, db, people, admin_ctx, vehicle):
        key = admin_service.create_asset(db, admin_ctx, "K-55", "key", "vehicle",
                                         linked_asset_id=vehicle.id).value
        assert key.linked_asset_id == vehicle.id
        assert key.status == "available"
        assert key.last_odometer is None

    def test_ceo_vehicle_starts_on_premises(self, db, people, admin_ctx):
        car = admin_service.create_asset(db, admin_ctx, "CEO 2", "vehicle", "ceo", last_odometer=50).value
        assert car.location == "on_premises"
        assert car.last_odometer == 50

    def test_invalid_subtype_and_link(self, db, people, admin_ctx, key, vehicle):
        assert isinstance(admin_service.create_asset(db, admin_ctx, "V-9", "vehicle", "warehouse").error,
                          ValidationError)
        assert isinstance(admin_service.create_asset(db, admin_ctx, "K-9", "key", "vehicle",
                                                     linked_asset_id=key.id).error, ValidationError)
        assert isinstance(admin_service.create_asset(db, admin_ctx, "B-1", "boat", "other").error,
                          ValidationError)

    def test_duplicate_number(self, db, people, admin_ctx, key):
        result = admin_service.create_asset(db, admin_ctx, "K-101", "key", "office")
        assert isinstance(result.error, Conflict)

    def test_update_cannot_touch_status(self, db, people, admin_ctx, key):
        result = admin_service.update_asset(db, admin_ctx, key.id, status="in_custody")
        assert isinstance(result.error, ValidationError)
        edited = admin_service.update_asset(db, admin_ctx, key.id, description="Front gate padlock").value
        assert edited.description == "Front gate padlock"
        assert edited.status == "available"

    def test_required_fields_cannot_be_nulled(self, db, people, admin_ctx, key):
        assert isinstance(admin_service.update_asset(db, admin_ctx, key.id, subtype=None).error, ValidationError)
        assert isinstance(admin_service.update_asset(db, admin_ctx, key.id, number=None).error, ValidationError)
        assert isinstance(admin_service.create_asset(db, admin_ctx, "K-7", "key", None).error, ValidationError)
        unchanged = db.get(Asset, key.id)
        assert (unchanged.number, unchanged.subtype) == ("K-101", "office")

    def test_location_only_for_vehicles(self, db, people, admin_ctx, key, vehicle):
        assert isinstance(admin_service.update_asset(db, admin_ctx, key.id, location="off_premises").error,
                          ValidationError)
        assert admin_service.update_asset(db, admin_ctx, vehicle.id, location="off_premises").value.location \
            == "off_premises"
