# tests/test_presence_service.py
"""Tests for visitor, staff personal vehicle and CEO vehicle presence tracking."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from app.services import presence_service
from app.services.errors import Conflict, NotFound, ValidationError
from conftest import add_asset


class TestVisitors:
    def test_walk_in(self, db, people, officer_ctx):
        result = presence_service.register_visitor(db, officer_ctx, "  Jane Guest ", "Meeting",
                                                   organization="Acme", host_id=people["staff"].id)
        assert result.ok
        record = result.value
        assert record.visitor_name == "Jane Guest"
        assert record.visitor_type == "walk_in"
        assert record.status == "on_premises"
        assert record.host.name == "Sam Staff"
        assert record.officer_in_id == people["officer"].id

    def test_name_and_purpose_required(self, db, people, officer_ctx):
        assert isinstance(presence_service.register_visitor(db, officer_ctx, "", "Meeting").error,
                          ValidationError)
        assert isinstance(presence_service.register_visitor(db, officer_ctx, "Jane", " ").error,
                          ValidationError)

    def test_vehicle_visitor_needs_registration(self, db, people, officer_ctx):
        result = presence_service.register_visitor(db, officer_ctx, "Driver X", "Delivery", "vehicle")
        assert isinstance(result.error, ValidationError)
        record = presence_service.register_visitor(db, officer_ctx, "Driver X", "Delivery", "vehicle",
                                                   vehicle_registration="kbx 001z").value
        assert record.vehicle_registration == "KBX 001Z"

    def test_staff_vehicle_type_not_accepted_here(self, db, people, officer_ctx):
        result = presence_service.register_visitor(db, officer_ctx, "Sam", "Parking", "staff_vehicle")
        assert isinstance(result.error, ValidationError)

    def test_inactive_host(self, db, people, officer_ctx):
        result = presence_service.register_visitor(db, officer_ctx, "Jane", "Meeting",
                                                   host_id=people["retired"].id)
        assert isinstance(result.error, NotFound)

    def test_exit_once(self, db, people, officer_ctx):
        record = presence_service.register_visitor(db, officer_ctx, "Jane", "Meeting").value
        out = presence_service.register_exit(db, officer_ctx, record.id).value
        assert out.status == "departed"
        assert out.exited_at is not None
        assert isinstance(presence_service.register_exit(db, officer_ctx, record.id).error, Conflict)
        assert isinstance(presence_service.register_exit(db, officer_ctx, 999).error, NotFound)

    def test_on_premises_list(self, db, people, officer_ctx):
        a = presence_service.register_visitor(db, officer_ctx, "Jane", "Meeting").value
        presence_service.register_visitor(db, officer_ctx, "John", "Interview")
        presence_service.register_exit(db, officer_ctx, a.id)
        assert [r.visitor_name for r in presence_service.list_on_premises(db).value] == ["John"]
        assert len(presence_service.list_presence(db).value) == 2


class TestStaffVehicles:
    def test_badge_scan_entry(self, db, people, officer_ctx):
        record = presence_service.register_staff_vehicle_entry(db, officer_ctx, "07001", "kcc 777q").value
        assert record.visitor_type == "staff_vehicle"
        assert record.person_id == people["staff"].id
        assert record.purpose == "Staff Personal Vehicle"
        assert record.vehicle_registration == "KCC 777Q"
        assert record.organization == "Operations"

    def test_only_staff_role(self, db, people, officer_ctx):
        result = presence_service.register_staff_vehicle_entry(db, officer_ctx, "41486001051", "KCC 777Q")
        assert isinstance(result.error, NotFound)

    def test_registration_required(self, db, people, officer_ctx):
        result = presence_service.register_staff_vehicle_entry(db, officer_ctx, "7001", "  ")
        assert isinstance(result.error, ValidationError)


class TestCeoVehicle:
    def test_toggle_location(self, db, people, officer_ctx):
        car = add_asset(db, "CEO 1", "vehicle", "ceo", location="on_premises")
        moved = presence_service.set_ceo_vehicle_location(db, officer_ctx, car.id, "001", "off_premises").value
        assert moved.location == "off_premises"

    def test_only_the_ceo_can_be_scanned(self, db, people, officer_ctx):
        car = add_asset(db, "CEO 1", "vehicle", "ceo", location="on_premises")
        result = presence_service.set_ceo_vehicle_location(db, officer_ctx, car.id, "41486001051",
                                                           "off_premises")
        assert isinstance(result.error, NotFound)

    def test_company_vehicle_is_not_a_ceo_vehicle(self, db, people, officer_ctx, vehicle):
        result = presence_service.set_ceo_vehicle_location(db, officer_ctx, vehicle.id, "1", "off_premises")
        assert isinstance(result.error, NotFound)

    def test_unknown_location(self, db, people, officer_ctx):
        car = add_asset(db, "CEO 1", "vehicle", "ceo", location="on_premises")
        result = presence_service.set_ceo_vehicle_location(db, officer_ctx, car.id, "1", "the_moon")
        assert isinstance(result.error, ValidationError)
