# tests/test_overdue_service.py
"""Tests for overdue custody alerts and the elapsed-time label."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import datetime, timedelta

import pytest
from app.models.custody_transaction import CustodyTransaction
from app.models.enums import AssetClass
from app.services import custody_service, overdue_service
from app.services.overdue_service import find_overdue, format_elapsed
from conftest import add_asset

NOW = datetime(2026, 3, 1, 12, 0)
THRESHOLDS = {AssetClass.VEHICLE: timedelta(hours=72), AssetClass.KEY: timedelta(hours=24)}


def make_tx(asset_class, opened_at, status="open", asset_id=1):
    return CustodyTransaction(asset_id=asset_id, asset_class=asset_class, opened_at=opened_at, status=status)


class TestFormatElapsed:
    @pytest.mark.parametrize("elapsed,label", [
        (timedelta(hours=5, minutes=59), "5 hour(s)"),
        (timedelta(minutes=10), "0 hour(s)"),
        (timedelta(hours=24), "1 day(s)"),
        (timedelta(days=4, hours=7), "4 day(s)"),
    ])
    def test_labels(self, elapsed, label):
        assert format_elapsed(elapsed) == label


class TestFindOverdue:
    def test_vehicle_out_four_days(self):
        tx = make_tx("vehicle", NOW - timedelta(days=4))
        alerts = find_overdue([tx], NOW, THRESHOLDS)
        assert len(alerts) == 1
        assert alerts[0].elapsed_label == "4 day(s)"

    def test_vehicle_only_threshold(self):
        opened = [make_tx("vehicle", NOW - timedelta(days=4), asset_id=1),
                  make_tx("vehicle", NOW - timedelta(days=2), asset_id=2)]
        alerts = find_overdue(opened, NOW, {"vehicle": timedelta(days=3)})
        assert [(a.transaction.asset_id, a.elapsed_label) for a in alerts] == [(1, "4 day(s)")]

    def test_vehicle_out_two_days_not_overdue(self):
        assert find_overdue([make_tx("vehicle", NOW - timedelta(days=2))], NOW, THRESHOLDS) == []

    def test_exactly_at_threshold_not_overdue(self):
        assert find_overdue([make_tx("key", NOW - timedelta(hours=24))], NOW, THRESHOLDS) == []
        assert len(find_overdue([make_tx("key", NOW - timedelta(hours=24, seconds=1))], NOW, THRESHOLDS)) == 1

    def test_closed_transactions_ignored(self):
        tx = make_tx("key", NOW - timedelta(days=9), status="closed")
        assert find_overdue([tx], NOW, THRESHOLDS) == []

    def test_class_without_threshold_never_alerts(self):
        tx = make_tx("key", NOW - timedelta(days=30))
        assert find_overdue([tx], NOW, {"vehicle": timedelta(hours=1)}) == []

    def test_oldest_first(self):
        newer = make_tx("key", NOW - timedelta(hours=30), asset_id=1)
        older = make_tx("vehicle", NOW - timedelta(days=5), asset_id=2)
        alerts = find_overdue([newer, older], NOW, THRESHOLDS)
        assert [a.transaction.asset_id for a in alerts] == [2, 1]

    def test_default_thresholds_from_settings(self):
        alerts = find_overdue([make_tx("key", NOW - timedelta(hours=25))], NOW)
        assert len(alerts) == 1


class TestScan:
    def test_reads_open_ledger_rows(self, db, people, officer_ctx, vehicle):
        key = add_asset(db, "K-9")
        custody_service.checkout_vehicle(db, officer_ctx, vehicle.id, "41486001051", "Mine", 1000,
                                         now=NOW - timedelta(days=4))
        tx = custody_service.checkout_key(db, officer_ctx, key.id, "41486001052", "Store",
                                          now=NOW - timedelta(hours=30)).value
        custody_service.checkin_key(db, officer_ctx, tx.id, "41486001052", now=NOW - timedelta(hours=29))

        alerts = overdue_service.scan(db, now=NOW, thresholds=THRESHOLDS).value
        assert len(alerts) == 1
        assert alerts[0].transaction.asset_id == vehicle.id
        assert alerts[0].transaction.holder_out.name == "Alice Driver"
