# tests/test_pricing_service.py
"""Unit tests for the pricing matrix: lookups, bulk upsert and quotes."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from decimal import Decimal
from glossapp.exceptions import ForbiddenError, InvalidInputError, NotFoundError, PricingNotFoundError
from glossapp.services import pricing_service


class TestLookup:
    def test_board_prices_seeded(self, db):
        matrix = pricing_service.get_matrix(db)
        assert matrix["SEDAN"]["COMPLETE"] == Decimal("30.00")
        assert matrix["MICROBUS"]["CHEMICAL"] == Decimal("600.00")
        assert "ENGINE" not in matrix["SEDAN"]

    def test_get_price_missing(self, db):
        with pytest.raises(NotFoundError):
            pricing_service.get_price(db, "SEDAN", "ENGINE")


class TestBulkUpsert:
    def test_staff_forbidden(self, db, staff):
        with pytest.raises(ForbiddenError):
            pricing_service.bulk_upsert(db, staff, {"SEDAN": {"COMPLETE": 31}})

    def test_none_rejected(self, db, admin):
        with pytest.raises(InvalidInputError):
            pricing_service.bulk_upsert(db, admin, None)

    def test_updates_and_inserts(self, db, admin):
        report = pricing_service.bulk_upsert(db, admin, {"SEDAN": {"COMPLETE": 31, "ENGINE": "12.5"}})
        assert len(report.applied) == 2
        assert report.skipped == []
        assert pricing_service.get_price(db, "SEDAN", "COMPLETE") == Decimal("31.00")
        assert pricing_service.get_price(db, "SEDAN", "ENGINE") == Decimal("12.50")

    def test_legacy_names_accepted(self, db, admin):
        pricing_service.bulk_upsert(db, admin, [("Sedan", "Outer Wash", 19)])
        assert pricing_service.get_price(db, "SEDAN", "OUTER") == Decimal("19.00")

    def test_bad_entries_skipped_rest_applied(self, db, admin):
        entries = [
            {"car_category": "SEDAN", "wash_type": "OUTER", "price": 18},
            {"car_category": "SPACESHIP", "wash_type": "OUTER", "price": 18},
            {"car_category": "SEDAN", "wash_type": "WAX", "price": 18},
            {"car_category": "SEDAN", "wash_type": "CUSTOM", "price": 18},
            {"car_category": "SEDAN", "wash_type": "INNER", "price": -5},
            {"car_category": "SEDAN", "wash_type": "INNER", "price": "free"},
            {"car_category": "SEDAN", "wash_type": "INNER", "price": float("nan")},
        ]
        report = pricing_service.bulk_upsert(db, admin, entries)

        assert [a[:2] for a in report.applied] == [("SEDAN", "OUTER")]
        reasons = [s.reason for s in report.skipped]
        assert reasons[0] == "unknown car category"
        assert reasons[1] == "unknown wash type"
        assert reasons[2] == "CUSTOM is manually priced"
        assert len(reasons) == 6
        assert pricing_service.get_price(db, "SEDAN", "INNER") == Decimal("17.00")
        assert pricing_service.find_price(db, "SEDAN", "CUSTOM") is None


    def test_malformed_tuple_skipped_rest_applied(self, db, admin):
        entries = [("SEDAN", "OUTER"), 42, ("SEDAN", "INNER", 21)]
        report = pricing_service.bulk_upsert(db, admin, entries)

        assert [a[:2] for a in report.applied] == [("SEDAN", "INNER")]
        assert [s.reason for s in report.skipped] == ["malformed entry", "malformed entry"]
        assert report.skipped[0].price == ("SEDAN", "OUTER")
        assert pricing_service.get_price(db, "SEDAN", "INNER") == Decimal("21.00")


class TestQuote:
    def test_quote_uses_original_price_for_cut(self, db, washer):
        result = pricing_service.quote(db, "Sedan", "Complete Wash", 50, washer_id=washer.id)
        assert result["car_category"] == "SEDAN"
        assert result["original_price"] == Decimal("30.00")
        assert result["discounted_price"] == Decimal("15.00")
        assert result["washer_cut"] == Decimal("6.00")

    def test_quote_by_username(self, db, washer):
        result = pricing_service.quote(db, "SEDAN", "CHEMICAL", washer_username="mike")
        assert result["original_price"] == Decimal("400.00")

    def test_quote_unknown_washer(self, db):
        with pytest.raises(NotFoundError):
            pricing_service.quote(db, "SEDAN", "COMPLETE", washer_username="ghost")

    def test_quote_missing_price(self, db, washer):
        with pytest.raises(PricingNotFoundError):
            pricing_service.quote(db, "SEDAN", "ENGINE", washer_id=washer.id)

    def test_quote_does_not_persist(self, db, washer):
        before = pricing_service.get_matrix(db)
        pricing_service.quote(db, "SEDAN", "CUSTOM", washer_id=washer.id, explicit_price=80)
        assert pricing_service.get_matrix(db) == before
