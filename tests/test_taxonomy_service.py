# tests/test_taxonomy_service.py
"""Unit tests for car/wash type configuration."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from glossapp.exceptions import ConflictError, ForbiddenError, InvalidInputError, NotFoundError
from decimal import Decimal
from glossapp.services import pricing_service, record_service, taxonomy_service
from glossapp.services.taxonomy_service import KIND_CAR, KIND_WASH

PIN = "1234"


class TestListTypes:
    def test_seeded_types_in_sort_order(self, db):
        codes = [t.code for t in taxonomy_service.list_types(db, KIND_CAR)]
        assert codes == ["SEDAN", "PREMIUM_CLASS", "SMALL_JEEP", "BIG_JEEP", "MICROBUS"]

    def test_in_use_reflects_pricing(self, db):
        washes = {t.code: t.in_use for t in taxonomy_service.list_types(db, KIND_WASH)}
        assert washes["COMPLETE"] is True     # board price exists
        assert washes["ENGINE"] is False

    def test_unknown_kind(self, db):
        with pytest.raises(InvalidInputError):
            taxonomy_service.list_types(db, "boat")


class TestMutations:
    def test_create_requires_pin(self, db, admin, secrets):
        with pytest.raises(InvalidInputError) as exc:
            taxonomy_service.create_type(db, admin, secrets, KIND_CAR, "VAN", "ვენი", "Van")
        assert exc.value.field == "master_pin"

    def test_create_wrong_pin(self, db, admin, secrets):
        with pytest.raises(ForbiddenError):
            taxonomy_service.create_type(db, admin, secrets, KIND_CAR, "VAN", "ვენი", "Van", master_pin="0000")

    def test_staff_cannot_create(self, db, staff, secrets):
        with pytest.raises(ForbiddenError) as exc:
            taxonomy_service.create_type(db, staff, secrets, KIND_CAR, "VAN", "ვენი", "Van", master_pin=PIN)
        assert exc.value.code == "ADMIN_REQUIRED"

    def test_create_and_duplicate(self, db, admin, secrets):
        van = taxonomy_service.create_type(db, admin, secrets, KIND_CAR, "VAN", "ვენი", "Van",
                                           sort_order=9, master_pin=PIN)
        assert van.id is not None
        assert taxonomy_service.is_known_code(db, KIND_CAR, "VAN")
        with pytest.raises(ConflictError):
            taxonomy_service.create_type(db, admin, secrets, KIND_CAR, "VAN", "x", "y", master_pin=PIN)

    def test_update_code_collision(self, db, admin, secrets):
        sedan = taxonomy_service.get_type_by_code(db, KIND_CAR, "SEDAN")
        with pytest.raises(ConflictError):
            taxonomy_service.update_type(db, admin, secrets, KIND_CAR, sedan.id, {"code": "BIG_JEEP"}, PIN)

    def test_deactivate(self, db, admin, secrets):
        engine = taxonomy_service.get_type_by_code(db, KIND_WASH, "ENGINE")
        updated = taxonomy_service.update_type(db, admin, secrets, KIND_WASH, engine.id, {"is_active": False}, PIN)
        assert updated.is_active is False
        active = [t.code for t in taxonomy_service.list_types(db, KIND_WASH, active_only=True)]
        assert "ENGINE" not in active

    def test_update_missing(self, db, admin, secrets):
        with pytest.raises(NotFoundError):
            taxonomy_service.update_type(db, admin, secrets, KIND_CAR, 9999, {"sort_order": 1}, PIN)


class TestDeleteGuard:
    def test_type_in_use_cannot_be_deleted(self, db, admin, secrets):
        sedan = taxonomy_service.get_type_by_code(db, KIND_CAR, "SEDAN")
        with pytest.raises(ConflictError) as exc:
            taxonomy_service.delete_type(db, admin, secrets, KIND_CAR, sedan.id, PIN)
        assert exc.value.code == "TYPE_IN_USE"

    def test_unused_type_deleted(self, db, admin, secrets):
        engine = taxonomy_service.get_type_by_code(db, KIND_WASH, "ENGINE")
        taxonomy_service.delete_type(db, admin, secrets, KIND_WASH, engine.id, PIN)
        assert taxonomy_service.get_type_by_code(db, KIND_WASH, "ENGINE") is None


class TestNewTypeInUse:
    def test_free_form_code_priced_and_recorded(self, db, admin, staff, secrets, record_data):
        taxonomy_service.create_type(db, admin, secrets, KIND_CAR, "Suv", "ჯიპი XL", "SUV", master_pin=PIN)

        report = pricing_service.bulk_upsert(db, admin, [("Suv", "COMPLETE", 50)])
        assert report.skipped == []
        assert pricing_service.get_price(db, "Suv", "COMPLETE") == Decimal("50.00")

        record = record_service.create_record(db, staff, {**record_data, "car_category": "Suv"})
        assert record.car_category == "Suv"
        assert record.original_price == Decimal("50.00")

    def test_unregistered_code_still_rejected(self, db, admin):
        report = pricing_service.bulk_upsert(db, admin, [("Suv", "COMPLETE", 50)])
        assert report.skipped[0].reason == "unknown car category"
