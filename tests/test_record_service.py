# tests/test_record_service.py
"""Unit tests for the wash record lifecycle: create, finish, pay, update, delete, listing."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from datetime import date, datetime, timedelta
from decimal import Decimal
from glossapp.exceptions import ForbiddenError, InvalidInputError, NotFoundError, PricingNotFoundError
from glossapp.models.vehicle import Vehicle
from glossapp.models.wash_record import WashRecord
from glossapp.models.washer import Washer
from glossapp.services import party_service, record_service

PIN = "1234"


class TestCreateRecord:
    def test_walk_in_record_priced_from_matrix(self, db, staff, record_data):
        record = record_service.create_record(db, staff, record_data)

        assert record.original_price == Decimal("30.00")
        assert record.discounted_price == Decimal("30.00")
        assert record.washer_cut == Decimal("6.00")
        assert record.washer_username == "mike"
        assert record.company_id is None
        assert record.discount_id is None
        assert record.end_time is None
        assert record.payment_method is None
        assert record.created_by_id == "staff-1"

    def test_company_discount_linked(self, db, staff, record_data, company):
        fifty = [d for d in company.discounts if d.percentage == 50][0]
        record = record_service.create_record(
            db, staff, {**record_data, "company_id": company.id, "discount_percentage": 50}
        )
        assert record.discounted_price == Decimal("15.00")
        assert record.washer_cut == Decimal("6.00")
        assert record.discount_id == fifty.id
        assert record.company_name == "Acme"

    def test_company_without_matching_discount(self, db, staff, record_data, company):
        record = record_service.create_record(
            db, staff, {**record_data, "company_id": company.id, "discount_percentage": 30}
        )
        assert record.discount_id is None
        assert record.discounted_price == Decimal("21.00")

    @pytest.mark.parametrize("pct", [0, 10, 50, 100])
    def test_walk_in_never_links_discount(self, db, staff, record_data, pct):
        record = record_service.create_record(db, staff, {**record_data, "discount_percentage": pct})
        assert record.discount_id is None

    def test_missing_matrix_entry(self, db, staff, record_data):
        with pytest.raises(PricingNotFoundError):
            record_service.create_record(db, staff, {**record_data, "wash_type": "ENGINE"})
        assert db.query(WashRecord).count() == 0
        assert db.query(Vehicle).count() == 0

    def test_failed_pricing_rolls_back_auto_created_washer(self, db, staff, record_data):
        data = {**record_data, "washer_id": None, "washer_username": "ghost", "wash_type": "ENGINE"}
        with pytest.raises(PricingNotFoundError):
            record_service.create_record(db, staff, data)
        assert db.query(Washer).filter(Washer.username == "ghost").count() == 0

    def test_explicit_price_overrides_matrix(self, db, staff, record_data):
        record = record_service.create_record(db, staff, {**record_data, "price": 45})
        assert record.original_price == Decimal("45.00")
        assert record.washer_cut == Decimal("9.00")

    def test_custom_service(self, db, staff, record_data):
        record = record_service.create_record(db, staff, {
            **record_data, "wash_type": "CUSTOM", "price": 70, "custom_service_name": "Headlight polish",
        })
        assert record.original_price == Decimal("70.00")
        assert record.custom_service_name == "Headlight polish"

    def test_custom_service_requires_price(self, db, staff, record_data):
        with pytest.raises(PricingNotFoundError):
            record_service.create_record(db, staff, {**record_data, "wash_type": "CUSTOM"})

    def test_legacy_names_give_same_codes(self, db, staff, record_data):
        legacy = record_service.create_record(
            db, staff, {**record_data, "car_category": "Sedan", "wash_type": "Complete Wash"}
        )
        direct = record_service.create_record(db, staff, {**record_data, "license_plate": "XYZ-999"})
        fetched = record_service.get_record(db, legacy.id)
        assert (fetched.car_category, fetched.wash_type) == (direct.car_category, direct.wash_type)
        assert (fetched.car_category, fetched.wash_type) == ("SEDAN", "COMPLETE")

    def test_vehicle_category_follows_latest_record(self, db, staff, record_data):
        record_service.create_record(db, staff, record_data)
        record_service.create_record(db, staff, {**record_data, "car_category": "BIG_JEEP"})
        vehicle = party_service.find_vehicle_by_plate(db, "ABC-123")
        assert vehicle.car_category == "BIG_JEEP"
        assert db.query(Vehicle).count() == 1

    @pytest.mark.parametrize("field,value", [
        ("license_plate", ""),
        ("car_category", "Spaceship"),
        ("car_category", "VAN"),
        ("wash_type", None),
        ("discount_percentage", 101),
        ("discount_percentage", -1),
        ("price", -10),
        ("box_number", -1),
    ])
    def test_invalid_input(self, db, staff, record_data, field, value):
        with pytest.raises(InvalidInputError) as exc:
            record_service.create_record(db, staff, {**record_data, field: value})
        assert exc.value.field == field

    def test_washer_reference_required(self, db, staff, record_data):
        with pytest.raises(InvalidInputError):
            record_service.create_record(db, staff, {**record_data, "washer_id": None})


class TestSnapshots:
    def test_salary_change_does_not_touch_existing_record(self, db, admin, record_data, washer):
        record = record_service.create_record(db, admin, record_data)
        party_service.update_washer(db, admin, washer.id, {"salary_percentage": 50})
        assert record_service.get_record(db, record.id).washer_cut == Decimal("6.00")

    def test_company_rename_keeps_snapshot(self, db, admin, record_data, company):
        record = record_service.create_record(db, admin, {**record_data, "company_id": company.id})
        party_service.update_company(db, admin, company.id, name="Acme Holdings")
        assert record_service.get_record(db, record.id).company_name == "Acme"


class TestFinishAndPay:
    def test_finish_is_idempotent(self, db, staff, record_data):
        record = record_service.create_record(db, staff, record_data)
        finished, changed = record_service.finish_record(db, staff, record.id)
        first_end = finished.end_time
        assert changed is True
        assert first_end is not None

        again, changed = record_service.finish_record(db, staff, record.id)
        assert changed is False
        assert again.end_time == first_end

    def test_finish_missing(self, db, staff):
        with pytest.raises(NotFoundError):
            record_service.finish_record(db, staff, 9999)

    def test_pay_by_staff_forbidden(self, db, staff, record_data):
        record = record_service.create_record(db, staff, record_data)
        with pytest.raises(ForbiddenError):
            record_service.pay_record(db, staff, record.id, "cash")

    def test_pay_before_finish_allowed(self, db, admin, record_data):
        record = record_service.create_record(db, admin, record_data)
        paid = record_service.pay_record(db, admin, record.id, "Card")
        assert paid.payment_method == "card"
        assert paid.is_paid and not paid.is_finished

    def test_pay_invalid_method(self, db, admin, record_data):
        record = record_service.create_record(db, admin, record_data)
        with pytest.raises(InvalidInputError):
            record_service.pay_record(db, admin, record.id, "crypto")

    def test_pay_missing(self, db, admin):
        with pytest.raises(NotFoundError):
            record_service.pay_record(db, admin, 9999, "cash")


class TestUpdateRecord:
    def test_requires_admin_and_pin(self, db, admin, staff, secrets, record_data):
        record = record_service.create_record(db, staff, record_data)
        with pytest.raises(ForbiddenError):
            record_service.update_record(db, staff, secrets, record.id, {"box_number": 2}, PIN)
        with pytest.raises(ForbiddenError):
            record_service.update_record(db, admin, secrets, record.id, {"box_number": 2}, "0000")
        with pytest.raises(InvalidInputError):
            record_service.update_record(db, admin, secrets, record.id, {"box_number": 2}, None)

    def test_wash_type_change_reprices_with_current_rate(self, db, admin, secrets, record_data, washer):
        record = record_service.create_record(db, admin, record_data)
        party_service.update_washer(db, admin, washer.id, {"salary_percentage": 25})

        updated = record_service.update_record(db, admin, secrets, record.id, {"wash_type": "CHEMICAL"}, PIN)
        assert updated.original_price == Decimal("400.00")
        assert updated.discounted_price == Decimal("400.00")
        assert updated.washer_cut == Decimal("100.00")

    def test_washer_change_uses_new_washers_rate(self, db, admin, secrets, record_data):
        record = record_service.create_record(db, admin, record_data)
        party_service.create_washer(db, admin, "nino", salary_percentage=40)

        updated = record_service.update_record(db, admin, secrets, record.id, {"washer_username": "nino"}, PIN)
        assert updated.washer_username == "nino"
        assert updated.washer_cut == Decimal("12.00")

    def test_company_change_relinks_discount(self, db, admin, secrets, record_data, company):
        record = record_service.create_record(db, admin, record_data)
        ten = [d for d in company.discounts if d.percentage == 10][0]

        updated = record_service.update_record(
            db, admin, secrets, record.id, {"company_id": company.id, "discount_percentage": 10}, PIN
        )
        assert updated.company_name == "Acme"
        assert updated.discount_id == ten.id
        assert updated.discounted_price == Decimal("27.00")

        walk_in = record_service.update_record(db, admin, secrets, record.id, {"company_id": None}, PIN)
        assert walk_in.company_id is None
        assert walk_in.company_name is None
        assert walk_in.discount_id is None
        assert walk_in.discount_percentage == 10

    def test_plate_change_resolves_vehicle(self, db, admin, secrets, record_data):
        record = record_service.create_record(db, admin, record_data)
        old_vehicle = record.vehicle_id

        updated = record_service.update_record(db, admin, secrets, record.id, {"license_plate": "NEW-001"}, PIN)
        assert updated.license_plate == "NEW-001"
        assert updated.vehicle_id != old_vehicle
        assert party_service.find_vehicle_by_plate(db, "NEW-001").car_category == "SEDAN"

    def test_category_change_syncs_vehicle(self, db, admin, secrets, record_data):
        record = record_service.create_record(db, admin, record_data)
        vehicle_id = record.vehicle_id

        updated = record_service.update_record(db, admin, secrets, record.id, {"car_category": "BIG_JEEP"}, PIN)
        assert updated.vehicle_id == vehicle_id
        assert updated.car_category == "BIG_JEEP"
        assert party_service.find_vehicle_by_plate(db, "ABC-123").car_category == "BIG_JEEP"
        assert db.query(Vehicle).count() == 1

    def test_explicit_price_reprices_from_override(self, db, admin, secrets, record_data):
        record = record_service.create_record(db, admin, record_data)
        assert record.original_price == Decimal("30.00")

        updated = record_service.update_record(db, admin, secrets, record.id, {"price": 55}, PIN)
        assert updated.wash_type == "COMPLETE"
        assert updated.original_price == Decimal("55.00")
        assert updated.discounted_price == Decimal("55.00")
        assert updated.washer_cut == Decimal("11.00")

    def test_custom_record_keeps_price_on_category_change(self, db, admin, secrets, record_data):
        record = record_service.create_record(db, admin, {**record_data, "wash_type": "CUSTOM", "price": 70})
        updated = record_service.update_record(db, admin, secrets, record.id, {"car_category": "BIG_JEEP"}, PIN)
        assert updated.original_price == Decimal("70.00")

    def test_reprice_to_missing_entry_rolls_back(self, db, admin, secrets, record_data):
        record = record_service.create_record(db, admin, record_data)
        with pytest.raises(PricingNotFoundError):
            record_service.update_record(
                db, admin, secrets, record.id, {"wash_type": "ENGINE", "box_number": 7}, PIN
            )
        db.expire_all()
        unchanged = record_service.get_record(db, record.id)
        assert unchanged.wash_type == "COMPLETE"
        assert unchanged.box_number == 0

    def test_status_toggles(self, db, admin, secrets, record_data):
        record = record_service.create_record(db, admin, record_data)

        r = record_service.update_record(db, admin, secrets, record.id, {"is_finished": True, "is_paid": True}, PIN)
        assert r.is_finished
        assert r.payment_method == "cash"

        r = record_service.update_record(db, admin, secrets, record.id, {"payment_method": "card"}, PIN)
        assert r.payment_method == "card"

        r = record_service.update_record(db, admin, secrets, record.id, {"is_paid": True}, PIN)
        assert r.payment_method == "card"

        r = record_service.update_record(db, admin, secrets, record.id, {"is_finished": False, "is_paid": False}, PIN)
        assert r.end_time is None
        assert r.payment_method is None

    def test_status_only_update_does_not_reprice(self, db, admin, secrets, record_data, washer):
        record = record_service.create_record(db, admin, record_data)
        party_service.update_washer(db, admin, washer.id, {"salary_percentage": 50})
        r = record_service.update_record(db, admin, secrets, record.id, {"box_number": 3}, PIN)
        assert r.box_number == 3
        assert r.washer_cut == Decimal("6.00")


class TestDeleteRecord:
    def test_delete(self, db, admin, secrets, record_data):
        record = record_service.create_record(db, admin, record_data)
        record_service.delete_record(db, admin, secrets, record.id, PIN)
        with pytest.raises(NotFoundError):
            record_service.get_record(db, record.id)

    def test_delete_wrong_pin(self, db, admin, secrets, record_data):
        record = record_service.create_record(db, admin, record_data)
        with pytest.raises(ForbiddenError):
            record_service.delete_record(db, admin, secrets, record.id, "0000")
        assert record_service.get_record(db, record.id)


class TestListAndSummary:
    def _three_records(self, db, admin, record_data):
        open_ = record_service.create_record(db, admin, record_data)
        done = record_service.create_record(db, admin, {**record_data, "license_plate": "DONE-1"})
        paid = record_service.create_record(db, admin, {**record_data, "license_plate": "PAID-1", "price": 50})
        record_service.finish_record(db, admin, done.id)
        record_service.finish_record(db, admin, paid.id)
        record_service.pay_record(db, admin, paid.id, "card")
        return open_, done, paid

    def test_status_filters(self, db, admin, record_data):
        open_, done, paid = self._three_records(db, admin, record_data)
        assert [r.id for r in record_service.list_records(db, "unfinished")] == [open_.id]
        assert [r.id for r in record_service.list_records(db, "finished_unpaid")] == [done.id]
        assert [r.id for r in record_service.list_records(db, "paid")] == [paid.id]
        assert len(record_service.list_records(db)) == 3

    def test_newest_first_and_limit(self, db, admin, record_data):
        _, _, paid = self._three_records(db, admin, record_data)
        assert [r.id for r in record_service.list_records(db, limit=1)] == [paid.id]

    def test_bad_status(self, db):
        with pytest.raises(InvalidInputError):
            record_service.list_records(db, "archived")

    def test_date_window_includes_whole_end_day(self, db, admin, record_data):
        self._three_records(db, admin, record_data)
        today = datetime.utcnow().date()
        assert len(record_service.list_records(db, start_date=today, end_date=today)) == 3
        assert record_service.list_records(db, start_date=today + timedelta(days=1)) == []
        assert record_service.list_records(db, end_date=date(2000, 1, 1)) == []

    def test_summary(self, db, admin, record_data):
        open_, _, _ = self._three_records(db, admin, record_data)
        record_service.pay_record(db, admin, open_.id, "cash")
        summary = record_service.summarize_payments(record_service.list_records(db))
        assert summary["cash"] == Decimal("30.00")
        assert summary["card"] == Decimal("50.00")
        assert summary["total"] == Decimal("80.00")
        assert summary["washer_cut"] == Decimal("22.00")
        assert summary["record_count"] == 3
        assert summary["unfinished_count"] == 1
