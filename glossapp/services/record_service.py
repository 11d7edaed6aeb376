# glossapp/services/record_service.py
"""
Wash record lifecycle: create → finish → pay, plus admin update/delete.

A record is a self-contained snapshot. Creation resolves washer, price,
vehicle, company name and discount id, then writes everything in one
transaction. finish/pay only touch status fields. update (admin + master
PIN) may change anything and re-prices when car category, wash type,
company, discount, washer or an explicit price changes. No transition is
blocked: pay does not require finish, and update can revert either.

Status is derived from two columns:
  finished  ⇔ end_time is set
  paid      ⇔ payment_method is set (cash | card)
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from glossapp.auth import Caller, SecretVerifier, require_admin, require_admin_with_pin
from glossapp.config import settings
from glossapp.database import atomic
from glossapp.exceptions import InvalidInputError, NotFoundError
from glossapp.models.wash_record import PAYMENT_METHODS, WashRecord
from glossapp.services import party_service, price_engine, pricing_service, taxonomy_service
from glossapp.services.legacy_mappings import CUSTOM_WASH_TYPE, to_car_category, to_wash_type
from glossapp.utils.logger import get_logger

logger = get_logger(__name__)

STATUS_UNFINISHED = "unfinished"
STATUS_FINISHED_UNPAID = "finished_unpaid"
STATUS_PAID = "paid"
STATUS_FILTERS = (STATUS_UNFINISHED, STATUS_FINISHED_UNPAID, STATUS_PAID)

DEFAULT_PAYMENT_METHOD = "cash"


# ── Input normalisation ──────────────────────────────────────────────────────
def _car_category(db: Session, value) -> str:
    code = to_car_category(value)
    if not code:
        raise InvalidInputError("Car category is required" if not value else f"Unsupported car category: {value}",
                                field="car_category")
    if not taxonomy_service.is_known_code(db, taxonomy_service.KIND_CAR, code):
        raise InvalidInputError(f"Unknown car category: {code}", field="car_category")
    return code


def _wash_type(db: Session, value) -> str:
    code = to_wash_type(value)
    if not code:
        raise InvalidInputError("Wash type is required" if not value else f"Unsupported wash type: {value}",
                                field="wash_type")
    if code != CUSTOM_WASH_TYPE and not taxonomy_service.is_known_code(db, taxonomy_service.KIND_WASH, code):
        raise InvalidInputError(f"Unknown wash type: {code}", field="wash_type")
    return code


def _discount_percentage(value) -> int:
    if value is None:
        return 0
    return party_service.clean_percentage(value, "discount_percentage")


def _explicit_price(value) -> Optional[Decimal]:
    if value is None:
        return None
    price = price_engine.as_finite_decimal(value)
    if price is None or price < 0:
        raise InvalidInputError("price must be a finite number >= 0", field="price")
    return price


def _box_number(value) -> int:
    if value is None:
        return 0
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise InvalidInputError("box_number must be an integer >= 0", field="box_number")
    if number < 0 or isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise InvalidInputError("box_number must be an integer >= 0", field="box_number")
    return number


def _payment_method(value) -> str:
    method = str(value or "").strip().lower()
    if method not in PAYMENT_METHODS:
        raise InvalidInputError(f"payment_method must be one of {', '.join(PAYMENT_METHODS)}",
                                field="payment_method")
    return method


def _has_washer_reference(data: dict) -> bool:
    return data.get("washer_id") is not None or bool((data.get("washer_username") or "").strip())


# ── Reads ────────────────────────────────────────────────────────────────────
def get_record(db: Session, record_id: int) -> WashRecord:
    record = db.query(WashRecord).filter(WashRecord.id == record_id).first()
    if not record:
        raise NotFoundError("Record not found", field="id")
    return record


def _end_bound(value):
    """A bare date includes the whole day."""
    if isinstance(value, datetime):
        return value, False
    return datetime.combine(value, datetime.min.time()) + timedelta(days=1), True


def list_records(db: Session, status: Optional[str] = None, start_date=None, end_date=None,
                 limit: Optional[int] = None) -> list:
    q = db.query(WashRecord)

    if status:
        if status not in STATUS_FILTERS:
            raise InvalidInputError(f"status must be one of {', '.join(STATUS_FILTERS)}", field="status")
        if status == STATUS_UNFINISHED:
            q = q.filter(WashRecord.end_time.is_(None))
        elif status == STATUS_FINISHED_UNPAID:
            q = q.filter(WashRecord.end_time.isnot(None), WashRecord.payment_method.is_(None))
        else:
            q = q.filter(WashRecord.payment_method.isnot(None))

    if start_date:
        start = start_date if isinstance(start_date, datetime) else datetime.combine(start_date, datetime.min.time())
        q = q.filter(WashRecord.start_time >= start)
    if end_date:
        bound, exclusive = _end_bound(end_date)
        q = q.filter(WashRecord.start_time < bound if exclusive else WashRecord.start_time <= bound)

    limit = limit or settings.DEFAULT_RECORD_LIMIT
    return q.order_by(WashRecord.created_at.desc(), WashRecord.id.desc()).limit(limit).all()


def summarize_payments(records) -> dict:
    """Dashboard totals: paid revenue per payment method plus washer commission owed."""
    cash = card = Decimal("0.00")
    washer_cut = Decimal("0.00")
    unfinished = 0
    for r in records:
        washer_cut += Decimal(r.washer_cut or 0)
        if r.end_time is None:
            unfinished += 1
        if r.payment_method == "card":
            card += Decimal(r.discounted_price)
        elif r.payment_method == "cash":
            cash += Decimal(r.discounted_price)
    return {
        "record_count": len(records),
        "unfinished_count": unfinished,
        "cash": price_engine.to_money(cash),
        "card": price_engine.to_money(card),
        "total": price_engine.to_money(cash + card),
        "washer_cut": price_engine.to_money(washer_cut),
    }


# ── Create ───────────────────────────────────────────────────────────────────
def create_record(db: Session, caller: Caller, data: dict) -> WashRecord:
    plate = party_service.clean_plate(data.get("license_plate"))
    car_category = _car_category(db, data.get("car_category"))
    wash_type = _wash_type(db, data.get("wash_type"))
    if not _has_washer_reference(data):
        raise InvalidInputError("washer_id or washer_username is required", field="washer_id")
    discount_pct = _discount_percentage(data.get("discount_percentage"))
    override = _explicit_price(data.get("price"))
    box_number = _box_number(data.get("box_number"))

    now = datetime.utcnow()
    with atomic(db):
        washer = party_service.resolve_washer(db, data.get("washer_id"), data.get("washer_username"))

        breakdown = price_engine.price_breakdown(
            car_category, wash_type, discount_pct, washer.salary_percentage,
            explicit_override=override, lookup=pricing_service.matrix_lookup(db),
        )

        vehicle = party_service.resolve_vehicle(db, plate, car_category)
        company_id, company_name = party_service.resolve_company_snapshot(db, data.get("company_id"))
        discount_id = party_service.resolve_discount(db, company_id, discount_pct)

        record = WashRecord(
            vehicle_id=vehicle.id,
            washer_id=washer.id,
            company_id=company_id,
            discount_id=discount_id,
            license_plate=vehicle.license_plate,
            company_name=company_name,
            washer_username=washer.username,
            car_category=car_category,
            wash_type=wash_type,
            custom_service_name=(data.get("custom_service_name") or "").strip() or None,
            discount_percentage=discount_pct,
            box_number=box_number,
            original_price=breakdown.original_price,
            discounted_price=breakdown.discounted_price,
            washer_cut=breakdown.washer_cut,
            start_time=now,
            created_by_id=caller.id,
            created_at=now,
            updated_at=now,
        )
        db.add(record)
        db.flush()

    db.refresh(record)
    logger.info(
        f"[RECORD] #{record.id} created by {caller.id}: {plate} {car_category}/{wash_type} "
        f"price={breakdown.original_price} → {breakdown.discounted_price} cut={breakdown.washer_cut}"
    )
    return record


# ── Status transitions ───────────────────────────────────────────────────────
def finish_record(db: Session, caller: Caller, record_id: int):
    """Idempotent. Returns (record, changed); a second call leaves end_time untouched."""
    record = get_record(db, record_id)
    if record.end_time is not None:
        logger.debug(f"[RECORD] #{record_id} already finished at {record.end_time}")
        return record, False

    with atomic(db):
        record.end_time = datetime.utcnow()
        record.updated_at = record.end_time
    db.refresh(record)
    logger.info(f"[RECORD] #{record_id} finished by {caller.id}")
    return record, True


def pay_record(db: Session, caller: Caller, record_id: int, payment_method) -> WashRecord:
    """Admin only. Paying an unfinished record is allowed."""
    require_admin(caller)
    method = _payment_method(payment_method)
    record = get_record(db, record_id)

    with atomic(db):
        record.payment_method = method
        record.updated_at = datetime.utcnow()
    db.refresh(record)
    logger.info(f"[RECORD] #{record_id} paid ({method}) by {caller.id}")
    return record


# ── Update ───────────────────────────────────────────────────────────────────
def _washer_changed(record: WashRecord, fields: dict) -> bool:
    if fields.get("washer_id") is not None:
        return fields["washer_id"] != record.washer_id
    username = (fields.get("washer_username") or "").strip()
    return bool(username) and username != record.washer_username


def _apply_status(record: WashRecord, fields: dict, now: datetime):
    if fields.get("start_time") is not None:
        record.start_time = fields["start_time"]

    if fields.get("end_time") is not None:
        record.end_time = fields["end_time"]
    elif fields.get("is_finished") is True and record.end_time is None:
        record.end_time = now
    elif fields.get("is_finished") is False:
        record.end_time = None

    method = fields.get("payment_method")
    if fields.get("is_paid") is False:
        record.payment_method = None
    elif method is not None:
        record.payment_method = _payment_method(method)
    elif fields.get("is_paid") is True and record.payment_method is None:
        record.payment_method = DEFAULT_PAYMENT_METHOD


def update_record(db: Session, caller: Caller, secrets: SecretVerifier, record_id: int, fields: dict,
                  master_pin=None) -> WashRecord:
    """
    Partial update. ``fields`` holds only what the caller sent; an explicit
    ``company_id: None`` switches the record to walk-in.
    """
    require_admin_with_pin(caller, secrets, master_pin)
    record = get_record(db, record_id)

    car_category = (_car_category(db, fields["car_category"])
                    if fields.get("car_category") is not None else record.car_category)
    wash_type = (_wash_type(db, fields["wash_type"])
                 if fields.get("wash_type") is not None else record.wash_type)
    discount_pct = (_discount_percentage(fields["discount_percentage"])
                    if fields.get("discount_percentage") is not None else record.discount_percentage)
    override = _explicit_price(fields.get("price"))
    plate = (party_service.clean_plate(fields["license_plate"])
             if fields.get("license_plate") is not None else record.license_plate)

    company_changed = "company_id" in fields and fields["company_id"] != record.company_id
    washer_changed = _washer_changed(record, fields)
    category_changed = car_category != record.car_category
    reprice = (
        category_changed
        or wash_type != record.wash_type
        or discount_pct != record.discount_percentage
        or company_changed
        or washer_changed
        or override is not None
    )

    now = datetime.utcnow()
    with atomic(db):
        if plate != record.license_plate or category_changed:
            vehicle = party_service.resolve_vehicle(db, plate, car_category)
            record.vehicle_id = vehicle.id
            record.license_plate = vehicle.license_plate

        washer = record.washer
        if washer_changed:
            washer = party_service.resolve_washer(db, fields.get("washer_id"), fields.get("washer_username"))
            record.washer_id = washer.id
            record.washer_username = washer.username

        if company_changed:
            record.company_id, record.company_name = party_service.resolve_company_snapshot(db, fields["company_id"])

        if reprice:
            # CUSTOM jobs are never in the matrix: keep the stored price unless a new one is sent
            if override is None and wash_type == CUSTOM_WASH_TYPE:
                override = record.original_price
            breakdown = price_engine.price_breakdown(
                car_category, wash_type, discount_pct, washer.salary_percentage,
                explicit_override=override, lookup=pricing_service.matrix_lookup(db),
            )
            record.car_category = car_category
            record.wash_type = wash_type
            record.discount_percentage = discount_pct
            record.discount_id = party_service.resolve_discount(db, record.company_id, discount_pct)
            record.original_price = breakdown.original_price
            record.discounted_price = breakdown.discounted_price
            record.washer_cut = breakdown.washer_cut

        if fields.get("box_number") is not None:
            record.box_number = _box_number(fields["box_number"])
        if "custom_service_name" in fields:
            record.custom_service_name = (fields["custom_service_name"] or "").strip() or None

        _apply_status(record, fields, now)
        record.updated_at = now

    db.refresh(record)
    logger.info(f"[RECORD] #{record_id} updated by {caller.id} (repriced={reprice})")
    return record


# ── Delete ───────────────────────────────────────────────────────────────────
def delete_record(db: Session, caller: Caller, secrets: SecretVerifier, record_id: int, master_pin=None):
    require_admin_with_pin(caller, secrets, master_pin)
    record = get_record(db, record_id)
    with atomic(db):
        db.delete(record)
    logger.info(f"[RECORD] #{record_id} ({record.license_plate}) deleted by {caller.id}")
