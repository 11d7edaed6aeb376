# glossapp/services/pricing_service.py
"""
Pricing matrix: (car category × wash type) → unit price.

bulk_upsert() is skip-and-continue: an entry with an unknown code, the
CUSTOM wash type, or a negative / non-finite price is skipped and reported,
the rest of the batch is applied in one transaction. A store failure aborts
the whole batch.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from glossapp.auth import Caller, require_admin
from glossapp.database import atomic
from glossapp.exceptions import InvalidInputError, NotFoundError
from glossapp.models.pricing import PricingEntry
from glossapp.services import price_engine, taxonomy_service
from glossapp.services.party_service import find_washer
from glossapp.services.legacy_mappings import CUSTOM_WASH_TYPE, to_car_category, to_wash_type
from glossapp.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class SkippedEntry:
    car_category: Optional[str]
    wash_type: Optional[str]
    price: object
    reason: str


@dataclass
class UpsertReport:
    applied: list = field(default_factory=list)   # [(car_category, wash_type, Decimal)]
    skipped: list = field(default_factory=list)   # [SkippedEntry]


def get_matrix(db: Session) -> dict:
    """Full sparse map {car_category: {wash_type: price}}."""
    matrix = {}
    for entry in db.query(PricingEntry).order_by(PricingEntry.car_category, PricingEntry.wash_type).all():
        matrix.setdefault(entry.car_category, {})[entry.wash_type] = entry.price
    return matrix


def find_price(db: Session, car_category: str, wash_type: str) -> Optional[Decimal]:
    entry = (
        db.query(PricingEntry)
        .filter(PricingEntry.car_category == car_category, PricingEntry.wash_type == wash_type)
        .first()
    )
    return entry.price if entry else None


def get_price(db: Session, car_category: str, wash_type: str) -> Decimal:
    price = find_price(db, car_category, wash_type)
    if price is None:
        raise NotFoundError(f"No pricing entry for {car_category} × {wash_type}", field="price")
    return price


def matrix_lookup(db: Session):
    """Lookup callable for price_engine bound to this session."""
    return lambda car_category, wash_type: find_price(db, car_category, wash_type)


def _flatten(entries) -> tuple:
    """
    Accepts the nested matrix dict or an iterable of (car, wash, price) / dicts.
    Returns (flat, malformed): items that are neither a dict nor a 3-item
    sequence land in malformed.
    """
    if isinstance(entries, dict):
        flat = []
        for car, washes in entries.items():
            if not isinstance(washes, dict):
                flat.append((car, None, washes))
                continue
            for wash, price in washes.items():
                flat.append((car, wash, price))
        return flat, []

    flat = []
    malformed = []
    for item in entries or []:
        if isinstance(item, dict):
            flat.append((item.get("car_category"), item.get("wash_type"), item.get("price")))
            continue
        try:
            car, wash, price = item
        except (TypeError, ValueError):
            malformed.append(item)
            continue
        flat.append((car, wash, price))
    return flat, malformed


def bulk_upsert(db: Session, caller: Caller, entries) -> UpsertReport:
    require_admin(caller)
    if entries is None:
        raise InvalidInputError("matrix is required", field="matrix")

    report = UpsertReport()
    known_cars = {}
    known_washes = {}

    def _known(cache, kind, code):
        if code not in cache:
            cache[code] = taxonomy_service.is_known_code(db, kind, code)
        return cache[code]

    flat, malformed = _flatten(entries)
    for item in malformed:
        report.skipped.append(SkippedEntry(None, None, item, "malformed entry"))
        logger.warning(f"[PRICING] Skipped malformed entry {item!r}")

    now = datetime.utcnow()
    with atomic(db):
        for raw_car, raw_wash, raw_price in flat:
            car_category = to_car_category(raw_car)
            wash_type = to_wash_type(raw_wash)

            reason = None
            if not car_category or not _known(known_cars, taxonomy_service.KIND_CAR, car_category):
                reason = "unknown car category"
            elif not wash_type or not _known(known_washes, taxonomy_service.KIND_WASH, wash_type):
                reason = "unknown wash type"
            elif wash_type == CUSTOM_WASH_TYPE:
                reason = "CUSTOM is manually priced"

            price = price_engine.as_finite_decimal(raw_price)
            if reason is None and (price is None or price < 0):
                reason = "price must be a finite number >= 0"

            if reason:
                report.skipped.append(SkippedEntry(car_category or raw_car, wash_type or raw_wash, raw_price, reason))
                logger.warning(f"[PRICING] Skipped {raw_car} × {raw_wash} = {raw_price!r}: {reason}")
                continue

            price = price_engine.to_money(price)
            entry = (
                db.query(PricingEntry)
                .filter(PricingEntry.car_category == car_category, PricingEntry.wash_type == wash_type)
                .first()
            )
            if entry:
                entry.price = price
                entry.updated_at = now
            else:
                db.add(PricingEntry(car_category=car_category, wash_type=wash_type, price=price, updated_at=now))
                db.flush()
            report.applied.append((car_category, wash_type, price))

    logger.info(f"[PRICING] {caller.id} upserted {len(report.applied)} entries, skipped {len(report.skipped)}")
    return report


def quote(db: Session, car_category, wash_type, discount_percentage=0,
          washer_id: Optional[int] = None, washer_username: Optional[str] = None,
          explicit_price=None) -> dict:
    """Price preview for the new-record form. Persists nothing."""
    car = to_car_category(car_category)
    wash = to_wash_type(wash_type)
    if not car or not taxonomy_service.is_known_code(db, taxonomy_service.KIND_CAR, car):
        raise InvalidInputError(f"Unsupported car category: {car_category}", field="car_category")
    if not wash:
        raise InvalidInputError(f"Unsupported wash type: {wash_type}", field="wash_type")
    if washer_id is None and not washer_username:
        raise InvalidInputError("washer_id or washer_username is required", field="washer_id")

    washer = find_washer(db, washer_id, washer_username)
    if not washer:
        raise NotFoundError("Washer not found", field="washer_id")

    breakdown = price_engine.price_breakdown(
        car, wash, discount_percentage, washer.salary_percentage,
        explicit_override=explicit_price, lookup=matrix_lookup(db),
    )
    return {
        "car_category": car,
        "wash_type": wash,
        "discount_percentage": price_engine.as_finite_decimal(discount_percentage) or 0,
        "original_price": breakdown.original_price,
        "discounted_price": breakdown.discounted_price,
        "washer_cut": breakdown.washer_cut,
        "washer": washer,
    }
