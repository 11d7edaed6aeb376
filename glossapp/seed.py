# glossapp/seed.py
"""
Default car/wash types and the price board.
Idempotent: existing types are left alone, board prices are upserted.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from glossapp.database import atomic
from glossapp.models.pricing import PricingEntry
from glossapp.models.type_config import CarTypeConfig, WashTypeConfig
from glossapp.services.legacy_mappings import CAR_TYPE_LABELS, CUSTOM_WASH_TYPE, WASH_TYPE_LABELS
from glossapp.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CAR_TYPES = ["SEDAN", "PREMIUM_CLASS", "SMALL_JEEP", "BIG_JEEP", "MICROBUS"]
DEFAULT_WASH_TYPES = ["COMPLETE", "OUTER", "INNER", "ENGINE", "CHEMICAL", CUSTOM_WASH_TYPE]

BOARD_PRICES = {
    "SEDAN":         {"COMPLETE": 30, "OUTER": 17, "INNER": 17, "CHEMICAL": 400},
    "PREMIUM_CLASS": {"COMPLETE": 32, "OUTER": 18, "INNER": 18, "CHEMICAL": 450},
    "SMALL_JEEP":    {"COMPLETE": 35, "OUTER": 20, "INNER": 20, "CHEMICAL": 500},
    "BIG_JEEP":      {"COMPLETE": 40, "OUTER": 25, "INNER": 25, "CHEMICAL": 550},
    "MICROBUS":      {"COMPLETE": 65, "OUTER": 40, "INNER": 40, "CHEMICAL": 600},
}


def _seed_types(db: Session, model, codes, labels, now):
    created = 0
    for order, code in enumerate(codes):
        if db.query(model).filter(model.code == code).first():
            continue
        db.add(model(
            code=code,
            display_name_ka=labels["ka"].get(code, code),
            display_name_en=labels["en"].get(code, code),
            is_active=True,
            sort_order=order,
            created_at=now,
            updated_at=now,
        ))
        created += 1
    return created


def seed_defaults(db: Session, prices: bool = True) -> dict:
    now = datetime.utcnow()
    with atomic(db):
        cars = _seed_types(db, CarTypeConfig, DEFAULT_CAR_TYPES, CAR_TYPE_LABELS, now)
        washes = _seed_types(db, WashTypeConfig, DEFAULT_WASH_TYPES, WASH_TYPE_LABELS, now)
        db.flush()

        priced = 0
        if prices:
            for car, washes_prices in BOARD_PRICES.items():
                for wash, price in washes_prices.items():
                    entry = (
                        db.query(PricingEntry)
                        .filter(PricingEntry.car_category == car, PricingEntry.wash_type == wash)
                        .first()
                    )
                    if entry:
                        entry.price = Decimal(price)
                        entry.updated_at = now
                    else:
                        db.add(PricingEntry(car_category=car, wash_type=wash, price=Decimal(price), updated_at=now))
                    priced += 1

    logger.info(f"[SEED] car types +{cars}, wash types +{washes}, board prices {priced}")
    return {"car_types": cars, "wash_types": washes, "prices": priced}
