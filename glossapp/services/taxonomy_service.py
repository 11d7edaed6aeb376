# glossapp/services/taxonomy_service.py
"""
Car type / wash type configuration.
Reads are open to any authenticated caller; every mutation needs an admin
caller and the master PIN. A type still referenced by vehicles, records or
pricing cannot be deleted (TYPE_IN_USE); deactivate it instead.
"""

from datetime import datetime
from sqlalchemy import func
from sqlalchemy.orm import Session

from glossapp.auth import Caller, SecretVerifier, require_admin_with_pin
from glossapp.database import atomic
from glossapp.exceptions import ConflictError, InvalidInputError, NotFoundError
from glossapp.models.pricing import PricingEntry
from glossapp.models.type_config import CarTypeConfig, WashTypeConfig
from glossapp.models.vehicle import Vehicle
from glossapp.models.wash_record import WashRecord
from glossapp.utils.logger import get_logger

logger = get_logger(__name__)

KIND_CAR = "car"
KIND_WASH = "wash"
TYPE_MODELS = {KIND_CAR: CarTypeConfig, KIND_WASH: WashTypeConfig}
EDITABLE_FIELDS = ("code", "display_name_ka", "display_name_en", "is_active", "sort_order")


def _model_for(kind: str):
    model = TYPE_MODELS.get(kind)
    if model is None:
        raise InvalidInputError(f"Unknown type kind '{kind}'", field="kind")
    return model


def _usage_count(db: Session, kind: str, code: str) -> int:
    if kind == KIND_CAR:
        counts = (
            db.query(func.count(Vehicle.id)).filter(Vehicle.car_category == code).scalar(),
            db.query(func.count(WashRecord.id)).filter(WashRecord.car_category == code).scalar(),
            db.query(func.count(PricingEntry.id)).filter(PricingEntry.car_category == code).scalar(),
        )
    else:
        counts = (
            db.query(func.count(WashRecord.id)).filter(WashRecord.wash_type == code).scalar(),
            db.query(func.count(PricingEntry.id)).filter(PricingEntry.wash_type == code).scalar(),
        )
    return sum(c or 0 for c in counts)


def list_types(db: Session, kind: str, active_only: bool = False) -> list:
    """Configs ordered by sort_order, each annotated with an in_use flag."""
    model = _model_for(kind)
    q = db.query(model)
    if active_only:
        q = q.filter(model.is_active.is_(True))
    types = q.order_by(model.sort_order.asc(), model.id.asc()).all()
    for t in types:
        t.in_use = _usage_count(db, kind, t.code) > 0
    return types


def get_type_by_code(db: Session, kind: str, code: str):
    model = _model_for(kind)
    return db.query(model).filter(model.code == code).first()


def is_known_code(db: Session, kind: str, code: str) -> bool:
    return bool(code) and get_type_by_code(db, kind, code) is not None


def _get_type_or_404(db: Session, kind: str, type_id: int):
    model = _model_for(kind)
    config = db.query(model).filter(model.id == type_id).first()
    if not config:
        raise NotFoundError(f"{kind.capitalize()} type not found", field="id")
    return config


def _clean_code(code) -> str:
    code = str(code or "").strip()
    if not code:
        raise InvalidInputError("code is required", field="code")
    return code


def _clean_name(value, field: str) -> str:
    value = str(value or "").strip()
    if not value:
        raise InvalidInputError(f"{field} is required", field=field)
    return value


def create_type(db: Session, caller: Caller, secrets: SecretVerifier, kind: str, code: str,
                display_name_ka: str, display_name_en: str, is_active: bool = True,
                sort_order: int = 0, master_pin=None):
    require_admin_with_pin(caller, secrets, master_pin)
    model = _model_for(kind)
    code = _clean_code(code)

    if get_type_by_code(db, kind, code):
        raise ConflictError(f"{kind.capitalize()} type '{code}' already exists", field="code")

    now = datetime.utcnow()
    config = model(
        code=code,
        display_name_ka=_clean_name(display_name_ka, "display_name_ka"),
        display_name_en=_clean_name(display_name_en, "display_name_en"),
        is_active=bool(is_active),
        sort_order=int(sort_order or 0),
        created_at=now,
        updated_at=now,
    )
    with atomic(db):
        db.add(config)
    db.refresh(config)
    config.in_use = False
    logger.info(f"[TYPES] {caller.id} created {kind} type {code}")
    return config


def update_type(db: Session, caller: Caller, secrets: SecretVerifier, kind: str, type_id: int,
                fields: dict, master_pin=None):
    require_admin_with_pin(caller, secrets, master_pin)
    config = _get_type_or_404(db, kind, type_id)

    changes = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS and v is not None}
    if "code" in changes:
        changes["code"] = _clean_code(changes["code"])
        clash = get_type_by_code(db, kind, changes["code"])
        if clash and clash.id != config.id:
            raise ConflictError(f"{kind.capitalize()} type '{changes['code']}' already exists", field="code")
    for name in ("display_name_ka", "display_name_en"):
        if name in changes:
            changes[name] = _clean_name(changes[name], name)
    if "is_active" in changes:
        changes["is_active"] = bool(changes["is_active"])
    if "sort_order" in changes:
        changes["sort_order"] = int(changes["sort_order"])

    with atomic(db):
        for name, value in changes.items():
            setattr(config, name, value)
        config.updated_at = datetime.utcnow()
    db.refresh(config)
    config.in_use = _usage_count(db, kind, config.code) > 0
    logger.info(f"[TYPES] {caller.id} updated {kind} type {config.code}: {sorted(changes)}")
    return config


def delete_type(db: Session, caller: Caller, secrets: SecretVerifier, kind: str, type_id: int,
                master_pin=None):
    require_admin_with_pin(caller, secrets, master_pin)
    config = _get_type_or_404(db, kind, type_id)

    if _usage_count(db, kind, config.code) > 0:
        raise ConflictError(
            "This type is used by vehicles, records or pricing and cannot be deleted. "
            "Disable it instead so it won't show in dropdowns.",
            field="id",
            code="TYPE_IN_USE",
        )

    with atomic(db):
        db.delete(config)
    logger.info(f"[TYPES] {caller.id} deleted {kind} type {config.code}")
