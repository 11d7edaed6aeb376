# glossapp/services/party_service.py
"""
Party registry: vehicles, washers, companies and discounts.

The resolve_* helpers are what record creation/update use. They never
commit: they add/flush inside the caller's transaction so a failed record
write leaves no orphan vehicle or washer behind.

  resolve_vehicle   find-or-create by exact plate, category synced (last write wins)
  resolve_washer    by id, else by username, else auto-create (active, 0% commission)
  resolve_company_snapshot  (id, name) or (None, None), never raises
  resolve_discount  id of an active company discount with that exact percentage, or None

The rest of the module is admin maintenance of the same entities.
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

from sqlalchemy.orm import Session

from glossapp.auth import Caller, SecretVerifier, require_admin, require_admin_with_pin
from glossapp.config import settings
from glossapp.database import atomic
from glossapp.exceptions import ConflictError, ForbiddenError, InvalidInputError, NotFoundError
from glossapp.models.company import Company, Discount
from glossapp.models.vehicle import Vehicle
from glossapp.models.wash_record import WashRecord
from glossapp.models.washer import Washer
from glossapp.services import taxonomy_service
from glossapp.services.legacy_mappings import to_car_category
from glossapp.utils.logger import get_logger

logger = get_logger(__name__)

PHYSICAL_PERSON_PREFIX = "physical-"
PHYSICAL_PERSON_LABEL = "Physical Person"
MAX_PLATE_LENGTH = 20


# ── Validation helpers ───────────────────────────────────────────────────────
def clean_plate(value) -> str:
    plate = str(value or "").strip()
    if not plate:
        raise InvalidInputError("License plate is required", field="license_plate")
    if len(plate) > MAX_PLATE_LENGTH:
        raise InvalidInputError(
            f"License plate must be between 1 and {MAX_PLATE_LENGTH} characters", field="license_plate"
        )
    return plate


def clean_percentage(value, field: str) -> int:
    """Whole-number percentage in [0, 100]."""
    if isinstance(value, bool):
        raise InvalidInputError(f"{field} must be a number between 0 and 100", field=field)
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidInputError(f"{field} must be a number between 0 and 100", field=field)
    if not number.is_finite() or number < 0 or number > 100 or number != number.to_integral_value():
        raise InvalidInputError(f"{field} must be a whole number between 0 and 100", field=field)
    return int(number)


def _clean_salary(value) -> Decimal:
    if isinstance(value, bool):
        raise InvalidInputError("salary_percentage must be between 0 and 100", field="salary_percentage")
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidInputError("salary_percentage must be between 0 and 100", field="salary_percentage")
    if not number.is_finite() or number < 0 or number > 100:
        raise InvalidInputError("salary_percentage must be between 0 and 100", field="salary_percentage")
    return number


def _required_text(value, field: str, max_length: int = 200) -> str:
    text = str(value or "").strip()
    if not text or len(text) > max_length:
        raise InvalidInputError(f"{field} must be between 1 and {max_length} characters", field=field)
    return text


def _optional_text(value) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _category_code(db: Session, value) -> str:
    code = to_car_category(value)
    if not code or not taxonomy_service.is_known_code(db, taxonomy_service.KIND_CAR, code):
        raise InvalidInputError(f"Invalid car category: {value}", field="car_category")
    return code


def is_physical_person_id(discount_id) -> bool:
    return isinstance(discount_id, str) and discount_id.startswith(PHYSICAL_PERSON_PREFIX)


# ── Resolution (used by the record lifecycle) ────────────────────────────────
def find_vehicle_by_plate(db: Session, license_plate: str):
    """Exact, case-sensitive match on the trimmed plate."""
    return db.query(Vehicle).filter(Vehicle.license_plate == license_plate.strip()).first()


def resolve_vehicle(db: Session, license_plate: str, car_category: str) -> Vehicle:
    plate = clean_plate(license_plate)
    vehicle = find_vehicle_by_plate(db, plate)
    now = datetime.utcnow()
    if vehicle is None:
        vehicle = Vehicle(license_plate=plate, car_category=car_category, created_at=now, updated_at=now)
        db.add(vehicle)
        db.flush()
        logger.info(f"[PARTY] New vehicle {plate} ({car_category})")
    elif vehicle.car_category != car_category:
        logger.info(f"[PARTY] Vehicle {plate} category {vehicle.car_category} → {car_category}")
        vehicle.car_category = car_category
        vehicle.updated_at = now
    return vehicle


def find_washer(db: Session, washer_id: Optional[int] = None, username: Optional[str] = None):
    if washer_id is not None:
        return db.query(Washer).filter(Washer.id == washer_id).first()
    if username:
        return db.query(Washer).filter(Washer.username == username.strip()).first()
    return None


def resolve_washer(db: Session, washer_id: Optional[int] = None, username: Optional[str] = None) -> Washer:
    if washer_id is not None:
        washer = find_washer(db, washer_id=washer_id)
        if washer:
            return washer
        if not (username and username.strip()):
            raise InvalidInputError(f"Washer {washer_id} does not exist", field="washer_id")

    username = (username or "").strip()
    if not username:
        raise InvalidInputError("washer_id or washer_username is required", field="washer_id")

    washer = find_washer(db, username=username)
    if washer:
        return washer

    washer = Washer(username=username, active=True, salary_percentage=0, created_at=datetime.utcnow())
    db.add(washer)
    db.flush()
    logger.info(f"[PARTY] Auto-created washer '{username}'")
    return washer


def resolve_company_snapshot(db: Session, company_id: Optional[int]):
    if company_id is None:
        return None, None
    company = db.query(Company).filter(Company.id == company_id).first()
    if not company:
        logger.warning(f"[PARTY] Company {company_id} not found, record stored as walk-in")
        return None, None
    return company.id, company.name


def resolve_discount(db: Session, company_id: Optional[int], percentage) -> Optional[int]:
    if company_id is None or not percentage or percentage <= 0:
        return None
    discount = (
        db.query(Discount)
        .filter(
            Discount.company_id == company_id,
            Discount.percentage == percentage,
            Discount.active.is_(True),
        )
        .order_by(Discount.id.asc())
        .first()
    )
    return discount.id if discount else None


# ── Vehicles ─────────────────────────────────────────────────────────────────
def search_vehicles(db: Session, search: Optional[str] = None, limit: Optional[int] = None) -> list:
    """Autocomplete: case-insensitive 'contains' on the plate, newest first."""
    q = db.query(Vehicle)
    search = (search or "").strip()
    if search:
        q = q.filter(Vehicle.license_plate.ilike(f"%{search}%"))
    return q.order_by(Vehicle.created_at.desc(), Vehicle.id.desc()).limit(limit or settings.VEHICLE_SEARCH_LIMIT).all()


def list_vehicles(db: Session, caller: Caller, search: Optional[str] = None, page: int = 1,
                  limit: int = 50) -> dict:
    require_admin(caller)
    page = max(1, int(page or 1))
    limit = min(max(1, int(limit or 50)), settings.MAX_PAGE_SIZE)
    q = db.query(Vehicle)
    search = (search or "").strip()
    if search:
        q = q.filter(Vehicle.license_plate.ilike(f"%{search}%"))
    total = q.count()
    vehicles = (
        q.order_by(Vehicle.created_at.desc(), Vehicle.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "vehicles": vehicles,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": (total + limit - 1) // limit,
        },
    }


def _get_vehicle_or_404(db: Session, vehicle_id: int) -> Vehicle:
    vehicle = db.query(Vehicle).filter(Vehicle.id == vehicle_id).first()
    if not vehicle:
        raise NotFoundError("Vehicle not found", field="id")
    return vehicle


def create_vehicle(db: Session, caller: Caller, license_plate: str, car_category: str) -> Vehicle:
    require_admin(caller)
    plate = clean_plate(license_plate)
    code = _category_code(db, car_category)
    if find_vehicle_by_plate(db, plate):
        raise ConflictError("License plate already exists", field="license_plate")

    now = datetime.utcnow()
    vehicle = Vehicle(license_plate=plate, car_category=code, created_at=now, updated_at=now)
    with atomic(db):
        db.add(vehicle)
    db.refresh(vehicle)
    logger.info(f"[PARTY] {caller.id} registered vehicle {plate}")
    return vehicle


def update_vehicle(db: Session, caller: Caller, vehicle_id: int, license_plate: Optional[str] = None,
                   car_category: Optional[str] = None) -> Vehicle:
    require_admin(caller)
    vehicle = _get_vehicle_or_404(db, vehicle_id)

    with atomic(db):
        if license_plate is not None:
            plate = clean_plate(license_plate)
            if plate != vehicle.license_plate:
                if find_vehicle_by_plate(db, plate):
                    raise ConflictError("License plate already exists", field="license_plate")
                vehicle.license_plate = plate
        if car_category is not None:
            vehicle.car_category = _category_code(db, car_category)
        vehicle.updated_at = datetime.utcnow()
    db.refresh(vehicle)
    return vehicle


def delete_vehicle(db: Session, caller: Caller, secrets: SecretVerifier, vehicle_id: int, master_pin=None):
    require_admin_with_pin(caller, secrets, master_pin)
    vehicle = _get_vehicle_or_404(db, vehicle_id)
    if db.query(WashRecord.id).filter(WashRecord.vehicle_id == vehicle.id).first():
        raise ConflictError("Cannot delete vehicle with existing wash records", field="id", code="VEHICLE_IN_USE")
    with atomic(db):
        db.delete(vehicle)
    logger.info(f"[PARTY] {caller.id} deleted vehicle {vehicle.license_plate}")


# ── Washers ──────────────────────────────────────────────────────────────────
def list_washers(db: Session, caller: Caller, include_inactive: bool = False) -> list:
    """Admins may include inactive washers; staff always see active ones only."""
    q = db.query(Washer)
    if not (include_inactive and caller.is_admin):
        q = q.filter(Washer.active.is_(True))
    return q.order_by(Washer.username.asc()).all()


def _get_washer_or_404(db: Session, washer_id: int) -> Washer:
    washer = find_washer(db, washer_id=washer_id)
    if not washer:
        raise NotFoundError("Washer not found", field="id")
    return washer


def create_washer(db: Session, caller: Caller, username: str, name=None, surname=None, contact=None,
                  salary_percentage=0, active: bool = True) -> Washer:
    require_admin(caller)
    username = _required_text(username, "username", max_length=100)
    if find_washer(db, username=username):
        raise ConflictError(f"Washer '{username}' already exists", field="username")

    washer = Washer(
        username=username,
        name=_optional_text(name),
        surname=_optional_text(surname),
        contact=_optional_text(contact),
        active=bool(active),
        salary_percentage=_clean_salary(salary_percentage if salary_percentage is not None else 0),
        created_at=datetime.utcnow(),
    )
    with atomic(db):
        db.add(washer)
    db.refresh(washer)
    logger.info(f"[PARTY] {caller.id} created washer {username}")
    return washer


def update_washer(db: Session, caller: Caller, washer_id: int, fields: dict) -> Washer:
    """username is immutable; a changed salary only affects records priced afterwards."""
    require_admin(caller)
    washer = _get_washer_or_404(db, washer_id)
    if fields.get("username") is not None and fields["username"] != washer.username:
        raise InvalidInputError("username cannot be changed", field="username")

    with atomic(db):
        for name in ("name", "surname", "contact"):
            if name in fields:
                setattr(washer, name, _optional_text(fields[name]))
        if fields.get("active") is not None:
            washer.active = bool(fields["active"])
        if fields.get("salary_percentage") is not None:
            washer.salary_percentage = _clean_salary(fields["salary_percentage"])
    db.refresh(washer)
    logger.info(f"[PARTY] {caller.id} updated washer {washer.username}")
    return washer


def delete_washer(db: Session, caller: Caller, secrets: SecretVerifier, washer_id: int, master_pin=None):
    require_admin_with_pin(caller, secrets, master_pin)
    washer = _get_washer_or_404(db, washer_id)
    if db.query(WashRecord.id).filter(WashRecord.washer_id == washer.id).first():
        raise ConflictError(
            "Washer has wash records and cannot be deleted. Deactivate the washer instead.",
            field="id",
            code="WASHER_IN_USE",
        )
    with atomic(db):
        db.delete(washer)
    logger.info(f"[PARTY] {caller.id} deleted washer {washer.username}")


# ── Companies ────────────────────────────────────────────────────────────────
def active_discounts(company: Company) -> list:
    return [d for d in company.discounts if d.active]


def list_companies(db: Session, caller: Caller) -> list:
    require_admin(caller)
    return db.query(Company).order_by(Company.name.asc()).all()


def _get_company_or_404(db: Session, company_id: int) -> Company:
    company = db.query(Company).filter(Company.id == company_id).first()
    if not company:
        raise NotFoundError("Company not found", field="id")
    return company


def _unique_percentages(values) -> list:
    seen = []
    for value in values or []:
        pct = clean_percentage(value, "discount_percentages")
        if pct not in seen:
            seen.append(pct)
    return seen


def _add_discounts(db: Session, company: Company, percentages: list, now: datetime):
    for pct in percentages:
        db.add(Discount(company=company, percentage=pct, active=True, created_at=now))


def create_company(db: Session, caller: Caller, name: str, contact: str, discount_percentages=None) -> Company:
    require_admin(caller)
    now = datetime.utcnow()
    company = Company(
        name=_required_text(name, "name"),
        contact=_required_text(contact, "contact"),
        created_at=now,
        updated_at=now,
    )
    percentages = _unique_percentages(discount_percentages)
    with atomic(db):
        db.add(company)
        _add_discounts(db, company, percentages, now)
    db.refresh(company)
    logger.info(f"[PARTY] {caller.id} created company {company.name} with discounts {percentages}")
    return company


def update_company(db: Session, caller: Caller, company_id: int, name=None, contact=None,
                   discount_percentages=None) -> Company:
    """
    Passing discount_percentages replaces the active set: every existing
    discount is deactivated and one new active row per percentage is created.
    Old rows stay so historical records keep a valid discount_id.
    """
    require_admin(caller)
    company = _get_company_or_404(db, company_id)
    percentages = _unique_percentages(discount_percentages) if discount_percentages is not None else None

    now = datetime.utcnow()
    with atomic(db):
        if name is not None:
            company.name = _required_text(name, "name")
        if contact is not None:
            company.contact = _required_text(contact, "contact")
        if percentages is not None:
            for discount in company.discounts:
                discount.active = False
            _add_discounts(db, company, percentages, now)
        company.updated_at = now
    db.refresh(company)
    logger.info(f"[PARTY] {caller.id} updated company {company.id}")
    return company


def delete_company(db: Session, caller: Caller, secrets: SecretVerifier, company_id: int, master_pin=None):
    """Discounts are deleted with the company; records keep their company_name snapshot."""
    require_admin_with_pin(caller, secrets, master_pin)
    company = _get_company_or_404(db, company_id)
    discount_ids = [d.id for d in company.discounts]

    with atomic(db):
        db.query(WashRecord).filter(WashRecord.company_id == company.id).update(
            {WashRecord.company_id: None}, synchronize_session=False
        )
        if discount_ids:
            db.query(WashRecord).filter(WashRecord.discount_id.in_(discount_ids)).update(
                {WashRecord.discount_id: None}, synchronize_session=False
            )
        db.delete(company)
    logger.info(f"[PARTY] {caller.id} deleted company {company.name}")


# ── Discounts ────────────────────────────────────────────────────────────────
def _walk_in_percentages(db: Session) -> list:
    rows = (
        db.query(WashRecord.discount_percentage)
        .filter(WashRecord.company_id.is_(None))
        .distinct()
        .all()
    )
    return sorted({0} | {int(r[0] or 0) for r in rows})


def _physical_person_option(pct: int) -> dict:
    return {
        "id": f"{PHYSICAL_PERSON_PREFIX}{pct}",
        "company_id": None,
        "company_name": PHYSICAL_PERSON_LABEL,
        "percentage": pct,
        "active": True,
        "created_at": None,
    }


def discount_options(db: Session) -> list:
    """Selectable discounts for the record form: walk-in options first, then active company discounts."""
    options = []
    for pct in _walk_in_percentages(db):
        opt = _physical_person_option(pct)
        options.append({
            "label": f"{PHYSICAL_PERSON_LABEL} {pct}%",
            "company_id": None,
            "company_name": None,
            "discount_percentage": pct,
            "discount_id": opt["id"],
        })

    discounts = (
        db.query(Discount)
        .join(Company)
        .filter(Discount.active.is_(True))
        .order_by(Company.name.asc(), Discount.percentage.asc())
        .all()
    )
    for d in discounts:
        options.append({
            "label": f"{d.company.name} {d.percentage}%",
            "company_id": d.company_id,
            "company_name": d.company.name,
            "discount_percentage": d.percentage,
            "discount_id": str(d.id),
        })
    return options


def list_discounts(db: Session, caller: Caller) -> list:
    require_admin(caller)
    rows = [_physical_person_option(pct) for pct in _walk_in_percentages(db)]
    discounts = (
        db.query(Discount)
        .join(Company)
        .order_by(Company.name.asc(), Discount.percentage.asc(), Discount.id.asc())
        .all()
    )
    for d in discounts:
        rows.append({
            "id": str(d.id),
            "company_id": d.company_id,
            "company_name": d.company.name,
            "percentage": d.percentage,
            "active": d.active,
            "created_at": d.created_at,
        })
    return rows


def _get_discount_or_404(db: Session, discount_id) -> Discount:
    if is_physical_person_id(discount_id):
        raise ForbiddenError("Physical person discounts cannot be modified", field="id", code="PHYSICAL_PERSON_DISCOUNT")
    try:
        pk = int(discount_id)
    except (TypeError, ValueError):
        raise InvalidInputError(f"Invalid discount id: {discount_id}", field="id")
    discount = db.query(Discount).filter(Discount.id == pk).first()
    if not discount:
        raise NotFoundError("Discount not found", field="id")
    return discount


def update_discount(db: Session, caller: Caller, discount_id, active=None, percentage=None) -> Discount:
    """
    A percentage change never edits the row in place: the old discount is
    deactivated and a new one is returned, so records linked to the old id
    keep a discount that matches their own discount_percentage.
    """
    require_admin(caller)
    discount = _get_discount_or_404(db, discount_id)
    new_pct = clean_percentage(percentage, "percentage") if percentage is not None else None
    with atomic(db):
        if active is not None:
            discount.active = bool(active)
        if new_pct is not None and new_pct != discount.percentage:
            replacement = Discount(company_id=discount.company_id, percentage=new_pct,
                                   active=discount.active, created_at=datetime.utcnow())
            discount.active = False
            db.add(replacement)
            discount = replacement
    db.refresh(discount)
    logger.info(f"[PARTY] {caller.id} updated discount {discount.id}: {discount.percentage}% active={discount.active}")
    return discount


def delete_discount(db: Session, caller: Caller, secrets: SecretVerifier, discount_id, master_pin=None):
    require_admin_with_pin(caller, secrets, master_pin)
    discount = _get_discount_or_404(db, discount_id)
    with atomic(db):
        db.query(WashRecord).filter(WashRecord.discount_id == discount.id).update(
            {WashRecord.discount_id: None}, synchronize_session=False
        )
        db.delete(discount)
    logger.info(f"[PARTY] {caller.id} deleted discount {discount.id}")
