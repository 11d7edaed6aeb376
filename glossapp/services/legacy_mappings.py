# glossapp/services/legacy_mappings.py
"""
Translation between the old human-readable category names ("Sedan",
"Complete Wash") and the canonical codes stored in the database.
Used only at the boundary: services and routers translate input once,
the engine itself works on codes.
"""

from typing import Optional

LEGACY_CAR_TYPE_TO_SCHEMA = {
    "Sedan": "SEDAN",
    "Hatchback": "SEDAN",
    "Premium": "PREMIUM_CLASS",
    "Jeep": "SMALL_JEEP",
    "Big Jeep": "BIG_JEEP",
    "Minivan": "MICROBUS",
    "Truck": "BIG_JEEP",
}

LEGACY_SERVICE_TYPE_TO_SCHEMA = {
    "Complete Wash": "COMPLETE",
    "Outer Wash": "OUTER",
    "Interior Wash": "INNER",
    "Interior Cleaning": "INNER",
    "Engine Wash": "ENGINE",
    "Chemical Wash": "CHEMICAL",
}

SCHEMA_CAR_TYPE_TO_LEGACY = {
    "SEDAN": "Sedan",
    "PREMIUM_CLASS": "Premium",
    "SMALL_JEEP": "Jeep",
    "BIG_JEEP": "Big Jeep",
    "MICROBUS": "Minivan",
}

SCHEMA_WASH_TYPE_TO_LEGACY = {
    "COMPLETE": "Complete Wash",
    "OUTER": "Outer Wash",
    "INNER": "Interior Wash",
    "ENGINE": "Engine Wash",
    "CHEMICAL": "Chemical Wash",
    "CUSTOM": "Custom Service",
}

CUSTOM_WASH_TYPE = "CUSTOM"

CAR_TYPE_LABELS = {
    "ka": {
        "SEDAN": "სედანი",
        "PREMIUM_CLASS": "პრემიუმ კლასი",
        "SMALL_JEEP": "ჯიპი",
        "BIG_JEEP": "დიდი ჯიპი",
        "MICROBUS": "მინივენი",
    },
    "en": {
        "SEDAN": "Sedan",
        "PREMIUM_CLASS": "Premium",
        "SMALL_JEEP": "Jeep",
        "BIG_JEEP": "Big Jeep",
        "MICROBUS": "Minivan",
    },
}

WASH_TYPE_LABELS = {
    "ka": {
        "COMPLETE": "სრული რეცხვა",
        "OUTER": "გარე რეცხვა",
        "INNER": "სალონის რეცხვა",
        "ENGINE": "ძრავის რეცხვა",
        "CHEMICAL": "ქიმიური რეცხვა",
        "CUSTOM": "სხვა სერვისი",
    },
    "en": {
        "COMPLETE": "Complete Wash",
        "OUTER": "Outer Wash",
        "INNER": "Interior Wash",
        "ENGINE": "Engine Wash",
        "CHEMICAL": "Chemical Wash",
        "CUSTOM": "Custom Service",
    },
}

def _translate(value, legacy_map) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    if not value:
        return None
    # Anything that is not a legacy name is taken as a code; the taxonomy store decides if it exists.
    return legacy_map.get(value, value)


def to_car_category(value) -> Optional[str]:
    """Legacy name or code → canonical car category code. None if blank."""
    return _translate(value, LEGACY_CAR_TYPE_TO_SCHEMA)


def to_wash_type(value) -> Optional[str]:
    """Legacy name or code → canonical wash type code. None if blank."""
    return _translate(value, LEGACY_SERVICE_TYPE_TO_SCHEMA)


def to_legacy_car_type(code: Optional[str]) -> Optional[str]:
    return SCHEMA_CAR_TYPE_TO_LEGACY.get(code, code)


def to_legacy_wash_type(code: Optional[str]) -> Optional[str]:
    return SCHEMA_WASH_TYPE_TO_LEGACY.get(code, code)


def _label(labels, code, lang):
    safe_lang = "en" if lang == "en" else "ka"
    return labels[safe_lang].get(code) or labels["ka"].get(code) or code


def car_type_label(code: str, lang: str = "ka") -> str:
    return _label(CAR_TYPE_LABELS, code, lang)


def wash_type_label(code: str, lang: str = "ka") -> str:
    return _label(WASH_TYPE_LABELS, code, lang)
