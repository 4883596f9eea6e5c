"""
Facet extraction: the few structured attributes each kind exposes for filtering.

`extract_facets` runs over untrusted bulk data, so every accessor here coerces
instead of assuming a shape. Absent or malformed fields become absent facets.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from pydantic import ValidationError

from .models import (
    EntityKind,
    Facets,
    MonsterFacets,
    SpellFacets,
    ItemFacets,
    DeityFacets,
    VehicleFacets,
    TrapFacets,
    OptionalFeatureFacets,
    FacilityFacets,
    PublicationFacets,
    TypedFacets,
)


logger = logging.getLogger("lorekeeper")


# =============================================================================
# Coercion helpers
# =============================================================================

def _str(value: Any) -> str | None:
    if isinstance(value, str):
        return value or None
    return None


def _int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _str_list(value: Any) -> list[str] | None:
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        items = [v for v in value if isinstance(v, str)]
        return items or None
    return None


def parse_cr(cr: Any) -> float | None:
    """Parse a challenge rating ("1/4", 17, {"cr": "1/2"}) to a number.

    Returns None when the value is missing or unreadable.
    """
    if isinstance(cr, bool):
        return None
    if isinstance(cr, (int, float)):
        return float(cr)
    if isinstance(cr, str):
        text = cr.strip()
        if "/" in text:
            num, denom = text.split("/", 1)
            try:
                return float(num) / float(denom)
            except (ValueError, ZeroDivisionError):
                return None
        try:
            return float(text)
        except ValueError:
            return None
    if isinstance(cr, dict):
        return parse_cr(cr.get("cr"))
    return None


def _cr_text(cr: Any) -> str | None:
    if isinstance(cr, dict):
        cr = cr.get("cr")
    if isinstance(cr, bool):
        return None
    if isinstance(cr, str):
        return cr or None
    if isinstance(cr, (int, float)):
        return str(int(cr)) if float(cr).is_integer() else str(cr)
    return None


def _creature_type(value: Any) -> str | None:
    # "humanoid" | {"type": "dragon", "tags": [...]} | {"type": {"choose": [...]}}
    if isinstance(value, dict):
        value = value.get("type")
    if isinstance(value, dict):
        choices = _str_list(value.get("choose"))
        return "/".join(choices) if choices else None
    return _str(value)


def _spell_classes(value: Any) -> list[str]:
    if not isinstance(value, dict):
        return []
    from_list = value.get("fromClassList")
    if not isinstance(from_list, list):
        return []
    names = []
    for entry in from_list:
        if isinstance(entry, dict) and isinstance(entry.get("name"), str) and entry["name"]:
            names.append(entry["name"].lower())
    return names


# =============================================================================
# Per-kind extractors
# =============================================================================

def _monster(record: dict) -> MonsterFacets:
    return MonsterFacets(
        cr=_cr_text(record.get("cr")),
        cr_value=parse_cr(record.get("cr")),
        type=_creature_type(record.get("type")),
    )


def _spell(record: dict) -> SpellFacets:
    return SpellFacets(
        level=_int(record.get("level")),
        school=_str(record.get("school")),
        classes=_spell_classes(record.get("classes")),
    )


def _item(record: dict) -> ItemFacets:
    return ItemFacets(
        rarity=_str(record.get("rarity")),
        req_attune=bool(record.get("reqAttune")),
        type=_str(record.get("type")),
    )


def _deity(record: dict) -> DeityFacets:
    return DeityFacets(
        pantheon=_str(record.get("pantheon")),
        alignment=_str_list(record.get("alignment")),
    )


def _vehicle(record: dict) -> VehicleFacets:
    return VehicleFacets(vehicle_type=_str(record.get("vehicleType")))


def _trap(record: dict) -> TrapFacets:
    return TrapFacets(trap_haz_type=_str(record.get("trapHazType")))


def _optional_feature(record: dict) -> OptionalFeatureFacets:
    return OptionalFeatureFacets(feature_type=_str_list(record.get("featureType")))


def _facility(record: dict) -> FacilityFacets:
    return FacilityFacets(
        facility_type=_str(record.get("facilityType")),
        level=_int(record.get("level")),
    )


def _publication(record: dict) -> PublicationFacets:
    level = record.get("level")
    return PublicationFacets(
        author=_str(record.get("author")),
        group=_str(record.get("group")),
        published=_str(record.get("published")),
        storyline=_str(record.get("storyline")),
        level=level if isinstance(level, dict) else None,
    )


def _typed(record: dict) -> TypedFacets:
    return TypedFacets(type=_str(record.get("type")))


FACET_EXTRACTORS: dict[EntityKind, Callable[[dict], Facets]] = {
    EntityKind.MONSTER: _monster,
    EntityKind.SPELL: _spell,
    EntityKind.ITEM: _item,
    EntityKind.DEITY: _deity,
    EntityKind.VEHICLE: _vehicle,
    EntityKind.TRAP: _trap,
    EntityKind.OPTIONAL_FEATURE: _optional_feature,
    EntityKind.RECIPE: _typed,
    EntityKind.FACILITY: _facility,
    EntityKind.ADVENTURE: _publication,
    EntityKind.BOOK: _publication,
    EntityKind.REWARD: _typed,
    EntityKind.PSIONIC: _typed,
    EntityKind.LANGUAGE: _typed,
    EntityKind.OBJECT: _typed,
    EntityKind.RULE: _typed,
}

# Facet model each extractor produces, used as the empty fallback
FACET_MODELS: dict[EntityKind, type[Facets]] = {
    EntityKind.MONSTER: MonsterFacets,
    EntityKind.SPELL: SpellFacets,
    EntityKind.ITEM: ItemFacets,
    EntityKind.DEITY: DeityFacets,
    EntityKind.VEHICLE: VehicleFacets,
    EntityKind.TRAP: TrapFacets,
    EntityKind.OPTIONAL_FEATURE: OptionalFeatureFacets,
    EntityKind.RECIPE: TypedFacets,
    EntityKind.FACILITY: FacilityFacets,
    EntityKind.ADVENTURE: PublicationFacets,
    EntityKind.BOOK: PublicationFacets,
    EntityKind.REWARD: TypedFacets,
    EntityKind.PSIONIC: TypedFacets,
    EntityKind.LANGUAGE: TypedFacets,
    EntityKind.OBJECT: TypedFacets,
    EntityKind.RULE: TypedFacets,
}


def extract_facets(kind: EntityKind, record: Any) -> Facets:
    """
    Map a raw record to its kind's facet model.

    Total and pure: never raises, never mutates `record`.

    Args:
        kind: Entity kind of the record
        record: Raw parsed record (normally a dict)

    Returns:
        The kind's facet model; empty when nothing usable is present
    """
    model = FACET_MODELS.get(kind, Facets)
    extractor = FACET_EXTRACTORS.get(kind)
    if extractor is None or not isinstance(record, dict):
        return model()
    try:
        return extractor(record)
    except (ValidationError, TypeError, ValueError, AttributeError) as e:
        logger.debug(f"Dropping facets for {kind.value} '{record.get('name')}': {e}")
        return model()


__all__ = [
    "FACET_EXTRACTORS",
    "FACET_MODELS",
    "extract_facets",
    "parse_cr",
]
