"""
Identity helpers and static lookup tables shared by the builder and the catalog.
"""

from __future__ import annotations

import re

from .models import EntityKind, Ruleset


URI_SCHEME = "catalog"
UNKNOWN_SOURCE = "UNK"

_SLUG_RE = re.compile(r"[^a-z0-9]+")


# Map from entity kind to the JSON key holding its array in data files
KIND_TO_KEY: dict[EntityKind, str] = {
    EntityKind.MONSTER: "monster",
    EntityKind.SPELL: "spell",
    EntityKind.ITEM: "item",
    EntityKind.FEAT: "feat",
    EntityKind.BACKGROUND: "background",
    EntityKind.RACE: "race",
    EntityKind.CLASS: "class",
    EntityKind.SUBCLASS: "subclass",
    EntityKind.CONDITION: "condition",
    EntityKind.RULE: "variantrule",
    EntityKind.ADVENTURE: "adventure",
    EntityKind.BOOK: "book",
    EntityKind.TABLE: "table",
    EntityKind.DEITY: "deity",
    EntityKind.VEHICLE: "vehicle",
    EntityKind.TRAP: "trap",
    EntityKind.OPTIONAL_FEATURE: "optionalfeature",
    EntityKind.PSIONIC: "psionic",
    EntityKind.LANGUAGE: "language",
    EntityKind.OBJECT: "object",
    EntityKind.REWARD: "reward",
    EntityKind.RECIPE: "recipe",
    EntityKind.DECK: "deck",
    EntityKind.FACILITY: "facility",
}

# Source assumed for each kind when a reference names no source
KIND_DEFAULT_SOURCE: dict[EntityKind, str] = {
    EntityKind.MONSTER: "MM",
    EntityKind.SPELL: "PHB",
    EntityKind.ITEM: "DMG",
    EntityKind.FEAT: "PHB",
    EntityKind.BACKGROUND: "PHB",
    EntityKind.RACE: "PHB",
    EntityKind.CLASS: "PHB",
    EntityKind.SUBCLASS: "PHB",
    EntityKind.CONDITION: "PHB",
    EntityKind.RULE: "DMG",
    EntityKind.ADVENTURE: "PHB",
    EntityKind.BOOK: "PHB",
    EntityKind.TABLE: "DMG",
    EntityKind.DEITY: "PHB",
    EntityKind.VEHICLE: "DMG",
    EntityKind.TRAP: "DMG",
    EntityKind.OPTIONAL_FEATURE: "PHB",
    EntityKind.PSIONIC: "UAMystic",
    EntityKind.LANGUAGE: "PHB",
    EntityKind.OBJECT: "DMG",
    EntityKind.REWARD: "DMG",
    EntityKind.RECIPE: "HF",
    EntityKind.DECK: "DMG",
    EntityKind.FACILITY: "DMG",
}

# Inline tag names used in content text, mapped to the kind they reference
TAG_TO_KIND: dict[str, EntityKind] = {
    "spell": EntityKind.SPELL,
    "item": EntityKind.ITEM,
    "creature": EntityKind.MONSTER,
    "monster": EntityKind.MONSTER,
    "background": EntityKind.BACKGROUND,
    "feat": EntityKind.FEAT,
    "race": EntityKind.RACE,
    "class": EntityKind.CLASS,
    "subclass": EntityKind.SUBCLASS,
    "condition": EntityKind.CONDITION,
    "deity": EntityKind.DEITY,
    "vehicle": EntityKind.VEHICLE,
    "trap": EntityKind.TRAP,
    "hazard": EntityKind.TRAP,
    "optfeature": EntityKind.OPTIONAL_FEATURE,
    "variantrule": EntityKind.RULE,
    "reward": EntityKind.REWARD,
    "object": EntityKind.OBJECT,
    "recipe": EntityKind.RECIPE,
    "deck": EntityKind.DECK,
    "card": EntityKind.DECK,
    "facility": EntityKind.FACILITY,
    "psionic": EntityKind.PSIONIC,
    "language": EntityKind.LANGUAGE,
    "table": EntityKind.TABLE,
    "book": EntityKind.BOOK,
    "adventure": EntityKind.ADVENTURE,
}


def to_slug(name: str) -> str:
    """Lower-case a display name and collapse punctuation/whitespace runs to '-'.

    Example:
        >>> to_slug("Dragon, Adult Red")
        'dragon-adult-red'
    """
    return _SLUG_RE.sub("-", name.lower()).strip("-")


def ruleset_from_source(abbreviation: str) -> Ruleset:
    """Derive the rules edition from a source abbreviation."""
    return Ruleset.for_source(abbreviation)


def entity_uri(kind: EntityKind, source: str, name: str) -> str:
    """Build the stable identifier for an entity."""
    return f"{URI_SCHEME}://entity/{kind.value}/{source}/{to_slug(name)}"


def table_uri(source: str, name: str) -> str:
    """Build the stable identifier for a roll table."""
    return f"{URI_SCHEME}://table/{source}/{to_slug(name)}"


def fluff_key(kind: EntityKind, source: str, name: str) -> str:
    return f"{kind.value}/{source}/{to_slug(name)}"


def resolve_tag(tag: str, source: str | None = None) -> tuple[EntityKind, str] | None:
    """Map an inline tag (e.g. "creature") to its kind and default source.

    Returns None for tags that do not reference catalog entities.
    """
    kind = TAG_TO_KIND.get(tag.lower())
    if kind is None:
        return None
    return kind, source or KIND_DEFAULT_SOURCE[kind]


__all__ = [
    "URI_SCHEME",
    "UNKNOWN_SOURCE",
    "KIND_TO_KEY",
    "KIND_DEFAULT_SOURCE",
    "TAG_TO_KIND",
    "to_slug",
    "ruleset_from_source",
    "entity_uri",
    "table_uri",
    "fluff_key",
    "resolve_tag",
]
