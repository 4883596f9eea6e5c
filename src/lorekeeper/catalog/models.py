"""
Data models for the content catalog.

This module defines:
- EntityKind and Ruleset enumerations
- Per-kind facet models used for structured filtering
- CatalogSummary, the searchable projection of an entity
- StoredEntity, the full record kept for detail retrieval
- SourceEntry, the per-abbreviation source metadata
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SerializeAsAny


class EntityKind(str, Enum):
    """Closed set of content categories. Every entity belongs to exactly one."""
    MONSTER = "monster"
    SPELL = "spell"
    ITEM = "item"
    FEAT = "feat"
    BACKGROUND = "background"
    RACE = "race"
    CLASS = "class"
    SUBCLASS = "subclass"
    CONDITION = "condition"
    RULE = "rule"
    ADVENTURE = "adventure"
    BOOK = "book"
    TABLE = "table"
    DEITY = "deity"
    VEHICLE = "vehicle"
    TRAP = "trap"
    OPTIONAL_FEATURE = "optionalfeature"
    PSIONIC = "psionic"
    LANGUAGE = "language"
    OBJECT = "object"
    REWARD = "reward"
    RECIPE = "recipe"
    DECK = "deck"
    FACILITY = "facility"

    @classmethod
    def parse(cls, value: "EntityKind | str") -> "EntityKind | None":
        """Return the matching kind, or None for unknown values."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return None


class Ruleset(str, Enum):
    """Rules edition a source belongs to."""
    EDITION_2014 = "2014"
    EDITION_2024 = "2024"

    @classmethod
    def for_source(cls, abbreviation: str) -> "Ruleset":
        """Abbreviations starting with "x" mark the 2024 rules; everything else is 2014."""
        return cls.EDITION_2024 if abbreviation[:1] in ("x", "X") else cls.EDITION_2014

    @classmethod
    def parse(cls, value: "Ruleset | str | None") -> "Ruleset | None":
        """Parse a ruleset filter. None, "" and "any" mean no filter."""
        if value is None or isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        if text in ("", "any"):
            return None
        try:
            return cls(text)
        except ValueError:
            return None


# =============================================================================
# Facets
# =============================================================================

class Facets(BaseModel):
    """Base facet bag. Kinds without structured attributes use it as-is."""
    model_config = ConfigDict(extra="forbid")

    def to_dict(self) -> dict[str, Any]:
        """Facets that are actually present."""
        return self.model_dump(exclude_none=True)


class MonsterFacets(Facets):
    cr: str | None = None
    cr_value: float | None = None
    type: str | None = None


class SpellFacets(Facets):
    level: int | None = None
    school: str | None = None
    classes: list[str] = Field(default_factory=list)


class ItemFacets(Facets):
    rarity: str | None = None
    req_attune: bool = False
    type: str | None = None


class DeityFacets(Facets):
    pantheon: str | None = None
    alignment: list[str] | None = None


class VehicleFacets(Facets):
    vehicle_type: str | None = None


class TrapFacets(Facets):
    trap_haz_type: str | None = None


class OptionalFeatureFacets(Facets):
    feature_type: list[str] | None = None


class FacilityFacets(Facets):
    facility_type: str | None = None
    level: int | None = None


class PublicationFacets(Facets):
    """Facets shared by adventures and books."""
    author: str | None = None
    group: str | None = None
    published: str | None = None
    storyline: str | None = None
    level: dict[str, Any] | None = None


class TypedFacets(Facets):
    """Generic single `type` facet (recipes, rewards, languages, ...)."""
    type: str | None = None


class TableFacets(Facets):
    category: str | None = None
    dice_expression: str | None = None
    rollable: bool = False
    parent_name: str | None = None
    subtable: str | None = None


# =============================================================================
# Catalog records
# =============================================================================

class CatalogSummary(BaseModel):
    """Lightweight searchable projection of one catalog entity."""
    uri: str = Field(..., description="Stable identifier, unique per entity")
    name: str = Field(..., description="Display name")
    slug: str = Field(..., description="Normalized name used in the uri")
    source: str = Field(..., description="Source abbreviation")
    ruleset: Ruleset
    kind: EntityKind
    facets: SerializeAsAny[Facets] = Field(default_factory=Facets)
    aliases: list[str] = Field(default_factory=list)
    homebrew: bool = False


class StoredEntity(BaseModel):
    """Full original record plus the identity fields injected at ingestion.

    `record` is kept exactly as read. `content_data` is filled in later for
    indexed kinds (adventures, books) whose body lives in a separate file.
    """
    uri: str
    source: str
    ruleset: Ruleset
    kind: EntityKind
    record: dict[str, Any] = Field(default_factory=dict)
    content_data: list[Any] | None = None

    @property
    def name(self) -> str:
        return self.record.get("name") or self.record.get("title") or ""

    def to_dict(self) -> dict[str, Any]:
        """Original record with the injected `_uri`/`_source`/`_ruleset`/`_kind` keys."""
        result = dict(self.record)
        result.update({
            "_uri": self.uri,
            "_source": self.source,
            "_ruleset": self.ruleset.value,
            "_kind": self.kind.value,
        })
        if self.content_data is not None:
            result["_contentData"] = self.content_data
        return result


class SourceEntry(BaseModel):
    """Metadata for one source abbreviation."""
    abbreviation: str
    full: str | None = None
    kinds: set[EntityKind] = Field(default_factory=set)

    @property
    def ruleset(self) -> Ruleset:
        # Derived on every access so it never drifts from the abbreviation.
        return Ruleset.for_source(self.abbreviation)

    def to_dict(self) -> dict[str, Any]:
        return {
            "abbreviation": self.abbreviation,
            "full": self.full,
            "ruleset": self.ruleset.value,
            "kinds": sorted(k.value for k in self.kinds),
        }


__all__ = [
    "EntityKind",
    "Ruleset",
    "Facets",
    "MonsterFacets",
    "SpellFacets",
    "ItemFacets",
    "DeityFacets",
    "VehicleFacets",
    "TrapFacets",
    "OptionalFeatureFacets",
    "FacilityFacets",
    "PublicationFacets",
    "TypedFacets",
    "TableFacets",
    "CatalogSummary",
    "StoredEntity",
    "SourceEntry",
]
