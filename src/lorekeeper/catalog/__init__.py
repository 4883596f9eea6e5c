"""
Content catalog for tabletop RPG reference data.

This module provides:
- Data models for catalog summaries, stored entities and sources
- SourceRegistry tracking every source abbreviation seen during ingestion
- CatalogBuilder normalizing raw documents into catalog entries
- CatalogLoader reading official content and the homebrew overlay
- Catalog, the in-memory index and its resolution engine
"""

from .models import (
    EntityKind,
    Ruleset,
    # Facets
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
    TableFacets,
    # Records
    CatalogSummary,
    StoredEntity,
    SourceEntry,
)
from .helpers import entity_uri, table_uri, to_slug, ruleset_from_source
from .registry import SourceRegistry
from .facets import extract_facets
from .scoring import MIN_RESOLVE_SCORE, fuzzy_score
from .catalog import Catalog, CatalogError
from .builder import CatalogBuilder
from .files import FileAccessError, FileProvider, LocalFileProvider, MissingFileError
from .tables import RollableTable, TableNormalizer, DefaultTableNormalizer
from .loader import CatalogLoader, load_catalog

__all__ = [
    # Engine
    "Catalog",
    "CatalogError",
    "CatalogBuilder",
    "CatalogLoader",
    "load_catalog",
    "SourceRegistry",
    # Files
    "FileProvider",
    "LocalFileProvider",
    "FileAccessError",
    "MissingFileError",
    # Models
    "EntityKind",
    "Ruleset",
    "CatalogSummary",
    "StoredEntity",
    "SourceEntry",
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
    # Tables
    "RollableTable",
    "TableNormalizer",
    "DefaultTableNormalizer",
    # Helpers
    "entity_uri",
    "table_uri",
    "to_slug",
    "ruleset_from_source",
    "extract_facets",
    "fuzzy_score",
    "MIN_RESOLVE_SCORE",
]
