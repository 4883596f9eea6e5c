"""
lorekeeper - in-memory catalog and resolution engine for tabletop RPG content.
"""

from .catalog import Catalog, CatalogLoader, EntityKind, Ruleset, load_catalog
from .config import CatalogSettings, configure_logging

try:
    from importlib.metadata import version as _get_version
    __version__ = _get_version("lorekeeper")
except Exception:
    __version__ = "0.1.0"  # Fallback if metadata unavailable
__all__ = [
    "Catalog",
    "CatalogLoader",
    "CatalogSettings",
    "EntityKind",
    "Ruleset",
    "configure_logging",
    "load_catalog",
]
