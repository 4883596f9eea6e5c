"""
CatalogBuilder - normalizes parsed content documents into catalog entries.

The builder is the merge side of ingestion: it only ever receives documents
that were already read and parsed, and it is the only code that mutates the
catalog. All of its methods are synchronous and are expected to run on one
coordinating thread.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable

from .catalog import Catalog
from .facets import extract_facets
from .helpers import KIND_TO_KEY, UNKNOWN_SOURCE, entity_uri, table_uri, to_slug
from .models import CatalogSummary, EntityKind, StoredEntity, TableFacets, Ruleset
from .tables import DefaultTableNormalizer, RollableTable, TableNormalizer


logger = logging.getLogger("lorekeeper")


# Extra arrays folded into a kind, by kind ("disease" -> condition, "hazard" -> trap, ...)
EXTRA_KEYS: dict[EntityKind, list[str]] = {
    EntityKind.ITEM: ["itemGroup"],
    EntityKind.RACE: ["subrace"],
    EntityKind.CONDITION: ["disease", "status"],
    EntityKind.VEHICLE: ["vehicleUpgrade"],
    EntityKind.TRAP: ["hazard"],
    EntityKind.LANGUAGE: ["languageScript"],
    EntityKind.DECK: ["card"],
}

# Every kind a homebrew document may contribute (tables are handled separately)
HOMEBREW_KINDS: list[EntityKind] = [k for k in EntityKind if k is not EntityKind.TABLE]


def _meta_abbreviation(meta: dict) -> str:
    for key in ("abbreviation", "abbrev", "source", "json", "id"):
        value = meta.get(key)
        if isinstance(value, str) and value:
            return value
    return UNKNOWN_SOURCE


def _meta_full_name(meta: dict) -> str | None:
    for key in ("full", "name", "title"):
        value = meta.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def _aliases(record: dict) -> list[str]:
    value = record.get("alias")
    if value is None:
        value = record.get("aliases")
    if isinstance(value, str):
        return [value] if value else []
    if isinstance(value, list):
        return [a for a in value if isinstance(a, str) and a]
    return []


def display_name(record: Any) -> str:
    """Usable display name of a raw record, or "" when it has none."""
    if not isinstance(record, dict):
        return ""
    for key in ("name", "title"):
        value = record.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return ""


class CatalogBuilder:
    """
    Turns raw parsed documents into summary/stored-entity pairs.

    Supports the three ingestion shapes found in the data:

    - **Directory family**: many documents, each holding arrays for one or more kinds
    - **Single-file family**: one document with a primary array plus extra-key arrays
    - **Indexed family**: an index document with per-entity metadata, whose bodies
      arrive later from separate content documents

    Usage:
        builder = CatalogBuilder(catalog)
        builder.ingest_single_file(items_json, EntityKind.ITEM, ["itemGroup"])
    """

    def __init__(self, catalog: Catalog, table_normalizer: TableNormalizer | None = None):
        self.catalog = catalog
        self.tables = table_normalizer or DefaultTableNormalizer()

    # =========================================================================
    # Core normalization
    # =========================================================================

    def harvest_meta_sources(self, data: Any, kind: EntityKind | None = None) -> list[dict]:
        """
        Register the sources declared in a document's `_meta.sources` block.

        Returns:
            The declared source dicts (empty when absent or malformed)
        """
        if not isinstance(data, dict):
            return []
        meta = data.get("_meta")
        sources = meta.get("sources") if isinstance(meta, dict) else None
        if not isinstance(sources, list):
            return []

        declared = [s for s in sources if isinstance(s, dict)]
        for s in declared:
            self.catalog.sources.register(_meta_abbreviation(s), _meta_full_name(s), kind)
        return declared

    def process_entities(
        self,
        data: Any,
        kind: EntityKind,
        meta_sources: list[dict] | None = None,
        key_override: str | None = None,
        homebrew: bool = False,
    ) -> list[CatalogSummary]:
        """
        Normalize one array of a parsed document and insert it into the catalog.

        Args:
            data: Parsed document
            kind: Kind the array contributes
            meta_sources: Sources declared by the document, first one is the fallback source
            key_override: Read this key instead of the kind's default key
            homebrew: Stamp every summary as homebrew

        Returns:
            Summaries inserted, in document order
        """
        if not isinstance(data, dict):
            return []
        key = key_override or KIND_TO_KEY[kind]
        records = data.get(key)
        if not isinstance(records, list):
            return []

        fallback_source = UNKNOWN_SOURCE
        if meta_sources:
            fallback_source = _meta_abbreviation(meta_sources[0])

        inserted: list[CatalogSummary] = []
        for record in records:
            name = display_name(record)
            if not name:
                logger.debug(f"Skipping unnamed {kind.value} record under '{key}'")
                continue
            try:
                summary = self._insert(record, name, kind, fallback_source, homebrew)
            except (TypeError, ValueError) as e:
                logger.warning(f"Skipping {kind.value} '{name}': {e}")
                continue
            inserted.append(summary)
        return inserted

    def _insert(
        self,
        record: dict,
        name: str,
        kind: EntityKind,
        fallback_source: str,
        homebrew: bool,
    ) -> CatalogSummary:
        source = record.get("source")
        if not isinstance(source, str) or not source:
            source = fallback_source
        uri = entity_uri(kind, source, name)
        ruleset = Ruleset.for_source(source)

        summary = CatalogSummary(
            uri=uri,
            name=name,
            slug=to_slug(name),
            source=source,
            ruleset=ruleset,
            kind=kind,
            facets=extract_facets(kind, record),
            aliases=_aliases(record),
            homebrew=homebrew,
        )
        entity = StoredEntity(uri=uri, source=source, ruleset=ruleset, kind=kind, record=record)
        self.catalog.add(summary, entity)
        self.catalog.sources.register(source, kind=kind)
        return summary

    # =========================================================================
    # Ingestion shapes
    # =========================================================================

    def ingest_directory(self, documents: Iterable[Any], kinds: list[EntityKind]) -> int:
        """Merge every document of a directory family under each of `kinds`."""
        count = 0
        for data in documents:
            if data is None:
                continue
            for kind in kinds:
                if not isinstance(data, dict) or KIND_TO_KEY[kind] not in data:
                    continue
                meta_sources = self.harvest_meta_sources(data, kind)
                count += len(self.process_entities(data, kind, meta_sources))
        return count

    def ingest_single_file(
        self,
        data: Any,
        kind: EntityKind,
        extra_keys: list[str] | None = None,
        homebrew: bool = False,
    ) -> int:
        """Merge a single-file family: the kind's array plus its extra-key arrays."""
        meta_sources = self.harvest_meta_sources(data, kind)
        count = len(self.process_entities(data, kind, meta_sources, homebrew=homebrew))
        for extra_key in extra_keys or []:
            count += len(self.process_entities(data, kind, meta_sources, extra_key, homebrew))
        return count

    def ingest_index(self, data: Any, kind: EntityKind) -> list[tuple[dict, str]]:
        """
        Merge the metadata side of an indexed family.

        Returns:
            (raw index entry, uri) pairs for every entity created, so the caller
            can fetch their content files and merge them back by uri
        """
        meta_sources = self.harvest_meta_sources(data, kind)
        pairs = []
        for summary in self.process_entities(data, kind, meta_sources):
            stored = self.catalog.get_by_uri(summary.uri)
            if stored is not None:
                pairs.append((stored.record, summary.uri))
        return pairs

    def merge_content(self, uri: str, content: Any) -> bool:
        """
        Attach a content file's `data` array to the entity stored at `uri`.

        Returns:
            True when the body was merged
        """
        if not isinstance(content, dict) or not isinstance(content.get("data"), list):
            return False
        stored = self.catalog.get_by_uri(uri)
        if stored is None:
            return False
        stored.content_data = content["data"]
        return True

    # =========================================================================
    # Tables and flavor text
    # =========================================================================

    def ingest_table(self, table: RollableTable, raw: dict, homebrew: bool = False) -> CatalogSummary:
        """Store one normalized table under its table uri."""
        uri = table_uri(table.source, table.name)
        ruleset = Ruleset.for_source(table.source)
        summary = CatalogSummary(
            uri=uri,
            name=table.name,
            slug=to_slug(table.name),
            source=table.source,
            ruleset=ruleset,
            kind=EntityKind.TABLE,
            facets=TableFacets(
                category=table.category,
                dice_expression=table.dice_expression.raw,
                rollable=table.rollable,
                parent_name=table.parent_name,
                subtable=table.subtable,
            ),
            homebrew=homebrew or table.homebrew,
        )
        entity = StoredEntity(
            uri=uri,
            source=table.source,
            ruleset=ruleset,
            kind=EntityKind.TABLE,
            record=raw,
        )
        self.catalog.add(summary, entity)
        self.catalog.add_table(uri, table)
        self.catalog.sources.register(table.source, kind=EntityKind.TABLE)
        return summary

    def ingest_display_tables(self, data: Any, homebrew: bool = False) -> int:
        count = 0
        for raw in self._records(data, "table"):
            try:
                table = self.tables.display(raw, homebrew)
                if table is not None:
                    self.ingest_table(table, raw, homebrew)
                    count += 1
            except (TypeError, ValueError, AttributeError) as e:
                logger.warning(f"Skipping table '{raw.get('name')}': {e}")
        return count

    def ingest_encounter_tables(self, data: Any) -> int:
        return self._ingest_table_groups(data, "encounter", self.tables.encounters)

    def ingest_name_tables(self, data: Any) -> int:
        return self._ingest_table_groups(data, "name", self.tables.names)

    def _ingest_table_groups(
        self,
        data: Any,
        key: str,
        normalize: Callable[[dict], list[RollableTable]],
    ) -> int:
        count = 0
        for raw in self._records(data, key):
            try:
                tables = normalize(raw)
                for table in tables:
                    self.ingest_table(table, raw)
                    count += 1
            except (TypeError, ValueError, AttributeError) as e:
                logger.warning(f"Skipping {key} group '{raw.get('name')}': {e}")
        return count

    def ingest_fluff(self, data: Any, kind: EntityKind, json_key: str) -> int:
        """Index flavor-text entries by (kind, source, slug)."""
        count = 0
        for entry in self._records(data, json_key):
            name = display_name(entry)
            if not name:
                continue
            source = entry.get("source")
            if not isinstance(source, str) or not source:
                source = UNKNOWN_SOURCE
            self.catalog.add_fluff(kind, source, name, entry)
            count += 1
        return count

    # =========================================================================
    # Homebrew overlay
    # =========================================================================

    def ingest_homebrew_document(self, data: Any) -> int:
        """
        Merge one homebrew document, stamping every summary as homebrew.

        Declared sources are registered for each kind the document actually contains.
        """
        if not isinstance(data, dict):
            return 0

        meta = data.get("_meta")
        declared = meta.get("sources") if isinstance(meta, dict) else None
        meta_sources = [s for s in declared if isinstance(s, dict)] if isinstance(declared, list) else []

        count = 0
        for kind in HOMEBREW_KINDS:
            keys = [KIND_TO_KEY[kind], *EXTRA_KEYS.get(kind, [])]
            present = [k for k in keys if k in data]
            if not present:
                continue
            for s in meta_sources:
                self.catalog.sources.register(_meta_abbreviation(s), _meta_full_name(s), kind)
            for key in present:
                count += len(self.process_entities(data, kind, meta_sources, key, homebrew=True))

        count += self.ingest_display_tables(data, homebrew=True)
        return count

    @staticmethod
    def _records(data: Any, key: str) -> list[dict]:
        if not isinstance(data, dict):
            return []
        records = data.get(key)
        if not isinstance(records, list):
            return []
        return [r for r in records if isinstance(r, dict)]


__all__ = [
    "CatalogBuilder",
    "EXTRA_KEYS",
    "HOMEBREW_KINDS",
    "display_name",
]
