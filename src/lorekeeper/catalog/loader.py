"""
Catalog loading pipeline.

Reads content documents through a FileProvider and feeds them to the
CatalogBuilder. Reads run concurrently (bounded by a semaphore); merges run
one at a time on the event loop once a family's reads are done, so the
catalog itself never needs locking.

Three official loading paths, plus tables, flavor text and the homebrew overlay:

- directory families (bestiary/, spells/, class/)
- single-file families (items.json, feats.json, ...)
- indexed families (adventures.json + adventure/adventure-<id>.json, ...)
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Awaitable, TypeVar

from .builder import CatalogBuilder, EXTRA_KEYS
from .catalog import Catalog
from .files import FileAccessError, FileProvider, LocalFileProvider, MissingFileError
from .models import EntityKind
from .tables import TableNormalizer

if TYPE_CHECKING:
    from ..config import CatalogSettings


logger = logging.getLogger("lorekeeper")

T = TypeVar("T")

DEFAULT_READ_CONCURRENCY = 16


# =============================================================================
# Loading path configuration
# =============================================================================

# Kinds stored in subdirectories with many JSON files
DIRECTORY_FAMILIES: dict[str, list[EntityKind]] = {
    "bestiary": [EntityKind.MONSTER],
    "spells": [EntityKind.SPELL],
    "class": [EntityKind.CLASS, EntityKind.SUBCLASS],
}

# Kinds stored as one JSON file at the data root
SINGLE_FILE_FAMILIES: dict[str, EntityKind] = {
    "items.json": EntityKind.ITEM,
    "feats.json": EntityKind.FEAT,
    "backgrounds.json": EntityKind.BACKGROUND,
    "races.json": EntityKind.RACE,
    "conditionsdiseases.json": EntityKind.CONDITION,
    "variantrules.json": EntityKind.RULE,
    "deities.json": EntityKind.DEITY,
    "vehicles.json": EntityKind.VEHICLE,
    "trapshazards.json": EntityKind.TRAP,
    "optionalfeatures.json": EntityKind.OPTIONAL_FEATURE,
    "psionics.json": EntityKind.PSIONIC,
    "languages.json": EntityKind.LANGUAGE,
    "objects.json": EntityKind.OBJECT,
    "rewards.json": EntityKind.REWARD,
    "recipes.json": EntityKind.RECIPE,
    "decks.json": EntityKind.DECK,
    "bastions.json": EntityKind.FACILITY,
}

# Kinds with a metadata index at the root and one content file per entity
INDEXED_FAMILIES: dict[str, dict[str, Any]] = {
    "adventures.json": {
        "kind": EntityKind.ADVENTURE,
        "content_dir": "adventure",
        "content_prefix": "adventure-",
    },
    "books.json": {
        "kind": EntityKind.BOOK,
        "content_dir": "book",
        "content_prefix": "book-",
    },
}

# Flavor text files: filename -> (kind, JSON key)
FLUFF_FILES: dict[str, tuple[EntityKind, str]] = {
    "fluff-bestiary.json": (EntityKind.MONSTER, "monsterFluff"),
    "fluff-spells.json": (EntityKind.SPELL, "spellFluff"),
    "fluff-items.json": (EntityKind.ITEM, "itemFluff"),
    "fluff-backgrounds.json": (EntityKind.BACKGROUND, "backgroundFluff"),
    "fluff-races.json": (EntityKind.RACE, "raceFluff"),
    "fluff-conditionsdiseases.json": (EntityKind.CONDITION, "conditionFluff"),
    "fluff-vehicles.json": (EntityKind.VEHICLE, "vehicleFluff"),
    "fluff-objects.json": (EntityKind.OBJECT, "objectFluff"),
    "fluff-trapshazards.json": (EntityKind.TRAP, "trapFluff"),
    "fluff-recipes.json": (EntityKind.RECIPE, "recipeFluff"),
    "fluff-decks.json": (EntityKind.DECK, "deckFluff"),
    "fluff-rewards.json": (EntityKind.REWARD, "rewardFluff"),
    "fluff-deities.json": (EntityKind.DEITY, "deityFluff"),
    "fluff-languages.json": (EntityKind.LANGUAGE, "languageFluff"),
}

TABLES_FILE = "tables.json"
ENCOUNTERS_FILE = "encounters.json"
NAMES_FILE = "names.json"

HOMEBREW_INDEX = "index.json"


class CatalogLoader:
    """
    Fills a Catalog from content documents.

    Every input unit (one file) is read and parsed independently; a unit that
    cannot be read or parsed is logged and skipped, never failing the load.

    Usage:
        loader = CatalogLoader(LocalFileProvider("data"), read_concurrency=16)
        catalog = Catalog()
        await loader.load_official(catalog)
        await loader.load_homebrew(catalog, "homebrew")
    """

    def __init__(
        self,
        provider: FileProvider,
        read_concurrency: int = DEFAULT_READ_CONCURRENCY,
        table_normalizer: TableNormalizer | None = None,
    ):
        """
        Initialize the loader.

        Args:
            provider: Where official content documents are read from
            read_concurrency: Maximum number of reads in flight at once
            table_normalizer: Collaborator used to normalize roll tables
        """
        self.provider = provider
        self.read_concurrency = max(1, read_concurrency)
        self.table_normalizer = table_normalizer
        self._semaphore: asyncio.Semaphore | None = None

    # =========================================================================
    # Reading
    # =========================================================================

    def _limit(self) -> asyncio.Semaphore:
        # Created lazily so it binds to the running event loop
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self.read_concurrency)
        return self._semaphore

    async def _read(
        self,
        path: str,
        provider: FileProvider | None = None,
        optional: bool = False,
    ) -> Any | None:
        """
        Read one document, returning None (and logging) when it is unusable.

        With `optional`, a file that simply does not exist is only logged at
        debug level; a file that exists but cannot be parsed is always a warning.
        """
        async with self._limit():
            try:
                return await (provider or self.provider).read(path)
            except MissingFileError as e:
                if optional:
                    logger.debug(f"Optional input {path} not present")
                else:
                    logger.warning(f"Skipping {path}: {e}")
                return None
            except FileAccessError as e:
                logger.warning(f"Skipping {path}: {e}")
                return None

    @staticmethod
    async def _gather(tasks: list[Awaitable[T]]) -> list[T | None]:
        """Run reads concurrently; a unit that blows up yields None instead of cancelling the rest."""
        results = await asyncio.gather(*tasks, return_exceptions=True)
        out: list[T | None] = []
        for result in results:
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning(f"Read task failed: {result}")
                out.append(None)
            else:
                out.append(result)
        return out

    # =========================================================================
    # Official content
    # =========================================================================

    async def load_official(self, catalog: Catalog) -> Catalog:
        """
        Load every official content family into `catalog`.

        Returns:
            The same catalog, for chaining
        """
        builder = CatalogBuilder(catalog, self.table_normalizer)

        directory_docs, single_docs, index_docs, table_docs, fluff_docs = await asyncio.gather(
            self._read_directories(),
            self._gather([self._read(f, optional=True) for f in SINGLE_FILE_FAMILIES]),
            self._gather([self._read(f, optional=True) for f in INDEXED_FAMILIES]),
            self._gather([self._read(f, optional=True) for f in (TABLES_FILE, ENCOUNTERS_FILE, NAMES_FILE)]),
            self._gather([self._read(f, optional=True) for f in FLUFF_FILES]),
        )

        # Path 1: directory families
        for folder, documents in directory_docs.items():
            builder.ingest_directory(documents, DIRECTORY_FAMILIES[folder])

        # Path 2: single-file families
        for (filename, kind), data in zip(SINGLE_FILE_FAMILIES.items(), single_docs):
            if data is not None:
                builder.ingest_single_file(data, kind, EXTRA_KEYS.get(kind))

        # Path 3: indexed families; bodies are fetched after their metadata is stored
        for (filename, config), data in zip(INDEXED_FAMILIES.items(), index_docs):
            if data is not None:
                await self._load_indexed(builder, data, config)

        tables_raw, encounters_raw, names_raw = table_docs
        builder.ingest_display_tables(tables_raw)
        builder.ingest_encounter_tables(encounters_raw)
        builder.ingest_name_tables(names_raw)

        for (filename, (kind, json_key)), data in zip(FLUFF_FILES.items(), fluff_docs):
            if data is not None:
                builder.ingest_fluff(data, kind, json_key)

        summary = ", ".join(f"{n} {k}(s)" for k, n in catalog.counts().items())
        logger.info(f"Loaded: {summary or 'nothing'}")
        return catalog

    async def _read_directories(self) -> dict[str, list[Any]]:
        async def read_folder(folder: str) -> list[Any]:
            try:
                paths = await self.provider.list_files(folder, ".json")
            except MissingFileError as e:
                logger.debug(f"No {folder}/ directory: {e}")
                return []
            except FileAccessError as e:
                logger.warning(f"Skipping {folder}/: {e}")
                return []
            return await self._gather([self._read(p) for p in paths])

        folders = list(DIRECTORY_FAMILIES)
        results = await self._gather([read_folder(f) for f in folders])
        return {folder: docs or [] for folder, docs in zip(folders, results)}

    async def _load_indexed(self, builder: CatalogBuilder, data: Any, config: dict[str, Any]) -> None:
        kind: EntityKind = config["kind"]
        entries = builder.ingest_index(data, kind)

        targets: list[tuple[str, str]] = []
        for entry, uri in entries:
            content_id = entry.get("id") or entry.get("source")
            if not isinstance(content_id, str) or not content_id:
                continue
            path = f"{config['content_dir']}/{config['content_prefix']}{content_id.lower()}.json"
            targets.append((uri, path))

        bodies = await self._gather([self._read(path, optional=True) for _, path in targets])
        merged = 0
        for (uri, _), body in zip(targets, bodies):
            if body is not None and builder.merge_content(uri, body):
                merged += 1
        logger.debug(f"Merged {merged}/{len(entries)} {kind.value} bodies")

    # =========================================================================
    # Homebrew overlay
    # =========================================================================

    async def load_homebrew(self, catalog: Catalog, homebrew: FileProvider | Path | str) -> int:
        """
        Merge the homebrew overlay listed in the overlay's index.json.

        A missing or unreadable index skips the overlay silently; the official
        catalog stays fully usable.

        Args:
            catalog: Catalog already holding official content
            homebrew: Overlay root directory, or a FileProvider rooted there

        Returns:
            Number of homebrew summaries inserted
        """
        provider = homebrew if not isinstance(homebrew, (Path, str)) else LocalFileProvider(homebrew)
        index = await self._read(HOMEBREW_INDEX, provider, optional=True)
        if not isinstance(index, dict):
            return 0

        to_import = index.get("toImport")
        if not isinstance(to_import, list):
            return 0
        paths = [p for p in to_import if isinstance(p, str) and p]
        if not paths:
            return 0

        documents = await self._gather([self._read(p, provider) for p in paths])

        builder = CatalogBuilder(catalog, self.table_normalizer)
        count = 0
        for data in documents:
            if data is not None:
                count += builder.ingest_homebrew_document(data)

        logger.info(f"Loaded {count} homebrew entries from {len(paths)} file(s)")
        return count


async def load_catalog(settings: "CatalogSettings", provider: FileProvider | None = None) -> Catalog:
    """
    Build a complete catalog: official content, then the homebrew overlay.

    Args:
        settings: Runtime settings (data/homebrew roots, concurrency, ruleset)
        provider: Optional provider for official content; defaults to the data dir

    Returns:
        The assembled catalog, ready for concurrent reads
    """
    catalog = Catalog(default_ruleset=settings.preferred_ruleset)
    loader = CatalogLoader(
        provider or LocalFileProvider(settings.data_dir),
        read_concurrency=settings.read_concurrency,
    )
    await loader.load_official(catalog)
    if settings.homebrew_dir is not None:
        await loader.load_homebrew(catalog, settings.homebrew_dir)
    return catalog


__all__ = [
    "CatalogLoader",
    "load_catalog",
    "DIRECTORY_FAMILIES",
    "SINGLE_FILE_FAMILIES",
    "INDEXED_FAMILIES",
    "FLUFF_FILES",
]
