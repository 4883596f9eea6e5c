"""
Catalog - the assembled in-memory content index and its resolution engine.

A Catalog is created empty, filled by CatalogBuilder during startup (official
content, then the homebrew overlay) and treated as read-only afterwards, so
any number of readers may query it concurrently.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from .helpers import fluff_key, to_slug
from .models import CatalogSummary, EntityKind, Ruleset, SourceEntry, StoredEntity
from .registry import SourceRegistry
from .scoring import MIN_RESOLVE_SCORE, fuzzy_score
from .tables import RollableTable


logger = logging.getLogger("lorekeeper")


class CatalogError(Exception):
    """Base exception for catalog operations."""
    pass


def _exact_match_key(preferred: Ruleset | None) -> Callable[[CatalogSummary], tuple]:
    """Ordering for same-name matches: homebrew, preferred ruleset, then source."""
    def key(rec: CatalogSummary) -> tuple:
        return (
            not rec.homebrew,
            preferred is not None and rec.ruleset != preferred,
            rec.source.lower(),
            rec.uri,
        )
    return key


class Catalog:
    """
    In-memory content catalog.

    Holds per-kind summaries keyed by uri, the uri-keyed stored entities, the
    source registry, the flavor-text side table and normalized roll tables.

    Usage:
        catalog = Catalog(default_ruleset="2024")
        await CatalogLoader(LocalFileProvider(data_dir)).load_official(catalog)

        goblin = catalog.resolve("monster", "goblin")
        detail = catalog.get_by_uri(goblin.uri)
    """

    def __init__(self, default_ruleset: Ruleset | str | None = None):
        """
        Initialize an empty catalog.

        Args:
            default_ruleset: Edition preferred by resolve() when the caller
                            passes none ("any"/None for no preference)
        """
        self.default_ruleset = Ruleset.parse(default_ruleset)
        self.sources = SourceRegistry()
        self._by_kind: dict[EntityKind, dict[str, CatalogSummary]] = {}
        self._by_uri: dict[str, StoredEntity] = {}
        self._fluff: dict[str, dict[str, Any]] = {}
        self._tables: dict[str, RollableTable] = {}

    # =========================================================================
    # Mutation (ingestion only)
    # =========================================================================

    def add(self, summary: CatalogSummary, entity: StoredEntity) -> None:
        """
        Insert a summary and its stored entity.

        An existing entry with the same uri is replaced (last write wins); the
        summary keeps a single slot in its kind's listing.
        """
        if summary.uri != entity.uri:
            raise CatalogError(f"Summary uri {summary.uri} does not match entity uri {entity.uri}")
        bucket = self._by_kind.setdefault(summary.kind, {})
        if summary.uri in bucket:
            logger.debug(f"Replacing {summary.uri}")
        bucket[summary.uri] = summary
        self._by_uri[summary.uri] = entity

    def add_table(self, uri: str, table: RollableTable) -> None:
        self._tables[uri] = table

    def add_fluff(self, kind: EntityKind, source: str, name: str, entry: dict[str, Any]) -> None:
        self._fluff[fluff_key(kind, source, name)] = entry

    # =========================================================================
    # Direct lookup
    # =========================================================================

    def get_by_uri(self, uri: str) -> StoredEntity | None:
        """Stored entity for `uri`, or None."""
        return self._by_uri.get(uri)

    def get_summary(self, uri: str) -> CatalogSummary | None:
        entity = self._by_uri.get(uri)
        if entity is None:
            return None
        return self._by_kind.get(entity.kind, {}).get(uri)

    def get_table(self, uri: str) -> RollableTable | None:
        return self._tables.get(uri)

    def get_fluff(self, summary: CatalogSummary | str) -> dict[str, Any] | None:
        """Flavor text for a summary (or uri), if any was loaded."""
        if isinstance(summary, str):
            summary = self.get_summary(summary)
            if summary is None:
                return None
        return self._fluff.get(fluff_key(summary.kind, summary.source, summary.name))

    def list_by_kind(self, kind: EntityKind | str) -> list[CatalogSummary]:
        """All summaries of a kind. Order is not significant."""
        parsed = EntityKind.parse(kind)
        if parsed is None:
            return []
        return list(self._by_kind.get(parsed, {}).values())

    def list_sources(
        self,
        ruleset: Ruleset | str | None = None,
        kind: EntityKind | str | None = None,
    ) -> list[SourceEntry]:
        return self.sources.list(ruleset=ruleset, kind=kind)

    # =========================================================================
    # Resolution
    # =========================================================================

    @staticmethod
    def score(query: str, candidate: CatalogSummary) -> float:
        """Relevance of `candidate` for a free-text `query`."""
        return fuzzy_score(query, candidate)

    def resolve(
        self,
        kind: EntityKind | str,
        name: str,
        source: str | None = None,
        preferred_ruleset: Ruleset | str | None = None,
    ) -> CatalogSummary | None:
        """
        Best-effort lookup of one entity by kind and name.

        Order of attempts:
        1. Exact case-insensitive name within `source` (when given)
        2. Exact case-insensitive name across the kind (when no source):
           homebrew first, then `preferred_ruleset`, then alphabetical source
        3. Fuzzy scoring over every summary of the kind (even when a source
           was given), accepted only at or above MIN_RESOLVE_SCORE

        Args:
            kind: Entity kind
            name: Display name as typed by a user
            source: Optional source abbreviation restricting the exact match
            preferred_ruleset: Edition to prefer on same-name ties

        Returns:
            Matching summary, or None
        """
        parsed_kind = EntityKind.parse(kind)
        if parsed_kind is None or not isinstance(name, str) or not name.strip():
            return None

        candidates = list(self._by_kind.get(parsed_kind, {}).values())
        query = name.strip().lower()

        if source:
            wanted = source.lower()
            exact = [
                r for r in candidates
                if r.source.lower() == wanted and r.name.lower() == query
            ]
            if exact:
                return min(exact, key=_exact_match_key(None))
        else:
            exact = [r for r in candidates if r.name.lower() == query]
            if exact:
                preferred = Ruleset.parse(preferred_ruleset) or self.default_ruleset
                return min(exact, key=_exact_match_key(preferred))

        return self._best_fuzzy(query, candidates)

    def _best_fuzzy(self, query: str, candidates: list[CatalogSummary]) -> CatalogSummary | None:
        best: CatalogSummary | None = None
        best_score = float("-inf")
        for rec in sorted(candidates, key=lambda r: (r.source.lower(), r.uri)):
            s = fuzzy_score(query, rec)
            if s > best_score:
                best, best_score = rec, s
        if best is None or best_score < MIN_RESOLVE_SCORE:
            return None
        logger.debug(f"Fuzzy resolved '{query}' to {best.uri} (score {best_score})")
        return best

    def search(
        self,
        kind: EntityKind | str,
        query: str | None = None,
        *,
        source: str | None = None,
        ruleset: Ruleset | str | None = None,
        where: Callable[[CatalogSummary], bool] | None = None,
        limit: int = 10,
    ) -> list[CatalogSummary]:
        """
        Filter and rank summaries of one kind.

        Args:
            kind: Entity kind to search
            query: Optional free text; results are ranked by score() when given
            source: Only this source abbreviation
            ruleset: Only this edition ("any"/None for all)
            where: Extra predicate, typically over facets
            limit: Maximum number of results

        Returns:
            Up to `limit` summaries, best first when a query is given
        """
        wanted_ruleset = Ruleset.parse(ruleset)
        wanted_source = source.lower() if source else None

        candidates = [
            r for r in self.list_by_kind(kind)
            if (wanted_ruleset is None or r.ruleset == wanted_ruleset)
            and (wanted_source is None or r.source.lower() == wanted_source)
            and (where is None or where(r))
        ]

        if query:
            scored = [(fuzzy_score(query, r), r) for r in candidates]
            scored.sort(key=lambda pair: (-pair[0], pair[1].source.lower(), pair[1].uri))
            return [r for _, r in scored[:limit]]
        return candidates[:limit]

    def find_by_slug(self, kind: EntityKind | str, name: str) -> list[CatalogSummary]:
        """All summaries of a kind whose slug matches `name`'s slug."""
        slug = to_slug(name)
        return [r for r in self.list_by_kind(kind) if r.slug == slug]

    # =========================================================================
    # Introspection
    # =========================================================================

    def counts(self) -> dict[str, int]:
        """Number of summaries per kind, for kinds that have any."""
        return {
            kind.value: len(bucket)
            for kind, bucket in self._by_kind.items()
            if bucket
        }

    def __len__(self) -> int:
        return len(self._by_uri)

    def __contains__(self, uri: object) -> bool:
        return uri in self._by_uri

    def __repr__(self) -> str:
        summary = ", ".join(f"{n} {k}(s)" for k, n in self.counts().items()) or "empty"
        return f"Catalog({summary})"


__all__ = [
    "Catalog",
    "CatalogError",
]
