"""
Source registry tracking every content-source abbreviation seen during ingestion.
"""

from __future__ import annotations

from typing import Iterator

from .models import EntityKind, Ruleset, SourceEntry


class SourceRegistry:
    """
    Idempotent registry of source abbreviations.

    Registration is an upsert: the first non-empty display name sticks for the
    lifetime of the registry, and contributed kinds accumulate. Calls may be
    repeated in any order without losing previously recorded information.

    Usage:
        registry = SourceRegistry()
        registry.register("PHB", "Player's Handbook", EntityKind.SPELL)
        registry.register("PHB", kind=EntityKind.FEAT)
        registry.list(ruleset="2014", kind=EntityKind.FEAT)
    """

    def __init__(self) -> None:
        self._entries: dict[str, SourceEntry] = {}

    def register(
        self,
        abbreviation: str,
        full: str | None = None,
        kind: EntityKind | None = None,
    ) -> SourceEntry:
        """
        Register or update a source.

        Args:
            abbreviation: Source abbreviation (e.g. "PHB")
            full: Optional display name; ignored once one is recorded
            kind: Optional kind this source contributes

        Returns:
            The (possibly pre-existing) SourceEntry
        """
        entry = self._entries.get(abbreviation)
        if entry is None:
            entry = SourceEntry(abbreviation=abbreviation)
            self._entries[abbreviation] = entry
        if full and not entry.full:
            entry.full = full
        if kind is not None:
            entry.kinds.add(kind)
        return entry

    def get(self, abbreviation: str) -> SourceEntry | None:
        return self._entries.get(abbreviation)

    def list(
        self,
        ruleset: Ruleset | str | None = None,
        kind: EntityKind | str | None = None,
    ) -> list[SourceEntry]:
        """
        List sources, optionally filtered.

        Args:
            ruleset: Only sources of this edition ("any"/None for all)
            kind: Only sources contributing this kind

        Returns:
            Matching entries ordered by abbreviation
        """
        wanted_ruleset = Ruleset.parse(ruleset)
        wanted_kind = EntityKind.parse(kind) if kind is not None else None
        if kind is not None and wanted_kind is None:
            return []

        results = [
            entry for entry in self._entries.values()
            if (wanted_ruleset is None or entry.ruleset == wanted_ruleset)
            and (wanted_kind is None or wanted_kind in entry.kinds)
        ]
        results.sort(key=lambda e: (e.abbreviation.lower(), e.abbreviation))
        return results

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, abbreviation: object) -> bool:
        return abbreviation in self._entries

    def __iter__(self) -> Iterator[SourceEntry]:
        return iter(self._entries.values())

    def __repr__(self) -> str:
        return f"SourceRegistry(sources={len(self._entries)})"


__all__ = ["SourceRegistry"]
