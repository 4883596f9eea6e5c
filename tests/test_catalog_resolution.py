"""
Tests for Catalog lookup, resolution and search.
"""

import pytest

from lorekeeper.catalog.builder import CatalogBuilder
from lorekeeper.catalog.catalog import Catalog, CatalogError
from lorekeeper.catalog.models import EntityKind, Ruleset, StoredEntity


OFFICIAL_2014 = {
    "_meta": {"sources": [{"json": "MM", "full": "Monster Manual"}]},
    "monster": [
        {"name": "Goblin", "source": "MM", "cr": "1/4", "type": "humanoid"},
        {"name": "Goblin Boss", "source": "MM", "cr": "1", "type": "humanoid"},
        {"name": "Dragon Turtle", "source": "MM", "cr": "17", "type": "dragon"},
        {"name": "Beholder", "source": "MM", "cr": "13", "type": "aberration", "alias": ["Eye Tyrant"]},
    ],
}

OFFICIAL_2024 = {
    "_meta": {"sources": [{"json": "XMM", "full": "Monster Manual (2024)"}]},
    "monster": [
        {"name": "Goblin", "source": "XMM", "cr": "1/4", "type": "fey"},
    ],
}

HOMEBREW = {
    "_meta": {"sources": [{"json": "HB", "full": "Homebrew Bestiary"}]},
    "monster": [{"name": "Goblin", "source": "HB", "cr": "2"}],
}


def build(*documents, homebrew=None, default_ruleset=None) -> Catalog:
    catalog = Catalog(default_ruleset=default_ruleset)
    builder = CatalogBuilder(catalog)
    for data in documents:
        builder.ingest_single_file(data, EntityKind.MONSTER)
    for data in homebrew or []:
        builder.ingest_homebrew_document(data)
    return catalog


@pytest.fixture
def catalog() -> Catalog:
    return build(OFFICIAL_2014, OFFICIAL_2024)


class TestLookup:
    """Test direct uri lookup and listing."""

    def test_uri_round_trip(self, catalog):
        for summary in catalog.list_by_kind(EntityKind.MONSTER):
            stored = catalog.get_by_uri(summary.uri)
            assert stored is not None
            assert stored.uri == summary.uri
            assert stored.to_dict()["_uri"] == summary.uri
            assert catalog.get_summary(summary.uri) == summary

    def test_unknown_uri(self, catalog):
        assert catalog.get_by_uri("catalog://entity/monster/MM/tarrasque") is None
        assert catalog.get_summary("catalog://entity/monster/MM/tarrasque") is None

    def test_list_by_kind(self, catalog):
        assert len(catalog.list_by_kind("monster")) == 5
        assert catalog.list_by_kind("spell") == []
        assert catalog.list_by_kind("nonsense") == []

    def test_counts_and_len(self, catalog):
        assert catalog.counts() == {"monster": 5}
        assert len(catalog) == 5
        assert "catalog://entity/monster/MM/goblin" in catalog

    def test_add_rejects_mismatched_uri(self, catalog):
        summary = catalog.resolve("monster", "goblin", source="MM")
        entity = StoredEntity(
            uri="catalog://entity/monster/MM/other",
            source="MM",
            ruleset=Ruleset.EDITION_2014,
            kind=EntityKind.MONSTER,
        )
        with pytest.raises(CatalogError):
            catalog.add(summary, entity)

    def test_list_sources(self, catalog):
        assert [s.abbreviation for s in catalog.list_sources()] == ["MM", "XMM"]
        assert [s.abbreviation for s in catalog.list_sources(ruleset="2024")] == ["XMM"]
        assert [s.abbreviation for s in catalog.list_sources(kind="spell")] == []


class TestResolveExact:
    """Test exact-name resolution and tie-breaking."""

    def test_case_insensitive(self, catalog):
        a = catalog.resolve("monster", "goblin", source="MM")
        b = catalog.resolve("monster", "GOBLIN", source="MM")
        c = catalog.resolve("Monster", "  Goblin ", source="MM")
        assert a is not None
        assert a.uri == b.uri == c.uri

    def test_source_restricts_match(self, catalog):
        assert catalog.resolve("monster", "goblin", source="MM").source == "MM"
        assert catalog.resolve("monster", "goblin", source="XMM").source == "XMM"

    def test_source_compare_is_case_insensitive(self, catalog):
        assert catalog.resolve("monster", "goblin", source="xmm").source == "XMM"

    def test_preferred_ruleset(self, catalog):
        assert catalog.resolve("monster", "goblin", preferred_ruleset="2024").source == "XMM"
        assert catalog.resolve("monster", "goblin", preferred_ruleset=Ruleset.EDITION_2014).source == "MM"

    def test_preferred_ruleset_falls_back_to_any_match(self):
        catalog = build(OFFICIAL_2014)
        goblin = catalog.resolve("monster", "goblin", preferred_ruleset="2024")
        assert goblin.source == "MM"
        assert goblin.ruleset == Ruleset.EDITION_2014

    def test_no_preference_picks_alphabetical_source(self, catalog):
        assert catalog.resolve("monster", "goblin").source == "MM"
        assert catalog.resolve("monster", "goblin", preferred_ruleset="any").source == "MM"

    def test_catalog_default_ruleset(self):
        catalog = build(OFFICIAL_2014, OFFICIAL_2024, default_ruleset="2024")
        assert catalog.resolve("monster", "goblin").source == "XMM"
        assert catalog.resolve("monster", "goblin", preferred_ruleset="2014").source == "MM"

    def test_homebrew_beats_official_without_source(self):
        catalog = build(OFFICIAL_2014, OFFICIAL_2024, homebrew=[HOMEBREW], default_ruleset="2024")
        goblin = catalog.resolve("monster", "goblin")
        assert goblin.source == "HB"
        assert goblin.homebrew is True

    def test_explicit_source_beats_homebrew(self):
        catalog = build(OFFICIAL_2014, homebrew=[HOMEBREW])
        goblin = catalog.resolve("monster", "goblin", source="MM")
        assert goblin.source == "MM"
        assert goblin.homebrew is False

    def test_ingestion_order_does_not_change_tie_break(self):
        forward = build(OFFICIAL_2014, OFFICIAL_2024)
        reverse = build(OFFICIAL_2024, OFFICIAL_2014)
        assert forward.resolve("monster", "goblin").uri == reverse.resolve("monster", "goblin").uri


class TestResolveFuzzy:
    """Test the scored fallback."""

    def test_prefix_resolves(self, catalog):
        assert catalog.resolve("monster", "dragon turtl").name == "Dragon Turtle"

    def test_misspelling_resolves(self, catalog):
        assert catalog.resolve("monster", "gobln", source="MM").name == "Goblin"

    def test_alias_resolves(self, catalog):
        assert catalog.resolve("monster", "eye tyrant").name == "Beholder"

    def test_fuzzy_searches_whole_kind_when_source_misses(self, catalog):
        turtle = catalog.resolve("monster", "dragon turtle", source="XMM")
        assert turtle.source == "MM"

    def test_other_edition_found_when_source_lacks_entity(self):
        catalog = Catalog()
        CatalogBuilder(catalog).process_entities(
            {"spell": [{"name": "Fireball", "source": "PHB"}]}, EntityKind.SPELL
        )
        fireball = catalog.resolve("spell", "Fireball", source="XPHB")
        assert fireball.uri == "catalog://entity/spell/PHB/fireball"

    def test_garbage_rejected(self, catalog):
        assert catalog.resolve("monster", "xyzzyplugh12345") is None

    @pytest.mark.parametrize("kind,name", [
        ("dragon", "goblin"),
        ("monster", ""),
        ("monster", "   "),
        ("spell", "goblin"),
    ])
    def test_misses_return_none(self, catalog, kind, name):
        assert catalog.resolve(kind, name) is None


class TestScenario:
    """Goblin and Dragon Turtle end to end."""

    def test_goblin_and_dragon_turtle(self):
        catalog = build({
            "monster": [
                {"name": "Goblin", "source": "MM", "cr": "1/4"},
                {"name": "Dragon Turtle", "source": "MM", "cr": "17"},
            ],
        })
        goblin = catalog.resolve("monster", "GOBLIN")
        assert goblin.uri == "catalog://entity/monster/MM/goblin"
        assert catalog.get_by_uri(goblin.uri).record["cr"] == "1/4"

        turtle = catalog.resolve("monster", "dragon turtl")
        assert turtle.uri == "catalog://entity/monster/MM/dragon-turtle"
        assert turtle.facets.cr_value == 17.0

        assert catalog.resolve("monster", "xyzzyplugh12345") is None


class TestSearch:
    """Test ranked free-text search and filters."""

    def test_ranked_by_score(self, catalog):
        results = catalog.search("monster", "goblin", limit=3)
        assert [r.name for r in results][:2] == ["Goblin", "Goblin"]
        assert results[2].name == "Goblin Boss"

    def test_ruleset_filter(self, catalog):
        results = catalog.search("monster", ruleset="2024")
        assert [r.source for r in results] == ["XMM"]

    def test_source_filter(self, catalog):
        results = catalog.search("monster", source="mm", limit=50)
        assert len(results) == 4

    def test_facet_predicate(self, catalog):
        results = catalog.search(
            "monster",
            where=lambda s: s.facets.cr_value is not None and s.facets.cr_value >= 13,
            limit=50,
        )
        assert {r.name for r in results} == {"Dragon Turtle", "Beholder"}

    def test_limit(self, catalog):
        assert len(catalog.search("monster", limit=2)) == 2

    def test_find_by_slug(self, catalog):
        assert {s.source for s in catalog.find_by_slug("monster", "Goblin")} == {"MM", "XMM"}

    def test_score_is_exposed(self, catalog):
        goblin = catalog.resolve("monster", "goblin", source="MM")
        assert Catalog.score("goblin", goblin) == 100
