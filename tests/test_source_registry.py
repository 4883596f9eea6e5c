"""
Tests for the source registry.
"""

from lorekeeper.catalog.models import EntityKind, Ruleset
from lorekeeper.catalog.registry import SourceRegistry


class TestRegister:
    """Test idempotent upsert behavior."""

    def test_register_creates_entry(self):
        registry = SourceRegistry()
        entry = registry.register("PHB", "Player's Handbook", EntityKind.SPELL)
        assert entry.abbreviation == "PHB"
        assert entry.full == "Player's Handbook"
        assert entry.kinds == {EntityKind.SPELL}
        assert "PHB" in registry
        assert len(registry) == 1

    def test_register_is_idempotent(self):
        registry = SourceRegistry()
        first = registry.register("PHB", kind=EntityKind.SPELL)
        second = registry.register("PHB", kind=EntityKind.SPELL)
        assert first is second
        assert len(registry) == 1
        assert second.kinds == {EntityKind.SPELL}

    def test_first_full_name_sticks(self):
        registry = SourceRegistry()
        registry.register("PHB")
        registry.register("PHB", "Player's Handbook")
        registry.register("PHB", "Something Else")
        assert registry.get("PHB").full == "Player's Handbook"

    def test_empty_full_name_is_ignored(self):
        registry = SourceRegistry()
        registry.register("MM", "")
        assert registry.get("MM").full is None

    def test_kinds_accumulate(self):
        registry = SourceRegistry()
        registry.register("PHB", kind=EntityKind.SPELL)
        registry.register("PHB", kind=EntityKind.FEAT)
        registry.register("PHB")
        assert registry.get("PHB").kinds == {EntityKind.SPELL, EntityKind.FEAT}

    def test_get_unknown(self):
        assert SourceRegistry().get("NOPE") is None


class TestRuleset:
    """Test that an entry's edition always follows its abbreviation."""

    def test_ruleset_derived_from_abbreviation(self):
        registry = SourceRegistry()
        assert registry.register("XPHB").ruleset == Ruleset.EDITION_2024
        assert registry.register("PHB").ruleset == Ruleset.EDITION_2014

    def test_to_dict(self):
        registry = SourceRegistry()
        registry.register("XMM", "Monster Manual (2024)", EntityKind.MONSTER)
        d = registry.get("XMM").to_dict()
        assert d == {
            "abbreviation": "XMM",
            "full": "Monster Manual (2024)",
            "ruleset": "2024",
            "kinds": ["monster"],
        }


class TestList:
    """Test filtered listing."""

    def make_registry(self) -> SourceRegistry:
        registry = SourceRegistry()
        registry.register("XPHB", kind=EntityKind.SPELL)
        registry.register("phb_brew", kind=EntityKind.FEAT)
        registry.register("PHB", kind=EntityKind.SPELL)
        registry.register("MM", kind=EntityKind.MONSTER)
        return registry

    def test_list_sorted_case_insensitively(self):
        names = [e.abbreviation for e in self.make_registry().list()]
        assert names == ["MM", "PHB", "phb_brew", "XPHB"]

    def test_filter_by_ruleset(self):
        names = [e.abbreviation for e in self.make_registry().list(ruleset="2024")]
        assert names == ["XPHB"]

    def test_any_ruleset_lists_everything(self):
        assert len(self.make_registry().list(ruleset="any")) == 4

    def test_filter_by_kind(self):
        names = [e.abbreviation for e in self.make_registry().list(kind="spell")]
        assert names == ["PHB", "XPHB"]

    def test_filter_by_ruleset_and_kind(self):
        names = [
            e.abbreviation
            for e in self.make_registry().list(ruleset=Ruleset.EDITION_2014, kind=EntityKind.SPELL)
        ]
        assert names == ["PHB"]

    def test_unknown_kind_lists_nothing(self):
        assert self.make_registry().list(kind="dragon") == []
