"""
Tests for roll-table normalization.
"""

import pytest

from lorekeeper.catalog.tables import (
    DefaultTableNormalizer,
    cell_to_text,
    normalize_display_table,
    normalize_encounter_tables,
    normalize_name_tables,
    parse_dice_expression,
    parse_row_range,
)


class TestDiceExpression:
    """Test dice expression parsing."""

    def test_single_die(self):
        dice = parse_dice_expression("d20")
        assert [(t.count, t.sides) for t in dice.terms] == [(1, 20)]
        assert dice.min == 1
        assert dice.max == 20

    def test_count_and_modifier(self):
        dice = parse_dice_expression("2d6+3")
        assert dice.modifier == 3
        assert dice.min == 5
        assert dice.max == 15

    def test_sum_of_dice(self):
        dice = parse_dice_expression("d12 + d8")
        assert len(dice.terms) == 2
        assert dice.min == 2
        assert dice.max == 20

    def test_inline_tag_unwrapped(self):
        dice = parse_dice_expression("{@dice d100}")
        assert dice.raw == "d100"
        assert dice.max == 100

    @pytest.mark.parametrize("text", ["Trinket", "", "3", None])
    def test_not_dice(self, text):
        assert parse_dice_expression(text) is None


class TestRowRange:
    """Test display row range parsing."""

    @pytest.mark.parametrize("cell,expected", [
        ("5", (5, 5)),
        ("03", (3, 3)),
        ("01–20", (1, 20)),
        ("21-40", (21, 40)),
        ("91-00", (91, 100)),
        ("00", (100, 100)),
        (7, (7, 7)),
    ])
    def test_valid(self, cell, expected):
        assert parse_row_range(cell) == expected

    def test_invalid(self):
        assert parse_row_range("Special") is None


class TestCellToText:
    """Test cell flattening."""

    def test_entries_object(self):
        cell = {"type": "entries", "name": "Cursed", "entries": ["You feel", "watched."]}
        assert cell_to_text(cell) == "Cursed You feel watched."

    def test_roll_object(self):
        assert cell_to_text({"roll": {"min": 1, "max": 4}}) == "1-4"
        assert cell_to_text({"roll": {"exact": 5}}) == "5"

    def test_scalars(self):
        assert cell_to_text(12) == "12"
        assert cell_to_text(None) == ""


class TestDisplayTable:
    """Test display-table normalization."""

    def test_rollable_table(self):
        table = normalize_display_table({
            "name": "Trinkets",
            "source": "PHB",
            "page": 160,
            "colLabels": ["d100", "Trinket"],
            "rows": [
                ["01-50", "A mummified goblin hand"],
                ["51-00", "A piece of crystal that faintly glows"],
            ],
        })
        assert table.category == "display"
        assert table.rollable is True
        assert table.dice_expression.raw == "d100"
        assert table.result_columns == ["Trinket"]
        assert [(r.min, r.max) for r in table.rows] == [(1, 50), (51, 100)]
        assert table.rows[0].results == ["A mummified goblin hand"]
        assert table.page == 160

    def test_plain_table_numbered_sequentially(self):
        table = normalize_display_table({
            "name": "Languages",
            "source": "PHB",
            "colLabels": ["Language", "Script"],
            "rows": [["Common", "Common"], ["Dwarvish", "Dwarvish"], ["Elvish", "Elvish"]],
        })
        assert table.rollable is False
        assert table.dice_expression.raw == "d3"
        assert [r.min for r in table.rows] == [1, 2, 3]

    def test_missing_source_is_unknown(self):
        table = normalize_display_table({"name": "X", "rows": [["a"]]})
        assert table.source == "UNK"

    def test_homebrew_flag(self):
        table = normalize_display_table({"name": "X", "rows": [["a"]]}, homebrew=True)
        assert table.homebrew is True

    def test_no_rows(self):
        assert normalize_display_table({"name": "Empty", "rows": []}) is None


class TestGroupedTables:
    """Test encounter and name group normalization."""

    def test_encounters_by_level(self):
        tables = normalize_encounter_tables({
            "name": "Arctic",
            "source": "XGE",
            "tables": [
                {"minlvl": 1, "maxlvl": 4, "diceExpression": "d100",
                 "table": [{"min": 1, "max": 5, "result": "1 giant owl"}]},
                {"minlvl": 5, "maxlvl": 10, "diceExpression": "d100", "table": []},
            ],
        })
        assert [t.name for t in tables] == [
            "Arctic Encounters (Levels 1-4)",
            "Arctic Encounters (Levels 5-10)",
        ]
        assert tables[0].category == "encounter"
        assert tables[0].parent_name == "Arctic"
        assert tables[0].subtable == "Levels 1-4"
        assert tables[0].rows[0].results == ["1 giant owl"]

    def test_names_by_option(self):
        tables = normalize_name_tables({
            "name": "Dwarf",
            "source": "XGE",
            "tables": [
                {"option": "Female", "diceExpression": "d100",
                 "table": [{"min": 1, "max": 1, "result": "Anbera"}]},
            ],
        })
        assert len(tables) == 1
        assert tables[0].name == "Dwarf Names (Female)"
        assert tables[0].result_columns == ["Name"]

    def test_default_normalizer_delegates(self):
        normalizer = DefaultTableNormalizer()
        assert normalizer.display({"name": "X", "rows": [["a"]]}, False).name == "X"
        assert normalizer.names({"name": "Elf", "tables": []}) == []
