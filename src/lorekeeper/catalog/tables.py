"""
Roll-table normalization.

Turns the three raw table shapes found in the data (display tables, encounter
groups, name groups) into a uniform RollableTable. The catalog stores these
without interpreting them; rolling belongs to downstream tools.
"""

from __future__ import annotations

import re
from typing import Any, Literal, Protocol

from pydantic import BaseModel, Field

from .helpers import UNKNOWN_SOURCE


_DICE_TAG_RE = re.compile(r"\{@(?:dice|damage)\s+([^}]+)\}", re.IGNORECASE)
_PLUS_SPLIT_RE = re.compile(r"\s*\+\s*")
_DICE_TERM_RE = re.compile(r"^(\d*)d(\d+)$", re.IGNORECASE)
_MODIFIER_RE = re.compile(r"^(-?\d+)$")
_ROW_RANGE_RE = re.compile(r"^(\d+)[–-](\d+)$")
_ROW_SINGLE_RE = re.compile(r"^(\d+)$")


class DiceTerm(BaseModel):
    count: int
    sides: int


class DiceExpression(BaseModel):
    """Sum of dice terms plus a flat modifier."""
    terms: list[DiceTerm]
    modifier: int = 0
    raw: str
    min: int
    max: int


class RollableRow(BaseModel):
    min: int
    max: int
    results: list[str] = Field(default_factory=list)


class RollableTable(BaseModel):
    name: str
    source: str
    page: int | None = None
    caption: str | None = None
    category: Literal["display", "encounter", "name"]
    parent_name: str | None = None
    subtable: str | None = None
    dice_expression: DiceExpression
    result_columns: list[str]
    rows: list[RollableRow]
    rollable: bool
    homebrew: bool = False


class TableNormalizer(Protocol):
    """Collaborator interface the builder uses to normalize raw tables."""

    def display(self, raw: dict, homebrew: bool) -> RollableTable | None: ...

    def encounters(self, raw: dict) -> list[RollableTable]: ...

    def names(self, raw: dict) -> list[RollableTable]: ...


# =============================================================================
# Parsing
# =============================================================================

def parse_dice_expression(raw: str) -> DiceExpression | None:
    """
    Parse a dice expression such as "d20", "2d6", "1d6+3", "d12 + d8".

    Inline dice tags ({@dice d100}) are unwrapped first.

    Returns:
        DiceExpression, or None when the text is not a dice expression
    """
    if not isinstance(raw, str):
        return None
    cleaned = _DICE_TAG_RE.sub(r"\1", raw).strip()

    terms: list[DiceTerm] = []
    modifier = 0
    for part in _PLUS_SPLIT_RE.split(cleaned):
        dice = _DICE_TERM_RE.match(part)
        if dice:
            count = int(dice.group(1)) if dice.group(1) else 1
            sides = int(dice.group(2))
            if count > 0 and sides > 0:
                terms.append(DiceTerm(count=count, sides=sides))
                continue
        flat = _MODIFIER_RE.match(part)
        if flat:
            modifier += int(flat.group(1))
            continue
        return None

    if not terms:
        return None

    return DiceExpression(
        terms=terms,
        modifier=modifier,
        raw=cleaned,
        min=sum(t.count for t in terms) + modifier,
        max=sum(t.count * t.sides for t in terms) + modifier,
    )


def parse_row_range(cell: Any) -> tuple[int, int] | None:
    """
    Parse a display row's dice cell: "3", "03", "01–20", "91-00".

    "00" stands for 100 on percentile tables.
    """
    text = str(cell).strip()

    match = _ROW_RANGE_RE.match(text)
    if match:
        low = int(match.group(1))
        high = int(match.group(2))
        if high == 0 and match.group(2) == "00":
            high = 100
        return low, high

    match = _ROW_SINGLE_RE.match(text)
    if match:
        value = int(match.group(1))
        if value == 0 and match.group(1) == "00":
            return 100, 100
        return value, value

    return None


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def cell_to_text(cell: Any) -> str:
    """Flatten a table cell (string, number or nested entry object) to text."""
    if isinstance(cell, str):
        return cell
    if isinstance(cell, (int, float)) and not isinstance(cell, bool):
        return str(cell)
    if isinstance(cell, list):
        return " ".join(t for t in (cell_to_text(c) for c in cell) if t)
    if isinstance(cell, dict):
        parts = []
        if isinstance(cell.get("name"), str):
            parts.append(cell["name"])
        for key in ("entry", "entries", "items"):
            if key in cell:
                parts.append(cell_to_text(cell[key]))
        if not parts and "roll" in cell:
            roll = cell["roll"]
            if isinstance(roll, dict) and "exact" in roll:
                parts.append(str(roll["exact"]))
            elif isinstance(roll, dict) and "min" in roll and "max" in roll:
                parts.append(f"{roll['min']}-{roll['max']}")
        return " ".join(p for p in parts if p)
    return ""


# =============================================================================
# Normalization
# =============================================================================

def normalize_display_table(raw: dict, homebrew: bool = False) -> RollableTable | None:
    """Normalize a display-format table. Returns None if it has no rows."""
    name = raw.get("name") or raw.get("caption") or "Unknown Table"
    source = raw.get("source") or UNKNOWN_SOURCE
    col_labels = [cell_to_text(c) for c in _as_list(raw.get("colLabels"))]
    rows = _as_list(raw.get("rows"))
    if not rows:
        return None

    dice = parse_dice_expression(col_labels[0]) if col_labels else None
    rollable = dice is not None
    result_columns = col_labels[1:] if len(col_labels) > 1 else ["Result"]

    normalized: list[RollableRow] = []
    for row in rows:
        if isinstance(row, dict) and isinstance(row.get("row"), list):
            row = row["row"]
        if not isinstance(row, list) or not row:
            continue
        span = parse_row_range(cell_to_text(row[0])) if rollable else None
        low = span[0] if span else len(normalized) + 1
        high = span[1] if span else low
        cells = row[1:] if len(row) > 1 else row[:1]
        normalized.append(RollableRow(min=low, max=high, results=[cell_to_text(c) for c in cells]))

    if not normalized:
        return None

    if dice is None:
        dice = DiceExpression(
            terms=[DiceTerm(count=1, sides=len(normalized))],
            raw=f"d{len(normalized)}",
            min=1,
            max=len(normalized),
        )

    page = raw.get("page")
    caption = raw.get("caption")
    return RollableTable(
        name=str(name),
        source=str(source),
        page=page if isinstance(page, int) and not isinstance(page, bool) else None,
        caption=caption if isinstance(caption, str) else None,
        category="display",
        dice_expression=dice,
        result_columns=result_columns,
        rows=normalized,
        rollable=rollable,
        homebrew=homebrew,
    )


def _grouped_tables(
    raw: dict,
    category: Literal["encounter", "name"],
    result_column: str,
) -> list[RollableTable]:
    base_name = raw.get("name") or "Unknown"
    source = raw.get("source") or UNKNOWN_SOURCE
    page = raw.get("page")
    results: list[RollableTable] = []

    for sub in _as_list(raw.get("tables")):
        if not isinstance(sub, dict):
            continue
        if category == "encounter":
            if sub.get("minlvl") is not None and sub.get("maxlvl") is not None:
                qualifier = f"Levels {sub['minlvl']}-{sub['maxlvl']}"
            else:
                qualifier = sub.get("caption") or f"Table {len(results) + 1}"
            name = f"{base_name} Encounters ({qualifier})"
        else:
            qualifier = sub.get("option") or f"Table {len(results) + 1}"
            name = f"{base_name} Names ({qualifier})"

        dice = parse_dice_expression(sub.get("diceExpression") or "d100")
        if dice is None:
            continue

        rows = [
            RollableRow(min=row["min"], max=row["max"], results=[cell_to_text(row.get("result", ""))])
            for row in _as_list(sub.get("table"))
            if isinstance(row, dict) and isinstance(row.get("min"), int) and isinstance(row.get("max"), int)
        ]

        results.append(RollableTable(
            name=name,
            source=str(source),
            page=page if isinstance(page, int) and not isinstance(page, bool) else None,
            category=category,
            parent_name=str(base_name),
            subtable=str(qualifier),
            dice_expression=dice,
            result_columns=[result_column],
            rows=rows,
            rollable=True,
        ))

    return results


def normalize_encounter_tables(raw: dict) -> list[RollableTable]:
    """One encounter group yields one table per level range or caption."""
    return _grouped_tables(raw, "encounter", "Encounter")


def normalize_name_tables(raw: dict) -> list[RollableTable]:
    """One name group yields one table per option (Male, Female, Clan, ...)."""
    return _grouped_tables(raw, "name", "Name")


class DefaultTableNormalizer:
    """TableNormalizer backed by the module-level functions."""

    def display(self, raw: dict, homebrew: bool) -> RollableTable | None:
        return normalize_display_table(raw, homebrew)

    def encounters(self, raw: dict) -> list[RollableTable]:
        return normalize_encounter_tables(raw)

    def names(self, raw: dict) -> list[RollableTable]:
        return normalize_name_tables(raw)


__all__ = [
    "DiceTerm",
    "DiceExpression",
    "RollableRow",
    "RollableTable",
    "TableNormalizer",
    "DefaultTableNormalizer",
    "parse_dice_expression",
    "parse_row_range",
    "cell_to_text",
    "normalize_display_table",
    "normalize_encounter_tables",
    "normalize_name_tables",
]
