# lunches/parsers/rows.py
from __future__ import annotations

from typing import Mapping, Sequence, Tuple

from ..menu import MenuRowType

# Tried in order; the long form first so "Prop." never eats part of it.
DAILY_PROPOSAL_PREFIXES: Tuple[str, ...] = (
    "Proposta del giorno: ",
    "Prop. del giorno: ",
)

RowInfo = Tuple[str, MenuRowType, bool, bool]   # text, type, is_title, is_daily_proposal


def trim_prefix_once(s: str, prefixes: Sequence[str]) -> Tuple[str, bool]:
    """Strip the first matching prefix (at most one). Returns (text, trimmed)."""
    for prefix in prefixes:
        if s.startswith(prefix):
            return s[len(prefix):], True
    return s, False


def classify_row(idx: int, content: str, titles: Mapping[int, MenuRowType]) -> RowInfo:
    """
    Classify one normalized row of the dish column.

    Blank rows are EMPTY, rows located as section titles carry the section
    type, everything else is UNKNOWN (a dish line whose section is decided by
    the caller) with the daily proposal prefix removed.
    """
    if content == "":
        return content, MenuRowType.EMPTY, False, False

    title_type = titles.get(idx)
    if title_type is not None:
        return content, title_type, True, False

    content, is_daily_proposal = trim_prefix_once(content, DAILY_PROPOSAL_PREFIXES)
    return content, MenuRowType.UNKNOWN, False, is_daily_proposal
