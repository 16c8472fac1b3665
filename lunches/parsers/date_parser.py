"""
Date Parser
Finds the menu date in the heading lines above the first section title.

Recognized forms (anywhere in the line):
  18/02/2019, 18-02-2019, 18.02.2019, 18/02/19 (dotted dates need a 4-digit year)
  2019-02-18
  lunedì 18 febbraio 2019, 18 Febbraio 2019
"""

from __future__ import annotations

import re
from datetime import date
from typing import Optional

MONTHS = {
    "gennaio": 1, "febbraio": 2, "marzo": 3, "aprile": 4,
    "maggio": 5, "giugno": 6, "luglio": 7, "agosto": 8,
    "settembre": 9, "ottobre": 10, "novembre": 11, "dicembre": 12,
}

ISO_RE = re.compile(r"(?<!\d)(\d{4})-(\d{1,2})-(\d{1,2})(?!\d)")
# Two-digit years only with "/" or "-": "1.2.23" reads like a version number.
NUMERIC_RE = re.compile(
    r"(?<![\d.])(\d{1,2})([/\-])(\d{1,2})\2(\d{4}|\d{2})(?![\d.])"
    r"|(?<![\d.])(\d{1,2})\.(\d{1,2})\.(\d{4})(?![\d.])"
)
LONG_RE = re.compile(
    r"(?<!\d)(\d{1,2})\s*[°º]?\s+(" + "|".join(MONTHS) + r")\s+(\d{4})(?!\d)",
    re.I,
)


def _safe_date(y: int, m: int, d: int) -> Optional[date]:
    try:
        return date(y, m, d)
    except ValueError:
        return None


def _full_year(y: str) -> int:
    return 2000 + int(y) if len(y) == 2 else int(y)


def parse_date(text: str) -> Optional[date]:
    """Return the first valid calendar date found in `text`, or None."""
    if not text:
        return None

    m = ISO_RE.search(text)
    if m:
        d = _safe_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
        if d:
            return d

    m = LONG_RE.search(text)
    if m:
        d = _safe_date(int(m.group(3)), MONTHS[m.group(2).lower()], int(m.group(1)))
        if d:
            return d

    m = NUMERIC_RE.search(text)
    if m:
        if m.group(1):
            day, month, year = m.group(1), m.group(3), m.group(4)
        else:
            day, month, year = m.group(5), m.group(6), m.group(7)
        return _safe_date(_full_year(year), int(month), int(day))

    return None
