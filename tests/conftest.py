# tests/conftest.py
"""Shared fixtures: sample weekly sheets as row grids and as XLSX bytes."""

from __future__ import annotations

import io
import sys
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from openpyxl import Workbook  # noqa: E402

Row = Tuple[Any, ...]

# Index comments are the sheet row numbers the tests refer to.
SAMPLE_ROWS: List[Row] = [
    ("Menù settimanale", None),                                          # 0
    ("Lunedì 18 febbraio 2019", None),                                   # 1
    ("", None),                                                          # 2
    ("PRIMI PIATTI", None),                                              # 3
    ("Proposta del giorno: Risotto ai funghi", "€ 5.50"),                # 4
    ("Pasta al ragù, pesto o pomodoro (sono sempre disponibili)", "4.50"),  # 5
    ("", None),                                                          # 6
    ("SECONDI PIATTI", None),                                            # 7
    ("Prop. del giorno: Arrosto di vitello", "7"),                       # 8
    ("Pollo  alla   griglia", "6.00"),                                   # 9
    ("CONTORNI", None),                                                  # 10
    ("Grigliate zucchine", "3"),                                         # 11
    ("Vapore carote", "3"),                                              # 12
    ("Patate al forno", "n.d."),                                         # 13
    ("PIATTI VEGETARIANI", None),                                        # 14
    ("Parmigiana di melanzane", "6.50"),                                 # 15
    ("FRUTTA", None),                                                    # 16
    ("Macedonia", "2.5"),                                                # 17
    ("DOLCI", None),                                                     # 18
    ("Tiramisù", "3.50"),                                                # 19
    ("I NOSTRI PANINI ESPRESSI", None),                                  # 20
    ("Panino prosciutto e mozzarella", "4"),                             # 21
    ("", None),                                                          # 22
    ("Questo non è un piatto", "9"),                                     # 23
]


def shifted(rows: Sequence[Row], marker: str = "Tuttobene") -> List[Row]:
    """Same sheet in the caterer layout: one column to the right, marker in B1."""
    out = [(None,) + tuple(r) for r in rows]
    out[0] = (out[0][0], marker) + out[0][2:]
    return out


def xlsx_bytes(rows: Sequence[Row], extra_sheet: Optional[str] = None) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Menu"
    for r in rows:
        ws.append(list(r))
    if extra_sheet:
        wb.create_sheet(extra_sheet).append(["not the menu"])
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


@pytest.fixture()
def sample_rows() -> List[Row]:
    return list(SAMPLE_ROWS)


@pytest.fixture()
def sample_xlsx() -> bytes:
    return xlsx_bytes(SAMPLE_ROWS)
