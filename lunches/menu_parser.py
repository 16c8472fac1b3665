# lunches/menu_parser.py
"""
Weekly lunch sheet -> Menu.

The caterer sends one XLSX workbook per week. The first worksheet holds, top
to bottom: a few heading lines (one of them usually carries the date), then
the sections (primi, secondi, contorni, ...) each introduced by a title row and
followed by one dish per row, with the price in the next column. An empty row
after the last section (panini) ends the menu.

Usage:
    from lunches.menu_parser import parse_menu_bytes

    menu = parse_menu_bytes(upload.read())
    for row in menu:
        print(row.type.name, row.content, row.price)
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from io import BytesIO
from pathlib import Path
from zipfile import BadZipFile
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException

from .config import Settings
from .errors import MalformedSheetError
from .menu import DEFAULT_TITLES, Menu, MenuRow, MenuRowType, normalize_spaces
from .parsers.date_parser import parse_date
from .parsers.price_parser import parse_price
from .parsers.rows import classify_row
from .parsers.titles import locate_titles

log = logging.getLogger(__name__)

_DEFAULT_SETTINGS = Settings()

# "Pasta al ragù, pesto o pomodoro (sono sempre disponibili)" stands for three
# separate dishes.
ALWAYS_AVAILABLE_SUFFIX = "(sono sempre disponibili)"
ALWAYS_AVAILABLE_DISHES: Tuple[str, ...] = (
    "Pasta al ragù",
    "Pasta al pesto",
    "Pasta al pomodoro",
)

# Side dishes are often abbreviated on the sheet: "Grigliate zucchine",
# "Vapore carote". (prefix, suffix) pairs, prefix matched case-insensitively.
CONTORNO_REWRITES: Tuple[Tuple[str, str], ...] = (
    ("grigliat", " alla griglia"),
    ("vapore", " al vapore"),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def _sheet_rows(sheet: Any) -> List[Sequence[Any]]:
    """Rows of an openpyxl worksheet (values only) or of any row iterable."""
    if hasattr(sheet, "iter_rows"):
        return [tuple(r) for r in sheet.iter_rows(values_only=True)]
    return [tuple(r) for r in sheet]


def normalize_dish(row: MenuRow) -> MenuRow:
    """Expand abbreviated side dishes ("Grigliate zucchine" -> "Zucchine alla griglia")."""
    if row.type != MenuRowType.CONTORNO:
        return row

    lowered = row.content.lower()
    for prefix, suffix in CONTORNO_REWRITES:
        if lowered.startswith(prefix):
            words = row.content.split(" ")
            if len(words) == 2:
                row.content = words[1].lower().capitalize() + suffix
            break
    return row


def _today(settings: Settings) -> date:
    return datetime.now(settings.tz).date()


# ---------------------------------------------------------------------------
# Row loop
# ---------------------------------------------------------------------------

def parse_menu_cells(name_col: Sequence[str],
                     price_col: Optional[Sequence[Any]] = None,
                     settings: Optional[Settings] = None,
                     titles: Optional[Mapping[MenuRowType, str]] = None) -> Menu:
    """
    Build a Menu from the dish column and the (possibly shorter) price column.

    Raises TitleOrderError / DuplicateTitleError when section titles are
    inconsistent. Prices never raise: anything unparsable is zero.
    """
    settings = settings or _DEFAULT_SETTINGS
    texts = [normalize_spaces(_cell_text(c)) for c in name_col]
    menu_titles = locate_titles(
        texts,
        titles if titles is not None else DEFAULT_TITLES,
        threshold=settings.title_threshold,
    )

    current = MenuRowType.UNKNOWN
    menu_date: Optional[date] = None
    rows: List[MenuRow] = []

    for idx, text in enumerate(texts):
        content, row_type, is_title, is_daily_proposal = classify_row(idx, text, menu_titles)

        if is_title:
            current = row_type
            continue

        # Heading lines above the first section: only the date matters
        if current == MenuRowType.UNKNOWN:
            found = parse_date(text)
            if found is not None:
                menu_date = found
            continue

        if current == MenuRowType.PANINO and row_type == MenuRowType.EMPTY:
            log.debug("End of menu at row %d", idx)
            break
        if row_type == MenuRowType.EMPTY:
            continue

        price = parse_price(price_col, idx)

        if content.endswith(ALWAYS_AVAILABLE_SUFFIX):
            for dish in ALWAYS_AVAILABLE_DISHES:
                rows.append(MenuRow(content=dish, type=current,
                                    is_daily_proposal=False, price=price))
            continue

        rows.append(normalize_dish(MenuRow(
            content=content.strip(),
            type=current,
            is_daily_proposal=is_daily_proposal,
            price=price,
        )))

    if menu_date is None:
        menu_date = _today(settings)
        log.info("No date line in menu, defaulting to %s", menu_date)

    menu = Menu(date=menu_date)
    for r in rows:
        menu.add(r)
    return menu


# ---------------------------------------------------------------------------
# Sheet / workbook entrypoints
# ---------------------------------------------------------------------------

def parse_sheet(sheet: Union[Any, Iterable[Sequence[Any]]],
                settings: Optional[Settings] = None,
                titles: Optional[Mapping[MenuRowType, str]] = None) -> Menu:
    """
    Parse an openpyxl worksheet, or a grid given as an iterable of rows.

    Dishes are in column 0 and prices in column 1, unless the second cell of
    the first row is the caterer marker ("tuttobene"): that layout is shifted
    one column to the right.
    """
    settings = settings or _DEFAULT_SETTINGS
    grid = _sheet_rows(sheet)

    if not grid or len(grid) < settings.min_rows:
        raise MalformedSheetError(
            f"not enough rows: {len(grid)} (need at least {settings.min_rows})"
        )

    col = 0
    first = grid[0]
    if len(first) >= 2:
        marker = _cell_text(first[1]).strip().casefold()
        if marker == settings.sheet_marker.casefold():
            col = 1

    name_col: List[str] = []
    price_col: List[str] = []
    for r in grid:
        name_col.append(_cell_text(r[col]) if len(r) > col else "")
        price_col.append(_cell_text(r[col + 1]) if len(r) > col + 1 else "")

    menu = parse_menu_cells(name_col, price_col, settings=settings, titles=titles)
    log.info("Parsed menu for %s: %d rows (dish column %d)", menu.date, len(menu), col)
    return menu


def _parse_workbook(wb: Any, source: str, settings: Optional[Settings],
                    titles: Optional[Mapping[MenuRowType, str]]) -> Menu:
    try:
        sheets = wb.worksheets
        if not sheets:
            raise MalformedSheetError(f"no sheets in {source}")
        # Menu is expected on the first sheet
        return parse_sheet(sheets[0], settings=settings, titles=titles)
    finally:
        wb.close()


def parse_menu_bytes(data: bytes,
                     settings: Optional[Settings] = None,
                     titles: Optional[Mapping[MenuRowType, str]] = None) -> Menu:
    """Parse an XLSX workbook held in memory (e.g. an upload)."""
    if not data:
        raise MalformedSheetError("empty workbook")
    try:
        wb = openpyxl.load_workbook(BytesIO(data), data_only=True)
    except (InvalidFileException, BadZipFile, OSError, ValueError, KeyError) as e:
        raise MalformedSheetError(f"while opening workbook: {e}") from e
    return _parse_workbook(wb, "workbook", settings, titles)


def parse_menu_file(path: Union[str, Path],
                    settings: Optional[Settings] = None,
                    titles: Optional[Mapping[MenuRowType, str]] = None) -> Menu:
    """Parse an XLSX workbook on disk."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(path)
    return parse_menu_bytes(path.read_bytes(), settings=settings, titles=titles)
