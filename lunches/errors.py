# lunches/errors.py
from __future__ import annotations


class LunchesError(Exception):
    """Base class for every error raised by the lunches core."""


# ---------------------------------------------------------------------------
# Menu ingestion
# ---------------------------------------------------------------------------

class MenuParseError(LunchesError):
    """Fatal menu parse error. No partial Menu is ever returned alongside it."""


class MalformedSheetError(MenuParseError):
    """Unreadable workbook, no worksheets, or fewer rows than a menu needs."""


class TitleOrderError(MenuParseError):
    """A section title was found above a title that must precede it."""


class DuplicateTitleError(MenuParseError):
    """Two different section titles resolved to the same row."""


# ---------------------------------------------------------------------------
# Order persistence
# ---------------------------------------------------------------------------

class OrderSerializationError(LunchesError):
    """A stored order payload is not valid JSON or does not match the schema."""
