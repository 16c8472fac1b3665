"""
Price Parser
Best-effort conversion of a sheet price cell into a Decimal.

A bad price cell must never sink an otherwise good menu, so every failure
path here returns zero instead of raising.
"""

from __future__ import annotations

import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Sequence

log = logging.getLogger(__name__)

ZERO = Decimal("0")

CURRENCY_RE = re.compile(r"€")
COMMA_DECIMAL_RE = re.compile(r"^\d+,\d+$")   # "4,50"


def parse_price_text(raw: Any) -> Decimal:
    """
    Parse one price cell.

      "€ 4.50"  -> Decimal("4.50")
      "5"       -> Decimal("5")
      "4,50"    -> Decimal("4.50")
      "", None, "n.d.", "-3", "NaN" -> Decimal("0")
    """
    if raw is None:
        return ZERO
    s = CURRENCY_RE.sub("", str(raw)).strip()
    if not s:
        return ZERO
    if COMMA_DECIMAL_RE.match(s):
        s = s.replace(",", ".")
    try:
        value = Decimal(s)
    except InvalidOperation:
        log.debug("Unparsable price %r, using 0", raw)
        return ZERO
    if not value.is_finite() or value < 0:
        log.debug("Out of range price %r, using 0", raw)
        return ZERO
    return value


def parse_price(price_col: Optional[Sequence[Any]], idx: int) -> Decimal:
    """Price for row `idx`; a short or missing price column means zero."""
    if not price_col or idx >= len(price_col):
        return ZERO
    return parse_price_text(price_col[idx])
