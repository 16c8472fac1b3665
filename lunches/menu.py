# lunches/menu.py
"""
Menu data model.

A Menu is the typed result of parsing one weekly lunch sheet: a date plus the
dish rows in the order they were found in the sheet. Rows are tagged with the
section (MenuRowType) they were listed under.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import IntEnum
from typing import Any, Dict, Iterator, List, Optional, Tuple


class MenuRowType(IntEnum):
    """Kind of a sheet row. The order is the order sections appear in a menu."""

    UNKNOWN = 0
    EMPTY = 1
    PRIMO = 2
    SECONDO = 3
    CONTORNO = 4
    VEGETARIANO = 5
    FRUTTA = 6
    DOLCE = 7
    PANINO = 8

    @classmethod
    def from_name(cls, name: str) -> "MenuRowType":
        try:
            return cls[str(name).strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown menu row type: {name!r}") from None


# Canonical section titles as printed on the sheet. Callers may inject their own
# table; the parser never relies on this dict's iteration order.
DEFAULT_TITLES: Dict[MenuRowType, str] = {
    MenuRowType.PRIMO: "primi piatti",
    MenuRowType.SECONDO: "secondi piatti",
    MenuRowType.CONTORNO: "contorni",
    MenuRowType.VEGETARIANO: "piatti vegetariani",
    MenuRowType.FRUTTA: "frutta",
    MenuRowType.DOLCE: "dolci",
    MenuRowType.PANINO: "i nostri panini espressi",
}


def normalize_spaces(s: str) -> str:
    """Collapse every run of whitespace to a single space and trim."""
    return " ".join((s or "").split())


@dataclass
class MenuRow:
    content: str
    type: MenuRowType = MenuRowType.UNKNOWN
    is_daily_proposal: bool = False
    price: Decimal = Decimal("0")

    def __post_init__(self) -> None:
        self.content = normalize_spaces(self.content)
        self.type = MenuRowType(self.type)
        if not isinstance(self.price, Decimal):
            self.price = Decimal(str(self.price))
        if self.price < 0:
            self.price = Decimal("0")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content": self.content,
            "type": self.type.name.lower(),
            "is_daily_proposal": self.is_daily_proposal,
            # string keeps the decimal exact through JSON
            "price": str(self.price),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MenuRow":
        """
        Rebuild a row from to_dict() output.

        Raises ValueError/TypeError/KeyError on a malformed mapping; callers
        that deserialize stored data translate those into their own errors.
        """
        if not isinstance(data, dict):
            raise TypeError(f"Menu row must be an object, got {type(data).__name__}")
        content = data["content"]
        if not isinstance(content, str):
            raise TypeError("Menu row 'content' must be a string")
        try:
            price = Decimal(str(data.get("price", "0")))
        except InvalidOperation:
            raise ValueError(f"Invalid menu row price: {data.get('price')!r}") from None
        if not price.is_finite():
            raise ValueError(f"Invalid menu row price: {data.get('price')!r}")
        return cls(
            content=content,
            type=MenuRowType.from_name(data.get("type", "unknown")),
            is_daily_proposal=bool(data.get("is_daily_proposal", False)),
            price=price,
        )


@dataclass
class Menu:
    date: date
    rows: List[MenuRow] = field(default_factory=list)

    def add(self, row: MenuRow) -> None:
        self.rows.append(row)

    def __iter__(self) -> Iterator[MenuRow]:
        return iter(self.rows)

    def __len__(self) -> int:
        return len(self.rows)

    def rows_of(self, row_type: MenuRowType) -> List[MenuRow]:
        return [r for r in self.rows if r.type == row_type]

    def sections(self) -> List[Tuple[MenuRowType, List[MenuRow]]]:
        """Non-empty sections in sheet order, each with its rows."""
        out: List[Tuple[MenuRowType, List[MenuRow]]] = []
        for r in self.rows:
            if out and out[-1][0] == r.type:
                out[-1][1].append(r)
            else:
                out.append((r.type, [r]))
        return out

    def daily_proposals(self) -> List[MenuRow]:
        return [r for r in self.rows if r.is_daily_proposal]

    def find(self, content: str) -> Optional[MenuRow]:
        """First row whose content matches, ignoring case and spacing."""
        wanted = normalize_spaces(content).casefold()
        for r in self.rows:
            if r.content.casefold() == wanted:
                return r
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "rows": [r.to_dict() for r in self.rows],
        }
