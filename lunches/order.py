# lunches/order.py
"""
Group lunch order.

Every user sends one or more choices (a UserChoice is a list of dishes picked
together, e.g. primo + contorno). The Order keeps the latest choices per user
and renders the aggregate the caterer needs:

    2 Pasta al pesto [anna, bruno]
    1 Pollo arrosto [anna]

Order holds no lock of its own. OrderContext owns the current order for a menu
cycle plus a single lock; callers serialize every call through it.
"""

from __future__ import annotations

import json
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from decimal import InvalidOperation
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from .brain import Brain
from .errors import OrderSerializationError
from .menu import Menu, MenuRow

log = logging.getLogger(__name__)

ORDER_KEY = "order"
SCHEMA_VERSION = 1


@dataclass
class UserChoice:
    rows: List[MenuRow] = field(default_factory=list)

    def add(self, row: MenuRow) -> None:
        self.rows.append(row)

    def __iter__(self) -> Iterator[MenuRow]:
        return iter(self.rows)

    def __len__(self) -> int:
        return len(self.rows)

    def __str__(self) -> str:
        return "\n".join(r.content for r in self.rows)


@dataclass
class AggregateLine:
    content: str
    count: int = 0
    users: List[str] = field(default_factory=list)


class Order:
    def __init__(self, tz: Optional[tzinfo] = None):
        self._tz = tz or timezone.utc
        self.selections: Dict[str, List[UserChoice]] = {}
        self.timestamp: datetime = datetime.now(self._tz)

    def _touch(self) -> None:
        self.timestamp = datetime.now(self._tz)

    # ------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------
    def set(self, username: str, choices: Iterable[UserChoice]) -> None:
        """Replace everything `username` chose before with `choices`."""
        kept = [c for c in choices if len(c) > 0]
        if kept:
            self.selections[username] = kept
        else:
            self.selections.pop(username, None)
        self._touch()

    def clear_user(self, username: str) -> str:
        """Drop the user's choices; returns the dishes they had, one per line."""
        removed = self.selections.pop(username, [])
        self._touch()
        return "\n".join(str(c) for c in removed if len(c) > 0)

    # ------------------------------------------------------------
    # Views
    # ------------------------------------------------------------
    def users(self) -> List[str]:
        return list(self.selections)

    def is_empty(self) -> bool:
        return not self.selections

    def aggregate(self) -> List[AggregateLine]:
        """Per-dish totals, recomputed from the current selections."""
        lines: Dict[str, AggregateLine] = {}
        for username, choices in self.selections.items():
            for choice in choices:
                for row in choice:
                    line = lines.get(row.content)
                    if line is None:
                        line = lines[row.content] = AggregateLine(content=row.content)
                    line.count += 1
                    if username not in line.users:
                        line.users.append(username)
        return list(lines.values())

    def format(self, include_usernames: bool = False) -> str:
        """
        Render the aggregate, one dish per line.

        include_usernames=False gives "<count> <dish>" (what gets sent to the
        caterer); True appends "[user, ...]" like str(order).
        """
        out = []
        for line in self.aggregate():
            text = f"{line.count} {line.content}"
            if include_usernames:
                text += " [" + ", ".join(line.users) + "]"
            out.append(text)
        return "\n".join(out)

    def __str__(self) -> str:
        return self.format(include_usernames=True)

    # ------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": SCHEMA_VERSION,
            "timestamp": self.timestamp.isoformat(timespec="microseconds"),
            "selections": {
                user: [[r.to_dict() for r in c] for c in choices]
                for user, choices in self.selections.items()
            },
        }

    @staticmethod
    def _parse_payload(data: Any) -> Tuple[datetime, Dict[str, List[UserChoice]]]:
        if not isinstance(data, dict):
            raise OrderSerializationError("stored order is not an object")
        version = data.get("version")
        if version != SCHEMA_VERSION:
            raise OrderSerializationError(f"unsupported order schema version: {version!r}")

        try:
            timestamp = datetime.fromisoformat(data["timestamp"])
        except (KeyError, TypeError, ValueError) as e:
            raise OrderSerializationError(f"invalid order timestamp: {e}") from e

        raw = data.get("selections")
        if not isinstance(raw, dict):
            raise OrderSerializationError("order 'selections' must be an object")

        selections: Dict[str, List[UserChoice]] = {}
        try:
            for user, choices in raw.items():
                if not isinstance(choices, list):
                    raise TypeError(f"choices of {user!r} must be a list")
                parsed = []
                for c in choices:
                    if not isinstance(c, list):
                        raise TypeError(f"a choice of {user!r} must be a list")
                    parsed.append(UserChoice(rows=[MenuRow.from_dict(r) for r in c]))
                parsed = [c for c in parsed if len(c) > 0]
                if parsed:
                    selections[user] = parsed
        except (KeyError, TypeError, ValueError, InvalidOperation) as e:
            raise OrderSerializationError(f"invalid order selections: {e}") from e

        return timestamp, selections

    @classmethod
    def from_dict(cls, data: Any, tz: Optional[tzinfo] = None) -> "Order":
        order = cls(tz=tz)
        order.timestamp, order.selections = cls._parse_payload(data)
        return order

    def save(self, brain: Brain, key: str = ORDER_KEY) -> None:
        """Write the order under `key`. Store errors propagate as they are."""
        brain.set(key, self.to_dict())
        log.debug("Saved order (%d users) under %r", len(self.selections), key)

    def load(self, brain: Brain, key: str = ORDER_KEY) -> None:
        """
        Replace this order with the one stored under `key`.

        A missing key surfaces as the brain's BrainKeyError; a payload that is
        not JSON or not an order raises OrderSerializationError. On any error
        the order is left untouched.
        """
        try:
            data = brain.get(key)
        except json.JSONDecodeError as e:
            raise OrderSerializationError(f"stored order is not valid JSON: {e}") from e

        timestamp, selections = self._parse_payload(data)
        self.selections = selections
        self.timestamp = timestamp
        log.debug("Loaded order (%d users) from %r", len(selections), key)


class OrderContext:
    """
    Current menu + order for one menu cycle, guarded by one coarse lock.

    The orchestrator (scheduler, portal upload) calls reset() when a new menu
    cycle starts.
    """

    def __init__(self, tz: Optional[tzinfo] = None):
        self._tz = tz
        self._lock = threading.RLock()
        self.menu: Optional[Menu] = None
        self.order = Order(tz=tz)

    def reset(self, menu: Optional[Menu] = None) -> None:
        with self._lock:
            self.menu = menu
            self.order = Order(tz=self._tz)
            log.info("New menu cycle%s", f" for {menu.date}" if menu else "")

    @contextmanager
    def locked(self) -> Iterator[Order]:
        with self._lock:
            yield self.order
