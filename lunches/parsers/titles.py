# lunches/parsers/titles.py
"""
Section title location.

Menu sheets are typed by hand, so section headings drift ("PRIMI PIATTI",
"Primi  piatti del giorno", "SECONDI PIATI"). Each canonical title is fuzzy
matched against every row with difflib and the best row wins, provided its
similarity clears the threshold.

Validation runs while titles are accepted, in ascending MenuRowType order:
- duplicates: two titles on the same row -> DuplicateTitleError
- order: a title sitting above the previously accepted one -> TitleOrderError

Missing sections are fine; not every week has every section.
"""

from __future__ import annotations

from dataclasses import dataclass
from difflib import SequenceMatcher
from typing import Dict, List, Mapping, Optional, Sequence

from ..errors import DuplicateTitleError, TitleOrderError
from ..menu import DEFAULT_TITLES, MenuRowType, normalize_spaces

DEFAULT_THRESHOLD = 0.8


@dataclass(frozen=True)
class TitleMatch:
    index: int
    score: float   # similarity - threshold; >= 0 means accepted


def _partial_ratio(a: str, b: str) -> float:
    """Best ratio of the shorter string against same-length windows of the longer."""
    short, long = (a, b) if len(a) <= len(b) else (b, a)
    if not short:
        return 0.0

    best = 0.0
    for block in SequenceMatcher(None, short, long).get_matching_blocks():
        start = max(block.b - block.a, 0)
        window = long[start:start + len(short)]
        ratio = SequenceMatcher(None, short, window).ratio()
        if ratio > best:
            best = ratio
        if best > 0.995:
            break
    return best


def similarity(title: str, text: str) -> float:
    """
    0..1 similarity of a row to a title.

    Mean of the plain ratio (penalizes extra words, so a dish line that merely
    contains "frutta" scores below the "FRUTTA" heading) and the partial ratio
    (tolerates a heading with a short suffix).
    """
    t = normalize_spaces(title).casefold()
    s = normalize_spaces(text).casefold()
    if not t or not s:
        return 0.0
    full = SequenceMatcher(None, t, s).ratio()
    return (full + _partial_ratio(t, s)) / 2


def fuzzy_find(title: str, rows: Sequence[str],
               threshold: float = DEFAULT_THRESHOLD) -> List[TitleMatch]:
    """All rows with some similarity, best first; ties keep the lowest index."""
    matches = []
    for idx, text in enumerate(rows):
        sim = similarity(title, text)
        if sim > 0:
            matches.append(TitleMatch(index=idx, score=sim - threshold))
    matches.sort(key=lambda m: (-m.score, m.index))
    return matches


def locate_titles(rows: Sequence[str],
                  titles: Optional[Mapping[MenuRowType, str]] = None,
                  threshold: float = DEFAULT_THRESHOLD) -> Dict[int, MenuRowType]:
    """Map row index -> section type for every title found in `rows`."""
    if titles is None:
        titles = DEFAULT_TITLES

    found: Dict[int, MenuRowType] = {}
    last_type = MenuRowType.UNKNOWN
    last_index = -1

    # Sorted by enum value: the order check is only meaningful this way.
    for title_type in sorted(titles):
        title = titles[title_type]
        matches = fuzzy_find(title, rows, threshold)
        if not matches or matches[0].score < 0:
            continue

        idx = matches[0].index
        if idx in found:
            raise DuplicateTitleError(
                f"Unexpected title duplicate: {title!r} on row {idx} "
                f"already taken by {found[idx].name}"
            )
        if idx < last_index:
            raise TitleOrderError(
                f"Unexpected title order: {title_type.name} on row {idx} "
                f"is above {last_type.name} on row {last_index}"
            )

        found[idx] = title_type
        last_type, last_index = title_type, idx

    return found
