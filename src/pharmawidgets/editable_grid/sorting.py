"""Client-side sorting for EditableGrid.

Sorting never mutates the row list it is given: ``sort_rows`` always returns
a new, shallow-copied list.
"""

from __future__ import annotations

from dataclasses import dataclass
import math
from functools import cmp_to_key
from typing import Any, Literal, Sequence

SortDirection = Literal["asc", "desc"]


@dataclass(frozen=True)
class SortState:
    """Current sort column and direction. An empty key means unsorted."""

    key: str = ""
    direction: SortDirection = "asc"

    @property
    def active(self) -> bool:
        return bool(self.key)

    def toggle(self, key: str) -> "SortState":
        """Return the state after clicking the header of ``key``.

        A new column always starts ascending; the active column flips direction.
        """
        if key != self.key:
            return SortState(key=key, direction="asc")
        return SortState(key=key, direction="desc" if self.direction == "asc" else "asc")


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and not _is_missing(value)


def compare_values(a: Any, b: Any) -> int:
    """Three-way compare two cell values.

    Two numbers compare numerically. Anything else compares as a
    case-sensitive string. Missing values (``None`` or NaN) compare as the
    empty string.
    """
    if _is_number(a) and _is_number(b):
        return (a > b) - (a < b)
    sa = "" if _is_missing(a) else str(a)
    sb = "" if _is_missing(b) else str(b)
    return (sa > sb) - (sa < sb)


def sort_rows(rows: Sequence[dict[str, Any]], state: SortState) -> list[dict[str, Any]]:
    """Return ``rows`` ordered by ``state``; ties keep their input order."""
    out = list(rows)
    if not state.active:
        return out
    key = cmp_to_key(lambda r1, r2: compare_values(r1.get(state.key), r2.get(state.key)))
    out.sort(key=key, reverse=(state.direction == "desc"))
    return out
