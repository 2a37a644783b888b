"""
Utilities for stepping through monthly price observations.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

import pandas as pd

MONTH_NAMES: Sequence[str] = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)


@dataclass(frozen=True, order=True)
class MonthStamp:
    """A (year, month) position on the monthly price calendar."""

    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValueError(f"Month must be within 1-12, got {self.month}")

    @property
    def key(self) -> Tuple[int, int]:
        return self.year, self.month

    def as_string(self) -> str:
        return f"{self.year}-{self.month:02d}"

    def as_label(self) -> str:
        return f"{MONTH_NAMES[self.month - 1]} {self.year}"

    def next(self) -> MonthStamp:
        if self.month == 12:
            return MonthStamp(year=self.year + 1, month=1)
        return MonthStamp(year=self.year, month=self.month + 1)

    def advance(self, steps: int) -> List[MonthStamp]:
        """Return the ``steps`` months following this one (exclusive)."""
        cursor = self
        result: List[MonthStamp] = []
        for _ in range(steps):
            cursor = cursor.next()
            result.append(cursor)
        return result


def latest_stamp(stamps: Iterable[MonthStamp]) -> MonthStamp:
    """
    Most recent month in ``stamps``. Forecasts continue from here regardless of
    the order the history was supplied in.
    """
    stamps = list(stamps)
    if not stamps:
        raise ValueError("Cannot determine the latest month of an empty series.")
    return max(stamps)


def compute_date_index(df: pd.DataFrame) -> pd.DataFrame:
    """
    Sort a ``year``/``month`` frame chronologically and append a monotonically
    increasing ``date_id`` column.
    """
    ordered = df.sort_values(["year", "month"], kind="stable").reset_index(drop=True)
    ordered["date_id"] = ordered.index.astype(int)
    return ordered
