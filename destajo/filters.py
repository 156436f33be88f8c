from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional

import pandas as pd

from destajo.store import CANONICAL_DATE, CONDUCTOR, RECIBIDOR


@dataclass(frozen=True)
class FilterState:
    """Exact-match predicates; None means unset. Set predicates are ANDed."""

    driver: Optional[str] = None
    receiver: Optional[str] = None
    date: Optional[str] = None

    @property
    def is_vacuous(self) -> bool:
        return self.driver is None and self.receiver is None and self.date is None


def _as_optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    s = str(value)
    return s if s != "" else None


def normalize_filters(raw: dict) -> FilterState:
    """Raw UI/API selections -> FilterState. Blank selections are unset."""
    raw = raw or {}
    return FilterState(
        driver=_as_optional_str(raw.get("driver")),
        receiver=_as_optional_str(raw.get("receiver")),
        date=_as_optional_str(raw.get("date")),
    )


def apply_filters(frame: pd.DataFrame, state: FilterState) -> pd.DataFrame:
    """Rows of `frame` matching every set predicate, in frame order.

    Comparison is plain equality: no trimming, no case folding. Records with
    an empty canonical date never match a set date.
    """
    if state.is_vacuous or frame.empty:
        return frame

    mask = pd.Series(True, index=frame.index)
    if state.driver is not None:
        mask &= frame[CONDUCTOR] == state.driver
    if state.receiver is not None:
        mask &= frame[RECIBIDOR] == state.receiver
    if state.date is not None:
        mask &= (frame[CANONICAL_DATE] == state.date) & (frame[CANONICAL_DATE] != "")
    return frame[mask]


def distinct_values(frame: pd.DataFrame, field: str) -> List[Any]:
    """Unique non-empty values of `field`, sorted by their text form."""
    if frame.empty or field not in frame.columns:
        return []
    values = [v for v in frame[field].dropna().unique().tolist() if not (isinstance(v, str) and v == "")]
    return sorted(values, key=str)
