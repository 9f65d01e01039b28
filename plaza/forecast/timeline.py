from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import DefaultDict, Dict, Iterable, List, Tuple

import deal

from plaza.forecast.model import MonthlyRecord


@dataclass(frozen=True, slots=True)
class Timeline:
    """
    Month axis of a forecast.

    Sales always happen in months 1..N. Pre-order mode adds a Month 0 in
    front for up-front costs and deposits.
    """

    forecast_months: int
    pre_order: bool = False

    @property
    def first_month(self) -> int:
        return 0 if self.pre_order else 1

    @property
    def months(self) -> Tuple[int, ...]:
        return tuple(range(self.first_month, self.forecast_months + 1))

    @property
    def sales_months(self) -> Tuple[int, ...]:
        return tuple(range(1, self.forecast_months + 1))

    def __contains__(self, month: object) -> bool:
        return isinstance(month, int) and self.first_month <= month <= self.forecast_months


class MonthlyLedger:
    """
    Accumulates named amounts per month, then freezes them into a zero-filled
    table. One ledger per computation; never shared.
    """

    def __init__(self, timeline: Timeline) -> None:
        self._timeline = timeline
        self._cells: DefaultDict[int, Dict[str, float]] = defaultdict(dict)

    def post(self, month: int, key: str, amount: float) -> None:
        if month not in self._timeline:
            raise ValueError(f"month {month} is outside the forecast timeline")
        row = self._cells[month]
        row[key] = row.get(key, 0.0) + amount

    @deal.ensure(
        lambda self, columns, result: [r.month for r in result] == list(self._timeline.months),
        message="table must have one row per timeline month",
    )
    def freeze(self, columns: Iterable[str]) -> Tuple[MonthlyRecord, ...]:
        cols = unique(columns)
        rows: List[MonthlyRecord] = []
        for m in self._timeline.months:
            cells = self._cells.get(m, {})
            rows.append(MonthlyRecord(month=m, values={c: cells.get(c, 0.0) for c in cols}))
        return tuple(rows)


def unique(names: Iterable[str]) -> List[str]:
    """Keep first occurrence order; duplicate names share one column."""
    seen: Dict[str, None] = {}
    for n in names:
        seen.setdefault(n, None)
    return list(seen)
