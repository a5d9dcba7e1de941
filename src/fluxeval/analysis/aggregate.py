"""Reduce daily records to annual or multi-year summaries.

Grouping is by calendar year, or by a caller-supplied ``YearRange`` that
collapses the whole range into one summary. Partial-year handling is an
explicit parameter (``min_valid_days``); nothing is dropped by default.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Literal

import pandas as pd

from fluxeval.errors import InsufficientData
from fluxeval.timeseries.models import AnnualSummary, TimeSeriesTable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuantileMean:
    """Mean of the values lying within the [lower, upper] quantile band.

    Quantiles are computed per group and per column, so e.g.
    ``QuantileMean(0.0, 0.9)`` drops the top decile of each year.
    """

    lower: float = 0.0
    upper: float = 1.0

    def __post_init__(self) -> None:
        if not 0.0 <= self.lower < self.upper <= 1.0:
            msg = f"need 0 <= lower < upper <= 1, got ({self.lower}, {self.upper})"
            raise ValueError(msg)


@dataclass(frozen=True)
class YearRange:
    """Inclusive range of calendar years aggregated as a single period."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start > self.end:
            msg = f"start {self.start} is after end {self.end}"
            raise ValueError(msg)


Reducer = Literal["sum", "mean"] | QuantileMean
GroupBy = Literal["year"] | YearRange


def _quantile_mean(column: pd.Series, band: QuantileMean) -> float:
    values = column.dropna()
    if values.empty:
        return float("nan")
    lo, hi = values.quantile([band.lower, band.upper])
    return float(values[(values >= lo) & (values <= hi)].mean())


def _reduce(group: pd.DataFrame, reducer: Reducer) -> dict[str, float]:
    if reducer == "sum":
        # min_count=1: an all-missing column sums to NaN, not 0
        series = group.sum(min_count=1)
    elif reducer == "mean":
        series = group.mean()
    elif isinstance(reducer, QuantileMean):
        return {name: _quantile_mean(group[name], reducer) for name in group.columns}
    else:
        msg = f"unknown reducer {reducer!r}"
        raise ValueError(msg)
    return {name: float(value) for name, value in series.items()}


def aggregate(
    table: TimeSeriesTable,
    reducer: Reducer = "sum",
    group_by: GroupBy = "year",
    min_valid_days: int = 0,
    columns: Sequence[str] | None = None,
) -> list[AnnualSummary]:
    """Aggregate a daily table per calendar year (or over a year range).

    Args:
        table: Single-source or joined daily table.
        reducer: ``"sum"``, ``"mean"`` or a ``QuantileMean`` band.
        group_by: ``"year"`` for one summary per calendar year, or a
            ``YearRange`` for one summary over that range.
        min_valid_days: Groups with fewer valid days are excluded. A valid
            day has no missing value in any aggregated column.
        columns: Fields to aggregate (default: all).

    Returns:
        One AnnualSummary per retained group, ordered by year.

    Raises:
        InsufficientData: If the table is empty or every group is excluded.
    """
    frame = table.frame if columns is None else table.select(columns).frame
    if min_valid_days < 0:
        msg = f"min_valid_days must be >= 0, got {min_valid_days}"
        raise ValueError(msg)

    groups: Iterable[tuple[int, pd.DataFrame]]
    end_year: int | None = None
    if isinstance(group_by, YearRange):
        years = frame.index.year
        in_range = frame.loc[(years >= group_by.start) & (years <= group_by.end)]
        groups = [(group_by.start, in_range)] if not in_range.empty else []
        end_year = group_by.end
    elif group_by == "year":
        groups = ((int(year), grp) for year, grp in frame.groupby(frame.index.year))
    else:
        msg = f"unknown group_by {group_by!r}"
        raise ValueError(msg)

    summaries: list[AnnualSummary] = []
    for year, group in groups:
        valid_days = int(group.notna().all(axis=1).sum())
        if valid_days < min_valid_days:
            logger.debug(
                "%s %d: %d valid days < %d, excluded", table.site, year, valid_days, min_valid_days
            )
            continue
        summaries.append(
            AnnualSummary(
                site=table.site,
                year=year,
                end_year=end_year,
                values=_reduce(group, reducer),
                valid_days=valid_days,
            )
        )

    if not summaries:
        msg = f"{table.site}: no period with at least {min_valid_days} valid days"
        raise InsufficientData(msg)
    return summaries


def summaries_to_frame(summaries: Iterable[AnnualSummary]) -> pd.DataFrame:
    """Flatten summaries into one row per (site, period) for reporting."""
    rows = [
        {
            "site": s.site,
            "year": s.year,
            "end_year": s.end_year,
            "valid_days": s.valid_days,
            **s.values,
        }
        for s in summaries
    ]
    if not rows:
        return pd.DataFrame(columns=["site", "year", "end_year", "valid_days"])
    return pd.DataFrame(rows).sort_values(["site", "year"]).reset_index(drop=True)
