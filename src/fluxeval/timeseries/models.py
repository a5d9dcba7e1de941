"""Per-site daily time series and the summaries derived from them."""

from __future__ import annotations

import math
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from datetime import date

import pandas as pd

from fluxeval.errors import SchemaError
from fluxeval.schemas import SCHEMAS, TableKind

DATE_INDEX = "date"


@dataclass(frozen=True)
class Record:
    """One (site, date) observation with named numeric fields.

    Missing values are ``None``, never zero.
    """

    site: str
    date: date
    values: Mapping[str, float | None]

    def get(self, name: str) -> float | None:
        """Value of field ``name``, or None if missing or absent."""
        return self.values.get(name)


@dataclass(frozen=True)
class AnnualSummary:
    """Aggregated metrics for one site over one year (or a year range).

    ``end_year`` is only set for multi-year summaries; for a calendar-year
    summary the period is just ``year``.
    """

    site: str
    year: int
    values: Mapping[str, float]
    valid_days: int
    end_year: int | None = None

    @property
    def label(self) -> str:
        """Period label, e.g. ``2015`` or ``2015-2018``."""
        if self.end_year is None or self.end_year == self.year:
            return str(self.year)
        return f"{self.year}-{self.end_year}"


def _coerce_frame(frame: pd.DataFrame, site: str) -> pd.DataFrame:
    """Return a float frame indexed by naive UTC calendar dates, sorted."""
    if DATE_INDEX in frame.columns:
        frame = frame.set_index(DATE_INDEX)

    try:
        index = pd.DatetimeIndex(pd.to_datetime(frame.index))
    except (TypeError, ValueError) as exc:
        msg = f"{site}: index cannot be parsed as dates"
        raise SchemaError(msg) from exc

    if index.tz is not None:
        index = index.tz_convert("UTC").tz_localize(None)
    if not (index == index.normalize()).all():
        msg = f"{site}: timestamps must be calendar dates, found sub-daily times"
        raise SchemaError(msg)
    if index.has_duplicates:
        dupes = sorted({d.date().isoformat() for d in index[index.duplicated()]})
        msg = f"{site}: duplicate dates {', '.join(dupes[:5])}"
        raise SchemaError(msg)

    non_numeric = [c for c in frame.columns if not pd.api.types.is_numeric_dtype(frame[c])]
    if non_numeric:
        msg = f"{site}: non-numeric columns {non_numeric}"
        raise SchemaError(msg)

    out = frame.astype(float)
    out.index = index.rename(DATE_INDEX)
    return out.sort_index()


class TimeSeriesTable:
    """Ordered daily records for one site, backed by a pandas DataFrame.

    The frame is indexed by calendar date (``DatetimeIndex`` named ``date``)
    and holds one float column per field, with NaN marking missing values.
    When ``kind`` is given, the required fields of that kind's schema must be
    present.
    """

    def __init__(
        self,
        site: str,
        frame: pd.DataFrame,
        kind: TableKind | None = None,
    ) -> None:
        if not site:
            msg = "site must be a non-empty string"
            raise SchemaError(msg)
        self.site = site
        self.kind = kind
        self.frame = _coerce_frame(frame, site)

        if kind is not None:
            missing = [f for f in SCHEMAS[kind].required if f not in self.frame.columns]
            if missing:
                msg = f"{site}: {kind} table is missing required fields {missing}"
                raise SchemaError(msg)

    def __len__(self) -> int:
        return len(self.frame)

    def __repr__(self) -> str:
        kind = f", kind={self.kind}" if self.kind else ""
        span = f"{self.dates[0]}..{self.dates[-1]}" if len(self) else "empty"
        return f"TimeSeriesTable(site={self.site!r}{kind}, {span}, fields={self.fields})"

    @property
    def fields(self) -> list[str]:
        """Field (column) names."""
        return list(self.frame.columns)

    @property
    def dates(self) -> list[date]:
        """Record dates in order."""
        return [ts.date() for ts in self.frame.index]

    @property
    def years(self) -> list[int]:
        """Distinct calendar years present, ascending."""
        return sorted({int(y) for y in self.frame.index.year})

    def records(self) -> Iterator[Record]:
        """Iterate over the table as Records."""
        for ts, row in self.frame.iterrows():
            values = {k: (None if math.isnan(v) else float(v)) for k, v in row.items()}
            yield Record(site=self.site, date=ts.date(), values=values)

    @classmethod
    def from_records(
        cls,
        site: str,
        records: Iterable[Record],
        kind: TableKind | None = None,
    ) -> TimeSeriesTable:
        """Build a table from Records; every record must belong to ``site``."""
        rows: dict[date, Mapping[str, float | None]] = {}
        for rec in records:
            if rec.site != site:
                msg = f"record for {rec.site!r} cannot go into a table for {site!r}"
                raise SchemaError(msg)
            if rec.date in rows:
                msg = f"{site}: duplicate date {rec.date.isoformat()}"
                raise SchemaError(msg)
            rows[rec.date] = rec.values

        frame = pd.DataFrame.from_dict(rows, orient="index", dtype=float)
        frame.index = pd.DatetimeIndex(frame.index, name=DATE_INDEX)
        return cls(site, frame, kind=kind)

    def select(self, fields: Sequence[str]) -> TimeSeriesTable:
        """New table restricted to ``fields`` (schema check is not re-applied)."""
        missing = [f for f in fields if f not in self.frame.columns]
        if missing:
            msg = f"{self.site}: unknown fields {missing}"
            raise SchemaError(msg)
        return TimeSeriesTable(self.site, self.frame[list(fields)].copy())

    def between_years(self, start_year: int, end_year: int) -> TimeSeriesTable:
        """New table keeping only records with start_year <= year <= end_year."""
        years = self.frame.index.year
        mask = (years >= start_year) & (years <= end_year)
        return TimeSeriesTable(self.site, self.frame.loc[mask].copy(), kind=self.kind)

    def without_leap_days(self) -> TimeSeriesTable:
        """New table with every 29 February removed."""
        idx = self.frame.index
        mask = ~((idx.month == 2) & (idx.day == 29))
        return TimeSeriesTable(self.site, self.frame.loc[mask].copy(), kind=self.kind)
