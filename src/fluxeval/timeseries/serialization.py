"""JSON serialization helpers for tables and summaries.

Tables are stored column-wise, the same shape the store uses everywhere::

    {"site": "ES-Amo", "kind": "observed",
     "daily": {"date": ["2015-01-01", ...], "gpp": [1.2, null, ...]}}
"""

from __future__ import annotations

import math
from typing import Any

import pandas as pd

from fluxeval.schemas import TableKind
from fluxeval.timeseries.models import DATE_INDEX, AnnualSummary, TimeSeriesTable


def _clean(value: float) -> float | None:
    return None if value is None or math.isnan(value) else float(value)


def table_to_dict(table: TimeSeriesTable) -> dict[str, Any]:
    """Serialize a TimeSeriesTable to a JSON-compatible dict (NaN -> null)."""
    daily: dict[str, list[Any]] = {DATE_INDEX: [d.isoformat() for d in table.dates]}
    for name in table.fields:
        daily[name] = [_clean(v) for v in table.frame[name].tolist()]
    return {
        "site": table.site,
        "kind": str(table.kind) if table.kind else None,
        "daily": daily,
    }


def table_from_dict(data: dict[str, Any]) -> TimeSeriesTable:
    """Rebuild a TimeSeriesTable written by ``table_to_dict``."""
    daily = dict(data.get("daily", {}))
    dates = daily.pop(DATE_INDEX, [])
    index = pd.DatetimeIndex(pd.to_datetime(dates), name=DATE_INDEX)
    frame = pd.DataFrame(daily, index=index, dtype=float)
    kind = data.get("kind")
    return TimeSeriesTable(data["site"], frame, kind=TableKind(kind) if kind else None)


def summaries_to_dict(summaries: list[AnnualSummary]) -> list[dict[str, Any]]:
    """Serialize annual summaries to a JSON-compatible list, ordered by site and year."""
    ordered = sorted(summaries, key=lambda s: (s.site, s.year))
    return [
        {
            "site": s.site,
            "year": s.year,
            "end_year": s.end_year,
            "valid_days": s.valid_days,
            "values": {k: _clean(v) for k, v in s.values.items()},
        }
        for s in ordered
    ]


def summaries_from_dict(rows: list[dict[str, Any]]) -> list[AnnualSummary]:
    """Rebuild summaries written by ``summaries_to_dict`` (null -> NaN)."""
    return [
        AnnualSummary(
            site=row["site"],
            year=int(row["year"]),
            end_year=row.get("end_year"),
            valid_days=int(row.get("valid_days", 0)),
            values={k: (math.nan if v is None else float(v)) for k, v in row["values"].items()},
        )
        for row in rows
    ]
