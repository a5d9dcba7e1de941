"""Half-hourly FLUXNET CSV reading and daily downsampling."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pandas as pd

from fluxeval.errors import SchemaError
from fluxeval.reference.units import (
    MISSING_VALUE,
    TIMESTAMP_END,
    TIMESTAMP_FORMAT,
    TIMESTAMP_START,
)
from fluxeval.timeseries.models import DATE_INDEX

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


def read_halfhourly(path: Path) -> pd.DataFrame:
    """Read a FLUXNET half-hourly CSV.

    ``-9999`` becomes NaN. ``TIMESTAMP_START`` (``YYYYMMDDHHMM``, UTC) is
    parsed into a ``time`` column, and ``date`` holds its calendar date.

    Raises:
        SchemaError: If the file has no parseable ``TIMESTAMP_START`` column.
    """
    frame = pd.read_csv(path, na_values=[MISSING_VALUE, str(int(MISSING_VALUE))])
    if TIMESTAMP_START not in frame.columns:
        msg = f"{path.name}: missing {TIMESTAMP_START} column"
        raise SchemaError(msg)

    try:
        time = pd.to_datetime(
            frame[TIMESTAMP_START].astype("Int64").astype(str),
            format=TIMESTAMP_FORMAT,
            utc=True,
        )
    except (TypeError, ValueError) as exc:
        msg = f"{path.name}: cannot parse {TIMESTAMP_START} as {TIMESTAMP_FORMAT}"
        raise SchemaError(msg) from exc

    frame["time"] = time
    frame[DATE_INDEX] = time.dt.tz_localize(None).dt.normalize()
    logger.debug("Read %d half-hourly rows from %s", len(frame), path)
    return frame


def downsample_daily(frame: pd.DataFrame, require_complete: bool = True) -> pd.DataFrame:
    """Aggregate half-hourly rows to 24-hour means per date.

    Timestamp columns are dropped; every other numeric column is averaged.

    Args:
        frame: Output of ``read_halfhourly``.
        require_complete: If True, a day with any missing half-hour in a
            column yields NaN for that column rather than a mean of the
            remaining values.

    Returns:
        DataFrame indexed by ``date``.
    """
    drop = [c for c in (TIMESTAMP_START, TIMESTAMP_END, "time") if c in frame.columns]
    numeric = frame.drop(columns=drop).set_index(DATE_INDEX).select_dtypes("number")

    grouped = numeric.groupby(level=DATE_INDEX)
    daily = grouped.mean()
    if require_complete:
        complete = grouped.count().eq(grouped.size(), axis=0)
        daily = daily.where(complete)
    return daily
