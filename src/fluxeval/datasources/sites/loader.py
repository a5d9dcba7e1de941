"""Per-site CSV tables -> SiteCollection.

Expected layout (one CSV per site and kind, daily rows, ``date`` column)::

    {directory}/forcing/ES-Amo.csv
    {directory}/simulated/ES-Amo.csv
    {directory}/observed/ES-Amo.csv

Model output exported from the process model usually carries a ``sitename``
column; identifier columns like that are dropped on read. Forcing tables
without a ``prec`` column get one from the rsofun ``rain`` and ``snow`` fluxes.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path

import pandas as pd

from fluxeval.errors import FluxEvalError, SchemaError
from fluxeval.reference.units import FORCING_PRECIP_COLUMNS, SECONDS_PER_DAY
from fluxeval.schemas import SiteValidYears, TableKind
from fluxeval.timeseries.collection import SiteCollection
from fluxeval.timeseries.models import DATE_INDEX, TimeSeriesTable

logger = logging.getLogger(__name__)

IDENTIFIER_COLUMNS = ("sitename", "site", "Site", "site_id")


def site_table_path(directory: Path, site: str, kind: TableKind) -> Path:
    """Conventional location of a site's table of ``kind``."""
    return directory / str(kind) / f"{site}.csv"


def derive_precipitation(frame: pd.DataFrame) -> pd.DataFrame:
    """Add daily ``prec`` (mm d-1) from rsofun ``rain`` + ``snow`` (mm s-1).

    Frames that already carry ``prec``, or carry neither flux, are returned
    unchanged. A missing flux on a day leaves that day's ``prec`` missing.
    """
    present = [c for c in FORCING_PRECIP_COLUMNS if c in frame.columns]
    if "prec" in frame.columns or not present:
        return frame
    flux = frame[present].sum(axis=1, min_count=len(present))
    return frame.assign(prec=flux * SECONDS_PER_DAY)


def load_site_table(path: Path, site: str, kind: TableKind) -> TimeSeriesTable:
    """Read one per-site CSV into a validated TimeSeriesTable.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        SchemaError: If the file has no ``date`` column or fails validation.
    """
    frame = pd.read_csv(path)
    if DATE_INDEX not in frame.columns:
        msg = f"{path.name}: missing '{DATE_INDEX}' column"
        raise SchemaError(msg)

    frame = frame.drop(columns=[c for c in IDENTIFIER_COLUMNS if c in frame.columns])
    frame[DATE_INDEX] = pd.to_datetime(frame[DATE_INDEX], errors="raise")
    if kind == TableKind.FORCING:
        frame = derive_precipitation(frame)
    return TimeSeriesTable(site, frame, kind=kind)


def load_site_collection(
    directory: Path,
    sites: Iterable[str],
    kinds: Iterable[TableKind] = tuple(TableKind),
    valid_years: Mapping[str, SiteValidYears] | None = None,
) -> tuple[SiteCollection, dict[str, str]]:
    """Load every (site, kind) table found under ``directory``.

    Only whitelisted ``sites`` are read. When ``valid_years`` has an entry for
    a site, its tables are clipped to that year range.

    Returns:
        The collection, plus a mapping of ``"{site}/{kind}"`` -> error message
        for tables that were missing or malformed. A bad table never stops
        the others from loading.
    """
    collection = SiteCollection()
    errors: dict[str, str] = {}
    kinds = list(kinds)

    for site in sites:
        for kind in kinds:
            path = site_table_path(directory, site, kind)
            key = f"{site}/{kind}"
            try:
                table = load_site_table(path, site, kind)
            except FileNotFoundError:
                errors[key] = f"file not found: {path}"
                continue
            except (FluxEvalError, ValueError) as exc:
                errors[key] = str(exc)
                logger.warning("Skipping %s: %s", key, exc)
                continue

            years = (valid_years or {}).get(site)
            if years is not None:
                table = table.between_years(years.start_year, years.end_year)
            collection.add(table)

    logger.info(
        "Loaded %d sites from %s (%d tables skipped)", len(collection), directory, len(errors)
    )
    return collection, errors
