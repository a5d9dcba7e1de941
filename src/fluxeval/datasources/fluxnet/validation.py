"""Build daily GPP validation tables from downsampled FLUXNET data.

Steps, per site:

    1. keep years within the site's valid range
    2. drop 29 February (the model runs on a 365-day calendar)
    3. GPP_DT_VUT_REF -> gpp, GPP_DT_VUT_SE -> gpp_unc
    4. umol m-2 s-1 -> g C m-2 d-1
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fluxeval.errors import InsufficientData, SchemaError
from fluxeval.reference.units import GPP_COLUMN, GPP_UMOL_TO_G_PER_DAY, GPP_UNC_COLUMN
from fluxeval.schemas import TableKind
from fluxeval.timeseries.models import TimeSeriesTable

if TYPE_CHECKING:
    import pandas as pd

    from fluxeval.schemas import SiteValidYears

VALIDATION_FIELDS = {GPP_COLUMN: "gpp", GPP_UNC_COLUMN: "gpp_unc"}


def build_validation_table(
    daily: pd.DataFrame,
    site: str,
    valid_years: SiteValidYears | None = None,
) -> TimeSeriesTable:
    """Turn a daily FLUXNET frame into an observed-GPP TimeSeriesTable.

    Args:
        daily: Daily means indexed by date (see ``downsample_daily``).
        site: Site ID.
        valid_years: Year range to keep; None keeps every year.

    Returns:
        TimeSeriesTable of kind ``observed`` with ``gpp`` and, when the source
        has it, ``gpp_unc``, both in g C m-2 d-1.

    Raises:
        SchemaError: If the GPP column is absent.
        InsufficientData: If no day is left after filtering.
    """
    if GPP_COLUMN not in daily.columns:
        msg = f"{site}: {GPP_COLUMN} not found in daily data"
        raise SchemaError(msg)

    columns = [c for c in VALIDATION_FIELDS if c in daily.columns]
    frame = daily[columns].rename(columns=VALIDATION_FIELDS) * GPP_UMOL_TO_G_PER_DAY
    table = TimeSeriesTable(site, frame, kind=TableKind.OBSERVED)

    if valid_years is not None:
        table = table.between_years(valid_years.start_year, valid_years.end_year)
    table = table.without_leap_days()

    if len(table) == 0:
        span = f"{valid_years.start_year}-{valid_years.end_year}" if valid_years else "any year"
        msg = f"{site}: no daily records within {span}"
        raise InsufficientData(msg)
    return table
