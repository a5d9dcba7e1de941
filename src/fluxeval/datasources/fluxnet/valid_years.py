"""Per-site valid-years table.

A small CSV with one row per site::

    Site,start_year,end_year
    ES-Amo,2008,2012

The file distributed with the flux data is UTF-16 encoded; UTF-8 copies
are accepted as well.
"""

from __future__ import annotations

import codecs
from typing import TYPE_CHECKING

import pandas as pd
from pydantic import ValidationError

from fluxeval.errors import SchemaError
from fluxeval.schemas import SiteValidYears

if TYPE_CHECKING:
    from pathlib import Path

VALID_YEARS_COLUMNS = ("Site", "start_year", "end_year")


def _detect_encoding(path: Path) -> str:
    with path.open("rb") as f:
        head = f.read(4)
    if head.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
        return "utf-16"
    return "utf-8-sig"


def read_valid_years(path: Path) -> dict[str, SiteValidYears]:
    """Read the valid-years CSV into a site -> SiteValidYears mapping.

    Raises:
        SchemaError: If columns are missing, a row is invalid, or a site
            appears twice.
    """
    frame = pd.read_csv(path, encoding=_detect_encoding(path))
    frame.columns = [str(c).strip() for c in frame.columns]

    missing = [c for c in VALID_YEARS_COLUMNS if c not in frame.columns]
    if missing:
        msg = f"{path.name}: missing columns {missing}"
        raise SchemaError(msg)

    result: dict[str, SiteValidYears] = {}
    for row in frame[list(VALID_YEARS_COLUMNS)].to_dict("records"):
        site = str(row["Site"]).strip()
        try:
            entry = SiteValidYears(site=site, start_year=row["start_year"], end_year=row["end_year"])
        except ValidationError as exc:
            msg = f"{path.name}: invalid row for {site}: {exc.errors()[0]['msg']}"
            raise SchemaError(msg) from exc
        if entry.site in result:
            msg = f"{path.name}: site {entry.site} listed more than once"
            raise SchemaError(msg)
        result[entry.site] = entry

    return result
