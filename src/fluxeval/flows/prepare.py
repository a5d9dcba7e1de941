"""
Prefect flow for building daily validation tables from FLUXNET data.

Reads half-hourly FULLSET files from ``data/raw/fluxnet/``, averages them to
daily values, keeps each site's valid years and stores one validation table
per site under ``data/validation/``.

Run locally:
    python -m fluxeval.flows.prepare
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import TYPE_CHECKING, Any

from prefect import flow, task

from fluxeval.config import get_settings
from fluxeval.datasources.fluxnet import (
    build_validation_table,
    downsample_daily,
    find_site_file,
    read_halfhourly,
    read_valid_years,
)
from fluxeval.errors import FluxEvalError
from fluxeval.store import DataStore, Tier
from fluxeval.timeseries.serialization import table_to_dict

if TYPE_CHECKING:
    from fluxeval.schemas import SiteValidYears
    from fluxeval.timeseries.models import TimeSeriesTable

# Data store with tiered directories
store = DataStore(get_settings().data_dir)

# Relative paths within the store
FLUXNET_DIR = Path(Tier.RAW, "fluxnet")
VALID_YEARS_PATH = Path(Tier.RAW, "valid_years.csv")


def validation_path(site: str) -> Path:
    """Store path of a site's validation table."""
    return Path(Tier.VALIDATION, f"{site}.json")


@task(name="load-valid-years")
def load_valid_years() -> dict[str, SiteValidYears]:
    """Load the per-site valid year ranges, or nothing if the table is absent."""
    path = store.file_path(VALID_YEARS_PATH)
    if path is None:
        return {}
    return read_valid_years(path)


@task(name="build-validation")
def build_validation(site: str, valid_years: SiteValidYears | None = None) -> TimeSeriesTable:
    """Half-hourly FLUXNET file -> daily validation table for one site."""
    source = find_site_file(store.base / FLUXNET_DIR, site)
    halfhourly = read_halfhourly(source)
    daily = downsample_daily(halfhourly)
    return build_validation_table(daily, site, valid_years)


@task(name="save-validation")
def save_validation(site: str, table_data: dict[str, Any], ttl_days: int) -> Path:
    """Save a serialized validation table via store."""
    return store.write(
        validation_path(site),
        table_data,
        source="fluxnet-hh",
        valid_until=datetime.now(UTC) + timedelta(days=ttl_days),
        site=site,
    )


@flow(name="prepare-validation", log_prints=True)
def prepare_validation(sites: list[str] | None = None, force: bool = False) -> dict[str, Any]:
    """
    Build validation tables for all sites.

    Sites whose stored table has not expired are skipped unless ``force``.
    A site that fails is reported and the others still run.
    """
    settings = get_settings()
    sites = list(sites) if sites is not None else list(settings.sites)

    print("Loading valid years...")
    valid_years = load_valid_years()
    if not valid_years:
        print("Warning: No valid-years table found. Keeping every year.")

    built: list[str] = []
    skipped: list[str] = []
    errors: dict[str, str] = {}

    for site in sites:
        try:
            if not force and store.is_fresh(validation_path(site)):
                print(f"{site}: validation table is fresh, skipping")
                skipped.append(site)
                continue

            print(f"{site}: building validation table...")
            table = build_validation(site, valid_years.get(site))
        except (FluxEvalError, OSError, ValueError) as exc:
            print(f"{site}: failed: {exc}")
            errors[site] = str(exc)
            continue

        path = save_validation(site, table_to_dict(table), settings.validation_ttl_days)
        print(f"{site}: {len(table)} days, {table.years[0]}-{table.years[-1]} -> {path}")
        built.append(site)

    return {"built": built, "skipped": skipped, "errors": errors}


if __name__ == "__main__":
    result = prepare_validation()
    print(f"Flow complete: {result}")
