"""Per-site daily CSV tables (forcing, observed, simulated).

Public API:
  - loader: load_site_table, load_site_collection, site_table_path,
            derive_precipitation
"""

from fluxeval.datasources.sites.loader import (
    derive_precipitation,
    load_site_collection,
    load_site_table,
    site_table_path,
)

__all__ = ["derive_precipitation", "load_site_collection", "load_site_table", "site_table_path"]
