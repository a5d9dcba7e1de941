"""FLUXNET half-hourly data -> daily GPP validation tables.

Public API:
  - client: find_site_file
  - halfhourly: read_halfhourly, downsample_daily
  - valid_years: read_valid_years
  - validation: build_validation_table
"""

from fluxeval.datasources.fluxnet.client import RESOLUTIONS, find_site_file
from fluxeval.datasources.fluxnet.halfhourly import downsample_daily, read_halfhourly
from fluxeval.datasources.fluxnet.valid_years import read_valid_years
from fluxeval.datasources.fluxnet.validation import VALIDATION_FIELDS, build_validation_table

__all__ = [
    "RESOLUTIONS",
    "VALIDATION_FIELDS",
    "build_validation_table",
    "downsample_daily",
    "find_site_file",
    "read_halfhourly",
    "read_valid_years",
]
