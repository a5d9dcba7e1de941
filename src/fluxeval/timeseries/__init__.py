"""In-memory site time series.

Public API:
  - models: Record, TimeSeriesTable, AnnualSummary
  - collection: SiteCollection
  - serialization: table_to_dict, table_from_dict, summaries_to_dict,
                   summaries_from_dict
"""

from fluxeval.timeseries.collection import SiteCollection
from fluxeval.timeseries.models import DATE_INDEX, AnnualSummary, Record, TimeSeriesTable
from fluxeval.timeseries.serialization import (
    summaries_from_dict,
    summaries_to_dict,
    table_from_dict,
    table_to_dict,
)

__all__ = [
    "DATE_INDEX",
    "AnnualSummary",
    "Record",
    "SiteCollection",
    "TimeSeriesTable",
    "summaries_from_dict",
    "summaries_to_dict",
    "table_from_dict",
    "table_to_dict",
]
