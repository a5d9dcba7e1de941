"""fluxeval - site-level evaluation of ecosystem model output against flux towers.

Architecture::

    datasources/   FLUXNET half-hourly files, valid-years table, per-site CSV tables
    store.py       Tiered cache with TTL (raw → validation → derived)
    timeseries/    TimeSeriesTable, SiteCollection and their JSON serialization
    analysis/      Align sim vs obs, annual aggregation, Budyko curve fitting, metrics
    renderers/     Pure data → HTML fragments and PNG plots
    flows/         Prefect orchestration (prepare builds validation data, evaluate
                   builds the report)

Data flow: datasources → store → timeseries → analysis → renderers → derived/report/

Extension points (see each package's docstring for step-by-step guides):
  - New input format:  datasources/__init__.py
  - New analysis:      analysis/__init__.py
  - New report module: renderers/__init__.py
"""

__version__ = "0.1.0"

from fluxeval.config import Settings
from fluxeval.errors import FitDidNotConverge, FluxEvalError, InsufficientData, KeyMismatch

__all__ = [
    "FitDidNotConverge",
    "FluxEvalError",
    "InsufficientData",
    "KeyMismatch",
    "Settings",
    "__version__",
]
