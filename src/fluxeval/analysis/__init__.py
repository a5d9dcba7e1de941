"""Cross-table joins, aggregation, curve fitting and metrics.

Each module takes TimeSeriesTables / SiteCollections (or plain arrays) and
returns dataclasses that renderers and flows can consume directly. This is
the domain logic layer.

Dependency rule: analysis/ imports from timeseries/ and schemas only.
It never reads files and never produces HTML.

Modules:
  - align: simulated + observed -> joined table per site
  - aggregate: daily table -> AnnualSummary per year or year range
  - curves: Budyko curve families (fu, alpha_whc)
  - fitting: nonlinear least-squares fit -> FitResult
  - metrics: pairwise-complete R², RMSE, bias
  - budyko: annual AET/PET/P -> Budyko points per site
  - evaluation: per-site align + metrics + annual aggregation

Adding an analysis module
-------------------------
1. Create ``analysis/{name}.py`` with a pure function::

       from fluxeval.timeseries import SiteCollection, TimeSeriesTable

       def compare_something(collection: SiteCollection) -> dict[str, SomeResult]:
           ...

2. Rules:
   - No I/O, no Prefect decorators.
   - Raise ``FluxEvalError`` subclasses; let the caller decide per site.
   - Return dataclasses or dicts that renderers can consume.

3. Wire into the pipeline (see ``flows/evaluate.py``).

4. Re-export in ``__init__.py`` and add tests in ``tests/test_{name}.py``.
"""

from fluxeval.analysis.aggregate import QuantileMean, YearRange, aggregate, summaries_to_frame
from fluxeval.analysis.align import align, align_collection
from fluxeval.analysis.budyko import BudykoPoint, annual_water_balance, budyko_points
from fluxeval.analysis.curves import ALPHA_WHC, CURVES, FU, CurveModel, get_curve, predict
from fluxeval.analysis.evaluation import (
    EvaluationOptions,
    SiteEvaluation,
    evaluate_collection,
    evaluate_site,
)
from fluxeval.analysis.fitting import FitResult, fit
from fluxeval.analysis.metrics import bias, calculate_all_metrics, r_squared, rmse

__all__ = [
    "ALPHA_WHC",
    "CURVES",
    "FU",
    "BudykoPoint",
    "CurveModel",
    "EvaluationOptions",
    "FitResult",
    "QuantileMean",
    "SiteEvaluation",
    "YearRange",
    "aggregate",
    "align",
    "align_collection",
    "annual_water_balance",
    "bias",
    "budyko_points",
    "calculate_all_metrics",
    "evaluate_collection",
    "evaluate_site",
    "fit",
    "get_curve",
    "predict",
    "r_squared",
    "rmse",
    "summaries_to_frame",
]
