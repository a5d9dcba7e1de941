"""Per-site model evaluation: align, score, aggregate.

One site failing (missing table, no overlap, too few valid days) is
recorded and the remaining sites still run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from fluxeval.analysis.aggregate import Reducer, aggregate
from fluxeval.analysis.align import DEFAULT_LABELS, align
from fluxeval.analysis.metrics import calculate_all_metrics
from fluxeval.errors import FluxEvalError, SchemaError
from fluxeval.schemas import TableKind
from fluxeval.timeseries.collection import SiteCollection
from fluxeval.timeseries.models import AnnualSummary, TimeSeriesTable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvaluationOptions:
    """Knobs for a site evaluation."""

    field: str = "gpp"
    reducer: Reducer = "sum"
    min_valid_days: int = 0
    labels: tuple[str, str] = DEFAULT_LABELS

    @property
    def simulated_column(self) -> str:
        return f"{self.field}_{self.labels[0]}"

    @property
    def observed_column(self) -> str:
        return f"{self.field}_{self.labels[1]}"


@dataclass
class SiteEvaluation:
    """Result of evaluating one site."""

    site: str
    joined: TimeSeriesTable
    daily_metrics: dict[str, float]
    annual: list[AnnualSummary] = field(default_factory=list)
    annual_metrics: dict[str, float] = field(default_factory=dict)


def evaluate_site(
    collection: SiteCollection,
    site: str,
    options: EvaluationOptions | None = None,
) -> SiteEvaluation:
    """Compare simulated and observed ``options.field`` for one site.

    Raises:
        FluxEvalError: Any failure along the way (see align/aggregate).
    """
    options = options or EvaluationOptions()
    joined = align(
        collection.require(site, TableKind.SIMULATED),
        collection.require(site, TableKind.OBSERVED),
        options.labels,
    )
    sim_col, obs_col = options.simulated_column, options.observed_column
    if sim_col not in joined.fields or obs_col not in joined.fields:
        msg = f"{site}: '{options.field}' is not present in both simulated and observed tables"
        raise SchemaError(msg)

    daily_metrics = calculate_all_metrics(joined.frame[obs_col], joined.frame[sim_col])

    # Annual totals cover only the days where both sides are present
    pairs = joined.frame[[sim_col, obs_col]]
    paired = TimeSeriesTable(site, pairs.where(pairs.notna().all(axis=1)))
    annual = aggregate(
        paired,
        options.reducer,
        min_valid_days=options.min_valid_days,
        columns=[sim_col, obs_col],
    )
    annual_metrics = calculate_all_metrics(
        [s.values[obs_col] for s in annual],
        [s.values[sim_col] for s in annual],
    )

    return SiteEvaluation(
        site=site,
        joined=joined.select([sim_col, obs_col]),
        daily_metrics=daily_metrics,
        annual=annual,
        annual_metrics=annual_metrics,
    )


def evaluate_collection(
    collection: SiteCollection,
    options: EvaluationOptions | None = None,
) -> tuple[dict[str, SiteEvaluation], dict[str, str]]:
    """Evaluate every site; failures are collected, not raised.

    Returns:
        Evaluations keyed by site, and error messages keyed by site.
    """
    results: dict[str, SiteEvaluation] = {}
    errors: dict[str, str] = {}
    for site in collection:
        try:
            results[site] = evaluate_site(collection, site, options)
        except FluxEvalError as exc:
            logger.warning("%s: evaluation failed: %s", site, exc)
            errors[site] = str(exc)
    return results, errors
