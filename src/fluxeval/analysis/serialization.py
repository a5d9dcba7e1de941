"""JSON serialization helpers for analysis results."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from fluxeval.analysis.budyko import BudykoPoint
    from fluxeval.analysis.evaluation import SiteEvaluation
    from fluxeval.analysis.fitting import FitResult


def _num(value: float, ndigits: int = 4) -> float | None:
    return None if math.isnan(value) else round(value, ndigits)


def fit_result_to_dict(result: FitResult) -> dict[str, Any]:
    """Serialize a FitResult to a JSON-compatible dict."""
    return {
        "model": result.model,
        "params": {k: round(v, 6) for k, v in result.params.items()},
        "r_squared": _num(result.r_squared),
        "rmse": _num(result.rmse),
        "sse": _num(result.sse, 6),
        "n_points": result.n_points,
        "iterations": result.iterations,
        "converged": result.converged,
        "message": result.message,
    }


def points_to_dict(points: list[BudykoPoint]) -> list[dict[str, Any]]:
    """Serialize Budyko points, ordered by aridity."""
    return [
        {
            "site": p.site,
            "aridity": round(p.aridity, 4),
            "evaporative_fraction": round(p.evaporative_fraction, 4),
            "years": p.years,
        }
        for p in sorted(points, key=lambda p: p.aridity)
    ]


def evaluation_to_dict(evaluation: SiteEvaluation) -> dict[str, Any]:
    """Serialize the metrics of a SiteEvaluation (the joined table is left out)."""
    return {
        "site": evaluation.site,
        "daily_metrics": {k: _num(v) for k, v in evaluation.daily_metrics.items()},
        "annual_metrics": {k: _num(v) for k, v in evaluation.annual_metrics.items()},
        "years": [s.year for s in evaluation.annual],
    }
