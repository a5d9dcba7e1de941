"""HTML tables for the evaluation report."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fluxeval.renderers import render_template

if TYPE_CHECKING:
    from fluxeval.analysis.budyko import BudykoPoint
    from fluxeval.analysis.evaluation import SiteEvaluation
    from fluxeval.analysis.fitting import FitResult
    from fluxeval.timeseries.models import AnnualSummary


def build_metrics_table_html(evaluations: dict[str, SiteEvaluation]) -> str:
    """Per-site daily and annual agreement metrics."""
    rows = [
        {
            "site": site,
            "n": int(ev.daily_metrics.get("n", 0)),
            "r2": ev.daily_metrics.get("r_squared"),
            "rmse": ev.daily_metrics.get("rmse"),
            "bias": ev.daily_metrics.get("bias"),
            "annual_r2": ev.annual_metrics.get("r_squared"),
            "years": len(ev.annual),
        }
        for site, ev in sorted(evaluations.items())
    ]
    return render_template("metrics_table.html.j2", rows=rows)


def build_summary_table_html(summaries: list[AnnualSummary], title: str = "Annual totals") -> str:
    """One row per (site, period), one column per aggregated field."""
    columns: list[str] = []
    for s in summaries:
        for name in s.values:
            if name not in columns:
                columns.append(name)
    rows = [
        {
            "site": s.site,
            "period": s.label,
            "valid_days": s.valid_days,
            "values": [s.values.get(c) for c in columns],
        }
        for s in sorted(summaries, key=lambda s: (s.site, s.year))
    ]
    return render_template("summary_table.html.j2", title=title, columns=columns, rows=rows)


def build_fit_table_html(fits: list[FitResult], points: list[BudykoPoint]) -> str:
    """Fitted Budyko curve parameters and the points they were fitted to."""
    fit_rows = [
        {
            "model": f.model,
            "params": ", ".join(f"{k} = {v:.3f}" for k, v in f.params.items()),
            "r2": f.r_squared,
            "rmse": f.rmse,
            "n": f.n_points,
            "iterations": f.iterations,
        }
        for f in fits
    ]
    point_rows = sorted(points, key=lambda p: p.aridity)
    return render_template("fit_table.html.j2", fits=fit_rows, points=point_rows)


def build_site_errors_html(errors: dict[str, str]) -> str:
    """List of sites that could not be processed, with the reason."""
    if not errors:
        return ""
    return render_template("site_errors.html.j2", errors=sorted(errors.items()))
