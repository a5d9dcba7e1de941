"""
Prefect flow for evaluating model output against the validation tables.

Per site: align simulated and observed GPP, score the daily and annual
agreement, and place the site in Budyko space. Across sites: fit both
Budyko curve families. Everything ends up under ``data/derived/``,
including the HTML report.

Run locally:
    python -m fluxeval.flows.evaluate
"""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from prefect import flow, task

from fluxeval.analysis.budyko import annual_water_balance, budyko_points
from fluxeval.analysis.curves import CURVES
from fluxeval.analysis.evaluation import EvaluationOptions, evaluate_collection
from fluxeval.analysis.fitting import FitResult, fit
from fluxeval.analysis.serialization import (
    evaluation_to_dict,
    fit_result_to_dict,
    points_to_dict,
)
from fluxeval.config import get_settings
from fluxeval.datasources.sites import load_site_collection
from fluxeval.errors import FluxEvalError
from fluxeval.renderers import render_template
from fluxeval.renderers.plots import plot_budyko_png, plot_timeseries_png, png_data_uri
from fluxeval.renderers.tables import (
    build_fit_table_html,
    build_metrics_table_html,
    build_site_errors_html,
    build_summary_table_html,
)
from fluxeval.schemas import TableKind
from fluxeval.store import DataStore, Tier
from fluxeval.timeseries.collection import SiteCollection
from fluxeval.timeseries.serialization import summaries_to_dict, table_from_dict

if TYPE_CHECKING:
    from fluxeval.analysis.budyko import BudykoPoint
    from fluxeval.analysis.evaluation import SiteEvaluation
    from fluxeval.timeseries.models import AnnualSummary

# Data store with tiered directories
store = DataStore(get_settings().data_dir)

# Relative paths within the store
SUMMARIES_PATH = Path(Tier.DERIVED, "annual_summaries.json")
EVALUATION_PATH = Path(Tier.DERIVED, "evaluation.json")
FITS_PATH = Path(Tier.DERIVED, "fits.json")
PLOTS_DIR = Path(Tier.DERIVED, "plots")
REPORT_PATH = Path(Tier.DERIVED, "report", "index.html")


# =============================================================================
# Data loading tasks
# =============================================================================


@task(name="load-validation")
def load_validation(sites: list[str]) -> tuple[SiteCollection, dict[str, str]]:
    """Load stored validation tables as observed tables."""
    collection = SiteCollection()
    errors: dict[str, str] = {}
    for site in sites:
        key = f"{site}/{TableKind.OBSERVED}"
        try:
            data = store.read(Path(Tier.VALIDATION, f"{site}.json"))
            if data is None:
                errors[key] = "no validation table; run prepare first"
                continue
            collection.add(table_from_dict(data), TableKind.OBSERVED)
        except (FluxEvalError, KeyError, TypeError, ValueError) as exc:
            print(f"{site}: unreadable validation table: {exc}")
            errors[key] = f"unreadable validation table: {exc}"
    return collection, errors


@task(name="load-model-tables")
def load_model_tables(sites: list[str]) -> tuple[SiteCollection, dict[str, str]]:
    """Load model output and forcing CSVs from the raw tier."""
    return load_site_collection(store.raw, sites, kinds=(TableKind.SIMULATED, TableKind.FORCING))


# =============================================================================
# Analysis tasks
# =============================================================================


@task(name="fit-budyko-curves")
def fit_budyko_curves(
    pairs: list[tuple[float, float]],
    max_iterations: int,
    tolerance: float,
) -> tuple[list[FitResult], dict[str, str]]:
    """Fit every curve family from its default starting point."""
    fits: list[FitResult] = []
    errors: dict[str, str] = {}
    for name, curve in CURVES.items():
        try:
            fits.append(
                fit(
                    pairs,
                    curve,
                    curve.default_guess,
                    max_iterations=max_iterations,
                    tolerance=tolerance,
                )
            )
        except FluxEvalError as exc:
            errors[name] = str(exc)
    return fits, errors


def water_balance(
    collection: SiteCollection, min_valid_days: int
) -> tuple[list[AnnualSummary], dict[str, str]]:
    """Annual AET/PET/P for every site that has model output and forcing."""
    summaries: list[AnnualSummary] = []
    errors: dict[str, str] = {}
    for site in collection:
        try:
            summaries.extend(annual_water_balance(collection, site, min_valid_days=min_valid_days))
        except FluxEvalError as exc:
            errors[site] = str(exc)
    return summaries, errors


# =============================================================================
# Output tasks
# =============================================================================


@task(name="save-results")
def save_results(
    evaluations: dict[str, SiteEvaluation],
    balance: list[AnnualSummary],
    points: list[BudykoPoint],
    fits: list[FitResult],
    fit_errors: dict[str, str],
) -> list[Path]:
    """Write summaries, metrics and fits to the derived tier."""
    gpp = [s for ev in evaluations.values() for s in ev.annual]
    return [
        store.write(
            SUMMARIES_PATH,
            {"gpp": summaries_to_dict(gpp), "water_balance": summaries_to_dict(balance)},
            source="fluxeval",
        ),
        store.write(
            EVALUATION_PATH,
            {site: evaluation_to_dict(ev) for site, ev in sorted(evaluations.items())},
            source="fluxeval",
        ),
        store.write(
            FITS_PATH,
            {
                "points": points_to_dict(points),
                "fits": [fit_result_to_dict(f) for f in fits],
                "errors": fit_errors,
            },
            source="fluxeval",
        ),
    ]


@task(name="write-plots")
def write_plots(
    evaluations: dict[str, SiteEvaluation],
    options: EvaluationOptions,
    points: list[BudykoPoint],
    fits: list[FitResult],
) -> dict[str, bytes]:
    """Render and store every plot; returns the PNG bytes keyed by name."""
    plots: dict[str, bytes] = {}
    for site, ev in sorted(evaluations.items()):
        plots[site] = plot_timeseries_png(ev.joined, options.field, options.labels)
    if points:
        plots["budyko"] = plot_budyko_png(points, fits)

    for name, png in plots.items():
        store.write_bytes(PLOTS_DIR / f"{name}.png", png, source="fluxeval")
    return plots


def build_report(
    sites: list[str],
    evaluations: dict[str, SiteEvaluation],
    points: list[BudykoPoint],
    fits: list[FitResult],
    plots: dict[str, bytes],
    errors: dict[str, str],
) -> str:
    """Compose the HTML report from the renderers."""
    gpp = [s for ev in evaluations.values() for s in ev.annual]
    site_plots = [
        {"site": site, "src": png_data_uri(plots[site])}
        for site in sorted(evaluations)
        if site in plots
    ]
    return render_template(
        "report.html.j2",
        title="GPP evaluation",
        updated=datetime.now(UTC).strftime("%Y-%m-%d %H:%M UTC"),
        sites=sites,
        metrics_table=build_metrics_table_html(evaluations),
        annual_table=build_summary_table_html(gpp, title="Annual GPP (g C m⁻² yr⁻¹)"),
        site_plots=site_plots,
        budyko_plot=png_data_uri(plots["budyko"]) if "budyko" in plots else "",
        budyko_table=build_fit_table_html(fits, points) if points else "",
        site_errors=build_site_errors_html(errors),
    )


@task(name="write-report")
def write_report(html: str) -> Path:
    """Write the report HTML to the derived tier."""
    output_path = store.base / REPORT_PATH
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w") as f:
        f.write(html)
    return output_path


# =============================================================================
# Main flow
# =============================================================================


@flow(name="evaluate-sites", log_prints=True)
def evaluate_all(sites: list[str] | None = None) -> dict[str, Any]:
    """
    Evaluate every site and build the report.

    Sites that fail at any stage are listed in the report and in the
    returned ``errors``; the rest are still evaluated.
    """
    settings = get_settings()
    sites = list(sites) if sites is not None else list(settings.sites)

    print("Loading validation tables...")
    collection, errors = load_validation(sites)
    if len(collection) == 0:
        print("No validation tables found. Run prepare flow first.")
        return {"error": "no data", "errors": errors}

    print("Loading model output and forcing...")
    model_tables, model_errors = load_model_tables(sites)
    errors.update(model_errors)
    for kind in (TableKind.SIMULATED, TableKind.FORCING):
        for table in model_tables.tables(kind).values():
            collection.add(table, kind)

    print("Evaluating sites...")
    options = EvaluationOptions(min_valid_days=settings.min_valid_days)
    evaluations, eval_errors = evaluate_collection(collection, options)
    errors.update({f"{site}/gpp": msg for site, msg in eval_errors.items()})
    for site, ev in sorted(evaluations.items()):
        r2 = ev.daily_metrics["r_squared"]
        print(f"{site}: {int(ev.daily_metrics['n'])} days, R²={r2:.3f}, {len(ev.annual)} years")

    print("Building Budyko points...")
    balance, balance_errors = water_balance(collection, settings.min_valid_days)
    errors.update({f"{site}/budyko": msg for site, msg in balance_errors.items()})
    points = budyko_points(balance, min_years=settings.min_years)

    print(f"Fitting Budyko curves to {len(points)} sites...")
    fits, fit_errors = fit_budyko_curves(
        [p.as_pair() for p in points], settings.fit_max_iterations, settings.fit_tolerance
    )
    for name, msg in fit_errors.items():
        print(f"Warning: {name} fit skipped: {msg}")

    print("Saving results...")
    save_results(evaluations, balance, points, fits, fit_errors)

    print("Rendering plots...")
    plots = write_plots(evaluations, options, points, fits)

    print("Writing report...")
    html = build_report(sites, evaluations, points, fits, plots, errors)
    output_path = write_report(html)

    print(f"Report built: {output_path}")
    return {
        "sites": sorted(evaluations),
        "points": len(points),
        "fits": [f.model for f in fits],
        "errors": errors,
        "output": str(output_path),
    }


if __name__ == "__main__":
    result = evaluate_all()
    print(f"Flow complete: {result}")
