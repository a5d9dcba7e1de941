"""Matplotlib figures rendered to PNG bytes.

Figures are built from ``matplotlib.figure.Figure`` without pyplot, so no
GUI backend or global figure state is involved.
"""

from __future__ import annotations

import base64
import io
from typing import TYPE_CHECKING

import numpy as np
from matplotlib.figure import Figure

from fluxeval.analysis.curves import predict

if TYPE_CHECKING:
    from fluxeval.analysis.budyko import BudykoPoint
    from fluxeval.analysis.fitting import FitResult
    from fluxeval.timeseries.models import TimeSeriesTable

_CURVE_STYLES = {"fu": ("tab:blue", "-"), "alpha_whc": ("tab:orange", "--")}


def _to_png(fig: Figure) -> bytes:
    buf = io.BytesIO()
    fig.savefig(buf, format="png", dpi=110, bbox_inches="tight")
    return buf.getvalue()


def png_data_uri(png: bytes) -> str:
    """Encode PNG bytes as a ``data:`` URI for inline <img> tags."""
    return "data:image/png;base64," + base64.b64encode(png).decode("ascii")


def plot_timeseries_png(
    joined: TimeSeriesTable,
    field: str = "gpp",
    labels: tuple[str, str] = ("sim", "obs"),
    units: str = "g C m$^{-2}$ d$^{-1}$",
) -> bytes:
    """Daily simulated vs observed series plus a 1:1 scatter for one site."""
    sim = joined.frame[f"{field}_{labels[0]}"]
    obs = joined.frame[f"{field}_{labels[1]}"]

    fig = Figure(figsize=(11, 3.6))
    ax_ts, ax_sc = fig.subplots(1, 2, gridspec_kw={"width_ratios": [3, 1]})

    ax_ts.plot(obs.index, obs.to_numpy(), color="black", lw=0.8, label="Observed")
    ax_ts.plot(sim.index, sim.to_numpy(), color="tab:red", lw=0.8, alpha=0.8, label="P-model")
    ax_ts.set_ylabel(f"{field.upper()} ({units})")
    ax_ts.set_title(joined.site)
    ax_ts.legend(loc="upper right", frameon=False)

    ax_sc.scatter(obs.to_numpy(), sim.to_numpy(), s=4, alpha=0.4, color="tab:red")
    finite = np.concatenate([obs.to_numpy(), sim.to_numpy()])
    finite = finite[np.isfinite(finite)]
    if finite.size:
        lo, hi = float(finite.min()), float(finite.max())
        ax_sc.plot([lo, hi], [lo, hi], color="grey", lw=0.8, ls=":")
    ax_sc.set_xlabel("Observed")
    ax_sc.set_ylabel("Simulated")

    return _to_png(fig)


def plot_budyko_png(points: list[BudykoPoint], fits: list[FitResult]) -> bytes:
    """Sites in Budyko space with the energy/water limits and fitted curves."""
    fig = Figure(figsize=(6, 5))
    ax = fig.subplots()

    x_max = max([p.aridity for p in points] + [2.0]) * 1.1
    xs = np.linspace(0.0, x_max, 300)
    ax.plot(xs, np.minimum(xs, 1.0), color="grey", lw=0.8, ls=":", label="Energy / water limit")

    for result in fits:
        color, style = _CURVE_STYLES.get(result.model, ("tab:green", "-."))
        params = ", ".join(f"{k}={v:.2f}" for k, v in result.params.items())
        ax.plot(
            xs,
            predict(result.model, xs, dict(result.params)),
            color=color,
            ls=style,
            label=f"{result.model} ({params}, R²={result.r_squared:.2f})",
        )

    ax.scatter(
        [p.aridity for p in points],
        [p.evaporative_fraction for p in points],
        color="black",
        zorder=3,
    )
    for p in points:
        ax.annotate(
            p.site,
            (p.aridity, p.evaporative_fraction),
            fontsize=8,
            xytext=(3, 3),
            textcoords="offset points",
        )

    ax.set_xlim(0, x_max)
    ax.set_ylim(0, 1.2)
    ax.set_xlabel("PET / P")
    ax.set_ylabel("AET / P")
    ax.legend(loc="lower right", fontsize=8, frameon=False)

    return _to_png(fig)
