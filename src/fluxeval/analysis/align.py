"""Pair simulated and observed records by (site, date)."""

from __future__ import annotations

from fluxeval.errors import FluxEvalError, KeyMismatch
from fluxeval.schemas import TableKind
from fluxeval.timeseries.collection import SiteCollection
from fluxeval.timeseries.models import TimeSeriesTable

DEFAULT_LABELS = ("sim", "obs")


def align(
    simulated: TimeSeriesTable,
    observed: TimeSeriesTable,
    labels: tuple[str, str] = DEFAULT_LABELS,
) -> TimeSeriesTable:
    """Inner-join two tables of the same site on date.

    Every field is renamed ``{field}_{label}`` so both sources keep their own
    column, e.g. ``gpp_sim`` and ``gpp_obs``. Missing values stay missing.

    Args:
        simulated: Model output for the site.
        observed: Observations for the same site.
        labels: Suffixes for the simulated and observed columns.

    Returns:
        Table holding only the dates present in both inputs.

    Raises:
        KeyMismatch: If the sites differ or the tables share no date.
        ValueError: If the two labels are equal.
    """
    if simulated.site != observed.site:
        msg = f"cannot align {simulated.site!r} with {observed.site!r}"
        raise KeyMismatch(msg)
    sim_label, obs_label = labels
    if sim_label == obs_label:
        msg = f"labels must differ, got {labels}"
        raise ValueError(msg)

    sim = simulated.frame.add_suffix(f"_{sim_label}")
    obs = observed.frame.add_suffix(f"_{obs_label}")
    joined = sim.join(obs, how="inner")
    if joined.empty:
        msg = f"{simulated.site}: simulated and observed tables share no dates"
        raise KeyMismatch(msg)

    return TimeSeriesTable(simulated.site, joined)


def align_collection(
    collection: SiteCollection,
    simulated_kind: TableKind = TableKind.SIMULATED,
    observed_kind: TableKind = TableKind.OBSERVED,
    labels: tuple[str, str] = DEFAULT_LABELS,
) -> tuple[dict[str, TimeSeriesTable], dict[str, str]]:
    """Align every site in ``collection``.

    Returns:
        Joined tables keyed by site, and error messages keyed by site for
        sites that lack a table or fail to join.
    """
    joined: dict[str, TimeSeriesTable] = {}
    errors: dict[str, str] = {}
    for site in collection:
        try:
            joined[site] = align(
                collection.require(site, simulated_kind),
                collection.require(site, observed_kind),
                labels,
            )
        except FluxEvalError as exc:
            errors[site] = str(exc)
    return joined, errors
