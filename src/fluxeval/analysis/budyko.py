"""Budyko-space points from annual water-balance summaries.

Joins model output (AET, PET) with forcing (precipitation) year by year,
then reduces each site to one point of multi-year means::

    x = mean(PET) / mean(P)      aridity index
    y = mean(AET) / mean(P)      evaporative fraction
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass

from fluxeval.analysis.aggregate import aggregate
from fluxeval.errors import SchemaError
from fluxeval.schemas import TableKind
from fluxeval.timeseries.collection import SiteCollection
from fluxeval.timeseries.models import AnnualSummary

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BudykoPoint:
    """One site's position in Budyko space."""

    site: str
    aridity: float
    evaporative_fraction: float
    years: int

    def as_pair(self) -> tuple[float, float]:
        return (self.aridity, self.evaporative_fraction)


def annual_water_balance(
    collection: SiteCollection,
    site: str,
    aet: str = "aet",
    pet: str = "pet",
    prec: str = "prec",
    min_valid_days: int = 0,
) -> list[AnnualSummary]:
    """Annual sums of simulated AET/PET and forcing precipitation for one site.

    Only years retained on both sides are returned.

    Raises:
        InsufficientData: If a table is missing or no year passes the filter.
        SchemaError: If a required field is absent.
    """
    simulated = collection.require(site, TableKind.SIMULATED)
    forcing = collection.require(site, TableKind.FORCING)

    sim_years = {
        s.year: s
        for s in aggregate(simulated, "sum", min_valid_days=min_valid_days, columns=[aet, pet])
    }
    prec_years = {
        s.year: s for s in aggregate(forcing, "sum", min_valid_days=min_valid_days, columns=[prec])
    }

    return [
        AnnualSummary(
            site=site,
            year=year,
            values={**sim_years[year].values, **prec_years[year].values},
            valid_days=min(sim_years[year].valid_days, prec_years[year].valid_days),
        )
        for year in sorted(sim_years.keys() & prec_years.keys())
    ]


def budyko_points(
    summaries: Iterable[AnnualSummary],
    aet: str = "aet",
    pet: str = "pet",
    prec: str = "prec",
    min_years: int = 0,
) -> list[BudykoPoint]:
    """Reduce annual summaries to one Budyko point per site.

    Years with a missing value in any of the three fields are ignored.
    Sites with fewer than ``min_years`` usable years, or with non-positive
    mean precipitation, are skipped.

    Raises:
        SchemaError: If a summary lacks one of the fields.
    """
    by_site: dict[str, list[tuple[float, float, float]]] = {}
    for s in summaries:
        missing = [f for f in (aet, pet, prec) if f not in s.values]
        if missing:
            msg = f"{s.site} {s.label}: summary lacks {missing}"
            raise SchemaError(msg)
        triple = (s.values[aet], s.values[pet], s.values[prec])
        if all(math.isfinite(v) for v in triple):
            by_site.setdefault(s.site, []).append(triple)

    points: list[BudykoPoint] = []
    for site in sorted(by_site):
        years = by_site[site]
        if len(years) < min_years:
            logger.info("%s: %d usable years < %d, skipped", site, len(years), min_years)
            continue
        n = len(years)
        mean_aet = sum(t[0] for t in years) / n
        mean_pet = sum(t[1] for t in years) / n
        mean_prec = sum(t[2] for t in years) / n
        if mean_prec <= 0:
            logger.warning("%s: mean precipitation %.3f <= 0, skipped", site, mean_prec)
            continue
        points.append(
            BudykoPoint(
                site=site,
                aridity=mean_pet / mean_prec,
                evaporative_fraction=mean_aet / mean_prec,
                years=n,
            )
        )
    return points
