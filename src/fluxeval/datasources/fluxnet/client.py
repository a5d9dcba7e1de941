"""FLUXNET file naming conventions.

Files follow the FLUXNET / FluxDataKit pattern, e.g.
``FLX_ES-Amo_FLUXDATAKIT_FULLSET_HH_2007_2012_2-3.csv``: the site ID is the
second underscore-separated token and the temporal resolution (``HH``,
``DD``, ...) appears as its own token.
"""

from __future__ import annotations

from pathlib import Path

RESOLUTIONS = ("HH", "HR", "DD", "WW", "MM", "YY")


def find_site_file(directory: Path, site: str, resolution: str = "HH") -> Path:
    """Locate the CSV file for ``site`` at ``resolution`` in ``directory``.

    When several files match (e.g. two data releases), the lexically last
    one wins, which is the most recent release under FLUXNET naming.

    Raises:
        ValueError: If ``resolution`` is not a FLUXNET resolution tag.
        FileNotFoundError: If no file matches.
    """
    if resolution not in RESOLUTIONS:
        msg = f"Unknown resolution {resolution!r}; expected one of {RESOLUTIONS}"
        raise ValueError(msg)

    matches = sorted(
        p
        for p in directory.glob("*.csv")
        if site in p.stem.split("_") and resolution in p.stem.split("_")
    )
    if not matches:
        msg = f"No {resolution} file for {site} in {directory}"
        raise FileNotFoundError(msg)
    return matches[-1]
