"""Tests for loading per-site CSV tables."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pandas as pd
import pytest

from fluxeval.datasources.sites import (
    derive_precipitation,
    load_site_collection,
    load_site_table,
    site_table_path,
)
from fluxeval.errors import SchemaError
from fluxeval.schemas import SiteValidYears, TableKind

if TYPE_CHECKING:
    from pathlib import Path


def write_site_csv(directory: Path, site: str, kind: TableKind, **columns: object) -> Path:
    path = site_table_path(directory, site, kind)
    path.parent.mkdir(parents=True, exist_ok=True)
    frame = pd.DataFrame({"date": pd.date_range("2015-12-30", periods=4, freq="D")})
    for name, value in columns.items():
        frame[name] = value
    frame.to_csv(path, index=False)
    return path


class TestLoadSiteTable:
    """Test reading one CSV."""

    def test_path_convention(self, tmp_path: Path) -> None:
        path = site_table_path(tmp_path, "ES-Amo", TableKind.SIMULATED)
        assert path == tmp_path / "simulated" / "ES-Amo.csv"

    def test_identifier_columns_dropped(self, tmp_path: Path) -> None:
        path = write_site_csv(
            tmp_path, "ES-Amo", TableKind.SIMULATED, sitename="ES-Amo", gpp=3.0, aet=1.0
        )
        table = load_site_table(path, "ES-Amo", TableKind.SIMULATED)
        assert table.fields == ["gpp", "aet"]
        assert table.kind == TableKind.SIMULATED
        assert len(table) == 4

    def test_missing_date_column(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.csv"
        pd.DataFrame({"gpp": [1.0]}).to_csv(path, index=False)
        with pytest.raises(SchemaError, match="date"):
            load_site_table(path, "ES-Amo", TableKind.SIMULATED)

    def test_missing_required_field(self, tmp_path: Path) -> None:
        path = write_site_csv(tmp_path, "ES-Amo", TableKind.FORCING, temp=10.0)
        with pytest.raises(SchemaError, match="prec"):
            load_site_table(path, "ES-Amo", TableKind.FORCING)

    def test_forcing_precipitation_from_rain_and_snow(self, tmp_path: Path) -> None:
        """rsofun forcing (mm s-1 fluxes) loads with daily prec in mm d-1."""
        path = write_site_csv(tmp_path, "ES-Amo", TableKind.FORCING, rain=1e-5, snow=2e-5)
        table = load_site_table(path, "ES-Amo", TableKind.FORCING)
        assert table.frame["prec"].tolist() == pytest.approx([2.592] * 4)


class TestDerivePrecipitation:
    """Test deriving daily precipitation from rain and snow fluxes."""

    def test_existing_prec_kept(self) -> None:
        frame = pd.DataFrame({"prec": [1.0], "rain": [1.0]})
        assert derive_precipitation(frame)["prec"].tolist() == [1.0]

    def test_rain_only(self) -> None:
        frame = pd.DataFrame({"rain": [1e-5, 0.0]})
        assert derive_precipitation(frame)["prec"].tolist() == pytest.approx([0.864, 0.0])

    def test_missing_flux_leaves_day_missing(self) -> None:
        frame = pd.DataFrame({"rain": [1e-5, None], "snow": [0.0, 0.0]})
        prec = derive_precipitation(frame)["prec"]
        assert prec.iloc[0] == pytest.approx(0.864)
        assert pd.isna(prec.iloc[1])

    def test_no_fluxes(self) -> None:
        frame = pd.DataFrame({"temp": [10.0]})
        assert "prec" not in derive_precipitation(frame).columns


class TestLoadSiteCollection:
    """Test loading many sites at once."""

    def test_loads_available_tables(self, tmp_path: Path) -> None:
        write_site_csv(tmp_path, "ES-Amo", TableKind.SIMULATED, gpp=3.0)
        write_site_csv(tmp_path, "ES-Amo", TableKind.FORCING, prec=1.0)
        write_site_csv(tmp_path, "FR-Pue", TableKind.SIMULATED, gpp=2.0)

        collection, errors = load_site_collection(
            tmp_path, ["ES-Amo", "FR-Pue"], kinds=[TableKind.SIMULATED, TableKind.FORCING]
        )
        assert collection.sites == ["ES-Amo", "FR-Pue"]
        assert collection.kinds("ES-Amo") == [TableKind.FORCING, TableKind.SIMULATED]
        assert list(errors) == ["FR-Pue/forcing"]
        assert "not found" in errors["FR-Pue/forcing"]

    def test_only_whitelisted_sites(self, tmp_path: Path) -> None:
        write_site_csv(tmp_path, "ES-Amo", TableKind.SIMULATED, gpp=3.0)
        write_site_csv(tmp_path, "US-Ton", TableKind.SIMULATED, gpp=3.0)
        collection, _ = load_site_collection(tmp_path, ["ES-Amo"], kinds=[TableKind.SIMULATED])
        assert collection.sites == ["ES-Amo"]

    def test_malformed_table_recorded(self, tmp_path: Path) -> None:
        write_site_csv(tmp_path, "ES-Amo", TableKind.SIMULATED, aet=1.0)
        collection, errors = load_site_collection(
            tmp_path, ["ES-Amo"], kinds=[TableKind.SIMULATED]
        )
        assert len(collection) == 0
        assert "gpp" in errors["ES-Amo/simulated"]

    def test_clipped_to_valid_years(self, tmp_path: Path) -> None:
        write_site_csv(tmp_path, "ES-Amo", TableKind.SIMULATED, gpp=3.0)
        valid = {"ES-Amo": SiteValidYears(site="ES-Amo", start_year=2016, end_year=2016)}
        collection, _ = load_site_collection(
            tmp_path, ["ES-Amo"], kinds=[TableKind.SIMULATED], valid_years=valid
        )
        assert collection.require("ES-Amo", TableKind.SIMULATED).years == [2016]
