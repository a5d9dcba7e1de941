"""Tests for FLUXNET half-hourly reading and validation table building."""

from __future__ import annotations

import math
from datetime import date
from typing import TYPE_CHECKING

import numpy as np
import pandas as pd
import pytest

from fluxeval.datasources.fluxnet import (
    build_validation_table,
    downsample_daily,
    find_site_file,
    read_halfhourly,
    read_valid_years,
)
from fluxeval.errors import InsufficientData, SchemaError
from fluxeval.reference.units import GPP_UMOL_TO_G_PER_DAY
from fluxeval.schemas import SiteValidYears, TableKind

if TYPE_CHECKING:
    from pathlib import Path


def write_halfhourly(path: Path, start: str, days: int, gpp: float = 10.0) -> pd.DataFrame:
    """Write a FLUXNET-style half-hourly CSV with constant GPP."""
    times = pd.date_range(start, periods=days * 48, freq="30min")
    frame = pd.DataFrame(
        {
            "TIMESTAMP_START": times.strftime("%Y%m%d%H%M").astype(int),
            "TIMESTAMP_END": (times + pd.Timedelta("30min")).strftime("%Y%m%d%H%M").astype(int),
            "GPP_DT_VUT_REF": gpp,
            "GPP_DT_VUT_SE": 1.0,
        }
    )
    path.parent.mkdir(parents=True, exist_ok=True)
    frame.to_csv(path, index=False)
    return frame


class TestFindSiteFile:
    """Test locating a site's file by FLUXNET naming."""

    def test_finds_halfhourly_file(self, tmp_path: Path) -> None:
        hh = tmp_path / "FLX_ES-Amo_FLUXDATAKIT_FULLSET_HH_2007_2012_2-3.csv"
        dd = tmp_path / "FLX_ES-Amo_FLUXDATAKIT_FULLSET_DD_2007_2012_2-3.csv"
        other = tmp_path / "FLX_FR-Pue_FLUXDATAKIT_FULLSET_HH_2000_2014_2-3.csv"
        for p in (hh, dd, other):
            p.write_text("TIMESTAMP_START\n")
        assert find_site_file(tmp_path, "ES-Amo") == hh
        assert find_site_file(tmp_path, "ES-Amo", "DD") == dd

    def test_latest_release_wins(self, tmp_path: Path) -> None:
        old = tmp_path / "FLX_ES-Amo_FLUXNET2015_FULLSET_HH_2007_2012_1-3.csv"
        new = tmp_path / "FLX_ES-Amo_FLUXNET2015_FULLSET_HH_2007_2012_1-4.csv"
        old.write_text("")
        new.write_text("")
        assert find_site_file(tmp_path, "ES-Amo") == new

    def test_site_must_match_whole_token(self, tmp_path: Path) -> None:
        (tmp_path / "FLX_ES-Amo2_FLUXNET2015_FULLSET_HH_2007_2012_1-4.csv").write_text("")
        with pytest.raises(FileNotFoundError):
            find_site_file(tmp_path, "ES-Amo")

    def test_unknown_resolution(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="resolution"):
            find_site_file(tmp_path, "ES-Amo", "QQ")


class TestReadHalfhourly:
    """Test reading and downsampling half-hourly data."""

    def test_parses_timestamps(self, tmp_path: Path) -> None:
        path = tmp_path / "hh.csv"
        write_halfhourly(path, "2015-01-01", days=1)
        frame = read_halfhourly(path)
        assert len(frame) == 48
        assert str(frame["time"].dt.tz) == "UTC"
        assert frame["time"].iloc[1] == pd.Timestamp("2015-01-01 00:30", tz="UTC")
        assert (frame["date"] == pd.Timestamp("2015-01-01")).all()

    def test_missing_value_marker(self, tmp_path: Path) -> None:
        path = tmp_path / "hh.csv"
        frame = write_halfhourly(path, "2015-01-01", days=1)
        frame.loc[3, "GPP_DT_VUT_REF"] = -9999
        frame.to_csv(path, index=False)
        assert math.isnan(read_halfhourly(path)["GPP_DT_VUT_REF"].iloc[3])

    def test_missing_timestamp_column(self, tmp_path: Path) -> None:
        path = tmp_path / "hh.csv"
        pd.DataFrame({"GPP_DT_VUT_REF": [1.0]}).to_csv(path, index=False)
        with pytest.raises(SchemaError, match="TIMESTAMP_START"):
            read_halfhourly(path)

    def test_downsample_daily_means(self, tmp_path: Path) -> None:
        path = tmp_path / "hh.csv"
        frame = write_halfhourly(path, "2015-01-01", days=2)
        frame.loc[:47, "GPP_DT_VUT_REF"] = np.arange(48.0)
        frame.to_csv(path, index=False)

        daily = downsample_daily(read_halfhourly(path))
        assert list(daily.columns) == ["GPP_DT_VUT_REF", "GPP_DT_VUT_SE"]
        assert daily.index.name == "date"
        assert daily["GPP_DT_VUT_REF"].tolist() == pytest.approx([23.5, 10.0])

    def test_incomplete_day(self, tmp_path: Path) -> None:
        path = tmp_path / "hh.csv"
        frame = write_halfhourly(path, "2015-01-01", days=2)
        frame.loc[10, "GPP_DT_VUT_REF"] = -9999
        frame.to_csv(path, index=False)
        halfhourly = read_halfhourly(path)

        strict = downsample_daily(halfhourly)
        assert math.isnan(strict["GPP_DT_VUT_REF"].iloc[0])
        assert strict["GPP_DT_VUT_SE"].iloc[0] == 1.0
        assert strict["GPP_DT_VUT_REF"].iloc[1] == 10.0

        lenient = downsample_daily(halfhourly, require_complete=False)
        assert lenient["GPP_DT_VUT_REF"].iloc[0] == 10.0


class TestReadValidYears:
    """Test the valid-years table."""

    def test_utf16(self, tmp_path: Path) -> None:
        path = tmp_path / "valid_years.csv"
        path.write_text("Site,start_year,end_year\nES-Amo,2015,2016\nFR-Pue,2000,2014\n", "utf-16")
        years = read_valid_years(path)
        assert years["ES-Amo"] == SiteValidYears(site="ES-Amo", start_year=2015, end_year=2016)
        assert years["FR-Pue"].contains(2014)
        assert not years["FR-Pue"].contains(2015)

    def test_utf8(self, tmp_path: Path) -> None:
        path = tmp_path / "valid_years.csv"
        path.write_text("Site,start_year,end_year\nES-Amo,2015,2016\n", "utf-8")
        assert list(read_valid_years(path)) == ["ES-Amo"]

    def test_missing_column(self, tmp_path: Path) -> None:
        path = tmp_path / "valid_years.csv"
        path.write_text("Site,start_year\nES-Amo,2015\n")
        with pytest.raises(SchemaError, match="end_year"):
            read_valid_years(path)

    def test_reversed_range(self, tmp_path: Path) -> None:
        path = tmp_path / "valid_years.csv"
        path.write_text("Site,start_year,end_year\nES-Amo,2016,2015\n")
        with pytest.raises(SchemaError, match="ES-Amo"):
            read_valid_years(path)

    def test_duplicate_site(self, tmp_path: Path) -> None:
        path = tmp_path / "valid_years.csv"
        path.write_text("Site,start_year,end_year\nES-Amo,2015,2016\nES-Amo,2010,2012\n")
        with pytest.raises(SchemaError, match="more than once"):
            read_valid_years(path)


class TestBuildValidationTable:
    """Test the daily GPP validation table."""

    def daily(self, start: str, days: int, gpp: float = 10.0) -> pd.DataFrame:
        index = pd.date_range(start, periods=days, freq="D", name="date")
        return pd.DataFrame(
            {"GPP_DT_VUT_REF": gpp, "GPP_DT_VUT_SE": 0.5, "TA_F": 12.0}, index=index
        )

    def test_renames_and_converts_units(self) -> None:
        table = build_validation_table(self.daily("2015-01-01", 3), "ES-Amo")
        assert table.kind == TableKind.OBSERVED
        assert table.fields == ["gpp", "gpp_unc"]
        assert table.frame["gpp"].iloc[0] == pytest.approx(10.0 * GPP_UMOL_TO_G_PER_DAY)
        assert table.frame["gpp"].iloc[0] == pytest.approx(10.368)
        assert table.frame["gpp_unc"].iloc[0] == pytest.approx(0.5 * GPP_UMOL_TO_G_PER_DAY)

    def test_uncertainty_optional(self) -> None:
        daily = self.daily("2015-01-01", 3).drop(columns=["GPP_DT_VUT_SE"])
        assert build_validation_table(daily, "ES-Amo").fields == ["gpp"]

    def test_keeps_valid_years_and_drops_leap_day(self) -> None:
        valid = SiteValidYears(site="ES-Amo", start_year=2016, end_year=2016)
        table = build_validation_table(self.daily("2015-12-30", 70), "ES-Amo", valid)
        assert table.years == [2016]
        assert date(2016, 2, 29) not in table.dates
        assert date(2016, 2, 28) in table.dates
        assert len(table) == 67

    def test_missing_gpp(self) -> None:
        daily = self.daily("2015-01-01", 3).drop(columns=["GPP_DT_VUT_REF"])
        with pytest.raises(SchemaError, match="GPP_DT_VUT_REF"):
            build_validation_table(daily, "ES-Amo")

    def test_nothing_in_valid_years(self) -> None:
        valid = SiteValidYears(site="ES-Amo", start_year=2010, end_year=2012)
        with pytest.raises(InsufficientData, match="2010-2012"):
            build_validation_table(self.daily("2015-01-01", 3), "ES-Amo", valid)
