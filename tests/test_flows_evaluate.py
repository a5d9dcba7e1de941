"""Tests for the evaluate-sites flow."""

from __future__ import annotations

import json
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from fluxeval.analysis.curves import fu_curve
from fluxeval.flows import evaluate
from fluxeval.schemas import TableKind
from fluxeval.store import DataStore
from fluxeval.timeseries import TimeSeriesTable, table_to_dict

# site -> aridity index (PET / P)
ARIDITY = {"ES-Amo": 3.0, "FR-Pue": 1.5, "US-Ton": 0.5}
PREC = 2.0


def seed_site(store: DataStore, site: str, aridity: float, with_model: bool = True) -> None:
    """Validation table plus model output and forcing CSVs for one year."""
    index = pd.date_range("2015-01-01", "2015-12-31", freq="D", name="date")
    gpp = 5.0 + 4.0 * np.sin(np.arange(len(index)) * 2 * np.pi / 365.0)
    observed = TimeSeriesTable(site, pd.DataFrame({"gpp": gpp}, index=index), TableKind.OBSERVED)
    store.write(Path("validation") / f"{site}.json", table_to_dict(observed), source="test")
    if not with_model:
        return

    simulated = pd.DataFrame(
        {
            "date": index.strftime("%Y-%m-%d"),
            "sitename": site,
            "gpp": gpp * 0.9,
            "aet": float(fu_curve([aridity], 2.6)[0]) * PREC,
            "pet": aridity * PREC,
        }
    )
    forcing = pd.DataFrame({"date": index.strftime("%Y-%m-%d"), "prec": PREC})
    for kind, frame in ((TableKind.SIMULATED, simulated), (TableKind.FORCING, forcing)):
        path = store.raw / str(kind) / f"{site}.csv"
        path.parent.mkdir(parents=True, exist_ok=True)
        frame.to_csv(path, index=False)


class TestLoadValidation:
    """Test loading validation tables from the store."""

    def test_missing_sites_reported(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        store = DataStore(tmp_path)
        monkeypatch.setattr(evaluate, "store", store)
        seed_site(store, "ES-Amo", 3.0, with_model=False)

        collection, errors = evaluate.load_validation(["ES-Amo", "FR-Pue"])
        assert collection.sites == ["ES-Amo"]
        assert len(collection.require("ES-Amo", TableKind.OBSERVED)) == 365
        assert list(errors) == ["FR-Pue/observed"]

    def test_malformed_tables_reported(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A bad stored table is recorded for its site; the rest still load."""
        store = DataStore(tmp_path)
        monkeypatch.setattr(evaluate, "store", store)
        seed_site(store, "ES-Amo", 3.0, with_model=False)
        store.write(
            Path("validation/FR-Pue.json"),
            {
                "site": "FR-Pue",
                "kind": "observed",
                "daily": {"date": ["2015-01-01", "2015-01-01"], "gpp": [1.0, 2.0]},
            },
            source="test",
        )
        store.write(Path("validation/US-Ton.json"), {"kind": "observed"}, source="test")
        corrupt = tmp_path / "validation" / "DE-Hai.json"
        corrupt.write_text("{not json")

        collection, errors = evaluate.load_validation(["ES-Amo", "FR-Pue", "US-Ton", "DE-Hai"])

        assert collection.sites == ["ES-Amo"]
        assert sorted(errors) == ["DE-Hai/observed", "FR-Pue/observed", "US-Ton/observed"]
        assert "duplicate" in errors["FR-Pue/observed"]


class TestFitBudykoCurves:
    """Test fitting every curve family."""

    def test_too_few_points_recorded(self) -> None:
        fits, errors = evaluate.fit_budyko_curves([(0.5, 0.4), (2.0, 0.85)], 2000, 1e-10)
        assert [f.model for f in fits] == ["fu"]
        assert list(errors) == ["alpha_whc"]


class TestEvaluateAllFlow:
    """Test the full evaluation flow."""

    def test_evaluate_all(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        store = DataStore(tmp_path)
        monkeypatch.setattr(evaluate, "store", store)
        for site, aridity in ARIDITY.items():
            seed_site(store, site, aridity)

        result = evaluate.evaluate_all(sites=list(ARIDITY))

        assert result["sites"] == ["ES-Amo", "FR-Pue", "US-Ton"]
        assert result["points"] == 3
        assert "fu" in result["fits"]
        assert result["errors"] == {}

        derived = tmp_path / "derived"
        summaries = json.loads((derived / "annual_summaries.json").read_text())["data"]
        assert len(summaries["gpp"]) == 3
        assert summaries["water_balance"][0]["values"]["prec"] == pytest.approx(730.0)

        fits = json.loads((derived / "fits.json").read_text())["data"]
        fu = next(f for f in fits["fits"] if f["model"] == "fu")
        assert fu["params"]["w"] == pytest.approx(2.6, abs=1e-3)
        assert [p["site"] for p in fits["points"]] == ["US-Ton", "FR-Pue", "ES-Amo"]

        metrics = json.loads((derived / "evaluation.json").read_text())["data"]
        assert metrics["ES-Amo"]["daily_metrics"]["r_squared"] == pytest.approx(1.0)

        for name in ("ES-Amo", "FR-Pue", "US-Ton", "budyko"):
            assert (derived / "plots" / f"{name}.png").exists()

        report = (derived / "report" / "index.html").read_text()
        assert result["output"] == str(derived / "report" / "index.html")
        assert "US-Ton" in report
        assert "data:image/png;base64," in report

    def test_site_without_model_output(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        store = DataStore(tmp_path)
        monkeypatch.setattr(evaluate, "store", store)
        seed_site(store, "ES-Amo", 3.0)
        seed_site(store, "FR-Pue", 1.5, with_model=False)

        result = evaluate.evaluate_all(sites=["ES-Amo", "FR-Pue"])

        assert result["sites"] == ["ES-Amo"]
        assert "FR-Pue/simulated" in result["errors"]
        assert "FR-Pue/gpp" in result["errors"]
        assert result["fits"] == []
        report = (tmp_path / "derived" / "report" / "index.html").read_text()
        assert "FR-Pue/gpp" in report

    def test_no_validation_data(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(evaluate, "store", DataStore(tmp_path))
        result = evaluate.evaluate_all(sites=["ES-Amo"])
        assert result["error"] == "no data"
        assert not (tmp_path / "derived").exists()
