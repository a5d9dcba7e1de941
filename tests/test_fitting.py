"""Tests for Budyko curve families and nonlinear fitting."""

from __future__ import annotations

import math

import numpy as np
import pytest

from fluxeval.analysis import ALPHA_WHC, FU, fit, get_curve, predict
from fluxeval.analysis.curves import alpha_whc_curve, fu_curve
from fluxeval.errors import FitDidNotConverge, InsufficientData


class TestCurves:
    """Test curve evaluation."""

    def test_fu_passes_through_origin(self) -> None:
        assert fu_curve([0.0], 2.6)[0] == pytest.approx(0.0)

    def test_fu_approaches_water_limit(self) -> None:
        assert fu_curve([100.0], 2.6)[0] == pytest.approx(1.0, abs=1e-3)

    def test_fu_bounded_by_budyko_limits(self) -> None:
        x = np.linspace(0.05, 5.0, 50)
        y = fu_curve(x, 2.6)
        assert np.all(y <= np.minimum(x, 1.0) + 1e-12)
        assert np.all(y >= 0.0)

    def test_fu_large_w_is_finite(self) -> None:
        y = fu_curve([0.5, 5.0], 100.0)
        assert np.all(np.isfinite(y))
        assert y == pytest.approx(np.array([0.5, 1.0]), abs=1e-6)

    def test_alpha_whc_branches_meet(self) -> None:
        below = alpha_whc_curve([1.0], 0.8, 0.5)[0]
        above = alpha_whc_curve([1.0 + 1e-9], 0.8, 0.5)[0]
        assert below == pytest.approx(0.8)
        assert above == pytest.approx(below, abs=1e-6)

    def test_alpha_whc_energy_limited_branch(self) -> None:
        assert alpha_whc_curve([0.5], 0.8, 0.5)[0] == pytest.approx(0.4)

    def test_alpha_whc_plateau(self) -> None:
        # y -> alpha * (1 + whc) as x grows
        assert alpha_whc_curve([100.0], 0.8, 0.5)[0] == pytest.approx(1.2)

    def test_predict_with_mapping(self) -> None:
        x = np.array([0.5, 2.0])
        assert predict("alpha_whc", x, {"alpha": 0.8, "whc": 0.5}) == pytest.approx(
            alpha_whc_curve(x, 0.8, 0.5)
        )

    def test_get_curve(self) -> None:
        assert get_curve("fu") is FU
        assert get_curve(ALPHA_WHC) is ALPHA_WHC
        with pytest.raises(ValueError, match="unknown curve"):
            get_curve("zhang")


class TestFit:
    """Test least-squares fitting."""

    def test_recovers_fu_parameter(self) -> None:
        x = np.linspace(0.3, 3.0, 15)
        points = list(zip(x, fu_curve(x, 2.6), strict=True))
        result = fit(points, "fu", [1.5])
        assert result.model == "fu"
        assert result.params["w"] == pytest.approx(2.6, abs=1e-4)
        assert result.r_squared == pytest.approx(1.0)
        assert result.rmse == pytest.approx(0.0, abs=1e-6)
        assert result.n_points == 15
        assert result.converged
        assert "termination condition" in result.message

    def test_recovers_alpha_whc_parameters(self) -> None:
        x = np.linspace(0.2, 4.0, 20)
        points = list(zip(x, alpha_whc_curve(x, 0.8, 0.5), strict=True))
        result = fit(points, ALPHA_WHC, {"alpha": 1.0, "whc": 1.0})
        assert result.params["alpha"] == pytest.approx(0.8, abs=1e-4)
        assert result.params["whc"] == pytest.approx(0.5, abs=1e-4)
        assert result.values == pytest.approx((0.8, 0.5), abs=1e-4)

    def test_fu_on_one_to_one_line(self) -> None:
        """Points on the energy limit are matched by a steep Fu curve."""
        x = np.linspace(0.1, 0.8, 8)
        points = [(xi, xi) for xi in x]
        result = fit(points, "fu", [2.6], tolerance=1e-8)
        predicted = predict("fu", x, dict(result.params))
        assert predicted == pytest.approx(x, abs=1e-3)
        assert result.r_squared > 0.999

    def test_incomplete_points_dropped(self) -> None:
        x = np.linspace(0.3, 3.0, 6)
        points = list(zip(x, fu_curve(x, 2.6), strict=True)) + [(math.nan, 0.5), (1.0, None)]
        result = fit(points, "fu", [2.0])
        assert result.n_points == 6

    def test_too_few_points(self) -> None:
        with pytest.raises(InsufficientData):
            fit([(1.0, 0.6)], "fu", [2.6])
        with pytest.raises(InsufficientData):
            fit([(1.0, 0.6), (2.0, 0.8)], "alpha_whc", [1.0, 0.5])

    def test_budget_exhausted(self) -> None:
        x = np.linspace(0.2, 4.0, 20)
        points = list(zip(x, alpha_whc_curve(x, 0.8, 0.5), strict=True))
        with pytest.raises(FitDidNotConverge) as excinfo:
            fit(points, "alpha_whc", [1.8, 50.0], max_iterations=1)
        assert excinfo.value.model == "alpha_whc"
        assert excinfo.value.iterations == 1

    def test_guess_outside_bounds(self) -> None:
        points = [(0.5, 0.4), (1.0, 0.6), (2.0, 0.85)]
        with pytest.raises(ValueError, match="outside bounds"):
            fit(points, "fu", [0.5])

    def test_guess_wrong_length(self) -> None:
        points = [(0.5, 0.4), (1.0, 0.6), (2.0, 0.85)]
        with pytest.raises(ValueError, match="needs 1 values"):
            fit(points, "fu", [2.0, 1.0])

    def test_guess_mapping_missing_name(self) -> None:
        points = [(0.5, 0.4), (1.0, 0.6), (2.0, 0.85)]
        with pytest.raises(ValueError, match="whc"):
            fit(points, "alpha_whc", {"alpha": 1.0})

    def test_custom_bounds(self) -> None:
        x = np.linspace(0.3, 3.0, 10)
        points = list(zip(x, fu_curve(x, 2.6), strict=True))
        result = fit(points, "fu", [1.5], bounds=([1.0], [2.0]), tolerance=1e-8)
        assert result.params["w"] == pytest.approx(2.0, abs=1e-3)
