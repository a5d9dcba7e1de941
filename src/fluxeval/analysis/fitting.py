"""Nonlinear least-squares fitting of curve families to (x, y) points.

Thin wrapper around ``scipy.optimize.least_squares`` that drops incomplete
pairs, bounds the work by an evaluation budget, and refuses to return a
result when the solver stopped on that budget instead of a tolerance.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

import numpy as np
import scipy.optimize

from fluxeval.analysis.curves import CurveModel, get_curve
from fluxeval.analysis.metrics import r_squared, rmse
from fluxeval.errors import FitDidNotConverge, InsufficientData

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 2000
DEFAULT_TOLERANCE = 1e-10


@dataclass(frozen=True)
class FitResult:
    """Outcome of a converged fit.

    ``fit`` raises ``FitDidNotConverge`` instead of returning an unconverged
    result, so ``converged`` is always True here; ``message`` names the
    tolerance that stopped the solver.
    """

    model: str
    params: Mapping[str, float]
    r_squared: float
    rmse: float
    sse: float
    n_points: int
    iterations: int
    converged: bool
    message: str = ""

    @property
    def values(self) -> tuple[float, ...]:
        """Parameter vector in the model's parameter order."""
        return tuple(self.params.values())


def _as_vector(
    curve: CurveModel, values: Sequence[float] | Mapping[str, float], what: str
) -> np.ndarray:
    if isinstance(values, Mapping):
        missing = [p for p in curve.params if p not in values]
        if missing:
            msg = f"{what} for '{curve.name}' is missing {missing}"
            raise ValueError(msg)
        values = [values[p] for p in curve.params]
    vector = np.asarray(values, dtype=float)
    if vector.shape != (curve.n_params,):
        msg = f"{what} for '{curve.name}' needs {curve.n_params} values, got {vector.shape}"
        raise ValueError(msg)
    return vector


def _points_to_arrays(points: Iterable[Sequence[float]]) -> tuple[np.ndarray, np.ndarray]:
    pairs = np.asarray([tuple(p) for p in points], dtype=float)
    if pairs.size == 0:
        return np.empty(0), np.empty(0)
    if pairs.ndim != 2 or pairs.shape[1] != 2:
        msg = f"points must be (x, y) pairs, got array of shape {pairs.shape}"
        raise ValueError(msg)
    valid = np.isfinite(pairs).all(axis=1)
    return pairs[valid, 0], pairs[valid, 1]


def fit(
    points: Iterable[Sequence[float]],
    model: str | CurveModel,
    initial_guess: Sequence[float] | Mapping[str, float],
    bounds: tuple[Sequence[float], Sequence[float]] | None = None,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    tolerance: float = DEFAULT_TOLERANCE,
) -> FitResult:
    """Fit ``model`` to (x, y) points by minimising the sum of squared residuals.

    Args:
        points: (x, y) pairs; pairs with a missing value are dropped.
        model: Curve name (``"fu"``, ``"alpha_whc"``) or a CurveModel.
        initial_guess: Starting parameters, as a vector or name->value mapping.
        bounds: ``(lower, upper)`` parameter bounds; the model's defaults
            when omitted.
        max_iterations: Budget of residual evaluations for the solver.
        tolerance: ``ftol``/``xtol``/``gtol`` passed to the solver.

    Returns:
        Converged FitResult with fitted parameters and fit statistics.

    Raises:
        InsufficientData: With fewer valid points than parameters + 1.
        FitDidNotConverge: If the solver used up ``max_iterations``.
        ValueError: If the initial guess or bounds are malformed, or the
            initial guess lies outside the bounds.
    """
    curve = get_curve(model)
    x, y = _points_to_arrays(points)
    if len(x) < curve.n_params + 1:
        msg = f"'{curve.name}' needs at least {curve.n_params + 1} valid points, got {len(x)}"
        raise InsufficientData(msg)

    x0 = _as_vector(curve, initial_guess, "initial guess")
    lower = _as_vector(curve, bounds[0] if bounds else curve.lower, "lower bounds")
    upper = _as_vector(curve, bounds[1] if bounds else curve.upper, "upper bounds")
    if np.any(x0 < lower) or np.any(x0 > upper):
        msg = f"initial guess {x0.tolist()} lies outside bounds {lower.tolist()}..{upper.tolist()}"
        raise ValueError(msg)

    def residuals(theta: np.ndarray) -> np.ndarray:
        return curve(x, theta) - y

    solution = scipy.optimize.least_squares(
        residuals,
        x0=x0,
        bounds=(lower, upper),
        method="trf",
        max_nfev=max_iterations,
        ftol=tolerance,
        xtol=tolerance,
        gtol=tolerance,
    )
    if solution.status == 0:
        raise FitDidNotConverge(curve.name, int(solution.nfev), solution.message)

    predicted = curve(x, solution.x)
    result = FitResult(
        model=curve.name,
        params={name: float(v) for name, v in zip(curve.params, solution.x, strict=True)},
        r_squared=r_squared(y, predicted),
        rmse=rmse(y, predicted),
        sse=float(np.sum((predicted - y) ** 2)),
        n_points=len(x),
        iterations=int(solution.nfev),
        converged=solution.status > 0,
        message=solution.message,
    )
    logger.info(
        "Fitted %s to %d points: %s (R²=%.3f)", curve.name, len(x), result.params, result.r_squared
    )
    return result
