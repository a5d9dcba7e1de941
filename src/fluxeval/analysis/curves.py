"""Budyko-type curve families.

Both map the aridity index ``x = PET / P`` to the evaporative fraction
``y = AET / P``.

Fu (1981), one parameter ``w > 1``::

    y = 1 + x - (1 + x**w) ** (1 / w)

Two-branch alpha/whc curve. ``alpha`` is the evaporative efficiency in the
energy-limited regime and ``whc`` the soil water holding capacity normalised
by precipitation::

    y = alpha * x                                           x <= 1
    y = alpha * (1 + whc * (1 - exp(-(x - 1) / whc)))       x >  1

The branches meet at ``x = 1`` with equal value and slope. As ``whc -> 0``
the curve approaches the Budyko limits ``alpha * min(x, 1)``.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt


def fu_curve(x: npt.ArrayLike, w: float) -> np.ndarray:
    """Fu's equation, evaluated without overflow for large ``w``."""
    x = np.asarray(x, dtype=float)
    # (1 + x**w)**(1/w) == m * (1 + r**w)**(1/w), m = max(1, x), r = min(1, x) / m
    m = np.maximum(1.0, x)
    r = np.minimum(1.0, x) / m
    return 1.0 + x - m * (1.0 + r**w) ** (1.0 / w)


def alpha_whc_curve(x: npt.ArrayLike, alpha: float, whc: float) -> np.ndarray:
    """Two-branch exponential curve (see module docstring)."""
    x = np.asarray(x, dtype=float)
    excess = np.maximum(x - 1.0, 0.0)
    water_limited = alpha * (1.0 + whc * (1.0 - np.exp(-excess / whc)))
    return np.where(x <= 1.0, alpha * x, water_limited)


@dataclass(frozen=True)
class CurveModel:
    """A named parametric curve with default bounds and starting point."""

    name: str
    params: tuple[str, ...]
    func: Callable[..., np.ndarray]
    lower: tuple[float, ...]
    upper: tuple[float, ...]
    default_guess: tuple[float, ...]

    def __call__(self, x: npt.ArrayLike, params: npt.ArrayLike) -> np.ndarray:
        return self.func(x, *np.asarray(params, dtype=float))

    @property
    def n_params(self) -> int:
        return len(self.params)


FU = CurveModel(
    name="fu",
    params=("w",),
    func=fu_curve,
    lower=(1.0,),
    upper=(100.0,),
    default_guess=(2.6,),
)

ALPHA_WHC = CurveModel(
    name="alpha_whc",
    params=("alpha", "whc"),
    func=alpha_whc_curve,
    lower=(0.0, 1e-6),
    upper=(2.0, 100.0),
    default_guess=(1.0, 0.5),
)

CURVES: dict[str, CurveModel] = {FU.name: FU, ALPHA_WHC.name: ALPHA_WHC}


def get_curve(model: str | CurveModel) -> CurveModel:
    """Resolve a curve by name (instances pass through)."""
    if isinstance(model, CurveModel):
        return model
    try:
        return CURVES[model]
    except KeyError:
        msg = f"unknown curve {model!r}; available: {sorted(CURVES)}"
        raise ValueError(msg) from None


def predict(
    model: str | CurveModel,
    x: npt.ArrayLike,
    params: npt.ArrayLike | dict[str, float],
) -> np.ndarray:
    """Evaluate a curve at ``x`` with a parameter vector or name->value mapping."""
    curve = get_curve(model)
    if isinstance(params, dict):
        params = [params[name] for name in curve.params]
    return curve(x, params)
