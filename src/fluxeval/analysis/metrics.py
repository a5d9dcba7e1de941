"""Pairwise-complete agreement metrics between observed and predicted series."""

from __future__ import annotations

import numpy as np
import numpy.typing as npt

ArrayLike = npt.ArrayLike


def clean_pairs(observed: ArrayLike, predicted: ArrayLike) -> tuple[np.ndarray, np.ndarray]:
    """Drop every pair where either side is missing or non-finite."""
    obs = np.asarray(observed, dtype=float)
    pred = np.asarray(predicted, dtype=float)
    if obs.shape != pred.shape:
        msg = f"shape mismatch: {obs.shape} vs {pred.shape}"
        raise ValueError(msg)
    valid = np.isfinite(obs) & np.isfinite(pred)
    return obs[valid], pred[valid]


def r_squared(observed: ArrayLike, predicted: ArrayLike) -> float:
    """Squared Pearson correlation of observed vs predicted.

    Identical series give exactly 1.0. NaN when fewer than two pairs remain
    or either series has zero variance.
    """
    obs, pred = clean_pairs(observed, predicted)
    if len(obs) < 2:
        return float("nan")
    if np.array_equal(obs, pred):
        return 1.0
    if np.ptp(obs) == 0 or np.ptp(pred) == 0:
        return float("nan")
    r = float(np.corrcoef(obs, pred)[0, 1])
    return min(r * r, 1.0)


def rmse(observed: ArrayLike, predicted: ArrayLike) -> float:
    """Root mean squared error; NaN with no valid pair."""
    obs, pred = clean_pairs(observed, predicted)
    if len(obs) == 0:
        return float("nan")
    return float(np.sqrt(np.mean((pred - obs) ** 2)))


def bias(observed: ArrayLike, predicted: ArrayLike) -> float:
    """Mean of predicted minus observed; NaN with no valid pair."""
    obs, pred = clean_pairs(observed, predicted)
    if len(obs) == 0:
        return float("nan")
    return float(np.mean(pred - obs))


def calculate_all_metrics(observed: ArrayLike, predicted: ArrayLike) -> dict[str, float]:
    """R², RMSE, bias and the number of valid pairs."""
    obs, _ = clean_pairs(observed, predicted)
    return {
        "r_squared": r_squared(observed, predicted),
        "rmse": rmse(observed, predicted),
        "bias": bias(observed, predicted),
        "n": float(len(obs)),
    }
