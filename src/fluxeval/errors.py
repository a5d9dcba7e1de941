"""Exception types raised by the analysis core.

Every error derives from ``FluxEvalError`` so callers running many sites can
catch one type per site and keep going.
"""

from __future__ import annotations


class FluxEvalError(Exception):
    """Base class for all fluxeval errors."""


class KeyMismatch(FluxEvalError):
    """Tables cannot be joined: different sites, or no common dates."""


class InsufficientData(FluxEvalError):
    """Fewer valid points than an aggregation or fit requires."""


class SchemaError(FluxEvalError):
    """A table does not match the schema declared for its kind."""


class FitDidNotConverge(FluxEvalError):
    """The nonlinear solver used up its iteration budget without converging."""

    def __init__(self, model: str, iterations: int, message: str) -> None:
        self.model = model
        self.iterations = iterations
        self.solver_message = message
        super().__init__(
            f"Fit of '{model}' did not converge after {iterations} evaluations: {message}"
        )
