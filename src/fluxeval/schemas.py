"""
Domain models for fluxeval.

Pydantic models for externally supplied tables and site metadata.
These define the canonical schema - loaders validate input files against them.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field, model_validator

# =============================================================================
# Table kinds and schemas
# =============================================================================


class TableKind(StrEnum):
    """Role of a per-site table within a SiteCollection."""

    FORCING = "forcing"
    OBSERVED = "observed"
    SIMULATED = "simulated"


class TableSchema(BaseModel):
    """Named fields a table of a given kind must carry."""

    model_config = {"frozen": True}

    kind: TableKind
    required: tuple[str, ...] = Field(default=(), description="Fields that must be present")
    optional: tuple[str, ...] = Field(default=(), description="Known fields that may be absent")

    @property
    def fields(self) -> tuple[str, ...]:
        """All known fields, required first."""
        return self.required + self.optional


SCHEMAS: dict[TableKind, TableSchema] = {
    TableKind.FORCING: TableSchema(
        kind=TableKind.FORCING,
        required=("prec",),
        optional=("temp", "vpd", "ppfd", "netrad", "patm", "snow", "rain", "fapar", "co2"),
    ),
    TableKind.OBSERVED: TableSchema(
        kind=TableKind.OBSERVED,
        required=("gpp",),
        optional=("gpp_unc", "aet", "le"),
    ),
    TableKind.SIMULATED: TableSchema(
        kind=TableKind.SIMULATED,
        required=("gpp",),
        optional=("aet", "pet", "le", "wscal", "wcont"),
    ),
}


# =============================================================================
# Site metadata
# =============================================================================


class SiteValidYears(BaseModel):
    """Range of years with usable flux data at a site (inclusive)."""

    site: str = Field(..., min_length=1)
    start_year: int
    end_year: int

    @model_validator(mode="after")
    def _check_order(self) -> SiteValidYears:
        if self.start_year > self.end_year:
            msg = f"{self.site}: start_year {self.start_year} is after end_year {self.end_year}"
            raise ValueError(msg)
        return self

    def contains(self, year: int) -> bool:
        """Whether ``year`` falls inside the valid range."""
        return self.start_year <= year <= self.end_year
