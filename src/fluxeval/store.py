"""Tiered on-disk store for the pipeline's inputs and outputs.

Layout under the data directory:
  - raw/: inputs the pipeline only reads (FLUXNET half-hourly CSVs, the
    valid-years table, model output and forcing CSVs)
  - validation/: one daily validation table per site, kept until it expires
  - derived/: summaries, fits, plots and the report, rebuilt on every run

JSON files carry ``{"meta": ..., "data": ...}``. Binary files (PNG plots)
get their ``meta`` in a ``<name>.meta.json`` sidecar. A ``valid_until``
entry in ``meta`` lets the prepare flow skip sites that are still fresh.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from enum import StrEnum
from pathlib import Path
from typing import Any

SIDECAR_SUFFIX = ".meta.json"


class Tier(StrEnum):
    """Top-level directories of the store."""

    RAW = "raw"
    VALIDATION = "validation"
    DERIVED = "derived"


def _load_json(path: Path) -> dict[str, Any]:
    with path.open() as f:
        loaded: dict[str, Any] = json.load(f)
    return loaded


def _dump_json(path: Path, content: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w") as f:
        json.dump(content, f, indent=2)


def _sidecar(path: Path) -> Path:
    return path.with_name(path.name + SIDECAR_SUFFIX)


def _parse_expiry(value: str) -> datetime:
    expiry = datetime.fromisoformat(value)
    return expiry if expiry.tzinfo is not None else expiry.replace(tzinfo=UTC)


class DataStore:
    """Reads and writes files below one data directory."""

    def __init__(self, base_dir: Path) -> None:
        self.base = base_dir
        self.raw = self.tier(Tier.RAW)
        self.validation = self.tier(Tier.VALIDATION)
        self.derived = self.tier(Tier.DERIVED)

    def tier(self, tier: Tier) -> Path:
        return self.base / str(tier)

    def locate(self, path: Path) -> Path:
        """Absolute location of ``path``; raises ValueError outside the store."""
        candidate = path if path.is_absolute() else self.base / path
        if not candidate.resolve().is_relative_to(self.base.resolve()):
            msg = f"Path escapes store base directory: {path}"
            raise ValueError(msg)
        return candidate

    def file_path(self, path: Path) -> Path | None:
        """Location of an existing file, None when it is absent."""
        candidate = self.locate(path)
        return candidate if candidate.exists() else None

    # -------------------------------------------------------------------------
    # JSON payloads
    # -------------------------------------------------------------------------

    def read_raw(self, path: Path) -> dict[str, Any] | None:
        """The whole stored document, metadata included."""
        found = self.file_path(path)
        return _load_json(found) if found is not None else None

    def read(self, path: Path) -> Any | None:
        """The ``data`` payload of a stored document, or None if absent.

        Documents written without an envelope are returned whole.
        """
        document = self.read_raw(path)
        if document is None:
            return None
        return document["data"] if "data" in document else document

    def write(
        self,
        path: Path,
        data: Any,
        source: str,
        valid_until: datetime | None = None,
        **params: Any,
    ) -> Path:
        """Store ``data`` with its metadata and return the file location.

        ``source`` names the producer (``"fluxnet-hh"``, ``"fluxeval"``).
        Without ``valid_until`` the file never counts as fresh. Any extra
        keyword arguments (site, year range) are added to ``meta``.
        """
        target = self.locate(path)
        _dump_json(target, {"meta": self.metadata(source, valid_until, **params), "data": data})
        return target

    # -------------------------------------------------------------------------
    # Binary payloads
    # -------------------------------------------------------------------------

    def write_bytes(
        self,
        path: Path,
        payload: bytes,
        source: str,
        valid_until: datetime | None = None,
        **params: Any,
    ) -> Path:
        """Store a binary file and its metadata sidecar."""
        target = self.locate(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(payload)
        _dump_json(_sidecar(target), {"meta": self.metadata(source, valid_until, **params)})
        return target

    # -------------------------------------------------------------------------
    # Metadata and freshness
    # -------------------------------------------------------------------------

    @staticmethod
    def metadata(source: str, valid_until: datetime | None = None, **params: Any) -> dict[str, Any]:
        meta: dict[str, Any] = {"source": source, "written_at": datetime.now(UTC).isoformat()}
        if valid_until is not None:
            meta["valid_until"] = valid_until.isoformat()
        return {**meta, **params}

    def read_meta(self, path: Path) -> dict[str, Any]:
        """Metadata of a stored file from its sidecar or JSON envelope."""
        target = self.locate(path)
        sidecar = _sidecar(target)
        if sidecar.exists():
            source = sidecar
        elif target.suffix == ".json" and target.exists():
            source = target
        else:
            return {}
        return _load_json(source).get("meta", {})

    def is_fresh(self, path: Path) -> bool:
        """True if the file exists and its ``valid_until`` is in the future.

        A naive ``valid_until`` is read as UTC.
        """
        if self.file_path(path) is None:
            return False
        valid_until = self.read_meta(path).get("valid_until")
        return valid_until is not None and datetime.now(UTC) < _parse_expiry(valid_until)
