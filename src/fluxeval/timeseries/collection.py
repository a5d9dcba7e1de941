"""Site-keyed container for forcing, observed and simulated tables."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING

from fluxeval.errors import InsufficientData, SchemaError

if TYPE_CHECKING:
    from fluxeval.schemas import TableKind
    from fluxeval.timeseries.models import TimeSeriesTable


class SiteCollection:
    """Mapping of site name -> {table kind -> TimeSeriesTable}.

    Lives for the duration of an analysis run. Tables can be replaced
    independently; the collection itself is never written to disk.
    """

    def __init__(self, tables: Iterable[TimeSeriesTable] = ()) -> None:
        self._tables: dict[str, dict[TableKind, TimeSeriesTable]] = {}
        for table in tables:
            self.add(table)

    def __contains__(self, site: object) -> bool:
        return site in self._tables

    def __iter__(self) -> Iterator[str]:
        return iter(self.sites)

    def __len__(self) -> int:
        return len(self._tables)

    def __repr__(self) -> str:
        parts = [f"{s}: {sorted(str(k) for k in kinds)}" for s, kinds in self._tables.items()]
        return f"SiteCollection({{{', '.join(parts)}}})"

    @property
    def sites(self) -> list[str]:
        """Site names, sorted."""
        return sorted(self._tables)

    def add(self, table: TimeSeriesTable, kind: TableKind | None = None) -> None:
        """Insert or replace the table of ``kind`` (defaults to ``table.kind``)."""
        kind = kind or table.kind
        if kind is None:
            msg = f"{table.site}: table has no kind; pass one explicitly"
            raise SchemaError(msg)
        self._tables.setdefault(table.site, {})[kind] = table

    def get(self, site: str, kind: TableKind) -> TimeSeriesTable | None:
        """Return the table, or None if the site has no table of that kind."""
        return self._tables.get(site, {}).get(kind)

    def require(self, site: str, kind: TableKind) -> TimeSeriesTable:
        """Return the table or raise InsufficientData."""
        table = self.get(site, kind)
        if table is None:
            msg = f"{site}: no {kind} table loaded"
            raise InsufficientData(msg)
        return table

    def kinds(self, site: str) -> list[TableKind]:
        """Kinds of table held for ``site``."""
        return sorted(self._tables.get(site, {}))

    def tables(self, kind: TableKind) -> dict[str, TimeSeriesTable]:
        """All tables of one kind, keyed by site."""
        return {
            site: by_kind[kind] for site, by_kind in sorted(self._tables.items()) if kind in by_kind
        }

    def remove(self, site: str) -> None:
        """Drop every table for ``site`` (no-op if absent)."""
        self._tables.pop(site, None)

    def filter(self, sites: Iterable[str]) -> SiteCollection:
        """New collection holding only the listed sites (tables are shared)."""
        keep = set(sites)
        out = SiteCollection()
        for site, by_kind in self._tables.items():
            if site in keep:
                for kind, table in by_kind.items():
                    out.add(table, kind)
        return out
