"""External input formats.

Each subdirectory is one family of inputs with a consistent structure:

    datasources/{name}/
    ├── __init__.py       # Public API re-exports
    ├── client.py         # File naming conventions, column constants (optional)
    └── {feature}.py      # Read functions (one per file type or concept)

Packages:
  - fluxnet: half-hourly FLUXNET CSVs -> daily validation tables
  - sites:   per-site forcing / observed / simulated CSV tables -> SiteCollection

Adding a new datasource
-----------------------
1. Create ``datasources/{name}/`` with the files above.
   See ``sites/`` for a minimal example, ``fluxnet/`` for a richer one.

2. Write read functions that return DataFrames or TimeSeriesTables::

       def read_something(path: Path, site: str) -> TimeSeriesTable:
           frame = pd.read_csv(path, parse_dates=["date"])
           return TimeSeriesTable(site, frame, kind=TableKind.FORCING)

   Validate on read: raise ``SchemaError`` for malformed input instead of
   letting bad columns reach the analysis layer.

3. Re-export public API in ``__init__.py`` with ``__all__``.

4. Wire into the pipeline (see ``flows/prepare.py`` / ``flows/evaluate.py``):
   - Add a ``@task`` that calls your read function
   - Pick a store tier + path (e.g. ``validation/{site}.json``)

5. Add tests in ``tests/test_{name}.py``.
"""
