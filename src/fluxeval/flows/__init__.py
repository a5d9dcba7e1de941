"""Prefect flows for the validation and evaluation pipeline.

  - prepare: raw FLUXNET half-hourly files -> per-site daily validation tables
  - evaluate: validation tables + model output + forcing -> metrics, Budyko
    fits, plots and the HTML report

Each flow uses a module-level ``store`` (a DataStore rooted at the configured
``data_dir``); tests swap it for one rooted at ``tmp_path``.
"""
