"""Pure rendering functions: results -> HTML strings and PNG bytes.

All renderers follow the same pattern:
  - Input: dataclasses from analysis/ (or dicts read back from the store)
  - Output: str (HTML fragment, not a full page) or bytes (PNG image)
  - No side effects, no I/O, no Prefect decorators

Used by flows/evaluate.py which orchestrates the report.

Public API:
  - tables: build_metrics_table_html, build_summary_table_html,
            build_fit_table_html, build_site_errors_html
  - plots: plot_timeseries_png, plot_budyko_png, png_data_uri

Adding a renderer (report section)
----------------------------------
1. Create ``renderers/{name}.py`` with a build function::

       from fluxeval.renderers import render_template

       def build_mysection_html(data: list[SomeResult]) -> str:
           rows = [...]
           return render_template("mysection.html.j2", rows=rows)

2. Create a Jinja2 template in ``templates/{name}.html.j2``.
   Templates produce HTML fragments (no <html>/<body> tags).
   CSS goes in ``templates/report.html.j2`` within the <style> block.

3. Wire into ``flows/evaluate.py``:
   - Call your build function in ``build_report()`` and pass the result to
     ``render_template("report.html.j2", ..., mysection=result)``.
   - Add the ``{{ mysection }}`` placeholder in ``report.html.j2``.

4. Add tests: call your build function with sample data and assert
   the returned HTML contains expected content.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import jinja2

# Shared Jinja2 environment for all renderers
_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
_jinja_env = jinja2.Environment(
    loader=jinja2.FileSystemLoader(str(_TEMPLATE_DIR)),
    autoescape=True,
)


def _fmt(value: Any, ndigits: int = 2) -> str:
    """Format a number for tables; missing values render as a dash."""
    if value is None:
        return "–"
    if isinstance(value, float):
        if value != value:  # NaN
            return "–"
        return f"{value:.{ndigits}f}"
    return str(value)


_jinja_env.filters["num"] = _fmt


def render_template(template_name: str, **kwargs: Any) -> str:
    """Render a Jinja2 template by name."""
    return _jinja_env.get_template(template_name).render(**kwargs)
