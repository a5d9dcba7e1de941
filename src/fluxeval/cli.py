"""
Command-line entry point: ``fluxeval <command>``.

Commands map onto the two Prefect flows (``prepare``, ``evaluate``, or both
via ``refresh``) plus read-only views of the store (``status``, ``fits``)
and a local server for the built report (``serve``).
"""

from __future__ import annotations

import argparse
import functools
import http.server
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from fluxeval import __version__
from fluxeval.config import get_settings
from fluxeval.flows.evaluate import FITS_PATH, REPORT_PATH, evaluate_all
from fluxeval.flows.prepare import prepare_validation, validation_path
from fluxeval.schemas import TableKind
from fluxeval.store import DataStore, Tier

if TYPE_CHECKING:
    from collections.abc import Callable


def _sites_parent() -> argparse.ArgumentParser:
    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument(
        "--sites",
        nargs="+",
        default=None,
        metavar="SITE",
        help="FLUXNET site IDs (default: sites from settings)",
    )
    return parent


def create_parser() -> argparse.ArgumentParser:
    """Build the ``fluxeval`` argument parser."""
    parser = argparse.ArgumentParser(
        prog="fluxeval",
        description="Evaluate ecosystem model output against FLUXNET tower observations",
    )
    parser.add_argument("-v", "--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--debug", action="store_true", help="Log debug output from the library")

    sites = _sites_parent()
    commands = parser.add_subparsers(dest="command", help="Available commands")

    commands.add_parser("info", help="Show settings in effect")
    commands.add_parser("status", parents=[sites], help="Show per-site inputs and freshness")

    prepare = commands.add_parser(
        "prepare", parents=[sites], help="Build daily validation tables from FLUXNET files"
    )
    prepare.add_argument("--force", action="store_true", help="Rebuild tables that are still fresh")

    commands.add_parser(
        "evaluate", parents=[sites], help="Score model output and write the report"
    )
    commands.add_parser("refresh", help="Run prepare, then evaluate, for the configured sites")
    commands.add_parser("fits", help="Print the Budyko fits from the last evaluation")

    serve = commands.add_parser("serve", help="Serve the built report over HTTP")
    serve.add_argument("--port", type=int, default=None, help="Port (default: report_port)")

    return parser


def _print_errors(errors: dict[str, str]) -> None:
    for key, message in sorted(errors.items()):
        print(f"  {key}: {message}", file=sys.stderr)


def cmd_info(_args: argparse.Namespace) -> int:
    settings = get_settings()
    print(f"Application: {settings.app_name} {__version__} ({settings.app_env})")
    print(f"Debug: {settings.debug}")
    print(f"Data directory: {settings.data_dir}")
    print(f"Sites: {', '.join(settings.sites)}")
    print(f"Validation TTL: {settings.validation_ttl_days} days")
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    """One line per site: validation table state and which model inputs exist."""
    settings = get_settings()
    store = DataStore(settings.data_dir)
    for site in args.sites or settings.sites:
        if store.is_fresh(validation_path(site)):
            validation = "fresh"
        elif store.file_path(validation_path(site)) is not None:
            validation = "stale"
        else:
            validation = "missing"
        inputs = [
            str(kind)
            for kind in (TableKind.SIMULATED, TableKind.FORCING)
            if store.file_path(Path(Tier.RAW, str(kind), f"{site}.csv")) is not None
        ]
        print(f"{site}: validation {validation}; inputs: {', '.join(inputs) or 'none'}")
    return 0


def cmd_prepare(args: argparse.Namespace) -> int:
    result = prepare_validation(sites=args.sites, force=args.force)
    print(f"Built: {len(result['built'])}, fresh: {len(result['skipped'])}")
    if not result["errors"]:
        return 0
    print(f"Failed: {len(result['errors'])}", file=sys.stderr)
    _print_errors(result["errors"])
    # partial success still counts
    return 0 if result["built"] else 1


def cmd_evaluate(args: argparse.Namespace) -> int:
    result = evaluate_all(sites=args.sites)
    if "error" in result:
        print(f"Error: {result['error']}", file=sys.stderr)
        _print_errors(result.get("errors", {}))
        return 1
    print(f"Evaluated: {', '.join(result['sites']) or 'none'}")
    _print_errors(result["errors"])
    print(f"Report: {result['output']}")
    return 0


def cmd_refresh(_args: argparse.Namespace) -> int:
    """Prepare and evaluate every configured site."""
    sites = get_settings().sites
    print(f"Preparing validation data for {', '.join(sites)}...")
    prepare_validation(sites=sites)

    print("Evaluating...")
    result = evaluate_all(sites=sites)
    if "error" in result:
        print(f"Error: {result['error']}", file=sys.stderr)
        return 1
    print("Done.")
    return 0


def cmd_fits(_args: argparse.Namespace) -> int:
    """Print fitted parameters and goodness of fit from ``fits.json``."""
    stored = DataStore(get_settings().data_dir).read(FITS_PATH)
    if stored is None:
        print("No fits found. Run 'fluxeval evaluate' first.", file=sys.stderr)
        return 1

    print(f"Budyko points: {len(stored.get('points', []))}")
    for result in stored.get("fits", []):
        params = ", ".join(f"{k}={v:.3f}" for k, v in result["params"].items())
        r2 = "n/a" if result["r_squared"] is None else f"{result['r_squared']:.3f}"
        print(f"{result['model']}: {params} (R²={r2}, n={result['n_points']})")
    _print_errors(stored.get("errors", {}))
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    settings = get_settings()
    port = settings.report_port if args.port is None else args.port
    report_dir = settings.data_dir / REPORT_PATH.parent

    if not report_dir.exists():
        print("No report directory found. Run 'fluxeval refresh' first.", file=sys.stderr)
        return 1

    handler = functools.partial(http.server.SimpleHTTPRequestHandler, directory=str(report_dir))
    with http.server.HTTPServer(("", port), handler) as server:
        print(f"Serving report on http://localhost:{port}/ (Ctrl+C to stop)")
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            print("\nServer stopped.")
    return 0


def main() -> int:
    """Parse arguments and run the selected command."""
    parser = create_parser()
    args = parser.parse_args()

    if getattr(args, "debug", False) or get_settings().debug:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if args.command is None:
        parser.print_help()
        return 0

    commands: dict[str, Callable[[argparse.Namespace], int]] = {
        "info": cmd_info,
        "status": cmd_status,
        "prepare": cmd_prepare,
        "evaluate": cmd_evaluate,
        "refresh": cmd_refresh,
        "fits": cmd_fits,
        "serve": cmd_serve,
    }
    handler = commands.get(args.command)
    if handler is None:
        parser.print_help()
        return 1
    return handler(args)


if __name__ == "__main__":
    sys.exit(main())
