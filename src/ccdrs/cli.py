"""
CCDRS Command-Line Interface

Exposes two subcommands:

    ccdrs report     --db <file> --region <id> --survey <id> [...]   Build a count report
    ccdrs categories --db <file> --survey <id> [...]                 List survey categories

Every ``report`` option may also come from a JSON request file
(``--request req.json``); options given on the command line win over the
file.  Example request::

    {
        "db": "ccdrs.db",
        "region": 1,
        "survey": 3,
        "level": "screenline",
        "mode": "interval",
        "directions": ["N", "S"],
        "start": 600,
        "end": 900,
        "categories": [1, 2, 5],
        "entities": ["SL01"],
        "output_dir": "reports"
    }

Without an output directory the report text goes to stdout.

The package must be installed (``pip install -e .``) for the ``ccdrs`` entry
point to be available.

Package Location: src/ccdrs/cli.py
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import traceback
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

log = logging.getLogger(__name__)

_REQUIRED_KEYS = (
    "db", "region", "survey", "directions", "start", "end", "categories",
)
_LEVELS = ("station", "screenline")
_MODES = ("total", "interval")
_COUNT_TYPES = {"technology": 1, "vehicle": 2, "person": 3}


# ===========================================================================
# Shared helpers
# ===========================================================================

def _die(message: str) -> None:
    """Print an error message and exit with status 1.

    Args:
        message: Human-readable error text.
    """
    print(f"\n❌  Error: {message}", file=sys.stderr)
    sys.exit(1)


def _load_request(path: Path) -> Dict[str, Any]:
    """Read and return a JSON report request.

    Raises:
        SystemExit: If the file is missing, unparseable, or not an object.
    """
    if not path.exists():
        _die(f"Request file not found: {path}")
    try:
        with path.open() as fh:
            raw = json.load(fh)
    except json.JSONDecodeError as exc:
        _die(f"Failed to parse {path.name}: {exc}")
    if not isinstance(raw, dict):
        _die(f"{path.name} must contain a JSON object, got {type(raw).__name__}")
    return raw


def _split_list(value: Any) -> List[str]:
    """Accept ``["N", "S"]``, ``"N,S"`` or ``"N S"`` and return a list."""
    if value is None:
        return []
    if isinstance(value, str):
        return [v for v in value.replace(",", " ").split() if v]
    return [str(v).strip() for v in value if str(v).strip()]


def _as_int(key: str, value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"'{key}' must be an integer, got {value!r}") from None


def parse_report_request(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Normalise a flat report request dict.

    Args:
        config: Keys ``db``, ``region``, ``survey``, ``directions``,
            ``start``, ``end``, ``categories`` (required) and ``level``
            (default ``"station"``), ``mode`` (default ``"total"``),
            ``entities``, ``output_dir`` (optional).  List values may be
            JSON lists or comma/space separated strings.

    Returns:
        Dict with the same keys: ``db`` / ``output_dir`` as ``Path``
        (``output_dir`` may be ``None``), ints for ids and times, upper-case
        one-character ``directions``, int ``categories`` and ``entities`` as
        a list or ``None``.

    Raises:
        ValueError: On a missing key or an invalid value.
    """
    missing = [k for k in _REQUIRED_KEYS if config.get(k) in (None, "", [])]
    if missing:
        raise ValueError(f"Missing request field(s): {', '.join(missing)}")

    level = str(config.get("level") or "station").lower()
    if level not in _LEVELS:
        raise ValueError(f"'level' must be one of {list(_LEVELS)}, got {level!r}")
    mode = str(config.get("mode") or "total").lower()
    if mode not in _MODES:
        raise ValueError(f"'mode' must be one of {list(_MODES)}, got {mode!r}")

    directions = [d.upper() for d in _split_list(config["directions"])]
    bad = [d for d in directions if len(d) != 1]
    if bad:
        raise ValueError(f"Directions must be single characters, got {bad}")

    categories = [
        _as_int("categories", c) for c in _split_list(config["categories"])
    ]
    entities = _split_list(config.get("entities")) or None
    output_dir = config.get("output_dir")

    return {
        "db": Path(config["db"]),
        "region": _as_int("region", config["region"]),
        "survey": _as_int("survey", config["survey"]),
        "level": level,
        "mode": mode,
        "directions": directions,
        "start": _as_int("start", config["start"]),
        "end": _as_int("end", config["end"]),
        "categories": categories,
        "entities": entities,
        "output_dir": Path(output_dir) if output_dir else None,
    }


def _merge_request(args: argparse.Namespace) -> Dict[str, Any]:
    """Overlay command-line options on the optional ``--request`` file."""
    merged: Dict[str, Any] = {}
    if args.request:
        merged.update(_load_request(Path(args.request)))
    for key in (
        "db", "region", "survey", "level", "mode", "directions",
        "start", "end", "categories", "entities", "output_dir",
    ):
        value = getattr(args, key, None)
        if value is not None:
            merged[key] = value
    return merged


def _setup_logging(args: argparse.Namespace) -> None:
    from ccdrs.utils.logging import configure_logging

    try:
        configure_logging(args.log_level, json_output=args.log_json)
    except ValueError as exc:
        _die(str(exc))


# ===========================================================================
# Subcommand handlers
# ===========================================================================

# ---------------------------------------------------------------------------
# report
# ---------------------------------------------------------------------------

def handle_report(args: argparse.Namespace) -> None:
    """Build one station or screenline report.

    Writes ``<output_dir>/<Region>_<year>/<level>_<mode>.txt`` through
    ``ReportGenerator`` when an output directory is given, otherwise prints
    the titled report to stdout.

    Args:
        args: Parsed CLI arguments.
    """
    from ccdrs.analysis import CoverageError, InvalidTimeCode, UnknownCategory
    from ccdrs.data.counts import CountEngine
    from ccdrs.reports.generators import ReportGenerator

    try:
        req = parse_report_request(_merge_request(args))
    except ValueError as exc:
        _die(str(exc))

    if not req["db"].exists():
        _die(f"Database not found: {req['db']}")

    log.info(
        "Report requested",
        extra={
            ("report_level" if k == "level" else k): str(v)
            for k, v in req.items()
        },
    )

    try:
        if req["output_dir"] is not None:
            print(f"\n📊  Generating {req['level']} {req['mode']} report")
            print(f"    DB:     {req['db'].name}")
            print(f"    Output: {req['output_dir']}")
            out_path = ReportGenerator(req["db"], req["output_dir"]).generate(
                req["region"], req["survey"], req["level"], req["mode"],
                req["directions"], req["start"], req["end"],
                req["categories"], entities=req["entities"], plots=args.plots,
            )
            print(f"\n✅  Done.  {out_path}")
            return

        if args.plots:
            print(
                "Plots are only written with --output-dir – skipping",
                file=sys.stderr,
            )

        engine = CountEngine(req["db"], req["region"], req["survey"])
        if req["level"] == "station":
            text = engine.station_report(
                req["directions"], req["start"], req["end"],
                req["categories"], req["mode"], stations=req["entities"],
            )
        else:
            text = engine.screenline_report(
                req["directions"], req["start"], req["end"],
                req["categories"], req["mode"], screenlines=req["entities"],
            )
        sys.stdout.write(text)
    except (InvalidTimeCode, UnknownCategory, CoverageError, ValueError) as exc:
        if args.verbose:
            traceback.print_exc()
        _die(str(exc))


# ---------------------------------------------------------------------------
# categories
# ---------------------------------------------------------------------------

def handle_categories(args: argparse.Namespace) -> None:
    """List the categories observed in a survey, in display order.

    Args:
        args: Parsed CLI arguments.
    """
    from ccdrs.data.counts import CountEngine

    db_path = Path(args.db)
    if not db_path.exists():
        _die(f"Database not found: {db_path}")

    count_type = _COUNT_TYPES[args.count_type] if args.count_type else None
    engine = CountEngine(db_path, args.region, args.survey)
    cats = engine.categories(count_type)

    if not cats:
        print(f"No categories observed in survey {args.survey}.")
        return

    print(f"{'Id':>5}  {'Name':<16} {'Type':<14} Description")
    for c in cats:
        print(
            f"{c.id:>5}  {c.name:<16} {c.count_type.name.lower():<14} "
            f"{c.description}"
        )


# ===========================================================================
# Parser
# ===========================================================================

def _add_common(p: argparse.ArgumentParser, required: bool) -> None:
    p.add_argument(
        "--db",
        required=required,
        metavar="FILE",
        help="Path to the CCDRS SQLite database.",
    )
    p.add_argument(
        "--region",
        type=int,
        required=required,
        metavar="ID",
        help="Region id.",
    )
    p.add_argument(
        "--survey",
        type=int,
        required=required,
        metavar="ID",
        help="Survey id (must belong to the region).",
    )


def _build_parser() -> argparse.ArgumentParser:
    """Construct and return the top-level argument parser.

    Returns:
        Configured ``ArgumentParser`` with ``report`` and ``categories``
        subcommands attached.
    """
    parser = argparse.ArgumentParser(
        prog="ccdrs",
        description=(
            "CCDRS – traffic-survey count reporting\n"
            "Station and screenline count reports from a survey database."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        metavar="LEVEL",
        help="Logging level for diagnostics on stderr (default: WARNING).",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        default=False,
        help="Emit diagnostics as one JSON object per line.",
    )
    subs = parser.add_subparsers(dest="command", metavar="<command>")
    subs.required = True

    # ------------------------------------------------------------------
    # report
    # ------------------------------------------------------------------
    p_rep = subs.add_parser(
        "report",
        help="Build a station or screenline count report.",
        description=(
            "Aggregate survey observations into a total-volume or\n"
            "15-minute interval report.\n\n"
            "Output files (with --output-dir) are written to:\n"
            "  <output_dir>/<Region>_<year>/<level>_<mode>.txt"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p_rep.add_argument(
        "--request",
        default=None,
        metavar="FILE",
        help="JSON request file; command-line options override its fields.",
    )
    _add_common(p_rep, required=False)
    p_rep.add_argument(
        "--level",
        choices=_LEVELS,
        default=None,
        help="Report level (default: station).",
    )
    p_rep.add_argument(
        "--mode",
        choices=_MODES,
        default=None,
        help="Total volume or 15-minute intervals (default: total).",
    )
    p_rep.add_argument(
        "--directions",
        nargs="+",
        default=None,
        metavar="DIR",
        help="Direction codes, e.g. --directions N S",
    )
    p_rep.add_argument(
        "--start",
        type=int,
        default=None,
        metavar="HHMM",
        help="Inclusive window start as a DMG time (e.g. 600).",
    )
    p_rep.add_argument(
        "--end",
        type=int,
        default=None,
        metavar="HHMM",
        help="Inclusive window end as a DMG time (e.g. 900).",
    )
    p_rep.add_argument(
        "--categories",
        nargs="+",
        type=int,
        default=None,
        metavar="ID",
        help="Category ids in column order.",
    )
    p_rep.add_argument(
        "--entities",
        nargs="+",
        default=None,
        metavar="CODE",
        help="Restrict to these station or screenline codes.",
    )
    p_rep.add_argument(
        "--output-dir",
        dest="output_dir",
        default=None,
        metavar="DIR",
        help="Write the report under DIR instead of printing it.",
    )
    p_rep.add_argument(
        "--plots",
        action="store_true",
        default=False,
        help="Also write Plotly HTML profiles (interval reports only).",
    )
    p_rep.add_argument(
        "--verbose",
        action="store_true",
        default=False,
        help="Print the full traceback for report errors.",
    )
    p_rep.set_defaults(func=handle_report)

    # ------------------------------------------------------------------
    # categories
    # ------------------------------------------------------------------
    p_cat = subs.add_parser(
        "categories",
        help="List the categories observed in a survey.",
    )
    _add_common(p_cat, required=True)
    p_cat.add_argument(
        "--count-type",
        dest="count_type",
        choices=sorted(_COUNT_TYPES),
        default=None,
        help="Only list categories of this count type.",
    )
    p_cat.set_defaults(func=handle_categories)

    return parser


# ===========================================================================
# Entry point
# ===========================================================================

def main(argv: Optional[Sequence[str]] = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate handler.

    This function is registered as the ``ccdrs`` console script entry point
    in ``pyproject.toml``.
    """
    parser = _build_parser()
    args   = parser.parse_args(argv)
    _setup_logging(args)
    args.func(args)


if __name__ == "__main__":
    main()
