from __future__ import annotations

import argparse
import logging
import sys
import threading
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from therapydir.app import (
    assign_all,
    city_stats,
    classify_all,
    repair_all_slugs,
    scan_city,
    scan_neighborhoods,
    seed_directory,
)
from therapydir.config import configure_logging
from therapydir.domain.errors import QuotaExceeded

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from therapydir.domain.scan import ScanReport

log = logging.getLogger(__name__)

EXIT_FATAL = 1
EXIT_USAGE = 2
EXIT_QUOTA = 3

_STOP_REQUESTED = threading.Event()


def stop_requested() -> bool:
    return _STOP_REQUESTED.is_set()


def _positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Expected an integer, got {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError(f"Expected a positive integer, got {parsed}")
    return parsed


def _add_scan_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--max-results",
        type=_positive_int,
        default=None,
        help="Maximum providers to store per scope (defaults to config)",
    )
    parser.add_argument(
        "--loop",
        action="store_true",
        help="Keep rescanning scopes below the target count until interrupted",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Build the therapist directory")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("seed", help="Store default cities, neighborhoods and categories")

    scan = subparsers.add_parser("scan", help="Scan one city for providers")
    scan.add_argument("--city", required=True, help="City name, e.g. 'Austin'")
    scan.add_argument("--state", required=True, help="Two-letter state code")
    scan.add_argument(
        "--query",
        action="append",
        dest="queries",
        help="Search term; repeat for several (defaults to the built-in list)",
    )
    _add_scan_options(scan)

    hoods = subparsers.add_parser("scan-neighborhoods", help="Scan seeded neighborhoods")
    hoods.add_argument("--city", help="Restrict to one city")
    hoods.add_argument("--state", help="State of --city")
    _add_scan_options(hoods)

    subparsers.add_parser("classify", help="Re-score every provider against the categories")

    assign = subparsers.add_parser(
        "assign-neighborhoods", help="Link providers to neighborhoods named in their address"
    )
    assign.add_argument(
        "--force",
        action="store_true",
        help="Reassign providers that already belong to a neighborhood",
    )

    subparsers.add_parser("repair-slugs", help="Regenerate provider slugs")

    stats = subparsers.add_parser("stats", help="Log provider counts")
    stats.add_argument("--city", help="Restrict to one city")
    stats.add_argument("--state", help="State of --city")

    return parser


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    args = _build_parser().parse_args(list(argv))
    if getattr(args, "city", None) and not args.state:
        raise ValueError("--state is required together with --city")
    return args


def _log_scan(report: ScanReport) -> None:
    log.info(
        "Scan finished: created=%s, updated=%s, skipped=%s, failed_scopes=%s",
        report.created,
        report.updated,
        report.skipped,
        report.scopes_failed,
    )


def _dispatch(args: argparse.Namespace) -> None:  # noqa: C901
    if args.command == "seed":
        seed_directory()
    elif args.command == "scan":
        report = scan_city(
            args.city,
            args.state,
            queries=args.queries,
            max_results=args.max_results,
            loop=args.loop,
            should_stop=stop_requested,
        )
        _log_scan(report)
    elif args.command == "scan-neighborhoods":
        report = scan_neighborhoods(
            city_name=args.city,
            state=args.state,
            max_results=args.max_results,
            loop=args.loop,
            should_stop=stop_requested,
        )
        _log_scan(report)
    elif args.command == "classify":
        classify_all()
    elif args.command == "assign-neighborhoods":
        assign_all(force=args.force)
    elif args.command == "repair-slugs":
        repair_all_slugs()
    elif args.command == "stats":
        for summary in city_stats(city_name=args.city, state=args.state):
            city = summary.city
            log.info("%s, %s: %s providers", city.name, city.state, summary.providers)
            for name, count in sorted(summary.by_neighborhood.items()):
                log.info("  neighborhood %s: %s", name, count)
            for name, count in sorted(summary.by_category.items()):
                log.info("  category %s: %s", name, count)
    else:
        raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(EXIT_USAGE)

    try:
        _dispatch(parsed_args)
    except QuotaExceeded as exc:
        report = exc.report
        if report is not None:
            _log_scan(report)
        log.error("Stopped: source quota exhausted (%s)", exc)  # noqa: TRY400
        sys.exit(EXIT_QUOTA)
    except ValueError:
        log.exception("Invalid request")
        sys.exit(EXIT_USAGE)
    except Exception:
        log.exception("Fatal error")
        sys.exit(EXIT_FATAL)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Ask running scans to stop before the next scope; a second Ctrl+C exits."""
    if _STOP_REQUESTED.is_set():
        log.info("Closed by user (Ctrl+C)")
        sys.exit(0)
    log.info("Stop requested (Ctrl+C); finishing the current scope")
    _STOP_REQUESTED.set()


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
