"""CLI entry point for linting model definitions.

Usage:
    python -m layerlint models/
    python -m layerlint models/staging/_models.yml models/marts/_models.yml
    python -m layerlint models/ --format json
    python -m layerlint models/ --workers 8 --enforce-utility-layers

Exit codes:
    0  every model follows the conventions (warnings allowed)
    1  at least one error-severity violation
    2  definitions could not be loaded (duplicate names, malformed
       definitions, unreadable YAML)
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from pydantic import ValidationError

from layerlint.lib.errors import StructuralError
from layerlint.lib.graph import UtilityPolicy
from layerlint.lib.linter import lint_paths
from layerlint.lib.observability import setup_logging
from layerlint.lib.settings import LintSettings

EXIT_OK = 0
EXIT_VIOLATIONS = 1
EXIT_STRUCTURAL = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="layerlint",
        description="Check layered warehouse models against naming and layering conventions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Lint every schema file under models/
    python -m layerlint models/

    # Machine-readable report
    python -m layerlint models/ --format json

    # Hold utility models to the layer table too
    python -m layerlint models/ --enforce-utility-layers

Settings can also come from LAYERLINT_* environment variables or a .env file
(LAYERLINT_WORKERS, LAYERLINT_UTILITY_LAYER_CHECKS, LAYERLINT_LOG_LEVEL, ...).
        """,
    )
    parser.add_argument(
        "paths",
        nargs="+",
        help="YAML definition files or directories to scan",
    )
    parser.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="Report format (default: text)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        help="Worker threads for validation and cycle search",
    )
    parser.add_argument(
        "--enforce-utility-layers",
        action="store_true",
        help="Check edges from and to utility models against the layer table",
    )
    parser.add_argument(
        "--skip-utility-cycles",
        action="store_true",
        help="Leave utility models out of cycle detection",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--json-log",
        action="store_true",
        help="Output logs in JSON format (for log aggregation systems)",
    )
    parser.add_argument(
        "--log-file",
        help="Write logs to a file in addition to stderr",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    args = build_parser().parse_args(argv)

    try:
        settings = LintSettings()
    except ValidationError as e:
        print(f"Error: invalid LAYERLINT_* settings:\n{e}", file=sys.stderr)
        return EXIT_STRUCTURAL

    setup_logging(
        verbose=args.verbose,
        json_format=args.json_log or settings.log_format == "json",
        log_file=args.log_file or settings.log_file,
        level=settings.log_level,
    )

    policy = UtilityPolicy(
        layer_checks=args.enforce_utility_layers or settings.utility_layer_checks,
        cycle_checks=settings.utility_cycle_checks and not args.skip_utility_cycles,
    )
    workers = args.workers if args.workers is not None else settings.workers

    try:
        report = lint_paths(args.paths, settings, workers=workers, policy=policy)
    except StructuralError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_STRUCTURAL

    if args.format == "json":
        print(report.to_json())
    else:
        print(report.format_text())

    return EXIT_OK if report.passed else EXIT_VIOLATIONS


if __name__ == "__main__":
    sys.exit(main())
