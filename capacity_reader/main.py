#!/usr/bin/env python
"""
Capacity Reader CLI entry point.

Usage:
    # List value streams and teams found in the capacity sheet
    python -m capacity_reader.main structure <workbook.xlsx>

    # Capacity of one team
    python -m capacity_reader.main team <workbook.xlsx> <team> [--group VS]

    # Value stream summary, optionally limited to some teams
    python -m capacity_reader.main summary <workbook.xlsx> [--group VS] [--teams A B ...]

    # One iteration of a team
    python -m capacity_reader.main iteration <workbook.xlsx> <team> <n> [--group VS]

    # Base capacity before / after feature freeze
    python -m capacity_reader.main base <workbook.xlsx> <team> [--after-ff] [--group VS]

    # Base capacity per role
    python -m capacity_reader.main roles <workbook.xlsx> <team> [--group VS]

Common options: --config config.yaml, --format json|markdown, --log-level LEVEL
"""

import argparse
import os
import sys

from capacity_reader.config import load_config, setup_logging
from capacity_reader.formatters import (
    aggregate_to_markdown,
    record_to_markdown,
    roles_to_markdown,
    structure_to_markdown,
    to_json,
)
from capacity_reader.grid import WorkbookGridSource
from capacity_reader.reader import CapacityReader


def _build_parser():
    parser = argparse.ArgumentParser(
        description="Read team capacity from a capacity planning workbook"
    )
    parser.add_argument("--config", default=None, help="Path to config YAML file")
    parser.add_argument(
        "--format", choices=("json", "markdown"), default="json",
        help="Output format (default: json)",
    )
    parser.add_argument(
        "--log-level", type=str, default=None,
        help="Logging level: DEBUG, INFO, WARNING, ERROR",
    )
    parser.add_argument(
        "--pi", default=None,
        help="PI number used to pick the capacity sheet (e.g. 14)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("structure", help="Show value streams and teams found")
    p.add_argument("workbook")

    p = sub.add_parser("team", help="Capacity of one team")
    p.add_argument("workbook")
    p.add_argument("team")
    p.add_argument("--group", default=None, help="Value stream filter")

    p = sub.add_parser("summary", help="Capacity summary of a value stream")
    p.add_argument("workbook")
    p.add_argument("--group", default=None, help="Value stream filter")
    p.add_argument("--teams", nargs="*", default=[],
                   help="Only include these teams (default: all)")

    p = sub.add_parser("iteration", help="Capacity of one team in one iteration")
    p.add_argument("workbook")
    p.add_argument("team")
    p.add_argument("iteration", type=int)
    p.add_argument("--group", default=None, help="Value stream filter")

    p = sub.add_parser("base", help="Base capacity before/after feature freeze")
    p.add_argument("workbook")
    p.add_argument("team")
    p.add_argument("--after-ff", action="store_true",
                   help="Report capacity after feature freeze")
    p.add_argument("--group", default=None, help="Value stream filter")

    p = sub.add_parser("roles", help="Base capacity per role of one team")
    p.add_argument("workbook")
    p.add_argument("team")
    p.add_argument("--group", default=None, help="Value stream filter")

    return parser


def _render(result, markdown_renderer, fmt):
    if fmt == "markdown" and markdown_renderer is not None:
        return markdown_renderer(result)
    return to_json(result)


def run(args) -> int:
    if not os.path.exists(args.workbook):
        print(f"Error: File '{args.workbook}' not found.")
        return 1

    config = load_config(args.config)
    if args.pi is not None:
        config["dynamic_param"] = args.pi
    setup_logging(args.log_level or config.get("log_level", "INFO"))

    with WorkbookGridSource(args.workbook) as source:
        reader = CapacityReader.from_config(source, config)

        if args.command == "structure":
            result, renderer = reader.describe_structure(), structure_to_markdown
        elif args.command == "team":
            result, renderer = reader.get_record_by_identifier(args.team, args.group), record_to_markdown
        elif args.command == "summary":
            result, renderer = reader.get_aggregate_for_group(args.teams, args.group), aggregate_to_markdown
        elif args.command == "iteration":
            result, renderer = reader.get_period_slice(args.team, args.iteration, args.group), None
        elif args.command == "base":
            result, renderer = reader.get_summary_value(
                args.team, before_cutoff=not args.after_ff, group_filter=args.group), None
        else:
            result, renderer = reader.get_roles_for_identifier(args.team, args.group), roles_to_markdown

    if result is None:
        print("Not found.")
        return 0
    print(_render(result, renderer, args.format))
    return 0


def main(argv=None):
    args = _build_parser().parse_args(argv)
    sys.exit(run(args))


if __name__ == "__main__":
    main()
