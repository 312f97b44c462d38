#!/usr/bin/env python3
"""
PromoPilot Promotion Planner
============================

Ingests dealership inventory and OEM incentives, then ranks the vehicle
lines that should be prioritized for promotion.

Usage:
    # Summarize inventory
    python promo_pilot.py inventory data/sample-inventory.csv

    # Summarize active incentives (or every status)
    python promo_pilot.py incentives data/sample-incentives.json
    python promo_pilot.py incentives --all-incentives --include-expired

    # Full analysis with a saved report
    python promo_pilot.py analyze --format markdown
    python promo_pilot.py analyze --as-of "2024-03-01" --max 5

    # Agent tool definitions and the analysis prompt
    python promo_pilot.py tools --prompt

    # Show effective settings
    python promo_pilot.py --settings my-settings.yaml settings
"""

import sys
import json
import logging
import argparse
from pathlib import Path
from datetime import datetime

from dateutil import parser as date_parser

# Add current directory to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from promo_engine.config import config_from_yaml, default_config, print_current_settings
from promo_engine.data_loader import fetch_incentive_data, ingest_inventory_data
from promo_engine.errors import format_error
from promo_engine.records import utc_now
from promo_engine.recommendation_engine import RecommendationEngine
from promo_engine.report_generator import ReportGenerator
from promo_engine.agent_tools import TOOL_DEFINITIONS, build_analysis_prompt


def parse_as_of(value: str) -> datetime:
    """Parse --as-of into a datetime ("2024-03-01", "Mar 1 2024", ...)."""
    try:
        return date_parser.parse(value)
    except (ValueError, OverflowError) as e:
        raise argparse.ArgumentTypeError(f"invalid date: {value!r}") from e


def print_failure(envelope: dict):
    """Print a failure envelope in user-friendly form."""
    print(f"\nError: {envelope.get('error', 'Unknown error occurred')}")
    if envelope.get("errorType"):
        print(f"Type: {envelope['errorType']}")
    details = envelope.get("errorDetails") or {}
    for message in details.get("errors", []):
        print(f"  - {message}")


def print_header(title: str, now: datetime):
    print(f"\n{'=' * 60}")
    print(title)
    print(f"{'=' * 60}")
    print(f"As of: {now.strftime('%Y-%m-%d %H:%M:%S')}")
    print()


def print_inventory_summary(summary: dict):
    print("-" * 60)
    print("INVENTORY SUMMARY")
    print("-" * 60)
    print(f"Total Vehicles: {summary.get('total_vehicles', 0):,}")
    print(f"Average Days on Lot: {summary.get('average_days_on_lot', 0)}")
    print(f"Total MSRP Value: ${summary.get('total_msrp_value', 0):,.0f}")

    print("\nBy Aging:")
    for category, count in summary.get("by_aging", {}).items():
        print(f"  {category:<10} {count:>6,}")

    print("\nBy Make:")
    for make, count in sorted(summary.get("by_make", {}).items(), key=lambda x: x[1], reverse=True):
        print(f"  {make:<20} {count:>6,}")

    lines = summary.get("vehicle_lines", {})
    if lines:
        print(f"\n{'Vehicle Line':<35} {'Units':>6} {'Avg Days':>9} {'MSRP Value':>14}")
        print("-" * 66)
        for name, line in sorted(lines.items(), key=lambda x: x[1]["avg_days"], reverse=True):
            print(f"{name:<35} {line['count']:>6,} {line['avg_days']:>9} ${line['total_value']:>12,.0f}")


def print_incentive_summary(summary: dict):
    print("-" * 60)
    print("INCENTIVE SUMMARY")
    print("-" * 60)
    print(f"Total Incentives: {summary.get('total_incentives', 0):,}")
    print(f"Total Value: ${summary.get('total_value', 0):,.0f}")
    print(f"Average Value: ${summary.get('average_value', 0):,.0f}")

    print("\nBy Status:")
    for status, count in summary.get("by_status", {}).items():
        print(f"  {status:<10} {count:>6,}")

    print("\nBy Type:")
    for incentive_type, count in summary.get("by_type", {}).items():
        print(f"  {incentive_type:<20} {count:>6,}")

    high_value = summary.get("high_value_incentives", [])
    if high_value:
        print("\nHigh-Value Incentives:")
        for item in high_value:
            print(f"  {item['vehicle_line']:<35} ${item['value']:>8,.0f}  {item['type'] or ''}")

    expiring = summary.get("expiring_soon", [])
    if expiring:
        print("\nExpiring Soon:")
        for item in expiring:
            print(f"  {item['vehicle_line']:<35} {item['days_remaining']:>4} days  ${item['value']:>8,.0f}")


def run_inventory(args, config, now) -> int:
    path = args.path or config.inventory_path
    print_header("PROMOPILOT INVENTORY INGESTION", now)
    print(f"File: {path}\n")

    result = ingest_inventory_data(path, calculate_metrics=not args.no_metrics, now=now, config=config)
    if not result["success"]:
        print_failure(result)
        return 1

    print_inventory_summary(result["summary"])
    if result["skipped_rows"]:
        print(f"\nSkipped Rows: {result['skipped_rows']}")
    if result["future_dated_rows"]:
        print(f"Future-Dated Rows: {result['future_dated_rows']}")
    return 0


def run_incentives(args, config, now) -> int:
    path = args.path or config.incentives_path
    print_header("PROMOPILOT INCENTIVE FETCH", now)
    print(f"File: {path}\n")

    result = fetch_incentive_data(
        path,
        filter_active_only=not args.all_incentives,
        include_expired=args.include_expired,
        now=now,
        config=config,
    )
    if not result["success"]:
        print_failure(result)
        return 1

    print_incentive_summary(result["summary"])
    if result["skipped_rows"]:
        print(f"\nSkipped Entries: {result['skipped_rows']}")
    return 0


def run_analyze(args, config, now) -> int:
    print_header("PROMOPILOT PROMOTIONAL ANALYSIS", now)

    engine = RecommendationEngine(config=config)
    report_gen = ReportGenerator(config=config)

    print("Analyzing inventory aging and incentive coverage...")
    plan = engine.generate_promotion_plan(
        inventory_path=args.inventory,
        incentives_path=args.incentives,
        filter_active_only=not args.all_incentives,
        include_expired=args.include_expired,
        max_recommendations=args.max,
        now=now,
    )

    if plan.get("status") == "error":
        print(f"\nError: {plan.get('message', 'Unknown error')}")
        return 1

    recs = plan["recommendations"]
    print("\n" + "-" * 60)
    print("TOP PROMOTION RECOMMENDATIONS")
    print("-" * 60)
    if not recs:
        print("No vehicle lines to recommend.")
    else:
        print(f"{'#':>2} {'Vehicle Line':<32} {'Units':>6} {'Days':>6} {'Score':>7} {'Urgency':<9}")
        print("-" * 66)
        for rec in recs:
            print(f"{rec['rank']:>2} {rec['vehicle_line']:<32} {rec['inventory_count']:>6,} "
                  f"{rec['avg_days_on_lot']:>6} {rec['priority_score']:>7.1f} {rec['urgency']:<9}")
            print(f"   {rec['rationale']}")

    print(f"\nGenerating {args.format} report...")
    report = report_gen.generate_promotional_report(
        recs,
        inventory_summary=plan["inventory"]["summary"],
        incentive_summary=plan["incentives"]["summary"],
        output_format=args.format,
        filename=args.output,
        now=now,
    )
    if not report["success"]:
        print_failure(report)
        return 1

    print(f"Report saved to: {report['file_path']}")
    return 0


def run_tools(args, config, now) -> int:
    if args.json:
        print(json.dumps(TOOL_DEFINITIONS, indent=2))
    else:
        print("\nAvailable Agent Tools:")
        print("=" * 60)
        for tool in TOOL_DEFINITIONS:
            function = tool["function"]
            required = function["parameters"].get("required", [])
            print(f"  {function['name']}")
            print(f"      {function['description']}")
            print(f"      required: {', '.join(required) or 'none'}")

    if args.prompt:
        print("\nSystem Instruction:")
        print("-" * 60)
        print(config.system_instruction)
        print("\nAnalysis Prompt:")
        print("-" * 60)
        print(build_analysis_prompt(config=config))
    return 0


def run_settings(args, config, now) -> int:
    print_current_settings(config)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='PromoPilot Promotion Planner',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    parser.add_argument(
        '--settings', '-s',
        help='Path to a settings.yaml file (default: settings.yaml in the project folder)'
    )

    parser.add_argument(
        '--as-of',
        type=parse_as_of,
        help='Evaluate aging and incentive status as of this date (default: now)'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable debug logging'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    inventory = subparsers.add_parser('inventory', help='Ingest and summarize an inventory CSV')
    inventory.add_argument('path', nargs='?', help='Inventory CSV (default: from settings)')
    inventory.add_argument(
        '--no-metrics',
        action='store_true',
        help='Skip days-on-lot, aging and vehicle-line metrics'
    )
    inventory.set_defaults(handler=run_inventory)

    incentive_filters = argparse.ArgumentParser(add_help=False)
    incentive_filters.add_argument(
        '--all-incentives',
        action='store_true',
        help='Keep Upcoming (and, with --include-expired, Expired) incentives'
    )
    incentive_filters.add_argument(
        '--include-expired',
        action='store_true',
        help='Keep Expired incentives (only effective with --all-incentives)'
    )

    incentives = subparsers.add_parser(
        'incentives', parents=[incentive_filters], help='Fetch and summarize OEM incentives'
    )
    incentives.add_argument('path', nargs='?', help='Incentive JSON (default: from settings)')
    incentives.set_defaults(handler=run_incentives)

    analyze = subparsers.add_parser(
        'analyze', parents=[incentive_filters], help='Rank vehicle lines and write a report'
    )
    analyze.add_argument('--inventory', '-i', help='Inventory CSV (default: from settings)')
    analyze.add_argument('--incentives', '-n', help='Incentive JSON (default: from settings)')
    analyze.add_argument(
        '--format', '-f',
        choices=['json', 'markdown', 'xlsx'],
        default='json',
        help='Report format (default: json)'
    )
    analyze.add_argument('--output', '-o', help='Report filename inside the output folder')
    analyze.add_argument('--max', '-m', type=int, help='Number of vehicle lines to recommend')
    analyze.set_defaults(handler=run_analyze)

    tools = subparsers.add_parser('tools', help='List agent tool definitions')
    tools.add_argument('--json', action='store_true', help='Print the raw function-calling schemas')
    tools.add_argument('--prompt', action='store_true', help='Also print the agent instructions and prompt')
    tools.set_defaults(handler=run_tools)

    settings = subparsers.add_parser('settings', help='Show current configuration settings')
    settings.set_defaults(handler=run_settings)

    return parser


def main(argv=None):
    """Main entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    config = config_from_yaml(args.settings) if args.settings else default_config
    now = args.as_of or utc_now()

    try:
        return args.handler(args, config, now)
    except Exception as e:
        details = format_error(e)
        print(f"\nError: {details['error']}")
        print(f"Suggestion: {details['suggestion']}")
        logging.getLogger(__name__).debug("Unhandled error", exc_info=e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
