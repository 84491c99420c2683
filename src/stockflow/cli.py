"""
StockFlow Report Runner
=======================
Command-line entry point: loads movement/item CSVs and prints usage
analytics as JSON.

Usage:
    stockflow-report --movements movements.csv --items items.csv --item-id 42
    stockflow-report --movements movements.csv --items items.csv --all --types trends,forecast
    stockflow-report --movements movements.csv --items items.csv --par-levels --output pars.json
"""

import argparse
import json
import sys
from datetime import date, datetime, timezone
from pathlib import Path

from stockflow import __version__
from stockflow.exceptions import AnalyticsError
from stockflow.services.analytics_engine import UsageAnalyticsEngine, ANALYSIS_TYPES
from stockflow.services.data_loader import DataFrameUsageSource
from stockflow.utils.constants import ENGINE_LIMITS
from stockflow.utils.logger import get_logger

logger = get_logger(__name__)


def _parse_date(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected YYYY-MM-DD, got {value!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='stockflow-report',
        description='Usage analytics and forecasting for inventory items'
    )
    parser.add_argument('--movements', required=True, help='Movement CSV file')
    parser.add_argument('--items', help='Item snapshot CSV file (stock, par levels, cost)')

    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument('--item-id', help='Analyze a single item')
    target.add_argument('--all', action='store_true', help='Analyze every item in the data')
    target.add_argument('--par-levels', action='store_true', help='Propose par levels for every item')
    target.add_argument('--turnover', action='store_true', help='Portfolio turnover summary')

    parser.add_argument('--as-of', type=_parse_date, help='Last day of analysis (default: today, UTC)')
    parser.add_argument('--period', type=int, default=ENGINE_LIMITS["default_period_days"],
                        help='Analysis window in days')
    parser.add_argument('--horizon', type=int, default=ENGINE_LIMITS["default_horizon_days"],
                        help='Forecast horizon in days')
    parser.add_argument('--types', help=f'Comma-separated subset of {",".join(ANALYSIS_TYPES)}')
    parser.add_argument('--output', help='Write JSON here instead of stdout')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def run(args: argparse.Namespace) -> dict:
    """Execute the requested analysis and return a JSON-ready result."""
    source = DataFrameUsageSource.from_csv(args.movements, args.items)
    engine = UsageAnalyticsEngine()
    as_of = args.as_of or datetime.now(timezone.utc).date()
    types = args.types.split(",") if args.types else None

    if args.item_id is not None:
        report = engine.generate_report(
            args.item_id, source, as_of,
            period_days=args.period,
            horizon_days=args.horizon,
            analysis_types=types,
        )
        return report.to_dict()

    item_ids = source.item_ids()
    if args.all:
        return engine.analyze_batch(
            item_ids, source, as_of,
            period_days=args.period,
            horizon_days=args.horizon,
            analysis_types=types,
        )
    if args.par_levels:
        return {
            "as_of": as_of.isoformat(),
            "proposals": engine.recalculate_par_levels(item_ids, source, as_of, period_days=args.period),
        }
    return engine.turnover_analysis(item_ids, source, as_of, period_days=args.period)


def main(argv=None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)

    try:
        result = run(args)
    except (AnalyticsError, FileNotFoundError, KeyError, ValueError) as e:
        logger.error(f"Analysis failed: {e}")
        return 1

    text = json.dumps(result, indent=2, default=str)
    if args.output:
        output = Path(args.output)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text, encoding='utf-8')
        logger.info(f"Report written to {output}")
    else:
        print(text)
    return 0


if __name__ == '__main__':
    sys.exit(main())
