#!/usr/bin/env python3
"""
OEE Report Script

Replays a CSV export of equipment events through the loss waterfall engine
and prints the waterfall, OEE percentages and ranked losses per equipment.

Usage:
    python scripts/oee_report.py --events examples/sample_events.csv --start 2024-03-01T06:00:00+00:00
    python scripts/oee_report.py --events events.csv --start 2024-03-01T06:00:00+01:00 --hours 24 --unit h
"""

import argparse
import sys
from datetime import timedelta
from pathlib import Path
import logging

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from oee_engine.config import load_config
from oee_engine.analytics.pareto import ParetoProjector
from oee_engine.streams.event_loader import load_events_csv
from oee_engine.streams.event_processor import process_events
from oee_engine.uom.units import UnitConverter
from oee_engine.utils.datetime_utils import offset_datetime_from_string

logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description='Compute OEE loss waterfalls from equipment events')

    parser.add_argument(
        '--events',
        type=str,
        required=True,
        help='CSV file of equipment events'
    )

    parser.add_argument(
        '--config',
        type=str,
        default=str(PROJECT_ROOT / 'config' / 'engine.yaml'),
        help='Engine configuration (YAML)'
    )

    parser.add_argument(
        '--start',
        type=str,
        required=True,
        help='Window start, ISO-8601 with UTC offset'
    )

    parser.add_argument(
        '--hours',
        type=float,
        default=8.0,
        help='Window length in hours'
    )

    parser.add_argument(
        '--unit',
        type=str,
        default=None,
        help='Time unit for the loss report (default: from configuration)'
    )

    parser.add_argument(
        '--log-level',
        type=str,
        default=None,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (default: from configuration)'
    )

    args = parser.parse_args()

    try:
        config = load_config(args.config)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    # Setup logging
    logging.basicConfig(
        level=getattr(logging, args.log_level or config.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    converter = UnitConverter()
    time_unit = args.unit or config.report_time_unit

    try:
        window_start = offset_datetime_from_string(args.start)
        events = load_events_csv(args.events, converter)
        ledgers = process_events(
            events,
            config,
            window_start,
            timedelta(hours=args.hours),
            converter=converter
        )
    except Exception as e:
        logger.error(f"Report failed: {e}")
        sys.exit(1)

    projector = ParetoProjector(time_unit=time_unit)

    for equipment, ledger in sorted(ledgers.items()):
        summary = ledger.summary()

        print("=" * 60)
        print(f"Equipment: {equipment}")
        print(f"Window: {ledger.start_date_time.isoformat()} - {ledger.end_date_time.isoformat()}")
        print("=" * 60)

        for name, duration in ledger.get_waterfall().items():
            amount = ledger.convert_seconds(duration.total_seconds(), converter.get_unit(time_unit))
            print(f"  {name:<32} {amount:>12.2f} {time_unit}")

        print()
        for metric in ('oee', 'availability', 'performance', 'quality'):
            value = summary[metric]
            text = f"{value:.2f}%" if value is not None else "undefined"
            print(f"  {metric.upper():<32} {text:>12}")

        print()
        frame = projector.to_dataframe(ledger)
        print(frame.to_string(float_format=lambda v: f"{v:.2f}") if not frame.empty else "  No losses recorded")
        print()


if __name__ == '__main__':
    main()
