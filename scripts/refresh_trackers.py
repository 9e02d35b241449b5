#!/usr/bin/env python
"""
Refresh Trackers Script
Probes configured trackers and records their connection status.
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from tracker_hub.utils.logger import setup_logging, get_logger
from tracker_hub.database.connection import DatabaseConnection
from tracker_hub.tracker_monitor import refresh_trackers


def main():
    """Main entry point for the refresh script."""
    parser = argparse.ArgumentParser(description='Refresh tracker connection status')
    parser.add_argument(
        '--id',
        type=int,
        dest='tracker_id',
        help='Only refresh this tracker'
    )

    args = parser.parse_args()

    setup_logging()
    logger = get_logger(__name__)

    try:
        logger.info(f"Starting tracker refresh: tracker_id={args.tracker_id}")

        stats = refresh_trackers(DatabaseConnection(), args.tracker_id)

        print(f"\n{'='*50}")
        print("Tracker Refresh Complete")
        print(f"{'='*50}")
        print(f"Checked: {stats['checked']}")
        print(f"Connected: {stats['connected']}")
        print(f"Failed: {stats['failed']}")
        print(f"Skipped: {stats['skipped']}")

        if stats['failed']:
            sys.exit(1)

    except Exception as e:
        logger.error(f"Tracker refresh failed: {e}")
        print(f"\nError: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
