#!/usr/bin/env python
"""
Initialize Database Script
Creates the tracker hub schema and optionally loads identities and trackers
from a seed file (see tracker_hub/database/seed.py for the format).
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import inspect

from tracker_hub.utils.logger import setup_logging, get_logger
from tracker_hub.database.connection import DatabaseConnection
from tracker_hub.database.models import Base
from tracker_hub.database.seed import SeedError, load_seed_file, seed


def main():
    """Main entry point for database initialization."""
    parser = argparse.ArgumentParser(description='Create the tracker hub tables')
    parser.add_argument('--url', help='Database URL overriding the configured one')
    parser.add_argument(
        '--drop',
        action='store_true',
        help='Drop the identities and trackers tables first (deletes all connections)'
    )
    parser.add_argument('--yes', action='store_true', help='Do not ask before dropping')
    parser.add_argument('--seed', metavar='FILE', help='YAML file of identities and trackers to create')

    args = parser.parse_args()

    setup_logging()
    logger = get_logger(__name__)

    db = DatabaseConnection(url=args.url)
    if not db.check_connection():
        print("Error: Cannot connect to database")
        sys.exit(1)

    try:
        if args.drop:
            if not args.yes:
                confirm = input("Drop all trackers and identities? (yes/no): ")
                if confirm.lower() != 'yes':
                    print("Cancelled")
                    sys.exit(0)
            logger.warning("Dropping tracker hub tables")
            Base.metadata.drop_all(db.engine)

        db.create_all()
        tables = sorted(inspect(db.engine).get_table_names())
        print(f"Tables: {', '.join(tables)}")

        if args.seed:
            stats = seed(db, load_seed_file(args.seed))
            print(
                f"Seeded {stats['identities']} identities, {stats['trackers']} trackers "
                f"({stats['skipped']} already present)"
            )

    except (OSError, SeedError) as e:
        print(f"Error: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        print(f"\nError: {e}")
        sys.exit(1)
    finally:
        db.dispose()


if __name__ == '__main__':
    main()
