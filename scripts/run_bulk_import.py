#!/usr/bin/env python3
"""
Bulk-create clients/properties in the Partner API from a CSV or JSON file
"""
import sys
import argparse
import json
import logging
from pathlib import Path
from typing import Optional

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from partner_api.bulk_import import BulkImporter, load_rows, pacing_rpm
from partner_api.integrations.clients import get_partner_client
from partner_api.utils.config_loader import load_partner_config
from partner_api.utils.rate_limiter import RateLimiter


def setup_logging(verbose: bool = False, log_file: Optional[Path] = None):
    """Setup logging configuration"""
    level = logging.DEBUG if verbose else logging.INFO

    handlers = [logging.StreamHandler()]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )


def main():
    """Main entry point for bulk import"""
    parser = argparse.ArgumentParser(
        description='Bulk-create clients and properties through the Partner API',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Validate a file without calling the API
  python scripts/run_bulk_import.py --file data/clients.csv --dry-run

  # Import at 30 requests per minute
  python scripts/run_bulk_import.py --file data/clients.csv --rpm 30

  # Import with a custom config and write the summary to JSON
  python scripts/run_bulk_import.py --file data/clients.json --config config/prod.yml --report out/import.json
        """
    )

    parser.add_argument('--file', type=Path, required=True, help='CSV or JSON file of client/property rows')
    parser.add_argument(
        '--config',
        type=Path,
        default=None,
        help='Path to Partner API config YAML file (default: config/partner_api.yml)'
    )
    parser.add_argument('--dry-run', action='store_true', help='Validate rows only; do not call the API')
    parser.add_argument('--rpm', type=int, default=None, help='Requests per minute (overrides config)')
    parser.add_argument('--report', type=Path, default=None, help='Write the import summary as JSON to this path')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable verbose logging')
    parser.add_argument('--log-file', type=Path, default=None, help='Path to log file (optional)')

    args = parser.parse_args()

    setup_logging(verbose=args.verbose, log_file=args.log_file)
    logger = logging.getLogger(__name__)

    try:
        config = load_partner_config(args.config)
        rows = load_rows(args.file)
        logger.info(f"Loaded {len(rows)} rows from {args.file}")

        rpm = pacing_rpm(config, args.rpm)
        importer = BulkImporter(get_partner_client(config), RateLimiter(requests_per_minute=rpm))
        result = importer.run(rows, dry_run=args.dry_run)

        print("\n" + "=" * 60)
        print("BULK IMPORT SUMMARY")
        print("=" * 60)
        print(f"Rows:     {result.total}")
        print(f"Created:  {result.created}")
        print(f"Failed:   {result.failed}")
        if result.aborted:
            print("Aborted:  yes (credentials rejected)")
        for error in result.errors[:20]:
            print(f"  row {error.row} ({error.reference or '-'}): {error.message}")
            for field_name, messages in error.field_errors.items():
                print(f"      {field_name}: {'; '.join(messages)}")
        print("=" * 60)

        if args.report:
            args.report.parent.mkdir(parents=True, exist_ok=True)
            args.report.write_text(json.dumps(result.to_dict(), indent=2), encoding="utf-8")
            logger.info(f"Wrote report to {args.report}")

        return 1 if (result.failed or result.aborted) else 0

    except KeyboardInterrupt:
        logger.warning("Import interrupted by user")
        return 130
    except Exception as e:
        logger.error(f"Import failed: {e}", exc_info=True)
        return 1


if __name__ == '__main__':
    sys.exit(main())
