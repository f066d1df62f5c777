#!/usr/bin/env python3
"""
Print Partner API properties, or the milestones of one property
"""
import sys
import argparse
import logging
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from partner_api.error_handler import ErrorHandler
from partner_api.integrations.clients import get_partner_client
from partner_api.integrations.errors import PartnerAPIError
from partner_api.utils.config_loader import load_partner_config


def main():
    parser = argparse.ArgumentParser(description='Show Partner API properties and milestones')
    parser.add_argument('property_id', nargs='?', default=None, help='Property id; omit to list properties')
    parser.add_argument('--config', type=Path, default=None, help='Path to Partner API config YAML file')
    parser.add_argument('--status', type=str, default=None, help='Filter properties by status')
    parser.add_argument('--limit', type=int, default=50, help='Maximum properties to list')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable verbose logging')
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    client = get_partner_client(load_partner_config(args.config))
    try:
        if args.property_id:
            prop = client.get_property(args.property_id)
            print(f"{prop.id}  {prop.address.line_1}, {prop.address.town} {prop.address.postcode}  [{prop.status}]")
            for milestone in client.iter_milestones(args.property_id):
                done = milestone.completed_at.date().isoformat() if milestone.completed_at else ""
                print(f"  {milestone.order:>2}. {milestone.name:<32} {milestone.status.value:<12} {done}")
        else:
            for count, prop in enumerate(client.iter_properties(status=args.status), start=1):
                print(f"{prop.id}  {prop.reference or '-':<16} {prop.address.postcode:<10} {prop.status}")
                if count >= args.limit:
                    break
    except PartnerAPIError as e:
        payload = ErrorHandler().handle_exception(e, context={"property_id": args.property_id})
        print(f"Error: {payload['message']}", file=sys.stderr)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
