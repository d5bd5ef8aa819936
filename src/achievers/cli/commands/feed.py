"""Feed command: list stored accomplishments."""

from __future__ import annotations

import argparse
import sys

from achievers.cli.context import build_service, format_record, require_user
from achievers.models.accomplishment import ImpactType
from achievers.store.accomplishments import AccomplishmentFilter, PersistenceError


def cmd_feed(args: argparse.Namespace) -> int:
    """Print matching records, newest first."""
    service = build_service()
    try:
        if args.mine:
            user = require_user(args)
            if user is None:
                return 1
            records = service.mine(user.email)
        else:
            records = service.feed(
                AccomplishmentFilter(
                    start_date=args.since,
                    end_date=args.until,
                    user=args.user,
                    impact_type=ImpactType.parse(args.impact),
                )
            )
    except PersistenceError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not records:
        print("No accomplishments found.")
        return 0
    print("\n\n".join(format_record(r) for r in records))
    return 0
