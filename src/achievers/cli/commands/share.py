"""Share command: social post for a stored accomplishment."""

from __future__ import annotations

import argparse
import asyncio
import sys

from achievers.cli.context import build_service
from achievers.store.accomplishments import PersistenceError


def cmd_share(args: argparse.Namespace) -> int:
    service = build_service()
    try:
        post = asyncio.run(service.share(args.id))
    except PersistenceError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(post)
    return 0
