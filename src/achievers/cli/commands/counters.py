"""Congratulate and vote commands."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Callable

from achievers.cli.context import build_service
from achievers.store.accomplishments import PersistenceError


def _increment(
    accomplishment_id: str, increment: Callable[[str], int], label: str
) -> int:
    try:
        count = increment(accomplishment_id)
    except PersistenceError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(f"{accomplishment_id}: {count} {label}")
    return 0


def cmd_congratulate(args: argparse.Namespace) -> int:
    service = build_service()
    return _increment(args.id, service.congratulate, "congratulations")


def cmd_vote(args: argparse.Namespace) -> int:
    service = build_service()
    return _increment(args.id, service.vote, "votes")
