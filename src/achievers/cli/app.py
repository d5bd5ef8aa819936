"""CLI orchestration and command routing."""

from __future__ import annotations

import argparse
import logging
import os
from collections.abc import Callable, Sequence
from pathlib import Path

from achievers.cli.commands import (
    cmd_config,
    cmd_congratulate,
    cmd_feed,
    cmd_health,
    cmd_metrics,
    cmd_prompts,
    cmd_questions,
    cmd_share,
    cmd_statement,
    cmd_tui,
    cmd_vote,
)
from achievers.cli.parser import parse_args
from achievers.config.paths import reset_paths

logger = logging.getLogger(__name__)


def dispatch(args: argparse.Namespace) -> int:
    """Route parsed args to the correct command handler."""
    command_handlers: dict[str, Callable[[argparse.Namespace], int]] = {
        "tui": cmd_tui,
        "questions": cmd_questions,
        "statement": cmd_statement,
        "share": cmd_share,
        "feed": cmd_feed,
        "congratulate": cmd_congratulate,
        "vote": cmd_vote,
        "prompts": cmd_prompts,
        "health": cmd_health,
        "metrics": cmd_metrics,
        "config": cmd_config,
    }

    if args.command is None:
        return cmd_tui(args)

    handler = command_handlers.get(args.command)
    if handler is None:
        return cmd_tui(args)

    return handler(args)


def run(
    argv: Sequence[str] | None = None,
    *,
    configure_logging: Callable[[], None] | None = None,
) -> int:
    """Parse args, apply shared CLI setup, and execute command."""
    args = parse_args(argv)

    if args.workdir:
        workdir = args.workdir.resolve()
        workdir.mkdir(parents=True, exist_ok=True)
        os.chdir(workdir)
        # Workspace paths follow the new working directory
        reset_paths()

    if configure_logging is not None:
        configure_logging()

    logger.info("Working directory: %s", Path.cwd())
    return dispatch(args)
