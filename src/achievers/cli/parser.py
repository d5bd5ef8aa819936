"""Argument parser construction for Achievers CLI."""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from datetime import date
from pathlib import Path

IMPACT_CHOICES = ["team", "customer"]
SWITCH_CHOICES = ["on", "off"]


def build_parser() -> argparse.ArgumentParser:
    """Build and return the top-level CLI parser."""
    parser = argparse.ArgumentParser(
        description="Achievers - record and celebrate accomplishments"
    )
    parser.add_argument(
        "--workdir",
        "-w",
        type=Path,
        help="Working directory for records and logs (default: current directory)",
    )
    parser.add_argument(
        "--email",
        help="Submitting user's email (default: current_user from settings)",
    )
    parser.add_argument(
        "--name",
        help="Submitting user's display name (default: current_user from settings)",
    )

    # Subcommands
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("tui", help="Open the terminal UI (default)")

    # Questions command
    questions_parser = subparsers.add_parser(
        "questions",
        help="Generate follow-up questions for an accomplishment",
    )
    _add_basic_fields(questions_parser)

    # Statement command
    statement_parser = subparsers.add_parser(
        "statement",
        help="Generate a polished accomplishment statement",
    )
    _add_basic_fields(statement_parser)
    statement_parser.add_argument(
        "--qa",
        nargs=2,
        action="append",
        metavar=("QUESTION", "ANSWER"),
        default=[],
        help="A follow-up question and its answer (repeatable)",
    )
    statement_parser.add_argument(
        "--submit",
        action="store_true",
        help="Save the generated statement as a new accomplishment",
    )

    # Share command
    share_parser = subparsers.add_parser(
        "share",
        help="Generate a social post for a stored accomplishment",
    )
    share_parser.add_argument("id", help="Accomplishment id")

    # Feed command
    feed_parser = subparsers.add_parser(
        "feed",
        help="List stored accomplishments, newest first",
    )
    feed_parser.add_argument(
        "--since",
        type=date.fromisoformat,
        help="Only include records created on or after this date (YYYY-MM-DD)",
    )
    feed_parser.add_argument(
        "--until",
        type=date.fromisoformat,
        help="Only include records created on or before this date (YYYY-MM-DD)",
    )
    feed_parser.add_argument(
        "--user",
        help="Case-insensitive substring of the user's name or email",
    )
    feed_parser.add_argument("--impact", choices=IMPACT_CHOICES)
    feed_parser.add_argument(
        "--mine",
        action="store_true",
        help="Only show the current user's accomplishments",
    )

    # Counter commands
    congratulate_parser = subparsers.add_parser(
        "congratulate",
        help="Congratulate an accomplishment",
    )
    congratulate_parser.add_argument("id", help="Accomplishment id")
    vote_parser = subparsers.add_parser(
        "vote",
        help="Vote for an accomplishment",
    )
    vote_parser.add_argument("id", help="Accomplishment id")

    # Prompts command
    prompts_parser = subparsers.add_parser(
        "prompts",
        help="List available prompt templates",
    )
    prompts_parser.add_argument(
        "--schema",
        metavar="NAME",
        help="Show the variables of one template",
    )

    subparsers.add_parser("health", help="Check connectivity to the AI service")

    subparsers.add_parser(
        "metrics",
        help="Summarize recorded AI calls for this workspace",
    )

    # Config command
    config_parser = subparsers.add_parser(
        "config",
        help="Show or change persistent settings",
    )
    user_group = config_parser.add_mutually_exclusive_group()
    user_group.add_argument(
        "--user",
        nargs=2,
        metavar=("EMAIL", "NAME"),
        help="Set the default submitting user",
    )
    user_group.add_argument(
        "--clear-user",
        action="store_true",
        help="Forget the default submitting user",
    )
    config_parser.add_argument(
        "--cache-tokens",
        choices=SWITCH_CHOICES,
        help="Reuse access tokens until they expire",
    )
    config_parser.add_argument(
        "--enforce-statement-limit",
        choices=SWITCH_CHOICES,
        help="Truncate AI statements to the statement word limit",
    )

    return parser


def _add_basic_fields(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("original_statement", help="What you accomplished")
    parser.add_argument(
        "--impact",
        choices=IMPACT_CHOICES,
        required=True,
        help="Who benefited",
    )
    parser.add_argument(
        "--appreciation",
        default="",
        help="Appreciation received by email, if any",
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    return build_parser().parse_args(argv)
