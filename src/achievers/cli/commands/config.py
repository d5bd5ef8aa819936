"""Settings and call-metrics commands."""

from __future__ import annotations

import argparse
import json

from achievers.config.paths import get_paths
from achievers.config.settings import settings
from achievers.llm.metrics import MetricsCollector


def _describe() -> dict[str, object]:
    return {
        "settings_file": str(get_paths().global_settings),
        "current_user": settings.current_user,
        "credentials_configured": all(
            (
                settings.auth_url,
                settings.client_id,
                settings.client_secret,
                settings.api_url,
            )
        ),
        "resource_group": settings.resource_group,
        "deployment_id": settings.deployment_id,
        "cache_tokens": settings.cache_tokens,
        "word_limit": settings.word_limit,
        "statement_word_limit": settings.statement_word_limit,
        "enforce_statement_word_limit": settings.enforce_statement_word_limit,
    }


def cmd_config(args: argparse.Namespace) -> int:
    """Apply any requested changes, then print the effective settings."""
    if args.user:
        email, name = args.user
        settings.current_user = {"email": email, "name": name}
    elif args.clear_user:
        settings.current_user = None
    if args.cache_tokens:
        settings.cache_tokens = args.cache_tokens == "on"
    if args.enforce_statement_limit:
        settings.enforce_statement_word_limit = args.enforce_statement_limit == "on"

    print(json.dumps(_describe(), indent=2))
    return 0


def cmd_metrics(args: argparse.Namespace) -> int:
    """Print the summary of ai-calls.jsonl."""
    del args
    summary = MetricsCollector(get_paths().ai_calls).summary()
    print(json.dumps(summary, indent=2))
    return 0
