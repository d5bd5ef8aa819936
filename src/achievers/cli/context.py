"""Shared context helpers for CLI command modules."""

from __future__ import annotations

import argparse
import sys

from achievers.config.paths import get_paths
from achievers.config.settings import settings
from achievers.llm.metrics import MetricsCollector
from achievers.models.accomplishment import Accomplishment, CurrentUser
from achievers.orchestration.accomplishment_service import AccomplishmentService
from achievers.orchestration.ai_orchestrator import AIOrchestrator
from achievers.store.accomplishments import JsonlAccomplishmentStore


def build_orchestrator() -> AIOrchestrator:
    """Orchestrator wired to settings, packaged templates and call metrics."""
    return AIOrchestrator.from_settings(metrics=MetricsCollector(get_paths().ai_calls))


def build_service(orchestrator: AIOrchestrator | None = None) -> AccomplishmentService:
    return AccomplishmentService(
        JsonlAccomplishmentStore.default(), orchestrator or build_orchestrator()
    )


def resolve_user(args: argparse.Namespace) -> CurrentUser | None:
    """Identity from --email/--name, falling back to settings.current_user."""
    configured = settings.current_user or {}
    email = getattr(args, "email", None) or configured.get("email")
    name = getattr(args, "name", None) or configured.get("name") or email
    if not email or not name:
        return None
    return CurrentUser(email=email, name=name)


def require_user(args: argparse.Namespace) -> CurrentUser | None:
    """Resolve the current user or print a user-facing error and return None."""
    user = resolve_user(args)
    if user is None:
        print(
            "Error: No current user. Pass --email/--name or set current_user "
            f"in {get_paths().global_settings}",
            file=sys.stderr,
        )
    return user


def format_record(record: Accomplishment) -> str:
    """Multi-line text block for one feed entry."""
    created = record.created_at.strftime("%Y-%m-%d %H:%M")
    return (
        f"[{record.id}] {record.user_name} <{record.user_id}> "
        f"({record.impact_type.value}, {created})\n"
        f"  {record.ai_generated_statement}\n"
        f"  congratulations: {record.congratulations_count}  "
        f"votes: {record.votes_count}"
    )
