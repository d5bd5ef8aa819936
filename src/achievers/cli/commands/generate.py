"""Question and statement generation commands."""

from __future__ import annotations

import argparse
import asyncio
import sys

from achievers.cli.context import build_orchestrator, build_service, require_user
from achievers.config.settings import settings
from achievers.models.accomplishment import (
    AccomplishmentDraft,
    ContextualAnswer,
    ImpactType,
)
from achievers.models.submission import FieldError, validate_basic_fields
from achievers.store.accomplishments import PersistenceError


def _report(errors: list[FieldError]) -> None:
    for error in errors:
        print(f"Error: {error.message}", file=sys.stderr)


def _basic_draft(args: argparse.Namespace, draft: AccomplishmentDraft) -> None:
    draft.original_statement = args.original_statement
    draft.impact_type = ImpactType.parse(args.impact)
    draft.email_appreciation = args.appreciation


def cmd_questions(args: argparse.Namespace) -> int:
    """Print follow-up questions for an accomplishment, one per line."""
    draft = AccomplishmentDraft(user_id="", user_name="")
    _basic_draft(args, draft)
    errors = validate_basic_fields(draft, settings.word_limit)
    if errors:
        _report(errors)
        return 1

    orchestrator = build_orchestrator()
    questions = asyncio.run(
        orchestrator.generate_contextual_questions(
            draft.original_statement, draft.impact_type, draft.email_appreciation
        )
    )
    for i, question in enumerate(questions, start=1):
        print(f"{i}. {question}")
    return 0


def cmd_statement(args: argparse.Namespace) -> int:
    """Generate a statement and optionally save it."""
    user = require_user(args)
    if user is None:
        return 1

    draft = AccomplishmentDraft.for_user(user)
    _basic_draft(args, draft)
    draft.contextual_answers = [
        ContextualAnswer(question=question, answer=answer)
        for question, answer in args.qa
    ]
    errors = validate_basic_fields(draft, settings.word_limit)
    if errors:
        _report(errors)
        return 1

    service = build_service()
    if not args.submit:
        print(
            asyncio.run(service.orchestrator.generate_accomplishment_statement(draft))
        )
        return 0

    try:
        record = asyncio.run(service.submit(draft))
    except PersistenceError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(record.ai_generated_statement)
    print(f"\nSaved accomplishment {record.id}")
    return 0
