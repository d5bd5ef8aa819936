"""Prompt template listing and AI health commands."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys

from achievers.cli.context import build_orchestrator


def cmd_prompts(args: argparse.Namespace) -> int:
    """List templates, or show one template's variables."""
    orchestrator = build_orchestrator()
    if args.schema:
        schema = orchestrator.prompt_schema(args.schema)
        if schema is None:
            print(f"Error: Prompt template '{args.schema}' not found", file=sys.stderr)
            return 1
        print(json.dumps(schema, indent=2))
        return 0

    for prompt in orchestrator.available_prompts():
        line = prompt["id"]
        if prompt["description"]:
            line += f" - {prompt['description']}"
        print(line)
    return 0


def cmd_health(args: argparse.Namespace) -> int:
    """Report whether the AI service accepts our credentials."""
    del args
    result = asyncio.run(build_orchestrator().health_check())
    print(json.dumps(result, indent=2))
    return 0 if result.get("status") == "healthy" else 1
