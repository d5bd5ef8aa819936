"""Prompt templates and the builder that resolves them.

Template names used by the orchestrator live here so callers and
tests refer to one constant per use case.
"""
from __future__ import annotations

from achievers.llm.prompts.builder import (
    ResolvedPrompt,
    ValidationResult,
    build_prompt,
    validate_variables,
)
from achievers.llm.prompts.store import (
    PACKAGED_TEMPLATES_DIR,
    ConfigError,
    PromptNotFoundError,
    PromptTemplate,
    PromptTemplateStore,
    VariableSpec,
    load_templates,
)

QUESTIONS_TEMPLATE = "contextual-questions-generation"
STATEMENT_TEMPLATE = "accomplishment-generation"
SHARE_POST_TEMPLATE = "linkedin-post-generation"

__all__ = [
    "ConfigError",
    "PACKAGED_TEMPLATES_DIR",
    "PromptNotFoundError",
    "PromptTemplate",
    "PromptTemplateStore",
    "QUESTIONS_TEMPLATE",
    "ResolvedPrompt",
    "SHARE_POST_TEMPLATE",
    "STATEMENT_TEMPLATE",
    "ValidationResult",
    "VariableSpec",
    "build_prompt",
    "load_templates",
    "validate_variables",
]
