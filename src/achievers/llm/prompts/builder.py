"""Resolve prompt templates into ready-to-send prompts."""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from achievers.llm.prompts.store import PromptTemplate


@dataclass(frozen=True)
class ResolvedPrompt:
    """A template with every known placeholder substituted."""

    system: str
    context: str
    task: str
    format: str

    @property
    def user_message(self) -> str:
        """Context, task and format separated by blank lines."""
        return f"{self.context}\n\n{self.task}\n\n{self.format}"


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    errors: list[str] = field(default_factory=list)


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == "")


def resolve_variables(
    template: PromptTemplate, variables: Mapping[str, Any]
) -> dict[str, str]:
    """Compute the effective value of each declared variable.

    Supplied non-empty value, else the declared default, else empty.
    Required variables with nothing to fall back on also resolve to empty;
    use validate_variables() to detect them.
    """
    resolved: dict[str, str] = {}
    for name, declared in template.variables.items():
        value = variables.get(name)
        if not _is_empty(value):
            resolved[name] = str(value)
        elif declared.default is not None:
            resolved[name] = declared.default
        else:
            resolved[name] = ""
    return resolved


def substitute(text: str, values: Mapping[str, str]) -> str:
    """Replace {{name}} for every name in values, in a single pass.

    Names are matched literally, so hyphens and spaces are allowed.
    Placeholders with no value stay verbatim, and substituted values are
    never rescanned.
    """
    if not values:
        return text
    names = sorted(values, key=len, reverse=True)
    pattern = re.compile(
        r"\{\{(" + "|".join(re.escape(name) for name in names) + r")\}\}"
    )
    return pattern.sub(lambda match: values[match.group(1)], text)


def build_prompt(
    template: PromptTemplate, variables: Mapping[str, Any] | None = None
) -> ResolvedPrompt:
    """Build a finalized prompt from a template and variable mapping.

    System, task and format are returned exactly as declared; only the
    context template is substituted (then trimmed).
    """
    values = resolve_variables(template, variables or {})
    context = substitute(template.context_template, values)
    return ResolvedPrompt(
        system=template.system,
        context=context.strip(),
        task=template.task,
        format=template.format,
    )


def validate_variables(
    template: PromptTemplate, variables: Mapping[str, Any] | None = None
) -> ValidationResult:
    """List each required variable that was not supplied.

    A declared default does not satisfy a required variable. This check
    is advisory: build_prompt() does not call it.
    """
    supplied = variables or {}
    errors = [
        f"Required variable '{name}' is missing"
        for name, declared in template.variables.items()
        if declared.required and _is_empty(supplied.get(name))
    ]
    return ValidationResult(valid=not errors, errors=errors)
