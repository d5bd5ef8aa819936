"""Prompt template definitions and the read-only template store.

Templates are JSON documents, one per use case, named after their file
stem (``contextual-questions-generation.json`` becomes
``contextual-questions-generation``)::

    {
      "name": "Contextual Questions",
      "description": "...",
      "system": "...",
      "contextTemplate": "Statement: {{originalStatement}}",
      "task": "...",
      "format": "...",
      "variables": {"originalStatement": {"required": true}}
    }
"""

import json
import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

logger = logging.getLogger(__name__)

PACKAGED_TEMPLATES_DIR = Path(__file__).parent / "templates"

REQUIRED_FIELDS = ("system", "task", "format")


class ConfigError(Exception):
    """Raised when a prompt template is malformed or unavailable."""


class PromptNotFoundError(ConfigError, KeyError):
    """Raised when a template name is not in the store."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Prompt template '{name}' not found")

    def __str__(self) -> str:
        return str(self.args[0])


@dataclass(frozen=True)
class VariableSpec:
    """Declaration of a single template variable."""

    required: bool = False
    default: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "VariableSpec":
        if not isinstance(data, dict):
            return cls()
        default = data.get("default")
        return cls(
            required=bool(data.get("required", False)),
            default=None if default is None else str(default),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"required": self.required}
        if self.default is not None:
            data["default"] = self.default
        return data


@dataclass(frozen=True)
class PromptTemplate:
    """A named prompt definition. Immutable once loaded."""

    name: str
    system: str
    context_template: str
    task: str
    format: str
    variables: Mapping[str, VariableSpec] = field(
        default_factory=lambda: MappingProxyType({})
    )
    title: str = ""
    description: str = ""

    @classmethod
    def from_dict(cls, name: str, data: Any) -> "PromptTemplate":
        """Create a template from its JSON form.

        Raises:
            ConfigError: If system, task or format is missing or not a string.
        """
        if not isinstance(data, dict):
            raise ConfigError(f"Prompt template '{name}' must be a JSON object")

        missing = [
            key
            for key in REQUIRED_FIELDS
            if not isinstance(data.get(key), str) or not data[key].strip()
        ]
        if missing:
            raise ConfigError(
                f"Prompt template '{name}' is missing: {', '.join(missing)}"
            )

        raw_vars = data.get("variables") or {}
        if not isinstance(raw_vars, dict):
            raise ConfigError(f"Prompt template '{name}' has invalid variables")

        variables = {
            str(key): VariableSpec.from_dict(value) for key, value in raw_vars.items()
        }
        return cls(
            name=name,
            system=data["system"],
            context_template=str(data.get("contextTemplate") or ""),
            task=data["task"],
            format=data["format"],
            variables=MappingProxyType(variables),
            title=str(data.get("name") or name),
            description=str(data.get("description") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON template form."""
        return {
            "name": self.title,
            "description": self.description,
            "system": self.system,
            "contextTemplate": self.context_template,
            "task": self.task,
            "format": self.format,
            "variables": {k: v.to_dict() for k, v in self.variables.items()},
        }


class PromptTemplateStore:
    """Read-only lookup table of prompt templates.

    Constructed once and injected where needed; safe to read from
    concurrent calls since nothing mutates it after construction.
    """

    def __init__(self, templates: Iterable[PromptTemplate] = ()) -> None:
        self._templates: Mapping[str, PromptTemplate] = MappingProxyType(
            {template.name: template for template in templates}
        )

    def get(self, name: str) -> PromptTemplate:
        """Get a template by name.

        Raises:
            PromptNotFoundError: If no template has this name.
        """
        try:
            return self._templates[name]
        except KeyError:
            raise PromptNotFoundError(name) from None

    def find(self, name: str) -> PromptTemplate | None:
        """Get a template by name, or None."""
        return self._templates.get(name)

    def names(self) -> list[str]:
        return sorted(self._templates)

    def __contains__(self, name: object) -> bool:
        return name in self._templates

    def __iter__(self) -> Iterator[PromptTemplate]:
        return iter(self._templates[name] for name in self.names())

    def __len__(self) -> int:
        return len(self._templates)

    @classmethod
    def load(cls, *sources: Path) -> "PromptTemplateStore":
        """Build a store from one or more template directories."""
        return cls(load_templates(*sources).values())

    @classmethod
    def default(cls) -> "PromptTemplateStore":
        """Packaged templates, overridden by workspace .achievers/prompts/."""
        from achievers.config.paths import get_paths

        return cls.load(PACKAGED_TEMPLATES_DIR, get_paths().prompt_overrides_dir)


def _load_file(path: Path) -> PromptTemplate:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(
            f"Prompt template '{path.stem}' is not valid JSON: {e}"
        ) from e
    except OSError as e:
        raise ConfigError(f"Could not read prompt template {path}: {e}") from e
    return PromptTemplate.from_dict(path.stem, data)


def load_templates(*sources: Path) -> dict[str, PromptTemplate]:
    """Load every *.json template from the given directories.

    Later sources override earlier ones by name. Missing directories are
    ignored. A malformed template is skipped with a warning; it never
    aborts the whole load.
    """
    templates: dict[str, PromptTemplate] = {}
    for source in sources:
        if not source.is_dir():
            logger.debug("Prompt source %s does not exist, skipping", source)
            continue
        for path in sorted(source.glob("*.json")):
            try:
                template = _load_file(path)
            except ConfigError as e:
                logger.warning("Skipping prompt template %s: %s", path.name, e)
                continue
            if template.name in templates:
                logger.info("Prompt template %s overridden by %s", template.name, path)
            templates[template.name] = template

    logger.info("Loaded %d prompt templates", len(templates))
    return templates
