"""AI orchestration for the accomplishment use cases.

Each use case follows the same two-phase protocol:

1. attempt: build the named prompt and run it through the provider
2. fallback: on any failure, synthesize a deterministic local answer

so the primary generation calls never raise to their caller. Only a
bug in the fallback generation itself would propagate.
"""

import json
import logging
import random
import re
import time
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, TypeVar

from achievers.llm.metrics import LLMCall, MetricsCollector
from achievers.llm.prompts import (
    QUESTIONS_TEMPLATE,
    SHARE_POST_TEMPLATE,
    STATEMENT_TEMPLATE,
    PromptTemplateStore,
    ValidationResult,
    build_prompt,
    validate_variables,
)
from achievers.llm.providers.base import (
    AuthError,
    LLMProvider,
    ResponseShapeError,
    error_type_of,
)
from achievers.models.accomplishment import (
    Accomplishment,
    AccomplishmentDraft,
    ImpactType,
)
from achievers.orchestration.fallback import (
    fallback_questions,
    fallback_share_post,
    fallback_statement,
    truncate_words,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

MIN_QUESTIONS = 3
MAX_QUESTIONS = 5

_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def parse_questions(text: str) -> list[str]:
    """Decode the questions response into a list of 3-5 non-empty strings.

    A surrounding ```json fence is tolerated.

    Raises:
        ResponseShapeError: If the text is not a JSON array of that shape.
    """
    body = text.strip()
    fenced = _FENCE.match(body)
    if fenced:
        body = fenced.group(1)

    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        raise ResponseShapeError(f"Questions response is not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise ResponseShapeError(
            f"Questions response must be a JSON array, got {type(data).__name__}"
        )
    if not MIN_QUESTIONS <= len(data) <= MAX_QUESTIONS:
        raise ResponseShapeError(
            f"Expected {MIN_QUESTIONS}-{MAX_QUESTIONS} questions, got {len(data)}"
        )

    questions: list[str] = []
    for item in data:
        if not isinstance(item, str) or not item.strip():
            raise ResponseShapeError("Every question must be a non-empty string")
        questions.append(item.strip())
    return questions


class AIOrchestrator:
    """Facade over the template store and the LLM provider."""

    def __init__(
        self,
        templates: PromptTemplateStore,
        provider: LLMProvider | None,
        metrics: MetricsCollector | None = None,
        rng: random.Random | None = None,
        statement_word_limit: int = 100,
        enforce_statement_word_limit: bool = False,
    ) -> None:
        self.templates = templates
        self.provider = provider
        self.metrics = metrics
        self._rng = rng or random.Random()
        self.statement_word_limit = statement_word_limit
        self.enforce_statement_word_limit = enforce_statement_word_limit

    @classmethod
    def from_settings(
        cls,
        templates: PromptTemplateStore | None = None,
        metrics: MetricsCollector | None = None,
    ) -> "AIOrchestrator":
        """Build an orchestrator from settings and packaged templates.

        Missing credentials are not fatal: every call then uses fallback.
        """
        from achievers.config.settings import settings
        from achievers.llm.providers.ai_core import AICoreProvider

        provider: LLMProvider | None
        try:
            provider = AICoreProvider.from_settings()
        except AuthError as e:
            logger.warning("AI provider unavailable, fallback only: %s", e)
            provider = None

        return cls(
            templates=templates or PromptTemplateStore.default(),
            provider=provider,
            metrics=metrics,
            statement_word_limit=settings.statement_word_limit,
            enforce_statement_word_limit=settings.enforce_statement_word_limit,
        )

    @property
    def provider_name(self) -> str:
        return self.provider.provider_name if self.provider else "fallback-only"

    # --- Shared protocol ---

    async def _complete(self, template_name: str, variables: Mapping[str, Any]) -> str:
        """Build the named prompt and run it through the provider."""
        if self.provider is None:
            raise AuthError("No AI provider configured")

        template = self.templates.get(template_name)
        check = validate_variables(template, variables)
        if not check.valid:
            # Not blocking: missing required variables resolve to empty strings.
            logger.warning(
                "Prompt %s built with missing variables: %s",
                template_name,
                "; ".join(check.errors),
            )
        prompt = build_prompt(template, variables)
        return await self.provider.complete(prompt)

    def _record(
        self,
        use_case: str,
        start_time: float,
        success: bool,
        used_fallback: bool,
        error: BaseException | None = None,
    ) -> None:
        if self.metrics is None:
            return
        elapsed_ms = int((time.perf_counter() - start_time) * 1000)
        self.metrics.record(
            LLMCall.create(
                use_case=use_case,
                latency_ms=elapsed_ms,
                model=self.provider.model if self.provider else "fallback",
                success=success,
                used_fallback=used_fallback,
                error=str(error) if error is not None else None,
                error_type=error_type_of(error).value if error is not None else None,
            )
        )

    async def _with_fallback(
        self,
        use_case: str,
        attempt: Callable[[], Awaitable[T]],
        fallback: Callable[[], T],
    ) -> T:
        logger.info("Generating %s", use_case)
        start_time = time.perf_counter()
        try:
            result = await attempt()
        except Exception as e:
            logger.warning("%s failed, using fallback: %s", use_case, e)
            self._record(
                use_case, start_time, success=False, used_fallback=True, error=e
            )
            return fallback()

        logger.info("Generated %s via LLM", use_case)
        self._record(use_case, start_time, success=True, used_fallback=False)
        return result

    # --- Use cases ---

    async def generate_contextual_questions(
        self,
        original_statement: str,
        impact_type: ImpactType | None,
        email_appreciation: str | None = None,
    ) -> list[str]:
        """Generate 3-5 follow-up questions for a basic entry."""
        variables = {
            "originalStatement": original_statement,
            "impactType": impact_type.value if impact_type else "",
            "emailAppreciation": email_appreciation or "",
        }

        async def attempt() -> list[str]:
            return parse_questions(await self._complete(QUESTIONS_TEMPLATE, variables))

        return await self._with_fallback(
            "contextual questions",
            attempt,
            lambda: fallback_questions(impact_type, self._rng),
        )

    async def generate_accomplishment_statement(
        self, draft: AccomplishmentDraft
    ) -> str:
        """Generate a polished statement for a draft.

        The LLM text is returned verbatim unless enforce_statement_word_limit
        is set; the fallback always honors statement_word_limit.
        """

        async def attempt() -> str:
            variables = draft.statement_variables()
            text = (await self._complete(STATEMENT_TEMPLATE, variables)).strip()
            if not text:
                raise ResponseShapeError("Statement response is blank")
            if self.enforce_statement_word_limit:
                return truncate_words(text, self.statement_word_limit)
            return text

        return await self._with_fallback(
            "accomplishment statement",
            attempt,
            lambda: fallback_statement(draft, self.statement_word_limit),
        )

    async def generate_shareable_post(self, accomplishment: Accomplishment) -> str:
        """Generate a social post celebrating a stored accomplishment."""
        variables = {
            "userName": accomplishment.user_name,
            "statement": accomplishment.ai_generated_statement,
            "impactType": accomplishment.impact_type.value,
        }

        async def attempt() -> str:
            text = (await self._complete(SHARE_POST_TEMPLATE, variables)).strip()
            if not text:
                raise ResponseShapeError("Share post response is blank")
            return text

        return await self._with_fallback(
            "shareable post",
            attempt,
            lambda: fallback_share_post(
                accomplishment.user_name,
                accomplishment.ai_generated_statement,
                accomplishment.impact_type,
            ),
        )

    async def generate_with_prompt(
        self, template_name: str, variables: Mapping[str, Any] | None = None
    ) -> str:
        """Run any template. No fallback: failures propagate."""
        logger.info("Generating content with prompt %s", template_name)
        start_time = time.perf_counter()
        use_case = f"prompt:{template_name}"
        try:
            text = await self._complete(template_name, variables or {})
        except Exception as e:
            logger.error("Generation failed for prompt %s: %s", template_name, e)
            self._record(
                use_case, start_time, success=False, used_fallback=False, error=e
            )
            raise
        self._record(use_case, start_time, success=True, used_fallback=False)
        return text

    # --- Introspection ---

    def validate_prompt_variables(
        self, template_name: str, variables: Mapping[str, Any] | None = None
    ) -> ValidationResult:
        """Validate variables for a template; unknown templates are an error."""
        template = self.templates.find(template_name)
        if template is None:
            return ValidationResult(
                valid=False, errors=[f"Prompt template '{template_name}' not found"]
            )
        return validate_variables(template, variables)

    def available_prompts(self) -> list[dict[str, str]]:
        return [
            {"id": t.name, "name": t.title, "description": t.description}
            for t in self.templates
        ]

    def prompt_schema(self, template_name: str) -> dict[str, Any] | None:
        template = self.templates.find(template_name)
        if template is None:
            return None
        return {name: var.to_dict() for name, var in template.variables.items()}

    async def health_check(self) -> dict[str, object]:
        if self.provider is None:
            return {
                "status": "unhealthy",
                "provider": self.provider_name,
                "error": "No AI provider configured",
            }
        return await self.provider.health_check()

