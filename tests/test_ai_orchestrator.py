"""Tests for AIOrchestrator success and fallback paths."""

import asyncio
import json
import logging
import random
from datetime import UTC, datetime

import pytest

from achievers.llm.metrics import MetricsCollector
from achievers.llm.prompts import (
    PACKAGED_TEMPLATES_DIR,
    QUESTIONS_TEMPLATE,
    STATEMENT_TEMPLATE,
    PromptNotFoundError,
    PromptTemplateStore,
)
from achievers.llm.providers.base import AuthError, LLMCallError, ResponseShapeError
from achievers.models.accomplishment import (
    Accomplishment,
    AccomplishmentDraft,
    ContextualAnswer,
    ImpactType,
)
from achievers.orchestration.ai_orchestrator import AIOrchestrator, parse_questions
from achievers.orchestration.fallback import (
    CUSTOMER_QUESTIONS,
    GENERIC_QUESTIONS,
    TEAM_QUESTIONS,
)
from fakes import FakeProvider

TEMPLATES = PromptTemplateStore.load(PACKAGED_TEMPLATES_DIR)


def _orchestrator(
    responses: list[object] | None = None, **kwargs: object
) -> tuple[AIOrchestrator, FakeProvider, MetricsCollector]:
    provider = FakeProvider(responses)
    metrics = MetricsCollector()
    orchestrator = AIOrchestrator(
        TEMPLATES,
        provider,
        metrics=metrics,
        rng=random.Random(3),
        **kwargs,  # type: ignore[arg-type]
    )
    return orchestrator, provider, metrics


def _draft(**overrides: object) -> AccomplishmentDraft:
    draft = AccomplishmentDraft(
        user_id="ada@example.com",
        user_name="Ada",
        original_statement="Today I fixed the login bug",
        impact_type=ImpactType.CUSTOMER,
    )
    for key, value in overrides.items():
        setattr(draft, key, value)
    return draft


class TestParseQuestions:
    """Tests for the schema-validating questions decoder."""

    def test_plain_array(self) -> None:
        assert parse_questions('["A?", "B?", "C?"]') == ["A?", "B?", "C?"]

    def test_fenced_array(self) -> None:
        text = '```json\n["A?", "B?", "C?", "D?"]\n```'
        assert parse_questions(text) == ["A?", "B?", "C?", "D?"]

    @pytest.mark.parametrize(
        "text",
        [
            "not json",
            '{"questions": ["A?", "B?", "C?"]}',
            '["A?", "B?"]',
            '["A?", "B?", "C?", "D?", "E?", "F?"]',
            '["A?", "", "C?"]',
            '["A?", 2, "C?"]',
        ],
    )
    def test_bad_shapes_raise(self, text: str) -> None:
        with pytest.raises(ResponseShapeError):
            parse_questions(text)


class TestGenerateContextualQuestions:
    """Questions always come back as 3-5 strings."""

    def test_llm_success(self) -> None:
        orchestrator, provider, metrics = _orchestrator(['["A?", "B?", "C?", "D?"]'])

        questions = asyncio.run(
            orchestrator.generate_contextual_questions(
                "Fixed the login bug", ImpactType.CUSTOMER
            )
        )

        assert questions == ["A?", "B?", "C?", "D?"]
        assert provider.call_count == 1
        assert "Fixed the login bug" in provider.prompts[0].context
        assert metrics.total_fallbacks == 0

    @pytest.mark.parametrize(
        "response",
        [
            LLMCallError("boom"),
            AuthError("bad credentials"),
            "Here are some questions: 1. Why?",
        ],
    )
    def test_failures_fall_back_to_pool(self, response: object) -> None:
        orchestrator, _, metrics = _orchestrator([response])

        questions = asyncio.run(
            orchestrator.generate_contextual_questions("Fixed it", ImpactType.CUSTOMER)
        )

        assert 3 <= len(questions) <= 5
        assert set(questions) <= set(CUSTOMER_QUESTIONS)
        assert metrics.total_fallbacks == 1

    def test_team_and_missing_impact_pools(self) -> None:
        orchestrator, _, _ = _orchestrator([LLMCallError("x"), LLMCallError("y")])

        async def run() -> tuple[list[str], list[str]]:
            team = await orchestrator.generate_contextual_questions(
                "x", ImpactType.TEAM
            )
            generic = await orchestrator.generate_contextual_questions("x", None)
            return team, generic

        team, generic = asyncio.run(run())
        assert set(team) <= set(TEAM_QUESTIONS)
        assert set(generic) <= set(GENERIC_QUESTIONS)

    def test_no_provider_uses_fallback(self) -> None:
        orchestrator = AIOrchestrator(TEMPLATES, provider=None)
        questions = asyncio.run(
            orchestrator.generate_contextual_questions("x", ImpactType.TEAM)
        )
        assert 3 <= len(questions) <= 4

    def test_fallback_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        orchestrator, _, _ = _orchestrator([LLMCallError("boom")])
        with caplog.at_level(logging.INFO):
            asyncio.run(orchestrator.generate_contextual_questions("x", None))
        assert "Generating contextual questions" in caplog.text
        assert "contextual questions failed, using fallback" in caplog.text


class TestGenerateAccomplishmentStatement:
    """Statement generation with and without the LLM."""

    def test_llm_text_returned_verbatim(self) -> None:
        long_text = " ".join(["word"] * 150)
        orchestrator, provider, _ = _orchestrator([f"  {long_text}\n"])

        statement = asyncio.run(
            orchestrator.generate_accomplishment_statement(_draft())
        )

        assert statement == long_text
        assert provider.prompts[0].system == TEMPLATES.get(STATEMENT_TEMPLATE).system

    def test_enforced_limit_truncates_llm_text(self) -> None:
        long_text = " ".join(["word"] * 150)
        orchestrator, _, _ = _orchestrator(
            [long_text], enforce_statement_word_limit=True
        )

        statement = asyncio.run(
            orchestrator.generate_accomplishment_statement(_draft())
        )

        assert len(statement.split()) <= 100
        assert statement.endswith("...")

    def test_prompt_includes_qa_blocks(self) -> None:
        orchestrator, provider, _ = _orchestrator(["Done."])
        draft = _draft(
            contextual_answers=[
                ContextualAnswer("Root cause?", "A race"),
                ContextualAnswer("Skipped?", ""),
            ]
        )

        asyncio.run(orchestrator.generate_accomplishment_statement(draft))

        context = provider.prompts[0].context
        assert "Q: Root cause?\nA: A race" in context
        assert "Skipped?" not in context

    def test_failure_uses_fallback_statement(self) -> None:
        orchestrator, _, metrics = _orchestrator([LLMCallError("down")])

        statement = asyncio.run(
            orchestrator.generate_accomplishment_statement(_draft())
        )

        assert statement.startswith("Ada fixed the login bug.")
        assert metrics.calls[0].used_fallback is True
        assert metrics.calls[0].error == "down"
        assert metrics.calls[0].error_type == "unknown"

    @pytest.mark.parametrize("blank", ["", "   \n\t "])
    def test_blank_llm_text_uses_fallback_statement(self, blank: str) -> None:
        orchestrator, provider, metrics = _orchestrator([blank])

        statement = asyncio.run(
            orchestrator.generate_accomplishment_statement(_draft())
        )

        assert provider.call_count == 1
        assert statement.startswith("Ada fixed the login bug.")
        assert metrics.calls[0].used_fallback is True
        assert metrics.calls[0].error_type == "invalid_response"

    def test_auth_failure_recorded_with_type(self) -> None:
        orchestrator, _, metrics = _orchestrator([AuthError("expired secret")])

        asyncio.run(orchestrator.generate_accomplishment_statement(_draft()))

        assert metrics.failures_by_type() == {"auth_failed": 1}


class TestGenerateShareablePost:
    def test_failure_falls_back_to_local_post(self) -> None:
        orchestrator, _, _ = _orchestrator([LLMCallError("down")])
        record = Accomplishment(
            id="1",
            user_id="ada@example.com",
            user_name="Ada",
            original_statement="Fixed it",
            impact_type=ImpactType.TEAM,
            ai_generated_statement="Ada fixed the build.",
            created_at=datetime(2024, 5, 1, tzinfo=UTC),
        )

        post = asyncio.run(orchestrator.generate_shareable_post(record))

        assert "Ada fixed the build." in post
        assert "#Teamwork" in post


class TestGenerateWithPrompt:
    """generate_with_prompt has no fallback."""

    def test_returns_raw_text(self) -> None:
        orchestrator, provider, _ = _orchestrator(["raw"])
        text = asyncio.run(
            orchestrator.generate_with_prompt(
                QUESTIONS_TEMPLATE, {"originalStatement": "x"}
            )
        )
        assert text == "raw"
        assert provider.call_count == 1

    def test_unknown_template_raises(self) -> None:
        orchestrator, provider, _ = _orchestrator(["raw"])
        with pytest.raises(PromptNotFoundError):
            asyncio.run(orchestrator.generate_with_prompt("nope"))
        assert provider.call_count == 0

    def test_provider_error_propagates(self) -> None:
        orchestrator, _, metrics = _orchestrator([LLMCallError("down")])
        with pytest.raises(LLMCallError):
            asyncio.run(orchestrator.generate_with_prompt(QUESTIONS_TEMPLATE, {}))
        assert metrics.total_failures == 1
        assert metrics.total_fallbacks == 0


class TestIntrospection:
    def test_validate_unknown_template(self) -> None:
        orchestrator, _, _ = _orchestrator()
        result = orchestrator.validate_prompt_variables("nope", {})
        assert result.valid is False
        assert result.errors == ["Prompt template 'nope' not found"]

    def test_validate_missing_required(self) -> None:
        orchestrator, _, _ = _orchestrator()
        result = orchestrator.validate_prompt_variables(STATEMENT_TEMPLATE, {})
        assert "Required variable 'userName' is missing" in result.errors

    def test_available_prompts(self) -> None:
        orchestrator, _, _ = _orchestrator()
        ids = [p["id"] for p in orchestrator.available_prompts()]
        assert ids == sorted(ids)
        assert QUESTIONS_TEMPLATE in ids

    def test_prompt_schema(self) -> None:
        orchestrator, _, _ = _orchestrator()
        schema = orchestrator.prompt_schema(QUESTIONS_TEMPLATE)
        assert schema is not None
        assert schema["originalStatement"] == {"required": True}
        assert orchestrator.prompt_schema("nope") is None
        json.dumps(schema)

    def test_health_without_provider(self) -> None:
        orchestrator = AIOrchestrator(TEMPLATES, provider=None)
        result = asyncio.run(orchestrator.health_check())
        assert result["status"] == "unhealthy"
