"""Tests for deterministic fallback generation."""

import random

import pytest

from achievers.models.accomplishment import (
    AccomplishmentDraft,
    ContextualAnswer,
    ImpactType,
)
from achievers.orchestration.fallback import (
    CUSTOMER_QUESTIONS,
    fallback_questions,
    fallback_share_post,
    fallback_statement,
    quote_excerpt,
    third_person_statement,
    truncate_words,
)


def _draft(
    impact: ImpactType | None = ImpactType.TEAM, **kwargs: object
) -> AccomplishmentDraft:
    return AccomplishmentDraft(
        user_id="ada@example.com",
        user_name="Ada",
        original_statement="I shipped the release.",
        impact_type=impact,
        **kwargs,  # type: ignore[arg-type]
    )


class TestFallbackQuestions:
    def test_three_or_four_distinct_from_pool(self) -> None:
        rng = random.Random(11)
        for _ in range(50):
            questions = fallback_questions(ImpactType.CUSTOMER, rng)
            assert len(questions) in (3, 4)
            assert len(set(questions)) == len(questions)
            assert set(questions) <= set(CUSTOMER_QUESTIONS)

    def test_pool_is_not_mutated(self) -> None:
        before = list(CUSTOMER_QUESTIONS)
        fallback_questions(ImpactType.CUSTOMER, random.Random(1))
        assert CUSTOMER_QUESTIONS == before


class TestTruncateWords:
    def test_short_text_unchanged(self) -> None:
        assert truncate_words("one two three", 5) == "one two three"

    def test_long_text_cut_with_ellipsis(self) -> None:
        text = " ".join(str(i) for i in range(20))
        result = truncate_words(text, 10)
        assert result == "0 1 2 3 4 5 6..."
        assert len(result.split()) <= 10

    def test_newlines_in_kept_part_preserved(self) -> None:
        text = "a\nb c d e f g h i j k l"
        assert truncate_words(text, 6).startswith("a\nb c")


class TestFallbackStatement:
    """Fallback statements never exceed the word limit."""

    def test_third_person_rewrite(self) -> None:
        assert third_person_statement("Today I fixed the bug.") == "fixed the bug"
        assert third_person_statement("I led the demo") == "led the demo"
        assert third_person_statement("We won") == "we won"

    def test_customer_statement_quotes_appreciation(self) -> None:
        statement = fallback_statement(
            _draft(ImpactType.CUSTOMER, email_appreciation="Thank you so much!")
        )
        assert statement.startswith("Ada shipped the release.")
        assert 'The customer expressed appreciation, stating "Thank you so much!".' in (
            statement
        )
        assert statement.endswith("strong problem-solving capabilities.")

    def test_team_statement_closing(self) -> None:
        statement = fallback_statement(_draft(ImpactType.TEAM))
        assert statement.endswith("contributed to collective success.")

    def test_long_appreciation_is_excerpted(self) -> None:
        excerpt = quote_excerpt("x" * 200)
        assert len(excerpt) == 80
        assert excerpt.endswith("...")

    def test_includes_answered_details(self) -> None:
        draft = _draft(
            contextual_answers=[ContextualAnswer("How long?", "Two days")]
        )
        assert "Q: How long?\nA: Two days" in fallback_statement(draft)

    @pytest.mark.parametrize("seed", range(25))
    def test_word_limit_holds_for_long_details(self, seed: int) -> None:
        rng = random.Random(seed)
        words = ["alpha", "beta", "gamma", "delta", "epsilon", "zeta"]
        answers = [
            ContextualAnswer(
                f"Question {i}?", " ".join(rng.choices(words, k=rng.randint(20, 60)))
            )
            for i in range(rng.randint(3, 5))
        ]
        draft = _draft(
            rng.choice([ImpactType.TEAM, ImpactType.CUSTOMER]),
            email_appreciation=" ".join(rng.choices(words, k=40)),
            contextual_answers=answers,
        )

        statement = fallback_statement(draft, word_limit=100)

        assert len(statement.split()) <= 100
        assert statement.endswith("...")


class TestFallbackSharePost:
    def test_customer_hashtags(self) -> None:
        post = fallback_share_post("Ada", "Ada fixed it.", ImpactType.CUSTOMER)
        assert post.startswith("Congratulations to Ada")
        assert post.endswith("#CustomerSuccess #Recognition")
