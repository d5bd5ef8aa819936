"""Deterministic local generation used when the LLM path fails."""

import random
import re

from achievers.models.accomplishment import AccomplishmentDraft, ImpactType

GENERIC_QUESTIONS = [
    "What specific challenges did you overcome to achieve this?",
    "How long did this accomplishment take to complete?",
    "What was the measurable impact or outcome of your work?",
    "Who were the key stakeholders who benefited from this accomplishment?",
    "What skills or expertise did you demonstrate in completing this work?",
]

CUSTOMER_QUESTIONS = [
    "What specific problem was the customer experiencing?",
    "How did your solution impact the customer's business operations?",
    "What technical approaches or tools did you use?",
    "How quickly were you able to resolve the customer's issue?",
    "What feedback did you receive from the customer about your work?",
]

TEAM_QUESTIONS = [
    "How did this accomplishment benefit your team or organization?",
    "What collaboration or leadership skills did you demonstrate?",
    "What was the scope or scale of your contribution?",
    "How did this work improve team processes or efficiency?",
    "What knowledge or skills did you share with colleagues during this work?",
]

QUOTE_MAX_CHARS = 80
ELLIPSIS = "..."

CLOSING_SENTENCES = {
    ImpactType.CUSTOMER: (
        "This effort had direct customer impact and demonstrated strong "
        "problem-solving capabilities."
    ),
    ImpactType.TEAM: (
        "This initiative had positive team impact and contributed to "
        "collective success."
    ),
}

APPRECIATION_LEADS = {
    ImpactType.CUSTOMER: "The customer expressed appreciation, stating",
    ImpactType.TEAM: "Colleagues recognized this effort, stating",
}

_FIRST_PERSON_PREFIX = re.compile(r"^(today )?i ", re.IGNORECASE)
_WORD = re.compile(r"\S+")


def question_pool(impact_type: ImpactType | None) -> list[str]:
    """Fixed question pool for an impact type."""
    if impact_type is ImpactType.CUSTOMER:
        return CUSTOMER_QUESTIONS
    if impact_type is ImpactType.TEAM:
        return TEAM_QUESTIONS
    return GENERIC_QUESTIONS


def fallback_questions(
    impact_type: ImpactType | None, rng: random.Random | None = None
) -> list[str]:
    """Shuffle the pool for the impact type and return 3 or 4 questions."""
    rng = rng or random.Random()
    pool = question_pool(impact_type)
    count = 3 if rng.random() < 0.5 else 4
    return rng.sample(pool, count)


def truncate_words(text: str, limit: int) -> str:
    """Cut text to at most ``limit`` words, ending with an ellipsis.

    Whitespace inside the kept part (including newlines) is preserved.
    Text already within the limit is returned unchanged.
    """
    words = list(_WORD.finditer(text))
    if len(words) <= limit:
        return text
    keep = max(limit - 3, 1)
    return text[: words[keep - 1].end()] + ELLIPSIS


def quote_excerpt(text: str, max_chars: int = QUOTE_MAX_CHARS) -> str:
    """Excerpt of at most max_chars characters, ellipsis included."""
    text = text.strip()
    if len(text) > max_chars:
        return text[: max_chars - len(ELLIPSIS)] + ELLIPSIS
    return text


def third_person_statement(original: str) -> str:
    """Lowercase the statement and drop a leading "Today I"/"I"."""
    lowered = original.strip().lower()
    return _FIRST_PERSON_PREFIX.sub("", lowered).rstrip(" .")


def fallback_statement(draft: AccomplishmentDraft, word_limit: int = 100) -> str:
    """Compose a statement from the draft without calling the LLM."""
    impact = draft.impact_type or ImpactType.TEAM
    parts = [f"{draft.user_name} {third_person_statement(draft.original_statement)}."]

    details = draft.additional_details
    if details:
        parts.append(details)

    appreciation = draft.email_appreciation.strip()
    if appreciation:
        parts.append(f'{APPRECIATION_LEADS[impact]} "{quote_excerpt(appreciation)}".')

    parts.append(CLOSING_SENTENCES[impact])
    return truncate_words(" ".join(parts), word_limit)


def fallback_share_post(user_name: str, statement: str, impact_type: ImpactType) -> str:
    """Short celebratory post built from the stored statement."""
    hashtags = (
        "#CustomerSuccess #Recognition"
        if impact_type is ImpactType.CUSTOMER
        else "#Teamwork #Recognition"
    )
    return (
        f"Congratulations to {user_name} on a great accomplishment!\n\n"
        f"{statement.strip()}\n\n{hashtags}"
    )
