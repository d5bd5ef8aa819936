"""Accomplishment draft and persisted record models."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Self


class ImpactType(Enum):
    """Who benefited from an accomplishment."""

    TEAM = "team"
    CUSTOMER = "customer"

    @classmethod
    def parse(cls, value: str | ImpactType | None) -> ImpactType | None:
        """Parse a user-supplied value; empty or unknown values give None."""
        if value is None or isinstance(value, ImpactType):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True, slots=True)
class CurrentUser:
    """Opaque identity supplied by the caller."""

    email: str
    name: str


@dataclass(frozen=True, slots=True)
class ContextualAnswer:
    """A generated follow-up question and the user's answer to it."""

    question: str
    answer: str = ""

    @property
    def is_answered(self) -> bool:
        return bool(self.answer.strip())

    def to_block(self) -> str:
        return f"Q: {self.question.strip()}\nA: {self.answer.strip()}"

    def to_dict(self) -> dict[str, str]:
        return {"question": self.question, "answer": self.answer}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        return cls(question=data["question"], answer=data.get("answer", ""))


def format_additional_details(answers: list[ContextualAnswer]) -> str:
    """Join answered questions as Q/A blocks separated by blank lines.

    Unanswered questions are left out.
    """
    return "\n\n".join(a.to_block() for a in answers if a.is_answered)


@dataclass(slots=True)
class AccomplishmentDraft:
    """In-progress accomplishment being assembled by the submission flow."""

    user_id: str
    user_name: str
    original_statement: str = ""
    impact_type: ImpactType | None = None
    email_appreciation: str = ""
    contextual_answers: list[ContextualAnswer] = field(default_factory=list)
    generated_statement: str | None = None

    @classmethod
    def for_user(cls, user: CurrentUser) -> Self:
        """Create an empty draft for the current user."""
        return cls(user_id=user.email, user_name=user.name)

    @property
    def additional_details(self) -> str:
        return format_additional_details(self.contextual_answers)

    @property
    def questions(self) -> list[str]:
        return [a.question for a in self.contextual_answers]

    def statement_variables(self) -> dict[str, str]:
        """Variables for the statement prompt template."""
        return {
            "userName": self.user_name,
            "originalStatement": self.original_statement,
            "impactType": self.impact_type.value if self.impact_type else "",
            "emailAppreciation": self.email_appreciation,
            "additionalDetails": self.additional_details,
        }


@dataclass(slots=True)
class Accomplishment:
    """A persisted accomplishment record.

    Only the counters change after creation.
    """

    id: str
    user_id: str
    user_name: str
    original_statement: str
    impact_type: ImpactType
    ai_generated_statement: str
    email_appreciation: str = ""
    additional_details: str = ""
    contextual_answers: list[ContextualAnswer] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    congratulations_count: int = 0
    votes_count: int = 0

    @classmethod
    def from_draft(
        cls,
        draft: AccomplishmentDraft,
        *,
        accomplishment_id: str,
        statement: str,
        created_at: datetime | None = None,
    ) -> Self:
        """Promote an approved draft to a record with fresh counters."""
        return cls(
            id=accomplishment_id,
            user_id=draft.user_id,
            user_name=draft.user_name,
            original_statement=draft.original_statement,
            impact_type=draft.impact_type or ImpactType.TEAM,
            ai_generated_statement=statement,
            email_appreciation=draft.email_appreciation,
            additional_details=draft.additional_details,
            contextual_answers=list(draft.contextual_answers),
            created_at=created_at or datetime.now(UTC),
        )

    def with_counts(
        self, congratulations: int | None = None, votes: int | None = None
    ) -> Accomplishment:
        if congratulations is None:
            congratulations = self.congratulations_count
        return replace(
            self,
            congratulations_count=congratulations,
            votes_count=self.votes_count if votes is None else votes,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "user_name": self.user_name,
            "original_statement": self.original_statement,
            "impact_type": self.impact_type.value,
            "ai_generated_statement": self.ai_generated_statement,
            "email_appreciation": self.email_appreciation,
            "additional_details": self.additional_details,
            "contextual_answers": [a.to_dict() for a in self.contextual_answers],
            "created_at": self.created_at.isoformat(),
            "congratulations_count": self.congratulations_count,
            "votes_count": self.votes_count,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create from dictionary."""
        return cls(
            id=str(data["id"]),
            user_id=data["user_id"],
            user_name=data.get("user_name") or "Unknown User",
            original_statement=data.get("original_statement", ""),
            impact_type=ImpactType.parse(data.get("impact_type")) or ImpactType.TEAM,
            ai_generated_statement=data["ai_generated_statement"],
            email_appreciation=data.get("email_appreciation", ""),
            additional_details=data.get("additional_details", ""),
            contextual_answers=[
                ContextualAnswer.from_dict(a)
                for a in data.get("contextual_answers", [])
            ],
            created_at=datetime.fromisoformat(data["created_at"]),
            congratulations_count=int(data.get("congratulations_count", 0)),
            votes_count=int(data.get("votes_count", 0)),
        )
