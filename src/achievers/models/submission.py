"""Submission flow state machine and field validation.

The flow moves a draft through four stages:

    basic -> dynamic -> preview -> submitted -> basic

Backward navigation (preview -> dynamic, dynamic -> basic) is allowed
and preview -> preview is the regenerate self-loop.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

from achievers.models.accomplishment import AccomplishmentDraft


class SubmissionState(Enum):
    """All possible stages of the submission form."""

    BASIC = "basic"
    DYNAMIC = "dynamic"
    PREVIEW = "preview"
    SUBMITTED = "submitted"


class InvalidTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, current: SubmissionState, target: SubmissionState) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Invalid transition from {current.value} to {target.value}")


VALID_TRANSITIONS: dict[SubmissionState, set[SubmissionState]] = {
    SubmissionState.BASIC: {SubmissionState.DYNAMIC},
    SubmissionState.DYNAMIC: {
        SubmissionState.PREVIEW,
        SubmissionState.BASIC,  # Back
    },
    SubmissionState.PREVIEW: {
        SubmissionState.PREVIEW,  # Regenerate
        SubmissionState.DYNAMIC,  # Back
        SubmissionState.SUBMITTED,
    },
    SubmissionState.SUBMITTED: {SubmissionState.BASIC},  # Reset for next entry
}


@dataclass
class SubmissionFlow:
    """Tracks the current stage of one form instance.

    Transitions are immutable: each returns a new SubmissionFlow with the
    transition appended to its history.
    """

    state: SubmissionState = SubmissionState.BASIC
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    state_history: list[dict[str, str]] = field(default_factory=list)

    def can_transition(self, target: SubmissionState) -> bool:
        return target in VALID_TRANSITIONS.get(self.state, set())

    def transition(
        self, target: SubmissionState, reason: str | None = None
    ) -> "SubmissionFlow":
        """Transition to a new state, returning a new SubmissionFlow.

        Raises:
            InvalidTransitionError: If the transition is not valid.
        """
        if not self.can_transition(target):
            raise InvalidTransitionError(self.state, target)

        now = datetime.now(UTC)
        entry = {"from": self.state.value, "to": target.value, "at": now.isoformat()}
        if reason:
            entry["reason"] = reason
        return SubmissionFlow(
            state=target,
            updated_at=now,
            state_history=[*self.state_history, entry],
        )


# --- Field validation ---

WORD_WARNING_RATIO = 0.8


class CounterState(Enum):
    """Display state of a word counter."""

    OK = "ok"
    WARNING = "warning"
    ERROR = "error"


def count_words(text: str) -> int:
    """Count whitespace-separated words."""
    return len(text.split())


def counter_state(text: str, limit: int) -> CounterState:
    """Word counter state: warning from 80% of the limit, error above it."""
    words = count_words(text)
    if words > limit:
        return CounterState.ERROR
    if words >= limit * WORD_WARNING_RATIO:
        return CounterState.WARNING
    return CounterState.OK


@dataclass(frozen=True)
class FieldError:
    """A single field-level validation problem."""

    field: str
    message: str

    def __str__(self) -> str:
        return self.message


class SubmissionValidationError(Exception):
    """Raised when a transition is blocked by field validation."""

    def __init__(self, errors: list[FieldError]) -> None:
        self.errors = errors
        super().__init__("; ".join(e.message for e in errors))

    @property
    def messages(self) -> list[str]:
        return [e.message for e in self.errors]


def _word_limit_error(
    field_name: str, label: str, text: str, limit: int
) -> FieldError | None:
    words = count_words(text)
    if words > limit:
        return FieldError(
            field_name, f"{label} exceeds {limit} word limit ({words} words)"
        )
    return None


def word_limit_errors(draft: AccomplishmentDraft, limit: int) -> list[FieldError]:
    """Check every free-text field, including dynamic answers."""
    candidates = [
        ("original_statement", "Original Statement", draft.original_statement),
        ("email_appreciation", "Email Appreciation", draft.email_appreciation),
    ]
    candidates.extend(
        (f"question_{i}", f"Question {i}", answer.answer)
        for i, answer in enumerate(draft.contextual_answers, start=1)
    )
    errors: list[FieldError] = []
    for field_name, label, text in candidates:
        error = _word_limit_error(field_name, label, text, limit)
        if error is not None:
            errors.append(error)
    return errors


def validate_basic_fields(draft: AccomplishmentDraft, limit: int) -> list[FieldError]:
    """Checks required before questions can be generated."""
    errors: list[FieldError] = []
    if not draft.original_statement.strip():
        errors.append(
            FieldError("original_statement", "Original Statement is required")
        )
    if draft.impact_type is None:
        errors.append(FieldError("impact_type", "Impact Type is required"))
    errors.extend(word_limit_errors(draft, limit))
    return errors
