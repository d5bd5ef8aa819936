"""Data models for Achievers."""

from .accomplishment import (
    Accomplishment,
    AccomplishmentDraft,
    ContextualAnswer,
    CurrentUser,
    ImpactType,
    format_additional_details,
)
from .submission import (
    VALID_TRANSITIONS,
    CounterState,
    FieldError,
    InvalidTransitionError,
    SubmissionFlow,
    SubmissionState,
    SubmissionValidationError,
    count_words,
    counter_state,
    validate_basic_fields,
    word_limit_errors,
)

__all__ = [
    "Accomplishment",
    "AccomplishmentDraft",
    "ContextualAnswer",
    "CounterState",
    "CurrentUser",
    "FieldError",
    "ImpactType",
    "InvalidTransitionError",
    "SubmissionFlow",
    "SubmissionState",
    "SubmissionValidationError",
    "VALID_TRANSITIONS",
    "count_words",
    "counter_state",
    "format_additional_details",
    "validate_basic_fields",
    "word_limit_errors",
]
