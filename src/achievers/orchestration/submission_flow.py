"""Drives one submission form through its stages.

The controller owns a draft and a SubmissionFlow. Each action that
calls the orchestrator or the store disables its control for the
duration of the request and re-enables it on any outcome. While a
request is in flight no other action on the same form is accepted.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from enum import Enum

from achievers.config.settings import DEFAULT_WORD_LIMIT
from achievers.models.accomplishment import (
    Accomplishment,
    AccomplishmentDraft,
    ContextualAnswer,
    CurrentUser,
    ImpactType,
)
from achievers.models.submission import (
    InvalidTransitionError,
    SubmissionFlow,
    SubmissionState,
    SubmissionValidationError,
    validate_basic_fields,
    word_limit_errors,
)
from achievers.orchestration.accomplishment_service import AccomplishmentService
from achievers.orchestration.ai_orchestrator import AIOrchestrator

logger = logging.getLogger(__name__)


class Control(Enum):
    """Form controls that trigger a request."""

    GENERATE_QUESTIONS = "generate_questions"
    GENERATE_STATEMENT = "generate_statement"
    REGENERATE = "regenerate"
    SUBMIT = "submit"


# Stage in which each control is shown
CONTROL_STATES: dict[Control, SubmissionState] = {
    Control.GENERATE_QUESTIONS: SubmissionState.BASIC,
    Control.GENERATE_STATEMENT: SubmissionState.DYNAMIC,
    Control.REGENERATE: SubmissionState.PREVIEW,
    Control.SUBMIT: SubmissionState.PREVIEW,
}


class ControlBusyError(Exception):
    """Raised when an action arrives while a request is still in flight."""

    def __init__(self, action: str, in_flight: Control) -> None:
        self.action = action
        self.in_flight = in_flight
        super().__init__(f"Cannot {action} while {in_flight.value} is in progress")


class SubmissionFlowController:
    """State machine for the basic -> dynamic -> preview -> submitted form."""

    def __init__(
        self,
        orchestrator: AIOrchestrator,
        service: AccomplishmentService,
        user: CurrentUser,
        word_limit: int = DEFAULT_WORD_LIMIT,
    ) -> None:
        self.orchestrator = orchestrator
        self.service = service
        self.user = user
        self.word_limit = word_limit
        self.draft = AccomplishmentDraft.for_user(user)
        self.flow = SubmissionFlow()
        self.last_submitted: Accomplishment | None = None
        self._in_flight: Control | None = None

    @property
    def state(self) -> SubmissionState:
        return self.flow.state

    @property
    def preview(self) -> str | None:
        """Statement currently shown in the preview card."""
        return self.draft.generated_statement

    @property
    def busy(self) -> bool:
        return self._in_flight is not None

    def is_enabled(self, control: Control) -> bool:
        """Whether a control should accept input right now."""
        return not self.busy and CONTROL_STATES[control] is self.state

    @asynccontextmanager
    async def _disabled(self, control: Control) -> AsyncIterator[None]:
        if self._in_flight is not None:
            raise ControlBusyError(control.value, self._in_flight)
        self._in_flight = control
        try:
            yield
        finally:
            self._in_flight = None

    def _require(self, target: SubmissionState) -> None:
        if not self.flow.can_transition(target):
            raise InvalidTransitionError(self.state, target)

    # --- Field editing ---

    def set_basic_fields(
        self,
        original_statement: str | None = None,
        impact_type: ImpactType | str | None = None,
        email_appreciation: str | None = None,
    ) -> None:
        """Update any of the basic fields; None leaves a field unchanged."""
        if original_statement is not None:
            self.draft.original_statement = original_statement
        if impact_type is not None:
            self.draft.impact_type = ImpactType.parse(impact_type)
        if email_appreciation is not None:
            self.draft.email_appreciation = email_appreciation

    def set_answer(self, index: int, answer: str) -> None:
        """Record the answer to the question at ``index`` (0-based)."""
        current = self.draft.contextual_answers[index]
        self.draft.contextual_answers[index] = ContextualAnswer(
            question=current.question, answer=answer
        )

    # --- Transitions ---

    async def generate_questions(self) -> list[str]:
        """Basic -> Dynamic.

        Raises:
            SubmissionValidationError: If a basic field is missing or too long.
                No request is made and the state is unchanged.
        """
        self._require(SubmissionState.DYNAMIC)
        errors = validate_basic_fields(self.draft, self.word_limit)
        if errors:
            raise SubmissionValidationError(errors)

        async with self._disabled(Control.GENERATE_QUESTIONS):
            questions = await self.orchestrator.generate_contextual_questions(
                self.draft.original_statement,
                self.draft.impact_type,
                self.draft.email_appreciation,
            )

        # Keep answers to questions that survived a back-and-regenerate
        previous = {a.question: a.answer for a in self.draft.contextual_answers}
        self.draft.contextual_answers = [
            ContextualAnswer(question=q, answer=previous.get(q, "")) for q in questions
        ]
        self.flow = self.flow.transition(
            SubmissionState.DYNAMIC, reason=f"{len(questions)} questions"
        )
        logger.info("Collected %d contextual questions", len(questions))
        return questions

    async def generate_statement(self) -> str:
        """Dynamic -> Preview.

        Raises:
            SubmissionValidationError: If any field exceeds the word limit.
        """
        self._require(SubmissionState.PREVIEW)
        errors = word_limit_errors(self.draft, self.word_limit)
        if errors:
            raise SubmissionValidationError(errors)

        async with self._disabled(Control.GENERATE_STATEMENT):
            statement = await self.orchestrator.generate_accomplishment_statement(
                self.draft
            )

        self.draft.generated_statement = statement
        self.flow = self.flow.transition(SubmissionState.PREVIEW)
        return statement

    async def regenerate(self) -> str:
        """Preview -> Preview with a freshly generated statement."""
        if self.state is not SubmissionState.PREVIEW:
            raise InvalidTransitionError(self.state, SubmissionState.PREVIEW)

        async with self._disabled(Control.REGENERATE):
            statement = await self.orchestrator.generate_accomplishment_statement(
                self.draft
            )

        self.draft.generated_statement = statement
        self.flow = self.flow.transition(SubmissionState.PREVIEW, reason="regenerate")
        return statement

    def back(self) -> SubmissionState:
        """Step back one stage.

        Leaving Preview discards the generated statement. Answers are
        kept when going from Dynamic back to Basic.
        """
        if self._in_flight is not None:
            raise ControlBusyError("go back", self._in_flight)
        if self.state is SubmissionState.PREVIEW:
            self.draft.generated_statement = None
            self.flow = self.flow.transition(SubmissionState.DYNAMIC, reason="back")
        elif self.state is SubmissionState.DYNAMIC:
            self.flow = self.flow.transition(SubmissionState.BASIC, reason="back")
        else:
            raise InvalidTransitionError(self.state, self.state)
        return self.state

    async def submit(self) -> Accomplishment:
        """Preview -> Submitted -> Basic.

        On success the form is cleared for the next entry and the stored
        record is kept in ``last_submitted``.

        Raises:
            PersistenceError: If the save fails. The form stays in Preview
                with its statement so the submit can be retried.
        """
        self._require(SubmissionState.SUBMITTED)

        async with self._disabled(Control.SUBMIT):
            record = await self.service.submit(self.draft)

        self.flow = self.flow.transition(SubmissionState.SUBMITTED)
        self.last_submitted = record
        logger.info("Submitted accomplishment %s", record.id)
        self.reset()
        return record

    def reset(self) -> None:
        """Clear the form and return to Basic."""
        self.draft = AccomplishmentDraft.for_user(self.user)
        if self.flow.can_transition(SubmissionState.BASIC):
            self.flow = self.flow.transition(SubmissionState.BASIC, reason="reset")
        else:
            self.flow = SubmissionFlow()
