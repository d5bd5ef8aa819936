"""Submission screen: the four-stage accomplishment form."""

import logging

from textual import work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import Screen
from textual.widgets import (
    Button,
    Footer,
    Header,
    Input,
    Label,
    RadioButton,
    RadioSet,
    Static,
    TextArea,
)

from achievers.models.submission import (
    CounterState,
    InvalidTransitionError,
    SubmissionState,
    SubmissionValidationError,
    count_words,
    counter_state,
)
from achievers.orchestration.submission_flow import (
    Control,
    ControlBusyError,
    SubmissionFlowController,
)
from achievers.store.accomplishments import PersistenceError

logger = logging.getLogger(__name__)

BUTTON_CONTROLS = {
    "btn-questions": Control.GENERATE_QUESTIONS,
    "btn-statement": Control.GENERATE_STATEMENT,
    "btn-regenerate": Control.REGENERATE,
    "btn-submit": Control.SUBMIT,
}

STAGE_IDS = {
    SubmissionState.BASIC: "stage-basic",
    SubmissionState.DYNAMIC: "stage-dynamic",
    SubmissionState.PREVIEW: "stage-preview",
}


class SubmitScreen(Screen):
    """
    Accomplishment entry form.

    Basic fields, then generated follow-up questions, then a statement
    preview that can be regenerated before it is submitted.
    """

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit"),
        Binding("escape", "back", "Back"),
    ]

    DEFAULT_CSS = """
    SubmitScreen {
        background: $surface;
    }

    SubmitScreen .content {
        padding: 1 2;
    }

    SubmitScreen .field-label {
        color: $text-muted;
        padding: 1 0 0 0;
    }

    SubmitScreen TextArea {
        height: 5;
    }

    SubmitScreen .counter {
        color: $text-disabled;
    }

    SubmitScreen .counter.warning {
        color: $warning;
    }

    SubmitScreen .counter.error {
        color: $error;
    }

    SubmitScreen #errors {
        color: $error;
        padding: 1 0;
    }

    SubmitScreen #preview-text {
        border: round $primary;
        padding: 1 2;
    }

    SubmitScreen .actions {
        height: auto;
        padding: 1 0 0 0;
    }

    SubmitScreen .actions Button {
        margin-right: 1;
    }
    """

    def __init__(self, controller: SubmissionFlowController) -> None:
        super().__init__()
        self.controller = controller

    @property
    def word_limit(self) -> int:
        return self.controller.word_limit

    def compose(self) -> ComposeResult:
        yield Header()
        with VerticalScroll(classes="content"):
            with Vertical(id="stage-basic"):
                yield Label("What did you accomplish?", classes="field-label")
                yield TextArea(id="original-statement")
                yield Static("", id="counter-original-statement", classes="counter")
                yield Label("Impact type", classes="field-label")
                with RadioSet(id="impact-type"):
                    yield RadioButton("Team", id="impact-team")
                    yield RadioButton("Customer", id="impact-customer")
                yield Label("Email appreciation (optional)", classes="field-label")
                yield TextArea(id="email-appreciation")
                yield Static("", id="counter-email-appreciation", classes="counter")
                with Horizontal(classes="actions"):
                    yield Button(
                        "Generate Questions", id="btn-questions", variant="primary"
                    )
            with Vertical(id="stage-dynamic"):
                yield Label("A few follow-up questions", classes="field-label")
                yield Vertical(id="questions")
                with Horizontal(classes="actions"):
                    yield Button("Back", id="btn-back-basic")
                    yield Button(
                        "Generate Statement", id="btn-statement", variant="primary"
                    )
            with Vertical(id="stage-preview"):
                yield Label("Your accomplishment", classes="field-label")
                yield Static("", id="preview-text")
                with Horizontal(classes="actions"):
                    yield Button("Back", id="btn-back-dynamic")
                    yield Button("Regenerate", id="btn-regenerate")
                    yield Button("Submit", id="btn-submit", variant="success")
            yield Static("", id="errors")
        yield Footer()

    def on_mount(self) -> None:
        self._render_stage()
        self._update_counter("original-statement", "")
        self._update_counter("email-appreciation", "")
        self.query_one("#original-statement", TextArea).focus()

    # --- Rendering ---

    def _render_stage(self) -> None:
        state = self.controller.state
        for stage, widget_id in STAGE_IDS.items():
            self.query_one(f"#{widget_id}").display = stage is state
        self.query_one("#preview-text", Static).update(self.controller.preview or "")
        self._refresh_controls()

    def _refresh_controls(self) -> None:
        for button_id, control in BUTTON_CONTROLS.items():
            self.query_one(f"#{button_id}", Button).disabled = (
                not self.controller.is_enabled(control)
            )
        for button_id in ("btn-back-basic", "btn-back-dynamic"):
            self.query_one(f"#{button_id}", Button).disabled = self.controller.busy

    def _update_counter(self, field_id: str, text: str) -> None:
        counter = self.query_one(f"#counter-{field_id}", Static)
        counter.update(f"{count_words(text)}/{self.word_limit} words")
        state = counter_state(text, self.word_limit)
        counter.set_class(state is CounterState.WARNING, "warning")
        counter.set_class(state is CounterState.ERROR, "error")

    def _show_errors(self, messages: list[str]) -> None:
        self.query_one("#errors", Static).update("\n".join(messages))

    async def _render_questions(self) -> None:
        container = self.query_one("#questions", Vertical)
        await container.remove_children()
        widgets = []
        for i, answer in enumerate(self.controller.draft.contextual_answers):
            widgets.append(Label(answer.question, classes="field-label"))
            widgets.append(Input(value=answer.answer, id=f"answer-{i}"))
        await container.mount(*widgets)

    def _reset_fields(self) -> None:
        self.query_one("#original-statement", TextArea).text = ""
        self.query_one("#email-appreciation", TextArea).text = ""
        for button in self.query(RadioButton):
            button.value = False

    # --- Field events ---

    def on_text_area_changed(self, event: TextArea.Changed) -> None:
        text = event.text_area.text
        if event.text_area.id == "original-statement":
            self.controller.set_basic_fields(original_statement=text)
            self._update_counter("original-statement", text)
        elif event.text_area.id == "email-appreciation":
            self.controller.set_basic_fields(email_appreciation=text)
            self._update_counter("email-appreciation", text)

    def on_radio_set_changed(self, event: RadioSet.Changed) -> None:
        impact = "customer" if event.pressed.id == "impact-customer" else "team"
        self.controller.set_basic_fields(impact_type=impact)

    def on_input_changed(self, event: Input.Changed) -> None:
        input_id = event.input.id or ""
        if input_id.startswith("answer-"):
            index = int(input_id.removeprefix("answer-"))
            self.controller.set_answer(index, event.value)

    # --- Actions ---

    def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id
        if button_id in ("btn-back-basic", "btn-back-dynamic"):
            self.action_back()
        elif button_id in BUTTON_CONTROLS:
            self.run_control(BUTTON_CONTROLS[button_id])

    def action_back(self) -> None:
        try:
            self.controller.back()
        except (InvalidTransitionError, ControlBusyError):
            return
        self._show_errors([])
        self._render_stage()

    @work(group="submission")
    async def run_control(self, control: Control) -> None:
        """Run one control's request with its button disabled."""
        self._show_errors([])
        request = {
            Control.GENERATE_QUESTIONS: self.controller.generate_questions,
            Control.GENERATE_STATEMENT: self.controller.generate_statement,
            Control.REGENERATE: self.controller.regenerate,
            Control.SUBMIT: self.controller.submit,
        }[control]

        for button in self.query(".actions Button").results(Button):
            button.disabled = True
        try:
            await request()
        except SubmissionValidationError as e:
            self._show_errors(e.messages)
        except PersistenceError as e:
            self._show_errors([f"Could not save: {e}. Please try again."])
        except (InvalidTransitionError, ControlBusyError) as e:
            logger.info("Ignored %s: %s", control.value, e)
        except Exception as e:
            logger.exception("%s failed", control.value)
            self.notify(f"Error: {e}", severity="error")
        else:
            await self._after(control)
        self._render_stage()

    async def _after(self, control: Control) -> None:
        if control is Control.GENERATE_QUESTIONS:
            await self._render_questions()
        elif control is Control.SUBMIT:
            record = self.controller.last_submitted
            self._reset_fields()
            await self._render_questions()
            if record is not None:
                self.notify(f"Accomplishment saved: {record.ai_generated_statement}")
