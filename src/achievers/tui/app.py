"""Main Achievers TUI application."""

import logging
from typing import Any

from textual.app import App
from textual.binding import Binding

from achievers.config.paths import get_paths
from achievers.config.settings import settings
from achievers.llm.metrics import MetricsCollector
from achievers.models.accomplishment import CurrentUser
from achievers.orchestration.accomplishment_service import AccomplishmentService
from achievers.orchestration.ai_orchestrator import AIOrchestrator
from achievers.orchestration.submission_flow import SubmissionFlowController
from achievers.store.accomplishments import JsonlAccomplishmentStore
from achievers.tui.screens.feed import FeedScreen
from achievers.tui.screens.submit import SubmitScreen

logger = logging.getLogger(__name__)


class AchieversApp(App[None]):
    """Main Achievers TUI application."""

    TITLE = "Achievers"
    SUB_TITLE = "Record and celebrate accomplishments"

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit"),
        Binding("f2", "show_submit", "Submit"),
        Binding("f3", "show_feed", "Feed"),
    ]

    CSS = """
    Screen {
        background: $surface;
    }
    """

    def __init__(
        self,
        user: CurrentUser,
        service: AccomplishmentService | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.user = user
        if service is None:
            orchestrator = AIOrchestrator.from_settings(
                metrics=MetricsCollector(get_paths().ai_calls)
            )
            service = AccomplishmentService(
                JsonlAccomplishmentStore.default(), orchestrator
            )
        self.service = service

    def new_controller(self) -> SubmissionFlowController:
        return SubmissionFlowController(
            self.service.orchestrator,
            self.service,
            self.user,
            word_limit=settings.word_limit,
        )

    def on_mount(self) -> None:
        logger.info(
            "TUI started for %s using %s",
            self.user.email,
            self.service.orchestrator.provider_name,
        )
        self.push_screen(SubmitScreen(self.new_controller()))

    def action_show_submit(self) -> None:
        if not isinstance(self.screen, SubmitScreen):
            self.pop_screen()

    def action_show_feed(self) -> None:
        if not isinstance(self.screen, FeedScreen):
            self.push_screen(FeedScreen(self.service))
