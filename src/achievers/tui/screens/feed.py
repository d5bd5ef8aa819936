"""Feed screen listing stored accomplishments."""

import logging

from rich.text import Text
from textual import work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import Screen
from textual.widgets import Footer, Header, Input, OptionList, Static
from textual.widgets.option_list import Option

from achievers.models.accomplishment import Accomplishment
from achievers.orchestration.accomplishment_service import AccomplishmentService
from achievers.store.accomplishments import AccomplishmentFilter, PersistenceError

logger = logging.getLogger(__name__)


def render_card(record: Accomplishment) -> Text:
    """Rich text for one feed entry."""
    text = Text()
    text.append(record.user_name, style="bold")
    text.append(
        f"  {record.impact_type.value}  {record.created_at:%Y-%m-%d}\n", style="dim"
    )
    text.append(record.ai_generated_statement)
    text.append(
        f"\n{record.congratulations_count} congratulations  "
        f"{record.votes_count} votes",
        style="italic",
    )
    return text


class FeedScreen(Screen):
    """Newest accomplishments first, with counters and sharing."""

    BINDINGS = [
        Binding("escape", "app.pop_screen", "Back"),
        Binding("c", "congratulate", "Congratulate"),
        Binding("v", "vote", "Vote"),
        Binding("s", "share", "Share"),
        Binding("r", "refresh", "Refresh"),
    ]

    DEFAULT_CSS = """
    FeedScreen .content {
        padding: 1 2;
    }

    FeedScreen OptionList {
        height: 1fr;
    }

    FeedScreen #share-post {
        border: round $primary;
        padding: 1 2;
        display: none;
    }

    FeedScreen #share-post.visible {
        display: block;
    }
    """

    def __init__(self, service: AccomplishmentService) -> None:
        super().__init__()
        self.service = service
        self.records: list[Accomplishment] = []

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical(classes="content"):
            yield Input(placeholder="Filter by name or email...", id="user-filter")
            yield OptionList(id="feed")
            yield Static("", id="share-post")
        yield Footer()

    def on_mount(self) -> None:
        self.action_refresh()
        self.query_one("#feed", OptionList).focus()

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "user-filter":
            self.action_refresh()

    def action_refresh(self) -> None:
        user = self.query_one("#user-filter", Input).value.strip()
        try:
            self.records = self.service.feed(
                AccomplishmentFilter(user=user) if user else None
            )
        except PersistenceError as e:
            self.notify(f"Could not load feed: {e}", severity="error")
            return
        feed = self.query_one("#feed", OptionList)
        feed.clear_options()
        feed.add_options(
            Option(render_card(record), id=record.id) for record in self.records
        )

    def _selected(self) -> Accomplishment | None:
        index = self.query_one("#feed", OptionList).highlighted
        if index is None or index >= len(self.records):
            return None
        return self.records[index]

    def _increment(self, counter: str) -> None:
        record = self._selected()
        if record is None:
            return
        increment = (
            self.service.vote if counter == "votes" else self.service.congratulate
        )
        try:
            count = increment(record.id)
        except PersistenceError as e:
            self.notify(f"Could not update {counter}: {e}", severity="error")
            return
        self.notify(f"{count} {counter}")
        feed = self.query_one("#feed", OptionList)
        highlighted = feed.highlighted
        self.action_refresh()
        feed.highlighted = highlighted

    def action_congratulate(self) -> None:
        self._increment("congratulations")

    def action_vote(self) -> None:
        self._increment("votes")

    def action_share(self) -> None:
        record = self._selected()
        if record is not None:
            self.share(record.id)

    @work(exclusive=True, group="share")
    async def share(self, accomplishment_id: str) -> None:
        panel = self.query_one("#share-post", Static)
        panel.update("Writing post...")
        panel.add_class("visible")
        try:
            post = await self.service.share(accomplishment_id)
        except PersistenceError as e:
            panel.remove_class("visible")
            self.notify(f"Could not share: {e}", severity="error")
            return
        panel.update(post)
