"""TUI screens."""

from .feed import FeedScreen
from .submit import SubmitScreen

__all__ = ["FeedScreen", "SubmitScreen"]
