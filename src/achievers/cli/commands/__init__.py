"""CLI command handlers."""

from .config import cmd_config, cmd_metrics
from .counters import cmd_congratulate, cmd_vote
from .feed import cmd_feed
from .generate import cmd_questions, cmd_statement
from .prompts import cmd_health, cmd_prompts
from .share import cmd_share
from .tui import cmd_tui

__all__ = [
    "cmd_config",
    "cmd_congratulate",
    "cmd_feed",
    "cmd_health",
    "cmd_metrics",
    "cmd_prompts",
    "cmd_questions",
    "cmd_share",
    "cmd_statement",
    "cmd_tui",
    "cmd_vote",
]
