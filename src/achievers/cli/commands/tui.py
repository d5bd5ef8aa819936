"""TUI launch command."""

from __future__ import annotations

import argparse
import sys

from achievers.cli.context import require_user


def cmd_tui(args: argparse.Namespace) -> int:
    """Launch the TUI application."""
    from achievers.tui.app import AchieversApp

    user = require_user(args)
    if user is None:
        return 1
    app = AchieversApp(user)
    app.run()
    if app.return_code:
        print("Achievers exited with an error", file=sys.stderr)
    return app.return_code or 0
