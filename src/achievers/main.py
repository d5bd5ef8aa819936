"""Main module for achievers."""

import logging
import os
import sys

from achievers.cli.app import run
from achievers.config.paths import get_paths


def setup_logging() -> None:
    """Configure logging to file for debugging."""
    paths = get_paths()
    paths.ensure_workspace_dirs()
    log_file = paths.debug_log

    # Set level from env var, default to INFO
    level = os.environ.get("ACHIEVERS_LOG_LEVEL", "INFO").upper()

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=[
            logging.FileHandler(log_file, mode="a", encoding="utf-8"),
        ],
    )
    logging.info("Achievers starting, logging to %s", log_file)


def main() -> None:
    """Entry point for the Achievers application."""
    sys.exit(run(configure_logging=setup_logging))


if __name__ == "__main__":
    main()
