"""Terminal UI for Achievers."""
