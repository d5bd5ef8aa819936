"""Achievers - accomplishment write-ups enriched with AI."""

__version__ = "0.1.0"
