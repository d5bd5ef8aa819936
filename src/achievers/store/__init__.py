"""Accomplishment persistence."""

from .accomplishments import (
    AccomplishmentFilter,
    AccomplishmentNotFoundError,
    AccomplishmentStore,
    JsonlAccomplishmentStore,
    PersistenceError,
    feed_order,
)

__all__ = [
    "AccomplishmentFilter",
    "AccomplishmentNotFoundError",
    "AccomplishmentStore",
    "JsonlAccomplishmentStore",
    "PersistenceError",
    "feed_order",
]
