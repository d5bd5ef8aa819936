"""Accomplishment persistence in a workspace JSONL file.

One record per line. ``save`` appends; counter increments read every
record, bump one counter and rewrite the file. Increments are
read-then-write with no compare-and-swap, so two processes incrementing
the same record concurrently can lose an update.
"""

import json
import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Protocol

from achievers.models.accomplishment import Accomplishment, ImpactType

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """Raised when records cannot be read or written."""


class AccomplishmentNotFoundError(PersistenceError, KeyError):
    """Raised when no record has the requested id."""

    def __init__(self, accomplishment_id: str) -> None:
        self.accomplishment_id = accomplishment_id
        super().__init__(f"Accomplishment '{accomplishment_id}' not found")

    def __str__(self) -> str:
        return str(self.args[0])


@dataclass(frozen=True, slots=True)
class AccomplishmentFilter:
    """Feed filter. Every criterion is optional and they combine with AND.

    Dates are inclusive whole days. ``user`` matches case-insensitively
    as a substring of the user's name or id.
    """

    start_date: date | None = None
    end_date: date | None = None
    user: str | None = None
    impact_type: ImpactType | None = None

    def matches(self, record: Accomplishment) -> bool:
        created = record.created_at.date()
        if self.start_date and created < self.start_date:
            return False
        if self.end_date and created > self.end_date:
            return False
        if self.user:
            needle = self.user.lower()
            if (
                needle not in record.user_name.lower()
                and needle not in record.user_id.lower()
            ):
                return False
        if self.impact_type and record.impact_type is not self.impact_type:
            return False
        return True


def feed_order(records: Iterable[Accomplishment]) -> list[Accomplishment]:
    """Newest first, then most votes, then most congratulations."""
    return sorted(
        records,
        key=lambda r: (r.created_at, r.votes_count, r.congratulations_count),
        reverse=True,
    )


class AccomplishmentStore(Protocol):
    """Operations the submission pipeline needs from persistence."""

    def list_all(self) -> list[Accomplishment]: ...

    def list_by_user(self, user_id: str) -> list[Accomplishment]: ...

    def filter(self, criteria: AccomplishmentFilter) -> list[Accomplishment]: ...

    def get(self, accomplishment_id: str) -> Accomplishment: ...

    def save(self, accomplishment: Accomplishment) -> Accomplishment: ...

    def increment_congratulations(self, accomplishment_id: str) -> int: ...

    def increment_votes(self, accomplishment_id: str) -> int: ...


class JsonlAccomplishmentStore:
    """AccomplishmentStore backed by a JSONL file."""

    def __init__(self, path: Path) -> None:
        self.path = path

    @classmethod
    def default(cls) -> "JsonlAccomplishmentStore":
        """Store in the current workspace's .achievers directory."""
        from achievers.config.paths import get_paths

        return cls(get_paths().accomplishments)

    # --- Reading ---

    def _read(self) -> list[Accomplishment]:
        if not self.path.exists():
            return []
        records: list[Accomplishment] = []
        try:
            with open(self.path, encoding="utf-8") as f:
                for line_num, line in enumerate(f, start=1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        records.append(Accomplishment.from_dict(json.loads(line)))
                    except (json.JSONDecodeError, KeyError, ValueError) as e:
                        raise PersistenceError(
                            f"Corrupt record at {self.path}:{line_num}: {e}"
                        ) from e
        except OSError as e:
            raise PersistenceError(f"Could not read {self.path}: {e}") from e
        return records

    def list_all(self) -> list[Accomplishment]:
        return feed_order(self._read())

    def list_by_user(self, user_id: str) -> list[Accomplishment]:
        return feed_order(r for r in self._read() if r.user_id == user_id)

    def filter(self, criteria: AccomplishmentFilter) -> list[Accomplishment]:
        return feed_order(r for r in self._read() if criteria.matches(r))

    def get(self, accomplishment_id: str) -> Accomplishment:
        for record in self._read():
            if record.id == accomplishment_id:
                return record
        raise AccomplishmentNotFoundError(accomplishment_id)

    # --- Writing ---

    def save(self, accomplishment: Accomplishment) -> Accomplishment:
        """Append a new record."""
        if not accomplishment.ai_generated_statement.strip():
            raise PersistenceError("Refusing to save a record without a statement")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(json.dumps(accomplishment.to_dict()) + "\n")
        except OSError as e:
            raise PersistenceError(f"Could not write {self.path}: {e}") from e
        logger.info(
            "Saved accomplishment %s for %s", accomplishment.id, accomplishment.user_id
        )
        return accomplishment

    def _rewrite(self, records: list[Accomplishment]) -> None:
        tmp_path = self.path.with_suffix(f"{self.path.suffix}.tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                for record in records:
                    f.write(json.dumps(record.to_dict()) + "\n")
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise PersistenceError(f"Could not write {self.path}: {e}") from e

    def _increment(self, accomplishment_id: str, counter: str) -> int:
        records = self._read()
        for i, record in enumerate(records):
            if record.id != accomplishment_id:
                continue
            if counter == "votes":
                updated = record.with_counts(votes=record.votes_count + 1)
                value = updated.votes_count
            else:
                updated = record.with_counts(
                    congratulations=record.congratulations_count + 1
                )
                value = updated.congratulations_count
            records[i] = updated
            self._rewrite(records)
            logger.info("Incremented %s on %s to %d", counter, accomplishment_id, value)
            return value
        raise AccomplishmentNotFoundError(accomplishment_id)

    def increment_congratulations(self, accomplishment_id: str) -> int:
        """Add one congratulation and return the new count."""
        return self._increment(accomplishment_id, "congratulations")

    def increment_votes(self, accomplishment_id: str) -> int:
        """Add one vote and return the new count."""
        return self._increment(accomplishment_id, "votes")
