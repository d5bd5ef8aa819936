"""Metrics for AI orchestrator calls.

Each orchestrator operation records one LLMCall: whether the LLM path
succeeded, how long it took, why it failed, and whether fallback
content was served. Records are appended to a JSONL file so they
survive restarts; the file is only read back when a report is asked for.
"""

import json
import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from statistics import mean
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class LLMCall:
    """Record of a single orchestrator call."""

    call_id: str
    use_case: str  # e.g. "contextual questions" or "prompt:<name>"
    latency_ms: int
    model: str
    timestamp: datetime
    success: bool
    used_fallback: bool = False
    error: str | None = None
    error_type: str | None = None  # APIErrorType value on failure

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "call_id": self.call_id,
            "use_case": self.use_case,
            "latency_ms": self.latency_ms,
            "model": self.model,
            "timestamp": self.timestamp.isoformat(),
            "success": self.success,
            "used_fallback": self.used_fallback,
            "error": self.error,
            "error_type": self.error_type,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LLMCall":
        """Create from dictionary."""
        return cls(
            call_id=data["call_id"],
            use_case=data["use_case"],
            latency_ms=data["latency_ms"],
            model=data.get("model", "unknown"),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            success=data["success"],
            used_fallback=data.get("used_fallback", False),
            error=data.get("error"),
            error_type=data.get("error_type"),
        )

    @classmethod
    def create(
        cls,
        use_case: str,
        latency_ms: int,
        model: str = "unknown",
        success: bool = True,
        used_fallback: bool = False,
        error: str | None = None,
        error_type: str | None = None,
    ) -> "LLMCall":
        """Create a new LLMCall with auto-generated ID and timestamp."""
        return cls(
            call_id=str(uuid.uuid4())[:8],
            use_case=use_case,
            latency_ms=latency_ms,
            model=model,
            timestamp=datetime.now(UTC),
            success=success,
            used_fallback=used_fallback,
            error=error,
            error_type=error_type,
        )


class MetricsCollector:
    """Collects and aggregates orchestrator call metrics.

    With a path, every call is appended to a JSONL file and existing
    records are loaded on first read; without one they are kept in
    memory only.
    """

    def __init__(self, path: Path | None = None) -> None:
        self.path = path
        self._loaded: list[LLMCall] | None = None if path else []

    @property
    def _calls(self) -> list[LLMCall]:
        if self._loaded is None:
            self._loaded = self._load()
        return self._loaded

    def _load(self) -> list[LLMCall]:
        """Load existing metrics from file."""
        calls: list[LLMCall] = []
        if self.path is None or not self.path.exists():
            return calls

        try:
            with open(self.path, encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if not line:
                        continue
                    calls.append(LLMCall.from_dict(json.loads(line)))
            logger.debug("Loaded %d metrics from %s", len(calls), self.path)
        except (OSError, ValueError, KeyError) as e:
            logger.warning("Failed to load metrics from %s: %s", self.path, e)
        return calls

    def record(self, call: LLMCall) -> None:
        """Record a new call."""
        if self._loaded is not None:
            self._loaded.append(call)
        self._append(call)
        logger.debug(
            "Recorded call %s: use_case=%s, success=%s, fallback=%s",
            call.call_id,
            call.use_case,
            call.success,
            call.used_fallback,
        )

    def _append(self, call: LLMCall) -> None:
        """Append a call to the metrics file."""
        if self.path is None:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(json.dumps(call.to_dict()) + "\n")
        except OSError as e:
            logger.warning("Failed to write metrics to %s: %s", self.path, e)

    @property
    def calls(self) -> list[LLMCall]:
        return list(self._calls)

    @property
    def total_calls(self) -> int:
        """Get total number of calls."""
        return len(self._calls)

    @property
    def total_failures(self) -> int:
        """Calls where the LLM path failed."""
        return sum(1 for c in self._calls if not c.success)

    @property
    def total_fallbacks(self) -> int:
        """Calls answered with locally generated content."""
        return sum(1 for c in self._calls if c.used_fallback)

    def calls_by_use_case(self) -> dict[str, int]:
        """Get call counts by use case."""
        result: dict[str, int] = {}
        for call in self._calls:
            result[call.use_case] = result.get(call.use_case, 0) + 1
        return result

    def failures_by_type(self) -> dict[str, int]:
        """Failed calls counted by error type."""
        result: dict[str, int] = {}
        for call in self._calls:
            if call.success:
                continue
            key = call.error_type or "unknown"
            result[key] = result.get(key, 0) + 1
        return result

    def summary(self) -> dict[str, Any]:
        """Get aggregated metrics summary."""
        return {
            "total_calls": self.total_calls,
            "total_failures": self.total_failures,
            "total_fallbacks": self.total_fallbacks,
            "calls_by_use_case": self.calls_by_use_case(),
            "failures_by_type": self.failures_by_type(),
            "avg_latency_ms": (
                mean(c.latency_ms for c in self._calls) if self._calls else 0
            ),
            "success_rate": (
                sum(1 for c in self._calls if c.success) / len(self._calls)
                if self._calls
                else 1.0
            ),
        }
