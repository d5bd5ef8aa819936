"""Business logic independent of the UI.

The orchestrator wraps every LLM use case with fallback; the flow
controller drives one submission form; the service persists records.
"""

from .accomplishment_service import AccomplishmentService
from .ai_orchestrator import AIOrchestrator, parse_questions
from .submission_flow import Control, ControlBusyError, SubmissionFlowController

__all__ = [
    "AIOrchestrator",
    "AccomplishmentService",
    "Control",
    "ControlBusyError",
    "SubmissionFlowController",
    "parse_questions",
]
