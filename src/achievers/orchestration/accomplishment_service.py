"""Server-side glue between the orchestrator and the record store."""

import logging
from datetime import UTC, datetime
from uuid import uuid4

from achievers.models.accomplishment import Accomplishment, AccomplishmentDraft
from achievers.orchestration.ai_orchestrator import AIOrchestrator
from achievers.store.accomplishments import AccomplishmentFilter, AccomplishmentStore

logger = logging.getLogger(__name__)


def new_accomplishment_id() -> str:
    return str(uuid4())


class AccomplishmentService:
    """Persists approved drafts and serves feed actions."""

    def __init__(self, store: AccomplishmentStore, orchestrator: AIOrchestrator):
        self.store = store
        self.orchestrator = orchestrator

    async def submit(self, draft: AccomplishmentDraft) -> Accomplishment:
        """Persist a draft as a new record.

        A draft without a generated statement gets one here, so a stored
        record never has an empty statement.

        Raises:
            PersistenceError: If the store rejects the write.
        """
        statement = (draft.generated_statement or "").strip()
        if not statement:
            logger.info("Draft for %s has no statement, generating one", draft.user_id)
            statement = await self.orchestrator.generate_accomplishment_statement(draft)

        record = Accomplishment.from_draft(
            draft,
            accomplishment_id=new_accomplishment_id(),
            statement=statement,
            created_at=datetime.now(UTC),
        )
        return self.store.save(record)

    async def share(self, accomplishment_id: str) -> str:
        """Generate a social post for a stored record."""
        record = self.store.get(accomplishment_id)
        return await self.orchestrator.generate_shareable_post(record)

    def congratulate(self, accomplishment_id: str) -> int:
        return self.store.increment_congratulations(accomplishment_id)

    def vote(self, accomplishment_id: str) -> int:
        return self.store.increment_votes(accomplishment_id)

    def feed(
        self, criteria: AccomplishmentFilter | None = None
    ) -> list[Accomplishment]:
        if criteria is None:
            return self.store.list_all()
        return self.store.filter(criteria)

    def mine(self, user_id: str) -> list[Accomplishment]:
        return self.store.list_by_user(user_id)
