from typing import Any, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from entity360.database.models import QARecord
from entity360.repositories.base_repository import BaseRepository
from entity360.utils.logging import get_logger

LOGGER = get_logger(__name__)


class QARecordRepository(BaseRepository[QARecord]):
    """Repository for generated question/answer records."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, QARecord)

    async def get_by_entity(self, digital_entity_id: UUID) -> Optional[QARecord]:
        """Get the QA record owned by a digital entity, if any."""
        try:
            result = await self.session.execute(
                select(QARecord).where(QARecord.digital_entity_id == digital_entity_id)
            )
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise self._fail(f"retrieving for entity {digital_entity_id}", e) from e

    async def upsert_for_entity(
        self,
        digital_entity_id: UUID,
        qas: Any,
        question: Optional[str] = None,
    ) -> QARecord:
        """Create the entity's QA record or replace its payload.

        Keyed by ``digital_entity_id``; a single statement so two runs for
        the same entity never produce two records.

        Args:
            digital_entity_id: Owning entity
            qas: Question/answer payload from the generator
            question: Optional label stored with the payload

        Returns:
            The created or updated QARecord
        """
        stmt = (
            insert(QARecord)
            .values(digital_entity_id=digital_entity_id, qas=qas, question=question)
            .on_conflict_do_update(
                index_elements=[QARecord.digital_entity_id],
                set_={"qas": qas, "question": question, "updated_at": func.now()},
            )
            .returning(QARecord)
        )
        try:
            result = await self.session.scalars(
                select(QARecord).from_statement(stmt),
                execution_options={"populate_existing": True},
            )
            record = result.one()
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise self._fail(f"upserting for entity {digital_entity_id}", e) from e

        LOGGER.info(
            "Upserted QA record",
            extra={"digital_entity_id": str(digital_entity_id), "qa_record_id": str(record.id)},
        )
        return record
