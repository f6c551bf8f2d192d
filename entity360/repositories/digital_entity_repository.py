from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from entity360.core.enums import TrainingStatus
from entity360.database.models import DigitalEntity
from entity360.repositories.base_repository import BaseRepository, projection_options
from entity360.schemas.projection import (
    DIGITAL_ENTITY_PATHS,
    DigitalEntityField,
    project_instance,
    resolve_projection,
)
from entity360.utils.logging import get_logger

LOGGER = get_logger(__name__)


class DigitalEntityRepository(BaseRepository[DigitalEntity]):
    """Repository for digital entity records."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, DigitalEntity)

    async def create_entity(
        self,
        name: str,
        description: str,
        file_id: UUID,
        registration_number: str,
        document_full_text: str,
        document_sentences: List[str],
        version: Optional[str] = None,
        tag_ids: Optional[List[UUID]] = None,
    ) -> DigitalEntity:
        """Create a digital entity in the not-started training state.

        Args:
            name: Entity title
            description: Entity description
            file_id: Owning file reference
            registration_number: Business key
            document_full_text: OCR full text
            document_sentences: OCR sentences in document order
            version: Optional document version label
            tag_ids: Optional tag references

        Returns:
            Created DigitalEntity record
        """
        entity = await self.create(
            name=name,
            description=description,
            file_id=file_id,
            registration_number=registration_number,
            document_full_text=document_full_text,
            document_sentences=list(document_sentences),
            version=version,
            tag_ids=list(tag_ids or []),
            training_status=TrainingStatus.NOT_STARTED.value,
        )
        LOGGER.info(
            "Created digital entity",
            extra={"digital_entity_id": str(entity.id), "sentences": len(document_sentences)},
        )
        return entity

    async def get_projected(
        self, entity_id: UUID, fields: Iterable[DigitalEntityField]
    ) -> Optional[Dict[str, Any]]:
        """Load only the requested fields of one entity."""
        plan = resolve_projection(fields, DIGITAL_ENTITY_PATHS)
        try:
            result = await self.session.execute(
                select(DigitalEntity)
                .where(DigitalEntity.id == entity_id)
                .options(*projection_options(DigitalEntity, plan))
            )
            entity = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise self._fail(f"projecting {entity_id}", e) from e
        return project_instance(entity, plan) if entity is not None else None

    async def get_all_projected(
        self, fields: Iterable[DigitalEntityField]
    ) -> List[Dict[str, Any]]:
        """Load the requested fields of every entity."""
        plan = resolve_projection(fields, DIGITAL_ENTITY_PATHS)
        try:
            result = await self.session.execute(
                select(DigitalEntity).options(*projection_options(DigitalEntity, plan))
            )
        except SQLAlchemyError as e:
            raise self._fail("projecting all", e) from e
        return [project_instance(entity, plan) for entity in result.scalars().all()]
