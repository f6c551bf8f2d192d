"""Digital entity ingestion and enrichment pipeline.

Ingestion (``create_and_enrich``) runs OCR and writes the entity. Enrichment
(``enrich``) pushes the entity to the vector index, generates question/answer
pairs and records the outcome in the entity's training status.

Every exit from ``enrich`` after the entity has been marked in progress
writes a terminal status first, so a caller never observes a run that ended
but left the entity in progress.
"""

from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar, Union
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from entity360.core.enums import EnrichmentStage, TrainingStatus
from entity360.core.exceptions import (
    AppError,
    EnrichmentFailedError,
    ExtractionFailedError,
    NotFoundError,
    ValidationError,
)
from entity360.database.models import DigitalEntity
from entity360.repositories.digital_entity_repository import DigitalEntityRepository
from entity360.repositories.qa_record_repository import QARecordRepository
from entity360.schemas.entity import (
    DigitalEntityRead,
    EnrichmentResult,
    EntityMetadata,
    FileReference,
    QARecordRead,
)
from entity360.services.ai.contracts import (
    OCRResult,
    OCRService,
    QAGenerationService,
    QAResult,
    VectorDocument,
    VectorIndexService,
)
from entity360.services.enrichment.status_store import TrainingStatusStore
from entity360.utils.logging import get_logger

LOGGER = get_logger(__name__)

QA_RECORD_LABEL = "GENERATED BY AI"

T = TypeVar("T")


class EnrichmentPipeline:
    """OCR, vector indexing and QA generation for digital entities.

    Attributes:
        entity_repo: Digital entity persistence
        qa_repo: QA record persistence
        status_store: Training status transitions
        ocr_service: Text extraction service
        vector_index: Vector index service
        qa_generator: Question/answer generation service
    """

    def __init__(
        self,
        session: Optional[AsyncSession],
        ocr_service: OCRService,
        vector_index: VectorIndexService,
        qa_generator: QAGenerationService,
        entity_repo: Optional[DigitalEntityRepository] = None,
        qa_repo: Optional[QARecordRepository] = None,
    ):
        """Initialize the pipeline.

        Args:
            session: Session for this unit of work; may be None when both
                repositories are supplied
            ocr_service: Text extraction service
            vector_index: Vector index service
            qa_generator: QA generation service
            entity_repo: Optional repository override
            qa_repo: Optional repository override
        """
        self.entity_repo = entity_repo or DigitalEntityRepository(session)
        self.qa_repo = qa_repo or QARecordRepository(session)
        self.status_store = TrainingStatusStore(self.entity_repo)
        self.ocr_service = ocr_service
        self.vector_index = vector_index
        self.qa_generator = qa_generator

    async def create_and_enrich(
        self,
        file_ref: FileReference,
        metadata: Union[EntityMetadata, Dict[str, Any]],
    ) -> DigitalEntityRead:
        """Run OCR on a file and persist a new entity from its output.

        Nothing is written when validation or extraction fails.

        Args:
            file_ref: Uploaded source file
            metadata: Title, description and business key of the entity

        Returns:
            DigitalEntityRead: The created entity, status not_started

        Raises:
            ValidationError: If metadata is incomplete
            ExtractionFailedError: If OCR errors or reports failure
        """
        metadata = self._validate_metadata(metadata)

        LOGGER.info(
            "Starting ingestion",
            extra={"file_id": str(file_ref.id), "registration_number": metadata.registration_number},
        )
        ocr_result = await self._extract(file_ref)

        entity = await self.entity_repo.create_entity(
            name=metadata.name,
            description=metadata.description,
            file_id=file_ref.id,
            registration_number=metadata.registration_number,
            document_full_text=ocr_result.full_text,
            document_sentences=ocr_result.sentences,
            version=metadata.version,
            tag_ids=metadata.tag_ids,
        )
        return DigitalEntityRead.model_validate(entity)

    async def enrich(self, entity_id: UUID) -> EnrichmentResult:
        """Index an entity, generate its QA record and mark it succeeded.

        Args:
            entity_id: Entity to enrich

        Returns:
            EnrichmentResult: Updated entity and its QA record

        Raises:
            NotFoundError: If the entity does not exist (nothing is written)
            EnrichmentFailedError: If a stage fails; the entity is left failed
        """
        entity = await self.entity_repo.get_by_id(entity_id)
        if entity is None:
            raise NotFoundError(f"Digital entity {entity_id} not found")

        entity = await self.status_store.transition(entity, TrainingStatus.IN_PROGRESS)
        LOGGER.info("Enrichment started", extra={"digital_entity_id": str(entity_id)})

        try:
            await self._run_stage(EnrichmentStage.INDEX, entity_id, lambda: self._index(entity))
            qa_result = await self._run_stage(
                EnrichmentStage.QA, entity_id, lambda: self._generate_qa(entity)
            )
            qa_record = await self._run_stage(
                EnrichmentStage.PERSIST,
                entity_id,
                lambda: self.qa_repo.upsert_for_entity(
                    entity_id, qa_result.qas, question=QA_RECORD_LABEL
                ),
            )
            entity = await self._run_stage(
                EnrichmentStage.PERSIST,
                entity_id,
                lambda: self.status_store.transition(
                    entity, TrainingStatus.SUCCEEDED, qa_record_id=qa_record.id
                ),
            )
        except EnrichmentFailedError as e:
            await self._mark_failed(entity_id, e)
            raise

        LOGGER.info(
            "Enrichment succeeded",
            extra={"digital_entity_id": str(entity_id), "qa_record_id": str(qa_record.id)},
        )
        return EnrichmentResult(
            digital_entity=DigitalEntityRead.model_validate(entity),
            qa=QARecordRead.model_validate(qa_record),
        )

    def _validate_metadata(self, metadata: Union[EntityMetadata, Dict[str, Any]]) -> EntityMetadata:
        if isinstance(metadata, EntityMetadata):
            return metadata
        try:
            return EntityMetadata.model_validate(metadata)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid entity metadata: {e}", original_error=e) from e

    async def _extract(self, file_ref: FileReference) -> OCRResult:
        try:
            result = await self.ocr_service.extract(file_ref)
        except Exception as e:
            LOGGER.error(
                "OCR extraction failed",
                exc_info=True,
                extra={"file_id": str(file_ref.id), "error": str(e)},
            )
            detail = e.message if isinstance(e, AppError) else str(e)
            raise ExtractionFailedError(
                f"Error while file preprocessing: {detail}", original_error=e
            ) from e

        if not result.succeeded:
            LOGGER.error(
                "OCR service reported failure",
                extra={"file_id": str(file_ref.id), "status_code": result.status_code},
            )
            raise ExtractionFailedError(
                f"Error while file preprocessing: OCR service returned status {result.status_code}"
            )
        return result

    async def _index(self, entity: DigitalEntity) -> None:
        status = await self.vector_index.upsert(
            VectorDocument(
                id=entity.id,
                title=entity.name,
                description=entity.description,
                sentences=list(entity.document_sentences or []),
                registration_number=entity.registration_number,
            )
        )
        if not status.succeeded:
            raise EnrichmentFailedError(
                EnrichmentStage.INDEX.value,
                entity.id,
                message=f"Vector upsert failed with status {status.status_code}",
            )

    async def _generate_qa(self, entity: DigitalEntity) -> QAResult:
        result = await self.qa_generator.generate(entity.document_full_text or "")
        if not result.succeeded:
            raise EnrichmentFailedError(
                EnrichmentStage.QA.value,
                entity.id,
                message=f"QA generation failed with status {result.status_code}",
            )
        if not result.qas:
            raise EnrichmentFailedError(
                EnrichmentStage.QA.value,
                entity.id,
                message="QA generation returned no question/answer pairs",
            )
        return result

    async def _run_stage(
        self,
        stage: EnrichmentStage,
        entity_id: UUID,
        call: Callable[[], Awaitable[T]],
    ) -> T:
        """Run one stage, converting any failure into EnrichmentFailedError."""
        try:
            return await call()
        except EnrichmentFailedError:
            raise
        except Exception as e:
            LOGGER.error(
                f"Enrichment stage '{stage.value}' failed",
                exc_info=True,
                extra={"digital_entity_id": str(entity_id), "stage": stage.value},
            )
            raise EnrichmentFailedError(
                stage.value, entity_id, message=f"Stage '{stage.value}' failed: {e}", original_error=e
            ) from e

    async def _mark_failed(self, entity_id: UUID, error: EnrichmentFailedError) -> None:
        # Reload: a rolled-back session expires the instance loaded earlier.
        entity = await self.entity_repo.get_by_id(entity_id)
        if entity is None:
            raise NotFoundError(f"Digital entity {entity_id} disappeared during enrichment") from error
        await self.status_store.transition(entity, TrainingStatus.FAILED)
        LOGGER.warning(
            "Enrichment failed",
            extra={"digital_entity_id": str(entity_id), "stage": error.stage},
        )
