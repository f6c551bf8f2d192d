"""Pydantic models for digital entities and their QA records."""

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from entity360.core.enums import TrainingStatus


class FileReference(BaseModel):
    """Pointer to an uploaded file that the OCR service can read."""

    id: UUID
    name: str = Field(..., min_length=1, description="Object key in the file bucket")
    bucket: Optional[str] = Field(default=None, description="Overrides FILE_BUCKET_NAME")


class EntityMetadata(BaseModel):
    """Caller-supplied fields for a new digital entity."""

    name: str = Field(..., min_length=1, description="Document title")
    description: str = Field(..., min_length=1)
    registration_number: str = Field(..., min_length=1, description="Opaque business key")
    version: Optional[str] = None
    tag_ids: List[UUID] = Field(default_factory=list)

    @field_validator("name", "description", "registration_number")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class DigitalEntityRead(BaseModel):
    """Serialized view of a digital entity."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str
    registration_number: str
    file_id: Optional[UUID] = None
    version: Optional[str] = None
    document_full_text: Optional[str] = None
    document_sentences: List[str] = Field(default_factory=list)
    tag_ids: List[UUID] = Field(default_factory=list)
    training_status: TrainingStatus = TrainingStatus.NOT_STARTED
    qa_record_id: Optional[UUID] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("document_sentences", "tag_ids", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class QARecordRead(BaseModel):
    """Serialized view of a QA record."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    digital_entity_id: UUID
    qas: Any = None
    question: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class EnrichmentResult(BaseModel):
    """Outcome of a successful enrichment run."""

    digital_entity: DigitalEntityRead
    qa: QARecordRead
