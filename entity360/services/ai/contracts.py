"""Contracts (capability interfaces and payloads) for the external AI services."""

from typing import Any, List, Optional, Protocol, runtime_checkable
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from entity360.schemas.entity import FileReference


class ServiceStatus(BaseModel):
    """Status envelope every AI service answers with."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    status_code: int = Field(..., alias="statusCode")

    @property
    def succeeded(self) -> bool:
        return self.status_code == 200


class OCRResult(ServiceStatus):
    full_text: str = ""
    sentences: List[str] = Field(default_factory=list)


class QAResult(ServiceStatus):
    qas: Any = None


class VectorDocument(BaseModel):
    """Document pushed to the vector index."""

    id: UUID
    title: str
    description: str
    sentences: List[str] = Field(default_factory=list)
    registration_number: str


class RankedEntity(BaseModel):
    model_config = ConfigDict(extra="ignore")

    entity_id: UUID = Field(..., alias="id")
    score: float


@runtime_checkable
class OCRService(Protocol):
    async def extract(self, file_ref: FileReference) -> OCRResult: ...


@runtime_checkable
class VectorIndexService(Protocol):
    async def upsert(self, doc: VectorDocument) -> ServiceStatus: ...


@runtime_checkable
class QAGenerationService(Protocol):
    async def generate(self, text: str) -> QAResult: ...


@runtime_checkable
class RankingService(Protocol):
    async def search(self, query: str, top_k: Optional[int] = None) -> List[RankedEntity]: ...


class DetectedObject(BaseModel):
    """One object class recognized in an image, with its best confidence."""

    model_config = ConfigDict(extra="ignore")

    object_class: UUID
    max_score: float


@runtime_checkable
class ObjectDetectionService(Protocol):
    async def detect(self, image: str, company_id: str) -> List[DetectedObject]: ...
