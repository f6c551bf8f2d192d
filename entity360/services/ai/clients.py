"""HTTP implementations of the AI service contracts."""

from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from entity360.core.config import AIServiceSettings
from entity360.core.exceptions import UpstreamError
from entity360.schemas.entity import FileReference
from entity360.services.ai.base_client import BaseAIServiceClient
from entity360.services.ai.contracts import (
    DetectedObject,
    OCRResult,
    QAResult,
    RankedEntity,
    ServiceStatus,
    VectorDocument,
)
from entity360.utils.logging import get_logger

LOGGER = get_logger(__name__)


def _client_kwargs(settings: AIServiceSettings) -> Dict[str, Any]:
    return {
        "api_key": settings.api_key,
        "timeout": settings.timeout,
        "max_retries": settings.max_retries,
        "retry_delay": settings.retry_delay,
    }


class OCRServiceClient(BaseAIServiceClient):
    """Text extraction service reading files from the document bucket."""

    service_name = "ocr-service"

    def __init__(self, url: str, bucket_name: str = "", **kwargs):
        super().__init__(url, **kwargs)
        self.bucket_name = bucket_name

    @classmethod
    def from_settings(cls, settings: AIServiceSettings) -> "OCRServiceClient":
        return cls(settings.ocr_service_url, bucket_name=settings.file_bucket_name, **_client_kwargs(settings))

    async def extract(self, file_ref: FileReference) -> OCRResult:
        """Extract the full text and sentence list of a stored file.

        Args:
            file_ref: File to process

        Returns:
            OCRResult: Status plus text; inspect ``succeeded`` before use

        Raises:
            UpstreamError: On transport failure or a malformed payload
        """
        envelope = await self.invoke(
            {
                "id": str(file_ref.id),
                "S3Object": {"Bucket": file_ref.bucket or self.bucket_name, "Name": file_ref.name},
            }
        )
        body = envelope.get("body")
        body = body if isinstance(body, dict) else {}
        try:
            result = OCRResult(
                statusCode=envelope.get("statusCode"),
                full_text=body.get("full_text") or "",
                sentences=body.get("sentence_list") or [],
            )
        except PydanticValidationError as e:
            raise UpstreamError(f"Malformed OCR payload: {e}", original_error=e) from e

        LOGGER.info(
            "OCR extraction finished",
            extra={
                "file_id": str(file_ref.id),
                "status_code": result.status_code,
                "sentences": len(result.sentences),
            },
        )
        return result


class VectorSearchClient(BaseAIServiceClient):
    """Vector index service: document upsert and relevance search."""

    service_name = "vector-search"

    def __init__(self, url: str, default_top_k: int = -1, **kwargs):
        super().__init__(url, **kwargs)
        self.default_top_k = default_top_k

    @classmethod
    def from_settings(cls, settings: AIServiceSettings, default_top_k: int = -1) -> "VectorSearchClient":
        return cls(settings.vector_service_url, default_top_k=default_top_k, **_client_kwargs(settings))

    async def upsert(self, doc: VectorDocument) -> ServiceStatus:
        """Upsert one document into the vector index."""
        envelope = await self.invoke(
            {
                "action": "UPSERT",
                "doc": {
                    "_id": str(doc.id),
                    "title": doc.title,
                    "description": doc.description,
                    "sentences": doc.sentences,
                    "registrationNumber": doc.registration_number,
                },
            }
        )
        try:
            return ServiceStatus.model_validate(envelope)
        except PydanticValidationError as e:
            raise UpstreamError(f"Malformed vector upsert payload: {e}", original_error=e) from e

    async def search(self, query: str, top_k: Optional[int] = None) -> List[RankedEntity]:
        """Rank indexed entities against a free-text query.

        ``top_k=-1`` asks for every indexed entity. Entries with a missing or
        unparsable id/score are dropped.

        Raises:
            UpstreamError: On transport failure or a non-success status
        """
        envelope = await self.invoke(
            {
                "action": "SEARCH",
                "search": {"query": query, "top_k": self.default_top_k if top_k is None else top_k},
            }
        )
        try:
            status = ServiceStatus.model_validate(envelope)
        except PydanticValidationError as e:
            raise UpstreamError(f"Malformed vector search payload: {e}", original_error=e) from e
        if not status.succeeded:
            raise UpstreamError(f"Vector search returned status {status.status_code}")

        body = envelope.get("body")
        ranked: List[RankedEntity] = []
        for item in body if isinstance(body, list) else []:
            try:
                ranked.append(RankedEntity.model_validate(item))
            except PydanticValidationError:
                LOGGER.warning("Dropping malformed search hit", extra={"hit": str(item)[:200]})
        return ranked


class QAGeneratorClient(BaseAIServiceClient):
    """Question/answer generation service."""

    service_name = "qa-generator"

    @classmethod
    def from_settings(cls, settings: AIServiceSettings) -> "QAGeneratorClient":
        return cls(settings.qa_service_url, **_client_kwargs(settings))

    async def generate(self, text: str) -> QAResult:
        """Generate question/answer pairs from a document's full text."""
        envelope = await self.invoke({"text": text})
        try:
            return QAResult(statusCode=envelope.get("statusCode"), qas=envelope.get("body"))
        except PydanticValidationError as e:
            raise UpstreamError(f"Malformed QA payload: {e}", original_error=e) from e


class ObjectDetectionClient(BaseAIServiceClient):
    """Object detection service classifying an image into object classes."""

    service_name = "object-detection"

    @classmethod
    def from_settings(cls, settings: AIServiceSettings) -> "ObjectDetectionClient":
        return cls(settings.object_detection_service_url, **_client_kwargs(settings))

    async def detect(self, image: str, company_id: str) -> List[DetectedObject]:
        """Detect the object classes present in an image.

        Args:
            image: Encoded image as accepted by the detection model
            company_id: Tenant whose trained model should be used

        Returns:
            List[DetectedObject]: One entry per recognized class

        Raises:
            UpstreamError: On transport failure or a non-success status
        """
        envelope = await self.invoke({"callType": "INFERENCE", "image": image, "company_id": company_id})
        try:
            status = ServiceStatus.model_validate(envelope)
        except PydanticValidationError as e:
            raise UpstreamError(f"Malformed object detection payload: {e}", original_error=e) from e
        if not status.succeeded:
            raise UpstreamError(f"Object detection returned status {status.status_code}")

        body = envelope.get("body")
        items = body.get("result") if isinstance(body, dict) else body
        detected: List[DetectedObject] = []
        for item in items if isinstance(items, list) else []:
            try:
                detected.append(DetectedObject.model_validate(item))
            except PydanticValidationError:
                LOGGER.warning("Dropping malformed detection", extra={"detection": str(item)[:200]})

        LOGGER.info(
            "Object detection finished",
            extra={"company_id": company_id, "detected": len(detected)},
        )
        return detected
