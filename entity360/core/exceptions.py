"""Custom exception hierarchy.

Every error carries an HTTP-like ``status_code`` so the handler boundary can
turn it into a structured payload without inspecting the exception type.
"""

from typing import Any, Dict, Optional
from uuid import UUID


class AppError(Exception):
    """Base exception for application errors."""

    status_code: int = 500

    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def to_payload(self) -> Dict[str, Any]:
        """Structured error body returned to callers."""
        return {"error": self.__class__.__name__, "message": self.message}


class NotFoundError(AppError):
    """Raised when a referenced entity, workflow or file does not exist."""

    status_code = 404


class ValidationError(AppError):
    """Raised when input validation fails."""

    status_code = 422


class InvalidStatusTransitionError(ValidationError):
    """Raised when a training status change would move backwards."""

    status_code = 409


class DatabaseError(AppError):
    """Raised when a database operation fails."""
    pass


class APIClientError(AppError):
    """Raised when an external API call fails."""

    status_code = 502


class UpstreamError(APIClientError):
    """Transport-level or payload failure from an external AI service."""
    pass


class UpstreamTimeoutError(UpstreamError):
    """Raised when an external AI service call times out."""

    status_code = 504


class PipelineError(AppError):
    """Base exception for enrichment pipeline errors."""

    status_code = 502
    record_created: bool = False

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["recordCreated"] = self.record_created
        return payload


class ExtractionFailedError(PipelineError):
    """OCR extraction failed; no entity row was written."""

    record_created = False


class EnrichmentFailedError(PipelineError):
    """A post-persist stage failed; the entity exists with status failed."""

    record_created = True

    def __init__(
        self,
        stage: str,
        entity_id: UUID,
        message: Optional[str] = None,
        original_error: Exception = None,
    ):
        super().__init__(
            message or f"Enrichment failed at stage '{stage}' for entity {entity_id}",
            original_error=original_error,
        )
        self.stage = stage
        self.entity_id = entity_id

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["stage"] = self.stage
        payload["digitalEntityId"] = str(self.entity_id)
        return payload
