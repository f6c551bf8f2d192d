"""Clients and contracts for the external AI services."""

from entity360.services.ai.clients import (
    OCRServiceClient,
    ObjectDetectionClient,
    QAGeneratorClient,
    VectorSearchClient,
)
from entity360.services.ai.contracts import (
    DetectedObject,
    OCRResult,
    OCRService,
    ObjectDetectionService,
    QAGenerationService,
    QAResult,
    RankedEntity,
    RankingService,
    ServiceStatus,
    VectorDocument,
    VectorIndexService,
)

__all__ = [
    "OCRServiceClient",
    "ObjectDetectionClient",
    "QAGeneratorClient",
    "VectorSearchClient",
    "DetectedObject",
    "OCRResult",
    "OCRService",
    "ObjectDetectionService",
    "QAGenerationService",
    "QAResult",
    "RankedEntity",
    "RankingService",
    "ServiceStatus",
    "VectorDocument",
    "VectorIndexService",
]
