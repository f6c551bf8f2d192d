"""Pydantic schemas shared by services and handlers."""

from entity360.schemas.entity import (
    DigitalEntityRead,
    EnrichmentResult,
    EntityMetadata,
    FileReference,
    QARecordRead,
)
from entity360.schemas.graph import GraphLink, GraphNode, GraphView, WorkflowNode

__all__ = [
    "DigitalEntityRead",
    "EnrichmentResult",
    "EntityMetadata",
    "FileReference",
    "QARecordRead",
    "GraphLink",
    "GraphNode",
    "GraphView",
    "WorkflowNode",
]
