"""Repository layer modules."""

from entity360.repositories.digital_entity_repository import DigitalEntityRepository
from entity360.repositories.file_repository import FileRepository
from entity360.repositories.qa_record_repository import QARecordRepository
from entity360.repositories.workflow_repository import WorkflowRepository

__all__ = [
    "DigitalEntityRepository",
    "FileRepository",
    "QARecordRepository",
    "WorkflowRepository",
]
