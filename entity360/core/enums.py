"""Enumerations shared across persistence, services and handlers."""

from enum import Enum


class TrainingStatus(str, Enum):
    """Enrichment state of a digital entity."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TrainingStatus.SUCCEEDED, TrainingStatus.FAILED)


class EnrichmentStage(str, Enum):
    """Pipeline stages that can fail after the entity row exists."""

    INDEX = "index"
    QA = "qa"
    PERSIST = "persist"


class Association(str, Enum):
    """Which reference set of a workflow node is scored."""

    DIGITAL = "digital_entities"
    PHYSICAL = "physical_entities"
