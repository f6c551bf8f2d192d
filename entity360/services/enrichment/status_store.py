"""Training status transitions for digital entities."""

from typing import Any, Dict, FrozenSet

from entity360.core.enums import TrainingStatus
from entity360.core.exceptions import InvalidStatusTransitionError
from entity360.database.models import DigitalEntity
from entity360.repositories.digital_entity_repository import DigitalEntityRepository
from entity360.utils.logging import get_logger

LOGGER = get_logger(__name__)

# A new attempt may start from any state, including a stale in_progress
# left behind by an interrupted run.
ALLOWED_TRANSITIONS: Dict[TrainingStatus, FrozenSet[TrainingStatus]] = {
    TrainingStatus.NOT_STARTED: frozenset({TrainingStatus.IN_PROGRESS}),
    TrainingStatus.IN_PROGRESS: frozenset(
        {TrainingStatus.IN_PROGRESS, TrainingStatus.SUCCEEDED, TrainingStatus.FAILED}
    ),
    TrainingStatus.SUCCEEDED: frozenset({TrainingStatus.IN_PROGRESS}),
    TrainingStatus.FAILED: frozenset({TrainingStatus.IN_PROGRESS}),
}


def can_transition(current: TrainingStatus, target: TrainingStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


class TrainingStatusStore:
    """Validates and persists training status changes."""

    def __init__(self, entity_repo: DigitalEntityRepository):
        self.entity_repo = entity_repo

    async def transition(
        self,
        entity: DigitalEntity,
        status: TrainingStatus,
        **fields: Any,
    ) -> DigitalEntity:
        """Move ``entity`` to ``status`` and persist it with any extra fields.

        Args:
            entity: Loaded entity
            status: Target status
            **fields: Other columns written in the same commit (e.g. qa_record_id)

        Raises:
            InvalidStatusTransitionError: If the move is not allowed
        """
        current = TrainingStatus(entity.training_status or TrainingStatus.NOT_STARTED.value)
        if not can_transition(current, status):
            raise InvalidStatusTransitionError(
                f"Cannot move entity {entity.id} from {current.value} to {status.value}"
            )

        entity.training_status = status.value
        for key, value in fields.items():
            setattr(entity, key, value)
        saved = await self.entity_repo.save(entity)

        LOGGER.info(
            "Training status changed",
            extra={
                "digital_entity_id": str(entity.id),
                "from_status": current.value,
                "to_status": status.value,
            },
        )
        return saved
