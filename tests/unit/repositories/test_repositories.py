"""Tests for repositories against a mocked AsyncSession."""

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from entity360.core.enums import TrainingStatus
from entity360.core.exceptions import DatabaseError
from entity360.database.models import DigitalEntity
from entity360.repositories.digital_entity_repository import DigitalEntityRepository
from entity360.repositories.workflow_repository import WorkflowRepository


@pytest.fixture
def mock_session():
    session = MagicMock()
    session.add = MagicMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.refresh = AsyncMock()
    session.rollback = AsyncMock()
    session.execute = AsyncMock()
    return session


@pytest.mark.asyncio
async def test_create_entity_starts_not_started(mock_session):
    repo = DigitalEntityRepository(mock_session)
    file_id = uuid.uuid4()

    entity = await repo.create_entity(
        name="Manual",
        description="Pump manual",
        file_id=file_id,
        registration_number="REG-1",
        document_full_text="Hello world",
        document_sentences=["Hello world"],
    )

    assert isinstance(entity, DigitalEntity)
    assert entity.training_status == TrainingStatus.NOT_STARTED.value
    assert entity.file_id == file_id
    assert entity.tag_ids == []
    mock_session.add.assert_called_once_with(entity)
    mock_session.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_commit_failure_rolls_back(mock_session):
    mock_session.commit.side_effect = OperationalError("COMMIT", {}, Exception("connection lost"))
    repo = DigitalEntityRepository(mock_session)

    with pytest.raises(DatabaseError):
        await repo.save(DigitalEntity(id=uuid.uuid4(), name="n", description="d", registration_number="r"))

    mock_session.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_get_by_id_wraps_driver_errors(mock_session):
    mock_session.execute.side_effect = OperationalError("SELECT", {}, Exception("timeout"))

    with pytest.raises(DatabaseError):
        await DigitalEntityRepository(mock_session).get_by_id(uuid.uuid4())


@pytest.mark.asyncio
async def test_update_diagram_rebuilds_children(mock_session, workflow_factory):
    workflow = workflow_factory("WI-1", child_node_ids=[uuid.uuid4()])
    result = MagicMock()
    result.scalar_one_or_none.return_value = workflow
    mock_session.execute.return_value = result
    child = uuid.uuid4()

    updated = await WorkflowRepository(mock_session).update_diagram(
        workflow.id, {"nodes": [{"workflowId": str(child)}, {"label": "end"}]}
    )

    assert updated is workflow
    assert workflow.child_node_ids == [child]
    assert '"workflowId"' in workflow.block_diagram
    mock_session.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_update_diagram_missing_workflow(mock_session):
    result = MagicMock()
    result.scalar_one_or_none.return_value = None
    mock_session.execute.return_value = result

    assert await WorkflowRepository(mock_session).update_diagram(uuid.uuid4(), {"nodes": []}) is None
    mock_session.commit.assert_not_awaited()
