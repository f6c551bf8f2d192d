"""Tests for typed field projections."""

import uuid

from entity360.database.models import DigitalEntity, File, Workflow
from entity360.repositories.base_repository import projection_options
from entity360.schemas.projection import (
    DIGITAL_ENTITY_PATHS,
    WORKFLOW_PATHS,
    DigitalEntityField,
    WorkflowField,
    project_instance,
    resolve_projection,
)


class TestResolveProjection:
    def test_every_field_has_a_path(self) -> None:
        assert set(DIGITAL_ENTITY_PATHS) == set(DigitalEntityField)
        assert set(WORKFLOW_PATHS) == set(WorkflowField)

    def test_root_columns_only(self) -> None:
        plan = resolve_projection(
            [DigitalEntityField.NAME, DigitalEntityField.TRAINING_STATUS], DIGITAL_ENTITY_PATHS
        )

        assert plan.columns == ["name", "training_status"]
        assert plan.relationships == {}

    def test_relationship_fields_grouped_once(self) -> None:
        plan = resolve_projection(
            [
                DigitalEntityField.FILE_NAME,
                DigitalEntityField.NAME,
                DigitalEntityField.FILE_LOCATION,
                DigitalEntityField.FILE_NAME,
            ],
            DIGITAL_ENTITY_PATHS,
        )

        assert plan.columns == ["name"]
        assert plan.relationships == {"file": ["name", "location"]}

    def test_workflow_thumbnail_fields(self) -> None:
        plan = resolve_projection(
            [WorkflowField.CODE, WorkflowField.THUMBNAIL_LOCATION], WORKFLOW_PATHS
        )

        assert plan.columns == ["code"]
        assert plan.relationships == {"thumbnail": ["location"]}


class TestProjectInstance:
    def test_renders_requested_fields(self) -> None:
        entity = DigitalEntity(
            id=uuid.uuid4(),
            name="Manual",
            description="Pump manual",
            registration_number="REG-1",
        )
        entity.file = File(id=uuid.uuid4(), name="a.pdf", location="docs/a.pdf")
        plan = resolve_projection(
            [DigitalEntityField.NAME, DigitalEntityField.FILE_LOCATION], DIGITAL_ENTITY_PATHS
        )

        assert project_instance(entity, plan) == {
            "id": entity.id,
            "name": "Manual",
            "file": {"location": "docs/a.pdf"},
        }

    def test_missing_relationship_is_none(self) -> None:
        workflow = Workflow(id=uuid.uuid4(), code="WI-1", name="One")
        plan = resolve_projection([WorkflowField.THUMBNAIL_NAME], WORKFLOW_PATHS)

        assert project_instance(workflow, plan) == {"id": workflow.id, "thumbnail": None}


def test_projection_options_one_loader_per_relationship():
    plan = resolve_projection(
        [DigitalEntityField.NAME, DigitalEntityField.FILE_NAME, DigitalEntityField.FILE_MIME_TYPE],
        DIGITAL_ENTITY_PATHS,
    )

    options = projection_options(DigitalEntity, plan)

    assert len(options) == 2
