"""Command models accepted by the dispatcher.

Each command is a pydantic model tagged by its ``command`` field; the
``Command`` union lets pydantic pick the right model from raw input.
"""

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from entity360.schemas.entity import EntityMetadata, FileReference
from entity360.schemas.projection import DigitalEntityField, WorkflowField


class CommandType(str, Enum):
    CREATE_ENTITY = "create_entity"
    ENRICH_ENTITY = "enrich_entity"
    READ_ENTITY = "read_entity"
    READ_ENTITY_FIELDS = "read_entity_fields"
    READ_WORKFLOW_FIELDS = "read_workflow_fields"
    READ_WORKFLOW_TREE = "read_workflow_tree"
    READ_RANKED_WORKFLOW_TREE = "read_ranked_workflow_tree"
    READ_OBJECT_CLASS_WORKFLOW_TREE = "read_object_class_workflow_tree"
    UPDATE_WORKFLOW_DIAGRAM = "update_workflow_diagram"


class BaseCommand(BaseModel):
    model_config = ConfigDict(extra="forbid")


class CreateEntityCommand(BaseCommand):
    """Ingest an uploaded file as a new digital entity."""

    command: Literal[CommandType.CREATE_ENTITY] = CommandType.CREATE_ENTITY
    file: FileReference
    metadata: EntityMetadata
    auto_enrich: bool = Field(
        default=False, description="Run enrichment right after the entity is created"
    )


class EnrichEntityCommand(BaseCommand):
    command: Literal[CommandType.ENRICH_ENTITY] = CommandType.ENRICH_ENTITY
    digital_entity_id: UUID


class ReadEntityCommand(BaseCommand):
    """Read one entity together with its QA record."""

    command: Literal[CommandType.READ_ENTITY] = CommandType.READ_ENTITY
    digital_entity_id: UUID


class ReadEntityFieldsCommand(BaseCommand):
    """Projected read of one entity, or of every entity when no id is given."""

    command: Literal[CommandType.READ_ENTITY_FIELDS] = CommandType.READ_ENTITY_FIELDS
    digital_entity_id: Optional[UUID] = None
    fields: List[DigitalEntityField] = Field(..., min_length=1)


class ReadWorkflowFieldsCommand(BaseCommand):
    command: Literal[CommandType.READ_WORKFLOW_FIELDS] = CommandType.READ_WORKFLOW_FIELDS
    workflow_id: UUID
    fields: List[WorkflowField] = Field(..., min_length=1)


class ReadWorkflowTreeCommand(BaseCommand):
    command: Literal[CommandType.READ_WORKFLOW_TREE] = CommandType.READ_WORKFLOW_TREE


class ReadRankedWorkflowTreeCommand(BaseCommand):
    command: Literal[CommandType.READ_RANKED_WORKFLOW_TREE] = CommandType.READ_RANKED_WORKFLOW_TREE
    query: str = Field(..., min_length=1, description="Free-text relevance query")
    sort_by_score: bool = False


class ReadObjectClassWorkflowTreeCommand(BaseCommand):
    """Workflow tree scored by the object classes detected in an image."""

    command: Literal[CommandType.READ_OBJECT_CLASS_WORKFLOW_TREE] = CommandType.READ_OBJECT_CLASS_WORKFLOW_TREE
    image: str = Field(..., min_length=1)
    company_id: str = Field(..., min_length=1)
    sort_by_score: bool = False


class UpdateWorkflowDiagramCommand(BaseCommand):
    command: Literal[CommandType.UPDATE_WORKFLOW_DIAGRAM] = CommandType.UPDATE_WORKFLOW_DIAGRAM
    workflow_id: UUID
    diagram: Dict[str, Any]


Command = Annotated[
    Union[
        CreateEntityCommand,
        EnrichEntityCommand,
        ReadEntityCommand,
        ReadEntityFieldsCommand,
        ReadWorkflowFieldsCommand,
        ReadWorkflowTreeCommand,
        ReadRankedWorkflowTreeCommand,
        ReadObjectClassWorkflowTreeCommand,
        UpdateWorkflowDiagramCommand,
    ],
    Field(discriminator="command"),
]

COMMAND_ADAPTER: TypeAdapter = TypeAdapter(Command)


def parse_command(payload: Dict[str, Any]) -> BaseCommand:
    """Validate raw input into its command model.

    Raises:
        pydantic.ValidationError: If the command is unknown or malformed
    """
    return COMMAND_ADAPTER.validate_python(payload)
