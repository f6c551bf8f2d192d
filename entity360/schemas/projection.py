"""Typed field projections for partial reads.

Callers pick fields from an enumeration; each member is bound once to a
``FieldPath`` naming the relationship (if any) and the attribute to load.
Nothing is parsed from free-form strings at request time.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional


@dataclass(frozen=True)
class FieldPath:
    """Attribute on the root model, or on one of its relationships."""

    attribute: str
    relationship: Optional[str] = None


class DigitalEntityField(str, Enum):
    NAME = "name"
    DESCRIPTION = "description"
    REGISTRATION_NUMBER = "registration_number"
    VERSION = "version"
    TRAINING_STATUS = "training_status"
    DOCUMENT_FULL_TEXT = "document_full_text"
    DOCUMENT_SENTENCES = "document_sentences"
    FILE_NAME = "file.name"
    FILE_LOCATION = "file.location"
    FILE_MIME_TYPE = "file.mime_type"


class WorkflowField(str, Enum):
    CODE = "code"
    NAME = "name"
    VERSION = "version"
    DESCRIPTION = "description"
    BLOCK_DIAGRAM = "block_diagram"
    CHILD_NODE_IDS = "child_node_ids"
    DIGITAL_ENTITY_IDS = "digital_entity_ids"
    PHYSICAL_ENTITY_IDS = "physical_entity_ids"
    THUMBNAIL_NAME = "thumbnail.name"
    THUMBNAIL_LOCATION = "thumbnail.location"


DIGITAL_ENTITY_PATHS: Dict[DigitalEntityField, FieldPath] = {
    DigitalEntityField.NAME: FieldPath("name"),
    DigitalEntityField.DESCRIPTION: FieldPath("description"),
    DigitalEntityField.REGISTRATION_NUMBER: FieldPath("registration_number"),
    DigitalEntityField.VERSION: FieldPath("version"),
    DigitalEntityField.TRAINING_STATUS: FieldPath("training_status"),
    DigitalEntityField.DOCUMENT_FULL_TEXT: FieldPath("document_full_text"),
    DigitalEntityField.DOCUMENT_SENTENCES: FieldPath("document_sentences"),
    DigitalEntityField.FILE_NAME: FieldPath("name", relationship="file"),
    DigitalEntityField.FILE_LOCATION: FieldPath("location", relationship="file"),
    DigitalEntityField.FILE_MIME_TYPE: FieldPath("mime_type", relationship="file"),
}

WORKFLOW_PATHS: Dict[WorkflowField, FieldPath] = {
    WorkflowField.CODE: FieldPath("code"),
    WorkflowField.NAME: FieldPath("name"),
    WorkflowField.VERSION: FieldPath("version"),
    WorkflowField.DESCRIPTION: FieldPath("description"),
    WorkflowField.BLOCK_DIAGRAM: FieldPath("block_diagram"),
    WorkflowField.CHILD_NODE_IDS: FieldPath("child_node_ids"),
    WorkflowField.DIGITAL_ENTITY_IDS: FieldPath("digital_entity_ids"),
    WorkflowField.PHYSICAL_ENTITY_IDS: FieldPath("physical_entity_ids"),
    WorkflowField.THUMBNAIL_NAME: FieldPath("name", relationship="thumbnail"),
    WorkflowField.THUMBNAIL_LOCATION: FieldPath("location", relationship="thumbnail"),
}


@dataclass
class ProjectionPlan:
    """Columns to load on the root model and per relationship."""

    columns: List[str] = field(default_factory=list)
    relationships: Dict[str, List[str]] = field(default_factory=dict)


def resolve_projection(
    fields: Iterable[Enum], paths: Mapping[Any, FieldPath]
) -> ProjectionPlan:
    """Group requested fields by relationship, dropping duplicates.

    Several fields on the same relationship collapse into a single entry, so
    the relationship is loaded once with all of its requested columns.
    """
    plan = ProjectionPlan()
    for requested in fields:
        path = paths[requested]
        if path.relationship is None:
            if path.attribute not in plan.columns:
                plan.columns.append(path.attribute)
            continue
        selected = plan.relationships.setdefault(path.relationship, [])
        if path.attribute not in selected:
            selected.append(path.attribute)
    return plan


def project_instance(instance: Any, plan: ProjectionPlan) -> Dict[str, Any]:
    """Render the planned fields of a loaded instance as a plain dict."""
    result: Dict[str, Any] = {"id": instance.id}
    for column in plan.columns:
        result[column] = getattr(instance, column)
    for relationship, columns in plan.relationships.items():
        related = getattr(instance, relationship, None)
        result[relationship] = (
            {column: getattr(related, column) for column in columns}
            if related is not None
            else None
        )
    return result
