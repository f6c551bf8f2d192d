"""Command dispatch and response envelopes.

``dispatch`` validates a raw payload into its command model, runs the handler
registered for the command type inside its own database session, and always
answers with ``{"statusCode": int, "body": ...}``.
"""

from typing import Any, Awaitable, Callable, Dict

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import to_jsonable_python

from entity360.core.exceptions import AppError, NotFoundError
from entity360.handlers.commands import (
    BaseCommand,
    CommandType,
    CreateEntityCommand,
    EnrichEntityCommand,
    ReadEntityCommand,
    ReadEntityFieldsCommand,
    ReadObjectClassWorkflowTreeCommand,
    ReadRankedWorkflowTreeCommand,
    ReadWorkflowFieldsCommand,
    ReadWorkflowTreeCommand,
    UpdateWorkflowDiagramCommand,
    parse_command,
)
from entity360.handlers.context import HandlerContext
from entity360.repositories.digital_entity_repository import DigitalEntityRepository
from entity360.repositories.file_repository import FileRepository
from entity360.repositories.qa_record_repository import QARecordRepository
from entity360.repositories.workflow_repository import WorkflowRepository
from entity360.schemas.entity import DigitalEntityRead, QARecordRead
from entity360.services.enrichment.pipeline import EnrichmentPipeline
from entity360.services.graph.workflow_graph_service import WorkflowGraphService
from entity360.utils.logging import get_logger

LOGGER = get_logger(__name__)

Handler = Callable[[Any, HandlerContext], Awaitable[Any]]


def response(status_code: int, body: Any) -> Dict[str, Any]:
    if isinstance(body, BaseModel):
        body = body.model_dump(mode="json")
    return {"statusCode": status_code, "body": to_jsonable_python(body, fallback=str)}


def error_response(error: AppError) -> Dict[str, Any]:
    return response(error.status_code, error.to_payload())


def _pipeline(session, context: HandlerContext) -> EnrichmentPipeline:
    return EnrichmentPipeline(session, context.ocr, context.vector, context.qa)


async def handle_create_entity(command: CreateEntityCommand, context: HandlerContext) -> Any:
    async with context.database.session() as session:
        if await FileRepository(session).get_by_id(command.file.id) is None:
            raise NotFoundError(f"File {command.file.id} not found")
        pipeline = _pipeline(session, context)
        entity = await pipeline.create_and_enrich(command.file, command.metadata)
        if not command.auto_enrich:
            return entity
        return await pipeline.enrich(entity.id)


async def handle_enrich_entity(command: EnrichEntityCommand, context: HandlerContext) -> Any:
    async with context.database.session() as session:
        return await _pipeline(session, context).enrich(command.digital_entity_id)


async def handle_read_entity(command: ReadEntityCommand, context: HandlerContext) -> Any:
    async with context.database.session() as session:
        entity = await DigitalEntityRepository(session).get_by_id(command.digital_entity_id)
        if entity is None:
            raise NotFoundError(f"Digital entity {command.digital_entity_id} not found")
        qa_record = await QARecordRepository(session).get_by_entity(entity.id)
        return {
            "digital_entity": DigitalEntityRead.model_validate(entity).model_dump(mode="json"),
            "qa": QARecordRead.model_validate(qa_record).model_dump(mode="json") if qa_record else None,
        }


async def handle_read_entity_fields(command: ReadEntityFieldsCommand, context: HandlerContext) -> Any:
    async with context.database.session() as session:
        repo = DigitalEntityRepository(session)
        if command.digital_entity_id is None:
            return await repo.get_all_projected(command.fields)
        projected = await repo.get_projected(command.digital_entity_id, command.fields)
        if projected is None:
            raise NotFoundError(f"Digital entity {command.digital_entity_id} not found")
        return projected


async def handle_read_workflow_fields(command: ReadWorkflowFieldsCommand, context: HandlerContext) -> Any:
    async with context.database.session() as session:
        projected = await WorkflowRepository(session).get_projected(command.workflow_id, command.fields)
        if projected is None:
            raise NotFoundError(f"Workflow {command.workflow_id} not found")
        return projected


def _graph_service(session, context: HandlerContext) -> WorkflowGraphService:
    return WorkflowGraphService(
        session,
        ranking_service=context.ranking,
        assembler=context.graph_assembler(),
        ranking_top_k=context.settings.graph.ranking_top_k,
        detection_service=context.object_detection,
    )


async def handle_read_workflow_tree(command: ReadWorkflowTreeCommand, context: HandlerContext) -> Any:
    async with context.database.session() as session:
        return await _graph_service(session, context).build_tree()


async def handle_read_ranked_workflow_tree(
    command: ReadRankedWorkflowTreeCommand, context: HandlerContext
) -> Any:
    async with context.database.session() as session:
        view = await _graph_service(session, context).build_ranked_tree(command.query)
    return view.sorted_by_score() if command.sort_by_score else view


async def handle_read_object_class_workflow_tree(
    command: ReadObjectClassWorkflowTreeCommand, context: HandlerContext
) -> Any:
    async with context.database.session() as session:
        view = await _graph_service(session, context).build_object_class_tree(
            command.image, command.company_id
        )
    return view.sorted_by_score() if command.sort_by_score else view


async def handle_update_workflow_diagram(
    command: UpdateWorkflowDiagramCommand, context: HandlerContext
) -> Any:
    async with context.database.session() as session:
        workflow = await WorkflowRepository(session).update_diagram(command.workflow_id, command.diagram)
        if workflow is None:
            raise NotFoundError(f"Workflow {command.workflow_id} not found")
        return {
            "id": workflow.id,
            "block_diagram": workflow.block_diagram,
            "child_node_ids": workflow.child_node_ids,
        }


HANDLERS: Dict[CommandType, Handler] = {
    CommandType.CREATE_ENTITY: handle_create_entity,
    CommandType.ENRICH_ENTITY: handle_enrich_entity,
    CommandType.READ_ENTITY: handle_read_entity,
    CommandType.READ_ENTITY_FIELDS: handle_read_entity_fields,
    CommandType.READ_WORKFLOW_FIELDS: handle_read_workflow_fields,
    CommandType.READ_WORKFLOW_TREE: handle_read_workflow_tree,
    CommandType.READ_RANKED_WORKFLOW_TREE: handle_read_ranked_workflow_tree,
    CommandType.READ_OBJECT_CLASS_WORKFLOW_TREE: handle_read_object_class_workflow_tree,
    CommandType.UPDATE_WORKFLOW_DIAGRAM: handle_update_workflow_diagram,
}


async def dispatch(payload: Any, context: HandlerContext) -> Dict[str, Any]:
    """Validate ``payload``, run its handler and wrap the outcome.

    Args:
        payload: Raw command, e.g. ``{"command": "read_workflow_tree"}``
        context: Shared database handle and service clients

    Returns:
        Dict with ``statusCode`` and ``body``; errors never escape
    """
    try:
        command: BaseCommand = parse_command(payload)
    except PydanticValidationError as e:
        LOGGER.warning("Rejected invalid command", extra={"errors": e.error_count()})
        return response(
            422,
            {
                "error": "ValidationError",
                "message": "Invalid command payload",
                "details": e.errors(include_url=False, include_context=False),
            },
        )

    handler = HANDLERS[command.command]
    LOGGER.info("Dispatching command", extra={"command": command.command.value})
    try:
        result = await handler(command, context)
    except AppError as e:
        LOGGER.warning(
            "Command failed",
            extra={"command": command.command.value, "error": e.__class__.__name__, "status_code": e.status_code},
        )
        return error_response(e)
    except Exception as e:
        LOGGER.error(
            "Unexpected error while handling command",
            exc_info=True,
            extra={"command": command.command.value, "error": str(e)},
        )
        return response(500, {"error": "InternalError", "message": "Internal server error"})

    return response(200, result)
