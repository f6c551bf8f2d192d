from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from entity360.database.models import Workflow
from entity360.repositories.base_repository import BaseRepository, projection_options
from entity360.schemas.projection import (
    WORKFLOW_PATHS,
    WorkflowField,
    project_instance,
    resolve_projection,
)
from entity360.utils.diagram import extract_child_node_ids, serialize_diagram
from entity360.utils.logging import get_logger

LOGGER = get_logger(__name__)


class WorkflowRepository(BaseRepository[Workflow]):
    """Repository for workflow nodes."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Workflow)

    async def get_all_with_thumbnails(self) -> List[Workflow]:
        """Get every workflow with its thumbnail file eagerly loaded.

        Ordered by creation time so graph output is stable between calls.
        """
        try:
            result = await self.session.execute(
                select(Workflow)
                .options(selectinload(Workflow.thumbnail))
                .order_by(Workflow.created_at, Workflow.id)
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise self._fail("retrieving workflows with thumbnails", e) from e

    async def get_projected(
        self, workflow_id: UUID, fields: Iterable[WorkflowField]
    ) -> Optional[Dict[str, Any]]:
        """Load only the requested fields of one workflow."""
        plan = resolve_projection(fields, WORKFLOW_PATHS)
        try:
            result = await self.session.execute(
                select(Workflow)
                .where(Workflow.id == workflow_id)
                .options(*projection_options(Workflow, plan))
            )
            workflow = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise self._fail(f"projecting {workflow_id}", e) from e
        return project_instance(workflow, plan) if workflow is not None else None

    async def update_diagram(self, workflow_id: UUID, diagram: Dict[str, Any]) -> Optional[Workflow]:
        """Replace a workflow's diagram and rebuild its child references from it.

        Args:
            workflow_id: Workflow to update
            diagram: Block diagram document from the editor

        Returns:
            The updated Workflow, None if it does not exist
        """
        child_node_ids = extract_child_node_ids(diagram)
        workflow = await self.update(
            workflow_id,
            block_diagram=serialize_diagram(diagram),
            child_node_ids=child_node_ids,
        )
        if workflow is not None:
            LOGGER.info(
                "Updated workflow diagram",
                extra={"workflow_id": str(workflow_id), "child_nodes": len(child_node_ids)},
            )
        return workflow
