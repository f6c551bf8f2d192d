"""Graph view models consumed by the force-graph front end."""

from typing import Dict, List, Optional, Set
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class WorkflowNode(BaseModel):
    """Workflow as seen by graph assembly.

    Built from the ORM row; references are kept as ids and may dangle.
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    code: str
    name: str
    description: Optional[str] = None
    thumbnail_location: Optional[str] = None
    child_node_ids: List[UUID] = Field(default_factory=list)
    digital_entity_ids: List[UUID] = Field(default_factory=list)
    physical_entity_ids: List[UUID] = Field(default_factory=list)

    @field_validator("child_node_ids", "digital_entity_ids", "physical_entity_ids", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return [] if value is None else value


class GraphNode(BaseModel):
    """Display summary of one workflow node."""

    id: UUID
    code: str
    name: str
    description: Optional[str] = None
    image: Optional[str] = None
    color: str
    score: float = 0.0


class GraphLink(BaseModel):
    """Directed edge from a workflow to one of its children."""

    source: UUID
    target: UUID


class GraphView(BaseModel):
    """Assembled node/link structure, in input traversal order."""

    nodes: List[GraphNode] = Field(default_factory=list)
    links: List[GraphLink] = Field(default_factory=list)

    def dangling_targets(self) -> Set[UUID]:
        """Link targets that have no node in this view."""
        known = {node.id for node in self.nodes}
        return {link.target for link in self.links if link.target not in known}

    def sorted_by_score(self) -> "GraphView":
        """Copy with nodes ordered by descending score; ties keep input order."""
        return GraphView(
            nodes=sorted(self.nodes, key=lambda node: node.score, reverse=True),
            links=list(self.links),
        )

    def scores(self) -> Dict[UUID, float]:
        return {node.id: node.score for node in self.nodes}
