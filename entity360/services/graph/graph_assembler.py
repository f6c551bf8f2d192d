"""Assembly of the workflow node/link graph."""

from typing import Iterable, Optional

from entity360.core.enums import Association
from entity360.schemas.graph import GraphLink, GraphNode, GraphView, WorkflowNode
from entity360.services.graph.color_mapper import DEFAULT_COLOR, ScoreColorMapper
from entity360.services.graph.relevance_aggregator import ScoreMap, aggregate
from entity360.utils.logging import get_logger

LOGGER = get_logger(__name__)


class GraphAssembler:
    """Builds a GraphView from workflow nodes and an optional score map.

    Attributes:
        color_mapper: Score to color mapping used when scores are present
        default_color: Color of every node when no score map is given
    """

    def __init__(
        self,
        color_mapper: Optional[ScoreColorMapper] = None,
        default_color: str = DEFAULT_COLOR,
    ):
        self.color_mapper = color_mapper or ScoreColorMapper()
        self.default_color = default_color

    def build_graph(
        self,
        nodes: Iterable[WorkflowNode],
        score_map: Optional[ScoreMap] = None,
        association: Association = Association.DIGITAL,
    ) -> GraphView:
        """Emit one summary per node and one link per child reference.

        Output follows input order. Links to children that are not among
        ``nodes`` are kept; cycles need no special handling because each
        node is visited exactly once.

        Args:
            nodes: Workflow nodes in traversal order
            score_map: Entity id -> relevance; None for an unranked view
            association: Reference set used for scoring

        Returns:
            GraphView: Nodes and links
        """
        view = GraphView()
        for node in nodes:
            if score_map is not None:
                score = aggregate(node, score_map, association)
                color = self.color_mapper.color_for(score)
            else:
                score = 0.0
                color = self.default_color

            view.nodes.append(
                GraphNode(
                    id=node.id,
                    code=node.code,
                    name=node.name,
                    description=node.description,
                    image=node.thumbnail_location or None,
                    color=color,
                    score=score,
                )
            )
            view.links.extend(
                GraphLink(source=node.id, target=child_id) for child_id in node.child_node_ids
            )

        dangling = view.dangling_targets()
        if dangling:
            LOGGER.debug(
                "Graph contains links to unknown nodes",
                extra={"dangling_targets": len(dangling)},
            )
        return view


def build_graph(
    nodes: Iterable[WorkflowNode],
    score_map: Optional[ScoreMap] = None,
) -> GraphView:
    """Build a graph with the default colors."""
    return GraphAssembler().build_graph(nodes, score_map)
