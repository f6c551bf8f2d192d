"""Per-node aggregation of entity relevance scores."""

from typing import List, Mapping
from uuid import UUID

from entity360.core.enums import Association
from entity360.schemas.graph import WorkflowNode
from entity360.services.graph.color_mapper import clamp_score

ScoreMap = Mapping[UUID, float]


def associated_ids(node: WorkflowNode, association: Association = Association.DIGITAL) -> List[UUID]:
    if association is Association.PHYSICAL:
        return node.physical_entity_ids
    return node.digital_entity_ids


def aggregate(
    node: WorkflowNode,
    score_map: ScoreMap,
    association: Association = Association.DIGITAL,
) -> float:
    """Mean score of the node's associated entities.

    References missing from ``score_map`` count as 0, and a node with no
    associated entities scores 0.

    Args:
        node: Workflow node to score
        score_map: Entity id -> relevance in [0, 1]
        association: Which reference set of the node to average over

    Returns:
        float: Mean relevance in [0, 1]
    """
    refs = associated_ids(node, association)
    if not refs:
        return 0.0
    total = sum(clamp_score(score_map.get(ref, 0.0)) for ref in refs)
    return total / len(refs)
