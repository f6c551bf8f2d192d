"""Helpers for workflow block diagrams.

A block diagram is the editor's JSON document: ``{"nodes": [...], "edges": [...]}``.
Diagram nodes that embed another workflow carry a ``workflowId`` attribute;
those ids become the workflow's child references.
"""

import json
from typing import Any, List, Mapping
from uuid import UUID

from entity360.utils.logging import get_logger

LOGGER = get_logger(__name__)


def extract_child_node_ids(diagram: Any) -> List[UUID]:
    """Collect the ``workflowId`` of every diagram node, in diagram order.

    Malformed diagrams yield no children and malformed ids are skipped;
    duplicates are kept because each one is a separate edge.
    """
    nodes = diagram.get("nodes") if isinstance(diagram, Mapping) else None
    if not isinstance(nodes, list):
        return []

    child_ids: List[UUID] = []
    for node in nodes:
        if not isinstance(node, Mapping) or "workflowId" not in node:
            continue
        try:
            child_ids.append(UUID(str(node["workflowId"])))
        except ValueError:
            LOGGER.warning(
                "Skipping diagram node with invalid workflowId",
                extra={"workflow_id": node.get("workflowId")},
            )
    return child_ids


def serialize_diagram(diagram: Any) -> str:
    """Serialize a diagram for storage."""
    return json.dumps(diagram, default=str)
