"""Rank-weighted workflow graph assembly."""

from entity360.services.graph.color_mapper import ScoreColorMapper, color_for
from entity360.services.graph.graph_assembler import GraphAssembler, build_graph
from entity360.services.graph.relevance_aggregator import aggregate
from entity360.services.graph.workflow_graph_service import WorkflowGraphService

__all__ = [
    "ScoreColorMapper",
    "color_for",
    "GraphAssembler",
    "build_graph",
    "aggregate",
    "WorkflowGraphService",
]
