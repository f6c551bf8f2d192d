"""Query-time construction of the workflow graph."""

from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from entity360.core.enums import Association
from entity360.core.exceptions import UpstreamError
from entity360.repositories.workflow_repository import WorkflowRepository
from entity360.schemas.graph import GraphView, WorkflowNode
from entity360.services.ai.contracts import (
    DetectedObject,
    ObjectDetectionService,
    RankedEntity,
    RankingService,
)
from entity360.services.graph.color_mapper import clamp_score
from entity360.services.graph.graph_assembler import GraphAssembler
from entity360.utils.logging import get_logger

LOGGER = get_logger(__name__)


def score_map_from_ranking(ranked: List[RankedEntity]) -> Dict[UUID, float]:
    """Turn ranking hits into an entity id -> score map.

    When an entity appears more than once the highest score wins.
    """
    scores: Dict[UUID, float] = {}
    for hit in ranked:
        score = clamp_score(hit.score)
        if score >= scores.get(hit.entity_id, 0.0):
            scores[hit.entity_id] = score
    return scores


def score_map_from_detections(detected: List[DetectedObject]) -> Dict[UUID, float]:
    """Turn detected object classes into a physical entity id -> score map."""
    scores: Dict[UUID, float] = {}
    for item in detected:
        score = clamp_score(item.max_score)
        if score >= scores.get(item.object_class, 0.0):
            scores[item.object_class] = score
    return scores


class WorkflowGraphService:
    """Loads workflows and assembles the (optionally ranked) graph view."""

    def __init__(
        self,
        session: AsyncSession,
        ranking_service: Optional[RankingService] = None,
        assembler: Optional[GraphAssembler] = None,
        ranking_top_k: int = -1,
        detection_service: Optional[ObjectDetectionService] = None,
    ):
        self.workflow_repo = WorkflowRepository(session)
        self.ranking_service = ranking_service
        self.detection_service = detection_service
        self.assembler = assembler or GraphAssembler()
        self.ranking_top_k = ranking_top_k

    async def load_nodes(self) -> List[WorkflowNode]:
        workflows = await self.workflow_repo.get_all_with_thumbnails()
        return [WorkflowNode.model_validate(workflow) for workflow in workflows]

    async def build_tree(self) -> GraphView:
        """Unranked graph: every node gets the default color and score 0."""
        nodes = await self.load_nodes()
        view = self.assembler.build_graph(nodes)
        LOGGER.info(
            "Built workflow tree",
            extra={"nodes": len(view.nodes), "links": len(view.links)},
        )
        return view

    async def build_ranked_tree(self, query: str) -> GraphView:
        """Graph colored by the relevance of each node's entities to ``query``.

        A failing ranking call leaves every score at 0 rather than failing
        the request.
        """
        nodes = await self.load_nodes()
        score_map = await self.rank(query)
        view = self.assembler.build_graph(nodes, score_map)
        LOGGER.info(
            "Built ranked workflow tree",
            extra={"nodes": len(view.nodes), "links": len(view.links), "scored_entities": len(score_map)},
        )
        return view

    async def build_object_class_tree(self, image: str, company_id: str) -> GraphView:
        """Graph colored by the object classes detected in an image.

        Each node scores the mean confidence over its physical entities;
        classes that were not detected count as 0. Unlike ranking, a failing
        detection call fails the request.

        Raises:
            UpstreamError: If the detection service errors
        """
        nodes = await self.load_nodes()
        if self.detection_service is None:
            LOGGER.warning("No object detection service configured, scores default to 0")
            score_map: Dict[UUID, float] = {}
        else:
            detected = await self.detection_service.detect(image, company_id)
            score_map = score_map_from_detections(detected)
        view = self.assembler.build_graph(nodes, score_map, association=Association.PHYSICAL)
        LOGGER.info(
            "Built object class workflow tree",
            extra={"nodes": len(view.nodes), "links": len(view.links), "detected_classes": len(score_map)},
        )
        return view

    async def rank(self, query: str) -> Dict[UUID, float]:
        if self.ranking_service is None:
            LOGGER.warning("No ranking service configured, scores default to 0")
            return {}
        try:
            ranked = await self.ranking_service.search(query, top_k=self.ranking_top_k)
        except UpstreamError as e:
            LOGGER.warning(
                "Ranking service failed, scores default to 0",
                extra={"error": str(e)},
            )
            return {}
        return score_map_from_ranking(ranked)
