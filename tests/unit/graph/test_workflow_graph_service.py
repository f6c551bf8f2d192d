import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from entity360.core.exceptions import UpstreamError, UpstreamTimeoutError
from entity360.database.models import File
from entity360.services.ai.contracts import DetectedObject, RankedEntity
from entity360.services.graph.color_mapper import DEFAULT_COLOR, color_for
from entity360.services.graph.workflow_graph_service import (
    WorkflowGraphService,
    score_map_from_detections,
    score_map_from_ranking,
)


@pytest.fixture
def mock_workflow_repo():
    repo = MagicMock()
    repo.get_all_with_thumbnails = AsyncMock(return_value=[])
    return repo


@pytest.fixture
def ranking_service():
    service = MagicMock()
    service.search = AsyncMock(return_value=[])
    return service


@pytest.fixture
def detection_service():
    service = MagicMock()
    service.detect = AsyncMock(return_value=[])
    return service


@pytest.fixture
def graph_service(mock_workflow_repo, ranking_service, detection_service):
    with patch(
        "entity360.services.graph.workflow_graph_service.WorkflowRepository",
        return_value=mock_workflow_repo,
    ):
        yield WorkflowGraphService(
            MagicMock(), ranking_service=ranking_service, detection_service=detection_service
        )


@pytest.mark.asyncio
async def test_build_tree_uses_default_color(graph_service, mock_workflow_repo, ranking_service, workflow_factory):
    child = workflow_factory("WI-002")
    parent = workflow_factory("WI-001", child_node_ids=[child.id, uuid.uuid4()])
    mock_workflow_repo.get_all_with_thumbnails.return_value = [parent, child]

    view = await graph_service.build_tree()

    assert [node.code for node in view.nodes] == ["WI-001", "WI-002"]
    assert all(node.color == DEFAULT_COLOR for node in view.nodes)
    assert len(view.links) == 2
    assert len(view.dangling_targets()) == 1
    ranking_service.search.assert_not_awaited()


@pytest.mark.asyncio
async def test_thumbnail_location_becomes_image(graph_service, mock_workflow_repo, workflow_factory):
    workflow = workflow_factory("WI-001")
    workflow.thumbnail = File(id=uuid.uuid4(), name="thumb.png", location="thumbs/wi-001.png")
    mock_workflow_repo.get_all_with_thumbnails.return_value = [workflow, workflow_factory("WI-002")]

    view = await graph_service.build_tree()

    assert view.nodes[0].image == "thumbs/wi-001.png"
    assert view.nodes[1].image is None


@pytest.mark.asyncio
async def test_build_ranked_tree_scores_nodes(graph_service, mock_workflow_repo, ranking_service, workflow_factory):
    e1, e2 = uuid.uuid4(), uuid.uuid4()
    mock_workflow_repo.get_all_with_thumbnails.return_value = [
        workflow_factory("WI-001", digital_entity_ids=[e1, e2]),
        workflow_factory("WI-002"),
    ]
    ranking_service.search.return_value = [
        RankedEntity(id=e1, score=0.2),
        RankedEntity(id=e2, score=0.8),
    ]

    view = await graph_service.build_ranked_tree("pump vibration")

    assert view.nodes[0].score == pytest.approx(0.5)
    assert view.nodes[0].color == color_for(0.5)
    assert view.nodes[1].score == 0.0
    ranking_service.search.assert_awaited_once_with("pump vibration", top_k=-1)


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [UpstreamError("down"), UpstreamTimeoutError("slow")])
async def test_ranking_failure_degrades_to_zero(
    graph_service, mock_workflow_repo, ranking_service, workflow_factory, error
):
    mock_workflow_repo.get_all_with_thumbnails.return_value = [
        workflow_factory("WI-001", digital_entity_ids=[uuid.uuid4()])
    ]
    ranking_service.search.side_effect = error

    view = await graph_service.build_ranked_tree("pump")

    assert view.nodes[0].score == 0.0
    assert view.nodes[0].color == color_for(0.0)


@pytest.mark.asyncio
async def test_rank_without_service_returns_empty_map(mock_workflow_repo):
    with patch(
        "entity360.services.graph.workflow_graph_service.WorkflowRepository",
        return_value=mock_workflow_repo,
    ):
        service = WorkflowGraphService(MagicMock())

    assert await service.rank("anything") == {}


def test_score_map_keeps_highest_duplicate():
    entity = uuid.uuid4()

    scores = score_map_from_ranking(
        [RankedEntity(id=entity, score=0.3), RankedEntity(id=entity, score=0.7), RankedEntity(id=entity, score=0.1)]
    )

    assert scores == {entity: 0.7}


def test_score_map_clamps_scores():
    high, low = uuid.uuid4(), uuid.uuid4()

    scores = score_map_from_ranking([RankedEntity(id=high, score=1.7), RankedEntity(id=low, score=-0.2)])

    assert scores == {high: 1.0, low: 0.0}


@pytest.mark.asyncio
async def test_build_object_class_tree_scores_physical_entities(
    graph_service, mock_workflow_repo, detection_service, ranking_service, workflow_factory
):
    pump, valve, missing = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
    mock_workflow_repo.get_all_with_thumbnails.return_value = [
        workflow_factory("WI-001", physical_entity_ids=[pump, missing]),
        workflow_factory("WI-002", physical_entity_ids=[valve]),
        workflow_factory("WI-003", digital_entity_ids=[pump]),
    ]
    detection_service.detect.return_value = [
        DetectedObject(object_class=pump, max_score=0.8),
        DetectedObject(object_class=valve, max_score=0.3),
    ]

    view = await graph_service.build_object_class_tree("aW1n", "acme")

    assert view.scores() == {
        view.nodes[0].id: pytest.approx(0.4),
        view.nodes[1].id: pytest.approx(0.3),
        view.nodes[2].id: 0.0,
    }
    assert view.nodes[0].color == color_for(0.4)
    detection_service.detect.assert_awaited_once_with("aW1n", "acme")
    ranking_service.search.assert_not_awaited()


@pytest.mark.asyncio
async def test_object_detection_failure_propagates(
    graph_service, mock_workflow_repo, detection_service, workflow_factory
):
    mock_workflow_repo.get_all_with_thumbnails.return_value = [
        workflow_factory("WI-001", physical_entity_ids=[uuid.uuid4()])
    ]
    detection_service.detect.side_effect = UpstreamError("Object detection returned status 500")

    with pytest.raises(UpstreamError):
        await graph_service.build_object_class_tree("aW1n", "acme")


@pytest.mark.asyncio
async def test_object_class_tree_without_detection_service(mock_workflow_repo, workflow_factory):
    mock_workflow_repo.get_all_with_thumbnails.return_value = [
        workflow_factory("WI-001", physical_entity_ids=[uuid.uuid4()])
    ]
    with patch(
        "entity360.services.graph.workflow_graph_service.WorkflowRepository",
        return_value=mock_workflow_repo,
    ):
        service = WorkflowGraphService(MagicMock())

    view = await service.build_object_class_tree("aW1n", "acme")

    assert view.nodes[0].score == 0.0


def test_detection_score_map_keeps_highest_duplicate():
    pump = uuid.uuid4()

    scores = score_map_from_detections(
        [DetectedObject(object_class=pump, max_score=0.6), DetectedObject(object_class=pump, max_score=1.4)]
    )

    assert scores == {pump: 1.0}
