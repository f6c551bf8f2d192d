import uuid

import pytest

from entity360.core.enums import Association
from entity360.schemas.graph import WorkflowNode
from entity360.services.graph.relevance_aggregator import aggregate


def _node(digital=None, physical=None) -> WorkflowNode:
    return WorkflowNode(
        id=uuid.uuid4(),
        code="WI-001",
        name="Inspect pump",
        digital_entity_ids=digital or [],
        physical_entity_ids=physical or [],
    )


def test_node_without_entities_scores_zero():
    assert aggregate(_node(), {uuid.uuid4(): 0.9}) == 0.0


def test_mean_of_associated_scores():
    a, b = uuid.uuid4(), uuid.uuid4()

    assert aggregate(_node(digital=[a, b]), {a: 0.2, b: 0.8}) == pytest.approx(0.5)


def test_unscored_entities_count_as_zero():
    a, b = uuid.uuid4(), uuid.uuid4()

    assert aggregate(_node(digital=[a, b]), {a: 0.6}) == pytest.approx(0.3)


def test_map_values_are_clamped():
    a, b = uuid.uuid4(), uuid.uuid4()

    assert aggregate(_node(digital=[a, b]), {a: 3.0, b: -1.0}) == pytest.approx(0.5)


def test_physical_association():
    digital, physical = uuid.uuid4(), uuid.uuid4()
    node = _node(digital=[digital], physical=[physical])
    scores = {digital: 0.1, physical: 0.9}

    assert aggregate(node, scores) == pytest.approx(0.1)
    assert aggregate(node, scores, Association.PHYSICAL) == pytest.approx(0.9)


def test_empty_score_map():
    assert aggregate(_node(digital=[uuid.uuid4()]), {}) == 0.0
