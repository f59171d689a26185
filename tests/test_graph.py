"""Tests for points.py and graph.py."""

import pytest
from pydantic import ValidationError

from crosswire.kernel.graph import (
    DuplicatePointError,
    DuplicateVectorError,
    Edge,
    Graph,
    GraphBuilder,
    MissingNodeError,
    Node,
)
from crosswire.kernel.points import (
    ChainPoint,
    PointMap,
    Vector,
    VectorMap,
    format_point,
    format_vector,
    vectors_equal_as_set,
)
from crosswire.codes import ErrorCode

A = ChainPoint(chain_id=1, address="0xa")
B = ChainPoint(chain_id=2, address="0xb")
C = ChainPoint(chain_id=3, address="0xc")


def test_points_compare_by_value():
    """Two points with the same chain and address are equal and hash alike."""
    assert ChainPoint(chain_id=1, address="0xa") == A
    assert len({A, ChainPoint(chain_id=1, address="0xa")}) == 1
    assert A != ChainPoint(chain_id=2, address="0xa")


def test_point_rejects_empty_address():
    with pytest.raises(ValidationError):
        ChainPoint(chain_id=1, address="  ")


def test_point_is_immutable():
    with pytest.raises(ValidationError):
        A.address = "0xother"


def test_vector_direction_matters():
    """Vectors are directional unless compared as a set."""
    ab = Vector(from_=A, to=B)
    ba = Vector(from_=B, to=A)

    assert ab != ba
    assert ab.reverse() == ba
    assert vectors_equal_as_set(ab, ba)
    assert not vectors_equal_as_set(ab, Vector(from_=A, to=C))


def test_vector_accepts_from_alias():
    vector = Vector.model_validate({"from": {"chain_id": 1, "address": "0xa"}, "to": {"chain_id": 2, "address": "0xb"}})
    assert vector.from_ == A


def test_format_helpers():
    assert format_point(A) == "[1] 0xa"
    assert format_vector(Vector(from_=A, to=B)) == "[1] 0xa → [2] 0xb"


def test_value_keyed_maps():
    """Maps keyed by points/vectors look values up by value, not identity."""
    points = PointMap()
    points.set(A, "a")
    assert points.get(ChainPoint(chain_id=1, address="0xa")) == "a"
    assert points.get(B) is None
    assert points.get_or_else(B, lambda: "default") == "default"
    assert B not in points

    points.set(B, None)
    assert B in points
    assert points.delete(B) is True
    assert points.delete(B) is False
    assert list(points) == [(A, "a")]

    vectors = VectorMap()
    vectors.set(Vector(from_=A, to=B), 1)
    assert Vector(from_=B, to=A) not in vectors
    assert len(vectors) == 1


def test_graph_rejects_duplicate_points():
    with pytest.raises(DuplicatePointError) as exc_info:
        Graph(nodes=[Node(point=A, config=None), Node(point=A, config={"x": 1})])
    assert exc_info.value.point == A
    assert exc_info.value.code == ErrorCode.DUPLICATE_POINT


def test_graph_rejects_duplicate_vectors():
    edge = Edge(vector=Vector(from_=A, to=B), config=None)
    with pytest.raises(DuplicateVectorError):
        Graph(nodes=[Node(point=A, config=None)], edges=[edge, edge])


def test_graph_allows_both_directions():
    """A→B and B→A are distinct edges."""
    graph = Graph(
        nodes=[Node(point=A, config=None), Node(point=B, config=None)],
        edges=[
            Edge(vector=Vector(from_=A, to=B), config="ab"),
            Edge(vector=Vector(from_=B, to=A), config="ba"),
        ],
    )
    assert graph.get_edge_at(Vector(from_=B, to=A)).config == "ba"
    assert graph.get_node_at(C) is None


def test_builder_requires_from_node():
    builder = GraphBuilder().add_nodes(Node(point=A, config=None))

    with pytest.raises(MissingNodeError):
        builder.add_edges(Edge(vector=Vector(from_=B, to=A), config=None))

    # The "to" end does not need to be a node
    builder.add_edges(Edge(vector=Vector(from_=A, to=C), config=None))
    assert len(builder.graph.edges) == 1


def test_builder_rejects_duplicates():
    builder = GraphBuilder().add_nodes(Node(point=A, config=None))
    with pytest.raises(DuplicatePointError):
        builder.add_nodes(Node(point=A, config=None))

    builder.add_edges(Edge(vector=Vector(from_=A, to=B), config=None))
    with pytest.raises(DuplicateVectorError):
        builder.add_edges(Edge(vector=Vector(from_=A, to=B), config=None))


def test_builder_remove_node_removes_outgoing_edges():
    builder = (
        GraphBuilder()
        .add_nodes(Node(point=A, config=None), Node(point=B, config=None))
        .add_edges(
            Edge(vector=Vector(from_=A, to=B), config=None),
            Edge(vector=Vector(from_=B, to=A), config=None),
        )
    )

    builder.remove_node_at(A)

    assert [n.point for n in builder.nodes] == [B]
    assert [e.vector for e in builder.edges] == [Vector(from_=B, to=A)]
    assert builder.get_edges_to(A) == builder.edges
    assert builder.get_edges_from(A) == []


def test_builder_from_graph_clones():
    graph = Graph(nodes=[Node(point=A, config=1)], edges=[Edge(vector=Vector(from_=A, to=B), config=2)])
    builder = GraphBuilder.from_graph(graph).remove_edge_at(Vector(from_=A, to=B))

    assert builder.graph.edges == []
    assert len(graph.edges) == 1
