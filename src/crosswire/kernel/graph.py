"""Typed directed graph of configuration intent."""

from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, model_validator

from crosswire.codes import ErrorCode
from crosswire.errors import CrosswireError
from .points import ChainPoint, PointMap, Vector, VectorMap, format_point, format_vector

NodeConfigT = TypeVar("NodeConfigT")
EdgeConfigT = TypeVar("EdgeConfigT")


class GraphValidationError(CrosswireError):
    """Base exception for structurally invalid graphs."""
    code = ErrorCode.INVALID_GRAPH


class DuplicatePointError(GraphValidationError):
    """Raised when two nodes share the same point."""
    code = ErrorCode.DUPLICATE_POINT

    def __init__(self, point: ChainPoint):
        self.point = point
        super().__init__(f"Duplicate node for {format_point(point)}")


class DuplicateVectorError(GraphValidationError):
    """Raised when two edges share the same vector."""
    code = ErrorCode.DUPLICATE_VECTOR

    def __init__(self, vector: Vector):
        self.vector = vector
        super().__init__(f"Duplicate edge for {format_vector(vector)}")


class MissingNodeError(GraphValidationError):
    """Raised when an edge starts at a point that is not a node of the graph."""
    code = ErrorCode.MISSING_NODE

    def __init__(self, vector: Vector):
        self.vector = vector
        super().__init__(
            f"Cannot add edge {format_vector(vector)}: "
            f"{format_point(vector.from_)} is not in the graph"
        )


class Node(BaseModel, Generic[NodeConfigT]):
    """Per-chain configuration intent."""
    model_config = ConfigDict(frozen=True)

    point: ChainPoint
    config: NodeConfigT


class Edge(BaseModel, Generic[EdgeConfigT]):
    """Per-pathway configuration intent."""
    model_config = ConfigDict(frozen=True)

    vector: Vector
    config: EdgeConfigT


class Graph(BaseModel, Generic[NodeConfigT, EdgeConfigT]):
    """Configuration intent for a set of contracts and the pathways between them.

    Invariants (checked on construction):
    - at most one node per point
    - at most one edge per vector

    List order carries no meaning beyond presentation.
    """
    model_config = ConfigDict(frozen=True)

    nodes: List[Node[NodeConfigT]] = []
    edges: List[Edge[EdgeConfigT]] = []

    @model_validator(mode="after")
    def check_unique(self) -> "Graph":
        # CrosswireError is not a ValueError, so pydantic lets it propagate as-is
        seen_points = set()
        for node in self.nodes:
            if node.point in seen_points:
                raise DuplicatePointError(node.point)
            seen_points.add(node.point)

        seen_vectors = set()
        for edge in self.edges:
            if edge.vector in seen_vectors:
                raise DuplicateVectorError(edge.vector)
            seen_vectors.add(edge.vector)
        return self

    def get_node_at(self, point: ChainPoint) -> Optional[Node[NodeConfigT]]:
        for node in self.nodes:
            if node.point == point:
                return node
        return None

    def get_edge_at(self, vector: Vector) -> Optional[Edge[EdgeConfigT]]:
        for edge in self.edges:
            if edge.vector == vector:
                return edge
        return None


class GraphBuilder(Generic[NodeConfigT, EdgeConfigT]):
    """Incremental graph construction with invariant checks.

    Unlike the Graph model, the builder also requires the ``from`` end of each
    edge to be a node already present in the graph.
    """

    @classmethod
    def from_graph(cls, graph: Graph) -> "GraphBuilder":
        """Start a builder pre-populated with an existing graph (cloning it)."""
        return cls().add_nodes(*graph.nodes).add_edges(*graph.edges)

    def __init__(self):
        self._nodes: PointMap[Node[NodeConfigT]] = PointMap()
        self._edges: VectorMap[Edge[EdgeConfigT]] = VectorMap()

    def add_nodes(self, *nodes: Node[NodeConfigT]) -> "GraphBuilder":
        for node in nodes:
            if node.point in self._nodes:
                raise DuplicatePointError(node.point)
            self._nodes.set(node.point, node)
        return self

    def add_edges(self, *edges: Edge[EdgeConfigT]) -> "GraphBuilder":
        for edge in edges:
            if edge.vector.from_ not in self._nodes:
                raise MissingNodeError(edge.vector)
            if edge.vector in self._edges:
                raise DuplicateVectorError(edge.vector)
            self._edges.set(edge.vector, edge)
        return self

    def remove_node_at(self, point: ChainPoint) -> "GraphBuilder":
        """Remove a node together with every edge leaving it."""
        for edge in self.get_edges_from(point):
            self.remove_edge_at(edge.vector)
        self._nodes.delete(point)
        return self

    def remove_edge_at(self, vector: Vector) -> "GraphBuilder":
        self._edges.delete(vector)
        return self

    def get_node_at(self, point: ChainPoint) -> Optional[Node[NodeConfigT]]:
        return self._nodes.get(point)

    def get_edge_at(self, vector: Vector) -> Optional[Edge[EdgeConfigT]]:
        return self._edges.get(vector)

    def get_edges_from(self, point: ChainPoint) -> List[Edge[EdgeConfigT]]:
        return [edge for edge in self.edges if edge.vector.from_ == point]

    def get_edges_to(self, point: ChainPoint) -> List[Edge[EdgeConfigT]]:
        return [edge for edge in self.edges if edge.vector.to == point]

    @property
    def nodes(self) -> List[Node[NodeConfigT]]:
        return self._nodes.values()

    @property
    def edges(self) -> List[Edge[EdgeConfigT]]:
        return self._edges.values()

    @property
    def graph(self) -> Graph:
        return Graph(nodes=self.nodes, edges=self.edges)
