"""Turn loosely-typed configuration into a canonical Graph.

The transformation is a two-phase pipeline:

1. Every distinct symbolic contract reference in the input is resolved to a
   concrete ChainPoint by the injected point resolver. Resolutions are
   independent and run concurrently (bounded); the results form an arena
   keyed by reference.
2. Nodes and edges are assembled from the arena only, so no reference is
   resolved twice and the graph is built from concrete points.

The build is atomic: the first failing resolution cancels the others and the
whole build fails with a PointResolutionError naming the reference.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from crosswire.codes import ErrorCode
from crosswire.errors import CrosswireError
from crosswire._internal.concurrency import gather_fail_fast
from .graph import Edge, Graph, Node
from .points import ChainPoint, Vector

logger = logging.getLogger(__name__)


class ConfigLoadError(CrosswireError):
    """Raised when raw configuration cannot be read or does not match its schema."""
    code = ErrorCode.CONFIG_LOAD_ERROR


class PointResolutionError(CrosswireError):
    """Raised when a symbolic contract reference cannot be resolved."""
    code = ErrorCode.POINT_RESOLUTION_FAILED

    def __init__(self, ref: "ContractRef", cause: BaseException):
        self.ref = ref
        self.cause = cause
        super().__init__(f"Could not resolve contract {format_ref(ref)}: {cause}")


class ContractRef(BaseModel):
    """A symbolic reference to a deployed contract.

    Either the address or the contract name (or both) must be given; the
    point resolver decides how to look the contract up.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    chain_id: int = Field(..., ge=0)
    address: Optional[str] = None
    contract_name: Optional[str] = None

    @model_validator(mode="after")
    def check_identifiable(self) -> "ContractRef":
        if not self.address and not self.contract_name:
            raise ValueError("Contract reference needs an address or a contract_name")
        return self


def format_ref(ref: ContractRef) -> str:
    label = ref.contract_name or ""
    if ref.address:
        label = f"{label} at {ref.address}" if label else ref.address
    return f"[{ref.chain_id}] {label}"


PointResolver = Callable[[ContractRef], Awaitable[ChainPoint]]


class RawContract(BaseModel):
    model_config = ConfigDict(extra="forbid")

    contract: ContractRef
    config: Any = None


class RawConnection(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    from_: ContractRef = Field(..., alias="from")
    to: ContractRef
    config: Any = None


class RawGraphConfig(BaseModel):
    """Input shape accepted by build_graph."""
    model_config = ConfigDict(extra="forbid")

    contracts: List[RawContract] = Field(default_factory=list)
    connections: List[RawConnection] = Field(default_factory=list)


def _parse_config(model: Optional[Type[BaseModel]], value: Any, label: str) -> Any:
    if model is None or value is None:
        return value
    try:
        return model.model_validate(value)
    except ValidationError as e:
        raise ConfigLoadError(f"Invalid configuration for {label}: {e}") from e


async def resolve_refs(
    refs: List[ContractRef],
    point_resolver: PointResolver,
    concurrency: Optional[int] = None,
) -> Dict[ContractRef, ChainPoint]:
    """Resolve distinct references concurrently into an arena of points."""
    unique = list(dict.fromkeys(refs))

    async def resolve_one(ref: ContractRef) -> ChainPoint:
        logger.debug("Resolving contract %s", format_ref(ref))
        try:
            point = await point_resolver(ref)
        except Exception as e:
            logger.error("Failed to resolve contract %s: %s", format_ref(ref), e)
            raise PointResolutionError(ref, e) from e
        if not isinstance(point, ChainPoint):
            point = ChainPoint.model_validate(point)
        return point

    points = await gather_fail_fast([resolve_one(ref) for ref in unique], limit=concurrency)
    return dict(zip(unique, points))


async def build_graph(
    raw_config: Any,
    point_resolver: PointResolver,
    *,
    node_config: Optional[Type[BaseModel]] = None,
    edge_config: Optional[Type[BaseModel]] = None,
    concurrency: Optional[int] = None,
) -> Graph:
    """Build a Graph from raw configuration.

    Args:
        raw_config: Mapping with ``contracts`` and ``connections`` lists, or a
            RawGraphConfig.
        point_resolver: Async function turning a ContractRef into a ChainPoint.
        node_config: Optional pydantic model to validate node configs with.
        edge_config: Optional pydantic model to validate edge configs with.
        concurrency: Maximum number of resolutions in flight (unbounded if None).

    Returns:
        The canonical graph.

    Raises:
        ConfigLoadError: If the input or one of its configs is invalid.
        PointResolutionError: If any reference fails to resolve.
        GraphValidationError: If two items resolve to the same point/vector.
    """
    if isinstance(raw_config, RawGraphConfig):
        parsed = raw_config
    else:
        try:
            parsed = RawGraphConfig.model_validate(raw_config)
        except ValidationError as e:
            raise ConfigLoadError(f"Invalid graph configuration: {e}") from e

    # Validate configs before talking to any chain
    node_configs = [
        _parse_config(node_config, c.config, f"contract {format_ref(c.contract)}")
        for c in parsed.contracts
    ]
    edge_configs = [
        _parse_config(edge_config, c.config, f"connection {format_ref(c.from_)} → {format_ref(c.to)}")
        for c in parsed.connections
    ]

    refs: List[ContractRef] = [c.contract for c in parsed.contracts]
    for connection in parsed.connections:
        refs.extend([connection.from_, connection.to])

    arena = await resolve_refs(refs, point_resolver, concurrency)
    logger.debug("Resolved %d contract references", len(arena))

    nodes = [
        Node(point=arena[c.contract], config=config)
        for c, config in zip(parsed.contracts, node_configs)
    ]
    edges = [
        Edge(vector=Vector(from_=arena[c.from_], to=arena[c.to]), config=config)
        for c, config in zip(parsed.connections, edge_configs)
    ]
    return Graph(nodes=nodes, edges=edges)

