"""Generic configurator machinery.

A configurator is a pure diff function::

    async (graph, sdk_factory) -> list[Transaction]

It reads current on-chain state through the SDKs produced by ``sdk_factory``
and returns the transactions needed to converge that state to the graph's
intent. It never submits anything.

Reads for independent items run concurrently; results are always assembled
in graph order (and, for composed configurators, argument order) so the
output is deterministic regardless of read completion order. Any read error
aborts the whole call: a partial diff is never returned.
"""

import asyncio
import functools
import logging
from typing import Any, Awaitable, Callable, Dict, List

from crosswire.log import pluralize
from crosswire._internal.concurrency import gather_fail_fast
from .graph import Edge, Graph, Node
from .points import ChainPoint
from .transactions import Transaction, flatten_transactions

logger = logging.getLogger(__name__)

SDKFactory = Callable[[ChainPoint], Awaitable[Any]]
Configurator = Callable[[Graph, SDKFactory], Awaitable[List[Transaction]]]
NodeConfigurator = Callable[[Node, Any], Awaitable[List[Transaction]]]
EdgeConfigurator = Callable[[Edge, Any], Awaitable[List[Transaction]]]


def memoize_factory(sdk_factory: SDKFactory) -> SDKFactory:
    """Memoize an SDK factory per point.

    Concurrent callers asking for the same point share one in-flight
    creation. The cache lives as long as the returned function, i.e. one
    configure call.
    """
    if getattr(sdk_factory, "__memoized__", False):
        return sdk_factory

    cache: Dict[ChainPoint, "asyncio.Future[Any]"] = {}

    async def memoized(point: ChainPoint) -> Any:
        future = cache.get(point)
        if future is None:
            future = asyncio.ensure_future(sdk_factory(point))
            cache[point] = future
        return await asyncio.shield(future)

    memoized.__memoized__ = True  # type: ignore[attr-defined]
    return memoized


def create_configure_nodes(configure_node: NodeConfigurator) -> Configurator:
    """Lift a per-node function into a configurator over all graph nodes."""

    async def configure(graph: Graph, sdk_factory: SDKFactory) -> List[Transaction]:
        factory = memoize_factory(sdk_factory)

        async def run(node: Node) -> List[Transaction]:
            sdk = await factory(node.point)
            return await configure_node(node, sdk)

        return flatten_transactions(await gather_fail_fast([run(node) for node in graph.nodes]))

    return configure


def create_configure_edges(configure_edge: EdgeConfigurator) -> Configurator:
    """Lift a per-edge function into a configurator over all graph edges.

    The SDK handed to the function is the one for the edge's ``from`` point.
    """

    async def configure(graph: Graph, sdk_factory: SDKFactory) -> List[Transaction]:
        factory = memoize_factory(sdk_factory)

        async def run(edge: Edge) -> List[Transaction]:
            sdk = await factory(edge.vector.from_)
            return await configure_edge(edge, sdk)

        return flatten_transactions(await gather_fail_fast([run(edge) for edge in graph.edges]))

    return configure


def create_configure_multiple(*configurators: Configurator) -> Configurator:
    """Compose configurators; output keeps the argument order.

    All configurators share one memoized SDK factory.
    """

    async def configure(graph: Graph, sdk_factory: SDKFactory) -> List[Transaction]:
        factory = memoize_factory(sdk_factory)
        results = await gather_fail_fast([c(graph, factory) for c in configurators])
        return flatten_transactions(results)

    return configure


def logged(label: str) -> Callable[[Configurator], Configurator]:
    """Decorate a configurator with start/success/failure log lines."""

    def decorator(configurator: Configurator) -> Configurator:
        @functools.wraps(configurator)
        async def wrapper(graph: Graph, sdk_factory: SDKFactory) -> List[Transaction]:
            logger.debug("Checking %s", label)
            try:
                transactions = await configurator(graph, sdk_factory)
            except Exception as e:
                logger.error("Failed to check %s: %s", label, e)
                raise
            logger.debug("Checked %s: %s needed", label, pluralize(len(transactions), "transaction"))
            return transactions

        return wrapper

    return decorator
