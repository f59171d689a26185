"""OApp configurators.

Each configurator below handles one property family. For every node or edge
it skips properties with no expressed intent, reads the current value through
the (memoized) SDK, compares it structurally with the desired value and asks
the SDK setter for a transaction only when they differ.

``configure_oapp`` composes them in a fixed order: node-level properties
first, then edge-level properties with send-direction configuration before
receive-direction configuration.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel

from crosswire.codes import ErrorCode
from crosswire.errors import CrosswireError
from crosswire.kernel.configurator import (
    SDKFactory,
    create_configure_edges,
    create_configure_multiple,
    create_configure_nodes,
    logged,
    memoize_factory,
)
from crosswire.kernel.equality import is_deep_equal
from crosswire.kernel.graph import Edge, Graph, Node
from crosswire.kernel.points import ChainPoint, PointMap, format_point, format_vector
from crosswire.kernel.transactions import Transaction, flatten_transactions
from crosswire._internal.concurrency import gather_fail_fast
from .types import (
    EnforcedOption,
    EnforcedOptionParam,
    ExecutorConfig,
    OAppEdgeConfig,
    OAppNodeConfig,
    OAppSDK,
    Timeout,
    UlnConfig,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class MissingLibraryError(CrosswireError):
    """Raised when a message library is neither configured nor set on chain."""
    code = ErrorCode.MISSING_LIBRARY

    def __init__(self, direction: str, label: str):
        self.direction = direction
        super().__init__(
            f"{direction} library has not been set in the config for {label} and no default value exists"
        )


def _coerce(model: Type[ModelT], value: Any) -> Optional[ModelT]:
    """Parse an SDK return value into the config model (canonicalizing it)."""
    if value is None or isinstance(value, model):
        return value
    if isinstance(value, BaseModel):
        value = value.model_dump()
    return model.model_validate(value)


def _node_config(node: Node) -> Optional[OAppNodeConfig]:
    return _coerce(OAppNodeConfig, node.config)


def _edge_config(edge: Edge) -> Optional[OAppEdgeConfig]:
    return _coerce(OAppEdgeConfig, edge.config)


# Node-level


@logged("OApp delegates")
@create_configure_nodes
async def configure_delegates(node: Node, sdk: OAppSDK) -> List[Transaction]:
    config = _node_config(node)
    label = format_point(node.point)

    if config is None or config.delegate is None:
        logger.debug("Delegate not set for %s, skipping", label)
        return []

    current = await sdk.get_delegate()
    if is_deep_equal(current, config.delegate):
        logger.debug("Delegate %s already set for %s", config.delegate, label)
        return []

    logger.debug("Setting delegate %s for %s", config.delegate, label)
    return [await sdk.set_delegate(config.delegate)]


@logged("OApp read channels")
@create_configure_nodes
async def configure_read_channels(node: Node, sdk: OAppSDK) -> List[Transaction]:
    """Activate/deactivate read channels, then point active channels at their read library."""
    config = _node_config(node)
    label = format_point(node.point)

    if config is None or not config.read_channel_configs:
        logger.debug("Read channel configuration not set for %s, skipping", label)
        return []

    transactions: List[Transaction] = []
    for channel in config.read_channel_configs:
        active = True if channel.active is None else channel.active
        is_active = await sdk.is_read_channel_active(channel.channel_id)
        if is_active != active:
            logger.debug("Setting read channel %d to %s for %s", channel.channel_id, active, label)
            transactions.append(await sdk.set_read_channel(channel.channel_id, active))

        if not active or channel.read_library is None:
            continue

        transactions.extend(await _configure_send_library(sdk, channel.channel_id, channel.read_library, label))
        transactions.extend(await _configure_receive_library(sdk, channel.channel_id, channel.read_library, 0, label))

    return transactions


# Edge-level, send direction


@logged("OApp peers")
@create_configure_edges
async def configure_peers(edge: Edge, sdk: OAppSDK) -> List[Transaction]:
    to = edge.vector.to
    label = format_vector(edge.vector)

    current = await sdk.get_peer(to.chain_id)
    if is_deep_equal(current, to.address):
        logger.debug("Peer already set for %s", label)
        return []

    logger.debug("Setting peer for %s", label)
    return [await sdk.set_peer(to.chain_id, to.address)]


async def _configure_send_library(sdk: OAppSDK, chain_id: int, library: str, label: str) -> List[Transaction]:
    is_default = await sdk.is_default_send_library(chain_id)
    current = await sdk.get_send_library(chain_id)
    if not is_default and is_deep_equal(current, library):
        logger.debug("Send library already set to %s for %s", library, label)
        return []

    logger.debug("Setting send library %s for %s", library, label)
    return [await sdk.set_send_library(chain_id, library)]


@logged("OApp send libraries")
@create_configure_edges
async def configure_send_libraries(edge: Edge, sdk: OAppSDK) -> List[Transaction]:
    config = _edge_config(edge)
    if config is None or config.send_library is None:
        return []
    return await _configure_send_library(
        sdk, edge.vector.to.chain_id, config.send_library, format_vector(edge.vector)
    )


@logged("OApp send config")
@create_configure_edges
async def configure_send_config(edge: Edge, sdk: OAppSDK) -> List[Transaction]:
    """Executor config then send ULN config: up to two transactions per edge."""
    config = _edge_config(edge)
    if config is None or config.send_config is None:
        return []
    send_config = config.send_config
    if send_config.executor_config is None and send_config.uln_config is None:
        return []

    chain_id = edge.vector.to.chain_id
    label = format_vector(edge.vector)
    library = config.send_library or await sdk.get_send_library(chain_id)
    if not library:
        raise MissingLibraryError("Send", label)

    transactions: List[Transaction] = []

    if send_config.executor_config is not None:
        current = _coerce(ExecutorConfig, await sdk.get_executor_config(library, chain_id))
        if not is_deep_equal(current, send_config.executor_config):
            logger.debug("Setting executor config for %s", label)
            transactions.append(await sdk.set_executor_config(library, chain_id, send_config.executor_config))

    if send_config.uln_config is not None:
        current = _coerce(UlnConfig, await sdk.get_send_uln_config(library, chain_id))
        if not is_deep_equal(current, send_config.uln_config):
            logger.debug("Setting send ULN config for %s", label)
            transactions.append(await sdk.set_send_uln_config(library, chain_id, send_config.uln_config))

    return transactions


def _group_by_msg_type(options: Tuple[EnforcedOption, ...]) -> Dict[int, Tuple[EnforcedOption, ...]]:
    grouped: Dict[int, List[EnforcedOption]] = {}
    for option in options:
        grouped.setdefault(option.msg_type, []).append(option)
    return {msg_type: tuple(group) for msg_type, group in grouped.items()}


@logged("OApp enforced options")
async def configure_enforced_options(graph: Graph, sdk_factory: SDKFactory) -> List[Transaction]:
    """Enforced options, one transaction per point covering all of its pathways."""
    factory = memoize_factory(sdk_factory)

    async def diff_edge(edge: Edge) -> List[EnforcedOptionParam]:
        config = _edge_config(edge)
        if config is None or not config.enforced_options:
            return []

        sdk = await factory(edge.vector.from_)
        chain_id = edge.vector.to.chain_id
        params: List[EnforcedOptionParam] = []
        for msg_type, options in _group_by_msg_type(config.enforced_options).items():
            current = await sdk.get_enforced_options(chain_id, msg_type)
            current = tuple(_coerce(EnforcedOption, option) for option in (current or ()))
            if not is_deep_equal(current, options):
                params.append(EnforcedOptionParam(chain_id=chain_id, msg_type=msg_type, options=options))
        return params

    diffs = await gather_fail_fast([diff_edge(edge) for edge in graph.edges])

    params_by_point: PointMap[List[EnforcedOptionParam]] = PointMap()
    for edge, params in zip(graph.edges, diffs):
        if not params:
            continue
        existing = params_by_point.get_or_else(edge.vector.from_, list)
        params_by_point.set(edge.vector.from_, existing + params)

    async def build(point: ChainPoint, params: List[EnforcedOptionParam]) -> Transaction:
        sdk = await factory(point)
        logger.debug("Setting %d enforced options for %s", len(params), format_point(point))
        return await sdk.set_enforced_options(params)

    return await gather_fail_fast([build(point, params) for point, params in params_by_point])


# Edge-level, receive direction


async def _configure_receive_library(
    sdk: OAppSDK, chain_id: int, library: str, grace_period: int, label: str
) -> List[Transaction]:
    current, is_default = await sdk.get_receive_library(chain_id)
    if not is_default and is_deep_equal(current, library):
        logger.debug("Receive library already set to %s for %s", library, label)
        return []

    logger.debug("Setting receive library %s for %s", library, label)
    return [await sdk.set_receive_library(chain_id, library, grace_period)]


@logged("OApp receive libraries")
@create_configure_edges
async def configure_receive_libraries(edge: Edge, sdk: OAppSDK) -> List[Transaction]:
    config = _edge_config(edge)
    if config is None or config.receive_library_config is None:
        return []
    receive = config.receive_library_config
    return await _configure_receive_library(
        sdk,
        edge.vector.to.chain_id,
        receive.receive_library,
        receive.grace_period,
        format_vector(edge.vector),
    )


@logged("OApp receive library timeouts")
@create_configure_edges
async def configure_receive_library_timeouts(edge: Edge, sdk: OAppSDK) -> List[Transaction]:
    config = _edge_config(edge)
    if config is None or config.receive_library_timeout_config is None:
        return []

    desired = config.receive_library_timeout_config
    chain_id = edge.vector.to.chain_id
    current = _coerce(Timeout, await sdk.get_receive_library_timeout(chain_id))
    if is_deep_equal(current, desired):
        return []

    logger.debug("Setting receive library timeout for %s", format_vector(edge.vector))
    return [await sdk.set_receive_library_timeout(chain_id, desired.lib, desired.expiry)]


@logged("OApp receive config")
@create_configure_edges
async def configure_receive_config(edge: Edge, sdk: OAppSDK) -> List[Transaction]:
    config = _edge_config(edge)
    if config is None or config.receive_config is None or config.receive_config.uln_config is None:
        return []

    chain_id = edge.vector.to.chain_id
    label = format_vector(edge.vector)
    if config.receive_library_config is not None:
        library = config.receive_library_config.receive_library
    else:
        library, _ = await sdk.get_receive_library(chain_id)
    if not library:
        raise MissingLibraryError("Receive", label)

    desired = config.receive_config.uln_config
    current = _coerce(UlnConfig, await sdk.get_receive_uln_config(library, chain_id))
    if is_deep_equal(current, desired):
        return []

    logger.debug("Setting receive ULN config for %s", label)
    return [await sdk.set_receive_uln_config(library, chain_id, desired)]


configure_oapp_nodes = create_configure_multiple(
    configure_delegates,
    configure_read_channels,
)

configure_oapp_edges = create_configure_multiple(
    configure_peers,
    configure_send_libraries,
    configure_send_config,
    configure_enforced_options,
    configure_receive_libraries,
    configure_receive_library_timeouts,
    configure_receive_config,
)


@logged("OApp configuration")
async def configure_oapp(graph: Graph, sdk_factory: SDKFactory) -> List[Transaction]:
    """Compute every transaction needed to converge the graph's OApps.

    Node-level transactions come first, then edge-level ones. Calling this
    again after all returned transactions are confirmed returns ``[]``.
    """
    factory = memoize_factory(sdk_factory)
    return flatten_transactions(
        await gather_fail_fast([
            configure_oapp_nodes(graph, factory),
            configure_oapp_edges(graph, factory),
        ])
    )
