"""Public API for crosswire.

High-level entry points over the kernel and read packages. Applications
should use these functions instead of importing from _internal.
"""

import asyncio
import os
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Type, Union

from pydantic import BaseModel

from crosswire.config import Settings, get_settings
from crosswire.kernel.configurator import Configurator, SDKFactory
from crosswire.kernel.graph import Graph
from crosswire.kernel.signer import sign_and_send as _sign_and_send
from crosswire.kernel.transactions import OnProgress, SignAndSendResult, SignerFactory, Transaction
from crosswire.kernel.transform import PointResolver, build_graph
from crosswire.oapp.config import configure_oapp
from crosswire.oapp.types import OAppEdgeConfig, OAppNodeConfig
from crosswire.read.command_resolver import (
    CommandResolver,
    ComputeExecutorFactory,
    ExtractedTimeMarkers,
    RawCommand,
    ViewCallExecutorFactory,
    extract_time_markers as _extract_time_markers,
)
from crosswire.read.time_marker_resolver import BlockSource, TimestampResolver
from crosswire.read.types import ResolvedTimestampTimeMarker
from crosswire._internal.io import load_raw_config


async def load_graph(
    source: Union[str, os.PathLike, Path, Mapping[str, Any]],
    point_resolver: PointResolver,
    *,
    node_config: Optional[Type[BaseModel]] = OAppNodeConfig,
    edge_config: Optional[Type[BaseModel]] = OAppEdgeConfig,
    settings: Optional[Settings] = None,
) -> Graph:
    """Load raw configuration (JSON file path or mapping) and build a Graph.

    Node and edge configs are validated as OApp configs unless other models
    (or None, to skip validation) are given.
    """
    settings = settings or get_settings()
    raw_config = load_raw_config(source if isinstance(source, Mapping) else Path(source))
    return await build_graph(
        raw_config,
        point_resolver,
        node_config=node_config,
        edge_config=edge_config,
        concurrency=settings.resolve_concurrency,
    )


async def configure(
    graph: Graph,
    sdk_factory: SDKFactory,
    configurator: Configurator = configure_oapp,
) -> List[Transaction]:
    """Compute the transactions that converge on-chain state to the graph."""
    return await configurator(graph, sdk_factory)


async def sign_and_send(
    transactions: Sequence[Transaction],
    signer_factory: SignerFactory,
    on_progress: Optional[OnProgress] = None,
    *,
    settings: Optional[Settings] = None,
    cancel: Optional[asyncio.Event] = None,
) -> SignAndSendResult:
    """Sign and send transactions sequentially (batched if enabled in settings)."""
    settings = settings or get_settings()
    return await _sign_and_send(
        transactions,
        signer_factory,
        on_progress,
        batched=settings.batched_send,
        cancel=cancel,
    )


def extract_time_markers(raw: RawCommand) -> ExtractedTimeMarkers:
    """List the distinct time markers a read command references."""
    return _extract_time_markers(raw)


async def resolve_command(
    raw: RawCommand,
    resolved_markers: Sequence[ResolvedTimestampTimeMarker],
    view_call_executor_factory: ViewCallExecutorFactory,
    compute_executor_factory: ComputeExecutorFactory,
) -> bytes:
    """Resolve a read command into its response bytes."""
    resolver = CommandResolver(view_call_executor_factory, compute_executor_factory)
    return await resolver.resolve_command(raw, resolved_markers)


async def resolve_timestamps(
    chain_id: int,
    block_source: BlockSource,
    timestamps: Iterable[int],
    *,
    settings: Optional[Settings] = None,
) -> Dict[int, int]:
    """Map timestamps to block numbers on one chain."""
    resolver = TimestampResolver.from_settings(chain_id, block_source, settings or get_settings())
    return await resolver.resolve_timestamps(timestamps)
