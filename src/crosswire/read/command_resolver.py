"""Resolve cross-chain read commands into their response bytes."""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, NamedTuple, Protocol, Sequence, Union

from crosswire.log import pluralize
from crosswire._internal.concurrency import gather_fail_fast
from .command import Command, Compute, Request
from .errors import ContractNotFoundError, RevertError, UnresolvableCommandError
from .time_markers import dedup_time_markers, extract_time_marker, find_resolved_time_marker
from .types import (
    BlockNumberTimeMarker,
    ResolvedTimeMarker,
    ResolvedTimestampTimeMarker,
    TimestampTimeMarker,
)

logger = logging.getLogger(__name__)

RawCommand = Union[bytes, bytearray, str]


@dataclass(frozen=True)
class RequestResponsePair:
    """A resolved request together with its raw response."""
    request: Request
    response: bytes


class ViewCallExecutor(Protocol):
    """Executes one view-call request on its target chain."""

    async def resolve(self, request: Request, time_marker: ResolvedTimeMarker) -> bytes: ...


class ComputeExecutor(Protocol):
    """Aggregates request responses into the final command response."""

    async def resolve(
        self,
        command: bytes,
        compute: Compute,
        time_marker: ResolvedTimeMarker,
        responses: List[RequestResponsePair],
    ) -> bytes: ...


ViewCallExecutorFactory = Callable[[int], Awaitable[ViewCallExecutor]]
ComputeExecutorFactory = Callable[[int], Awaitable[ComputeExecutor]]


class ExtractedTimeMarkers(NamedTuple):
    block_number_markers: List[BlockNumberTimeMarker]
    timestamp_markers: List[TimestampTimeMarker]


def extract_time_markers(raw: RawCommand) -> ExtractedTimeMarkers:
    """Decode a command and list the distinct time markers it references.

    Markers are deduplicated by chain id, kind and value, so a timestamp
    used by several requests needs to be resolved only once.
    """
    command = Command.decode(raw)
    items: List[Union[Request, Compute]] = list(command.requests)
    if command.compute is not None:
        items.append(command.compute)

    markers = dedup_time_markers(extract_time_marker(item) for item in items)
    return ExtractedTimeMarkers(
        block_number_markers=[m for m in markers if isinstance(m, BlockNumberTimeMarker)],
        timestamp_markers=[m for m in markers if isinstance(m, TimestampTimeMarker)],
    )


class CommandResolver:
    """Resolves read commands using per-chain executors.

    Args:
        view_call_executor_factory: ``async (chain_id) -> ViewCallExecutor``.
        compute_executor_factory: ``async (chain_id) -> ComputeExecutor``.
    """

    def __init__(
        self,
        view_call_executor_factory: ViewCallExecutorFactory,
        compute_executor_factory: ComputeExecutorFactory,
    ):
        self.view_call_executor_factory = view_call_executor_factory
        self.compute_executor_factory = compute_executor_factory

    def decode_command(self, raw: RawCommand) -> Command:
        return Command.decode(raw)

    def extract_time_markers(self, raw: RawCommand) -> ExtractedTimeMarkers:
        return extract_time_markers(raw)

    async def resolve_command(
        self,
        raw: RawCommand,
        resolved_markers: Sequence[ResolvedTimestampTimeMarker],
    ) -> bytes:
        """Resolve a command into its response bytes.

        Requests resolve concurrently. Without a compute stage the responses
        are concatenated in request order; otherwise the compute executor
        aggregates them.

        Raises:
            MalformedCommandError: If the command cannot be decoded.
            UnsupportedTypeError: If the command uses an unknown type tag.
            UnresolvedTimeMarkerError: If a timestamp marker was not resolved.
            UnresolvableCommandError: If a target contract is missing or a
                view call reverted (retryable).
        """
        command = Command.decode(raw)
        raw_bytes = command.encode()

        try:
            logger.info("Resolving %s", pluralize(len(command.requests), "request"))
            pairs = await gather_fail_fast(
                [self._resolve_request(request, resolved_markers) for request in command.requests]
            )

            if command.compute is None:
                logger.info("No compute stage in command, returning concatenated responses")
                return b"".join(pair.response for pair in pairs)

            compute = command.compute
            time_marker = find_resolved_time_marker(compute, resolved_markers)
            executor = await self.compute_executor_factory(compute.target_chain_id)
            return bytes(await executor.resolve(raw_bytes, compute, time_marker, pairs))
        except (ContractNotFoundError, RevertError) as e:
            logger.warning("Command cannot be resolved yet: %s", e)
            raise UnresolvableCommandError(f"Command cannot be resolved: {e}") from e

    async def _resolve_request(
        self,
        request: Request,
        resolved_markers: Sequence[ResolvedTimestampTimeMarker],
    ) -> RequestResponsePair:
        time_marker = find_resolved_time_marker(request, resolved_markers)
        executor = await self.view_call_executor_factory(request.target_chain_id)
        response = bytes(await executor.resolve(request, time_marker))
        logger.debug("Resolved request to %s on chain %d: 0x%s", request.to, request.target_chain_id, response.hex())
        return RequestResponsePair(request=request, response=response)
