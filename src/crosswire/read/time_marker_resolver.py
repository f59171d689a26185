"""Timestamp to block number resolution.

Each timestamp is resolved with an interpolation search over the chain's
blocks. The search keeps the tightest known bracket around the target:

- ``upper``: the lowest-numbered block seen with ``timestamp > target``
- ``lower``: the highest-numbered block seen with ``timestamp <= target``

and jumps by ``(current.timestamp - target) / block_time`` blocks, where the
block time estimate is refined every iteration. The jump destination always
lies strictly inside the bracket, so every iteration shrinks it.

The result for a target ``t`` is the block ``B`` with
``B-1.timestamp <= t < B.timestamp``.
"""

import logging
import math
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Protocol, Sequence, Union

from crosswire.config import Settings
from crosswire._internal.concurrency import gather_fail_fast
from .errors import TimeMarkerResolutionError, TimestampBeforeGenesisError, TimestampInFutureError
from .time_markers import group_by_chain
from .types import BlockTime, ResolvedTimestampTimeMarker, TimestampTimeMarker

logger = logging.getLogger(__name__)

BlockTag = Union[int, str]


class BlockSource(Protocol):
    """Read access to one chain's blocks.

    ``get_block`` accepts a block number or the tag ``"latest"``.
    """

    async def get_block(self, block: BlockTag) -> BlockTime: ...


def estimate_block_time(left: BlockTime, right: BlockTime) -> Optional[float]:
    """Average seconds per block between two blocks, or None if not usable."""
    if left.number == right.number:
        return None
    estimate = (right.timestamp - left.timestamp) / (right.number - left.number)
    return estimate if estimate > 0 else None


class TimestampResolver:
    """Resolves timestamps to block numbers on one chain.

    Args:
        chain_id: Chain the block source reads from (used in errors and logs).
        block_source: Block reader for the chain.
        initial_block_time: Seed for the seconds-per-block estimate.
        max_iterations: Upper bound on search iterations per timestamp.
    """

    def __init__(
        self,
        chain_id: int,
        block_source: BlockSource,
        *,
        initial_block_time: float = 1000,
        max_iterations: int = 256,
    ):
        self.chain_id = chain_id
        self.block_source = block_source
        self.initial_block_time = initial_block_time
        self.max_iterations = max_iterations

    @classmethod
    def from_settings(cls, chain_id: int, block_source: BlockSource, settings: Settings) -> "TimestampResolver":
        return cls(
            chain_id,
            block_source,
            initial_block_time=settings.initial_block_time,
            max_iterations=settings.max_search_iterations,
        )

    async def resolve_timestamps(self, timestamps: Iterable[int]) -> Dict[int, int]:
        """Resolve timestamps concurrently; returns ``{timestamp: block_number}``."""
        unique = list(dict.fromkeys(timestamps))
        if not unique:
            return {}

        latest = await self.block_source.get_block("latest")
        logger.debug(
            "Resolving %d timestamps on chain %d (latest block %d at %d)",
            len(unique), self.chain_id, latest.number, latest.timestamp,
        )
        blocks = await gather_fail_fast([self.resolve_timestamp(t, latest) for t in unique])
        return dict(zip(unique, blocks))

    async def resolve_timestamp(self, target: int, latest: Optional[BlockTime] = None) -> int:
        """Return the number of the block bracketing ``target``.

        A target equal to a block's timestamp resolves to the following
        block, so a target equal to the latest timestamp is in the future.

        Raises:
            TimestampInFutureError: If no block after ``target`` exists yet.
            TimestampBeforeGenesisError: If ``target`` precedes the first blocks.
            TimeMarkerResolutionError: If the search does not converge.
        """
        if latest is None:
            latest = await self.block_source.get_block("latest")
        if target >= latest.timestamp:
            raise TimestampInFutureError(self.chain_id, target, latest.timestamp)
        if latest.number < 1:
            raise TimestampBeforeGenesisError(self.chain_id, target)

        current = latest
        upper = latest
        lower: Optional[BlockTime] = None
        block_time = self.initial_block_time

        for iteration in range(1, self.max_iterations + 1):
            jump = math.floor((current.timestamp - target) / block_time) or 1

            low = max(1, lower.number + 1) if lower is not None else 1
            destination = min(max(current.number - jump, low), upper.number)

            fetched = await self.block_source.get_block(destination)
            preceding = await self.block_source.get_block(destination - 1)

            if preceding.timestamp <= target < fetched.timestamp:
                logger.debug(
                    "Resolved timestamp %d to block %d on chain %d after %d iterations",
                    target, fetched.number, self.chain_id, iteration,
                )
                return fetched.number

            if fetched.number <= 1 and fetched.timestamp > target:
                raise TimestampBeforeGenesisError(self.chain_id, target)

            for block in (preceding, fetched):
                if block.timestamp > target:
                    if block.number < upper.number:
                        upper = block
                elif lower is None or block.number > lower.number:
                    lower = block

            if lower is not None:
                estimate = estimate_block_time(lower, upper)
            else:
                estimate = estimate_block_time(fetched, latest)
            if estimate is not None:
                block_time = estimate

            current = fetched

        raise TimeMarkerResolutionError(
            self.chain_id,
            target,
            f"Could not resolve timestamp {target} on chain {self.chain_id} "
            f"within {self.max_iterations} iterations",
        )


TimestampResolverFactory = Callable[[int], Awaitable[TimestampResolver]]


async def resolve_timestamp_markers(
    markers: Sequence[TimestampTimeMarker],
    resolver_factory: TimestampResolverFactory,
) -> List[ResolvedTimestampTimeMarker]:
    """Resolve timestamp markers across chains.

    Markers are grouped by chain; each chain resolves its timestamps with its
    own resolver and chains run concurrently. The result keeps input order.
    """
    groups = group_by_chain(markers)

    async def resolve_chain(chain_id: int, chain_markers: List[TimestampTimeMarker]) -> Dict[int, int]:
        resolver = await resolver_factory(chain_id)
        return await resolver.resolve_timestamps(marker.timestamp for marker in chain_markers)

    chain_ids = list(groups)
    results = await gather_fail_fast([resolve_chain(chain_id, groups[chain_id]) for chain_id in chain_ids])
    blocks_by_chain = dict(zip(chain_ids, results))

    return [
        ResolvedTimestampTimeMarker(
            chain_id=marker.chain_id,
            timestamp=marker.timestamp,
            block_number=blocks_by_chain[marker.chain_id][marker.timestamp],
            block_confirmations=marker.block_confirmations,
        )
        for marker in markers
    ]
