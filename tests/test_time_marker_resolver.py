"""Tests for time_marker_resolver.py."""

import pytest

from crosswire.api import resolve_timestamps
from crosswire.codes import ErrorCode
from crosswire.config import Settings
from crosswire.read.errors import (
    TimeMarkerResolutionError,
    TimestampBeforeGenesisError,
    TimestampInFutureError,
)
from crosswire.read.time_marker_resolver import (
    TimestampResolver,
    estimate_block_time,
    resolve_timestamp_markers,
)
from crosswire.read.types import BlockTime, ResolvedTimestampTimeMarker, TimestampTimeMarker

from fakes import ListChain, SyntheticChain


def bracketing_block(blocks, target):
    """Brute force: the block B with B-1.timestamp <= target < B.timestamp."""
    for previous, block in zip(blocks, blocks[1:]):
        if previous.timestamp <= target < block.timestamp:
            return block.number
    return None


@pytest.mark.asyncio
async def test_resolves_synthetic_chain():
    """Blocks 0..100 every 2s from 1000: timestamp 1050 resolves to block 26."""
    chain = SyntheticChain()
    resolver = TimestampResolver(1, chain)

    assert await resolver.resolve_timestamps([1050]) == {1050: 26}
    # latest, then three iterations of (block, preceding block)
    assert len(chain.requests) == 7


@pytest.mark.asyncio
async def test_timestamp_before_genesis():
    resolver = TimestampResolver(1, SyntheticChain())

    with pytest.raises(TimestampBeforeGenesisError) as exc_info:
        await resolver.resolve_timestamps([999])
    assert exc_info.value.code == ErrorCode.TIMESTAMP_BEFORE_GENESIS
    assert exc_info.value.timestamp == 999


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "target, expected",
    [
        (1000, 1),    # equal to the genesis timestamp
        (1001, 1),
        (1051, 26),
        (1052, 27),   # equal to block 26's timestamp
        (1100, 51),
        (1198, 100),  # equal to the timestamp just before latest
        (1199, 100),
    ],
)
async def test_exact_boundaries(target, expected):
    """A target equal to a block's timestamp resolves to the following block."""
    resolver = TimestampResolver(1, SyntheticChain())

    assert await resolver.resolve_timestamp(target) == expected


@pytest.mark.asyncio
@pytest.mark.parametrize("target", [1200, 5000])
async def test_timestamp_in_future(target):
    """No block after the latest one exists yet, so its timestamp is not resolvable."""
    resolver = TimestampResolver(1, SyntheticChain())

    with pytest.raises(TimestampInFutureError) as exc_info:
        await resolver.resolve_timestamps([target])
    assert exc_info.value.latest_timestamp == 1200


@pytest.mark.asyncio
async def test_duplicates_resolve_once():
    chain = SyntheticChain()
    resolver = TimestampResolver(1, chain)

    result = await resolver.resolve_timestamps([1050, 1060, 1050])

    assert result == {1050: 26, 1060: 31}
    assert chain.requests.count("latest") == 1


@pytest.mark.asyncio
async def test_empty_input():
    chain = SyntheticChain()
    assert await TimestampResolver(1, chain).resolve_timestamps([]) == {}
    assert chain.requests == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "timestamps",
    [
        [0, 10, 11, 12, 50, 51, 90, 100, 130],
        [0, 5, 5, 5, 9, 20],
        [100, 101, 102, 103, 104, 1000, 1001, 1002, 1003, 5000],
    ],
)
async def test_irregular_block_times(timestamps):
    """Every timestamp between genesis and latest resolves to its bracketing block."""
    chain = ListChain(timestamps)
    resolver = TimestampResolver(1, chain)

    for target in range(timestamps[0], timestamps[-1]):
        assert await resolver.resolve_timestamp(target) == bracketing_block(chain.blocks, target), target


@pytest.mark.asyncio
async def test_iteration_bound():
    resolver = TimestampResolver(1, SyntheticChain(), max_iterations=1)

    with pytest.raises(TimeMarkerResolutionError) as exc_info:
        await resolver.resolve_timestamp(1050)
    assert type(exc_info.value) is TimeMarkerResolutionError


def test_block_time_estimate():
    assert estimate_block_time(BlockTime(10, 100), BlockTime(20, 200)) == 10
    assert estimate_block_time(BlockTime(10, 100), BlockTime(10, 100)) is None
    # Reversed timestamps are not a usable estimate
    assert estimate_block_time(BlockTime(10, 200), BlockTime(20, 100)) is None
    assert estimate_block_time(BlockTime(10, 100), BlockTime(20, 100)) is None


@pytest.mark.asyncio
async def test_resolve_markers_across_chains():
    chains = {1: SyntheticChain(), 2: SyntheticChain(interval=4)}

    async def factory(chain_id):
        return TimestampResolver(chain_id, chains[chain_id])

    markers = [
        TimestampTimeMarker(chain_id=1, timestamp=1050),
        TimestampTimeMarker(chain_id=2, timestamp=1050, block_confirmations=3),
        TimestampTimeMarker(chain_id=1, timestamp=1100),
    ]

    resolved = await resolve_timestamp_markers(markers, factory)

    assert resolved == [
        ResolvedTimestampTimeMarker(chain_id=1, timestamp=1050, block_number=26),
        ResolvedTimestampTimeMarker(chain_id=2, timestamp=1050, block_number=13, block_confirmations=3),
        ResolvedTimestampTimeMarker(chain_id=1, timestamp=1100, block_number=51),
    ]


@pytest.mark.asyncio
async def test_api_uses_settings():
    settings = Settings(initial_block_time=2, max_search_iterations=10)

    assert await resolve_timestamps(1, SyntheticChain(), [1050], settings=settings) == {1050: 26}
