"""Performance sentinels (gated)."""

import asyncio
import os
from time import perf_counter

import pytest

from crosswire.read.time_marker_resolver import TimestampResolver
from crosswire.read.types import BlockTime

MAX_REQUESTS_PER_TIMESTAMP = 40
MAX_MEAN_MS = float(os.getenv("CROSSWIRE_PERF_MAX_SEARCH_MS", "5"))


class LargeChain:
    """Twenty million blocks with slightly irregular spacing, computed on demand."""

    LATEST = 20_000_000

    def __init__(self):
        self.requests = 0

    def timestamp(self, number: int) -> int:
        return 1_600_000_000 + 12 * number + number % 7

    async def get_block(self, block):
        self.requests += 1
        number = self.LATEST if block == "latest" else block
        return BlockTime(number=number, timestamp=self.timestamp(number))


@pytest.mark.perf
def test_timestamp_search_sentinel():
    chain = LargeChain()
    resolver = TimestampResolver(1, chain)
    targets = [chain.timestamp(n) + 3 for n in range(1, LargeChain.LATEST, 99_991)]

    started = perf_counter()
    resolved = asyncio.run(resolver.resolve_timestamps(targets))
    mean_ms = (perf_counter() - started) * 1000.0 / len(targets)

    for target, block in resolved.items():
        assert chain.timestamp(block - 1) <= target < chain.timestamp(block)
    assert chain.requests <= 1 + MAX_REQUESTS_PER_TIMESTAMP * len(targets)
    assert mean_ms < MAX_MEAN_MS, f"Mean {mean_ms:.2f} ms exceeded budget {MAX_MEAN_MS:.2f} ms"
