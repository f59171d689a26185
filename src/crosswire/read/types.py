"""Time markers and block data used by cross-chain reads.

A time marker names a point in one chain's history, either directly by block
number or by wall-clock timestamp. Timestamp markers must be resolved to a
block number before a command referencing them can be resolved.
"""

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class BlockNumberTimeMarker:
    """A marker already expressed as a block number."""
    chain_id: int
    block_number: int
    block_confirmations: int = 0

    is_block_number = True


@dataclass(frozen=True)
class TimestampTimeMarker:
    """A marker expressed as a unix timestamp (seconds)."""
    chain_id: int
    timestamp: int
    block_confirmations: int = 0

    is_block_number = False


@dataclass(frozen=True)
class ResolvedTimestampTimeMarker:
    """A timestamp marker together with the block it resolved to."""
    chain_id: int
    timestamp: int
    block_number: int
    block_confirmations: int = 0

    is_block_number = False


TimeMarker = Union[BlockNumberTimeMarker, TimestampTimeMarker]
ResolvedTimeMarker = Union[BlockNumberTimeMarker, ResolvedTimestampTimeMarker]


@dataclass(frozen=True)
class BlockTime:
    """Number and timestamp of one block."""
    number: int
    timestamp: int
