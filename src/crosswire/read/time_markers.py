"""Time marker helpers: extraction, deduplication, lookup and grouping."""

from typing import Dict, Iterable, List, Sequence, Tuple, TypeVar, Union

from .command import Compute, Request
from .errors import UnresolvedTimeMarkerError
from .types import (
    BlockNumberTimeMarker,
    ResolvedTimeMarker,
    ResolvedTimestampTimeMarker,
    TimeMarker,
    TimestampTimeMarker,
)

T = TypeVar("T")


def extract_time_marker(item: Union[Request, Compute]) -> TimeMarker:
    """Return the time marker a request or compute stage reads at."""
    if item.is_block_number:
        return BlockNumberTimeMarker(
            chain_id=item.target_chain_id,
            block_number=item.block_number_or_timestamp,
            block_confirmations=item.block_confirmations,
        )
    return TimestampTimeMarker(
        chain_id=item.target_chain_id,
        timestamp=item.block_number_or_timestamp,
        block_confirmations=item.block_confirmations,
    )


def time_marker_key(marker: TimeMarker) -> Tuple[int, bool, int]:
    """Identity of a marker: ``(chain_id, is_block_number, block_or_timestamp)``."""
    if isinstance(marker, BlockNumberTimeMarker):
        return marker.chain_id, True, marker.block_number
    return marker.chain_id, False, marker.timestamp


def dedup_time_markers(markers: Iterable[TimeMarker]) -> List[TimeMarker]:
    """Drop repeated markers, keeping the first occurrence of each (in order)."""
    seen: Dict[Tuple[int, bool, int], TimeMarker] = {}
    for marker in markers:
        seen.setdefault(time_marker_key(marker), marker)
    return list(seen.values())


def find_resolved_time_marker(
    item: Union[Request, Compute],
    resolved: Sequence[ResolvedTimestampTimeMarker],
) -> ResolvedTimeMarker:
    """Find the resolved marker a request or compute stage should read at.

    Block number markers are already resolved and returned as-is. Timestamp
    markers are matched by chain id and timestamp.

    Raises:
        UnresolvedTimeMarkerError: If a timestamp marker has no match.
    """
    marker = extract_time_marker(item)
    if isinstance(marker, BlockNumberTimeMarker):
        return marker
    for candidate in resolved:
        if candidate.chain_id == marker.chain_id and candidate.timestamp == marker.timestamp:
            return candidate
    raise UnresolvedTimeMarkerError(marker.chain_id, marker.timestamp)


def group_by_chain(items: Iterable[T]) -> Dict[int, List[T]]:
    """Group items with a ``chain_id`` attribute by chain, keeping order."""
    groups: Dict[int, List[T]] = {}
    for item in items:
        groups.setdefault(item.chain_id, []).append(item)  # type: ignore[attr-defined]
    return groups
