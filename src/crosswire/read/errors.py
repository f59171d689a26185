"""Errors raised while decoding and resolving cross-chain read commands."""

from typing import Optional

from crosswire.codes import ErrorCode
from crosswire.errors import CrosswireError


class CommandError(CrosswireError):
    """Base exception for read command errors."""
    code = ErrorCode.MALFORMED_COMMAND


class MalformedCommandError(CommandError):
    """Raised when command bytes cannot be decoded.

    Covers truncated input, unknown versions, trailing bytes and invalid hex.
    """
    code = ErrorCode.MALFORMED_COMMAND

    def __init__(self, message: str, offset: Optional[int] = None):
        self.offset = offset
        if offset is not None:
            message = f"{message} (at byte {offset})"
        super().__init__(message)


class UnsupportedTypeError(CommandError):
    """Raised when a request or compute stage carries an unknown type tag."""
    code = ErrorCode.UNSUPPORTED_TYPE

    def __init__(self, kind: str, tag: int):
        self.kind = kind
        self.tag = tag
        super().__init__(f"Unsupported {kind} type: {tag}")


class UnresolvedTimeMarkerError(CommandError):
    """Raised when a timestamp marker has no resolved counterpart.

    Markers must be resolved before a command is resolved, so this signals
    a caller bug rather than a chain condition.
    """
    code = ErrorCode.UNRESOLVED_TIME_MARKER

    def __init__(self, chain_id: int, timestamp: int):
        self.chain_id = chain_id
        self.timestamp = timestamp
        super().__init__(f"No resolved time marker for timestamp {timestamp} on chain {chain_id}")


class UnresolvableCommandError(CommandError):
    """Raised when the state a command reads does not exist (yet).

    Retryable: the contract may be deployed, or the call may stop reverting,
    at a later block.
    """
    code = ErrorCode.UNRESOLVABLE_COMMAND
    retryable = True


class ContractNotFoundError(CrosswireError):
    """Raised by view-call executors when the target contract has no code."""
    code = ErrorCode.CONTRACT_NOT_FOUND

    def __init__(self, chain_id: int, address: str):
        self.chain_id = chain_id
        self.address = address
        super().__init__(f"No contract at {address} on chain {chain_id}")


class RevertError(CrosswireError):
    """Raised by view-call executors when the call reverted."""
    code = ErrorCode.REVERT

    def __init__(self, message: str = "Execution reverted", data: bytes = b""):
        self.data = data
        super().__init__(message)


class TimeMarkerResolutionError(CrosswireError):
    """Raised when a timestamp cannot be mapped to a block number."""
    code = ErrorCode.TIME_MARKER_RESOLUTION_FAILED

    def __init__(self, chain_id: int, timestamp: int, message: str):
        self.chain_id = chain_id
        self.timestamp = timestamp
        super().__init__(message)


class TimestampInFutureError(TimeMarkerResolutionError):
    """Raised when no block at or after the target timestamp exists yet."""
    code = ErrorCode.TIMESTAMP_IN_FUTURE

    def __init__(self, chain_id: int, timestamp: int, latest_timestamp: int):
        self.latest_timestamp = latest_timestamp
        super().__init__(
            chain_id,
            timestamp,
            f"Target timestamp {timestamp} is in the future on chain {chain_id} "
            f"(latest block timestamp is {latest_timestamp})",
        )


class TimestampBeforeGenesisError(TimeMarkerResolutionError):
    """Raised when the target timestamp precedes every block of the chain."""
    code = ErrorCode.TIMESTAMP_BEFORE_GENESIS

    def __init__(self, chain_id: int, timestamp: int):
        super().__init__(chain_id, timestamp, f"Target timestamp {timestamp} precedes genesis on chain {chain_id}")
