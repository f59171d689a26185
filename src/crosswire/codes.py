"""Error code constants for crosswire errors.

These constants prevent stringly-typed error codes and let client code
branch on the failure class without importing every exception type.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Error codes carried by every CrosswireError."""

    UNKNOWN = "UNKNOWN"

    # Graph / config (fatal)
    INVALID_GRAPH = "INVALID_GRAPH"
    DUPLICATE_POINT = "DUPLICATE_POINT"
    DUPLICATE_VECTOR = "DUPLICATE_VECTOR"
    MISSING_NODE = "MISSING_NODE"
    CONFIG_LOAD_ERROR = "CONFIG_LOAD_ERROR"
    POINT_RESOLUTION_FAILED = "POINT_RESOLUTION_FAILED"
    MISSING_LIBRARY = "MISSING_LIBRARY"

    # Read commands (fatal)
    MALFORMED_COMMAND = "MALFORMED_COMMAND"
    UNSUPPORTED_TYPE = "UNSUPPORTED_TYPE"
    UNRESOLVED_TIME_MARKER = "UNRESOLVED_TIME_MARKER"

    # Timestamp resolution (fatal)
    TIME_MARKER_RESOLUTION_FAILED = "TIME_MARKER_RESOLUTION_FAILED"
    TIMESTAMP_IN_FUTURE = "TIMESTAMP_IN_FUTURE"
    TIMESTAMP_BEFORE_GENESIS = "TIMESTAMP_BEFORE_GENESIS"

    # Retryable
    UNRESOLVABLE_COMMAND = "UNRESOLVABLE_COMMAND"
    CONTRACT_NOT_FOUND = "CONTRACT_NOT_FOUND"
    REVERT = "REVERT"
    CHAIN_READ_FAILED = "CHAIN_READ_FAILED"
