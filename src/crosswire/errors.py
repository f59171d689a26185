"""Base exception types shared across crosswire.

Module-specific errors subclass these and live next to the code that raises
them (graph errors in ``crosswire.kernel.graph``, command errors in
``crosswire.read.errors`` and so on).
"""

from crosswire.codes import ErrorCode


class CrosswireError(Exception):
    """Base exception for all crosswire errors."""
    code: ErrorCode = ErrorCode.UNKNOWN
    retryable: bool = False


class ChainReadError(CrosswireError):
    """Raised by SDK adapters when reading on-chain state fails transiently.

    The core never retries these on its own; callers wrap the failing call
    in a RetryPolicy.
    """
    code = ErrorCode.CHAIN_READ_FAILED
    retryable = True

    def __init__(self, message: str, chain_id: int | None = None):
        self.chain_id = chain_id
        super().__init__(message)


def is_retryable(error: BaseException) -> bool:
    """Return True if the error is classified as transient."""
    return isinstance(error, CrosswireError) and error.retryable
