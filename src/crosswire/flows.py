"""Multi-step flows built on top of the kernel primitives."""

import asyncio
import logging
from typing import List, Optional, Sequence

from crosswire.config import Settings, get_settings
from crosswire.kernel.signer import sign_and_send
from crosswire.kernel.transactions import (
    OnProgress,
    SignAndSendResult,
    SignerFactory,
    Transaction,
    TransactionWithReceipt,
)
from crosswire.log import pluralize
from crosswire.retry import RetryPolicy

logger = logging.getLogger(__name__)


class _PendingTransactions(Exception):
    """Signals a failed attempt to the retry controller."""

    def __init__(self, result: SignAndSendResult):
        self.result = result
        super().__init__(f"{pluralize(len(result.pending), 'transaction')} still pending")


async def sign_and_send_flow(
    transactions: Sequence[Transaction],
    signer_factory: SignerFactory,
    *,
    retry_policy: Optional[RetryPolicy] = None,
    on_progress: Optional[OnProgress] = None,
    settings: Optional[Settings] = None,
    cancel: Optional[asyncio.Event] = None,
) -> SignAndSendResult:
    """Sign and send, retrying from the first failed transaction.

    Every attempt submits only what the previous attempt left pending.
    Successful results accumulate across attempts, and ``on_progress``
    receives the accumulated list. A cancelled run is never retried.

    Returns:
        The combined SignAndSendResult: all successes, plus the errors and
        pending transactions of the last attempt.
    """
    settings = settings or get_settings()
    policy = retry_policy or RetryPolicy.from_settings(settings)

    successful: List[TransactionWithReceipt] = []
    pending: List[Transaction] = list(transactions)
    last = SignAndSendResult([], [], [])

    async def attempt() -> None:
        nonlocal pending, last
        before = list(successful)

        def progress(result: TransactionWithReceipt, results: List[TransactionWithReceipt]) -> None:
            if on_progress is not None:
                on_progress(result, before + results)

        logger.debug("Submitting %s", pluralize(len(pending), "transaction"))
        last = await sign_and_send(
            pending,
            signer_factory,
            progress,
            batched=settings.batched_send,
            cancel=cancel,
        )
        successful.extend(last.successful)
        pending = list(last.pending)
        if last.errors:
            raise _PendingTransactions(last)

    try:
        await policy.call(attempt, retry_on=lambda e: isinstance(e, _PendingTransactions))
    except _PendingTransactions as e:
        logger.warning(
            "Giving up with %s pending: %s",
            pluralize(len(e.result.pending), "transaction"),
            e.result.errors[0].error,
        )

    return SignAndSendResult(successful, last.errors, last.pending)
