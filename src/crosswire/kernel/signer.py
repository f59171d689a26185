"""Sequential sign & send orchestration.

Transactions are submitted one at a time in list order, each one awaited for
its receipt before the next is submitted. The first failure stops the run;
the result then lists the failed transaction and everything after it as
pending so that the caller can retry from exactly that point.
"""

import asyncio
import logging
from typing import Any, List, Optional, Sequence, Set

from crosswire.log import pluralize
from .points import format_point
from .transactions import (
    BatchSigner,
    OnProgress,
    SignAndSendResult,
    SignerFactory,
    Transaction,
    TransactionWithError,
    TransactionWithReceipt,
    format_transaction,
)

logger = logging.getLogger(__name__)


def _same_chain_run(transactions: Sequence[Transaction], start: int) -> List[Transaction]:
    """The run of consecutive transactions sharing the chain of ``transactions[start]``."""
    chain_id = transactions[start].point.chain_id
    end = start
    while end < len(transactions) and transactions[end].point.chain_id == chain_id:
        end += 1
    return list(transactions[start:end])


class _Progress:
    """Accumulates results and notifies the progress callback."""

    def __init__(self, on_progress: Optional[OnProgress]):
        self.on_progress = on_progress
        self.successful: List[TransactionWithReceipt] = []

    def succeeded(self, transaction: Transaction, receipt: Any) -> None:
        result = TransactionWithReceipt(transaction=transaction, receipt=receipt)
        self.successful.append(result)
        if self.on_progress is None:
            return
        try:
            self.on_progress(result, list(self.successful))
        except Exception as e:
            logger.warning("Progress callback failed for transaction to %s: %s", format_point(transaction.point), e)


async def sign_and_send(
    transactions: Sequence[Transaction],
    signer_factory: SignerFactory,
    on_progress: Optional[OnProgress] = None,
    *,
    batched: bool = False,
    cancel: Optional[asyncio.Event] = None,
) -> SignAndSendResult:
    """Sign, submit and confirm transactions in order.

    Args:
        transactions: Transactions to submit, in submission order.
        signer_factory: ``async (chain_id) -> Signer``; called for every
            submission, so signers are never shared between submissions.
        on_progress: Called after every confirmed transaction with the new
            result and a fresh copy of all results so far. Errors raised by
            the callback are logged and do not stop the run.
        batched: Submit runs of consecutive same-chain transactions with
            ``sign_and_send_batch`` when the signer provides it. A batch
            succeeds or fails as a whole.
        cancel: Checked before every submission. Once set, the remaining
            transactions are returned as pending without errors.

    Returns:
        SignAndSendResult(successful, errors, pending). On full success
        ``errors`` and ``pending`` are empty.
    """
    items = list(transactions)
    if not items:
        logger.debug("No transactions to sign, exiting")
        return SignAndSendResult([], [], [])

    logger.debug("Signing %s", pluralize(len(items), "transaction"))
    if batched:
        logger.warning("Using experimental batched transaction sending")

    progress = _Progress(on_progress)
    no_batch_support: Set[int] = set()
    position = 0

    while position < len(items):
        pending = items[position:]
        if cancel is not None and cancel.is_set():
            logger.info("Signing cancelled, %s left pending", pluralize(len(pending), "transaction"))
            return SignAndSendResult(progress.successful, [], pending)

        transaction = items[position]
        chain_id = transaction.point.chain_id
        run = _same_chain_run(items, position) if batched and chain_id not in no_batch_support else [transaction]

        try:
            signer = await signer_factory(chain_id)
            if len(run) > 1 and isinstance(signer, BatchSigner):
                logger.debug("Signing a batch of %s for chain %d", pluralize(len(run), "transaction"), chain_id)
                response = await signer.sign_and_send_batch(run)
            else:
                if len(run) > 1:
                    logger.warning(
                        "Batched sending is not available for chain %d, falling back on regular sending",
                        chain_id,
                    )
                    no_batch_support.add(chain_id)
                    run = [transaction]
                logger.debug("Signing transaction to %s", format_point(transaction.point))
                response = await signer.sign_and_send(transaction)

            logger.debug("Signed %s, got hash %s", pluralize(len(run), "transaction"), response.transaction_hash)
            receipt = await response.wait()
        except Exception as e:
            logger.debug("Failed to process transaction %s: %s", format_transaction(transaction), e)
            errors = [TransactionWithError(transaction=tx, error=e) for tx in run]
            return SignAndSendResult(progress.successful, errors, pending)

        for tx in run:
            progress.succeeded(tx, receipt)
        position += len(run)

    logger.debug("Successfully signed %s", pluralize(len(items), "transaction"))
    return SignAndSendResult(progress.successful, [], [])
