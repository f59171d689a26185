"""Transactions, receipts and signer interfaces."""

from dataclasses import dataclass
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Iterable,
    List,
    NamedTuple,
    Optional,
    Protocol,
    Sequence,
    runtime_checkable,
)

from pydantic import BaseModel, ConfigDict, Field

from .points import ChainPoint, format_point


class Transaction(BaseModel):
    """An intended state-changing call on one chain. Immutable once created."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    point: ChainPoint
    payload: bytes
    description: Optional[str] = None
    gas_limit: Optional[int] = Field(default=None, ge=0)
    value: Optional[int] = Field(default=None, ge=0)


@runtime_checkable
class TransactionReceipt(Protocol):
    """Chain-provided confirmation; opaque beyond its hash."""
    transaction_hash: str


@runtime_checkable
class TransactionResponse(Protocol):
    """A submitted transaction that can be awaited for its receipt."""
    transaction_hash: str

    async def wait(self) -> TransactionReceipt: ...


@runtime_checkable
class Signer(Protocol):
    """Signs and submits transactions for one chain."""

    async def sign_and_send(self, transaction: Transaction) -> TransactionResponse: ...


@runtime_checkable
class BatchSigner(Signer, Protocol):
    """A signer able to submit several transactions atomically (e.g. a multisig)."""

    async def sign_and_send_batch(self, transactions: Sequence[Transaction]) -> TransactionResponse: ...


SignerFactory = Callable[[int], Awaitable[Signer]]


@dataclass(frozen=True)
class TransactionWithReceipt:
    """A transaction that was submitted and confirmed."""
    transaction: Transaction
    receipt: Any

    @property
    def point(self) -> ChainPoint:
        return self.transaction.point


@dataclass(frozen=True)
class TransactionWithError:
    """A transaction whose submission (or confirmation) failed."""
    transaction: Transaction
    error: BaseException

    @property
    def point(self) -> ChainPoint:
        return self.transaction.point


class SignAndSendResult(NamedTuple):
    """Partition of a transaction list after sign & send.

    ``pending`` holds every transaction that has not been confirmed, starting
    with the failed one (if any).
    """
    successful: List[TransactionWithReceipt]
    errors: List[TransactionWithError]
    pending: List[Transaction]


OnProgress = Callable[[TransactionWithReceipt, List[TransactionWithReceipt]], Any]


def flatten_transactions(groups: Iterable[Optional[Iterable[Optional[Transaction]]]]) -> List[Transaction]:
    """Flatten nested transaction lists, dropping empty and None entries."""
    flat: List[Transaction] = []
    for group in groups:
        if not group:
            continue
        flat.extend(tx for tx in group if tx is not None)
    return flat


def format_transaction(transaction: Transaction) -> Dict[str, Any]:
    """Render a transaction as a flat record for logs and reports."""
    return {
        "point": format_point(transaction.point),
        "description": transaction.description or "",
        "payload": "0x" + transaction.payload.hex(),
        "gas_limit": transaction.gas_limit,
        "value": transaction.value,
    }
