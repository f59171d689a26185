"""OApp configuration schemas and the SDK interface the configurators consume."""

from enum import IntEnum
from typing import List, Optional, Protocol, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from crosswire.kernel.transactions import Transaction


def _canonical_addresses(v: Sequence[str], field: str) -> Tuple[str, ...]:
    """Canonicalize an address set into a sorted tuple.

    Rules:
    - No duplicates allowed (case-insensitive, validation error)
    - Sorted case-insensitively so equivalent sets compare equal regardless
      of input order
    """
    v = list(v)
    seen = set()
    duplicates = set()
    for address in v:
        key = address.lower()
        if key in seen:
            duplicates.add(address)
        seen.add(key)

    if duplicates:
        raise ValueError(f"Duplicate {field} not allowed: {sorted(duplicates)}")

    return tuple(sorted(v, key=str.lower))


class UlnConfig(BaseModel):
    """Ultra light node config: confirmations and verifier (DVN) sets.

    DVN lists are sets: they are canonicalized to sorted tuples at parse time
    so that ``[A, B]`` and ``[B, A]`` are the same config.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    confirmations: Optional[int] = Field(default=None, ge=0)
    required_dvns: Tuple[str, ...] = ()
    optional_dvns: Tuple[str, ...] = ()
    optional_dvn_threshold: int = Field(default=0, ge=0)

    @field_validator("required_dvns", "optional_dvns", mode="before")
    @classmethod
    def canonicalize_dvns(cls, v, info) -> Tuple[str, ...]:
        return _canonical_addresses(v or (), info.field_name)

    @model_validator(mode="after")
    def check_threshold(self) -> "UlnConfig":
        if self.optional_dvn_threshold > len(self.optional_dvns):
            raise ValueError(
                f"optional_dvn_threshold ({self.optional_dvn_threshold}) exceeds "
                f"the number of optional DVNs ({len(self.optional_dvns)})"
            )
        return self


class ExecutorConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    max_message_size: int = Field(..., ge=0)
    executor: str


class ReceiveLibraryConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    receive_library: str
    grace_period: int = Field(default=0, ge=0)


class Timeout(BaseModel):
    """Receive library timeout: the old library stays valid until ``expiry``."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    lib: str
    expiry: int = Field(..., ge=0)


class SendConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    executor_config: Optional[ExecutorConfig] = None
    uln_config: Optional[UlnConfig] = None


class ReceiveConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    uln_config: Optional[UlnConfig] = None


class ExecutorOptionType(IntEnum):
    """Executor option kinds that can be enforced per message type."""
    LZ_RECEIVE = 1
    NATIVE_DROP = 2
    COMPOSE = 3
    ORDERED = 4


class EnforcedOption(BaseModel):
    """One enforced executor option for a message type.

    Which of the optional fields are required depends on ``option_type``:
    LZ_RECEIVE needs ``gas``, NATIVE_DROP needs ``amount`` and ``receiver``,
    COMPOSE needs ``index`` and ``gas``, ORDERED needs nothing.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    msg_type: int = Field(..., ge=0)
    option_type: ExecutorOptionType
    gas: Optional[int] = Field(default=None, ge=0)
    value: Optional[int] = Field(default=None, ge=0)
    amount: Optional[int] = Field(default=None, ge=0)
    receiver: Optional[str] = None
    index: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def check_required_fields(self) -> "EnforcedOption":
        required = {
            ExecutorOptionType.LZ_RECEIVE: ("gas",),
            ExecutorOptionType.NATIVE_DROP: ("amount", "receiver"),
            ExecutorOptionType.COMPOSE: ("index", "gas"),
            ExecutorOptionType.ORDERED: (),
        }[self.option_type]
        missing = [name for name in required if getattr(self, name) is None]
        if missing:
            raise ValueError(f"{self.option_type.name} option requires {', '.join(missing)}")
        return self


class EnforcedOptionParam(BaseModel):
    """Setter argument: the full option list for one (peer chain, msg type)."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    chain_id: int
    msg_type: int
    options: Tuple[EnforcedOption, ...]


class ReadChannelConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    channel_id: int = Field(..., ge=0)
    active: Optional[bool] = None  # defaults to True when applied
    read_library: Optional[str] = None


class OAppNodeConfig(BaseModel):
    """Per-contract intent."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    delegate: Optional[str] = None
    read_channel_configs: Optional[Tuple[ReadChannelConfig, ...]] = None


class OAppEdgeConfig(BaseModel):
    """Per-pathway intent. The pathway peer is implied by the edge itself."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    send_library: Optional[str] = None
    receive_library_config: Optional[ReceiveLibraryConfig] = None
    receive_library_timeout_config: Optional[Timeout] = None
    send_config: Optional[SendConfig] = None
    receive_config: Optional[ReceiveConfig] = None
    enforced_options: Optional[Tuple[EnforcedOption, ...]] = None


class OAppSDK(Protocol):
    """Per-point SDK consumed by the OApp configurators.

    Getters read current state. Setters build (but never submit) exactly one
    Transaction.
    """

    async def get_delegate(self) -> Optional[str]: ...
    async def set_delegate(self, delegate: str) -> Transaction: ...

    async def is_read_channel_active(self, channel_id: int) -> bool: ...
    async def set_read_channel(self, channel_id: int, active: bool) -> Transaction: ...

    async def get_peer(self, chain_id: int) -> Optional[str]: ...
    async def set_peer(self, chain_id: int, address: str) -> Transaction: ...

    async def get_send_library(self, chain_id: int) -> Optional[str]: ...
    async def is_default_send_library(self, chain_id: int) -> bool: ...
    async def set_send_library(self, chain_id: int, library: str) -> Transaction: ...

    async def get_receive_library(self, chain_id: int) -> Tuple[Optional[str], bool]: ...
    async def set_receive_library(self, chain_id: int, library: str, grace_period: int) -> Transaction: ...

    async def get_receive_library_timeout(self, chain_id: int) -> Optional[Timeout]: ...
    async def set_receive_library_timeout(self, chain_id: int, library: str, expiry: int) -> Transaction: ...

    async def get_executor_config(self, library: str, chain_id: int) -> Optional[ExecutorConfig]: ...
    async def set_executor_config(self, library: str, chain_id: int, config: ExecutorConfig) -> Transaction: ...

    async def get_send_uln_config(self, library: str, chain_id: int) -> Optional[UlnConfig]: ...
    async def set_send_uln_config(self, library: str, chain_id: int, config: UlnConfig) -> Transaction: ...

    async def get_receive_uln_config(self, library: str, chain_id: int) -> Optional[UlnConfig]: ...
    async def set_receive_uln_config(self, library: str, chain_id: int, config: UlnConfig) -> Transaction: ...

    async def get_enforced_options(self, chain_id: int, msg_type: int) -> Sequence[EnforcedOption]: ...
    async def set_enforced_options(self, params: List[EnforcedOptionParam]) -> Transaction: ...
