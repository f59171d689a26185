"""Wire codec for cross-chain read commands.

All integers are big-endian. Layout::

    command  := header request{request_count} [compute]
    header   := cmd_version:u16 app_command_label:u16 request_count:u16
    request  := request_version:u8 app_request_label:u16 resolver_type:u16
                request_size:u16 payload[request_size]
    compute  := compute_version:u8 compute_type:u16 compute_setting:u8
                target_chain_id:u32 is_block_number:u8
                block_number_or_timestamp:u64 block_confirmations:u16 to:20

A SINGLE_VIEW_FUNCTION_EVM_CALL request payload is::

    target_chain_id:u32 is_block_number:u8 block_number_or_timestamp:u64
    block_confirmations:u16 to:20 call_data[...]

The compute stage is present exactly when bytes remain after the last
request. Anything left after the compute stage is an error.
"""

import struct
from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Optional, Tuple, Type, TypeVar, Union

from .errors import MalformedCommandError, UnsupportedTypeError

CMD_VERSION = 1
REQUEST_VERSION = 1
COMPUTE_VERSION = 1

ADDRESS_SIZE = 20

_HEADER = struct.Struct(">HHH")
_REQUEST_HEADER = struct.Struct(">BHHH")
_EVM_CALL = struct.Struct(">IBQH20s")
_COMPUTE = struct.Struct(">BHBIBQH20s")

E = TypeVar("E", bound=IntEnum)


class ResolverType(IntEnum):
    """Request kinds understood by the resolver."""
    SINGLE_VIEW_FUNCTION_EVM_CALL = 1


class ComputeType(IntEnum):
    """Compute stage kinds understood by the resolver."""
    SINGLE_VIEW_FUNCTION_EVM_CALL = 1


class ComputeSetting(IntEnum):
    MAP_ONLY = 0
    REDUCE_ONLY = 1
    MAP_REDUCE = 2


def _address_to_bytes(address: str) -> bytes:
    raw = _hex_to_bytes(address)
    if len(raw) != ADDRESS_SIZE:
        raise MalformedCommandError(f"Address must be {ADDRESS_SIZE} bytes, got {len(raw)}: {address}")
    return raw


def _address_from_bytes(raw: bytes) -> str:
    return "0x" + raw.hex()


def _hex_to_bytes(value: str) -> bytes:
    text = value[2:] if value[:2] in ("0x", "0X") else value
    try:
        return bytes.fromhex(text)
    except ValueError as e:
        raise MalformedCommandError(f"Invalid hex string: {e}") from e


def _enum_tag(enum: Type[E], tag: int, kind: str) -> E:
    try:
        return enum(tag)
    except ValueError:
        raise UnsupportedTypeError(kind, tag) from None


@dataclass(frozen=True)
class SingleViewFunctionEVMCall:
    """A view call on one EVM chain at a block number or a timestamp."""
    target_chain_id: int
    is_block_number: bool
    block_number_or_timestamp: int
    block_confirmations: int
    to: str
    call_data: bytes = b""
    app_request_label: int = 0

    resolver_type = ResolverType.SINGLE_VIEW_FUNCTION_EVM_CALL

    def encode_payload(self) -> bytes:
        return _EVM_CALL.pack(
            self.target_chain_id,
            int(self.is_block_number),
            self.block_number_or_timestamp,
            self.block_confirmations,
            _address_to_bytes(self.to),
        ) + bytes(self.call_data)

    def encode(self) -> bytes:
        """Encode the request with its header."""
        payload = self.encode_payload()
        if len(payload) > 0xFFFF:
            raise MalformedCommandError(f"Request payload too large: {len(payload)} bytes")
        header = _REQUEST_HEADER.pack(REQUEST_VERSION, self.app_request_label, self.resolver_type, len(payload))
        return header + payload

    @classmethod
    def decode_payload(cls, payload: bytes, app_request_label: int, offset: int) -> "SingleViewFunctionEVMCall":
        if len(payload) < _EVM_CALL.size:
            raise MalformedCommandError(
                f"EVM call payload needs at least {_EVM_CALL.size} bytes, got {len(payload)}", offset
            )
        chain_id, flag, value, confirmations, to = _EVM_CALL.unpack_from(payload)
        return cls(
            target_chain_id=chain_id,
            is_block_number=_flag(flag, offset),
            block_number_or_timestamp=value,
            block_confirmations=confirmations,
            to=_address_from_bytes(to),
            call_data=payload[_EVM_CALL.size:],
            app_request_label=app_request_label,
        )


Request = SingleViewFunctionEVMCall


@dataclass(frozen=True)
class ComputeEVM:
    """Aggregation stage executed on one EVM chain after all requests resolve."""
    target_chain_id: int
    is_block_number: bool
    block_number_or_timestamp: int
    block_confirmations: int
    to: str
    compute_setting: ComputeSetting = ComputeSetting.MAP_REDUCE

    compute_type = ComputeType.SINGLE_VIEW_FUNCTION_EVM_CALL

    def encode(self) -> bytes:
        return _COMPUTE.pack(
            COMPUTE_VERSION,
            self.compute_type,
            self.compute_setting,
            self.target_chain_id,
            int(self.is_block_number),
            self.block_number_or_timestamp,
            self.block_confirmations,
            _address_to_bytes(self.to),
        )


Compute = ComputeEVM


def _flag(value: int, offset: int) -> bool:
    if value not in (0, 1):
        raise MalformedCommandError(f"Invalid block number flag {value}", offset)
    return bool(value)


class _Reader:
    def __init__(self, data: bytes):
        self.data = data
        self.offset = 0

    @property
    def remaining(self) -> int:
        return len(self.data) - self.offset

    def unpack(self, fmt: struct.Struct, what: str) -> Tuple:
        if self.remaining < fmt.size:
            raise MalformedCommandError(
                f"Truncated {what}: need {fmt.size} bytes, {self.remaining} left", self.offset
            )
        values = fmt.unpack_from(self.data, self.offset)
        self.offset += fmt.size
        return values

    def take(self, size: int, what: str) -> bytes:
        if self.remaining < size:
            raise MalformedCommandError(f"Truncated {what}: need {size} bytes, {self.remaining} left", self.offset)
        chunk = self.data[self.offset:self.offset + size]
        self.offset += size
        return chunk


@dataclass(frozen=True)
class Command:
    """A decoded read command: requests plus an optional compute stage."""
    requests: List[Request] = field(default_factory=list)
    compute: Optional[Compute] = None
    app_command_label: int = 0

    @classmethod
    def decode(cls, raw: Union[bytes, bytearray, str]) -> "Command":
        """Decode a command from bytes or a (0x-prefixed or bare) hex string.

        Raises:
            MalformedCommandError: On truncated input, unknown versions,
                invalid hex or trailing bytes.
            UnsupportedTypeError: On unknown resolver/compute type tags.
        """
        data = _hex_to_bytes(raw) if isinstance(raw, str) else bytes(raw)
        reader = _Reader(data)

        version, app_command_label, request_count = reader.unpack(_HEADER, "command header")
        if version != CMD_VERSION:
            raise MalformedCommandError(f"Unsupported command version {version}", 0)

        requests: List[Request] = []
        for _ in range(request_count):
            start = reader.offset
            version, label, resolver_tag, size = reader.unpack(_REQUEST_HEADER, "request header")
            if version != REQUEST_VERSION:
                raise MalformedCommandError(f"Unsupported request version {version}", start)
            resolver_type = _enum_tag(ResolverType, resolver_tag, "resolver")
            payload = reader.take(size, "request payload")
            if resolver_type is ResolverType.SINGLE_VIEW_FUNCTION_EVM_CALL:
                requests.append(SingleViewFunctionEVMCall.decode_payload(payload, label, start))

        compute = None
        if reader.remaining:
            start = reader.offset
            (version, compute_tag, setting, chain_id, flag, value, confirmations, to) = reader.unpack(
                _COMPUTE, "compute"
            )
            if version != COMPUTE_VERSION:
                raise MalformedCommandError(f"Unsupported compute version {version}", start)
            compute_type = _enum_tag(ComputeType, compute_tag, "compute")
            if compute_type is ComputeType.SINGLE_VIEW_FUNCTION_EVM_CALL:
                compute = ComputeEVM(
                    target_chain_id=chain_id,
                    is_block_number=_flag(flag, start),
                    block_number_or_timestamp=value,
                    block_confirmations=confirmations,
                    to=_address_from_bytes(to),
                    compute_setting=_enum_tag(ComputeSetting, setting, "compute setting"),
                )

        if reader.remaining:
            raise MalformedCommandError(f"{reader.remaining} trailing bytes after command", reader.offset)

        return cls(requests=requests, compute=compute, app_command_label=app_command_label)

    def encode(self) -> bytes:
        """Encode the command to bytes."""
        if len(self.requests) > 0xFFFF:
            raise MalformedCommandError(f"Too many requests: {len(self.requests)}")
        parts = [_HEADER.pack(CMD_VERSION, self.app_command_label, len(self.requests))]
        parts.extend(request.encode() for request in self.requests)
        if self.compute is not None:
            parts.append(self.compute.encode())
        return b"".join(parts)

    def to_hex(self) -> str:
        return "0x" + self.encode().hex()


def decode_command(raw: Union[bytes, bytearray, str]) -> Command:
    return Command.decode(raw)
