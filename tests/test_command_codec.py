"""Tests for the read command wire codec."""

import struct

import pytest

from crosswire.codes import ErrorCode
from crosswire.read.command import (
    Command,
    ComputeEVM,
    ComputeSetting,
    ComputeType,
    ResolverType,
    SingleViewFunctionEVMCall,
)
from crosswire.read.errors import MalformedCommandError, UnsupportedTypeError

TO = "0x" + "ab" * 20
OTHER = "0x" + "cd" * 20


def request(chain_id=1, timestamp=1050, call_data=b"\x01\x02", is_block_number=False, label=1):
    return SingleViewFunctionEVMCall(
        target_chain_id=chain_id,
        is_block_number=is_block_number,
        block_number_or_timestamp=timestamp,
        block_confirmations=3,
        to=TO,
        call_data=call_data,
        app_request_label=label,
    )


def compute(chain_id=1):
    return ComputeEVM(
        target_chain_id=chain_id,
        is_block_number=False,
        block_number_or_timestamp=1060,
        block_confirmations=5,
        to=OTHER,
        compute_setting=ComputeSetting.MAP_REDUCE,
    )


def test_encode_layout():
    """Header and request fields are big-endian at fixed offsets."""
    raw = Command(requests=[request()], app_command_label=9).encode()

    assert raw[:6] == struct.pack(">HHH", 1, 9, 1)
    version, label, resolver_type, size = struct.unpack(">BHHH", raw[6:13])
    assert (version, label, resolver_type, size) == (1, 1, ResolverType.SINGLE_VIEW_FUNCTION_EVM_CALL, 37)
    payload = raw[13:]
    assert struct.unpack(">IBQH", payload[:15]) == (1, 0, 1050, 3)
    assert payload[15:35] == bytes.fromhex("ab" * 20)
    assert payload[35:] == b"\x01\x02"


def test_decode_command_with_compute():
    command = Command(requests=[request(), request(chain_id=2, call_data=b"")], compute=compute())

    decoded = Command.decode(command.encode())

    assert decoded == command
    assert decoded.compute.compute_type is ComputeType.SINGLE_VIEW_FUNCTION_EVM_CALL
    assert decoded.requests[1].call_data == b""


def test_decode_accepts_hex_strings():
    command = Command(requests=[request(is_block_number=True, timestamp=123)])

    assert Command.decode(command.to_hex()) == command
    assert Command.decode(command.encode().hex()) == command


def test_truncated_input_is_malformed():
    raw = Command(requests=[request()]).encode()

    for cut in (0, 3, 10, len(raw) - 1):
        with pytest.raises(MalformedCommandError) as exc_info:
            Command.decode(raw[:cut])
        assert exc_info.value.code == ErrorCode.MALFORMED_COMMAND


def test_trailing_bytes_are_malformed():
    raw = Command(requests=[request()], compute=compute()).encode()

    with pytest.raises(MalformedCommandError, match="trailing"):
        Command.decode(raw + b"\x00")


def test_partial_compute_is_malformed():
    raw = Command(requests=[request()]).encode()

    with pytest.raises(MalformedCommandError, match="compute"):
        Command.decode(raw + b"\x01\x00")


def test_bad_versions_are_malformed():
    raw = bytearray(Command(requests=[request()]).encode())
    raw[1] = 2
    with pytest.raises(MalformedCommandError, match="command version"):
        Command.decode(bytes(raw))

    raw = bytearray(Command(requests=[request()]).encode())
    raw[6] = 9
    with pytest.raises(MalformedCommandError, match="request version"):
        Command.decode(bytes(raw))


def test_invalid_hex_is_malformed():
    with pytest.raises(MalformedCommandError):
        Command.decode("0xzz")


def test_unknown_resolver_type_is_unsupported():
    raw = bytearray(Command(requests=[request()]).encode())
    # resolver_type lives at bytes 9..11
    raw[9:11] = struct.pack(">H", 7)

    with pytest.raises(UnsupportedTypeError) as exc_info:
        Command.decode(bytes(raw))
    assert exc_info.value.tag == 7
    assert exc_info.value.code == ErrorCode.UNSUPPORTED_TYPE


def test_unknown_compute_type_is_unsupported():
    raw = bytearray(Command(requests=[request()], compute=compute()).encode())
    compute_offset = len(raw) - 39
    raw[compute_offset + 1:compute_offset + 3] = struct.pack(">H", 5)

    with pytest.raises(UnsupportedTypeError, match="compute type: 5"):
        Command.decode(bytes(raw))


def test_short_request_payload_is_malformed():
    header = struct.pack(">HHH", 1, 0, 1) + struct.pack(">BHHH", 1, 0, 1, 4)

    with pytest.raises(MalformedCommandError, match="at least 35 bytes"):
        Command.decode(header + b"\x00" * 4)


def test_encode_rejects_bad_addresses():
    with pytest.raises(MalformedCommandError):
        Command(requests=[SingleViewFunctionEVMCall(1, False, 1, 0, "0x1234")]).encode()


def test_empty_command():
    assert Command.decode(Command().encode()) == Command()
