# tests/test_revert.py
"""
Revert Decoding Test Suite

R1: Standard payloads (Error, Panic, empty)
R2: Custom errors and immaturity detection
R3: Extraction from exceptions
"""

import pytest
from eth_abi import encode
from eth_utils import function_signature_to_4byte_selector

from hypermap_id.wire import (
    ERROR_SELECTOR,
    PANIC_SELECTOR,
    RevertDecoder,
    RevertKind,
    decode_revert,
    extract_revert_data,
)


def _error(message):
    return ERROR_SELECTOR + encode(["string"], [message])


# =============================================================================
# R1: Standard payloads
# =============================================================================

def test_r1_1_error_string():
    reason = decode_revert(_error("name taken"))
    assert reason.kind is RevertKind.ERROR
    assert reason.name == "Error"
    assert reason.message == "name taken"
    assert str(reason) == "name taken"
    assert reason.selector.hex() == "08c379a0"


def test_r1_2_error_string_from_hex():
    reason = decode_revert("0x" + _error("nope").hex())
    assert reason.message == "nope"


def test_r1_3_panic():
    reason = decode_revert(PANIC_SELECTOR + encode(["uint256"], [0x11]))
    assert reason.kind is RevertKind.PANIC
    assert reason.args == (0x11,)
    assert "overflow" in reason.message


@pytest.mark.parametrize("data", [None, b"", "0x"])
def test_r1_4_empty(data):
    reason = decode_revert(data)
    assert reason.kind is RevertKind.EMPTY
    assert not reason.is_commitment_immature


def test_r1_5_malformed_error_falls_back_to_raw():
    reason = decode_revert(ERROR_SELECTOR + b"\x00\x01")
    assert reason.kind is RevertKind.UNKNOWN
    assert reason.message == "0x08c379a00001"


def test_r1_6_error_string_invalid_utf8():
    reason = decode_revert(ERROR_SELECTOR + encode(["bytes"], [b"\xff\xfe bad"]))
    assert reason.kind is RevertKind.ERROR
    assert reason.message == "�� bad"


# =============================================================================
# R2: Custom errors
# =============================================================================

def test_r2_1_default_custom_error():
    commitment = b"\x12" * 32
    data = function_signature_to_4byte_selector("CommitmentTooNew(bytes32)") + encode(["bytes32"], [commitment])
    reason = decode_revert(data)
    assert reason.kind is RevertKind.CUSTOM
    assert reason.name == "CommitmentTooNew"
    assert reason.args == (commitment,)
    assert reason.message == "CommitmentTooNew(0x" + "12" * 32 + ")"
    assert reason.is_commitment_immature


def test_r2_2_no_arg_custom_error():
    reason = decode_revert(function_signature_to_4byte_selector("NotAuthorized()"))
    assert reason.name == "NotAuthorized"
    assert reason.args == ()
    assert not reason.is_commitment_immature


def test_r2_3_unregistered_selector():
    data = function_signature_to_4byte_selector("Whatever(uint256)") + encode(["uint256"], [1])
    assert decode_revert(data).kind is RevertKind.UNKNOWN

    decoder = RevertDecoder()
    sel = decoder.register("Whatever(uint256)")
    assert sel == data[:4]
    reason = decoder.decode(data)
    assert reason.kind is RevertKind.CUSTOM
    assert reason.args == (1,)


@pytest.mark.parametrize("message,immature", [
    ("commitment too new", True),
    ("Commit not mature yet", True),
    ("commitment too young", True),
    ("name already taken", False),
    ("CommitmentNotFound", False),
])
def test_r2_4_immaturity_from_message(message, immature):
    assert decode_revert(_error(message)).is_commitment_immature is immature


def test_r2_5_register_rejects_bad_signature():
    with pytest.raises(ValueError):
        RevertDecoder([]).register("NotASignature")


# =============================================================================
# R3: Extraction from exceptions
# =============================================================================

class _Err(Exception):
    def __init__(self, data):
        self.data = data
        super().__init__("reverted")


@pytest.mark.parametrize("data,expected", [
    ("0x08c379a0", bytes.fromhex("08c379a0")),
    (b"\x01\x02", b"\x01\x02"),
    ({"data": "0xdead"}, bytes.fromhex("dead")),
    ("execution reverted", None),
    (None, None),
])
def test_r3_1_extract(data, expected):
    assert extract_revert_data(_Err(data)) == expected
