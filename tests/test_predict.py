# tests/test_predict.py
"""
TBA Prediction Test Suite

P1: CREATE2 primitives
P2: Proxy and account vectors
P3: TbaPredictor / TbaPrediction
"""

import pytest

from hypermap_id.chains import HYPERMAP_ADDRESS, ERC6551_REGISTRY_ADDRESS, HYPER_ACCOUNT_IMPL_ADDRESS
from hypermap_id.errors import AddressMismatchError
from hypermap_id.names import namehash
from hypermap_id.tba import (
    AccountScheme,
    TbaPredictor,
    create2_address,
    proxy_init_code_hash,
    compute_proxy_address,
    account_init_code,
    predict_account_address,
)
from web3 import Web3


def _predict(name, chain_id=8453, scheme=AccountScheme.ERC6551_V3):
    return predict_account_address(
        HYPERMAP_ADDRESS, HYPER_ACCOUNT_IMPL_ADDRESS, namehash(name), chain_id, scheme=scheme
    )


# =============================================================================
# P1: CREATE2 primitives
# =============================================================================

def test_p1_1_create2_eip1014_example():
    # EIP-1014 example 1
    addr = create2_address(
        "0x0000000000000000000000000000000000000000",
        b"\x00" * 32,
        bytes(Web3.keccak(b"\x00")),
    )
    assert addr == "0x4D1A2e2bB4F88F0250f26Ffff098B0b30B26BF38"


def test_p1_2_create2_rejects_short_salt():
    with pytest.raises(ValueError):
        create2_address(HYPERMAP_ADDRESS, b"\x00" * 31, b"\x00" * 32)


def test_p1_3_proxy_init_code_hash():
    assert proxy_init_code_hash(HYPERMAP_ADDRESS).hex() == (
        "d207fd8bc0a8a6f6c2eae1b1b0d7fa996355b84cdfee10b78fce9056b997addd"
    )


# =============================================================================
# P2: Proxy and account vectors
# =============================================================================

@pytest.mark.parametrize("name,expected", [
    ("alice.os", "0x9c0E4BcFfa5bD575A644A0950e56f03c4B05af23"),
    ("bob.os", "0xeCA9c08f15A407E360d1082617e5F10234138b00"),
    ("os", "0x919daF225155c9F6EBd454Cb3794233cFCed14E4"),
])
def test_p2_1_proxy_vectors(name, expected):
    assert compute_proxy_address(HYPERMAP_ADDRESS, namehash(name)) == expected


@pytest.mark.parametrize("name,chain_id,expected", [
    ("alice.os", 8453, "0x47d4c8c1b8749aB08fD7eeaAd5906410b3e0761B"),
    ("alice.os", 1, "0xb6Ab41C02a9CA1A160E1bCA2367b5BC714e36B13"),
    ("bob.os", 8453, "0xb1Def5AB6D5FF59F890a5f38AF46f344f5522d7A"),
    ("os", 8453, "0x0179D540Ab3729fB5a7b0d1Fc88ad2a853633c4f"),
])
def test_p2_2_account_vectors(name, chain_id, expected):
    assert _predict(name, chain_id) == expected


def test_p2_3_account_init_code_hash():
    node = namehash("alice.os")
    proxy = compute_proxy_address(HYPERMAP_ADDRESS, node)
    code = account_init_code(proxy, node, 8453, HYPERMAP_ADDRESS)
    assert len(code) == 20 + 20 + 15 + 128
    assert Web3.keccak(code).hex().removeprefix("0x") == (
        "06ccf8a1138cd066811cebed0777f9283c8ca393ed21abdb9327f606e24b272e"
    )


def test_p2_4_tagged_scheme_vector():
    assert _predict("alice.os", scheme=AccountScheme.TAGGED) == (
        "0xF998DA6d69A92650e0e13fd4A67512B833a67172"
    )


def test_p2_5_chain_id_changes_account_not_proxy():
    node = namehash("alice.os")
    assert _predict("alice.os", 1) != _predict("alice.os", 8453)
    assert compute_proxy_address(HYPERMAP_ADDRESS, node) == compute_proxy_address(HYPERMAP_ADDRESS, node)


def test_p2_6_implementation_does_not_enter_hash():
    node = namehash("alice.os")
    a = predict_account_address(HYPERMAP_ADDRESS, HYPER_ACCOUNT_IMPL_ADDRESS, node, 8453)
    b = predict_account_address(HYPERMAP_ADDRESS, "0x" + "11" * 20, node, 8453)
    assert a == b


def test_p2_7_explicit_registry_matches_default():
    node = namehash("bob.os")
    assert predict_account_address(
        HYPERMAP_ADDRESS, HYPER_ACCOUNT_IMPL_ADDRESS, node, 8453,
        erc6551_registry=ERC6551_REGISTRY_ADDRESS,
    ) == _predict("bob.os")


@pytest.mark.parametrize("node,chain_id", [(b"\x00" * 31, 8453), (b"\x00" * 32, -1)])
def test_p2_8_invalid_inputs(node, chain_id):
    with pytest.raises(ValueError):
        predict_account_address(HYPERMAP_ADDRESS, HYPER_ACCOUNT_IMPL_ADDRESS, node, chain_id)


# =============================================================================
# P3: TbaPredictor / TbaPrediction
# =============================================================================

def test_p3_1_predictor(base_chain):
    prediction = TbaPredictor(base_chain).predict("alice", zone="os")
    assert prediction.name == "alice.os"
    assert prediction.node_hex == "0xfc921cbdfda30a7b21ad8f5c9ad542cbb5f6f3d0f8c2831fcd0325d1dbbdce8b"
    assert prediction.proxy == "0x9c0E4BcFfa5bD575A644A0950e56f03c4B05af23"
    assert prediction.account == "0x47d4c8c1b8749aB08fD7eeaAd5906410b3e0761B"
    assert prediction.implementation == HYPER_ACCOUNT_IMPL_ADDRESS
    assert prediction.chain_id == 8453


def test_p3_2_to_dict(base_chain):
    data = TbaPredictor(base_chain).predict("alice.os").to_dict()
    assert data["tba"] == "0x47d4c8c1b8749aB08fD7eeaAd5906410b3e0761B"
    assert data["scheme"] == "erc6551-v3"
    assert set(data) == {"name", "node", "proxy", "tba", "chain_id", "implementation", "scheme"}


def test_p3_3_verify(base_chain):
    prediction = TbaPredictor(base_chain).predict("alice.os")
    assert prediction.verify(prediction.account.lower()) == prediction.account

    with pytest.raises(AddressMismatchError) as exc:
        prediction.verify("0xb1Def5AB6D5FF59F890a5f38AF46f344f5522d7A")
    assert exc.value.predicted == prediction.account


def test_p3_4_other_chain_via_replace(base_chain):
    prediction = TbaPredictor(base_chain.replace(chain_id=1, name="mainnet")).predict("alice.os")
    assert prediction.account == "0xb6Ab41C02a9CA1A160E1bCA2367b5BC714e36B13"
