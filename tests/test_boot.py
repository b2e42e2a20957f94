# tests/test_boot.py
"""
Boot Message Test Suite

B1: EIP-712 digest vector
B2: Signing through a wallet adapter
B3: Request bodies
B4: Keyfile
"""

import json

import pytest
from eth_account.messages import encode_typed_data
from web3 import Web3

from hypermap_id.adapters import MockWalletAdapter, SignatureType, TEST_ADDRESS
from hypermap_id.auth import (
    BOOT_TYPES,
    boot_domain,
    build_boot_message,
    BootRequest,
    LoginRequest,
    ImportKeyfileRequest,
    RpcProviderConfig,
    CredentialHash,
    Keyfile,
    sign_boot,
)
from hypermap_id.errors import SigningRejectedError


PW_HASH = "0x" + "11" * 32
TIMESTAMP = 1_700_000_000_000


@pytest.fixture
def message():
    return build_boot_message("alice.os", PW_HASH, timestamp=TIMESTAMP, direct=True, reset=False, chain_id=8453)


# =============================================================================
# B1: EIP-712 digest vector
# =============================================================================

def test_b1_1_digest(message, base_chain):
    assert message.signing_hash(boot_domain(base_chain)).hex() == (
        "55c0d0e8b9792903af4db720f84fd4dcfe0b75534a7bdeec76b5bbed812b42e9"
    )


def test_b1_2_domain_and_struct_hashes(message, base_chain):
    signable = encode_typed_data(full_message=message.typed_data(boot_domain(base_chain)))
    assert signable.header.hex() == "05709be3f4b0d100b046f32e169af991a8887180a2c72852f5142b8767c971a3"
    assert signable.body.hex() == "984d085d44bc629dc8527a684cb60bc30161d409f1c0c2f8e48eab8511f3d91d"

    encoded_type = "Boot(string username,bytes32 password_hash,uint256 timestamp,bool direct,bool reset,uint256 chain_id)"
    assert Web3.keccak(text=encoded_type).hex().removeprefix("0x") == (
        "7f8e783beb36143c0ca2f0650d4c3d3184e5b6005bbd97ded4354ddff9dda7b2"
    )


def test_b1_3_domain(base_chain):
    domain = boot_domain(base_chain).to_dict()
    assert domain == {
        "name": "Hypermap",
        "version": "1",
        "chainId": 8453,
        "verifyingContract": base_chain.hypermap,
    }


def test_b1_4_credential_hash_accepted(base_chain):
    a = build_boot_message("alice.os", CredentialHash(b"\x11" * 32), timestamp=TIMESTAMP, direct=True)
    b = build_boot_message("alice.os", "11" * 32, timestamp=TIMESTAMP, direct=True)
    assert a.password_hash == b.password_hash == PW_HASH


def test_b1_5_timestamp_defaults_to_now_in_ms():
    msg = build_boot_message("alice.os", PW_HASH)
    assert msg.timestamp > 1_600_000_000_000


def test_b1_6_fields_change_digest(message, base_chain):
    domain = boot_domain(base_chain)
    other = build_boot_message("alice.os", PW_HASH, timestamp=TIMESTAMP, direct=True, reset=True)
    assert other.signing_hash(domain) != message.signing_hash(domain)


# =============================================================================
# B2: Signing through a wallet adapter
# =============================================================================

async def test_b2_1_sign_boot_recovers_owner(wallet, base_chain):
    request = await sign_boot(wallet, "alice.os", PW_HASH, direct=True, chain=base_chain, timestamp=TIMESTAMP)
    assert request.owner == TEST_ADDRESS
    assert request.message.chain_id == 8453
    assert request.message.recover_signer(request.signature, boot_domain(base_chain)) == TEST_ADDRESS
    assert wallet.signed[-1]["primaryType"] == "Boot"
    assert list(wallet.signed[-1]["types"]["Boot"]) == BOOT_TYPES["Boot"]


async def test_b2_2_rejected(mock_chain, base_chain):
    wallet = MockWalletAdapter(mock_chain, auto_approve=False)
    with pytest.raises(SigningRejectedError):
        await sign_boot(wallet, "alice.os", PW_HASH, chain=base_chain)


async def test_b2_3_signature_bound_to_message(wallet, base_chain):
    request = await sign_boot(wallet, "alice.os", PW_HASH, chain=base_chain, timestamp=TIMESTAMP)
    forged = build_boot_message("bob.os", PW_HASH, timestamp=TIMESTAMP)
    assert forged.recover_signer(request.signature, boot_domain(base_chain)) != TEST_ADDRESS


async def test_b2_4_adapter_signs_typed_data_only(wallet, base_chain, message):
    assert [t.value for t in SignatureType] == ["eth_signTypedData_v4"]
    result = await wallet.sign_typed_data(boot_domain(base_chain), BOOT_TYPES, message.to_message())
    assert result.sig_type is SignatureType.TYPED_DATA
    assert len(result.signature) == 65


# =============================================================================
# B3: Request bodies
# =============================================================================

def test_b3_1_boot_request_empty_lists_are_null(message):
    body = BootRequest(message=message, owner=TEST_ADDRESS, signature="0xsig").to_json()
    assert body == {
        "password_hash": PW_HASH,
        "reset": False,
        "username": "alice.os",
        "direct": True,
        "owner": TEST_ADDRESS,
        "timestamp": TIMESTAMP,
        "signature": "0xsig",
        "chain_id": 8453,
        "custom_routers": None,
        "custom_cache_sources": None,
        "custom_base_l2_access_providers": None,
    }


def test_b3_2_boot_request_custom_lists(message):
    provider = RpcProviderConfig("https://rpc.example", "Bearer", "tok")
    body = BootRequest(
        message=message,
        owner=TEST_ADDRESS,
        signature="0xsig",
        custom_routers=["r.os"],
        custom_cache_sources=["cache.os"],
        custom_base_l2_access_providers=[provider],
    ).to_json()
    assert body["custom_routers"] == ["r.os"]
    assert body["custom_cache_sources"] == ["cache.os"]
    assert json.loads(body["custom_base_l2_access_providers"][0]) == {
        "url": "https://rpc.example", "auth": {"Bearer": "tok"},
    }


def test_b3_3_login_and_import_bodies():
    assert LoginRequest(PW_HASH).to_json() == {
        "password_hash": PW_HASH,
        "custom_cache_sources": None,
        "custom_base_l2_access_providers": None,
    }
    assert ImportKeyfileRequest("a2V5", PW_HASH).to_json() == {"keyfile": "a2V5", "password_hash": PW_HASH}


@pytest.mark.parametrize("config", [
    RpcProviderConfig("https://a"),
    RpcProviderConfig("https://b", "Basic", "dXNlcjpwdw=="),
    RpcProviderConfig("https://c", "Raw", "secret"),
])
def test_b3_4_rpc_provider_json(config):
    assert RpcProviderConfig.from_json(config.to_json()) == config


def test_b3_5_rpc_provider_plain_url_and_invalid():
    assert RpcProviderConfig.from_json("https://plain") == RpcProviderConfig("https://plain")
    assert json.loads(RpcProviderConfig("https://a").to_json()) == {"url": "https://a", "auth": None}
    with pytest.raises(ValueError):
        RpcProviderConfig("https://a", "Digest", "x")
    with pytest.raises(ValueError):
        RpcProviderConfig("https://a", "Bearer")


async def test_b3_6_sign_boot_carries_custom_lists(wallet, base_chain):
    request = await sign_boot(
        wallet, "alice.os", PW_HASH, chain=base_chain, routers=["r.os"], cache_sources=["c.os"],
    )
    body = request.to_json()
    assert body["custom_routers"] == ["r.os"]
    assert body["custom_cache_sources"] == ["c.os"]
    assert body["custom_base_l2_access_providers"] is None


# =============================================================================
# B4: Keyfile
# =============================================================================

def test_b4_1_save_and_load(tmp_path):
    keyfile = Keyfile(name="alice.os", data="a2V5ZmlsZQ==")
    path = keyfile.save(tmp_path / "keys")
    assert path.name == "alice.os.keyfile"
    assert path.read_text() == "a2V5ZmlsZQ=="
    assert Keyfile.load(path) == keyfile


def test_b4_2_load_strips_whitespace(tmp_path):
    path = tmp_path / "bob.os.keyfile"
    path.write_text("ZGF0YQ==\n")
    assert Keyfile.load(path) == Keyfile(name="bob.os", data="ZGF0YQ==")
