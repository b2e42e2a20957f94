# hypermap_id/tba/predict.py
"""
Hypermap ID TBA: Address Prediction

Predicts the token-bound account (TBA) address a name will receive,
before any transaction is sent, by replaying the two CREATE2 deployments
the chain performs on mint:

    1. Hypermap deploys a HypermapProxy for the name node
         proxy = create2(hypermap, node, keccak(PROXY_CREATION_CODE || abi.encode(hypermap)))

    2. The ERC-6551 registry deploys the account, an ERC-1167 clone
       pointing at the proxy and carrying (salt, chainId, hypermap, node)
       in its footer
         tba = create2(erc6551_registry, node, keccak(initCode))

Every constant here is part of the result. A wrong byte anywhere still
yields a well-formed address that never matches the chain, so the
prediction is pinned by known vectors and the proxy bytecode by its
fingerprint.

Usage:
    from hypermap_id.tba import TbaPredictor

    predictor = TbaPredictor()           # Base mainnet
    prediction = predictor.predict("alice.os")
    print(prediction.account)            # 0x47d4...761B

    # Later, once minted
    prediction.verify(minted_tba)

Updated: 2025-01-20
Version: 0.1.0
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from eth_abi import encode
from eth_utils import to_canonical_address, to_checksum_address
from web3 import Web3

from ..chains import ChainConfig, get_chain, DEFAULT_CHAIN_ID
from ..contracts import PROXY_CREATION_CODE
from ..errors import AddressMismatchError
from ..names import namehash


# =============================================================================
# Constants
# =============================================================================

# ERC-1167 minimal proxy, split around the 20-byte implementation address
ERC1167_HEADER = bytes.fromhex("3d60ad80600a3d3981f3363d3d373d3d3d363d73")
ERC1167_FOOTER = bytes.fromhex("5af43d82803e903d91602b57fd5bf3")

# Tag hashed into the account init code by the tagged scheme
ACCOUNT_TAG = b"erc6551:v3:account"


class AccountScheme(Enum):
    """How the account init code hash is formed."""
    ERC6551_V3 = "erc6551-v3"   # Deployed ERC-6551 v3 registry
    TAGGED = "tagged"           # Packed header hashed with a scheme tag, no salt


# =============================================================================
# CREATE2
# =============================================================================

def create2_address(deployer: str, salt: bytes, init_code_hash: bytes) -> str:
    """
    Standard CREATE2 address.

    Last 20 bytes of keccak256(0xff || deployer || salt || init_code_hash).

    Args:
        deployer: Deploying contract address
        salt: 32-byte salt
        init_code_hash: 32-byte keccak of the init code

    Returns:
        Checksummed address
    """
    if len(salt) != 32 or len(init_code_hash) != 32:
        raise ValueError("salt and init_code_hash must be 32 bytes")
    digest = Web3.keccak(b"\xff" + to_canonical_address(deployer) + salt + init_code_hash)
    return to_checksum_address(digest[12:])


def proxy_init_code_hash(registry: str) -> bytes:
    """keccak256 of the proxy creation code with its constructor argument."""
    return bytes(Web3.keccak(PROXY_CREATION_CODE + encode(["address"], [to_checksum_address(registry)])))


def compute_proxy_address(registry: str, node_id: bytes) -> str:
    """
    Address of the HypermapProxy deployed for a name node.

    Args:
        registry: Hypermap address (proxy deployer and constructor arg)
        node_id: 32-byte namehash, used as CREATE2 salt
    """
    return create2_address(registry, node_id, proxy_init_code_hash(registry))


def account_init_code(proxy: str, node_id: bytes, chain_id: int, registry: str) -> bytes:
    """ERC-6551 v3 account init code (ERC-1167 clone + token footer)."""
    return (
        ERC1167_HEADER
        + to_canonical_address(proxy)
        + ERC1167_FOOTER
        + encode(
            ["bytes32", "uint256", "address", "uint256"],
            [node_id, chain_id, to_checksum_address(registry), int.from_bytes(node_id, "big")],
        )
    )


def _tagged_init_code_hash(proxy: str, node_id: bytes, chain_id: int, registry: str) -> bytes:
    packed = (
        b"\x00" * 10
        + to_canonical_address(proxy)
        + node_id
        + chain_id.to_bytes(32, "big")
        + to_canonical_address(registry)
        + node_id
    )
    return bytes(Web3.keccak(packed + Web3.keccak(ACCOUNT_TAG)))


def predict_account_address(
    registry: str,
    implementation_seed: Optional[str],
    node_id: bytes,
    chain_id: int,
    erc6551_registry: Optional[str] = None,
    scheme: AccountScheme = AccountScheme.ERC6551_V3,
) -> str:
    """
    Predict the TBA address for a name node.

    Args:
        registry: Hypermap address (token contract of the name NFT)
        implementation_seed: Account implementation the mint will clone.
            Recorded by callers for the mint call; the deployed clone
            points at the per-node proxy, so it does not enter the hash.
        node_id: 32-byte namehash (salt and token id)
        chain_id: Chain the account is bound to
        erc6551_registry: Account factory (default: canonical registry)
        scheme: Account init code scheme

    Returns:
        Checksummed TBA address
    """
    if len(node_id) != 32:
        raise ValueError(f"node_id must be 32 bytes, got {len(node_id)}")
    if chain_id < 0:
        raise ValueError(f"chain_id must be non-negative, got {chain_id}")

    factory = erc6551_registry or get_chain(DEFAULT_CHAIN_ID).erc6551_registry
    proxy = compute_proxy_address(registry, node_id)

    if scheme is AccountScheme.TAGGED:
        init_hash = _tagged_init_code_hash(proxy, node_id, chain_id, registry)
        digest = Web3.keccak(b"\xff" + to_canonical_address(factory) + init_hash)
        return to_checksum_address(digest[12:])

    init_hash = bytes(Web3.keccak(account_init_code(proxy, node_id, chain_id, registry)))
    return create2_address(factory, node_id, init_hash)


# =============================================================================
# Predictor
# =============================================================================

@dataclass(frozen=True)
class TbaPrediction:
    """
    Predicted addresses for one name.

    Attributes:
        name: Full name (e.g. "alice.os")
        node_id: 32-byte namehash
        proxy: HypermapProxy address
        account: TBA address
        chain_id: Chain the account is bound to
        implementation: Implementation to pass to mint
        scheme: Account init code scheme used
    """
    name: str
    node_id: bytes
    proxy: str
    account: str
    chain_id: int
    implementation: str
    scheme: AccountScheme = AccountScheme.ERC6551_V3

    @property
    def node_hex(self) -> str:
        return "0x" + self.node_id.hex()

    def matches(self, address: str) -> bool:
        """Case-insensitive comparison with an on-chain address."""
        return self.account.lower() == address.lower()

    def verify(self, minted: str) -> str:
        """
        Confirm the chain produced the predicted account.

        Raises:
            AddressMismatchError: If the addresses differ
        """
        if not self.matches(minted):
            raise AddressMismatchError(self.account, to_checksum_address(minted))
        return self.account

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "node": self.node_hex,
            "proxy": self.proxy,
            "tba": self.account,
            "chain_id": self.chain_id,
            "implementation": self.implementation,
            "scheme": self.scheme.value,
        }


class TbaPredictor:
    """Predicts TBA addresses for names on one chain."""

    def __init__(
        self,
        chain: Optional[ChainConfig] = None,
        scheme: AccountScheme = AccountScheme.ERC6551_V3,
    ):
        self.chain = chain or get_chain(DEFAULT_CHAIN_ID)
        self.scheme = scheme

    def predict(
        self,
        name: str,
        zone: str = "",
        implementation: Optional[str] = None,
    ) -> TbaPrediction:
        """
        Predict proxy and account addresses for `name` (under `zone`).

        Args:
            name: Normalized name or leftmost label
            zone: Parent zone when `name` is a bare label
            implementation: Override the chain's account implementation
        """
        full = f"{name}.{zone}" if zone else name
        node_id = namehash(full)
        impl = to_checksum_address(implementation or self.chain.hyper_account_impl)
        return TbaPrediction(
            name=full,
            node_id=node_id,
            proxy=compute_proxy_address(self.chain.hypermap, node_id),
            account=predict_account_address(
                self.chain.hypermap,
                impl,
                node_id,
                self.chain.chain_id,
                erc6551_registry=self.chain.erc6551_registry,
                scheme=self.scheme,
            ),
            chain_id=self.chain.chain_id,
            implementation=impl,
            scheme=self.scheme,
        )
