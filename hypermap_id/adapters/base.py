# hypermap_id/adapters/base.py
"""
Hypermap ID Adapters: Abstract Wallet Interface

The wallet/signing collaborator the registration flow talks to. The core
builds payloads (typed data, calldata) and hands them to an adapter; the
adapter owns keys, nonces, gas and the RPC connection.

Supported Operations:
    - EIP-712 typed data signing
    - Transaction sending and receipt waiting
    - Read-only calls (eth_call)
    - Block timestamps (commitment maturity re-check)

Wallet Implementations:
    - LocalAccountAdapter: private key + JSON-RPC endpoint (web3.py)
    - MockWalletAdapter:   real key, in-memory MockChain (tests)

Usage:
    adapter = LocalAccountAdapter(rpc_url, private_key, chain_id=8453)

    result = await adapter.sign_typed_data(domain, types, value)
    tx_hash = await adapter.send_transaction(TxRequest(to=dotos, data=calldata))
    receipt = await adapter.wait_for_receipt(tx_hash)

Updated: 2025-01-20
Version: 0.1.0
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Dict, Any, List

from ..errors import HypermapIdError, SigningRejectedError, NetworkUnreachableError


# =============================================================================
# Constants
# =============================================================================

# EIP-1193 "User Rejected Request"
USER_REJECTED_CODE = 4001

EIP712_DOMAIN_FIELDS = {
    "name": {"name": "name", "type": "string"},
    "version": {"name": "version", "type": "string"},
    "chainId": {"name": "chainId", "type": "uint256"},
    "verifyingContract": {"name": "verifyingContract", "type": "address"},
    "salt": {"name": "salt", "type": "bytes32"},
}


class SignatureType(Enum):
    """Signature type for signing operations."""
    TYPED_DATA = "eth_signTypedData_v4"


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class SignResult:
    """Signature result."""
    signature: bytes
    recovery_id: Optional[int] = None
    sig_type: SignatureType = SignatureType.TYPED_DATA

    @property
    def hex(self) -> str:
        return "0x" + self.signature.hex()


@dataclass
class EIP712Domain:
    """EIP-712 domain separator."""
    name: str
    version: str
    chain_id: int
    verifying_contract: Optional[str] = None
    salt: Optional[bytes] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to EIP-712 format."""
        domain = {
            "name": self.name,
            "version": self.version,
            "chainId": self.chain_id,
        }
        if self.verifying_contract:
            domain["verifyingContract"] = self.verifying_contract
        if self.salt:
            domain["salt"] = "0x" + self.salt.hex()
        return domain

    def typed_data(
        self,
        types: Dict[str, List[Dict[str, str]]],
        value: Dict[str, Any],
        primary_type: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Full eth_signTypedData_v4 payload.

        Args:
            types: Struct definitions (without EIP712Domain)
            value: Message to sign
            primary_type: Defaults to the first struct in `types`
        """
        domain = self.to_dict()
        return {
            "types": {
                "EIP712Domain": [EIP712_DOMAIN_FIELDS[k] for k in domain],
                **types,
            },
            "primaryType": primary_type or list(types.keys())[0],
            "domain": domain,
            "message": value,
        }


@dataclass
class TxRequest:
    """Transaction to send from the wallet's account."""
    to: str
    data: bytes
    value: int = 0
    gas: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class TxReceipt:
    """
    Mined transaction.

    Attributes:
        tx_hash: 0x-hex transaction hash
        status: 1 = success, 0 = reverted
        block_number: Inclusion block
        block_timestamp: Inclusion block timestamp (seconds), if known
        revert_data: Raw revert data for failed transactions, if known
        logs: Raw logs
    """
    tx_hash: str
    status: int
    block_number: int
    block_timestamp: Optional[int] = None
    revert_data: Optional[bytes] = None
    logs: List[Any] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status == 1


# =============================================================================
# Exceptions
# =============================================================================

class WalletAdapterError(HypermapIdError):
    """Base exception for wallet adapter errors."""
    pass


class CallReverted(WalletAdapterError):
    """A call or transaction reverted; raw revert data attached."""
    def __init__(self, message: str, data: Optional[bytes] = None, tx_hash: Optional[str] = None):
        self.data = data
        self.tx_hash = tx_hash
        super().__init__(message)


def is_user_rejection(error: BaseException) -> bool:
    """True if an RPC/wallet error means the user declined."""
    code = getattr(error, "code", None)
    response = getattr(error, "rpc_response", None)
    if code is None and isinstance(response, dict):
        code = (response.get("error") or {}).get("code")
    if code == USER_REJECTED_CODE:
        return True
    return "rejected" in str(error).lower()


# =============================================================================
# Abstract Base Class
# =============================================================================

class WalletAdapter(ABC):
    """
    Abstract base class for wallet adapters.

    Implementations raise:
        SigningRejectedError:    user declined a signature or transaction
        NetworkUnreachableError: RPC endpoint unreachable
        CallReverted:            call/transaction reverted (raw data attached)
    """

    def __init__(self, chain_id: int):
        self._chain_id = chain_id

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    @abstractmethod
    def address(self) -> str:
        """Checksummed account address."""
        pass

    @property
    def chain_id(self) -> int:
        return self._chain_id

    @property
    @abstractmethod
    def name(self) -> str:
        """Adapter name."""
        pass

    # =========================================================================
    # Signing
    # =========================================================================

    @abstractmethod
    async def sign_typed_data(
        self,
        domain: EIP712Domain,
        types: Dict[str, List[Dict[str, str]]],
        value: Dict[str, Any],
    ) -> SignResult:
        """
        Sign typed data using EIP-712.

        Args:
            domain: EIP-712 domain
            types: Type definitions (primary type first)
            value: Data to sign

        Raises:
            SigningRejectedError: If user rejects
        """
        pass

    # =========================================================================
    # Transactions
    # =========================================================================

    @abstractmethod
    async def send_transaction(self, tx: TxRequest) -> str:
        """
        Sign and broadcast a transaction.

        Returns:
            0x-hex transaction hash
        """
        pass

    @abstractmethod
    async def wait_for_receipt(self, tx_hash: str, timeout: float = 120.0) -> TxReceipt:
        """Wait until the transaction is mined."""
        pass

    @abstractmethod
    async def call(self, to: str, data: bytes) -> bytes:
        """Read-only call against the latest block."""
        pass

    @abstractmethod
    async def get_block_timestamp(self) -> int:
        """Timestamp of the latest block (seconds)."""
        pass


__all__ = [
    "USER_REJECTED_CODE",
    "SignatureType",
    "SignResult",
    "EIP712Domain",
    "TxRequest",
    "TxReceipt",
    "WalletAdapterError",
    "CallReverted",
    "SigningRejectedError",
    "NetworkUnreachableError",
    "is_user_rejection",
    "WalletAdapter",
]
