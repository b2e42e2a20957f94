# hypermap_id/adapters/__init__.py
"""
Hypermap ID Adapters

Wallet/chain collaborators for the registration flow.

Components:
    WalletAdapter       - Abstract interface (sign, send, receipt, call)
    LocalAccountAdapter - Private key + JSON-RPC (web3.py)
    MockChain           - In-memory Hypermap/DotOs contracts
    MockWalletAdapter   - Real-key wallet over MockChain

Updated: 2025-01-20
Version: 0.1.0
"""

from .base import (
    USER_REJECTED_CODE,
    SignatureType,
    SignResult,
    EIP712Domain,
    TxRequest,
    TxReceipt,
    WalletAdapterError,
    CallReverted,
    is_user_rejection,
    WalletAdapter,
)
from .local import LocalAccountAdapter
from .mock import (
    TEST_PRIVATE_KEY,
    TEST_ADDRESS,
    MintedName,
    MockChain,
    MockWalletAdapter,
)

__all__ = [
    "USER_REJECTED_CODE",
    "SignatureType",
    "SignResult",
    "EIP712Domain",
    "TxRequest",
    "TxReceipt",
    "WalletAdapterError",
    "CallReverted",
    "is_user_rejection",
    "WalletAdapter",
    "LocalAccountAdapter",
    "TEST_PRIVATE_KEY",
    "TEST_ADDRESS",
    "MintedName",
    "MockChain",
    "MockWalletAdapter",
]
