# hypermap_id/adapters/local.py
"""
Hypermap ID Adapters: Local Account

Wallet adapter backed by a private key and a JSON-RPC endpoint.

Requirements:
    pip install web3

Usage:
    adapter = LocalAccountAdapter(
        rpc_url="https://mainnet.base.org",
        private_key="0x...",
        chain_id=8453,
    )
    tx_hash = await adapter.send_transaction(TxRequest(to=dotos, data=calldata))
    receipt = await adapter.wait_for_receipt(tx_hash)

Updated: 2025-01-20
Version: 0.1.0
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Dict, Any, List

from eth_account import Account
from eth_utils import to_checksum_address
from web3 import AsyncWeb3
from web3.exceptions import (
    ContractLogicError,
    ProviderConnectionError,
    TimeExhausted,
    Web3RPCError,
)

from .base import (
    WalletAdapter,
    EIP712Domain,
    SignResult,
    SignatureType,
    TxRequest,
    TxReceipt,
    CallReverted,
    is_user_rejection,
)
from ..errors import SigningRejectedError, NetworkUnreachableError
from ..wire.revert import extract_revert_data


logger = logging.getLogger("hypermap-id")


class LocalAccountAdapter(WalletAdapter):
    """
    Private-key wallet over web3.py's async HTTP provider.

    Gas is estimated unless the request pins it; estimation failures that
    carry revert data surface as CallReverted before anything is sent.
    """

    def __init__(
        self,
        rpc_url: str,
        private_key: str,
        chain_id: Optional[int] = None,
        request_timeout: float = 30.0,
    ):
        """
        Initialize adapter.

        Args:
            rpc_url: JSON-RPC endpoint URL
            private_key: Hex private key of the claimant
            chain_id: Chain ID (fetched lazily if not provided)
            request_timeout: Per-request HTTP timeout in seconds
        """
        super().__init__(chain_id or 0)
        self.rpc_url = rpc_url
        self._account = Account.from_key(private_key)
        self._w3 = AsyncWeb3(
            AsyncWeb3.AsyncHTTPProvider(rpc_url, request_kwargs={"timeout": request_timeout})
        )

    @property
    def address(self) -> str:
        return self._account.address

    @property
    def name(self) -> str:
        return "LocalAccount"

    async def _ensure_chain_id(self) -> int:
        if not self._chain_id:
            self._chain_id = await self._rpc(self._w3.eth.chain_id)
        return self._chain_id

    async def _rpc(self, awaitable):
        """Await an RPC call, mapping transport failures."""
        try:
            return await awaitable
        except (ProviderConnectionError, OSError, asyncio.TimeoutError) as e:
            raise NetworkUnreachableError(f"RPC unreachable at {self.rpc_url}: {e}") from e
        except ContractLogicError as e:
            raise CallReverted(str(e), data=extract_revert_data(e)) from e
        except Web3RPCError as e:
            if is_user_rejection(e):
                raise SigningRejectedError(str(e)) from e
            raise

    # =========================================================================
    # Signing
    # =========================================================================

    async def sign_typed_data(
        self,
        domain: EIP712Domain,
        types: Dict[str, List[Dict[str, str]]],
        value: Dict[str, Any],
    ) -> SignResult:
        """Sign typed data using EIP-712."""
        signed = self._account.sign_typed_data(full_message=domain.typed_data(types, value))
        return SignResult(
            signature=bytes(signed.signature),
            recovery_id=signed.v - 27,
            sig_type=SignatureType.TYPED_DATA,
        )

    # =========================================================================
    # Transactions
    # =========================================================================

    async def send_transaction(self, tx: TxRequest) -> str:
        chain_id = await self._ensure_chain_id()
        to = to_checksum_address(tx.to)

        params: Dict[str, Any] = {
            "from": self.address,
            "to": to,
            "data": tx.data,
            "value": tx.value,
            "chainId": chain_id,
        }
        params["nonce"] = await self._rpc(self._w3.eth.get_transaction_count(self.address, "pending"))
        params["gas"] = tx.gas or await self._rpc(self._w3.eth.estimate_gas(params))
        params["gasPrice"] = await self._rpc(self._w3.eth.gas_price)

        signed = self._account.sign_transaction(params)
        tx_hash = await self._rpc(self._w3.eth.send_raw_transaction(signed.raw_transaction))
        logger.debug(f"sent {len(tx.data)}B to {to}: 0x{bytes(tx_hash).hex()}")
        return "0x" + bytes(tx_hash).hex()

    async def wait_for_receipt(self, tx_hash: str, timeout: float = 120.0) -> TxReceipt:
        try:
            receipt = await self._rpc(
                self._w3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout)
            )
        except TimeExhausted as e:
            raise NetworkUnreachableError(f"No receipt for {tx_hash} after {timeout}s") from e

        block = await self._rpc(self._w3.eth.get_block(receipt["blockNumber"]))
        return TxReceipt(
            tx_hash=tx_hash,
            status=receipt["status"],
            block_number=receipt["blockNumber"],
            block_timestamp=block["timestamp"],
            logs=list(receipt.get("logs", [])),
        )

    async def call(self, to: str, data: bytes) -> bytes:
        result = await self._rpc(self._w3.eth.call({"to": to_checksum_address(to), "data": data}))
        return bytes(result)

    async def get_block_timestamp(self) -> int:
        block = await self._rpc(self._w3.eth.get_block("latest"))
        return block["timestamp"]
