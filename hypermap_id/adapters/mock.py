# hypermap_id/adapters/mock.py
"""
Hypermap ID Adapters: Mock Chain and Wallet

In-memory stand-in for the Hypermap/DotOs contracts plus a wallet adapter
that signs with a real key. Used by the test suite and for dry runs.

MockChain enforces what the real contracts enforce for registration:
    - mint consumes keccak256(abi.encode(label, msg.sender)), which must
      have been committed at least `min_commit_age` seconds earlier
    - names cannot be minted twice
    - sub-names are minted by calling mint on the parent's TBA, which only
      its owner may do
    - the init call is decoded (execute → aggregate → note) and the notes
      are recorded on the minted name
    - the proxy and account are "deployed" with the registry's own init
      code layout, so the TBA is derived apart from the predictor

Reverts carry custom-error data (CommitmentNotFound, CommitmentTooNew,
NameTaken, NotAuthorized) or Error(string).

Usage:
    chain = MockChain(get_chain(8453), min_commit_age=60)
    wallet = MockWalletAdapter(chain)

    async def fake_sleep(seconds):
        chain.advance(seconds)

Updated: 2025-01-20
Version: 0.1.0
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List, Tuple

from eth_abi import encode
from eth_account import Account
from eth_utils import function_signature_to_4byte_selector, to_checksum_address
from web3 import Web3

from .base import (
    WalletAdapter,
    EIP712Domain,
    SignResult,
    SignatureType,
    TxRequest,
    TxReceipt,
    CallReverted,
)
from ..chains import ChainConfig
from ..errors import SigningRejectedError, NetworkUnreachableError
from ..names import namehash
from ..contracts import PROXY_CREATION_CODE
from ..wire.calls import compute_commitment, decode_call, selector
from ..wire.revert import ERROR_SELECTOR


logger = logging.getLogger("hypermap-id")

# Anvil/Hardhat default account #0
TEST_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"

DOTOS_ZONE = "os"


# =============================================================================
# Reverts
# =============================================================================

class _Revert(Exception):
    def __init__(self, data: bytes):
        self.data = data
        super().__init__("0x" + data.hex())


def _custom_error(signature: str, types: List[str], args: List[Any]) -> _Revert:
    return _Revert(function_signature_to_4byte_selector(signature) + encode(types, args))


def _error_string(message: str) -> _Revert:
    return _Revert(ERROR_SELECTOR + encode(["string"], [message]))


# =============================================================================
# Deployments
# =============================================================================

# ERC6551Registry.createAccount: ERC-1167 clone of the proxy + (salt, chainId, token, tokenId)
_ACCOUNT_CODE = (
    "3d60ad80600a3d3981f3363d3d373d3d3d363d73{proxy}5af43d82803e903d91602b57fd5bf3"
    "{salt}{chain_id:064x}{token}{token_id}"
)


def _create2(deployer: str, salt: bytes, code: bytes) -> str:
    digest = Web3.keccak(b"\xff" + bytes.fromhex(deployer[2:]) + salt + Web3.keccak(code))
    return to_checksum_address(digest[12:])


# =============================================================================
# Chain State
# =============================================================================

@dataclass
class MintedName:
    """A name registered on the mock chain."""
    name: str
    node: bytes
    tba: str
    owner: str
    implementation: str
    notes: Dict[str, bytes] = field(default_factory=dict)


class MockChain:
    """
    In-memory registration contracts.

    Time only moves when a block is mined (`block_time` per transaction)
    or when `advance()` is called.
    """

    def __init__(
        self,
        chain: ChainConfig,
        min_commit_age: Optional[int] = None,
        block_time: int = 2,
        start_timestamp: int = 1_700_000_000,
    ):
        self.config = chain
        if min_commit_age is None:
            min_commit_age = chain.min_commit_age or 0
        self.min_commit_age = min_commit_age
        self.block_time = block_time
        self.timestamp = start_timestamp
        self.block_number = 1

        self.commitments: Dict[bytes, int] = {}
        self.names: Dict[bytes, MintedName] = {}
        self.receipts: Dict[str, TxReceipt] = {}
        self.transactions: List[Tuple[str, TxRequest]] = []
        self._nonces: Dict[str, int] = {}

    # =========================================================================
    # Clock
    # =========================================================================

    def advance(self, seconds: float) -> None:
        """Move chain time forward without mining."""
        self.timestamp += int(seconds)

    def _mine(self) -> None:
        self.block_number += 1
        self.timestamp += self.block_time

    # =========================================================================
    # Queries
    # =========================================================================

    def get(self, name: str) -> Optional[MintedName]:
        """Look up a minted name."""
        return self.names.get(namehash(name))

    def _by_tba(self, address: str) -> Optional[MintedName]:
        for minted in self.names.values():
            if minted.tba.lower() == address.lower():
                return minted
        return None

    def call(self, to: str, data: bytes) -> bytes:
        """Read-only call. Supports Hypermap get(bytes32)."""
        if to.lower() != self.config.hypermap.lower():
            raise CallReverted("call to unknown contract", data=_error_string("unknown contract").data)
        fn, args = decode_call("Hypermap", data)
        if fn != "get":
            raise CallReverted(f"{fn} is not a view", data=_error_string("not a view").data)
        minted = self.names.get(bytes(args["node"]))
        zero = "0x" + "00" * 20
        if minted is None:
            return encode(["address", "address", "bytes"], [zero, zero, b""])
        return encode(["address", "address", "bytes"], [minted.tba, minted.owner, b""])

    # =========================================================================
    # Execution
    # =========================================================================

    def execute(self, sender: str, tx: TxRequest) -> Tuple[str, bytes]:
        """
        Apply a transaction, mining one block.

        Returns:
            (tx_hash, return data)

        Raises:
            _Revert: With revert data if the call fails
        """
        sender = to_checksum_address(sender)
        nonce = self._nonces.get(sender, 0)
        tx_hash = "0x" + Web3.keccak(
            bytes.fromhex(sender[2:]) + nonce.to_bytes(8, "big") + tx.data
        ).hex().removeprefix("0x")

        self._mine()
        self._nonces[sender] = nonce + 1
        self.transactions.append((sender, tx))

        if tx.to.lower() == self.config.dotos.lower():
            result = self._dotos(sender, tx.data)
        else:
            parent = self._by_tba(tx.to)
            if parent is None:
                raise _error_string("no contract at target")
            result = self._account(sender, parent, tx.data)
        return tx_hash, result

    def _dotos(self, sender: str, data: bytes) -> bytes:
        fn, args = decode_call("DotOs", data)
        if fn == "commit":
            commitment = bytes(args["_commit"])
            self.commitments[commitment] = self.timestamp
            logger.debug(f"mock commit 0x{commitment.hex()[:16]}... at {self.timestamp}")
            return b""

        label = bytes(args["label"])
        commitment = compute_commitment(label, sender)
        committed_at = self.commitments.get(commitment)
        if committed_at is None:
            raise _custom_error("CommitmentNotFound(bytes32)", ["bytes32"], [commitment])
        if self.timestamp - committed_at < self.min_commit_age:
            raise _custom_error("CommitmentTooNew(bytes32)", ["bytes32"], [commitment])

        minted = self._mint(label.decode(), DOTOS_ZONE, args["who"], args["initialization"], args["implementation"])
        del self.commitments[commitment]
        return encode(["address"], [minted.tba])

    def _account(self, sender: str, account: MintedName, data: bytes) -> bytes:
        if sender.lower() != account.owner.lower():
            raise _custom_error("NotAuthorized()", [], [])

        abi = "DotOs" if data[:4] == selector("DotOs", "mint") else "HyperAccount"
        fn, args = decode_call(abi, data)
        if fn == "mint":
            minted = self._mint(
                bytes(args["label"]).decode(), account.name, args["who"],
                args["initialization"], args["implementation"],
            )
            return encode(["address"], [minted.tba])
        if fn == "execute":
            self._apply_init(account, args)
            return b""
        raise _error_string(f"unsupported account call {fn}")

    def _mint(self, label: str, zone: str, who: str, init: bytes, implementation: str) -> MintedName:
        name = f"{label}.{zone}"
        node = namehash(name)
        if node in self.names:
            raise _custom_error("NameTaken(bytes)", ["bytes"], [label.encode()])

        tba = self._deploy_account(node)
        minted = MintedName(
            name=name,
            node=node,
            tba=tba,
            owner=to_checksum_address(who),
            implementation=to_checksum_address(implementation),
        )
        if init:
            fn, args = decode_call("HyperAccount", init)
            if fn != "execute":
                raise _error_string("bad initialization")
            self._apply_init(minted, args)
        self.names[node] = minted
        logger.debug(f"mock mint {name} -> {tba}")
        return minted

    def _deploy_account(self, node: bytes) -> str:
        hypermap = self.config.hypermap
        proxy = _create2(hypermap, node, PROXY_CREATION_CODE + bytes(12) + bytes.fromhex(hypermap[2:]))
        code = _ACCOUNT_CODE.format(
            proxy=proxy[2:],
            salt=node.hex(),
            chain_id=self.config.chain_id,
            token=hypermap[2:].rjust(64, "0"),
            token_id=node.hex(),
        )
        return _create2(self.config.erc6551_registry, node, bytes.fromhex(code))

    def _apply_init(self, minted: MintedName, execute_args: Dict[str, Any]) -> None:
        if execute_args["to"].lower() != self.config.multicall.lower() or execute_args["operation"] != 1:
            raise _error_string("init must delegatecall multicall")
        fn, args = decode_call("Multicall3", execute_args["data"])
        if fn != "aggregate":
            raise _error_string("init must aggregate")
        for call in args["calls"]:
            target, call_data = (call["target"], call["callData"]) if isinstance(call, dict) else call
            if target.lower() != self.config.hypermap.lower():
                raise _error_string("note target must be hypermap")
            note_fn, note_args = decode_call("Hypermap", call_data)
            if note_fn != "note":
                raise _error_string(f"unsupported hypermap call {note_fn}")
            minted.notes[bytes(note_args["note"]).decode()] = bytes(note_args["data"])


# =============================================================================
# Mock Wallet
# =============================================================================

class MockWalletAdapter(WalletAdapter):
    """
    Wallet adapter over a MockChain.

    Signs with a real secp256k1 key so signatures verify. Transactions
    without a pinned gas limit are "estimated" first, so reverts raise
    CallReverted at send time; pinned-gas transactions are mined and
    fail in the receipt, as on a real chain.
    """

    def __init__(
        self,
        chain: MockChain,
        private_key: str = TEST_PRIVATE_KEY,
        auto_approve: bool = True,
        reachable: bool = True,
    ):
        super().__init__(chain.config.chain_id)
        self.mock_chain = chain
        self._account = Account.from_key(private_key)
        self.auto_approve = auto_approve
        self.reachable = reachable
        self.signed: List[Dict[str, Any]] = []

    @property
    def address(self) -> str:
        return self._account.address

    @property
    def name(self) -> str:
        return "MockWallet"

    def _require_reachable(self) -> None:
        if not self.reachable:
            raise NetworkUnreachableError("mock RPC unreachable")

    async def sign_typed_data(
        self,
        domain: EIP712Domain,
        types: Dict[str, List[Dict[str, str]]],
        value: Dict[str, Any],
    ) -> SignResult:
        if not self.auto_approve:
            raise SigningRejectedError("User rejected signature")
        typed = domain.typed_data(types, value)
        self.signed.append(typed)
        signed = self._account.sign_typed_data(full_message=typed)
        return SignResult(
            signature=bytes(signed.signature),
            recovery_id=signed.v - 27,
            sig_type=SignatureType.TYPED_DATA,
        )

    async def send_transaction(self, tx: TxRequest) -> str:
        self._require_reachable()
        if not self.auto_approve:
            raise SigningRejectedError("User rejected request")

        try:
            tx_hash, _ = self.mock_chain.execute(self.address, tx)
        except _Revert as e:
            if tx.gas is None:
                raise CallReverted("execution reverted", data=e.data) from e
            tx_hash = "0x" + Web3.keccak(e.data + self.mock_chain.block_number.to_bytes(8, "big")).hex().removeprefix("0x")
            self.mock_chain.receipts[tx_hash] = self._receipt(tx_hash, 0, e.data)
            return tx_hash

        self.mock_chain.receipts[tx_hash] = self._receipt(tx_hash, 1)
        return tx_hash

    def _receipt(self, tx_hash: str, status: int, revert_data: Optional[bytes] = None) -> TxReceipt:
        return TxReceipt(
            tx_hash=tx_hash,
            status=status,
            block_number=self.mock_chain.block_number,
            block_timestamp=self.mock_chain.timestamp,
            revert_data=revert_data,
        )

    async def wait_for_receipt(self, tx_hash: str, timeout: float = 120.0) -> TxReceipt:
        self._require_reachable()
        return self.mock_chain.receipts[tx_hash]

    async def call(self, to: str, data: bytes) -> bytes:
        self._require_reachable()
        return self.mock_chain.call(to, data)

    async def get_block_timestamp(self) -> int:
        self._require_reachable()
        return self.mock_chain.timestamp
