# hypermap_id/registrar/commit_reveal.py
"""
Hypermap ID Registrar: Commit-Reveal Registration

Two-phase claim of a `.os` name against DotOs, so a pending registration
cannot be front-run by someone watching the mempool.

Flow:
    1. COMMIT: send commit(keccak256(abi.encode(label, claimant)))
    2. WAIT:   sleep `maturity_buffer` seconds after the commit receipt,
               then (if `min_commit_age` is configured) re-check the age
               against the latest block timestamp once
    3. MINT:   send mint(claimant, label, initCall, implementation)
    4. VERIFY: read the minted TBA from Hypermap and compare it with the
               CREATE2 prediction

Nothing retries internally. Any failure marks the session FAILED and is
raised to the caller; `retry()` hands back a fresh session.

Usage:
    registrar = CommitRevealRegistrar(adapter, get_chain(8453))

    session = await registrar.register("alice", networking)
    print(session.minted_address)

    # Or step by step
    session = registrar.start("alice", networking)
    await registrar.commit(session)
    await registrar.await_maturity(session)
    await registrar.mint(session)

Updated: 2025-01-20
Version: 0.1.0
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from eth_utils import to_checksum_address

from .session import RegistrationSession, RegistrationState, DOTOS_ZONE
from ..adapters.base import WalletAdapter, TxRequest, TxReceipt, CallReverted
from ..chains import ChainConfig, TBA_EXECUTE_GAS, get_chain, DEFAULT_CHAIN_ID
from ..errors import (
    HypermapIdError,
    AddressMismatchError,
    InvalidLabelError,
    TransactionRevertedError,
    CommitRevertedError,
    MintRevertedError,
    CommitmentNotMatureError,
)
from ..names import validate_label
from ..tba import TbaPredictor
from ..wire import (
    NetworkingConfig,
    RevertDecoder,
    build_init_call,
    encode_commit,
    encode_mint,
    encode_hypermap_get,
    decode_hypermap_get,
)


logger = logging.getLogger("hypermap-id")

Sleep = Callable[[float], Awaitable[None]]


class CommitRevealRegistrar:
    """
    Drives registration sessions through a wallet adapter.

    Example:
        >>> registrar = CommitRevealRegistrar(adapter)
        >>> session = await registrar.register("alice", networking)
        >>> session.state
        <RegistrationState.DONE: 4>
    """

    def __init__(
        self,
        adapter: WalletAdapter,
        chain: Optional[ChainConfig] = None,
        predictor: Optional[TbaPredictor] = None,
        decoder: Optional[RevertDecoder] = None,
        sleep: Sleep = asyncio.sleep,
        receipt_timeout: float = 120.0,
    ):
        """
        Initialize registrar.

        Args:
            adapter: Wallet that signs and sends transactions
            chain: Chain configuration (default: Base)
            predictor: TBA predictor (default: one for `chain`)
            decoder: Revert decoder (default: built-in error table)
            sleep: Coroutine used for the maturity wait
            receipt_timeout: Seconds to wait for each receipt
        """
        self.adapter = adapter
        self.chain = chain or get_chain(DEFAULT_CHAIN_ID)
        self.predictor = predictor or TbaPredictor(self.chain)
        self.decoder = decoder or RevertDecoder()
        self._sleep = sleep
        self.receipt_timeout = receipt_timeout

    # =========================================================================
    # Session Lifecycle
    # =========================================================================

    def start(
        self,
        label: str,
        networking: NetworkingConfig,
        claimant: Optional[str] = None,
        implementation: Optional[str] = None,
        zone: str = DOTOS_ZONE,
    ) -> RegistrationSession:
        """
        Validate the label and build an IDLE session.

        Args:
            label: Normalized leftmost label, without the zone ("alice")
            networking: Networking snapshot for the init call
            claimant: Owner of the name (default: the adapter's address)
            implementation: Account implementation override
            zone: Parent name

        Raises:
            InvalidLabelError: If the label cannot be registered
        """
        validate_label(label)
        if "." in label:
            raise InvalidLabelError(label, "expected a single label without its zone")

        claimant = to_checksum_address(claimant or self.adapter.address)
        prediction = self.predictor.predict(label, zone=zone, implementation=implementation)
        session = RegistrationSession.create(
            label=label,
            claimant=claimant,
            chain_id=self.chain.chain_id,
            networking=networking,
            zone=zone,
            prediction=prediction,
        )
        logger.info(
            f"Session for {session.name}: commitment 0x{session.commitment.hex()[:16]}..., "
            f"predicted TBA {prediction.account}"
        )
        return session

    def retry(
        self,
        session: RegistrationSession,
        label: Optional[str] = None,
        claimant: Optional[str] = None,
        networking: Optional[NetworkingConfig] = None,
    ) -> RegistrationSession:
        """
        Fresh IDLE session from a finished one.

        The commitment is recomputed, so changing label or claimant yields
        a different one.
        """
        return self.start(
            label or session.label,
            networking or session.networking,
            claimant=claimant or session.claimant,
            implementation=session.implementation,
            zone=session.zone,
        )

    async def register(
        self,
        label: str,
        networking: NetworkingConfig,
        claimant: Optional[str] = None,
        implementation: Optional[str] = None,
    ) -> RegistrationSession:
        """
        Commit, wait and mint in one call.

        Returns:
            DONE session

        Raises:
            SigningRejectedError: Wallet declined
            NetworkUnreachableError: RPC unreachable
            CommitRevertedError / MintRevertedError: Transaction reverted
            CommitmentNotMatureError: Chain still considers the commitment too new
            AddressMismatchError: Minted TBA differs from the prediction
        """
        session = self.start(label, networking, claimant=claimant, implementation=implementation)
        await self.commit(session)
        await self.await_maturity(session)
        await self.mint(session)
        return session

    # =========================================================================
    # Steps
    # =========================================================================

    async def commit(self, session: RegistrationSession) -> RegistrationSession:
        """IDLE → COMMITTING → AWAITING_MATURITY."""
        session.require(RegistrationState.IDLE)
        tx = TxRequest(
            to=self.chain.dotos,
            data=encode_commit(session.commitment),
            metadata={"step": "commit", "name": session.name},
        )
        try:
            tx_hash = await self.adapter.send_transaction(tx)
            session.mark_committing(tx_hash)
            logger.info(f"commit sent for {session.name}: {tx_hash}")
            receipt = await self._confirm(tx_hash, "commit")
        except CallReverted as e:
            raise self._fail(session, self._revert_error("commit", e.data, e.tx_hash))
        except HypermapIdError as e:
            raise self._fail(session, e)

        session.mark_committed(receipt.block_timestamp)
        logger.info(f"commit confirmed for {session.name} in block {receipt.block_number}")
        return session

    async def await_maturity(self, session: RegistrationSession) -> RegistrationSession:
        """
        Wait out the maturity buffer.

        Raises:
            CommitmentNotMatureError: If the block-timestamp re-check fails
        """
        session.require(RegistrationState.AWAITING_MATURITY)
        buffer = self.chain.maturity_buffer
        logger.info(f"waiting {buffer}s for {session.name} commitment to mature")
        await self._sleep(buffer)

        min_age = self.chain.min_commit_age
        if min_age is not None and session.committed_at is not None:
            try:
                now = await self.adapter.get_block_timestamp()
            except HypermapIdError as e:
                raise self._fail(session, e)
            age = now - session.committed_at
            if age < min_age:
                raise self._fail(session, CommitmentNotMatureError(
                    f"Commitment for {session.name} is {age}s old, chain requires {min_age}s"
                ))

        session.mark_matured()
        return session

    async def mint(self, session: RegistrationSession) -> RegistrationSession:
        """AWAITING_MATURITY → MINTING → DONE."""
        session.require(RegistrationState.AWAITING_MATURITY)
        tx = TxRequest(
            to=self.chain.dotos,
            data=self._mint_calldata(session),
            metadata={"step": "mint", "name": session.name},
        )
        return await self._send_mint(session, tx)

    async def mint_under_parent(
        self,
        parent_tba: str,
        label: str,
        parent_name: str,
        networking: NetworkingConfig,
        claimant: Optional[str] = None,
        implementation: Optional[str] = None,
    ) -> RegistrationSession:
        """
        Mint `label.parent_name` directly through the parent's TBA.

        Only the parent's owner may do this, so no commitment is needed.

        Args:
            parent_tba: TBA of the parent name
            label: New leftmost label
            parent_name: Parent name (e.g. "alice.os")
            networking: Networking snapshot for the init call
            claimant: Owner of the new name (default: the adapter's address)
            implementation: Account implementation override
        """
        session = self.start(
            label, networking, claimant=claimant, implementation=implementation, zone=parent_name
        )
        tx = TxRequest(
            to=to_checksum_address(parent_tba),
            data=self._mint_calldata(session),
            gas=TBA_EXECUTE_GAS,
            metadata={"step": "mint", "name": session.name, "parent": parent_name},
        )
        return await self._send_mint(session, tx)

    async def reset_networking(self, tba: str, networking: NetworkingConfig) -> TxReceipt:
        """
        Re-note networking data on an owned name.

        Sends execute(MULTICALL, 0, aggregate(notes), 1) to the name's TBA.

        Raises:
            TransactionRevertedError: If the reset reverts
        """
        tx = TxRequest(
            to=to_checksum_address(tba),
            data=build_init_call(networking, self.chain),
            gas=TBA_EXECUTE_GAS,
            metadata={"step": "reset"},
        )
        try:
            tx_hash = await self.adapter.send_transaction(tx)
            logger.info(f"networking reset sent to {tba}: {tx_hash}")
            return await self._confirm(tx_hash, "reset")
        except CallReverted as e:
            raise self._revert_error("reset", e.data, e.tx_hash)

    # =========================================================================
    # Internals
    # =========================================================================

    def _mint_calldata(self, session: RegistrationSession) -> bytes:
        init = build_init_call(session.networking, self.chain)
        logger.debug(f"init call for {session.name}: {len(init)}B")
        return encode_mint(session.claimant, session.label, init, session.implementation)

    async def _send_mint(self, session: RegistrationSession, tx: TxRequest) -> RegistrationSession:
        try:
            tx_hash = await self.adapter.send_transaction(tx)
            session.mark_minting(tx_hash)
            logger.info(f"mint sent for {session.name}: {tx_hash}")
            await self._confirm(tx_hash, "mint")
        except CallReverted as e:
            raise self._fail(session, self._revert_error("mint", e.data, e.tx_hash))
        except HypermapIdError as e:
            raise self._fail(session, e)

        # Mint is confirmed; only a wrong TBA can still fail the session
        minted = await self._read_minted_tba(session)
        if minted is not None:
            try:
                session.prediction.verify(minted)
            except AddressMismatchError as e:
                raise self._fail(session, e)

        session.mark_done(minted)
        logger.info(f"{session.name} minted, TBA {minted or session.prediction.account}")
        return session

    async def _confirm(self, tx_hash: str, step: str) -> TxReceipt:
        receipt = await self.adapter.wait_for_receipt(tx_hash, timeout=self.receipt_timeout)
        if not receipt.succeeded:
            raise self._revert_error(step, receipt.revert_data, tx_hash)
        return receipt

    async def _read_minted_tba(self, session: RegistrationSession) -> Optional[str]:
        """TBA recorded by Hypermap for the session's name, if any."""
        try:
            data = await self.adapter.call(
                self.chain.hypermap, encode_hypermap_get(session.prediction.node_id)
            )
        except (CallReverted, HypermapIdError) as e:
            logger.warning(f"could not read minted TBA for {session.name}: {e}")
            return None
        tba, _owner, _note = decode_hypermap_get(data)
        if int(tba, 16) == 0:
            logger.warning(f"Hypermap has no TBA for {session.name} yet")
            return None
        return tba

    def _revert_error(
        self,
        step: str,
        data: Optional[bytes],
        tx_hash: Optional[str],
    ) -> TransactionRevertedError:
        reason = self.decoder.decode(data)
        if reason.is_commitment_immature:
            return CommitmentNotMatureError(f"{step} reverted, commitment not mature: {reason}", reason, tx_hash)
        if step == "commit":
            return CommitRevertedError(f"commit reverted: {reason}", reason, tx_hash)
        if step == "mint":
            return MintRevertedError(f"mint reverted: {reason}", reason, tx_hash)
        return TransactionRevertedError(f"{step} reverted: {reason}", reason, tx_hash)

    def _fail(self, session: RegistrationSession, error: HypermapIdError) -> HypermapIdError:
        logger.warning(f"registration of {session.name} failed in {session.state.name}: {error}")
        session.mark_failed(error)
        return error

