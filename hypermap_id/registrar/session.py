# hypermap_id/registrar/session.py
"""
Hypermap ID Registrar: Registration Session

State of one claim attempt, carried between the commit, maturity and mint
steps. Each registrar step takes the session, advances it and returns it.

State Machine:

    IDLE ──commit──► COMMITTING ──receipt──► AWAITING_MATURITY ──mint──► MINTING ──receipt──► DONE
      │                  │                          │                       │
      └──────────────────┴────────── any error ─────┴───────────────────────┴──► FAILED

    IDLE ──mint_under_parent──► MINTING  (parent-authorized, no commitment)

A FAILED or DONE session is never reused; `CommitRevealRegistrar.retry()`
builds a fresh IDLE one.

Updated: 2025-01-20
Version: 0.1.0
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional

from ..errors import HypermapIdError, InvalidStateError
from ..tba import TbaPrediction
from ..wire import NetworkingConfig, compute_commitment


DOTOS_ZONE = "os"


class RegistrationState(IntEnum):
    """Registration phase."""
    IDLE = 0                # Session created, nothing sent
    COMMITTING = 1          # commit() sent, waiting for receipt
    AWAITING_MATURITY = 2   # Commitment on chain, not yet consumed
    MINTING = 3             # mint() sent, waiting for receipt
    DONE = 4                # Name minted
    FAILED = 5              # Attempt abandoned with an error


TERMINAL_STATES = frozenset({RegistrationState.DONE, RegistrationState.FAILED})


@dataclass
class RegistrationSession:
    """
    One registration attempt.

    Attributes:
        label: Leftmost label (e.g. "alice")
        zone: Parent name (e.g. "os")
        claimant: Address that will own the name
        chain_id: Target chain
        networking: Networking snapshot for the init call
        commitment: keccak256(abi.encode(label, claimant))
        prediction: Predicted proxy/TBA addresses
        state: Current phase
        commit_tx: commit() transaction hash
        mint_tx: mint() transaction hash
        committed_at: Commit block timestamp (seconds)
        matured_at: Time the maturity wait finished (seconds)
        minted_address: TBA reported by the chain
        error: Failure that moved the session to FAILED
    """
    label: str
    zone: str
    claimant: str
    chain_id: int
    networking: NetworkingConfig
    commitment: bytes
    prediction: Optional[TbaPrediction] = None
    state: RegistrationState = RegistrationState.IDLE
    commit_tx: Optional[str] = None
    mint_tx: Optional[str] = None
    created_at: float = field(default_factory=time.time)
    committed_at: Optional[int] = None
    matured_at: Optional[float] = None
    minted_address: Optional[str] = None
    error: Optional[HypermapIdError] = None

    @classmethod
    def create(
        cls,
        label: str,
        claimant: str,
        chain_id: int,
        networking: NetworkingConfig,
        zone: str = DOTOS_ZONE,
        prediction: Optional[TbaPrediction] = None,
    ) -> RegistrationSession:
        """Fresh IDLE session with its commitment computed."""
        return cls(
            label=label,
            zone=zone,
            claimant=claimant,
            chain_id=chain_id,
            networking=networking,
            commitment=compute_commitment(label, claimant),
            prediction=prediction,
        )

    @property
    def name(self) -> str:
        """Full name, e.g. "alice.os"."""
        return f"{self.label}.{self.zone}" if self.zone else self.label

    @property
    def implementation(self) -> Optional[str]:
        return self.prediction.implementation if self.prediction else None

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def is_mature(self) -> bool:
        return self.matured_at is not None

    def require(self, *states: RegistrationState) -> None:
        """
        Raises:
            InvalidStateError: If the session is not in one of `states`
        """
        if self.state not in states:
            raise InvalidStateError(
                self.state.name, "|".join(s.name for s in states)
            )

    def mark_committing(self, tx_hash: str) -> None:
        """Mark commit as sent."""
        self.require(RegistrationState.IDLE)
        self.state = RegistrationState.COMMITTING
        self.commit_tx = tx_hash

    def mark_committed(self, block_timestamp: Optional[int] = None) -> None:
        """Mark commit as confirmed."""
        self.require(RegistrationState.COMMITTING)
        self.state = RegistrationState.AWAITING_MATURITY
        self.committed_at = block_timestamp if block_timestamp is not None else int(time.time())

    def mark_matured(self, timestamp: Optional[float] = None) -> None:
        """Mark the maturity wait as finished."""
        self.require(RegistrationState.AWAITING_MATURITY)
        self.matured_at = timestamp or time.time()

    def mark_minting(self, tx_hash: str) -> None:
        """Mark mint as sent."""
        self.require(RegistrationState.AWAITING_MATURITY, RegistrationState.IDLE)
        self.state = RegistrationState.MINTING
        self.mint_tx = tx_hash

    def mark_done(self, minted_address: Optional[str] = None) -> None:
        """Mark as minted."""
        self.require(RegistrationState.MINTING)
        self.state = RegistrationState.DONE
        self.minted_address = minted_address

    def mark_failed(self, error: HypermapIdError) -> None:
        """Mark as failed. No-op once terminal."""
        if self.is_terminal:
            return
        self.state = RegistrationState.FAILED
        self.error = error

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "claimant": self.claimant,
            "chain_id": self.chain_id,
            "state": self.state.name,
            "commitment": "0x" + self.commitment.hex(),
            "commit_tx": self.commit_tx,
            "mint_tx": self.mint_tx,
            "committed_at": self.committed_at,
            "predicted_tba": self.prediction.account if self.prediction else None,
            "minted_tba": self.minted_address,
            "error": str(self.error) if self.error else None,
        }
