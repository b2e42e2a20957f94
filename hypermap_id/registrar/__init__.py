# hypermap_id/registrar/__init__.py
"""
Hypermap ID Registrar

Commit-reveal registration of names on Hypermap.

Components:
    RegistrationState     - IDLE → COMMITTING → AWAITING_MATURITY → MINTING → DONE | FAILED
    RegistrationSession   - One registration attempt
    CommitRevealRegistrar - Drives sessions through a WalletAdapter

Updated: 2025-01-20
Version: 0.1.0
"""

from .session import (
    RegistrationState,
    RegistrationSession,
    TERMINAL_STATES,
)
from .commit_reveal import CommitRevealRegistrar

__all__ = [
    "RegistrationState",
    "RegistrationSession",
    "TERMINAL_STATES",
    "CommitRevealRegistrar",
]
