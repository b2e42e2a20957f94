# hypermap_id/errors.py
"""
Hypermap ID: Exceptions

Single exception hierarchy shared by every layer.

    HypermapIdError
    ├── InvalidLabelError              (also ValueError)
    ├── BytecodeFingerprintError
    ├── AddressMismatchError
    ├── RegistrationError
    │   ├── InvalidStateError
    │   ├── SigningRejectedError
    │   ├── NetworkUnreachableError
    │   └── TransactionRevertedError
    │       ├── CommitRevertedError
    │       ├── MintRevertedError
    │       └── CommitmentNotMatureError
    ├── CredentialDerivationFailedError
    └── ServerRejectedError

Updated: 2025-01-20
Version: 0.1.0
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .wire.revert import RevertReason


class HypermapIdError(Exception):
    """Base error."""
    pass


# =============================================================================
# Derivation
# =============================================================================

class InvalidLabelError(HypermapIdError, ValueError):
    """Label is malformed or not normalized."""
    def __init__(self, label: str, reason: str):
        self.label = label
        self.reason = reason
        super().__init__(f"Invalid label {label!r}: {reason}")


class BytecodeFingerprintError(HypermapIdError):
    """Embedded bytecode constant does not match its recorded fingerprint."""
    def __init__(self, name: str, expected: str, got: str):
        self.name = name
        self.expected = expected
        self.got = got
        super().__init__(
            f"{name} fingerprint mismatch: expected {expected[:16]}..., got {got[:16]}..."
        )


class AddressMismatchError(HypermapIdError):
    """Chain-produced account address differs from the prediction."""
    def __init__(self, predicted: str, actual: str):
        self.predicted = predicted
        self.actual = actual
        super().__init__(f"Predicted TBA {predicted} but chain produced {actual}")


# =============================================================================
# Registration
# =============================================================================

class RegistrationError(HypermapIdError):
    """Base registration error."""
    pass


class InvalidStateError(RegistrationError):
    """Operation not valid in the current registration state."""
    def __init__(self, current: str, required: str):
        self.current = current
        self.required = required
        super().__init__(f"Invalid state: current={current}, required={required}")


class SigningRejectedError(RegistrationError):
    """Wallet declined to sign or send."""
    pass


class NetworkUnreachableError(RegistrationError):
    """RPC endpoint or node could not be reached."""
    pass


class TransactionRevertedError(RegistrationError):
    """Transaction reverted on chain."""
    def __init__(
        self,
        message: str,
        reason: Optional[RevertReason] = None,
        tx_hash: Optional[str] = None,
    ):
        self.reason = reason
        self.tx_hash = tx_hash
        super().__init__(message)


class CommitRevertedError(TransactionRevertedError):
    """commit() reverted."""
    pass


class MintRevertedError(TransactionRevertedError):
    """mint() reverted."""
    pass


class CommitmentNotMatureError(TransactionRevertedError):
    """Commitment was consumed before the chain considered it mature."""
    pass


# =============================================================================
# Credentials
# =============================================================================

class CredentialDerivationFailedError(HypermapIdError):
    """Argon2id could not run with the required parameters."""
    pass


class ServerRejectedError(HypermapIdError):
    """Node answered with an HTTP error status."""
    def __init__(self, status: int, body: str, path: str = ""):
        self.status = status
        self.body = body
        self.path = path
        super().__init__(f"{path or 'request'} rejected with HTTP {status}: {body[:200]}")
