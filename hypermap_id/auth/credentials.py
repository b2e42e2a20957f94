# hypermap_id/auth/credentials.py
"""
Hypermap ID Auth: Credential Derivation

Password → 32-byte Argon2id digest sent to the node in place of the
password. The node compares digests, so every parameter here is a
compatibility contract and is never lowered to make hashing succeed.

Parameters:
    - Argon2id, 32-byte output
    - time cost 2, memory 19456 KiB, parallelism 1
    - salt: node name bytes, repeated to at least 8 bytes
    - no secret, no associated data

Salt Rule:
    len(name) >= 8  →  name
    len(name) <  8  →  name * (1 + 8 // len(name))      ("ab" → "ababababab")

Requirements:
    pip install "cryptography>=44"

Usage:
    from hypermap_id.auth import derive_credential_hash

    cred = derive_credential_hash("hunter22", "alice.os")
    print(cred.hex)    # 0x6f35802a...

    # Without blocking the event loop
    cred = await derive_credential_hash_async("hunter22", "alice.os")

Updated: 2025-01-20
Version: 0.1.0
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from functools import partial
from typing import Optional

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.kdf.argon2 import Argon2id
from eth_utils import to_bytes

from ..errors import CredentialDerivationFailedError


logger = logging.getLogger("hypermap-id")

MIN_SALT_LENGTH = 8


# =============================================================================
# Parameters
# =============================================================================

@dataclass(frozen=True)
class Argon2Params:
    """Argon2id parameters shared with the node."""
    length: int = 32
    iterations: int = 2
    memory_cost: int = 19456   # KiB
    lanes: int = 1


ARGON2_PARAMS = Argon2Params()


@dataclass(frozen=True)
class CredentialHash:
    """Argon2id digest of a node password."""
    digest: bytes

    def __post_init__(self):
        if len(self.digest) != ARGON2_PARAMS.length:
            raise ValueError(f"credential hash must be {ARGON2_PARAMS.length} bytes, got {len(self.digest)}")

    @property
    def hex(self) -> str:
        return "0x" + self.digest.hex()

    @classmethod
    def from_hex(cls, value: str) -> CredentialHash:
        return cls(to_bytes(hexstr=value))

    def __str__(self) -> str:
        return self.hex


# =============================================================================
# Derivation
# =============================================================================

def derive_salt(node_name: str) -> bytes:
    """
    Salt for a node name.

    Raises:
        CredentialDerivationFailedError: If the name is empty
    """
    if not node_name:
        raise CredentialDerivationFailedError("node name is empty; cannot derive salt")
    if len(node_name) >= MIN_SALT_LENGTH:
        return node_name.encode()
    return (node_name * (1 + MIN_SALT_LENGTH // len(node_name))).encode()


def derive_credential_hash(
    password: str,
    node_name: str,
    params: Optional[Argon2Params] = None,
) -> CredentialHash:
    """
    Hash a node password with Argon2id.

    Args:
        password: Password as typed
        node_name: Full node name (e.g. "alice.os")
        params: Override parameters (tests only; the node expects the defaults)

    Returns:
        CredentialHash

    Raises:
        CredentialDerivationFailedError: If Argon2id cannot run
    """
    params = params or ARGON2_PARAMS
    salt = derive_salt(node_name)
    try:
        kdf = Argon2id(
            salt=salt,
            length=params.length,
            iterations=params.iterations,
            lanes=params.lanes,
            memory_cost=params.memory_cost,
        )
        digest = kdf.derive(password.encode())
    except UnsupportedAlgorithm as e:
        raise CredentialDerivationFailedError(f"Argon2id unavailable in this OpenSSL build: {e}") from e
    except MemoryError as e:
        raise CredentialDerivationFailedError(
            f"Argon2id could not allocate {params.memory_cost} KiB"
        ) from e

    logger.debug(f"derived credential hash for {node_name}")
    return CredentialHash(digest)


async def derive_credential_hash_async(
    password: str,
    node_name: str,
    params: Optional[Argon2Params] = None,
) -> CredentialHash:
    """`derive_credential_hash` in the default executor."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(
        None, partial(derive_credential_hash, password, node_name, params)
    )
