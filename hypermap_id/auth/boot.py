# hypermap_id/auth/boot.py
"""
Hypermap ID Auth: Boot Message and Node Requests

EIP-712 "Boot" message the owner signs so a node accepts a password (and
networking mode) for a name, plus the JSON bodies of the node's auth
endpoints.

Typed Data:
    domain  = {name: "Hypermap", version: "1", chainId, verifyingContract: HYPERMAP}
    Boot    = (string username, bytes32 password_hash, uint256 timestamp,
               bool direct, bool reset, uint256 chain_id)

`timestamp` is milliseconds since the epoch.

Usage:
    cred = derive_credential_hash("hunter22", "alice.os")
    request = await sign_boot(adapter, "alice.os", cred, direct=True)
    keyfile = await client.boot(request)
    keyfile.save("~/.hypermap")

Updated: 2025-01-20
Version: 0.1.0
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Dict, Any, List, Sequence, Union

from eth_account import Account
from eth_account.messages import encode_typed_data
from eth_utils import to_checksum_address
from web3 import Web3

from .credentials import CredentialHash
from ..adapters.base import WalletAdapter, EIP712Domain
from ..chains import ChainConfig, get_chain, DEFAULT_CHAIN_ID


# =============================================================================
# Constants
# =============================================================================

BOOT_DOMAIN_NAME = "Hypermap"
BOOT_DOMAIN_VERSION = "1"

BOOT_TYPES: Dict[str, List[Dict[str, str]]] = {
    "Boot": [
        {"name": "username", "type": "string"},
        {"name": "password_hash", "type": "bytes32"},
        {"name": "timestamp", "type": "uint256"},
        {"name": "direct", "type": "bool"},
        {"name": "reset", "type": "bool"},
        {"name": "chain_id", "type": "uint256"},
    ],
}

KEYFILE_SUFFIX = ".keyfile"

AUTH_SCHEMES = ("Bearer", "Basic", "Raw")


def boot_domain(chain: Optional[ChainConfig] = None) -> EIP712Domain:
    """EIP-712 domain for Boot messages on `chain`."""
    chain = chain or get_chain(DEFAULT_CHAIN_ID)
    return EIP712Domain(
        name=BOOT_DOMAIN_NAME,
        version=BOOT_DOMAIN_VERSION,
        chain_id=chain.chain_id,
        verifying_contract=chain.hypermap,
    )


def _hash_hex(password_hash: Union[CredentialHash, str]) -> str:
    if isinstance(password_hash, CredentialHash):
        return password_hash.hex
    return password_hash if password_hash.startswith("0x") else "0x" + password_hash


# =============================================================================
# Boot Message
# =============================================================================

@dataclass(frozen=True)
class BootMessage:
    """
    Boot typed-data message.

    Attributes:
        username: Full node name (e.g. "alice.os")
        password_hash: 0x-hex Argon2id credential hash
        timestamp: Milliseconds since the epoch
        direct: Node publishes ip/ports itself
        reset: Overwrite existing networking notes
        chain_id: Chain the name lives on
    """
    username: str
    password_hash: str
    timestamp: int
    direct: bool
    reset: bool
    chain_id: int

    def to_message(self) -> Dict[str, Any]:
        return {
            "username": self.username,
            "password_hash": self.password_hash,
            "timestamp": self.timestamp,
            "direct": self.direct,
            "reset": self.reset,
            "chain_id": self.chain_id,
        }

    def typed_data(self, domain: EIP712Domain) -> Dict[str, Any]:
        """Full eth_signTypedData_v4 payload."""
        return domain.typed_data(BOOT_TYPES, self.to_message(), primary_type="Boot")

    def signing_hash(self, domain: EIP712Domain) -> bytes:
        """EIP-712 digest: keccak256(0x1901 || domainSeparator || hashStruct(Boot))."""
        signable = encode_typed_data(full_message=self.typed_data(domain))
        return bytes(Web3.keccak(b"\x19" + signable.version + signable.header + signable.body))

    def recover_signer(self, signature: Union[bytes, str], domain: EIP712Domain) -> str:
        """Address that produced `signature` over this message."""
        signable = encode_typed_data(full_message=self.typed_data(domain))
        return Account.recover_message(signable, signature=signature)


def build_boot_message(
    node_name: str,
    credential_hash: Union[CredentialHash, str],
    timestamp: Optional[int] = None,
    direct: bool = False,
    reset: bool = False,
    chain_id: int = DEFAULT_CHAIN_ID,
) -> BootMessage:
    """
    Build a Boot message.

    Args:
        node_name: Full node name
        credential_hash: Argon2id hash (CredentialHash or 0x-hex)
        timestamp: Milliseconds since the epoch (default: now)
        direct: Direct networking
        reset: Reset existing networking notes
        chain_id: Chain ID
    """
    return BootMessage(
        username=node_name,
        password_hash=_hash_hex(credential_hash),
        timestamp=timestamp if timestamp is not None else int(time.time() * 1000),
        direct=direct,
        reset=reset,
        chain_id=chain_id,
    )


# =============================================================================
# Node Requests
# =============================================================================

@dataclass(frozen=True)
class RpcProviderConfig:
    """
    Base L2 access provider handed to the node.

    Serialized as a JSON string: {"url": ..., "auth": {"Bearer": "..."} | null}
    """
    url: str
    auth_type: Optional[str] = None
    auth_value: Optional[str] = None

    def __post_init__(self):
        if self.auth_type is not None and self.auth_type not in AUTH_SCHEMES:
            raise ValueError(f"auth_type must be one of {AUTH_SCHEMES}, got {self.auth_type!r}")
        if (self.auth_type is None) != (self.auth_value is None):
            raise ValueError("auth_type and auth_value go together")

    def to_json(self) -> str:
        auth = {self.auth_type: self.auth_value} if self.auth_type else None
        return json.dumps({"url": self.url, "auth": auth})

    @classmethod
    def from_json(cls, value: str) -> RpcProviderConfig:
        """Parse the node's format; a non-JSON string is taken as a bare URL."""
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError:
            return cls(url=value)
        if not isinstance(parsed, dict):
            return cls(url=value)
        auth = parsed.get("auth") or {}
        for scheme in AUTH_SCHEMES:
            if auth.get(scheme):
                return cls(url=parsed["url"], auth_type=scheme, auth_value=auth[scheme])
        return cls(url=parsed["url"])


def _or_none(items: Optional[Sequence[Any]]) -> Optional[List[Any]]:
    return list(items) if items else None


def _providers(providers: Optional[Sequence[RpcProviderConfig]]) -> Optional[List[str]]:
    return [p.to_json() for p in providers] if providers else None


@dataclass
class BootRequest:
    """Body of POST /boot."""
    message: BootMessage
    owner: str
    signature: str
    custom_routers: List[str] = field(default_factory=list)
    custom_cache_sources: List[str] = field(default_factory=list)
    custom_base_l2_access_providers: List[RpcProviderConfig] = field(default_factory=list)

    def to_json(self) -> Dict[str, Any]:
        return {
            "password_hash": self.message.password_hash,
            "reset": self.message.reset,
            "username": self.message.username,
            "direct": self.message.direct,
            "owner": self.owner,
            "timestamp": self.message.timestamp,
            "signature": self.signature,
            "chain_id": self.message.chain_id,
            "custom_routers": _or_none(self.custom_routers),
            "custom_cache_sources": _or_none(self.custom_cache_sources),
            "custom_base_l2_access_providers": _providers(self.custom_base_l2_access_providers),
        }


@dataclass
class LoginRequest:
    """Body of POST /login."""
    password_hash: str
    custom_cache_sources: List[str] = field(default_factory=list)
    custom_base_l2_access_providers: List[RpcProviderConfig] = field(default_factory=list)

    def to_json(self) -> Dict[str, Any]:
        return {
            "password_hash": self.password_hash,
            "custom_cache_sources": _or_none(self.custom_cache_sources),
            "custom_base_l2_access_providers": _providers(self.custom_base_l2_access_providers),
        }


@dataclass
class ImportKeyfileRequest:
    """Body of POST /import-keyfile."""
    keyfile: str
    password_hash: str

    def to_json(self) -> Dict[str, Any]:
        return {"keyfile": self.keyfile, "password_hash": self.password_hash}


async def sign_boot(
    adapter: WalletAdapter,
    node_name: str,
    credential_hash: Union[CredentialHash, str],
    direct: bool = False,
    reset: bool = False,
    chain: Optional[ChainConfig] = None,
    timestamp: Optional[int] = None,
    routers: Optional[Sequence[str]] = None,
    cache_sources: Optional[Sequence[str]] = None,
    base_l2_providers: Optional[Sequence[RpcProviderConfig]] = None,
) -> BootRequest:
    """
    Have the owner's wallet sign a Boot message.

    Returns:
        BootRequest ready for NodeAuthClient.boot()

    Raises:
        SigningRejectedError: If the wallet declines
    """
    chain = chain or get_chain(DEFAULT_CHAIN_ID)
    message = build_boot_message(
        node_name,
        credential_hash,
        timestamp=timestamp,
        direct=direct,
        reset=reset,
        chain_id=chain.chain_id,
    )
    result = await adapter.sign_typed_data(boot_domain(chain), BOOT_TYPES, message.to_message())
    return BootRequest(
        message=message,
        owner=to_checksum_address(adapter.address),
        signature=result.hex,
        custom_routers=list(routers or []),
        custom_cache_sources=list(cache_sources or []),
        custom_base_l2_access_providers=list(base_l2_providers or []),
    )


# =============================================================================
# Keyfile
# =============================================================================

@dataclass(frozen=True)
class Keyfile:
    """
    Node keyfile as returned by /boot: an opaque base64 string.

    Saved verbatim as `<name>.keyfile`, the form /import-keyfile accepts.
    """
    name: str
    data: str

    @property
    def filename(self) -> str:
        return f"{self.name}{KEYFILE_SUFFIX}"

    def save(self, directory: Union[str, Path] = ".") -> Path:
        """Write to `<directory>/<name>.keyfile`."""
        path = Path(directory).expanduser() / self.filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.data)
        return path

    @classmethod
    def load(cls, path: Union[str, Path]) -> Keyfile:
        """Read a keyfile; the name comes from the filename."""
        path = Path(path).expanduser()
        name = path.name[: -len(KEYFILE_SUFFIX)] if path.name.endswith(KEYFILE_SUFFIX) else path.stem
        return cls(name=name, data=path.read_text().strip())
