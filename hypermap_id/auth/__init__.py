# hypermap_id/auth/__init__.py
"""
Hypermap ID Auth

Node credentials: Argon2id password hashing, the signed Boot message and
the node's auth endpoints.

Components:
    derive_credential_hash - Argon2id(password, salt(name))
    BootMessage            - EIP-712 Boot typed data
    sign_boot              - Wallet-signed BootRequest
    NodeAuthClient         - /info, /boot, /login, /import-keyfile
    Keyfile                - Opaque base64 keyfile, saved as <name>.keyfile

Updated: 2025-01-20
Version: 0.1.0
"""

from .credentials import (
    Argon2Params,
    ARGON2_PARAMS,
    CredentialHash,
    derive_salt,
    derive_credential_hash,
    derive_credential_hash_async,
)
from .boot import (
    BOOT_TYPES,
    boot_domain,
    BootMessage,
    build_boot_message,
    RpcProviderConfig,
    BootRequest,
    LoginRequest,
    ImportKeyfileRequest,
    sign_boot,
    Keyfile,
)
from .client import (
    HTTPResponse,
    HTTPTransport,
    HttpxTransport,
    MockHTTPTransport,
    NodeInfo,
    NodeAuthClient,
)

__all__ = [
    "Argon2Params",
    "ARGON2_PARAMS",
    "CredentialHash",
    "derive_salt",
    "derive_credential_hash",
    "derive_credential_hash_async",
    "BOOT_TYPES",
    "boot_domain",
    "BootMessage",
    "build_boot_message",
    "RpcProviderConfig",
    "BootRequest",
    "LoginRequest",
    "ImportKeyfileRequest",
    "sign_boot",
    "Keyfile",
    "HTTPResponse",
    "HTTPTransport",
    "HttpxTransport",
    "MockHTTPTransport",
    "NodeInfo",
    "NodeAuthClient",
]
