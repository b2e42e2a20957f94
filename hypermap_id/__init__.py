# hypermap_id/__init__.py
"""
Hypermap ID: Name Identity Core

Derives and claims Hypermap names: namehashes, counterfactual token-bound
account addresses, commit-reveal registration of `.os` names and the
password credential a node boots with.

Submodules:
    names/      - Namehash, label validation and UTS-46 normalization
    tba/        - CREATE2 prediction of proxy and TBA addresses
    contracts/  - Bundled ABIs and the fingerprinted proxy bytecode
    wire/       - Calldata (commit, mint, notes, multicall) and revert decoding
    adapters/   - Wallet adapters (local key over web3.py, mock chain)
    registrar/  - Commit-reveal registration sessions
    auth/       - Argon2id credentials, Boot typed data, node auth client

Quick Start:
    # 1. Derivations (pure, offline)
    from hypermap_id import namehash, TbaPredictor, compute_commitment

    node = namehash("alice.os")
    prediction = TbaPredictor().predict("alice.os")
    commitment = compute_commitment("alice", "0x...")

    # 2. Registration
    from hypermap_id import CommitRevealRegistrar, LocalAccountAdapter, NetworkingConfig

    adapter = LocalAccountAdapter("https://mainnet.base.org", private_key, chain_id=8453)
    registrar = CommitRevealRegistrar(adapter)
    session = await registrar.register("alice", NetworkingConfig(networking_key=key))

    # 3. Boot the node
    from hypermap_id import derive_credential_hash, sign_boot, NodeAuthClient

    cred = derive_credential_hash("hunter22", "alice.os")
    request = await sign_boot(adapter, "alice.os", cred)
    keyfile = await NodeAuthClient("http://localhost:8080").boot(request)

Updated: 2025-01-20
Version: 0.1.0
"""

__version__ = "0.1.0"

# =============================================================================
# Chains and Errors
# =============================================================================
from .chains import (
    CHAINS,
    ChainConfig,
    get_chain,
    DEFAULT_CHAIN_ID,
    HYPERMAP_ADDRESS,
    DOTOS_ADDRESS,
    MULTICALL_ADDRESS,
    HYPER_ACCOUNT_IMPL_ADDRESS,
    ERC6551_REGISTRY_ADDRESS,
)
from .errors import (
    HypermapIdError,
    InvalidLabelError,
    BytecodeFingerprintError,
    AddressMismatchError,
    RegistrationError,
    InvalidStateError,
    SigningRejectedError,
    NetworkUnreachableError,
    TransactionRevertedError,
    CommitRevertedError,
    MintRevertedError,
    CommitmentNotMatureError,
    CredentialDerivationFailedError,
    ServerRejectedError,
)

# =============================================================================
# Derivations
# =============================================================================
from .names import (
    namehash,
    namehash_hex,
    labelhash,
    split_name,
    validate_label,
    normalize_label,
)
from .tba import (
    AccountScheme,
    TbaPrediction,
    TbaPredictor,
    predict_account_address,
    compute_proxy_address,
)

# =============================================================================
# Wire
# =============================================================================
from .wire import (
    NetworkingConfig,
    build_init_call,
    compute_commitment,
    RevertDecoder,
    RevertReason,
)

# =============================================================================
# Registration
# =============================================================================
from .adapters import (
    WalletAdapter,
    LocalAccountAdapter,
    MockChain,
    MockWalletAdapter,
    EIP712Domain,
    TxRequest,
    TxReceipt,
)
from .registrar import (
    CommitRevealRegistrar,
    RegistrationSession,
    RegistrationState,
)

# =============================================================================
# Auth
# =============================================================================
from .auth import (
    CredentialHash,
    derive_credential_hash,
    derive_credential_hash_async,
    BootMessage,
    build_boot_message,
    boot_domain,
    sign_boot,
    Keyfile,
    NodeAuthClient,
    RpcProviderConfig,
)

__all__ = [
    "__version__",
    # Chains
    "CHAINS",
    "ChainConfig",
    "get_chain",
    "DEFAULT_CHAIN_ID",
    "HYPERMAP_ADDRESS",
    "DOTOS_ADDRESS",
    "MULTICALL_ADDRESS",
    "HYPER_ACCOUNT_IMPL_ADDRESS",
    "ERC6551_REGISTRY_ADDRESS",
    # Errors
    "HypermapIdError",
    "InvalidLabelError",
    "BytecodeFingerprintError",
    "AddressMismatchError",
    "RegistrationError",
    "InvalidStateError",
    "SigningRejectedError",
    "NetworkUnreachableError",
    "TransactionRevertedError",
    "CommitRevertedError",
    "MintRevertedError",
    "CommitmentNotMatureError",
    "CredentialDerivationFailedError",
    "ServerRejectedError",
    # Derivations
    "namehash",
    "namehash_hex",
    "labelhash",
    "split_name",
    "validate_label",
    "normalize_label",
    "AccountScheme",
    "TbaPrediction",
    "TbaPredictor",
    "predict_account_address",
    "compute_proxy_address",
    # Wire
    "NetworkingConfig",
    "build_init_call",
    "compute_commitment",
    "RevertDecoder",
    "RevertReason",
    # Registration
    "WalletAdapter",
    "LocalAccountAdapter",
    "MockChain",
    "MockWalletAdapter",
    "EIP712Domain",
    "TxRequest",
    "TxReceipt",
    "CommitRevealRegistrar",
    "RegistrationSession",
    "RegistrationState",
    # Auth
    "CredentialHash",
    "derive_credential_hash",
    "derive_credential_hash_async",
    "BootMessage",
    "build_boot_message",
    "boot_domain",
    "sign_boot",
    "Keyfile",
    "NodeAuthClient",
    "RpcProviderConfig",
]
