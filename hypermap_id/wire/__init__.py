# hypermap_id/wire/__init__.py
"""
Hypermap ID Wire

Calldata encoding and revert decoding for the registration contracts.

Components:
    NetworkingConfig   - Networking snapshot noted on mint
    build_init_call    - execute(MULTICALL, 0, aggregate(notes), 1)
    compute_commitment - keccak256(abi.encode(bytes label, address claimant))
    RevertDecoder      - Error(string) / Panic(uint256) / custom errors

Updated: 2025-01-20
Version: 0.1.0
"""

from .calls import (
    NOTE_NET_KEY,
    NOTE_IP,
    NOTE_WS_PORT,
    NOTE_TCP_PORT,
    NOTE_ROUTERS,
    NOTE_METADATA_URI,
    NOTE_METADATA_HASH,
    OP_CALL,
    OP_DELEGATECALL,
    NetworkingConfig,
    encode_ip,
    encode_port,
    encode_routers,
    metadata_notes,
    compute_commitment,
    encode_commit,
    encode_mint,
    encode_note,
    encode_aggregate,
    encode_execute,
    encode_hypermap_get,
    decode_hypermap_get,
    build_note_multicall,
    build_init_call,
    decode_call,
    selector,
)

from .revert import (
    ERROR_SELECTOR,
    PANIC_SELECTOR,
    DEFAULT_ERRORS,
    RevertKind,
    RevertReason,
    RevertDecoder,
    decode_revert,
    extract_revert_data,
)
