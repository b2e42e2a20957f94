# hypermap_id/wire/calls.py
"""
Hypermap ID Wire: Call Encoding

Calldata for every transaction the registration flow sends, built from
the bundled ABIs (contracts/abi/*.json).

Mint init call (executed by the fresh TBA right after deployment):

    execute(MULTICALL, 0, aggregate([
        (HYPERMAP, note("~net-key",  <32B key>)),
        (HYPERMAP, note("~ip",       <4B|16B>)),      # direct only
        (HYPERMAP, note("~ws-port",  <2B BE>)),       # direct only
        (HYPERMAP, note("~tcp-port", <2B BE>)),       # direct only
        (HYPERMAP, note("~routers",  <32B * n>)),     # indirect only
        ...extra notes
    ]), 1 /* delegatecall */)

Usage:
    from hypermap_id.wire import NetworkingConfig, build_init_call, encode_mint

    net = NetworkingConfig(networking_key=key, direct=True, ip="1.2.3.4", ws_port=9000)
    init = build_init_call(net, chain)
    data = encode_mint(owner, b"alice", init, chain.hyper_account_impl)

Updated: 2025-01-20
Version: 0.1.0
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Dict, List, Optional, Sequence, Tuple

from eth_abi import encode, decode
from eth_utils import function_abi_to_4byte_selector, to_bytes, to_checksum_address
from web3 import Web3

from ..chains import ChainConfig
from ..contracts import load_abi
from ..names import namehash


# =============================================================================
# Constants
# =============================================================================

NOTE_NET_KEY = "~net-key"
NOTE_IP = "~ip"
NOTE_WS_PORT = "~ws-port"
NOTE_TCP_PORT = "~tcp-port"
NOTE_ROUTERS = "~routers"
NOTE_METADATA_URI = "~metadata-uri"
NOTE_METADATA_HASH = "~metadata-hash"

# Account execute() operation codes
OP_CALL = 0
OP_DELEGATECALL = 1

NETWORKING_KEY_SIZE = 32


# =============================================================================
# Contracts
# =============================================================================

@lru_cache(maxsize=None)
def _contract(abi_name: str):
    """Address-less contract factory for encoding/decoding."""
    return Web3().eth.contract(abi=load_abi(abi_name))


def _encode(abi_name: str, fn_name: str, args: Sequence[Any]) -> bytes:
    return to_bytes(hexstr=_contract(abi_name).encode_abi(fn_name, args=list(args)))


def decode_call(abi_name: str, data: bytes) -> Tuple[str, Dict[str, Any]]:
    """
    Decode calldata against one of the bundled ABIs.

    Returns:
        (function name, arguments by name)
    """
    fn, params = _contract(abi_name).decode_function_input(data)
    return fn.fn_name, dict(params)


def selector(abi_name: str, fn_name: str) -> bytes:
    """4-byte selector of a bundled ABI function."""
    return function_abi_to_4byte_selector(_contract(abi_name).get_function_by_name(fn_name).abi)


# =============================================================================
# Types
# =============================================================================

@dataclass(frozen=True)
class NetworkingConfig:
    """
    Networking snapshot embedded in the mint init call.

    Attributes:
        networking_key: 32-byte node public key
        direct: True if the node is reachable itself, False if via routers
        ip: IPv4/IPv6 address (direct nodes)
        ws_port: WebSocket port (direct nodes, 0 = unset)
        tcp_port: TCP port (direct nodes, 0 = unset)
        routers: Router node names (indirect nodes)
        extra_notes: Additional note key -> value, in order
    """
    networking_key: bytes
    direct: bool = False
    ip: Optional[str] = None
    ws_port: int = 0
    tcp_port: int = 0
    routers: Tuple[str, ...] = ()
    extra_notes: Dict[str, bytes] = field(default_factory=dict)

    def __post_init__(self):
        if len(self.networking_key) != NETWORKING_KEY_SIZE:
            raise ValueError(
                f"networking_key must be {NETWORKING_KEY_SIZE} bytes, got {len(self.networking_key)}"
            )
        for port in (self.ws_port, self.tcp_port):
            if not 0 <= port <= 0xFFFF:
                raise ValueError(f"port out of range: {port}")
        if self.direct and not self.ip:
            raise ValueError("direct nodes need an ip")
        object.__setattr__(self, "routers", tuple(self.routers))

    @classmethod
    def from_networking_info(
        cls,
        info: Dict[str, Any],
        direct: bool,
        routers: Optional[Sequence[str]] = None,
    ) -> NetworkingConfig:
        """
        Build from a node's /generate-networking-info response.

        Args:
            info: {"networking_key": "0x..", "routing": {"Both": {...}}}
            direct: Publish ip/ports instead of routers
            routers: Custom routers, overriding the node's defaults
        """
        routing = info.get("routing", {})
        both = routing.get("Both") or routing.get("Direct") or {}
        ports = both.get("ports", {})
        indirect = routing.get("Indirect") or {}
        default_routers = both.get("routers") or indirect.get("routers") or []
        return cls(
            networking_key=to_bytes(hexstr=info["networking_key"]),
            direct=direct,
            ip=both.get("ip") if direct else None,
            ws_port=(ports.get("ws") or 0) if direct else 0,
            tcp_port=(ports.get("tcp") or 0) if direct else 0,
            routers=() if direct else tuple(routers or default_routers),
        )

    def notes(self) -> List[Tuple[str, bytes]]:
        """Note (key, value) pairs written on mint, in call order."""
        notes: List[Tuple[str, bytes]] = [(NOTE_NET_KEY, self.networking_key)]
        if self.direct:
            notes.append((NOTE_IP, encode_ip(self.ip)))
            if self.ws_port:
                notes.append((NOTE_WS_PORT, encode_port(self.ws_port)))
            if self.tcp_port:
                notes.append((NOTE_TCP_PORT, encode_port(self.tcp_port)))
        elif self.routers:
            notes.append((NOTE_ROUTERS, encode_routers(self.routers)))
        notes.extend(self.extra_notes.items())
        return notes


# =============================================================================
# Note Values
# =============================================================================

def encode_ip(ip: str) -> bytes:
    """IPv4 -> 4 bytes, IPv6 -> 16 bytes, big-endian."""
    return ipaddress.ip_address(ip).packed


def encode_port(port: int) -> bytes:
    """Port as 2 bytes big-endian."""
    return port.to_bytes(2, "big")


def encode_routers(routers: Sequence[str]) -> bytes:
    """Concatenated namehashes of router names."""
    return b"".join(namehash(r) for r in routers)


def metadata_notes(uri: str, metadata_hash: str) -> Dict[str, bytes]:
    """~metadata-uri / ~metadata-hash notes for published packages."""
    return {
        NOTE_METADATA_HASH: metadata_hash.encode(),
        NOTE_METADATA_URI: uri.encode(),
    }


# =============================================================================
# Calldata
# =============================================================================

def compute_commitment(label: str | bytes, claimant: str) -> bytes:
    """
    Commitment binding a label to its claimant.

    keccak256(abi.encode(bytes label, address claimant)); the label is the
    bare name without its zone ("alice", not "alice.os").
    """
    label_bytes = label.encode() if isinstance(label, str) else label
    return bytes(Web3.keccak(encode(["bytes", "address"], [label_bytes, to_checksum_address(claimant)])))


def encode_commit(commitment: bytes) -> bytes:
    """DotOs commit(bytes32)."""
    return _encode("DotOs", "commit", [commitment])


def encode_mint(who: str, label: str | bytes, initialization: bytes, implementation: str) -> bytes:
    """mint(address who, bytes label, bytes initialization, address implementation)."""
    label_bytes = label.encode() if isinstance(label, str) else label
    return _encode(
        "DotOs",
        "mint",
        [to_checksum_address(who), label_bytes, initialization, to_checksum_address(implementation)],
    )


def encode_note(key: str, value: bytes) -> bytes:
    """Hypermap note(bytes key, bytes value)."""
    return _encode("Hypermap", "note", [key.encode(), value])


def encode_aggregate(calls: Sequence[Tuple[str, bytes]]) -> bytes:
    """Multicall3 aggregate((address target, bytes callData)[])."""
    return _encode(
        "Multicall3",
        "aggregate",
        [[(to_checksum_address(target), data) for target, data in calls]],
    )


def encode_execute(to: str, value: int, data: bytes, operation: int = OP_CALL) -> bytes:
    """Account execute(address to, uint256 value, bytes data, uint8 operation)."""
    return _encode("HyperAccount", "execute", [to_checksum_address(to), value, data, operation])


def encode_hypermap_get(node_id: bytes) -> bytes:
    """Hypermap get(bytes32 node)."""
    return _encode("Hypermap", "get", [node_id])


def decode_hypermap_get(data: bytes) -> Tuple[str, str, bytes]:
    """Decode get() return data into (tba, owner, note)."""
    tba, owner, note = decode(["address", "address", "bytes"], data)
    return to_checksum_address(tba), to_checksum_address(owner), note


def build_note_multicall(notes: Sequence[Tuple[str, bytes]], chain: ChainConfig) -> bytes:
    """aggregate() over note() calls to Hypermap."""
    return encode_aggregate([(chain.hypermap, encode_note(k, v)) for k, v in notes])


def build_init_call(networking: NetworkingConfig, chain: ChainConfig) -> bytes:
    """
    Init call for mint: the TBA delegatecalls Multicall3, which notes the
    networking data on Hypermap.
    """
    multicall = build_note_multicall(networking.notes(), chain)
    return encode_execute(chain.multicall, 0, multicall, OP_DELEGATECALL)
