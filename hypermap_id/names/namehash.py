# hypermap_id/names/namehash.py
"""
Hypermap ID Names: Namehash

Maps dot-separated names onto 32-byte node identifiers, the canonical
on-chain key of every Hypermap entry (names and notes alike).

Composition (ENS-style, leftmost label resolved last):

    node("")         = 0x00 * 32
    node("a.parent") = keccak256(node("parent") || keccak256("a"))

Input must already be normalized ASCII. Normalization is canonicalization
and happens before hashing (see `normalize_label`); non-ASCII input is
rejected rather than silently hashed.

Usage:
    from hypermap_id.names import namehash, normalize_label

    node = namehash("alice", zone="os")
    assert node == namehash("alice.os")

    label = normalize_label("Alice")   # "alice"

Updated: 2025-01-20
Version: 0.1.0
"""

from __future__ import annotations

import re
from typing import Tuple

import idna
from web3 import Web3

from ..errors import InvalidLabelError


# =============================================================================
# Constants
# =============================================================================

ROOT_NODE = b"\x00" * 32

# One or more dot-separated components: [a-z0-9], hyphens only inside
_NAME_RE = re.compile(
    r"^[a-z0-9](?:[a-z0-9-]*[a-z0-9])?(?:\.[a-z0-9](?:[a-z0-9-]*[a-z0-9])?)*$"
)


# =============================================================================
# Hashing
# =============================================================================

def labelhash(component: str) -> bytes:
    """keccak256 of a single name component."""
    _require_ascii(component)
    return bytes(Web3.keccak(component.encode("ascii")))


def namehash(label: str, zone: str = "") -> bytes:
    """
    Compute the namehash of `label` under `zone`.

    Args:
        label: Normalized ASCII name or leftmost part of one
        zone: Parent name ("" = root)

    Returns:
        32-byte node identifier

    Raises:
        InvalidLabelError: On non-ASCII input or empty components
    """
    name = join_name(label, zone)
    _require_ascii(name)

    node = ROOT_NODE
    if not name:
        return node

    components = name.split(".")
    if any(c == "" for c in components):
        raise InvalidLabelError(name, "empty component")

    for component in reversed(components):
        node = bytes(Web3.keccak(node + Web3.keccak(component.encode("ascii"))))
    return node


def namehash_hex(label: str, zone: str = "") -> str:
    """Namehash as 0x-prefixed hex."""
    return "0x" + namehash(label, zone).hex()


# =============================================================================
# Names
# =============================================================================

def join_name(label: str, zone: str = "") -> str:
    """Join a label and its zone ("alice", "os" -> "alice.os")."""
    zone = zone.lstrip(".")
    if not zone:
        return label
    if not label:
        return zone
    return f"{label}.{zone}"


def split_name(name: str) -> Tuple[str, str]:
    """
    Split a full name into (leftmost label, parent zone).

    "alice.os" -> ("alice", "os"); "os" -> ("os", "").
    """
    label, _, zone = name.partition(".")
    return label, zone


def validate_label(label: str) -> str:
    """
    Check a name against the registration charset.

    Lowercase letters, digits and inner hyphens; dot-separated.

    Raises:
        InvalidLabelError: If the label does not match
    """
    _require_ascii(label)
    if not label:
        raise InvalidLabelError(label, "empty")
    if not _NAME_RE.match(label):
        raise InvalidLabelError(
            label, "must be lowercase a-z, 0-9 and inner hyphens, dot-separated"
        )
    return label


def normalize_label(text: str) -> str:
    """
    UTS-46 normalize a user-entered name to its ASCII form.

    Unicode labels become Punycode (xn--...). Case is folded.

    Raises:
        InvalidLabelError: If the text cannot be normalized
    """
    if not text:
        raise InvalidLabelError(text, "empty")
    try:
        encoded = idna.encode(text, uts46=True, std3_rules=True, transitional=False)
    except (idna.IDNAError, UnicodeError) as e:
        raise InvalidLabelError(text, f"normalization failed: {e}") from e
    return encoded.decode("ascii")


def _require_ascii(text: str) -> None:
    if not text.isascii():
        raise InvalidLabelError(text, "not normalized (non-ASCII characters)")
