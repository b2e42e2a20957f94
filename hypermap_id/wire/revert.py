# hypermap_id/wire/revert.py
"""
Hypermap ID Wire: Revert Decoding

Turns raw revert data into a structured reason so failures can be shown
verbatim and classified (immature commitment vs. any other revert).

Formats:
    - Error(string)   0x08c379a0 || abi.encode(string)
    - Panic(uint256)  0x4e487b71 || abi.encode(uint256)
    - custom errors   selector from a signature table, args ABI-decoded
    - anything else   kept as raw hex

Usage:
    decoder = RevertDecoder(["CommitmentTooNew(bytes32)"])
    reason = decoder.decode(revert_data)
    print(reason)          # "CommitmentTooNew(0x12ab...)"

Updated: 2025-01-20
Version: 0.1.0
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

from eth_abi import decode
from eth_abi.exceptions import DecodingError
from eth_utils import function_signature_to_4byte_selector, to_bytes


# =============================================================================
# Constants
# =============================================================================

ERROR_SELECTOR = bytes.fromhex("08c379a0")
PANIC_SELECTOR = bytes.fromhex("4e487b71")

PANIC_CODES: Dict[int, str] = {
    0x00: "generic compiler panic",
    0x01: "assertion failed",
    0x11: "arithmetic overflow or underflow",
    0x12: "division or modulo by zero",
    0x21: "invalid enum value",
    0x22: "invalid storage byte array",
    0x31: "pop on empty array",
    0x32: "array index out of bounds",
    0x41: "out of memory",
    0x51: "call to zero-initialized function",
}

# Custom errors decoded out of the box
DEFAULT_ERRORS = (
    "CommitmentTooNew(bytes32)",
    "CommitmentTooOld(bytes32)",
    "CommitmentNotFound(bytes32)",
    "NameTaken(bytes)",
    "NotAuthorized()",
)

# Text that marks an immature commitment in a revert string or error name
_IMMATURE_RE = re.compile(r"commit\w*\W*(?:too\W*new|not\W*mature|immature|too\W*young|age)", re.I)


class RevertKind(Enum):
    """Shape of the revert payload."""
    EMPTY = "empty"
    ERROR = "error"       # Error(string)
    PANIC = "panic"       # Panic(uint256)
    CUSTOM = "custom"     # known custom error
    UNKNOWN = "unknown"   # unrecognized selector or malformed payload


@dataclass(frozen=True)
class RevertReason:
    """
    Decoded revert.

    Attributes:
        kind: Payload shape
        name: "Error", "Panic" or the custom error name
        args: Decoded arguments
        message: Human-readable reason
        data: Raw revert data
    """
    kind: RevertKind
    name: str = ""
    args: Tuple[Any, ...] = ()
    message: str = ""
    data: bytes = b""

    @property
    def selector(self) -> bytes:
        return self.data[:4]

    @property
    def is_commitment_immature(self) -> bool:
        """True if the revert says the commitment is not yet usable."""
        return bool(_IMMATURE_RE.search(self.name) or _IMMATURE_RE.search(self.message))

    def __str__(self) -> str:
        return self.message or self.name or "0x" + self.data.hex()


# =============================================================================
# Decoder
# =============================================================================

@dataclass
class _CustomError:
    name: str
    types: Tuple[str, ...]


class RevertDecoder:
    """Decodes revert data using a table of known custom error signatures."""

    def __init__(self, signatures: Iterable[str] = DEFAULT_ERRORS):
        self._errors: Dict[bytes, _CustomError] = {}
        for sig in signatures:
            self.register(sig)

    def register(self, signature: str) -> bytes:
        """
        Add a custom error, e.g. "CommitmentTooNew(bytes32)".

        Returns:
            Its 4-byte selector
        """
        name, _, rest = signature.partition("(")
        if not name or not rest.endswith(")"):
            raise ValueError(f"Not an error signature: {signature!r}")
        inner = rest[:-1]
        types = tuple(t for t in inner.split(",") if t) if inner else ()
        sel = function_signature_to_4byte_selector(signature)
        self._errors[sel] = _CustomError(name=name, types=types)
        return sel

    def decode(self, data: bytes | str | None) -> RevertReason:
        """
        Decode raw revert data.

        Args:
            data: Revert bytes or 0x-hex (None/empty allowed)
        """
        if isinstance(data, str):
            data = to_bytes(hexstr=data)
        data = bytes(data or b"")

        if not data:
            return RevertReason(kind=RevertKind.EMPTY, message="execution reverted")

        sel, body = data[:4], data[4:]

        try:
            if sel == ERROR_SELECTOR:
                # Contracts may revert with non-UTF-8 bytes
                (raw,) = decode(["bytes"], body)
                message = raw.decode("utf-8", errors="replace")
                return RevertReason(RevertKind.ERROR, "Error", (message,), message, data)

            if sel == PANIC_SELECTOR:
                (code,) = decode(["uint256"], body)
                text = PANIC_CODES.get(code, "unknown panic")
                return RevertReason(
                    RevertKind.PANIC, "Panic", (code,), f"Panic(0x{code:02x}): {text}", data
                )

            if sel in self._errors:
                err = self._errors[sel]
                args = tuple(decode(list(err.types), body)) if err.types else ()
                return RevertReason(
                    RevertKind.CUSTOM, err.name, args, _format_call(err.name, args), data
                )
        except DecodingError:
            pass  # fall through to raw

        return RevertReason(kind=RevertKind.UNKNOWN, message="0x" + data.hex(), data=data)


def _format_call(name: str, args: Tuple[Any, ...]) -> str:
    rendered = []
    for a in args:
        rendered.append("0x" + a.hex() if isinstance(a, bytes) else str(a))
    return f"{name}({', '.join(rendered)})"


_default_decoder = RevertDecoder()


def decode_revert(data: bytes | str | None) -> RevertReason:
    """Decode revert data with the default error table."""
    return _default_decoder.decode(data)


def extract_revert_data(error: BaseException) -> Optional[bytes]:
    """
    Pull raw revert bytes out of a web3/RPC exception, if present.

    web3 raises ContractLogicError with `.data` as hex; JSON-RPC errors
    carry it in error["data"].
    """
    data = getattr(error, "data", None)
    if isinstance(data, dict):
        data = data.get("data")
    if isinstance(data, bytes):
        return data
    if isinstance(data, str) and data.startswith("0x"):
        try:
            return to_bytes(hexstr=data)
        except ValueError:
            return None
    return None
