# hypermap_id/contracts/__init__.py
"""
Hypermap ID: Contract Artifacts

Compiled bytecode constants and ABI definitions for the contracts the
registration flow talks to.

The proxy creation code is the exact blob Hypermap deploys (via CREATE2)
for every name node. It is hashed into every predicted address, so it is
checked against a recorded SHA-256 fingerprint at import time.

ABI files (contracts/abi/*.json):
    - DotOs.json:       commit, mint
    - Hypermap.json:    note, get, Mint/Note events
    - Multicall3.json:  aggregate
    - HyperAccount.json: execute, token

Usage:
    from hypermap_id.contracts import PROXY_CREATION_CODE, load_abi

    abi = load_abi("DotOs")

Updated: 2025-01-20
Version: 0.1.0
"""

from __future__ import annotations

import hashlib
import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List

from ..errors import BytecodeFingerprintError


# =============================================================================
# Constants
# =============================================================================

ABI_DIR = Path(__file__).parent / "abi"

# HypermapProxy creation code (constructor takes `address hypermap`)
_PROXY_CREATION_CODE_HEX = (
    "60a0604052348015600e575f5ffd5b5060405161051d38038061051d83398101"
    "6040819052602b91603b565b6001600160a01b03166080526066565b5f602082"
    "84031215604a575f5ffd5b81516001600160a01b0381168114605f575f5ffd5b"
    "9392505050565b6080516104a061007d5f395f607a01526104a05ff3fe608060"
    "405260043610610021575f3560e01c8063d1f578941461003257610028565b36"
    "61002857005b610030610045565b005b610030610040366004610383565b6100"
    "57565b610055610050610132565b610169565b565b7f7d0893b5fe6077fb4cf0"
    "83ec3487b8eece7e03b4ab6e888f7a8a1758010f8c007f000000000000000000"
    "00000000000000000000000000000000000000000000006001600160a01b0316"
    "33146100df57805460ff16156100bf576100ba610045565b6100df565b604051"
    "63572190d160e01b81523360048201526024015b60405180910390fd5b805460"
    "ff16156101015760405162dc149f60e41b815260040160405180910390fd5b5f"
    "61010a610132565b6001600160a01b03160361012d57805460ff191660011781"
    "5561012d8383610187565b505050565b5f6101647f360894a13ba1a3210667c8"
    "28492db98dca3e2076cc3735a920a3ca505d382bbc546001600160a01b031690"
    "565b905090565b365f5f375f5f365f845af43d5f5f3e808015610183573d5ff3"
    "5b3d5ffd5b610190826101e0565b6040516001600160a01b038316907fbc7cd7"
    "5a20ee27fd9adebab32041f755214dbc6bffa90cc0225b39da2e5c2d3b905f90"
    "a28051156101d45761012d8282610256565b6101dc6102c8565b5050565b8060"
    "01600160a01b03163b5f0361021557604051634c9c8ce360e01b815260016001"
    "60a01b03821660048201526024016100d6565b7f360894a13ba1a3210667c828"
    "492db98dca3e2076cc3735a920a3ca505d382bbc80546001600160a01b031916"
    "6001600160a01b0392909216919091179055565b60605f5f846001600160a01b"
    "0316846040516102729190610454565b5f60405180830381855af49150503d80"
    "5f81146102aa576040519150601f19603f3d011682016040523d82523d5f6020"
    "84013e6102af565b606091505b50915091506102bf8583836102e7565b959450"
    "50505050565b34156100555760405163b398979f60e01b815260040160405180"
    "910390fd5b6060826102fc576102f782610346565b61033f565b815115801561"
    "031357506001600160a01b0384163b155b1561033c57604051639996b31560e0"
    "1b81526001600160a01b03851660048201526024016100d6565b50805b939250"
    "5050565b8051156103565780518082602001fd5b60405163d6bda27560e01b81"
    "5260040160405180910390fd5b634e487b7160e01b5f52604160045260245ffd"
    "5b5f5f60408385031215610394575f5ffd5b82356001600160a01b0381168114"
    "6103aa575f5ffd5b9150602083013567ffffffffffffffff8111156103c5575f"
    "5ffd5b8301601f810185136103d5575f5ffd5b803567ffffffffffffffff8111"
    "156103ef576103ef61036f565b604051601f8201601f19908116603f01168101"
    "67ffffffffffffffff8111828210171561041e5761041e61036f565b60405281"
    "8152828201602001871015610435575f5ffd5b816020840160208301375f6020"
    "83830101528093505050509250929050565b5f82518060208501845e5f920191"
    "82525091905056fea26469706673582212205c8437c90a52b26afb62a6e21b8b"
    "aa0d106dcc547054521f0074dea229fd630f64736f6c634300081c0033")

PROXY_CREATION_CODE_SHA256 = "6daa5bc9d64cf4bc59859498e0e24d3d6e2338829a2be45af3b7867ec9dc4e63"
PROXY_CREATION_CODE_SIZE = 1309


def verify_fingerprint(name: str, code: bytes, expected_sha256: str) -> bytes:
    """
    Check a bytecode constant against its recorded SHA-256 fingerprint.

    Args:
        name: Constant name (for the error message)
        code: Bytecode
        expected_sha256: Hex digest recorded when the constant was added

    Returns:
        code, unchanged

    Raises:
        BytecodeFingerprintError: If the digest differs
    """
    got = hashlib.sha256(code).hexdigest()
    if got != expected_sha256:
        raise BytecodeFingerprintError(name, expected_sha256, got)
    return code


PROXY_CREATION_CODE: bytes = verify_fingerprint(
    "PROXY_CREATION_CODE",
    bytes.fromhex(_PROXY_CREATION_CODE_HEX),
    PROXY_CREATION_CODE_SHA256,
)


# =============================================================================
# ABI Loading
# =============================================================================

@lru_cache(maxsize=None)
def load_abi(name: str) -> List[Dict[str, Any]]:
    """
    Load contract ABI from JSON file.

    Args:
        name: File stem under contracts/abi (e.g. "DotOs")

    Raises:
        FileNotFoundError: If no such ABI is bundled
    """
    with open(ABI_DIR / f"{name}.json") as f:
        data = json.load(f)
    return data.get("abi", data) if isinstance(data, dict) else data


__all__ = [
    "ABI_DIR",
    "PROXY_CREATION_CODE",
    "PROXY_CREATION_CODE_SHA256",
    "PROXY_CREATION_CODE_SIZE",
    "verify_fingerprint",
    "load_abi",
]
