# hypermap_id/chains.py
"""
Hypermap ID: Chain Configurations

Defines per-chain contract addresses and registration timing for
forward compatibility with new deployments.

Contracts:
    - Hypermap:          name registry, note storage, proxy deployer
    - DotOs:             `.os` minter (commit-reveal)
    - Multicall3:        batched init calls (delegatecalled by the TBA)
    - HyperAccount impl: account implementation cloned on mint
    - ERC-6551 registry: token-bound account factory

Usage:
    from hypermap_id.chains import get_chain, DEFAULT_CHAIN_ID

    chain = get_chain(DEFAULT_CHAIN_ID)
    print(chain.hypermap)          # 0x000000000044C6B8Cb4d8f0F889a3E47664EAeda
    print(chain.maturity_buffer)   # 16.0

    local = chain.replace(chain_id=31337, name="anvil", maturity_buffer=0.0)

Updated: 2025-01-20
Version: 0.1.0
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Dict, Optional

from eth_utils import to_checksum_address


# =============================================================================
# Constants
# =============================================================================

HYPERMAP_ADDRESS = "0x000000000044C6B8Cb4d8f0F889a3E47664EAeda"
MULTICALL_ADDRESS = "0xcA11bde05977b3631167028862bE2a173976CA11"
HYPER_ACCOUNT_IMPL_ADDRESS = "0x0000000000EDAd72076CBe7b9Cfa3751D5a85C97"
DOTOS_ADDRESS = "0x763Ae1AB24c4322b8933E58d76d8D9286f6C0162"
ERC6551_REGISTRY_ADDRESS = "0x000000006551c19487814612e58FE06813775758"

BASE_CHAIN_ID = 8453

# Seconds to wait after the commit receipt before minting
DEFAULT_MATURITY_BUFFER = 16.0

# Gas limit for mints routed through a parent TBA and for resets
TBA_EXECUTE_GAS = 1_000_000


# =============================================================================
# Chain Definitions
# =============================================================================

@dataclass(frozen=True)
class ChainConfig:
    """Contract addresses and timing for one deployment."""
    chain_id: int
    name: str
    hypermap: str = HYPERMAP_ADDRESS
    dotos: str = DOTOS_ADDRESS
    multicall: str = MULTICALL_ADDRESS
    hyper_account_impl: str = HYPER_ACCOUNT_IMPL_ADDRESS
    erc6551_registry: str = ERC6551_REGISTRY_ADDRESS
    min_commit_age: Optional[int] = None   # Chain-side minimum, seconds (None = skip re-check)
    maturity_buffer: float = DEFAULT_MATURITY_BUFFER

    def __post_init__(self):
        for attr in ("hypermap", "dotos", "multicall", "hyper_account_impl", "erc6551_registry"):
            object.__setattr__(self, attr, to_checksum_address(getattr(self, attr)))

    def replace(self, **changes) -> ChainConfig:
        """Return a copy with the given fields overridden."""
        return dataclasses.replace(self, **changes)


CHAINS: Dict[int, ChainConfig] = {
    BASE_CHAIN_ID: ChainConfig(
        chain_id=BASE_CHAIN_ID,
        name="base",
    ),
}

DEFAULT_CHAIN_ID = BASE_CHAIN_ID


def get_chain(chain_id: int) -> ChainConfig:
    """
    Get chain configuration by ID.

    Args:
        chain_id: EVM chain ID

    Returns:
        ChainConfig instance

    Raises:
        ValueError: If chain_id is unknown
    """
    if chain_id not in CHAINS:
        raise ValueError(f"Unknown chain_id: {chain_id}. Valid: {list(CHAINS.keys())}")
    return CHAINS[chain_id]

