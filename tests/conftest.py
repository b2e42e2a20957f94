# tests/conftest.py
"""Shared fixtures: Base chain config, mock chain/wallet, registrar."""

import pytest

from hypermap_id.adapters import MockChain, MockWalletAdapter
from hypermap_id.chains import get_chain
from hypermap_id.registrar import CommitRevealRegistrar
from hypermap_id.wire import NetworkingConfig


# Hardhat/Anvil default account #1
OTHER_PRIVATE_KEY = "0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d"
OTHER_ADDRESS = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"

NET_KEY = bytes(range(32))


@pytest.fixture
def base_chain():
    return get_chain(8453)


@pytest.fixture
def chain_config(base_chain):
    """Base with a 10 s chain-side minimum commitment age."""
    return base_chain.replace(min_commit_age=10)


@pytest.fixture
def mock_chain(chain_config):
    return MockChain(chain_config)


@pytest.fixture
def wallet(mock_chain):
    return MockWalletAdapter(mock_chain)


@pytest.fixture
def other_wallet(mock_chain):
    return MockWalletAdapter(mock_chain, private_key=OTHER_PRIVATE_KEY)


@pytest.fixture
def sleeps(mock_chain):
    """Records maturity waits and moves mock chain time instead of sleeping."""
    calls = []

    async def fake_sleep(seconds):
        calls.append(seconds)
        mock_chain.advance(seconds)

    fake_sleep.calls = calls
    return fake_sleep


@pytest.fixture
def registrar(wallet, chain_config, sleeps):
    return CommitRevealRegistrar(wallet, chain_config, sleep=sleeps)


@pytest.fixture
def indirect_net():
    return NetworkingConfig(networking_key=NET_KEY, routers=("router-1.hypr", "router-2.hypr"))


@pytest.fixture
def direct_net():
    return NetworkingConfig(
        networking_key=NET_KEY, direct=True, ip="203.0.113.7", ws_port=9000, tcp_port=0
    )
