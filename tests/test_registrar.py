# tests/test_registrar.py
"""
Commit-Reveal Registrar Test Suite

G1: End-to-end registration
G2: Step ordering and state machine
G3: Chain-side failures
G4: Wallet and network failures
G5: Retry
G6: Sub-names and networking reset
"""

import pytest
from eth_abi import encode

from hypermap_id.adapters import CallReverted, MockChain, MockWalletAdapter, TEST_ADDRESS
from hypermap_id.errors import (
    AddressMismatchError,
    CommitmentNotMatureError,
    InvalidLabelError,
    InvalidStateError,
    MintRevertedError,
    NetworkUnreachableError,
    SigningRejectedError,
    TransactionRevertedError,
)
from hypermap_id.names import namehash
from hypermap_id.registrar import CommitRevealRegistrar, RegistrationState
from hypermap_id.tba import TbaPredictor
from hypermap_id.wire import ERROR_SELECTOR, NOTE_NET_KEY, NOTE_ROUTERS, NOTE_IP, NOTE_WS_PORT, compute_commitment

from conftest import NET_KEY, OTHER_ADDRESS


ALICE_TBA = "0x47d4c8c1b8749aB08fD7eeaAd5906410b3e0761B"


# =============================================================================
# G1: End-to-end registration
# =============================================================================

async def test_g1_1_register(registrar, mock_chain, indirect_net, sleeps):
    session = await registrar.register("alice", indirect_net)

    assert session.state == RegistrationState.DONE
    assert session.name == "alice.os"
    assert session.minted_address == ALICE_TBA
    assert session.prediction.account == ALICE_TBA
    assert session.commit_tx and session.mint_tx
    assert session.is_mature
    assert sleeps.calls == [16.0]

    minted = mock_chain.get("alice.os")
    assert minted.owner == TEST_ADDRESS
    assert minted.tba == ALICE_TBA
    assert minted.notes[NOTE_NET_KEY] == NET_KEY
    assert minted.notes[NOTE_ROUTERS] == namehash("router-1.hypr") + namehash("router-2.hypr")


async def test_g1_2_commitment_consumed(registrar, mock_chain, indirect_net):
    session = await registrar.register("alice", indirect_net)
    assert session.commitment == compute_commitment("alice", TEST_ADDRESS)
    assert session.commitment not in mock_chain.commitments


async def test_g1_3_step_by_step_direct(registrar, mock_chain, direct_net):
    session = registrar.start("bob", direct_net)
    assert session.state == RegistrationState.IDLE

    await registrar.commit(session)
    assert session.state == RegistrationState.AWAITING_MATURITY
    assert session.committed_at == mock_chain.timestamp
    assert session.commitment in mock_chain.commitments

    await registrar.await_maturity(session)
    await registrar.mint(session)
    assert session.state == RegistrationState.DONE
    assert session.minted_address == "0xb1Def5AB6D5FF59F890a5f38AF46f344f5522d7A"

    notes = mock_chain.get("bob.os").notes
    assert notes[NOTE_IP] == bytes([203, 0, 113, 7])
    assert notes[NOTE_WS_PORT] == b"\x23\x28"
    assert NOTE_ROUTERS not in notes


async def test_g1_4_to_dict(registrar, indirect_net):
    session = await registrar.register("alice", indirect_net)
    data = session.to_dict()
    assert data["state"] == "DONE"
    assert data["predicted_tba"] == data["minted_tba"] == ALICE_TBA
    assert data["error"] is None


async def test_g1_5_chain_deploys_pinned_tba_on_other_chain(chain_config, indirect_net):
    mainnet = chain_config.replace(chain_id=1)
    chain = MockChain(mainnet)

    async def fake_sleep(seconds):
        chain.advance(seconds)

    registrar = CommitRevealRegistrar(MockWalletAdapter(chain), mainnet, sleep=fake_sleep)
    session = await registrar.register("alice", indirect_net)
    assert chain.get("alice.os").tba == "0xb6Ab41C02a9CA1A160E1bCA2367b5BC714e36B13"
    assert session.minted_address == session.prediction.account


# =============================================================================
# G2: Step ordering and state machine
# =============================================================================

@pytest.mark.parametrize("label", ["alice.os", "Alice", "", "-x"])
def test_g2_1_start_rejects_bad_labels(registrar, indirect_net, label):
    with pytest.raises(InvalidLabelError):
        registrar.start(label, indirect_net)


async def test_g2_2_mint_before_commit(registrar, indirect_net):
    session = registrar.start("alice", indirect_net)
    with pytest.raises(InvalidStateError):
        await registrar.mint(session)
    assert session.state == RegistrationState.IDLE


async def test_g2_3_double_commit(registrar, indirect_net):
    session = registrar.start("alice", indirect_net)
    await registrar.commit(session)
    with pytest.raises(InvalidStateError):
        await registrar.commit(session)


async def test_g2_4_done_session_is_final(registrar, indirect_net):
    session = await registrar.register("alice", indirect_net)
    assert session.is_terminal
    with pytest.raises(InvalidStateError):
        await registrar.mint(session)
    session.mark_failed(MintRevertedError("late"))
    assert session.state == RegistrationState.DONE


# =============================================================================
# G3: Chain-side failures
# =============================================================================

async def test_g3_1_early_mint_is_not_mature(registrar, indirect_net, sleeps):
    session = registrar.start("alice", indirect_net)
    await registrar.commit(session)
    with pytest.raises(CommitmentNotMatureError) as exc:
        await registrar.mint(session)
    assert exc.value.reason.name == "CommitmentTooNew"
    assert session.state == RegistrationState.FAILED
    assert session.error is exc.value
    assert sleeps.calls == []


async def test_g3_2_maturity_recheck_fails(base_chain, indirect_net):
    slow = base_chain.replace(min_commit_age=30)
    chain = MockChain(slow)
    slept = []

    async def fake_sleep(seconds):
        slept.append(seconds)
        chain.advance(seconds)

    registrar = CommitRevealRegistrar(MockWalletAdapter(chain), slow, sleep=fake_sleep)
    session = registrar.start("alice", indirect_net)
    await registrar.commit(session)
    with pytest.raises(CommitmentNotMatureError):
        await registrar.await_maturity(session)
    assert slept == [16.0]
    assert session.state == RegistrationState.FAILED


async def test_g3_3_wrong_claimant_commitment_not_found(registrar, mock_chain, indirect_net):
    with pytest.raises(MintRevertedError) as exc:
        await registrar.register("alice", indirect_net, claimant=OTHER_ADDRESS)
    assert exc.value.reason.name == "CommitmentNotFound"
    assert mock_chain.get("alice.os") is None


async def test_g3_4_name_taken(registrar, indirect_net):
    await registrar.register("alice", indirect_net)
    with pytest.raises(MintRevertedError) as exc:
        await registrar.register("alice", indirect_net)
    assert exc.value.reason.name == "NameTaken"


async def test_g3_5_prediction_mismatch(wallet, chain_config, sleeps, indirect_net):
    wrong = TbaPredictor(chain_config.replace(chain_id=1))
    registrar = CommitRevealRegistrar(wallet, chain_config, predictor=wrong, sleep=sleeps)
    session = registrar.start("alice", indirect_net)
    await registrar.commit(session)
    await registrar.await_maturity(session)
    with pytest.raises(AddressMismatchError) as exc:
        await registrar.mint(session)
    assert exc.value.actual == ALICE_TBA
    assert session.state == RegistrationState.FAILED


# =============================================================================
# G4: Wallet and network failures
# =============================================================================

async def test_g4_1_signing_rejected(mock_chain, chain_config, sleeps, indirect_net):
    wallet = MockWalletAdapter(mock_chain, auto_approve=False)
    registrar = CommitRevealRegistrar(wallet, chain_config, sleep=sleeps)
    session = registrar.start("alice", indirect_net)
    with pytest.raises(SigningRejectedError):
        await registrar.commit(session)
    assert session.state == RegistrationState.FAILED
    assert mock_chain.transactions == []


async def test_g4_2_network_unreachable(mock_chain, chain_config, sleeps, indirect_net):
    wallet = MockWalletAdapter(mock_chain, reachable=False)
    registrar = CommitRevealRegistrar(wallet, chain_config, sleep=sleeps)
    with pytest.raises(NetworkUnreachableError):
        await registrar.register("alice", indirect_net)


async def test_g4_3_network_lost_during_maturity(registrar, wallet, indirect_net):
    session = registrar.start("alice", indirect_net)
    await registrar.commit(session)
    wallet.reachable = False
    with pytest.raises(NetworkUnreachableError):
        await registrar.await_maturity(session)
    assert session.state == RegistrationState.FAILED


async def test_g4_4_tba_read_failure_after_mint_is_done(registrar, wallet, mock_chain, indirect_net):
    session = registrar.start("alice", indirect_net)
    await registrar.commit(session)
    await registrar.await_maturity(session)

    async def unreachable_call(to, data):
        raise NetworkUnreachableError("RPC dropped after mint")

    wallet.call = unreachable_call
    await registrar.mint(session)

    assert session.state == RegistrationState.DONE
    assert session.minted_address is None
    assert mock_chain.get("alice.os").tba == ALICE_TBA


async def test_g4_5_undecodable_revert_string_fails_session(registrar, wallet, indirect_net):
    session = registrar.start("alice", indirect_net)
    await registrar.commit(session)
    await registrar.await_maturity(session)

    async def reverting_send(tx):
        raise CallReverted("execution reverted", data=ERROR_SELECTOR + encode(["bytes"], [b"\xff\xfe"]))

    wallet.send_transaction = reverting_send
    with pytest.raises(MintRevertedError) as exc:
        await registrar.mint(session)
    assert exc.value.reason.name == "Error"
    assert session.state == RegistrationState.FAILED


# =============================================================================
# G5: Retry
# =============================================================================

async def test_g5_1_retry_after_failure(registrar, indirect_net):
    session = registrar.start("alice", indirect_net)
    await registrar.commit(session)
    with pytest.raises(CommitmentNotMatureError):
        await registrar.mint(session)

    fresh = registrar.retry(session)
    assert fresh is not session
    assert fresh.state == RegistrationState.IDLE
    assert fresh.commitment == session.commitment

    await registrar.commit(fresh)
    await registrar.await_maturity(fresh)
    await registrar.mint(fresh)
    assert fresh.state == RegistrationState.DONE


def test_g5_2_retry_with_new_label_changes_commitment(registrar, indirect_net):
    session = registrar.start("alice", indirect_net)
    other = registrar.retry(session, label="alicia")
    assert other.name == "alicia.os"
    assert other.commitment != session.commitment
    assert registrar.retry(session, claimant=OTHER_ADDRESS).commitment != session.commitment


# =============================================================================
# G6: Sub-names and networking reset
# =============================================================================

async def test_g6_1_mint_under_parent(registrar, mock_chain, indirect_net):
    await registrar.register("alice", indirect_net)
    session = await registrar.mint_under_parent(ALICE_TBA, "sub", "alice.os", indirect_net)

    assert session.state == RegistrationState.DONE
    assert session.name == "sub.alice.os"
    assert session.commit_tx is None
    minted = mock_chain.get("sub.alice.os")
    assert minted.tba == session.minted_address == session.prediction.account
    assert minted.notes[NOTE_NET_KEY] == NET_KEY

    _, tx = mock_chain.transactions[-1]
    assert tx.to == ALICE_TBA
    assert tx.gas is not None


async def test_g6_2_mint_under_parent_not_owner(registrar, mock_chain, chain_config, sleeps, indirect_net, other_wallet):
    await registrar.register("alice", indirect_net)
    intruder = CommitRevealRegistrar(other_wallet, chain_config, sleep=sleeps)
    with pytest.raises(MintRevertedError) as exc:
        await intruder.mint_under_parent(ALICE_TBA, "sub", "alice.os", indirect_net)
    assert exc.value.reason.name == "NotAuthorized"
    assert mock_chain.get("sub.alice.os") is None


async def test_g6_3_reset_networking(registrar, mock_chain, indirect_net, direct_net):
    await registrar.register("alice", indirect_net)
    receipt = await registrar.reset_networking(ALICE_TBA, direct_net)
    assert receipt.succeeded
    assert mock_chain.get("alice.os").notes[NOTE_IP] == bytes([203, 0, 113, 7])


async def test_g6_4_reset_networking_not_owner(registrar, chain_config, indirect_net, direct_net, other_wallet):
    await registrar.register("alice", indirect_net)
    intruder = CommitRevealRegistrar(other_wallet, chain_config)
    with pytest.raises(TransactionRevertedError) as exc:
        await intruder.reset_networking(ALICE_TBA, direct_net)
    assert not isinstance(exc.value, MintRevertedError)
    assert exc.value.reason.name == "NotAuthorized"
