from eth2genesis.committees import (
    compute_shuffled_index,
    get_active_validator_indices,
    get_next_sync_committee_indices,
)
from eth2genesis.forks import Fork
from eth2genesis.state import assemble_genesis_state
from eth2genesis.test.context import get_spec, quiet_console, with_forks, with_sync_committee_forks
from eth2genesis.test.helpers.keys import make_validator_records
from eth2genesis.utils import bls
from eth2genesis.utils.ssz.ssz_impl import hash_tree_root


@with_sync_committee_forks
def test_sync_committees_at_genesis(spec):
    validators = make_validator_records(spec, 16)
    state = assemble_genesis_state(spec, 0, b"\x13" * 32, validators, console=quiet_console())

    committee = state.current_sync_committee
    assert hash_tree_root(committee) == hash_tree_root(state.next_sync_committee)
    pubkeys = [bytes(pubkey) for pubkey in committee.pubkeys]
    assert len(pubkeys) == spec.SYNC_COMMITTEE_SIZE
    assert set(pubkeys) <= {record.pubkey for record in validators}
    assert committee.aggregate_pubkey == bls.AggregatePKs(pubkeys)

    indices = get_next_sync_committee_indices(spec, state)
    assert [bytes(state.validators[i].pubkey) for i in indices] == pubkeys


@with_forks([Fork.ALTAIR, Fork.ELECTRA])
def test_sync_committee_depends_on_eth1_block_hash(spec):
    validators = make_validator_records(spec, 16)
    first = assemble_genesis_state(spec, 0, b"\x13" * 32, validators, console=quiet_console())
    second = assemble_genesis_state(spec, 0, b"\x14" * 32, validators, console=quiet_console())
    assert hash_tree_root(first.current_sync_committee) != hash_tree_root(second.current_sync_committee)


@with_sync_committee_forks
def test_sync_committee_skips_inactive_validators(spec):
    active = make_validator_records(spec, 4)
    inactive = [record._replace(balance=spec.EFFECTIVE_BALANCE_INCREMENT) for record in make_validator_records(spec, 8)[4:]]
    state = assemble_genesis_state(spec, 0, b"\x13" * 32, active + inactive, console=quiet_console())
    active_pubkeys = {record.pubkey for record in active}
    assert all(bytes(pubkey) in active_pubkeys for pubkey in state.current_sync_committee.pubkeys)


@with_sync_committee_forks
def test_no_active_validators_leaves_committees_empty(spec):
    console = quiet_console()
    validators = make_validator_records(spec, 2, balance=spec.EFFECTIVE_BALANCE_INCREMENT)
    state = assemble_genesis_state(spec, 0, b"\x13" * 32, validators, console=console)
    assert "no active validators" in console.file.getvalue()
    empty = spec.types.SyncCommittee()
    assert hash_tree_root(state.current_sync_committee) == hash_tree_root(empty)
    assert hash_tree_root(state.next_sync_committee) == hash_tree_root(empty)


def test_active_validator_indices():
    spec = get_spec(Fork.ALTAIR)
    validators = make_validator_records(spec, 3)
    validators[1] = validators[1]._replace(balance=1)
    state = assemble_genesis_state(spec, 0, b"\x13" * 32, validators, console=quiet_console())
    assert get_active_validator_indices(state.validators, 1) == [0, 2]


def test_shuffled_index_is_a_permutation():
    seed = b"\x21" * 32
    for count in (1, 2, 7, 100):
        shuffled = [compute_shuffled_index(i, count, seed, 10) for i in range(count)]
        assert sorted(shuffled) == list(range(count))
