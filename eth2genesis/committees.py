from functools import lru_cache
from typing import List, Sequence

from eth2genesis.forks import Fork
from eth2genesis.utils import bls
from eth2genesis.utils.hash_function import hash
from eth2genesis.utils.ssz.ssz_impl import bytes_to_uint64

MAX_RANDOM_BYTE = 2**8 - 1
MAX_RANDOM_VALUE = 2**16 - 1


def is_active_validator(validator, epoch: int) -> bool:
    """
    Check if ``validator`` is active.
    """
    return validator.activation_epoch <= epoch < validator.exit_epoch


def get_active_validator_indices(validators, epoch: int) -> List[int]:
    """
    Return the sequence of active validator indices at ``epoch``.
    """
    return [i for i, v in enumerate(validators) if is_active_validator(v, epoch)]


def get_current_epoch(spec, state) -> int:
    return int(state.slot) // spec.SLOTS_PER_EPOCH


def get_randao_mix(spec, state, epoch: int) -> bytes:
    """
    Return the randao mix at a recent ``epoch``.
    """
    return bytes(state.randao_mixes[epoch % spec.EPOCHS_PER_HISTORICAL_VECTOR])


def get_seed(spec, state, epoch: int, domain_type: bytes) -> bytes:
    """
    Return the seed at ``epoch``.
    """
    # Avoid underflow
    mix = get_randao_mix(spec, state, epoch + spec.EPOCHS_PER_HISTORICAL_VECTOR - spec.MIN_SEED_LOOKAHEAD - 1)
    return hash(domain_type + epoch.to_bytes(8, "little") + mix)


@lru_cache(maxsize=1024)
def _shuffle_pivot(seed: bytes, current_round: int, index_count: int) -> int:
    return bytes_to_uint64(hash(seed + bytes([current_round]))[0:8]) % index_count


@lru_cache(maxsize=4096)
def _shuffle_source(seed: bytes, current_round: int, position_window: int) -> bytes:
    return hash(seed + bytes([current_round]) + position_window.to_bytes(4, "little"))


def compute_shuffled_index(index: int, index_count: int, seed: bytes, shuffle_round_count: int) -> int:
    """
    Return the shuffled index corresponding to ``seed`` (and ``index_count``).
    """
    assert index < index_count

    # Swap or not (https://link.springer.com/content/pdf/10.1007%2F978-3-642-32009-5_1.pdf)
    # See the 'generalized domain' algorithm on page 3
    seed = bytes(seed)
    for current_round in range(shuffle_round_count):
        pivot = _shuffle_pivot(seed, current_round, index_count)
        flip = (pivot + index_count - index) % index_count
        position = max(index, flip)
        source = _shuffle_source(seed, current_round, position // 256)
        byte = source[(position % 256) // 8]
        bit = (byte >> (position % 8)) % 2
        index = flip if bit else index

    return index


def get_next_sync_committee_indices(spec, state, validators=None) -> Sequence[int]:
    """
    Return the sync committee indices, with possible duplicates, for the next sync committee.
    Electra weighs candidates with a 16-bit random value, earlier forks with a single random byte.
    """
    if validators is None:
        validators = list(state.validators.readonly_iter())
    epoch = get_current_epoch(spec, state) + 1

    active_validator_indices = get_active_validator_indices(validators, epoch)
    active_validator_count = len(active_validator_indices)
    if active_validator_count == 0:
        return []
    seed = get_seed(spec, state, epoch, spec.DOMAIN_SYNC_COMMITTEE)
    electra = spec.is_post(Fork.ELECTRA)
    i = 0
    sync_committee_indices: List[int] = []
    while len(sync_committee_indices) < spec.SYNC_COMMITTEE_SIZE:
        shuffled_index = compute_shuffled_index(
            i % active_validator_count, active_validator_count, seed, spec.SHUFFLE_ROUND_COUNT
        )
        candidate_index = active_validator_indices[shuffled_index]
        effective_balance = int(validators[candidate_index].effective_balance)
        if electra:
            random_bytes = hash(seed + (i // 16).to_bytes(8, "little"))
            offset = i % 16 * 2
            random_value = bytes_to_uint64(random_bytes[offset:offset + 2])
            selected = effective_balance * MAX_RANDOM_VALUE >= spec.MAX_EFFECTIVE_BALANCE_ELECTRA * random_value
        else:
            random_byte = hash(seed + (i // 32).to_bytes(8, "little"))[i % 32]
            selected = effective_balance * MAX_RANDOM_BYTE >= spec.MAX_EFFECTIVE_BALANCE * random_byte
        if selected:
            sync_committee_indices.append(candidate_index)
        i += 1
    return sync_committee_indices


def get_next_sync_committee(spec, state, validators=None):
    """
    Return the next sync committee, with possible pubkey duplicates.
    Returns None when no validator is active in the next epoch.
    """
    if validators is None:
        validators = list(state.validators.readonly_iter())
    indices = get_next_sync_committee_indices(spec, state, validators)
    if not indices:
        return None
    pubkeys = [bytes(validators[index].pubkey) for index in indices]
    aggregate_pubkey = bls.AggregatePKs(pubkeys)
    return spec.types.SyncCommittee(pubkeys=pubkeys, aggregate_pubkey=aggregate_pubkey)
