from functools import lru_cache
from types import SimpleNamespace
from typing import Dict, Iterable, Tuple, Type

from eth2genesis.forks import Fork
from eth2genesis.utils.ssz.ssz_typing import (
    Bitlist,
    Bitvector,
    ByteList,
    ByteVector,
    Bytes4,
    Bytes20,
    Bytes32,
    Bytes48,
    Bytes96,
    Container,
    List,
    Vector,
    boolean,
    uint8,
    uint64,
    uint256,
)

Slot = uint64
Epoch = uint64
CommitteeIndex = uint64
ValidatorIndex = uint64
WithdrawalIndex = uint64
Gwei = uint64
Root = Bytes32
Hash32 = Bytes32
Version = Bytes4
BLSPubkey = Bytes48
BLSSignature = Bytes96
KZGCommitment = Bytes48
ParticipationFlags = uint8
ExecutionAddress = Bytes20

DEPOSIT_CONTRACT_TREE_DEPTH = 2**5
JUSTIFICATION_BITS_LENGTH = 4

# Per fork: the SSZ types the genesis state is made of
ForkTypes = SimpleNamespace


def container(name: str, fields: Iterable[Tuple[str, Type]]) -> Type[Container]:
    """
    Creates a container type with the given ordered fields.
    """
    return type(name, (Container,), {"__annotations__": dict(fields)})


class ForkData(Container):
    previous_version: Version
    current_version: Version
    epoch: Epoch


class Checkpoint(Container):
    epoch: Epoch
    root: Root


class Validator(Container):
    pubkey: BLSPubkey
    withdrawal_credentials: Bytes32  # Commitment to pubkey for withdrawals
    effective_balance: Gwei  # Balance at stake
    slashed: boolean
    # Status epochs
    activation_eligibility_epoch: Epoch  # When criteria for activation were met
    activation_epoch: Epoch
    exit_epoch: Epoch
    withdrawable_epoch: Epoch  # When validator can withdraw funds


class AttestationData(Container):
    slot: Slot
    index: CommitteeIndex
    # LMD GHOST vote
    beacon_block_root: Root
    # FFG vote
    source: Checkpoint
    target: Checkpoint


class Eth1Data(Container):
    deposit_root: Root
    deposit_count: uint64
    block_hash: Hash32


class DepositData(Container):
    pubkey: BLSPubkey
    withdrawal_credentials: Bytes32
    amount: Gwei
    signature: BLSSignature  # Signing over DepositMessage


class BeaconBlockHeader(Container):
    slot: Slot
    proposer_index: ValidatorIndex
    parent_root: Root
    state_root: Root
    body_root: Root


class SignedBeaconBlockHeader(Container):
    message: BeaconBlockHeader
    signature: BLSSignature


class ProposerSlashing(Container):
    signed_header_1: SignedBeaconBlockHeader
    signed_header_2: SignedBeaconBlockHeader


class Deposit(Container):
    proof: Vector[Bytes32, DEPOSIT_CONTRACT_TREE_DEPTH + 1]  # Merkle path to deposit root
    data: DepositData


class VoluntaryExit(Container):
    epoch: Epoch  # Earliest epoch when voluntary exit can be processed
    validator_index: ValidatorIndex


class SignedVoluntaryExit(Container):
    message: VoluntaryExit
    signature: BLSSignature


class Withdrawal(Container):
    index: WithdrawalIndex
    validator_index: ValidatorIndex
    address: ExecutionAddress
    amount: Gwei


class BLSToExecutionChange(Container):
    validator_index: ValidatorIndex
    from_bls_pubkey: BLSPubkey
    to_execution_address: ExecutionAddress


class SignedBLSToExecutionChange(Container):
    message: BLSToExecutionChange
    signature: BLSSignature


class HistoricalSummary(Container):
    block_summary_root: Root
    state_summary_root: Root


class PendingDeposit(Container):
    pubkey: BLSPubkey
    withdrawal_credentials: Bytes32
    amount: Gwei
    signature: BLSSignature
    slot: Slot


class PendingPartialWithdrawal(Container):
    validator_index: ValidatorIndex
    amount: Gwei
    withdrawable_epoch: Epoch


class PendingConsolidation(Container):
    source_index: ValidatorIndex
    target_index: ValidatorIndex


class DepositRequest(Container):
    pubkey: BLSPubkey
    withdrawal_credentials: Bytes32
    amount: Gwei
    signature: BLSSignature
    index: uint64


class WithdrawalRequest(Container):
    source_address: ExecutionAddress
    validator_pubkey: BLSPubkey
    amount: Gwei


class ConsolidationRequest(Container):
    source_address: ExecutionAddress
    source_pubkey: BLSPubkey
    target_pubkey: BLSPubkey


def _build_fork_types(p: Dict[str, int], fork: Fork) -> ForkTypes:
    t = ForkTypes(fork=fork)
    t.Validators = List[Validator, p["VALIDATOR_REGISTRY_LIMIT"]]
    t.Balances = List[Gwei, p["VALIDATOR_REGISTRY_LIMIT"]]
    t.DepositDataList = List[DepositData, 2**DEPOSIT_CONTRACT_TREE_DEPTH]

    # Blocks

    if fork.is_post(Fork.ELECTRA):
        committee_bits_limit = p["MAX_VALIDATORS_PER_COMMITTEE"] * p["MAX_COMMITTEES_PER_SLOT"]
        indexed_attestation = container("IndexedAttestation", [
            ("attesting_indices", List[ValidatorIndex, committee_bits_limit]),
            ("data", AttestationData),
            ("signature", BLSSignature),
        ])
        attestation = container("Attestation", [
            ("aggregation_bits", Bitlist[committee_bits_limit]),
            ("data", AttestationData),
            ("signature", BLSSignature),
            ("committee_bits", Bitvector[p["MAX_COMMITTEES_PER_SLOT"]]),
        ])
        max_attester_slashings = p["MAX_ATTESTER_SLASHINGS_ELECTRA"]
        max_attestations = p["MAX_ATTESTATIONS_ELECTRA"]
    else:
        indexed_attestation = container("IndexedAttestation", [
            ("attesting_indices", List[ValidatorIndex, p["MAX_VALIDATORS_PER_COMMITTEE"]]),
            ("data", AttestationData),
            ("signature", BLSSignature),
        ])
        attestation = container("Attestation", [
            ("aggregation_bits", Bitlist[p["MAX_VALIDATORS_PER_COMMITTEE"]]),
            ("data", AttestationData),
            ("signature", BLSSignature),
        ])
        max_attester_slashings = p["MAX_ATTESTER_SLASHINGS"]
        max_attestations = p["MAX_ATTESTATIONS"]
    attester_slashing = container("AttesterSlashing", [
        ("attestation_1", indexed_attestation),
        ("attestation_2", indexed_attestation),
    ])

    body_fields = [
        ("randao_reveal", BLSSignature),
        ("eth1_data", Eth1Data),  # Eth1 data vote
        ("graffiti", Bytes32),  # Arbitrary data
        ("proposer_slashings", List[ProposerSlashing, p["MAX_PROPOSER_SLASHINGS"]]),
        ("attester_slashings", List[attester_slashing, max_attester_slashings]),
        ("attestations", List[attestation, max_attestations]),
        ("deposits", List[Deposit, p["MAX_DEPOSITS"]]),
        ("voluntary_exits", List[SignedVoluntaryExit, p["MAX_VOLUNTARY_EXITS"]]),
    ]

    if fork.capabilities.sync_committee:
        t.SyncAggregate = container("SyncAggregate", [
            ("sync_committee_bits", Bitvector[p["SYNC_COMMITTEE_SIZE"]]),
            ("sync_committee_signature", BLSSignature),
        ])
        t.SyncCommittee = container("SyncCommittee", [
            ("pubkeys", Vector[BLSPubkey, p["SYNC_COMMITTEE_SIZE"]]),
            ("aggregate_pubkey", BLSPubkey),
        ])
        body_fields.append(("sync_aggregate", t.SyncAggregate))

    if fork.capabilities.execution_payload:
        t.Transaction = ByteList[p["MAX_BYTES_PER_TRANSACTION"]]
        t.Transactions = List[t.Transaction, p["MAX_TRANSACTIONS_PER_PAYLOAD"]]
        payload_fields = [
            # Execution block header fields
            ("parent_hash", Hash32),
            ("fee_recipient", ExecutionAddress),  # 'beneficiary' in the yellow paper
            ("state_root", Bytes32),
            ("receipts_root", Bytes32),
            ("logs_bloom", ByteVector[p["BYTES_PER_LOGS_BLOOM"]]),
            ("prev_randao", Bytes32),  # 'difficulty' in the yellow paper
            ("block_number", uint64),  # 'number' in the yellow paper
            ("gas_limit", uint64),
            ("gas_used", uint64),
            ("timestamp", uint64),
            ("extra_data", ByteList[p["MAX_EXTRA_DATA_BYTES"]]),
            ("base_fee_per_gas", uint256),
            # Extra payload fields
            ("block_hash", Hash32),  # Hash of execution block
        ]
        header_fields = payload_fields + [("transactions_root", Root)]
        payload_fields = payload_fields + [("transactions", t.Transactions)]
        if fork.capabilities.withdrawals:
            t.Withdrawals = List[Withdrawal, p["MAX_WITHDRAWALS_PER_PAYLOAD"]]
            payload_fields.append(("withdrawals", t.Withdrawals))
            header_fields.append(("withdrawals_root", Root))
        if fork.capabilities.blob_gas:
            for name in ("blob_gas_used", "excess_blob_gas"):
                payload_fields.append((name, uint64))
                header_fields.append((name, uint64))
        t.ExecutionPayload = container("ExecutionPayload", payload_fields)
        t.ExecutionPayloadHeader = container("ExecutionPayloadHeader", header_fields)
        body_fields.append(("execution_payload", t.ExecutionPayload))

    if fork.capabilities.withdrawals:
        body_fields.append((
            "bls_to_execution_changes",
            List[SignedBLSToExecutionChange, p["MAX_BLS_TO_EXECUTION_CHANGES"]],
        ))

    if fork.capabilities.blob_gas:
        body_fields.append(("blob_kzg_commitments", List[KZGCommitment, p["MAX_BLOB_COMMITMENTS_PER_BLOCK"]]))

    if fork.capabilities.execution_requests:
        t.ExecutionRequests = container("ExecutionRequests", [
            ("deposits", List[DepositRequest, p["MAX_DEPOSIT_REQUESTS_PER_PAYLOAD"]]),
            ("withdrawals", List[WithdrawalRequest, p["MAX_WITHDRAWAL_REQUESTS_PER_PAYLOAD"]]),
            ("consolidations", List[ConsolidationRequest, p["MAX_CONSOLIDATION_REQUESTS_PER_PAYLOAD"]]),
        ])
        body_fields.append(("execution_requests", t.ExecutionRequests))

    t.BeaconBlockBody = container("BeaconBlockBody", body_fields)

    # State

    state_fields = [
        # Versioning
        ("genesis_time", uint64),
        ("genesis_validators_root", Root),
        ("slot", Slot),
        ("fork", ForkData),
        # History
        ("latest_block_header", BeaconBlockHeader),
        ("block_roots", Vector[Root, p["SLOTS_PER_HISTORICAL_ROOT"]]),
        ("state_roots", Vector[Root, p["SLOTS_PER_HISTORICAL_ROOT"]]),
        ("historical_roots", List[Root, p["HISTORICAL_ROOTS_LIMIT"]]),
        # Eth1
        ("eth1_data", Eth1Data),
        ("eth1_data_votes", List[Eth1Data, p["EPOCHS_PER_ETH1_VOTING_PERIOD"] * p["SLOTS_PER_EPOCH"]]),
        ("eth1_deposit_index", uint64),
        # Registry
        ("validators", t.Validators),
        ("balances", t.Balances),
        # Randomness
        ("randao_mixes", Vector[Bytes32, p["EPOCHS_PER_HISTORICAL_VECTOR"]]),
        # Slashings
        ("slashings", Vector[Gwei, p["EPOCHS_PER_SLASHINGS_VECTOR"]]),  # Per-epoch sums of slashed effective balances
    ]
    if fork.capabilities.sync_committee:
        t.ParticipationList = List[ParticipationFlags, p["VALIDATOR_REGISTRY_LIMIT"]]
        t.InactivityScores = List[uint64, p["VALIDATOR_REGISTRY_LIMIT"]]
        state_fields += [
            # Participation
            ("previous_epoch_participation", t.ParticipationList),
            ("current_epoch_participation", t.ParticipationList),
        ]
    else:
        pending_attestation = container("PendingAttestation", [
            ("aggregation_bits", Bitlist[p["MAX_VALIDATORS_PER_COMMITTEE"]]),
            ("data", AttestationData),
            ("inclusion_delay", Slot),
            ("proposer_index", ValidatorIndex),
        ])
        pending_attestations = List[pending_attestation, p["MAX_ATTESTATIONS"] * p["SLOTS_PER_EPOCH"]]
        state_fields += [
            # Attestations
            ("previous_epoch_attestations", pending_attestations),
            ("current_epoch_attestations", pending_attestations),
        ]
    state_fields += [
        # Finality
        ("justification_bits", Bitvector[JUSTIFICATION_BITS_LENGTH]),  # Bit set for every recent justified epoch
        ("previous_justified_checkpoint", Checkpoint),  # Previous epoch snapshot
        ("current_justified_checkpoint", Checkpoint),
        ("finalized_checkpoint", Checkpoint),
    ]
    if fork.capabilities.sync_committee:
        state_fields += [
            # Inactivity
            ("inactivity_scores", t.InactivityScores),
            # Sync
            ("current_sync_committee", t.SyncCommittee),
            ("next_sync_committee", t.SyncCommittee),
        ]
    if fork.capabilities.execution_payload:
        state_fields.append(("latest_execution_payload_header", t.ExecutionPayloadHeader))
    if fork.capabilities.withdrawals:
        state_fields += [
            ("next_withdrawal_index", WithdrawalIndex),
            ("next_withdrawal_validator_index", ValidatorIndex),
            ("historical_summaries", List[HistoricalSummary, p["HISTORICAL_ROOTS_LIMIT"]]),
        ]
    if fork.capabilities.churn_accounting:
        state_fields += [
            ("deposit_requests_start_index", uint64),
            ("deposit_balance_to_consume", Gwei),
            ("exit_balance_to_consume", Gwei),
            ("earliest_exit_epoch", Epoch),
            ("consolidation_balance_to_consume", Gwei),
            ("earliest_consolidation_epoch", Epoch),
            ("pending_deposits", List[PendingDeposit, p["PENDING_DEPOSITS_LIMIT"]]),
            ("pending_partial_withdrawals", List[PendingPartialWithdrawal, p["PENDING_PARTIAL_WITHDRAWALS_LIMIT"]]),
            ("pending_consolidations", List[PendingConsolidation, p["PENDING_CONSOLIDATIONS_LIMIT"]]),
        ]
    t.BeaconState = container("BeaconState", state_fields)
    return t


@lru_cache(maxsize=None)
def _cached_fork_types(preset_items: Tuple[Tuple[str, int], ...], fork: Fork) -> ForkTypes:
    return _build_fork_types(dict(preset_items), fork)


def get_fork_types(preset: Dict[str, int], fork: Fork) -> ForkTypes:
    """
    Returns the SSZ types of ``fork`` sized by the ``preset``.
    Types are built once per preset and fork, so states built from equal presets share their types.
    """
    items = tuple(sorted((k, v) for k, v in preset.items() if isinstance(v, int)))
    return _cached_fork_types(items, fork)
