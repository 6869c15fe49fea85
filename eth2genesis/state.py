from typing import Optional, Sequence

from rich.console import Console

from eth2genesis.committees import get_next_sync_committee
from eth2genesis.containers import BeaconBlockHeader, Eth1Data, ForkData, Validator
from eth2genesis.exceptions import AssemblyError, InvariantViolation
from eth2genesis.forks import Fork
from eth2genesis.utils.ssz.ssz_impl import hash_tree_root
from eth2genesis.validators import ValidatorRecord

# Churn values of a fresh electra state with fewer than ~264k validators
GENESIS_EXIT_BALANCE_TO_CONSUME = 128_000_000_000
GENESIS_CONSOLIDATION_BALANCE_TO_CONSUME = 0


def get_max_effective_balance(spec, withdrawal_credentials: bytes) -> int:
    if spec.is_post(Fork.ELECTRA):
        if withdrawal_credentials[:1] == spec.COMPOUNDING_WITHDRAWAL_PREFIX:
            return spec.MAX_EFFECTIVE_BALANCE_ELECTRA
        return spec.MIN_ACTIVATION_BALANCE
    return spec.MAX_EFFECTIVE_BALANCE


def build_validator(spec, record: ValidatorRecord) -> Validator:
    balance = record.balance
    effective_balance = min(
        balance - balance % spec.EFFECTIVE_BALANCE_INCREMENT,
        get_max_effective_balance(spec, record.withdrawal_credentials),
    )
    validator = Validator(
        pubkey=record.pubkey,
        withdrawal_credentials=record.withdrawal_credentials,
        activation_eligibility_epoch=spec.FAR_FUTURE_EPOCH,
        activation_epoch=spec.FAR_FUTURE_EPOCH,
        exit_epoch=spec.FAR_FUTURE_EPOCH,
        withdrawable_epoch=spec.FAR_FUTURE_EPOCH,
        effective_balance=effective_balance,
    )
    # Process genesis activations.
    # Only validators at exactly the max effective balance are activated,
    # also in electra where larger effective balances exist.
    if effective_balance == spec.MAX_EFFECTIVE_BALANCE:
        validator.activation_eligibility_epoch = spec.GENESIS_EPOCH
        validator.activation_epoch = spec.GENESIS_EPOCH
    return validator


def assemble_genesis_state(spec, eth1_timestamp: int, eth1_block_hash: bytes,
                           validators: Sequence[ValidatorRecord],
                           execution_payload_header=None,
                           console: Optional[Console] = None):
    """
    Builds the genesis ``BeaconState`` of ``spec.fork`` from the validator records,
    in the order they are given.
    """
    if console is None:
        console = Console()
    types = spec.types
    capabilities = spec.fork.capabilities

    if len(eth1_block_hash) != 32:
        raise AssemblyError(f"eth1 block hash must be 32 bytes, got {len(eth1_block_hash)}")
    if len(validators) > spec.VALIDATOR_REGISTRY_LIMIT:
        raise AssemblyError(
            f"{len(validators)} validators exceed the registry limit of {spec.VALIDATOR_REGISTRY_LIMIT}"
        )

    genesis_block_body = types.BeaconBlockBody()

    state = types.BeaconState(
        genesis_time=eth1_timestamp + spec.config.GENESIS_DELAY,
        fork=ForkData(
            previous_version=spec.previous_version,
            current_version=spec.current_version,
            epoch=spec.GENESIS_EPOCH,
        ),
        eth1_data=Eth1Data(
            deposit_root=hash_tree_root(types.DepositDataList()),
            deposit_count=0,
            block_hash=eth1_block_hash,
        ),
        latest_block_header=BeaconBlockHeader(body_root=hash_tree_root(genesis_block_body)),
        # Seed RANDAO with Eth1 entropy
        randao_mixes=[eth1_block_hash] * spec.EPOCHS_PER_HISTORICAL_VECTOR,
    )
    if state.eth1_deposit_index != 0:
        raise InvariantViolation(f"eth1 deposit index of a new state is {state.eth1_deposit_index}, not 0")

    # Validators are put in directly, there are no genesis deposits to process
    validator_views = [build_validator(spec, record) for record in validators]
    state.validators = types.Validators(validator_views)
    state.balances = types.Balances([record.balance for record in validators])
    if capabilities.sync_committee:
        state.previous_epoch_participation = types.ParticipationList([0] * len(validators))
        state.current_epoch_participation = types.ParticipationList([0] * len(validators))
        state.inactivity_scores = types.InactivityScores([0] * len(validators))

    # Set genesis validators root for domain separation and chain versioning
    state.genesis_validators_root = hash_tree_root(state.validators)

    if capabilities.sync_committee:
        # A duplicate committee is assigned for the current and next committee at genesis
        sync_committee = get_next_sync_committee(spec, state, validator_views)
        if sync_committee is None:
            console.print("[yellow]WARNING: no active validators at genesis, sync committees are left empty[/yellow]")
        else:
            state.current_sync_committee = sync_committee
            state.next_sync_committee = sync_committee.copy()

    if capabilities.churn_accounting:
        # Like the deneb to electra upgrade, with no validator exits
        earliest_exit_epoch = spec.compute_activation_exit_epoch(spec.GENESIS_EPOCH) + 1
        state.earliest_exit_epoch = earliest_exit_epoch
        state.earliest_consolidation_epoch = earliest_exit_epoch
        state.exit_balance_to_consume = GENESIS_EXIT_BALANCE_TO_CONSUME
        state.consolidation_balance_to_consume = GENESIS_CONSOLIDATION_BALANCE_TO_CONSUME
        state.deposit_balance_to_consume = 0
        state.deposit_requests_start_index = spec.UNSET_DEPOSIT_REQUESTS_START_INDEX

    if capabilities.execution_payload:
        if execution_payload_header is None:
            execution_payload_header = types.ExecutionPayloadHeader()
        elif not isinstance(execution_payload_header, types.ExecutionPayloadHeader):
            raise AssemblyError(
                f"execution payload header of type {type(execution_payload_header).__name__} "
                f"does not match the {spec.fork} header"
            )
        state.latest_execution_payload_header = execution_payload_header
    elif execution_payload_header is not None:
        raise AssemblyError(f"{spec.fork} has no execution payload header")

    return state
