"""
Genesis driver: from key sources and an execution block to a serialized genesis state.
"""
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Union

from rich.console import Console

from eth2genesis.execution.block import ZERO_HASH32
from eth2genesis.execution.genesis_config import load_eth_genesis
from eth2genesis.execution.sources import execution_header_of, resolve_eth1_timestamp, select_execution_source
from eth2genesis.forks import Fork
from eth2genesis.keys.mnemonics import load_mnemonic_sources
from eth2genesis.spec import Spec, load_spec
from eth2genesis.state import assemble_genesis_state
from eth2genesis.utils import bls
from eth2genesis.utils.ssz.ssz_impl import serialize
from eth2genesis.validators import (
    MAX_IN_FLIGHT,
    ValidatorRecord,
    derive_mnemonic_validators,
    load_validators_from_file,
    merge_validators,
)


@dataclass
class GenesisOptions:
    fork: Fork
    config: str = "mainnet"
    preset: Optional[str] = None
    mnemonics: Optional[Union[str, Path]] = None
    additional_validators: Optional[Union[str, Path]] = None
    eth1_config: Optional[Union[str, Path]] = None
    shadow_fork_rpc: Optional[str] = None
    shadow_fork_block_file: Optional[Union[str, Path]] = None
    eth1_block: bytes = ZERO_HASH32
    timestamp: int = 0
    eth1_match_genesis_time: bool = False
    eth1_withdrawal_address: Optional[bytes] = None
    state_output: Optional[Union[str, Path]] = "genesis.ssz"
    tranches_dir: Union[str, Path] = "tranches"
    workers: int = 1
    max_in_flight: int = MAX_IN_FLIGHT
    bls_type: str = "fastest"


@dataclass
class GenesisResult:
    spec: Spec
    state: object
    validators: List[ValidatorRecord]
    eth1_timestamp: int
    eth1_block_hash: bytes

    @property
    def genesis_time(self) -> int:
        return int(self.state.genesis_time)


def format_genesis_time(eth1_timestamp: int, genesis_delay: int) -> str:
    genesis_time = eth1_timestamp + genesis_delay
    utc = datetime.fromtimestamp(genesis_time, tz=timezone.utc)
    return f"genesis at {eth1_timestamp} + {genesis_delay} = {genesis_time}  ({utc})"


def generate_genesis(options: GenesisOptions, console: Optional[Console] = None) -> GenesisResult:
    """
    Runs the whole genesis pipeline for ``options.fork``. The state is written to
    ``options.state_output`` unless that is ``None``.
    """
    if console is None:
        console = Console()
    bls.init(options.bls_type)

    spec = load_spec(options.fork, options.config, options.preset)
    console.print(f"creating {spec.fork} genesis state, with the {spec.preset_base} preset")

    eth_genesis = None
    if options.eth1_config:
        eth_genesis = load_eth_genesis(options.eth1_config)
    eth1_timestamp = resolve_eth1_timestamp(
        spec, options.eth1_match_genesis_time, eth_genesis, options.timestamp, console=console,
    )

    eth1_block_hash = options.eth1_block
    execution_payload_header = None
    if spec.fork.capabilities.execution_payload:
        source = select_execution_source(
            spec,
            block_file=options.shadow_fork_block_file,
            rpc_url=options.shadow_fork_rpc,
            eth_genesis=eth_genesis,
            console=console,
        )
        execution_payload_header, eth1_block_hash = execution_header_of(
            spec, source, options.eth1_block, eth1_timestamp,
        )

    os.makedirs(options.tranches_dir, exist_ok=True)
    sources = load_mnemonic_sources(options.mnemonics) if options.mnemonics else []
    derived = derive_mnemonic_validators(
        spec, sources, options.tranches_dir,
        withdrawal_address=options.eth1_withdrawal_address,
        workers=options.workers,
        max_in_flight=options.max_in_flight,
        console=console,
    )
    listed = []
    if options.additional_validators:
        listed = load_validators_from_file(spec, options.additional_validators)
        console.print(f"loaded {len(listed)} validators from {options.additional_validators}")
    validators = merge_validators(derived, listed)

    min_count = spec.config.MIN_GENESIS_ACTIVE_VALIDATOR_COUNT
    if len(validators) < min_count:
        console.print(
            f"[yellow]WARNING: not enough validators for genesis. "
            f"Key sources sum up to {len(validators)} total. But need {min_count}.[/yellow]"
        )

    state = assemble_genesis_state(
        spec, eth1_timestamp, eth1_block_hash, validators,
        execution_payload_header=execution_payload_header,
        console=console,
    )
    console.print(format_genesis_time(eth1_timestamp, spec.config.GENESIS_DELAY))

    if options.state_output is not None:
        with open(options.state_output, "wb") as f:
            f.write(serialize(state))
        console.print(f"wrote genesis state to {options.state_output}")

    return GenesisResult(
        spec=spec,
        state=state,
        validators=validators,
        eth1_timestamp=eth1_timestamp,
        eth1_block_hash=eth1_block_hash,
    )
